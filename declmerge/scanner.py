"""Source file enumeration for augmentation extraction."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterator, List, Sequence

import pathspec

from .logging import get_logger

DEFAULT_INCLUDE: tuple[str, ...] = ("**/*.ts", "**/*.tsx")
DEFAULT_EXCLUDE: tuple[str, ...] = ("**/node_modules/**", "**/*.d.ts", "**/dist/**")

# Never descended into, whatever the exclude globs say.
_PRUNED_DIRS = {
    ".git",
    ".hg",
    ".svn",
    "node_modules",
}


class SourceScanner:
    """Walks a project folder and yields the TypeScript sources to inspect."""

    def __init__(
        self,
        include: Sequence[str] | None = None,
        exclude: Sequence[str] | None = None,
    ) -> None:
        self.include = list(include) if include is not None else list(DEFAULT_INCLUDE)
        self.exclude = list(exclude) if exclude is not None else list(DEFAULT_EXCLUDE)
        self._include_spec = pathspec.PathSpec.from_lines("gitwildmatch", self.include)
        self._exclude_spec = pathspec.PathSpec.from_lines("gitwildmatch", self.exclude)
        self._logger = get_logger("scanner")

    def scan(self, root: Path | str) -> List[Path]:
        """Return absolute paths of matching files under ``root``, sorted by relative path."""
        root_path = Path(os.path.abspath(Path(root).expanduser()))
        if not root_path.exists():
            raise FileNotFoundError(f"Project folder not found: {root}")
        if not root_path.is_dir():
            raise NotADirectoryError(f"Project folder is not a directory: {root}")

        matches = sorted(self._iter_matches(root_path), key=lambda item: item[0])
        self._logger.debug("Matched %d source file(s) under %s", len(matches), root_path)
        return [path for _, path in matches]

    def matches(self, rel_path: str) -> bool:
        """Return True when a POSIX-style relative path is included and not excluded."""
        if not self._include_spec.match_file(rel_path):
            return False
        return not self._exclude_spec.match_file(rel_path)

    def _iter_matches(self, root: Path) -> Iterator[tuple[str, Path]]:
        for dirpath, dirnames, filenames in os.walk(root):
            current_dir = Path(dirpath)
            rel_dir = current_dir.relative_to(root).as_posix() if current_dir != root else ""

            dirnames[:] = [name for name in dirnames if name not in _PRUNED_DIRS]

            for filename in filenames:
                rel_path = f"{rel_dir}/{filename}" if rel_dir else filename
                if self.matches(rel_path):
                    yield rel_path, current_dir / filename


__all__ = ["DEFAULT_EXCLUDE", "DEFAULT_INCLUDE", "SourceScanner"]
