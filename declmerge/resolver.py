"""Re-anchors module specifiers to the rollup entry point."""

from __future__ import annotations

import os
from pathlib import Path


def is_relative_specifier(module_specifier: str) -> bool:
    return module_specifier in (".", "..") or module_specifier.startswith(("./", "../"))


class ModuleResolver:
    """Rewrites relative ``declare module`` specifiers for use from the entry point.

    A source at ``src/things/first.ts`` augmenting ``"../registry"`` with the
    entry point ``src/index.ts`` resolves to ``"./registry"``. Package
    specifiers such as ``"@scope/pkg"`` are returned unchanged.
    """

    def __init__(self, project_folder: Path | str, main_entry_point_file_path: Path | str) -> None:
        self.project_folder = os.path.abspath(project_folder)
        self.entry_dir = os.path.dirname(os.path.abspath(main_entry_point_file_path))

    def resolve_module_path(self, module_specifier: str, source_file_path: str) -> str:
        if not is_relative_specifier(module_specifier):
            return module_specifier

        source_dir = os.path.dirname(os.path.join(self.project_folder, source_file_path))
        target = os.path.normpath(os.path.join(source_dir, module_specifier))
        relative = os.path.relpath(target, self.entry_dir).replace("\\", "/")

        if relative == ".":
            return "./"
        if relative == ".." or relative.startswith(("./", "../")):
            return relative
        return f"./{relative}"

    __call__ = resolve_module_path


__all__ = ["ModuleResolver", "is_relative_specifier"]
