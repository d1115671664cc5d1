"""Helper utilities for constructing throwaway TypeScript projects in tests."""

from __future__ import annotations

import json
import textwrap
from pathlib import Path
from typing import Any, Dict, Mapping

ROLLUP_FIELDS = {
    "public": "publicTrimmedFilePath",
    "beta": "betaTrimmedFilePath",
    "alpha": "alphaTrimmedFilePath",
    "internal": "untrimmedFilePath",
}


class ProjectBuilder:
    """Writes sources, rollups and an api-extractor.json into a temporary project."""

    def __init__(self, tmp_path: Path) -> None:
        self.root = tmp_path / "project"
        self.root.mkdir()

    def write(self, files: Mapping[str, str]) -> None:
        """Write `path -> contents` entries into the project."""
        for relative, content in files.items():
            path = self.root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            normalised = textwrap.dedent(content).lstrip("\n")
            path.write_text(normalised, encoding="utf-8")

    def write_rollups(self, tiers: Mapping[str, str] | None = None) -> Dict[str, Path]:
        """Create rollup files (tier -> relative path) with a small existing body."""
        tiers = tiers or {
            "public": "dist/pkg-public.d.ts",
            "beta": "dist/pkg-beta.d.ts",
            "alpha": "dist/pkg-alpha.d.ts",
            "internal": "dist/pkg.d.ts",
        }
        paths: Dict[str, Path] = {}
        for tier, relative in tiers.items():
            path = self.root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text("export interface Registry {}\n", encoding="utf-8")
            paths[tier] = path
        return paths

    def write_config(
        self,
        *,
        rollups: Mapping[str, str] | None = None,
        entry_point: str = "<projectFolder>/src/index.ts",
        name: str = "api-extractor.json",
        **extra: Any,
    ) -> Path:
        """Write an api-extractor.json whose dtsRollup names the given tiers."""
        rollups = rollups if rollups is not None else {
            "public": "dist/pkg-public.d.ts",
            "beta": "dist/pkg-beta.d.ts",
            "alpha": "dist/pkg-alpha.d.ts",
            "internal": "dist/pkg.d.ts",
        }
        data: Dict[str, Any] = {"mainEntryPointFilePath": entry_point}
        if rollups:
            dts_rollup: Dict[str, Any] = {"enabled": True}
            for tier, relative in rollups.items():
                dts_rollup[ROLLUP_FIELDS[tier]] = f"<projectFolder>/{relative}"
            data["dtsRollup"] = dts_rollup
        data.update(extra)
        path = self.root / name
        path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        return path

    def read(self, relative: str) -> str:
        return (self.root / relative).read_text(encoding="utf-8")

    def path(self) -> Path:
        """Return the project root path."""
        return self.root


__all__ = ["ProjectBuilder", "ROLLUP_FIELDS"]
