"""CLI entrypoint for declmerge."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from . import __version__
from .config import ConfigError
from .logging import configure_logging
from .orchestrator import MergeResult, Orchestrator

DEFAULT_CONFIG_PATH = "./api-extractor.json"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="declmerge",
        description=(
            "Merge `declare module` augmentations from TypeScript sources into the "
            "rollup files produced by API Extractor."
        ),
        epilog=(
            "examples:\n"
            "  declmerge\n"
            "  declmerge --config ./api-extractor.json\n"
            "  declmerge ./api-extractor.json --dry-run"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "config_path",
        nargs="?",
        default=None,
        metavar="CONFIG",
        help="Path to api-extractor.json (same as --config).",
    )
    parser.add_argument(
        "-c",
        "--config",
        dest="config_option",
        default=None,
        metavar="PATH",
        help=f"Path to api-extractor.json (defaults to {DEFAULT_CONFIG_PATH}).",
    )
    parser.add_argument(
        "-d",
        "--dry-run",
        action="store_true",
        help="Preview changes without writing files.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Show detailed output and statistics.",
    )
    parser.add_argument(
        "--include",
        action="append",
        default=None,
        metavar="GLOB",
        help="Glob of source files to scan (repeatable; replaces the defaults).",
    )
    parser.add_argument(
        "--exclude",
        action="append",
        default=None,
        metavar="GLOB",
        help="Glob of source files to skip (repeatable; replaces the defaults).",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        metavar="PATH",
        help="Also write log records to this file.",
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"declmerge v{__version__}",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for declmerge."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)
    config_path = args.config_option or args.config_path or DEFAULT_CONFIG_PATH
    dry_run = bool(args.dry_run)

    print("Merging module declarations...")
    try:
        result = Orchestrator().run(
            config_path,
            dry_run=dry_run,
            include=args.include,
            exclude=args.exclude,
        )
    except (ConfigError, FileNotFoundError, NotADirectoryError) as exc:
        parser.exit(1, f"Failed to merge module declarations: {exc}\n")

    _report(result, dry_run=dry_run, verbose=bool(args.verbose))
    if result.errors:
        parser.exit(1)


def _report(result: MergeResult, *, dry_run: bool, verbose: bool) -> None:
    if result.errors:
        print("\nCompleted with errors:")
        for error in result.errors:
            print(f"  x {error}")
        print()

    if verbose:
        print(f"Found {result.augmentation_count} module augmentation(s)")
        print(f"Processed {result.declaration_count} declaration(s)")
        if result.untagged_declaration_count:
            print(f"Untagged declaration(s): {result.untagged_declaration_count}")
        for warning in result.warnings:
            print(f"  ! {warning}")
        print()

    if result.augmented_files:
        action = "Would augment" if dry_run else "Augmented"
        print(f"{action} {len(result.augmented_files)} rollup file(s):")
        for path in result.augmented_files:
            print(f"  + {_relativize(path)}")
    else:
        print("No rollup files were augmented.")

    if result.skipped_files:
        print("Skipped files (not found):")
        for path in result.skipped_files:
            print(f"  - {_relativize(path)}")

    if result.cleared_files:
        action = "Would clear" if dry_run else "Cleared"
        print(f"{action} stale augmentations from {len(result.cleared_files)} rollup file(s):")
        for path in result.cleared_files:
            print(f"  - {_relativize(path)}")


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
