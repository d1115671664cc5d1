"""Appends extracted module augmentations to API Extractor rollup files."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from .config import MissingReleaseTagConfig, RollupPaths, rollup_paths_for_maturity
from .logging import get_logger, log_extractor_message
from .models import (
    ExtractedDeclaration,
    ExtractedModuleAugmentation,
    ExtractorLogLevel,
    UntaggedDeclarationInfo,
)
from .postproc.markers import ManagedBlock, MarkerManager
from .resolver import ModuleResolver

MANAGED_BLOCK_KEY = "augmentations"
_RULE = "========================================"

# Levels whose untagged-declaration messages are written into the rollups.
_REPORTED_LEVELS = (ExtractorLogLevel.ERROR, ExtractorLogLevel.WARNING)

# rollup path -> resolved module specifier -> source file -> declarations
GroupedDeclarations = Dict[Path, Dict[str, Dict[str, List[ExtractedDeclaration]]]]

_logger = get_logger("augmenter")


@dataclass
class AugmentResult:
    """Outcome of augmenting the configured rollups."""

    augmented_files: List[Path] = field(default_factory=list)
    skipped_files: List[Path] = field(default_factory=list)
    cleared_files: List[Path] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    should_stop: bool = False


def format_untagged_warning(info: UntaggedDeclarationInfo) -> str:
    return (
        f'ae-missing-release-tag: "{info.name}" ({info.kind.value}) in {info.source_file_path} '
        "is missing a release tag (@public, @beta, @alpha, or @internal)"
    )


def group_declarations(
    augmentations: Sequence[ExtractedModuleAugmentation],
    rollup_paths: RollupPaths,
    resolver: ModuleResolver,
) -> GroupedDeclarations:
    """Fan declarations out to their rollups, keeping first-seen order at every level."""
    grouped: GroupedDeclarations = {}
    for augmentation in augmentations:
        specifier = resolver.resolve_module_path(
            augmentation.module_specifier, augmentation.source_file_path
        )
        for declaration in augmentation.declarations:
            for rollup_path in rollup_paths_for_maturity(declaration.maturity_level, rollup_paths):
                by_specifier = grouped.setdefault(rollup_path, {})
                by_source = by_specifier.setdefault(specifier, {})
                by_source.setdefault(augmentation.source_file_path, []).append(declaration)
    return grouped


def render_source_block(
    source_file_path: str,
    resolved_specifier: str,
    declarations: Sequence[ExtractedDeclaration],
) -> str:
    lines = [
        f"// #region Module augmentation from {source_file_path}",
        f'declare module "{resolved_specifier}" {{',
    ]
    for declaration in declarations:
        lines.append(
            "\n".join(
                f"  {line}" if line.strip() else line for line in declaration.text.split("\n")
            )
        )
    lines.append("}")
    lines.append("// #endregion")
    return "\n".join(lines)


def render_augmentation_section(
    by_specifier: Dict[str, Dict[str, List[ExtractedDeclaration]]],
) -> str:
    sections = [
        "",
        f"// {_RULE}",
        "// Module Declarations (merged by declmerge)",
        f"// {_RULE}",
        "",
    ]
    for specifier, by_source in by_specifier.items():
        for source_file_path, declarations in by_source.items():
            sections.append(render_source_block(source_file_path, specifier, declarations))
            sections.append("")
    return "\n".join(sections)


def render_untagged_warning_section(untagged: Sequence[UntaggedDeclarationInfo]) -> str:
    if not untagged:
        return ""
    lines = [
        "",
        f"// {_RULE}",
        "// Missing Release Tag Warnings (ae-missing-release-tag)",
        f"// {_RULE}",
        "//",
    ]
    lines.extend(f"// WARNING: {format_untagged_warning(info)}" for info in untagged)
    lines.append("//")
    lines.append("")
    return "\n".join(lines)


def augment_rollups(
    augmentations: Sequence[ExtractedModuleAugmentation],
    rollup_paths: RollupPaths,
    resolver: ModuleResolver,
    *,
    dry_run: bool = False,
    missing_release_tag: MissingReleaseTagConfig | None = None,
    untagged_declarations: Sequence[UntaggedDeclarationInfo] = (),
    marker_manager: MarkerManager | None = None,
) -> AugmentResult:
    """Write the grouped declarations into every existing rollup they target.

    Untagged declarations are reported first according to the
    ``ae-missing-release-tag`` policy. An ``error`` level that is not routed to
    the report file stops the run before any file is touched.

    Configured rollups that nothing targets any more lose the managed block a
    previous run left in them.
    """
    policy = missing_release_tag or MissingReleaseTagConfig()
    markers = marker_manager or MarkerManager()
    result = AugmentResult()

    if untagged_declarations and policy.log_level is not ExtractorLogLevel.NONE:
        for info in untagged_declarations:
            message = format_untagged_warning(info)
            log_extractor_message(_logger, policy.log_level, message)
            if policy.log_level is ExtractorLogLevel.ERROR:
                result.errors.append(message)
            elif policy.log_level is ExtractorLogLevel.WARNING:
                result.warnings.append(message)

        if policy.log_level is ExtractorLogLevel.ERROR and not policy.add_to_api_report_file:
            _logger.error(
                "%d declaration(s) lack a release tag; no rollup was modified",
                len(untagged_declarations),
            )
            result.should_stop = True
            return result

    warning_section = ""
    if policy.add_to_api_report_file and policy.log_level in _REPORTED_LEVELS:
        warning_section = render_untagged_warning_section(untagged_declarations)

    grouped = group_declarations(augmentations, rollup_paths, resolver)
    for rollup_path, by_specifier in grouped.items():
        try:
            if not rollup_path.exists():
                _logger.warning("Rollup not found, skipping: %s", rollup_path)
                result.skipped_files.append(rollup_path)
                continue

            existing = rollup_path.read_text(encoding="utf-8")
            body = warning_section + render_augmentation_section(by_specifier)
            updated = markers.upsert(existing, ManagedBlock(key=MANAGED_BLOCK_KEY, body=body))

            if dry_run:
                _logger.info("Would augment %s", rollup_path)
            else:
                rollup_path.write_text(updated, encoding="utf-8")
                _logger.info("Augmented %s", rollup_path)
            result.augmented_files.append(rollup_path)
        except (OSError, UnicodeDecodeError) as exc:
            _logger.debug("Failed to augment %s", rollup_path, exc_info=True)
            result.errors.append(f"Error augmenting {rollup_path}: {exc}")

    for rollup_path in dict.fromkeys(rollup_paths.values()):
        if rollup_path in grouped or not rollup_path.exists():
            continue
        try:
            existing = rollup_path.read_text(encoding="utf-8")
            if not markers.contains(existing, MANAGED_BLOCK_KEY):
                continue
            if dry_run:
                _logger.info("Would clear stale augmentations from %s", rollup_path)
            else:
                rollup_path.write_text(
                    markers.remove(existing, MANAGED_BLOCK_KEY), encoding="utf-8"
                )
                _logger.info("Cleared stale augmentations from %s", rollup_path)
            result.cleared_files.append(rollup_path)
        except (OSError, UnicodeDecodeError) as exc:
            _logger.debug("Failed to clear %s", rollup_path, exc_info=True)
            result.errors.append(f"Error augmenting {rollup_path}: {exc}")

    return result


def get_augmentation_preview(
    augmentations: Sequence[ExtractedModuleAugmentation],
    rollup_paths: RollupPaths,
    resolver: ModuleResolver,
    target_rollup: Path | str,
) -> Optional[str]:
    """Return the section that would be written to ``target_rollup``, or None."""
    grouped = group_declarations(augmentations, rollup_paths, resolver)
    by_specifier = grouped.get(Path(target_rollup))
    if by_specifier is None:
        return None
    return render_augmentation_section(by_specifier)


__all__ = [
    "AugmentResult",
    "augment_rollups",
    "format_untagged_warning",
    "get_augmentation_preview",
    "group_declarations",
    "render_augmentation_section",
]
