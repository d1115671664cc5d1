"""Tests for declmerge.augmenter."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict

import pytest

from declmerge.augmenter import (
    augment_rollups,
    format_untagged_warning,
    get_augmentation_preview,
    group_declarations,
    render_source_block,
)
from declmerge.config import MissingReleaseTagConfig
from declmerge.models import (
    DeclarationKind,
    ExtractedDeclaration,
    ExtractedModuleAugmentation,
    ExtractorLogLevel,
    MaturityLevel,
    UntaggedDeclarationInfo,
)
from declmerge.resolver import ModuleResolver

EXISTING = "export interface Registry {}\n"


def _declaration(
    name: str = "Registry",
    level: MaturityLevel = MaturityLevel.PUBLIC,
    *,
    text: str | None = None,
    untagged: bool = False,
) -> ExtractedDeclaration:
    return ExtractedDeclaration(
        text=text or f"/** @{level.value} */\ninterface {name} {{\n  {name.lower()}: string;\n}}",
        name=name,
        kind=DeclarationKind.INTERFACE,
        maturity_level=level,
        is_untagged=untagged,
    )


def _augmentation(
    *declarations: ExtractedDeclaration,
    source: str = "src/things/first.ts",
    specifier: str = "../registry",
) -> ExtractedModuleAugmentation:
    return ExtractedModuleAugmentation(
        module_specifier=specifier,
        source_file_path=source,
        declarations=tuple(declarations),
    )


@pytest.fixture
def resolver(tmp_path: Path) -> ModuleResolver:
    return ModuleResolver(tmp_path, tmp_path / "src" / "index.ts")


@pytest.fixture
def rollups(tmp_path: Path) -> Dict[MaturityLevel, Path]:
    paths = {
        MaturityLevel.PUBLIC: tmp_path / "dist" / "pkg-public.d.ts",
        MaturityLevel.BETA: tmp_path / "dist" / "pkg-beta.d.ts",
        MaturityLevel.ALPHA: tmp_path / "dist" / "pkg-alpha.d.ts",
        MaturityLevel.INTERNAL: tmp_path / "dist" / "pkg.d.ts",
    }
    for path in paths.values():
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(EXISTING, encoding="utf-8")
    return paths


def test_internal_declaration_reaches_only_internal_rollup(rollups, resolver) -> None:
    result = augment_rollups(
        [_augmentation(_declaration(level=MaturityLevel.INTERNAL))], rollups, resolver
    )

    assert result.augmented_files == [rollups[MaturityLevel.INTERNAL]]
    assert result.errors == []
    assert "interface Registry" in rollups[MaturityLevel.INTERNAL].read_text(encoding="utf-8")
    for level in (MaturityLevel.PUBLIC, MaturityLevel.BETA, MaturityLevel.ALPHA):
        assert rollups[level].read_text(encoding="utf-8") == EXISTING


def test_public_declaration_reaches_every_rollup(rollups, resolver) -> None:
    result = augment_rollups([_augmentation(_declaration())], rollups, resolver)

    assert set(result.augmented_files) == set(rollups.values())
    for path in rollups.values():
        assert 'declare module "./registry" {' in path.read_text(encoding="utf-8")


def test_rendered_rollup_content(rollups, resolver) -> None:
    augment_rollups(
        [_augmentation(_declaration(level=MaturityLevel.INTERNAL))], rollups, resolver
    )

    assert rollups[MaturityLevel.INTERNAL].read_text(encoding="utf-8") == (
        "export interface Registry {}\n"
        "\n"
        "// declmerge:begin:augmentations\n"
        "// ========================================\n"
        "// Module Declarations (merged by declmerge)\n"
        "// ========================================\n"
        "\n"
        "// #region Module augmentation from src/things/first.ts\n"
        'declare module "./registry" {\n'
        "  /** @internal */\n"
        "  interface Registry {\n"
        "    registry: string;\n"
        "  }\n"
        "}\n"
        "// #endregion\n"
        "// declmerge:end:augmentations\n"
    )


def test_render_source_block_leaves_blank_lines_unindented() -> None:
    declaration = _declaration(text="interface A {\n\n  a: string;\n}")

    block = render_source_block("src/a.ts", "./a", [declaration])

    assert block == (
        "// #region Module augmentation from src/a.ts\n"
        'declare module "./a" {\n'
        "  interface A {\n"
        "\n"
        "    a: string;\n"
        "  }\n"
        "}\n"
        "// #endregion"
    )


def test_group_declarations_keeps_first_seen_order(rollups, resolver) -> None:
    augmentations = [
        _augmentation(_declaration("First"), source="src/things/first.ts"),
        _augmentation(_declaration("Other"), source="src/other.ts", specifier="@scope/pkg"),
        _augmentation(_declaration("Second"), source="src/things/second.ts"),
    ]

    grouped = group_declarations(augmentations, rollups, resolver)

    by_specifier = grouped[rollups[MaturityLevel.PUBLIC]]
    assert list(by_specifier) == ["./registry", "@scope/pkg"]
    assert list(by_specifier["./registry"]) == ["src/things/first.ts", "src/things/second.ts"]
    assert list(grouped) == [
        rollups[MaturityLevel.INTERNAL],
        rollups[MaturityLevel.ALPHA],
        rollups[MaturityLevel.BETA],
        rollups[MaturityLevel.PUBLIC],
    ]


def test_missing_rollup_is_skipped(tmp_path: Path, resolver) -> None:
    missing = tmp_path / "dist" / "missing.d.ts"

    result = augment_rollups(
        [_augmentation(_declaration())], {MaturityLevel.PUBLIC: missing}, resolver
    )

    assert result.skipped_files == [missing]
    assert result.augmented_files == []
    assert not missing.exists()


def test_dry_run_reports_without_writing(rollups, resolver) -> None:
    result = augment_rollups([_augmentation(_declaration())], rollups, resolver, dry_run=True)

    assert len(result.augmented_files) == 4
    for path in rollups.values():
        assert path.read_text(encoding="utf-8") == EXISTING


def test_rerun_replaces_managed_block(rollups, resolver) -> None:
    augmentations = [_augmentation(_declaration())]
    augment_rollups(augmentations, rollups, resolver)
    first = rollups[MaturityLevel.PUBLIC].read_text(encoding="utf-8")

    augment_rollups(augmentations, rollups, resolver)
    second = rollups[MaturityLevel.PUBLIC].read_text(encoding="utf-8")

    assert first == second
    assert second.count("// declmerge:begin:augmentations") == 1


def test_rerun_without_declarations_clears_stale_block(rollups, resolver) -> None:
    augment_rollups([_augmentation(_declaration())], rollups, resolver)

    result = augment_rollups([], rollups, resolver)

    assert result.augmented_files == []
    assert result.cleared_files == list(rollups.values())
    for path in rollups.values():
        assert path.read_text(encoding="utf-8") == EXISTING


def test_retagged_declaration_leaves_only_its_tiers(rollups, resolver) -> None:
    augment_rollups([_augmentation(_declaration())], rollups, resolver)

    result = augment_rollups(
        [_augmentation(_declaration(level=MaturityLevel.INTERNAL))], rollups, resolver
    )

    assert result.augmented_files == [rollups[MaturityLevel.INTERNAL]]
    assert set(result.cleared_files) == {
        rollups[MaturityLevel.PUBLIC],
        rollups[MaturityLevel.BETA],
        rollups[MaturityLevel.ALPHA],
    }
    assert rollups[MaturityLevel.PUBLIC].read_text(encoding="utf-8") == EXISTING
    assert "@internal" in rollups[MaturityLevel.INTERNAL].read_text(encoding="utf-8")


def test_dry_run_reports_stale_block_without_clearing(rollups, resolver) -> None:
    augment_rollups([_augmentation(_declaration())], rollups, resolver)
    before = rollups[MaturityLevel.PUBLIC].read_text(encoding="utf-8")

    result = augment_rollups([], rollups, resolver, dry_run=True)

    assert len(result.cleared_files) == 4
    assert rollups[MaturityLevel.PUBLIC].read_text(encoding="utf-8") == before


def test_untouched_rollups_are_not_cleared(rollups, resolver) -> None:
    result = augment_rollups([], rollups, resolver)

    assert result.cleared_files == []
    for path in rollups.values():
        assert path.read_text(encoding="utf-8") == EXISTING


def _untagged() -> UntaggedDeclarationInfo:
    return UntaggedDeclarationInfo(
        name="Registry",
        source_file_path="src/things/second.ts",
        module_specifier="../registry",
        kind=DeclarationKind.INTERFACE,
    )


def test_format_untagged_warning() -> None:
    assert format_untagged_warning(_untagged()) == (
        'ae-missing-release-tag: "Registry" (interface) in src/things/second.ts '
        "is missing a release tag (@public, @beta, @alpha, or @internal)"
    )


def test_error_level_without_report_stops_before_writing(rollups, resolver) -> None:
    result = augment_rollups(
        [_augmentation(_declaration(untagged=True))],
        rollups,
        resolver,
        missing_release_tag=MissingReleaseTagConfig(log_level=ExtractorLogLevel.ERROR),
        untagged_declarations=[_untagged()],
    )

    assert result.should_stop is True
    assert result.errors == [format_untagged_warning(_untagged())]
    assert result.augmented_files == []
    for path in rollups.values():
        assert path.read_text(encoding="utf-8") == EXISTING


def test_error_level_with_report_embeds_warning(rollups, resolver) -> None:
    result = augment_rollups(
        [_augmentation(_declaration(untagged=True))],
        rollups,
        resolver,
        missing_release_tag=MissingReleaseTagConfig(
            log_level=ExtractorLogLevel.ERROR, add_to_api_report_file=True
        ),
        untagged_declarations=[_untagged()],
    )

    assert result.should_stop is False
    assert result.errors == [format_untagged_warning(_untagged())]
    content = rollups[MaturityLevel.PUBLIC].read_text(encoding="utf-8")
    assert "// Missing Release Tag Warnings (ae-missing-release-tag)" in content
    assert f"// WARNING: {format_untagged_warning(_untagged())}" in content
    assert content.index("Missing Release Tag Warnings") < content.index("// #region")


def test_warning_level_collects_warnings_without_embedding(rollups, resolver) -> None:
    result = augment_rollups(
        [_augmentation(_declaration(untagged=True))],
        rollups,
        resolver,
        missing_release_tag=MissingReleaseTagConfig(log_level=ExtractorLogLevel.WARNING),
        untagged_declarations=[_untagged()],
    )

    assert result.warnings == [format_untagged_warning(_untagged())]
    assert result.errors == []
    content = rollups[MaturityLevel.PUBLIC].read_text(encoding="utf-8")
    assert "Missing Release Tag Warnings" not in content
    assert "interface Registry" in content


def test_info_level_only_logs(rollups, resolver, caplog, monkeypatch) -> None:
    monkeypatch.setattr(logging.getLogger("declmerge"), "propagate", True)
    caplog.set_level("INFO", logger="declmerge")

    result = augment_rollups(
        [_augmentation(_declaration(untagged=True))],
        rollups,
        resolver,
        missing_release_tag=MissingReleaseTagConfig(log_level=ExtractorLogLevel.INFO),
        untagged_declarations=[_untagged()],
    )

    assert result.errors == []
    assert result.warnings == []
    assert "ae-missing-release-tag" in caplog.text


def test_none_level_never_embeds(rollups, resolver) -> None:
    augment_rollups(
        [_augmentation(_declaration(untagged=True))],
        rollups,
        resolver,
        missing_release_tag=MissingReleaseTagConfig(
            log_level=ExtractorLogLevel.NONE, add_to_api_report_file=True
        ),
        untagged_declarations=[_untagged()],
    )

    content = rollups[MaturityLevel.PUBLIC].read_text(encoding="utf-8")
    assert "Missing Release Tag Warnings" not in content


@pytest.mark.parametrize("level", [ExtractorLogLevel.INFO, ExtractorLogLevel.VERBOSE])
def test_info_and_verbose_levels_never_embed(rollups, resolver, level) -> None:
    augment_rollups(
        [_augmentation(_declaration(untagged=True))],
        rollups,
        resolver,
        missing_release_tag=MissingReleaseTagConfig(log_level=level, add_to_api_report_file=True),
        untagged_declarations=[_untagged()],
    )

    content = rollups[MaturityLevel.PUBLIC].read_text(encoding="utf-8")
    assert "Missing Release Tag Warnings" not in content
    assert "interface Registry {\n    registry: string;" in content


def test_warning_level_with_report_embeds_warning(rollups, resolver) -> None:
    augment_rollups(
        [_augmentation(_declaration(untagged=True))],
        rollups,
        resolver,
        missing_release_tag=MissingReleaseTagConfig(
            log_level=ExtractorLogLevel.WARNING, add_to_api_report_file=True
        ),
        untagged_declarations=[_untagged()],
    )

    content = rollups[MaturityLevel.PUBLIC].read_text(encoding="utf-8")
    assert f"// WARNING: {format_untagged_warning(_untagged())}" in content


def test_preview_returns_section_for_targeted_rollup(rollups, resolver) -> None:
    augmentations = [_augmentation(_declaration(level=MaturityLevel.BETA))]

    preview = get_augmentation_preview(
        augmentations, rollups, resolver, rollups[MaturityLevel.BETA]
    )

    assert preview is not None
    assert "// Module Declarations (merged by declmerge)" in preview
    assert 'declare module "./registry" {' in preview
    assert (
        get_augmentation_preview(augmentations, rollups, resolver, rollups[MaturityLevel.PUBLIC])
        is None
    )
