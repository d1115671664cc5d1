"""Tests for managed rollup markers."""

from __future__ import annotations

from declmerge.postproc.markers import ManagedBlock, MarkerManager


def test_wrap_surrounds_body_with_markers() -> None:
    wrapped = MarkerManager().wrap(ManagedBlock(key="augmentations", body="\nbody line\n"))

    assert wrapped == (
        "// declmerge:begin:augmentations\nbody line\n// declmerge:end:augmentations\n"
    )


def test_upsert_appends_after_blank_line() -> None:
    manager = MarkerManager()
    original = "export interface Registry {}\n\n\n"

    updated = manager.upsert(original, ManagedBlock(key="augmentations", body="NEW"))

    assert updated == (
        "export interface Registry {}\n\n"
        "// declmerge:begin:augmentations\nNEW\n// declmerge:end:augmentations\n"
    )


def test_upsert_replaces_existing_block_in_place() -> None:
    manager = MarkerManager()
    text = (
        "head\n"
        "// declmerge:begin:augmentations\nOLD\n// declmerge:end:augmentations\n"
        "tail\n"
    )

    updated = manager.upsert(text, ManagedBlock(key="augmentations", body="NEW"))

    assert updated == (
        "head\n"
        "// declmerge:begin:augmentations\nNEW\n// declmerge:end:augmentations\n"
        "tail\n"
    )


def test_upsert_is_idempotent() -> None:
    manager = MarkerManager()
    block = ManagedBlock(key="augmentations", body="declare module \"./x\" {}")

    once = manager.upsert("export {};\n", block)
    twice = manager.upsert(once, block)

    assert once == twice
    assert twice.count("// declmerge:begin:augmentations") == 1


def test_upsert_into_empty_text() -> None:
    updated = MarkerManager().upsert("", ManagedBlock(key="k", body="x"))

    assert updated == "// declmerge:begin:k\nx\n// declmerge:end:k\n"


def test_contains_requires_both_markers() -> None:
    manager = MarkerManager()

    assert manager.contains("// declmerge:begin:k\n// declmerge:end:k\n", "k")
    assert not manager.contains("// declmerge:begin:k\n", "k")
    assert not manager.contains("// declmerge:end:k\n// declmerge:begin:k\n", "k")


def test_remove_restores_text_before_upsert() -> None:
    manager = MarkerManager()
    original = "export interface Registry {}\n"
    augmented = manager.upsert(original, ManagedBlock(key="augmentations", body="OLD"))

    assert manager.remove(augmented, "augmentations") == original


def test_remove_keeps_text_after_block() -> None:
    text = "head\n// declmerge:begin:k\nOLD\n// declmerge:end:k\ntail\n"

    assert MarkerManager().remove(text, "k") == "head\ntail\n"


def test_remove_without_block_returns_text_unchanged() -> None:
    text = "export {};\n// declmerge:begin:k\n"

    assert MarkerManager().remove(text, "k") == text
