"""Extraction of ambient module augmentations from TypeScript sources."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Sequence

from ..logging import get_logger
from ..models import ExtractionResult, UntaggedDeclarationInfo
from ..scanner import SourceScanner
from .tree_sitter import AugmentationExtractor
from .tsdoc import DocComment, maturity_from_comments, parse_doc_comment

_logger = get_logger("extractor")


def extract_module_augmentations(
    project_folder: Path | str,
    include: Sequence[str] | None = None,
    exclude: Sequence[str] | None = None,
    *,
    extractor: AugmentationExtractor | None = None,
) -> ExtractionResult:
    """Collect every ``declare module`` augmentation under ``project_folder``.

    Failures on individual files are recorded in ``errors`` and do not stop
    the scan. Source paths in the result are relative to the project folder
    and use forward slashes.
    """
    root = Path(os.path.abspath(Path(project_folder).expanduser()))
    files = SourceScanner(include, exclude).scan(root)
    extractor = extractor or AugmentationExtractor()
    result = ExtractionResult()

    for path in files:
        relative_path = path.relative_to(root).as_posix()
        try:
            augmentations = extractor.extract_file(path, relative_path)
        except (OSError, UnicodeDecodeError, ValueError) as exc:
            _logger.debug("Failed to extract from %s", path, exc_info=True)
            result.errors.append(f"Error processing {path}: {exc}")
            continue

        result.augmentations.extend(augmentations)
        for augmentation in augmentations:
            for declaration in augmentation.declarations:
                if declaration.is_untagged:
                    result.untagged_declarations.append(
                        UntaggedDeclarationInfo(
                            name=declaration.name,
                            source_file_path=augmentation.source_file_path,
                            module_specifier=augmentation.module_specifier,
                            kind=declaration.kind,
                        )
                    )

    _logger.info(
        "Found %d module augmentation(s) with %d declaration(s) in %d file(s)",
        len(result.augmentations),
        result.declaration_count,
        len(files),
    )
    return result


__all__ = [
    "AugmentationExtractor",
    "DocComment",
    "extract_module_augmentations",
    "maturity_from_comments",
    "parse_doc_comment",
]
