"""Pipeline orchestration for merging module declarations into rollups."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from .augmenter import AugmentResult, augment_rollups
from .config import ParsedConfig, load_config
from .doc_model import DocModelAugmentResult, augment_doc_model, can_augment_doc_model
from .extractors import AugmentationExtractor, extract_module_augmentations
from .logging import get_logger
from .models import ExtractionResult
from .postproc.markers import MarkerManager
from .resolver import ModuleResolver


@dataclass
class MergeResult:
    """Aggregated outcome of one declmerge run."""

    success: bool
    augmented_files: List[Path] = field(default_factory=list)
    skipped_files: List[Path] = field(default_factory=list)
    cleared_files: List[Path] = field(default_factory=list)
    augmentation_count: int = 0
    declaration_count: int = 0
    untagged_declaration_count: int = 0
    doc_model_augmented: bool = False
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


class Orchestrator:
    """Runs config loading, extraction, rollup augmentation and doc model updates in order."""

    def __init__(
        self,
        extractor: AugmentationExtractor | None = None,
        marker_manager: MarkerManager | None = None,
    ) -> None:
        self.extractor = extractor or AugmentationExtractor()
        self.marker_manager = marker_manager or MarkerManager()
        self.logger = get_logger("orchestrator")

    def run(
        self,
        config_path: Path | str,
        *,
        dry_run: bool = False,
        include: Optional[Sequence[str]] = None,
        exclude: Optional[Sequence[str]] = None,
    ) -> MergeResult:
        """Merge every module augmentation under the configured project folder.

        ``ConfigError`` propagates; all later failures are collected on the
        returned result.
        """
        config = load_config(config_path)
        self.logger.info("Using config %s", config.config_path)
        if not config.rollup_paths:
            self.logger.warning("No dtsRollup paths configured in %s", config.config_path)

        extraction = extract_module_augmentations(
            config.project_folder, include, exclude, extractor=self.extractor
        )
        resolver = ModuleResolver(config.project_folder, config.main_entry_point_file_path)

        augment = augment_rollups(
            extraction.augmentations,
            config.rollup_paths,
            resolver,
            dry_run=dry_run,
            missing_release_tag=config.missing_release_tag,
            untagged_declarations=extraction.untagged_declarations,
            marker_manager=self.marker_manager,
        )

        doc_model: Optional[DocModelAugmentResult] = None
        doc_model_config = config.doc_model
        if (
            not augment.should_stop
            and doc_model_config is not None
            and can_augment_doc_model(doc_model_config)
        ):
            doc_model = augment_doc_model(
                doc_model_config.api_json_file_path,
                extraction.augmentations,
                resolver,
                dry_run=dry_run,
            )

        return self._build_result(config, extraction, augment, doc_model)

    def _build_result(
        self,
        config: ParsedConfig,
        extraction: ExtractionResult,
        augment: AugmentResult,
        doc_model: Optional[DocModelAugmentResult],
    ) -> MergeResult:
        errors = [*extraction.errors, *augment.errors]
        warnings = list(augment.warnings)
        doc_model_augmented = False
        if doc_model is not None:
            errors.extend(doc_model.errors)
            warnings.extend(doc_model.warnings)
            doc_model_augmented = doc_model.success

        result = MergeResult(
            success=not augment.should_stop and not extraction.errors,
            augmented_files=list(augment.augmented_files),
            skipped_files=list(augment.skipped_files),
            cleared_files=list(augment.cleared_files),
            augmentation_count=len(extraction.augmentations),
            declaration_count=extraction.declaration_count,
            untagged_declaration_count=len(extraction.untagged_declarations),
            doc_model_augmented=doc_model_augmented,
            errors=errors,
            warnings=warnings,
        )
        self.logger.debug(
            "Run for %s finished: %d augmented, %d skipped, %d error(s)",
            config.config_path,
            len(result.augmented_files),
            len(result.skipped_files),
            len(result.errors),
        )
        return result


def merge_module_declarations(
    config_path: Path | str,
    *,
    dry_run: bool = False,
    include: Optional[Sequence[str]] = None,
    exclude: Optional[Sequence[str]] = None,
) -> MergeResult:
    """Programmatic entry point; see :meth:`Orchestrator.run`."""
    return Orchestrator().run(config_path, dry_run=dry_run, include=include, exclude=exclude)


__all__ = ["MergeResult", "Orchestrator", "merge_module_declarations"]
