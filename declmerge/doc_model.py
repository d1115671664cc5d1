"""Best-effort augmentation of the API Extractor doc model (.api.json)."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from . import __version__
from .config import DocModelConfig
from .logging import get_logger
from .models import DeclarationKind, ExtractedModuleAugmentation
from .resolver import ModuleResolver

OLDEST_SUPPORTED_SCHEMA_VERSION = 1001
LATEST_SUPPORTED_SCHEMA_VERSION = 1011
TOOL_PACKAGE = "declmerge"

_logger = get_logger("doc_model")


class _ApiModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ApiMetadata(_ApiModel):
    tool_package: str = Field(alias="toolPackage")
    tool_version: str = Field(alias="toolVersion")
    schema_version: int = Field(alias="schemaVersion")
    oldest_forwards_compatible_version: Optional[int] = Field(
        default=None, alias="oldestForwardsCompatibleVersion"
    )


class ApiMember(_ApiModel):
    kind: str
    name: str = ""
    members: List["ApiMember"] = Field(default_factory=list)


class ApiPackage(_ApiModel):
    metadata: ApiMetadata
    kind: str
    name: str
    members: List[ApiMember] = Field(default_factory=list)

    def find_interface(self, name: str) -> Optional[ApiMember]:
        """Return the first top-level ``Interface`` named ``name`` in any entry point."""
        for entry_point in self.members:
            if entry_point.kind != "EntryPoint":
                continue
            for member in entry_point.members:
                if member.kind == "Interface" and member.name == name:
                    return member
        return None


@dataclass
class ApiDocument:
    """A validated doc model plus the raw JSON it was read from.

    Saving writes the raw payload back, so keys the models do not declare
    survive a round trip unchanged.
    """

    package: ApiPackage
    payload: Dict[str, Any]


@dataclass
class DocModelAugmentResult:
    success: bool
    api_json_file_path: Path
    declarations_added: int = 0
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


class DocModelError(ValueError):
    """Raised when an .api.json file cannot be used."""


def load_api_document(api_json_file_path: Path) -> ApiDocument:
    try:
        payload = json.loads(api_json_file_path.read_text(encoding="utf-8"))
    except ValueError as exc:
        raise DocModelError(f"Invalid JSON in {api_json_file_path}: {exc}") from exc

    try:
        package = ApiPackage.model_validate(payload)
    except ValidationError as exc:
        raise DocModelError(f"Unrecognized doc model in {api_json_file_path}: {exc}") from exc

    if package.kind != "Package":
        raise DocModelError(f"Expected a Package at the root of {api_json_file_path}")
    _check_schema_version(package.metadata, api_json_file_path)
    return ApiDocument(package=package, payload=payload)


def save_api_document(document: ApiDocument, api_json_file_path: Path) -> None:
    metadata = document.payload.setdefault("metadata", {})
    metadata["toolPackage"] = TOOL_PACKAGE
    metadata["toolVersion"] = __version__
    api_json_file_path.write_text(
        json.dumps(document.payload, indent=2) + "\n", encoding="utf-8"
    )


def _check_schema_version(metadata: ApiMetadata, api_json_file_path: Path) -> None:
    version = metadata.schema_version
    if version < OLDEST_SUPPORTED_SCHEMA_VERSION:
        raise DocModelError(
            f"{api_json_file_path} uses schema version {version}, which is older than the "
            f"oldest supported version {OLDEST_SUPPORTED_SCHEMA_VERSION}"
        )
    if version > LATEST_SUPPORTED_SCHEMA_VERSION:
        compatible = metadata.oldest_forwards_compatible_version
        if compatible is None or compatible > LATEST_SUPPORTED_SCHEMA_VERSION:
            raise DocModelError(
                f"{api_json_file_path} uses schema version {version}, which is newer than the "
                f"latest supported version {LATEST_SUPPORTED_SCHEMA_VERSION}"
            )


def augment_doc_model(
    api_json_file_path: Path | str,
    augmentations: Sequence[ExtractedModuleAugmentation],
    resolver: ModuleResolver,
    *,
    dry_run: bool = False,
) -> DocModelAugmentResult:
    """Match interface augmentations against the doc model.

    Matched interfaces are counted and flagged for manual review; their
    members are not synthesized. Every failure is reported through the
    result rather than raised.
    """
    path = Path(api_json_file_path)
    result = DocModelAugmentResult(success=False, api_json_file_path=path)

    if not path.exists():
        result.errors.append(f"Doc model file not found: {path}")
        return result

    try:
        document = load_api_document(path)

        for augmentation in augmentations:
            specifier = resolver.resolve_module_path(
                augmentation.module_specifier, augmentation.source_file_path
            )
            for declaration in augmentation.declarations:
                if declaration.kind is not DeclarationKind.INTERFACE:
                    result.warnings.append(
                        f'Skipping {declaration.kind.value} "{declaration.name}" - only interface '
                        "augmentations are supported in doc model"
                    )
                    continue

                if document.package.find_interface(declaration.name) is None:
                    result.warnings.append(
                        f'Interface "{declaration.name}" not found in doc model, skipping '
                        f"augmentation from {augmentation.source_file_path}"
                    )
                    continue

                result.warnings.append(
                    f'Note: Interface "{declaration.name}" augmentation of "{specifier}" from '
                    f"{augmentation.source_file_path} needs manual review in doc model"
                )
                result.declarations_added += 1

        if result.declarations_added and not dry_run:
            save_api_document(document, path)
            _logger.info("Updated doc model %s", path)

        result.success = True
    except (OSError, DocModelError) as exc:
        _logger.debug("Doc model augmentation failed for %s", path, exc_info=True)
        result.errors.append(f"Failed to augment doc model: {exc}")

    return result


def can_augment_doc_model(doc_model_config: DocModelConfig | None) -> bool:
    if doc_model_config is None or not doc_model_config.enabled:
        return False
    return doc_model_config.api_json_file_path.exists()


__all__ = [
    "ApiDocument",
    "ApiPackage",
    "DocModelAugmentResult",
    "augment_doc_model",
    "can_augment_doc_model",
]
