"""Core data models shared across declmerge components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Tuple


class MaturityLevel(str, Enum):
    """Release tier of a declaration, from most to least widely exposed."""

    PUBLIC = "public"
    BETA = "beta"
    ALPHA = "alpha"
    INTERNAL = "internal"


class DeclarationKind(str, Enum):
    """Statement kinds that can be carried out of a ``declare module`` block."""

    INTERFACE = "interface"
    TYPE = "type"
    FUNCTION = "function"
    VARIABLE = "variable"
    CLASS = "class"
    ENUM = "enum"
    NAMESPACE = "namespace"


class ExtractorLogLevel(str, Enum):
    """Log levels accepted by API Extractor message reporting rules."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    VERBOSE = "verbose"
    NONE = "none"


@dataclass(frozen=True)
class ExtractedDeclaration:
    """A single declaration found inside a ``declare module`` block."""

    text: str
    name: str
    kind: DeclarationKind
    maturity_level: MaturityLevel
    is_untagged: bool = False


@dataclass(frozen=True)
class ExtractedModuleAugmentation:
    """One ``declare module "<specifier>"`` block and the declarations it carries."""

    module_specifier: str
    source_file_path: str
    declarations: Tuple[ExtractedDeclaration, ...]
    original_text: str = ""


@dataclass(frozen=True)
class UntaggedDeclarationInfo:
    """Projection of a declaration that had no release tag."""

    name: str
    source_file_path: str
    module_specifier: str
    kind: DeclarationKind


@dataclass
class ExtractionResult:
    """Everything the extractor found in a project."""

    augmentations: List[ExtractedModuleAugmentation] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    untagged_declarations: List[UntaggedDeclarationInfo] = field(default_factory=list)

    @property
    def declaration_count(self) -> int:
        return sum(len(augmentation.declarations) for augmentation in self.augmentations)


__all__ = [
    "DeclarationKind",
    "ExtractedDeclaration",
    "ExtractedModuleAugmentation",
    "ExtractionResult",
    "ExtractorLogLevel",
    "MaturityLevel",
    "UntaggedDeclarationInfo",
]
