"""Tree-sitter powered extraction of ``declare module`` blocks."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

import tree_sitter_typescript
from tree_sitter import Language, Node, Parser

from ..logging import get_logger
from ..models import DeclarationKind, ExtractedDeclaration, ExtractedModuleAugmentation
from .tsdoc import maturity_from_comments

ANONYMOUS = "<anonymous>"

_LANGUAGES: Dict[str, Callable[[], object]] = {
    "typescript": tree_sitter_typescript.language_typescript,
    "tsx": tree_sitter_typescript.language_tsx,
}

# Grammar node type -> declaration kind. Anything else inside a module block is ignored.
_STATEMENT_KINDS: Dict[str, DeclarationKind] = {
    "interface_declaration": DeclarationKind.INTERFACE,
    "type_alias_declaration": DeclarationKind.TYPE,
    "function_declaration": DeclarationKind.FUNCTION,
    "function_signature": DeclarationKind.FUNCTION,
    "generator_function_declaration": DeclarationKind.FUNCTION,
    "lexical_declaration": DeclarationKind.VARIABLE,
    "variable_declaration": DeclarationKind.VARIABLE,
    "class_declaration": DeclarationKind.CLASS,
    "abstract_class_declaration": DeclarationKind.CLASS,
    "enum_declaration": DeclarationKind.ENUM,
    "module": DeclarationKind.NAMESPACE,
    "internal_module": DeclarationKind.NAMESPACE,
}


def _node_text(node: Node, source_bytes: bytes) -> str:
    return source_bytes[node.start_byte : node.end_byte].decode("utf-8", errors="replace")


def _name_field(node: Node, source_bytes: bytes) -> str:
    name_node = node.child_by_field_name("name")
    return _node_text(name_node, source_bytes) if name_node is not None else ANONYMOUS


def _variable_names(node: Node, source_bytes: bytes) -> str:
    names = []
    for declarator in node.named_children:
        if declarator.type != "variable_declarator":
            continue
        name_node = declarator.child_by_field_name("name")
        if name_node is not None:
            names.append(_node_text(name_node, source_bytes))
    return ", ".join(names) if names else ANONYMOUS


def _namespace_name(node: Node, source_bytes: bytes) -> str:
    if node.type == "ambient_declaration":
        # declare global { ... }
        return "global"
    return _name_field(node, source_bytes)


_NAME_EXTRACTORS: Dict[DeclarationKind, Callable[[Node, bytes], str]] = {
    DeclarationKind.INTERFACE: _name_field,
    DeclarationKind.TYPE: _name_field,
    DeclarationKind.FUNCTION: _name_field,
    DeclarationKind.VARIABLE: _variable_names,
    DeclarationKind.CLASS: _name_field,
    DeclarationKind.ENUM: _name_field,
    DeclarationKind.NAMESPACE: _namespace_name,
}

_unhandled = set(DeclarationKind) - set(_NAME_EXTRACTORS)
if _unhandled:  # pragma: no cover - guards new DeclarationKind members
    raise RuntimeError(
        "No name extractor for declaration kinds: "
        + ", ".join(sorted(kind.value for kind in _unhandled))
    )


class AugmentationExtractor:
    """Finds ``declare module "<specifier>"`` blocks in TypeScript sources."""

    def __init__(self) -> None:
        self._parsers: Dict[str, Parser] = {}
        self._logger = get_logger("extractor")

    def extract_file(self, path: Path, relative_path: str) -> List[ExtractedModuleAugmentation]:
        """Read and parse one file; I/O and decoding errors propagate to the caller."""
        source = path.read_text(encoding="utf-8")
        return self.extract_source(source, relative_path, language_key=self._language_for_file(path))

    def extract_source(
        self, source: str, relative_path: str, *, language_key: str = "typescript"
    ) -> List[ExtractedModuleAugmentation]:
        source_bytes = source.encode("utf-8")
        tree = self._get_parser(language_key).parse(source_bytes)
        if tree.root_node.has_error:
            self._logger.debug("%s has syntax errors; extracting what parsed", relative_path)
        augmentations: List[ExtractedModuleAugmentation] = []
        self._collect_augmentations(tree.root_node, source_bytes, relative_path, augmentations)
        return augmentations

    def _get_parser(self, language_key: str) -> Parser:
        parser = self._parsers.get(language_key)
        if parser is None:
            parser = Parser(Language(_LANGUAGES[language_key]()))
            self._parsers[language_key] = parser
        return parser

    @staticmethod
    def _language_for_file(path: Path) -> str:
        return "tsx" if path.suffix.lower() == ".tsx" else "typescript"

    def _collect_augmentations(
        self,
        node: Node,
        source_bytes: bytes,
        relative_path: str,
        out: List[ExtractedModuleAugmentation],
    ) -> None:
        for child in node.children:
            if child.type == "ambient_declaration":
                augmentation = self._augmentation_from(child, source_bytes, relative_path)
                if augmentation is not None:
                    out.append(augmentation)
            self._collect_augmentations(child, source_bytes, relative_path, out)

    def _augmentation_from(
        self, node: Node, source_bytes: bytes, relative_path: str
    ) -> Optional[ExtractedModuleAugmentation]:
        module = next((child for child in node.named_children if child.type == "module"), None)
        if module is None:
            return None
        name_node = module.child_by_field_name("name")
        if name_node is None or name_node.type != "string":
            return None
        body = module.child_by_field_name("body")
        if body is None:
            return None

        specifier = _node_text(name_node, source_bytes)[1:-1]
        declarations = tuple(self._declarations_in(body, source_bytes))
        if not declarations:
            self._logger.debug(
                "Skipping empty augmentation of %r in %s", specifier, relative_path
            )
            return None

        return ExtractedModuleAugmentation(
            module_specifier=specifier,
            source_file_path=relative_path,
            declarations=declarations,
            original_text=_node_text(node, source_bytes),
        )

    def _declarations_in(self, body: Node, source_bytes: bytes) -> List[ExtractedDeclaration]:
        declarations: List[ExtractedDeclaration] = []
        for statement in body.named_children:
            resolved = self._classify(statement)
            if resolved is None:
                continue
            declaration_node, kind = resolved

            comments = self._leading_comments(statement)
            level, untagged = maturity_from_comments(
                [_node_text(comment, source_bytes) for comment in comments]
            )
            start = comments[0].start_byte if comments else statement.start_byte
            text = source_bytes[start : statement.end_byte].decode("utf-8", errors="replace")

            declarations.append(
                ExtractedDeclaration(
                    text=text.strip(),
                    name=_NAME_EXTRACTORS[kind](declaration_node, source_bytes),
                    kind=kind,
                    maturity_level=level,
                    is_untagged=untagged,
                )
            )
        return declarations

    def _classify(self, statement: Node) -> Optional[Tuple[Node, DeclarationKind]]:
        kind = _STATEMENT_KINDS.get(statement.type)
        if kind is not None:
            return statement, kind

        if statement.type == "export_statement":
            inner = statement.child_by_field_name("declaration")
            return self._classify(inner) if inner is not None else None

        if statement.type == "ambient_declaration":
            if any(child.type == "global" for child in statement.children):
                return statement, DeclarationKind.NAMESPACE
            for child in statement.named_children:
                resolved = self._classify(child)
                if resolved is not None:
                    return resolved
            return None

        if statement.type == "expression_statement":
            # `namespace Foo {}` can surface as an expression statement.
            inner = statement.named_children[0] if statement.named_child_count == 1 else None
            if inner is not None and inner.type == "internal_module":
                return inner, DeclarationKind.NAMESPACE
        return None

    @staticmethod
    def _leading_comments(statement: Node) -> List[Node]:
        comments: List[Node] = []
        sibling = statement.prev_sibling
        while sibling is not None and sibling.type == "comment":
            comments.append(sibling)
            sibling = sibling.prev_sibling
        comments.reverse()

        # A comment on the same line as the previous token trails that token.
        if sibling is not None:
            previous_row = sibling.end_point[0]
            while comments and comments[0].start_point[0] == previous_row:
                comments.pop(0)
        return comments


__all__ = ["ANONYMOUS", "AugmentationExtractor"]
