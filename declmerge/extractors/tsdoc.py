"""TSDoc comment parsing for release tags.

Only the structure needed for routing is recognised: the ``/** ... */``
framing with its ``*`` gutter, fenced code blocks, code spans, inline tags
such as ``{@link Foo}`` and block/modifier tags. A tag has to start a word, so
``someone@example.com`` or ``\\@public`` never count.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator, Optional, Sequence, Tuple

from ..models import MaturityLevel

# Checked in this order; the first present tag decides the level.
RELEASE_TAG_PRIORITY: Tuple[MaturityLevel, ...] = (
    MaturityLevel.INTERNAL,
    MaturityLevel.ALPHA,
    MaturityLevel.BETA,
    MaturityLevel.PUBLIC,
)

_TAG_NAME = re.compile(r"@[A-Za-z][A-Za-z0-9]*")
_FENCE = "```"


@dataclass(frozen=True)
class DocComment:
    """A parsed ``/** */`` comment."""

    body: str
    tags: Tuple[str, ...]

    def has_tag(self, name: str) -> bool:
        tag = name if name.startswith("@") else f"@{name}"
        return tag in self.tags


def is_doc_comment(text: str) -> bool:
    stripped = text.strip()
    return stripped.startswith("/**") and stripped.endswith("*/") and stripped != "/**/"


def parse_doc_comment(text: str) -> Optional[DocComment]:
    """Parse a TSDoc comment; returns None for line comments and plain block comments."""
    if not is_doc_comment(text):
        return None
    body = _strip_framing(text)
    return DocComment(body=body, tags=tuple(_scan_tags(body)))


def maturity_from_comments(comments: Sequence[str]) -> Tuple[MaturityLevel, bool]:
    """Return ``(level, is_untagged)`` for a declaration's leading comments.

    The doc comment closest to the declaration is used. Without a release
    tag the level defaults to public and the declaration is flagged untagged.
    """
    doc: Optional[DocComment] = None
    for comment in reversed(comments):
        doc = parse_doc_comment(comment)
        if doc is not None:
            break

    if doc is not None:
        for level in RELEASE_TAG_PRIORITY:
            if doc.has_tag(level.value):
                return level, False
    return MaturityLevel.PUBLIC, True


def _strip_framing(text: str) -> str:
    inner = text.strip()[3:-2]
    lines = []
    for line in inner.splitlines():
        stripped = line.lstrip()
        if stripped.startswith("*"):
            stripped = stripped[1:]
            if stripped.startswith(" "):
                stripped = stripped[1:]
            line = stripped
        lines.append(line)
    return "\n".join(lines)


def _scan_tags(body: str) -> Iterator[str]:
    index = 0
    length = len(body)
    while index < length:
        if body.startswith(_FENCE, index):
            close = body.find(_FENCE, index + len(_FENCE))
            index = length if close == -1 else close + len(_FENCE)
            continue

        char = body[index]
        if char == "`":
            line_end = body.find("\n", index)
            close = body.find("`", index + 1, length if line_end == -1 else line_end)
            # An unmatched backtick is plain text.
            index = index + 1 if close == -1 else close + 1
            continue

        if char == "{" and body.startswith("{@", index):
            close = body.find("}", index)
            index = length if close == -1 else close + 1
            continue

        if char == "@":
            match = _TAG_NAME.match(body, index)
            if (
                match is not None
                and (index == 0 or body[index - 1].isspace())
                and (match.end() == length or body[match.end()].isspace())
            ):
                yield match.group(0)
                index = match.end()
                continue

        index += 1


__all__ = [
    "DocComment",
    "RELEASE_TAG_PRIORITY",
    "is_doc_comment",
    "maturity_from_comments",
    "parse_doc_comment",
]
