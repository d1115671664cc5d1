"""Managed marker utilities for generated rollup sections."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass
class ManagedBlock:
    """Generated text that declmerge owns inside a rollup file."""

    key: str
    body: str


class MarkerManager:
    """Wraps generated sections in line-comment markers so reruns replace them."""

    BEGIN_FMT = "// declmerge:begin:{key}"
    END_FMT = "// declmerge:end:{key}"

    def wrap(self, block: ManagedBlock) -> str:
        """Return the block body between its begin and end markers."""
        begin = self.BEGIN_FMT.format(key=block.key)
        end = self.END_FMT.format(key=block.key)
        body = block.body.strip("\n")
        return f"{begin}\n{body}\n{end}\n"

    def contains(self, text: str, key: str) -> bool:
        begin = self.BEGIN_FMT.format(key=key)
        end = self.END_FMT.format(key=key)
        return begin in text and end in text.split(begin, 1)[1]

    def upsert(self, text: str, block: ManagedBlock) -> str:
        """Replace an existing managed block in place.

        Without one, the block is appended after the right-trimmed text and a
        blank line; nothing outside the markers is touched.
        """
        wrapped = self.wrap(block)
        if self.contains(text, block.key):
            pre, post = self._split(text, block.key)
            return f"{pre}{wrapped}{post}"
        existing = text.rstrip()
        return f"{existing}\n\n{wrapped}" if existing else wrapped

    def remove(self, text: str, key: str) -> str:
        """Drop a managed block and the blank line ``upsert`` put before it."""
        if not self.contains(text, key):
            return text
        pre, post = self._split(text, key)
        if post:
            return f"{pre}{post}"
        existing = pre.rstrip()
        return f"{existing}\n" if existing else ""

    def _split(self, text: str, key: str) -> Tuple[str, str]:
        begin = self.BEGIN_FMT.format(key=key)
        end = self.END_FMT.format(key=key)
        pre, rest = text.split(begin, 1)
        _, post = rest.split(end, 1)
        if post.startswith("\n"):
            post = post[1:]
        return pre, post


__all__ = ["ManagedBlock", "MarkerManager"]
