"""Slice a type's documentation tree into per-entry chunks.

A chunk opens at a heading of the entry level and runs until the next heading
whose level is the same or shallower.  Nodes before the first entry heading,
and nodes between a closing shallower heading and the next entry heading,
belong to no chunk.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .content import Heading
from .models import Chunk

logger = logging.getLogger(__name__)

ENTRY_LEVEL = 2


def _is_entry(node: Any, entry_level: int) -> bool:
    return isinstance(node, Heading) and node.level == entry_level


def _closes(opening: Heading, node: Any) -> bool:
    return isinstance(node, Heading) and node.level <= opening.level


def extract_chunks(
    owner: str,
    content: Sequence[Any],
    entry_level: int = ENTRY_LEVEL,
) -> List[Chunk]:
    """Return the chunks of *content* in document order.

    Chunks whose heading text contains whitespace are returned as well (they
    keep the page structure intact) but report ``indexable == False``.
    """
    spans: List[Tuple[int, int]] = []
    start: Optional[int] = None

    for idx, node in enumerate(content):
        if start is not None and (_is_entry(node, entry_level) or _closes(content[start], node)):
            spans.append((start, idx))
            start = idx if _is_entry(node, entry_level) else None
        elif start is None and _is_entry(node, entry_level):
            start = idx
    if start is not None:
        spans.append((start, len(content)))

    chunks: List[Chunk] = []
    for begin, end in spans:
        heading = content[begin]
        chunks.append(Chunk(
            owner=owner,
            name=heading.text,
            heading=heading,
            body=tuple(content[begin + 1:end]),
            start=begin,
            end=end,
        ))
    return chunks


class ChunkCache:
    """Extract each owner's chunks at most once.

    Owners without a registered document have no chunks.
    """

    def __init__(self, entry_level: int = ENTRY_LEVEL) -> None:
        self.entry_level = entry_level
        self._documents: Dict[str, Tuple[Any, ...]] = {}
        self._chunks: Dict[str, Tuple[Chunk, ...]] = {}
        self._indexable: Dict[str, Tuple[Chunk, ...]] = {}

    def add_document(self, owner: str, content: Sequence[Any]) -> None:
        self._documents[owner] = tuple(content)
        self._chunks.pop(owner, None)
        self._indexable.pop(owner, None)

    def has_document(self, owner: str) -> bool:
        return owner in self._documents

    def document(self, owner: str) -> Tuple[Any, ...]:
        return self._documents.get(owner, ())

    def owners(self) -> List[str]:
        return list(self._documents)

    def all_chunks(self, owner: str) -> Tuple[Chunk, ...]:
        cached = self._chunks.get(owner)
        if cached is None:
            cached = tuple(extract_chunks(owner, self.document(owner), self.entry_level))
            self._chunks[owner] = cached
            logger.debug("Extracted %d chunks from %s", len(cached), owner)
        return cached

    def indexable(self, owner: str) -> Tuple[Chunk, ...]:
        """Indexable chunks, one per entry name (the first declared wins)."""
        cached = self._indexable.get(owner)
        if cached is None:
            seen = set()
            kept: List[Chunk] = []
            for chunk in self.all_chunks(owner):
                if not chunk.indexable:
                    continue
                if chunk.name in seen:
                    logger.warning("%s declares '%s' more than once; keeping the first", owner, chunk.name)
                    continue
                seen.add(chunk.name)
                kept.append(chunk)
            cached = tuple(kept)
            self._indexable[owner] = cached
        return cached
