"""Core data models shared by the graph store, aggregator and emitter."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Tuple

from .content import Heading

TYPE_KINDS = ("class", "role", "enum", "other")

_WHITESPACE = re.compile(r"\s")


@dataclass(frozen=True)
class TypeDeclaration:
    """One decoded descriptor line: name, parents and roles in order."""
    name: str
    parents: Tuple[str, ...] = ()
    roles: Tuple[str, ...] = ()
    kind: str = "class"
    category: str = ""
    line_no: int = 0


@dataclass(frozen=True)
class TypeNode:
    name: str
    kind: str
    parents: Tuple[str, ...] = ()
    roles: Tuple[str, ...] = ()
    category: str = ""

    @property
    def is_role(self) -> bool:
        return self.kind == "role"

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Chunk:
    """Documentation slice for one entry, owned by the type that declared it.

    ``start`` and ``end`` delimit the slice in the owner's top-level node
    sequence (``end`` exclusive).
    """
    owner: str
    name: str
    heading: Heading
    body: Tuple[Any, ...] = ()
    start: int = 0
    end: int = 0

    @property
    def indexable(self) -> bool:
        return bool(self.name) and not _WHITESPACE.search(self.name)

    @property
    def nodes(self) -> Tuple[Any, ...]:
        return (self.heading, *self.body)


@dataclass
class PageSection:
    """Synthesized header plus the chunks one role or ancestor supplies."""
    source: str
    kind: str
    header: Tuple[Any, ...]
    chunks: List[Chunk] = field(default_factory=list)
    via: str = ""

    def nodes(self) -> Iterator[Any]:
        yield from self.header
        for chunk in self.chunks:
            yield from chunk.nodes


@dataclass
class AssembledPage:
    type_name: str
    own_nodes: Tuple[Any, ...]
    own_chunks: List[Chunk] = field(default_factory=list)
    sections: List[PageSection] = field(default_factory=list)

    def chunks(self) -> Iterator[Chunk]:
        yield from self.own_chunks
        for section in self.sections:
            yield from section.chunks

    def entry_names(self) -> List[str]:
        return [c.name for c in self.chunks()]

    def nodes(self) -> Iterator[Any]:
        yield from self.own_nodes
        for section in self.sections:
            yield from section.nodes()


@dataclass(frozen=True)
class SearchEntry:
    category: str
    label: str
    value: str
    url: str

    def to_dict(self) -> Dict[str, str]:
        return {"label": self.label, "value": self.value, "url": self.url}


@dataclass
class BuildFailure:
    type_name: str
    error: Exception

    def __str__(self) -> str:
        return str(self.error)
