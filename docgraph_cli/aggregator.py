"""Assemble each type's page from its own chunks and the chunks it receives.

Page order:

1. the type's own document, verbatim;
2. one section per directly composed role, in declaration order;
3. one section per ancestor in MRO order, each immediately followed by
   sections for that ancestor's own roles.

A name shown once is not shown again further down the page (nearer
definitions shadow farther ones).  Role name clashes on direct composition
are not resolved here: they raise :class:`RoleCollision`.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Set, Tuple

from .chunker import ChunkCache
from .content import pod_block, pod_heading, pod_link
from .errors import RoleCollision
from .linearizer import Linearizer
from .models import AssembledPage, Chunk, PageSection

logger = logging.getLogger(__name__)

RoutineIndex = Dict[str, List[Tuple[str, Chunk]]]


def type_url(name: str) -> str:
    return f"/type/{name}"


class Aggregator:
    """Builds :class:`AssembledPage` objects and the routine index."""

    def __init__(self, linearizer: Linearizer, chunks: ChunkCache) -> None:
        self.linearizer = linearizer
        self.store = linearizer.store
        self.chunks = chunks

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------

    def check(self, type_name: str) -> Tuple[str, ...]:
        """Linearize *type_name* and check its role composition.

        Returns the MRO names, empty for types missing from the graph.
        Raises the same :class:`BuildError` that :meth:`assemble` would.
        """
        if type_name not in self.store:
            return ()
        mro = self.linearizer.mro_names(type_name)
        self.check_role_collisions(type_name)
        return mro

    def check_role_collisions(self, type_name: str) -> None:
        """Fail when directly composed roles supply the same entry.

        The type resolves a clash by declaring the entry itself.
        """
        node = self.store.find(type_name)
        if node is None or len(node.roles) < 2:
            return

        own = {c.name for c in self.chunks.all_chunks(type_name)}
        suppliers: Dict[str, List[str]] = {}
        for role in node.roles:
            for chunk in self.chunks.indexable(role):
                suppliers.setdefault(chunk.name, []).append(role)

        for entry, roles in suppliers.items():
            if len(roles) > 1 and entry not in own:
                raise RoleCollision(type_name, entry, roles)

    # ------------------------------------------------------------------
    # Assembly
    # ------------------------------------------------------------------

    def assemble(self, type_name: str) -> AssembledPage:
        """Merge *type_name*'s own documentation with what it inherits.

        Types missing from the graph get a page with their own content only.

        Raises:
            LinearizationConflict: when the type has no consistent MRO.
            RoleCollision: when two direct roles supply the same entry.
        """
        seen: Set[str] = set()
        own_nodes, own_chunks = self._own_part(type_name, seen)
        page = AssembledPage(type_name=type_name, own_nodes=own_nodes, own_chunks=own_chunks)

        node = self.store.find(type_name)
        if node is None:
            return page

        mro = self.check(type_name)

        for role in node.roles:
            self._add_section(page, seen, role, "role", (
                f"{type_name} does role ",
                pod_link(role, type_url(role)),
                ", which provides the following methods:",
            ))

        for ancestor in mro[1:]:
            self._add_section(page, seen, ancestor, "class", (
                f"{type_name} inherits from class ",
                pod_link(ancestor, type_url(ancestor)),
                ", which provides the following methods:",
            ))
            for role in self.store.get(ancestor).roles:
                self._add_section(page, seen, role, "role", (
                    f"{type_name} inherits from class ",
                    pod_link(ancestor, type_url(ancestor)),
                    ", which does role ",
                    pod_link(role, type_url(role)),
                    ", which provides the following methods:",
                ), via=ancestor)

        logger.debug(
            "Assembled %s: %d own chunks, %d sections",
            type_name, len(page.own_chunks), len(page.sections),
        )
        return page

    def _own_part(self, type_name: str, seen: Set[str]) -> Tuple[Tuple[object, ...], List[Chunk]]:
        """Own document with later duplicates of an entry name removed."""
        content = self.chunks.document(type_name)
        kept: List[Chunk] = []
        dropped: Dict[int, int] = {}

        for chunk in self.chunks.all_chunks(type_name):
            if chunk.name in seen:
                logger.debug("Dropping repeated entry '%s' from %s", chunk.name, type_name)
                dropped[chunk.start] = chunk.end
                continue
            seen.add(chunk.name)
            kept.append(chunk)

        if not dropped:
            return content, kept

        nodes: List[object] = []
        idx = 0
        while idx < len(content):
            if idx in dropped:
                idx = dropped[idx]
                continue
            nodes.append(content[idx])
            idx += 1
        return tuple(nodes), kept

    def _add_section(
        self,
        page: AssembledPage,
        seen: Set[str],
        source: str,
        kind: str,
        blurb: Tuple[object, ...],
        via: str = "",
    ) -> Optional[PageSection]:
        owned = self.chunks.indexable(source)
        if not owned:
            return None

        shown = [c for c in owned if c.name not in seen]
        if not shown:
            return None
        seen.update(c.name for c in shown)

        section = PageSection(
            source=source,
            kind=kind,
            header=(pod_heading(f"Methods supplied by {kind} {source}"), pod_block(*blurb)),
            chunks=shown,
            via=via,
        )
        page.sections.append(section)
        return section

    # ------------------------------------------------------------------
    # Routine index
    # ------------------------------------------------------------------

    def routine_index(self, order: Iterable[str]) -> RoutineIndex:
        """Entry name -> ``(type, chunk)`` pairs, in processing order.

        Only each type's own indexable chunks are scanned; inherited entries
        never add pairs.
        """
        index: RoutineIndex = {}
        for type_name in order:
            for chunk in self.chunks.indexable(type_name):
                index.setdefault(chunk.name, []).append((type_name, chunk))
        return index
