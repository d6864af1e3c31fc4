"""C3 method resolution order and role closure over a :class:`GraphStore`.

Results are memoized per type; computing a type's MRO reuses the cached
linearizations of its parents.  The caches are filled once and never
invalidated since the underlying store is immutable.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Tuple

from .errors import LinearizationConflict
from .graph_store import GraphStore
from .models import TypeNode

logger = logging.getLogger(__name__)


def c3_merge(type_name: str, sequences: List[List[str]]) -> List[str]:
    """Merge parent linearizations plus the declared-parents list.

    Candidates are taken from the heads of *sequences* left to right; the
    first head that does not occur in the tail of any sequence wins.

    Raises:
        LinearizationConflict: when every remaining head is blocked.
    """
    seqs = [list(s) for s in sequences if s]
    result: List[str] = []

    while seqs:
        for seq in seqs:
            head = seq[0]
            if not any(head in other[1:] for other in seqs):
                break
        else:
            heads: List[str] = []
            for seq in seqs:
                if seq[0] not in heads:
                    heads.append(seq[0])
            raise LinearizationConflict(type_name, heads)

        result.append(head)
        seqs = [s[1:] if s[0] == head else s for s in seqs]
        seqs = [s for s in seqs if s]

    return result


class Linearizer:
    """Memoized MRO and role-closure computation."""

    def __init__(self, store: GraphStore) -> None:
        self.store = store
        self._mro: Dict[str, Tuple[str, ...]] = {}
        self._closure: Dict[str, Tuple[str, ...]] = {}

    # ------------------------------------------------------------------
    # MRO
    # ------------------------------------------------------------------

    def mro(self, type_name: str) -> Tuple[TypeNode, ...]:
        """Resolution order of *type_name*, the type itself first."""
        return tuple(self.store.get(n) for n in self._mro_names(type_name))

    def mro_names(self, type_name: str) -> Tuple[str, ...]:
        return self._mro_names(type_name)

    def _mro_names(self, type_name: str) -> Tuple[str, ...]:
        cached = self._mro.get(type_name)
        if cached is not None:
            return cached

        node = self.store.get(type_name)
        try:
            sequences = [list(self._mro_names(p)) for p in node.parents]
        except LinearizationConflict as exc:
            raise LinearizationConflict(
                type_name, exc.candidates, via=exc.via or exc.type_name,
            ) from exc
        sequences.append(list(node.parents))
        names = (type_name, *c3_merge(type_name, sequences))

        self._mro[type_name] = names
        logger.debug("MRO %s: %s", type_name, " ".join(names))
        return names

    def resolve_all(self) -> Dict[str, LinearizationConflict]:
        """Linearize every type in build order, collecting conflicts.

        A type whose ancestor cannot be linearized gets its own conflict,
        with ``via`` naming that ancestor.
        """
        failures: Dict[str, LinearizationConflict] = {}
        for node in self.store.all():
            try:
                self._mro_names(node.name)
            except LinearizationConflict as exc:
                failures[node.name] = exc
        return failures

    # ------------------------------------------------------------------
    # Roles
    # ------------------------------------------------------------------

    def role_closure(self, type_name: str) -> Tuple[TypeNode, ...]:
        """Roles composed by the type, its ancestors, and by those roles.

        The walk visits the MRO in order and each type's roles in
        declaration order, depth first; the result has no duplicates.
        """
        cached = self._closure.get(type_name)
        if cached is None:
            seen: List[str] = []
            pending: List[str] = []
            for owner in self._mro_names(type_name):
                pending.extend(reversed(self.store.get(owner).roles))
                while pending:
                    role = pending.pop()
                    if role in seen:
                        continue
                    seen.append(role)
                    pending.extend(reversed(self.store.get(role).roles))
            cached = tuple(seen)
            self._closure[type_name] = cached
        return tuple(self.store.get(n) for n in cached)
