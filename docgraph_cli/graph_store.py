"""Immutable store of type nodes and their declared parents and roles.

The store is built once by :meth:`GraphStore.load` and never mutated; the
linearizer, chunk cache and aggregator derive read-only structures from it.
Loading is all-or-nothing: any malformed line, duplicate, undeclared
reference or cycle raises a :class:`~docgraph_cli.errors.LoadError` and no
store is returned.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

from .errors import DuplicateTypeError, GraphCycleError, UnknownTypeError, UnresolvedReferenceError
from .models import TypeDeclaration, TypeNode
from .parser import TypeGraphParser

logger = logging.getLogger(__name__)

DeclarationLike = Union[TypeDeclaration, Tuple[str, Sequence[str], Sequence[str]]]


def _as_declaration(item: DeclarationLike) -> TypeDeclaration:
    if isinstance(item, TypeDeclaration):
        return item
    name, parents, roles = item
    return TypeDeclaration(name=name, parents=tuple(parents), roles=tuple(roles))


class GraphStore:
    """Type nodes in descriptor order plus a topological build order."""

    def __init__(self, nodes: Dict[str, TypeNode], order: List[str]) -> None:
        self._nodes = nodes
        self._order = tuple(order)
        self._position = {name: i for i, name in enumerate(order)}
        self._children: Dict[str, Tuple[str, ...]] = {}
        for name in nodes:
            self._children[name] = tuple(
                n.name for n in nodes.values() if name in n.parents
            )

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def load(cls, descriptor: Union[str, Iterable[DeclarationLike]]) -> "GraphStore":
        """Build a store from descriptor text or decoded declarations.

        Args:
            descriptor: Either the raw descriptor text, or an iterable of
                :class:`TypeDeclaration` / ``(name, parents, roles)`` triples
                in declaration order.

        Returns:
            A fully validated, immutable :class:`GraphStore`.
        """
        if isinstance(descriptor, str):
            declarations = TypeGraphParser().parse_text(descriptor)
        else:
            declarations = [_as_declaration(d) for d in descriptor]

        nodes: Dict[str, TypeNode] = {}
        for decl in declarations:
            if decl.name in nodes:
                raise DuplicateTypeError(decl.name)
            nodes[decl.name] = TypeNode(
                name=decl.name,
                kind=decl.kind,
                parents=decl.parents,
                roles=decl.roles,
                category=decl.category,
            )

        for node in nodes.values():
            for parent in node.parents:
                if parent not in nodes:
                    raise UnresolvedReferenceError(node.name, parent, "parent")
            for role in node.roles:
                if role not in nodes:
                    raise UnresolvedReferenceError(node.name, role, "role")

        order = _topological_order(nodes)
        logger.info("Loaded type graph: %d types", len(nodes))
        return cls(nodes, order)

    @classmethod
    def from_file(cls, path: Path) -> "GraphStore":
        return cls.load(TypeGraphParser().parse_file(path))

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get(self, name: str) -> TypeNode:
        try:
            return self._nodes[name]
        except KeyError:
            raise UnknownTypeError(name) from None

    def find(self, name: str) -> Optional[TypeNode]:
        return self._nodes.get(name)

    def all(self) -> List[TypeNode]:
        """Every type after all of its direct parents and roles."""
        return [self._nodes[name] for name in self._order]

    def declared(self) -> List[TypeNode]:
        """Types in descriptor order."""
        return list(self._nodes.values())

    def children(self, name: str) -> List[TypeNode]:
        return [self._nodes[c] for c in self._children.get(name, ())]

    def position(self, name: str) -> int:
        """Index of *name* in the build order, ``-1`` if unknown."""
        return self._position.get(name, -1)

    def __contains__(self, name: object) -> bool:
        return name in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[TypeNode]:
        return iter(self.all())


def _topological_order(nodes: Dict[str, TypeNode]) -> List[str]:
    """Depth-first post-order over parents then roles, seeded in descriptor order."""
    order: List[str] = []
    done = set()
    stack: List[str] = []
    on_stack = set()

    def visit(name: str) -> None:
        if name in done:
            return
        if name in on_stack:
            raise GraphCycleError(stack[stack.index(name):] + [name])
        stack.append(name)
        on_stack.add(name)
        node = nodes[name]
        for dep in (*node.parents, *node.roles):
            visit(dep)
        stack.pop()
        on_stack.discard(name)
        done.add(name)
        order.append(name)

    for name in nodes:
        visit(name)
    return order
