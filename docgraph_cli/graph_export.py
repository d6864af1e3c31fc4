"""Graph export helpers for Graphviz DOT output of the type graph."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List

from .graph_store import GraphStore
from .linearizer import Linearizer
from .models import TypeNode

NODE_STYLES: Dict[str, str] = {
    "class": 'shape=box, color="#000000"',
    "role": 'shape=box, style=dashed, color="#6666ff"',
    "enum": 'shape=box, color="#33aa33"',
    "other": 'shape=ellipse, color="#888888"',
}


def render_dot(store: GraphStore, linearizer: Linearizer, focus: str = "") -> str:
    """DOT text for *focus*'s neighbourhood, or for the whole graph.

    The neighbourhood is the focus type's MRO, its role closure and its
    direct children.
    """
    selected = _focused_subgraph(store, linearizer, focus)
    names = {n.name for n in selected}

    lines = ["digraph TypeGraph {"]
    lines.append("  rankdir=BT;")

    for node in selected:
        attrs = NODE_STYLES.get(node.kind, NODE_STYLES["other"])
        if node.name == focus:
            attrs += ", penwidth=2"
        lines.append(f'  "{_esc(node.name)}" [label="{_esc(node.name)}", {attrs}];')

    for node in selected:
        for parent in node.parents:
            if parent in names:
                lines.append(f'  "{_esc(node.name)}" -> "{_esc(parent)}";')
        for role in node.roles:
            if role in names:
                lines.append(f'  "{_esc(node.name)}" -> "{_esc(role)}" [style=dashed];')

    lines.append("}")
    return "\n".join(lines) + "\n"


def export_dot(store: GraphStore, linearizer: Linearizer, output_file: Path, focus: str = "") -> None:
    output_file.write_text(render_dot(store, linearizer, focus), encoding="utf-8")


def _focused_subgraph(store: GraphStore, linearizer: Linearizer, focus: str) -> List[TypeNode]:
    if not focus:
        return store.all()

    selected: List[TypeNode] = []
    for node in (*linearizer.mro(focus), *linearizer.role_closure(focus), *store.children(focus)):
        if node not in selected:
            selected.append(node)
    return selected


def _esc(text: str) -> str:
    return text.replace('"', '\\"')
