"""Structured documentation trees, as handed over by the markup parser.

The aggregation core only asks three things of a node: whether it is a
:class:`Heading`, its ``level`` and its ``text``.  The remaining classes exist
so the synthesized section headers, routine pages and index page can be
expressed in the same vocabulary, and so trees can round-trip through JSON
between the parser, this package and the renderer.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Tuple, Union

from .errors import ContentError


@dataclass(frozen=True)
class Link:
    text: str
    url: str

    @property
    def content(self) -> Tuple[str, ...]:
        return (self.text,)


@dataclass(frozen=True)
class Heading:
    level: int
    content: Tuple[Any, ...] = ()

    @property
    def text(self) -> str:
        return flatten_text(self).strip()


@dataclass(frozen=True)
class Para:
    content: Tuple[Any, ...] = ()


@dataclass(frozen=True)
class Item:
    level: int = 1
    content: Tuple[Any, ...] = ()


@dataclass(frozen=True)
class Code:
    text: str

    @property
    def content(self) -> Tuple[str, ...]:
        return (self.text,)


@dataclass(frozen=True)
class Named:
    name: str
    content: Tuple[Any, ...] = ()


Node = Union[Heading, Para, Item, Code, Named, Link]


def flatten_text(node: Any) -> str:
    """Concatenate every string found below *node*."""
    if isinstance(node, str):
        return node
    return "".join(flatten_text(c) for c in getattr(node, "content", ()))


# ------------------------------------------------------------------
# Builders for synthesized output
# ------------------------------------------------------------------

def pod_block(*content: Any) -> Para:
    return Para(content=tuple(content))


def pod_link(text: str, url: str) -> Link:
    return Link(text=text, url=url)


def pod_item(*content: Any, level: int = 1) -> Item:
    return Item(level=level, content=tuple(content))


def pod_heading(name: str, level: int = 1) -> Heading:
    return Heading(level=level, content=(pod_block(name),))


def pod_with_title(title: str, *blocks: Any) -> Named:
    """Wrap *blocks* in a ``pod`` block preceded by a ``TITLE`` block."""
    return Named(
        name="pod",
        content=(Named(name="TITLE", content=(pod_block(title),)), *blocks),
    )


# ------------------------------------------------------------------
# JSON codec
# ------------------------------------------------------------------

def _content_from(raw: Any) -> Tuple[Any, ...]:
    if raw is None:
        return ()
    if isinstance(raw, (str, dict)):
        raw = [raw]
    return tuple(c if isinstance(c, str) else node_from_dict(c) for c in raw)


def node_from_dict(payload: Dict[str, Any]) -> Node:
    """Decode one node of the JSON interchange format.

    Raises:
        ContentError: when ``kind`` is missing or unknown, or a required
            field is absent.
    """
    if not isinstance(payload, dict):
        raise ContentError(f"expected a node object, got {type(payload).__name__}")
    kind = payload.get("kind")
    try:
        if kind == "heading":
            return Heading(level=int(payload["level"]), content=_content_from(payload.get("content")))
        if kind == "para":
            return Para(content=_content_from(payload.get("content")))
        if kind == "item":
            return Item(level=int(payload.get("level", 1)), content=_content_from(payload.get("content")))
        if kind == "code":
            return Code(text=str(payload["text"]))
        if kind == "link":
            return Link(text=str(payload["text"]), url=str(payload["url"]))
        if kind == "named":
            return Named(name=str(payload["name"]), content=_content_from(payload.get("content")))
    except (KeyError, TypeError, ValueError) as exc:
        raise ContentError(f"malformed '{kind}' node: {exc}") from exc
    raise ContentError(f"unknown node kind: {kind!r}")


def node_to_dict(node: Any) -> Any:
    if isinstance(node, str):
        return node
    if isinstance(node, Heading):
        return {"kind": "heading", "level": node.level, "content": [node_to_dict(c) for c in node.content]}
    if isinstance(node, Para):
        return {"kind": "para", "content": [node_to_dict(c) for c in node.content]}
    if isinstance(node, Item):
        return {"kind": "item", "level": node.level, "content": [node_to_dict(c) for c in node.content]}
    if isinstance(node, Code):
        return {"kind": "code", "text": node.text}
    if isinstance(node, Link):
        return {"kind": "link", "text": node.text, "url": node.url}
    if isinstance(node, Named):
        return {"kind": "named", "name": node.name, "content": [node_to_dict(c) for c in node.content]}
    raise ContentError(f"cannot encode {type(node).__name__}")


def nodes_to_list(nodes: Iterable[Any]) -> List[Any]:
    return [node_to_dict(n) for n in nodes]


def load_document(path: Path) -> Tuple[Node, ...]:
    """Read a JSON document and return its top-level node sequence.

    The file holds either a list of nodes or a single ``named`` node (the
    ``pod`` block), in which case its content is the top-level sequence.
    """
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ContentError(f"{path}: invalid JSON ({exc})") from exc

    try:
        if isinstance(payload, list):
            return tuple(node_from_dict(n) for n in payload)
        root = node_from_dict(payload)
    except ContentError as exc:
        raise ContentError(f"{path}: {exc}") from exc
    if isinstance(root, Named):
        return tuple(root.content)
    return (root,)


def gist(node: Any, level: int = 0) -> str:
    """Indented one-node-per-line dump of a tree, for debug logging."""
    leading = " " * level
    if isinstance(node, str):
        return f"{leading}{node}\n"
    confs = {
        key: getattr(node, key)
        for key in ("name", "level", "url")
        if getattr(node, key, None)
    }
    parts = [leading, type(node).__name__]
    if confs:
        parts.append(" " + repr(confs))
    parts.append("\n")
    for child in getattr(node, "content", ()):
        parts.append(gist(child, level + 2))
    return "".join(parts)
