"""Parser for the human-edited type graph descriptor.

Each non-blank line declares one type::

    [Basic]
    # comments are ignored
    class Any is Mu
    role Positional[::T = Mu]
    class Array is List does Positional

A ``[Category]`` line tags the declarations that follow it.  Parameterization
suffixes (``Positional[::T = Mu]``) are not part of a type's identity and are
stripped before tokenizing.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Dict, List, Tuple

from .errors import DescriptorSyntaxError
from .models import TypeDeclaration

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Declaration keyword <-> TypeNode kind mapping
# ---------------------------------------------------------------------------
KIND_MAP: Dict[str, str] = {
    "class": "class",
    "role": "role",
    "enum": "enum",
    "module": "other",
    "package": "other",
    "grammar": "other",
    "subset": "other",
}

RELATIONS: Tuple[str, ...] = ("is", "does")

_CATEGORY_RE = re.compile(r"^\[\s*([^\]]+?)\s*\]$")
_PARAMS_RE = re.compile(r"\[[^\]]*\]")
_NAME_RE = re.compile(r"^[A-Za-z_][\w\-]*(?:::[A-Za-z_][\w\-]*)*$")


class TypeGraphParser:
    """Decode descriptor text into ordered :class:`TypeDeclaration` objects."""

    def __init__(self, source_name: str = "<descriptor>") -> None:
        self.source_name = source_name

    def parse_file(self, path: Path) -> List[TypeDeclaration]:
        self.source_name = str(path)
        return self.parse_text(path.read_text(encoding="utf-8"))

    def parse_text(self, text: str) -> List[TypeDeclaration]:
        declarations: List[TypeDeclaration] = []
        category = ""

        for line_no, raw in enumerate(text.splitlines(), 1):
            line = raw.split("#", 1)[0].strip()
            if not line:
                continue

            match = _CATEGORY_RE.match(line)
            if match:
                category = match.group(1)
                continue

            declarations.append(self._parse_line(line_no, raw, line, category))

        logger.debug("Parsed %d declarations from %s", len(declarations), self.source_name)
        return declarations

    # ------------------------------------------------------------------
    # Single line
    # ------------------------------------------------------------------

    def _parse_line(
        self,
        line_no: int,
        raw: str,
        line: str,
        category: str,
    ) -> TypeDeclaration:
        tokens = _PARAMS_RE.sub("", line).split()
        keyword = tokens[0]
        if keyword not in KIND_MAP:
            raise DescriptorSyntaxError(line_no, raw, f"unknown declarator '{keyword}'")
        if len(tokens) < 2:
            raise DescriptorSyntaxError(line_no, raw, "missing type name")

        name = self._check_name(line_no, raw, tokens[1])
        parents: List[str] = []
        roles: List[str] = []

        rest = tokens[2:]
        if len(rest) % 2:
            raise DescriptorSyntaxError(line_no, raw, "relation without a target")
        for relation, target in zip(rest[::2], rest[1::2]):
            if relation not in RELATIONS:
                raise DescriptorSyntaxError(line_no, raw, f"unknown relation '{relation}'")
            target = self._check_name(line_no, raw, target)
            bucket = parents if relation == "is" else roles
            if target in bucket:
                raise DescriptorSyntaxError(line_no, raw, f"'{target}' listed twice")
            bucket.append(target)

        return TypeDeclaration(
            name=name,
            parents=tuple(parents),
            roles=tuple(roles),
            kind=KIND_MAP[keyword],
            category=category,
            line_no=line_no,
        )

    @staticmethod
    def _check_name(line_no: int, raw: str, name: str) -> str:
        if not _NAME_RE.match(name):
            raise DescriptorSyntaxError(line_no, raw, f"invalid type name '{name}'")
        return name


def parse_descriptor(text: str) -> List[TypeDeclaration]:
    """Convenience wrapper: parse descriptor *text* into declarations."""
    return TypeGraphParser().parse_text(text)
