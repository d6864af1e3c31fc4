"""Exception hierarchy for loading, resolving and assembling documentation."""

from __future__ import annotations

from typing import Sequence


class DocGraphError(Exception):
    """Base class for every error the build reports to the user."""


class ConfigError(DocGraphError):
    """Invalid value in a ``[build]`` configuration section."""


class ContentError(DocGraphError):
    """A content document could not be decoded into a node tree."""


# ===================================================================
# Load errors (fatal, abort before any resolution runs)
# ===================================================================

class LoadError(DocGraphError):
    """The type graph descriptor could not be loaded."""


class DescriptorSyntaxError(LoadError):
    def __init__(self, line_no: int, line: str, reason: str) -> None:
        self.line_no = line_no
        self.line = line
        self.reason = reason
        super().__init__(f"line {line_no}: {reason}: {line.strip()!r}")


class DuplicateTypeError(LoadError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"type '{name}' is declared more than once")


class UnresolvedReferenceError(LoadError):
    def __init__(self, name: str, missing: str, relation: str) -> None:
        self.name = name
        self.missing = missing
        self.relation = relation
        super().__init__(
            f"type '{name}' references undeclared {relation} '{missing}'"
        )


class GraphCycleError(LoadError):
    def __init__(self, path: Sequence[str]) -> None:
        self.path = list(path)
        super().__init__("inheritance cycle: " + " -> ".join(self.path))


class UnknownTypeError(LoadError, KeyError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"type '{name}' is not in the type graph")

    def __str__(self) -> str:
        return self.args[0]


# ===================================================================
# Per-type build errors
# ===================================================================

class BuildError(DocGraphError):
    """A single type's page cannot be produced."""

    type_name: str = ""


class LinearizationConflict(BuildError):
    """No consistent C3 ordering exists for ``type_name``.

    ``via`` names the ancestor whose own merge failed when the conflict is
    inherited rather than local to ``type_name``.
    """

    def __init__(self, type_name: str, candidates: Sequence[str], via: str = "") -> None:
        self.type_name = type_name
        self.candidates = list(candidates)
        self.via = via
        ordering = "inconsistent ordering between " + ", ".join(f"'{c}'" for c in self.candidates)
        if via:
            super().__init__(f"cannot linearize '{type_name}': ancestor '{via}' has {ordering}")
        else:
            super().__init__(f"cannot linearize '{type_name}': {ordering}")


class RoleCollision(BuildError):
    """Two or more directly composed roles supply the same entry."""

    def __init__(self, type_name: str, entry: str, roles: Sequence[str]) -> None:
        self.type_name = type_name
        self.entry = entry
        self.roles = list(roles)
        super().__init__(
            f"'{type_name}' must resolve '{entry}', supplied by roles "
            + " and ".join(f"'{r}'" for r in self.roles)
        )
