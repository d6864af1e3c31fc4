"""Boundary between the aggregation core and the external renderer.

Everything handed out here is a node tree or plain data; serialization to
hypertext is the renderer's job.  URL conventions (``/type/Name``,
``/routine/name``, ``/language/name``) are consumed by the static lookup
widget and must not change.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple
from urllib.parse import quote

from .aggregator import Aggregator, RoutineIndex, type_url
from .config import CONFLICT_POLICIES
from .content import Named, pod_block, pod_heading, pod_item, pod_link, pod_with_title
from .errors import BuildError
from .models import AssembledPage, BuildFailure, SearchEntry

logger = logging.getLogger(__name__)

SEARCH_CATEGORIES = (("language", "Language"), ("type", "Type"), ("routine", "Routine"))

_SCHEME_RE = re.compile(r"^[a-z]+://")


def uri_escape(name: str) -> str:
    return quote(name, safe="")


def routine_url(name: str) -> str:
    return f"/routine/{uri_escape(name)}"


def language_url(name: str) -> str:
    return f"/language/{name}"


def url_munge(target: str) -> str:
    """Map a link target written in the docs to a site URL."""
    if _SCHEME_RE.match(target):
        return target
    if target[:1].isupper() and target[:1].isascii():
        return type_url(target)
    if target[:1].islower() and target[:1].isascii():
        return f"/routine/{target}"
    return target


def static_href(url: str) -> str:
    """``/type/Str`` -> ``type/Str.html``, as the static search page links."""
    return url[1:] + ".html"


class SiteEmitter:
    """Lazy access to assembled pages and the derived index artifacts.

    Args:
        aggregator: Aggregator wired to the graph and chunk cache.
        type_pages: Type documents in processing order.
        language_pages: Language documents by name (never chunked).
        on_conflict: ``"abort"`` raises the first per-type build error;
            ``"skip"`` logs it, records it in :attr:`failures` and moves on.
    """

    def __init__(
        self,
        aggregator: Aggregator,
        type_pages: Sequence[str],
        language_pages: Optional[Mapping[str, Tuple[Any, ...]]] = None,
        on_conflict: str = "abort",
    ) -> None:
        if on_conflict not in CONFLICT_POLICIES:
            raise ValueError(f"on_conflict must be one of {CONFLICT_POLICIES}, got {on_conflict!r}")
        self.aggregator = aggregator
        self.type_pages = list(type_pages)
        self._language_pages = dict(language_pages or {})
        self.on_conflict = on_conflict
        self.failures: List[BuildFailure] = []
        self._routine_index: Optional[RoutineIndex] = None
        self._skipped: Optional[List[str]] = None

    # ------------------------------------------------------------------
    # Pages
    # ------------------------------------------------------------------

    def pages(self) -> Iterator[Tuple[str, AssembledPage]]:
        for type_name in self.type_pages:
            try:
                page = self.aggregator.assemble(type_name)
            except BuildError as exc:
                if self.on_conflict == "abort":
                    raise
                logger.error("Skipping page for %s: %s", type_name, exc)
                self.failures.append(BuildFailure(type_name=type_name, error=exc))
                continue
            yield type_name, page

    def skipped(self) -> List[str]:
        """Types whose pages the ``skip`` policy leaves out, in processing order.

        Known before :meth:`pages` runs, so the index artifacts never link
        to a page that is not written.
        """
        if self._skipped is None:
            skipped: List[str] = []
            if self.on_conflict == "skip":
                for type_name in self.type_pages:
                    try:
                        self.aggregator.check(type_name)
                    except BuildError:
                        skipped.append(type_name)
            self._skipped = skipped
        return self._skipped

    def published_types(self) -> List[str]:
        skipped = set(self.skipped())
        return [n for n in self.type_pages if n not in skipped]

    def language_pages(self) -> Iterator[Tuple[str, Tuple[Any, ...]]]:
        yield from self._language_pages.items()

    # ------------------------------------------------------------------
    # Routine index
    # ------------------------------------------------------------------

    def routine_index(self) -> RoutineIndex:
        if self._routine_index is None:
            self._routine_index = self.aggregator.routine_index(self.type_pages)
        return self._routine_index

    def routine_page(self, name: str) -> Named:
        owners = self.routine_index().get(name)
        if not owners:
            raise KeyError(name)
        blocks: List[Any] = [
            pod_block(f"Documentation for routine {name}, assembled from the following types:"),
        ]
        skipped = set(self.skipped())
        for type_name, chunk in owners:
            blocks.append(pod_heading(type_name))
            if type_name in skipped:
                blocks.append(pod_block(f"From {type_name}"))
            else:
                blocks.append(pod_block("From ", pod_link(type_name, f"{type_url(type_name)}#{name}")))
            blocks.extend(chunk.nodes)
        return pod_with_title(f"Documentation for routine {name}", *blocks)

    def routine_pages(self) -> Iterator[Tuple[str, Named]]:
        for name in self.routine_index():
            yield name, self.routine_page(name)

    # ------------------------------------------------------------------
    # Search / index artifacts
    # ------------------------------------------------------------------

    def _urls_by_category(self) -> Dict[str, Dict[str, str]]:
        return {
            "language": {n: language_url(n) for n in self._language_pages},
            "type": {n: type_url(n) for n in self.published_types()},
            "routine": {n: routine_url(n) for n in self.routine_index()},
        }

    def search_entries(self) -> List[SearchEntry]:
        """Language, type and routine entries, each category sorted by name."""
        urls = self._urls_by_category()
        entries: List[SearchEntry] = []
        for category, label in SEARCH_CATEGORIES:
            for name in sorted(urls[category]):
                entries.append(SearchEntry(
                    category=category,
                    label=f"{label}: {name}",
                    value=name,
                    url=urls[category][name],
                ))
        return entries

    def name_index(self) -> Dict[str, Dict[str, List[str]]]:
        """Every documented name -> category -> URLs, for disambiguation."""
        names: Dict[str, Dict[str, List[str]]] = {}
        for name in self._language_pages:
            names.setdefault(name, {}).setdefault("language", []).append(language_url(name))
        for name in self.published_types():
            names.setdefault(name, {}).setdefault("type", []).append(type_url(name))
        skipped = set(self.skipped())
        for name, owners in self.routine_index().items():
            for type_name, _ in owners:
                if type_name in skipped:
                    continue
                names.setdefault(name, {}).setdefault("routine", []).append(
                    f"{type_url(type_name)}.html#{uri_escape(name)}"
                )
        return names

    def index_page(self, title: str = "Documentation", description: str = "") -> Named:
        urls = self._urls_by_category()
        sections = (
            ("Language Documentation", "language"),
            ("Types", "type"),
            ("Routines", "routine"),
        )
        blocks: List[Any] = [pod_block(description)] if description else []
        for heading, category in sections:
            blocks.append(pod_heading(heading))
            blocks.extend(
                pod_item(pod_link(name, urls[category][name]))
                for name in sorted(urls[category])
            )
        return pod_with_title(title, *blocks)
