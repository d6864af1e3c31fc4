"""Coordinates the graph store, linearizer, chunk cache and aggregator."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

from . import config
from .aggregator import Aggregator
from .chunker import ChunkCache
from .config_manager import BuildSettings
from .content import Named, gist, load_document, node_to_dict, nodes_to_list
from .emission import SiteEmitter, uri_escape
from .graph_store import GraphStore
from .linearizer import Linearizer

logger = logging.getLogger(__name__)


def page_kind(name: str) -> str:
    """``type`` for ``Str`` or ``X::AdHoc``, ``language`` for ``operators``."""
    if name[:1].isupper() or "::" in name:
        return "type"
    return "language"


def page_name(relative: Path) -> str:
    return relative.with_suffix("").as_posix().replace("/", "::")


def read_documents(content_dir: Path) -> Dict[str, Tuple[Any, ...]]:
    """Load every JSON document below *content_dir*, keyed by page name."""
    documents: Dict[str, Tuple[Any, ...]] = {}
    for path in sorted(content_dir.rglob(f"*{config.DOCUMENT_SUFFIX}")):
        if not path.is_file():
            continue
        name = page_name(path.relative_to(content_dir))
        documents[name] = load_document(path)
        logger.debug("Read %s => %s/%s", path, page_kind(name), name)
    return documents


class DocOrchestrator:
    """Splits documents into type and language pages and wires the build.

    Type pages are processed in the graph's build order; documents for names
    the graph does not know come first, in their original order.
    """

    def __init__(
        self,
        store: GraphStore,
        documents: Mapping[str, Tuple[Any, ...]],
        on_conflict: str = config.DEFAULT_ON_CONFLICT,
        entry_level: int = config.DEFAULT_ENTRY_LEVEL,
    ) -> None:
        self.store = store
        self.linearizer = Linearizer(store)
        self.chunks = ChunkCache(entry_level=entry_level)
        self.aggregator = Aggregator(self.linearizer, self.chunks)

        language_pages: Dict[str, Tuple[Any, ...]] = {}
        type_pages = []
        for name, content in documents.items():
            if page_kind(name) == "language":
                language_pages[name] = tuple(content)
                continue
            self.chunks.add_document(name, content)
            type_pages.append(name)
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug("%s:\n%s", name, gist(Named(name="pod", content=tuple(content))))

        for name in type_pages:
            if name not in store:
                logger.warning("%s is documented but missing from the type graph", name)

        type_pages.sort(key=store.position)
        self.emitter = SiteEmitter(
            self.aggregator,
            type_pages,
            language_pages,
            on_conflict=on_conflict,
        )

    @classmethod
    def from_paths(
        cls,
        type_graph: Path,
        content_dir: Path,
        settings: Optional[BuildSettings] = None,
    ) -> "DocOrchestrator":
        settings = settings or BuildSettings()
        logger.info("Reading type graph %s", type_graph)
        store = GraphStore.from_file(type_graph)
        logger.info("Reading documents under %s", content_dir)
        documents = read_documents(content_dir)
        return cls(
            store,
            documents,
            on_conflict=settings.on_conflict,
            entry_level=settings.entry_level,
        )

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def write_site(self, out_dir: Path, title: str = "Documentation") -> Dict[str, int]:
        """Write every artifact as JSON for the external renderer.

        Layout: ``type/<T>.json``, ``language/<L>.json``,
        ``routine/<escaped name>.json``, ``index.json``, ``search.json``
        and ``names.json``.
        """
        emitter = self.emitter
        # Assemble everything first so an aborted build writes nothing.
        pages = list(emitter.pages())

        for sub in ("", "type", "language", "routine"):
            (out_dir / sub).mkdir(parents=True, exist_ok=True)

        stats = {"types": 0, "languages": 0, "routines": 0}

        for name, content in emitter.language_pages():
            _write_json(out_dir / "language" / f"{name}.json", {
                "name": name,
                "nodes": nodes_to_list(content),
            })
            stats["languages"] += 1

        for name, page in pages:
            _write_json(out_dir / "type" / f"{name}.json", {
                "name": name,
                "nodes": nodes_to_list(page.nodes()),
                "sections": [
                    {"kind": s.kind, "source": s.source, "via": s.via}
                    for s in page.sections
                ],
            })
            stats["types"] += 1

        logger.info("Writing per-routine files")
        for name, tree in emitter.routine_pages():
            _write_json(out_dir / "routine" / f"{uri_escape(name)}.json", node_to_dict(tree))
            stats["routines"] += 1

        _write_json(out_dir / "index.json", node_to_dict(emitter.index_page(title)))
        _write_json(out_dir / "search.json", [e.to_dict() for e in emitter.search_entries()])
        _write_json(out_dir / "names.json", emitter.name_index())

        stats["failures"] = len(emitter.failures)
        logger.info(
            "Wrote %d type, %d language and %d routine pages to %s",
            stats["types"], stats["languages"], stats["routines"], out_dir,
        )
        return stats


def _write_json(path: Path, payload: Any) -> None:
    path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
