"""Pytest configuration and fixtures for DocGraph CLI tests."""

import shutil
import tempfile
from pathlib import Path
from typing import Dict, Generator, Tuple

import pytest

from docgraph_cli.content import Heading, Para
from docgraph_cli.graph_store import GraphStore
from docgraph_cli.orchestrator import DocOrchestrator


def heading(text: str, level: int = 2) -> Heading:
    return Heading(level=level, content=(text,))


def para(text: str) -> Para:
    return Para(content=(text,))


def entries(*names: str) -> Tuple:
    """A document with a title and one short entry per name."""
    nodes = [heading("Title", level=1), para("Intro.")]
    for name in names:
        nodes.extend([heading(name), para(f"About {name}.")])
    return tuple(nodes)


@pytest.fixture(autouse=True)
def _isolated_config(tmp_path: Path, monkeypatch):
    """Keep tests away from the real ~/.docgraph and any local docgraph.toml."""
    home = tmp_path / "docgraph_home"
    monkeypatch.setattr("docgraph_cli.config.BASE_DIR", home)
    monkeypatch.setattr("docgraph_cli.config.CONFIG_FILE", home / "config.toml")
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmp = Path(tempfile.mkdtemp())
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def sample_docs_path() -> Path:
    """Path to the sample type graph and documents."""
    return Path(__file__).parent / "fixtures" / "sample_docs"


@pytest.fixture
def sample_descriptor(sample_docs_path: Path) -> str:
    return (sample_docs_path / "type-graph.txt").read_text(encoding="utf-8")


@pytest.fixture
def sample_store(sample_descriptor: str) -> GraphStore:
    return GraphStore.load(sample_descriptor)


@pytest.fixture
def sample_orchestrator(sample_docs_path: Path) -> DocOrchestrator:
    return DocOrchestrator.from_paths(
        sample_docs_path / "type-graph.txt",
        sample_docs_path / "lib",
    )


@pytest.fixture
def taurus_descriptor() -> str:
    return """
class Mu
class Any is Mu
role Bull-Like
role Steerable
class Taurus is Any does Bull-Like does Steerable
class Minotaur is Any does Bull-Like
"""


@pytest.fixture
def taurus_documents() -> Dict[str, Tuple]:
    return {
        "Mu": entries("new"),
        "Bull-Like": entries("charge", "steer"),
        "Steerable": entries("steer", "turn"),
        "Taurus": entries("gallop"),
        "Minotaur": entries("roar"),
    }
