"""Integration tests for CLI commands."""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from docgraph_cli import __version__, config
from docgraph_cli.cli import app
from docgraph_cli.content import nodes_to_list


runner = CliRunner()


@pytest.fixture
def graph_file(sample_docs_path: Path) -> str:
    return str(sample_docs_path / "type-graph.txt")


@pytest.fixture
def lib_dir(sample_docs_path: Path) -> str:
    return str(sample_docs_path / "lib")


@pytest.fixture
def taurus_site(tmp_path: Path, taurus_descriptor, taurus_documents) -> Path:
    """A graph and document tree where Taurus has a role collision."""
    site = tmp_path / "taurus"
    lib = site / "lib"
    lib.mkdir(parents=True)
    (site / "type-graph.txt").write_text(taurus_descriptor, encoding="utf-8")
    for name, content in taurus_documents.items():
        (lib / f"{name}.json").write_text(json.dumps(nodes_to_list(content)), encoding="utf-8")
    return site


def test_version():
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0
    assert f"DocGraph CLI v{__version__}" in result.output


class TestCheckCommand:
    """Tests for 'dg check'."""

    def test_check_ok(self, graph_file: str):
        result = runner.invoke(app, ["check", "--graph", graph_file])

        assert result.exit_code == 0
        assert "11 types, all linearizable" in result.output

    def test_check_reports_conflicts(self, tmp_path: Path):
        graph = tmp_path / "bad.txt"
        graph.write_text("class C\nclass B is C\nclass X is C is B\n", encoding="utf-8")

        result = runner.invoke(app, ["check", "--graph", str(graph)])

        assert result.exit_code == 1
        assert "Linearization conflicts" in result.output
        assert "X" in result.output

    def test_check_names_inherited_conflicts(self, tmp_path: Path):
        graph = tmp_path / "bad.txt"
        graph.write_text("class C\nclass B is C\nclass X is C is B\nclass Y is X\n", encoding="utf-8")

        result = runner.invoke(app, ["check", "--graph", str(graph)])

        assert result.exit_code == 1
        assert "Inherited from" in result.output
        row = next(line for line in result.output.splitlines() if " Y " in line)
        assert "X" in row

    def test_check_syntax_error(self, tmp_path: Path):
        graph = tmp_path / "broken.txt"
        graph.write_text("class Foo\nstruct Bar\n", encoding="utf-8")

        result = runner.invoke(app, ["check", "--graph", str(graph)])

        assert result.exit_code == 1
        assert "struct" in result.output

    def test_check_missing_graph(self, tmp_path: Path):
        result = runner.invoke(app, ["check", "--graph", str(tmp_path / "nope.txt")])
        assert result.exit_code != 0

    def test_check_uses_configured_graph(self, graph_file: str, tmp_path: Path):
        (tmp_path / config.LOCAL_CONFIG_NAME).write_text(
            f"[build]\ntype_graph = {json.dumps(graph_file)}\n", encoding="utf-8",
        )
        result = runner.invoke(app, ["check"])

        assert result.exit_code == 0
        assert "all linearizable" in result.output


class TestMroCommand:
    """Tests for 'dg mro'."""

    def test_mro_and_roles(self, graph_file: str):
        result = runner.invoke(app, ["mro", "Int", "--graph", graph_file])

        assert result.exit_code == 0
        assert "MRO: Int -> Cool -> Any -> Mu" in result.output
        assert "Roles: Real, Numeric" in result.output

    def test_mro_without_roles(self, graph_file: str):
        result = runner.invoke(app, ["mro", "Any", "--graph", graph_file])

        assert result.exit_code == 0
        assert "Roles: none" in result.output

    def test_mro_unknown_type(self, graph_file: str):
        result = runner.invoke(app, ["mro", "Nope", "--graph", graph_file])

        assert result.exit_code == 1
        assert "Nope" in result.output


class TestExportGraphCommand:
    """Tests for 'dg export-graph'."""

    def test_export_full_graph(self, graph_file: str, tmp_path: Path):
        output = tmp_path / "graph.dot"
        result = runner.invoke(app, ["export-graph", "--graph", graph_file, "-o", str(output)])

        assert result.exit_code == 0
        assert "Exported graph to" in result.output
        dot = output.read_text(encoding="utf-8")
        assert dot.startswith("digraph TypeGraph")
        assert '"Str"' in dot

    def test_export_focus_default_path(self, graph_file: str, tmp_path: Path):
        result = runner.invoke(app, ["export-graph", "Str", "--graph", graph_file])

        assert result.exit_code == 0
        assert (tmp_path / "type-graph-Str.dot").exists()


class TestBuildCommand:
    """Tests for 'dg build'."""

    def test_build_writes_site(self, graph_file: str, lib_dir: str, tmp_path: Path):
        out = tmp_path / "site"
        result = runner.invoke(app, ["build", lib_dir, "--graph", graph_file, "--out", str(out)])

        assert result.exit_code == 0
        assert "11 type" in result.output
        assert "14 routine" in result.output
        assert (out / "type" / "Str.json").exists()
        assert (out / "search.json").exists()

    def test_build_aborts_on_collision(self, taurus_site: Path):
        result = runner.invoke(app, [
            "build", str(taurus_site / "lib"),
            "--graph", str(taurus_site / "type-graph.txt"),
            "--out", str(taurus_site / "html"),
        ])

        assert result.exit_code == 1
        assert "steer" in result.output
        assert not (taurus_site / "html").exists()

    def test_build_skip_policy(self, taurus_site: Path):
        out = taurus_site / "html"
        result = runner.invoke(app, [
            "build", str(taurus_site / "lib"),
            "--graph", str(taurus_site / "type-graph.txt"),
            "--out", str(out),
            "--on-conflict", "skip",
        ])

        assert result.exit_code == 0
        assert "Skipped pages" in result.output
        assert "Taurus" in result.output
        assert not (out / "type" / "Taurus.json").exists()
        assert (out / "type" / "Minotaur.json").exists()
        assert (out / "routine" / "gallop.json").exists()

    def test_build_invalid_policy(self, graph_file: str, lib_dir: str):
        result = runner.invoke(app, ["build", lib_dir, "--graph", graph_file, "--on-conflict", "ignore"])

        assert result.exit_code == 1
        assert "on_conflict" in result.output


class TestRoutineCommand:
    """Tests for 'dg routine'."""

    def test_routine_owners(self, graph_file: str, lib_dir: str):
        result = runner.invoke(app, ["routine", "new", lib_dir, "--graph", graph_file])

        assert result.exit_code == 0
        lines = [line for line in result.output.splitlines() if ".new" in line]
        assert lines[0].startswith("Mu.new")
        assert lines[1].startswith("Int.new")

    def test_unknown_routine(self, graph_file: str, lib_dir: str):
        result = runner.invoke(app, ["routine", "frobnicate", lib_dir, "--graph", graph_file])

        assert result.exit_code == 1
        assert "No type documents routine 'frobnicate'" in result.output


class TestConfigCommands:
    """Tests for 'dg config'."""

    def test_set_then_show(self):
        result = runner.invoke(app, ["config", "set", "on_conflict", "skip"])
        assert result.exit_code == 0
        assert "Set on_conflict = skip" in result.output

        result = runner.invoke(app, ["config", "show"])
        assert result.exit_code == 0
        assert "skip" in result.output

    def test_set_local(self, tmp_path: Path):
        result = runner.invoke(app, ["config", "set", "out_dir", "public", "--local"])

        assert result.exit_code == 0
        assert 'out_dir = "public"' in (tmp_path / config.LOCAL_CONFIG_NAME).read_text(encoding="utf-8")
        assert not config.CONFIG_FILE.exists()

    def test_set_unknown_key(self):
        result = runner.invoke(app, ["config", "set", "colour", "blue"])

        assert result.exit_code == 1
        assert "unknown build setting" in result.output

    def test_reset(self):
        runner.invoke(app, ["config", "set", "on_conflict", "skip"])
        result = runner.invoke(app, ["config", "reset"])

        assert result.exit_code == 0
        assert "[build]" not in config.CONFIG_FILE.read_text(encoding="utf-8")
