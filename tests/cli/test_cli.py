"""Tests for the conduit CLI."""

import json
from pathlib import Path

import pytest
import yaml
from typer.testing import CliRunner

from conduit import __version__
from conduit.cli import app
from conduit.core.canonical import FORMAT_VERSION
from conduit.core.conduit import new_instance

runner = CliRunner()


@pytest.fixture
def graph_file(tmp_path: Path) -> Path:
    graph = (
        new_instance(["foo", "bar", "baz"])
        .foo({"arg": 1}, "ffx")
        .foo({"arg": 2}, "fx0")
        .bar({"arg": 4}, "bx")
        .parallel()
        .sequence()
    )
    path = tmp_path / "graph.json"
    path.write_text(graph.serialize())
    return path


@pytest.fixture
def unreduced_file(tmp_path: Path) -> Path:
    path = tmp_path / "unreduced.json"
    path.write_text(new_instance(["foo"]).foo(1).foo(2).serialize())
    return path


@pytest.fixture
def duplicate_file(tmp_path: Path) -> Path:
    path = tmp_path / "duplicate.json"
    path.write_text(new_instance(["foo"]).foo(1, "x").foo(2, "x").parallel().serialize())
    return path


class TestVersion:
    def test_version_flag(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output


class TestValidateCommand:
    def test_valid_graph(self, graph_file: Path) -> None:
        result = runner.invoke(app, ["validate", str(graph_file)])
        assert result.exit_code == 0
        assert "Frames: 1" in result.output
        assert "Unused task names: baz" in result.output
        assert "Graph is valid" in result.output

    def test_unreduced_graph(self, unreduced_file: Path) -> None:
        result = runner.invoke(app, ["validate", str(unreduced_file)])
        assert result.exit_code == 1
        assert "Frames: 2" in result.output

    def test_duplicate_labels(self, duplicate_file: Path) -> None:
        result = runner.invoke(app, ["validate", str(duplicate_file)])
        assert result.exit_code == 1
        assert "Graph is valid" not in result.output

    def test_invalid_document(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"format": FORMAT_VERSION, "task_names": ["foo"], "tasks": [[{"type": "method", "name": "nope"}]]}))
        result = runner.invoke(app, ["validate", str(path)])
        assert result.exit_code == 1

    def test_missing_file(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["validate", str(tmp_path / "missing.json")])
        assert result.exit_code != 0


class TestShowCommand:
    def test_renders_tree(self, graph_file: Path) -> None:
        result = runner.invoke(app, ["show", str(graph_file)])
        assert result.exit_code == 0
        assert "frame 0:" in result.output
        assert "seq (2)" in result.output
        assert "└── par (2)" in result.output
        assert 'bar [bx] {"arg":4}' in result.output

    def test_renders_every_frame(self, unreduced_file: Path) -> None:
        result = runner.invoke(app, ["show", str(unreduced_file)])
        assert result.exit_code == 0
        assert "frame 1:" in result.output

    def test_renders_deep_chain(self, tmp_path: Path) -> None:
        graph = new_instance(["foo"]).foo(0)
        for i in range(1, 1000):
            graph = graph.foo(i).sequence()
        path = tmp_path / "deep.json"
        path.write_text(graph.serialize())

        result = runner.invoke(app, ["show", str(path)])

        assert result.exit_code == 0
        assert result.stdout.count("seq (2)") == 999


class TestCanonicalizeCommand:
    def test_prints_canonical_form(self, tmp_path: Path, graph_file: Path) -> None:
        pretty = tmp_path / "pretty.json"
        pretty.write_text(json.dumps(json.loads(graph_file.read_text()), indent=4))

        result = runner.invoke(app, ["canonicalize", str(pretty)])
        assert result.exit_code == 0
        assert result.stdout.strip() == graph_file.read_text()

    def test_non_finite_args_fail_cleanly(self, tmp_path: Path) -> None:
        path = tmp_path / "nan.json"
        path.write_text(
            f'{{"format":"{FORMAT_VERSION}","task_names":["foo"],'
            '"tasks":[[{"type":"method","name":"foo","args":NaN,"label":null}]]}'
        )

        result = runner.invoke(app, ["canonicalize", str(path)])

        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert "Invalid Graph Document" in result.output


class TestSettingsOption:
    def test_settings_file(self, tmp_path: Path, graph_file: Path) -> None:
        settings = tmp_path / "settings.yaml"
        settings.write_text(yaml.dump({"logging": {"level": "ERROR"}}))
        result = runner.invoke(app, ["--settings", str(settings), "validate", str(graph_file)])
        assert result.exit_code == 0

    def test_missing_settings_file(self, tmp_path: Path, graph_file: Path) -> None:
        result = runner.invoke(app, ["--settings", str(tmp_path / "nope.yaml"), "validate", str(graph_file)])
        assert result.exit_code == 1

    def test_invalid_settings(self, tmp_path: Path, graph_file: Path) -> None:
        settings = tmp_path / "settings.yaml"
        settings.write_text(yaml.dump({"concurrency": {"max_workers": 0}}))
        result = runner.invoke(app, ["--settings", str(settings), "validate", str(graph_file)])
        assert result.exit_code == 1
