"""Tests for the takeflow command line interface."""
from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from takeflow.cli import build_parser, main
from takeflow.cli.commands.serve import load_take
from takeflow.take import FixedTake, Take

from fixtures_takes import ScriptedResponse

sample_take = FixedTake(ScriptedResponse(head=["HTTP/1.1 200 OK"], body=b"hi"))


def make_take() -> Take:
    return sample_take


class TestCLIParser:
    """Test CLI parser construction."""

    def test_serve_command_parsing(self) -> None:
        args = build_parser().parse_args(["serve", "app:take", "--port", "9001"])

        assert args.command == "serve"
        assert args.target == "app:take"
        assert args.port == 9001
        assert args.host is None

    def test_command_is_required(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestLoadTake:

    def test_loads_take_attribute(self) -> None:
        assert load_take("test_cli:sample_take") is sample_take

    def test_calls_factory(self) -> None:
        assert load_take("test_cli:make_take") is sample_take

    @pytest.mark.parametrize("target", ["test_cli", ":x", "test_cli:"])
    def test_rejects_malformed_target(self, target: str) -> None:
        with pytest.raises(ValueError):
            load_take(target)

    def test_rejects_non_take(self) -> None:
        with pytest.raises(TypeError):
            load_take("test_cli:TestLoadTake")


class TestCommands:

    def test_serve_runs_uvicorn(self, tmp_path: Path) -> None:
        config = tmp_path / "takeflow.yaml"
        config.write_text("server:\n  port: 8123\nlogging:\n  format: console\n", encoding="utf-8")

        with patch("takeflow.cli.commands.serve.uvicorn.run") as run, patch(
            "takeflow.cli.commands.serve.configure_logging"
        ) as configure:
            code = main(["serve", "test_cli:sample_take", "--config", str(config)])

        assert code == 0
        configure.assert_called_once_with("console", "INFO")
        app = run.call_args.args[0]
        assert run.call_args.kwargs["port"] == 8123
        assert run.call_args.kwargs["host"] == "127.0.0.1"
        assert app.routes[0].name == "takeflow_take"

    @pytest.mark.parametrize(("flag", "level"), [("-v", "DEBUG"), ("-q", "WARNING")])
    def test_serve_verbosity_flag_beats_config(
        self, tmp_path: Path, flag: str, level: str
    ) -> None:
        config = tmp_path / "takeflow.yaml"
        config.write_text("logging:\n  format: json\n  level: INFO\n", encoding="utf-8")

        with patch("takeflow.cli.commands.serve.uvicorn.run"), patch(
            "takeflow.cli.commands.serve.configure_logging"
        ) as configure:
            code = main([flag, "serve", "test_cli:sample_take", "--config", str(config)])

        assert code == 0
        configure.assert_called_once_with("json", level)

    def test_serve_reports_bad_target(self, capsys: pytest.CaptureFixture[str]) -> None:
        with patch("takeflow.cli.commands.serve.uvicorn.run") as run:
            code = main(["serve", "no_such_module_xyz:take"])

        assert code == 1
        run.assert_not_called()
        assert "no_such_module_xyz" in capsys.readouterr().err

    def test_config_validate_and_show(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        config = tmp_path / "takeflow.yaml"
        config.write_text("fallback:\n  pages:\n    404: gone\n", encoding="utf-8")

        assert main(["config", "validate", str(config)]) == 0
        assert "valid" in capsys.readouterr().out

        assert main(["config", "show", str(config)]) == 0
        shown = json.loads(capsys.readouterr().out)
        assert shown["fallback"]["pages"]["404"]["body"] == "gone"
        assert shown["server"]["port"] == 8080

    def test_config_validate_failure(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        config = tmp_path / "takeflow.yaml"
        config.write_text("server:\n  port: nope\n", encoding="utf-8")

        assert main(["config", "validate", str(config)]) == 2
        assert "server.port" in capsys.readouterr().err

    def test_config_show_with_override(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        base = tmp_path / "base.yaml"
        base.write_text("server:\n  host: 0.0.0.0\n  port: 9000\n", encoding="utf-8")
        override = tmp_path / "prod.yaml"
        override.write_text("server:\n  port: 9100\n", encoding="utf-8")

        assert main(["config", "show", str(base), "--override", str(override)]) == 0
        shown = json.loads(capsys.readouterr().out)
        assert shown["server"] == {"host": "0.0.0.0", "port": 9100}

    def test_config_missing_file(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert main(["config", "validate", str(tmp_path / "absent.yaml")]) == 1
        assert "not found" in capsys.readouterr().err

    def test_version(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["version"]) == 0
        assert capsys.readouterr().out.startswith("takeflow ")
