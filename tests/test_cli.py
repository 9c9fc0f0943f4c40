"""Tests for papyre._cli — argument parsing and command dispatch."""

from __future__ import annotations

from pathlib import Path

import pytest

from papyre._cli import _build_parser, main


class TestBuildParser:
    """_build_parser — CLI argument parsing."""

    def test_build_default_args(self) -> None:
        args = _build_parser().parse_args(["build"])
        assert args.command == "build"
        assert args.config == "."
        assert args.entry is None
        assert args.output == "dist"
        assert args.verbose is False

    def test_build_all_flags(self) -> None:
        args = _build_parser().parse_args([
            "build", "my-site/",
            "--entry", "content/site.py",
            "--output", "public",
            "--verbose",
        ])
        assert args.config == "my-site/"
        assert args.entry == "content/site.py"
        assert args.output == "public"
        assert args.verbose is True

    def test_watch_default_args(self) -> None:
        args = _build_parser().parse_args(["watch"])
        assert args.command == "watch"
        assert args.config == "."
        assert args.output == "dist"

    def test_no_command_returns_none(self) -> None:
        assert _build_parser().parse_args([]).command is None

    def test_version(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            _build_parser().parse_args(["--version"])
        assert exc_info.value.code == 0
        assert "papyre 0.1.0" in capsys.readouterr().out


class TestMain:
    def test_no_command_prints_help(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 0
        assert "usage: papyre" in capsys.readouterr().out

    def test_build_writes_output(self, site: Path, tmp_path: Path) -> None:
        out = tmp_path / "dist"
        main(["build", str(tmp_path), "--entry", str(site / "site.py"), "--output", str(out)])
        assert (out / "a.md").read_text() == "HELLO\n"
        assert not (out / "b.md").exists()

    def test_build_with_config_file(self, site: Path, tmp_path: Path) -> None:
        (tmp_path / "papyre.yaml").write_text("entry: site/site.py\n")
        out = tmp_path / "public"
        main(["build", str(tmp_path), "--output", str(out)])
        assert (out / "a.md").read_text() == "HELLO\n"

    def test_build_failure_exits_1(self, site: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        (site / "helpers.py").write_text("def shout(:\n")
        with pytest.raises(SystemExit) as exc_info:
            main(["build", str(tmp_path), "--entry", str(site / "site.py"), "--output", str(tmp_path / "out")])
        assert exc_info.value.code == 1
        assert "Module build failed" in capsys.readouterr().err

    def test_missing_entry_exits_1(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["build", str(tmp_path)])
        assert exc_info.value.code == 1
        assert "single entry file" in capsys.readouterr().err

    @pytest.mark.parametrize(("argv", "expected"), [(["watch"], False), (["watch", "--verbose"], True)])
    def test_watch_passes_verbose_flag(
        self, monkeypatch: pytest.MonkeyPatch, argv: list[str], expected: bool,
    ) -> None:
        seen: list[dict[str, object]] = []

        def fake_run_watch(config: str, **kwargs: object) -> None:
            seen.append({"config": config, **kwargs})

        monkeypatch.setattr("papyre.app.run_watch", fake_run_watch)
        main(argv)
        assert seen == [{"config": ".", "entry": None, "output": "dist", "verbose": expected}]
