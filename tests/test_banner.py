"""Tests for tern.banner and tern._console output."""

from __future__ import annotations

from pathlib import Path

import pytest

from tern import _console
from tern.banner import print_banner
from tern.config import TernConfig


class TestPrintBanner:
    """print_banner — startup status."""

    def test_dev_banner(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        config = TernConfig(root=tmp_path, port=3000)
        print_banner(config, port=3000, watched=("styles", "pages"), build_ms=12.0)
        err = capsys.readouterr().err
        assert "Tern" in err
        assert "[dev]" in err
        assert "watching: styles, pages" in err
        assert "http://localhost:3000" in err
        assert "was busy" not in err
        assert "in 12ms" in err

    def test_fallback_port_noted(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        config = TernConfig(root=tmp_path, port=3000)
        print_banner(config, port=3001)
        err = capsys.readouterr().err
        assert "http://localhost:3001" in err
        assert "port 3000 was busy" in err

    def test_prod_banner(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        config = TernConfig(root=tmp_path, mode="prod")
        print_banner(config, warnings=["failed stages: styles"])
        err = capsys.readouterr().err
        assert "[prod]" in err
        assert "http://" not in err
        assert "failed stages: styles" in err
        assert str(tmp_path / "dist") in err


class TestConsole:
    """_console — timestamped lines on stderr."""

    @pytest.mark.parametrize("func", [_console.info, _console.success, _console.warn, _console.error])
    def test_writes_to_stderr(self, func: object, capsys: pytest.CaptureFixture[str]) -> None:
        func("hello")  # type: ignore[operator]
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "hello" in captured.err
        assert "[" in captured.err
