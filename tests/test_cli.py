# Tests for __main__.py
# Created: 2026-10-15

import sys
from unittest.mock import patch

import pytest

from dirpilot import __version__
from dirpilot.__main__ import main, print_tree
from dirpilot.config import Settings


@pytest.fixture
def settings(tmp_path):
    return Settings(file_jail_path=tmp_path, data_dir=tmp_path / "data")


class TestPrintTree:
    async def test_prints_snapshot(self, tmp_path, settings, capsys):
        root = tmp_path / "proj"
        (root / "src").mkdir(parents=True)
        (root / "src" / "a.py").write_text("")
        (root / "node_modules").mkdir()

        assert await print_tree(str(root), settings) == 0
        assert capsys.readouterr().out == "- proj/\n  - src/\n    - a.py\n"

    async def test_missing_directory(self, tmp_path, settings, capsys):
        assert await print_tree(str(tmp_path / "nope"), settings) == 1
        assert "Cannot open" in capsys.readouterr().err


class TestMain:
    def test_version(self, capsys):
        with patch.object(sys, "argv", ["dirpilot", "--version"]), pytest.raises(SystemExit):
            main()
        assert __version__ in capsys.readouterr().out

    def test_serve(self, settings):
        with (
            patch.object(sys, "argv", ["dirpilot", "serve", "--port", "9001", "--root", "/tmp/x"]),
            patch("dirpilot.__main__.get_settings", return_value=settings),
            patch("dirpilot.__main__.setup_logging"),
            patch("dirpilot.api.serve.run_api_server") as run,
        ):
            main()
        run.assert_called_once_with(host="127.0.0.1", port=9001, root="/tmp/x")

    def test_tree_requires_path(self, settings):
        with (
            patch.object(sys, "argv", ["dirpilot", "tree"]),
            patch("dirpilot.__main__.get_settings", return_value=settings),
            patch("dirpilot.__main__.setup_logging"),
            pytest.raises(SystemExit),
        ):
            main()
