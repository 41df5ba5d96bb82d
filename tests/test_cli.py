"""Tests for the command line entry point.

Run: pytest tests/test_cli.py -v
"""
import argparse

import pytest

from plotgen.cli import main, parse_param


class TestParseParam:
    """key=value parsing."""

    def test_json_values(self):
        """Numbers, booleans and lists are decoded."""
        assert parse_param("resolution=420") == ("resolution", 420)
        assert parse_param("close_lines=true") == ("close_lines", True)
        assert parse_param("scale=0.5") == ("scale", 0.5)

    def test_plain_strings(self):
        """Undecodable values stay strings."""
        assert parse_param("render_mode=points") == ("render_mode", "points")

    def test_missing_equals(self):
        """A bare word is rejected."""
        with pytest.raises(argparse.ArgumentTypeError):
            parse_param("resolution")


class TestMain:
    """End to end rendering."""

    def test_writes_file(self, tmp_path):
        """--out writes an SVG document."""
        out = tmp_path / "out.svg"
        argv = ["--type", "lissajous", "--seed", "5", "--param", "resolution=120", "--out", str(out)]
        assert main(argv) == 0
        text = out.read_text(encoding="utf-8")
        assert text.startswith("<svg")
        assert text.count("<path") == 1

    def test_deterministic(self, tmp_path):
        """The same arguments render the same file."""
        argv = ["--type", "spiral", "--seed", "8", "--param", "loops=3", "--optimize"]
        first, second = tmp_path / "a.svg", tmp_path / "b.svg"
        main(argv + ["--out", str(first)])
        main(argv + ["--out", str(second)])
        assert first.read_text(encoding="utf-8") == second.read_text(encoding="utf-8")

    def test_stdout(self, capsys):
        """Without --out the document goes to stdout."""
        assert main(["--type", "grid", "--seed", "2", "--param", "rows=3", "--param", "cols=3", "--precision", "1"]) == 0
        assert capsys.readouterr().out.startswith("<svg")
