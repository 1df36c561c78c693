"""Tests for the command-line interface."""

import io
import json

import pytest
from PIL import Image

from termglyph import cli
from termglyph.core.color import RESET
from termglyph.core.processor import AsciiConverter


@pytest.fixture
def grey_png(tmp_path):
    path = tmp_path / "grey.png"
    Image.new("RGB", (100, 100), (128, 128, 128)).save(str(path))
    return path


class TestCli:
    def test_converts_path_arguments(self, grey_png, capsys):
        code = cli.main([str(grey_png), "-w", "20"])
        out = capsys.readouterr().out
        assert code == 0
        assert out.startswith(RESET)
        assert out.count("\n") == 10
        assert "+" * 20 in out

    def test_reads_paths_from_stdin(self, grey_png, capsys, monkeypatch):
        monkeypatch.setattr("sys.stdin", io.StringIO(f"{grey_png}\n\n{grey_png}\n"))
        code = cli.main(["-w", "10"])
        out = capsys.readouterr().out
        assert code == 0
        assert out.count(RESET) == 4

    def test_continues_after_failure(self, grey_png, tmp_path, capsys):
        missing = tmp_path / "missing.png"
        code = cli.main([str(missing), str(grey_png), "-w", "10"])
        captured = capsys.readouterr()
        assert code == 1
        assert "missing.png" in captured.err
        assert "+" * 10 in captured.out

    def test_bad_color_space(self, grey_png, capsys):
        code = cli.main([str(grey_png), "-c", "--color-space", "12bit"])
        assert code == 2
        assert "Unknown color space" in capsys.readouterr().err

    def test_bad_downscale_mode(self, grey_png, capsys):
        code = cli.main([str(grey_png), "--downscale-mode", "stretch"])
        assert code == 2
        assert "Unknown downscale mode" in capsys.readouterr().err

    def test_rich_alias(self, tmp_path, capsys):
        path = tmp_path / "red.png"
        Image.new("RGB", (40, 40), (255, 0, 0)).save(str(path))
        code = cli.main([str(path), "-r", "-w", "10"])
        out = capsys.readouterr().out
        assert code == 0
        assert "\x1b[38;2;255;0;0m" in out

    def test_color_space_alias(self, tmp_path, capsys):
        path = tmp_path / "red.png"
        Image.new("RGB", (40, 40), (255, 0, 0)).save(str(path))
        cli.main([str(path), "-c", "--cspace", "3", "-w", "10"])
        assert "\x1b[31m" in capsys.readouterr().out

    def test_json_output(self, grey_png, capsys):
        code = cli.main([str(grey_png), "-w", "8", "--json"])
        result = json.loads(capsys.readouterr().out)
        assert code == 0
        assert result["status"] == "success"
        assert result["settings"]["width"] == 8
        assert "+" * 8 in result["output"]

    def test_json_error(self, tmp_path, capsys):
        code = cli.main([str(tmp_path / "nope.png"), "--json"])
        err = json.loads(capsys.readouterr().err)
        assert code == 1
        assert err["status"] == "error"

    def test_unexpected_errors_propagate(self, grey_png, monkeypatch):
        def explode(self, path, width, height):
            raise RuntimeError("bug")

        monkeypatch.setattr(AsciiConverter, "convert_file", explode)
        with pytest.raises(RuntimeError):
            cli.main([str(grey_png), "-w", "10"])

    def test_decode_error_is_reported(self, tmp_path, capsys):
        path = tmp_path / "broken.png"
        path.write_bytes(b"not an image")
        code = cli.main([str(path), "-w", "10"])
        assert code == 1
        assert "broken.png" in capsys.readouterr().err
