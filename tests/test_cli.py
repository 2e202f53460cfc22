"""
Tests for the qrcanvas command line.
"""

import xml.etree.ElementTree as ET

import pytest

from qrcanvas.cli import build_parser, main, url_hostname


class TestUrlHostname:
    @pytest.mark.parametrize("text,host", [
        ("https://example.com/path", "example.com"),
        ("http://sub.example.org", "sub.example.org"),
        ("example.com", "example.com"),
        ("hello world", None),
        ("just-text", None),
    ])
    def test_hostname(self, text, host):
        assert url_hostname(text) == host


class TestGenerateCommand:
    """Test cases for `qrcanvas generate`."""

    def test_svg_from_extension(self, tmp_path, capsys):
        out = tmp_path / "code.svg"

        main(["generate", "hello", "-o", str(out), "-s", "200"])

        root = ET.fromstring(out.read_text(encoding="utf-8"))
        assert root.get("viewBox") == "0 0 200 200"
        captured = capsys.readouterr().out
        assert f"Generated: {out}" in captured
        assert "URL:" not in captured

    def test_png_with_url_preview(self, tmp_path, capsys):
        out = tmp_path / "code.png"

        main(["generate", "https://example.com/a", "-o", str(out), "--encoder", "segno", "-e", "H"])

        assert out.read_bytes().startswith(b"\x89PNG")
        captured = capsys.readouterr().out
        assert "URL:       example.com" in captured
        assert "ECC H" in captured

    def test_broken_logo_prints_warning(self, tmp_path, capsys, broken_logo):
        logo = tmp_path / "logo.png"
        logo.write_bytes(broken_logo)
        out = tmp_path / "code.png"

        main(["generate", "hello", "-o", str(out), "--logo", str(logo)])

        assert out.exists()
        assert "  Warning: Logo skipped" in capsys.readouterr().out

    def test_size_too_small(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["generate", "hello", "-o", str(tmp_path / "x.png"), "-s", "8"])

        assert exc.value.code == 2
        err_lines = capsys.readouterr().err.strip().splitlines()
        assert err_lines[-1].startswith("Error: Target size 8px")

    def test_missing_logo_prints_warning(self, tmp_path, capsys):
        out = tmp_path / "code.png"

        main(["generate", "hello", "-o", str(out), "--logo", str(tmp_path / "gone.png")])

        assert out.exists()
        assert "  Warning: Logo skipped: Error reading logo file" in capsys.readouterr().out

    def test_format_must_match_extension(self, tmp_path):
        out = tmp_path / "code.png"

        with pytest.raises(SystemExit) as exc:
            main(["generate", "hello", "-o", str(out), "--format", "svg"])

        assert exc.value.code == 2
        assert not out.exists()

    def test_verify_rejects_svg_before_writing(self, tmp_path):
        out = tmp_path / "code.svg"

        with pytest.raises(SystemExit) as exc:
            main(["generate", "hello", "-o", str(out), "--verify"])

        assert exc.value.code == 2
        assert not out.exists()

    def test_bad_color(self, tmp_path):
        with pytest.raises(SystemExit) as exc:
            main(["generate", "hello", "-o", str(tmp_path / "x.png"), "--fg", "black"])
        assert exc.value.code == 2


class TestParser:
    def test_no_command(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main([])
        assert exc.value.code == 1

    def test_generate_defaults(self):
        args = build_parser().parse_args(["generate", "hello"])

        assert args.size == 256
        assert args.ecc == "M"
        assert args.format is None
        assert args.encoder == "qrcode"

    def test_rejects_unknown_ecc(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["generate", "hello", "-e", "X"])
