"""
Tests for artifact export: files, data URLs and clipboard payloads.
"""

import base64
from datetime import datetime, timedelta, timezone

import pytest
from PIL import Image

from qrcanvas.artifact import RasterArtifact, VectorArtifact
from qrcanvas.config import OutputFormat
from qrcanvas.errors import ExportFailure
from qrcanvas.export import (
    ClipboardExporter,
    FileExporter,
    clipboard_payload,
    default_filename,
    save_artifact,
    to_data_url,
)


@pytest.fixture
def raster():
    return RasterArtifact(Image.new("RGB", (32, 32), (255, 255, 255)))


@pytest.fixture
def vector():
    return VectorArtifact(markup='<svg xmlns="http://www.w3.org/2000/svg" width="32" height="32"/>', size=32)


class TestDefaultFilename:
    def test_png(self):
        now = datetime(2026, 10, 18, 9, 52, 0, tzinfo=timezone.utc)
        assert default_filename(OutputFormat.PNG, now) == "qr-2026-10-18T09-52-00.png"

    def test_svg_from_string(self):
        now = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        assert default_filename("svg", now) == "qr-2026-01-02T03-04-05.svg"

    def test_converts_to_utc(self):
        now = datetime(2026, 10, 18, 11, 52, 0, tzinfo=timezone(timedelta(hours=2)))
        assert default_filename("png", now) == "qr-2026-10-18T09-52-00.png"


class TestSaveArtifact:
    """Test cases for save_artifact()."""

    def test_explicit_path(self, tmp_path, raster):
        dest = tmp_path / "nested" / "code.png"

        path = save_artifact(raster, dest)

        assert path == dest
        assert dest.read_bytes().startswith(b"\x89PNG")

    def test_directory_gets_default_name(self, tmp_path, vector):
        path = save_artifact(vector, tmp_path)

        assert path.parent == tmp_path
        assert path.name.startswith("qr-")
        assert path.suffix == ".svg"
        assert path.read_text(encoding="utf-8") == vector.markup

    def test_unwritable_destination(self, tmp_path, raster):
        blocker = tmp_path / "file.txt"
        blocker.write_text("not a directory")

        with pytest.raises(ExportFailure):
            save_artifact(raster, blocker / "code.png")


class TestPayloads:
    def test_data_url_png(self, raster):
        url = to_data_url(raster)

        assert url.startswith("data:image/png;base64,")
        assert base64.b64decode(url.split(",", 1)[1]) == raster.to_bytes()

    def test_data_url_svg(self, vector):
        assert to_data_url(vector).startswith("data:image/svg+xml;base64,")

    def test_clipboard_svg_is_markup(self, vector):
        assert clipboard_payload(vector) == vector.markup

    def test_clipboard_png_is_data_url(self, raster):
        assert clipboard_payload(raster) == to_data_url(raster)


class TestExporters:
    def test_file_exporter(self, tmp_path, raster):
        dest = tmp_path / "out.png"

        assert FileExporter(dest).export(raster) == dest
        assert dest.exists()

    def test_clipboard_exporter_keeps_last_payload(self, raster, vector):
        exporter = ClipboardExporter()

        exporter.export(raster)
        text = exporter.export(vector)

        assert text == vector.markup
        assert exporter.text == vector.markup
