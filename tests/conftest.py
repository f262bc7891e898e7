"""Shared test fixtures and helpers for markdown-image-inliner tests."""

from __future__ import annotations

import base64
import io
import logging
import re
import struct
import zlib
from pathlib import Path
from typing import Mapping, Optional

import pytest
from PIL import Image

from markdown_image_inliner.exceptions import FetchError
from markdown_image_inliner.http_client import FetchedResource, HttpClient

SVG_MARKUP = (
    '<svg xmlns="http://www.w3.org/2000/svg" width="100" height="100">'
    '<rect width="10" height="10"/>'
    '<circle cx="50" cy="50" r="40" stroke="green" stroke-width="4" fill="yellow" />'
    '</svg>'
)

DATA_URL_RE = re.compile(r"data:(?P<mime>[^;]+);base64,(?P<payload>[A-Za-z0-9+/=]+)")


def make_image_bytes(fmt: str, size: tuple[int, int] = (1, 1), mode: str = "RGB",
                     color=(255, 0, 0)) -> bytes:
    """Encode a solid-colour image with Pillow.

    Args:
        fmt: Pillow format name (``PNG``, ``JPEG``, ``GIF``, ``PPM``).
        size: Width and height in pixels.
        mode: Pillow image mode.
        color: Fill colour.
    """
    if mode == "RGBA" and len(color) == 3:
        color = (*color, 128)
    img = Image.new(mode, size, color)
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


def make_oversized_png(width: int = 20000, height: int = 20000) -> bytes:
    """A tiny PNG whose IHDR declares a huge 8-bit RGB image."""
    def chunk(kind: bytes, body: bytes) -> bytes:
        return struct.pack(">I", len(body)) + kind + body + struct.pack(">I", zlib.crc32(kind + body))

    ihdr = struct.pack(">IIBBBBB", width, height, 8, 2, 0, 0, 0)
    return (
        b"\x89PNG\r\n\x1a\n"
        + chunk(b"IHDR", ihdr)
        + chunk(b"IDAT", zlib.compress(b"\x00"))
        + chunk(b"IEND", b"")
    )


def decode_data_urls(text: str) -> list[tuple[str, bytes]]:
    """Return ``(mime, decoded bytes)`` for every data URL in *text*."""
    return [
        (m.group("mime"), base64.b64decode(m.group("payload")))
        for m in DATA_URL_RE.finditer(text)
    ]


def image_size(data: bytes) -> tuple[int, int]:
    return Image.open(io.BytesIO(data)).size


class FakeHttpClient(HttpClient):
    """In-memory HttpClient: maps URL to (bytes, headers); anything else fails."""

    def __init__(self, resources: Optional[Mapping[str, tuple[bytes, dict]]] = None):
        self.resources = dict(resources or {})
        self.requested: list[str] = []

    def fetch(self, url: str) -> FetchedResource:
        self.requested.append(url)
        if url not in self.resources:
            raise FetchError(f"failed to download {url}: HTTP 404")
        content, headers = self.resources[url]
        return FetchedResource(content, headers)


@pytest.fixture
def jpeg_bytes() -> bytes:
    return make_image_bytes("JPEG")


@pytest.fixture
def png_bytes() -> bytes:
    return make_image_bytes("PNG", color=(0, 255, 0))


@pytest.fixture
def image_dir(tmp_path: Path, jpeg_bytes: bytes, png_bytes: bytes) -> Path:
    """Directory with small test.jpg / test.png / test.svg / big.png / art.ppm files."""
    (tmp_path / "test.jpg").write_bytes(jpeg_bytes)
    (tmp_path / "test.png").write_bytes(png_bytes)
    (tmp_path / "test.svg").write_text(SVG_MARKUP, encoding="utf-8")
    (tmp_path / "big.png").write_bytes(make_image_bytes("PNG", size=(800, 400)))
    (tmp_path / "wide.jpg").write_bytes(make_image_bytes("JPEG", size=(200, 100)))
    (tmp_path / "art.ppm").write_bytes(make_image_bytes("PPM", size=(4, 2)))
    (tmp_path / "anim.gif").write_bytes(make_image_bytes("GIF", size=(40, 20), mode="P", color=1))
    (tmp_path / "notes.txt").write_text("not an image", encoding="utf-8")
    return tmp_path


@pytest.fixture(autouse=True)
def _restore_package_logger():
    """Undo LoggerSetup changes so caplog keeps seeing package records."""
    logger = logging.getLogger("markdown_image_inliner")
    handlers, level, propagate = logger.handlers[:], logger.level, logger.propagate
    yield
    for handler in logger.handlers[:]:
        if handler not in handlers:
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(level)
    logger.propagate = propagate
