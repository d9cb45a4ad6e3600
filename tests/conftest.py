"""Shared fixtures for building test images and .fig containers."""

import io
import zipfile
from pathlib import Path

import pytest
from PIL import Image

SVG_BYTES = (
    b'<?xml version="1.0"?>'
    b'<svg xmlns="http://www.w3.org/2000/svg" width="10" height="10">'
    b'<rect width="10" height="10"/></svg>'
)


def image_bytes(size=(64, 32), format="PNG", mode="RGB", color=(200, 30, 30)) -> bytes:
    """Encode a solid-color image in memory."""
    if mode == "RGBA" and len(color) == 3:
        color = color + (128,)
    if mode == "P":
        img = Image.new("RGB", size, color).convert("P")
    else:
        img = Image.new(mode, size, color)
    buffer = io.BytesIO()
    img.save(buffer, format=format)
    return buffer.getvalue()


def write_fig(path: Path, members: dict) -> Path:
    """Write a ZIP container with the given {member name: bytes} members."""
    with zipfile.ZipFile(path, 'w', compression=zipfile.ZIP_DEFLATED) as zf:
        for name, data in members.items():
            zf.writestr(zipfile.ZipInfo(name), data)
    return path


@pytest.fixture
def make_image():
    """Factory encoding solid-color images, see image_bytes()."""
    return image_bytes


@pytest.fixture
def svg_bytes() -> bytes:
    """An SVG document with an XML declaration and no binary signature."""
    return SVG_BYTES


@pytest.fixture
def png_2000x1000() -> bytes:
    """PNG bytes of a 2000x1000 image."""
    return image_bytes(size=(2000, 1000))


@pytest.fixture
def make_fig(tmp_path):
    """Factory creating a .fig container under tmp_path."""
    def _make(members: dict, name: str = "design.fig") -> Path:
        return write_fig(tmp_path / name, members)
    return _make


@pytest.fixture
def out_dir(tmp_path) -> Path:
    """Output directory path (not created)."""
    return tmp_path / "out"
