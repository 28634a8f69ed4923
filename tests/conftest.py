"""Shared pytest configuration and fixtures."""
from __future__ import annotations

import io
import os

# Provide required env vars before any filterocr module is imported
os.environ.setdefault("OCR_PROVIDER", "mock")
os.environ.setdefault("KEEP_TRANSIENT_COPY", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from PIL import Image, ImageDraw


def make_document_image(width: int = 160, height: int = 64) -> Image.Image:
    """A colored gradient with dark 'text' strokes, enough structure for every filter to matter."""
    img = Image.new("RGB", (width, height))
    draw = ImageDraw.Draw(img)
    for x in range(width):
        v = 40 + int(175 * x / (width - 1))
        draw.line([(x, 0), (x, height - 1)], fill=(v, min(255, v + 20), max(0, v - 30)))
    draw.text((8, 8), "Hello 123", fill=(10, 10, 10))
    draw.rectangle([(8, 40), (60, 48)], fill=(20, 20, 90))
    return img


def to_bytes(img: Image.Image, fmt: str = "PNG") -> bytes:
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def document_image():
    return make_document_image


@pytest.fixture
def document_png() -> bytes:
    return to_bytes(make_document_image())


@pytest.fixture
def document_jpeg() -> bytes:
    return to_bytes(make_document_image(), fmt="JPEG")
