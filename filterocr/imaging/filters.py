"""Image enhancement ahead of OCR.

The pipeline is a fixed, ordered tuple of named stages:

    grayscale -> normalize -> sharpen -> gamma

Every stage is a pure function of the pixels it receives, so running the
pipeline twice on the same bytes yields the same PNG.
"""
from __future__ import annotations

import io
import logging
from collections.abc import Callable, Sequence

import numpy as np
from PIL import Image, ImageFilter, ImageOps, UnidentifiedImageError

logger = logging.getLogger(__name__)

Stage = Callable[[Image.Image], Image.Image]

SHARPEN_SIGMA = 1.0
SHARPEN_FLAT = 1.0
SHARPEN_JAGGED = 2.0
SHARPEN_THRESHOLD = 2.0
SHARPEN_MAX_BRIGHTEN = 10.0
SHARPEN_MAX_DARKEN = 20.0
GAMMA = 1.2
NORMALIZE_CUTOFF = 1  # percent clipped at each end of the histogram


class ImageDecodeError(ValueError):
    """Raised when uploaded bytes are not a decodable image."""


# ---------------------------------------------------------------------------
# Codec
# ---------------------------------------------------------------------------

def decode_image(data: bytes) -> Image.Image:
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
    except (UnidentifiedImageError, OSError, SyntaxError) as exc:
        raise ImageDecodeError(f"Unable to decode image: {exc}") from exc
    return img


def encode_png(img: Image.Image) -> bytes:
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


# ---------------------------------------------------------------------------
# Stages
# ---------------------------------------------------------------------------

def grayscale(img: Image.Image) -> Image.Image:
    if img.mode in ("RGBA", "LA", "PA") or (img.mode == "P" and "transparency" in img.info):
        # Flatten onto white so transparent regions do not turn black.
        rgba = img.convert("RGBA")
        background = Image.new("RGBA", rgba.size, (255, 255, 255, 255))
        img = Image.alpha_composite(background, rgba)
    return ImageOps.grayscale(img)


def normalize(img: Image.Image) -> Image.Image:
    return ImageOps.autocontrast(_as_8bit(img), cutoff=NORMALIZE_CUTOFF)


def sharpen_delta(
    detail: np.ndarray,
    flat: float = SHARPEN_FLAT,
    jagged: float = SHARPEN_JAGGED,
    threshold: float = SHARPEN_THRESHOLD,
) -> np.ndarray:
    """Map gaussian detail to the amount added back to each pixel.

    The curve is continuous: slope *flat* up to *threshold*, slope *jagged*
    beyond it. Brightening is capped at ``SHARPEN_MAX_BRIGHTEN`` and darkening
    at ``SHARPEN_MAX_DARKEN``.
    """
    magnitude = np.abs(detail)
    curve = np.where(
        magnitude <= threshold,
        flat * magnitude,
        flat * threshold + jagged * (magnitude - threshold),
    )
    return np.clip(np.sign(detail) * curve, -SHARPEN_MAX_DARKEN, SHARPEN_MAX_BRIGHTEN)


def sharpen(
    img: Image.Image,
    sigma: float = SHARPEN_SIGMA,
    flat: float = SHARPEN_FLAT,
    jagged: float = SHARPEN_JAGGED,
    threshold: float = SHARPEN_THRESHOLD,
) -> Image.Image:
    """Gaussian-difference sharpening with separate slopes for smooth and textured areas.

    Detail is the difference between the image and its gaussian blur (std *sigma*);
    ``sharpen_delta`` turns it into the bounded correction.
    """
    img = _as_8bit(img)
    blurred = img.filter(ImageFilter.GaussianBlur(radius=sigma))

    src = np.asarray(img, dtype=np.float32)
    detail = src - np.asarray(blurred, dtype=np.float32)
    delta = sharpen_delta(detail, flat, jagged, threshold)
    out = np.clip(np.rint(src + delta), 0, 255).astype(np.uint8)
    return Image.fromarray(out)


def gamma(img: Image.Image, exponent: float = GAMMA) -> Image.Image:
    """Brighten midtones: out = 255 * (in / 255) ** (1 / exponent)."""
    img = _as_8bit(img)
    table = [round(255 * (v / 255) ** (1 / exponent)) for v in range(256)]
    return img.point(table * len(img.getbands()))


def _as_8bit(img: Image.Image) -> Image.Image:
    if img.mode in ("L", "RGB"):
        return img
    if img.mode in ("1", "I", "I;16", "F"):
        return img.convert("L")
    return img.convert("RGB")


DEFAULT_STAGES: tuple[tuple[str, Stage], ...] = (
    ("grayscale", grayscale),
    ("normalize", normalize),
    ("sharpen", sharpen),
    ("gamma", gamma),
)


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------

class FilterPipeline:
    def __init__(self, stages: Sequence[tuple[str, Stage]] = DEFAULT_STAGES) -> None:
        self._stages = tuple(stages)

    @property
    def stage_names(self) -> tuple[str, ...]:
        return tuple(name for name, _ in self._stages)

    def enhance(self, img: Image.Image) -> Image.Image:
        for _, stage in self._stages:
            img = stage(img)
        return img

    def run(self, data: bytes) -> bytes:
        """Decode *data*, apply every stage in order and return PNG bytes."""
        img = decode_image(data)
        logger.debug(
            "filters_started",
            extra={"mode": img.mode, "width": img.width, "height": img.height},
        )
        return encode_png(self.enhance(img))
