"""Вспомогательные построители тестовых изображений."""
from __future__ import annotations

import io
from typing import Optional

import numpy as np
from PIL import Image

from chromasplit.models.image_model import PixelBuffer


def image_bytes(image: Image.Image, fmt: str = "PNG", **save_kwargs) -> bytes:
    out = io.BytesIO()
    image.save(out, format=fmt, **save_kwargs)
    return out.getvalue()


def solid_png(rgba, size=(1, 1), mode: str = "RGBA") -> bytes:
    color = tuple(rgba) if mode == "RGBA" else tuple(rgba[:3])
    return image_bytes(Image.new(mode, size, color))


def random_buffer(width: int = 7, height: int = 5, seed: Optional[int] = 0) -> PixelBuffer:
    rng = np.random.default_rng(seed)
    return PixelBuffer(rng.integers(0, 256, size=(height, width, 4), dtype=np.uint8))
