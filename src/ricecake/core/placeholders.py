"""Locally rendered stand-in images.

Placeholders replace a single dish whose photo could not be generated,
downloaded or decoded.  They are deterministic: the same name always renders
the same PNG bytes, which keeps trays reproducible and tests exact.
"""

from __future__ import annotations

import io

from PIL import Image, ImageDraw, ImageFont

PLACEHOLDER_SIZE = (512, 512)
PLACEHOLDER_BACKGROUND = (0xF8, 0xF9, 0xFA)
PLACEHOLDER_TEXT = (0x6C, 0x75, 0x7D)
PLACEHOLDER_FONT_SIZE = 24


def encode_png(image: Image.Image) -> bytes:
    """Serialise *image* as PNG bytes."""
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def render_placeholder(name: str) -> Image.Image:
    """Render a light grey tile with *name* centred on it."""
    image = Image.new("RGB", PLACEHOLDER_SIZE, PLACEHOLDER_BACKGROUND)
    draw = ImageDraw.Draw(image)
    font = ImageFont.load_default(size=PLACEHOLDER_FONT_SIZE)
    left, top, right, bottom = draw.textbbox((0, 0), name, font=font)
    x = (PLACEHOLDER_SIZE[0] - (right - left)) // 2 - left
    y = (PLACEHOLDER_SIZE[1] - (bottom - top)) // 2 - top
    draw.text((x, y), name, fill=PLACEHOLDER_TEXT, font=font)
    return image


def create_placeholder(name: str) -> bytes:
    """PNG bytes of :func:`render_placeholder` for *name*."""
    return encode_png(render_placeholder(name))
