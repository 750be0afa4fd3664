"""Encode an RGB image as PNG."""

from __future__ import annotations

import io
import logging
import sys

from PIL import Image

from .options import PixelFormat, StillOptions, StreamInfo

logger = logging.getLogger(__name__)


def _rows(data: bytes, stride: int, length: int, count: int) -> list[bytes]:
    view = memoryview(data).cast("B")
    if count and len(view) < stride * (count - 1) + length:
        raise ValueError("buffer too small for image")
    return [view[row * stride : row * stride + length].tobytes() for row in range(count)]


def png_encode(data: bytes, info: StreamInfo) -> bytes:
    """Return an 8-bit RGB PNG of a BGR888 buffer (red first in memory)."""
    if info.pixel_format is not PixelFormat.BGR888:
        raise ValueError("pixel format for png should be BGR")
    if info.width == 0 or info.height == 0:
        raise ValueError("image must not be empty")
    pixels = b"".join(_rows(data, info.stride, info.width * 3, info.height))
    image = Image.frombytes("RGB", (info.width, info.height), pixels)
    out = io.BytesIO()
    # Low compression gets most of the saving for far less time.
    image.save(out, format="PNG", compress_level=1)
    return out.getvalue()


def _write(filename: str, payload: bytes) -> None:
    if filename == "-":
        sys.stdout.buffer.write(payload)
        sys.stdout.buffer.flush()
    else:
        with open(filename, "wb") as fp:
            fp.write(payload)


def png_save(data: bytes, info: StreamInfo, filename: str, options: StillOptions) -> None:
    """Write a BGR888 buffer as a PNG file; "-" writes to standard output."""
    payload = png_encode(data, info)
    _write(filename, payload)
    logger.debug("Wrote PNG file of %d bytes", len(payload))