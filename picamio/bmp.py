"""Encode an RGB image as a 24-bit BMP."""

from __future__ import annotations

import logging
import struct
import sys

from .options import PixelFormat, StillOptions, StreamInfo

logger = logging.getLogger(__name__)

_FILE_HEADER = struct.Struct("<2sIHHI")
_IMAGE_HEADER = struct.Struct("<IIiHHIIIIII")
_OFFSET = _FILE_HEADER.size + _IMAGE_HEADER.size


def _rows(data: bytes, stride: int, length: int, count: int) -> list[bytes]:
    view = memoryview(data).cast("B")
    if count and len(view) < stride * (count - 1) + length:
        raise ValueError("buffer too small for image")
    return [view[row * stride : row * stride + length].tobytes() for row in range(count)]


def bmp_encode(data: bytes, info: StreamInfo) -> bytes:
    """Return a top-down 24-bit BMP of an RGB888 buffer."""
    if info.pixel_format is not PixelFormat.RGB888:
        raise ValueError("pixel format for bmp should be RGB")
    line = info.width * 3
    pitch = (line + 3) & ~3  # rows are padded to multiples of 4 bytes
    padding = bytes(pitch - line)
    filesize = _OFFSET + info.height * pitch
    file_header = _FILE_HEADER.pack(b"BM", filesize, 0, 0, _OFFSET)
    # A negative height makes the image come out the right way up.
    image_header = _IMAGE_HEADER.pack(
        _IMAGE_HEADER.size, info.width, -info.height, 1, 24, 0, 0, 100000, 100000, 0, 0
    )
    body = b"".join(row + padding for row in _rows(data, info.stride, line, info.height))
    return file_header + image_header + body


def _write(filename: str, payload: bytes) -> None:
    if filename == "-":
        sys.stdout.buffer.write(payload)
        sys.stdout.buffer.flush()
    else:
        with open(filename, "wb") as fp:
            fp.write(payload)


def bmp_save(data: bytes, info: StreamInfo, filename: str, options: StillOptions) -> None:
    """Write an RGB888 buffer as a BMP file; "-" writes to standard output."""
    payload = bmp_encode(data, info)
    _write(filename, payload)
    logger.debug("Wrote %d bytes to BMP file", len(payload))