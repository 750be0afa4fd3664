"""Save uncompressed YUV420 or RGB image data."""

from __future__ import annotations

import sys

from .options import PixelFormat, StillOptions, StreamInfo

_RGB_FORMATS = frozenset(
    {PixelFormat.BGR888, PixelFormat.RGB888, PixelFormat.BGR161616, PixelFormat.RGB161616}
)


def _rows(view: memoryview, offset: int, stride: int, length: int, count: int) -> list[bytes]:
    if count and len(view) < offset + stride * (count - 1) + length:
        raise ValueError("buffer too small for image")
    return [view[offset + row * stride : offset + row * stride + length].tobytes() for row in range(count)]


def _require_even(info: StreamInfo) -> None:
    if info.width % 2 or info.height % 2:
        raise ValueError("both width and height must be even")


def _require_yuv420(encoding: str) -> None:
    if encoding != "yuv420":
        raise ValueError(f"output format {encoding} not supported")


def _yuv420_planes(view: memoryview, info: StreamInfo) -> bytes:
    width, height, stride = info.width, info.height, info.stride
    y = _rows(view, 0, stride, width, height)
    u_start = stride * height
    width, height, stride = width // 2, height // 2, stride // 2
    u = _rows(view, u_start, stride, width, height)
    v = _rows(view, u_start + stride * height, stride, width, height)
    return b"".join(y + u + v)


def _yuyv_to_yuv420(view: memoryview, info: StreamInfo) -> bytes:
    rows = _rows(view, 0, info.stride, 2 * info.width, info.height)
    y = b"".join(row[0::2] for row in rows)
    u = b"".join(row[1::4] for row in rows[::2])
    v = b"".join(row[3::4] for row in rows[::2])
    return y + u + v


def yuv_encode(data: bytes, info: StreamInfo, encoding: str) -> bytes:
    """Return the raw bytes to save for a frame: planar YUV420 or packed RGB rows."""
    view = memoryview(data).cast("B")
    fmt = info.pixel_format
    if fmt is PixelFormat.YUYV:
        _require_yuv420(encoding)
        _require_even(info)
        return _yuyv_to_yuv420(view, info)
    if fmt is PixelFormat.YUV420:
        _require_yuv420(encoding)
        _require_even(info)
        return _yuv420_planes(view, info)
    if fmt in _RGB_FORMATS:
        if encoding not in ("rgb24", "rgb48"):
            raise ValueError("encoding should be set to rgb")
        row_bytes = 3 * info.width * (2 if encoding == "rgb48" else 1)
        return b"".join(_rows(view, 0, info.stride, row_bytes, info.height))
    raise ValueError("unrecognised YUV/RGB save format")


def yuv_save(data: bytes, info: StreamInfo, filename: str, options: StillOptions) -> None:
    """Write raw frame data in options.encoding; "-" writes to standard output."""
    payload = yuv_encode(data, info, options.encoding)
    if filename == "-":
        sys.stdout.buffer.write(payload)
        sys.stdout.buffer.flush()
    else:
        with open(filename, "wb") as fp:
            fp.write(payload)