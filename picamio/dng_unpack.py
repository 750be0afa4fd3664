"""Unpack packed and compressed raw Bayer data into 16-bit samples."""

from __future__ import annotations

import numpy as np

from .options import StreamInfo

COMPRESS_OFFSET = 2048
COMPRESS_MODE = 1


def _rows(data: bytes, info: StreamInfo, row_bytes: int) -> np.ndarray:
    buf = np.frombuffer(data, dtype=np.uint8)
    if info.height and buf.size < info.stride * (info.height - 1) + row_bytes:
        raise ValueError("buffer too small for raw image")
    return np.stack(
        [buf[y * info.stride : y * info.stride + row_bytes] for y in range(info.height)]
    ) if info.height else np.zeros((0, row_bytes), dtype=np.uint8)


def unpack_10bit(data: bytes, info: StreamInfo) -> np.ndarray:
    """Unpack CSI-2 packed 10-bit samples (4 pixels in 5 bytes) to a (height, width) array."""
    width = info.width
    groups = (width + 3) // 4
    rows = _rows(data, info, groups * 5).astype(np.uint16).reshape(info.height, groups, 5)
    low = rows[:, :, 4]
    out = np.empty((info.height, groups * 4), dtype=np.uint16)
    for k in range(4):
        out[:, k::4] = (rows[:, :, k] << 2) | ((low >> (2 * k)) & 3)
    return out[:, :width].copy()


def unpack_12bit(data: bytes, info: StreamInfo) -> np.ndarray:
    """Unpack CSI-2 packed 12-bit samples (2 pixels in 3 bytes) to a (height, width) array."""
    width = info.width
    groups = (width + 1) // 2
    rows = _rows(data, info, groups * 3).astype(np.uint16).reshape(info.height, groups, 3)
    low = rows[:, :, 2]
    out = np.empty((info.height, groups * 2), dtype=np.uint16)
    for k in range(2):
        out[:, k::2] = (rows[:, :, k] << 4) | ((low >> (4 * k)) & 15)
    return out[:, :width].copy()


def unpack_16bit(data: bytes, info: StreamInfo) -> np.ndarray:
    """Copy native-order 16-bit samples row by row to a (height, width) array."""
    rows = _rows(data, info, 2 * info.width)
    return rows.copy().view(np.uint16).reshape(info.height, info.width)


def postprocess(a: int) -> int:
    """Apply the fixed post-decompression mapping and offset."""
    if COMPRESS_MODE & 2:
        if COMPRESS_MODE == 3 and a < 0x4000:
            a = a >> 2
        elif a < 0x1000:
            a = a >> 4
        elif a < 0x1800:
            a = (a - 0x800) >> 3
        elif a < 0x3000:
            a = (a - 0x1000) >> 2
        elif a < 0x6000:
            a = (a - 0x2000) >> 1
        elif a < 0xC000:
            a = a - 0x4000
        else:
            a = 2 * (a - 0x8000)
    return min(0xFFFF, a + COMPRESS_OFFSET)


def dequantize(q: int, qmode: int) -> int:
    """Expand a quantised sample according to its quantisation mode."""
    if qmode == 0:
        return 16 * q if q < 320 else 32 * (q - 160)
    if qmode == 1:
        return 64 * q
    if qmode == 2:
        return 128 * q
    return 256 * q if q < 94 else min(0xFFFF, 512 * (q - 47))


def sub_block(w: int) -> tuple[int, int, int, int]:
    """Decode one 32-bit word into four samples (every other pixel of a block of 8)."""
    qmode = w & 3
    if qmode < 3:
        field0 = (w >> 2) & 511
        field1 = (w >> 11) & 127
        field2 = (w >> 18) & 127
        field3 = (w >> 25) & 127
        if qmode == 2 and field0 >= 384:
            q1 = field0
            q2 = field1 + 384
        else:
            q1 = field0 if field1 >= 64 else field0 + 64 - field1
            q2 = field0 + field1 - 64 if field1 >= 64 else field0
        p1 = max(0, q1 - 64)
        p2 = max(0, q2 - 64)
        if qmode == 2:
            p1 = min(384, p1)
            p2 = min(384, p2)
        q = (p1 + field2, q1, q2, p2 + field3)
    else:
        pack0 = (w >> 2) & 32767
        pack1 = (w >> 17) & 32767
        q = (
            (pack0 & 15) + 16 * ((pack0 >> 8) // 11),
            (pack0 >> 4) % 176,
            (pack1 & 15) + 16 * ((pack1 >> 8) // 11),
            (pack1 >> 4) % 176,
        )
    return tuple(dequantize(value, qmode) for value in q)  # type: ignore[return-value]


def uncompress(data: bytes, info: StreamInfo) -> np.ndarray:
    """Decompress PiSP-compressed data to a (height, width rounded up to 8) array."""
    padded = (info.width + 7) & ~7
    blocks = padded // 8
    rows = _rows(data, info, blocks * 8)
    out = np.empty((info.height, padded), dtype=np.uint16)
    for y, row in enumerate(rows):
        words = row.view("<u4").reshape(blocks, 2)
        for b, (w0, w1) in enumerate(words.tolist()):
            block = [0] * 8
            block[0::2] = sub_block(w0)
            block[1::2] = sub_block(w1)
            out[y, b * 8 : b * 8 + 8] = [postprocess(v) for v in block]
    return out