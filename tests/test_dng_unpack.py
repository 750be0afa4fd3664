import numpy as np
import pytest

from picamio.dng_unpack import (
    dequantize,
    postprocess,
    sub_block,
    uncompress,
    unpack_10bit,
    unpack_12bit,
    unpack_16bit,
)
from picamio.options import PixelFormat, StreamInfo


def pack10(values, width, stride):
    out = bytearray()
    for row in values:
        line = bytearray()
        padded = list(row) + [0] * (-len(row) % 4)
        for i in range(0, len(padded), 4):
            g = padded[i : i + 4]
            line += bytes(v >> 2 for v in g)
            line.append(sum((v & 3) << (2 * k) for k, v in enumerate(g)))
        out += line + bytes(stride - len(line))
    return bytes(out)


def pack12(values, stride):
    out = bytearray()
    for row in values:
        line = bytearray()
        padded = list(row) + [0] * (len(row) % 2)
        for i in range(0, len(padded), 2):
            a, b = padded[i], padded[i + 1]
            line += bytes([a >> 4, b >> 4, (a & 15) | ((b & 15) << 4)])
        out += line + bytes(stride - len(line))
    return bytes(out)


@pytest.mark.parametrize("width", [4, 6, 8])
def test_unpack_10bit_round_trip(width):
    rng = np.random.default_rng(1)
    values = rng.integers(0, 1024, size=(3, width))
    stride = 16
    info = StreamInfo(width, 3, stride, PixelFormat.SRGGB10_CSI2P)
    out = unpack_10bit(pack10(values.tolist(), width, stride), info)
    assert out.shape == (3, width)
    assert np.array_equal(out, values)


def test_unpack_10bit_pinned():
    info = StreamInfo(4, 1, 5, PixelFormat.SRGGB10_CSI2P)
    assert unpack_10bit(bytes([1, 2, 3, 4, 0b11100100]), info).tolist() == [[4, 9, 14, 19]]


@pytest.mark.parametrize("width", [2, 5])
def test_unpack_12bit_round_trip(width):
    rng = np.random.default_rng(2)
    values = rng.integers(0, 4096, size=(2, width))
    info = StreamInfo(width, 2, 12, PixelFormat.SRGGB12_CSI2P)
    assert np.array_equal(unpack_12bit(pack12(values.tolist(), 12), info), values)


def test_unpack_16bit_round_trip():
    values = np.arange(12, dtype=np.uint16).reshape(3, 4) * 1000
    stride = 10
    data = b"".join(r.tobytes() + bytes(2) for r in values)
    info = StreamInfo(4, 3, stride, PixelFormat.SRGGB16)
    assert np.array_equal(unpack_16bit(data, info), values)


def test_unpack_short_buffer_raises():
    with pytest.raises(ValueError):
        unpack_16bit(bytes(4), StreamInfo(4, 2, 8, PixelFormat.SRGGB16))


def test_postprocess_offset_and_clamp():
    assert postprocess(0) == 2048
    assert postprocess(0xFFFF) == 0xFFFF


@pytest.mark.parametrize("mode", [0, 1, 2, 3])
def test_dequantize_zero_and_monotonic(mode):
    assert dequantize(0, mode) == 0
    values = [dequantize(q, mode) for q in range(200)]
    assert values == sorted(values)
    assert max(values) <= 0xFFFF


def test_sub_block_gives_four_bounded_samples():
    for w in (0, 1, 2, 3, 0xFFFFFFFF, 0x12345678):
        out = sub_block(w)
        assert len(out) == 4
        assert all(0 <= v <= 0xFFFF for v in out)


def test_uncompress_shape_and_offset():
    info = StreamInfo(10, 2, 16, PixelFormat.RGGB_PISP_COMP1)
    out = uncompress(bytes(range(32)), info)
    assert out.shape == (2, 16)
    assert int(out.min()) >= 2048