import io

import numpy as np
import pytest
from PIL import Image

from picamio.options import PixelFormat, StillOptions, StreamInfo
from picamio.png import png_encode, png_save

WIDTH, HEIGHT, STRIDE = 5, 4, 16


def _frame():
    rng = np.random.default_rng(1)
    frame = rng.integers(0, 256, size=(HEIGHT, STRIDE), dtype=np.uint8)
    return frame


INFO = StreamInfo(width=WIDTH, height=HEIGHT, stride=STRIDE, pixel_format=PixelFormat.BGR888)


def test_round_trip_through_pillow():
    frame = _frame()
    encoded = png_encode(frame.tobytes(), INFO)
    assert encoded[:8] == b"\x89PNG\r\n\x1a\n"
    image = Image.open(io.BytesIO(encoded))
    assert image.mode == "RGB"
    assert image.size == (WIDTH, HEIGHT)
    decoded = np.asarray(image).reshape(HEIGHT, WIDTH * 3)
    assert np.array_equal(decoded, frame[:, : WIDTH * 3])


def test_wrong_pixel_format():
    info = StreamInfo(width=WIDTH, height=HEIGHT, stride=STRIDE, pixel_format=PixelFormat.RGB888)
    with pytest.raises(ValueError, match="BGR"):
        png_encode(_frame().tobytes(), info)


def test_short_buffer():
    with pytest.raises(ValueError):
        png_encode(_frame().tobytes()[:20], INFO)


def test_save_writes_encoding(tmp_path):
    data = _frame().tobytes()
    target = tmp_path / "out.png"
    png_save(data, INFO, str(target), StillOptions(encoding="png"))
    assert target.read_bytes() == png_encode(data, INFO)