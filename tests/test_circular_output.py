import pytest

from picamio.circular_output import CircularOutput
from picamio.options import VideoOptions
from picamio.output import OutputFlag


def test_saved_output_starts_at_first_keyframe(tmp_path):
    path = tmp_path / "out.h264"
    out = CircularOutput(VideoOptions(output=str(path), circular=1))
    a, b, c = b"a" * 5, b"b" * 17, b"c" * 3
    out.output_buffer(a, 0, OutputFlag.NONE)
    out.output_buffer(b, 1000, OutputFlag.KEYFRAME)
    out.output_buffer(c, 2000, OutputFlag.NONE)
    out.close()
    assert path.read_bytes() == b + c


def test_old_frames_are_dropped_when_full(tmp_path):
    path = tmp_path / "out.h264"
    frames = [bytes([i]) * 300000 for i in range(5)]
    with CircularOutput(VideoOptions(output=str(path), circular=1)) as out:
        for i, frame in enumerate(frames):
            out.output_buffer(frame, i * 1000, OutputFlag.KEYFRAME)
    content = path.read_bytes()
    kept = [k for k in range(1, 6) if content == b"".join(frames[-k:])]
    assert len(kept) == 1
    assert 1 <= kept[0] < len(frames)
    assert content.endswith(frames[-1])


def test_frame_larger_than_buffer_raises(tmp_path):
    out = CircularOutput(VideoOptions(output=str(tmp_path / "o"), circular=1))
    with pytest.raises(RuntimeError):
        out.output_buffer(b"x" * (2 << 20), 0, OutputFlag.KEYFRAME)
    out.close()


def test_missing_output_raises():
    with pytest.raises(ValueError):
        CircularOutput(VideoOptions(circular=1))


def test_timestamps_written_on_close(tmp_path):
    pts = tmp_path / "pts.txt"
    out = CircularOutput(VideoOptions(output=str(tmp_path / "o"), circular=1, save_pts=str(pts)))
    out.output_buffer(b"d", 3000, OutputFlag.NONE)
    out.output_buffer(b"k", 5000, OutputFlag.KEYFRAME)
    out.output_buffer(b"d", 7000, OutputFlag.NONE)
    out.close()
    assert pts.read_text().splitlines() == ["# timecode format v2", "5.000", "7.000"]