from pathlib import Path

import pytest

from picamio.file_output import FileOutput
from picamio.options import VideoOptions


def test_writes_frames_from_first_keyframe(tmp_path):
    path = tmp_path / "out.h264"
    with FileOutput(VideoOptions(output=str(path))) as out:
        out.output_ready(b"early", 0, False)
        out.output_ready(b"key", 1000, True)
        out.output_ready(b"delta", 2000, False)
    assert path.read_bytes() == b"keydelta"


def test_segments_start_on_keyframe(tmp_path):
    pattern = str(tmp_path / "seg%d.h264")
    with FileOutput(VideoOptions(output=pattern, segment=1)) as out:
        out.output_ready(b"A", 0, True)
        out.output_ready(b"B", 1000, False)
        out.output_ready(b"C", 5000, True)
        out.output_ready(b"D", 6000, False)
    assert Path(pattern % 0).read_bytes() == b"AB"
    assert Path(pattern % 1).read_bytes() == b"CD"


def test_wrap_reuses_file_names(tmp_path):
    pattern = str(tmp_path / "seg%d.h264")
    with FileOutput(VideoOptions(output=pattern, segment=1, wrap=2)) as out:
        for i, ts in enumerate((0, 5000, 10000, 15000)):
            out.output_ready(bytes([65 + i]), ts, True)
    assert sorted(tmp_path.iterdir()) == [Path(pattern % 0), Path(pattern % 1)]
    assert Path(pattern % 0).read_bytes() == b"C"
    assert Path(pattern % 1).read_bytes() == b"D"


def test_split_opens_new_file_after_pause(tmp_path):
    pattern = str(tmp_path / "part%d.h264")
    with FileOutput(VideoOptions(output=pattern, split=True)) as out:
        out.output_ready(b"A", 0, True)
        out.signal()
        out.output_ready(b"B", 1000, True)
        out.signal()
        out.output_ready(b"C", 2000, True)
    assert Path(pattern % 0).read_bytes() == b"A"
    assert Path(pattern % 1).read_bytes() == b"C"
    assert not Path(pattern % 2).exists()


def test_flush_makes_data_visible_before_close(tmp_path):
    path = tmp_path / "out.h264"
    out = FileOutput(VideoOptions(output=str(path), flush=True))
    out.output_ready(b"frame", 0, True)
    assert path.read_bytes() == b"frame"
    out.close()


def test_bad_filename_pattern_raises(tmp_path):
    out = FileOutput(VideoOptions(output=str(tmp_path / "bad%q")))
    with pytest.raises(ValueError):
        out.output_ready(b"frame", 0, True)
    out.close()