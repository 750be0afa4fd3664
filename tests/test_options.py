import dataclasses

import pytest

from picamio.options import PixelFormat, StillOptions, StreamInfo, VideoOptions


def test_stream_info_rejects_negative_width():
    with pytest.raises(ValueError):
        StreamInfo(width=-1, height=4, stride=4)


def test_stream_info_is_immutable():
    info = StreamInfo(width=8, height=4, stride=8, pixel_format=PixelFormat.YUYV)
    with pytest.raises(dataclasses.FrozenInstanceError):
        info.width = 16  # type: ignore[misc]
    assert info.pixel_format is PixelFormat.YUYV


def test_video_options_reject_negative_circular():
    with pytest.raises(ValueError):
        VideoOptions(circular=-1)


def test_video_options_reject_bad_quality():
    with pytest.raises(ValueError):
        VideoOptions(quality=101)


def test_still_options_exif_lists_are_independent():
    first = StillOptions()
    second = StillOptions()
    first.exif.append("IFD0.Artist=someone")
    assert second.exif == []
    assert first.exif == ["IFD0.Artist=someone"]