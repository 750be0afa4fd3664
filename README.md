# picamio

Still-image writers and video stream outputs for camera frames.

`picamio` takes frames from a camera pipeline and writes them somewhere
useful:

- **Still images**: BMP (`picamio.bmp`), PNG (`picamio.png`), raw YUV420 or
  RGB dumps (`picamio.yuv`) and DNG raw files (`picamio.dng`). DNG files can
  be made from packed 10/12-bit, 16-bit or compressed Bayer data, unpacked by
  `picamio.dng_unpack`.
- **Stream outputs**: the `Output` base class (`picamio.output`), plain or
  segmented files (`FileOutput` in `picamio.file_output`) and an in-memory
  ring buffer that is written to disk on close (`CircularOutput` in
  `picamio.circular_output`, built on `CircularBuffer` in
  `picamio.circular_buffer`).

Frame geometry and settings are described by the types in
`picamio.options`: `StreamInfo`, `PixelFormat`, `StillOptions`,
`VideoOptions` and `Platform`.

## Installation

```
pip install picamio
```

To run the tests:

```
pip install "picamio[test]"
pytest
```

## Still images

```python
from picamio.options import PixelFormat, StillOptions, StreamInfo
from picamio.bmp import bmp_save

info = StreamInfo(width=64, height=48, stride=192, pixel_format=PixelFormat.RGB888)
frame = bytes(info.stride * info.height)
bmp_save(frame, info, "frame.bmp", StillOptions())
```

- `bmp_encode` / `bmp_save` take an `RGB888` buffer and write a top-down
  24-bit BMP, rows padded to four bytes.
- `png_encode` / `png_save` take a `BGR888` buffer and write an 8-bit RGB
  PNG.
- `yuv_encode` / `yuv_save` write raw data. `YUV420` and `YUYV` frames are
  written as planar YUV420 and need `options.encoding == "yuv420"` and an
  even width and height. `RGB888`, `BGR888`, `RGB161616` and `BGR161616`
  frames need the encoding `"rgb24"` or `"rgb48"`; the row padding of the
  stride is dropped.
- `dng_save(data, info, metadata, filename, cam_model, options)` writes a
  DNG with a small greyscale thumbnail. `metadata` is a dictionary that may
  hold `SensorBlackLevels`, `ExposureTime`, `AnalogueGain`, `ColourGains`,
  `ColourCorrectionMatrix` and `LensPosition`; missing values fall back to
  defaults. `bayer_format_for` tells which pixel formats are accepted.

For BMP, PNG and raw files, a filename of `"-"` writes to standard output.
Errors in format or geometry raise `ValueError`.

## Stream outputs

```python
from picamio.options import VideoOptions
from picamio.file_output import FileOutput

with FileOutput(VideoOptions(output="clip%04d.h264", segment=10000)) as out:
    for timestamp_us, data, keyframe in encoded_frames():
        out.output_ready(data, timestamp_us, keyframe)
```

Every output goes through `Output.output_ready(data, timestamp_us, keyframe)`:

- Output starts at the first keyframe. `signal()` toggles between running
  and paused; after resuming, output waits for the next keyframe and keeps
  timestamps continuous across the pause. `options.pause` starts paused.
- `options.save_pts` names a file that receives each timestamp in
  milliseconds, after a `# timecode format v2` line.
- `options.metadata` names a file (or `"-"` for standard output) that
  receives each frame's metadata, queued with `metadata_ready`, as `json`
  or `txt` according to `options.metadata_format`.

`FileOutput` writes to `options.output`, or to standard output for `"-"`.
The name may hold a %-style integer directive that receives a file counter
(wrapped at `options.wrap`). A new file is started at the first keyframe
after `options.segment` milliseconds, or on every resume when
`options.split` is set.

`CircularOutput` keeps the most recent frames in a ring buffer of
`options.circular` megabytes and, when closed, writes them to
`options.output` starting at the first keyframe it still holds.

## What it does not do

The package does not encode video: there are no H.264 or MJPEG encoders,
and frames must arrive already encoded. It does not write JPEG files or
EXIF data, does not stream over the network, and has no function that
picks an output from the options; choose `FileOutput`, `CircularOutput` or
`Output` yourself. It has no command-line program.