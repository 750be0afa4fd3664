"""Keep recent frames in a ring buffer and write them out when closed."""

from __future__ import annotations

import logging
import struct
import sys
from typing import BinaryIO

from .circular_buffer import CircularBuffer
from .options import VideoOptions
from .output import Output, OutputFlag

logger = logging.getLogger(__name__)

_ALIGN = 16
# length, keyframe, timestamp; padded to an aligned size
_HEADER = struct.Struct("<I?3xq")


def _aligned(length: int) -> int:
    return (length + _ALIGN - 1) & ~(_ALIGN - 1)


class CircularOutput(Output):
    """Buffers frames in memory (options.circular megabytes) and saves them on close,
    starting from the first keyframe still held."""

    def __init__(self, options: VideoOptions) -> None:
        self._cb = CircularBuffer(options.circular << 20)
        if not options.output:
            raise ValueError("could not open output file")
        super().__init__(options)
        self._owns_fp = options.output != "-"
        try:
            self._fp: BinaryIO = sys.stdout.buffer if not self._owns_fp else open(options.output, "wb")
        except OSError:
            Output.close(self)
            raise

    def output_buffer(self, data: bytes, timestamp_us: int, flags: OutputFlag) -> None:
        size = len(data)
        pad = (_ALIGN - size) & (_ALIGN - 1)
        while size + pad + _HEADER.size > self._cb.available():
            if self._cb.empty():
                raise RuntimeError("circular buffer too small")
            length, _, _ = _HEADER.unpack(self._cb.read(_HEADER.size))
            self._cb.skip(_aligned(length))
        self._cb.write(_HEADER.pack(size, bool(flags & OutputFlag.KEYFRAME), timestamp_us))
        self._cb.write(data)
        self._cb.pad(pad)

    def timestamp_ready(self, timestamp: int) -> None:
        """Timestamps are written only when the buffer is saved."""

    def close(self) -> None:
        """Write the buffered frames from the first keyframe onwards, then close."""
        if self._closed:
            return
        total = frames = 0
        seen_keyframe = False
        while not self._cb.empty():
            length, keyframe, timestamp = _HEADER.unpack(self._cb.read(_HEADER.size))
            seen_keyframe |= keyframe
            if seen_keyframe:
                self._fp.write(self._cb.read(length))
                self._cb.skip((_ALIGN - length) & (_ALIGN - 1))
                total += length
                if self._timestamps_file is not None:
                    Output.timestamp_ready(self, timestamp)
                frames += 1
            else:
                self._cb.skip(_aligned(length))
        if self._owns_fp:
            self._fp.close()
        else:
            self._fp.flush()
        logger.info("Wrote %d bytes (%d frames)", total, frames)
        super().close()