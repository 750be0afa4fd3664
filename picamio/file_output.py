"""Write the video stream to one or more files."""

from __future__ import annotations

import logging
import sys
from typing import BinaryIO

from .options import VideoOptions
from .output import Output, OutputFlag

logger = logging.getLogger(__name__)


def _format_filename(pattern: str, count: int) -> str:
    try:
        return pattern % count
    except TypeError:
        try:
            return pattern % ()
        except (TypeError, ValueError) as exc:
            raise ValueError(f"failed to generate filename from {pattern}") from exc
    except ValueError as exc:
        raise ValueError(f"failed to generate filename from {pattern}") from exc


class FileOutput(Output):
    """Writes buffers to a file, starting new files for segments or split recordings.

    The output name may hold a %-style integer directive that receives a file counter.
    """

    def __init__(self, options: VideoOptions) -> None:
        super().__init__(options)
        self._fp: BinaryIO | None = None
        self._owns_fp = False
        self._count = 0
        self._file_start_time_ms = 0

    def output_buffer(self, data: bytes, timestamp_us: int, flags: OutputFlag) -> None:
        options = self._options
        segment_full = (
            options.segment
            and flags & OutputFlag.KEYFRAME
            and timestamp_us // 1000 - self._file_start_time_ms > options.segment
        )
        restarted = options.split and flags & OutputFlag.RESTART
        if self._fp is None or segment_full or restarted:
            self._close_file()
            self._open_file(timestamp_us)

        logger.debug("FileOutput: output buffer size %d", len(data))
        if self._fp is not None and len(data):
            self._fp.write(data)
            if options.flush:
                self._fp.flush()

    def _open_file(self, timestamp_us: int) -> None:
        output = self._options.output
        if output == "-":
            self._fp = sys.stdout.buffer
            self._owns_fp = False
        elif output:
            filename = _format_filename(output, self._count)
            self._count += 1
            if self._options.wrap:
                self._count %= self._options.wrap
            self._fp = open(filename, "wb")
            self._owns_fp = True
            logger.debug("FileOutput: opened output file %s", filename)
            self._file_start_time_ms = timestamp_us // 1000

    def _close_file(self) -> None:
        if self._fp is None:
            return
        if self._options.flush or not self._owns_fp:
            self._fp.flush()
        if self._owns_fp:
            self._fp.close()
        self._fp = None

    def close(self) -> None:
        """Close the current file and the base outputs."""
        self._close_file()
        super().close()