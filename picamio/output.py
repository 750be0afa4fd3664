"""Base class for video stream outputs, and metadata writers."""

from __future__ import annotations

import enum
import logging
import sys
from collections import deque
from typing import IO, Any, Mapping

from .options import VideoOptions

logger = logging.getLogger(__name__)


class OutputFlag(enum.IntFlag):
    """Flags passed with each buffer to an output."""

    NONE = 0
    KEYFRAME = 1
    RESTART = 2


class _State(enum.Enum):
    DISABLED = 0
    WAITING_KEYFRAME = 1
    RUNNING = 2


class Output:
    """An output that discards buffers; subclasses decide where they go.

    Handles pausing, waiting for keyframes, continuous timestamps after a pause,
    timestamp files and per-frame metadata.
    """

    def __init__(self, options: VideoOptions) -> None:
        self._options = options
        self._timestamps_file: IO[str] | None = None
        self._state = _State.WAITING_KEYFRAME
        self._time_offset = 0
        self._last_timestamp = 0
        self._metadata_stream: IO[str] = sys.stdout
        self._metadata_file: IO[str] | None = None
        self._metadata_started = False
        self._metadata_queue: deque[Mapping[str, Any]] = deque()
        self._closed = False

        if options.save_pts:
            self._timestamps_file = open(options.save_pts, "w")
            self._timestamps_file.write("# timecode format v2\n")
        if options.metadata and options.metadata != "-":
            self._metadata_file = open(options.metadata, "w")
            self._metadata_stream = self._metadata_file
            start_metadata_output(self._metadata_stream, options.metadata_format)

        self._enabled = not options.pause

    def signal(self) -> None:
        """Toggle between enabled and paused."""
        self._enabled = not self._enabled

    def output_ready(self, data: bytes, timestamp_us: int, keyframe: bool) -> None:
        """Accept an encoded buffer, passing it on when output is running."""
        flags = OutputFlag.KEYFRAME if keyframe else OutputFlag.NONE
        if not self._enabled:
            self._state = _State.DISABLED
        elif self._state is _State.DISABLED:
            self._state = _State.WAITING_KEYFRAME
        if self._state is _State.WAITING_KEYFRAME and keyframe:
            self._state = _State.RUNNING
            flags |= OutputFlag.RESTART
        if self._state is not _State.RUNNING:
            return

        # Keep timestamps continuous across a pause.
        if flags & OutputFlag.RESTART:
            self._time_offset = timestamp_us - self._last_timestamp
        self._last_timestamp = timestamp_us - self._time_offset

        self.output_buffer(data, self._last_timestamp, flags)

        if self._timestamps_file is not None:
            self.timestamp_ready(self._last_timestamp)

        if self._options.metadata and self._metadata_queue:
            metadata = self._metadata_queue.popleft()
            write_metadata(
                self._metadata_stream,
                self._options.metadata_format,
                metadata,
                not self._metadata_started,
            )
            self._metadata_started = True

    def metadata_ready(self, metadata: Mapping[str, Any]) -> None:
        """Queue the metadata belonging to the next buffer."""
        if not self._options.metadata:
            return
        self._metadata_queue.append(metadata)

    def output_buffer(self, data: bytes, timestamp_us: int, flags: OutputFlag) -> None:
        """Deliver a buffer; this base output drops it."""

    def timestamp_ready(self, timestamp: int) -> None:
        """Append a timestamp in milliseconds to the timestamp file."""
        if self._timestamps_file is None:
            return
        sign = "-" if timestamp < 0 else ""
        whole, frac = divmod(abs(timestamp), 1000)
        self._timestamps_file.write(f"{sign}{whole}.{frac:03d}\n")
        if self._options.flush:
            self._timestamps_file.flush()

    def close(self) -> None:
        """Finish the timestamp and metadata outputs."""
        if self._closed:
            return
        self._closed = True
        if self._timestamps_file is not None:
            self._timestamps_file.close()
            self._timestamps_file = None
        if self._options.metadata:
            stop_metadata_output(self._metadata_stream, self._options.metadata_format)
            self._metadata_stream.flush()
        if self._metadata_file is not None:
            self._metadata_file.close()
            self._metadata_file = None

    def __enter__(self) -> "Output":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


def _control_to_string(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return "[ " + ", ".join(_control_to_string(item) for item in value) + " ]"
    return str(value)


def start_metadata_output(stream: IO[str], fmt: str) -> None:
    """Write whatever opens a metadata document in the given format."""
    if fmt == "json":
        stream.write("[\n")


def write_metadata(stream: IO[str], fmt: str, metadata: Mapping[str, Any], first_write: bool) -> None:
    """Write one frame's metadata as text lines or as a JSON object."""
    if fmt == "txt":
        for name, value in metadata.items():
            stream.write(f"{name}={_control_to_string(value)}\n")
        stream.write("\n")
        return

    if not first_write:
        stream.write(",\n")
    stream.write("{")
    first_done = False
    for name, value in metadata.items():
        text = _control_to_string(value)
        quote = '"' if "/" in text else ""
        stream.write(("," if first_done else "") + "\n" + f'    "{name}": {quote}{text}{quote}')
        first_done = True
    stream.write("\n}")


def stop_metadata_output(stream: IO[str], fmt: str) -> None:
    """Write whatever closes a metadata document in the given format."""
    if fmt == "json":
        stream.write("\n]\n")