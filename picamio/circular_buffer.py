"""A fixed-size byte ring buffer."""

from __future__ import annotations


class CircularBuffer:
    """Ring buffer of bytes with separate read and write positions."""

    def __init__(self, size: int) -> None:
        if size <= 0:
            raise ValueError("circular buffer size must be positive")
        self._size = size
        self._buf = bytearray(size)
        self._rptr = 0
        self._wptr = 0

    def empty(self) -> bool:
        """Return True when nothing is waiting to be read."""
        return self._rptr == self._wptr

    def available(self) -> int:
        """Return the number of bytes that can still be written."""
        if self._wptr == self._rptr:
            return self._size - 1
        return (self._size - self._wptr + self._rptr) % self._size - 1

    def skip(self, n: int) -> None:
        """Advance the read position by n bytes without reading them."""
        self._rptr = (self._rptr + n) % self._size

    def read(self, n: int) -> bytes:
        """Read n bytes, following the wrap at the end of the buffer."""
        parts = []
        if self._rptr + n >= self._size:
            parts.append(bytes(self._buf[self._rptr :]))
            n -= self._size - self._rptr
            self._rptr = 0
        parts.append(bytes(self._buf[self._rptr : self._rptr + n]))
        self._rptr += n
        return b"".join(parts)

    def pad(self, n: int) -> None:
        """Advance the write position by n bytes, leaving their contents as they were."""
        self._wptr = (self._wptr + n) % self._size

    def write(self, data: bytes) -> None:
        """Write data, following the wrap at the end of the buffer."""
        data = bytes(data)
        if len(data) > self.available():
            raise ValueError("not enough space in circular buffer")
        if self._wptr + len(data) >= self._size:
            first = self._size - self._wptr
            self._buf[self._wptr :] = data[:first]
            data = data[first:]
            self._wptr = 0
        self._buf[self._wptr : self._wptr + len(data)] = data
        self._wptr += len(data)