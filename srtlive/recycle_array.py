"""A fixed-size ring buffer shared by one writer and many independent readers."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass

from .common import gettime_ms

log = logging.getLogger(__name__)

DEFAULT_MAX_DATA_SIZE = 1024 * 1316  # about 5 Mbit/s for 2 seconds


@dataclass
class ReadCursor:
    """One reader's position in a RecycleArray.

    A fresh cursor starts at the writer's current position on its first read.
    """

    read_pos: int = 0
    data_count: int = 0
    first: bool = True


class RecycleArray:
    """Ring buffer whose readers each keep their own cursor.

    ``len()`` is the total number of bytes ever written. A slow reader that is
    lapped by the writer is not detected; it simply reads newer data.
    """

    def __init__(self, size: int = DEFAULT_MAX_DATA_SIZE) -> None:
        if size <= 0:
            raise ValueError(f"size must be positive, got {size}")
        self._lock = threading.Lock()
        self._data = bytearray(size)
        self._write_pos = 0
        self._count = 0
        self.last_read_time = gettime_ms()

    @property
    def size(self) -> int:
        """Capacity of the buffer in bytes."""
        return len(self._data)

    def set_size(self, n: int) -> None:
        """Replace the storage with ``n`` fresh bytes; call before any put or get."""
        if n <= 0:
            raise ValueError(f"size must be positive, got {n}")
        with self._lock:
            self._data = bytearray(n)
            self._write_pos = 0

    def put(self, data: bytes) -> int:
        """Append ``data``, overwriting the oldest bytes; return its length."""
        length = len(data)
        if length == 0:
            raise ValueError("no data to put")
        if length > len(self._data):
            raise ValueError(
                f"len={length} is bigger than the array size={len(self._data)}"
            )
        with self._lock:
            size = len(self._data)
            pos = self._write_pos
            room = size - pos
            if room >= length:
                self._data[pos:pos + length] = data
                pos += length
            else:
                self._data[pos:] = data[:room]
                self._data[:length - room] = data[room:]
                pos = length - room
            self._write_pos = 0 if pos == size else pos
            self._count += length
        log.debug(
            "RecycleArray.put, len=%d, write_pos=%d, count=%d, size=%d",
            length, self._write_pos, self._count, len(self._data),
        )
        return length

    def get(self, cursor: ReadCursor, size: int, aligned: int = 0) -> bytes:
        """Read up to ``size`` new bytes for ``cursor``.

        With ``aligned`` > 0 the amount is rounded down to a multiple of it.
        The first call for a cursor only positions it and returns nothing.
        """
        with self._lock:
            if cursor.first:
                cursor.read_pos = self._write_pos
                cursor.data_count = self._count
                cursor.first = False
                return b""
            if cursor.read_pos == self._write_pos and cursor.data_count == self._count:
                return b""

            self.last_read_time = gettime_ms()
            capacity = len(self._data)
            read_pos = cursor.read_pos
            if read_pos < self._write_pos:
                ready = self._write_pos - read_pos
            else:
                ready = capacity - read_pos + self._write_pos
            copy_len = min(ready, size)
            if aligned > 0:
                copy_len = copy_len // aligned * aligned

            out = b""
            if copy_len > 0:
                tail = capacity - read_pos
                if tail >= copy_len:
                    out = bytes(self._data[read_pos:read_pos + copy_len])
                    read_pos += copy_len
                else:
                    out = bytes(self._data[read_pos:]) + bytes(self._data[:copy_len - tail])
                    read_pos = copy_len - tail

            if read_pos == capacity:
                read_pos = 0
            if read_pos > capacity:
                log.warning(
                    "RecycleArray.get, read_pos=%d, but size=%d", read_pos, capacity
                )
                read_pos = 0
            cursor.read_pos = read_pos
            cursor.data_count = self._count
        log.debug("RecycleArray.get, copied=%d", len(out))
        return out

    def __len__(self) -> int:
        with self._lock:
            return self._count