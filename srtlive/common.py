"""Shared helpers: clocks, string utilities, hashing and host lookup."""

from __future__ import annotations

import os
import socket
import time
from typing import Iterable

TS_SYNC_BYTE = 0x47
TS_PACK_LEN = 188
TS_UDP_LEN = 1316  # 7 * 188
SHORT_STR_MAX_LEN = 256
STR_MAX_LEN = 1024
URL_MAX_LEN = STR_MAX_LEN
STR_DATE_TIME_LEN = 32
IP_MAX_LEN = 46
INVALID_PID = -1
PAT_PID = 0
INVALID_DTS_PTS = -1
MAX_PES_PAYLOAD = 200 * 1024

DEFAULT_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

_UINT32_MASK = 0xFFFFFFFF


class SlsError(Exception):
    """Raised when a server operation fails."""


def gettime_us() -> int:
    """Return the wall-clock time in microseconds."""
    return time.time_ns() // 1000


def gettime_ms() -> int:
    """Return the wall-clock time in milliseconds."""
    return gettime_us() // 1000


def format_time(seconds: int, fmt: str = DEFAULT_TIME_FORMAT) -> str:
    """Format a Unix time in seconds as local time."""
    return time.strftime(fmt, time.localtime(seconds))


def default_time_string() -> str:
    """Return the current local time as 'YYYY-mm-dd HH:MM:SS'."""
    return format_time(gettime_us() // 1_000_000, DEFAULT_TIME_FORMAT)


def hash_key(data: str | bytes) -> int:
    """Compute the 32-bit multiplicative (x31) hash of a string or bytes.

    Bytes are treated as signed chars, as the server does.
    """
    raw = data.encode("utf-8") if isinstance(data, str) else bytes(data)
    key = 0
    for byte in raw:
        signed = byte - 256 if byte >= 128 else byte
        key = (key * 31 + signed) & _UINT32_MASK
    return key


def remove_marks(text: str) -> str:
    """Strip one pair of matching surrounding single or double quotes."""
    if len(text) < 2:
        return text
    if text[0] == text[-1] and text[0] in ("'", '"'):
        return text[1:-1]
    return text


def split_string(text: str, separator: str, count: int = -1) -> list[str]:
    """Split ``text`` on ``separator``; ``count`` > 0 limits the number of splits."""
    if not separator:
        raise ValueError("empty separator")
    if count > 0:
        return text.split(separator, count)
    return text.split(separator)


def find_string(items: Iterable[str], needle: str) -> str:
    """Return the first item containing ``needle``, or an empty string."""
    return next((item for item in items if needle in item), "")


def mkdir_p(path: str | os.PathLike[str]) -> None:
    """Create a directory and its parents; an existing directory is fine."""
    os.makedirs(path, mode=0o755, exist_ok=True)


def gethostbyname(hostname: str) -> str:
    """Resolve a host name to its first IPv4 address."""
    try:
        return socket.gethostbyname(hostname)
    except (socket.gaierror, socket.herror, UnicodeError) as exc:
        raise SlsError(f"gethostbyname error for host: {hostname}") from exc