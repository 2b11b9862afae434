"""Per-role connection state, bitrate and idle-time bookkeeping."""

from __future__ import annotations

from enum import IntEnum

from .common import TS_UDP_LEN, gettime_ms

DATA_BUFF_SIZE = 100 * TS_UDP_LEN
UNLIMITED_TIMEOUT = -1
DEFAULT_IDLE_STREAMS_TIMEOUT = 10  # seconds
DEFAULT_BITRATE_INTERVAL_MS = 1000


class RoleState(IntEnum):
    """Lifecycle of a publisher, player, listener or relay."""

    UNINIT = 0
    INITED = 1
    INVALID = 2


class RoleStats:
    """Tracks bytes moved, the resulting kbit/s, uptime and idleness."""

    def __init__(
        self,
        idle_streams_timeout: int = DEFAULT_IDLE_STREAMS_TIMEOUT,
        interval_ms: int = DEFAULT_BITRATE_INTERVAL_MS,
        now_ms: int | None = None,
    ) -> None:
        now = gettime_ms() if now_ms is None else now_ms
        self.idle_streams_timeout = idle_streams_timeout
        self.interval_ms = interval_ms
        self.start_time_ms = now
        self.last_active_ms = now
        self._bitrate_last_ms = now
        self._bitrate_bytes = 0
        self.kbitrate = 0
        self.stat_info_base = ""

    def add(self, nbytes: int, now_ms: int | None = None) -> int:
        """Account ``nbytes`` of traffic; return the current kbit/s."""
        now = gettime_ms() if now_ms is None else now_ms
        self._bitrate_bytes += nbytes
        self.last_active_ms = now
        elapsed = now - self._bitrate_last_ms
        if elapsed >= self.interval_ms and elapsed > 0:
            self.kbitrate = self._bitrate_bytes * 8 // elapsed
            self._bitrate_bytes = 0
            self._bitrate_last_ms = now
        return self.kbitrate

    def is_idle(self, now_ms: int | None = None) -> bool:
        """Return True when no traffic has been seen for the idle timeout."""
        if self.idle_streams_timeout == UNLIMITED_TIMEOUT:
            return False
        now = gettime_ms() if now_ms is None else now_ms
        return now - self.last_active_ms >= self.idle_streams_timeout * 1000

    def uptime(self, now_ms: int | None = None) -> int:
        """Return whole seconds since the stats were created."""
        now = gettime_ms() if now_ms is None else now_ms
        return int((now - self.start_time_ms) / 1000)

    def stat_info(self) -> str:
        """Return the stat base text completed with the current bitrate."""
        return f'{self.stat_info_base}"{self.kbitrate}"}}'


def event_url(
    http_url: str,
    event: str,
    role_name: str,
    srt_url: str,
    remote_ip: str,
    remote_port: int,
) -> str:
    """Build the URL of an on_connect/on_close HTTP notification."""
    return (
        f"{http_url}?on_event={event}&role_name={role_name}&srt_url={srt_url}"
        f"&remote_ip={remote_ip}&remote_port={remote_port}"
    )