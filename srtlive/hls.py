"""Recording a transport stream into HLS segments with a VOD playlist."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import BinaryIO, Callable

from .common import TS_UDP_LEN, gettime_ms, mkdir_p

log = logging.getLogger(__name__)

DEFAULT_HLS_PATH = "./vod"
DEFAULT_SEGMENT_DURATION = 10  # seconds
VOD_PLAYLIST_NAME = "vod.m3u8"


class HlsRecorder:
    """Writes incoming TS data to segments of ``segment_duration`` seconds.

    Segment entries go to ``vod-<sec>.m3u8.extinfo``. On ``close`` they are
    copied into ``vod.m3u8`` between a header and an end-list tag.
    """

    def __init__(
        self,
        path: str | os.PathLike[str] = DEFAULT_HLS_PATH,
        segment_duration: int = DEFAULT_SEGMENT_DURATION,
        ts_info_provider: Callable[[], bytes] | None = None,
        clock: Callable[[], int] = gettime_ms,
    ) -> None:
        self.path = Path(path) if str(path) else Path(DEFAULT_HLS_PATH)
        self.segment_duration = segment_duration
        self.target_duration = float(segment_duration)
        self._ts_info_provider = ts_info_provider
        self._clock = clock
        self._begin_ms = 0
        self.ts_filename = ""
        self.vod_filename = ""
        self._ts_file: BinaryIO | None = None
        self._vod_file: BinaryIO | None = None

    def __enter__(self) -> "HlsRecorder":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def record(self, data: bytes) -> None:
        """Write ``data`` to the current segment, rolling to a new one when due."""
        self._check_segment()
        if self._ts_file is not None:
            self._ts_file.write(data)

    def _check_segment(self) -> None:
        now = self._clock()
        elapsed = (now - self._begin_ms) / 1000
        if elapsed < self.segment_duration:
            return
        self._begin_ms = now

        try:
            mkdir_p(self.path)
        except OSError as exc:
            log.info("HlsRecorder, mkdir '%s' failed, %s", self.path, exc)
            return

        if self._ts_file is not None:
            self.target_duration = max(self.target_duration, elapsed)
            log.info("HlsRecorder, close ts file='%s'", self.ts_filename)
            self._ts_file.close()
            self._ts_file = None
            item = f"#EXTINF:{elapsed:0.3f},\n{self.ts_filename}\n"
            if self._vod_file is None:
                self.vod_filename = str(self.path / f"vod-{now // 1000}.m3u8.extinfo")
                try:
                    self._vod_file = open(self.vod_filename, "wb")
                except OSError as exc:
                    log.info("HlsRecorder, create vod file failed, %s", exc)
                else:
                    log.info("HlsRecorder, create vod file='%s'", self.vod_filename)
            if self._vod_file is not None:
                self._vod_file.write(item.encode("ascii"))

        self.ts_filename = f"{now // 1000}.ts"
        full_name = self.path / self.ts_filename
        try:
            self._ts_file = open(full_name, "wb")
        except OSError as exc:
            log.info("HlsRecorder, create ts file='%s' failed, %s", full_name, exc)
            return
        log.info("HlsRecorder, create ts file='%s'", full_name)
        if self._ts_info_provider is not None:
            info = self._ts_info_provider()
            if info:
                self._ts_file.write(bytes(info[:TS_UDP_LEN]))

    def close(self) -> None:
        """Close the open segment and finish the VOD playlist, if any."""
        if self._ts_file is not None:
            log.info("HlsRecorder.close, close ts file='%s'", self.ts_filename)
            self._ts_file.close()
            self._ts_file = None
        if self._vod_file is None:
            return
        self._vod_file.close()
        self._vod_file = None

        extinfo_name = self.vod_filename
        try:
            with open(extinfo_name, "rb") as handle:
                entries = handle.read()
        except OSError as exc:
            log.info("HlsRecorder.close, read '%s' failed, %s", extinfo_name, exc)
            entries = b""

        self.vod_filename = str(self.path / VOD_PLAYLIST_NAME)
        header = (
            "#EXTM3U\n"
            "#EXT-X-VERSION:3\n"
            f"#EXT-X-TARGETDURATION:{int(self.target_duration + 1)}\n"
        )
        with open(self.vod_filename, "wb") as playlist:
            playlist.write(header.encode("ascii"))
            playlist.write(entries)
            playlist.write(b"#EXT-X-ENDLIST")
        log.info("HlsRecorder.close, wrote playlist='%s'", self.vod_filename)