"""Reading a TS file as timestamped 1316-byte datagrams.

A side file ``<name>.rts`` holds records of an 8-byte little-endian 90 kHz
timestamp followed by one datagram; it is generated once from the TS file.
"""

from __future__ import annotations

import logging
import os
import struct
from typing import BinaryIO

from .common import INVALID_DTS_PTS, INVALID_PID, TS_PACK_LEN, TS_UDP_LEN, SlsError
from .tsinfo import TsInfo, parse_ts_info

log = logging.getLogger(__name__)

_RTS = struct.Struct("<q")
RTS_PACK_LEN = TS_UDP_LEN + _RTS.size
RTS_BUF_SIZE = RTS_PACK_LEN * 100

_NULL_PACKET = b"\x47\x1f\xff\x10" + b"\xff" * (TS_PACK_LEN - 4)


def _trunc_div(a: int, b: int) -> int:
    """Integer division rounding toward zero."""
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b >= 0) else -q


class TSFileTimeReader:
    """Yields datagrams of a TS file together with their presentation time in ms."""

    def __init__(self) -> None:
        self.file_name = ""
        self.loop = True
        self.dts_pid = INVALID_PID
        self.udp_duration = 0
        self.readed_count = 0
        self._file: BinaryIO | None = None
        self._buffer = bytearray()

    def __enter__(self) -> "TSFileTimeReader":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def open(self, ts_file_name: str, loop: bool = True) -> None:
        """Generate the .rts file if needed and open it for reading."""
        if not ts_file_name:
            raise SlsError(f"wrong file_name='{ts_file_name}'")
        try:
            self.generate_rts_file(ts_file_name)
        except SlsError as exc:
            log.info("TSFileTimeReader.open, generate_rts_file failed, %s", exc)
            self.file_name = f"{ts_file_name}.rts"
        self.close()
        try:
            self._file = open(self.file_name, "rb")
        except OSError as exc:
            raise SlsError(f"open file='{self.file_name}' failed, {exc}") from exc
        self._buffer = bytearray()
        self.loop = loop
        self.readed_count = 0
        log.info("TSFileTimeReader.open, ok, file_name='%s', loop=%s", self.file_name, loop)

    def close(self) -> None:
        """Close the .rts file if open."""
        if self._file is not None:
            log.info("TSFileTimeReader.close, file_name='%s'", self.file_name)
            self._file.close()
            self._file = None

    def _refill(self) -> None:
        assert self._file is not None
        chunk = self._file.read(RTS_BUF_SIZE)
        if chunk:
            self._buffer += chunk
            return
        if not self.loop:
            raise SlsError(f"file end, file='{self.file_name}'")
        log.info("TSFileTimeReader.get, loop, reopen file='%s'", self.file_name)
        self._file.close()
        try:
            self._file = open(self.file_name, "rb")
        except OSError as exc:
            self._file = None
            raise SlsError(f"open file='{self.file_name}' failed, {exc}") from exc
        self.readed_count = 0
        chunk = self._file.read(RTS_BUF_SIZE)
        if not chunk:
            raise SlsError(f"read data failed, file='{self.file_name}'")
        self._buffer += chunk

    def _take(self, n: int) -> bytes:
        out = bytes(self._buffer[:n])
        del self._buffer[:n]
        return out

    def get(self, size: int = TS_UDP_LEN) -> tuple[int, bytes]:
        """Return ``(time_ms, data)`` for the next record of ``size`` bytes."""
        if self._file is None:
            raise SlsError(f"get failed, file not open, file_name='{self.file_name}'")
        if not self._buffer:
            self._refill()
        if not self._buffer:
            raise SlsError(f"get failed, no data, file_name='{self.file_name}'")

        raw = self._take(_RTS.size)
        if len(raw) != _RTS.size:
            raise SlsError(f"get rts failed, got {len(raw)} bytes")
        (rts,) = _RTS.unpack(raw)
        tm_ms = _trunc_div(rts, 90)  # 90 kHz clock

        data = self._take(size)
        self.readed_count += len(data)
        if len(data) != size:
            raise SlsError(f"get data failed, got {len(data)} bytes, not {size}")
        return tm_ms, data

    def generate_rts_file(self, ts_file_name: str) -> str:
        """Write ``<ts_file_name>.rts`` unless it exists; return its name."""
        if not ts_file_name:
            raise SlsError(f"generate_rts_file failed, ts_file_name='{ts_file_name}'")
        rts_file_name = f"{ts_file_name}.rts"
        self.file_name = rts_file_name
        if os.path.exists(rts_file_name):
            log.info("generate_rts_file, '%s' exists", rts_file_name)
            return rts_file_name

        try:
            ts_file = open(ts_file_name, "rb")
        except OSError as exc:
            raise SlsError(f"open file='{ts_file_name}' failed, {exc}") from exc

        with ts_file:
            try:
                rts_file = open(rts_file_name, "wb")
            except OSError as exc:
                raise SlsError(f"create file='{rts_file_name}' failed, {exc}") from exc
            with rts_file:
                self._convert(ts_file, rts_file)

        log.info("generate_rts_file, ok, file='%s'", rts_file_name)
        return rts_file_name

    def _convert(self, ts_file: BinaryIO, rts_file: BinaryIO) -> None:
        pending = bytearray()
        info = TsInfo()
        dts = INVALID_DTS_PTS

        def emit(rts: int, chunk: bytes) -> None:
            rts_file.write(_RTS.pack(rts))
            rts_file.write(chunk)

        while True:
            packet = ts_file.read(TS_PACK_LEN)
            if len(packet) < TS_PACK_LEN:
                break
            try:
                parse_ts_info(packet, info)
            except ValueError as exc:
                log.debug("generate_rts_file, %s", exc)

            if info.dts == INVALID_DTS_PTS:
                pending += packet
                continue
            if dts == INVALID_DTS_PTS:
                dts = info.dts
                self.dts_pid = info.es_pid
                info.dts = info.pts = INVALID_DTS_PTS
                pending += packet
                continue

            udp_count = len(pending) // TS_UDP_LEN
            if udp_count > 0:
                self.udp_duration = _trunc_div(info.dts - dts, udp_count)
                rts = dts
                for _ in range(udp_count):
                    emit(rts, bytes(pending[:TS_UDP_LEN]))
                    del pending[:TS_UDP_LEN]
                    rts += self.udp_duration
                dts = info.dts
            info.dts = info.pts = INVALID_DTS_PTS
            pending += packet

        rts = dts
        udp_count = len(pending) // TS_UDP_LEN
        if udp_count == 0:
            return
        for _ in range(udp_count):
            emit(rts, bytes(pending[:TS_UDP_LEN]))
            del pending[:TS_UDP_LEN]
            rts += self.udp_duration
        if pending:
            padding = _NULL_PACKET * ((TS_UDP_LEN - len(pending)) // TS_PACK_LEN)
            emit(rts, bytes(pending) + padding)