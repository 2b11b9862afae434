"""MPEG-TS packet inspection: PAT, PMT, PES timestamps and H.264 SPS/PPS."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields

from .common import (
    INVALID_DTS_PTS,
    INVALID_PID,
    PAT_PID,
    TS_PACK_LEN,
    TS_SYNC_BYTE,
    TS_UDP_LEN,
)

log = logging.getLogger(__name__)

H264_NAL_SPS = 7
H264_NAL_PPS = 8

_PES_START_CODE = b"\x00\x00\x01"
_VIDEO_STREAM_ID = 0xE0
_AUDIO_STREAM_ID = 0xC0


def _null_ts_data() -> bytearray:
    """Return a datagram of null TS packets (sync byte, pid 0x1FFF)."""
    data = bytearray(TS_UDP_LEN)
    for start in range(0, TS_UDP_LEN, TS_PACK_LEN):
        data[start:start + 4] = b"\x47\x1f\xff\x00"
    return data


@dataclass
class TsInfo:
    """What has been learned so far from a transport stream."""

    es_pid: int = INVALID_PID
    dts: int = INVALID_DTS_PTS
    pts: int = INVALID_DTS_PTS
    need_spspps: bool = False
    sps: bytes = b""
    pps: bytes = b""
    pat: bytes = b""
    pmt: bytes = b""
    pmt_pid: int = INVALID_PID
    ts_data: bytearray = field(default_factory=_null_ts_data)

    def reset(self) -> None:
        """Return every field to its initial value."""
        fresh = TsInfo()
        for f in fields(self):
            setattr(self, f.name, getattr(fresh, f.name))


def parse_pes_pts(buf: bytes) -> int:
    """Decode the 33-bit timestamp held in five PES header bytes."""
    if len(buf) < 5:
        raise ValueError("a PES timestamp needs 5 bytes")
    return (
        ((buf[0] & 0x0E) << 29)
        | ((((buf[1] << 8) | buf[2]) >> 1) << 15)
        | (((buf[3] << 8) | buf[4]) >> 1)
    )


def _store_nal(info: TsInfo, nal_type: int, nal: bytes) -> None:
    if nal_type == H264_NAL_SPS:
        info.sps = nal
    elif nal_type == H264_NAL_PPS:
        info.pps = nal
    else:
        log.debug("parse_spspps, wrong nal type=%d", nal_type)


def parse_spspps(es: bytes, info: TsInfo) -> bool:
    """Extract SPS and PPS NAL units (with start codes) from an H.264 payload.

    Returns True once both are known.
    """
    start: int | None = None
    nal_type = 0
    pos = 0
    while pos < len(es) - 4:
        is_start_code = es[pos:pos + 3] == b"\x00\x00\x00" and (
            es[pos + 3] == 1 or (es[pos + 3] == 0 and es[pos + 4] == 1)
        )
        if not is_start_code:
            pos += 1
            continue
        if start is not None:
            _store_nal(info, nal_type, bytes(es[start:pos]))
            if info.sps and info.pps:
                return True
        nal_pos = pos + (4 if es[pos + 3] else 5)
        if nal_pos >= len(es):
            break
        nal_type = es[nal_pos] & 0x1F
        if nal_type in (H264_NAL_SPS, H264_NAL_PPS):
            start = pos
        pos = nal_pos

    if start is not None:
        _store_nal(info, nal_type, bytes(es[start:]))
    return bool(info.sps and info.pps)


def _build_spspps_data(info: TsInfo, pid: int, stream_id: int) -> None:
    """Fill ``info.ts_data`` with PAT, PMT and a packet carrying SPS and PPS."""
    payload = info.sps + info.pps
    pes_len = len(payload) + 9 + 5
    if pes_len > TS_PACK_LEN - 4:
        log.warning("pid=%d, pes size=%d is abnormal", pid, pes_len)
        return
    data = info.ts_data
    data[0:TS_PACK_LEN] = info.pat[:TS_PACK_LEN].ljust(TS_PACK_LEN, b"\x00")
    data[TS_PACK_LEN:2 * TS_PACK_LEN] = info.pmt[:TS_PACK_LEN].ljust(TS_PACK_LEN, b"\x00")
    pos = 2 * TS_PACK_LEN + 1

    info.es_pid = pid
    data[pos] = 0x40 | ((pid >> 8) & 0xFF)
    data[pos + 1] = pid & 0xFF
    pos += 2
    data[pos] = 0x10
    ad_len = TS_PACK_LEN - 4 - pes_len - 1
    if ad_len > 0:
        data[pos] = 0x30
        data[pos + 1] = ad_len
        data[pos + 2] = 0x00
        pos += 3
        data[pos:pos + ad_len - 1] = b"\xff" * (ad_len - 1)
        pos += ad_len - 1
    else:
        pos += 1

    header = bytes(
        [0, 0, 1, stream_id, 0, 0, 0x80, 0x80, 5, 0, 0, 0, 0, 0]
    )
    chunk = header + payload
    data[pos:pos + len(chunk)] = chunk


def pes_to_es(pes: bytes, info: TsInfo, pid: int) -> bool:
    """Read timestamps (and SPS/PPS if wanted) from the start of a PES packet.

    Returns False when the data is not an audio or video PES packet.
    """
    if len(pes) < 9 or pes[0:3] != _PES_START_CODE:
        return False
    stream_id = pes[3]
    if stream_id not in (_VIDEO_STREAM_ID, _AUDIO_STREAM_ID):
        log.debug("pes_to_es: pid=%d, wrong pes stream_id=0x%x", pid, stream_id)
        return False

    flags = pes[7]
    pos = 9
    info.dts = INVALID_DTS_PTS
    info.pts = INVALID_DTS_PTS
    if flags & 0xC0 == 0x80:
        if len(pes) < pos + 5:
            return False
        info.dts = info.pts = parse_pes_pts(pes[pos:pos + 5])
        pos += 5
    elif flags & 0xC0 == 0xC0:
        if len(pes) < pos + 10:
            return False
        info.pts = parse_pes_pts(pes[pos:pos + 5])
        info.dts = parse_pes_pts(pes[pos + 5:pos + 10])
        pos += 10

    if not info.need_spspps:
        return True
    found = parse_spspps(pes[pos:], info)
    if info.sps and info.pps and info.pat:
        _build_spspps_data(info, pid, stream_id)
    return found


def parse_pat(data: bytes, info: TsInfo) -> bool:
    """Read the PMT pid from a program association section."""
    if len(data) < 3:
        return False
    section_length = ((data[1] & 0x0F) << 8) | data[2]
    for n in range(0, section_length - 12, 4):
        if 11 + n >= len(data):
            break
        program_num = (data[8 + n] << 8) | data[9 + n]
        if program_num != 0:
            info.pmt_pid = ((data[10 + n] & 0x1F) << 8) | data[11 + n]
    return True


def parse_ts_info(packet: bytes, info: TsInfo) -> bool:
    """Inspect one 188-byte TS packet and update ``info``.

    Returns True if the packet was a PAT, PMT or PES start that was parsed;
    raises ValueError for a packet without the sync byte.
    """
    if len(packet) < TS_PACK_LEN:
        raise ValueError(f"ts packet too short: {len(packet)} bytes")
    if packet[0] != TS_SYNC_BYTE:
        raise ValueError(f"packet[0]=0x{packet[0]:x} not 0x47")

    if not packet[1] & 0x40:
        return False

    pid = ((packet[1] & 0x1F) << 8) | packet[2]
    if pid == PAT_PID:
        info.pat = bytes(packet[:TS_PACK_LEN])
    else:
        if pid == info.pmt_pid:
            info.pmt = bytes(packet[:TS_PACK_LEN])
            return True
        if info.es_pid != INVALID_PID and pid != info.es_pid:
            return False

    afc = (packet[3] >> 4) & 3
    if afc == 0:
        return False
    has_adaptation = afc & 2
    has_payload = afc & 1

    pos = 4
    if has_adaptation:
        pos += packet[4] + 1
    if pos >= TS_PACK_LEN or has_payload != 1:
        log.debug("parse_ts_info: pid=%d, no payload, pos=%d", pid, pos)
        return False

    if pid == PAT_PID:
        pos += 1  # pointer field
        return parse_pat(packet[pos:TS_PACK_LEN], info)

    ok = pes_to_es(packet[pos:TS_PACK_LEN], info, pid)
    if info.dts != INVALID_DTS_PTS:
        info.es_pid = pid
    if info.sps and info.pps:
        info.es_pid = pid
    return ok