import struct

import pytest

from srtlive.common import TS_PACK_LEN, TS_UDP_LEN, SlsError
from srtlive.ts_file_reader import RTS_PACK_LEN, TSFileTimeReader


def _pts_bytes(value):
    return bytes([
        0x21 | ((value >> 29) & 0x0E),
        (value >> 22) & 0xFF,
        ((value >> 14) & 0xFE) | 1,
        (value >> 7) & 0xFF,
        ((value << 1) & 0xFE) | 1,
    ])


def _pes_packet(pts):
    payload = b"\x00\x00\x01\xe0\x00\x00\x80\x80\x05" + _pts_bytes(pts)
    packet = b"\x47\x41\x00\x10" + payload
    return packet.ljust(TS_PACK_LEN, b"\xff")


def _filler(tag):
    return b"\x47\x01\x00\x10" + bytes([tag]) * (TS_PACK_LEN - 4)


def _stream(extra_fillers=0):
    packets = [_pes_packet(90000)] + [_filler(i) for i in range(1, 7)]
    packets += [_pes_packet(90900)] + [_filler(i) for i in range(11, 17)]
    packets += [_filler(i) for i in range(21, 21 + extra_fillers)]
    return packets


@pytest.fixture
def ts_file(tmp_path):
    path = tmp_path / "clip.ts"
    path.write_bytes(b"".join(_stream()))
    return path


def test_generate_rts_file_records(ts_file):
    reader = TSFileTimeReader()
    name = reader.generate_rts_file(str(ts_file))
    assert name == str(ts_file) + ".rts"
    raw = open(name, "rb").read()
    assert len(raw) == 2 * RTS_PACK_LEN
    packets = _stream()
    assert struct.unpack("<q", raw[:8])[0] == 90000
    assert raw[8:RTS_PACK_LEN] == b"".join(packets[:7])
    assert struct.unpack("<q", raw[RTS_PACK_LEN:RTS_PACK_LEN + 8])[0] == 90900
    assert raw[RTS_PACK_LEN + 8:] == b"".join(packets[7:14])


def test_remainder_padded_with_null_packets(tmp_path):
    path = tmp_path / "tail.ts"
    packets = _stream(extra_fillers=2)
    path.write_bytes(b"".join(packets))
    name = TSFileTimeReader().generate_rts_file(str(path))
    raw = open(name, "rb").read()
    assert len(raw) == 3 * RTS_PACK_LEN
    last = raw[2 * RTS_PACK_LEN:]
    assert struct.unpack("<q", last[:8])[0] == 90900 + 900
    body = last[8:]
    assert body[:2 * TS_PACK_LEN] == b"".join(packets[14:])
    for start in range(2 * TS_PACK_LEN, TS_UDP_LEN, TS_PACK_LEN):
        assert body[start:start + 3] == b"\x47\x1f\xff"


def test_get_returns_times_and_data(ts_file):
    packets = _stream()
    with TSFileTimeReader() as reader:
        reader.open(str(ts_file), loop=False)
        assert reader.get(TS_UDP_LEN) == (1000, b"".join(packets[:7]))
        assert reader.get(TS_UDP_LEN) == (1010, b"".join(packets[7:14]))
        with pytest.raises(SlsError):
            reader.get(TS_UDP_LEN)
        assert reader.readed_count == 2 * TS_UDP_LEN


def test_get_loops_back_to_start(ts_file):
    packets = _stream()
    with TSFileTimeReader() as reader:
        reader.open(str(ts_file), loop=True)
        first = reader.get(TS_UDP_LEN)
        reader.get(TS_UDP_LEN)
        assert reader.get(TS_UDP_LEN) == first
        assert first[1] == b"".join(packets[:7])


def test_existing_rts_file_is_reused(tmp_path):
    ts_path = tmp_path / "reuse.ts"
    ts_path.write_bytes(b"".join(_stream()))
    data = bytes(range(256)) * 5 + bytes(TS_UDP_LEN - 1280)
    (tmp_path / "reuse.ts.rts").write_bytes(struct.pack("<q", 180) + data)
    with TSFileTimeReader() as reader:
        reader.open(str(ts_path), loop=False)
        assert reader.get(TS_UDP_LEN) == (2, data)


def test_open_rejects_empty_name():
    with pytest.raises(SlsError):
        TSFileTimeReader().open("", loop=False)


def test_open_missing_file(tmp_path):
    with pytest.raises(SlsError):
        TSFileTimeReader().open(str(tmp_path / "missing.ts"), loop=False)


def test_get_without_open():
    with pytest.raises(SlsError):
        TSFileTimeReader().get(TS_UDP_LEN)


def test_short_file_produces_no_records(tmp_path):
    path = tmp_path / "short.ts"
    path.write_bytes(_pes_packet(90000) + _filler(1))
    name = TSFileTimeReader().generate_rts_file(str(path))
    assert open(name, "rb").read() == b""