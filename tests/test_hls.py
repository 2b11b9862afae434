from pathlib import Path

from srtlive.hls import HlsRecorder


class FakeClock:
    def __init__(self, now: int) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now


def test_first_record_creates_segment(tmp_path: Path) -> None:
    clock = FakeClock(100_000)
    rec = HlsRecorder(tmp_path / "vod", 10, None, clock)
    rec.record(b"abc")
    clock.now = 101_000
    rec.record(b"def")
    rec.close()
    assert rec.ts_filename == "100.ts"
    assert (tmp_path / "vod" / "100.ts").read_bytes() == b"abcdef"
    assert not (tmp_path / "vod" / "vod.m3u8").exists()


def test_ts_info_written_at_segment_start(tmp_path: Path) -> None:
    clock = FakeClock(50_000)
    rec = HlsRecorder(tmp_path, 10, lambda: b"HEAD", clock)
    rec.record(b"body")
    rec.close()
    assert (tmp_path / "50.ts").read_bytes() == b"HEADbody"


def test_rollover_and_playlist(tmp_path: Path) -> None:
    clock = FakeClock(100_000)
    with HlsRecorder(tmp_path, 10, None, clock) as rec:
        rec.record(b"one")
        clock.now = 110_000
        rec.record(b"two")
        assert rec.ts_filename == "110.ts"
    assert (tmp_path / "100.ts").read_bytes() == b"one"
    assert (tmp_path / "110.ts").read_bytes() == b"two"
    playlist = (tmp_path / "vod.m3u8").read_text()
    assert playlist == (
        "#EXTM3U\n#EXT-X-VERSION:3\n#EXT-X-TARGETDURATION:11\n"
        "#EXTINF:10.000,\n100.ts\n#EXT-X-ENDLIST"
    )
    assert (tmp_path / "vod-110.m3u8.extinfo").read_text() == "#EXTINF:10.000,\n100.ts\n"


def test_target_duration_grows(tmp_path: Path) -> None:
    clock = FakeClock(100_000)
    rec = HlsRecorder(tmp_path, 10, None, clock)
    rec.record(b"a")
    clock.now = 125_000
    rec.record(b"b")
    clock.now = 135_000
    rec.record(b"c")
    rec.close()
    assert rec.target_duration == 25.0
    lines = (tmp_path / "vod.m3u8").read_text().splitlines()
    assert lines[2] == "#EXT-X-TARGETDURATION:26"
    assert lines.count("100.ts") == 1
    assert lines.count("125.ts") == 1
    assert lines[-1] == "#EXT-X-ENDLIST"


def test_unwritable_path_records_nothing(tmp_path: Path) -> None:
    blocker = tmp_path / "file"
    blocker.write_bytes(b"x")
    rec = HlsRecorder(blocker, 10, None, FakeClock(10_000))
    rec.record(b"data")
    rec.close()
    assert rec.ts_filename == ""
    assert blocker.read_bytes() == b"x"