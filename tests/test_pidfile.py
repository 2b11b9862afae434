import signal
from pathlib import Path
from unittest import mock

import pytest

from srtlive.common import SlsError
from srtlive.pidfile import read_pid, remove_pid, send_cmd, write_pid


def test_write_read_round_trip(tmp_path: Path) -> None:
    pid_file = tmp_path / "sub" / "pid.txt"
    write_pid(4321, pid_file)
    assert read_pid(pid_file) == 4321


def test_read_missing_file(tmp_path: Path) -> None:
    assert read_pid(tmp_path / "missing.txt") == 0


def test_read_garbage_is_zero(tmp_path: Path) -> None:
    pid_file = tmp_path / "pid.txt"
    pid_file.write_text("abc")
    assert read_pid(pid_file) == 0


def test_remove_pid_empties_file(tmp_path: Path) -> None:
    pid_file = tmp_path / "pid.txt"
    write_pid(77, pid_file)
    remove_pid(pid_file)
    assert pid_file.read_bytes() == b""
    assert read_pid(pid_file) == 0


def test_write_pid_failure(tmp_path: Path) -> None:
    blocker = tmp_path / "file"
    blocker.write_text("x")
    with pytest.raises(SlsError):
        write_pid(1, blocker / "pid.txt")


def test_send_cmd_without_pid(tmp_path: Path) -> None:
    with mock.patch("srtlive.pidfile.os.kill") as kill:
        assert send_cmd("reload", tmp_path / "pid.txt") is None
    assert kill.call_count == 0


@pytest.mark.parametrize(
    "cmd, sig", [("reload", signal.SIGHUP), ("stop", signal.SIGINT)]
)
def test_send_cmd_signals(tmp_path: Path, cmd: str, sig: signal.Signals) -> None:
    pid_file = tmp_path / "pid.txt"
    write_pid(999, pid_file)
    with mock.patch("srtlive.pidfile.os.kill") as kill:
        assert send_cmd(cmd, pid_file) == sig
    kill.assert_called_once_with(999, sig)


def test_send_cmd_unknown(tmp_path: Path) -> None:
    pid_file = tmp_path / "pid.txt"
    write_pid(999, pid_file)
    with mock.patch("srtlive.pidfile.os.kill") as kill:
        assert send_cmd("other", pid_file) is None
    assert kill.call_count == 0


def test_send_cmd_none(tmp_path: Path) -> None:
    with pytest.raises(SlsError):
        send_cmd(None, tmp_path / "pid.txt")