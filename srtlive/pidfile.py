"""The server's pid file and commands sent to a running server by signal."""

from __future__ import annotations

import logging
import os
import re
import signal
from pathlib import Path

from .common import SlsError, mkdir_p

log = logging.getLogger(__name__)

PID_FILE = "/tmp/sls/pid.txt"

_INT_PREFIX = re.compile(r"\s*([+-]?\d+)")


def read_pid(path: str | os.PathLike[str] = PID_FILE) -> int:
    """Return the pid stored in ``path``, or 0 when there is none."""
    try:
        text = Path(path).read_text(encoding="ascii", errors="replace")[:128]
    except OSError:
        log.info("no pid file='%s'", path)
        return 0
    match = _INT_PREFIX.match(text)
    return int(match.group(1)) if match else 0


def write_pid(pid: int, path: str | os.PathLike[str] = PID_FILE) -> None:
    """Store ``pid`` in ``path``, creating its directory."""
    target = Path(path)
    try:
        mkdir_p(target.parent)
        target.write_text(str(pid), encoding="ascii")
    except OSError as exc:
        raise SlsError(f"write pid file='{target}' failed, {exc}") from exc
    log.info("write pid ok, file='%s', pid=%d", target, pid)


def remove_pid(path: str | os.PathLike[str] = PID_FILE) -> None:
    """Empty the pid file if it exists."""
    target = Path(path)
    if target.exists():
        target.write_bytes(b"")


_COMMANDS = {"reload": signal.SIGHUP, "stop": signal.SIGINT}


def send_cmd(cmd: str, path: str | os.PathLike[str] = PID_FILE) -> signal.Signals | None:
    """Send ``reload`` (SIGHUP) or ``stop`` (SIGINT) to the recorded server.

    Returns the signal sent, or None when there is no valid pid or the
    command is unknown.
    """
    if cmd is None:
        raise SlsError("send_cmd failed, cmd is null")
    pid = read_pid(path)
    if pid <= 0:
        log.info("send_cmd failed, pid is invalid")
        return None
    sig = _COMMANDS.get(cmd)
    if sig is None:
        return None
    log.info("send_cmd ok, %s, sls pid=%d, send %s", cmd, pid, sig.name)
    os.kill(pid, sig)
    return sig