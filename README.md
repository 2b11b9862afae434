# srtlive

Building blocks for a live streaming server that moves MPEG transport
streams in 1316-byte datagrams. Plain Python, no runtime dependencies.

## What is inside

- `srtlive.common`: clocks (`gettime_us`, `gettime_ms`, `format_time`,
  `default_time_string`), the 32-bit stream-name hash `hash_key`,
  `remove_marks` (strips one pair of surrounding quotes), `split_string`,
  `find_string`, `mkdir_p`, `gethostbyname` and the `SlsError` exception.
- `srtlive.tsinfo`: MPEG-TS packet inspection. `parse_ts_info` updates a
  `TsInfo` from one 188-byte packet: the PAT and PMT packets, the PMT pid,
  the elementary-stream pid and the PES timestamps (`parse_pes_pts`). With
  `need_spspps` set it also extracts H.264 SPS/PPS (`parse_spspps`) and
  builds a datagram carrying PAT, PMT, SPS and PPS in `ts_data`.
- `srtlive.recycle_array`: `RecycleArray`, a fixed-size ring buffer with one
  writer and many readers, each following it with its own `ReadCursor`.
- `srtlive.ts_file_reader`: `TSFileTimeReader` writes `<file>.rts` next to a
  `.ts` file (records of an 8-byte 90 kHz timestamp plus one datagram) and
  replays it with `get()`, which returns `(time_ms, data)`, looping if asked.
- `srtlive.sync_clock`: `SyncClock.wait()` sleeps so that stream timestamps
  advance no faster than wall time, rebasing when the gap exceeds the jitter.
- `srtlive.conf`: a parser for block-structured conf files
  (`name { ... }`, `key value;`, `#` comments) driven by a `ConfRegistry` of
  typed, range-checked `ConfCommand`s (`parse_conf`, `load_conf`), and a
  parser for `-name value` command-line options (`parse_argv`,
  `format_help`). Errors raise `ConfError`.
- `srtlive.stats`: `RoleStats` keeps per-connection kbit/s, idle time and
  uptime; `RoleState` names the connection lifecycle; `event_url` builds the
  URL of an `on_connect`/`on_close` HTTP notification.
- `srtlive.hls`: `HlsRecorder` cuts incoming TS data into segment files and,
  on `close()`, writes a `vod.m3u8` playlist.
- `srtlive.role_list`: `RoleList`, a thread-safe FIFO of connection objects.
- `srtlive.pidfile`: `read_pid`, `write_pid`, `remove_pid`, and `send_cmd`,
  which sends `reload` (SIGHUP) or `stop` (SIGINT) to the recorded pid.

## Install

    pip install .

## Examples

    from srtlive.recycle_array import RecycleArray, ReadCursor

    ring = RecycleArray(size=1316 * 10)
    cursor = ReadCursor()
    ring.get(cursor, 1316)      # the first call only places the cursor
    ring.put(b"\x47" * 1316)
    data = ring.get(cursor, 1316, aligned=1316)

    from srtlive.conf import ConfCommand, ConfRegistry, parse_conf

    registry = ConfRegistry()
    registry.register("srt", [ConfCommand("http_port", "http port", "int", 1, 65535)])
    blocks = parse_conf(["srt {", "    http_port 8181;", "}"], registry)
    print(blocks[0].values["http_port"])   # 8181

## What it does not do

There is no network transport here: nothing opens SRT sockets, accepts
publishers or players, or pulls and pushes streams between servers. There
is no server or client command and no HTTP statistics endpoint. The modules
above are the parts such a server is built from.

## Tests

    pip install .[test]
    pytest