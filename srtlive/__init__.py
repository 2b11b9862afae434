"""Building blocks of a live streaming server: TS parsing, ring buffers, config, pacing and HLS recording."""

__version__ = "1.4.8"

__all__ = [
    "common",
    "conf",
    "hls",
    "pidfile",
    "recycle_array",
    "role_list",
    "stats",
    "sync_clock",
    "ts_file_reader",
    "tsinfo",
]