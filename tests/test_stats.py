from srtlive.stats import RoleState, RoleStats, UNLIMITED_TIMEOUT, event_url


def test_bitrate_updates_only_after_interval():
    stats = RoleStats(now_ms=0)
    assert stats.add(500, now_ms=500) == 0
    assert stats.kbitrate == 0
    assert stats.add(500, now_ms=1000) == 8
    assert stats.kbitrate == 8


def test_bitrate_counter_restarts_after_update():
    stats = RoleStats(now_ms=0)
    stats.add(1000, now_ms=1000)
    first = stats.kbitrate
    stats.add(10, now_ms=1500)
    assert stats.kbitrate == first


def test_idle_detection():
    stats = RoleStats(idle_streams_timeout=10, now_ms=0)
    assert stats.is_idle(9999) is False
    assert stats.is_idle(10000) is True
    stats.add(1, now_ms=5000)
    assert stats.is_idle(10000) is False
    assert stats.is_idle(15000) is True


def test_unlimited_timeout_never_idle():
    stats = RoleStats(idle_streams_timeout=UNLIMITED_TIMEOUT, now_ms=0)
    assert stats.is_idle(10**9) is False


def test_uptime_in_whole_seconds():
    stats = RoleStats(now_ms=1000)
    assert stats.uptime(1000) == 0
    assert stats.uptime(3500) == 2


def test_stat_info_appends_bitrate():
    stats = RoleStats(now_ms=0)
    stats.stat_info_base = '{"role":'
    assert stats.stat_info() == '{"role":"0"}'
    stats.add(1000, now_ms=1000)
    assert stats.stat_info() == '{"role":"%d"}' % stats.kbitrate


def test_event_url_format():
    url = event_url("http://localhost/ev", "on_connect", "player",
                    "live/stream", "10.0.0.1", 4000)
    assert url == (
        "http://localhost/ev?on_event=on_connect&role_name=player"
        "&srt_url=live/stream&remote_ip=10.0.0.1&remote_port=4000"
    )


def test_role_state_ordering():
    assert RoleState(2) is RoleState.INVALID
    assert RoleState.UNINIT < RoleState.INITED < RoleState.INVALID