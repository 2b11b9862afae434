from srtlive.sync_clock import SyncClock


class FakeTime:
    def __init__(self, now=10_000):
        self.now = now
        self.slept = []

    def clock(self):
        return self.now

    def sleep(self, ms):
        self.slept.append(ms)


def make(jitter=1000):
    t = FakeTime()
    return t, SyncClock(jitter=jitter, clock=t.clock, sleep=t.sleep)


def test_first_wait_does_not_sleep():
    t, clock = make()
    assert clock.wait(5000) == 0
    assert t.slept == []


def test_sleeps_when_stream_is_ahead():
    t, clock = make()
    clock.wait(0)
    t.now += 100
    assert clock.wait(300) == 200
    assert t.slept == [200]


def test_no_sleep_when_stream_is_behind():
    t, clock = make()
    clock.wait(0)
    t.now += 500
    assert clock.wait(100) == 0
    assert t.slept == []


def test_jitter_rebases():
    t, clock = make(jitter=1000)
    clock.wait(0)
    assert clock.wait(1000) == 0
    assert t.slept == []
    # rebased at rts=1000, so a small step ahead sleeps by that step
    assert clock.wait(1050) == 50
    assert t.slept == [50]


def test_jitter_attribute_can_change():
    t, clock = make(jitter=1000)
    clock.jitter = 10
    clock.wait(0)
    assert clock.wait(20) == 0
    assert t.slept == []