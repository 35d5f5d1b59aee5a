"""Tests for the network rate tracker."""
import threading

import pytest

from perf_stats.rates import NetworkSample, RateTracker

from .conftest import FakeClock


def sample(rx, tx, iface="eth0"):
    return NetworkSample(iface=iface, rx_bytes=rx, tx_bytes=tx)


@pytest.mark.parametrize("rx,tx", [(0, 0), (1000, 500), (2 ** 63, 2 ** 62)])
def test_first_call_reports_zero_regardless_of_counters(rx, tx):
    tracker = RateTracker(clock=FakeClock(5000))
    result = tracker.sample(sample(rx, tx))

    assert result.input_per_second == 0
    assert result.output_per_second == 0
    assert result.previous is None
    assert result.previous_time is None


def test_first_call_establishes_baseline():
    tracker = RateTracker(clock=FakeClock(5000))
    tracker.sample(sample(1000, 500))

    assert tracker.last_sample == sample(1000, 500)
    assert tracker.last_time == 5000


def test_rate_is_delta_over_elapsed_seconds():
    tracker = RateTracker(clock=FakeClock(0, 2500))
    tracker.sample(sample(1000, 500))
    result = tracker.sample(sample(6000, 3000))

    assert result.input_per_second == pytest.approx(2000.0)
    assert result.output_per_second == pytest.approx(1000.0)
    assert result.previous == sample(1000, 500)
    assert result.previous_time == 0
    assert result.current_time == 2500


def test_negative_delta_is_clamped_to_zero():
    tracker = RateTracker(clock=FakeClock(0, 1000))
    tracker.sample(sample(10_000, 10_000))
    result = tracker.sample(sample(50, 20_000))

    assert result.input_per_second == 0
    assert result.output_per_second == pytest.approx(10_000.0)


def test_zero_elapsed_time_yields_zero_and_still_updates_state():
    tracker = RateTracker(clock=FakeClock(1000, 1000))
    tracker.sample(sample(1000, 1000))
    result = tracker.sample(sample(9000, 9000))

    assert result.input_per_second == 0
    assert result.output_per_second == 0
    assert tracker.last_sample == sample(9000, 9000)


def test_clock_going_backwards_yields_zero():
    tracker = RateTracker(clock=FakeClock(5000, 4000))
    tracker.sample(sample(0, 0))
    result = tracker.sample(sample(1000, 1000))

    assert result.input_per_second == 0
    assert result.output_per_second == 0


def test_interface_change_starts_a_new_baseline():
    tracker = RateTracker(clock=FakeClock(0, 1000, 2000))
    tracker.sample(sample(1000, 1000, iface="eth0"))
    switched = tracker.sample(sample(5000, 5000, iface="wlan0"))
    following = tracker.sample(sample(6000, 5500, iface="wlan0"))

    assert switched.input_per_second == 0
    assert following.input_per_second == pytest.approx(1000.0)
    assert following.output_per_second == pytest.approx(500.0)


def test_missing_interface_reports_zero_and_clears_state():
    tracker = RateTracker(clock=FakeClock(0, 1000, 2000))
    tracker.sample(sample(1000, 1000))
    missing = tracker.sample(None)
    back = tracker.sample(sample(3000, 3000))

    assert missing.input_per_second == 0
    assert tracker.last_sample == sample(3000, 3000)
    assert back.input_per_second == 0


def test_from_interfaces_uses_first_entry():
    interfaces = [
        {"iface": "eth0", "rx_bytes": 10, "tx_bytes": 20},
        {"iface": "lo", "rx_bytes": 99, "tx_bytes": 99},
    ]
    assert NetworkSample.from_interfaces(interfaces) == sample(10, 20)
    assert NetworkSample.from_interfaces([]) is None


def test_concurrent_samples_do_not_lose_updates():
    ticks = iter(range(0, 10_000_000, 1000))
    lock = threading.Lock()

    def clock():
        with lock:
            return next(ticks)

    tracker = RateTracker(clock=clock)
    results = []

    def worker(n):
        results.append(tracker.sample(sample(n * 1000, n * 1000)))

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(50)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    # Every call saw the state left by exactly one other call.
    previous_times = [r.previous_time for r in results]
    assert previous_times.count(None) == 1
    assert len({t for t in previous_times if t is not None}) == 49
    assert tracker.last_time == max(r.current_time for r in results)


def test_failed_render_keeps_previous_state():
    tracker = RateTracker(clock=FakeClock(0, 1000, 2000))
    tracker.sample(sample(1000, 500))

    def broken(result):
        raise ValueError("cannot render")

    with pytest.raises(ValueError):
        tracker.sample_into(sample(5000, 5000), broken)

    assert tracker.last_sample == sample(1000, 500)
    assert tracker.last_time == 0

    result = tracker.sample(sample(3000, 2500))
    assert result.previous_time == 0
    assert result.input_per_second == pytest.approx(1000.0)


def test_sample_into_returns_rendered_value():
    tracker = RateTracker(clock=FakeClock(0))
    rendered = tracker.sample_into(sample(1, 2), lambda result: {"in": result.input_per_second})

    assert rendered == {"in": 0}
    assert tracker.last_sample == sample(1, 2)
