import pytest

from acrophobia.services.games.countdown import Countdown, countdown_milestones
from acrophobia.services.games.scheduler import GatedScheduler, ManualScheduler


@pytest.mark.parametrize('secs, expected', [
    (60, [1, 2, 3, 10, 30]),
    (30, [1, 2, 3, 15]),
    (20, [1, 2, 3, 10]),
    (10, [1, 2, 3, 5]),
    (4, [1, 2, 3]),
    (3, [1, 2]),
    (1, []),
])
def test_milestones_for_duration(secs, expected):
    assert countdown_milestones(secs) == expected


def _run(secs, milestones=None):
    scheduler = ManualScheduler()
    fired = []
    completed = []
    Countdown(
        scheduler,
        secs,
        on_milestone=lambda left: fired.append((scheduler.time, left)),
        on_complete=lambda: completed.append(scheduler.time),
        milestones=milestones,
    ).start()
    scheduler.run_until_idle()
    return fired, completed


def test_milestones_fire_highest_first_at_remaining_time():
    fired, completed = _run(60)
    assert [left for _, left in fired] == [30, 10, 3, 2, 1]
    # Each mark fires when exactly that many seconds remain
    assert all(when == 60 - left for when, left in fired)
    assert completed == [60]


def test_milestones_strictly_decreasing():
    fired, _ = _run(47)
    lefts = [left for _, left in fired]
    assert all(a > b for a, b in zip(lefts, lefts[1:]))


def test_empty_milestones_is_single_wait():
    fired, completed = _run(12, milestones=[])
    assert fired == []
    assert completed == [12]


def test_custom_milestones():
    fired, completed = _run(20, milestones=[5, 15])
    assert fired == [(5, 15), (15, 5)]
    assert completed == [20]


def test_nothing_fires_before_time():
    scheduler = ManualScheduler()
    completed = []
    Countdown(scheduler, 30, on_milestone=lambda left: None, on_complete=lambda: completed.append(True)).start()
    scheduler.advance(29.9)
    assert completed == []
    scheduler.advance(0.1)
    assert completed == [True]


def test_closed_gate_silences_pending_countdown():
    base = ManualScheduler()
    gate = GatedScheduler(base)
    fired = []
    Countdown(gate, 30, on_milestone=fired.append, on_complete=lambda: fired.append('done')).start()
    base.advance(16)
    assert fired == [15]
    gate.close()
    base.run_until_idle()
    assert fired == [15]
