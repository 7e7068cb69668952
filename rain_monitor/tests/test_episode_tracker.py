import itertools

import pytest

from rain_monitor.services.episode_tracker import EpisodeTracker, TrackerState


def _run(tracker, signals):
    return [tracker.on_signal(bool(s)).action for s in signals]


def test_rising_edge_starts_episode_with_zero_duration(time_policy):
    tracker = EpisodeTracker(time_policy)

    t = tracker.on_signal(True)

    assert t.action == "started"
    assert t.duration == 0
    assert t.started_at == time_policy.now()
    assert tracker.state is TrackerState.ACTIVE
    assert tracker.current_duration() == 0


def test_falling_edge_ends_episode_and_builds_record(time_policy, clock):
    tracker = EpisodeTracker(time_policy)
    tracker.on_signal(True)
    clock.advance(65)

    t = tracker.on_signal(False)

    assert t.action == "ended"
    assert t.duration == 65
    assert t.record.start_time == "01/01/2024 10:00:00"
    assert t.record.end_time == "01/01/2024 10:01:05"
    assert t.record.duration == 65
    assert tracker.state is TrackerState.IDLE
    assert tracker.started_at is None
    assert tracker.current_duration() == 0


def test_end_signal_without_episode_is_silent_noop(time_policy):
    tracker = EpisodeTracker(time_policy)

    assert _run(tracker, [0, 0, 0]) == ["noop", "noop", "noop"]
    assert tracker.state is TrackerState.IDLE


def test_last_signal_is_recorded_even_on_noop(time_policy):
    tracker = EpisodeTracker(time_policy)
    tracker.on_signal(True)
    tracker.on_signal(True)

    assert tracker.last_signal is True
    tracker.on_signal(False)
    assert tracker.last_signal is False


def test_duplicate_signals_give_one_start_and_one_end(time_policy):
    tracker = EpisodeTracker(time_policy)

    actions = _run(tracker, [1, 1, 1, 0])

    assert actions.count("started") == 1
    assert actions.count("ended") == 1


@pytest.mark.parametrize("length", [1, 2, 3, 4, 5, 6])
def test_never_two_starts_without_an_end_between(time_policy, length):
    for seq in itertools.product([0, 1], repeat=length):
        tracker = EpisodeTracker(time_policy)
        open_episodes = 0
        for action in _run(tracker, seq):
            if action == "started":
                open_episodes += 1
            elif action == "ended":
                open_episodes -= 1
            assert open_episodes in (0, 1), seq
        assert tracker.is_active == (open_episodes == 1), seq


def test_current_duration_is_monotonic_while_active(time_policy, clock):
    tracker = EpisodeTracker(time_policy)
    tracker.on_signal(True)

    seen = []
    for step in [0.4, 0.7, 1.0, 0.0, 2.5, 10]:
        clock.advance(step)
        seen.append(tracker.current_duration())

    assert seen == sorted(seen)
    assert seen[-1] == 14


def test_clock_failure_reports_zero(time_policy, clock):
    tracker = EpisodeTracker(time_policy)
    tracker.on_signal(True)
    clock.advance(10)
    clock.fail = True

    assert tracker.current_duration() == 0


def test_clock_stepping_back_before_end_freezes_zero_duration(time_policy, clock):
    tracker = EpisodeTracker(time_policy)
    tracker.on_signal(True)
    clock.advance(10)

    # Given: the clock is stepped back past the start
    clock.advance(-60)
    t = tracker.on_signal(False)

    assert t.action == "ended"
    assert t.duration == 0
    assert tracker.state is TrackerState.IDLE


def test_clock_failure_on_start_leaves_state_untouched(time_policy, clock):
    tracker = EpisodeTracker(time_policy)
    clock.fail = True

    with pytest.raises(OSError):
        tracker.on_signal(True)

    assert tracker.state is TrackerState.IDLE
    assert tracker.last_signal is False

    # When the clock recovers the next rising edge still starts an episode
    clock.fail = False
    assert tracker.on_signal(True).action == "started"


def test_snapshot_only_while_active(time_policy, clock):
    tracker = EpisodeTracker(time_policy)
    assert tracker.snapshot() is None

    tracker.on_signal(True)
    clock.advance(7)

    assert tracker.snapshot() == {
        "status": "hujan",
        "startedAt": "01/01/2024 10:00:00",
        "duration": 7,
    }
