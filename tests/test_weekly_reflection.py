from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from conftest import make_snapshot
from quest_engines.weekly_reflection import (
    compute_reflection,
    find_most_improved_task,
    pick_pattern_highlight,
    previous_week_bounds,
    week_bounds,
)

WEEK_START = datetime(2026, 3, 9)  # Monday
WEEK_END = WEEK_START + timedelta(days=7)
PRIOR_START = WEEK_START - timedelta(days=7)


def _day(offset, hour=8, start=WEEK_START):
    return start + timedelta(days=offset, hours=hour - start.hour)


# ----- calendar helpers ----------------------------------------------
def test_previous_week_bounds_from_midweek():
    start, end = previous_week_bounds(datetime(2026, 3, 11, 15, 30))
    assert start == datetime(2026, 3, 2)
    assert end == datetime(2026, 3, 9)


def test_week_bounds_counts_back_whole_weeks():
    moment = datetime(2026, 3, 9, 0, 0)
    assert week_bounds(0, moment) == (datetime(2026, 3, 9), datetime(2026, 3, 16))
    assert week_bounds(2, moment) == (datetime(2026, 2, 23), datetime(2026, 3, 2))


def test_week_bounds_with_sunday_start():
    start, end = week_bounds(0, datetime(2026, 3, 11), first_weekday=6)
    assert start == datetime(2026, 3, 8)
    assert end == datetime(2026, 3, 15)


def test_week_bounds_stay_at_local_midnight_across_dst():
    zone = ZoneInfo("America/New_York")
    start, end = previous_week_bounds(datetime(2026, 3, 10, 12, 0, tzinfo=zone))

    assert (start.hour, end.hour) == (0, 0)
    assert start.date().isoformat() == "2026-03-02"
    assert end.date().isoformat() == "2026-03-09"
    # DST began on 2026-03-08, so this week is one hour short in absolute time
    assert start.utcoffset() == timedelta(hours=-5)
    assert end.utcoffset() == timedelta(hours=-4)


# ----- most improved -------------------------------------------------
def test_most_improved_requires_two_samples_in_each_week():
    this_week = [
        make_snapshot(task="Shoes", accuracy=90.0),
        make_snapshot(task="Shoes", accuracy=80.0),
        make_snapshot(task="Teeth", accuracy=100.0),
    ]
    prior = [
        make_snapshot(task="Shoes", accuracy=60.0),
        make_snapshot(task="Shoes", accuracy=70.0),
        make_snapshot(task="Teeth", accuracy=10.0),
        make_snapshot(task="Teeth", accuracy=10.0),
    ]

    result = find_most_improved_task(this_week, prior)

    assert result.task_name == "Shoes"
    assert result.delta == pytest.approx(20.0)


def test_most_improved_ignores_declines():
    this_week = [make_snapshot(task="Shoes", accuracy=50.0)] * 2
    prior = [make_snapshot(task="Shoes", accuracy=70.0)] * 2
    assert find_most_improved_task(this_week, prior) is None


# ----- pattern highlight ---------------------------------------------
def _series(task, accuracies=None, differences=None, start=PRIOR_START):
    count = len(accuracies or differences)
    accuracies = accuracies or [None] * count
    differences = differences or [0.0] * count
    return [
        make_snapshot(task=task, accuracy=acc, difference=diff, recorded_at=start + timedelta(days=idx))
        for idx, (acc, diff) in enumerate(zip(accuracies, differences))
    ]


def test_highlight_prefers_improving_trend():
    snapshots = _series("Brush teeth", differences=[40.0] * 10)
    snapshots += _series("Shoes", accuracies=[40.0, 50.0, 60.0, 70.0, 80.0, 90.0])

    highlight = pick_pattern_highlight(snapshots, {"Brush teeth", "Shoes"})
    assert highlight == "Your Shoes estimates are getting closer over time"


def test_highlight_falls_back_to_bias_then_consistency():
    biased = _series("Brush teeth", differences=[-40.0] * 6, accuracies=[67.0] * 6)
    assert pick_pattern_highlight(biased, {"Brush teeth"}) == "You tend to underestimate Brush teeth"

    steady = _series("Shoes", differences=[5.0] * 6, accuracies=[95.0] * 6)
    assert pick_pattern_highlight(steady, {"Shoes"}) == "You read Shoes the same way each time"


def test_highlight_limited_to_tasks_played_this_week():
    snapshots = _series("Shoes", accuracies=[40.0, 50.0, 60.0, 70.0, 80.0, 90.0])
    assert pick_pattern_highlight(snapshots, {"Brush teeth"}) is None
    assert pick_pattern_highlight(snapshots, set()) is None


# ----- reflection ----------------------------------------------------
def _week_fixture():
    this_week = [
        make_snapshot(task="Shoes", accuracy=80.0, recorded_at=_day(0)),
        make_snapshot(task="Shoes", accuracy=90.0, recorded_at=_day(0, hour=19)),
        make_snapshot(task="Teeth", accuracy=100.0, recorded_at=_day(2)),
        make_snapshot(task="Teeth", accuracy=30.0, recorded_at=_day(4)),
        make_snapshot(task="Teeth", accuracy=0.0, recorded_at=_day(5), is_calibration=True),
    ]
    prior = [
        make_snapshot(task="Shoes", accuracy=60.0, recorded_at=_day(1, start=PRIOR_START)),
        make_snapshot(task="Shoes", accuracy=70.0, recorded_at=_day(2, start=PRIOR_START)),
        make_snapshot(task="Teeth", accuracy=10.0, recorded_at=_day(3, start=PRIOR_START), is_calibration=True),
    ]
    outside = [make_snapshot(task="Shoes", accuracy=5.0, recorded_at=WEEK_END)]
    return this_week, prior, outside


def test_compute_reflection_core_metrics():
    this_week, prior, outside = _week_fixture()

    reflection = compute_reflection(this_week + prior + outside, WEEK_START, WEEK_END, prior, 3)

    assert reflection.quests_completed == 3
    assert reflection.total_estimations == 4
    assert reflection.average_accuracy == pytest.approx(75.0)
    assert reflection.accuracy_change_vs_prior_week == pytest.approx(10.0)
    assert reflection.formatted_accuracy_change == "+10%"
    assert reflection.best_estimate_task_name == "Teeth"
    assert reflection.best_estimate_accuracy == 100.0
    assert reflection.most_improved_task_name == "Shoes"
    assert reflection.most_improved_delta == pytest.approx(20.0)
    assert reflection.days_played_this_week == 3
    assert reflection.total_days_in_week == 7
    assert reflection.has_gaps
    assert reflection.streak_context_string == "3 of 7 days"
    assert reflection.is_meaningful


def test_compute_reflection_without_prior_week():
    this_week, _, _ = _week_fixture()

    reflection = compute_reflection(this_week, WEEK_START, WEEK_END, None, 1)

    assert reflection.accuracy_change_vs_prior_week is None
    assert reflection.formatted_accuracy_change is None
    assert reflection.most_improved_task_name is None


def test_empty_week_is_not_meaningful():
    reflection = compute_reflection([], WEEK_START, WEEK_END, [], 0)

    assert reflection.average_accuracy == 0.0
    assert reflection.best_estimate_task_name is None
    assert reflection.days_played_this_week == 0
    assert reflection.pattern_highlight is None
    assert not reflection.is_meaningful


def test_negative_change_formatting():
    this_week = [make_snapshot(accuracy=50.0, recorded_at=_day(1))]
    prior = [make_snapshot(accuracy=53.5, recorded_at=_day(1, start=PRIOR_START))]
    reflection = compute_reflection(this_week, WEEK_START, WEEK_END, prior, 1)
    assert reflection.formatted_accuracy_change == "-3%"


def test_compute_reflection_is_idempotent():
    this_week, prior, outside = _week_fixture()
    snapshots = this_week + prior + outside

    first = compute_reflection(snapshots, WEEK_START, WEEK_END, prior, 2)
    second = compute_reflection(snapshots, WEEK_START, WEEK_END, prior, 2)

    assert first == second
