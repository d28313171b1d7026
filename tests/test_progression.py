from datetime import date, datetime, timedelta

import pytest

from conftest import make_snapshot
from difficulty_levels import DifficultyConfiguration
from quest_engines.difficulty import DifficultyState
from quest_engines.progression import (
    SessionProgressionEngine,
    TaskAttempt,
    daily_accuracy_series,
)
from quest_engines.scorer import AccuracyRating
from quest_engines.xp import PlayerProgress, xp_for_session

TODAY = date(2026, 3, 10)
NOW = datetime(2026, 3, 10, 7, 30)


def _attempt(task, estimated, actual, minutes=0):
    return TaskAttempt(task, estimated, actual, NOW + timedelta(minutes=minutes))


def test_calibration_session_skips_difficulty_updates():
    engine = SessionProgressionEngine()

    outcome = engine.complete_session(
        attempts=[_attempt("Shoes", 90, 120), _attempt("Teeth", 100, 100, 5)],
        history=[],
        difficulty_states={},
        progress=PlayerProgress(),
        completed_session_count=0,
        routine_name="Morning",
        today=TODAY,
    )

    assert outcome.is_calibration
    assert outcome.difficulty_states == {}
    assert all(s.is_calibration for s in outcome.snapshots)
    assert outcome.attempts[0].feedback.body.startswith("Just learning")
    assert outcome.personal_bests == ["Shoes", "Teeth"]
    # close (60) + spot on (100) + completion bonus
    assert outcome.xp_earned == 180
    assert outcome.progress == PlayerProgress(total_xp=180, current_streak=1, last_played_date=TODAY)
    assert outcome.player_level_before == 0
    assert outcome.leveled_up


def test_regular_session_updates_difficulty_and_streak():
    engine = SessionProgressionEngine()
    history = [
        make_snapshot(task="Shoes", difference=5.0, recorded_at=NOW - timedelta(days=d))
        for d in range(1, 6)
    ]
    states = {"Shoes": DifficultyState("Shoes", difficulty_level=1, ema=88.0, sessions_at_current_level=5)}

    outcome = engine.complete_session(
        attempts=[_attempt("Shoes", 100, 100)],
        history=history,
        difficulty_states=states,
        progress=PlayerProgress(total_xp=500, current_streak=4, last_played_date=TODAY - timedelta(days=1)),
        completed_session_count=8,
        routine_name="Morning",
        today=TODAY,
    )

    state = outcome.difficulty_states["Shoes"]
    assert state.ema == pytest.approx(100 * 0.3 + 88.0 * 0.7)
    assert state.difficulty_level == 5
    assert state.sessions_at_current_level == 0
    assert state.last_updated == NOW
    assert states["Shoes"].difficulty_level == 1

    attempt = outcome.attempts[0]
    assert attempt.difficulty_level == 1
    assert attempt.is_personal_best
    assert not attempt.snapshot.is_calibration
    assert outcome.progress.current_streak == 5
    assert outcome.streak.is_active


def test_session_xp_matches_xp_engine_for_a_single_level():
    engine = SessionProgressionEngine()
    states = {
        name: DifficultyState(name, difficulty_level=3, ema=80.0)
        for name in ("Shoes", "Teeth")
    }

    outcome = engine.complete_session(
        attempts=[_attempt("Shoes", 100, 100), _attempt("Teeth", 300, 100, 3)],
        history=[],
        difficulty_states=states,
        progress=PlayerProgress(),
        completed_session_count=5,
        routine_name="Morning",
        today=TODAY,
    )

    ratings = [attempt.result.rating for attempt in outcome.attempts]
    assert ratings == [AccuracyRating.SPOT_ON, AccuracyRating.WAY_OFF]
    assert outcome.xp_earned == xp_for_session(ratings, 3)


def test_repeated_task_in_one_session_sees_its_earlier_attempt():
    config = DifficultyConfiguration(minimum_sessions_to_advance=0)
    engine = SessionProgressionEngine(difficulty_config=config)

    outcome = engine.complete_session(
        attempts=[_attempt("Shoes", 100, 100), _attempt("Shoes", 110, 100, 10)],
        history=[],
        difficulty_states={},
        progress=PlayerProgress(),
        completed_session_count=3,
        routine_name="Morning",
        today=TODAY,
    )

    first, second = outcome.attempts
    assert first.is_personal_best
    assert not second.is_personal_best
    assert outcome.difficulty_states["Shoes"].ema == pytest.approx(
        90 * 0.3 + (100 * 0.3) * 0.7
    )


def test_invalid_inputs_are_rejected():
    engine = SessionProgressionEngine()
    with pytest.raises(ValueError):
        engine.complete_session([_attempt("Shoes", 10, 0)], [], {}, PlayerProgress(), 4, "Morning", TODAY)
    with pytest.raises(ValueError):
        engine.complete_session([], [], {}, PlayerProgress(), -1, "Morning", TODAY)


def test_daily_accuracy_series_averages_per_day():
    snapshots = [
        make_snapshot(accuracy=80.0, recorded_at=datetime(2026, 3, 9, 8)),
        make_snapshot(accuracy=60.0, recorded_at=datetime(2026, 3, 9, 19)),
        make_snapshot(accuracy=90.0, recorded_at=datetime(2026, 3, 1, 8)),
        make_snapshot(accuracy=10.0, recorded_at=datetime(2026, 1, 1, 8)),
    ]

    series = daily_accuracy_series(snapshots, TODAY)

    assert [point.day for point in series] == [date(2026, 3, 1), date(2026, 3, 9)]
    assert series[1].average_accuracy == pytest.approx(70.0)
