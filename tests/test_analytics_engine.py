"""Unit tests for the habit analytics functions.

These run without a database: entries are built in memory and all time zone
dependent calls are pinned to UTC.
"""

import uuid
from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from app.schemas.analytics import HabitLogEntry
from app.services.analytics_engine import (
    build_recommendations,
    calculate_category_insights,
    calculate_habit_correlations,
    calculate_performance_zones,
    calculate_streak_analysis,
    calculate_time_patterns,
    classify_trend,
    classify_zone,
    compute_advanced_metrics,
    round_half_up,
)

UTC = timezone.utc
NOW = datetime(2026, 10, 19, 12, 0, tzinfo=UTC)

_HABIT_IDS: dict[str, uuid.UUID] = {}


def _log(
    day: date,
    name: str,
    category: str = "health",
    completed: bool = True,
    hour: int | None = None,
    duration: float | None = None,
    score: float | None = None,
) -> HabitLogEntry:
    habit_id = _HABIT_IDS.setdefault(name, uuid.uuid4())
    completed_at = None
    if hour is not None:
        completed_at = datetime(day.year, day.month, day.day, hour, 30, tzinfo=UTC)
    return HabitLogEntry(
        date=day,
        habit_id=habit_id,
        habit_name=name,
        category=category,
        completed=completed,
        completed_at=completed_at,
        duration_minutes=duration,
        focus_score=score,
    )


def _day(offset: int) -> date:
    return date(2026, 10, 1) + timedelta(days=offset)


# --- rounding ---


def test_round_half_up_matches_display_rounding():
    assert round_half_up(12.5) == 13
    assert round_half_up(0.5) == 1
    assert round_half_up(2.4999) == 2
    assert round_half_up(0) == 0


# --- correlations ---


def test_correlations_need_two_habits():
    assert calculate_habit_correlations([]) == []
    logs = [_log(_day(0), "Read"), _log(_day(1), "Read")]
    assert calculate_habit_correlations(logs) == []


def test_correlation_counts_every_distinct_day():
    logs = [
        _log(_day(0), "Read"),
        _log(_day(0), "Run"),
        _log(_day(1), "Read"),
        _log(_day(1), "Run", completed=False),
        # Neither habit completed, but the day still counts in the denominator
        _log(_day(2), "Meditate"),
        _log(_day(3), "Read"),
        _log(_day(3), "Run"),
    ]
    correlations = calculate_habit_correlations(logs)
    pair = next(c for c in correlations if {c.habit_a, c.habit_b} == {"Read", "Run"})
    assert pair.co_completion_percent == 50  # 2 of 4 days
    assert pair.strength == "moderate"


def test_correlation_is_order_independent():
    logs = [
        _log(_day(0), "Read"),
        _log(_day(0), "Run"),
        _log(_day(1), "Read"),
        _log(_day(2), "Run"),
    ]
    forward = calculate_habit_correlations(logs)
    backward = calculate_habit_correlations(list(reversed(logs)))
    assert len(forward) == len(backward) == 1
    assert forward[0].co_completion_percent == backward[0].co_completion_percent
    assert {forward[0].habit_a, forward[0].habit_b} == {backward[0].habit_a, backward[0].habit_b}


@pytest.mark.parametrize(
    "together, total, expected",
    [(7, 10, "moderate"), (8, 10, "strong"), (2, 5, "weak"), (3, 5, "moderate")],
)
def test_correlation_strength_thresholds_are_exclusive(together, total, expected):
    logs = []
    for i in range(total):
        logs.append(_log(_day(i), "Read"))
        logs.append(_log(_day(i), "Run", completed=i < together))
    [pair] = calculate_habit_correlations(logs)
    assert pair.co_completion_percent == round(together / total * 100)
    assert pair.strength == expected


def test_correlations_sorted_and_capped_at_ten():
    names = ["A", "B", "C", "D", "E", "F"]  # 15 pairs
    logs = []
    for i in range(10):
        for j, name in enumerate(names):
            logs.append(_log(_day(i), name, completed=(i + j) % 3 != 0))

    correlations = calculate_habit_correlations(logs)
    assert len(correlations) == 10
    percents = [c.co_completion_percent for c in correlations]
    assert percents == sorted(percents, reverse=True)
    assert all(0 <= p <= 100 for p in percents)


# --- time patterns ---


def test_time_patterns_drop_empty_hours():
    logs = [
        _log(_day(0), "Read", hour=9, duration=30),
        _log(_day(1), "Read", completed=False, hour=9, duration=10),
        _log(_day(0), "Run", hour=14),
        _log(_day(2), "Run"),  # no completed_at: ignored
    ]
    patterns = calculate_time_patterns(logs, UTC)
    assert [p.hour for p in patterns] == [9, 14]

    nine, fourteen = patterns
    assert nine.completions == 1
    assert nine.success_rate_percent == 50
    assert nine.avg_focus_minutes == 20
    assert fourteen.success_rate_percent == 100
    assert fourteen.avg_focus_minutes == 0


def test_time_patterns_use_local_hour():
    logs = [_log(_day(0), "Read", hour=23)]  # 23:30 UTC
    [pattern] = calculate_time_patterns(logs, ZoneInfo("Asia/Kolkata"))
    assert pattern.hour == 5


def test_time_patterns_empty():
    assert calculate_time_patterns([], UTC) == []


# --- streaks ---


def test_streak_scan_over_completed_entries_emits_nothing():
    logs = [
        _log(_day(0), "Read"),
        _log(_day(1), "Read", completed=False),
        _log(_day(2), "Read"),
        _log(_day(2), "Code", category="work"),
    ]
    assert calculate_streak_analysis(logs) == []


# --- performance zones ---


@pytest.mark.parametrize(
    "productivity, energy, mood, expected",
    [
        (85, 75, 75, "peak"),
        (65, 55, 55, "good"),
        (45, 20, 10, "average"),
        (10, 10, 10, "low"),
        (80, 75, 75, "good"),
        (40, 30, 30, "low"),
    ],
)
def test_zone_classification(productivity, energy, mood, expected):
    assert classify_zone(productivity, energy, mood) == expected


def test_performance_zone_metrics():
    day = _day(0)
    logs = [
        _log(day, "Read", duration=60, score=4),
        _log(day, "Run", duration=60, score=4),
        _log(day, "Code", duration=30, score=4),
        _log(day, "Write", duration=30, score=4),
    ]
    [zone] = calculate_performance_zones(logs)
    assert zone.date == day
    assert zone.productivity_percent == 100
    assert zone.energy_percent == 100  # capped
    assert zone.mood_score == 80
    assert zone.zone == "peak"


def test_performance_zone_without_completions_defaults_mood():
    logs = [_log(_day(0), "Read", completed=False), _log(_day(0), "Run", completed=False)]
    [zone] = calculate_performance_zones(logs)
    assert zone.productivity_percent == 0
    assert zone.energy_percent == 0
    assert zone.mood_score == 50
    assert zone.zone == "average"


def test_performance_zone_rounds_half_up():
    logs = [_log(_day(0), f"H{i}", completed=i == 0) for i in range(8)]
    [zone] = calculate_performance_zones(logs)
    assert zone.productivity_percent == 13  # 12.5


def test_performance_zones_keep_last_thirty_days():
    logs = [_log(_day(i), "Read") for i in range(35)]
    zones = calculate_performance_zones(logs)
    assert len(zones) == 30
    assert zones[0].date == _day(5)
    assert zones[-1].date == _day(34)


# --- category insights ---


def test_trend_margin():
    assert classify_trend(0.65, 0.5) == "up"
    assert classify_trend(0.5, 0.5) == "stable"
    assert classify_trend(0.5, 0.65) == "down"
    assert classify_trend(0.55, 0.5) == "stable"


def _batch(day: date, total: int, completed: int, category: str = "health") -> list[HabitLogEntry]:
    return [
        _log(day, f"{category}-{i}", category=category, completed=i < completed)
        for i in range(total)
    ]


@pytest.mark.parametrize(
    "recent_done, previous_done, expected",
    [(13, 10, "up"), (10, 10, "stable"), (10, 13, "down")],
)
def test_category_trend_against_wall_clock(recent_done, previous_done, expected):
    logs = _batch(date(2026, 10, 18), 20, recent_done) + _batch(date(2026, 10, 10), 20, previous_done)
    [insight] = calculate_category_insights(logs, now=NOW, tz=UTC)
    assert insight.trend == expected


def test_category_trend_ignores_logs_older_than_two_weeks():
    logs = _batch(date(2026, 10, 18), 4, 2) + _batch(date(2026, 9, 1), 10, 0)
    [insight] = calculate_category_insights(logs, now=NOW, tz=UTC)
    assert insight.trend == "up"  # 0.5 vs empty previous window


def test_category_insight_fields():
    day = date(2026, 10, 18)
    logs = [
        _log(day, "Run", hour=8, duration=30),
        _log(day, "Swim", hour=8, duration=50),
        _log(day, "Lift", hour=15, duration=10),
        _log(day, "Stretch", completed=False, hour=20, duration=99),
        _log(day, "Code", category="work", hour=13),
        _log(day, "Review", category="work", hour=18),
        _log(day, "Plan", category="", hour=7),
    ]
    insights = calculate_category_insights(logs, now=NOW, tz=UTC)
    assert [i.category for i in insights] == ["health", "work"]

    health, work = insights
    assert health.avg_completion_minutes == 30  # (30 + 50 + 10) / 3
    assert health.best_time_of_day == "Morning"
    assert health.consistency_percent == 75
    # Tie between 13h and 18h goes to the earlier hour
    assert work.best_time_of_day == "Afternoon"
    assert work.avg_completion_minutes == 0


def test_category_without_timestamps_defaults_to_morning():
    logs = [_log(_day(0), "Read", category="mind", hour=None)]
    [insight] = calculate_category_insights(logs, now=NOW, tz=UTC)
    assert insight.best_time_of_day == "Morning"


# --- bundle and purity ---


def test_functions_are_idempotent_and_do_not_mutate_input():
    logs = [
        _log(_day(i % 5), name, category=cat, completed=(i % 3) != 0, hour=(i * 5) % 24, duration=i, score=i % 10)
        for i, (name, cat) in enumerate(
            [("Read", "mind"), ("Run", "health"), ("Code", "work")] * 6
        )
    ]
    snapshot = list(logs)

    first = compute_advanced_metrics(logs, now=NOW, tz=UTC)
    second = compute_advanced_metrics(logs, now=NOW, tz=UTC)

    assert first == second
    assert logs == snapshot


def test_recommendations_without_data():
    recs = build_recommendations([], [], [], [])
    assert [r.kind for r in recs] == ["optimization", "timing", "stacking", "performance"]
    assert "Build more habits" in recs[2].message


def test_recommendations_reference_top_results():
    logs = [
        _log(_day(0), "Read", hour=9),
        _log(_day(0), "Run", hour=9),
        _log(_day(1), "Read", hour=18),
        _log(_day(1), "Run", completed=False, hour=18),
    ]
    metrics = compute_advanced_metrics(logs, now=NOW, tz=UTC)
    by_kind = {r.kind: r.message for r in metrics.recommendations}

    assert "Read and Run work well together (50% correlation)" in by_kind["stacking"]
    assert "9:00" in by_kind["timing"]
    assert "Great consistency" in by_kind["optimization"]  # 75% consistency
    assert "performance zone" in by_kind["performance"]
