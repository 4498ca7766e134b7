"""Habit analytics derived from completion logs.

Every function here is pure: it reads a list of ``HabitLogEntry`` and returns
freshly built report objects. Nothing touches the database, and sparse or
empty input degrades to zero / empty results instead of raising.
"""

import math
from collections.abc import Sequence
from datetime import datetime, timedelta, tzinfo

from app.schemas.analytics import (
    AdvancedMetricsResponse,
    CategoryInsight,
    HabitCorrelation,
    HabitLogEntry,
    PerformanceZone,
    Recommendation,
    StreakEvent,
    TimePattern,
)
from app.time_utils import local_hour, local_now, local_tz, start_of_day

MAX_CORRELATIONS = 10
MAX_STREAK_EVENTS = 30
MAX_PERFORMANCE_DAYS = 30

# 120 focused minutes in a day counts as full energy
ENERGY_FULL_SCALE_MINUTES = 120
NEUTRAL_MOOD = 50
TREND_MARGIN = 0.10

TIME_RANGE_DAYS = {
    "1month": 30,
    "3months": 90,
    "6months": 180,
    "1year": 365,
}


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _unique(values) -> list:
    seen = {}
    for v in values:
        if v and v not in seen:
            seen[v] = None
    return list(seen)


# ---------------------------------------------------------------------------
# Classification rules
# ---------------------------------------------------------------------------


def classify_strength(percent: float) -> str:
    if percent > 70:
        return "strong"
    if percent > 40:
        return "moderate"
    return "weak"


def classify_zone(productivity: float, energy: float, mood: float) -> str:
    if productivity > 80 and energy > 70 and mood > 70:
        return "peak"
    if productivity > 60 and energy > 50 and mood > 50:
        return "good"
    if productivity > 40 or energy > 30 or mood > 30:
        return "average"
    return "low"


def classify_trend(recent_rate: float, previous_rate: float) -> str:
    if recent_rate > previous_rate + TREND_MARGIN:
        return "up"
    if recent_rate < previous_rate - TREND_MARGIN:
        return "down"
    return "stable"


def time_of_day(hour: int) -> str:
    if hour < 12:
        return "Morning"
    if hour < 17:
        return "Afternoon"
    return "Evening"


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------


def calculate_habit_correlations(
    logs: Sequence[HabitLogEntry],
) -> list[HabitCorrelation]:
    """Pairwise co-completion rate for every pair of habits.

    The denominator is the number of distinct dates in the input, so a pair
    that never shares a day still reports against the whole window.
    """
    days: dict = {}
    for log in logs:
        days.setdefault(log.date, []).append(log)

    habits = _unique(log.habit_name for log in logs)
    completed_by_day = [
        {log.habit_name for log in day_logs if log.completed}
        for day_logs in days.values()
    ]
    total_days = len(completed_by_day)

    correlations: list[HabitCorrelation] = []
    for i, habit_a in enumerate(habits):
        for habit_b in habits[i + 1:]:
            co_completions = sum(
                1 for done in completed_by_day if habit_a in done and habit_b in done
            )
            percent = round_half_up(co_completions / total_days * 100) if total_days > 0 else 0
            correlations.append(
                HabitCorrelation(
                    habit_a=habit_a,
                    habit_b=habit_b,
                    co_completion_percent=percent,
                    strength=classify_strength(percent),
                )
            )

    correlations.sort(key=lambda c: c.co_completion_percent, reverse=True)
    return correlations[:MAX_CORRELATIONS]


def calculate_time_patterns(
    logs: Sequence[HabitLogEntry], tz: tzinfo | None = None
) -> list[TimePattern]:
    """Completion counts per local hour of day; empty hours are omitted."""
    tz = tz or local_tz()
    buckets = [{"completions": 0, "total": 0, "focus": 0.0} for _ in range(24)]

    for log in logs:
        if log.completed_at is None:
            continue
        bucket = buckets[local_hour(log.completed_at, tz)]
        bucket["total"] += 1
        if log.completed:
            bucket["completions"] += 1
        bucket["focus"] += log.duration_minutes or 0

    return [
        TimePattern(
            hour=hour,
            completions=b["completions"],
            success_rate_percent=round_half_up(b["completions"] / b["total"] * 100),
            avg_focus_minutes=round_half_up(b["focus"] / b["total"]),
        )
        for hour, b in enumerate(buckets)
        if b["total"] > 0
    ]


def calculate_streak_analysis(logs: Sequence[HabitLogEntry]) -> list[StreakEvent]:
    """Streak end points per category.

    The scan runs over completed entries only, so the streak-break branch is
    never reached for this input and no events are produced. Kept as is until
    the intended semantics are confirmed.
    """
    events: list[StreakEvent] = []

    for category in _unique(log.category for log in logs):
        category_logs = [log for log in logs if log.category == category and log.completed]
        current_streak = 0
        momentum = 0

        for index, log in enumerate(category_logs):
            if log.completed:
                current_streak += 1
                momentum = momentum + 1 if index > 0 else 1
            else:
                if current_streak > 0:
                    events.append(
                        StreakEvent(
                            date=log.date,
                            streak_length=current_streak,
                            category=category,
                            momentum=momentum,
                        )
                    )
                current_streak = 0
                momentum = 0

    return events[-MAX_STREAK_EVENTS:]


def calculate_performance_zones(
    logs: Sequence[HabitLogEntry],
) -> list[PerformanceZone]:
    """Daily productivity / energy / mood and the resulting zone."""
    days: dict = {}
    for log in logs:
        day = days.setdefault(
            log.date,
            {"total": 0, "completions": 0, "focus_time": 0.0, "focus_score": 0.0},
        )
        day["total"] += 1
        if log.completed:
            day["completions"] += 1
        day["focus_time"] += log.duration_minutes or 0
        day["focus_score"] += log.focus_score or 0

    zones: list[PerformanceZone] = []
    for day_date, day in days.items():
        productivity = day["completions"] / day["total"] * 100 if day["total"] > 0 else 0
        energy = min(100, day["focus_time"] / ENERGY_FULL_SCALE_MINUTES * 100)
        if day["completions"] > 0:
            mood = day["focus_score"] / day["completions"] * 20
        else:
            mood = NEUTRAL_MOOD

        zones.append(
            PerformanceZone(
                date=day_date,
                productivity_percent=round_half_up(productivity),
                energy_percent=round_half_up(energy),
                mood_score=round_half_up(mood),
                zone=classify_zone(productivity, energy, mood),
            )
        )

    return zones[-MAX_PERFORMANCE_DAYS:]


def _completion_rate(logs: list[HabitLogEntry]) -> float:
    if not logs:
        return 0
    return sum(1 for log in logs if log.completed) / len(logs)


def calculate_category_insights(
    logs: Sequence[HabitLogEntry],
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> list[CategoryInsight]:
    """Per-category timing, consistency and week-over-week trend.

    The trend windows are anchored on ``now`` (wall clock by default), not on
    the newest log in the input.
    """
    tz = tz or local_tz()
    now = now or local_now()
    week_ago = now - timedelta(days=7)
    two_weeks_ago = now - timedelta(days=14)

    insights: list[CategoryInsight] = []
    for category in _unique(log.category for log in logs):
        category_logs = [log for log in logs if log.category == category]
        completed_logs = [log for log in category_logs if log.completed]

        if completed_logs:
            avg_minutes = sum(log.duration_minutes or 0 for log in completed_logs) / len(completed_logs)
        else:
            avg_minutes = 0

        hour_counts = [0] * 24
        for log in completed_logs:
            if log.completed_at is not None:
                hour_counts[local_hour(log.completed_at, tz)] += 1
        best_hour = hour_counts.index(max(hour_counts))

        consistency = len(completed_logs) / len(category_logs) * 100

        recent = []
        previous = []
        for log in category_logs:
            day_start = start_of_day(log.date, tz)
            if day_start >= week_ago:
                recent.append(log)
            elif day_start >= two_weeks_ago:
                previous.append(log)

        insights.append(
            CategoryInsight(
                category=category,
                avg_completion_minutes=round_half_up(avg_minutes),
                best_time_of_day=time_of_day(best_hour),
                consistency_percent=round_half_up(consistency),
                trend=classify_trend(_completion_rate(recent), _completion_rate(previous)),
            )
        )

    return insights


def build_recommendations(
    correlations: list[HabitCorrelation],
    time_patterns: list[TimePattern],
    zones: list[PerformanceZone],
    insights: list[CategoryInsight],
) -> list[Recommendation]:
    """Plain-language suggestions derived from the computed reports."""
    if insights and insights[0].consistency_percent < 70:
        optimization = (
            f"Your {insights[0].category} habits show room for improvement. "
            "Try scheduling them during your peak performance hours."
        )
    else:
        optimization = (
            "Great consistency across all categories! Consider adding a new "
            "challenging habit to continue growing."
        )

    if time_patterns:
        best = time_patterns[0]
        for pattern in time_patterns[1:]:
            if pattern.success_rate_percent > best.success_rate_percent:
                best = pattern
        timing = (
            f"Your most productive time is {best.hour}:00. "
            "Schedule important habits during this window."
        )
    else:
        timing = "Complete more habits to unlock personalized timing recommendations."

    if correlations:
        top = correlations[0]
        stacking = (
            f"{top.habit_a} and {top.habit_b} work well together "
            f"({top.co_completion_percent}% correlation). Consider pairing them."
        )
    else:
        stacking = "Build more habits to discover powerful habit combinations."

    if zones:
        latest = zones[-1].zone
        follow_up = (
            "Excellent work! Maintain this momentum."
            if latest == "peak"
            else "Focus on consistency to reach peak performance."
        )
        performance = f"You've been in the {latest} performance zone recently. {follow_up}"
    else:
        performance = "Complete more habits to unlock performance zone analysis."

    return [
        Recommendation(kind="optimization", title="Optimization Opportunity", message=optimization),
        Recommendation(kind="timing", title="Timing Recommendation", message=timing),
        Recommendation(kind="stacking", title="Habit Stacking", message=stacking),
        Recommendation(kind="performance", title="Performance Trend", message=performance),
    ]


def compute_advanced_metrics(
    logs: Sequence[HabitLogEntry],
    time_range: str = "1month",
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> AdvancedMetricsResponse:
    correlations = calculate_habit_correlations(logs)
    time_patterns = calculate_time_patterns(logs, tz)
    streaks = calculate_streak_analysis(logs)
    zones = calculate_performance_zones(logs)
    insights = calculate_category_insights(logs, now=now, tz=tz)

    return AdvancedMetricsResponse(
        time_range=time_range,
        habit_correlations=correlations,
        time_patterns=time_patterns,
        streak_analysis=streaks,
        performance_zones=zones,
        category_insights=insights,
        recommendations=build_recommendations(correlations, time_patterns, zones, insights),
    )
