"""
Wellness history: per-day snapshots of numeric wellness scores.

Every activity that says something about how the user is doing (an emotion
check, a logged meal, a finished breathing session, a coach conversation)
adds one data point (0-100) to today's snapshot. The dashboard numbers are
derived from those snapshots here.
"""

import logging
import math
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional

from schemas import (
    ChartPoint,
    DailySummary,
    Meal,
    TimePeriod,
    WeeklyDietSummary,
    WellnessDataPoint,
    WellnessMetricType,
    WellnessSnapshot,
)
from store import EMOTIONAL_SNAPSHOTS, DocumentStore

logger = logging.getLogger(__name__)

GOALS_BONUS = 1
MEDITATION_BONUS = 5


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def snapshot_id(user_id: str, day: str) -> str:
    return f"{user_id}_{day}"


def _mean(values: List[float]) -> Optional[float]:
    if not values:
        return None
    return sum(values) / len(values)


def snapshot_average(snapshot: WellnessSnapshot) -> float:
    avg = _mean([p.value for p in snapshot.data_points])
    return avg if avg is not None else 0.0


# ---------- Store access ----------

def load_history(store: DocumentStore, user_id: str) -> List[WellnessSnapshot]:
    """All snapshots of a user, oldest first."""
    docs = store.query(EMOTIONAL_SNAPSHOTS, user_id=user_id)
    snapshots = [WellnessSnapshot(**doc) for doc in docs]
    return sorted(snapshots, key=lambda s: s.date)


def add_data_point(
    store: DocumentStore,
    user_id: str,
    value: float,
    metric_type: WellnessMetricType,
    today: Optional[date] = None,
) -> WellnessSnapshot:
    """Append a data point to today's snapshot, creating the snapshot if needed."""
    today = today or date.today()
    day = today.isoformat()
    doc_id = snapshot_id(user_id, day)

    point = WellnessDataPoint(value=value, type=metric_type)

    def append(existing: Optional[Dict]) -> Dict:
        if existing:
            snapshot = WellnessSnapshot(**existing)
            snapshot.data_points.append(point)
        else:
            snapshot = WellnessSnapshot(user_id=user_id, date=day, data_points=[point])
        return snapshot.model_dump(exclude={"id"})

    written = store.transact(EMOTIONAL_SNAPSHOTS, doc_id, append)
    logger.debug(f"Added {metric_type} data point {value:.1f} for {user_id} on {day}")
    return WellnessSnapshot(**written, id=doc_id)


# ---------- Daily summary ----------

def daily_summary(
    history: Iterable[WellnessSnapshot],
    today: Optional[date] = None,
    goals_completed: bool = False,
    meditation_completed: bool = False,
) -> DailySummary:
    """
    Today's total score and its change from yesterday.

    goals_completed: today's goal list is non-empty and fully ticked (+1).
    meditation_completed: a breathing session was finished today (+5).
    """
    today = today or date.today()
    by_date: Dict[str, WellnessSnapshot] = {s.date: s for s in history}
    today_entry = by_date.get(today.isoformat())
    yesterday_entry = by_date.get((today - timedelta(days=1)).isoformat())

    total_score = 0
    emotion_score = None
    diet_score = None

    if today_entry and today_entry.data_points:
        points = today_entry.data_points

        emotion_avg = _mean([p.value for p in points if p.type == "emotion"])
        if emotion_avg is not None:
            emotion_score = round_half_up(emotion_avg)

        diet_avg = _mean([p.value for p in points if p.type == "diet"])
        if diet_avg is not None:
            diet_score = round_half_up(diet_avg)

        bonus = 0
        if goals_completed:
            bonus += GOALS_BONUS
        if meditation_completed:
            bonus += MEDITATION_BONUS

        total_score = min(100, round_half_up(snapshot_average(today_entry) + bonus))

    change = None
    if yesterday_entry and yesterday_entry.data_points:
        # today's total (with bonuses) is compared against yesterday's base score
        yesterday_base = snapshot_average(yesterday_entry)
        if yesterday_base > 0 and total_score > 0:
            change = (total_score - yesterday_base) / yesterday_base * 100
    elif total_score > 0:
        change = 100.0

    return DailySummary(
        total_score=total_score,
        change=change,
        emotion_score=emotion_score,
        diet_score=diet_score,
    )


# ---------- Chart series ----------

def _chart_point(label: str, wellness_score: float) -> ChartPoint:
    score = wellness_score or 0
    dark_blue = (100 - score) / 4 + 5 if score > 0 else 0
    light_blue = max(0, score - dark_blue)
    return ChartPoint(
        day=label,
        light_blue=light_blue,
        dark_blue=dark_blue,
        tooltip_positive=round_half_up(score),
    )


def _day_label(day: date) -> str:
    return f"{day.strftime('%b')} {day.day}"


def _one_year_before(day: date) -> date:
    try:
        return day.replace(year=day.year - 1)
    except ValueError:  # Feb 29
        return day.replace(year=day.year - 1, day=28)


def chart_data(
    history: Iterable[WellnessSnapshot],
    period: TimePeriod,
    today: Optional[date] = None,
) -> List[ChartPoint]:
    """
    Bars for the emotional state chart.

    week / month: one bar per day (7 / 30), oldest first.
    year: one bar per calendar month (12), each the mean of the daily means.
    """
    today = today or date.today()
    snapshots = list(history)
    daily_scores = {s.date: snapshot_average(s) for s in snapshots}

    if period in ("week", "month"):
        days = 7 if period == "week" else 30
        points = []
        for offset in range(days - 1, -1, -1):
            day = today - timedelta(days=offset)
            points.append(_chart_point(_day_label(day), daily_scores.get(day.isoformat(), 0)))
        return points

    if period != "year":
        raise ValueError(f"Unknown period: {period!r}")

    months = []
    for offset in range(11, -1, -1):
        month_index = today.year * 12 + (today.month - 1) - offset
        months.append(date(month_index // 12, month_index % 12 + 1, 1))

    totals = {(m.year, m.month): [0.0, 0] for m in months}
    cutoff = _one_year_before(today)
    for snapshot in snapshots:
        if not snapshot.data_points:
            continue
        day = date.fromisoformat(snapshot.date)
        key = (day.year, day.month)
        if day >= cutoff and key in totals:
            totals[key][0] += snapshot_average(snapshot)
            totals[key][1] += 1

    points = []
    for month in months:
        total, count = totals[(month.year, month.month)]
        points.append(_chart_point(month.strftime("%b"), total / count if count else 0))
    return points


# ---------- Diet ----------

def start_of_week(day: date) -> date:
    """Weeks start on Sunday."""
    return day - timedelta(days=(day.weekday() + 1) % 7)


def meal_date(meal: Meal) -> date:
    return datetime.fromisoformat(meal.created_at).date()


def daily_diet_average(meals: Iterable[Meal], day: date) -> Optional[float]:
    """Mean meal score for one day, to one decimal; None when nothing was logged."""
    avg = _mean([m.score for m in meals if meal_date(m) == day])
    if avg is None:
        return None
    return round_half_up(avg * 10) / 10


def weekly_diet_summary(meals: Iterable[Meal], today: Optional[date] = None) -> WeeklyDietSummary:
    meals = list(meals)
    if not meals:
        return WeeklyDietSummary()

    today = today or date.today()
    current_start = start_of_week(today)
    previous_start = current_start - timedelta(days=7)

    current = [m.score for m in meals if meal_date(m) >= current_start]
    previous = [m.score for m in meals if previous_start <= meal_date(m) < current_start]

    current_avg = _mean(current)
    previous_avg = _mean(previous)

    change = None
    if current_avg is not None and previous_avg is not None and previous_avg > 0:
        change = (current_avg - previous_avg) / previous_avg * 100
    elif current_avg is not None:
        change = 100.0

    return WeeklyDietSummary(current_week_average=current_avg, change=change)
