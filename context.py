"""
Personal context for the coach: recent wellness scores, today's meals and goals.
"""

from datetime import date
from typing import Dict, List, Optional

import history
from prompts import COACH_SYSTEM_PROMPT
from schemas import DailyGoal, Meal, WellnessSnapshot
from store import DAILY_GOALS, MEALS, DocumentStore

RECENT_SNAPSHOTS = 3


def get_ai_context(store: DocumentStore, user_id: str, today: Optional[date] = None) -> Dict[str, list]:
    today = today or date.today()
    today_str = today.isoformat()

    recent_emotions = history.load_history(store, user_id)[-RECENT_SNAPSHOTS:]

    meals = [Meal(**doc) for doc in store.query(MEALS, user_id=user_id)]
    todays_meals = sorted(
        (m for m in meals if m.created_at.startswith(today_str)),
        key=lambda m: m.created_at,
    )

    goals = [DailyGoal(**doc) for doc in store.query(DAILY_GOALS, user_id=user_id, date=today_str)]
    todays_goals = sorted(goals, key=lambda g: g.created_at)

    return {
        "recent_emotions": recent_emotions,
        "todays_meals": todays_meals,
        "todays_goals": todays_goals,
    }


def _format_emotions(snapshots: List[WellnessSnapshot]) -> str:
    if not snapshots:
        return "No emotional history logged yet."
    lines = []
    for snapshot in snapshots:
        day = date.fromisoformat(snapshot.date)
        score = history.round_half_up(history.snapshot_average(snapshot))
        lines.append(f"- {day.strftime('%b')} {day.day}: Average Wellness Score of {score}/100.")
    return "\n".join(lines)


def _format_meals(meals: List[Meal]) -> str:
    if not meals:
        return "No meals logged yet today."
    return "\n".join(
        f"- {m.meal_name} (Classification: {m.classification}). Insight: {m.mental_wellness_insight}"
        for m in meals
    )


def _format_goals(goals: List[DailyGoal]) -> str:
    if not goals:
        return "No goals set for today."
    return "\n".join(
        f'- "{g.text}" (Status: {"Completed" if g.completed else "Not Completed"})'
        for g in goals
    )


def build_system_instruction(ctx: Dict[str, list]) -> str:
    return COACH_SYSTEM_PROMPT.format(
        emotion_history=_format_emotions(ctx.get("recent_emotions", [])),
        todays_meals=_format_meals(ctx.get("todays_meals", [])),
        todays_goals=_format_goals(ctx.get("todays_goals", [])),
    ).strip()
