"""
Tests for the coach's personal context.
"""

from datetime import date

import context
import history
from store import DAILY_GOALS, MEALS


def add_meal(store, user_id, name, created_at, classification="Healthy"):
    store.add(MEALS, {
        "meal_name": name,
        "calories": 400,
        "classification": classification,
        "score": 8,
        "reasoning": "",
        "mental_wellness_insight": "Steady energy.",
        "user_id": user_id,
        "created_at": created_at,
    })


class TestGetAiContext:
    def test_keeps_last_three_snapshots(self, store, today):
        for day in (14, 15, 16, 17, 18):
            history.add_data_point(store, "u1", 60, "emotion", date(2024, 10, day))

        ctx = context.get_ai_context(store, "u1", today)
        assert [s.date for s in ctx["recent_emotions"]] == ["2024-10-16", "2024-10-17", "2024-10-18"]

    def test_only_todays_meals_and_goals(self, store, today):
        add_meal(store, "u1", "Oats", "2024-10-19T08:00:00")
        add_meal(store, "u1", "Pizza", "2024-10-18T20:00:00", "Unhealthy")
        add_meal(store, "u2", "Salad", "2024-10-19T12:00:00")
        store.add(DAILY_GOALS, {"user_id": "u1", "date": "2024-10-19", "text": "Walk",
                                "completed": True, "created_at": "2024-10-19T07:00:00"})
        store.add(DAILY_GOALS, {"user_id": "u1", "date": "2024-10-18", "text": "Read",
                                "completed": False, "created_at": "2024-10-18T07:00:00"})

        ctx = context.get_ai_context(store, "u1", today)
        assert [m.meal_name for m in ctx["todays_meals"]] == ["Oats"]
        assert [g.text for g in ctx["todays_goals"]] == ["Walk"]


class TestSystemInstruction:
    def test_empty_context_lines(self):
        text = context.build_system_instruction({"recent_emotions": [], "todays_meals": [], "todays_goals": []})

        assert "No emotional history logged yet." in text
        assert "No meals logged yet today." in text
        assert "No goals set for today." in text
        assert "80-100 is thriving" in text

    def test_renders_user_data(self, store, today):
        history.add_data_point(store, "u1", 70, "emotion", date(2024, 10, 18))
        history.add_data_point(store, "u1", 81, "diet", date(2024, 10, 18))
        add_meal(store, "u1", "Oats", "2024-10-19T08:00:00")
        store.add(DAILY_GOALS, {"user_id": "u1", "date": "2024-10-19", "text": "Walk",
                                "completed": False, "created_at": "2024-10-19T07:00:00"})

        text = context.build_system_instruction(context.get_ai_context(store, "u1", today))

        assert "- Oct 18: Average Wellness Score of 76/100." in text
        assert "- Oats (Classification: Healthy). Insight: Steady energy." in text
        assert '- "Walk" (Status: Not Completed)' in text
