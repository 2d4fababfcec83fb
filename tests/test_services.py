"""
Tests for WellnessService: each operation against an in-memory store.
"""

from datetime import date

import pytest

import ai_nodes
from schemas import (
    DietDay,
    DietSettings,
    FoodAnalysisResult,
    GameSettings,
    PredictionResult,
    SafetyResult,
    WellbeingForm,
)
from store import CHAT_MESSAGES, PREDICTIONS, NotFoundError

PREDICTION = PredictionResult(
    status="Stressed",
    reasoning="Short sleep.",
    wellness_score=52,
    yoga_suggestion={"name": "Legs Up the Wall", "description": "Calms the nervous system."},
    music_suggestion={"genre": "Ambient", "description": "Slow pads."},
)


def points(service, user_id="u1"):
    return [(p.value, p.type) for s in service.history(user_id) for p in s.data_points]


class TestEmotion:
    def test_image_emotion_is_scored_and_logged(self, service, fake_llm, today):
        fake_llm.text = "Happy"
        assert service.record_emotion_from_image("u1", "AAAA", today) == {"emotion": "Happy", "score": 95}
        assert points(service) == [(95, "emotion")]

    def test_speech_emotion(self, service, fake_llm, today):
        fake_llm.text = "Anxious"
        result = service.record_emotion_from_speech("u1", "AAAA", "audio/mpeg", today)
        assert result["score"] == 30

    def test_unknown_label_scores_50(self, service, fake_llm, today):
        fake_llm.text = "Confused"
        assert service.record_emotion_from_image("u1", "AAAA", today)["score"] == 50

    def test_check_in_suggestions(self, service):
        assert service.check_in("stressed").link == "meditation"
        assert service.check_in("tired").cta == "Listen Now"
        assert service.check_in("calm").title == "Reflect with a Journaling Prompt"
        with pytest.raises(ValueError):
            service.check_in("ecstatic")


class TestDiet:
    def test_manual_meal(self, service, today):
        meal = service.log_manual_meal("u1", " Lentil soup ", 350, "Healthy", today)

        assert meal.id
        assert meal.meal_name == "Lentil soup"
        assert meal.score == 8
        assert meal.reasoning == "Manually logged entry."
        assert meal.created_at.startswith("2024-10-19")
        assert points(service) == [(80, "diet")]

        gam = service.gamification("u1", today)
        assert gam.xp == 5
        assert gam.badges["first_diet"] is True

    def test_manual_meal_validation(self, service, today):
        with pytest.raises(ValueError):
            service.log_manual_meal("u1", "  ", 100, "Healthy", today)
        with pytest.raises(ValueError):
            service.log_manual_meal("u1", "Cake", 100, "Delicious", today)

    def test_analysed_meal_keeps_photo(self, service, fake_llm, today):
        fake_llm.structured[FoodAnalysisResult] = FoodAnalysisResult(
            meal_name="Burger", calories=900, classification="Unhealthy", score=3,
            reasoning="Fried.", mental_wellness_insight="Heavy meals can dip energy.",
        )
        analysis = service.analyze_meal_photo("AAAA")
        meal = service.log_meal("u1", analysis, photo="AAAA", today=today)

        assert service.meals("u1")[0].photo == "AAAA"
        assert meal.score == 3
        assert points(service) == [(30, "diet")]

    def test_todays_meals_and_weekly_summary(self, service, today):
        service.log_manual_meal("u1", "Toast", 200, "Moderate", date(2024, 10, 18))
        service.log_manual_meal("u1", "Salad", 300, "Healthy", today)

        assert [m.meal_name for m in service.todays_meals("u1", today)] == ["Salad"]
        assert service.weekly_diet_summary("u1", today).current_week_average == pytest.approx(6.5)

    def test_diet_settings(self, service):
        assert service.diet_settings("u1").meals_per_day == 3
        service.save_diet_settings("u1", service.diet_settings("u1").model_copy(update={"meals_per_day": 5}))
        assert service.diet_settings("u1").meals_per_day == 5


    def test_meals_per_day_target(self, service, today):
        service.save_diet_settings("u1", DietSettings(meals_per_day=1))
        service.log_manual_meal("u1", "Oats", 300, "Healthy", today)

        with pytest.raises(ValueError):
            service.log_manual_meal("u1", "Toast", 200, "Moderate", today)
        assert len(service.meals("u1")) == 1
        assert points(service) == [(80, "diet")]

        # the target is per day
        assert service.log_manual_meal("u1", "Toast", 200, "Moderate", date(2024, 10, 20)).meal_name == "Toast"

    def test_diet_day(self, service, today):
        service.log_manual_meal("u1", "Toast", 200, "Moderate", date(2024, 10, 18))
        service.log_manual_meal("u1", "Cake", 500, "Unhealthy", date(2024, 10, 18))
        service.log_manual_meal("u1", "Salad", 300, "Healthy", today)

        assert service.diet_day("u1", today) == DietDay(
            date="2024-10-19",
            meals_logged=1,
            meals_per_day=3,
            average_score=8.0,
            all_logged=False,
            yesterday_average=3.5,
        )

        service.save_diet_settings("u1", DietSettings(meals_per_day=1))
        assert service.diet_day("u1", today).all_logged is True

    def test_diet_day_without_meals(self, service, today):
        day = service.diet_day("u1", today)
        assert (day.meals_logged, day.average_score, day.yesterday_average) == (0, 0.0, None)


class TestJournal:
    def test_one_entry_per_day(self, service, fake_llm, today):
        fake_llm.text = "What a thoughtful note."
        service.save_journal_entry("u1", "What made you smile?", "My cat.", today)
        entry = service.save_journal_entry("u1", "What made you smile?", "My cat and tea.", today)

        entries = service.journal_entries("u1")
        assert len(entries) == 1
        assert entries[0].content == "My cat and tea."
        assert entry.reflection == "What a thoughtful note."
        assert service.gamification("u1", today).badges["first_journal"] is True

    def test_newest_first(self, service, today):
        service.save_journal_entry("u1", "p", "older", date(2024, 10, 17))
        service.save_journal_entry("u1", "p", "newer", today)
        assert [e.content for e in service.journal_entries("u1")] == ["newer", "older"]

    def test_empty_entry(self, service, today):
        with pytest.raises(ValueError):
            service.save_journal_entry("u1", "p", "   ", today)


class TestMeditation:
    def test_finish_session(self, service, today):
        session = service.finish_meditation("u1", "Box Breathing", 4, today)

        assert session.id
        assert points(service) == [(80, "meditation")]
        assert service.meditation_completed("u1", today)
        assert not service.meditation_completed("u1", date(2024, 10, 20))
        assert service.gamification("u1", today).xp == 15

    @pytest.mark.parametrize("rating", [0, 6])
    def test_rating_out_of_range(self, service, today, rating):
        with pytest.raises(ValueError):
            service.finish_meditation("u1", "Box Breathing", rating, today)


class TestGoals:
    def test_at_most_three_per_day(self, service, today):
        for text in ("Walk", "Read", "Stretch"):
            service.add_goal("u1", text, today)
        with pytest.raises(ValueError):
            service.add_goal("u1", "Nap", today)

        # the limit is per day
        assert service.add_goal("u1", "Nap", date(2024, 10, 20)).text == "Nap"

    def test_empty_goal(self, service, today):
        with pytest.raises(ValueError):
            service.add_goal("u1", " ", today)

    def test_toggle(self, service, today):
        goal = service.add_goal("u1", "Walk", today)
        assert service.toggle_goal("u1", goal.id).completed is True
        assert service.toggle_goal("u1", goal.id).completed is False

    def test_toggle_someone_elses_goal(self, service, today):
        goal = service.add_goal("u1", "Walk", today)
        with pytest.raises(NotFoundError):
            service.toggle_goal("u2", goal.id)
        with pytest.raises(NotFoundError):
            service.toggle_goal("u1", "missing")


class TestCoach:
    def test_reply_is_stored_and_scored(self, service, fake_llm, today):
        final = service.coach_reply("u1", "I feel a bit low", today)

        assert final.coach_reply == "Take a slow breath with me."
        history = service.chat_history("u1")
        assert [(m.role, m.text) for m in history] == [
            ("user", "I feel a bit low"),
            ("model", "Take a slow breath with me."),
        ]
        assert points(service) == [(75, "coach")]

    def test_history_is_sent_on_next_turn(self, service, fake_llm, today):
        service.coach_reply("u1", "First", today)
        service.coach_reply("u1", "Second", today)

        messages = fake_llm.calls[-1][1]
        assert [m.content for m in messages[1:]] == [
            "First", "Take a slow breath with me.", "Second",
        ]
        assert len(service.store.query(CHAT_MESSAGES, user_id="u1")) == 4

    def test_question_sorts_before_reply_with_equal_timestamps(self, service):
        stamp = "2024-10-19T10:00:00"
        service.store.add(CHAT_MESSAGES, {"user_id": "u1", "role": "model", "text": "Hi there", "created_at": stamp})
        service.store.add(CHAT_MESSAGES, {"user_id": "u1", "role": "user", "text": "Hello", "created_at": stamp})
        service.store.add(CHAT_MESSAGES, {"user_id": "u1", "role": "user", "text": "Earlier", "created_at": "2024-10-19T09:59:59"})

        assert [m.text for m in service.chat_history("u1")] == ["Earlier", "Hello", "Hi there"]

    def test_messages_carry_sub_second_timestamps(self, service, today):
        service.coach_reply("u1", "Hello", today)
        question, reply = service.chat_history("u1")
        assert "." in question.created_at
        assert question.created_at <= reply.created_at

    def test_blocked_message_adds_no_score(self, service, fake_llm, today):
        fake_llm.structured[SafetyResult] = SafetyResult(
            risk="self_harm", action="block_and_escalate", message="Please contact a crisis line."
        )
        final = service.coach_reply("u1", "...", today)

        assert final.blocked is True
        assert final.coach_reply == "Please contact a crisis line."
        assert points(service) == []
        assert len(service.chat_history("u1")) == 2

    def test_empty_message(self, service, today):
        with pytest.raises(ValueError):
            service.coach_reply("u1", "  ", today)


class TestPredictor:
    def test_predict_is_stored(self, service, fake_llm):
        fake_llm.structured[PredictionResult] = PREDICTION
        service.predict("u1", WellbeingForm())

        assert service.latest_prediction("u1").status == "Stressed"
        assert service.store.get(PREDICTIONS, "u1")["wellness_score"] == 52

    def test_refine_without_previous_predicts(self, service, fake_llm, monkeypatch):
        fake_llm.structured[PredictionResult] = PREDICTION
        monkeypatch.setattr(ai_nodes, "get_refined_wellbeing_prediction",
                            lambda form, previous: pytest.fail("nothing to refine"))
        assert service.refine_prediction("u1", WellbeingForm()).status == "Stressed"

    def test_refine_uses_previous(self, service, fake_llm):
        fake_llm.structured[PredictionResult] = PREDICTION
        service.predict("u1", WellbeingForm())
        fake_llm.structured[PredictionResult] = PREDICTION.model_copy(update={"status": "Balanced"})

        assert service.refine_prediction("u1", WellbeingForm(sleep_duration="8")).status == "Balanced"
        assert "Stressed" in fake_llm.calls[-1][1]
        assert service.latest_prediction("u1").status == "Balanced"

    def test_image_prompt_needs_prediction(self, service):
        with pytest.raises(NotFoundError):
            service.image_prompt_for_prediction("u1")


class TestGamesAndDashboard:
    def test_game_settings_defaults_and_save(self, service):
        assert service.game_settings("u1") == GameSettings()
        service.save_game_settings("u1", GameSettings(color_palette="sunset"))
        assert service.game_settings("u1").color_palette == "sunset"

    def test_wordflow_streak(self, service, today):
        first = service.wordflow_stats("u1", today)
        assert (first.hints, first.streak) == (5, 1)

        second = service.wordflow_stats("u1", date(2024, 10, 20))
        assert (second.hints, second.streak) == (10, 2)

    def test_music_needs_mood(self, service):
        with pytest.raises(ValueError):
            service.music_recommendation(" ")

    def test_daily_summary_counts_goals_and_meditation(self, service, fake_llm, today):
        fake_llm.text = "Happy"
        service.record_emotion_from_image("u1", "AAAA", today)
        service.finish_meditation("u1", "Box Breathing", 4, today)
        goal = service.add_goal("u1", "Walk", today)
        service.toggle_goal("u1", goal.id)

        summary = service.daily_summary("u1", today)
        assert summary.emotion_score == 95
        assert summary.total_score == 94
        assert summary.change == 100.0

    def test_level_progress_and_badges(self, service, today):
        service.finish_meditation("u1", "Box Breathing", 5, today)
        progress = service.level_progress("u1", today)

        assert progress.xp == 15
        assert progress.progress_percent == pytest.approx(15.0)
        unlocked = [b.id for b in service.badges("u1", today) if b.unlocked]
        assert unlocked == ["first_meditation"]

    def test_chart(self, service, today):
        service.finish_meditation("u1", "Box Breathing", 5, today)
        assert service.chart_data("u1", "week", today)[-1].tooltip_positive == 100
