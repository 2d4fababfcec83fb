"""
Tests for the generative-AI helpers, with the chat model faked.
"""

from types import SimpleNamespace

import openai
import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

import ai_nodes
from schemas import (
    BreathingExerciseList,
    CoachState,
    FoodAnalysisResult,
    PredictionResult,
    SafetyResult,
    WellbeingForm,
)

PREDICTION = PredictionResult(
    status="Balanced",
    reasoning="Sleep is fine but screen time is high.",
    wellness_score=68,
    yoga_suggestion={"name": "Child's Pose", "description": "Rest and breathe."},
    music_suggestion={"genre": "Lofi", "description": "Soft beats."},
)


class TestPredictor:
    def test_prediction(self, fake_llm):
        fake_llm.structured[PredictionResult] = PREDICTION
        result = ai_nodes.get_wellbeing_prediction(WellbeingForm(age="21", sleep_duration="7"))

        assert result.status == "Balanced"
        schema, prompt = fake_llm.calls[-1]
        assert schema == "PredictionResult"
        assert "Sleep: 7 hrs" in prompt

    def test_refined_prompt_mentions_previous_result(self, fake_llm):
        fake_llm.structured[PredictionResult] = PREDICTION
        ai_nodes.get_refined_wellbeing_prediction(WellbeingForm(), PREDICTION)
        assert "Balanced" in fake_llm.calls[-1][1]
        assert "68" in fake_llm.calls[-1][1]

    def test_failure_is_ai_service_error(self, fake_llm):
        fake_llm.structured[PredictionResult] = RuntimeError("overloaded")
        with pytest.raises(ai_nodes.AIServiceError):
            ai_nodes.get_wellbeing_prediction(WellbeingForm())

    def test_image_prompt_suggestion_strips_quotes(self, fake_llm):
        fake_llm.text = '"A calm lake at dawn"'
        assert ai_nodes.get_image_prompt_suggestion(PREDICTION) == "A calm lake at dawn"


class TestEmotion:
    def test_image_label_is_normalized(self, fake_llm):
        fake_llm.text = " happy.\n"
        assert ai_nodes.get_emotion_from_image("aGVsbG8=") == "Happy"

        message = fake_llm.calls[-1][1][0]
        assert message.content[1]["image_url"]["url"].startswith("data:image/jpeg;base64,")

    def test_speech_sends_input_audio(self, fake_llm):
        fake_llm.text = "Calm"
        assert ai_nodes.get_emotion_from_speech("UklGRg==", "audio/wav; codecs=1") == "Calm"

        block = fake_llm.calls[-1][1][0].content[1]
        assert block == {"type": "input_audio", "input_audio": {"data": "UklGRg==", "format": "wav"}}

    def test_unsupported_audio_type(self, fake_llm):
        with pytest.raises(ValueError):
            ai_nodes.get_emotion_from_speech("AAAA", "audio/webm")
        assert fake_llm.calls == []

    def test_model_error(self, fake_llm):
        fake_llm.error = RuntimeError("busy")
        with pytest.raises(ai_nodes.AIServiceError):
            ai_nodes.get_emotion_from_image("AAAA")


class TestContentHelpers:
    def test_breathing_falls_back_to_defaults(self, fake_llm):
        names = [ex.name for ex in ai_nodes.get_breathing_exercises()]
        assert names == ["Box Breathing", "4-7-8 Breathing", "Coherent Breathing"]

    def test_breathing_from_model(self, fake_llm):
        fake_llm.structured[BreathingExerciseList] = BreathingExerciseList(exercises=[
            {"name": "Sigh", "description": "Double inhale.", "pattern": {"inhale": 3, "exhale": 6}},
        ])
        exercises = ai_nodes.get_breathing_exercises()
        assert [ex.name for ex in exercises] == ["Sigh"]
        assert exercises[0].pattern.hold == 0

    def test_music_recommendation(self, monkeypatch):
        monkeypatch.setattr(ai_nodes, "_llm_json", lambda prompt, temperature=0.5, retries=2: {
            "title": "Rain on Glass", "description": "Gentle rain.", "category": "Nature Sounds",
        })
        rec = ai_nodes.get_music_recommendation("restless")
        assert rec.category == "Nature Sounds"

    def test_music_with_bad_category(self, monkeypatch):
        monkeypatch.setattr(ai_nodes, "_llm_json", lambda prompt, temperature=0.5, retries=2: {
            "title": "x", "description": "y", "category": "Heavy Metal",
        })
        with pytest.raises(ai_nodes.AIServiceError):
            ai_nodes.get_music_recommendation("angry")

    def test_food_analysis(self, fake_llm):
        fake_llm.structured[FoodAnalysisResult] = FoodAnalysisResult(
            meal_name="Salad", calories=300, classification="Healthy", score=9,
            reasoning="Greens.", mental_wellness_insight="Fibre supports mood.",
        )
        assert ai_nodes.analyze_food_image("AAAA").score == 9

    def test_journal_prompt_fallback(self, fake_llm):
        fake_llm.error = RuntimeError("down")
        assert ai_nodes.get_journal_prompt() == ai_nodes.FALLBACK_JOURNAL_PROMPT

    def test_journal_reflection(self, fake_llm):
        fake_llm.text = "  That sounds like a brave step.  "
        assert ai_nodes.get_journal_reflection("I spoke up today.") == "That sounds like a brave step."


class TestGenerateImage:
    def _client(self, generate):
        return SimpleNamespace(images=SimpleNamespace(generate=generate))

    def test_returns_base64_and_folds_negative_prompt(self, monkeypatch):
        seen = {}

        def generate(**kwargs):
            seen.update(kwargs)
            return SimpleNamespace(data=[SimpleNamespace(b64_json="iVBORw0K")])

        monkeypatch.setattr(ai_nodes, "_image_client", lambda: self._client(generate))
        data = ai_nodes.generate_image("a forest", "Watercolor", "16:9", "people")

        assert data == "iVBORw0K"
        assert seen["size"] == "1792x1024"
        assert seen["prompt"] == "a forest, in a Watercolor style. Avoid the following elements: people"

    def test_bad_aspect_ratio(self):
        with pytest.raises(ValueError):
            ai_nodes.generate_image("a forest", "Anime", "4:3")

    def test_quota_error_message(self, monkeypatch):
        def generate(**kwargs):
            raise openai.OpenAIError("You exceeded your current quota")

        monkeypatch.setattr(ai_nodes, "_image_client", lambda: self._client(generate))
        with pytest.raises(ai_nodes.AIServiceError, match="quota"):
            ai_nodes.generate_image("a forest", "Anime")

    def test_empty_response(self, monkeypatch):
        monkeypatch.setattr(ai_nodes, "_image_client",
                            lambda: self._client(lambda **kwargs: SimpleNamespace(data=[])))
        with pytest.raises(ai_nodes.AIServiceError, match="no data"):
            ai_nodes.generate_image("a forest", "Anime")


class TestCoachNodes:
    def test_safety_failure_blocks(self, fake_llm):
        fake_llm.structured[SafetyResult] = RuntimeError("timeout")
        update = ai_nodes.safety_node(CoachState(last_user_message="hi"))

        assert update["blocked"] is True
        assert update["safety"].action == "block_and_escalate"

    def test_safety_allows(self, fake_llm):
        update = ai_nodes.safety_node(CoachState(last_user_message="I had a long day"))
        assert update["blocked"] is False

    def test_coach_builds_conversation(self, fake_llm):
        state = CoachState(
            last_user_message="Still tired",
            system_instruction="You are MindfulMe.",
            chat_history=[{"role": "user", "content": "Hi"}, {"role": "model", "content": "Hello!"}],
        )
        update = ai_nodes.coach_node(state)

        messages = fake_llm.calls[-1][1]
        assert [type(m) for m in messages] == [SystemMessage, HumanMessage, AIMessage, HumanMessage]
        assert update["coach_reply"] == "Take a slow breath with me."
        assert update["chat_history"][-2:] == [
            {"role": "user", "content": "Still tired"},
            {"role": "model", "content": "Take a slow breath with me."},
        ]

    def test_coach_fallback_reply(self, fake_llm):
        fake_llm.error = RuntimeError("down")
        update = ai_nodes.coach_node(CoachState(last_user_message="hello"))
        assert update["coach_reply"]

    def test_blocked_reply_uses_safety_message(self):
        state = CoachState(
            last_user_message="...",
            safety=SafetyResult(risk="self_harm", action="block_and_escalate", message="Please call a helpline."),
        )
        assert ai_nodes.blocked_reply_node(state)["coach_reply"] == "Please call a helpline."
