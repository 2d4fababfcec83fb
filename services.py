"""
WellnessService: every user-facing operation of MindfulMe.

The API layer is a thin wrapper around this class. Each operation that
reflects how the user is doing also feeds the wellness history, and each
completed activity awards XP.
"""

import logging
from dataclasses import asdict
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional

import ai_nodes
import context
import gamification
import history
from arcade.wordflow import PlayerStats, check_in as wordflow_check_in
from graph_app import build_coach_graph
from schemas import (
    AdaptiveSuggestion,
    Badge,
    BreathingExercise,
    ChartPoint,
    ChatMessage,
    CoachState,
    DailyGoal,
    DailySummary,
    DietDay,
    DietSettings,
    FoodAnalysisResult,
    GameSettings,
    GamificationData,
    JournalEntry,
    LevelProgress,
    Meal,
    MeditationSession,
    MusicRecommendation,
    PredictionResult,
    WeeklyDietSummary,
    WellbeingForm,
    WellnessSnapshot,
)
from store import (
    CHAT_MESSAGES,
    DAILY_GOALS,
    DIET_SETTINGS,
    GAME_SETTINGS,
    JOURNAL_ENTRIES,
    MEALS,
    MEDITATION_SESSIONS,
    PREDICTIONS,
    WORDFLOW_STATS,
    DocumentStore,
    NotFoundError,
)

logger = logging.getLogger(__name__)

DEFAULT_EMOTION_SCORE = 50

IMAGE_EMOTION_SCORES = {
    "Happy": 95,
    "Sad": 20,
    "Neutral": 65,
    "Surprised": 75,
    "Angry": 15,
    "Fearful": 25,
}

SPEECH_EMOTION_SCORES = {
    "Happy": 90,
    "Sad": 25,
    "Anxious": 30,
    "Calm": 85,
    "Angry": 15,
    "Surprised": 75,
}

MANUAL_MEAL_SCORES = {"Healthy": 8, "Moderate": 5, "Unhealthy": 2}
MANUAL_MEAL_REASONING = "Manually logged entry."
MANUAL_MEAL_INSIGHT = "Consistent tracking helps reveal patterns between your diet and mood."

MEDITATION_SCORE_PER_RATING = 20
COACH_INTERACTION_SCORE = 75
MAX_DAILY_GOALS = 3
CHAT_HISTORY_LIMIT = 20

# a reply is stored right after its question
CHAT_ROLE_ORDER = {"user": 0, "model": 1}

CHECK_IN_SUGGESTIONS = {
    "stressed": {
        "title": "Try a 3-Minute Grounding Exercise",
        "description": "Reconnect with the present moment and calm your mind.",
        "cta": "Start Now",
        "link": "meditation",
    },
    "tired": {
        "title": "Listen to a Soothing Music Scape",
        "description": "Recharge your energy with calming sounds.",
        "cta": "Listen Now",
        "link": "music",
    },
    "calm": {
        "title": "Reflect with a Journaling Prompt",
        "description": "Deepen your self-awareness and capture your thoughts.",
        "cta": "Write Now",
        "link": "journal",
    },
}


def _timestamp(today: Optional[date] = None) -> str:
    now = datetime.now()
    if today is not None:
        now = datetime.combine(today, now.time())
    return now.isoformat(timespec="microseconds")


class WellnessService:
    def __init__(self, store: DocumentStore):
        self.store = store

    # ---------- Emotion ----------

    def _record_emotion(self, user_id: str, emotion: str, scores: Dict[str, int],
                        today: Optional[date]) -> Dict[str, Any]:
        score = scores.get(emotion, DEFAULT_EMOTION_SCORE)
        history.add_data_point(self.store, user_id, score, "emotion", today)
        return {"emotion": emotion, "score": score}

    def record_emotion_from_image(self, user_id: str, base64_image: str,
                                  today: Optional[date] = None) -> Dict[str, Any]:
        emotion = ai_nodes.get_emotion_from_image(base64_image)
        return self._record_emotion(user_id, emotion, IMAGE_EMOTION_SCORES, today)

    def record_emotion_from_speech(self, user_id: str, base64_audio: str, mime_type: str,
                                   today: Optional[date] = None) -> Dict[str, Any]:
        emotion = ai_nodes.get_emotion_from_speech(base64_audio, mime_type)
        return self._record_emotion(user_id, emotion, SPEECH_EMOTION_SCORES, today)

    def check_in(self, mood: str) -> AdaptiveSuggestion:
        suggestion = CHECK_IN_SUGGESTIONS.get(mood)
        if suggestion is None:
            raise ValueError(f"Unknown mood: {mood!r}")
        return AdaptiveSuggestion(mood=mood, **suggestion)

    # ---------- Diet ----------

    def analyze_meal_photo(self, base64_image: str) -> FoodAnalysisResult:
        return ai_nodes.analyze_food_image(base64_image)

    def log_meal(self, user_id: str, analysis: FoodAnalysisResult, photo: Optional[str] = None,
                 today: Optional[date] = None) -> Meal:
        target = self.diet_settings(user_id).meals_per_day
        if len(self.todays_meals(user_id, today)) >= target:
            raise ValueError(f"All {target} meals for today are already logged")

        meal = Meal(
            **analysis.model_dump(),
            user_id=user_id,
            photo=photo,
            created_at=_timestamp(today),
        )
        meal.id = self.store.add(MEALS, meal.model_dump(exclude={"id"}))

        history.add_data_point(self.store, user_id, meal.score * 10, "diet", today)
        gamification.add_xp(self.store, user_id, gamification.XP_MEAL, "first_diet", today)
        logger.info(f"Logged meal {meal.meal_name!r} for {user_id} (score={meal.score})")
        return meal

    def log_manual_meal(self, user_id: str, meal_name: str, calories: int, classification: str,
                        today: Optional[date] = None) -> Meal:
        if not meal_name or not meal_name.strip():
            raise ValueError("meal_name must not be empty")
        if classification not in MANUAL_MEAL_SCORES:
            raise ValueError(f"Unknown classification: {classification!r}")

        analysis = FoodAnalysisResult(
            meal_name=meal_name.strip(),
            calories=calories,
            classification=classification,
            score=MANUAL_MEAL_SCORES[classification],
            reasoning=MANUAL_MEAL_REASONING,
            mental_wellness_insight=MANUAL_MEAL_INSIGHT,
        )
        return self.log_meal(user_id, analysis, photo=None, today=today)

    def meals(self, user_id: str) -> List[Meal]:
        meals = [Meal(**doc) for doc in self.store.query(MEALS, user_id=user_id)]
        return sorted(meals, key=lambda m: m.created_at)

    def todays_meals(self, user_id: str, today: Optional[date] = None) -> List[Meal]:
        day = (today or date.today()).isoformat()
        return [m for m in self.meals(user_id) if m.created_at.startswith(day)]

    def diet_settings(self, user_id: str) -> DietSettings:
        doc = self.store.get(DIET_SETTINGS, user_id)
        if not doc:
            return DietSettings()
        doc.pop("id", None)
        return DietSettings(**doc)

    def save_diet_settings(self, user_id: str, settings: DietSettings) -> DietSettings:
        self.store.set(DIET_SETTINGS, user_id, settings.model_dump())
        return settings

    def diet_day(self, user_id: str, today: Optional[date] = None) -> DietDay:
        """Today's meal count against the target, plus yesterday's average score."""
        today = today or date.today()
        meals = self.meals(user_id)
        logged = len([m for m in meals if history.meal_date(m) == today])
        target = self.diet_settings(user_id).meals_per_day
        return DietDay(
            date=today.isoformat(),
            meals_logged=logged,
            meals_per_day=target,
            average_score=history.daily_diet_average(meals, today) or 0.0,
            all_logged=logged >= target,
            yesterday_average=history.daily_diet_average(meals, today - timedelta(days=1)),
        )

    def weekly_diet_summary(self, user_id: str, today: Optional[date] = None) -> WeeklyDietSummary:
        return history.weekly_diet_summary(self.meals(user_id), today)

    # ---------- Journal ----------

    def journal_prompt(self) -> str:
        return ai_nodes.get_journal_prompt()

    def save_journal_entry(self, user_id: str, prompt: str, content: str,
                           today: Optional[date] = None) -> JournalEntry:
        """One entry per day; writing again the same day replaces it."""
        if not content or not content.strip():
            raise ValueError("Journal entry must not be empty")

        day = (today or date.today()).isoformat()
        reflection = ai_nodes.get_journal_reflection(content)

        entry = JournalEntry(
            id=f"{user_id}_{day}",
            user_id=user_id,
            date=day,
            prompt=prompt,
            content=content,
            reflection=reflection,
            created_at=_timestamp(today),
        )
        self.store.set(JOURNAL_ENTRIES, entry.id, entry.model_dump(exclude={"id"}))
        gamification.add_xp(self.store, user_id, gamification.XP_JOURNAL, "first_journal", today)
        return entry

    def journal_entries(self, user_id: str) -> List[JournalEntry]:
        entries = [JournalEntry(**doc) for doc in self.store.query(JOURNAL_ENTRIES, user_id=user_id)]
        return sorted(entries, key=lambda e: e.date, reverse=True)

    # ---------- Meditation ----------

    def breathing_exercises(self) -> List[BreathingExercise]:
        return ai_nodes.get_breathing_exercises()

    def finish_meditation(self, user_id: str, exercise_name: str, rating: int,
                          today: Optional[date] = None) -> MeditationSession:
        """rating is how the user felt afterwards, 1-5."""
        if not 1 <= rating <= 5:
            raise ValueError("rating must be between 1 and 5")

        day = (today or date.today()).isoformat()
        session = MeditationSession(
            user_id=user_id,
            exercise_name=exercise_name,
            rating=rating,
            date=day,
            created_at=_timestamp(today),
        )
        session.id = self.store.add(MEDITATION_SESSIONS, session.model_dump(exclude={"id"}))

        history.add_data_point(self.store, user_id, rating * MEDITATION_SCORE_PER_RATING, "meditation", today)
        gamification.add_xp(self.store, user_id, gamification.XP_MEDITATION, "first_meditation", today)
        return session

    def meditation_completed(self, user_id: str, today: Optional[date] = None) -> bool:
        day = (today or date.today()).isoformat()
        return bool(self.store.query(MEDITATION_SESSIONS, user_id=user_id, date=day))

    # ---------- Daily goals ----------

    def daily_goals(self, user_id: str, today: Optional[date] = None) -> List[DailyGoal]:
        day = (today or date.today()).isoformat()
        goals = [DailyGoal(**doc) for doc in self.store.query(DAILY_GOALS, user_id=user_id, date=day)]
        return sorted(goals, key=lambda g: g.created_at)

    def add_goal(self, user_id: str, text: str, today: Optional[date] = None) -> DailyGoal:
        text = (text or "").strip()
        if not text:
            raise ValueError("Goal text must not be empty")
        if len(self.daily_goals(user_id, today)) >= MAX_DAILY_GOALS:
            raise ValueError(f"At most {MAX_DAILY_GOALS} goals per day")

        goal = DailyGoal(
            user_id=user_id,
            date=(today or date.today()).isoformat(),
            text=text,
            created_at=_timestamp(today),
        )
        goal.id = self.store.add(DAILY_GOALS, goal.model_dump(exclude={"id"}))
        return goal

    def toggle_goal(self, user_id: str, goal_id: str) -> DailyGoal:
        doc = self.store.get(DAILY_GOALS, goal_id)
        if not doc or doc.get("user_id") != user_id:
            raise NotFoundError(f"Goal {goal_id} not found")

        goal = DailyGoal(**doc)
        goal.completed = not goal.completed
        self.store.update(DAILY_GOALS, goal_id, {"completed": goal.completed})
        return goal

    # ---------- Coach ----------

    def chat_history(self, user_id: str) -> List[ChatMessage]:
        messages = [ChatMessage(**doc) for doc in self.store.query(CHAT_MESSAGES, user_id=user_id)]
        return sorted(messages, key=lambda m: (m.created_at, CHAT_ROLE_ORDER[m.role]))

    def _save_message(self, user_id: str, role: str, text: str, today: Optional[date]) -> ChatMessage:
        message = ChatMessage(user_id=user_id, role=role, text=text, created_at=_timestamp(today))
        message.id = self.store.add(CHAT_MESSAGES, message.model_dump(exclude={"id"}))
        return message

    def coach_reply(self, user_id: str, message: str, today: Optional[date] = None) -> CoachState:
        if not message or not message.strip():
            raise ValueError("Message must not be empty")

        past = self.chat_history(user_id)[-CHAT_HISTORY_LIMIT:]
        state = CoachState(
            user_id=user_id,
            last_user_message=message.strip(),
            chat_history=[{"role": m.role, "content": m.text} for m in past],
        )

        def context_node(s: CoachState) -> Dict[str, Any]:
            ctx = context.get_ai_context(self.store, s.user_id, today)
            return {"system_instruction": context.build_system_instruction(ctx)}

        result = build_coach_graph(context_node).invoke(state)
        final = CoachState(**result) if isinstance(result, dict) else result

        self._save_message(user_id, "user", state.last_user_message, today)
        self._save_message(user_id, "model", final.coach_reply or "", today)

        if not final.blocked:
            history.add_data_point(self.store, user_id, COACH_INTERACTION_SCORE, "coach", today)
        else:
            risk = final.safety.risk if final.safety else "unknown"
            logger.warning(f"Coach message from {user_id} was blocked (risk={risk})")
        return final

    # ---------- Predictor ----------

    def latest_prediction(self, user_id: str) -> Optional[PredictionResult]:
        doc = self.store.get(PREDICTIONS, user_id)
        if not doc:
            return None
        doc.pop("id", None)
        return PredictionResult(**doc)

    def predict(self, user_id: str, form: WellbeingForm) -> PredictionResult:
        prediction = ai_nodes.get_wellbeing_prediction(form)
        self.store.set(PREDICTIONS, user_id, prediction.model_dump())
        return prediction

    def refine_prediction(self, user_id: str, form: WellbeingForm) -> PredictionResult:
        previous = self.latest_prediction(user_id)
        if previous is None:
            return self.predict(user_id, form)

        prediction = ai_nodes.get_refined_wellbeing_prediction(form, previous)
        self.store.set(PREDICTIONS, user_id, prediction.model_dump())
        return prediction

    def image_prompt_for_prediction(self, user_id: str) -> str:
        prediction = self.latest_prediction(user_id)
        if prediction is None:
            raise NotFoundError("No prediction yet")
        return ai_nodes.get_image_prompt_suggestion(prediction)

    # ---------- Content ----------

    def music_recommendation(self, mood: str) -> MusicRecommendation:
        if not mood or not mood.strip():
            raise ValueError("Mood must not be empty")
        return ai_nodes.get_music_recommendation(mood.strip())

    def generate_image(self, prompt: str, style: str, aspect_ratio: str = "1:1",
                       negative_prompt: str = "") -> str:
        if not prompt or not prompt.strip():
            raise ValueError("Prompt must not be empty")
        return ai_nodes.generate_image(prompt.strip(), style, aspect_ratio, negative_prompt)

    # ---------- Games ----------

    def game_settings(self, user_id: str) -> GameSettings:
        doc = self.store.get(GAME_SETTINGS, user_id) or {}
        doc.pop("id", None)
        return GameSettings(**doc)

    def save_game_settings(self, user_id: str, settings: GameSettings) -> GameSettings:
        self.store.set(GAME_SETTINGS, user_id, settings.model_dump())
        return settings

    def wordflow_stats(self, user_id: str, today: Optional[date] = None) -> PlayerStats:
        """Load Word Flow stats and register today's visit (streak + hint rewards)."""
        def visit(doc: Optional[Dict[str, Any]]) -> Dict[str, Any]:
            stored = PlayerStats(**doc) if doc else None
            return asdict(wordflow_check_in(stored, today))

        return PlayerStats(**self.store.transact(WORDFLOW_STATS, user_id, visit))

    def save_wordflow_stats(self, user_id: str, stats: PlayerStats) -> PlayerStats:
        self.store.set(WORDFLOW_STATS, user_id, asdict(stats))
        return stats

    # ---------- Dashboard ----------

    def history(self, user_id: str) -> List[WellnessSnapshot]:
        return history.load_history(self.store, user_id)

    def daily_summary(self, user_id: str, today: Optional[date] = None) -> DailySummary:
        goals = self.daily_goals(user_id, today)
        return history.daily_summary(
            self.history(user_id),
            today,
            goals_completed=bool(goals) and all(g.completed for g in goals),
            meditation_completed=self.meditation_completed(user_id, today),
        )

    def chart_data(self, user_id: str, period: str, today: Optional[date] = None) -> List[ChartPoint]:
        return history.chart_data(self.history(user_id), period, today)

    def gamification(self, user_id: str, today: Optional[date] = None) -> GamificationData:
        return gamification.load(self.store, user_id, today)

    def badges(self, user_id: str, today: Optional[date] = None) -> List[Badge]:
        return gamification.badges(self.gamification(user_id, today))

    def level_progress(self, user_id: str, today: Optional[date] = None) -> LevelProgress:
        return gamification.level_progress(self.gamification(user_id, today))
