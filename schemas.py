from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field


# ---------- Wellness history ----------

WellnessMetricType = Literal["emotion", "diet", "meditation", "coach"]
TimePeriod = Literal["week", "month", "year"]


class WellnessDataPoint(BaseModel):
    value: float = Field(..., ge=0, le=100)
    type: WellnessMetricType


class WellnessSnapshot(BaseModel):
    """One document per user per day (YYYY-MM-DD)."""
    id: Optional[str] = None
    user_id: str
    date: str
    data_points: List[WellnessDataPoint] = Field(default_factory=list)


class DailySummary(BaseModel):
    total_score: int = 0
    change: Optional[float] = None  # percent vs yesterday
    emotion_score: Optional[int] = None
    diet_score: Optional[int] = None


class ChartPoint(BaseModel):
    day: str
    light_blue: float
    dark_blue: float
    tooltip_positive: int


class WeeklyDietSummary(BaseModel):
    current_week_average: Optional[float] = None
    change: Optional[float] = None


# ---------- Gamification ----------

BadgeId = Literal[
    "streak_3",
    "streak_7",
    "first_meditation",
    "first_journal",
    "first_diet",
    "mindful_pro",
]

BADGE_IDS: List[str] = [
    "streak_3",
    "streak_7",
    "first_meditation",
    "first_journal",
    "first_diet",
    "mindful_pro",
]


class Badge(BaseModel):
    id: BadgeId
    name: str
    description: str
    icon: Literal["FireIcon", "StarIcon", "YogaIcon", "BookOpenIcon", "AppleIcon", "BrainCircuitIcon"]
    unlocked: bool = False


class GamificationData(BaseModel):
    user_id: Optional[str] = None
    xp: int = 0
    level: int = 1
    streak: int = 0
    last_activity_date: Optional[str] = None  # YYYY-MM-DD
    badges: Dict[str, bool] = Field(
        default_factory=lambda: {badge_id: False for badge_id in BADGE_IDS}
    )


class LevelProgress(BaseModel):
    level: int
    level_name: str
    xp: int
    next_level_xp: int
    progress_percent: float


# ---------- Diet ----------

MealClassification = Literal["Healthy", "Moderate", "Unhealthy"]


class FoodAnalysisResult(BaseModel):
    meal_name: str
    calories: int = Field(..., ge=0)
    classification: MealClassification
    score: int = Field(..., ge=1, le=10)
    reasoning: str
    mental_wellness_insight: str


class Meal(FoodAnalysisResult):
    id: Optional[str] = None
    user_id: str
    photo: Optional[str] = None  # base64 image, None for manual entries
    created_at: str  # ISO timestamp


class DietSettings(BaseModel):
    meals_per_day: int = Field(default=3, ge=1, le=10)


class DietDay(BaseModel):
    """Today's diet log against the meals-per-day target."""
    date: str
    meals_logged: int = 0
    meals_per_day: int = 3
    average_score: float = 0.0  # mean meal score (0-10), one decimal
    all_logged: bool = False
    yesterday_average: Optional[float] = None


# ---------- Journal / meditation / goals / chat ----------

class JournalEntry(BaseModel):
    id: Optional[str] = None
    user_id: str
    date: str  # YYYY-MM-DD
    prompt: str
    content: str
    reflection: Optional[str] = None
    created_at: str


class BreathingPattern(BaseModel):
    inhale: int = Field(..., ge=0)
    hold: int = Field(default=0, ge=0)
    exhale: int = Field(..., ge=0)


class BreathingExercise(BaseModel):
    name: str
    description: str
    pattern: BreathingPattern


class BreathingExerciseList(BaseModel):
    exercises: List[BreathingExercise]


class MeditationSession(BaseModel):
    id: Optional[str] = None
    user_id: str
    exercise_name: str
    rating: int = Field(..., ge=1, le=5)
    date: str
    created_at: str


class DailyGoal(BaseModel):
    id: Optional[str] = None
    user_id: str
    date: str
    text: str
    completed: bool = False
    created_at: str


ChatRole = Literal["user", "model"]


class ChatMessage(BaseModel):
    id: Optional[str] = None
    user_id: str
    role: ChatRole
    text: str
    created_at: str


# ---------- Predictor ----------

class WellbeingForm(BaseModel):
    gender: str = ""
    age: str = ""
    city: str = ""
    profession: str = ""
    cgpa: str = ""
    degree: str = ""
    academic_satisfaction: str = ""
    sleep_duration: str = ""
    dietary_habits: str = ""
    suicidal_thoughts: str = ""
    work_study_balance: str = ""
    financial_status: str = ""
    family_history: str = ""
    screen_time: str = ""
    physical_activity: str = ""
    self_time: str = ""
    social_life: str = ""


class YogaSuggestion(BaseModel):
    name: str
    description: str


class MusicSuggestion(BaseModel):
    genre: str
    description: str


class PredictionResult(BaseModel):
    status: Literal["Thriving", "Balanced", "Stressed", "At Risk"]
    reasoning: str
    wellness_score: int = Field(..., ge=0, le=100)
    yoga_suggestion: YogaSuggestion
    music_suggestion: MusicSuggestion


# ---------- Content ----------

MusicCategory = Literal["Calm Piano", "Ambient Space", "Nature Sounds", "Lofi Beats"]
AspectRatio = Literal["1:1", "16:9", "9:16"]


class MusicRecommendation(BaseModel):
    title: str
    description: str
    category: MusicCategory


# ---------- Check-in ----------

Mood = Literal["calm", "stressed", "tired"]


class AdaptiveSuggestion(BaseModel):
    mood: Mood
    title: str
    description: str
    cta: str
    link: str


# ---------- Game settings ----------

class GameSettings(BaseModel):
    bubble_sound: Literal["pop", "water", "click"] = "pop"
    bubble_theme: Literal["classic", "balloons", "lanterns"] = "classic"
    color_palette: Literal["pastel", "oceanic", "sunset"] = "pastel"
    animation_speed: Literal["slow", "medium", "fast"] = "medium"


# ---------- Coach graph state ----------

class SafetyResult(BaseModel):
    risk: Literal["none", "self_harm", "eating_disorder", "severe_addiction", "violence", "other"] = "none"
    action: Literal["allow", "block_and_escalate"] = "allow"
    message: str = ""


class CoachState(BaseModel):
    """
    State carried through the coach graph.

    chat_history items are {"role": "user" | "model", "content": str}.
    """
    user_id: Optional[str] = None
    last_user_message: Optional[str] = None
    system_instruction: Optional[str] = None
    safety: Optional[SafetyResult] = None
    chat_history: List[Dict[str, str]] = Field(default_factory=list)
    coach_reply: Optional[str] = None
    blocked: bool = False
