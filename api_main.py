"""
MindfulMe – Wellness API

This module exposes a FastAPI app that wraps the MindfulMe wellness service
(emotion check-ins, diet log, journal, meditation, daily goals, AI coach,
well-being predictor, music and image studio, games and the dashboard).

File: api_main.py
"""

import logging
import os
import uuid
from datetime import date
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, ValidationError

from ai_nodes import AIServiceError
from arcade.wordflow import PlayerStats
from config import get_settings
from schemas import (
    AdaptiveSuggestion,
    AspectRatio,
    Badge,
    BreathingExercise,
    ChartPoint,
    ChatMessage,
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
    MealClassification,
    MeditationSession,
    Mood,
    MusicRecommendation,
    PredictionResult,
    TimePeriod,
    WeeklyDietSummary,
    WellbeingForm,
    WellnessSnapshot,
)
from services import WellnessService
from store import NotFoundError, get_store

# --------------------------------------------------------------------
# Logging Setup
# --------------------------------------------------------------------

settings = get_settings()

logger = logging.getLogger("mindfulme_api")
logger.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))

if not logger.handlers:
    handler = logging.StreamHandler()
    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)

# --------------------------------------------------------------------
# Service
# --------------------------------------------------------------------

service = WellnessService(get_store(settings))


def get_service() -> WellnessService:
    return service


def request_day(today: Optional[date] = Query(None, description="Client's local date (YYYY-MM-DD)")) -> Optional[date]:
    """Days follow the client's calendar when given, otherwise the server's."""
    return today

# --------------------------------------------------------------------
# API Models (Stable Contracts)
# --------------------------------------------------------------------


class ErrorResponse(BaseModel):
    error: str
    details: Optional[Any] = None
    request_id: Optional[str] = None


# ---- Emotion ----


class ImageRequest(BaseModel):
    image_base64: str


class SpeechRequest(BaseModel):
    audio_base64: str
    mime_type: str = "audio/wav"


class EmotionResponse(BaseModel):
    emotion: str
    score: int


class CheckInRequest(BaseModel):
    mood: Mood


# ---- Diet ----


class MealLogRequest(BaseModel):
    """Save a meal the client already analysed (optionally with its photo)."""
    analysis: FoodAnalysisResult
    photo: Optional[str] = None


class ManualMealRequest(BaseModel):
    meal_name: str
    calories: int = Field(ge=0)
    classification: MealClassification


# ---- Journal / meditation / goals ----


class JournalPromptResponse(BaseModel):
    prompt: str


class JournalRequest(BaseModel):
    prompt: str = ""
    content: str


class MeditationRequest(BaseModel):
    exercise_name: str
    rating: int  # 1–5


class GoalRequest(BaseModel):
    text: str


# ---- Coach ----


class CoachRequest(BaseModel):
    message: str


class CoachResponse(BaseModel):
    coach_reply: str
    blocked: bool = False
    risk: str = "none"


# ---- Content ----


class MusicRequest(BaseModel):
    mood: str


class ImageGenerateRequest(BaseModel):
    prompt: str
    style: str = "Photorealistic"
    aspect_ratio: AspectRatio = "1:1"
    negative_prompt: str = ""


class ImageGenerateResponse(BaseModel):
    image_base64: str
    mime_type: str = "image/png"


class ImagePromptResponse(BaseModel):
    prompt: str


# ---- Games ----


class WordFlowStatsModel(BaseModel):
    hints: int = Field(ge=0)
    streak: int = Field(ge=0)
    last_played: Optional[str] = None


# --------------------------------------------------------------------
# FastAPI App
# --------------------------------------------------------------------

app = FastAPI(
    title="MindfulMe – Wellness API",
    description=(
        "API for MindfulMe: emotion check-ins, diet log, journal, meditation, "
        "daily goals, AI coach, well-being predictor, music, images and games."
    ),
    version="1.0.0",
)

# CORS – allow all for now; tighten in production
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --------------------------------------------------------------------
# Middleware
# --------------------------------------------------------------------


@app.middleware("http")
async def add_request_id_and_log(request: Request, call_next):
    """Attach a request ID to each request and log basic info."""
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id

    logger.info(f"[{request_id}] {request.method} {request.url.path}")

    try:
        response = await call_next(request)
    except Exception as exc:  # global safety net
        logger.exception(f"[{request_id}] Unhandled error: {exc}")
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                error="Internal server error",
                details="Unexpected error",
                request_id=request_id,
            ).model_dump(),
        )

    response.headers["X-Request-ID"] = request_id
    return response


# --------------------------------------------------------------------
# Exception Handlers
# --------------------------------------------------------------------


def _jsonable_errors(errors: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in errors
    ]


def _error(request: Request, status_code: int, error: str, details: Any = None) -> JSONResponse:
    request_id = getattr(request.state, "request_id", None)
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error, details=details, request_id=request_id).model_dump(),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    request_id = getattr(request.state, "request_id", None)
    logger.warning(f"[{request_id}] HTTPException {exc.status_code}: {exc.detail}")

    detail = exc.detail
    if isinstance(detail, dict) and "error" in detail:
        content = {**detail, "request_id": request_id}
    else:
        content = ErrorResponse(
            error=str(detail),
            details=None,
            request_id=request_id,
        ).model_dump()

    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(ValidationError)
async def validation_exception_handler(request: Request, exc: ValidationError):
    request_id = getattr(request.state, "request_id", None)
    logger.warning(f"[{request_id}] ValidationError: {exc.errors()}")
    return _error(request, 422, "Validation error", _jsonable_errors(exc.errors()))


@app.exception_handler(RequestValidationError)
async def request_validation_exception_handler(request: Request, exc: RequestValidationError):
    request_id = getattr(request.state, "request_id", None)
    logger.warning(f"[{request_id}] RequestValidationError: {exc.errors()}")
    return _error(request, 422, "Validation error", _jsonable_errors(exc.errors()))


@app.exception_handler(AIServiceError)
async def ai_service_exception_handler(request: Request, exc: AIServiceError):
    request_id = getattr(request.state, "request_id", None)
    logger.error(f"[{request_id}] AIServiceError: {exc}")
    return _error(request, 502, str(exc))


@app.exception_handler(NotFoundError)
async def not_found_exception_handler(request: Request, exc: NotFoundError):
    request_id = getattr(request.state, "request_id", None)
    logger.warning(f"[{request_id}] Not found: {exc}")
    return _error(request, 404, "Not found", str(exc).strip("'\""))


@app.exception_handler(ValueError)
async def value_exception_handler(request: Request, exc: ValueError):
    request_id = getattr(request.state, "request_id", None)
    logger.warning(f"[{request_id}] Bad request: {exc}")
    return _error(request, 400, "Bad request", str(exc))


# --------------------------------------------------------------------
# Utility Helpers
# --------------------------------------------------------------------


def require_openai_key():
    """Raise a clean error if OPENAI_API_KEY is not configured."""
    if not getattr(settings, "openai_api_key", None):
        raise HTTPException(
            status_code=500,
            detail={
                "error": "OPENAI_API_KEY not configured",
                "details": "Set OPENAI_API_KEY in .env before running MindfulMe.",
            },
        )


# --------------------------------------------------------------------
# Basic & Health
# --------------------------------------------------------------------


@app.get("/", tags=["meta"])
def root():
    return {
        "message": "MindfulMe API is running.",
        "docs_url": "/docs",
        "environment": settings.env,
        "debug": settings.debug,
    }


@app.get("/health", tags=["meta"])
def health_check():
    return {
        "status": "ok",
        "openai_key_configured": bool(getattr(settings, "openai_api_key", None)),
        "store_backend": settings.store_backend,
        "environment": settings.env,
        "debug": settings.debug,
    }


# --------------------------------------------------------------------
# Emotion & Check-in
# --------------------------------------------------------------------


@app.post(
    "/users/{user_id}/emotion/image",
    response_model=EmotionResponse,
    tags=["emotion"],
    summary="Detect emotion from a face photo and log it",
)
def emotion_from_image(
    user_id: str,
    req: ImageRequest,
    today: Optional[date] = Depends(request_day),
    svc: WellnessService = Depends(get_service),
):
    require_openai_key()
    return svc.record_emotion_from_image(user_id, req.image_base64, today)


@app.post(
    "/users/{user_id}/emotion/speech",
    response_model=EmotionResponse,
    tags=["emotion"],
    summary="Detect emotion from a voice recording and log it",
)
def emotion_from_speech(
    user_id: str,
    req: SpeechRequest,
    today: Optional[date] = Depends(request_day),
    svc: WellnessService = Depends(get_service),
):
    require_openai_key()
    return svc.record_emotion_from_speech(user_id, req.audio_base64, req.mime_type, today)


@app.post(
    "/users/{user_id}/check-in",
    response_model=AdaptiveSuggestion,
    tags=["emotion"],
    summary="Quick mood check-in with an adaptive suggestion",
)
def check_in(user_id: str, req: CheckInRequest, svc: WellnessService = Depends(get_service)):
    return svc.check_in(req.mood)


# --------------------------------------------------------------------
# Diet
# --------------------------------------------------------------------


@app.post(
    "/users/{user_id}/meals/analyze",
    response_model=FoodAnalysisResult,
    tags=["diet"],
    summary="Analyse a meal photo (nothing is saved)",
)
def analyze_meal(user_id: str, req: ImageRequest, svc: WellnessService = Depends(get_service)):
    require_openai_key()
    return svc.analyze_meal_photo(req.image_base64)


@app.post("/users/{user_id}/meals", response_model=Meal, tags=["diet"], summary="Save an analysed meal")
def log_meal(
    user_id: str,
    req: MealLogRequest,
    today: Optional[date] = Depends(request_day),
    svc: WellnessService = Depends(get_service),
):
    return svc.log_meal(user_id, req.analysis, req.photo, today)


@app.post("/users/{user_id}/meals/manual", response_model=Meal, tags=["diet"], summary="Log a meal by hand")
def log_manual_meal(
    user_id: str,
    req: ManualMealRequest,
    today: Optional[date] = Depends(request_day),
    svc: WellnessService = Depends(get_service),
):
    return svc.log_manual_meal(user_id, req.meal_name, req.calories, req.classification, today)


@app.get("/users/{user_id}/meals", response_model=List[Meal], tags=["diet"])
def list_meals(
    user_id: str,
    only_today: bool = False,
    today: Optional[date] = Depends(request_day),
    svc: WellnessService = Depends(get_service),
):
    if only_today:
        return svc.todays_meals(user_id, today)
    return svc.meals(user_id)


@app.get(
    "/users/{user_id}/meals/today",
    response_model=DietDay,
    tags=["diet"],
    summary="Meals logged today against the daily target",
)
def diet_day(
    user_id: str,
    today: Optional[date] = Depends(request_day),
    svc: WellnessService = Depends(get_service),
):
    return svc.diet_day(user_id, today)


@app.get("/users/{user_id}/meals/weekly-summary", response_model=WeeklyDietSummary, tags=["diet"])
def weekly_diet_summary(
    user_id: str,
    today: Optional[date] = Depends(request_day),
    svc: WellnessService = Depends(get_service),
):
    return svc.weekly_diet_summary(user_id, today)


@app.get("/users/{user_id}/diet-settings", response_model=DietSettings, tags=["diet"])
def get_diet_settings(user_id: str, svc: WellnessService = Depends(get_service)):
    return svc.diet_settings(user_id)


@app.put("/users/{user_id}/diet-settings", response_model=DietSettings, tags=["diet"])
def put_diet_settings(user_id: str, req: DietSettings, svc: WellnessService = Depends(get_service)):
    return svc.save_diet_settings(user_id, req)


# --------------------------------------------------------------------
# Journal
# --------------------------------------------------------------------


@app.get("/users/{user_id}/journal/prompt", response_model=JournalPromptResponse, tags=["journal"])
def journal_prompt(user_id: str, svc: WellnessService = Depends(get_service)):
    require_openai_key()
    return JournalPromptResponse(prompt=svc.journal_prompt())


@app.post(
    "/users/{user_id}/journal",
    response_model=JournalEntry,
    tags=["journal"],
    summary="Save today's entry and get an AI reflection",
)
def save_journal_entry(
    user_id: str,
    req: JournalRequest,
    today: Optional[date] = Depends(request_day),
    svc: WellnessService = Depends(get_service),
):
    require_openai_key()
    return svc.save_journal_entry(user_id, req.prompt, req.content, today)


@app.get("/users/{user_id}/journal", response_model=List[JournalEntry], tags=["journal"])
def list_journal_entries(user_id: str, svc: WellnessService = Depends(get_service)):
    return svc.journal_entries(user_id)


# --------------------------------------------------------------------
# Meditation
# --------------------------------------------------------------------


@app.get("/users/{user_id}/meditation/exercises", response_model=List[BreathingExercise], tags=["meditation"])
def breathing_exercises(user_id: str, svc: WellnessService = Depends(get_service)):
    # falls back to built-in exercises, so no key check here
    return svc.breathing_exercises()


@app.post("/users/{user_id}/meditation/sessions", response_model=MeditationSession, tags=["meditation"])
def finish_meditation(
    user_id: str,
    req: MeditationRequest,
    today: Optional[date] = Depends(request_day),
    svc: WellnessService = Depends(get_service),
):
    return svc.finish_meditation(user_id, req.exercise_name, req.rating, today)


# --------------------------------------------------------------------
# Daily Goals
# --------------------------------------------------------------------


@app.get("/users/{user_id}/goals", response_model=List[DailyGoal], tags=["goals"])
def list_goals(
    user_id: str,
    today: Optional[date] = Depends(request_day),
    svc: WellnessService = Depends(get_service),
):
    return svc.daily_goals(user_id, today)


@app.post("/users/{user_id}/goals", response_model=DailyGoal, tags=["goals"])
def add_goal(
    user_id: str,
    req: GoalRequest,
    today: Optional[date] = Depends(request_day),
    svc: WellnessService = Depends(get_service),
):
    return svc.add_goal(user_id, req.text, today)


@app.post("/users/{user_id}/goals/{goal_id}/toggle", response_model=DailyGoal, tags=["goals"])
def toggle_goal(user_id: str, goal_id: str, svc: WellnessService = Depends(get_service)):
    return svc.toggle_goal(user_id, goal_id)


# --------------------------------------------------------------------
# Coach
# --------------------------------------------------------------------


@app.post(
    "/users/{user_id}/coach",
    response_model=CoachResponse,
    tags=["coach"],
    summary="Context-aware wellness coach",
)
def coach(
    user_id: str,
    req: CoachRequest,
    today: Optional[date] = Depends(request_day),
    svc: WellnessService = Depends(get_service),
):
    """
    Runs safety → context → coach. The conversation is stored server-side,
    so the caller only sends the newest message.
    """
    require_openai_key()

    final = svc.coach_reply(user_id, req.message, today)
    return CoachResponse(
        coach_reply=final.coach_reply or "",
        blocked=final.blocked,
        risk=final.safety.risk if final.safety else "none",
    )


@app.get("/users/{user_id}/coach/history", response_model=List[ChatMessage], tags=["coach"])
def coach_history(user_id: str, svc: WellnessService = Depends(get_service)):
    return svc.chat_history(user_id)


# --------------------------------------------------------------------
# Well-being Predictor
# --------------------------------------------------------------------


@app.post("/users/{user_id}/predictions", response_model=PredictionResult, tags=["predictor"])
def predict(user_id: str, req: WellbeingForm, svc: WellnessService = Depends(get_service)):
    require_openai_key()
    return svc.predict(user_id, req)


@app.post("/users/{user_id}/predictions/refine", response_model=PredictionResult, tags=["predictor"])
def refine_prediction(user_id: str, req: WellbeingForm, svc: WellnessService = Depends(get_service)):
    require_openai_key()
    return svc.refine_prediction(user_id, req)


@app.get("/users/{user_id}/predictions/latest", response_model=PredictionResult, tags=["predictor"])
def latest_prediction(user_id: str, svc: WellnessService = Depends(get_service)):
    prediction = svc.latest_prediction(user_id)
    if prediction is None:
        raise HTTPException(status_code=404, detail={"error": "No prediction yet"})
    return prediction


@app.post(
    "/users/{user_id}/predictions/image-prompt",
    response_model=ImagePromptResponse,
    tags=["predictor"],
    summary="Suggest an image prompt from the latest prediction",
)
def prediction_image_prompt(user_id: str, svc: WellnessService = Depends(get_service)):
    require_openai_key()
    return ImagePromptResponse(prompt=svc.image_prompt_for_prediction(user_id))


# --------------------------------------------------------------------
# Music & Image Studio
# --------------------------------------------------------------------


@app.post("/users/{user_id}/music", response_model=MusicRecommendation, tags=["content"])
def music_recommendation(user_id: str, req: MusicRequest, svc: WellnessService = Depends(get_service)):
    require_openai_key()
    return svc.music_recommendation(req.mood)


@app.post("/users/{user_id}/images", response_model=ImageGenerateResponse, tags=["content"])
def generate_image(user_id: str, req: ImageGenerateRequest, svc: WellnessService = Depends(get_service)):
    require_openai_key()
    data = svc.generate_image(req.prompt, req.style, req.aspect_ratio, req.negative_prompt)
    return ImageGenerateResponse(image_base64=data)


# --------------------------------------------------------------------
# Games
# --------------------------------------------------------------------


@app.get("/users/{user_id}/game-settings", response_model=GameSettings, tags=["games"])
def get_game_settings(user_id: str, svc: WellnessService = Depends(get_service)):
    return svc.game_settings(user_id)


@app.put("/users/{user_id}/game-settings", response_model=GameSettings, tags=["games"])
def put_game_settings(user_id: str, req: GameSettings, svc: WellnessService = Depends(get_service)):
    return svc.save_game_settings(user_id, req)


@app.post(
    "/users/{user_id}/wordflow/check-in",
    response_model=WordFlowStatsModel,
    tags=["games"],
    summary="Register today's Word Flow visit",
)
def wordflow_check_in(
    user_id: str,
    today: Optional[date] = Depends(request_day),
    svc: WellnessService = Depends(get_service),
):
    return WordFlowStatsModel(**svc.wordflow_stats(user_id, today).to_dict())


@app.put("/users/{user_id}/wordflow/stats", response_model=WordFlowStatsModel, tags=["games"])
def put_wordflow_stats(user_id: str, req: WordFlowStatsModel, svc: WellnessService = Depends(get_service)):
    stats = svc.save_wordflow_stats(user_id, PlayerStats(**req.model_dump()))
    return WordFlowStatsModel(**stats.to_dict())


# --------------------------------------------------------------------
# Dashboard
# --------------------------------------------------------------------


@app.get("/users/{user_id}/history", response_model=List[WellnessSnapshot], tags=["dashboard"])
def wellness_history(user_id: str, svc: WellnessService = Depends(get_service)):
    return svc.history(user_id)


@app.get("/users/{user_id}/summary", response_model=DailySummary, tags=["dashboard"])
def daily_summary(
    user_id: str,
    today: Optional[date] = Depends(request_day),
    svc: WellnessService = Depends(get_service),
):
    return svc.daily_summary(user_id, today)


@app.get("/users/{user_id}/chart", response_model=List[ChartPoint], tags=["dashboard"])
def chart_data(
    user_id: str,
    period: TimePeriod = "week",
    today: Optional[date] = Depends(request_day),
    svc: WellnessService = Depends(get_service),
):
    return svc.chart_data(user_id, period, today)


@app.get("/users/{user_id}/gamification", response_model=GamificationData, tags=["dashboard"])
def gamification_data(
    user_id: str,
    today: Optional[date] = Depends(request_day),
    svc: WellnessService = Depends(get_service),
):
    return svc.gamification(user_id, today)


@app.get("/users/{user_id}/badges", response_model=List[Badge], tags=["dashboard"])
def badges(
    user_id: str,
    today: Optional[date] = Depends(request_day),
    svc: WellnessService = Depends(get_service),
):
    return svc.badges(user_id, today)


@app.get("/users/{user_id}/level", response_model=LevelProgress, tags=["dashboard"])
def level_progress(
    user_id: str,
    today: Optional[date] = Depends(request_day),
    svc: WellnessService = Depends(get_service),
):
    return svc.level_progress(user_id, today)


# --------------------------------------------------------------------
# Local dev runner
# --------------------------------------------------------------------

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api_main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", 8000)),
        reload=True,
    )
