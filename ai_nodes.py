# ai_nodes.py
import json
import logging
import re
from typing import Any, Dict, List, Optional

import openai
from dotenv import load_dotenv
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI
from openai import OpenAI

from config import get_settings
from prompts import (
    BREATHING_PROMPT,
    EMOTION_IMAGE_PROMPT,
    EMOTION_SPEECH_PROMPT,
    FOOD_ANALYSIS_PROMPT,
    IMAGE_PROMPT_SUGGESTION_PROMPT,
    JOURNAL_PROMPT_PROMPT,
    JOURNAL_REFLECTION_PROMPT,
    MUSIC_PROMPT,
    PREDICTION_PROMPT,
    REFINED_PREDICTION_PROMPT,
    SAFETY_PROMPT,
    WELLBEING_FORM_BLOCK,
)
from schemas import (
    BreathingExercise,
    BreathingExerciseList,
    CoachState,
    FoodAnalysisResult,
    MusicRecommendation,
    PredictionResult,
    SafetyResult,
    WellbeingForm,
)

load_dotenv()

logger = logging.getLogger(__name__)

IMAGE_SIZES = {
    "1:1": "1024x1024",
    "16:9": "1792x1024",
    "9:16": "1024x1792",
}

AUDIO_FORMATS = {
    "audio/wav": "wav",
    "audio/x-wav": "wav",
    "audio/wave": "wav",
    "audio/mpeg": "mp3",
    "audio/mp3": "mp3",
}

BLOCKED_REPLY = (
    "I'm really glad you reached out, but this is something I can't safely help with here. "
    "Please talk to someone you trust or a qualified professional. If you are in danger, "
    "contact your local emergency number or a crisis line right away."
)


class AIServiceError(RuntimeError):
    """A generative-AI call failed. The message is safe to show to the user."""


# ---------- LLM factories ----------

def _json_llm(temperature: float = 0.3, model: Optional[str] = None) -> ChatOpenAI:
    """
    Base JSON-optimized LLM (used with structured outputs).
    """
    settings = get_settings()
    return ChatOpenAI(
        model=model or settings.model_json,
        temperature=temperature,
        api_key=settings.openai_api_key,
    )


def _text_llm(temperature: float = 0.6, model: Optional[str] = None) -> ChatOpenAI:
    """
    Base text LLM for the coach, journal and prompt helpers.
    """
    settings = get_settings()
    return ChatOpenAI(
        model=model or settings.model_text,
        temperature=temperature,
        api_key=settings.openai_api_key,
    )


def _image_client() -> OpenAI:
    return OpenAI(api_key=get_settings().openai_api_key)


def _llm_json(
    prompt: str,
    temperature: float = 0.5,
    retries: int = 2,
) -> Dict[str, Any]:
    """
    Call the JSON-mode LLM and return a Python dict.
    Retries with slightly higher temperature and stronger JSON instructions if parsing fails.
    """
    settings = get_settings()
    for attempt in range(retries):
        llm = ChatOpenAI(
            model=settings.model_json,
            temperature=temperature + (attempt * 0.2),
            api_key=settings.openai_api_key,
            model_kwargs={"response_format": {"type": "json_object"}},
        )

        resp = llm.invoke(prompt).content

        try:
            return json.loads(resp)
        except (TypeError, ValueError):
            prompt += "\nReturn STRICT JSON. No commentary."
            continue

    return {}


def _strip_quotes(text: str) -> str:
    return re.sub(r'^"|"$', "", text.strip())


def _image_message(text: str, base64_image: str, mime_type: str = "image/jpeg") -> HumanMessage:
    return HumanMessage(
        content=[
            {"type": "text", "text": text},
            {"type": "image_url", "image_url": {"url": f"data:{mime_type};base64,{base64_image}"}},
        ]
    )


def _form_block(form: WellbeingForm) -> str:
    return WELLBEING_FORM_BLOCK.format(**form.model_dump())


# ---------- Predictor ----------

def get_wellbeing_prediction(form: WellbeingForm) -> PredictionResult:
    prompt = PREDICTION_PROMPT.format(form_block=_form_block(form))
    structured_llm = _json_llm(temperature=0.3).with_structured_output(PredictionResult)

    try:
        return structured_llm.invoke(prompt)
    except Exception as e:
        logger.exception(f"Prediction failed: {e}")
        raise AIServiceError(
            "Failed to get a prediction from the AI. The model may be busy, please try again."
        ) from e


def get_refined_wellbeing_prediction(
    form: WellbeingForm,
    previous: PredictionResult,
) -> PredictionResult:
    prompt = REFINED_PREDICTION_PROMPT.format(
        previous_status=previous.status,
        previous_reasoning=previous.reasoning,
        previous_score=previous.wellness_score,
        form_block=_form_block(form),
    )
    structured_llm = _json_llm(temperature=0.3).with_structured_output(PredictionResult)

    try:
        return structured_llm.invoke(prompt)
    except Exception as e:
        logger.exception(f"Refined prediction failed: {e}")
        raise AIServiceError(
            "Failed to get a refined prediction from the AI. The model may be busy, please try again."
        ) from e


def get_image_prompt_suggestion(prediction: PredictionResult) -> str:
    prompt = IMAGE_PROMPT_SUGGESTION_PROMPT.format(
        status=prediction.status,
        reasoning=prediction.reasoning,
        yoga=prediction.yoga_suggestion.name,
        music=prediction.music_suggestion.genre,
    )

    try:
        text = _text_llm(temperature=0.8).invoke(prompt).content
    except Exception as e:
        logger.exception(f"Image prompt suggestion failed: {e}")
        raise AIServiceError("Failed to get an image prompt suggestion from the AI.") from e

    return _strip_quotes(text or "")


# ---------- Emotion ----------

def _normalize_label(text: str) -> str:
    word = re.sub(r"[^A-Za-z]", " ", text or "").split()
    return word[0].capitalize() if word else ""


def get_emotion_from_image(base64_image: str) -> str:
    llm = _json_llm(temperature=0.0, model=get_settings().model_vision)

    try:
        resp = llm.invoke([_image_message(EMOTION_IMAGE_PROMPT, base64_image)])
    except Exception as e:
        logger.exception(f"Image emotion analysis failed: {e}")
        raise AIServiceError("Failed to analyze emotion. The model may be busy.") from e

    return _normalize_label(resp.content)


def get_emotion_from_speech(base64_audio: str, mime_type: str) -> str:
    base_type = (mime_type or "").split(";")[0].strip().lower()
    audio_format = AUDIO_FORMATS.get(base_type)
    if audio_format is None:
        raise ValueError(f"Unsupported audio type: {mime_type!r} (use wav or mp3)")

    llm = _json_llm(temperature=0.0, model=get_settings().model_audio)
    message = HumanMessage(
        content=[
            {"type": "text", "text": EMOTION_SPEECH_PROMPT},
            {"type": "input_audio", "input_audio": {"data": base64_audio, "format": audio_format}},
        ]
    )

    try:
        resp = llm.invoke([message])
    except Exception as e:
        logger.exception(f"Speech emotion analysis failed: {e}")
        raise AIServiceError("Failed to analyze speech emotion. The model may be busy.") from e

    return _normalize_label(resp.content)


# ---------- Meditation / music ----------

def _fallback_breathing_exercises() -> List[BreathingExercise]:
    return [
        BreathingExercise(
            name="Box Breathing",
            description="Breathe in a steady square to settle a busy mind.",
            pattern={"inhale": 4, "hold": 4, "exhale": 4},
        ),
        BreathingExercise(
            name="4-7-8 Breathing",
            description="A long exhale that helps the body relax before sleep.",
            pattern={"inhale": 4, "hold": 7, "exhale": 8},
        ),
        BreathingExercise(
            name="Coherent Breathing",
            description="Slow, even breaths without a hold to find a calm rhythm.",
            pattern={"inhale": 5, "hold": 0, "exhale": 5},
        ),
    ]


def get_breathing_exercises() -> List[BreathingExercise]:
    structured_llm = _json_llm(temperature=0.7).with_structured_output(BreathingExerciseList)

    try:
        result = structured_llm.invoke(BREATHING_PROMPT)
        exercises = list(result.exercises)
    except Exception as e:
        logger.warning(f"Breathing exercises fell back to defaults: {e}")
        return _fallback_breathing_exercises()

    return exercises or _fallback_breathing_exercises()


def get_music_recommendation(mood: str) -> MusicRecommendation:
    prompt = MUSIC_PROMPT.format(mood=mood)
    prompt += (
        '\nReturn JSON with keys "title", "description" and "category".'
    )

    try:
        data = _llm_json(prompt, temperature=0.8)
        return MusicRecommendation(**data)
    except Exception as e:
        logger.exception(f"Music recommendation failed: {e}")
        raise AIServiceError(
            "Failed to get a music recommendation from the AI. Please try again."
        ) from e


# ---------- Diet ----------

def analyze_food_image(base64_image: str) -> FoodAnalysisResult:
    llm = _json_llm(temperature=0.2, model=get_settings().model_vision)
    structured_llm = llm.with_structured_output(FoodAnalysisResult)

    try:
        return structured_llm.invoke([_image_message(FOOD_ANALYSIS_PROMPT, base64_image)])
    except Exception as e:
        logger.exception(f"Food analysis failed: {e}")
        raise AIServiceError(
            "Failed to analyze the food image. The model may be busy, please try again."
        ) from e


# ---------- Image studio ----------

def _image_error_message(exc: Exception) -> str:
    text = str(exc).lower()
    if isinstance(exc, openai.RateLimitError) or "quota" in text:
        return "API quota exceeded. Please check your plan or try again later."
    if isinstance(exc, openai.AuthenticationError) or "api key" in text:
        return "The API key is invalid. Please check your configuration."
    if "safety" in text or "content_policy" in text or "blocked" in text:
        return "Your prompt may have violated the safety policy. Please modify it and try again."
    return (
        "Failed to generate the image. The model may be busy or the prompt could be "
        "unsuitable. Please try again."
    )


def generate_image(
    prompt: str,
    style: str,
    aspect_ratio: str = "1:1",
    negative_prompt: str = "",
) -> str:
    """
    Generate one image and return it base64-encoded.

    The image API has no negative prompt, so it is folded into the main prompt.
    """
    size = IMAGE_SIZES.get(aspect_ratio)
    if size is None:
        raise ValueError(f"Unsupported aspect ratio: {aspect_ratio!r}")

    full_prompt = f"{prompt}, in a {style} style"
    if negative_prompt and negative_prompt.strip():
        full_prompt += f". Avoid the following elements: {negative_prompt.strip()}"

    try:
        response = _image_client().images.generate(
            model=get_settings().image_model,
            prompt=full_prompt,
            size=size,
            n=1,
            response_format="b64_json",
        )
    except openai.OpenAIError as e:
        logger.exception(f"Image generation failed: {e}")
        raise AIServiceError(_image_error_message(e)) from e

    data = response.data[0].b64_json if response.data else None
    if not data:
        raise AIServiceError(
            "Image generation succeeded but returned no data. "
            "This may be due to the prompt violating safety policies."
        )
    return data


# ---------- Journal ----------

FALLBACK_JOURNAL_PROMPT = (
    "What is one thought that keeps returning today, and what would you say to a friend who had it?"
)


def get_journal_prompt() -> str:
    try:
        text = _text_llm(temperature=0.9).invoke(JOURNAL_PROMPT_PROMPT).content
    except Exception as e:
        logger.warning(f"Journal prompt fell back to default: {e}")
        return FALLBACK_JOURNAL_PROMPT

    text = _strip_quotes(text or "")
    return text or FALLBACK_JOURNAL_PROMPT


def get_journal_reflection(entry: str) -> str:
    prompt = JOURNAL_REFLECTION_PROMPT.format(entry=entry)

    try:
        text = _text_llm(temperature=0.6).invoke(prompt).content
    except Exception as e:
        logger.exception(f"Journal reflection failed: {e}")
        raise AIServiceError("Failed to get a reflection. Please try again.") from e

    return (text or "").strip()


# ---------- Safety Node ----------

def safety_node(state: CoachState) -> Dict[str, Any]:
    """
    Classify the latest user message.

    Uses SafetyResult:
    - risk: "none" | "self_harm" | "eating_disorder" | "severe_addiction" | "violence" | "other"
    - action: "allow" | "block_and_escalate"
    - message: short, safe helper text
    """
    prompt = SAFETY_PROMPT.format(user_text=state.last_user_message or "")
    structured_llm = _json_llm(temperature=0.1).with_structured_output(SafetyResult)

    try:
        safety = structured_llm.invoke(prompt)
    except Exception as e:
        # an unclassified message is treated as unsafe
        logger.warning(f"Safety classification failed, blocking: {e}")
        safety = SafetyResult(risk="other", action="block_and_escalate", message=BLOCKED_REPLY)

    return {"safety": safety, "blocked": safety.action == "block_and_escalate"}


# ---------- Coach Node ----------

def _to_messages(state: CoachState) -> List[BaseMessage]:
    messages: List[BaseMessage] = []
    if state.system_instruction:
        messages.append(SystemMessage(content=state.system_instruction))
    for msg in state.chat_history or []:
        content = msg.get("content", "")
        if msg.get("role") == "model":
            messages.append(AIMessage(content=content))
        else:
            messages.append(HumanMessage(content=content))
    messages.append(HumanMessage(content=state.last_user_message or ""))
    return messages


def _append_turn(state: CoachState, reply: str) -> List[Dict[str, str]]:
    new_history = list(state.chat_history or [])
    if state.last_user_message:
        new_history.append({"role": "user", "content": state.last_user_message})
    new_history.append({"role": "model", "content": reply})
    return new_history


def blocked_reply_node(state: CoachState) -> Dict[str, Any]:
    """Reply used when the safety check blocks the message."""
    reply = (state.safety.message if state.safety and state.safety.message else BLOCKED_REPLY)
    return {"coach_reply": reply, "chat_history": _append_turn(state, reply)}


def coach_node(state: CoachState) -> Dict[str, Any]:
    """
    Context-aware wellness coach that uses:
    - system_instruction (persona + the user's recent data)
    - chat_history
    - last_user_message
    """
    llm = _text_llm()
    try:
        reply = (llm.invoke(_to_messages(state)).content or "").strip()
    except Exception as e:
        logger.exception(f"Coach reply failed: {e}")
        reply = ""

    if not reply:
        reply = "I'm here with you. Would you like to take one slow breath together and tell me a bit more?"

    return {"coach_reply": reply, "chat_history": _append_turn(state, reply)}
