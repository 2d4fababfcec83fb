import base64
import os
import random
import time
from datetime import date

import requests
import streamlit as st

from arcade import BlocksGame, BubbleWrap, ColorSplash, PuzzlerGame, WordFlowGame
from arcade.wordflow import PlayerStats
from schemas import GameSettings, WellbeingForm

# --------------------- API Client --------------------- #

API_BASE = os.getenv("MINDFULME_API_BASE", "http://localhost:8000")


def call_api(path: str, payload: dict = None, method: str = "POST", params: dict = None):
    """
    Helper to call the MindfulMe FastAPI.

    - path: e.g. "/users/me/goals"
    - payload: dict that will be sent as JSON (POST / PUT)

    Raises RuntimeError with details if the API responds with 4xx/5xx.
    """
    url = f"{API_BASE}{path}"
    params = {"today": date.today().isoformat(), **(params or {})}
    try:
        resp = requests.request(method, url, json=payload, params=params, timeout=120)
    except requests.RequestException as e:
        raise RuntimeError(f"API {path} request failed: {e}")

    if resp.status_code >= 400:
        try:
            data = resp.json()
            data = data.get("error", data) if isinstance(data, dict) else data
        except ValueError:
            data = resp.text
        raise RuntimeError(f"API {path} failed: {resp.status_code} – {data}")

    return resp.json()


def user_path(suffix: str) -> str:
    return f"/users/{st.session_state.user_id}{suffix}"


def to_base64(uploaded) -> str:
    return base64.b64encode(uploaded.getvalue()).decode("ascii")


# --------------------- Streamlit setup --------------------- #

st.set_page_config(
    page_title="MindfulMe – Wellness Companion",
    page_icon="🌿",
    layout="wide",
)

st.title("🌿 MindfulMe")
st.caption("Track how you feel, eat and rest, talk to a gentle AI coach, and unwind in the Calm Arcade.")


# --------------------- Session State helpers --------------------- #

def init_state():
    defaults = {
        "user_id": "demo-user",
        "journal_prompt": None,
        "last_prediction": None,
        "meal_analysis": None,
        "blocks": None,
        "puzzler": None,
        "wordflow": None,
        "bubbles": None,
        "splash": None,
    }
    for key, value in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = value


init_state()

PAGES = [
    "Dashboard",
    "Check-in",
    "AI Coach",
    "Diet",
    "Journal",
    "Meditation",
    "Music",
    "Image Studio",
    "Predictor",
    "Calm Arcade",
]

with st.sidebar:
    st.header("⚙️ Controls")
    st.session_state.user_id = st.text_input("User id", value=st.session_state.user_id).strip() or "demo-user"
    page = st.radio("Go to", PAGES)
    if st.button("🔄 Reset session", use_container_width=True):
        st.session_state.clear()
        init_state()
        st.rerun()


# --------------------- Pages --------------------- #

def page_dashboard():
    try:
        summary = call_api(user_path("/summary"), method="GET")
        level = call_api(user_path("/level"), method="GET")
        gam = call_api(user_path("/gamification"), method="GET")
        badges = call_api(user_path("/badges"), method="GET")
    except RuntimeError as e:
        st.error(f"Could not load dashboard: {e}")
        return

    c1, c2, c3, c4 = st.columns(4)
    change = summary.get("change")
    c1.metric("Today's score", summary["total_score"], None if change is None else f"{change}%")
    c2.metric("Emotion", summary.get("emotion_score") or "–")
    c3.metric("Diet", summary.get("diet_score") or "–")
    c4.metric("Streak", f"{gam['streak']} days")

    st.markdown(f"**Level {level['level']} – {level['level_name']}** ({level['xp']} XP)")
    st.progress(min(100, level["progress_percent"]) / 100)

    period = st.selectbox("Period", ["week", "month", "year"])
    try:
        chart = call_api(user_path("/chart"), method="GET", params={"period": period})
    except RuntimeError as e:
        st.error(f"Could not load chart: {e}")
        chart = []
    if chart:
        st.bar_chart({p["day"]: p["tooltip_positive"] for p in chart})

    st.markdown("#### 🏅 Badges")
    cols = st.columns(3)
    for i, badge in enumerate(badges):
        mark = "✅" if badge["unlocked"] else "🔒"
        cols[i % 3].markdown(f"{mark} **{badge['name']}**  \n{badge['description']}")

    st.markdown("#### 🎯 Today's goals")
    goals = call_api(user_path("/goals"), method="GET")
    for goal in goals:
        label = f"~~{goal['text']}~~" if goal["completed"] else goal["text"]
        if st.checkbox(label, value=goal["completed"], key=f"goal_{goal['id']}") != goal["completed"]:
            call_api(user_path(f"/goals/{goal['id']}/toggle"))
            st.rerun()
    if len(goals) < 3:
        new_goal = st.text_input("Add a goal", key="new_goal")
        if st.button("Add goal") and new_goal.strip():
            try:
                call_api(user_path("/goals"), {"text": new_goal})
                st.rerun()
            except RuntimeError as e:
                st.error(str(e))


def page_check_in():
    st.subheader("How are you feeling right now?")
    cols = st.columns(3)
    for col, mood in zip(cols, ["calm", "stressed", "tired"]):
        if col.button(mood.title(), use_container_width=True):
            suggestion = call_api(user_path("/check-in"), {"mood": mood})
            st.info(f"**{suggestion['title']}**  \n{suggestion['description']}  \n→ {suggestion['cta']} ({suggestion['link']})")

    st.markdown("---")
    st.subheader("📷 Face check-in")
    photo = st.camera_input("Take a photo")
    if photo is not None and st.button("Analyze my expression"):
        try:
            result = call_api(user_path("/emotion/image"), {"image_base64": to_base64(photo)})
            st.success(f"You look **{result['emotion']}** (score {result['score']})")
        except RuntimeError as e:
            st.error(str(e))

    st.subheader("🎙️ Voice check-in")
    audio = st.file_uploader("Upload a short recording (wav or mp3)", type=["wav", "mp3"])
    if audio is not None and st.button("Analyze my voice"):
        try:
            result = call_api(
                user_path("/emotion/speech"),
                {"audio_base64": to_base64(audio), "mime_type": audio.type or "audio/wav"},
            )
            st.success(f"You sound **{result['emotion']}** (score {result['score']})")
        except RuntimeError as e:
            st.error(str(e))


def page_coach():
    st.subheader("🧑‍🏫 AI Coach")
    try:
        history = call_api(user_path("/coach/history"), method="GET")
    except RuntimeError as e:
        st.error(str(e))
        history = []

    for msg in history:
        with st.chat_message("user" if msg["role"] == "user" else "assistant"):
            st.markdown(msg["text"])

    user_msg = st.chat_input("Share what's on your mind…")
    if user_msg:
        try:
            reply = call_api(user_path("/coach"), {"message": user_msg})
            if reply.get("blocked"):
                st.warning("Your coach can't help with this here. Please reach out to someone you trust.")
            st.rerun()
        except RuntimeError as e:
            st.error(f"Coach API call failed: {e}")


def page_diet():
    st.subheader("🥗 Diet log")
    day = call_api(user_path("/meals/today"), method="GET")

    if day.get("yesterday_average") is not None:
        st.info(
            f"Yesterday's summary: you achieved an average diet score of "
            f"**{day['yesterday_average']:.1f}**. Keep up the mindful eating!"
        )

    summary = call_api(user_path("/meals/weekly-summary"), method="GET")
    if summary.get("current_week_average") is not None:
        st.metric("This week's average diet score", summary["current_week_average"],
                  None if summary.get("change") is None else f"{summary['change']}%")

    st.metric("Today's average score", f"{day['average_score']:.1f}")
    st.caption(f"{day['meals_logged']} of {day['meals_per_day']} meals logged")

    for meal in reversed(call_api(user_path("/meals"), method="GET", params={"only_today": True})):
        st.markdown(f"- {meal['meal_name']} ({meal['classification']}, {meal['calories']} kcal)")

    if day["all_logged"]:
        st.success("All meals logged!")
        return
    if day["meals_logged"] > 0:
        st.caption(f"Remember to log your next meal to stay on track with your goal of "
                   f"{day['meals_per_day']} meals today.")

    photo = st.file_uploader("Meal photo", type=["jpg", "jpeg", "png"])
    if photo is not None and st.button("Analyze meal", type="primary"):
        try:
            st.session_state.meal_analysis = call_api(user_path("/meals/analyze"), {"image_base64": to_base64(photo)})
        except RuntimeError as e:
            st.error(str(e))

    analysis = st.session_state.meal_analysis
    if analysis:
        st.markdown(
            f"**{analysis['meal_name']}** – {analysis['calories']} kcal, "
            f"{analysis['classification']} ({analysis['score']}/10)  \n"
            f"{analysis['reasoning']}  \n_{analysis['mental_wellness_insight']}_"
        )
        if st.button("Save meal"):
            try:
                call_api(user_path("/meals"), {"analysis": analysis})
                st.session_state.meal_analysis = None
                st.rerun()
            except RuntimeError as e:
                st.error(str(e))

    with st.expander("Log a meal manually"):
        name = st.text_input("Meal name")
        calories = st.number_input("Calories", min_value=0, value=400, step=10)
        classification = st.selectbox("Classification", ["Healthy", "Moderate", "Unhealthy"])
        if st.button("Log meal"):
            try:
                call_api(
                    user_path("/meals/manual"),
                    {"meal_name": name, "calories": int(calories), "classification": classification},
                )
                st.rerun()
            except RuntimeError as e:
                st.error(str(e))


def page_journal():
    st.subheader("📓 Journal")
    if st.session_state.journal_prompt is None or st.button("New prompt"):
        try:
            st.session_state.journal_prompt = call_api(user_path("/journal/prompt"), method="GET")["prompt"]
        except RuntimeError as e:
            st.error(str(e))
            st.session_state.journal_prompt = ""

    st.markdown(f"**{st.session_state.journal_prompt}**")
    content = st.text_area("Write freely…", height=200)
    if st.button("Save & reflect", type="primary"):
        try:
            entry = call_api(
                user_path("/journal"),
                {"prompt": st.session_state.journal_prompt, "content": content},
            )
            st.info(entry.get("reflection") or "Saved.")
        except RuntimeError as e:
            st.error(str(e))

    for entry in call_api(user_path("/journal"), method="GET"):
        with st.expander(entry["date"]):
            st.caption(entry["prompt"])
            st.write(entry["content"])
            if entry.get("reflection"):
                st.markdown(f"_{entry['reflection']}_")


def page_meditation():
    st.subheader("🧘 Breathing exercises")
    exercises = call_api(user_path("/meditation/exercises"), method="GET")
    names = [ex["name"] for ex in exercises]
    choice = st.selectbox("Exercise", names)
    exercise = exercises[names.index(choice)]
    pattern = exercise["pattern"]
    st.write(exercise["description"])
    st.caption(f"Inhale {pattern['inhale']}s · Hold {pattern['hold']}s · Exhale {pattern['exhale']}s")

    rating = st.slider("How do you feel afterwards?", 1, 5, 3)
    if st.button("I finished this session", type="primary"):
        call_api(user_path("/meditation/sessions"), {"exercise_name": choice, "rating": rating})
        st.success("Session saved (+15 XP)")


def page_music():
    st.subheader("🎵 Music for your mood")
    mood = st.text_input("Describe your mood", placeholder="a bit anxious before an exam")
    if st.button("Recommend") and mood.strip():
        try:
            rec = call_api(user_path("/music"), {"mood": mood})
            st.success(f"**{rec['title']}** ({rec['category']})  \n{rec['description']}")
        except RuntimeError as e:
            st.error(str(e))


def page_image_studio():
    st.subheader("🎨 Image Studio")
    prompt = st.text_area("Prompt")
    style = st.selectbox("Style", ["Photorealistic", "Watercolor", "Anime", "Digital Art", "Oil Painting"])
    ratio = st.selectbox("Aspect ratio", ["1:1", "16:9", "9:16"])
    negative = st.text_input("Avoid (optional)")
    if st.button("Generate", type="primary"):
        try:
            with st.spinner("Painting…"):
                data = call_api(
                    user_path("/images"),
                    {"prompt": prompt, "style": style, "aspect_ratio": ratio, "negative_prompt": negative},
                )
            st.image(base64.b64decode(data["image_base64"]))
        except RuntimeError as e:
            st.error(str(e))


def page_predictor():
    st.subheader("🔮 Well-being predictor")
    form = {}
    cols = st.columns(2)
    for i, field in enumerate(WellbeingForm.model_fields):
        form[field] = cols[i % 2].text_input(field.replace("_", " ").title(), key=f"form_{field}")

    c1, c2 = st.columns(2)
    path = None
    if c1.button("Predict", type="primary"):
        path = "/predictions"
    if c2.button("Refine with new answers"):
        path = "/predictions/refine"
    if path:
        try:
            st.session_state.last_prediction = call_api(user_path(path), form)
        except RuntimeError as e:
            st.error(str(e))

    result = st.session_state.last_prediction
    if result:
        st.metric(result["status"], result["wellness_score"])
        st.write(result["reasoning"])
        st.markdown(f"**Yoga:** {result['yoga_suggestion']['name']} – {result['yoga_suggestion']['description']}")
        st.markdown(f"**Music:** {result['music_suggestion']['genre']} – {result['music_suggestion']['description']}")
        if st.button("Suggest an image prompt"):
            st.code(call_api(user_path("/predictions/image-prompt"))["prompt"])


# --------------------- Calm Arcade --------------------- #

BLOCK_COLORS = {
    "I": "🟦", "J": "🟪", "L": "🟧", "O": "🟨", "S": "🟩", "T": "🟫", "Z": "🟥", "*": "⬜", "": "⬛",
}


def arcade_blocks():
    game: BlocksGame = st.session_state.blocks or BlocksGame(random.Random())
    st.session_state.blocks = game

    cols = st.columns(7)
    if cols[0].button("Start"):
        game.start()
    if cols[1].button("⏯"):
        game.toggle_pause()
    if cols[2].button("⬅"):
        game.move(-1)
    if cols[3].button("➡"):
        game.move(1)
    if cols[4].button("⟳"):
        game.rotate()
    if cols[5].button("⬇"):
        game.tick()
    if cols[6].button("⤓"):
        game.hard_drop()

    st.text("\n".join("".join(BLOCK_COLORS.get(cell, "⬛") for cell in row) for row in game.render(show_hint=True)))
    st.caption(f"Calm Score {game.score} · Rows {game.rows} · {game.state}")


def arcade_puzzler():
    game: PuzzlerGame = st.session_state.puzzler or PuzzlerGame(random.Random())
    st.session_state.puzzler = game

    c1, c2 = st.columns(2)
    if c1.button("Play / Pause"):
        game.toggle_play()
    if c2.button("Hint"):
        move = game.hint()
        if move:
            st.info(f"Try swapping {move[0]} with {move[1]}")

    for r, row in enumerate(game.grid):
        cols = st.columns(len(row))
        for c, color in enumerate(row):
            selected = game.selected == (r, c)
            if cols[c].button("◉" if selected else "●", key=f"tile_{r}_{c}", help=color):
                cleared = game.click(r, c)
                if cleared:
                    st.toast(f"Cleared {cleared} tiles")
                st.rerun()
    st.progress(game.progress / 100)
    st.caption(f"Calm meter {game.progress}/100 · {game.state}")


def arcade_wordflow():
    game: WordFlowGame = st.session_state.wordflow
    if game is None:
        try:
            stats = PlayerStats(**call_api(user_path("/wordflow/check-in")))
        except RuntimeError:
            stats = PlayerStats()
        game = WordFlowGame(stats=stats, rng=random.Random())
        st.session_state.wordflow = game

    c1, c2, c3, c4 = st.columns(4)
    if c1.button("Play / Next"):
        game.play()
    if c2.button("Pause"):
        game.toggle_pause()
    if c3.button("Shuffle"):
        game.shuffle()
    if c4.button(f"Hint ({game.stats.hints})"):
        game.use_hint()

    st.markdown(" ".join(f"**{ch}**" for ch in game.letters))
    guess = st.text_input("Your word", key="wordflow_guess")
    if st.button("Submit") and guess:
        if game.submit_word(guess):
            st.success(f"Found {guess.upper()}!")
        if game.state == "solved":
            st.balloons()

    for i in range(len(game.words)):
        st.text(" ".join(game.revealed(i)))
    st.caption(f"Streak {game.stats.streak} · {game.state}")

    try:
        call_api(user_path("/wordflow/stats"), game.stats.to_dict(), method="PUT")
    except RuntimeError as e:
        st.warning(f"Could not save Word Flow stats: {e}")


def arcade_bubbles(settings: GameSettings):
    game: BubbleWrap = st.session_state.bubbles or BubbleWrap(random.Random())
    st.session_state.bubbles = game

    glyph = {"classic": "🫧", "balloons": "🎈", "lanterns": "🏮"}[settings.bubble_theme]
    per_row = 8
    for start in range(0, game.bubble_count, per_row):
        cols = st.columns(per_row)
        for offset, col in enumerate(cols):
            bubble = start + offset
            label = "·" if game.is_popped(bubble) else glyph
            if col.button(label, key=f"bubble_{bubble}"):
                result = game.pop(bubble)
                if result.sheet_cleared:
                    st.toast("Fresh sheet!")
                st.rerun()
    st.caption(f"Popped {game.total_popped} · Sheets {game.sheets_cleared}")


def arcade_splash(settings: GameSettings):
    game: ColorSplash = st.session_state.splash or ColorSplash(settings)
    game.apply_settings(settings)
    st.session_state.splash = game

    c1, c2 = st.columns(2)
    if c1.button("Splash!", type="primary"):
        game.splash(random.random(), random.random(), int(time.time() * 1000))
    if c2.button("Pause / Resume"):
        game.toggle_pause()

    start, end = game.current_color
    st.markdown(
        f"<div style='height:160px;border-radius:16px;background:linear-gradient(135deg,{start},{end})'></div>",
        unsafe_allow_html=True,
    )
    game.expire(int(time.time() * 1000))
    st.caption(f"Splashes {game.points} · Ripples {len(game.ripples)}")


def page_arcade():
    st.subheader("🎮 Calm Arcade")
    try:
        settings = GameSettings(**call_api(user_path("/game-settings"), method="GET"))
    except RuntimeError:
        settings = GameSettings()

    with st.expander("Game settings"):
        sound = st.selectbox("Bubble sound", ["pop", "water", "click"], index=["pop", "water", "click"].index(settings.bubble_sound))
        theme = st.selectbox("Bubble theme", ["classic", "balloons", "lanterns"],
                             index=["classic", "balloons", "lanterns"].index(settings.bubble_theme))
        palette = st.selectbox("Color palette", ["pastel", "oceanic", "sunset"],
                               index=["pastel", "oceanic", "sunset"].index(settings.color_palette))
        speed = st.selectbox("Animation speed", ["slow", "medium", "fast"],
                             index=["slow", "medium", "fast"].index(settings.animation_speed))
        if st.button("Save settings"):
            settings = GameSettings(bubble_sound=sound, bubble_theme=theme, color_palette=palette, animation_speed=speed)
            call_api(user_path("/game-settings"), settings.model_dump(), method="PUT")

    game = st.selectbox("Game", ["Classic Blocks", "Peace Puzzler", "Word Flow", "Bubble Wrap", "Color Splash"])
    if game == "Classic Blocks":
        arcade_blocks()
    elif game == "Peace Puzzler":
        arcade_puzzler()
    elif game == "Word Flow":
        arcade_wordflow()
    elif game == "Bubble Wrap":
        arcade_bubbles(settings)
    else:
        arcade_splash(settings)


PAGE_RENDERERS = {
    "Dashboard": page_dashboard,
    "Check-in": page_check_in,
    "AI Coach": page_coach,
    "Diet": page_diet,
    "Journal": page_journal,
    "Meditation": page_meditation,
    "Music": page_music,
    "Image Studio": page_image_studio,
    "Predictor": page_predictor,
    "Calm Arcade": page_arcade,
}

try:
    PAGE_RENDERERS[page]()
except RuntimeError as e:
    st.error(f"API call failed: {e}")
