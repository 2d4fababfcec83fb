"""
XP, levels, daily streaks and badges.
"""

import logging
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from schemas import Badge, GamificationData, LevelProgress
from store import GAMIFICATION, DocumentStore

logger = logging.getLogger(__name__)

# XP awarded per activity
XP_MEDITATION = 15
XP_JOURNAL = 10
XP_MEAL = 5

LEVEL_2_XP = 100
LEVEL_3_XP = 300

LEVELS = [
    {"name": "Beginner", "xp_threshold": 0},
    {"name": "Explorer", "xp_threshold": LEVEL_2_XP},
    {"name": "Mindful Pro", "xp_threshold": LEVEL_3_XP},
]

ALL_BADGES = [
    {"id": "streak_3", "name": "3-Day Streak", "description": "Used the app for 3 days in a row.", "icon": "FireIcon"},
    {"id": "streak_7", "name": "7-Day Streak", "description": "Used the app for 7 days in a row.", "icon": "FireIcon"},
    {"id": "first_meditation", "name": "Mindful Start", "description": "Completed your first breathing exercise.", "icon": "YogaIcon"},
    {"id": "first_journal", "name": "Inner Explorer", "description": "Wrote your first journal entry.", "icon": "BookOpenIcon"},
    {"id": "first_diet", "name": "Food for Thought", "description": "Logged your first meal.", "icon": "AppleIcon"},
    {"id": "mindful_pro", "name": "Mindful Pro", "description": "Reached the highest wellness level.", "icon": "BrainCircuitIcon"},
]


def load(store: DocumentStore, user_id: str, today: Optional[date] = None) -> GamificationData:
    """
    Stored data for a user, or fresh defaults.

    A streak whose last activity is more than one day old reads as 0.
    """
    return _from_doc(store.get(GAMIFICATION, user_id), user_id, today)


def _from_doc(doc: Optional[Dict[str, Any]], user_id: str, today: Optional[date] = None) -> GamificationData:
    today = today or date.today()
    if not doc:
        return GamificationData(user_id=user_id)

    doc = {k: v for k, v in doc.items() if k != "id"}
    data = GamificationData(**doc)
    # badges added after the document was written default to locked
    for badge in ALL_BADGES:
        data.badges.setdefault(badge["id"], False)

    if data.last_activity_date:
        last = date.fromisoformat(data.last_activity_date)
        if (today - last).days > 1:
            data.streak = 0
    return data


def apply_xp(
    data: GamificationData,
    amount: int,
    badge: Optional[str] = None,
    today: Optional[date] = None,
) -> GamificationData:
    """Pure update step behind add_xp."""
    today = today or date.today()
    data = data.model_copy(deep=True)

    data.xp += amount
    if data.level == 1 and data.xp >= LEVEL_2_XP:
        data.level = 2
    if data.level == 2 and data.xp >= LEVEL_3_XP:
        data.level = 3
        data.badges["mindful_pro"] = True

    today_str = today.isoformat()
    if data.last_activity_date != today_str:
        yesterday_str = (today - timedelta(days=1)).isoformat()
        if data.last_activity_date == yesterday_str:
            data.streak += 1
        else:
            data.streak = 1
        data.last_activity_date = today_str

    if badge:
        if badge not in data.badges:
            raise ValueError(f"Unknown badge: {badge}")
        data.badges[badge] = True

    if data.streak >= 3:
        data.badges["streak_3"] = True
    if data.streak >= 7:
        data.badges["streak_7"] = True

    return data


def add_xp(
    store: DocumentStore,
    user_id: str,
    amount: int,
    badge: Optional[str] = None,
    today: Optional[date] = None,
) -> GamificationData:
    def update(doc: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        return apply_xp(_from_doc(doc, user_id, today), amount, badge, today).model_dump()

    data = GamificationData(**store.transact(GAMIFICATION, user_id, update))
    logger.info(
        f"User {user_id} gained {amount} XP "
        f"(total={data.xp}, level={data.level}, streak={data.streak})"
    )
    return data


def badges(data: GamificationData) -> List[Badge]:
    return [Badge(**badge, unlocked=data.badges.get(badge["id"], False)) for badge in ALL_BADGES]


def level_progress(data: GamificationData) -> LevelProgress:
    current = LEVELS[data.level - 1] if 1 <= data.level <= len(LEVELS) else LEVELS[0]
    upcoming = LEVELS[data.level] if data.level < len(LEVELS) else current

    xp_in_level = data.xp - current["xp_threshold"]
    xp_for_next = upcoming["xp_threshold"] - current["xp_threshold"]
    if xp_for_next > 0:
        percent = min(xp_in_level / xp_for_next * 100, 100.0)
    else:
        percent = 100.0

    return LevelProgress(
        level=data.level,
        level_name=current["name"],
        xp=data.xp,
        next_level_xp=upcoming["xp_threshold"],
        progress_percent=percent,
    )
