"""Time-gated event windows: the Wednesday boss window and essay day.

Pure predicates over a timestamp plus the last-claimed marker.
"""

from __future__ import annotations

import logging
from datetime import date, datetime

from murim_quest.clock import WEDNESDAY, is_weekday
from murim_quest.models import GameState, UserProgress
from murim_quest.notifications import NotificationSink

logger = logging.getLogger(__name__)

BOSS_WEEKDAY = WEDNESDAY
BOSS_START_HOUR = 12  # inclusive
BOSS_END_HOUR = 15  # exclusive
ESSAY_WEEKDAY = WEDNESDAY


def is_boss_window(now: datetime) -> bool:
    return is_weekday(now.date(), BOSS_WEEKDAY) and BOSS_START_HOUR <= now.hour < BOSS_END_HOUR


def is_boss_pending(progress: UserProgress, today: date) -> bool:
    return progress.last_boss_window_date != today.isoformat()


def is_essay_day(today: date) -> bool:
    return is_weekday(today, ESSAY_WEEKDAY)


def claim_boss_window(state: GameState, now: datetime, sink: NotificationSink) -> bool:
    """Stamp the boss window as survived for today. At most once per day."""
    if not is_boss_window(now) or not is_boss_pending(state.progress, now.date()):
        return False
    state.progress.last_boss_window_date = now.date().isoformat()
    logger.info("Boss window claimed on %s", state.progress.last_boss_window_date)
    sink.notify("Tribulation Survived!", "You have withstood the Heavenly Tribulation.", kind="boss")
    return True
