"""Streak tracking and daily/weekly counter resets for murim-quest."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date

from murim_quest.clock import MONDAY, days_between, is_weekday
from murim_quest.levels import XPGrant, award_xp
from murim_quest.models import GameState
from murim_quest.notifications import NotificationSink

logger = logging.getLogger(__name__)

STREAK_MILESTONES: tuple[int, ...] = (7, 14, 30, 60, 100)
STREAK_REWARD_PER_WEEK = 500


@dataclass
class StreakUpdate:
    outcome: str  # "same_day", "continued" or "broken"
    streak_days: int
    days_elapsed: int
    weekly_reset: bool = False
    milestone_grant: XPGrant | None = None


def streak_milestone_xp(streak: int) -> float | None:
    """Base XP for reaching a streak milestone, or None if ``streak`` is not one.

    E.g., 7 -> 500, 14 -> 1000, 30 -> 2142.857... (floored when granted).
    """
    if streak not in STREAK_MILESTONES:
        return None
    return STREAK_REWARD_PER_WEEK * (streak / 7)


def check_streak_rewards(state: GameState, streak: int, sink: NotificationSink) -> XPGrant | None:
    reward = streak_milestone_xp(streak)
    if reward is None:
        return None
    sink.notify(f"{streak} Day Streak!", "You have earned a reward!", kind="streak")
    logger.info("Streak milestone %d reached", streak)
    return award_xp(state, reward, sink)


def evaluate_session_start(state: GameState, today: date, sink: NotificationSink) -> StreakUpdate:
    """Advance, keep or break the streak and reset counters for a new session.

    Rules:
    - Same date: only the session date is stamped.
    - One day later: streak +1, daily count reset, weekly count reset on Mondays,
      then milestone rewards are checked.
    - More than one day later: streak restarts at 1, daily and weekly counts reset.
    """
    progress = state.progress
    today_str = today.isoformat()
    elapsed = days_between(progress.last_session_date, today)

    if elapsed == 0:
        progress.last_session_date = today_str
        return StreakUpdate(outcome="same_day", streak_days=progress.streak_days, days_elapsed=0)

    if elapsed == 1:
        progress.streak_days += 1
        progress.daily_completed = 0
        weekly_reset = is_weekday(today, MONDAY)
        if weekly_reset:
            progress.weekly_completed = 0
        progress.last_session_date = today_str
        grant = check_streak_rewards(state, progress.streak_days, sink)
        return StreakUpdate(
            outcome="continued",
            streak_days=progress.streak_days,
            days_elapsed=1,
            weekly_reset=weekly_reset,
            milestone_grant=grant,
        )

    logger.info("Streak broken after %d days away", elapsed)
    progress.streak_days = 1
    progress.daily_completed = 0
    progress.weekly_completed = 0
    progress.last_session_date = today_str
    return StreakUpdate(outcome="broken", streak_days=1, days_elapsed=elapsed, weekly_reset=True)
