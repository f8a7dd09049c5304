"""Reward dispatcher: side effects of completing study actions."""

from __future__ import annotations

import logging
from datetime import datetime

from murim_quest.errors import WindowClosed
from murim_quest.levels import XPGrant, add_material, award_xp, grant_currency
from murim_quest.models import Category, EssayLog, GameState, MainsLog, StudyTask
from murim_quest.notifications import NotificationSink
from murim_quest.pets import StageRule, feed_active
from murim_quest.windows import claim_boss_window, is_essay_day

logger = logging.getLogger(__name__)

TASK_XP = 100
TOTAL_MILESTONE_EVERY = 150
DAILY_FRENZY_COUNT = 50
DAILY_FRENZY_IRON = 10
WEEKLY_WARLORD_COUNT = 200
WEEKLY_WARLORD_FIRE = 10

ESSAY_XP = 500
ESSAY_MARK_XP = 2
MAINS_XP_PER_ANSWER = 50
HOBBY_XP = 50

CATEGORY_DROPS: dict[Category, str] = {
    Category.GS: "iron",
    Category.OPTIONAL: "wood",
}


def check_special_rewards(state: GameState, sink: NotificationSink) -> None:
    """Threshold celebrations on the post-increment task counters."""
    progress = state.progress
    if progress.total_completed > 0 and progress.total_completed % TOTAL_MILESTONE_EVERY == 0:
        sink.notify(
            "Milestone Reached!",
            f"{progress.total_completed} Tasks Completed! You found a forgotten Scroll of Wisdom.",
            kind="milestone",
        )
    if progress.daily_completed == DAILY_FRENZY_COUNT:
        sink.notify("Frenzy!", "50 Tasks in one day! You are possessed by the Spirit of Diligence.", kind="milestone")
        add_material(state, "iron", DAILY_FRENZY_IRON)
    if progress.weekly_completed == WEEKLY_WARLORD_COUNT:
        sink.notify("Weekly Warlord", "200 Tasks this week! The Sect Elders are impressed.", kind="milestone")
        add_material(state, "fire", WEEKLY_WARLORD_FIRE)


def on_task_completed(state: GameState, task: StudyTask, sink: NotificationSink) -> XPGrant:
    """Fire once per completed=True transition."""
    grant = award_xp(state, TASK_XP, sink)
    progress = state.progress
    progress.total_completed += 1
    progress.daily_completed += 1
    progress.weekly_completed += 1
    check_special_rewards(state, sink)

    drop = CATEGORY_DROPS.get(task.category)
    if drop:
        add_material(state, drop, 1)
    return grant


def essay_xp(count: int, marks: list[int]) -> int:
    return count * ESSAY_XP + sum(marks) * ESSAY_MARK_XP


def on_essay_submitted(
    state: GameState,
    count: int,
    topics: list[tuple[str, int]],
    now: datetime,
    sink: NotificationSink,
) -> EssayLog:
    """Reward an essay session and settle the boss window if it is open.

    Raises WindowClosed outside essay day, before anything is mutated.
    """
    if not is_essay_day(now.date()):
        raise WindowClosed("Essays can only be submitted on Wednesdays")
    if count < 0:
        raise ValueError("Essay count cannot be negative")
    if any(marks < 0 for _, marks in topics):
        raise ValueError("Marks cannot be negative")

    base = essay_xp(count, [marks for _, marks in topics])
    grant = award_xp(state, base, sink)
    add_material(state, "fire", count)
    log = EssayLog(date=now, count=count, topics=list(topics), total_xp_earned=grant.effective)
    state.essays.append(log)

    claim_boss_window(state, now, sink)
    return log


def on_mains_logged(
    state: GameState,
    count: int,
    today: str,
    sink: NotificationSink,
    rule: StageRule = StageRule.EXACT,
) -> XPGrant:
    """Grant XP and feed the active pet; each applies the potion multiplier itself."""
    if count < 0:
        raise ValueError("Answer count cannot be negative")
    existing = next((log for log in state.mains if log.date == today), None)
    if existing:
        existing.count += count
    else:
        state.mains.append(MainsLog(date=today, count=count))

    base = count * MAINS_XP_PER_ANSWER
    grant = award_xp(state, base, sink)
    feed_active(state, base, rule)
    return grant


def on_hobby_logged(state: GameState, sink: NotificationSink) -> XPGrant:
    return award_xp(state, HOBBY_XP, sink)


def on_boss_fight_rewarded(state: GameState, xp: int, gold: int, sink: NotificationSink) -> XPGrant:
    grant = award_xp(state, max(xp, 0), sink)
    grant_currency(state.progress, max(gold, 0))
    logger.info("Boss fight reward: %d XP, %d gold", grant.effective, gold)
    return grant
