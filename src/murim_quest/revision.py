"""Spaced-revision scheduling and the check-in reward lottery.

Each completed task walks a fixed schedule keyed by its RevisionState:

    Unreviewed  -> due completion + 1 day
    Reviewed1   -> due completion + 2 days
    Reviewed2   -> due completion + 3 days
    Reviewed3   -> due completion + 7 days
    Reviewed4+  -> due last check-in + 15 days

Dates are compared at midnight; a task is due when today >= due date.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum

from murim_quest.clock import add_days, midnight
from murim_quest.levels import add_material, award_xp, grant_currency
from murim_quest.models import GameState, RevisionState, StudyTask
from murim_quest.notifications import NotificationSink

logger = logging.getLogger(__name__)

SCHEDULE_DAYS: dict[RevisionState, int] = {
    RevisionState.UNREVIEWED: 1,
    RevisionState.REVIEWED_1: 2,
    RevisionState.REVIEWED_2: 3,
    RevisionState.REVIEWED_3: 7,
}
LONG_INTERVAL_DAYS = 15


class RewardKind(str, Enum):
    XP = "XP"
    GOLD = "GOLD"
    ITEM = "ITEM"


@dataclass(frozen=True)
class RevisionReward:
    kind: RewardKind
    amount: int
    label: str


# Checked top to bottom; the first threshold strictly below the draw wins.
REWARD_TABLE: list[tuple[float, RevisionReward]] = [
    (0.95, RevisionReward(RewardKind.GOLD, 50, "Pot of Gold")),
    (0.80, RevisionReward(RewardKind.ITEM, 1, "Iron Ingot")),
    (0.60, RevisionReward(RewardKind.XP, 500, "Ancient Scripture")),
]
DEFAULT_REWARD = RevisionReward(RewardKind.XP, 100, "Small Spirit Orb")


@dataclass
class RevisionStatus:
    task_id: str
    state: RevisionState
    count: int
    due_date: date
    is_due: bool
    days_until: int


def advance(state: RevisionState) -> RevisionState:
    """Transition taken by one check-in. Reviewed4+ is terminal."""
    if state is RevisionState.REVIEWED_4_PLUS:
        return state
    return RevisionState(state.value + 1)


def next_due_date(task: StudyTask) -> date | None:
    """Date the task next becomes due, or None if it is not completed."""
    if not task.completed or task.completed_at is None:
        return None
    if task.revision_state is RevisionState.REVIEWED_4_PLUS:
        anchor = task.revision_history[-1] if task.revision_history else task.completed_at
        return add_days(midnight(anchor), LONG_INTERVAL_DAYS)
    return add_days(midnight(task.completed_at), SCHEDULE_DAYS[task.revision_state])


def revision_status(task: StudyTask, today: date) -> RevisionStatus | None:
    due = next_due_date(task)
    if due is None:
        return None
    return RevisionStatus(
        task_id=task.id,
        state=task.revision_state,
        count=len(task.revision_history),
        due_date=due,
        is_due=today >= due,
        days_until=(due - today).days,
    )


def is_due(task: StudyTask, today: date) -> bool:
    status = revision_status(task, today)
    return status is not None and status.is_due


def due_tasks(tasks: list[StudyTask], today: date) -> list[StudyTask]:
    return [t for t in tasks if is_due(t, today)]


def draw_reward(roll: float) -> RevisionReward:
    """Map a uniform draw in [0, 1) to a reward tier.

    r > 0.95 gold (5%), r > 0.80 iron (15%), r > 0.60 500 XP (20%),
    otherwise 100 XP (60%).
    """
    for threshold, reward in REWARD_TABLE:
        if roll > threshold:
            return reward
    return DEFAULT_REWARD


def apply_reward(state: GameState, reward: RevisionReward, sink: NotificationSink) -> None:
    if reward.kind is RewardKind.GOLD:
        grant_currency(state.progress, reward.amount)
    elif reward.kind is RewardKind.ITEM:
        add_material(state, "iron", reward.amount)
    else:
        award_xp(state, reward.amount, sink)


def check_in(
    state: GameState,
    task: StudyTask,
    now: datetime,
    rng: random.Random,
    sink: NotificationSink,
) -> RevisionReward | None:
    """Record a revision check-in and draw its reward. No-op unless the task is due."""
    if not is_due(task, now.date()):
        logger.warning("Check-in rejected: task %s is not due", task.id)
        return None
    task.revision_history.append(now)
    task.revision_state = advance(task.revision_state)
    reward = draw_reward(rng.random())
    apply_reward(state, reward, sink)
    logger.info("Revision check-in for %s: %s +%d", task.id, reward.kind.value, reward.amount)
    return reward
