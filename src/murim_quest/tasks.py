"""Study task lifecycle and sub-category mastery."""

from __future__ import annotations

import logging
from datetime import datetime

from murim_quest.errors import CategoryMastered
from murim_quest.models import Category, GameState, StudyTask
from murim_quest.notifications import NotificationSink
from murim_quest.rewards import on_task_completed

logger = logging.getLogger(__name__)

GS_GROUPS: list[str] = [
    "Economy", "Polity", "Governance", "IR", "Geography", "Ecology",
    "Science", "Society", "Internal Security", "Disaster Management", "Ethics",
]

OPTIONAL_GROUPS: list[str] = ["Ancient", "Medieval", "Modern", "World", "Historiography"]


def add_task(state: GameState, title: str, category: Category, sub_category: str, now: datetime) -> StudyTask:
    """Create a not-completed task. Mastered sub-categories are frozen."""
    if not title.strip():
        raise ValueError("Task title cannot be empty")
    if sub_category in state.progress.mastered_categories:
        raise CategoryMastered(f"{sub_category} is mastered; no new tasks can be added")
    task = StudyTask(title=title.strip(), category=Category(category), sub_category=sub_category, created_at=now)
    state.tasks.append(task)
    return task


def toggle_task(state: GameState, task_id: str, now: datetime, sink: NotificationSink) -> StudyTask:
    """Flip the completed flag. Rewards fire only on the transition to completed."""
    task = state.find_task(task_id)
    if task.completed:
        task.completed = False
        task.completed_at = None
        return task
    task.completed = True
    task.completed_at = now
    on_task_completed(state, task, sink)
    return task


def delete_task(state: GameState, task_id: str) -> StudyTask:
    task = state.find_task(task_id)
    state.tasks = [t for t in state.tasks if t.id != task_id]
    return task


def toggle_mastery(state: GameState, sub_category: str) -> bool:
    """Mark or unmark a sub-category as mastered. Returns the new mastered flag."""
    mastered = state.progress.mastered_categories
    if sub_category in mastered:
        mastered.discard(sub_category)
        return False
    mastered.add(sub_category)
    logger.info("Sub-category mastered: %s", sub_category)
    return True


def groups_for(category: Category) -> list[str]:
    return GS_GROUPS if category is Category.GS else OPTIONAL_GROUPS
