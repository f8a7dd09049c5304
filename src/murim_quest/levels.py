"""Progression ledger: XP, leveling, currencies and the materials pool."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum

from murim_quest.models import GameState, UserProgress
from murim_quest.notifications import NotificationSink

logger = logging.getLogger(__name__)

MAX_LEVEL = 500
XP_PER_LEVEL = 1000

MILESTONES: list[dict] = [
    {"id": "village", "level_req": 1, "title": "The Village", "description": "Begin your journey."},
    {"id": "forest", "level_req": 50, "title": "Bamboo Forest", "description": "First step into the wild."},
    {"id": "peaks", "level_req": 150, "title": "Iron Peaks", "description": "A test of resilience."},
    {"id": "temple", "level_req": 300, "title": "Cloud Temple", "description": "Higher learning awaits."},
    {"id": "capital", "level_req": 500, "title": "Imperial Capital", "description": "The Minister's Seat."},
]

# (exclusive lower bound, role); highest matching bound wins
ROLES: list[tuple[int, str]] = [
    (0, "Village Novice"),
    (50, "Outer Disciple"),
    (150, "Inner Disciple"),
    (300, "Core Disciple"),
    (450, "Sect Elder"),
]


class Pool(str, Enum):
    SPENDABLE = "spendable"
    GOLD = "gold"


@dataclass
class XPGrant:
    """Outcome of a single grant_xp call."""

    base: float
    multiplier: float
    effective: int
    levels_gained: int

    @property
    def leveled_up(self) -> bool:
        return self.levels_gained > 0


def xp_for_level(level: int) -> int:
    """XP needed to advance from ``level`` to ``level + 1``."""
    return level * XP_PER_LEVEL


def effective_amount(base: float, multiplier: float = 1.0) -> int:
    return math.floor(base * multiplier)


def grant_xp(progress: UserProgress, base_amount: float, multiplier: float = 1.0) -> XPGrant:
    """Add XP to both the level-bound counter and the spendable balance.

    Levels up repeatedly while the current threshold is met and the cap has
    not been reached. At MAX_LEVEL surplus XP is kept as-is.
    """
    amount = effective_amount(base_amount, multiplier)
    progress.xp += amount
    progress.spendable += amount

    gained = 0
    while progress.xp >= xp_for_level(progress.level) and progress.level < MAX_LEVEL:
        progress.xp -= xp_for_level(progress.level)
        progress.level += 1
        gained += 1

    return XPGrant(base=base_amount, multiplier=multiplier, effective=amount, levels_gained=gained)


def award_xp(state: GameState, base_amount: float, sink: NotificationSink) -> XPGrant:
    """grant_xp with the active potion multiplier and a single level-up event."""
    grant = grant_xp(state.progress, base_amount, state.current_multiplier())
    if grant.leveled_up:
        logger.info("Level up: now level %d (+%d)", state.progress.level, grant.levels_gained)
        sink.notify("Level Up!", f"You reached level {state.progress.level}.", kind="level_up")
    return grant


def grant_currency(progress: UserProgress, amount: int) -> int:
    """Add premium currency. No multiplier applies."""
    progress.gold += amount
    return progress.gold


def balance(progress: UserProgress, pool: Pool) -> int:
    return progress.spendable if pool is Pool.SPENDABLE else progress.gold


def can_spend(progress: UserProgress, pool: Pool, amount: int) -> bool:
    return amount >= 0 and balance(progress, pool) >= amount


def spend(progress: UserProgress, pool: Pool, amount: int) -> bool:
    """Decrement a balance. Returns False without mutating if it is short."""
    if not can_spend(progress, pool, amount):
        logger.warning("Spend rejected: %d %s requested, %d held", amount, pool.value, balance(progress, pool))
        return False
    if pool is Pool.SPENDABLE:
        progress.spendable -= amount
    else:
        progress.gold -= amount
    return True


def xp_progress_in_level(progress: UserProgress) -> tuple[int, int]:
    """Return (xp_in_level, xp_needed_for_next_level). Needed is 0 at the cap."""
    if progress.level >= MAX_LEVEL:
        return (progress.xp, 0)
    return (progress.xp, xp_for_level(progress.level))


def material_count(state: GameState, material_id: str) -> int:
    material = next((m for m in state.materials if m.id == material_id), None)
    return material.count if material else 0


def add_material(state: GameState, material_id: str, amount: int) -> bool:
    """Adjust a material count. Rejects unknown ids and any underflow."""
    material = next((m for m in state.materials if m.id == material_id), None)
    if material is None:
        logger.warning("Unknown material: %s", material_id)
        return False
    if material.count + amount < 0:
        logger.warning("Material underflow rejected: %s has %d, change %d", material_id, material.count, amount)
        return False
    material.count += amount
    return True


def unlocked_milestones(level: int) -> list[dict]:
    return [m for m in MILESTONES if level >= m["level_req"]]


def role_for_level(level: int) -> str:
    role = ROLES[0][1]
    for bound, name in ROLES:
        if level > bound:
            role = name
    return role
