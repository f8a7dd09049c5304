"""Companion growth: feeding, leveling and stage transitions."""

from __future__ import annotations

import logging
import math
from enum import Enum

from murim_quest.models import PET_STAGE_ORDER, GameState, Pet, PetStage, Species

logger = logging.getLogger(__name__)

PET_BASE_MAX_XP = 100
PET_GROWTH_FACTOR = 1.5

STAGE_THRESHOLDS: list[tuple[int, PetStage]] = [
    (5, PetStage.HATCHLING),
    (20, PetStage.ADULT),
    (50, PetStage.MYTHIC),
]


class StageRule(str, Enum):
    EXACT = "exact"  # stage changes only when the post-feed level equals a threshold
    HIGHEST = "highest"  # highest threshold at or below the post-feed level


def adopt_pet(state: GameState, name: str, species: Species) -> Pet:
    pet = Pet(name=name, species=species, max_xp=PET_BASE_MAX_XP)
    state.pets.append(pet)
    if state.active_pet_id is None:
        state.active_pet_id = pet.id
    return pet


def set_active_pet(state: GameState, pet_id: str) -> Pet:
    pet = state.find_pet(pet_id)
    state.active_pet_id = pet.id
    return pet


def _stage_for_level(level: int, current: PetStage, rule: StageRule) -> PetStage:
    if rule is StageRule.EXACT:
        candidate = next((stage for threshold, stage in STAGE_THRESHOLDS if level == threshold), None)
    else:
        candidate = None
        for threshold, stage in STAGE_THRESHOLDS:
            if level >= threshold:
                candidate = stage
    if candidate is None:
        return current
    # Stages never regress.
    if PET_STAGE_ORDER.index(candidate) <= PET_STAGE_ORDER.index(current):
        return current
    return candidate


def feed(pet: Pet, base_amount: float, multiplier: float = 1.0, rule: StageRule = StageRule.EXACT) -> int:
    """Feed XP to a pet and return the number of levels gained."""
    pet.xp += math.floor(base_amount * multiplier)
    gained = 0
    while pet.xp >= pet.max_xp:
        pet.xp -= pet.max_xp
        pet.level += 1
        pet.max_xp = math.floor(pet.max_xp * PET_GROWTH_FACTOR)
        gained += 1

    stage = _stage_for_level(pet.level, pet.stage, rule)
    if stage is not pet.stage:
        logger.info("Pet %s evolved: %s -> %s", pet.name, pet.stage.value, stage.value)
        pet.stage = stage
    return gained


def feed_active(state: GameState, base_amount: float, rule: StageRule = StageRule.EXACT) -> Pet | None:
    """Feed the active pet with the current potion multiplier. No-op without one."""
    pet = state.active_pet()
    if pet is None:
        return None
    feed(pet, base_amount, state.current_multiplier(), rule)
    return pet


def add_accessory(pet: Pet, name: str) -> bool:
    if name in pet.accessories:
        return False
    pet.accessories.append(name)
    return True
