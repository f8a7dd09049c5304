"""Potions bought with gold and pet goods bought with spendable XP."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from murim_quest.levels import Pool, spend
from murim_quest.models import GameState, Potion
from murim_quest.notifications import NotificationSink
from murim_quest.pets import StageRule, add_accessory, feed_active

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PotionDef:
    name: str
    cost_gold: int
    multiplier: float
    duration_minutes: int


@dataclass(frozen=True)
class PetItemDef:
    name: str
    type: str  # food, gear or decor
    cost: int
    feed_xp: int = 0


POTIONS: list[PotionDef] = [
    PotionDef(name="Minor XP Potion", cost_gold=50, multiplier=2, duration_minutes=10),
    PotionDef(name="Major XP Elixir", cost_gold=150, multiplier=4, duration_minutes=20),
]

PET_ITEMS: list[PetItemDef] = [
    PetItemDef(name="Spirit Berry", type="food", cost=100, feed_xp=200),
    PetItemDef(name="Heavenly Meat", type="food", cost=300, feed_xp=800),
    PetItemDef(name="Jade Collar", type="gear", cost=500),
    PetItemDef(name="Bamboo Mat", type="decor", cost=200),
    PetItemDef(name="Phoenix Feather", type="gear", cost=1000),
]


def _lookup(catalog: list, name: str):
    for entry in catalog:
        if entry.name.lower() == name.lower():
            return entry
    raise KeyError(f"Unknown shop item: {name}")


def buy_potion(state: GameState, name: str, now: datetime, sink: NotificationSink) -> Potion | None:
    """Spend gold on a potion. It replaces any potion already active."""
    definition = _lookup(POTIONS, name)
    if not spend(state.progress, Pool.GOLD, definition.cost_gold):
        return None
    potion = Potion(
        name=definition.name,
        multiplier=definition.multiplier,
        duration_minutes=definition.duration_minutes,
        cost_gold=definition.cost_gold,
        active_until=now + timedelta(minutes=definition.duration_minutes),
    )
    state.active_potion = potion
    sink.notify("Potion Consumed", f"{potion.name} is active for {potion.duration_minutes} minutes!", kind="potion")
    return potion


def expire_potion(state: GameState, now: datetime, sink: NotificationSink) -> bool:
    """Clear the active potion once its time is up. Safe to call repeatedly."""
    potion = state.active_potion
    if potion is None or now <= potion.active_until:
        return False
    state.active_potion = None
    logger.info("Potion expired: %s", potion.name)
    sink.notify("Potion Expired", "The effects of the elixir have faded.", kind="potion")
    return True


def buy_pet_item(
    state: GameState,
    name: str,
    sink: NotificationSink,
    rule: StageRule = StageRule.EXACT,
) -> PetItemDef | None:
    """Spend XP on pet food or gear.

    Food feeds the active pet; gear and decor become accessories on it.
    """
    definition = _lookup(PET_ITEMS, name)
    if not spend(state.progress, Pool.SPENDABLE, definition.cost):
        return None
    if definition.type == "food":
        feed_active(state, definition.feed_xp, rule)
    else:
        pet = state.active_pet()
        if pet is not None:
            add_accessory(pet, definition.name)
    sink.notify("Purchase Complete", f"Bought {definition.name}!", kind="shop")
    return definition
