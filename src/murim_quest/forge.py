"""Crafting and ascension: materials into items, items into higher tiers."""

from __future__ import annotations

import logging
from datetime import datetime

from murim_quest.levels import add_material, material_count
from murim_quest.models import CraftedItem, GameState, Rarity
from murim_quest.notifications import NotificationSink

logger = logging.getLogger(__name__)

FORGE_COST: dict[str, int] = {"iron": 5, "fire": 5}
ASCENSION_COST = 50
HIDDEN_REWARD_THRESHOLD = 50
ASCENDED_ITEM_NAME = "Azure Dragon Blade"


def count_rarity(state: GameState, *rarities: Rarity) -> int:
    return sum(1 for item in state.items if item.rarity in rarities)


def can_forge(state: GameState) -> bool:
    return all(material_count(state, mid) >= cost for mid, cost in FORGE_COST.items())


def forge(state: GameState, now: datetime, sink: NotificationSink) -> CraftedItem | None:
    """Consume 5 iron and 5 fire to craft one Human item. No-op if short."""
    if not can_forge(state):
        logger.warning(
            "Forge rejected: iron=%d fire=%d",
            material_count(state, "iron"),
            material_count(state, "fire"),
        )
        return None
    for mid, cost in FORGE_COST.items():
        add_material(state, mid, -cost)
    item = CraftedItem(name=f"Iron Sword {len(state.items) + 1}", rarity=Rarity.HUMAN, acquired_at=now)
    state.items.append(item)
    logger.info("Forged %s", item.name)
    sink.notify("Forging Successful!", "You created a Human Class weapon.", kind="forge")
    return item


def can_ascend(state: GameState) -> bool:
    return count_rarity(state, Rarity.HUMAN) >= ASCENSION_COST


def ascend(state: GameState, now: datetime, sink: NotificationSink) -> CraftedItem | None:
    """Merge the 50 oldest Human items into one Epic item. No-op if fewer held."""
    if not can_ascend(state):
        logger.warning("Ascension rejected: %d Human items held", count_rarity(state, Rarity.HUMAN))
        return None
    humans = sorted((i for i in state.items if i.rarity is Rarity.HUMAN), key=lambda i: i.acquired_at)
    consumed = {item.id for item in humans[:ASCENSION_COST]}
    state.items = [item for item in state.items if item.id not in consumed]

    epic = CraftedItem(name=ASCENDED_ITEM_NAME, rarity=Rarity.EPIC, acquired_at=now)
    state.items.append(epic)
    logger.info("Ascended %d Human items into %s", ASCENSION_COST, epic.name)
    sink.notify("Ascension Complete!", "50 Weapons merged into an Epic Artifact!", kind="forge")

    if count_rarity(state, Rarity.DIVINE, Rarity.TRANSCENDENTAL) >= HIDDEN_REWARD_THRESHOLD:
        sink.notify(
            "HEAVENLY REVELATION",
            "You have pierced the veil. Hidden Reward Unlocked: The Administrator's Key.",
            kind="hidden",
        )
    return epic
