"""Tests for potions and pet goods."""

from datetime import datetime

import pytest

from murim_quest.models import GameState, Pet, Species, UserProgress
from murim_quest.notifications import NotificationSink
from murim_quest.shop import buy_pet_item, buy_potion, expire_potion

NOW = datetime(2026, 1, 5, 12, 0)


def _state(**kwargs) -> GameState:
    return GameState(progress=UserProgress(last_session_date="2026-01-05", **kwargs))


def _with_pet(state: GameState) -> Pet:
    pet = Pet(name="Bao", species=Species.TIGER)
    state.pets.append(pet)
    state.active_pet_id = pet.id
    return pet


class TestBuyPotion:
    def test_minor_potion(self):
        state = _state(gold=60)
        potion = buy_potion(state, "Minor XP Potion", NOW, NotificationSink())
        assert potion.multiplier == 2
        assert potion.active_until == datetime(2026, 1, 5, 12, 10)
        assert state.progress.gold == 10
        assert state.current_multiplier() == 2

    def test_case_insensitive(self):
        state = _state(gold=150)
        assert buy_potion(state, "major xp elixir", NOW, NotificationSink()).multiplier == 4

    def test_insufficient_gold(self):
        state = _state(gold=49)
        assert buy_potion(state, "Minor XP Potion", NOW, NotificationSink()) is None
        assert state.progress.gold == 49
        assert state.active_potion is None

    def test_replaces_active_potion(self):
        state = _state(gold=200)
        buy_potion(state, "Minor XP Potion", NOW, NotificationSink())
        buy_potion(state, "Major XP Elixir", NOW, NotificationSink())
        assert state.active_potion.name == "Major XP Elixir"
        assert state.progress.gold == 0

    def test_unknown_potion(self):
        with pytest.raises(KeyError):
            buy_potion(_state(gold=999), "Elixir of Life", NOW, NotificationSink())


class TestExpirePotion:
    def test_not_yet_expired(self):
        state = _state(gold=50)
        buy_potion(state, "Minor XP Potion", NOW, NotificationSink())
        assert expire_potion(state, datetime(2026, 1, 5, 12, 10), NotificationSink()) is False
        assert state.active_potion is not None

    def test_expires_once(self):
        state = _state(gold=50)
        buy_potion(state, "Minor XP Potion", NOW, NotificationSink())
        sink = NotificationSink()
        later = datetime(2026, 1, 5, 12, 11)
        assert expire_potion(state, later, sink) is True
        assert expire_potion(state, later, sink) is False
        assert state.active_potion is None
        assert state.current_multiplier() == 1.0
        assert sink.titles() == ["Potion Expired"]


class TestBuyPetItem:
    def test_food_feeds_active_pet(self):
        state = _state(spendable=150)
        pet = _with_pet(state)
        buy_pet_item(state, "Spirit Berry", NotificationSink())
        assert state.progress.spendable == 50
        # 200 XP: 100 to level 2, 100 left of 150
        assert pet.level == 2
        assert pet.xp == 100

    def test_gear_becomes_accessory(self):
        state = _state(spendable=500)
        pet = _with_pet(state)
        buy_pet_item(state, "Jade Collar", NotificationSink())
        assert pet.accessories == ["Jade Collar"]
        assert state.progress.spendable == 0

    def test_does_not_touch_level_xp(self):
        state = _state(spendable=300, xp=700)
        _with_pet(state)
        buy_pet_item(state, "Bamboo Mat", NotificationSink())
        assert state.progress.xp == 700
        assert state.progress.level == 1

    def test_insufficient_xp(self):
        state = _state(spendable=99)
        pet = _with_pet(state)
        assert buy_pet_item(state, "Spirit Berry", NotificationSink()) is None
        assert state.progress.spendable == 99
        assert pet.xp == 0

    def test_food_without_pet_still_spends(self):
        state = _state(spendable=100)
        assert buy_pet_item(state, "Spirit Berry", NotificationSink()) is not None
        assert state.progress.spendable == 0
