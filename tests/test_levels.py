"""Tests for the progression ledger."""

from datetime import datetime

from murim_quest.levels import (
    MAX_LEVEL,
    XP_PER_LEVEL,
    Pool,
    add_material,
    award_xp,
    can_spend,
    grant_currency,
    grant_xp,
    material_count,
    role_for_level,
    spend,
    unlocked_milestones,
    xp_for_level,
    xp_progress_in_level,
)
from murim_quest.models import GameState, Potion, UserProgress
from murim_quest.notifications import NotificationSink


def _progress(**kwargs) -> UserProgress:
    return UserProgress(last_session_date="2026-01-05", **kwargs)


def _potion(multiplier: float) -> Potion:
    return Potion(
        name="Minor XP Potion",
        multiplier=multiplier,
        duration_minutes=10,
        cost_gold=50,
        active_until=datetime(2026, 1, 5, 12, 10),
    )


class TestXpForLevel:
    def test_level_1(self):
        assert xp_for_level(1) == 1000

    def test_level_2(self):
        assert xp_for_level(2) == 2000

    def test_linear(self):
        assert xp_for_level(37) == 37 * XP_PER_LEVEL


class TestGrantXp:
    def test_small_grant_no_level_up(self):
        progress = _progress()
        grant = grant_xp(progress, 100)
        assert progress.level == 1
        assert progress.xp == 100
        assert progress.spendable == 100
        assert grant.leveled_up is False

    def test_grant_2500_from_level_1(self):
        # 1000 consumed to reach level 2; 1500 < 2000 so stop.
        progress = _progress()
        grant = grant_xp(progress, 2500)
        assert progress.level == 2
        assert progress.xp == 1500
        assert grant.levels_gained == 1

    def test_multiple_level_ups_in_one_grant(self):
        progress = _progress()
        grant = grant_xp(progress, 1000 + 2000 + 3000 + 5)
        assert progress.level == 4
        assert progress.xp == 5
        assert grant.levels_gained == 3

    def test_exact_threshold_levels_up(self):
        progress = _progress()
        grant_xp(progress, 1000)
        assert progress.level == 2
        assert progress.xp == 0

    def test_spendable_never_reset_by_leveling(self):
        progress = _progress(spendable=40)
        grant_xp(progress, 5000)
        assert progress.spendable == 5040

    def test_multiplier_applied_and_floored(self):
        progress = _progress()
        grant = grant_xp(progress, 75, multiplier=1.5)
        assert grant.effective == 112
        assert progress.xp == 112

    def test_double_multiplier(self):
        progress = _progress()
        grant = grant_xp(progress, 100, multiplier=2)
        assert grant.effective == 200
        assert progress.spendable == 200

    def test_never_exceeds_max_level(self):
        progress = _progress()
        grant_xp(progress, 10**12)
        assert progress.level == MAX_LEVEL

    def test_surplus_retained_at_cap(self):
        progress = _progress(level=MAX_LEVEL, xp=0)
        grant = grant_xp(progress, 900_000)
        assert progress.level == MAX_LEVEL
        assert progress.xp == 900_000
        assert grant.leveled_up is False

    def test_invariant_below_cap(self):
        progress = _progress()
        for amount in (999, 1, 1234, 56789, 3):
            grant_xp(progress, amount)
            assert progress.xp < progress.level * XP_PER_LEVEL


class TestAwardXp:
    def test_uses_active_potion(self):
        state = GameState(progress=_progress(), active_potion=_potion(2))
        grant = award_xp(state, 100, NotificationSink())
        assert grant.effective == 200

    def test_no_potion_multiplier_one(self):
        state = GameState(progress=_progress())
        grant = award_xp(state, 100, NotificationSink())
        assert grant.effective == 100

    def test_single_level_up_notification(self):
        state = GameState(progress=_progress())
        sink = NotificationSink()
        award_xp(state, 10_000, sink)
        assert sink.titles() == ["Level Up!"]

    def test_no_notification_without_level_up(self):
        state = GameState(progress=_progress())
        sink = NotificationSink()
        award_xp(state, 10, sink)
        assert sink.pending == []


class TestCurrencies:
    def test_grant_currency_no_multiplier(self):
        progress = _progress()
        assert grant_currency(progress, 50) == 50
        assert progress.xp == 0

    def test_spend_gold(self):
        progress = _progress(gold=60)
        assert spend(progress, Pool.GOLD, 50) is True
        assert progress.gold == 10

    def test_spend_insufficient_no_mutation(self):
        progress = _progress(spendable=99)
        assert spend(progress, Pool.SPENDABLE, 100) is False
        assert progress.spendable == 99

    def test_spend_exact_balance(self):
        progress = _progress(spendable=100)
        assert spend(progress, Pool.SPENDABLE, 100) is True
        assert progress.spendable == 0

    def test_can_spend_rejects_negative(self):
        assert can_spend(_progress(gold=10), Pool.GOLD, -1) is False


class TestXpProgressInLevel:
    def test_normal(self):
        assert xp_progress_in_level(_progress(level=3, xp=250)) == (250, 3000)

    def test_max_level(self):
        assert xp_progress_in_level(_progress(level=MAX_LEVEL, xp=7)) == (7, 0)


class TestMaterials:
    def test_add(self):
        state = GameState(progress=_progress())
        assert add_material(state, "iron", 3) is True
        assert material_count(state, "iron") == 3

    def test_underflow_rejected(self):
        state = GameState(progress=_progress())
        add_material(state, "fire", 2)
        assert add_material(state, "fire", -3) is False
        assert material_count(state, "fire") == 2

    def test_unknown_material(self):
        state = GameState(progress=_progress())
        assert add_material(state, "mithril", 1) is False
        assert material_count(state, "mithril") == 0


class TestMilestonesAndRoles:
    def test_level_1_only_village(self):
        assert [m["title"] for m in unlocked_milestones(1)] == ["The Village"]

    def test_level_150(self):
        titles = [m["title"] for m in unlocked_milestones(150)]
        assert titles == ["The Village", "Bamboo Forest", "Iron Peaks"]

    def test_roles(self):
        assert role_for_level(1) == "Village Novice"
        assert role_for_level(50) == "Village Novice"
        assert role_for_level(51) == "Outer Disciple"
        assert role_for_level(151) == "Inner Disciple"
        assert role_for_level(301) == "Core Disciple"
        assert role_for_level(451) == "Sect Elder"
