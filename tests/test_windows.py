"""Tests for the boss window and essay day."""

from datetime import date, datetime

from murim_quest.models import GameState, UserProgress
from murim_quest.notifications import NotificationSink
from murim_quest.windows import claim_boss_window, is_boss_pending, is_boss_window, is_essay_day


class TestBossWindow:
    def test_open_wednesday_noon(self):
        assert is_boss_window(datetime(2026, 1, 7, 12, 0)) is True

    def test_open_until_just_before_three(self):
        assert is_boss_window(datetime(2026, 1, 7, 14, 59)) is True

    def test_closed_at_three(self):
        assert is_boss_window(datetime(2026, 1, 7, 15, 0)) is False

    def test_closed_before_noon(self):
        assert is_boss_window(datetime(2026, 1, 7, 11, 59)) is False

    def test_closed_other_days(self):
        assert is_boss_window(datetime(2026, 1, 6, 13, 0)) is False

    def test_pending(self):
        progress = UserProgress(last_session_date="2026-01-07", last_boss_window_date="2025-12-31")
        assert is_boss_pending(progress, date(2026, 1, 7)) is True
        progress.last_boss_window_date = "2026-01-07"
        assert is_boss_pending(progress, date(2026, 1, 7)) is False


class TestEssayDay:
    def test_wednesday_only(self):
        assert is_essay_day(date(2026, 1, 7)) is True
        assert is_essay_day(date(2026, 1, 8)) is False


class TestClaim:
    def test_claims_once_per_day(self):
        state = GameState(progress=UserProgress(last_session_date="2026-01-07"))
        sink = NotificationSink()
        assert claim_boss_window(state, datetime(2026, 1, 7, 13, 0), sink) is True
        assert state.progress.last_boss_window_date == "2026-01-07"
        assert claim_boss_window(state, datetime(2026, 1, 7, 14, 0), sink) is False
        assert sink.titles() == ["Tribulation Survived!"]

    def test_outside_window(self):
        state = GameState(progress=UserProgress(last_session_date="2026-01-07"))
        assert claim_boss_window(state, datetime(2026, 1, 7, 16, 0), NotificationSink()) is False
        assert state.progress.last_boss_window_date == ""
