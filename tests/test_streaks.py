"""Tests for the streak tracker."""

from datetime import date

from murim_quest.models import GameState, UserProgress
from murim_quest.notifications import NotificationSink
from murim_quest.streaks import evaluate_session_start, streak_milestone_xp


def _state(last: str, **kwargs) -> GameState:
    return GameState(progress=UserProgress(last_session_date=last, **kwargs))


class TestStreakMilestoneXp:
    def test_week(self):
        assert streak_milestone_xp(7) == 500

    def test_two_weeks(self):
        assert streak_milestone_xp(14) == 1000

    def test_thirty_is_fractional(self):
        assert streak_milestone_xp(30) == 500 * (30 / 7)

    def test_non_milestone(self):
        assert streak_milestone_xp(8) is None


class TestEvaluateSessionStart:
    def test_same_day_only_stamps(self):
        state = _state("2026-01-06", streak_days=4, daily_completed=3, weekly_completed=9)
        update = evaluate_session_start(state, date(2026, 1, 6), NotificationSink())
        assert update.outcome == "same_day"
        assert state.progress.streak_days == 4
        assert state.progress.daily_completed == 3
        assert state.progress.weekly_completed == 9

    def test_next_day_continues(self):
        # 2026-01-07 is a Wednesday
        state = _state("2026-01-06", streak_days=4, daily_completed=3, weekly_completed=9)
        update = evaluate_session_start(state, date(2026, 1, 7), NotificationSink())
        assert update.outcome == "continued"
        assert state.progress.streak_days == 5
        assert state.progress.daily_completed == 0
        assert state.progress.weekly_completed == 9
        assert state.progress.last_session_date == "2026-01-07"

    def test_monday_resets_weekly(self):
        # 2026-01-05 is a Monday
        state = _state("2026-01-04", streak_days=2, daily_completed=3, weekly_completed=9)
        update = evaluate_session_start(state, date(2026, 1, 5), NotificationSink())
        assert update.weekly_reset is True
        assert state.progress.weekly_completed == 0
        assert state.progress.daily_completed == 0

    def test_gap_breaks_streak(self):
        state = _state("2026-01-03", streak_days=12, daily_completed=3, weekly_completed=9)
        update = evaluate_session_start(state, date(2026, 1, 6), NotificationSink())
        assert update.outcome == "broken"
        assert update.days_elapsed == 3
        assert state.progress.streak_days == 1
        assert state.progress.daily_completed == 0
        assert state.progress.weekly_completed == 0
        assert state.progress.last_session_date == "2026-01-06"

    def test_broken_streak_no_reward_even_on_milestone_value(self):
        state = _state("2025-12-01", streak_days=6)
        sink = NotificationSink()
        evaluate_session_start(state, date(2026, 1, 6), sink)
        assert state.progress.xp == 0
        assert sink.pending == []

    def test_seven_day_milestone_grants_xp(self):
        state = _state("2026-01-06", streak_days=6)
        sink = NotificationSink()
        update = evaluate_session_start(state, date(2026, 1, 7), sink)
        assert state.progress.streak_days == 7
        assert update.milestone_grant is not None
        assert update.milestone_grant.effective == 500
        assert state.progress.xp == 500
        assert "7 Day Streak!" in sink.titles()

    def test_thirty_day_milestone_floors(self):
        state = _state("2026-01-06", streak_days=29)
        evaluate_session_start(state, date(2026, 1, 7), NotificationSink())
        # floor(500 * 30 / 7) = 2142 -> level 2 with 1142 xp
        assert state.progress.spendable == 2142
        assert state.progress.level == 2
        assert state.progress.xp == 1142

    def test_non_milestone_no_reward(self):
        state = _state("2026-01-06", streak_days=7)
        sink = NotificationSink()
        evaluate_session_start(state, date(2026, 1, 7), sink)
        assert state.progress.xp == 0
        assert sink.pending == []

    def test_month_boundary(self):
        state = _state("2026-01-31", streak_days=3)
        update = evaluate_session_start(state, date(2026, 2, 1), NotificationSink())
        assert update.outcome == "continued"
        assert state.progress.streak_days == 4
