"""Тесты моделей и их валидации"""

from datetime import datetime

import pytest

from core.models import (
    Goal, GoalStatus, HabitStreak, Milestone, Nudge, UserProfile, ValidationError
)
from utils.datetime_utils import UTC

MOMENT = datetime(2025, 1, 6, 10, 0, tzinfo=UTC)

class TestGoal:

    def test_defaults(self, make_goal):
        goal = make_goal()
        assert goal.current_status == GoalStatus.GREEN
        assert goal.is_shared
        assert goal.timezone == "UTC"
        assert not goal.is_completed

    def test_description_stripped_and_required(self, make_goal):
        assert make_goal(description="  Run  ").description == "Run"
        with pytest.raises(ValidationError):
            make_goal(description="   ")

    def test_unknown_enum_value(self, make_goal):
        with pytest.raises(ValidationError):
            make_goal(difficulty="extreme")

    def test_unknown_timezone(self, make_goal):
        with pytest.raises(ValidationError):
            make_goal(timezone="Mars/Olympus")

    def test_naive_datetimes_treated_as_utc(self, make_goal):
        goal = make_goal(created_at=datetime(2025, 1, 6, 10, 0))
        assert goal.created_at == MOMENT

    def test_dict_keeps_schedule_and_state(self, make_goal):
        goal = make_goal(frequency="weekly", target_days=["Monday", "Thursday"],
                         current_status="Red", red_since=MOMENT, shame_count=2)
        data = goal.to_dict()
        assert data['frequency'] == "weekly"
        assert data['current_status'] == "Red"
        assert data['red_since'] == MOMENT.isoformat()
        assert Goal.from_dict(data) == goal

class TestHabitStreak:

    def test_negative_values_rejected(self):
        with pytest.raises(ValidationError):
            HabitStreak(habit_id="h", user_id="u", current_streak=-1)

    def test_milestones_must_increase(self):
        with pytest.raises(ValidationError):
            HabitStreak(habit_id="h", user_id="u", milestones=[
                Milestone(days=30, achieved_at=MOMENT),
                Milestone(days=7, achieved_at=MOMENT),
            ])

    def test_from_dict_restores_milestones(self):
        streak = HabitStreak(habit_id="h", user_id="u", current_streak=7, best_streak=7,
                             milestones=[Milestone(days=7, achieved_at=MOMENT)])
        restored = HabitStreak.from_dict(streak.to_dict())
        assert restored.milestone_days == [7]
        assert restored.is_active

class TestSocialModels:

    def test_nudge_is_immutable(self):
        nudge = Nudge("n1", "bob", "Bob", "alice", "goal-1", "Read", MOMENT, MOMENT, MOMENT)
        with pytest.raises(AttributeError):
            nudge.sender_id = "eve"

    def test_profile_defaults(self):
        profile = UserProfile.from_dict({'user_id': 'alice'})
        assert profile.notifications_enabled
        assert profile.friends == []
        assert profile.shame_score == 0
