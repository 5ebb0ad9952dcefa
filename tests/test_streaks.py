"""Тесты трекера стриков: продление, заморозки, сброс, вехи"""

from datetime import date, datetime, timedelta

from core.deadlines import apply_completion
from core.models import HabitStreak, Milestone
from core.streaks import (
    create_streak, evaluate_miss, new_milestones, next_milestone, record_completion
)
from utils.datetime_utils import UTC

START = datetime(2025, 1, 6, 10, 0, tzinfo=UTC)

def complete_days(goal, days, streak=None):
    """Выполнять цель каждый день в 10:00, начиная с START"""
    for offset in range(days):
        moment = START + timedelta(days=offset)
        streak = record_completion(streak, goal, moment)
        goal = apply_completion(goal, moment)
    return goal, streak

class TestRecordCompletion:

    def test_first_completion_creates_streak(self, make_goal):
        streak = record_completion(None, make_goal(), START)
        assert streak.habit_id == "goal-1"
        assert streak.user_id == "alice"
        assert streak.current_streak == 1
        assert streak.best_streak == 1
        assert streak.streak_start_date == date(2025, 1, 6)

    def test_consecutive_days_extend_streak(self, make_goal):
        _, streak = complete_days(make_goal(), 5)
        assert streak.current_streak == 5
        assert streak.streak_start_date == date(2025, 1, 6)

    def test_duplicate_changes_nothing(self, make_goal):
        goal = make_goal()
        streak = record_completion(None, goal, START)
        goal = apply_completion(goal, START)
        assert record_completion(streak, goal, START + timedelta(hours=5)) == streak

    def test_late_completion_only_records_date(self, make_goal):
        goal = make_goal()
        streak = HabitStreak(habit_id="goal-1", user_id="alice", current_streak=3, best_streak=4)
        late = START + timedelta(days=1)
        updated = record_completion(streak, goal, late)
        assert updated.current_streak == 3
        assert updated.best_streak == 4
        assert updated.last_completion_date == late

    def test_input_streak_not_mutated(self, make_goal):
        streak = create_streak("goal-1", "alice")
        record_completion(streak, make_goal(), START)
        assert streak.current_streak == 0
        assert streak.milestones == []

class TestMilestones:

    def test_seven_day_milestone(self, make_goal):
        _, streak = complete_days(make_goal(), 7)
        assert streak.milestone_days == [7]
        assert streak.freezes_available == 0

    def test_thirty_days_grant_one_freeze(self, make_goal):
        _, streak = complete_days(make_goal(), 30)
        assert streak.milestone_days == [7, 30]
        assert streak.freezes_available == 1
        assert streak.best_streak == 30

    def test_hundred_days_grant_only_the_thirty_day_freeze(self, make_goal):
        _, streak = complete_days(make_goal(), 100)
        assert streak.milestone_days == [7, 30, 60, 100]
        assert streak.freezes_available == 1
        assert streak.current_streak == 100

    def test_year_milestone_grants_no_freeze(self, make_goal):
        streak = HabitStreak(
            habit_id="goal-1", user_id="alice", current_streak=364, best_streak=364,
            milestones=[Milestone(days=days, achieved_at=START - timedelta(days=365 - days))
                        for days in (7, 30, 60, 100)]
        )
        updated = record_completion(streak, make_goal(), START)
        assert updated.current_streak == 365
        assert updated.milestone_days == [7, 30, 60, 100, 365]
        assert updated.freezes_available == 0

    def test_milestone_not_repeated_after_reset(self, make_goal):
        goal = make_goal()
        streak = HabitStreak(
            habit_id="goal-1", user_id="alice", current_streak=6, best_streak=7,
            milestones=[Milestone(days=7, achieved_at=START - timedelta(days=20))]
        )
        updated = record_completion(streak, goal, START)
        assert updated.current_streak == 7
        assert updated.milestone_days == [7]
        assert new_milestones(streak, updated) == []

    def test_new_milestones_reports_only_added(self, make_goal):
        goal, before = complete_days(make_goal(), 6)
        after = record_completion(before, goal, START + timedelta(days=6))
        assert [milestone.days for milestone in new_milestones(before, after)] == [7]

    def test_next_milestone(self):
        streak = HabitStreak(habit_id="h", user_id="u", current_streak=30, best_streak=30)
        assert next_milestone(streak) == 60
        streak.current_streak = 400
        assert next_milestone(streak) is None

class TestEvaluateMiss:

    def completed_goal(self, make_goal):
        # выполнено в понедельник, следующий дедлайн - конец вторника
        return apply_completion(make_goal(), START)

    def test_miss_without_freeze_resets(self, make_goal):
        goal = self.completed_goal(make_goal)
        streak = HabitStreak(habit_id="goal-1", user_id="alice", current_streak=5, best_streak=5,
                             streak_start_date=date(2025, 1, 2))
        updated = evaluate_miss(streak, goal, START + timedelta(days=2))
        assert updated.current_streak == 0
        assert updated.best_streak == 5
        assert updated.streak_start_date is None

    def test_freeze_covers_miss(self, make_goal):
        goal = self.completed_goal(make_goal)
        streak = HabitStreak(habit_id="goal-1", user_id="alice", current_streak=5, best_streak=5,
                             freezes_available=1)
        updated = evaluate_miss(streak, goal, START + timedelta(days=2))
        assert updated.current_streak == 5
        assert updated.freezes_available == 0
        assert updated.freezes_used == 1

    def test_same_miss_counted_once(self, make_goal):
        goal = self.completed_goal(make_goal)
        streak = HabitStreak(habit_id="goal-1", user_id="alice", current_streak=5, best_streak=5,
                             freezes_available=2)
        now = START + timedelta(days=2)
        once = evaluate_miss(streak, goal, now)
        twice = evaluate_miss(once, goal, now + timedelta(hours=1))
        assert twice.freezes_available == 1
        assert twice.freezes_used == 1

    def test_freeze_then_reset_for_two_misses(self, make_goal):
        goal = self.completed_goal(make_goal)
        streak = HabitStreak(habit_id="goal-1", user_id="alice", current_streak=5, best_streak=5,
                             freezes_available=1)
        updated = evaluate_miss(streak, goal, START + timedelta(days=3))
        assert updated.freezes_used == 1
        assert updated.current_streak == 0

    def test_best_streak_never_decreases(self, make_goal):
        goal = make_goal()
        streak = None
        best_seen = 0
        # пропуски между днями 2-5 и 6-9
        for offset in (0, 1, 2, 5, 6, 9, 10, 11, 12):
            moment = START + timedelta(days=offset)
            if streak is not None:
                streak = evaluate_miss(streak, goal, moment)
                assert streak.best_streak >= best_seen
            streak = record_completion(streak, goal, moment)
            goal = apply_completion(goal, moment)
            assert streak.best_streak >= best_seen
            assert streak.best_streak >= streak.current_streak
            best_seen = streak.best_streak
        assert streak.best_streak == 3
        assert streak.current_streak == 3

    def test_nothing_missed_before_deadline(self, make_goal):
        goal = self.completed_goal(make_goal)
        streak = HabitStreak(habit_id="goal-1", user_id="alice", current_streak=5, best_streak=5)
        assert evaluate_miss(streak, goal, START + timedelta(days=1)) == streak
