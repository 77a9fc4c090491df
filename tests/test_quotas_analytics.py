import math

import pytest

from taskly.core.models import Habit, Task, UserStats
from taskly.core.quotas import (
    QuotaExceeded, check_quota, get_feature_limit, has_reached_limit, is_feature_available
)
from taskly.core.analytics import (
    completion_rates, focus_summary, habit_summary, priority_score, rank_tasks, task_patterns
)

from tests.conftest import TODAY

class TestQuotas:

    @pytest.mark.parametrize("feature,limit", [
        ("tasks", 20), ("habits", 5), ("focus_sessions", 5), ("challenges", 1),
    ])
    def test_free_limits(self, feature, limit):
        assert get_feature_limit("free", feature) == limit
        assert not has_reached_limit("free", feature, limit - 1)
        assert has_reached_limit("free", feature, limit)

    def test_pro_unlimited(self):
        assert get_feature_limit("pro", "tasks") == math.inf
        assert not has_reached_limit("pro", "tasks", 10_000)
        assert is_feature_available("pro", "ai_features")

    def test_boolean_features(self):
        assert not is_feature_available("free", "data_export")
        assert has_reached_limit("free", "themes", 0)
        assert is_feature_available("free", "tasks")

    def test_check_quota_raises(self):
        check_quota("free", "habits", 4)
        with pytest.raises(QuotaExceeded) as exc_info:
            check_quota("free", "habits", 5)
        assert exc_info.value.limit == 5
        assert exc_info.value.feature == "habits"

    def test_unknown_plan_or_feature(self):
        with pytest.raises(ValueError):
            get_feature_limit("enterprise", "tasks")
        with pytest.raises(ValueError):
            get_feature_limit("free", "teleport")

class TestPriorityScore:

    def test_due_today_high_priority(self):
        task = Task(1, "Write report", due_date=TODAY, priority="high")
        assert priority_score(task, TODAY) == 0.75

    def test_overdue_treated_as_due_today(self):
        due_today = Task(1, "Write report", due_date=TODAY, priority="high")
        overdue = Task(2, "Write report", due_date="2026-03-01", priority="high")
        assert priority_score(overdue, TODAY) == priority_score(due_today, TODAY)

    def test_score_in_unit_range(self):
        task = Task(1, "x" * 400, due_date=TODAY, priority="high", notes="n" * 400)
        assert 0 <= priority_score(task, TODAY) <= 1

    def test_rank_tasks_skips_completed(self):
        tasks = [
            Task(1, "Later", due_date="2026-04-30", priority="low"),
            Task(2, "Soon", due_date=TODAY, priority="high"),
            Task(3, "Done", completed=True, due_date=TODAY, priority="high"),
        ]
        assert [t.id for t in rank_tasks(tasks, TODAY)] == [2, 1]

class TestSummaries:

    def test_completion_rates(self):
        tasks = [Task(1, "a", completed=True), Task(2, "b"), Task(3, "c")]
        habits = [Habit(1, "h", completed_dates=[TODAY]), Habit(2, "g")]
        assert completion_rates(tasks, habits, TODAY) == (33, 50)
        assert completion_rates([], [], TODAY) == (0, 0)

    def test_task_patterns(self):
        patterns = task_patterns([Task(1, "a", completed=True, priority="high"), Task(2, "b")])
        assert patterns['completion_rate'] == 0.5
        assert patterns['priority_distribution'] == {'high': 1, 'medium': 0, 'low': 0}

    def test_habit_and_focus_summary(self):
        summary = habit_summary([Habit(1, "a", streak=4, completed_dates=[TODAY]), Habit(2, "b")])
        assert summary == {'average_streak': 2.0, 'max_streak': 4, 'total_completions': 1}

        focus = focus_summary(UserStats(points=100, focus_sessions_completed=4))
        assert focus['points_per_session'] == 25.0
        assert focus_summary(UserStats())['points_per_session'] == 0.0
