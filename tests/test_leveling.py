from taskly.core.models import UserStats
from taskly.core.events import NotificationType, OperationType, EntityType
from taskly.core.leveling import (
    add_points, experience_for_points, level_for_points, level_progress, settle_stats
)

from tests.conftest import NOW, USER_ID, fresh_stats

class TestLevelFormula:

    def test_level_and_experience_for_range(self):
        for points in range(-250, 1001, 7):
            stats = UserStats(points=points)
            assert stats.level == points // 100 + 1
            assert 0 <= stats.experience < 100
            assert level_for_points(points) == stats.level
            assert experience_for_points(points) == stats.experience

    def test_boundaries(self):
        assert level_for_points(0) == 1
        assert level_for_points(99) == 1
        assert level_for_points(100) == 2
        assert experience_for_points(175) == 75
        assert level_progress(150) == 50.0

class TestAddPoints:

    def test_level_up_notification(self):
        stats, notes = add_points(UserStats(points=95), 10)

        assert stats.points == 105
        assert len(notes) == 1
        assert notes[0].type == NotificationType.LEVEL_UP
        assert notes[0].message == "🎉 Level up! You're now level 2!"

    def test_multi_level_jump_single_notification(self):
        stats, notes = add_points(UserStats(points=95), 250)

        assert stats.level == 4
        assert len(notes) == 1
        assert notes[0].payload['level'] == 4

    def test_negative_delta_no_notification(self):
        stats, notes = add_points(UserStats(points=105), -20)

        assert stats.points == 85
        assert stats.level == 1
        assert notes == []

    def test_points_may_go_negative(self):
        stats, _ = add_points(UserStats(points=5), -20)
        assert stats.points == -15
        assert stats.level == 0

    def test_zero_delta_returns_same_stats(self):
        original = UserStats(points=40)
        stats, notes = add_points(original, 0)
        assert stats is original
        assert notes == []

    def test_input_not_mutated(self):
        original = UserStats(points=95)
        add_points(original, 10)
        assert original.points == 95

class TestSettleStats:

    def test_stats_update_operation_first(self):
        stats, notes, ops = settle_stats(USER_ID, fresh_stats(), 20, NOW)

        assert stats.points == 20
        assert ops[0].action == OperationType.UPDATE
        assert ops[0].entity == EntityType.USER_STATS
        assert ops[0].key == USER_ID
        assert ops[0].data['points'] == 20
        assert ops[0].data['level'] == 1
        assert ops[0].data['updated_at'] == NOW
