import pytest

from taskly.core.models import ValidationError
from taskly.core.events import EntityType, OperationType
from taskly.core.achievements import HABIT_CHALLENGE_ID, HABIT_FORMER_ID
from taskly.core.habits import add_habit, delete_habit, toggle_habit

from tests.conftest import NOW, TODAY

DAY_1 = "2026-03-08"
DAY_2 = "2026-03-09"
DAY_3 = TODAY

class TestAddHabit:

    def test_add(self, habit_state):
        result = add_habit(habit_state, "  Read  ")

        habit = result.state.habits[0]
        assert (habit.id, habit.name, habit.streak, habit.completed_dates) == (2, "Read", 0, [])
        assert result.notifications[0].message == "Habit added successfully!"
        assert result.operations[0].action == OperationType.INSERT
        assert result.operations[0].entity == EntityType.HABITS

    def test_blank_name_rejected(self, habit_state):
        with pytest.raises(ValidationError):
            add_habit(habit_state, "")

class TestToggleHabit:

    def test_meditate_three_days(self, habit_state):
        state = habit_state
        for day in (DAY_1, DAY_2, DAY_3):
            state = toggle_habit(state, 1, day, NOW).state

        habit = state.habits[0]
        assert habit.streak == 3
        assert habit.completed_dates == [DAY_1, DAY_2, DAY_3]
        assert state.stats.longest_streak >= 3
        assert state.stats.points == 45
        assert state.stats.habits_completed == 3
        assert state.stats.get_achievement(HABIT_FORMER_ID).progress == 3

        state = toggle_habit(state, 1, DAY_3, NOW).state
        habit = state.habits[0]
        assert habit.streak == 2
        assert habit.completed_dates == [DAY_1, DAY_2]
        assert state.stats.longest_streak == 3
        assert state.stats.points == 30
        assert state.stats.habits_completed == 2

    def test_double_toggle_restores_habit(self, habit_state):
        state = toggle_habit(habit_state, 1, DAY_1, NOW).state
        before = state.habits[0]

        state = toggle_habit(state, 1, DAY_2, NOW).state
        state = toggle_habit(state, 1, DAY_2, NOW).state

        assert state.habits[0].streak == before.streak
        assert state.habits[0].completed_dates == before.completed_dates
        assert state.stats.points == 15

    def test_operations(self, habit_state):
        on = toggle_habit(habit_state, 1, TODAY, NOW)
        first, second = on.operations[:2]

        assert (first.action, first.entity) == (OperationType.INSERT, EntityType.HABIT_COMPLETIONS)
        assert first.data == {'habit_id': 1, 'user_id': habit_state.user_id, 'completion_date': TODAY}
        assert (second.action, second.key, second.data) == (OperationType.UPDATE, 1, {'streak': 1})
        assert on.operations[2].entity == EntityType.USER_STATS

        off = toggle_habit(on.state, 1, TODAY, NOW)
        assert off.operations[0].action == OperationType.DELETE_WHERE
        assert off.operations[0].data['completion_date'] == TODAY

    def test_habit_challenge_moves_with_today(self, habit_state):
        on = toggle_habit(habit_state, 1, TODAY, NOW).state
        assert on.stats.get_challenge(HABIT_CHALLENGE_ID).progress == 1

        off = toggle_habit(on, 1, TODAY, NOW).state
        assert off.stats.get_challenge(HABIT_CHALLENGE_ID).progress == 0

    def test_stats_streak_is_max_habit_streak(self, habit_state):
        state = add_habit(habit_state, "Read").state
        state = toggle_habit(state, 1, DAY_1, NOW).state
        state = toggle_habit(state, 1, DAY_2, NOW).state
        state = toggle_habit(state, 2, DAY_2, NOW).state

        assert state.stats.streak == 2

    def test_unknown_id_is_noop(self, habit_state):
        result = toggle_habit(habit_state, 42, TODAY, NOW)
        assert result.state is habit_state
        assert not result.changed

class TestDeleteHabit:

    def test_delete_completed_today_reverses_points(self, habit_state):
        state = toggle_habit(habit_state, 1, TODAY, NOW).state
        result = delete_habit(state, 1, TODAY, NOW)

        assert result.state.habits == []
        assert result.state.stats.points == 0
        assert result.state.stats.habits_completed == 0
        assert result.state.stats.streak == 0
        assert result.operations[0].action == OperationType.DELETE_WHERE
        assert result.operations[0].data == {'habit_id': 1, 'user_id': habit_state.user_id}
        assert result.operations[1].user_id == habit_state.user_id
        assert result.operations[1].action == OperationType.DELETE
        assert result.notifications[-1].message == "Habit deleted successfully!"

    def test_delete_keeps_past_completions_in_stats(self, habit_state):
        state = toggle_habit(habit_state, 1, DAY_1, NOW).state
        result = delete_habit(state, 1, TODAY, NOW)

        assert result.state.stats.points == 15
        assert result.state.stats.habits_completed == 1
