import pytest

from taskly.core.models import AppState, Task, ValidationError
from taskly.core.events import EntityType, NotificationType, OperationType
from taskly.core.achievements import TASK_MASTER_ID, TASK_CHALLENGE_ID
from taskly.core.tasks import add_task, delete_task, edit_task, toggle_task

from tests.conftest import NOW, TODAY, USER_ID, fresh_stats

def task_points_total(state: AppState) -> int:
    return sum(t.points for t in state.tasks if t.completed)

class TestAddTask:

    def test_new_task_goes_first(self, task_state):
        result = add_task(task_state, "Plan sprint", priority="medium", category="Work")

        new = result.state.tasks[0]
        assert new.id == 2
        assert new.text == "Plan sprint"
        assert new.points == 15
        assert new.category == "Work"
        assert [t.id for t in result.state.tasks] == [2, 1]

    def test_insert_operation_and_message(self, empty_state):
        result = add_task(empty_state, "Buy milk")

        assert result.notifications[0].message == "Task added successfully!"
        op = result.operations[0]
        assert op.action == OperationType.INSERT
        assert op.entity == EntityType.TASKS
        assert op.data['user_id'] == USER_ID
        assert op.data['text'] == "Buy milk"
        assert 'points' not in op.data

    def test_points_follow_priority(self, empty_state):
        assert add_task(empty_state, "a", priority="high").state.tasks[0].points == 20
        assert add_task(empty_state, "a", priority="low").state.tasks[0].points == 10
        assert add_task(empty_state, "a").state.tasks[0].points == 10

    @pytest.mark.parametrize("text", ["", "   "])
    def test_blank_text_rejected(self, empty_state, text):
        with pytest.raises(ValidationError):
            add_task(empty_state, text)

    def test_bad_priority_and_date_rejected(self, empty_state):
        with pytest.raises(ValidationError):
            add_task(empty_state, "x", priority="urgent")
        with pytest.raises(ValidationError):
            add_task(empty_state, "x", due_date="10/03/2026")

    def test_input_state_untouched(self, task_state):
        add_task(task_state, "Another")
        assert len(task_state.tasks) == 1

class TestToggleTask:

    def test_write_report_high_priority(self, task_state):
        on = toggle_task(task_state, 1, TODAY, NOW)

        assert on.state.tasks[0].completed
        assert on.state.stats.points == 20
        assert on.state.stats.tasks_completed == 1
        assert on.state.stats.get_achievement(TASK_MASTER_ID).progress == 1
        assert on.state.stats.get_challenge(TASK_CHALLENGE_ID).progress == 1

        off = toggle_task(on.state, 1, TODAY, NOW)
        assert not off.state.tasks[0].completed
        assert off.state.stats.points == 0
        assert off.state.stats.tasks_completed == 0
        assert off.state.stats.get_achievement(TASK_MASTER_ID).progress == 0
        assert off.state.stats.get_challenge(TASK_CHALLENGE_ID).progress == 0

    def test_operations_order(self, task_state):
        ops = toggle_task(task_state, 1, TODAY, NOW).operations

        assert (ops[0].action, ops[0].entity, ops[0].key) == (OperationType.UPDATE, EntityType.TASKS, 1)
        assert ops[0].data == {'completed': True}
        assert ops[1].entity == EntityType.USER_STATS
        assert ops[1].data['tasks_completed'] == 1

    def test_first_completion_earns_badge(self, task_state):
        notes = toggle_task(task_state, 1, TODAY, NOW).notifications
        assert [n.type for n in notes] == [NotificationType.BADGE_EARNED]

    def test_unknown_id_is_noop(self, task_state):
        result = toggle_task(task_state, 99, TODAY, NOW)

        assert result.state is task_state
        assert not result.changed
        assert result.notifications == [] and result.operations == []

    def test_counters_match_completed_tasks(self, empty_state):
        state = empty_state
        for text, priority in [("a", "high"), ("b", "medium"), ("c", "low"), ("d", None)]:
            state = add_task(state, text, priority=priority).state

        for task_id in (1, 3, 4, 3, 2):
            state = toggle_task(state, task_id, TODAY, NOW).state
            completed = [t for t in state.tasks if t.completed]
            assert state.stats.tasks_completed == len(completed)
            assert state.stats.points == task_points_total(state)

class TestEditTask:

    def test_fields_replaced(self, task_state):
        result = edit_task(task_state, 1, "Write final report", due_date=TODAY, priority="low",
                           notes="two pages", now=NOW)
        task = result.state.tasks[0]

        assert (task.text, task.due_date, task.priority, task.notes) == \
            ("Write final report", TODAY, "low", "two pages")
        assert task.points == 10
        assert result.notifications[-1].message == "Task updated successfully!"

    def test_category_none_keeps_empty_clears(self):
        state = AppState(user_id=USER_ID, tasks=[Task(1, "t", category="Home")], stats=fresh_stats())

        kept = edit_task(state, 1, "t", category=None, now=NOW).state
        assert kept.tasks[0].category == "Home"

        cleared = edit_task(state, 1, "t", category="", now=NOW).state
        assert cleared.tasks[0].category is None

    def test_completed_task_priority_change_adjusts_points(self, task_state):
        state = toggle_task(task_state, 1, TODAY, NOW).state
        assert state.stats.points == 20

        result = edit_task(state, 1, "Write report", priority="low", now=NOW)
        assert result.state.stats.points == 10
        assert result.state.stats.points == task_points_total(result.state)
        assert any(op.entity == EntityType.USER_STATS for op in result.operations)

    def test_pending_task_edit_leaves_stats(self, task_state):
        result = edit_task(task_state, 1, "Write report", priority="low", now=NOW)
        assert result.state.stats is task_state.stats
        assert [op.entity for op in result.operations] == [EntityType.TASKS]

    def test_blank_text_rejected(self, task_state):
        with pytest.raises(ValidationError):
            edit_task(task_state, 1, "  ")

    def test_unknown_id_is_noop(self, task_state):
        assert not edit_task(task_state, 5, "x").changed

class TestDeleteTask:

    def test_deleting_completed_task_reverses_stats(self, task_state):
        state = add_task(task_state, "Other", priority="medium").state
        state = toggle_task(state, 2, TODAY, NOW).state
        before_points = state.stats.points

        state = toggle_task(state, 1, TODAY, NOW).state
        result = delete_task(state, 1, TODAY, NOW)

        assert [t.id for t in result.state.tasks] == [2]
        assert result.state.stats.points == before_points
        assert result.state.stats.tasks_completed == 1
        assert result.operations[0].action == OperationType.DELETE
        assert result.notifications[-1].message == "Task deleted successfully!"

    def test_deleting_pending_task_keeps_stats(self, task_state):
        result = delete_task(task_state, 1, TODAY, NOW)

        assert result.state.tasks == []
        assert result.state.stats is task_state.stats
        assert len(result.operations) == 1

    def test_reversal_exact_past_task_master_cap(self, empty_state):
        state = empty_state
        for i in range(10):
            state = add_task(state, f"Task {i}").state
            state = toggle_task(state, state.tasks[0].id, TODAY, NOW).state
        assert state.stats.get_achievement(TASK_MASTER_ID).progress == 10

        state = add_task(state, "Eleventh").state
        state = toggle_task(state, 11, TODAY, NOW).state
        assert state.stats.get_achievement(TASK_MASTER_ID).progress == 10

        result = delete_task(state, 11, TODAY, NOW)

        assert result.state.stats.tasks_completed == 10
        assert result.state.stats.get_achievement(TASK_MASTER_ID).progress == 10

    def test_untoggle_past_cap_keeps_task_master(self, empty_state):
        state = empty_state
        for i in range(11):
            state = add_task(state, f"Task {i}").state
            state = toggle_task(state, state.tasks[0].id, TODAY, NOW).state

        state = toggle_task(state, 11, TODAY, NOW).state

        assert state.stats.tasks_completed == 10
        assert state.stats.get_achievement(TASK_MASTER_ID).progress == 10

    def test_operations_scoped_to_user(self, task_state):
        state = toggle_task(task_state, 1, TODAY, NOW).state
        state = edit_task(state, 1, "Write final report", priority="high", now=NOW).state
        result = delete_task(state, 1, TODAY, NOW)

        assert all(op.user_id == USER_ID for op in result.operations)
        assert result.operations[0].key == 1

class TestCategoryMigration:

    def test_category_read_from_notes(self):
        task = Task.from_dict({'id': 3, 'text': "Call mom", 'notes': "Category: Family"})
        assert task.category == "Family"

    def test_explicit_category_wins(self):
        task = Task.from_dict({'id': 3, 'text': "x", 'notes': "Category: A", 'category': "B"})
        assert task.category == "B"
