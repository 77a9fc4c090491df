from dataclasses import replace

from taskly.core.models import Achievement, Challenge, UserStats
from taskly.core.events import NotificationType, OperationType, EntityType
from taskly.core.achievements import (
    adjust_challenge, badge_progress, default_achievements, default_challenges, evaluate_badges,
    set_achievement_progress, TASK_CHALLENGE_ID, TASK_MASTER_ID
)
from taskly.core.tasks import toggle_task
from taskly.core.leveling import settle_stats

from tests.conftest import NOW, TODAY, USER_ID, fresh_stats

class TestBadgeEvaluation:

    def test_first_task_earns_first_step(self):
        stats = replace(fresh_stats(), tasks_completed=1)
        stats, notes, earned = evaluate_badges(stats, NOW)

        assert [b.name for b in earned] == ["First Step"]
        assert stats.get_badge(1).earned
        assert stats.get_badge(1).earned_at == NOW
        assert notes[0].type == NotificationType.BADGE_EARNED
        assert notes[0].message == "🏆 Badge earned: First Step!"

    def test_habit_badge_uses_longest_streak(self):
        stats = replace(fresh_stats(), habits_completed=50, longest_streak=6)
        _, _, earned = evaluate_badges(stats, NOW)
        assert earned == []

        stats = replace(stats, longest_streak=7)
        _, _, earned = evaluate_badges(stats, NOW)
        assert [b.name for b in earned] == ["Habit Master"]

    def test_level_badge(self):
        stats = replace(fresh_stats(), points=400)
        _, _, earned = evaluate_badges(stats, NOW)
        assert "Productivity Guru" in [b.name for b in earned]

    def test_nothing_new_returns_same_stats(self):
        stats = fresh_stats()
        result, notes, earned = evaluate_badges(stats, NOW)
        assert result is stats
        assert notes == [] and earned == []

    def test_settle_stats_inserts_user_badges(self):
        stats = replace(fresh_stats(), tasks_completed=1)
        _, _, ops = settle_stats(USER_ID, stats, 10, NOW)

        inserts = [op for op in ops if op.entity == EntityType.USER_BADGES]
        assert len(inserts) == 1
        assert inserts[0].action == OperationType.INSERT
        assert inserts[0].data == {'user_id': USER_ID, 'badge_id': 1, 'earned_at': NOW}

    def test_badges_are_never_revoked(self, task_state):
        on = toggle_task(task_state, 1, TODAY, NOW).state
        assert on.stats.get_badge(1).earned

        off = toggle_task(on, 1, TODAY, NOW).state
        assert off.stats.tasks_completed == 0
        assert off.stats.get_badge(1).earned

    def test_badge_progress(self):
        stats = replace(fresh_stats(), tasks_completed=3)
        progress = badge_progress(stats)
        assert progress[1] == (1, 1)
        assert progress[2] == (3, 5)

class TestProgressHelpers:

    def test_achievement_progress_clamped(self):
        achievements = fresh_stats().achievements
        updated = set_achievement_progress(achievements, TASK_MASTER_ID, 15)
        master = next(a for a in updated if a.id == TASK_MASTER_ID)

        assert master.progress == 10
        assert master.completed
        assert not master.claimed

    def test_achievement_progress_not_negative(self):
        achievement = Achievement(1, "A", "d", "i", max_progress=3, reward=5, progress=-2)
        assert achievement.progress == 0

    def test_challenge_advances_only_when_active(self):
        upcoming = Challenge(TASK_CHALLENGE_ID, "Later", "d", start_date="2026-04-01",
                             end_date="2026-04-30", goal=5, reward=10)
        assert adjust_challenge([upcoming], TASK_CHALLENGE_ID, 1, TODAY)[0].progress == 0

        current = replace(upcoming, start_date=TODAY, end_date="2026-03-20")
        assert adjust_challenge([current], TASK_CHALLENGE_ID, 1, TODAY)[0].progress == 1

    def test_challenge_progress_clamped_to_goal(self):
        challenge = Challenge(1, "C", "d", TODAY, TODAY, goal=2, reward=10, progress=2)
        assert adjust_challenge([challenge], 1, 1, TODAY)[0].progress == 2

    def test_default_challenge_windows(self):
        challenges = {c.name: c for c in default_challenges(TODAY)}

        sprint = challenges["Productivity Sprint"]
        assert (sprint.start_date, sprint.end_date, sprint.goal, sprint.reward) == \
            (TODAY, "2026-04-08", 30, 300)
        assert challenges["Focus Week Challenge"].end_date == "2026-03-16"
        assert challenges["Habit Streak Challenge"].end_date == "2026-03-23"
        assert all(c.is_active(TODAY) for c in challenges.values())

    def test_default_achievements_follow_stats(self):
        stats = UserStats(tasks_completed=4, longest_streak=2, focus_sessions_completed=9)
        progress = {a.name: a.progress for a in default_achievements(stats)}
        assert progress["Task Master"] == 4
        assert progress["Habit Former"] == 2
        assert progress["Focus Champion"] == 5
