import pytest

from taskly.core.models import AppState, Habit, Task, UserStats
from taskly.core.achievements import (
    default_badges, default_achievements, default_challenges, default_rewards
)
from taskly.services.data_service import DataService
from taskly.services.notifications import NotificationCenter
from taskly.services.session import StaticSessionProvider
from taskly.storage.demo import load_demo_state

TODAY = "2026-03-10"
NOW = "2026-03-10T09:00:00+00:00"
USER_ID = "user-1"

def fresh_stats(today: str = TODAY) -> UserStats:
    return UserStats(
        badges=default_badges(),
        achievements=default_achievements(),
        challenges=default_challenges(today),
        rewards=default_rewards(),
    )

@pytest.fixture
def empty_state():
    return AppState(user_id=USER_ID, stats=fresh_stats())

@pytest.fixture
def task_state():
    """Одна невыполненная задача высокого приоритета"""
    return AppState(user_id=USER_ID, tasks=[Task(1, "Write report", priority="high")],
                    stats=fresh_stats())

@pytest.fixture
def habit_state():
    return AppState(user_id=USER_ID, habits=[Habit(1, "Meditate")], stats=fresh_stats())

@pytest.fixture
def demo_state():
    return load_demo_state(USER_ID, TODAY)

@pytest.fixture
def make_service():
    """Фабрика DataService с фиксированными датами"""
    def factory(gateway=None, plan="free", user_id=USER_ID, ai_service=None):
        return DataService(
            StaticSessionProvider(user_id),
            gateway=gateway,
            notifier=NotificationCenter(),
            ai_service=ai_service,
            plan=plan,
            today_func=lambda: TODAY,
            now_func=lambda: NOW,
        )
    return factory
