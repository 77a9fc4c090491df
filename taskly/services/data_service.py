#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Taskly v1.0 - Data Service
Владелец состояния пользовательской сессии

Каждое действие выполняется чистым мутатором; новое AppState подменяется
одним присваиванием, затем рассылаются уведомления и операции
зеркалируются в хранилище. Локальное состояние не откатывается при ошибке
хранилища: неудачные операции копятся в failed_operations и могут быть
повторены через retry_failed().
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from taskly.core.models import (
    AppState, AppSettings, Task, Habit, UserStats, ValidationError
)
from taskly.core.events import (
    EntityType, MutationResult, Notification, NotificationType, StoreOperation, error, info
)
from taskly.core import tasks as task_ops
from taskly.core import habits as habit_ops
from taskly.core import rewards as reward_ops
from taskly.core.focus import complete_focus_session
from taskly.core.quotas import Feature, QuotaExceeded, check_quota
from taskly.core.analytics import completion_rates, priority_score, rank_tasks
from taskly.storage.gateway import PersistenceError, PersistenceGateway
from taskly.storage.schemas import (
    build_state, default_stats_row, default_settings_row, badge_catalog_rows
)
from taskly.storage.demo import load_demo_state
from taskly.services.ai_service import AIService, TaskAnalysis
from taskly.services.notifications import NotificationCenter
from taskly.services.session import SessionProvider
from taskly.utils.datetime_utils import now_iso, today_str

logger = logging.getLogger(__name__)

QUOTA_MESSAGES = {
    Feature.TASKS.value: "You've reached the task limit for your plan. Upgrade to Pro for unlimited tasks.",
    Feature.HABITS.value: "You've reached the habit limit for your plan. Upgrade to Pro for unlimited habits.",
    Feature.FOCUS_SESSIONS.value: "You've reached the focus session limit for your plan.",
    Feature.CHALLENGES.value: "You've reached the challenge limit for your plan.",
}

class DataService:
    """Состояние, мутации и зеркалирование для одного пользователя"""

    def __init__(self, session: SessionProvider, gateway: Optional[PersistenceGateway] = None,
                 notifier: Optional[NotificationCenter] = None,
                 ai_service: Optional[AIService] = None, plan: str = "free",
                 timezone: str = "UTC", today_func: Optional[Callable[[], str]] = None,
                 now_func: Optional[Callable[[], str]] = None):
        self.session = session
        self.gateway = gateway
        self.notifier = notifier or NotificationCenter()
        self.ai_service = ai_service or AIService()
        self.plan = plan
        self.timezone = timezone
        self._today_func = today_func
        self._now_func = now_func

        self._state = AppState(plan=plan)
        self.failed_operations: List[StoreOperation] = []
        self.loaded = False

    # ===== STATE ACCESS =====

    @property
    def state(self) -> AppState:
        return self._state

    @property
    def tasks(self) -> List[Task]:
        return self._state.tasks

    @property
    def habits(self) -> List[Habit]:
        return self._state.habits

    @property
    def stats(self) -> UserStats:
        return self._state.stats

    @property
    def settings(self) -> AppSettings:
        return self._state.settings

    @property
    def user_id(self) -> Optional[str]:
        return self._state.user_id

    def today(self) -> str:
        return self._today_func() if self._today_func else today_str(self.timezone)

    def now(self) -> str:
        return self._now_func() if self._now_func else now_iso(self.timezone)

    # ===== LOADING =====

    async def load(self) -> AppState:
        """Загрузить данные текущего пользователя (демо-данные без хранилища)"""
        user_id = self.session.current_user_id
        if user_id is None:
            self.reset()
            return self._state

        today = self.today()
        if self.gateway is None:
            state = load_demo_state(user_id, today, plan=self.plan)
            await self.notifier.publish([info("Using demo data. Connect a storage backend for full functionality.")])
        else:
            try:
                await self._initialize_user_data(user_id)
                rows = {entity: await self.gateway.list(entity, user_id) for entity in EntityType}
                state = build_state(user_id, rows, today, plan=self.plan)
            except PersistenceError as e:
                logger.error(f"❌ Ошибка загрузки данных {user_id}: {e}")
                await self.notifier.publish([error("Failed to load your data. Using demo data instead.")])
                state = load_demo_state(user_id, today, plan=self.plan)

        self._state = state
        self.loaded = True
        logger.info(f"📦 Данные загружены: {user_id}, задач {len(state.tasks)}, привычек {len(state.habits)}")
        return state

    async def _initialize_user_data(self, user_id: str) -> None:
        """Создать строки статистики, настроек и каталог значков, если их нет"""
        if not await self.gateway.list(EntityType.USER_STATS, user_id):
            await self.gateway.insert(EntityType.USER_STATS, default_stats_row(user_id))
            logger.info(f"🆕 Созданы статистики для {user_id}")

        if not await self.gateway.list(EntityType.USER_SETTINGS, user_id):
            await self.gateway.insert(EntityType.USER_SETTINGS, default_settings_row(user_id))

        if not await self.gateway.list(EntityType.BADGES):
            for row in badge_catalog_rows():
                await self.gateway.insert(EntityType.BADGES, row)

    def reset(self) -> None:
        """Сбросить состояние (выход пользователя)"""
        self._state = AppState(plan=self.plan)
        self.failed_operations = []
        self.loaded = False

    # ===== MUTATION PIPELINE =====

    async def _run(self, mutate: Callable[[AppState], MutationResult]) -> Optional[MutationResult]:
        if self._state.user_id is None:
            logger.debug("Действие без пользователя проигнорировано")
            return None

        try:
            result = mutate(self._state)
        except ValidationError as e:
            await self.notifier.publish([error(str(e))])
            return None

        if result.changed:
            self._state = result.state
        await self.notifier.publish(result.notifications)
        await self._mirror(result.operations)
        return result

    async def _mirror(self, operations: List[StoreOperation]) -> None:
        if self.gateway is None or not operations:
            return

        failed = []
        for operation in operations:
            try:
                await self.gateway.apply(operation)
            except PersistenceError as e:
                logger.error(f"❌ Не удалось сохранить {operation.describe()}: {e}")
                failed.append(operation)

        if failed:
            self.failed_operations.extend(failed)
            await self.notifier.publish([error("Failed to save changes. They will be retried.",
                                               failed=len(failed))])

    async def retry_failed(self) -> int:
        """Повторить неудавшиеся операции; возвращает число успешных"""
        if self.gateway is None or not self.failed_operations:
            return 0

        pending, self.failed_operations = self.failed_operations, []
        succeeded = 0
        for operation in pending:
            try:
                await self.gateway.apply(operation)
                succeeded += 1
            except PersistenceError as e:
                logger.warning(f"⚠️ Повтор {operation.describe()} не удался: {e}")
                self.failed_operations.append(operation)

        logger.info(f"🔁 Повторено операций: {succeeded}/{len(pending)}")
        return succeeded

    async def _quota_allows(self, feature: str, current_count: int) -> bool:
        try:
            check_quota(self.plan, feature, current_count)
        except QuotaExceeded as e:
            logger.info(f"🚧 {e}")
            await self.notifier.publish([Notification(
                NotificationType.LIMIT_REACHED,
                QUOTA_MESSAGES.get(feature, str(e)),
                {'feature': feature, 'limit': e.limit}
            )])
            return False
        return True

    # ===== TASKS =====

    async def add_task(self, text: str, due_date: Optional[str] = None, priority: Optional[str] = None,
                       notes: Optional[str] = None, category: Optional[str] = None) -> Optional[Task]:
        if self.user_id is None:
            return None
        if not await self._quota_allows(Feature.TASKS.value, len(self.tasks)):
            return None

        result = await self._run(lambda s: task_ops.add_task(s, text, due_date, priority, notes, category))
        return result.state.tasks[0] if result else None

    async def toggle_task(self, task_id: int) -> None:
        await self._run(lambda s: task_ops.toggle_task(s, task_id, self.today(), self.now()))

    async def edit_task(self, task_id: int, text: str, due_date: Optional[str] = None,
                        priority: Optional[str] = None, notes: Optional[str] = None,
                        category: Optional[str] = None) -> None:
        await self._run(lambda s: task_ops.edit_task(s, task_id, text, due_date, priority, notes,
                                                     category, self.now()))

    async def delete_task(self, task_id: int) -> None:
        await self._run(lambda s: task_ops.delete_task(s, task_id, self.today(), self.now()))

    # ===== HABITS =====

    async def add_habit(self, name: str) -> Optional[Habit]:
        if self.user_id is None:
            return None
        if not await self._quota_allows(Feature.HABITS.value, len(self.habits)):
            return None

        result = await self._run(lambda s: habit_ops.add_habit(s, name))
        return result.state.habits[0] if result else None

    async def toggle_habit(self, habit_id: int) -> None:
        await self._run(lambda s: habit_ops.toggle_habit(s, habit_id, self.today(), self.now()))

    async def delete_habit(self, habit_id: int) -> None:
        await self._run(lambda s: habit_ops.delete_habit(s, habit_id, self.today(), self.now()))

    # ===== FOCUS =====

    async def can_start_focus_session(self, session_count: int) -> bool:
        """Проверить лимит фокус-сессий тарифа"""
        return await self._quota_allows(Feature.FOCUS_SESSIONS.value, session_count)

    async def complete_focus_session(self) -> None:
        await self._run(lambda s: complete_focus_session(s, self.today(), self.now()))

    # ===== CLAIMS & SETTINGS =====

    async def claim_achievement(self, achievement_id: int) -> None:
        await self._run(lambda s: reward_ops.claim_achievement(s, achievement_id, self.now()))

    async def join_challenge(self, challenge_id: int) -> None:
        if self.user_id is None:
            return
        joined = sum(1 for c in self.stats.challenges if c.joined)
        if not await self._quota_allows(Feature.CHALLENGES.value, joined):
            return
        await self._run(lambda s: reward_ops.join_challenge(s, challenge_id))

    async def claim_challenge(self, challenge_id: int) -> None:
        await self._run(lambda s: reward_ops.claim_challenge(s, challenge_id, self.now()))

    async def claim_reward(self, reward_id: int) -> None:
        await self._run(lambda s: reward_ops.claim_reward(s, reward_id, self.now()))

    async def update_settings(self, settings: AppSettings) -> None:
        await self._run(lambda s: reward_ops.update_settings(s, settings, self.now()))

    # ===== INSIGHTS =====

    def get_priority_score(self, task: Task) -> float:
        return priority_score(task, self.today())

    def get_ranked_tasks(self) -> List[Task]:
        return rank_tasks(self.tasks, self.today())

    def _context(self) -> str:
        pending = [t.text for t in self.tasks if not t.completed][:5]
        return (
            f"Level {self.stats.level}, {self.stats.points} points. "
            f"Open tasks: {', '.join(pending) or 'none'}. "
            f"Habits: {', '.join(h.name for h in self.habits) or 'none'}."
        )

    async def get_task_suggestions(self) -> List[str]:
        return await self.ai_service.suggest_tasks(self._context(), self.user_id)

    async def get_habit_recommendations(self) -> List[str]:
        return await self.ai_service.suggest_habits(self._context(), self.user_id)

    async def get_focus_tip(self) -> str:
        return await self.ai_service.focus_tip(self.user_id)

    async def get_productivity_insight(self) -> str:
        task_rate, habit_rate = completion_rates(self.tasks, self.habits, self.today())
        return await self.ai_service.analyze_productivity(task_rate, habit_rate, self.user_id)

    async def analyze_task(self, text: str) -> TaskAnalysis:
        return await self.ai_service.analyze_task(text, self.user_id)

    def get_summary(self) -> Dict[str, Any]:
        task_rate, habit_rate = completion_rates(self.tasks, self.habits, self.today())
        return {
            'user_id': self.user_id,
            'plan': self.plan,
            'level': self.stats.level,
            'points': self.stats.points,
            'experience': self.stats.experience,
            'tasks': len(self.tasks),
            'tasks_completed': self.stats.tasks_completed,
            'habits': len(self.habits),
            'focus_sessions_completed': self.stats.focus_sessions_completed,
            'badges_earned': sum(1 for b in self.stats.badges if b.earned),
            'task_completion_rate': task_rate,
            'habit_completion_rate': habit_rate,
            'pending_operations': len(self.failed_operations),
        }

    async def close(self) -> None:
        await self.ai_service.close()
        if self.gateway is not None:
            await self.gateway.close()
        logger.info("🛑 DataService закрыт")

__all__ = ['DataService', 'QUOTA_MESSAGES']
