#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Taskly v1.0 - Focus Timer Service
Источник тиков для таймера Pomodoro

Переходы состояния выполняет taskly.core.focus; сервис только держит
единственную asyncio-задачу цикла тиков и реагирует на завершение фазы.
"""

import asyncio
import logging
from dataclasses import replace
from typing import Callable, Optional

from taskly.core import focus
from taskly.core.models import TimerMode, TimerState
from taskly.core.events import info

logger = logging.getLogger(__name__)

SoundPlayer = Callable[[], object]

class FocusTimerService:
    """Таймер фокуса одной сессии пользователя"""

    def __init__(self, data_service, tick_interval: float = 1.0,
                 sound_player: Optional[SoundPlayer] = None):
        self.data_service = data_service
        self.tick_interval = tick_interval
        self.sound_player = sound_player
        self._timer = focus.initial_timer(data_service.settings)
        self._task: Optional[asyncio.Task] = None
        self._completion: Optional[asyncio.Task] = None

    @property
    def timer(self) -> TimerState:
        return self._timer

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    # ===== CONTROLS =====

    async def start(self) -> bool:
        """Запустить отсчет; False, если лимит фокус-сессий исчерпан"""
        if self.is_running:
            return True

        if self._timer.timer_mode == TimerMode.FOCUS.value:
            allowed = await self.data_service.can_start_focus_session(self._timer.session_count)
            if not allowed:
                return False

        self._timer = replace(self._timer, is_active=True)
        self._task = asyncio.create_task(self._run())
        logger.debug(f"▶️ Таймер запущен: {self._timer.timer_mode} {self._timer.display()}")
        return True

    def pause(self) -> None:
        self._timer = replace(self._timer, is_active=False)
        self._cancel()

    async def toggle(self) -> bool:
        """Старт/пауза; возвращает is_active после переключения"""
        if self._timer.is_active:
            self.pause()
            return False
        return await self.start()

    def reset(self) -> None:
        self._cancel()
        self._timer = focus.reset(self._timer, self.data_service.settings)

    def switch_mode(self, mode: str) -> None:
        self._cancel()
        self._timer = focus.switch_mode(self._timer, mode, self.data_service.settings)

    def toggle_sound(self) -> None:
        self._timer = focus.toggle_sound(self._timer)

    # ===== LOOP =====

    def _cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def _run(self) -> None:
        while self._timer.is_active:
            await asyncio.sleep(self.tick_interval)
            self._timer, completed = focus.tick(self._timer, self.data_service.settings)
            if completed is not None:
                # Сохранение фазы не держит цикл тиков: новый старт возможен сразу
                self._task = None
                self._completion = asyncio.create_task(self._on_complete(completed))
                break

    async def _on_complete(self, mode: str) -> None:
        logger.info(f"⏰ Фаза завершена: {mode}, сессий: {self._timer.session_count}")
        if mode == TimerMode.FOCUS.value:
            await self.data_service.complete_focus_session()
        else:
            await self.data_service.notifier.publish([info("Break is over! Time to focus.")])

        if self._timer.sound_on:
            await self._play_sound()

    async def _play_sound(self) -> None:
        if self.sound_player is None:
            return
        try:
            result = self.sound_player()
            if asyncio.iscoroutine(result):
                await result
        except Exception as e:
            # Звук не влияет на состояние таймера
            logger.warning(f"🔇 Не удалось воспроизвести звук: {e}")

    async def join(self) -> None:
        """Дождаться окончания цикла тиков и обработки завершения фазы"""
        if self._task is not None:
            await asyncio.wait({self._task})
        if self._completion is not None:
            await asyncio.wait({self._completion})

    async def close(self) -> None:
        task = self._task
        self.pause()
        pending = {t for t in (task, self._completion) if t is not None}
        if pending:
            await asyncio.wait(pending)
        logger.debug("🛑 Таймер остановлен")

__all__ = ['FocusTimerService']
