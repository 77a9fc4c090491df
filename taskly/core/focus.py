#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Taskly v1.0 - Focus Session State Machine
Чистые переходы таймера Pomodoro

Режимы: focus, shortBreak, longBreak. Пауза - это не отдельный режим, а
is_active=False с сохраненным отсчетом. Переходы никогда не начисляют
очки; за завершенную фокус-сессию отвечает complete_focus_session.
"""

import logging
from dataclasses import replace
from typing import Optional, Tuple

from taskly.core.models import (
    AppState, AppSettings, TimerState, TimerMode, FOCUS_SESSION_POINTS, validate_enum_value
)
from taskly.core.events import MutationResult, success
from taskly.core.leveling import settle_stats
from taskly.core.achievements import (
    adjust_achievement, adjust_challenge, FOCUS_CHAMPION_ID, FOCUS_CHALLENGE_ID
)
from taskly.utils.datetime_utils import today_str, now_iso

logger = logging.getLogger(__name__)

SESSIONS_BEFORE_LONG_BREAK = 4

def duration_for(mode: str, settings: AppSettings) -> int:
    """Длительность режима в минутах"""
    return settings.duration_for(mode)

def next_mode(mode: str, session_count: int) -> str:
    """Режим после завершения текущего"""
    if mode == TimerMode.FOCUS.value:
        if (session_count + 1) % SESSIONS_BEFORE_LONG_BREAK == 0:
            return TimerMode.LONG_BREAK.value
        return TimerMode.SHORT_BREAK.value
    return TimerMode.FOCUS.value

def initial_timer(settings: AppSettings, sound_on: bool = True) -> TimerState:
    return TimerState(minutes=settings.focus_time, sound_on=sound_on)

def tick(timer: TimerState, settings: AppSettings) -> Tuple[TimerState, Optional[str]]:
    """
    Один тик (одна секунда)

    Returns:
        (новое состояние, завершенный режим или None)
    """
    if not timer.is_active:
        return timer, None

    if timer.seconds > 0:
        timer = replace(timer, seconds=timer.seconds - 1)
    elif timer.minutes > 0:
        timer = replace(timer, minutes=timer.minutes - 1, seconds=59)

    # Режим завершается тиком, который довел отсчет до 00:00
    if timer.remaining_seconds > 0:
        return timer, None

    completed = timer.timer_mode
    mode = next_mode(completed, timer.session_count)
    session_count = timer.session_count
    if completed == TimerMode.FOCUS.value:
        session_count += 1

    return replace(
        timer,
        minutes=duration_for(mode, settings),
        seconds=0,
        is_active=False,
        timer_mode=mode,
        session_count=session_count,
    ), completed

def toggle(timer: TimerState) -> TimerState:
    """Старт/пауза без сброса отсчета"""
    return replace(timer, is_active=not timer.is_active)

def reset(timer: TimerState, settings: AppSettings) -> TimerState:
    return replace(timer, is_active=False, minutes=duration_for(timer.timer_mode, settings), seconds=0)

def switch_mode(timer: TimerState, mode: str, settings: AppSettings) -> TimerState:
    mode = validate_enum_value(mode, TimerMode, "timer mode")
    return replace(timer, is_active=False, timer_mode=mode,
                   minutes=duration_for(mode, settings), seconds=0)

def toggle_sound(timer: TimerState) -> TimerState:
    return replace(timer, sound_on=not timer.sound_on)

def complete_focus_session(state: AppState, today: Optional[str] = None,
                           now: Optional[str] = None) -> MutationResult:
    """Начислить завершенную фокус-сессию: +20 очков, счетчик, Focus Champion, испытание"""
    today = today or today_str()
    stats = state.stats
    stats = replace(
        stats,
        focus_sessions_completed=stats.focus_sessions_completed + 1,
        achievements=adjust_achievement(stats.achievements, FOCUS_CHAMPION_ID, 1),
        challenges=adjust_challenge(stats.challenges, FOCUS_CHALLENGE_ID, 1, today),
        last_active=today,
    )
    stats, notifications, operations = settle_stats(state.user_id, stats, FOCUS_SESSION_POINTS,
                                                    now or now_iso())

    logger.info(f"⏱ Фокус-сессия завершена, всего: {stats.focus_sessions_completed}")
    return MutationResult(
        state=replace(state, stats=stats),
        notifications=notifications + [
            success(f"Focus session completed! +{FOCUS_SESSION_POINTS} points")
        ],
        operations=operations,
    )

__all__ = [
    'SESSIONS_BEFORE_LONG_BREAK', 'duration_for', 'next_mode', 'initial_timer', 'tick',
    'toggle', 'reset', 'switch_mode', 'toggle_sound', 'complete_focus_session',
]
