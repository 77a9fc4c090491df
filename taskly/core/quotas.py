#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Taskly v1.0 - Plan Quotas
Лимиты функций по тарифам free / pro
"""

import math
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Dict, Union

class Plan(Enum):
    FREE = "free"
    PRO = "pro"

class Feature(Enum):
    """Ограничиваемые функции"""
    TASKS = "tasks"
    HABITS = "habits"
    FOCUS_SESSIONS = "focus_sessions"
    CHALLENGES = "challenges"
    THEMES = "themes"
    AI_FEATURES = "ai_features"
    DATA_EXPORT = "data_export"
    PRIORITY_SUPPORT = "priority_support"

class QuotaExceeded(Exception):
    """Достигнут лимит тарифа"""

    def __init__(self, plan: str, feature: str, limit: Union[int, float, bool]):
        self.plan = plan
        self.feature = feature
        self.limit = limit
        super().__init__(f"{feature} limit reached for plan '{plan}' ({limit})")

@dataclass(frozen=True)
class PlanLimits:
    """Числовые лимиты (math.inf - без ограничений) и флаги доступности"""
    tasks: float
    habits: float
    focus_sessions: float
    challenges: float
    themes: bool
    ai_features: bool
    data_export: bool
    priority_support: bool

    def to_dict(self) -> Dict[str, Union[float, bool]]:
        return asdict(self)

FEATURE_LIMITS: Dict[str, PlanLimits] = {
    Plan.FREE.value: PlanLimits(
        tasks=20,
        habits=5,
        focus_sessions=5,
        challenges=1,
        themes=False,
        ai_features=False,
        data_export=False,
        priority_support=False,
    ),
    Plan.PRO.value: PlanLimits(
        tasks=math.inf,
        habits=math.inf,
        focus_sessions=math.inf,
        challenges=math.inf,
        themes=True,
        ai_features=True,
        data_export=True,
        priority_support=True,
    ),
}

def _limits(plan: str) -> PlanLimits:
    try:
        return FEATURE_LIMITS[plan]
    except KeyError:
        raise ValueError(f"Unknown plan: {plan}")

def get_feature_limit(plan: str, feature: str) -> Union[float, bool]:
    return getattr(_limits(plan), Feature(feature).value)

def has_reached_limit(plan: str, feature: str, current_count: int) -> bool:
    """Булев лимит означает доступность функции, числовой - потолок количества"""
    limit = get_feature_limit(plan, feature)
    if isinstance(limit, bool):
        return not limit
    if limit == math.inf:
        return False
    return current_count >= limit

def is_feature_available(plan: str, feature: str) -> bool:
    limit = get_feature_limit(plan, feature)
    if isinstance(limit, bool):
        return limit
    return limit > 0

def check_quota(plan: str, feature: str, current_count: int) -> None:
    """Поднять QuotaExceeded, если лимит уже достигнут"""
    if has_reached_limit(plan, feature, current_count):
        raise QuotaExceeded(plan, feature, get_feature_limit(plan, feature))

__all__ = [
    'Plan', 'Feature', 'QuotaExceeded', 'PlanLimits', 'FEATURE_LIMITS',
    'get_feature_limit', 'has_reached_limit', 'is_feature_available', 'check_quota',
]
