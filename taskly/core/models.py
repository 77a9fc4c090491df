#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Taskly v1.0 - Core Data Models
Модели данных с валидацией и типизацией

Производные поля (очки задачи, уровень, опыт, завершенность достижения)
вычисляются, а не хранятся, поэтому не могут разойтись с исходными данными.
"""

import re
from datetime import date
from typing import Dict, List, Optional, Any
from dataclasses import dataclass, field, fields, asdict
from enum import Enum
import logging

from taskly.utils.datetime_utils import is_valid_date

logger = logging.getLogger(__name__)

# ===== ENUMS =====

class TaskPriority(Enum):
    """Приоритеты задач"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

class TimerMode(Enum):
    """Режимы таймера фокуса"""
    FOCUS = "focus"
    SHORT_BREAK = "shortBreak"
    LONG_BREAK = "longBreak"

class RequirementType(Enum):
    """Счетчик статистики, по которому выдается значок"""
    TASKS = "tasks"
    HABITS = "habits"
    FOCUS = "focus"
    LEVEL = "level"

class AchievementCategory(Enum):
    """Категории достижений"""
    DAILY = "daily"
    WEEKLY = "weekly"
    SPECIAL = "special"
    MILESTONE = "milestone"

class Theme(Enum):
    """Темы оформления"""
    LIGHT = "light"
    DARK = "dark"
    SYSTEM = "system"

# ===== CONSTANTS =====

POINTS_PER_LEVEL = 100
HABIT_POINTS = 15
FOCUS_SESSION_POINTS = 20
DEFAULT_TASK_POINTS = 10

TASK_POINTS = {
    TaskPriority.HIGH.value: 20,
    TaskPriority.MEDIUM.value: 15,
    TaskPriority.LOW.value: 10,
}

_CATEGORY_RE = re.compile(r"^\s*Category:\s*(.+?)\s*$", re.IGNORECASE | re.MULTILINE)

# ===== EXCEPTIONS =====

class ValidationError(Exception):
    """Ошибка валидации данных"""
    pass

class NotFoundError(Exception):
    """Сущность с указанным id не найдена"""
    pass

# ===== VALIDATION HELPERS =====

def validate_text(text: str, min_length: int = 1, max_length: int = 1000, field_name: str = "text") -> str:
    """Валидация текстовых полей"""
    if not isinstance(text, str):
        raise ValidationError(f"{field_name} must be a string")

    text = text.strip()
    if len(text) < min_length:
        raise ValidationError(f"{field_name} cannot be empty" if min_length == 1
                              else f"{field_name} must be at least {min_length} characters")

    if len(text) > max_length:
        raise ValidationError(f"{field_name} must be at most {max_length} characters")

    return text

def validate_enum_value(value: str, enum_class: type, field_name: str = "value") -> str:
    """Валидация значений enum"""
    try:
        enum_class(value)
        return value
    except ValueError:
        valid_values = [e.value for e in enum_class]
        raise ValidationError(f"{field_name} must be one of: {valid_values}")

def validate_optional_date(value: Optional[str], field_name: str = "date") -> Optional[str]:
    if value is None or value == "":
        return None
    if not is_valid_date(value):
        raise ValidationError(f"{field_name} must be an ISO date (YYYY-MM-DD), got {value!r}")
    return value

def task_points_for_priority(priority: Optional[str]) -> int:
    """Очки за задачу по приоритету"""
    return TASK_POINTS.get(priority, DEFAULT_TASK_POINTS)

def extract_category(notes: Optional[str]) -> Optional[str]:
    """Достать категорию из старого формата заметок ("Category: X")"""
    if not notes:
        return None
    match = _CATEGORY_RE.search(notes)
    return match.group(1) if match else None

# ===== CORE MODELS =====

@dataclass
class Task:
    """Задача пользователя"""
    id: int
    text: str
    completed: bool = False
    due_date: Optional[str] = None
    priority: Optional[str] = None
    notes: Optional[str] = None
    category: Optional[str] = None
    points: int = field(init=False)

    def __post_init__(self):
        self.text = validate_text(self.text, max_length=500, field_name="Task text")

        if self.priority == "":
            self.priority = None
        if self.priority is not None:
            self.priority = validate_enum_value(self.priority, TaskPriority, "priority")

        self.due_date = validate_optional_date(self.due_date, "due_date")

        if self.category is not None:
            self.category = self.category.strip() or None

        # Очки всегда следуют за приоритетом
        self.points = task_points_for_priority(self.priority)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Task":
        notes = data.get("notes")
        return cls(
            id=int(data["id"]),
            text=data["text"],
            completed=bool(data.get("completed", False)),
            due_date=data.get("due_date"),
            priority=data.get("priority"),
            notes=notes,
            category=data.get("category") or extract_category(notes),
        )

@dataclass
class Habit:
    """Привычка с отметками выполнения по дням"""
    id: int
    name: str
    streak: int = 0
    completed_dates: List[str] = field(default_factory=list)
    points: int = field(init=False, default=HABIT_POINTS)

    def __post_init__(self):
        self.name = validate_text(self.name, max_length=200, field_name="Habit name")
        self.streak = max(0, int(self.streak))

        unique_dates: List[str] = []
        for day in self.completed_dates:
            if day not in unique_dates:
                unique_dates.append(day)
        self.completed_dates = unique_dates
        self.points = HABIT_POINTS

    def is_completed_on(self, day: str) -> bool:
        return day in self.completed_dates

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Habit":
        return cls(
            id=int(data["id"]),
            name=data["name"],
            streak=data.get("streak", 0),
            completed_dates=list(data.get("completed_dates", [])),
        )

@dataclass
class BadgeRequirement:
    """Условие получения значка"""
    type: str
    count: int

    def __post_init__(self):
        self.type = validate_enum_value(self.type, RequirementType, "requirement type")
        if not isinstance(self.count, int) or self.count < 0:
            raise ValidationError("requirement count must be a non-negative integer")

@dataclass
class Badge:
    """Значок из каталога и отметка о получении"""
    id: int
    name: str
    description: str
    icon: str
    requirement: BadgeRequirement
    earned: bool = False
    earned_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Badge":
        requirement = data["requirement"]
        if isinstance(requirement, dict):
            requirement = BadgeRequirement(**requirement)
        return cls(
            id=int(data["id"]),
            name=data["name"],
            description=data.get("description", ""),
            icon=data.get("icon", ""),
            requirement=requirement,
            earned=bool(data.get("earned", False)),
            earned_at=data.get("earned_at"),
        )

@dataclass
class Achievement:
    """Достижение с прогрессом; награда выдается при явном получении"""
    id: int
    name: str
    description: str
    icon: str
    max_progress: int
    reward: int
    category: str = AchievementCategory.MILESTONE.value
    progress: int = 0
    completed_at: Optional[str] = None

    def __post_init__(self):
        self.category = validate_enum_value(self.category, AchievementCategory, "category")
        if self.max_progress < 1:
            raise ValidationError("max_progress must be positive")
        self.progress = max(0, min(self.max_progress, self.progress))

    @property
    def completed(self) -> bool:
        return self.progress >= self.max_progress

    @property
    def claimed(self) -> bool:
        return self.completed_at is not None

    @property
    def progress_percentage(self) -> float:
        return min(100.0, self.progress / self.max_progress * 100)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["completed"] = self.completed
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Achievement":
        data = {k: v for k, v in data.items() if k != "completed"}
        return cls(**data)

@dataclass
class Challenge:
    """Ограниченное по времени испытание"""
    id: int
    name: str
    description: str
    start_date: str
    end_date: str
    goal: int
    reward: int
    progress: int = 0
    joined: bool = False
    claimed: bool = False

    def __post_init__(self):
        self.start_date = validate_optional_date(self.start_date, "start_date")
        self.end_date = validate_optional_date(self.end_date, "end_date")
        if not self.start_date or not self.end_date:
            raise ValidationError("challenge needs start_date and end_date")
        if self.end_date < self.start_date:
            raise ValidationError("challenge end_date is before start_date")
        if self.goal < 1:
            raise ValidationError("goal must be positive")
        self.progress = max(0, min(self.goal, self.progress))

    @property
    def completed(self) -> bool:
        return self.progress >= self.goal

    def is_active(self, today: str) -> bool:
        """Активно ли испытание в указанный день"""
        return self.start_date <= today <= self.end_date

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["completed"] = self.completed
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Challenge":
        data = {k: v for k, v in data.items() if k != "completed"}
        return cls(**data)

@dataclass
class Reward:
    """Награда, которую можно купить за очки"""
    id: int
    name: str
    description: str
    cost: int
    icon: str
    unlocked: bool = False
    claimed: bool = False

    def can_claim(self, points: int) -> bool:
        return self.unlocked and not self.claimed and points >= self.cost

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Reward":
        return cls(**data)

@dataclass
class UserStats:
    """Сводная статистика пользователя"""
    points: int = 0
    tasks_completed: int = 0
    habits_completed: int = 0
    focus_sessions_completed: int = 0
    longest_streak: int = 0
    streak: int = 0
    last_active: Optional[str] = None
    badges: List[Badge] = field(default_factory=list)
    achievements: List[Achievement] = field(default_factory=list)
    challenges: List[Challenge] = field(default_factory=list)
    rewards: List[Reward] = field(default_factory=list)

    def __post_init__(self):
        self.tasks_completed = max(0, self.tasks_completed)
        self.habits_completed = max(0, self.habits_completed)
        self.focus_sessions_completed = max(0, self.focus_sessions_completed)
        self.longest_streak = max(0, self.longest_streak)
        self.streak = max(0, self.streak)

    # Уровень и опыт - чистые функции от очков
    @property
    def level(self) -> int:
        return self.points // POINTS_PER_LEVEL + 1

    @property
    def experience(self) -> int:
        return self.points % POINTS_PER_LEVEL

    @property
    def experience_to_next_level(self) -> int:
        return POINTS_PER_LEVEL

    def get_badge(self, badge_id: int) -> Optional[Badge]:
        return next((b for b in self.badges if b.id == badge_id), None)

    def get_achievement(self, achievement_id: int) -> Optional[Achievement]:
        return next((a for a in self.achievements if a.id == achievement_id), None)

    def get_challenge(self, challenge_id: int) -> Optional[Challenge]:
        return next((c for c in self.challenges if c.id == challenge_id), None)

    def get_reward(self, reward_id: int) -> Optional[Reward]:
        return next((r for r in self.rewards if r.id == reward_id), None)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'points': self.points,
            'level': self.level,
            'experience': self.experience,
            'experience_to_next_level': self.experience_to_next_level,
            'tasks_completed': self.tasks_completed,
            'habits_completed': self.habits_completed,
            'focus_sessions_completed': self.focus_sessions_completed,
            'longest_streak': self.longest_streak,
            'streak': self.streak,
            'last_active': self.last_active,
            'badges': [b.to_dict() for b in self.badges],
            'achievements': [a.to_dict() for a in self.achievements],
            'challenges': [c.to_dict() for c in self.challenges],
            'rewards': [r.to_dict() for r in self.rewards],
        }

@dataclass
class AppSettings:
    """Настройки приложения; длительности в минутах"""
    theme: str = Theme.LIGHT.value
    notifications: bool = True
    focus_time: int = 25
    short_break: int = 5
    long_break: int = 15

    def __post_init__(self):
        self.theme = validate_enum_value(self.theme, Theme, "theme")
        for name in ("focus_time", "short_break", "long_break"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                raise ValidationError(f"{name} must be a positive number of minutes")

    def duration_for(self, mode: str) -> int:
        """Длительность режима таймера в минутах"""
        return {
            TimerMode.FOCUS.value: self.focus_time,
            TimerMode.SHORT_BREAK.value: self.short_break,
            TimerMode.LONG_BREAK.value: self.long_break,
        }[validate_enum_value(mode, TimerMode, "timer mode")]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AppSettings":
        unknown = set(data) - {f.name for f in fields(cls)}
        if unknown:
            raise ValidationError(f"Unknown settings: {', '.join(sorted(unknown))}")
        return cls(**data)

@dataclass
class TimerState:
    """Состояние таймера фокуса"""
    minutes: int
    seconds: int = 0
    is_active: bool = False
    timer_mode: str = TimerMode.FOCUS.value
    session_count: int = 0
    sound_on: bool = True

    def __post_init__(self):
        self.timer_mode = validate_enum_value(self.timer_mode, TimerMode, "timer mode")
        if not 0 <= self.seconds <= 59:
            raise ValidationError("seconds must be between 0 and 59")
        if self.minutes < 0 or self.session_count < 0:
            raise ValidationError("minutes and session_count cannot be negative")

    @property
    def remaining_seconds(self) -> int:
        return self.minutes * 60 + self.seconds

    def display(self) -> str:
        return f"{self.minutes:02d}:{self.seconds:02d}"

@dataclass
class AppState:
    """Снимок состояния пользовательской сессии"""
    user_id: Optional[str] = None
    tasks: List[Task] = field(default_factory=list)
    habits: List[Habit] = field(default_factory=list)
    stats: UserStats = field(default_factory=UserStats)
    settings: AppSettings = field(default_factory=AppSettings)
    plan: str = "free"

    def get_task(self, task_id: int) -> Task:
        for task in self.tasks:
            if task.id == task_id:
                return task
        raise NotFoundError(f"Task {task_id} not found")

    def get_habit(self, habit_id: int) -> Habit:
        for habit in self.habits:
            if habit.id == habit_id:
                return habit
        raise NotFoundError(f"Habit {habit_id} not found")

    def next_task_id(self) -> int:
        return max((t.id for t in self.tasks), default=0) + 1

    def next_habit_id(self) -> int:
        return max((h.id for h in self.habits), default=0) + 1

    @property
    def completed_tasks(self) -> List[Task]:
        return [t for t in self.tasks if t.completed]

    def habits_completed_on(self, day: str) -> List[Habit]:
        return [h for h in self.habits if h.is_completed_on(day)]

    def max_habit_streak(self) -> int:
        return max((h.streak for h in self.habits), default=0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'user_id': self.user_id,
            'plan': self.plan,
            'tasks': [t.to_dict() for t in self.tasks],
            'habits': [h.to_dict() for h in self.habits],
            'stats': self.stats.to_dict(),
            'settings': self.settings.to_dict(),
        }

# ===== EXPORT =====

__all__ = [
    'TaskPriority', 'TimerMode', 'RequirementType', 'AchievementCategory', 'Theme',
    'POINTS_PER_LEVEL', 'HABIT_POINTS', 'FOCUS_SESSION_POINTS', 'DEFAULT_TASK_POINTS', 'TASK_POINTS',
    'ValidationError', 'NotFoundError',
    'validate_text', 'validate_enum_value', 'validate_optional_date',
    'task_points_for_priority', 'extract_category',
    'Task', 'Habit', 'BadgeRequirement', 'Badge', 'Achievement', 'Challenge', 'Reward',
    'UserStats', 'AppSettings', 'TimerState', 'AppState',
]
