#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Taskly v1.0 - AI Suggestion Service
Подсказки задач и привычек, советы по фокусу и анализ продуктивности

Основной генератор (OpenAI) вызывается с таймаутом; при любой ошибке,
таймауте или превышении лимита возвращается детерминированный резервный
ответ. Исключения AI наружу не выходят.
"""

import asyncio
import copy
import hashlib
import json
import random
import re
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, asdict
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple
import logging

from openai import AsyncOpenAI

from taskly.core.models import TaskPriority

logger = logging.getLogger(__name__)

# ===== EXCEPTIONS =====

class AIServiceError(Exception):
    """Базовое исключение для AI сервиса"""
    pass

class AIProviderError(AIServiceError):
    """Ошибка провайдера AI"""
    pass

class AIRateLimitError(AIServiceError):
    """Ошибка превышения лимита запросов"""
    pass

# ===== ENUMS =====

class RequestKind(Enum):
    """Виды запросов к генератору"""
    GENERATE = "generate"
    TASKS = "tasks"
    HABITS = "habits"
    FOCUS_TIP = "focus_tip"
    PRODUCTIVITY = "productivity"
    TASK_ANALYSIS = "task_analysis"

# ===== DATA CLASSES =====

@dataclass
class TaskAnalysis:
    """Результат анализа формулировки задачи"""
    priority: str
    confidence: float
    reasoning: str
    suggested_deadline: Optional[str] = None
    subtasks: List[str] = field(default_factory=list)
    estimated_duration: Optional[int] = None
    tags: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

@dataclass
class AIStats:
    """Статистика AI сервиса"""
    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    fallback_responses: int = 0
    cached_responses: int = 0
    rate_limited_requests: int = 0
    requests_by_kind: Dict[str, int] = field(default_factory=dict)

    @property
    def success_rate(self) -> float:
        if self.total_requests == 0:
            return 0.0
        return (self.successful_requests / self.total_requests) * 100

    @property
    def cache_hit_rate(self) -> float:
        if self.total_requests == 0:
            return 0.0
        return (self.cached_responses / self.total_requests) * 100

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['success_rate'] = round(self.success_rate, 2)
        data['cache_hit_rate'] = round(self.cache_hit_rate, 2)
        return data

# ===== CACHE SYSTEM =====

class AIResponseCache:
    """Кэш ответов AI с TTL и вытеснением LRU"""

    def __init__(self, max_size: int = 256, ttl_seconds: int = 3600,
                 clock: Callable[[], float] = time.time):
        self.max_size = max_size
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self.cache: Dict[str, Tuple[Any, float]] = {}
        self.access_times: Dict[str, float] = {}

    @staticmethod
    def make_key(kind: RequestKind, prompt: str) -> str:
        return hashlib.md5(f"{kind.value}:{prompt}".encode()).hexdigest()

    def get(self, key: str) -> Optional[Any]:
        if key not in self.cache:
            return None

        value, stored_at = self.cache[key]
        now = self.clock()
        if now - stored_at > self.ttl_seconds:
            del self.cache[key]
            del self.access_times[key]
            return None

        self.access_times[key] = now
        return value

    def put(self, key: str, value: Any) -> None:
        if key not in self.cache and len(self.cache) >= self.max_size:
            self._evict_lru()

        now = self.clock()
        self.cache[key] = (value, now)
        self.access_times[key] = now

    def _evict_lru(self) -> None:
        if not self.access_times:
            return
        lru_key = min(self.access_times, key=lambda k: self.access_times[k])
        del self.cache[lru_key]
        del self.access_times[lru_key]

    def clear(self) -> None:
        self.cache.clear()
        self.access_times.clear()

    def get_stats(self) -> Dict[str, Any]:
        return {'size': len(self.cache), 'max_size': self.max_size, 'ttl_seconds': self.ttl_seconds}

# ===== RATE LIMITING =====

class RateLimiter:
    """Ограничитель скорости запросов (скользящее окно)"""

    def __init__(self, max_requests: int = 30, window_seconds: int = 60,
                 clock: Callable[[], float] = time.time):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.clock = clock
        self.requests: Dict[str, List[float]] = {}

    def _recent(self, key: str) -> List[float]:
        now = self.clock()
        recent = [t for t in self.requests.get(key, []) if now - t <= self.window_seconds]
        self.requests[key] = recent
        return recent

    def is_allowed(self, key: str) -> bool:
        """Проверить и учесть запрос"""
        recent = self._recent(key)
        if len(recent) >= self.max_requests:
            return False
        recent.append(self.clock())
        return True

    def get_remaining_requests(self, key: str) -> int:
        return max(0, self.max_requests - len(self._recent(key)))

    def get_reset_time(self, key: str) -> Optional[datetime]:
        recent = self._recent(key)
        if not recent:
            return None
        return datetime.fromtimestamp(min(recent) + self.window_seconds)

# ===== GENERATOR INTERFACE =====

class SuggestionGenerator(ABC):
    """Источник текстовых подсказок"""

    @abstractmethod
    async def generate(self, context: str) -> str:
        pass

    @abstractmethod
    async def suggest_tasks(self, context: str) -> List[str]:
        """Ровно три предложения задач"""
        pass

    @abstractmethod
    async def suggest_habits(self, context: str) -> List[str]:
        """Ровно три предложения привычек"""
        pass

    @abstractmethod
    async def focus_tip(self) -> str:
        pass

    @abstractmethod
    async def analyze_productivity(self, task_rate: int, habit_rate: int) -> str:
        pass

    @abstractmethod
    async def analyze_task(self, text: str) -> TaskAnalysis:
        pass

    async def close(self) -> None:
        pass

# ===== FALLBACK CONTENT =====

TASK_SUGGESTIONS = [
    "Complete the weekly progress report with detailed metrics",
    "Schedule a focused brainstorming session for the upcoming project",
    "Review and prioritize backlog items for the next sprint",
    "Update documentation with recent changes and improvements",
    "Prepare agenda for the team sync meeting",
]

HABIT_SUGGESTIONS = [
    "Drink water every hour to stay hydrated and maintain energy levels",
    "Take a 5-minute walk after each hour of focused work to improve circulation",
    "Practice mindfulness for 10 minutes daily to reduce stress and improve focus",
    "Set aside 20 minutes for planning at the start of each day",
    "Review your accomplishments at the end of each day",
]

FOCUS_TIPS = [
    "Try the Pomodoro Technique: 25 minutes of focused work followed by a 5-minute break. "
    "This helps maintain concentration and prevents burnout.",
    "Implement the 'Two-Minute Rule': If a task takes less than two minutes, do it immediately "
    "rather than scheduling it for later.",
    "Use the 'Eisenhower Box' to categorize tasks by urgency and importance, focusing first on "
    "what's both urgent and important.",
    "Practice 'Deep Work' by scheduling blocks of time (1-4 hours) for focused, distraction-free "
    "work on your most important projects.",
    "Try 'Timeboxing' by allocating specific time blocks for tasks in your calendar, treating these "
    "appointments with yourself as non-negotiable.",
    "Minimize context switching by grouping similar tasks together.",
]

URGENCY_KEYWORDS = ("urgent", "asap", "immediately")

GROCERY_LISTS = {
    "healthy": ("Healthy Grocery List", {
        "Fresh Produce": ["Leafy greens (spinach, kale, arugula) (high priority)", "Bell peppers",
                          "Broccoli and cauliflower", "Avocados", "Sweet potatoes", "Berries"],
        "Proteins": ["Chicken breast", "Wild-caught salmon", "Eggs", "Greek yogurt"],
        "Grains & Legumes": ["Quinoa", "Brown rice", "Oats", "Lentils", "Chickpeas"],
    }),
    "vegan": ("Vegan Grocery List", {
        "Fresh Produce": ["Leafy greens (spinach, kale, swiss chard) (high priority)", "Mushrooms",
                          "Sweet potatoes", "Berries and bananas", "Avocados"],
        "Plant Proteins": ["Tofu", "Tempeh", "Seitan", "Lentils", "Black beans", "Chickpeas"],
        "Non-Dairy Products": ["Almond milk", "Oat milk", "Coconut yogurt", "Vegan cheese"],
    }),
    "keto": ("Keto Grocery List", {
        "Proteins": ["Grass-fed beef (high priority)", "Chicken thighs with skin", "Salmon", "Eggs"],
        "Low-Carb Vegetables": ["Leafy greens", "Broccoli", "Cauliflower", "Zucchini", "Asparagus"],
        "Healthy Fats": ["Avocados", "Butter", "Coconut oil", "Extra virgin olive oil"],
    }),
    "gluten-free": ("Gluten-Free Grocery List", {
        "Proteins": ["Chicken", "Beef", "Fish and seafood", "Eggs", "Beans and lentils"],
        "Gluten-Free Grains & Starches": ["Rice", "Quinoa", "Millet", "Buckwheat", "Potatoes"],
        "Gluten-Free Bread & Baking": ["Gluten-free bread (high priority)", "Gluten-free pasta",
                                       "Almond flour"],
    }),
    "default": ("Grocery List", {
        "Fresh Produce": ["Apples", "Bananas", "Spinach", "Tomatoes", "Carrots", "Onions"],
        "Dairy & Refrigerated": ["Milk", "Eggs", "Butter", "Cheese", "Yogurt"],
        "Meat & Seafood": ["Chicken breast", "Ground beef", "Salmon"],
    }),
}

TOPIC_LISTS = {
    "meal": ("Weekly Meal Plan", {
        "Monday": ["Breakfast: Overnight oats with berries", "Lunch: Quinoa salad",
                   "Dinner: Baked salmon with asparagus"],
        "Tuesday": ["Breakfast: Avocado toast with eggs", "Lunch: Lentil soup",
                    "Dinner: Grilled chicken with Brussels sprouts"],
        "Wednesday": ["Breakfast: Green smoothie", "Lunch: Mediterranean wrap",
                      "Dinner: Turkey meatballs with zucchini noodles"],
    }),
    "workout": ("Weekly Workout Plan", {
        "Monday - Upper Body": ["Push-ups: 3 sets of 12 (high priority)", "Dumbbell rows: 3 sets of 10",
                                "Shoulder press: 3 sets of 10"],
        "Wednesday - Lower Body": ["Squats: 3 sets of 15", "Lunges: 3 sets of 10 per leg",
                                   "Glute bridges: 3 sets of 15"],
        "Friday - Cardio & Core": ["30-minute run or bike", "Plank: 3 x 45 seconds", "Bicycle crunches"],
    }),
    "travel": ("Travel Checklist", {
        "Documents": ["Passport/ID (high priority)", "Tickets and boarding passes",
                      "Hotel reservations", "Travel insurance"],
        "Packing": ["Clothes for each day", "Toiletries", "Phone charger and adapters", "Medications"],
        "Before Leaving": ["Confirm reservations (due: 1 day before)", "Set out-of-office reply",
                          "Water plants"],
    }),
    "reading": ("Reading List", {
        "Personal Development": ["\"Atomic Habits\" by James Clear (high priority)",
                                 "\"Deep Work\" by Cal Newport", "\"Thinking, Fast and Slow\" by Daniel Kahneman"],
        "Career Development": ["\"Range\" by David Epstein", "\"Never Split the Difference\" by Chris Voss"],
        "Financial Literacy": ["\"The Psychology of Money\" by Morgan Housel (high priority)"],
    }),
}

TOPIC_KEYWORDS = {
    "meal": ("meal", "recipe", "food"),
    "workout": ("exercise", "workout", "fitness"),
    "travel": ("travel", "vacation", "trip"),
    "reading": ("book", "read"),
}

def render_list(title: str, sections: Dict[str, List[str]]) -> str:
    """Markdown-список с заголовками разделов"""
    lines = [f"# {title}"]
    for section, items in sections.items():
        lines.append("")
        lines.append(f"## {section}")
        lines.extend(f"- {item}" for item in items)
    return "\n".join(lines)

def extract_topic(text: str) -> str:
    """Тема запроса: слова после "for"/"about"/"on" или после "create a ... list" """
    for preposition in ("for", "about", "on"):
        match = re.search(rf"\b{preposition}\s+([^.,?!]+)", text, re.IGNORECASE)
        if match:
            return match.group(1).strip()

    lowered = text.lower()
    skip_words = {"list", "checklist", "to-do", "todo", "plan", "for", "of"}
    for phrase in ("create a", "make a", "generate a", "give me a", "i need a"):
        if phrase in lowered:
            words = lowered.split(phrase, 1)[1].split()
            while words and words[0] in skip_words:
                words.pop(0)
            if words:
                return re.sub(r"[.,?!].*$", "", " ".join(words))

    return "Project"

# ===== FALLBACK GENERATOR =====

class FallbackSuggestionGenerator(SuggestionGenerator):
    """Детерминированные ответы по ключевым словам"""

    def __init__(self, rng: Optional[random.Random] = None,
                 today_func: Callable[[], datetime] = datetime.now):
        self.rng = rng or random.Random()
        self.today_func = today_func

    async def generate(self, context: str) -> str:
        lowered = context.lower()

        if any(k in lowered for k in ("grocery", "shopping list", "food list")):
            return self._grocery_list(lowered)
        if any(k in lowered for k in ("task list", "to-do list", "checklist", "plan for")):
            return self._task_list(extract_topic(context))
        if "productivity" in lowered or "analyze my performance" in lowered:
            return self._productivity_from_text(context)

        for topic, keywords in TOPIC_KEYWORDS.items():
            if any(k in lowered for k in keywords):
                title, sections = TOPIC_LISTS[topic]
                return render_list(title, sections)

        topic = extract_topic(context)
        return render_list(f"{topic} List", {
            "Essential Items": ["Item 1 (high priority)", "Item 2", "Item 3", "Item 4 (due: next week)"],
            "Secondary Items": ["Item 5", "Item 6", "Item 7"],
            "Optional Items": ["Item 8", "Item 9", "Item 10"],
        })

    def _grocery_list(self, lowered: str) -> str:
        variant = "default"
        if "healthy" in lowered:
            variant = "healthy"
        elif "vegan" in lowered:
            variant = "vegan"
        elif "keto" in lowered:
            variant = "keto"
        elif "gluten-free" in lowered or "gluten free" in lowered:
            variant = "gluten-free"
        title, sections = GROCERY_LISTS[variant]
        return render_list(title, sections)

    def _task_list(self, topic: str) -> str:
        lowered = topic.lower()
        if "move" in lowered or "moving" in lowered:
            return render_list("Moving Checklist", {
                "8 Weeks Before": ["Research moving companies (high priority)", "Create a moving budget",
                                   "Start decluttering"],
                "1 Week Before": ["Confirm details with moving company (high priority)",
                                  "Pack a \"first night\" box with essentials"],
                "Moving Day": ["Do a final walkthrough of your old home (high priority)",
                               "Take meter readings at both properties", "Hand over keys"],
            })
        if "website" in lowered or "web" in lowered:
            return render_list("Website Launch Project Plan", {
                "Planning Phase": ["Define website purpose and goals (high priority)",
                                   "Identify target audience",
                                   "Create a project timeline with milestones (due: this week)"],
                "Design Phase": ["Create site map", "Design wireframes for key pages (medium priority)"],
                "Testing Phase": ["Conduct cross-browser testing", "Check for broken links"],
            })
        return render_list(f"{topic} Task List", {
            "Planning Phase": [f"Define goals and objectives for {topic} (high priority)",
                               f"Research best practices for {topic}",
                               "Create a timeline with milestones (due: next week)"],
            "Implementation Phase": ["Start with high-priority tasks first (high priority)",
                                     "Schedule regular check-ins to monitor progress"],
            "Review Phase": ["Evaluate results against initial goals", "Document lessons learned"],
        })

    def _productivity_from_text(self, text: str) -> str:
        task_match = re.search(r"Task completion rate: (\d+)%", text)
        habit_match = re.search(r"Habit completion rate today: (\d+)%", text)
        if task_match and habit_match:
            return self.productivity_message(int(task_match.group(1)), int(habit_match.group(1)))
        return ("You're making good progress! Focus on completing your most important tasks first and "
                "maintain consistency with your habits. Remember to take regular breaks to prevent "
                "burnout and sustain your productivity momentum.")

    @staticmethod
    def productivity_message(task_rate: int, habit_rate: int) -> str:
        if task_rate > 70 and habit_rate > 70:
            return ("Excellent progress! You're demonstrating strong consistency in both task completion "
                    "and habit maintenance. Consider increasing task complexity or adding more "
                    "challenging habits to continue growing.")
        if task_rate > 70:
            return ("Good work on task completion! To improve overall well-being, try allocating more "
                    "attention to your habit consistency, which will support your productivity in the "
                    "long term.")
        if habit_rate > 70:
            return ("Your habit consistency is impressive! Try breaking down your tasks into smaller, "
                    "more manageable pieces to improve your task completion rate.")
        return ("You're making progress, but there's room for improvement. Focus on completing your "
                "highest-priority tasks first and choose 1-2 key habits to build consistency.")

    async def suggest_tasks(self, context: str) -> List[str]:
        return TASK_SUGGESTIONS[:3]

    async def suggest_habits(self, context: str) -> List[str]:
        return HABIT_SUGGESTIONS[:3]

    async def focus_tip(self) -> str:
        return self.rng.choice(FOCUS_TIPS)

    async def analyze_productivity(self, task_rate: int, habit_rate: int) -> str:
        return self.productivity_message(task_rate, habit_rate)

    async def analyze_task(self, text: str) -> TaskAnalysis:
        lowered = text.lower()
        urgent = any(k in lowered for k in URGENCY_KEYWORDS)
        deadline = (self.today_func() + timedelta(days=7)).strftime("%Y-%m-%d")
        return TaskAnalysis(
            priority=TaskPriority.HIGH.value if urgent else TaskPriority.MEDIUM.value,
            confidence=0.8,
            reasoning=f"Analysis based on task: {text}",
            suggested_deadline=deadline,
            subtasks=["Plan", "Execute", "Review"],
            estimated_duration=120,
            tags=["work", "important"],
        )

# ===== OPENAI GENERATOR =====

SYSTEM_PROMPT = (
    "You are the Taskly productivity assistant. Be concise, practical and encouraging. "
    "Answer in at most 200 words."
)

class OpenAISuggestionGenerator(SuggestionGenerator):
    """Генератор на базе OpenAI Chat Completions"""

    def __init__(self, client: AsyncOpenAI, model: str = "gpt-4o-mini", max_tokens: int = 600):
        self.client = client
        self.model = model
        self.max_tokens = max_tokens

    @classmethod
    def from_config(cls, ai_config) -> "OpenAISuggestionGenerator":
        client = AsyncOpenAI(api_key=ai_config.openai_api_key, timeout=ai_config.request_timeout)
        return cls(client, model=ai_config.openai_model, max_tokens=ai_config.openai_max_tokens)

    async def _complete(self, prompt: str, temperature: float = 0.7) -> str:
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            max_tokens=self.max_tokens,
            temperature=temperature,
        )
        content = response.choices[0].message.content
        if not content or not content.strip():
            raise AIProviderError("Empty response from OpenAI")
        return content.strip()

    async def _three_lines(self, prompt: str) -> List[str]:
        content = await self._complete(prompt, temperature=0.8)
        lines = [re.sub(r"^\s*(?:[-*•]|\d+[.)])\s*", "", line).strip() for line in content.splitlines()]
        items = [line for line in lines if 3 <= len(line) <= 150]
        if len(items) < 3:
            raise AIProviderError(f"Expected 3 suggestions, got {len(items)}")
        return items[:3]

    async def generate(self, context: str) -> str:
        return await self._complete(context)

    async def suggest_tasks(self, context: str) -> List[str]:
        return await self._three_lines(
            "Suggest exactly 3 concrete tasks, one per line, no numbering.\n\n" + context)

    async def suggest_habits(self, context: str) -> List[str]:
        return await self._three_lines(
            "Suggest exactly 3 daily habits, one per line, no numbering.\n\n" + context)

    async def focus_tip(self) -> str:
        return await self._complete("Give one short, actionable tip for staying focused.", temperature=0.9)

    async def analyze_productivity(self, task_rate: int, habit_rate: int) -> str:
        return await self._complete(
            f"Task completion rate: {task_rate}% Habit completion rate today: {habit_rate}%\n"
            "Give a short productivity insight with one concrete suggestion.")

    async def analyze_task(self, text: str) -> TaskAnalysis:
        content = await self._complete(
            "Analyze this task and answer with a JSON object with keys priority (low|medium|high), "
            "confidence (0-1), reasoning, suggested_deadline (YYYY-MM-DD), subtasks (list), "
            f"estimated_duration (minutes), tags (list).\n\nTask: {text}",
            temperature=0.2,
        )
        try:
            data = json.loads(content[content.find("{"):content.rfind("}") + 1])
            analysis = TaskAnalysis(
                priority=data["priority"],
                confidence=float(data.get("confidence", 0.5)),
                reasoning=str(data.get("reasoning", "")),
                suggested_deadline=data.get("suggested_deadline"),
                subtasks=list(data.get("subtasks", [])),
                estimated_duration=data.get("estimated_duration"),
                tags=list(data.get("tags", [])),
            )
        except (ValueError, KeyError, TypeError) as e:
            raise AIProviderError(f"Unparseable task analysis: {e}") from e

        if analysis.priority not in {p.value for p in TaskPriority}:
            raise AIProviderError(f"Unknown priority in analysis: {analysis.priority}")
        return analysis

    async def close(self) -> None:
        await self.client.close()

# ===== MAIN AI SERVICE =====

class AIService:
    """Обертка над генератором: таймаут, резервные ответы, кэш, лимиты, статистика"""

    ANONYMOUS = "anonymous"

    def __init__(self, primary: Optional[SuggestionGenerator] = None,
                 fallback: Optional[SuggestionGenerator] = None,
                 timeout: float = 10.0, rate_limit_per_minute: int = 30,
                 cache_ttl_seconds: int = 3600, clock: Callable[[], float] = time.time):
        self.primary = primary
        self.fallback = fallback or FallbackSuggestionGenerator()
        self.timeout = timeout
        self.cache = AIResponseCache(ttl_seconds=cache_ttl_seconds, clock=clock)
        self.rate_limiter = RateLimiter(max_requests=rate_limit_per_minute, clock=clock)
        self.stats = AIStats()

        logger.info(f"🤖 AI Service: {'OpenAI ✅' if primary else 'резервные ответы'}")

    @property
    def enabled(self) -> bool:
        return self.primary is not None

    async def _call(self, kind: RequestKind, prompt: Optional[str], user_id: Optional[str],
                    call: Callable[[SuggestionGenerator], Awaitable[Any]]) -> Any:
        """
        Вызвать основной генератор с таймаутом

        prompt=None отключает кэширование (например, для случайных советов).
        """
        self.stats.total_requests += 1
        self.stats.requests_by_kind[kind.value] = self.stats.requests_by_kind.get(kind.value, 0) + 1

        key = AIResponseCache.make_key(kind, prompt) if prompt is not None else None
        if key is not None:
            cached = self.cache.get(key)
            if cached is not None:
                self.stats.cached_responses += 1
                return copy.deepcopy(cached)

        if self.primary is None:
            return await self._fallback(call)

        try:
            if not self.rate_limiter.is_allowed(user_id or self.ANONYMOUS):
                self.stats.rate_limited_requests += 1
                raise AIRateLimitError("Rate limit exceeded")

            result = await asyncio.wait_for(call(self.primary), timeout=self.timeout)

        except asyncio.TimeoutError:
            logger.warning(f"⏰ AI {kind.value}: таймаут {self.timeout}с, резервный ответ")
            self.stats.failed_requests += 1
            return await self._fallback(call)
        except AIRateLimitError:
            logger.warning(f"🚫 AI {kind.value}: превышен лимит запросов")
            return await self._fallback(call)
        except Exception as e:
            logger.error(f"❌ AI {kind.value}: {e}")
            self.stats.failed_requests += 1
            return await self._fallback(call)

        self.stats.successful_requests += 1
        if key is not None:
            # Кэш хранит собственную копию: списки и TaskAnalysis изменяемы
            self.cache.put(key, copy.deepcopy(result))
        return result

    async def _fallback(self, call: Callable[[SuggestionGenerator], Awaitable[Any]]) -> Any:
        self.stats.fallback_responses += 1
        return await call(self.fallback)

    # ===== PUBLIC API =====

    async def generate(self, context: str, user_id: Optional[str] = None) -> str:
        return await self._call(RequestKind.GENERATE, context, user_id, lambda g: g.generate(context))

    async def suggest_tasks(self, context: str = "", user_id: Optional[str] = None) -> List[str]:
        return await self._call(RequestKind.TASKS, context, user_id, lambda g: g.suggest_tasks(context))

    async def suggest_habits(self, context: str = "", user_id: Optional[str] = None) -> List[str]:
        return await self._call(RequestKind.HABITS, context, user_id, lambda g: g.suggest_habits(context))

    async def focus_tip(self, user_id: Optional[str] = None) -> str:
        return await self._call(RequestKind.FOCUS_TIP, None, user_id, lambda g: g.focus_tip())

    async def analyze_productivity(self, task_rate: int, habit_rate: int,
                                   user_id: Optional[str] = None) -> str:
        return await self._call(RequestKind.PRODUCTIVITY, f"{task_rate}:{habit_rate}", user_id,
                                lambda g: g.analyze_productivity(task_rate, habit_rate))

    async def analyze_task(self, text: str, user_id: Optional[str] = None) -> TaskAnalysis:
        return await self._call(RequestKind.TASK_ANALYSIS, text, user_id, lambda g: g.analyze_task(text))

    def get_rate_limit_info(self, user_id: Optional[str] = None) -> Dict[str, Any]:
        key = user_id or self.ANONYMOUS
        reset_time = self.rate_limiter.get_reset_time(key)
        return {
            'remaining': self.rate_limiter.get_remaining_requests(key),
            'max_requests': self.rate_limiter.max_requests,
            'reset_time': reset_time.isoformat() if reset_time else None,
        }

    def get_stats(self) -> Dict[str, Any]:
        return {
            'enabled': self.enabled,
            'stats': self.stats.to_dict(),
            'cache': self.cache.get_stats(),
        }

    def clear_cache(self) -> None:
        self.cache.clear()
        logger.info("🧹 Кэш AI очищен")

    async def close(self) -> None:
        if self.primary is not None:
            await self.primary.close()

def create_ai_service(ai_config) -> AIService:
    """Создать AIService по конфигурации (OpenAI только при наличии ключа)"""
    primary = None
    if ai_config.ai_enabled and ai_config.openai_api_key:
        primary = OpenAISuggestionGenerator.from_config(ai_config)

    return AIService(
        primary=primary,
        timeout=ai_config.request_timeout,
        rate_limit_per_minute=ai_config.rate_limit_per_minute,
        cache_ttl_seconds=ai_config.cache_ttl_seconds,
    )

# ===== EXPORT =====

__all__ = [
    'AIServiceError', 'AIProviderError', 'AIRateLimitError',
    'RequestKind', 'TaskAnalysis', 'AIStats',
    'AIResponseCache', 'RateLimiter',
    'SuggestionGenerator', 'FallbackSuggestionGenerator', 'OpenAISuggestionGenerator',
    'AIService', 'create_ai_service', 'extract_topic', 'render_list',
    'TASK_SUGGESTIONS', 'HABIT_SUGGESTIONS', 'FOCUS_TIPS',
]
