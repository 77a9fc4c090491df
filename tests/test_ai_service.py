import asyncio
import random
from datetime import datetime
from types import SimpleNamespace

import pytest

from taskly.services.ai_service import (
    AIProviderError, AIResponseCache, AIService, FallbackSuggestionGenerator, FOCUS_TIPS,
    HABIT_SUGGESTIONS, OpenAISuggestionGenerator, RateLimiter, RequestKind, SuggestionGenerator,
    TASK_SUGGESTIONS, TaskAnalysis
)

class StubGenerator(SuggestionGenerator):
    """Генератор с фиксированными ответами и счетчиком вызовов"""

    def __init__(self, delay: float = 0, fail: bool = False):
        self.delay = delay
        self.fail = fail
        self.calls = 0

    async def _answer(self, value):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise AIProviderError("provider down")
        return value

    async def generate(self, context):
        return await self._answer(f"model: {context}")

    async def suggest_tasks(self, context):
        return await self._answer(["one", "two", "three"])

    async def suggest_habits(self, context):
        return await self._answer(["walk", "read", "sleep"])

    async def focus_tip(self):
        return await self._answer("model tip")

    async def analyze_productivity(self, task_rate, habit_rate):
        return await self._answer(f"{task_rate}/{habit_rate}")

    async def analyze_task(self, text):
        return await self._answer(TaskAnalysis("low", 0.9, "stub"))

class FakeClock:

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

def fake_openai_client(content):
    calls = []

    async def create(**kwargs):
        calls.append(kwargs)
        message = SimpleNamespace(content=content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])

    async def close():
        calls.append("closed")

    client = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)),
                             close=close)
    return client, calls

class TestAIServiceFallback:

    def test_without_primary_uses_fallback(self):
        service = AIService()

        assert asyncio.run(service.suggest_tasks("ctx")) == TASK_SUGGESTIONS[:3]
        assert asyncio.run(service.suggest_habits("ctx")) == HABIT_SUGGESTIONS[:3]
        assert not service.enabled
        assert service.stats.fallback_responses == 2

    def test_failing_primary_falls_back(self):
        primary = StubGenerator(fail=True)
        service = AIService(primary=primary)

        assert asyncio.run(service.suggest_tasks("ctx")) == TASK_SUGGESTIONS[:3]
        assert service.stats.failed_requests == 1
        assert primary.calls == 1

    def test_timeout_falls_back(self):
        service = AIService(primary=StubGenerator(delay=1), timeout=0.01)

        result = asyncio.run(service.analyze_productivity(90, 90))
        assert result.startswith("Excellent progress!")
        assert service.stats.failed_requests == 1

    def test_rate_limit_falls_back(self):
        primary = StubGenerator()
        service = AIService(primary=primary, rate_limit_per_minute=1)

        assert asyncio.run(service.generate("first", "u1")) == "model: first"
        second = asyncio.run(service.generate("shopping list please", "u1"))

        assert second.startswith("# Grocery List")
        assert primary.calls == 1
        assert service.stats.rate_limited_requests == 1
        assert service.get_rate_limit_info("u1")['remaining'] == 0
        assert service.get_rate_limit_info("u2")['remaining'] == 1

class TestAIServiceCache:

    def test_successful_answers_cached(self):
        primary = StubGenerator()
        service = AIService(primary=primary)

        first = asyncio.run(service.suggest_tasks("same"))
        second = asyncio.run(service.suggest_tasks("same"))

        assert first == second == ["one", "two", "three"]
        assert primary.calls == 1
        assert service.stats.cached_responses == 1

    def test_cached_lists_are_copies(self):
        service = AIService(primary=StubGenerator())

        first = asyncio.run(service.suggest_tasks("same"))
        first.append("edited by caller")
        second = asyncio.run(service.suggest_tasks("same"))
        second.clear()

        assert asyncio.run(service.suggest_tasks("same")) == ["one", "two", "three"]
        assert service.stats.cached_responses == 2

    def test_fallback_answers_not_cached(self):
        primary = StubGenerator(fail=True)
        service = AIService(primary=primary)

        asyncio.run(service.suggest_tasks("same"))
        asyncio.run(service.suggest_tasks("same"))
        assert primary.calls == 2

    def test_focus_tip_never_cached(self):
        primary = StubGenerator()
        service = AIService(primary=primary)

        asyncio.run(service.focus_tip())
        asyncio.run(service.focus_tip())
        assert primary.calls == 2

    def test_cache_expires(self):
        clock = FakeClock()
        primary = StubGenerator()
        service = AIService(primary=primary, cache_ttl_seconds=60, clock=clock)

        asyncio.run(service.generate("x"))
        clock.now += 61
        asyncio.run(service.generate("x"))
        assert primary.calls == 2

    def test_lru_eviction(self):
        clock = FakeClock()
        cache = AIResponseCache(max_size=2, clock=clock)
        a, b, c = (AIResponseCache.make_key(RequestKind.GENERATE, p) for p in "abc")

        cache.put(a, 1)
        clock.now += 1
        cache.put(b, 2)
        clock.now += 1
        cache.get(a)
        clock.now += 1
        cache.put(c, 3)

        assert cache.get(a) == 1
        assert cache.get(b) is None
        assert cache.get(c) == 3

class TestRateLimiter:

    def test_sliding_window(self):
        clock = FakeClock()
        limiter = RateLimiter(max_requests=2, window_seconds=60, clock=clock)

        assert limiter.is_allowed("u")
        assert limiter.is_allowed("u")
        assert not limiter.is_allowed("u")
        assert limiter.get_reset_time("u") == datetime.fromtimestamp(1060)

        clock.now += 61
        assert limiter.is_allowed("u")
        assert limiter.get_remaining_requests("u") == 1

class TestFallbackGenerator:

    @pytest.fixture
    def generator(self):
        return FallbackSuggestionGenerator(rng=random.Random(7),
                                           today_func=lambda: datetime(2026, 3, 10))

    @pytest.mark.parametrize("prompt,title", [
        ("Create a healthy grocery list", "# Healthy Grocery List"),
        ("I need a vegan shopping list", "# Vegan Grocery List"),
        ("Make a checklist for moving house", "# Moving Checklist"),
        ("Plan for website launch", "# Website Launch Project Plan"),
        ("Suggest a workout routine", "# Weekly Workout Plan"),
        ("Books to read this summer", "# Reading List"),
        ("Create a list about gardening", "# gardening List"),
    ])
    def test_generate_by_keywords(self, generator, prompt, title):
        assert asyncio.run(generator.generate(prompt)).splitlines()[0] == title

    def test_productivity_prompt_parsed(self, generator):
        text = "Analyze my productivity. Task completion rate: 80% Habit completion rate today: 20%"
        assert asyncio.run(generator.generate(text)).startswith("Good work on task completion!")

    @pytest.mark.parametrize("task_rate,habit_rate,start", [
        (80, 80, "Excellent progress!"),
        (80, 10, "Good work on task completion!"),
        (10, 80, "Your habit consistency is impressive!"),
        (70, 70, "You're making progress, but"),
    ])
    def test_productivity_thresholds(self, task_rate, habit_rate, start):
        assert FallbackSuggestionGenerator.productivity_message(task_rate, habit_rate).startswith(start)

    def test_focus_tip_from_catalog(self, generator):
        assert asyncio.run(generator.focus_tip()) in FOCUS_TIPS

    def test_analyze_task(self, generator):
        urgent = asyncio.run(generator.analyze_task("Fix urgent login bug"))
        assert urgent.priority == "high"
        assert urgent.suggested_deadline == "2026-03-17"
        assert urgent.subtasks == ["Plan", "Execute", "Review"]

        calm = asyncio.run(generator.analyze_task("Tidy desk"))
        assert calm.priority == "medium"
        assert calm.confidence == 0.8

class TestOpenAIGenerator:

    def test_three_lines_parsed(self):
        client, calls = fake_openai_client("1. Draft outline\n2) Email the team\n- Book a room\n")
        generator = OpenAISuggestionGenerator(client, model="test-model")

        assert asyncio.run(generator.suggest_tasks("ctx")) == ["Draft outline", "Email the team", "Book a room"]
        assert calls[0]['model'] == "test-model"
        assert calls[0]['messages'][1]['content'].endswith("ctx")

    def test_task_analysis_json(self):
        client, _ = fake_openai_client(
            'Sure: {"priority": "high", "confidence": 0.7, "reasoning": "deadline", '
            '"subtasks": ["a"], "estimated_duration": 30, "tags": ["x"]}')
        analysis = asyncio.run(OpenAISuggestionGenerator(client).analyze_task("Ship release"))

        assert analysis.priority == "high"
        assert analysis.estimated_duration == 30

    def test_empty_reply_is_provider_error(self):
        client, _ = fake_openai_client("   ")
        with pytest.raises(AIProviderError):
            asyncio.run(OpenAISuggestionGenerator(client).focus_tip())

    def test_service_falls_back_on_bad_reply(self):
        client, calls = fake_openai_client("only one line")
        service = AIService(primary=OpenAISuggestionGenerator(client))

        assert asyncio.run(service.suggest_habits("ctx")) == HABIT_SUGGESTIONS[:3]
        asyncio.run(service.close())
        assert calls[-1] == "closed"
