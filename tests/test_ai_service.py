import json
from types import SimpleNamespace
from unittest.mock import AsyncMock

import httpx
import openai
import pytest

import core.ai_service as ai_service
from core.ai_service import (
    AINotConfiguredError, AIProviderError, AIRateLimitError, AIResponseFormatError,
    ErrorKind, InsightEngine, InsightSource, OpenAIInsightProvider, PromptManager,
    RuleBasedInsightProvider, parse_insights_payload
)
from core.analytics import build_tracking_summary

class FakeProvider:
    """Провайдер с заранее заданным ответом или ошибкой"""

    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.calls = []

    async def complete(self, system_prompt, user_prompt):
        self.calls.append((system_prompt, user_prompt))
        if self.error is not None:
            raise self.error
        return self.content

def titles(result):
    return [insight.title for insight in result.insights]

@pytest.fixture
def two_weeks(entry_factory):
    return [entry_factory(day_offset=i, hydration=9) for i in range(14)]

@pytest.fixture
def good_sleep_weeks(entry_factory):
    """14 дней: сон 5/5 в 10 из них, тренировки в 8, вода 9 стаканов"""
    return [
        entry_factory(day_offset=i, sleep=5 if i < 10 else 0, exercise=i < 8, hydration=9)
        for i in range(14)
    ]

@pytest.fixture
def poor_sleep_weeks(entry_factory):
    return [
        entry_factory(day_offset=i, sleep=1 if i < 10 else 0, hydration=9)
        for i in range(14)
    ]

# ===== INSUFFICIENT DATA =====

class TestInsufficientData:

    @pytest.mark.parametrize("count", [0, 1, 2])
    async def test_single_onboarding_insight(self, entry_factory, count):
        provider = FakeProvider(content="[]")
        engine = InsightEngine(provider=provider)

        result = await engine.generate_insights([entry_factory(day_offset=i) for i in range(count)])

        assert result.source == InsightSource.INSUFFICIENT_DATA
        assert len(result.insights) == 1
        assert result.insights[0].type == "recommendation"
        assert result.insights[0].title == "Build Your Data Foundation"
        assert provider.calls == []

    async def test_none_entries(self):
        result = await InsightEngine().generate_insights(None)
        assert result.source == InsightSource.INSUFFICIENT_DATA

# ===== AI PATH =====

class TestAIInsights:

    async def test_success(self, two_weeks):
        content = json.dumps([
            {"type": "positive", "title": "Hydrated", "description": "Great water intake",
             "confidence": "high", "actionable": "Keep it up"},
            {"type": "pattern", "title": "Steady", "description": "Energy is stable", "confidence": "low"},
        ])
        provider = FakeProvider(content=content)
        result = await InsightEngine(provider=provider).generate_insights(two_weeks)

        assert result.source == InsightSource.AI
        assert result.notice is None
        assert titles(result) == ["Hydrated", "Steady"]
        assert result.insights[0].actionable == "Keep it up"

        system_prompt, user_prompt = provider.calls[0]
        assert system_prompt == PromptManager.SYSTEM_PROMPT
        assert "User Energy Tracking Data Summary (14 days)" in user_prompt

    async def test_only_recent_window_is_summarized(self, entry_factory):
        entries = [entry_factory(day_offset=i) for i in range(30)]
        provider = FakeProvider(content='[{"title": "ok", "description": "ok"}]')
        await InsightEngine(provider=provider).generate_insights(entries)

        assert "(14 days)" in provider.calls[0][1]

    async def test_raw_dict_entries_accepted(self, raw_entry_factory):
        provider = FakeProvider(content='[{"title": "ok", "description": "ok"}]')
        raw = [raw_entry_factory(i) for i in range(4)]
        result = await InsightEngine(provider=provider).generate_insights(raw)

        assert result.source == InsightSource.AI
        assert "(4 days)" in provider.calls[0][1]

# ===== FALLBACK =====

class TestFallback:

    async def test_rate_limit_is_silent(self, two_weeks):
        provider = FakeProvider(error=AIRateLimitError("OpenAI quota exceeded"))
        result = await InsightEngine(provider=provider).generate_insights(two_weeks)

        assert result.source == InsightSource.RULE_BASED
        assert result.error_kind == ErrorKind.RATE_LIMIT
        assert result.notice is None
        assert len(result.insights) >= 1

    async def test_malformed_response(self, two_weeks):
        provider = FakeProvider(content="Here are some insights: be happy")
        result = await InsightEngine(provider=provider).generate_insights(two_weeks)

        assert result.source == InsightSource.RULE_BASED
        assert result.error_kind == ErrorKind.MALFORMED_RESPONSE
        assert result.notice is None

    async def test_provider_error_sets_notice(self, two_weeks):
        provider = FakeProvider(error=AIProviderError("OpenAI API error: 500"))
        result = await InsightEngine(provider=provider).generate_insights(two_weeks)

        assert result.source == InsightSource.RULE_BASED
        assert result.error_kind == ErrorKind.PROVIDER_ERROR
        assert result.notice == "AI insights unavailable: OpenAI API error: 500"

    async def test_unexpected_provider_exception(self, two_weeks):
        provider = FakeProvider(error=RuntimeError("socket closed"))
        result = await InsightEngine(provider=provider).generate_insights(two_weeks)

        assert result.source == InsightSource.RULE_BASED
        assert result.error_kind == ErrorKind.PROVIDER_ERROR
        assert result.insights

    async def test_not_configured(self, two_weeks):
        result = await InsightEngine(provider=None).generate_insights(two_weeks)

        assert result.source == InsightSource.RULE_BASED
        assert result.error_kind == ErrorKind.NOT_CONFIGURED
        assert "not configured" in result.notice

    async def test_good_sleep_scenario(self, good_sleep_weeks):
        provider = FakeProvider(error=AIRateLimitError("rate limit"))
        result = await InsightEngine(provider=provider).generate_insights(good_sleep_weeks)
        by_title = {insight.title: insight for insight in result.insights}

        assert by_title["Quality Sleep Habits"].type == "positive"
        assert by_title["Active Lifestyle"].type == "positive"
        assert "Hydration Focus" not in by_title

    async def test_poor_sleep_scenario(self, poor_sleep_weeks):
        provider = FakeProvider(error=AIRateLimitError("rate limit"))
        result = await InsightEngine(provider=provider).generate_insights(poor_sleep_weeks)
        sleep = [i for i in result.insights if i.title == "Sleep Improvement Focus"]

        assert len(sleep) == 1
        assert sleep[0].type == "recommendation"
        assert sleep[0].confidence == "high"

    async def test_emergency_result(self, two_weeks, monkeypatch):
        def broken_summary(*args, **kwargs):
            raise ZeroDivisionError("boom")

        monkeypatch.setattr(ai_service, "build_tracking_summary", broken_summary)
        result = await InsightEngine(provider=FakeProvider(content="[]")).generate_insights(two_weeks)

        assert result.source == InsightSource.EMERGENCY
        assert result.error_kind == ErrorKind.INTERNAL
        assert titles(result) == ["Keep Tracking"]

# ===== RULES =====

class TestRuleBasedInsights:

    def test_strong_energy_and_positive_trend(self, entry_factory):
        entries = [entry_factory(day_offset=i, physical=70, cognitive=70, hydration=8) for i in range(7, 14)]
        entries += [entry_factory(day_offset=i, physical=95, cognitive=95, hydration=8) for i in range(7)]
        insights = RuleBasedInsightProvider().generate(build_tracking_summary(entries))

        assert [i.title for i in insights] == [
            "Strong Energy Levels", "Move More Opportunity", "Positive Energy Trend"
        ]
        assert "82.5%" in insights[0].description

    def test_low_energy_and_declining_trend(self, entry_factory):
        entries = [entry_factory(day_offset=i, physical=50, cognitive=50, hydration=2) for i in range(3, 6)]
        entries += [entry_factory(day_offset=i, physical=30, cognitive=30, hydration=2) for i in range(3)]
        insights = RuleBasedInsightProvider().generate(build_tracking_summary(entries))
        by_title = {i.title: i for i in insights}

        assert by_title["Energy Boost Needed"].type == "warning"
        assert by_title["Hydration Focus"].confidence == "medium"
        assert by_title["Energy Trend Alert"].type == "pattern"

    def test_motivational_filler(self, entry_factory):
        entries = [entry_factory(day_offset=i, physical=60, cognitive=60, hydration=8,
                                 exercise=i % 3 == 0) for i in range(6)]
        insights = RuleBasedInsightProvider().generate(build_tracking_summary(entries))

        assert [i.title for i in insights] == ["Progress in Motion"]

    def test_trend_margin(self, entry_factory):
        entries = [entry_factory(day_offset=i, physical=60, cognitive=60, hydration=8) for i in range(2, 4)]
        entries += [entry_factory(day_offset=i, physical=62, cognitive=62, hydration=8) for i in range(2)]
        summary = build_tracking_summary(entries)

        assert "Positive Energy Trend" in [i.title for i in RuleBasedInsightProvider().generate(summary)]
        assert "Positive Energy Trend" not in [
            i.title for i in RuleBasedInsightProvider(trend_margin=5).generate(summary)
        ]

    def test_capped_at_max(self, entry_factory):
        entries = [entry_factory(day_offset=i, physical=20, cognitive=20, sleep=1, hydration=1)
                   for i in range(7, 14)]
        entries += [entry_factory(day_offset=i, physical=10, cognitive=10, sleep=1, hydration=1)
                    for i in range(7)]
        insights = RuleBasedInsightProvider(max_insights=3).generate(build_tracking_summary(entries))

        assert [i.title for i in insights] == [
            "Energy Boost Needed", "Sleep Improvement Focus", "Move More Opportunity"
        ]

    def test_internal_failure(self):
        insights = RuleBasedInsightProvider().generate(None)
        assert [i.title for i in insights] == ["Analysis Unavailable"]

# ===== RESPONSE PARSING =====

class TestParseInsightsPayload:

    def test_defaults_and_truncation(self):
        payload = [{"type": "bogus"}, "not-an-object"] + [
            {"type": "positive", "title": f"T{i}", "description": "d", "confidence": "high"}
            for i in range(6)
        ]
        insights = parse_insights_payload(json.dumps(payload))

        assert len(insights) == 5
        assert insights[0].type == "recommendation"
        assert insights[0].confidence == "medium"
        assert insights[0].title == "Insight 1"
        assert insights[0].description == "No description available"
        assert insights[1].title == "T0"

    def test_code_fence_and_wrapper_object(self):
        content = '```json\n{"insights": [{"type": "warning", "title": "Low", "description": "d"}]}\n```'
        insights = parse_insights_payload(content)

        assert insights[0].type == "warning"
        assert insights[0].title == "Low"

    def test_non_string_type_and_confidence_use_defaults(self):
        content = json.dumps([{"type": ["positive"], "confidence": {}, "title": "Odd", "description": "d"}])
        insights = parse_insights_payload(content)

        assert insights[0].type == "recommendation"
        assert insights[0].confidence == "medium"

    async def test_non_string_fields_keep_ai_source(self, two_weeks):
        provider = FakeProvider(content=json.dumps([
            {"type": ["positive"], "confidence": {"level": "high"}, "title": "Odd", "description": "d"}
        ]))
        result = await InsightEngine(provider=provider).generate_insights(two_weeks)

        assert result.source == InsightSource.AI
        assert result.error_kind is None
        assert result.notice is None
        assert titles(result) == ["Odd"]

    @pytest.mark.parametrize("content", [None, "", "not json", '{"foo": 1}', "[]", '["a", 1]'])
    def test_malformed(self, content):
        with pytest.raises(AIResponseFormatError):
            parse_insights_payload(content)

# ===== OPENAI PROVIDER =====

def _openai_client(side_effect=None, content=None):
    create = AsyncMock()
    if side_effect is not None:
        create.side_effect = side_effect
    else:
        create.return_value = SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content=content))]
        )
    return SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))

def _status_error(error_cls, status_code):
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    response = httpx.Response(status_code, request=request)
    return error_cls("error", response=response, body=None)

class TestOpenAIInsightProvider:

    def test_requires_api_key(self):
        with pytest.raises(AINotConfiguredError):
            OpenAIInsightProvider(api_key=None)

    async def test_request_parameters(self):
        client = _openai_client(content='  [{"title": "ok"}]  ')
        provider = OpenAIInsightProvider(api_key="sk-test", client=client)

        content = await provider.complete("system", "user")

        assert content == '[{"title": "ok"}]'
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["temperature"] == 0.7
        assert kwargs["max_tokens"] == 1500
        assert kwargs["messages"][0] == {"role": "system", "content": "system"}

    async def test_rate_limit_mapped(self):
        client = _openai_client(side_effect=_status_error(openai.RateLimitError, 429))
        provider = OpenAIInsightProvider(api_key="sk-test", client=client)

        with pytest.raises(AIRateLimitError):
            await provider.complete("system", "user")

    async def test_status_error_mapped(self):
        client = _openai_client(side_effect=_status_error(openai.InternalServerError, 500))
        provider = OpenAIInsightProvider(api_key="sk-test", client=client)

        with pytest.raises(AIProviderError, match="500"):
            await provider.complete("system", "user")

    async def test_empty_content(self):
        client = _openai_client(content=None)
        provider = OpenAIInsightProvider(api_key="sk-test", client=client)

        with pytest.raises(AIResponseFormatError):
            await provider.complete("system", "user")

    async def test_rate_limit_through_engine(self, two_weeks):
        client = _openai_client(side_effect=_status_error(openai.RateLimitError, 429))
        engine = InsightEngine(provider=OpenAIInsightProvider(api_key="sk-test", client=client))

        result = await engine.generate_insights(two_weeks)

        assert result.source == InsightSource.RULE_BASED
        assert result.notice is None
        assert result.insights
