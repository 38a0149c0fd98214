#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Energy Tracker Analytics - AI Insight Service
Генерация инсайтов через AI провайдера с резервным анализом по правилам

Версия: 1.2.0
Дата: 2025-08-04
"""

import json
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Any, Iterable, Mapping, Union
import logging

import openai
from openai import AsyncOpenAI

from core.models import (
    TrackingEntry, Insight, InsightType, InsightConfidence, parse_entries
)
from core.analytics import TrackingSummary, build_tracking_summary, format_summary

logger = logging.getLogger(__name__)

# ===== EXCEPTIONS =====

class AIServiceError(Exception):
    """Базовое исключение для AI сервиса"""
    pass

class AIProviderError(AIServiceError):
    """Ошибка провайдера AI"""
    pass

class AIRateLimitError(AIServiceError):
    """Превышен лимит запросов или квота (HTTP 429)"""
    pass

class AIResponseFormatError(AIServiceError):
    """Ответ провайдера не удалось разобрать"""
    pass

class AINotConfiguredError(AIServiceError):
    """AI провайдер не настроен"""
    pass

# ===== ENUMS =====

class InsightSource(Enum):
    """Откуда получены инсайты"""
    INSUFFICIENT_DATA = "insufficient_data"
    AI = "ai"
    RULE_BASED = "rule_based"
    EMERGENCY = "emergency"

class ErrorKind(Enum):
    """Причина перехода на резервный анализ"""
    RATE_LIMIT = "rate_limit"
    MALFORMED_RESPONSE = "malformed_response"
    PROVIDER_ERROR = "provider_error"
    NOT_CONFIGURED = "not_configured"
    INTERNAL = "internal"

# ===== FIXED INSIGHTS =====

ONBOARDING_INSIGHT = Insight(
    type=InsightType.RECOMMENDATION.value,
    title="Build Your Data Foundation",
    description="Track for at least 3 days to unlock personalized AI insights and recommendations.",
    confidence=InsightConfidence.HIGH.value,
    actionable="Continue daily tracking to see meaningful patterns emerge."
)

KEEP_TRACKING_INSIGHT = Insight(
    type=InsightType.RECOMMENDATION.value,
    title="Keep Tracking",
    description=("Your energy tracking journey is valuable. Continue logging your daily patterns "
                 "to build a comprehensive wellness profile."),
    confidence=InsightConfidence.HIGH.value,
    actionable="Maintain consistent daily tracking to unlock more personalized insights."
)

ANALYSIS_UNAVAILABLE_INSIGHT = Insight(
    type=InsightType.RECOMMENDATION.value,
    title="Analysis Unavailable",
    description="Unable to generate insights at this time. Your tracking journey is valuable - keep it up!",
    confidence=InsightConfidence.HIGH.value,
    actionable="Continue daily tracking to build your energy pattern database."
)

MOTIVATIONAL_INSIGHT = Insight(
    type=InsightType.POSITIVE.value,
    title="Progress in Motion",
    description=("Every day you track is a step toward better understanding your energy patterns "
                 "and optimizing your wellbeing."),
    confidence=InsightConfidence.HIGH.value,
    actionable="Continue your tracking streak to build momentum and discover insights."
)

# ===== DATA CLASSES =====

@dataclass(frozen=True)
class InsightResult:
    """Результат запроса инсайтов"""
    source: InsightSource
    insights: List[Insight] = field(default_factory=list)
    error_kind: Optional[ErrorKind] = None
    notice: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'insights': [insight.to_dict() for insight in self.insights],
            'source': self.source.value,
            'errorKind': self.error_kind.value if self.error_kind else None,
            'notice': self.notice
        }

# ===== PROMPT MANAGER =====

class PromptManager:
    """Промпты для генерации инсайтов"""

    SYSTEM_PROMPT = (
        "You are an expert wellness coach and data analyst. Provide actionable, personalized "
        "insights based on energy tracking data. Be encouraging but honest about areas for improvement."
    )

    INSIGHTS_TEMPLATE = """
As an AI wellness coach, analyze this user's energy tracking data and provide 3-{max_insights} personalized insights. Focus on:

1. Identifying patterns and correlations in their data
2. Providing actionable recommendations for improvement
3. Celebrating positive trends and achievements
4. Warning about concerning patterns

For each insight, categorize as:
- "positive": Celebrating good patterns or achievements
- "warning": Alerting to concerning trends that need attention
- "recommendation": Suggesting specific actions to improve
- "pattern": Highlighting interesting correlations discovered

Provide confidence level (high/medium/low) based on data quality and sample size.

Data to analyze:
{data_summary}

Respond in JSON format with an array of at most {max_insights} insights, each containing:
{{
  "type": "positive|warning|recommendation|pattern",
  "title": "Brief title (max 25 chars)",
  "description": "Clear explanation of the insight",
  "confidence": "high|medium|low",
  "actionable": "Specific action the user can take (optional)"
}}
"""

    def get_system_prompt(self) -> str:
        return self.SYSTEM_PROMPT

    def get_insights_prompt(self, data_summary: str, max_insights: int = 5) -> str:
        """Промпт с данными пользователя"""
        return self.INSIGHTS_TEMPLATE.format(data_summary=data_summary, max_insights=max_insights)

# ===== RESPONSE PARSING =====

_CODE_FENCE = re.compile(r"^\s*```(?:json)?\s*|\s*```\s*$", re.IGNORECASE)
_INSIGHT_TYPES = {t.value for t in InsightType}
_CONFIDENCE_LEVELS = {c.value for c in InsightConfidence}

def parse_insights_payload(content: Optional[str], max_insights: int = 5) -> List[Insight]:
    """Разбор и валидация JSON ответа провайдера"""
    if not content or not content.strip():
        raise AIResponseFormatError("Empty response content")

    cleaned = _CODE_FENCE.sub("", content.strip())
    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise AIResponseFormatError(f"Response is not valid JSON: {e}")

    if isinstance(payload, Mapping) and isinstance(payload.get('insights'), list):
        payload = payload['insights']
    if not isinstance(payload, list):
        raise AIResponseFormatError(f"Expected JSON array, got {type(payload).__name__}")

    items = [item for item in payload if isinstance(item, Mapping)][:max_insights]
    if not items:
        raise AIResponseFormatError("Response contains no insights")

    insights = []
    for index, item in enumerate(items):
        # списки и объекты в type/confidence считаются невалидными значениями
        insight_type = item.get('type') if isinstance(item.get('type'), str) else None
        confidence = item.get('confidence') if isinstance(item.get('confidence'), str) else None
        insights.append(Insight(
            type=insight_type if insight_type in _INSIGHT_TYPES else InsightType.RECOMMENDATION.value,
            title=str(item.get('title') or f"Insight {index + 1}"),
            description=str(item.get('description') or "No description available"),
            confidence=confidence if confidence in _CONFIDENCE_LEVELS else InsightConfidence.MEDIUM.value,
            actionable=str(item['actionable']) if item.get('actionable') else None
        ))
    return insights

# ===== OPENAI PROVIDER =====

class OpenAIInsightProvider:
    """Провайдер инсайтов на OpenAI Chat Completions"""

    def __init__(self, api_key: Optional[str], model: str = "gpt-4o-mini", max_tokens: int = 1500,
                 temperature: float = 0.7, timeout: int = 30, client: Optional[AsyncOpenAI] = None):
        if client is None and not api_key:
            raise AINotConfiguredError("OpenAI API key not configured")

        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout
        self.client = client or AsyncOpenAI(api_key=api_key, timeout=timeout)

    async def complete(self, system_prompt: str, user_prompt: str) -> str:
        """Один запрос к OpenAI, без повторов"""
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt}
                ],
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                timeout=self.timeout
            )
        except openai.RateLimitError as e:
            if getattr(e, 'code', None) == 'insufficient_quota':
                raise AIRateLimitError("OpenAI quota exceeded")
            raise AIRateLimitError("OpenAI rate limit exceeded")
        except openai.APITimeoutError:
            raise AIProviderError("OpenAI request timeout")
        except openai.APIConnectionError as e:
            raise AIProviderError(f"OpenAI connection failed: {e}")
        except openai.APIStatusError as e:
            raise AIProviderError(f"OpenAI API error: {e.status_code}")

        if not response.choices:
            raise AIResponseFormatError("OpenAI response has no choices")

        content = response.choices[0].message.content
        if content is None:
            raise AIResponseFormatError("OpenAI response has no content")

        logger.info("OpenAI API response received successfully")
        return content.strip()

# ===== RULE-BASED FALLBACK =====

class RuleBasedInsightProvider:
    """Детерминированные инсайты по порогам"""

    def __init__(self, max_insights: int = 5, trend_margin: float = 0.0, min_insights: int = 2):
        self.max_insights = max_insights
        self.trend_margin = trend_margin
        self.min_insights = min_insights

    def generate(self, summary: TrackingSummary) -> List[Insight]:
        """Инсайты по сводке; при внутренней ошибке - один статичный инсайт"""
        logger.info("Generating rule-based insights as fallback")
        try:
            insights = self._apply_rules(summary)
        except Exception as e:
            logger.error(f"Error generating rule-based insights: {e}", exc_info=True)
            return [ANALYSIS_UNAVAILABLE_INSIGHT]

        if len(insights) < self.min_insights:
            insights.append(MOTIVATIONAL_INSIGHT)

        logger.info(f"Generated {len(insights)} rule-based insights")
        return insights[:self.max_insights]

    def _apply_rules(self, summary: TrackingSummary) -> List[Insight]:
        insights: List[Insight] = []

        # Энергия
        avg_energy = summary.avg_combined_energy
        if avg_energy >= 75:
            insights.append(Insight(
                type=InsightType.POSITIVE.value,
                title="Strong Energy Levels",
                description=(f"Your average energy level of {avg_energy:.1f}% is excellent. "
                             "You're maintaining great energy consistency."),
                confidence=InsightConfidence.HIGH.value,
                actionable="Keep up your current routine - it's working well for your energy levels."
            ))
        elif avg_energy < 50:
            insights.append(Insight(
                type=InsightType.WARNING.value,
                title="Energy Boost Needed",
                description=f"Your average energy level of {avg_energy:.1f}% suggests room for improvement.",
                confidence=InsightConfidence.HIGH.value,
                actionable="Focus on improving sleep quality, regular exercise, and stress management."
            ))

        # Сон
        if summary.sleep_rated_days > 0:
            avg_sleep = summary.avg_sleep
            if avg_sleep >= 4:
                insights.append(Insight(
                    type=InsightType.POSITIVE.value,
                    title="Quality Sleep Habits",
                    description=(f"Your sleep quality of {avg_sleep:.1f}/5 is excellent and strongly "
                                 "supports your energy levels."),
                    confidence=InsightConfidence.HIGH.value
                ))
            elif avg_sleep < 3:
                insights.append(Insight(
                    type=InsightType.RECOMMENDATION.value,
                    title="Sleep Improvement Focus",
                    description=(f"Your sleep quality of {avg_sleep:.1f}/5 could be improved. "
                                 "Better sleep is the foundation of good energy."),
                    confidence=InsightConfidence.HIGH.value,
                    actionable="Establish a consistent bedtime routine and optimize your sleep environment."
                ))

        # Тренировки
        if summary.days > 0:
            rate = summary.exercise_rate
            if rate >= 50:
                insights.append(Insight(
                    type=InsightType.POSITIVE.value,
                    title="Active Lifestyle",
                    description=(f"You've exercised {summary.exercise_days} out of {summary.days} days "
                                 f"({rate:.0f}%). Regular movement supports sustained energy."),
                    confidence=InsightConfidence.HIGH.value
                ))
            elif rate < 25:
                insights.append(Insight(
                    type=InsightType.RECOMMENDATION.value,
                    title="Move More Opportunity",
                    description=(f"You've exercised {summary.exercise_days} out of {summary.days} days. "
                                 "Regular movement can significantly boost energy levels."),
                    confidence=InsightConfidence.MEDIUM.value,
                    actionable="Try to incorporate light exercise like walking or stretching into your daily routine."
                ))

        # Гидратация
        if summary.avg_hydration < 6:
            insights.append(Insight(
                type=InsightType.RECOMMENDATION.value,
                title="Hydration Focus",
                description=(f"Your average of {summary.avg_hydration:.1f} glasses of water per day "
                             "is below optimal levels."),
                confidence=InsightConfidence.MEDIUM.value,
                actionable="Aim for 8-10 glasses of water daily to support your energy and cognitive function."
            ))

        # Тренд энергии
        if summary.energy_trend > self.trend_margin:
            insights.append(Insight(
                type=InsightType.POSITIVE.value,
                title="Positive Energy Trend",
                description=("Your energy levels are trending upward. Your recent lifestyle changes "
                             "are making a positive impact."),
                confidence=InsightConfidence.HIGH.value,
                actionable="Continue with your current routine - you're on the right track!"
            ))
        elif summary.energy_trend < -self.trend_margin:
            insights.append(Insight(
                type=InsightType.PATTERN.value,
                title="Energy Trend Alert",
                description=("Your energy levels have been declining recently. Let's identify what "
                             "might be affecting you."),
                confidence=InsightConfidence.MEDIUM.value,
                actionable="Review your sleep, stress levels, and lifestyle changes from the past week."
            ))

        return insights

# ===== MAIN INSIGHT ENGINE =====

EntriesInput = Iterable[Union[TrackingEntry, Mapping[str, Any]]]

class InsightEngine:
    """
    Движок инсайтов.

    Порядок: мало данных -> онбординг; иначе одна попытка AI провайдера;
    при любой ошибке провайдера -> анализ по правилам. Наружу исключения
    не пробрасываются.
    """

    def __init__(self, provider=None, min_entries: int = 3, window_size: int = 14,
                 max_insights: int = 5, trend_margin: float = 0.0,
                 prompt_manager: Optional[PromptManager] = None):
        self.provider = provider
        self.min_entries = min_entries
        self.window_size = window_size
        self.max_insights = max_insights
        self.prompt_manager = prompt_manager or PromptManager()
        self.fallback_provider = RuleBasedInsightProvider(
            max_insights=max_insights,
            trend_margin=trend_margin
        )

        logger.info(f"Insight engine initialized - AI provider: {'✅' if provider else '❌'}")

    @classmethod
    def from_config(cls, app_config=None) -> "InsightEngine":
        """Создание движка из конфигурации приложения"""
        if app_config is None:
            from config import config as app_config

        provider = None
        if app_config.ai.is_configured:
            try:
                provider = OpenAIInsightProvider(
                    api_key=app_config.ai.openai_api_key,
                    model=app_config.ai.openai_model,
                    max_tokens=app_config.ai.openai_max_tokens,
                    temperature=app_config.ai.openai_temperature,
                    timeout=app_config.ai.request_timeout
                )
            except AINotConfiguredError as e:
                logger.warning(f"OpenAI provider disabled: {e}")

        return cls(
            provider=provider,
            min_entries=app_config.insights.min_entries,
            window_size=app_config.insights.window_size,
            max_insights=app_config.insights.max_insights,
            trend_margin=app_config.insights.trend_margin
        )

    async def generate_insights(self, entries: EntriesInput) -> InsightResult:
        """Инсайты по истории записей; всегда возвращает хотя бы один инсайт"""
        try:
            entries = self._coerce_entries(entries)
            logger.info(f"Processing {len(entries)} tracking entries")

            if len(entries) < self.min_entries:
                logger.info("Insufficient data, returning onboarding insight")
                return InsightResult(
                    source=InsightSource.INSUFFICIENT_DATA,
                    insights=[ONBOARDING_INSIGHT]
                )

            summary = build_tracking_summary(entries, self.window_size)

            if self.provider is None:
                return self._fallback(summary, ErrorKind.NOT_CONFIGURED,
                                      notice="AI insights unavailable: AI service not configured")

            return await self._generate_ai_insights(summary)

        except Exception as e:
            logger.error(f"Critical error in insight generation: {e}", exc_info=True)
            return InsightResult(
                source=InsightSource.EMERGENCY,
                insights=[KEEP_TRACKING_INSIGHT],
                error_kind=ErrorKind.INTERNAL
            )

    async def _generate_ai_insights(self, summary: TrackingSummary) -> InsightResult:
        """Попытка AI с переходом на правила"""
        system_prompt = self.prompt_manager.get_system_prompt()
        user_prompt = self.prompt_manager.get_insights_prompt(format_summary(summary), self.max_insights)

        try:
            logger.info("Generating AI insights with provider...")
            content = await self.provider.complete(system_prompt, user_prompt)
            insights = parse_insights_payload(content, self.max_insights)

        except AIRateLimitError as e:
            logger.info(f"{e}, using rule-based insights")
            return self._fallback(summary, ErrorKind.RATE_LIMIT)

        except AIResponseFormatError as e:
            logger.error(f"Failed to parse provider response: {e}")
            return self._fallback(summary, ErrorKind.MALFORMED_RESPONSE)

        except Exception as e:
            logger.error(f"AI provider integration failed: {e}")
            return self._fallback(summary, ErrorKind.PROVIDER_ERROR,
                                  notice=f"AI insights unavailable: {e}")

        logger.info(f"Validated and processed {len(insights)} insights")
        return InsightResult(source=InsightSource.AI, insights=insights)

    def _fallback(self, summary: TrackingSummary, error_kind: ErrorKind,
                  notice: Optional[str] = None) -> InsightResult:
        return InsightResult(
            source=InsightSource.RULE_BASED,
            insights=self.fallback_provider.generate(summary),
            error_kind=error_kind,
            notice=notice
        )

    @staticmethod
    def _coerce_entries(entries: Optional[EntriesInput]) -> List[TrackingEntry]:
        if entries is None:
            return []
        items = list(entries)
        raw = [item for item in items if isinstance(item, Mapping)]
        parsed = [item for item in items if isinstance(item, TrackingEntry)]
        if raw:
            parsed.extend(parse_entries(raw))
        return parsed

# ===== CONVENIENCE FUNCTIONS =====

def create_insight_engine(app_config=None) -> InsightEngine:
    """Создать движок инсайтов"""
    return InsightEngine.from_config(app_config)

# ===== EXPORT =====

__all__ = [
    # Exceptions
    'AIServiceError',
    'AIProviderError',
    'AIRateLimitError',
    'AIResponseFormatError',
    'AINotConfiguredError',

    # Enums
    'InsightSource',
    'ErrorKind',

    # Fixed insights
    'ONBOARDING_INSIGHT',
    'KEEP_TRACKING_INSIGHT',
    'ANALYSIS_UNAVAILABLE_INSIGHT',
    'MOTIVATIONAL_INSIGHT',

    # Core components
    'InsightResult',
    'PromptManager',
    'parse_insights_payload',
    'OpenAIInsightProvider',
    'RuleBasedInsightProvider',
    'InsightEngine',

    # Convenience functions
    'create_insight_engine'
]
