# core/__init__.py

"""
Ядро Energy Tracker Analytics

Серии, бейджи и инсайты по истории записей самочувствия. Все движки
работают с переданными записями и ничего не сохраняют.
"""

from .models import TrackingEntry, LifestyleFactors, Insight, ValidationError, parse_entries
from .streaks import calculate_streaks, compute_streak, DEFAULT_CONDITIONS
from .achievements import (
    BadgeDefinition, Badge, BadgeEvaluation, build_default_catalog,
    evaluate_badges, find_newly_unlocked
)
from .analytics import TrackingSummary, build_tracking_summary, build_analytics
from .ai_service import InsightEngine, InsightResult, InsightSource, create_insight_engine

__all__ = [
    'TrackingEntry',
    'LifestyleFactors',
    'Insight',
    'ValidationError',
    'parse_entries',
    'calculate_streaks',
    'compute_streak',
    'DEFAULT_CONDITIONS',
    'BadgeDefinition',
    'Badge',
    'BadgeEvaluation',
    'build_default_catalog',
    'evaluate_badges',
    'find_newly_unlocked',
    'TrackingSummary',
    'build_tracking_summary',
    'build_analytics',
    'InsightEngine',
    'InsightResult',
    'InsightSource',
    'create_insight_engine'
]
