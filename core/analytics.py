#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Energy Tracker Analytics - Statistics
Статистическая сводка по окну записей для инсайтов и аналитики

Версия: 1.2.0
Дата: 2025-08-04
"""

from collections import Counter
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Any, Iterable, Sequence
import logging

from core.models import TrackingEntry, StressLevel, sort_entries_desc
from core.streaks import calculate_streaks, DEFAULT_LOOKBACK_DAYS

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_SIZE = 14

def _average(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0

@dataclass(frozen=True)
class TrackingSummary:
    """Сводка по окну записей"""
    days: int
    avg_physical_energy: float = 0.0
    avg_cognitive_clarity: float = 0.0
    avg_combined_energy: float = 0.0
    energy_trend: float = 0.0

    avg_sleep: float = 0.0
    sleep_rated_days: int = 0
    poor_sleep_days: int = 0
    good_sleep_days: int = 0

    exercise_days: int = 0
    exercise_energy_avg: float = 0.0
    non_exercise_energy_avg: float = 0.0
    avg_hydration: float = 0.0
    avg_nutrition: float = 0.0

    high_stress_days: int = 0
    low_stress_days: int = 0
    mood_counts: Dict[str, int] = field(default_factory=dict)

    @property
    def exercise_rate(self) -> float:
        """Доля дней с тренировкой, %"""
        if self.days == 0:
            return 0.0
        return self.exercise_days / self.days * 100

    @property
    def trend_label(self) -> str:
        if self.energy_trend > 0:
            return "Improving"
        if self.energy_trend < 0:
            return "Declining"
        return "Stable"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'days': self.days,
            'avgPhysicalEnergy': round(self.avg_physical_energy, 1),
            'avgCognitiveClarity': round(self.avg_cognitive_clarity, 1),
            'avgCombinedEnergy': round(self.avg_combined_energy, 1),
            'energyTrend': round(self.energy_trend, 1),
            'avgSleep': round(self.avg_sleep, 1),
            'poorSleepDays': self.poor_sleep_days,
            'goodSleepDays': self.good_sleep_days,
            'exerciseDays': self.exercise_days,
            'exerciseRate': round(self.exercise_rate, 1),
            'avgHydration': round(self.avg_hydration, 1),
            'avgNutrition': round(self.avg_nutrition, 1),
            'highStressDays': self.high_stress_days,
            'lowStressDays': self.low_stress_days,
            'moodCounts': dict(self.mood_counts)
        }

def recent_window(entries: Iterable[TrackingEntry], window_size: int = DEFAULT_WINDOW_SIZE) -> List[TrackingEntry]:
    """Последние N записей в хронологическом порядке"""
    newest_first = sort_entries_desc(entries)[:max(0, window_size)]
    return list(reversed(newest_first))

def build_tracking_summary(entries: Iterable[TrackingEntry],
                           window_size: int = DEFAULT_WINDOW_SIZE) -> TrackingSummary:
    """Сводка по последним window_size записям"""
    window = recent_window(entries, window_size)
    if not window:
        return TrackingSummary(days=0)

    combined = [e.combined_energy for e in window]

    # Сон учитывается только по дням с оценкой
    sleep_ratings = [e.lifestyle_factors.sleep for e in window if e.lifestyle_factors.sleep > 0]

    exercise_entries = [e for e in window if e.lifestyle_factors.exercise]
    non_exercise_entries = [e for e in window if not e.lifestyle_factors.exercise]

    # Тренд: вторая половина окна против первой
    half = len(window) // 2
    first_half = combined[:half]
    second_half = combined[half:]
    energy_trend = _average(second_half) - _average(first_half) if first_half else 0.0

    return TrackingSummary(
        days=len(window),
        avg_physical_energy=_average([e.physical_energy for e in window]),
        avg_cognitive_clarity=_average([e.cognitive_clarity for e in window]),
        avg_combined_energy=_average(combined),
        energy_trend=energy_trend,
        avg_sleep=_average(sleep_ratings),
        sleep_rated_days=len(sleep_ratings),
        poor_sleep_days=sum(1 for s in sleep_ratings if s <= 2),
        good_sleep_days=sum(1 for s in sleep_ratings if s >= 4),
        exercise_days=len(exercise_entries),
        exercise_energy_avg=_average([e.combined_energy for e in exercise_entries]),
        non_exercise_energy_avg=_average([e.combined_energy for e in non_exercise_entries]),
        avg_hydration=_average([e.lifestyle_factors.hydration for e in window]),
        avg_nutrition=_average([e.lifestyle_factors.nutrition for e in window]),
        high_stress_days=sum(1 for e in window if e.stress == StressLevel.HIGH.value),
        low_stress_days=sum(1 for e in window if e.stress == StressLevel.LOW.value),
        mood_counts=dict(Counter(e.mood for e in window))
    )

def format_summary(summary: TrackingSummary) -> str:
    """Текстовая сводка для AI провайдера"""
    mood_distribution = ", ".join(f"{mood}: {count}" for mood, count in summary.mood_counts.items())

    return f"""
User Energy Tracking Data Summary ({summary.days} days):

ENERGY METRICS:
- Average Physical Energy: {summary.avg_physical_energy:.1f}/100
- Average Cognitive Clarity: {summary.avg_cognitive_clarity:.1f}/100
- Combined Energy Average: {summary.avg_combined_energy:.1f}/100
- Energy Trend: {summary.trend_label} ({summary.energy_trend:.1f} point change)

SLEEP:
- Average Sleep Quality: {summary.avg_sleep:.1f}/5
- Poor Sleep Days (≤2): {summary.poor_sleep_days}
- Good Sleep Days (≥4): {summary.good_sleep_days}

LIFESTYLE FACTORS:
- Exercise Days: {summary.exercise_days}/{summary.days} ({summary.exercise_rate:.1f}%)
- Energy on Exercise Days: {summary.exercise_energy_avg:.1f}/100
- Energy on Non-Exercise Days: {summary.non_exercise_energy_avg:.1f}/100
- Average Hydration: {summary.avg_hydration:.1f} glasses/day
- Average Nutrition Score: {summary.avg_nutrition:.1f}/5

STRESS & MOOD:
- High Stress Days: {summary.high_stress_days}
- Low Stress Days: {summary.low_stress_days}
- Mood Distribution: {mood_distribution}

PATTERNS TO ANALYZE:
- Correlation between sleep quality and energy levels
- Impact of exercise on daily energy
- Stress patterns and their effect on well-being
- Hydration and nutrition impact on performance
- Weekly patterns (weekday vs weekend energy)
"""

def build_analytics(entries: Iterable[TrackingEntry], today: Optional[date] = None,
                    lookback_days: int = DEFAULT_LOOKBACK_DAYS, tz=None) -> Dict[str, Any]:
    """Общая аналитика по всей истории записей"""
    sorted_entries = sort_entries_desc(entries, tz)
    total = len(sorted_entries)

    avg_cognitive = _average([e.cognitive_clarity for e in sorted_entries])
    avg_physical = _average([e.physical_energy for e in sorted_entries])

    return {
        'totalTrackingEntries': total,
        'averages': {
            'cognitiveClarity': round(avg_cognitive, 1),
            'physicalEnergy': round(avg_physical, 1)
        },
        'trends': {
            'mood': dict(Counter(e.mood for e in sorted_entries)),
            'stress': dict(Counter(e.stress for e in sorted_entries))
        },
        'streaks': calculate_streaks(sorted_entries, lookback_days=lookback_days, today=today, tz=tz),
        'lastEntry': sorted_entries[0].to_dict() if sorted_entries else None
    }

__all__ = [
    'DEFAULT_WINDOW_SIZE',
    'TrackingSummary',
    'recent_window',
    'build_tracking_summary',
    'format_summary',
    'build_analytics'
]
