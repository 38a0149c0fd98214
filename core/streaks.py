#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Energy Tracker Analytics - Streak Engine
Подсчет серий последовательных дней по условиям

Версия: 1.2.0
Дата: 2025-08-04
"""

from collections import defaultdict
from datetime import date, timedelta
from typing import Callable, Dict, Iterable, List, Optional
import logging

from core.models import TrackingEntry, StressLevel, sort_entries_desc
from utils.datetime_utils import get_timezone, today_local, local_day

logger = logging.getLogger(__name__)

EntryPredicate = Callable[[TrackingEntry], bool]
StreakResult = Dict[str, int]

DEFAULT_LOOKBACK_DAYS = 30

# ===== STREAK CONDITIONS =====

GOOD_SLEEP = "goodSleep"
HEALTHY_NUTRITION = "healthyNutrition"
EXERCISE = "exercise"
HYDRATION = "hydration"
LOW_STRESS = "lowStress"
HIGH_ENERGY = "highEnergy"
DAILY_TRACKING = "dailyTracking"

DEFAULT_CONDITIONS: Dict[str, EntryPredicate] = {
    GOOD_SLEEP: lambda e: e.lifestyle_factors.sleep >= 4,
    HEALTHY_NUTRITION: lambda e: e.lifestyle_factors.nutrition >= 4,
    EXERCISE: lambda e: e.lifestyle_factors.exercise is True,
    HYDRATION: lambda e: e.lifestyle_factors.hydration >= 8,
    LOW_STRESS: lambda e: e.stress == StressLevel.LOW.value,
    HIGH_ENERGY: lambda e: e.energy_sum >= 80,
    DAILY_TRACKING: lambda e: True,
}

# ===== ENGINE =====

def _bucket_by_day(entries: Iterable[TrackingEntry], tz) -> Dict[date, List[TrackingEntry]]:
    buckets: Dict[date, List[TrackingEntry]] = defaultdict(list)
    for entry in entries:
        buckets[local_day(entry.timestamp, tz)].append(entry)
    return buckets

def _streak_from_buckets(buckets: Dict[date, List[TrackingEntry]], predicate: EntryPredicate,
                         lookback_days: int, today: date) -> int:
    streak = 0
    check_date = today

    for i in range(lookback_days):
        day_entries = buckets.get(check_date, [])

        if day_entries and any(predicate(entry) for entry in day_entries):
            streak += 1
        elif i == 0:
            # Сегодня еще нет отметки - серия не прерывается, начинаем со вчера
            check_date -= timedelta(days=1)
            continue
        else:
            break

        check_date -= timedelta(days=1)

    return streak

def compute_streak(entries: Iterable[TrackingEntry], predicate: EntryPredicate,
                   lookback_days: int = DEFAULT_LOOKBACK_DAYS, today: Optional[date] = None,
                   tz=None) -> int:
    """
    Количество последовательных дней (назад от сегодня), в которые
    хотя бы одна запись удовлетворяет условию.

    Отсутствие отметки сегодня серию не прерывает, любой другой
    пропущенный день - прерывает.
    """
    if lookback_days <= 0:
        return 0

    tz = get_timezone(tz)
    sorted_entries = sort_entries_desc(entries, tz)
    if not sorted_entries:
        return 0

    today = today or today_local(tz)
    buckets = _bucket_by_day(sorted_entries, tz)

    return _streak_from_buckets(buckets, predicate, lookback_days, today)

def calculate_streaks(entries: Iterable[TrackingEntry],
                      conditions: Optional[Dict[str, EntryPredicate]] = None,
                      lookback_days: int = DEFAULT_LOOKBACK_DAYS,
                      today: Optional[date] = None, tz=None) -> StreakResult:
    """Серии по всем именованным условиям"""
    conditions = conditions if conditions is not None else DEFAULT_CONDITIONS
    entries = list(entries or [])

    streaks = {
        name: compute_streak(entries, predicate, lookback_days, today=today, tz=tz)
        for name, predicate in conditions.items()
    }
    logger.debug(f"Calculated {len(streaks)} streaks over {len(entries)} entries")
    return streaks

__all__ = [
    'EntryPredicate',
    'StreakResult',
    'DEFAULT_LOOKBACK_DAYS',
    'DEFAULT_CONDITIONS',
    'GOOD_SLEEP',
    'HEALTHY_NUTRITION',
    'EXERCISE',
    'HYDRATION',
    'LOW_STRESS',
    'HIGH_ENERGY',
    'DAILY_TRACKING',
    'compute_streak',
    'calculate_streaks'
]
