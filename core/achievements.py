#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Energy Tracker Analytics - Badge System
Каталог бейджей и вычисление прогресса по истории записей

Версия: 1.2.0
Дата: 2025-08-04
"""

from datetime import date
from typing import Dict, List, Optional, Any, Callable, Sequence, Iterable
from dataclasses import dataclass, field
from enum import Enum
from abc import ABC, abstractmethod
import logging

from core.models import TrackingEntry, MoodType
from core.streaks import (
    StreakResult, calculate_streaks, DEFAULT_LOOKBACK_DAYS,
    GOOD_SLEEP, HEALTHY_NUTRITION, EXERCISE, HYDRATION,
    LOW_STRESS, HIGH_ENERGY, DAILY_TRACKING
)

logger = logging.getLogger(__name__)

NEAR_PROGRESS_RATIO = 0.5
DISPLAY_LIMIT = 4
RECENT_UNLOCKED_LIMIT = 6

# ===== ENUMS =====

class BadgeCategory(Enum):
    """Категории бейджей"""
    FOUNDATION = "foundation"
    CONSISTENCY = "consistency"
    WELLNESS = "wellness"
    ENERGY = "energy"
    SPECIAL = "special"
    MASTERY = "mastery"

class BadgeTier(Enum):
    """Уровни бейджей"""
    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"
    PLATINUM = "platinum"
    DIAMOND = "diamond"

class BadgeRarity(Enum):
    """Редкость бейджей"""
    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"

# ===== PROGRESS CONTEXT =====

@dataclass(frozen=True)
class ProgressContext:
    """Снимок данных для вычисления прогресса"""
    entries: Sequence[TrackingEntry]
    streaks: StreakResult

    def count(self, predicate: Callable[[TrackingEntry], bool]) -> int:
        return sum(1 for entry in self.entries if predicate(entry))

    def streak(self, name: str) -> int:
        return self.streaks.get(name, 0) or 0

# ===== PROGRESS CHECKERS =====

class ProgressChecker(ABC):
    """Базовый класс правила прогресса"""

    @abstractmethod
    def get_progress(self, context: ProgressContext) -> int:
        """Текущий прогресс"""
        pass

class SimpleCountChecker(ProgressChecker):
    """Количество подходящих записей"""

    def __init__(self, predicate: Callable[[TrackingEntry], bool]):
        self.predicate = predicate

    def get_progress(self, context: ProgressContext) -> int:
        return context.count(self.predicate)

class CappedCountChecker(SimpleCountChecker):
    """Количество подходящих записей, ограниченное сверху"""

    def __init__(self, predicate: Callable[[TrackingEntry], bool], cap: int):
        super().__init__(predicate)
        self.cap = cap

    def get_progress(self, context: ProgressContext) -> int:
        return min(self.cap, super().get_progress(context))

class StreakChecker(ProgressChecker):
    """Длина одной серии"""

    def __init__(self, streak_name: str):
        self.streak_name = streak_name

    def get_progress(self, context: ProgressContext) -> int:
        return context.streak(self.streak_name)

class MinStreakChecker(ProgressChecker):
    """Минимум по нескольким сериям - все серии поддерживаются одновременно"""

    def __init__(self, streak_names: Sequence[str]):
        self.streak_names = list(streak_names)

    def get_progress(self, context: ProgressContext) -> int:
        if not self.streak_names:
            return 0
        return min(context.streak(name) for name in self.streak_names)

# ===== DATA CLASSES =====

@dataclass(frozen=True)
class BadgeDefinition:
    """Определение бейджа в каталоге"""
    badge_id: str
    title: str
    description: str
    category: BadgeCategory
    tier: BadgeTier
    target_progress: int
    checker: ProgressChecker
    rarity: BadgeRarity
    celebration_message: str
    icon: str = "🏅"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.badge_id,
            'title': self.title,
            'description': self.description,
            'category': self.category.value,
            'tier': self.tier.value,
            'targetProgress': self.target_progress,
            'rarity': self.rarity.value,
            'celebrationMessage': self.celebration_message,
            'icon': self.icon
        }

@dataclass(frozen=True)
class BadgeState:
    """Вычисленное состояние бейджа (не хранится)"""
    current_progress: int
    is_unlocked: bool

@dataclass(frozen=True)
class Badge:
    """Бейдж с текущим состоянием"""
    definition: BadgeDefinition
    state: BadgeState

    @property
    def badge_id(self) -> str:
        return self.definition.badge_id

    @property
    def is_unlocked(self) -> bool:
        return self.state.is_unlocked

    @property
    def current_progress(self) -> int:
        return self.state.current_progress

    @property
    def progress_percentage(self) -> float:
        """Процент выполнения"""
        target = self.definition.target_progress
        if target <= 0:
            return 100.0
        return min(100.0, (self.state.current_progress / target) * 100)

    def to_dict(self) -> Dict[str, Any]:
        data = self.definition.to_dict()
        data.update({
            'currentProgress': self.state.current_progress,
            'isUnlocked': self.state.is_unlocked,
            'progressPercentage': round(self.progress_percentage, 1)
        })
        return data

@dataclass(frozen=True)
class BadgeEvaluation:
    """Результат оценки каталога"""
    badges: List[Badge] = field(default_factory=list)
    unlocked: List[Badge] = field(default_factory=list)
    near_progress: List[Badge] = field(default_factory=list)
    upcoming: List[Badge] = field(default_factory=list)
    streaks: StreakResult = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'unlocked': [b.to_dict() for b in self.unlocked],
            'nearProgress': [b.to_dict() for b in self.near_progress],
            'upcoming': [b.to_dict() for b in self.upcoming],
            'categories': summarize_by_category(self.badges),
            'streaks': dict(self.streaks)
        }

# ===== EVALUATION =====

def evaluate_badge(definition: BadgeDefinition, context: ProgressContext) -> Badge:
    """Прогресс и статус одного бейджа"""
    progress = max(0, int(definition.checker.get_progress(context)))
    return Badge(
        definition=definition,
        state=BadgeState(
            current_progress=progress,
            is_unlocked=progress >= definition.target_progress
        )
    )

def evaluate_badges(entries: Iterable[TrackingEntry], catalog: Sequence[BadgeDefinition],
                    today: Optional[date] = None, lookback_days: int = DEFAULT_LOOKBACK_DAYS,
                    tz=None) -> BadgeEvaluation:
    """
    Оценка всего каталога по истории записей.

    Чистая функция: состояние бейджей не сохраняется, а каждый раз
    пересчитывается из записей. Списки near_progress и upcoming
    сохраняют порядок каталога.
    """
    entries = list(entries or [])
    streaks = calculate_streaks(entries, lookback_days=lookback_days, today=today, tz=tz)
    context = ProgressContext(entries=entries, streaks=streaks)

    badges = [evaluate_badge(definition, context) for definition in catalog]

    unlocked = [b for b in badges if b.is_unlocked]
    locked = [b for b in badges if not b.is_unlocked]
    near_progress = [
        b for b in locked
        if b.current_progress >= b.definition.target_progress * NEAR_PROGRESS_RATIO
    ]
    upcoming = [
        b for b in locked
        if b.current_progress < b.definition.target_progress * NEAR_PROGRESS_RATIO
    ]

    logger.debug(f"Badges evaluated: {len(unlocked)}/{len(badges)} unlocked")

    return BadgeEvaluation(
        badges=badges,
        unlocked=unlocked,
        near_progress=near_progress[:DISPLAY_LIMIT],
        upcoming=upcoming[:DISPLAY_LIMIT],
        streaks=streaks
    )

def summarize_by_category(badges: Iterable[Badge]) -> Dict[str, Dict[str, Any]]:
    """Статистика по категориям"""
    badges = list(badges)
    category_stats = {}
    for category in BadgeCategory:
        category_badges = [b for b in badges if b.definition.category == category]
        earned = sum(1 for b in category_badges if b.is_unlocked)
        total = len(category_badges)

        category_stats[category.value] = {
            'earned': earned,
            'total': total,
            'percentage': (earned / total * 100) if total > 0 else 0
        }
    return category_stats

def find_newly_unlocked(previous: Optional[BadgeEvaluation], current: BadgeEvaluation) -> List[Badge]:
    """Бейджи, перешедшие из закрытых в открытые между двумя оценками"""
    previously_unlocked = {b.badge_id for b in previous.unlocked} if previous else set()
    return [b for b in current.unlocked if b.badge_id not in previously_unlocked]

def recent_unlocked(evaluation: BadgeEvaluation, limit: int = RECENT_UNLOCKED_LIMIT) -> List[Badge]:
    """Последние открытые бейджи для отображения"""
    if limit <= 0:
        return []
    return evaluation.unlocked[-limit:]

def format_celebration(badge: Badge) -> str:
    """Сообщение о новом бейдже"""
    definition = badge.definition
    return (
        f"{definition.icon} {definition.title} ({definition.tier.value})\n"
        f"{definition.celebration_message}"
    )

# ===== DEFAULT CATALOG =====

def _all_factors(entry: TrackingEntry) -> bool:
    return entry.lifestyle_factors.is_complete

def build_default_catalog() -> List[BadgeDefinition]:
    """Стандартный каталог бейджей"""
    return [
        # ===== FOUNDATION (BRONZE) =====
        BadgeDefinition(
            badge_id="first-steps",
            title="First Steps",
            description="Complete your first energy check-in",
            category=BadgeCategory.FOUNDATION,
            tier=BadgeTier.BRONZE,
            target_progress=1,
            checker=CappedCountChecker(lambda e: True, 1),
            rarity=BadgeRarity.COMMON,
            celebration_message="🌟 Welcome to your energy journey! First step taken!",
            icon="⭐"
        ),
        BadgeDefinition(
            badge_id="early-riser",
            title="Early Riser",
            description="Complete 3 morning check-ins",
            category=BadgeCategory.FOUNDATION,
            tier=BadgeTier.BRONZE,
            target_progress=3,
            checker=SimpleCountChecker(lambda e: e.is_morning),
            rarity=BadgeRarity.COMMON,
            celebration_message="🌅 Early Riser! Morning energy tracking mastered!",
            icon="🌅"
        ),
        BadgeDefinition(
            badge_id="hydration-starter",
            title="Hydration Starter",
            description="Track hydration for 3 days",
            category=BadgeCategory.FOUNDATION,
            tier=BadgeTier.BRONZE,
            target_progress=3,
            checker=SimpleCountChecker(lambda e: e.lifestyle_factors.hydration > 0),
            rarity=BadgeRarity.COMMON,
            celebration_message="💧 Hydration Starter! Water tracking begins!",
            icon="💧"
        ),

        # ===== CONSISTENCY (SILVER) =====
        BadgeDefinition(
            badge_id="consistency-champion",
            title="Consistency Champion",
            description="Track daily for 7 consecutive days",
            category=BadgeCategory.CONSISTENCY,
            tier=BadgeTier.SILVER,
            target_progress=7,
            checker=StreakChecker(DAILY_TRACKING),
            rarity=BadgeRarity.UNCOMMON,
            celebration_message="📅 Consistency Champion! 7 days of dedication!",
            icon="📅"
        ),
        BadgeDefinition(
            badge_id="sleep-guardian",
            title="Sleep Guardian",
            description="Quality sleep for 7 consecutive days",
            category=BadgeCategory.CONSISTENCY,
            tier=BadgeTier.SILVER,
            target_progress=7,
            checker=StreakChecker(GOOD_SLEEP),
            rarity=BadgeRarity.UNCOMMON,
            celebration_message="🌙 Sleep Guardian! Rest is your strength!",
            icon="🌙"
        ),
        BadgeDefinition(
            badge_id="nutrition-warrior",
            title="Nutrition Warrior",
            description="Healthy eating for 7 consecutive days",
            category=BadgeCategory.CONSISTENCY,
            tier=BadgeTier.SILVER,
            target_progress=7,
            checker=StreakChecker(HEALTHY_NUTRITION),
            rarity=BadgeRarity.UNCOMMON,
            celebration_message="🍎 Nutrition Warrior! Fueling greatness daily!",
            icon="🍎"
        ),

        # ===== WELLNESS (GOLD) =====
        BadgeDefinition(
            badge_id="zen-master",
            title="Zen Master",
            description="Maintain low stress for 10 consecutive days",
            category=BadgeCategory.WELLNESS,
            tier=BadgeTier.GOLD,
            target_progress=10,
            checker=StreakChecker(LOW_STRESS),
            rarity=BadgeRarity.RARE,
            celebration_message="🧘 Zen Master! Inner peace achieved!",
            icon="❤️"
        ),
        BadgeDefinition(
            badge_id="fitness-legend",
            title="Fitness Legend",
            description="Exercise for 14 consecutive days",
            category=BadgeCategory.WELLNESS,
            tier=BadgeTier.GOLD,
            target_progress=14,
            checker=StreakChecker(EXERCISE),
            rarity=BadgeRarity.RARE,
            celebration_message="💪 Fitness Legend! Movement is your medicine!",
            icon="🏋️"
        ),
        BadgeDefinition(
            badge_id="wellness-champion",
            title="Wellness Champion",
            description="Complete all lifestyle factors for 5 days",
            category=BadgeCategory.WELLNESS,
            tier=BadgeTier.GOLD,
            target_progress=5,
            checker=SimpleCountChecker(_all_factors),
            rarity=BadgeRarity.RARE,
            celebration_message="🛡️ Wellness Champion! Complete lifestyle mastery!",
            icon="🛡️"
        ),

        # ===== ENERGY (PLATINUM) =====
        BadgeDefinition(
            badge_id="energy-master",
            title="Energy Master",
            description="High energy levels for 10 consecutive days",
            category=BadgeCategory.ENERGY,
            tier=BadgeTier.PLATINUM,
            target_progress=10,
            checker=StreakChecker(HIGH_ENERGY),
            rarity=BadgeRarity.EPIC,
            celebration_message="⚡ Energy Master! You radiate vitality!",
            icon="⚡"
        ),
        BadgeDefinition(
            badge_id="peak-performer",
            title="Peak Performer",
            description="Average energy above 85% for 7 days",
            category=BadgeCategory.ENERGY,
            tier=BadgeTier.PLATINUM,
            target_progress=7,
            checker=CappedCountChecker(lambda e: e.energy_sum >= 85, 7),
            rarity=BadgeRarity.EPIC,
            celebration_message="🏔️ Peak Performer! You've reached new heights!",
            icon="🏔️"
        ),

        # ===== SPECIAL =====
        BadgeDefinition(
            badge_id="morning-glory",
            title="Morning Glory",
            description="Complete 10 morning check-ins with high energy",
            category=BadgeCategory.SPECIAL,
            tier=BadgeTier.GOLD,
            target_progress=10,
            checker=SimpleCountChecker(lambda e: e.is_morning and e.energy_sum >= 80),
            rarity=BadgeRarity.RARE,
            celebration_message="☕ Morning Glory! You own the dawn!",
            icon="☕"
        ),
        BadgeDefinition(
            badge_id="mood-booster",
            title="Mood Booster",
            description="Log 15 happy moods",
            category=BadgeCategory.SPECIAL,
            tier=BadgeTier.SILVER,
            target_progress=15,
            checker=SimpleCountChecker(lambda e: e.mood == MoodType.HAPPY.value),
            rarity=BadgeRarity.UNCOMMON,
            celebration_message="😊 Mood Booster! Happiness is your superpower!",
            icon="😊"
        ),

        # ===== MASTERY (DIAMOND) =====
        BadgeDefinition(
            badge_id="habit-architect",
            title="Habit Architect",
            description="Track daily for 30 consecutive days",
            category=BadgeCategory.MASTERY,
            tier=BadgeTier.DIAMOND,
            target_progress=30,
            checker=StreakChecker(DAILY_TRACKING),
            rarity=BadgeRarity.LEGENDARY,
            celebration_message="👑 Habit Architect! You build excellence daily!",
            icon="👑"
        ),
        BadgeDefinition(
            badge_id="ultimate-warrior",
            title="Ultimate Warrior",
            description="Maintain all streaks for 21 consecutive days",
            category=BadgeCategory.MASTERY,
            tier=BadgeTier.DIAMOND,
            target_progress=21,
            checker=MinStreakChecker([GOOD_SLEEP, HEALTHY_NUTRITION, EXERCISE, HYDRATION, HIGH_ENERGY]),
            rarity=BadgeRarity.LEGENDARY,
            celebration_message="💎 Ultimate Warrior! You are the master of your energy!",
            icon="💎"
        ),
        BadgeDefinition(
            badge_id="energy-sage",
            title="Energy Sage",
            description="Complete 100 total check-ins",
            category=BadgeCategory.MASTERY,
            tier=BadgeTier.DIAMOND,
            target_progress=100,
            checker=SimpleCountChecker(lambda e: True),
            rarity=BadgeRarity.LEGENDARY,
            celebration_message="✨ Energy Sage! Wisdom flows through your dedication!",
            icon="✨"
        ),
    ]

__all__ = [
    # Enums
    'BadgeCategory',
    'BadgeTier',
    'BadgeRarity',

    # Checkers
    'ProgressContext',
    'ProgressChecker',
    'SimpleCountChecker',
    'CappedCountChecker',
    'StreakChecker',
    'MinStreakChecker',

    # Data classes
    'BadgeDefinition',
    'BadgeState',
    'Badge',
    'BadgeEvaluation',

    # Functions
    'evaluate_badge',
    'evaluate_badges',
    'summarize_by_category',
    'find_newly_unlocked',
    'recent_unlocked',
    'format_celebration',
    'build_default_catalog'
]
