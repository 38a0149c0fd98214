#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Energy Tracker Analytics - Core Data Models
Модели записей трекинга и инсайтов с валидацией

Версия: 1.2.0
Дата: 2025-08-04
"""

import math
import uuid
from datetime import datetime
from typing import Dict, List, Optional, Any, Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
import logging

from utils.datetime_utils import localize, parse_timestamp

logger = logging.getLogger(__name__)

# ===== ENUMS =====

class MoodType(Enum):
    """Настроения"""
    HAPPY = "happy"
    EXCITED = "excited"
    CALM = "calm"
    NEUTRAL = "neutral"
    TIRED = "tired"
    SAD = "sad"
    ANXIOUS = "anxious"
    FRUSTRATED = "frustrated"

class StressLevel(Enum):
    """Уровни стресса"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

class CheckInType(Enum):
    """Типы чек-инов"""
    MORNING = "morning"
    MIDDAY = "midday"
    AFTERNOON = "afternoon"
    EVENING = "evening"

class InsightType(Enum):
    """Типы инсайтов"""
    POSITIVE = "positive"
    WARNING = "warning"
    RECOMMENDATION = "recommendation"
    PATTERN = "pattern"

class InsightConfidence(Enum):
    """Уверенность инсайта"""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

# ===== VALIDATION HELPERS =====

class ValidationError(Exception):
    """Ошибка валидации данных"""
    pass

ENERGY_SCALE_MAX = 100
CHECKIN_SCALE_MAX = 12

def normalize_energy(value: Any, scale: int = ENERGY_SCALE_MAX) -> float:
    """Приведение оценки энергии к шкале 0-100"""
    number = _to_float(value)
    if scale == ENERGY_SCALE_MAX or scale <= 0:
        return number
    return round(number / scale * ENERGY_SCALE_MAX, 2)

def _to_float(value: Any) -> float:
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    # nan и inf из JSON строк считаются отсутствующим значением
    return number if math.isfinite(number) else 0.0

def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ('true', '1', 'yes')
    return bool(value)

def _pick(data: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    """Первое найденное значение среди вариантов ключа (camelCase / snake_case)"""
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default

# ===== CORE MODELS =====

@dataclass(frozen=True)
class LifestyleFactors:
    """Факторы образа жизни за день"""
    sleep: float = 0.0          # качество сна 1-5
    hydration: float = 0.0      # стаканы воды
    exercise: bool = False
    nutrition: float = 0.0      # качество питания 1-5
    social: bool = False
    caffeine: float = 0.0
    extra: Dict[str, Any] = field(default_factory=dict)

    _KNOWN_KEYS = ('sleep', 'hydration', 'exercise', 'nutrition', 'social', 'caffeine')

    @property
    def is_complete(self) -> bool:
        """Заполнены все основные факторы"""
        return bool(self.sleep and self.nutrition and self.exercise and self.hydration)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'sleep': self.sleep,
            'hydration': self.hydration,
            'exercise': self.exercise,
            'nutrition': self.nutrition,
            'social': self.social,
            'caffeine': self.caffeine
        }
        data.update(self.extra)
        return data

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "LifestyleFactors":
        if not data:
            return cls()
        if not isinstance(data, Mapping):
            logger.debug(f"Ignoring non-mapping lifestyle factors: {type(data).__name__}")
            return cls()

        extra = {k: v for k, v in data.items() if k not in cls._KNOWN_KEYS}
        return cls(
            sleep=_to_float(data.get('sleep')),
            hydration=_to_float(data.get('hydration')),
            exercise=_to_bool(data.get('exercise', False)),
            nutrition=_to_float(data.get('nutrition')),
            social=_to_bool(data.get('social', False)),
            caffeine=_to_float(data.get('caffeine')),
            extra=extra
        )

@dataclass(frozen=True)
class TrackingEntry:
    """Запись трекинга самочувствия (неизменяемая)"""
    entry_id: str
    timestamp: datetime
    mood: str = MoodType.NEUTRAL.value
    stress: str = StressLevel.MEDIUM.value
    physical_energy: float = 0.0
    cognitive_clarity: float = 0.0
    lifestyle_factors: LifestyleFactors = field(default_factory=LifestyleFactors)
    entry_type: Optional[str] = None
    notes: Optional[str] = None

    # ===== PROPERTIES =====

    @property
    def combined_energy(self) -> float:
        """Средняя энергия (физическая + когнитивная) / 2"""
        return (self.physical_energy + self.cognitive_clarity) / 2

    @property
    def energy_sum(self) -> float:
        """Сумма физической и когнитивной энергии"""
        return self.physical_energy + self.cognitive_clarity

    @property
    def is_morning(self) -> bool:
        return self.entry_type == CheckInType.MORNING.value

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'id': self.entry_id,
            'timestamp': self.timestamp.isoformat(),
            'mood': self.mood,
            'stress': self.stress,
            'physicalEnergy': self.physical_energy,
            'cognitiveClarity': self.cognitive_clarity,
            'lifestyleFactors': self.lifestyle_factors.to_dict()
        }
        if self.entry_type:
            data['type'] = self.entry_type
        if self.notes:
            data['notes'] = self.notes
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TrackingEntry":
        """Создание записи из словаря (JSON), отсутствующие поля получают значения по умолчанию"""
        if not isinstance(data, Mapping):
            raise ValidationError("Запись трекинга должна быть объектом")

        raw_timestamp = _pick(data, 'timestamp', 'created_at')
        if raw_timestamp is None:
            raise ValidationError("timestamp обязателен")
        try:
            timestamp = parse_timestamp(raw_timestamp)
        except (TypeError, ValueError):
            raise ValidationError(f"Неверный формат timestamp: {raw_timestamp}")

        mood = _pick(data, 'mood', default=MoodType.NEUTRAL.value)
        # мобильный клиент присылает список настроений
        if isinstance(mood, (list, tuple)):
            mood = mood[0] if mood else MoodType.NEUTRAL.value

        stress = str(_pick(data, 'stress', 'stressLevel', 'stress_level',
                           default=StressLevel.MEDIUM.value)).lower()

        scale = int(_to_float(_pick(data, 'energyScale', 'energy_scale')) or ENERGY_SCALE_MAX)

        entry_type = _pick(data, 'type', 'entry_type', 'entryType')

        return cls(
            entry_id=str(_pick(data, 'id', 'entry_id', default=uuid.uuid4().hex)),
            timestamp=timestamp,
            mood=str(mood),
            stress=stress,
            physical_energy=normalize_energy(_pick(data, 'physicalEnergy', 'physical_energy'), scale),
            cognitive_clarity=normalize_energy(_pick(data, 'cognitiveClarity', 'cognitive_clarity'), scale),
            lifestyle_factors=LifestyleFactors.from_dict(
                _pick(data, 'lifestyleFactors', 'lifestyle_factors', 'lifestyle')
            ),
            entry_type=str(entry_type) if entry_type else None,
            notes=_pick(data, 'notes')
        )

@dataclass(frozen=True)
class Insight:
    """Инсайт для пользователя"""
    type: str
    title: str
    description: str
    confidence: str = InsightConfidence.MEDIUM.value
    actionable: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'type': self.type,
            'title': self.title,
            'description': self.description,
            'confidence': self.confidence
        }
        if self.actionable:
            data['actionable'] = self.actionable
        return data

# ===== HELPERS =====

def sort_entries_desc(entries: Iterable[TrackingEntry], tz=None) -> List[TrackingEntry]:
    """Сортировка записей от новых к старым"""
    # naive даты локализуются в том же поясе, что и в local_day
    return sorted(entries or [], key=lambda e: localize(e.timestamp, tz), reverse=True)

def parse_entries(raw_entries: Iterable[Mapping[str, Any]], strict: bool = False) -> List[TrackingEntry]:
    """Разбор списка записей; некорректные записи пропускаются"""
    entries = []
    for index, raw in enumerate(raw_entries or []):
        try:
            entries.append(TrackingEntry.from_dict(raw))
        except ValidationError as e:
            if strict:
                raise
            logger.warning(f"Skipping tracking entry #{index}: {e}")
    return entries

__all__ = [
    'MoodType',
    'StressLevel',
    'CheckInType',
    'InsightType',
    'InsightConfidence',
    'ValidationError',
    'normalize_energy',
    'LifestyleFactors',
    'TrackingEntry',
    'Insight',
    'sort_entries_desc',
    'parse_entries'
]
