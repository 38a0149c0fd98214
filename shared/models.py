from pydantic import BaseModel, Field, field_validator
from typing import List, Optional, Dict, Any
from enum import Enum

import pytz

# Базовые перечисления
class InsightTypeModel(str, Enum):
    POSITIVE = "positive"
    WARNING = "warning"
    RECOMMENDATION = "recommendation"
    PATTERN = "pattern"

class ConfidenceModel(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

class InsightSourceModel(str, Enum):
    INSUFFICIENT_DATA = "insufficient_data"
    AI = "ai"
    RULE_BASED = "rule_based"
    EMERGENCY = "emergency"

# Запросы
class TrackingEntriesRequest(BaseModel):
    """Тело запроса с историей записей; записи разбираются в core.models"""
    trackingEntries: Optional[List[Any]] = None
    lookbackDays: Optional[int] = Field(None, ge=1, le=365)
    timezone: Optional[str] = None

    @field_validator('timezone')
    @classmethod
    def validate_timezone(cls, v):
        if v is None or not v.strip():
            return None
        try:
            pytz.timezone(v.strip())
        except pytz.UnknownTimeZoneError:
            raise ValueError(f"Unknown timezone: {v}")
        return v.strip()

# Инсайты
class InsightModel(BaseModel):
    type: InsightTypeModel
    title: str
    description: str
    confidence: ConfidenceModel = ConfidenceModel.MEDIUM
    actionable: Optional[str] = None

class InsightsResponse(BaseModel):
    insights: List[InsightModel]
    source: InsightSourceModel
    errorKind: Optional[str] = None
    notice: Optional[str] = None

# Бейджи
class BadgeModel(BaseModel):
    id: str
    title: str
    description: str
    category: str
    tier: str
    rarity: str
    icon: str
    targetProgress: int
    currentProgress: int
    isUnlocked: bool
    progressPercentage: float
    celebrationMessage: str

class CategoryStats(BaseModel):
    earned: int = 0
    total: int = 0
    percentage: float = 0.0

class BadgesResponse(BaseModel):
    unlocked: List[BadgeModel] = []
    nearProgress: List[BadgeModel] = []
    upcoming: List[BadgeModel] = []
    categories: Dict[str, CategoryStats] = {}
    streaks: Dict[str, int] = {}

class StreaksResponse(BaseModel):
    streaks: Dict[str, int]
    lookbackDays: int

# Аналитика
class AnalyticsAverages(BaseModel):
    cognitiveClarity: float = 0.0
    physicalEnergy: float = 0.0

class AnalyticsTrends(BaseModel):
    mood: Dict[str, int] = {}
    stress: Dict[str, int] = {}

class AnalyticsResponse(BaseModel):
    totalTrackingEntries: int = 0
    averages: AnalyticsAverages = AnalyticsAverages()
    trends: AnalyticsTrends = AnalyticsTrends()
    streaks: Dict[str, int] = {}
    lastEntry: Optional[Dict[str, Any]] = None

# Служебные модели
class HealthCheck(BaseModel):
    status: str
    service: str
    version: str
    timestamp: float
    data: Optional[Dict[str, Any]] = None
