#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Energy Tracker Analytics - Dashboard Dependencies
Зависимости и провайдеры для FastAPI приложения

Версия: 1.2.0
Дата: 2025-08-04
"""

import logging
from dataclasses import dataclass
from typing import Optional, List

from fastapi import HTTPException, Request, status
from pydantic import ValidationError as PydanticValidationError

from config import config
from core.achievements import BadgeDefinition, build_default_catalog
from core.ai_service import InsightEngine, create_insight_engine
from core.models import TrackingEntry, parse_entries
from shared.models import TrackingEntriesRequest

logger = logging.getLogger(__name__)

INVALID_ENTRIES_MESSAGE = "Invalid tracking entries provided"

# ===== ГЛОБАЛЬНЫЕ ПЕРЕМЕННЫЕ =====

# Движок инсайтов (синглтон)
_insight_engine: Optional[InsightEngine] = None

# Каталог бейджей (синглтон)
_badge_catalog: Optional[List[BadgeDefinition]] = None

# ===== ИНИЦИАЛИЗАЦИЯ КОМПОНЕНТОВ =====

def init_insight_engine() -> InsightEngine:
    """Инициализация движка инсайтов"""
    global _insight_engine

    if _insight_engine is None:
        logger.info("🔄 Initializing InsightEngine...")
        _insight_engine = create_insight_engine(config)
        logger.info("✅ InsightEngine initialized")

    return _insight_engine

def init_badge_catalog() -> List[BadgeDefinition]:
    """Загрузка каталога бейджей"""
    global _badge_catalog

    if _badge_catalog is None:
        _badge_catalog = build_default_catalog()
        logger.info(f"✅ Badge catalog loaded: {len(_badge_catalog)} badges")

    return _badge_catalog

def reset_dependencies():
    """Сброс синглтонов (при остановке приложения и в тестах)"""
    global _insight_engine, _badge_catalog
    _insight_engine = None
    _badge_catalog = None

# ===== DEPENDENCY PROVIDERS =====

def get_insight_engine() -> InsightEngine:
    return init_insight_engine()

def get_badge_catalog() -> List[BadgeDefinition]:
    return init_badge_catalog()

@dataclass
class TrackingRequest:
    """Разобранный запрос: записи и параметры подсчета серий"""
    entries: List[TrackingEntry]
    received: int
    lookback_days: int
    timezone: Optional[str] = None

async def get_tracking_request(request: Request) -> TrackingRequest:
    """
    Разбор тела запроса с trackingEntries.

    Отсутствующий или не являющийся списком trackingEntries дает 400.
    Отдельные некорректные записи пропускаются с предупреждением.
    """
    try:
        body = await request.json()
    except ValueError:
        logger.warning("Request body is not valid JSON")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=INVALID_ENTRIES_MESSAGE)

    if not isinstance(body, dict):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=INVALID_ENTRIES_MESSAGE)

    try:
        payload = TrackingEntriesRequest.model_validate(body)
    except PydanticValidationError as e:
        logger.warning(f"Invalid tracking request: {e.error_count()} validation errors")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=INVALID_ENTRIES_MESSAGE)

    if payload.trackingEntries is None:
        logger.warning("Invalid tracking entries provided: missing trackingEntries")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=INVALID_ENTRIES_MESSAGE)

    entries = parse_entries(payload.trackingEntries)

    return TrackingRequest(
        entries=entries,
        received=len(payload.trackingEntries),
        lookback_days=payload.lookbackDays or config.streaks.lookback_days,
        timezone=payload.timezone
    )

__all__ = [
    'INVALID_ENTRIES_MESSAGE',
    'TrackingRequest',
    'init_insight_engine',
    'init_badge_catalog',
    'reset_dependencies',
    'get_insight_engine',
    'get_badge_catalog',
    'get_tracking_request'
]
