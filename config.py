#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Energy Tracker Analytics - Configuration
Централизованная конфигурация с валидацией

Версия: 1.2.0
Дата: 2025-08-04
"""

import os
import sys
import logging
from pathlib import Path
from typing import Optional, Dict, Any, List
from dataclasses import dataclass, field
from enum import Enum

import pytz

class Environment(Enum):
    """Среды выполнения"""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"

class LogLevel(Enum):
    """Уровни логирования"""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

@dataclass
class AIConfig:
    """Конфигурация AI провайдера инсайтов"""
    openai_api_key: Optional[str]
    openai_model: str = "gpt-4o-mini"
    openai_max_tokens: int = 1500
    openai_temperature: float = 0.7
    insights_enabled: bool = True
    request_timeout: int = 30

    @property
    def is_configured(self) -> bool:
        return bool(self.openai_api_key) and self.insights_enabled

@dataclass
class InsightsConfig:
    """Параметры анализа инсайтов"""
    min_entries: int = 3
    window_size: int = 14
    max_insights: int = 5
    trend_margin: float = 0.0

@dataclass
class StreakConfig:
    """Параметры подсчета серий"""
    lookback_days: int = 30
    timezone: str = "UTC"

@dataclass
class ServerConfig:
    """Конфигурация сервера"""
    host: str = "0.0.0.0"
    port: int = 8000
    debug_mode: bool = False
    allowed_origins: List[str] = field(default_factory=lambda: ["*"])

def _env_bool(key: str, default: str) -> bool:
    return os.getenv(key, default).lower() == 'true'

class AppConfig:
    """Главный класс конфигурации"""

    def __init__(self):
        self.environment = Environment(os.getenv('ENVIRONMENT', 'development'))
        self._load_config()
        self._validate_config()

    def _load_config(self):
        """Загрузка конфигурации из переменных окружения"""

        # AI конфигурация
        self.ai = AIConfig(
            openai_api_key=os.getenv('OPENAI_API_KEY') or None,
            openai_model=os.getenv('OPENAI_MODEL', 'gpt-4o-mini'),
            openai_max_tokens=int(os.getenv('OPENAI_MAX_TOKENS', 1500)),
            openai_temperature=float(os.getenv('OPENAI_TEMPERATURE', 0.7)),
            insights_enabled=_env_bool('AI_INSIGHTS_ENABLED', 'true'),
            request_timeout=int(os.getenv('AI_TIMEOUT', 30))
        )

        # Инсайты
        self.insights = InsightsConfig(
            min_entries=int(os.getenv('INSIGHTS_MIN_ENTRIES', 3)),
            window_size=int(os.getenv('INSIGHTS_WINDOW', 14)),
            max_insights=int(os.getenv('INSIGHTS_MAX', 5)),
            trend_margin=float(os.getenv('INSIGHTS_TREND_MARGIN', 0.0))
        )

        # Серии
        self.streaks = StreakConfig(
            lookback_days=int(os.getenv('STREAK_LOOKBACK_DAYS', 30)),
            timezone=os.getenv('TIMEZONE', 'UTC')
        )

        # Сервер
        origins = os.getenv('ALLOWED_ORIGINS', '*')
        self.server = ServerConfig(
            host=os.getenv('HOST', '0.0.0.0'),
            port=int(os.getenv('PORT', 8000)),
            debug_mode=_env_bool('DEBUG_MODE', 'false'),
            allowed_origins=[o.strip() for o in origins.split(',') if o.strip()]
        )

        # Логирование
        self.log_dir = Path(os.getenv('LOG_DIR', 'logs'))
        self.log_level = LogLevel(os.getenv('LOG_LEVEL', 'INFO').upper())
        self.log_to_file = _env_bool('LOG_TO_FILE', 'false')
        self.log_format = os.getenv(
            'LOG_FORMAT',
            '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
        )

    def _validate_config(self):
        """Валидация конфигурации"""
        errors = []

        if self.insights.min_entries < 1:
            errors.append("INSIGHTS_MIN_ENTRIES должен быть не меньше 1")

        if self.insights.window_size < self.insights.min_entries:
            errors.append("INSIGHTS_WINDOW не может быть меньше INSIGHTS_MIN_ENTRIES")

        if not 1 <= self.insights.max_insights <= 10:
            errors.append(f"INSIGHTS_MAX={self.insights.max_insights} вне диапазона (1-10)")

        if self.streaks.lookback_days < 1:
            errors.append("STREAK_LOOKBACK_DAYS должен быть положительным числом")

        try:
            pytz.timezone(self.streaks.timezone)
        except pytz.UnknownTimeZoneError:
            errors.append(f"Неизвестный часовой пояс TIMEZONE={self.streaks.timezone}")

        # Проверка портов
        if not 1024 <= self.server.port <= 65535:
            errors.append(f"Порт {self.server.port} вне допустимого диапазона (1024-65535)")

        if not self.ai.openai_api_key and self.ai.insights_enabled:
            logging.getLogger(__name__).info("OPENAI_API_KEY not set - rule-based insights only")

        if errors:
            raise ValueError("Ошибки конфигурации:\n" + "\n".join(f"• {error}" for error in errors))

    def get_logging_config(self) -> Dict[str, Any]:
        """Получение конфигурации логирования"""
        handlers = ['console']
        if self.log_to_file:
            handlers.append('file')

        handler_config: Dict[str, Any] = {
            'console': {
                'class': 'logging.StreamHandler',
                'level': self.log_level.value,
                'formatter': 'default',
                'stream': sys.stdout
            }
        }
        if self.log_to_file:
            handler_config['file'] = {
                'class': 'logging.handlers.RotatingFileHandler',
                'level': self.log_level.value,
                'formatter': 'default',
                'filename': str(self.log_dir / f"energy_tracker_{self.environment.value}.log"),
                'maxBytes': 10485760,  # 10MB
                'backupCount': 5,
                'encoding': 'utf-8'
            }

        return {
            'version': 1,
            'disable_existing_loggers': False,
            'formatters': {
                'default': {
                    'format': self.log_format,
                    'datefmt': '%Y-%m-%d %H:%M:%S'
                }
            },
            'handlers': handler_config,
            'loggers': {
                '': {
                    'level': self.log_level.value,
                    'handlers': handlers,
                    'propagate': False
                },
                'httpx': {
                    'level': 'WARNING',
                    'handlers': handlers,
                    'propagate': False
                },
                'openai': {
                    'level': 'WARNING',
                    'handlers': handlers,
                    'propagate': False
                },
                'uvicorn.access': {
                    'level': 'WARNING',
                    'handlers': handlers,
                    'propagate': False
                }
            }
        }

    def is_development(self) -> bool:
        """Проверка режима разработки"""
        return self.environment == Environment.DEVELOPMENT

    def get_feature_status(self) -> Dict[str, bool]:
        """Получение статуса функций"""
        return {
            'ai_insights': self.ai.is_configured,
            'rule_based_insights': True,
            'badges': True,
            'streaks': True
        }

    def to_dict(self) -> Dict[str, Any]:
        """Сериализация конфигурации в словарь"""
        return {
            'environment': self.environment.value,
            'server': {
                'host': self.server.host,
                'port': self.server.port,
                'debug_mode': self.server.debug_mode
            },
            'ai': {
                'configured': self.ai.is_configured,
                'model': self.ai.openai_model,
                'api_key': (self.ai.openai_api_key[:6] + "...") if self.ai.openai_api_key else None  # Скрываем ключ
            },
            'insights': {
                'min_entries': self.insights.min_entries,
                'window_size': self.insights.window_size,
                'max_insights': self.insights.max_insights
            },
            'streaks': {
                'lookback_days': self.streaks.lookback_days,
                'timezone': self.streaks.timezone
            },
            'features': self.get_feature_status(),
            'log_level': self.log_level.value
        }

# Глобальный экземпляр конфигурации
config = AppConfig()

__all__ = [
    'config',
    'AppConfig',
    'Environment',
    'LogLevel',
    'AIConfig',
    'InsightsConfig',
    'StreakConfig',
    'ServerConfig'
]
