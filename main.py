#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Energy Tracker Analytics - Точка входа
Запуск HTTP API или разовый анализ файла с записями

Версия: 1.2.0
Дата: 2025-08-04
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from config import config, LogLevel
from core.achievements import build_default_catalog, evaluate_badges
from core.ai_service import InsightEngine
from core.analytics import build_analytics
from core.models import parse_entries
from utils.logger import setup_logger

logger = logging.getLogger(__name__)

# ===== КОМАНДЫ =====

def load_entries_file(path: Path) -> List[Dict[str, Any]]:
    """Чтение JSON файла: список записей или объект с trackingEntries"""
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)

    if isinstance(data, dict):
        data = data.get('trackingEntries')
    if not isinstance(data, list):
        raise ValueError("Invalid tracking entries provided")
    return data

async def analyze(path: Path, engine: Optional[InsightEngine] = None) -> Dict[str, Any]:
    """Полный отчет по файлу: инсайты, бейджи, аналитика"""
    entries = parse_entries(load_entries_file(path))
    engine = engine or InsightEngine.from_config(config)

    insights = await engine.generate_insights(entries)
    badges = evaluate_badges(entries, build_default_catalog(),
                             lookback_days=config.streaks.lookback_days)

    return {
        'insights': insights.to_dict(),
        'badges': badges.to_dict(),
        'analytics': build_analytics(entries, lookback_days=config.streaks.lookback_days)
    }

def serve(args: argparse.Namespace):
    from dashboard.app import run_dashboard

    run_dashboard(
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level
    )

# ===== ARGPARSE =====

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Energy Tracker Analytics')
    parser.add_argument('--log-level', default=None,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        help='Уровень логирования')
    parser.set_defaults(host=config.server.host, port=config.server.port, reload=False)

    subparsers = parser.add_subparsers(dest='command')

    serve_parser = subparsers.add_parser('serve', help='Запуск HTTP API')
    serve_parser.add_argument('--host', default=config.server.host, help='Host для запуска')
    serve_parser.add_argument('--port', type=int, default=config.server.port, help='Port для запуска')
    serve_parser.add_argument('--reload', action='store_true', help='Автоперезагрузка')

    analyze_parser = subparsers.add_parser('analyze', help='Анализ JSON файла с записями')
    analyze_parser.add_argument('path', type=Path, help='Путь к JSON файлу')
    analyze_parser.add_argument('--indent', type=int, default=2, help='Отступ JSON вывода')

    return parser

# ===== ГЛАВНАЯ ФУНКЦИЯ =====

def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.log_level:
        config.log_level = LogLevel(args.log_level)
    setup_logger(config)

    if args.command == 'analyze':
        try:
            report = asyncio.run(analyze(args.path))
        except (OSError, ValueError) as e:
            logger.error(f"❌ Failed to analyze {args.path}: {e}")
            return 1

        print(json.dumps(report, ensure_ascii=False, indent=args.indent))
        return 0

    serve(args)
    return 0

# ===== ТОЧКА ВХОДА =====

if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        logger.info("👋 Stopped by user")
    except Exception as e:
        logger.error(f"💥 Fatal error: {e}")
        sys.exit(1)
