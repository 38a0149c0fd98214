#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Energy Tracker Analytics - FastAPI Application
HTTP API для инсайтов, бейджей, серий и аналитики

Версия: 1.2.0
Дата: 2025-08-04
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import uvicorn

from config import config
from dashboard.api import achievements, insights, stats
from dashboard.dependencies import init_badge_catalog, init_insight_engine, reset_dependencies
from shared.models import HealthCheck

logger = logging.getLogger(__name__)

APP_VERSION = "1.2.0"

# Глобальные переменные
app_start_time = time.time()

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Управление жизненным циклом приложения"""
    global app_start_time

    # Startup
    logger.info("🚀 Starting Energy Tracker Analytics API...")
    app_start_time = time.time()

    engine = init_insight_engine()
    catalog = init_badge_catalog()

    logger.info(f"🤖 AI insights: {'enabled' if engine.provider else 'rule-based only'}")
    logger.info(f"🏅 Badges in catalog: {len(catalog)}")
    logger.info("✅ API ready")

    yield

    # Shutdown
    logger.info("🛑 Stopping API...")
    reset_dependencies()

# Создание FastAPI приложения
app = FastAPI(
    title="Energy Tracker Analytics",
    description="Инсайты, бейджи и серии по истории записей самочувствия",
    version=APP_VERSION,
    docs_url="/api/docs" if config.server.debug_mode else None,
    redoc_url="/api/redoc" if config.server.debug_mode else None,
    openapi_url="/api/openapi.json" if config.server.debug_mode else None,
    lifespan=lifespan
)

# ===== MIDDLEWARE =====

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.server.allowed_origins,
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

# Gzip compression
app.add_middleware(GZipMiddleware, minimum_size=1000)

# Middleware для логирования
@app.middleware("http")
async def logging_middleware(request: Request, call_next):
    """Логирование запросов и время обработки"""
    start_time = time.time()
    client_ip = request.headers.get("X-Forwarded-For", request.client.host if request.client else "unknown")

    try:
        response = await call_next(request)

        process_time = time.time() - start_time
        logger.info(
            f"{request.method} {request.url.path} "
            f"- {response.status_code} "
            f"- {process_time:.3f}s "
            f"- {client_ip}"
        )

        response.headers["X-Process-Time"] = str(process_time)
        return response

    except Exception as e:
        process_time = time.time() - start_time
        logger.error(f"❌ Request failed: {e} ({process_time:.3f}s)", exc_info=True)

        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error", "status_code": 500}
        )

# ===== ПОДКЛЮЧЕНИЕ API РОУТЕРОВ =====

app.include_router(insights.router, prefix="/api")
app.include_router(achievements.router, prefix="/api")
app.include_router(stats.router, prefix="/api")

# ===== СЛУЖЕБНЫЕ МАРШРУТЫ =====

@app.get("/health", response_model=HealthCheck)
async def health_check():
    """Health check для мониторинга"""
    return HealthCheck(
        status="healthy",
        service="energy-tracker-analytics",
        version=APP_VERSION,
        timestamp=time.time(),
        data={
            "ai_configured": config.ai.is_configured,
            "environment": config.environment.value,
            "uptime_seconds": time.time() - app_start_time
        }
    )

@app.get("/api/info")
async def api_info():
    """Информация об API"""
    return {
        "name": "Energy Tracker Analytics API",
        "version": APP_VERSION,
        "environment": config.environment.value,
        "debug": config.server.debug_mode,
        "uptime": time.time() - app_start_time,
        "endpoints": {
            "insights": "/api/insights",
            "badges": "/api/badges",
            "streaks": "/api/streaks",
            "analytics": "/api/analytics"
        },
        "features": config.get_feature_status()
    }

@app.get("/ping")
async def ping():
    """Простой ping endpoint"""
    return {
        "message": "pong",
        "timestamp": time.time(),
        "service": "energy-tracker-analytics"
    }

# ===== ОБРАБОТЧИКИ ОШИБОК =====

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Обработчик HTTP исключений"""
    if exc.status_code == 404 and request.url.path.startswith("/api/"):
        return JSONResponse(
            status_code=404,
            content={
                "detail": "API endpoint not found",
                "path": str(request.url.path),
                "method": request.method,
                "status_code": 404
            }
        )

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "detail": exc.detail,
            "error": exc.detail,
            "status_code": exc.status_code
        }
    )

@app.exception_handler(Exception)
async def internal_error_handler(request: Request, exc: Exception):
    """Обработчик 500 ошибок"""
    logger.error(f"Internal server error: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "status_code": 500,
            "debug": config.server.debug_mode
        }
    )

# ===== ЗАПУСК ПРИЛОЖЕНИЯ =====

def create_app() -> FastAPI:
    """Фабрика для создания приложения"""
    return app

def run_dashboard(
    host: Optional[str] = None,
    port: Optional[int] = None,
    reload: Optional[bool] = None,
    log_level: Optional[str] = None
):
    """Запуск API сервера"""
    host = host or config.server.host
    port = port or config.server.port
    reload = reload if reload is not None else config.is_development()
    log_level = (log_level or config.log_level.value).lower()

    logger.info(f"🌐 Starting API on http://{host}:{port}")
    logger.info(f"🔧 Debug mode: {config.server.debug_mode}")
    logger.info(f"🔄 Auto-reload: {reload}")

    try:
        uvicorn.run(
            "dashboard.app:app",
            host=host,
            port=port,
            reload=reload,
            log_level=log_level,
            access_log=config.server.debug_mode,
            server_header=False,
            date_header=False
        )
    except KeyboardInterrupt:
        logger.info("👋 API stopped")
    except Exception as e:
        logger.error(f"❌ Failed to start API: {e}")
        raise
