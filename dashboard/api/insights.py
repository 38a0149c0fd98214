from fastapi import APIRouter, Depends
import logging

from core.ai_service import InsightEngine
from shared.models import InsightsResponse
from ..dependencies import get_insight_engine, get_tracking_request, TrackingRequest

logger = logging.getLogger(__name__)

router = APIRouter(tags=["insights"])

@router.post("/insights", response_model=InsightsResponse)
async def generate_insights(
    tracking: TrackingRequest = Depends(get_tracking_request),
    engine: InsightEngine = Depends(get_insight_engine)
):
    """
    Инсайты по истории записей.

    Движок не выбрасывает исключений: при недоступности AI провайдера
    возвращается анализ по правилам, source показывает путь.
    """
    logger.info(f"Insights requested: {len(tracking.entries)}/{tracking.received} entries parsed")

    result = await engine.generate_insights(tracking.entries)
    return result.to_dict()
