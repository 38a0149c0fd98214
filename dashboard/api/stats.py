from fastapi import APIRouter, HTTPException, Depends
import logging

from core.analytics import build_analytics, build_tracking_summary
from shared.models import AnalyticsResponse
from ..dependencies import get_tracking_request, TrackingRequest

logger = logging.getLogger(__name__)

router = APIRouter(tags=["statistics"])

@router.post("/analytics", response_model=AnalyticsResponse)
async def get_analytics(tracking: TrackingRequest = Depends(get_tracking_request)):
    """
    Общая аналитика: средние значения, распределения настроения и стресса,
    серии и последняя запись
    """
    try:
        return build_analytics(
            tracking.entries,
            lookback_days=tracking.lookback_days,
            tz=tracking.timezone
        )
    except Exception as e:
        logger.error(f"Analytics failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Analytics failed: {str(e)}")

@router.post("/analytics/summary")
async def get_tracking_summary(tracking: TrackingRequest = Depends(get_tracking_request)):
    """
    Сводка по последним записям, на которой строятся инсайты
    """
    try:
        return build_tracking_summary(tracking.entries).to_dict()
    except Exception as e:
        logger.error(f"Tracking summary failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Tracking summary failed: {str(e)}")
