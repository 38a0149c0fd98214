from fastapi import APIRouter, HTTPException, Depends
from typing import List
import logging

from core.achievements import BadgeDefinition, evaluate_badges
from core.streaks import calculate_streaks
from shared.models import BadgesResponse, StreaksResponse
from ..dependencies import get_badge_catalog, get_tracking_request, TrackingRequest

logger = logging.getLogger(__name__)

router = APIRouter(tags=["achievements"])

@router.post("/badges", response_model=BadgesResponse)
async def get_badges(
    tracking: TrackingRequest = Depends(get_tracking_request),
    catalog: List[BadgeDefinition] = Depends(get_badge_catalog)
):
    """
    Оценка каталога бейджей: открытые, близкие к открытию и следующие
    """
    try:
        evaluation = evaluate_badges(
            tracking.entries,
            catalog,
            lookback_days=tracking.lookback_days,
            tz=tracking.timezone
        )
        return evaluation.to_dict()

    except Exception as e:
        logger.error(f"Badge evaluation failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Badge evaluation failed: {str(e)}")

@router.post("/streaks", response_model=StreaksResponse)
async def get_streaks(tracking: TrackingRequest = Depends(get_tracking_request)):
    """
    Текущие серии по всем условиям
    """
    try:
        streaks = calculate_streaks(
            tracking.entries,
            lookback_days=tracking.lookback_days,
            tz=tracking.timezone
        )
        return {"streaks": streaks, "lookbackDays": tracking.lookback_days}

    except Exception as e:
        logger.error(f"Streak calculation failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Streak calculation failed: {str(e)}")
