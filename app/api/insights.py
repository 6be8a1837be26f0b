"""Insights API endpoints: trigger analysis, narrative payload, daily insight."""
import logging
from datetime import date, datetime
from functools import lru_cache
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException
from pydantic import BaseModel

from app.services.ai_service import ClaudeService, RateLimitError, ServiceUnavailableError
from app.services.insight_schemas import DailyInsight, InsightsResult, NarrativePayload
from app.services.insights_service import InsightsService
from app.services.narrative_cache import RedisNarrativeCache
from app.services.narrative_service import InsufficientDataError, NarrativeService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/insights", tags=["insights"])


class AnalyzeRequest(BaseModel):
    """Snapshot of a user's meal entries."""

    # Raw mappings so one malformed entry is skipped instead of failing the request
    entries: list[dict[str, Any]] = []
    now: datetime | None = None


class NarrativeRequest(AnalyzeRequest):
    user_id: str
    today: date | None = None


@lru_cache
def get_insights_service() -> InsightsService:
    return InsightsService()


@lru_cache
def get_narrative_service() -> NarrativeService:
    return NarrativeService(
        ai_service=ClaudeService(),
        cache=RedisNarrativeCache(),
        insights_service=get_insights_service(),
    )


@router.post("/analyze", response_model=InsightsResult)
async def analyze_insights(
    request: AnalyzeRequest = Body(...),
    insights_service: InsightsService = Depends(get_insights_service),
):
    """Run the full trigger analysis over the submitted entries."""
    return insights_service.analyze(request.entries, request.now)


@router.post("/payload", response_model=NarrativePayload)
async def narrative_payload(
    request: AnalyzeRequest = Body(...),
    insights_service: InsightsService = Depends(get_insights_service),
):
    """Build the compact payload consumed by the narrative generator."""
    result = insights_service.analyze(request.entries, request.now)
    return insights_service.build_narrative_payload(result)


@router.post("/narrative", response_model=DailyInsight)
async def daily_narrative(
    request: NarrativeRequest = Body(...),
    insights_service: InsightsService = Depends(get_insights_service),
    narrative_service: NarrativeService = Depends(get_narrative_service),
):
    """
    Return the user's daily insight, generated at most once per day.

    Returns:
        DailyInsight JSON; 422 without rated meals, 429/503 on AI
        availability problems, 502 when the AI response is unusable
    """
    result = insights_service.analyze(request.entries, request.now)

    try:
        return await narrative_service.get_daily_insight(
            request.user_id, result, request.today
        )
    except InsufficientDataError as e:
        raise HTTPException(
            status_code=422,
            detail={"error": "insufficient_data", "message": str(e), "can_retry": False},
        )
    except ServiceUnavailableError:
        raise HTTPException(
            status_code=503,
            detail={
                "error": "service_unavailable",
                "message": (
                    "The insight service is experiencing connectivity issues. "
                    "This is usually temporary - please try again in a minute."
                ),
                "can_retry": True,
            },
        )
    except RateLimitError:
        raise HTTPException(
            status_code=429,
            detail={
                "error": "rate_limit",
                "message": "Too many requests. Please wait a minute and try again.",
                "can_retry": True,
            },
        )
    except ValueError as e:
        logger.error("Daily insight generation failed: %s", e)
        raise HTTPException(
            status_code=502,
            detail={"error": "invalid_ai_response", "message": str(e), "can_retry": True},
        )
