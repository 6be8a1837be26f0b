"""Daily narrative insight: one generated insight per user per day."""
import logging
from datetime import date, datetime, timezone
from typing import Optional

from pydantic import ValidationError

from app.config import settings
from app.services.ai_service import ClaudeService
from app.services.insight_schemas import DailyInsight, InsightsResult
from app.services.insights_service import InsightsService
from app.services.narrative_cache import NarrativeCache

logger = logging.getLogger(__name__)


class InsufficientDataError(ValueError):
    """No completed meals to describe."""


class NarrativeService:
    """Builds the engine payload, asks Claude for a narrative, and caches it."""

    def __init__(
        self,
        ai_service: ClaudeService,
        cache: NarrativeCache,
        insights_service: Optional[InsightsService] = None,
        ttl: Optional[int] = None,
    ):
        self.ai_service = ai_service
        self.cache = cache
        self.insights_service = insights_service or InsightsService()
        self.ttl = settings.insights_narrative_cache_ttl if ttl is None else ttl

    @staticmethod
    def cache_key(user_id: str, day: date) -> str:
        return f"{user_id}:{day.isoformat()}"

    async def get_daily_insight(
        self,
        user_id: str,
        result: InsightsResult,
        today: Optional[date] = None,
    ) -> DailyInsight:
        """
        Return today's insight for a user, generating it on a cache miss.

        Args:
            user_id: Cache owner
            result: Output of InsightsService.analyze for the user's meals
            today: Calendar day the insight belongs to (defaults to UTC today)

        Returns:
            DailyInsight (cached for `insights_narrative_cache_ttl` seconds)

        Raises:
            InsufficientDataError: result has no completed meals
            ServiceUnavailableError: AI service unavailable
            RateLimitError: Too many requests
            ValueError: Invalid AI response
        """
        if result.total_meals == 0:
            raise InsufficientDataError("Log and rate at least one meal first")

        today = today or datetime.now(timezone.utc).date()
        key = self.cache_key(user_id, today)

        cached = self.cache.get(key)
        if cached is not None:
            try:
                return DailyInsight.model_validate_json(cached)
            except ValidationError:
                logger.warning("Discarding unreadable cached insight for %s", key)

        payload = self.insights_service.build_narrative_payload(result)
        generated = await self.ai_service.generate_daily_insight(payload)

        insight = DailyInsight(
            insight_text=generated["insight_text"],
            action_items=generated.get("action_items", []),
            confidence_level=generated.get("confidence_level", "low"),
            triggers_mentioned=generated.get("triggers_mentioned", []),
            generated_at=datetime.now(timezone.utc),
        )
        self.cache.put(key, insight.model_dump_json(), self.ttl)
        logger.info("Cached daily insight for %s", key)
        return insight
