"""
Pydantic models for validating structured JSON responses from Claude AI.

Used by _call_with_schema_retry() in ai_service.py for validation + retry.
"""

from typing import Literal

from pydantic import BaseModel, Field, field_validator


# --- Daily Insight (generate_daily_insight) ---


class DailyInsightSchema(BaseModel):
    insight_text: str = Field(min_length=1)
    action_items: list[str] = []
    confidence_level: Literal["low", "developing", "high", "very_high"] = "low"
    triggers_mentioned: list[str] = []

    @field_validator("triggers_mentioned")
    @classmethod
    def _lowercase_triggers(cls, value: list[str]) -> list[str]:
        return [t.strip().lower() for t in value if t.strip()]
