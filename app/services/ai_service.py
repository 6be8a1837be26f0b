"""
Claude AI integration for the daily bloating insight.

The insights engine produces a compact NarrativePayload; this service turns
it into a short, personalized narrative with action items (Sonnet).
"""

import json
import re
import asyncio
import random
import logging
from functools import wraps

from anthropic import Anthropic
import anthropic
import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

from app.config import settings
from app.services.ai_schemas import DailyInsightSchema
from app.services.insight_schemas import NarrativePayload
from app.services.prompts import (
    build_daily_insight_system_prompt,
    build_daily_insight_user_message,
)


logger = logging.getLogger(__name__)


def _strip_markdown_json(text: str) -> str:
    """Strip markdown code block wrappers from JSON text."""
    if "```json" in text:
        text = text.split("```json")[1].split("```")[0].strip()
    elif "```" in text:
        text = text.split("```")[1].split("```")[0].strip()
    return text


def _fix_trailing_commas(text: str) -> str:
    """Fix trailing commas in JSON (common LLM error)."""
    text = re.sub(r",\s*}", "}", text)
    text = re.sub(r",\s*]", "]", text)
    return text


def retry_on_connection_error(max_attempts=3, base_delay=1.0):
    """
    Retry decorator for API calls that may fail due to transient network issues.

    Args:
        max_attempts: Maximum retry attempts (default 3)
        base_delay: Base delay in seconds for exponential backoff (default 1.0)
    """

    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            last_exception = None

            for attempt in range(max_attempts):
                try:
                    return await func(*args, **kwargs)
                except anthropic.APIConnectionError as e:
                    last_exception = e

                    if attempt < max_attempts - 1:
                        delay = base_delay * (2**attempt)
                        jitter = delay * 0.1 * (2 * random.random() - 1)  # ±10%
                        sleep_time = delay + jitter

                        logger.warning(
                            "Connection error on attempt %d/%d, retrying in %.1fs...",
                            attempt + 1,
                            max_attempts,
                            sleep_time,
                        )
                        await asyncio.sleep(sleep_time)
                    else:
                        logger.error("All %d attempts failed", max_attempts)

            raise ServiceUnavailableError(
                "AI service temporarily unavailable after retries"
            ) from last_exception

        return wrapper

    return decorator


class ClaudeService:
    """Claude API integration for narrative insights."""

    def __init__(self):
        timeout = httpx.Timeout(
            timeout=settings.anthropic_timeout,
            connect=settings.anthropic_connect_timeout,
        )
        self.client = Anthropic(api_key=settings.anthropic_api_key, timeout=timeout)
        self.sonnet_model = settings.sonnet_model

    # =========================================================================
    # SCHEMA VALIDATION + CONVERSATIONAL RETRY
    # =========================================================================

    def _call_with_schema_retry(
        self,
        messages: list[dict],
        schema_class: type[BaseModel],
        request_params: dict,
        max_retries: int = 2,
        prefill: str | None = "{",
    ) -> tuple[dict, str, object]:
        """
        Call Claude API with JSON schema validation and conversational retry.

        On schema failure: appends the bad response + error feedback to messages,
        re-calls with full conversation context so the model can self-correct.

        Args:
            messages: The messages list (mutated on retry)
            schema_class: Pydantic model class to validate against
            request_params: Params for client.messages.create except 'messages'
            max_retries: Retry attempts after the initial call (default 2)
            prefill: Assistant prefill string, or None for no prefill

        Returns:
            (validated_dict, raw_response_text, response_object) tuple

        Raises:
            ValueError: If all attempts fail schema validation
        """
        prefix = prefill or ""

        for attempt in range(1 + max_retries):
            call_messages = list(messages)
            if prefill:
                call_messages.append({"role": "assistant", "content": prefill})

            response = self.client.messages.create(
                messages=call_messages,
                **request_params,
            )

            response_text = "".join(
                block.text for block in response.content if hasattr(block, "text")
            )

            if not response_text:
                if attempt < max_retries:
                    messages.append({"role": "assistant", "content": "(empty response)"})
                    messages.append(
                        {
                            "role": "user",
                            "content": "Your response contained no text. Please respond with valid JSON.",
                        }
                    )
                    continue
                raise ValueError("No text content in AI response after retries")

            raw_text = response_text.strip()
            json_str = _fix_trailing_commas(_strip_markdown_json(prefix + raw_text))

            try:
                validated = TypeAdapter(schema_class).validate_python(json.loads(json_str))
                return validated.model_dump(), raw_text, response
            except (json.JSONDecodeError, ValidationError) as e:
                error_msg = str(e)
                logger.warning(
                    "AI response schema validation failed (attempt %d/%d) for %s: %s",
                    attempt + 1,
                    1 + max_retries,
                    schema_class.__name__,
                    error_msg,
                )

                if attempt < max_retries:
                    messages.append({"role": "assistant", "content": prefix + raw_text})
                    messages.append(
                        {
                            "role": "user",
                            "content": (
                                f"Your response had a schema error:\n{error_msg}\n\n"
                                f"Please fix and return valid JSON matching the required schema."
                            ),
                        }
                    )
                    continue

                raise ValueError(
                    f"AI response failed schema validation after {1 + max_retries} attempts: {error_msg}"
                )

        raise ValueError("AI response failed schema validation")

    # =========================================================================
    # DAILY INSIGHT
    # =========================================================================

    @retry_on_connection_error(max_attempts=3, base_delay=1.0)
    async def generate_daily_insight(self, payload: NarrativePayload) -> dict:
        """
        Generate a personalized daily insight from the engine's payload.

        Response depth follows the user's tracking phase (new, developing,
        strong, advanced) derived from payload.days_tracked.

        Args:
            payload: Compact aggregate built by InsightsService.build_narrative_payload

        Returns:
            Dict with structure:
            {
                "insight_text": str,
                "action_items": [str],
                "confidence_level": "low|developing|high|very_high",
                "triggers_mentioned": [str],
                "usage_stats": {"input_tokens": int, "output_tokens": int, "cached_tokens": int}
            }

        Raises:
            ServiceUnavailableError: AI service unavailable
            RateLimitError: Too many requests
            ValueError: Invalid response format
        """
        messages = [
            {"role": "user", "content": build_daily_insight_user_message(payload)}
        ]
        request_params = {
            "model": self.sonnet_model,
            "max_tokens": 1500,
            "system": [
                {
                    "type": "text",
                    "text": build_daily_insight_system_prompt(payload.days_tracked),
                    "cache_control": {"type": "ephemeral"},
                }
            ],
        }

        try:
            validated, _raw_text, response = self._call_with_schema_retry(
                messages=messages,
                schema_class=DailyInsightSchema,
                request_params=request_params,
            )
        except anthropic.RateLimitError as e:
            raise RateLimitError(
                "Too many requests, please try again in 1 minute"
            ) from e
        except anthropic.APIStatusError as e:
            if e.status_code >= 500:
                raise ServiceUnavailableError("AI service error") from e
            raise ValueError(f"Request error: {e.message}") from e

        usage = response.usage
        validated["usage_stats"] = {
            "input_tokens": usage.input_tokens,
            "output_tokens": getattr(usage, "output_tokens", 0),
            "cached_tokens": getattr(usage, "cache_read_input_tokens", 0),
        }
        logger.info(
            "Generated daily insight (%d triggers mentioned)",
            len(validated["triggers_mentioned"]),
        )
        return validated


# =============================================================================
# EXCEPTIONS
# =============================================================================


class ServiceUnavailableError(Exception):
    """AI service is temporarily unavailable."""

    pass


class RateLimitError(Exception):
    """Rate limit exceeded."""

    pass
