"""Service for suggesting VOOP outcomes, obstacles and reframes per value."""

import asyncio
import logging
from typing import Any

from pydantic import ValidationError

from valueslens.core.config import get_settings
from valueslens.core.openai import get_openai_client
from valueslens.schemas.definitions import ValueRef
from valueslens.schemas.voop import VoopResult, VoopSuggestion
from valueslens.services.definition_service import (
    TIMEOUT_GRACE_SECONDS,
    InvalidGenerationOutput,
    extract_json_payload,
)
from valueslens.services.generation_prompts import (
    NO_STORY_PLACEHOLDER,
    VOOP_SYSTEM_PROMPT,
    VOOP_USER_PROMPT_TEMPLATE,
)

logger = logging.getLogger(__name__)

# Rotation order for fallback obstacle categories
FALLBACK_CATEGORIES = ("AVOIDANCE", "TIMING", "SELF-PROTECTION", "EXCESS", "IDENTITY")
FALLBACK_LANGUAGE = ["growth", "change", "alignment"]
FALLBACK_OBSTACLES = [
    "my fear of not being good enough",
    "my tendency to stay comfortable when challenged",
    "my belief that conditions must be perfect first",
]
FALLBACK_REFRAMES = [
    "The obstacle is the way",
    "Small steps, big shifts",
    "Progress over perfection",
]


def build_fallback_suggestions(values: list[ValueRef]) -> list[VoopSuggestion]:
    """Deterministic suggestions, rotating obstacle categories per value."""
    suggestions = []
    for i, value in enumerate(values):
        lowered = value.name.lower()
        suggestions.append(
            VoopSuggestion(
                value_id=value.id,
                outcomes=[
                    f"I live {lowered} fully and feel aligned",
                    f"I experience {lowered} in my daily choices",
                    f"I feel proud of how {lowered} shows up in my life",
                ],
                obstacles=list(FALLBACK_OBSTACLES),
                obstacle_categories=[
                    FALLBACK_CATEGORIES[(i + offset) % len(FALLBACK_CATEGORIES)]
                    for offset in range(3)
                ],
                reframes=list(FALLBACK_REFRAMES),
            )
        )
    return suggestions


def build_fallback_language(story: str) -> list[str]:
    """First five longer words of the story, or a generic set."""
    words = [word for word in story.split() if len(word) > 4]
    return words[:5] if words else list(FALLBACK_LANGUAGE)


def validate_voop(payload: dict[str, Any], values: list[ValueRef]) -> VoopResult:
    """Check model output has one complete suggestion per requested value.

    Raises:
        InvalidGenerationOutput: If the payload does not validate.
    """
    language = payload.get("language_to_echo")
    if not isinstance(language, list) or not language:
        raise InvalidGenerationOutput("Response has no language_to_echo")

    raw_items = payload.get("voop")
    if not isinstance(raw_items, list) or len(raw_items) != len(values):
        raise InvalidGenerationOutput("Response must hold one voop entry per value")

    try:
        suggestions = {
            item.value_id: item for item in (VoopSuggestion.model_validate(raw) for raw in raw_items)
        }
    except ValidationError as e:
        raise InvalidGenerationOutput(f"Invalid voop entry: {e.error_count()} errors") from e

    missing = [value.id for value in values if value.id not in suggestions]
    if missing:
        raise InvalidGenerationOutput(f"Missing voop entries for {missing}")

    return VoopResult(
        language_to_echo=[str(phrase) for phrase in language],
        voop=[suggestions[value.id] for value in values],
    )


class VoopService:
    """Service for VOOP suggestions with a deterministic fallback."""

    MAX_TOKENS = 1500
    TEMPERATURE = 0.7

    def __init__(self) -> None:
        """Initialize VOOP service with the OpenAI client, if configured."""
        self.client = get_openai_client()
        self.settings = get_settings()

    def _fallback(self, values: list[ValueRef], story: str, error: str | None = None) -> VoopResult:
        return VoopResult(
            language_to_echo=build_fallback_language(story),
            voop=build_fallback_suggestions(values),
            fallback=True,
            error=error,
        )

    async def generate(self, values: list[ValueRef], story: str = "") -> VoopResult:
        """Suggest VOOP options for each value.

        Args:
            values: Values to suggest for.
            story: The person's story, possibly empty.

        Returns:
            VoopResult: One suggestion per value, flagged when it is the fallback.
        """
        if self.client is None:
            logger.warning("VOOP generation not configured, using fallback")
            return self._fallback(values, story)

        try:
            content = await asyncio.wait_for(
                asyncio.to_thread(self._request, values, story),
                timeout=self.settings.generation_timeout_seconds + TIMEOUT_GRACE_SECONDS,
            )
            result = validate_voop(extract_json_payload(content), values)
        except asyncio.TimeoutError:
            logger.error("VOOP generation timed out, using fallback")
            return self._fallback(values, story, "Generation timed out")
        except InvalidGenerationOutput as e:
            logger.warning("VOOP validation failed, using fallback: %s", e)
            return self._fallback(values, story, str(e))
        except Exception as e:
            logger.error("VOOP generation failed, using fallback: %s", e)
            return self._fallback(values, story, "Pipeline failed, using fallback")

        logger.info(
            "Generated VOOP suggestions, categories: %s",
            [item.obstacle_categories for item in result.voop],
        )
        return result

    def _request(self, values: list[ValueRef], story: str) -> str | None:
        values_list = ", ".join(f"{value.name} (id: {value.id})" for value in values)
        response = self.client.chat.create(
            model=self.settings.openai_model,
            messages=[
                {"role": "system", "content": VOOP_SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": VOOP_USER_PROMPT_TEMPLATE.format(
                        values_list=values_list,
                        story=story.strip() or NO_STORY_PLACEHOLDER,
                    ),
                },
            ],
            response_format={"type": "json_object"},
            temperature=self.TEMPERATURE,
            max_completion_tokens=self.MAX_TOKENS,
            timeout=self.settings.generation_timeout_seconds,
        )
        return response.choices[0].message.content
