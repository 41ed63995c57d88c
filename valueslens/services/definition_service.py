"""Fallback-aware generation of personalised value definitions.

Every call returns exactly one definition per requested value id. The model is
used when it is configured and its output validates; otherwise the
deterministic fallback fills in and the result is flagged.
"""

import asyncio
import json
import logging
import re
from typing import Any

from valueslens.core.config import get_settings
from valueslens.core.openai import get_openai_client
from valueslens.schemas.assessment import Commitment, Definition
from valueslens.schemas.definitions import GenerationResult, ValueRef
from valueslens.services.generation_prompts import (
    DEFINITION_SYSTEM_PROMPT,
    DEFINITION_USER_PROMPT_TEMPLATE,
    STORY_SECTION_TEMPLATE,
)
from valueslens.services.value_catalog import get_value_by_id

logger = logging.getLogger(__name__)

_FENCED_BLOCK = re.compile(r"```(?:json)?\s*\n?(.*?)\n?```", re.DOTALL)
_XML_TAG = re.compile(r"</?[A-Za-z][\w\-]*(?:\s[^<>]*)?>")
_OBJECT_SPAN = re.compile(r"\{[\s\S]*\}")

# Extra seconds on top of the client timeout before the call is abandoned.
TIMEOUT_GRACE_SECONDS = 2.0


class InvalidGenerationOutput(ValueError):
    """Model output could not be parsed or did not match the expected shape."""


def extract_json_payload(text: str | None) -> dict[str, Any]:
    """Locate and parse the JSON object in a model response.

    Code fences, XML-style wrapper tags and surrounding prose are tolerated.

    Raises:
        InvalidGenerationOutput: If no JSON object can be found.
    """
    if not text or not text.strip():
        raise InvalidGenerationOutput("Empty model response")

    untagged = _XML_TAG.sub("", text)
    candidates = [match.group(1) for match in _FENCED_BLOCK.finditer(text)]
    candidates.append(untagged)
    object_match = _OBJECT_SPAN.search(untagged)
    if object_match:
        candidates.append(object_match.group(0))

    for candidate in candidates:
        try:
            parsed = json.loads(candidate.strip())
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed

    raise InvalidGenerationOutput("No JSON object found in model response")


def build_fallback_definition(value_id: str, value_name: str) -> Definition:
    """Deterministic definition built only from catalog metadata."""
    value = get_value_by_id(value_id)
    lowered = value_name.lower()
    return Definition(
        tagline=value.card_text if value else f"Living {value_name} with intention",
        definition=f"{value_name} guides your decisions and shapes who you're becoming.",
        behavioral_anchors=[
            f"Notice moments when {lowered} shows up in your life",
            f"Choose {lowered} even when it's difficult",
        ],
        user_edited=False,
    )


def build_fallback_definitions(values: list[ValueRef]) -> dict[str, Definition]:
    return {value.id: build_fallback_definition(value.id, value.name) for value in values}


def _clean_text(raw: Any) -> str | None:
    if isinstance(raw, str) and raw.strip():
        return raw.strip()
    return None


def validate_definitions(payload: dict[str, Any], values: list[ValueRef]) -> dict[str, Definition]:
    """Check model output covers every requested id with a tagline.

    Ids that were not requested are dropped.

    Raises:
        InvalidGenerationOutput: If any requested id is missing or malformed.
    """
    raw_definitions = payload.get("definitions")
    if not isinstance(raw_definitions, dict):
        raise InvalidGenerationOutput("Response has no 'definitions' object")

    requested = {value.id for value in values}
    unexpected = set(raw_definitions) - requested
    if unexpected:
        logger.debug("Dropping definitions for unrequested ids: %s", sorted(unexpected))

    definitions: dict[str, Definition] = {}
    for value in values:
        raw = raw_definitions.get(value.id)
        if not isinstance(raw, dict):
            raise InvalidGenerationOutput(f"Missing definition for {value.id}")

        tagline = _clean_text(raw.get("tagline"))
        if tagline is None:
            raise InvalidGenerationOutput(f"Empty tagline for {value.id}")

        anchors = raw.get("behavioralAnchors", raw.get("behavioral_anchors"))
        if isinstance(anchors, list):
            anchors = [a.strip() for a in anchors if isinstance(a, str) and a.strip()] or None
        else:
            anchors = None

        definitions[value.id] = Definition(
            tagline=tagline,
            definition=_clean_text(raw.get("definition")),
            behavioral_anchors=anchors,
            user_edited=False,
        )
    return definitions


class DefinitionService:
    """Service for generating definitions of a person's top values."""

    MAX_TOKENS = 2000
    TEMPERATURE = 0.7

    def __init__(self) -> None:
        """Initialize definition service with the OpenAI client, if configured."""
        self.client = get_openai_client()
        self.settings = get_settings()

    async def generate(
        self,
        values: list[ValueRef],
        transcript: str = "",
        commitments: dict[str, Commitment] | None = None,
    ) -> GenerationResult:
        """Generate one definition per value id.

        Never raises for model failures: the deterministic fallback is used
        and ``fallback`` is set instead.

        Args:
            values: Values to define, in rank order.
            transcript: The person's story, possibly empty.
            commitments: VOOP commitments keyed by value id.

        Returns:
            GenerationResult: Definitions keyed by value id.
        """
        values = list({value.id: value for value in values}.values())
        if not values:
            return GenerationResult(definitions={})

        if self.client is None:
            logger.warning("Definition generation not configured, using fallback definitions")
            return GenerationResult(definitions=build_fallback_definitions(values), fallback=True)

        try:
            content = await asyncio.wait_for(
                asyncio.to_thread(self._request, values, transcript, commitments or {}),
                timeout=self.settings.generation_timeout_seconds + TIMEOUT_GRACE_SECONDS,
            )
            definitions = validate_definitions(extract_json_payload(content), values)
        except asyncio.TimeoutError:
            logger.error(
                "Definition generation exceeded %ss, using fallback definitions",
                self.settings.generation_timeout_seconds,
            )
            return GenerationResult(
                definitions=build_fallback_definitions(values),
                fallback=True,
                error="Generation timed out",
            )
        except Exception as e:
            logger.error("Definition generation failed, using fallback definitions: %s", e)
            return GenerationResult(
                definitions=build_fallback_definitions(values),
                fallback=True,
                error=f"{type(e).__name__}: {e}",
            )

        logger.info("Generated definitions for %s", [value.id for value in values])
        return GenerationResult(definitions=definitions)

    def _request(
        self,
        values: list[ValueRef],
        transcript: str,
        commitments: dict[str, Commitment],
    ) -> str | None:
        response = self.client.chat.create(
            model=self.settings.openai_model,
            messages=[
                {"role": "system", "content": DEFINITION_SYSTEM_PROMPT},
                {"role": "user", "content": self._build_user_prompt(values, transcript, commitments)},
            ],
            response_format={"type": "json_object"},
            temperature=self.TEMPERATURE,
            max_completion_tokens=self.MAX_TOKENS,
            timeout=self.settings.generation_timeout_seconds,
        )
        return response.choices[0].message.content

    @staticmethod
    def _build_user_prompt(
        values: list[ValueRef],
        transcript: str,
        commitments: dict[str, Commitment],
    ) -> str:
        values_list = "\n".join(
            f"{i}. {value.name} (ID: {value.id})" for i, value in enumerate(values, start=1)
        )

        def goal(value_id: str) -> str:
            commitment = commitments.get(value_id)
            if commitment and commitment.is_complete:
                return commitment.statement
            return "No goal set"

        commitments_list = "\n".join(f'- {value.name}: "{goal(value.id)}"' for value in values)
        story_section = (
            STORY_SECTION_TEMPLATE.format(transcript=transcript.strip()) if transcript.strip() else ""
        )
        return DEFINITION_USER_PROMPT_TEMPLATE.format(
            values_list=values_list,
            story_section=story_section,
            commitments_list=commitments_list,
        )
