"""
Review Generator

Sends review prompts to an OpenAI chat model and decodes the
response into validated review suggestions.
"""

import json
import logging
import re
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI
from pydantic import ValidationError

from ..models.review import ReviewSuggestion


logger = logging.getLogger(__name__)

_CODE_FENCE_PATTERN = re.compile(r'^```[a-zA-Z]*\s*\n(.*?)\n?```$', re.DOTALL)


class ReviewResponseError(ValueError):
    """Model response is not a JSON array of suggestions"""


@dataclass
class GenerationConfig:
    """Configuration for LLM generation."""
    max_tokens: int = 700
    temperature: float = 0.2
    top_p: float = 1.0
    frequency_penalty: float = 0.0
    presence_penalty: float = 0.0


def parse_review_response(text: Optional[str]) -> List[ReviewSuggestion]:
    """
    Decode a model response into review suggestions.

    An empty response means no suggestions. Entries that fail validation
    are dropped one by one; the remaining entries are kept.

    Raises:
        ReviewResponseError: If the text is not a JSON array
    """
    payload = (text or "").strip() or "[]"

    fence_match = _CODE_FENCE_PATTERN.match(payload)
    if fence_match:
        payload = fence_match.group(1).strip() or "[]"

    try:
        data = json.loads(payload)
    except json.JSONDecodeError as e:
        raise ReviewResponseError(f"Response is not valid JSON: {e}") from e

    if not isinstance(data, list):
        raise ReviewResponseError(f"Expected a JSON array, got {type(data).__name__}")

    suggestions = []
    for position, entry in enumerate(data):
        if not isinstance(entry, dict):
            logger.warning(f"Dropping suggestion #{position}: not an object")
            continue
        try:
            suggestions.append(ReviewSuggestion(**entry))
        except ValidationError as e:
            logger.warning(f"Dropping suggestion #{position}: {e.errors()[0].get('msg')}")

    return suggestions


class ReviewGenerator:
    """
    Generates review suggestions using an OpenAI chat model.

    Failures never leave this class: transport errors and undecodable
    responses are logged and reported as ``None`` for the hunk at hand.
    """

    def __init__(
        self,
        client: AsyncOpenAI,
        model_name: str,
        generation_config: Optional[GenerationConfig] = None
    ):
        """
        Initialize review generator.

        Args:
            client: OpenAI client, owned by the caller
            model_name: Chat model identifier
            generation_config: Sampling settings
        """
        self.client = client
        self.model_name = model_name
        self.generation_config = generation_config or GenerationConfig()

    def _build_request(self, prompt: str) -> Dict[str, Any]:
        return {
            'model': self.model_name,
            'messages': [{'role': 'system', 'content': prompt}],
            **asdict(self.generation_config),
        }

    async def generate_suggestions(self, prompt: str) -> Optional[List[ReviewSuggestion]]:
        """
        Ask the model to review one prompt.

        Args:
            prompt: Prompt built for a single hunk

        Returns:
            List of ReviewSuggestion (possibly empty), or None on failure
        """
        logger.debug("Sending review prompt to model")

        try:
            response = await self.client.chat.completions.create(**self._build_request(prompt))
            content = response.choices[0].message.content if response.choices else None
        except Exception as e:
            logger.error(f"Model request failed: {e}")
            return None

        logger.debug(f"Model response: {content}")

        try:
            return parse_review_response(content)
        except ReviewResponseError as e:
            logger.error(f"Could not decode model response: {e}")
            return None

    def get_model_info(self) -> Dict[str, Any]:
        """Get information about the configured model."""
        return {
            'model_name': self.model_name,
            'generation_config': asdict(self.generation_config),
        }
