import json
import logging
import re
from typing import Any

import openai

from config import Settings

logger = logging.getLogger(__name__)

ARTWORK_PROMPT = (
    'Tell me about "{name}" in JSON format with exactly these fields: '
    "title, artist, year_created, description, historical_context, "
    "artistic_technique, significance. If it's a famous artwork, provide "
    "accurate information. Format response as valid JSON only."
)

TEMPERATURE = 0.7
MAX_TOKENS = 1500
REQUEST_TIMEOUT = 30.0

_JSON_BLOCK = re.compile(r"\{[\s\S]*\}")


def extract_json_object(text: str) -> dict[str, Any] | None:
    """Pull the JSON object out of free-form model output.

    Takes the span from the first ``{`` to the last ``}`` and parses it.
    Returns None when there is no such span or it is not valid JSON.
    """
    match = _JSON_BLOCK.search(text)
    if not match:
        return None
    try:
        return json.loads(match.group(0))
    except json.JSONDecodeError:
        return None


class DescriptionGenerator:
    def __init__(self, settings: Settings):
        self._model = settings.groq_model
        self._client = None
        if settings.groq_api_key:
            self._client = openai.AsyncOpenAI(
                api_key=settings.groq_api_key,
                base_url=settings.groq_base_url,
                timeout=REQUEST_TIMEOUT,
                max_retries=0,
            )

    async def _call_once(self, artwork_name: str) -> str:
        response = await self._client.chat.completions.create(
            model=self._model,
            messages=[
                {"role": "user", "content": ARTWORK_PROMPT.format(name=artwork_name)}
            ],
            temperature=TEMPERATURE,
            max_tokens=MAX_TOKENS,
        )
        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise ValueError("No content from Groq")
        return content

    async def generate(self, artwork_name: str) -> dict[str, Any]:
        """Ask the LLM for a structured write-up of the artwork.

        Never raises for upstream problems; failures are reported inside the
        returned mapping.
        """
        if self._client is None:
            logger.error("Groq API key not configured")
            return {"title": artwork_name, "error": "Groq API key not configured"}

        try:
            content = await self._call_once(artwork_name)
        except openai.APIStatusError as exc:
            logger.error("Groq request failed with HTTP %s: %s", exc.status_code, exc)
            if exc.status_code == 401:
                return {
                    "title": artwork_name,
                    "error": "Groq authentication failed - invalid API key",
                    "status": 401,
                }
            return _failure(artwork_name, exc)
        except (openai.OpenAIError, ValueError) as exc:
            logger.error("Groq request failed: %s", exc)
            return _failure(artwork_name, exc)

        details = extract_json_object(content)
        if details is None:
            logger.warning("Could not parse JSON from Groq response, returning raw text")
            return {"title": artwork_name, "description": content}
        return details


def _failure(artwork_name: str, exc: Exception) -> dict[str, Any]:
    return {
        "title": artwork_name,
        "error": "Failed to generate description",
        "details": str(exc),
    }
