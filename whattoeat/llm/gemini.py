"""Gemini text completion shared by keyword expansion and translation.

Single-attempt, stateless request/response calls. Callers wrap them with
safe_execute_async so that an unavailable model degrades to passthrough.
"""

import asyncio
import json
import re
from typing import Optional

from google import genai
from google.genai import types

from whattoeat.utils.config import config
from whattoeat.utils.errors import safe_execute_sync
from whattoeat.utils.logger import logger


class GeminiCompletion:
    """Minimal async facade over the google-genai client."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
    ) -> None:
        self.api_key = api_key or config.GEMINI_API_KEY
        if not self.api_key:
            raise ValueError("GEMINI_API_KEY is required for Gemini completions")
        self.model = model or config.LLM_MODEL
        self.timeout_seconds = timeout_seconds or config.LLM_TIMEOUT_SECONDS
        self._client: Optional[genai.Client] = None

    @property
    def client(self) -> genai.Client:
        if self._client is None:
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    async def generate_text(
        self,
        prompt: str,
        system_instruction: Optional[str] = None,
        json_output: bool = False,
    ) -> str:
        """Run one completion and return the response text.

        Raises:
            asyncio.TimeoutError: If the call exceeds timeout_seconds.
            Exception: Any error raised by the google-genai client.
        """
        generation_config = types.GenerateContentConfig(
            temperature=config.TEMPERATURE,
            system_instruction=system_instruction,
            response_mime_type="application/json" if json_output else None,
        )
        # The sync client runs in a worker thread; wait_for bounds how long the request waits on it
        response = await asyncio.wait_for(
            asyncio.to_thread(
                self.client.models.generate_content,
                model=self.model,
                contents=prompt,
                config=generation_config,
            ),
            timeout=self.timeout_seconds,
        )
        text = (response.text or "").strip()
        logger.debug(f"Gemini completion ({self.model}): {len(text)} chars")
        return text


def parse_json_response(response_text: str) -> Optional[dict]:
    """Leniently parse a JSON object out of a model response.

    Tries the whole text first, then the outermost {...} block (models
    sometimes wrap JSON in prose or code fences). Returns None if neither works.
    """

    def _parse_json_direct():
        return json.loads(response_text)

    def _parse_json_regex():
        json_match = re.search(r"\{.*\}", response_text, re.DOTALL)
        if json_match:
            return json.loads(json_match.group())
        return None

    parsed = safe_execute_sync(_parse_json_direct, "Direct JSON parse", log_level="debug")
    if not isinstance(parsed, dict):
        parsed = safe_execute_sync(_parse_json_regex, "Regex JSON extraction", log_level="debug")

    if not isinstance(parsed, dict):
        logger.warning("Failed to parse JSON from Gemini response")
        return None
    return parsed
