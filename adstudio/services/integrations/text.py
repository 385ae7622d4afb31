"""
Text generation providers.

The default talks to an OpenAI-compatible chat gateway and forces a tool call so
the answer arrives as JSON arguments. Gemini is supported through its own SDK,
asking for strict JSON in the prompt.
"""
import json
import logging
from typing import Dict, Any

import openai
from openai import AsyncOpenAI
import google.generativeai as genai

from adstudio.config import settings
from adstudio.core.exceptions import (
    ConfigurationError,
    QuotaExceededError,
    RateLimitError,
    TransportError,
    UpstreamError,
    raise_for_upstream_status,
)
from adstudio.services.integrations.base import TextGenerator

logger = logging.getLogger(__name__)


class GatewayTextGenerator(TextGenerator):
    """OpenAI-compatible chat completions with tool calling."""

    name = "AI gateway"

    def __init__(self, api_key: str = None, base_url: str = None, model: str = None):
        self.api_key = api_key if api_key is not None else settings.AI_GATEWAY_API_KEY
        self.base_url = base_url or settings.AI_GATEWAY_URL
        self.model = model or settings.AI_MODEL
        self._client = None

    @property
    def client(self) -> AsyncOpenAI:
        if not self.api_key:
            raise ConfigurationError("AI_GATEWAY_API_KEY")
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self.api_key, base_url=self.base_url)
        return self._client

    async def generate_structured(
        self,
        system_prompt: str,
        user_prompt: str,
        tool_name: str,
        tool_description: str,
        parameters: Dict[str, Any]
    ) -> Dict[str, Any]:
        client = self.client
        try:
            response = await client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt}
                ],
                tools=[{
                    "type": "function",
                    "function": {
                        "name": tool_name,
                        "description": tool_description,
                        "parameters": parameters
                    }
                }],
                tool_choice={"type": "function", "function": {"name": tool_name}}
            )
        except openai.APIConnectionError as e:
            logger.error(f"{self.name} unreachable: {e}")
            raise TransportError(self.name, str(e))
        except openai.APIStatusError as e:
            logger.error(f"{self.name} error: {e.status_code} {e.message}")
            raise_for_upstream_status(self.name, e.status_code, e.message)
            raise

        tool_calls = response.choices[0].message.tool_calls if response.choices else None
        if not tool_calls or not tool_calls[0].function.arguments:
            raise UpstreamError(self.name, "Invalid AI response format")

        try:
            return json.loads(tool_calls[0].function.arguments)
        except json.JSONDecodeError as e:
            raise UpstreamError(self.name, f"Unparseable tool arguments: {e}")


class GeminiTextGenerator(TextGenerator):
    """Gemini via google-generativeai, JSON requested in the prompt."""

    name = "Gemini"

    def __init__(self, api_key: str = None, model: str = None):
        self.api_key = api_key if api_key is not None else settings.GEMINI_API_KEY
        self.model_name = model or settings.AI_MODEL.split("/")[-1]
        self._model = None

    @property
    def model(self):
        if not self.api_key:
            raise ConfigurationError("GEMINI_API_KEY")
        if self._model is None:
            genai.configure(api_key=self.api_key)
            self._model = genai.GenerativeModel(self.model_name)
        return self._model

    async def generate_structured(
        self,
        system_prompt: str,
        user_prompt: str,
        tool_name: str,
        tool_description: str,
        parameters: Dict[str, Any]
    ) -> Dict[str, Any]:
        prompt = f"""{system_prompt}

{user_prompt}

Task: {tool_description}
OUTPUT FORMAT (JSON ONLY), matching this JSON schema:
{json.dumps(parameters)}
"""
        model = self.model
        try:
            response = await model.generate_content_async(prompt)
            text = response.text
        except Exception as e:
            message = str(e)
            if "429" in message or "rate" in message.lower():
                raise RateLimitError(self.name)
            if "quota" in message.lower():
                raise QuotaExceededError(self.name)
            logger.error(f"Gemini generation failed: {e}")
            raise UpstreamError(self.name, message)

        try:
            return json.loads(strip_code_fence(text))
        except json.JSONDecodeError as e:
            raise UpstreamError(self.name, f"Unparseable JSON: {e}")


def strip_code_fence(text: str) -> str:
    """Remove a surrounding markdown code block, if any."""
    text = text.strip()
    if text.startswith("```json"):
        text = text[7:]
    if text.startswith("```"):
        text = text[3:]
    if text.endswith("```"):
        text = text[:-3]
    return text.strip()
