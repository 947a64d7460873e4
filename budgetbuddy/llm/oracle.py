"""
Language-model backend used for intent classification and free-text insights.

Everything outside this module talks to the model through the ``TextOracle``
protocol and only ever sees ``OracleError`` subclasses, so the backend can be
swapped without touching the chat pipeline.
"""

import json
from typing import Protocol

import openai
from loguru import logger
from openai import OpenAI


class OracleError(Exception):
    """The language model couldn't produce a usable answer."""


class QuotaExceeded(OracleError):
    pass


class RateLimited(OracleError):
    pass


class TransportError(OracleError):
    """Connection failure, timeout or any other provider-side error."""


class InvalidOutput(OracleError):
    """The model answered, but not with what was asked for."""


def classify_failure(exc: Exception) -> OracleError:
    """Map any backend exception onto the OracleError taxonomy."""
    if isinstance(exc, OracleError):
        return exc
    message = str(exc).lower()
    if "quota" in message:
        return QuotaExceeded(str(exc))
    if "rate limit" in message or isinstance(exc, openai.RateLimitError):
        return RateLimited(str(exc))
    return TransportError(str(exc))


class TextOracle(Protocol):
    def complete(
        self, system_prompt: str, user_message: str, output_schema: dict
    ) -> dict: ...

    def complete_text(self, system_prompt: str, user_message: str) -> str: ...


def strip_code_fences(raw: str) -> str:
    if raw.startswith("```"):
        lines = raw.split("\n")
        lines = [l for l in lines if not l.startswith("```")]
        raw = "\n".join(lines)
    return raw


class OpenAIOracle:
    """Chat-completions backend for any OpenAI-compatible endpoint (OpenRouter by default)."""

    def __init__(self, api_key: str, model: str, base_url: str, timeout: float):
        # Without a key every call fails with TransportError instead
        self.client = None
        if api_key:
            self.client = OpenAI(
                base_url=base_url,
                api_key=api_key,
                timeout=timeout,
                max_retries=0,
            )
        self.model = model

    def _chat(self, system_prompt: str, user_message: str, **kwargs) -> str:
        if self.client is None:
            raise TransportError("No API key configured for the language model")
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_message},
        ]
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=0.1,
                **kwargs,
            )
        except openai.OpenAIError as e:
            raise classify_failure(e) from e

        if not response.choices:
            raise InvalidOutput("LLM response has no choices")
        content = response.choices[0].message.content
        if not content or not content.strip():
            raise InvalidOutput("Empty response from model")
        return content.strip()

    def complete(
        self, system_prompt: str, user_message: str, output_schema: dict
    ) -> dict:
        raw = self._chat(
            system_prompt,
            user_message,
            response_format={
                "type": "json_schema",
                "json_schema": {"name": "intent_result", "schema": output_schema},
            },
        )
        logger.debug("LLM raw response: {}", raw)

        try:
            data = json.loads(strip_code_fences(raw))
        except json.JSONDecodeError as e:
            raise InvalidOutput(f"LLM response is not JSON: {e}") from e
        if not isinstance(data, dict):
            raise InvalidOutput("LLM response is not a JSON object")
        return data

    def complete_text(self, system_prompt: str, user_message: str) -> str:
        return self._chat(system_prompt, user_message)
