#!/usr/bin/env python3
"""
LLM Client - Single-shot text completion over HTTP.

Supports the providers named in LLMConfig: gemini, openai, claude and
ollama. Each call is one POST with the configured timeout; there are no
retries.
"""

import logging
from typing import Optional

import requests

from config import LLMConfig

logger = logging.getLogger(__name__)

GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
OPENAI_URL = "https://api.openai.com/v1/chat/completions"
CLAUDE_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_VERSION = "2023-06-01"


class LLMError(Exception):
    """Raised when the provider is unusable or returns no text."""


class LLMClient:
    """
    Provider-agnostic LLM client.

    Usage:
        client = LLMClient(config.llm)
        text = client.generate("Classify this filename ...")
    """

    def __init__(self, config: LLMConfig, session: Optional[requests.Session] = None):
        """
        Initialize the client.

        Args:
            config: LLM section of the app config
            session: Optional requests session (a new one per call if omitted)
        """
        self.config = config
        self._session = session

    @property
    def provider(self) -> str:
        return self.config.provider

    @property
    def model(self) -> str:
        return self.config.get_provider_config().get("model", "")

    def _post(self, url: str, **kwargs) -> dict:
        poster = self._session.post if self._session is not None else requests.post
        try:
            response = poster(url, timeout=self.config.timeout, **kwargs)
            response.raise_for_status()
            return response.json()
        except requests.exceptions.RequestException as e:
            raise LLMError(f"{self.provider} request failed: {e}") from e
        except ValueError as e:
            raise LLMError(f"{self.provider} returned invalid JSON: {e}") from e

    def generate(self, prompt: str) -> str:
        """
        Run one completion.

        Args:
            prompt: Full prompt text

        Returns:
            Model output, stripped

        Raises:
            LLMError: If the provider is not configured, the request fails,
                or the response has no text
        """
        if not self.config.is_valid():
            raise LLMError(f"LLM provider '{self.provider}' is not configured")

        handlers = {
            "gemini": self._generate_gemini,
            "openai": self._generate_openai,
            "claude": self._generate_claude,
            "ollama": self._generate_ollama,
        }
        handler = handlers.get(self.provider)
        if handler is None:
            raise LLMError(f"Unknown LLM provider: {self.provider}")

        text = handler(prompt)
        if not text or not text.strip():
            raise LLMError(f"{self.provider} returned an empty response")
        return text.strip()

    def _generate_gemini(self, prompt: str) -> str:
        data = self._post(
            GEMINI_URL.format(model=self.config.gemini_model),
            params={"key": self.config.gemini_api_key},
            json={"contents": [{"parts": [{"text": prompt}]}]},
        )
        try:
            parts = data["candidates"][0]["content"]["parts"]
            return "".join(part.get("text", "") for part in parts)
        except (KeyError, IndexError, TypeError) as e:
            raise LLMError(f"Unexpected Gemini response shape: {e}") from e

    def _generate_openai(self, prompt: str) -> str:
        data = self._post(
            OPENAI_URL,
            headers={"Authorization": f"Bearer {self.config.openai_api_key}"},
            json={
                "model": self.config.openai_model,
                "messages": [{"role": "user", "content": prompt}],
                "temperature": 0,
            },
        )
        try:
            return data["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError) as e:
            raise LLMError(f"Unexpected OpenAI response shape: {e}") from e

    def _generate_claude(self, prompt: str) -> str:
        data = self._post(
            CLAUDE_URL,
            headers={
                "x-api-key": self.config.anthropic_api_key,
                "anthropic-version": ANTHROPIC_VERSION,
            },
            json={
                "model": self.config.claude_model,
                "max_tokens": 256,
                "messages": [{"role": "user", "content": prompt}],
            },
        )
        try:
            return "".join(
                block.get("text", "") for block in data["content"] if block.get("type") == "text"
            )
        except (KeyError, TypeError) as e:
            raise LLMError(f"Unexpected Claude response shape: {e}") from e

    def _generate_ollama(self, prompt: str) -> str:
        data = self._post(
            self.config.ollama_url,
            json={"model": self.config.ollama_model, "prompt": prompt, "stream": False},
        )
        return data.get("response", "") if isinstance(data, dict) else ""
