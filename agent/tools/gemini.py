from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from config.settings import Settings


logger = logging.getLogger(__name__)


class GeminiConfigError(RuntimeError):
    """GEMINI_API_KEY is missing."""


@dataclass
class GeminiReply:
    status_code: int
    body: Dict[str, Any]

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


def wrap_text(text: str) -> Dict[str, Any]:
    """Shape locally produced text like a generateContent response."""
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


class GeminiClient:
    """Single-shot calls to the generateContent endpoint.

    Successful bodies are passed back untouched; error statuses and bodies are
    handed to the caller as-is so the relay can mirror them.
    """

    def __init__(self, settings: Settings, transport: Optional[httpx.BaseTransport] = None) -> None:
        self.settings = settings
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.settings.gemini_api_key)

    def generate(self, prompt: str) -> GeminiReply:
        if not self.settings.gemini_api_key:
            raise GeminiConfigError("GEMINI_API_KEY not set")

        url = f"{self.settings.gemini_base_url}/models/{self.settings.gemini_model}:generateContent"
        payload = {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}

        with httpx.Client(timeout=self.settings.http_timeout, transport=self._transport) as client:
            response = client.post(
                url,
                params={"key": self.settings.gemini_api_key},
                json=payload,
            )

        try:
            body = response.json()
        except ValueError:
            body = {"error": {"message": response.text or f"Gemini API error {response.status_code}"}}

        if response.status_code >= 400:
            logger.warning(
                "Gemini returned %s for model=%s", response.status_code, self.settings.gemini_model
            )
        return GeminiReply(status_code=response.status_code, body=body)
