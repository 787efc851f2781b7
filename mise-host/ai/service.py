"""
Mise Host — AI Service

Single-call chat completion client.  Handlers only ever see
``generate(prompt) -> AIResponse``; every provider failure surfaces as an
``AIServiceError`` (transport/HTTP) or ``AIResponseError`` (unusable body).
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Protocol

import aiohttp

from ai.parsing import extract_json_object
from host.errors import AIResponseError, AIServiceError
from host_config import HostConfig

logger = logging.getLogger("mise.ai.service")


@dataclass
class AIResponse:
    text: str
    structured_json: dict[str, Any] | None = None
    model: str = ""


class AIService(Protocol):
    async def generate(
        self,
        prompt: str,
        *,
        system_prompt: str | None = None,
        json_mode: bool = False,
    ) -> AIResponse: ...


class OpenAIService:
    """OpenAI-compatible ``/chat/completions`` client over aiohttp."""

    def __init__(
        self,
        api_key: str,
        *,
        model: str,
        base_url: str,
        timeout_seconds: int = 120,
    ):
        self._api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds

    async def generate(
        self,
        prompt: str,
        *,
        system_prompt: str | None = None,
        json_mode: bool = False,
    ) -> AIResponse:
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})
        body: dict[str, Any] = {"model": self.model, "messages": messages}
        if json_mode:
            body["response_format"] = {"type": "json_object"}

        logger.debug("Calling %s (model=%s, json=%s)", self.base_url, self.model, json_mode)
        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(
                    f"{self.base_url}/chat/completions",
                    json=body,
                    headers={"Authorization": f"Bearer {self._api_key}"},
                    timeout=aiohttp.ClientTimeout(total=self.timeout_seconds),
                ) as resp:
                    if resp.status >= 400:
                        detail = await _error_detail(resp)
                        raise AIServiceError(
                            f"AI provider returned HTTP {resp.status}: {detail}",
                            status=resp.status,
                        )
                    payload = await resp.json(content_type=None)
        except asyncio.TimeoutError as exc:
            raise AIServiceError(f"AI request timed out after {self.timeout_seconds}s") from exc
        except aiohttp.ClientError as exc:
            raise AIServiceError(f"Network error calling AI provider: {exc}") from exc

        text = _first_choice_text(payload)
        if not text:
            raise AIResponseError("AI provider returned an empty response.")
        return AIResponse(
            text=text,
            structured_json=extract_json_object(text) if json_mode else None,
            model=str(payload.get("model") or self.model),
        )


async def _error_detail(resp: aiohttp.ClientResponse) -> str:
    try:
        data = await resp.json(content_type=None)
    except (aiohttp.ContentTypeError, ValueError):
        return (await resp.text())[:300]
    if isinstance(data, dict):
        err = data.get("error")
        if isinstance(err, dict) and err.get("message"):
            return str(err["message"])
    return str(data)[:300]


def _first_choice_text(payload: Any) -> str:
    if not isinstance(payload, dict):
        return ""
    choices = payload.get("choices") or []
    if not choices or not isinstance(choices[0], dict):
        return ""
    message = choices[0].get("message") or {}
    return str(message.get("content") or "").strip()


def openai_service_factory(api_key: str, config: HostConfig) -> OpenAIService:
    return OpenAIService(
        api_key,
        model=config.openai_model,
        base_url=config.openai_base_url,
        timeout_seconds=config.ai_timeout_seconds,
    )
