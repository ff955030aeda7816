"""Hosted generative-AI client for the advisory flows.

Calls the Gemini ``generateContent`` REST endpoint with an API key and asks
for a JSON reply. Transient failures (timeouts, connection errors, 429 and
5xx responses) are retried with exponential backoff and jitter.

Environment:
    GENAI_API_KEY: provider API key (GEMINI_API_KEY / GOOGLE_API_KEY also read)
    GENAI_MODEL: model name, e.g. gemini-2.0-flash

Usage:
    client = GenAIClient()
    text = await client.generate("Summarize ...")
    await client.close()
"""

from __future__ import annotations

import asyncio
import logging
import random
import time
from typing import Any, Dict, Optional

import httpx

from agentmesh import config
from agentmesh.settings import (
    GENAI_HTTP_TIMEOUT,
    GENAI_MAX_RETRIES,
    GENAI_RATE_LIMIT_MIN_DELAY,
    GENAI_RETRY_BASE_DELAY,
    GENAI_TEMPERATURE,
)

logger = logging.getLogger("agentmesh.advisor.client")

_RETRYABLE_STATUS = frozenset({429, 500, 502, 503, 504})


class GenAIClientError(Exception):
    """Raised when a generative-AI call fails."""


class GenAIConfigError(GenAIClientError):
    """Raised when the provider is not configured (no API key)."""


class GenAIResponseError(GenAIClientError):
    """Raised when the provider reply is empty or does not match the output schema."""


class GenAIClient:
    """Async client for the hosted model provider.

    Args:
        api_key: Provider API key. Falls back to GENAI_API_KEY.
        model: Model name. Falls back to GENAI_MODEL.
        base_url: API root. Falls back to GENAI_API_BASE.
        timeout: HTTP request timeout in seconds.
        max_retries: Retries after the first attempt on transient failures.
        retry_base_delay: First backoff delay; doubles on each retry.
        rate_limit_min_delay: Floor for the backoff after a 429.
        transport: Optional httpx transport (tests use httpx.MockTransport).
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: float = GENAI_HTTP_TIMEOUT,
        max_retries: int = GENAI_MAX_RETRIES,
        retry_base_delay: float = GENAI_RETRY_BASE_DELAY,
        rate_limit_min_delay: float = GENAI_RATE_LIMIT_MIN_DELAY,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._api_key = api_key or config.GENAI_API_KEY
        if not self._api_key:
            raise GenAIConfigError(
                "Generative AI key not configured. Set GENAI_API_KEY environment variable "
                "or pass api_key= to GenAIClient()."
            )
        self.model = model or config.GENAI_MODEL
        self._base_url = base_url or config.GENAI_API_BASE
        self._timeout = timeout
        self._max_retries = max(0, max_retries)
        self._retry_base_delay = retry_base_delay
        self._rate_limit_min_delay = rate_limit_min_delay
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                headers={"x-goog-api-key": self._api_key},
                timeout=self._timeout,
                limits=httpx.Limits(max_connections=5, max_keepalive_connections=3),
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "GenAIClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    def _backoff(self, attempt: int, rate_limited: bool) -> float:
        base = self._retry_base_delay * (2 ** (attempt - 1))
        if rate_limited:
            base = max(base, self._rate_limit_min_delay)
        # +/-25% jitter
        return base * (1.0 + random.uniform(-0.25, 0.25))

    async def _post_once(self, path: str, body: Dict[str, Any]) -> httpx.Response:
        client = await self._get_client()
        try:
            return await client.post(path, json=body)
        except httpx.TimeoutException as e:
            raise GenAIClientError(f"Generative AI timeout: {path}") from e
        except httpx.TransportError as e:
            raise GenAIClientError(f"Generative AI connection error: {path}") from e

    async def generate(self, prompt: str, caller: str = "GenAI") -> str:
        """Send one prompt and return the model's text reply.

        Raises:
            GenAIClientError: Provider unreachable or erroring after all retries
            GenAIResponseError: Reply carried no text
        """
        path = f"/v1beta/models/{self.model}:generateContent"
        body = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "responseMimeType": "application/json",
                "temperature": GENAI_TEMPERATURE,
            },
        }

        attempts = 1 + self._max_retries
        last_error: Optional[Exception] = None
        rate_limited = False
        start = time.monotonic()

        for attempt in range(attempts):
            if attempt > 0:
                delay = self._backoff(attempt, rate_limited)
                logger.warning(
                    "%s: retry %d/%d after %.1fs%s (previous error: %s)",
                    caller, attempt, self._max_retries, delay,
                    " [rate-limited]" if rate_limited else "", last_error,
                )
                await asyncio.sleep(delay)

            logger.info("%s: calling %s (attempt %d/%d)", caller, self.model, attempt + 1, attempts)
            try:
                resp = await self._post_once(path, body)
            except GenAIClientError as e:
                last_error = e
                rate_limited = False
                continue

            if resp.status_code in _RETRYABLE_STATUS:
                rate_limited = resp.status_code == 429
                last_error = GenAIClientError(
                    f"Generative AI error {resp.status_code}: {resp.text[:200]}"
                )
                continue
            if resp.status_code in (401, 403):
                raise GenAIConfigError(
                    f"Generative AI rejected the API key ({resp.status_code}). Check GENAI_API_KEY."
                )
            if resp.status_code != 200:
                raise GenAIClientError(
                    f"Generative AI error {resp.status_code}: {resp.text[:200]}"
                )

            try:
                payload = resp.json()
            except ValueError as e:
                raise GenAIResponseError(f"{caller}: provider reply is not JSON: {resp.text[:200]}") from e

            text = _extract_text(payload)
            if not text:
                raise GenAIResponseError(f"{caller}: model returned no text")
            logger.info(
                "%s: reply in %d ms (%d chars)",
                caller, int((time.monotonic() - start) * 1000), len(text),
            )
            return text

        raise last_error or GenAIClientError(
            f"{caller}: generative AI call failed after {attempts} attempts"
        )


def _extract_text(payload: Any) -> str:
    """Concatenate the text parts of the first candidate.

    Any body that does not have the generateContent shape yields "".
    """
    if not isinstance(payload, dict):
        return ""
    candidates = payload.get("candidates")
    if not isinstance(candidates, list) or not candidates or not isinstance(candidates[0], dict):
        return ""
    content = candidates[0].get("content")
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list):
        return ""
    return "".join(
        p["text"] for p in parts if isinstance(p, dict) and isinstance(p.get("text"), str)
    )
