"""LLM client — HTTP connection to a chat-completion backend.

The generator injects an LLM callable matching the protocol:

    async def __call__(self, stage: str, system_prompt: str, user_prompt: str) -> str: ...

`stage` names the content mode being generated ("trivia", "guess_mode",
"no_cap_mode"). The implementation may use it for logging; ChatLLM only logs it.

ChatLLM talks to any OpenAI-compatible /v1/chat/completions endpoint and
maps every failure to a GenerationError carrying a machine-readable reason,
so callers can tell a rate limit from a bad key from a truncated answer.
Tests use StubLLM (defined in conftest.py) instead.
"""

from __future__ import annotations

import logging
from typing import Any, Literal, Protocol

import httpx

logger = logging.getLogger(__name__)

GenerationReason = Literal[
    "rate_limited",
    "unauthorized",
    "quota_exceeded",
    "truncated",
    "malformed_output",
    "upstream_error",
]


# ---------------------------------------------------------------------------
# LLM protocol: every implementation must match this signature
# ---------------------------------------------------------------------------

class LLM(Protocol):
    async def __call__(self, stage: str, system_prompt: str, user_prompt: str) -> str: ...


# ---------------------------------------------------------------------------
# GenerationError: every upstream failure, tagged with a reason
# ---------------------------------------------------------------------------

class GenerationError(RuntimeError):
    """Raised when the generation backend fails or returns unusable output."""

    def __init__(self, reason: GenerationReason, message: str) -> None:
        super().__init__(message)
        self.reason = reason


# ---------------------------------------------------------------------------
# ChatLLM: OpenAI-compatible chat completions
# ---------------------------------------------------------------------------

class ChatLLM:
    """Async HTTP client for OpenAI-compatible chat completions.

    POST {provider_url}/v1/chat/completions
      {"model": ..., "messages": [system, user], "max_tokens": ...}
    Response: {"choices": [{"message": {"content": "..."}, "finish_reason": "stop"}]}

    Args:
        provider_url: Base URL of the backend, e.g. "https://api.openai.com".
        api_key:      Bearer token, or empty string if not required.
        model:        Model identifier sent with every request.
        max_tokens:   Completion budget; large sets need a large budget.
        timeout:      HTTP timeout in seconds. Defaults to 120.
    """

    def __init__(
        self,
        provider_url: str = "https://api.openai.com",
        api_key: str = "",
        model: str = "gpt-4o-mini",
        max_tokens: int = 16000,
        timeout: float = 120.0,
    ) -> None:
        self._base_url = provider_url.rstrip("/")
        self._api_key = api_key
        self._model = model
        self._max_tokens = max_tokens
        self._timeout = timeout

    def _headers(self) -> dict[str, str]:
        headers: dict[str, str] = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    def _build_request(self, system_prompt: str, user_prompt: str) -> tuple[str, dict]:
        url = f"{self._base_url}/v1/chat/completions"
        body: dict[str, Any] = {
            "model": self._model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "max_tokens": self._max_tokens,
        }
        return url, body

    def _parse_response(self, data: dict) -> str:
        choices = data.get("choices")
        if not choices or not isinstance(choices[0].get("message"), dict):
            raise GenerationError(
                "malformed_output", "Unexpected response format from chat backend"
            )
        if choices[0].get("finish_reason") == "length":
            raise GenerationError(
                "truncated", "Response was truncated; request fewer questions"
            )
        content = choices[0]["message"].get("content")
        if not isinstance(content, str):
            raise GenerationError("malformed_output", "Chat backend returned no content")
        return content

    def _status_error(self, response: httpx.Response) -> GenerationError:
        status = response.status_code
        try:
            payload = response.json()
        except ValueError:
            payload = {}
        error = payload.get("error") if isinstance(payload, dict) else None
        code = error.get("code") if isinstance(error, dict) else None
        detail = error.get("message") if isinstance(error, dict) else None

        if status == 401:
            return GenerationError("unauthorized", "Chat backend rejected the API key")
        if status == 402 or (status == 429 and code == "insufficient_quota"):
            return GenerationError("quota_exceeded", "Chat backend quota exhausted")
        if status == 429:
            return GenerationError("rate_limited", "Rate limit exceeded; wait and retry")
        return GenerationError(
            "upstream_error",
            f"Chat backend returned HTTP {status}: {detail or 'Unknown error'}",
        )

    async def __call__(self, stage: str, system_prompt: str, user_prompt: str) -> str:
        url, body = self._build_request(system_prompt, user_prompt)
        logger.debug(
            "llm call stage=%s url=%s prompt_len=%d",
            stage, url, len(system_prompt) + len(user_prompt),
        )

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(url, json=body, headers=self._headers())
                resp.raise_for_status()
        except httpx.ConnectError as e:
            raise GenerationError(
                "upstream_error", f"Cannot connect to chat backend at {self._base_url}"
            ) from e
        except httpx.HTTPStatusError as e:
            raise self._status_error(e.response) from e
        except httpx.TimeoutException as e:
            raise GenerationError(
                "upstream_error", f"Chat backend timed out after {self._timeout}s"
            ) from e
        except httpx.HTTPError as e:
            raise GenerationError(
                "upstream_error", f"Chat backend request failed: {type(e).__name__}: {e}"
            ) from e

        try:
            data = resp.json()
        except ValueError as e:
            raise GenerationError("malformed_output", "Chat backend returned non-JSON body") from e
        text = self._parse_response(data)
        logger.debug("llm response stage=%s len=%d", stage, len(text))
        return text
