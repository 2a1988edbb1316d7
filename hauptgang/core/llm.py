"""
OpenRouter HTTP client helpers.

Used endpoint:
- POST /chat/completions  -> {"choices": [{"message": {"content": "..."}}]}

Structured output is requested with `response_format: json_schema`, so the
assistant content is a JSON object matching the supplied schema.
"""

from __future__ import annotations

import json
from typing import Any

import httpx

from . import settings

DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"


# LLM failures are explicit and separable from other runtime errors.
class LlmError(RuntimeError):
    pass


class LlmTimeoutError(LlmError):
    pass


def openrouter_base_url() -> str:
    return settings.env_str("OPENROUTER_BASE_URL", DEFAULT_BASE_URL).rstrip("/")


def openrouter_api_key() -> str:
    return settings.env_str("OPENROUTER_API_KEY")


def llm_timeout_s() -> float:
    return settings.env_float("LLM_TIMEOUT_S", 60.0)


def _extract_content(data: dict[str, Any]) -> str:
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        raise LlmError("LLM returned no choices.")

    message = choices[0].get("message") if isinstance(choices[0], dict) else None
    content = message.get("content") if isinstance(message, dict) else None
    if not isinstance(content, str) or not content.strip():
        raise LlmError("LLM returned an empty message.")
    return content.strip()


async def chat_json(
    *,
    model: str,
    messages: list[dict[str, Any]],
    schema_name: str,
    schema: dict[str, Any],
    timeout_s: float | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> dict[str, Any]:
    """
    Ask `model` for one assistant message constrained to `schema`.

    Returns the decoded JSON object.
    """
    model = (model or "").strip()
    if not model:
        raise LlmError("Model name is empty.")
    if not messages:
        raise LlmError("Messages list is empty.")

    api_key = openrouter_api_key()
    if not api_key:
        raise LlmError("OPENROUTER_API_KEY is not set.")

    payload: dict[str, Any] = {
        "model": model,
        "messages": messages,
        "response_format": {
            "type": "json_schema",
            "json_schema": {"name": schema_name, "strict": True, "schema": schema},
        },
    }

    try:
        async with httpx.AsyncClient(
            base_url=openrouter_base_url(),
            timeout=timeout_s or llm_timeout_s(),
            transport=transport,
            headers={"Authorization": f"Bearer {api_key}"},
        ) as client:
            resp = await client.post("/chat/completions", json=payload)
    except (httpx.TimeoutException, httpx.ConnectError) as exc:
        raise LlmTimeoutError(str(exc) or exc.__class__.__name__) from exc
    except httpx.HTTPError as exc:
        raise LlmError(f"LLM request failed: {exc}") from exc

    if resp.status_code != 200:
        # Avoid dumping huge bodies; include a small snippet.
        body = resp.text[:500]
        raise LlmError(f"LLM request failed: {resp.status_code} {body}")

    try:
        data = resp.json()
    except ValueError as exc:
        raise LlmError(f"LLM returned a non-JSON response: {resp.text[:200]}") from exc
    if not isinstance(data, dict):
        raise LlmError("LLM returned an unexpected response.")

    content = _extract_content(data)
    try:
        parsed = json.loads(content)
    except json.JSONDecodeError as exc:
        raise LlmError("LLM returned malformed JSON.") from exc

    if not isinstance(parsed, dict):
        raise LlmError("LLM returned a non-object JSON value.")
    return parsed
