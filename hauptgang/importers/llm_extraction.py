"""
Recipe extraction through an LLM (text, webpage text, or a photo).
"""

from __future__ import annotations

import base64
import logging
from typing import Any

from hauptgang.core import llm, settings

from . import prompts, results

MAX_TEXT_LENGTH = 15_000
DEFAULT_TEXT_MODEL = "openai/gpt-oss-20b"
DEFAULT_IMAGE_MODEL = "meta-llama/llama-4-maverick"

logger = logging.getLogger(__name__)


def text_model() -> str:
    return settings.env_str("RECIPE_TEXT_MODEL", DEFAULT_TEXT_MODEL)


def image_model() -> str:
    return settings.env_str("RECIPE_IMAGE_MODEL", DEFAULT_IMAGE_MODEL)


def _normalize_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [text for text in (str(item).strip() for item in value if item is not None) if text]


def _optional_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


def build_result(content: dict[str, Any] | None, *, source_url: str | None = None) -> results.ImportResult:
    if not content:
        return results.failed("No recipe data returned", "extraction_failed")

    name = str(content.get("name") or "").strip()
    if not name:
        return results.failed("Could not identify recipe name", "extraction_failed")

    attributes: dict[str, Any] = {
        "name": name,
        "ingredients": _normalize_list(content.get("ingredients")),
        "instructions": _normalize_list(content.get("instructions")),
        "prep_time": _optional_int(content.get("prep_time")),
        "cook_time": _optional_int(content.get("cook_time")),
        "servings": _optional_int(content.get("servings")),
        "notes": str(content.get("notes") or "").strip() or None,
    }
    if source_url:
        attributes["source_url"] = source_url
    return results.succeeded(attributes)


async def _ask(model: str, messages: list[dict[str, Any]], *, source_url: str | None = None) -> results.ImportResult:
    try:
        content = await llm.chat_json(
            model=model,
            messages=messages,
            schema_name="recipe",
            schema=prompts.RECIPE_SCHEMA,
        )
    except llm.LlmTimeoutError as exc:
        logger.warning("llm_extraction_timeout model=%s", model)
        return results.failed(f"LLM request timed out: {exc}", "llm_timeout")
    except llm.LlmError as exc:
        logger.warning("llm_extraction_error model=%s error=%s", model, exc)
        return results.failed(f"LLM API error: {exc}", "llm_error")
    except Exception:
        logger.exception("llm_extraction_crashed model=%s", model)
        return results.failed("Could not extract recipe", "extraction_failed")

    return build_result(content, source_url=source_url)


async def extract_from_text(
    text: str | None,
    *,
    prompt_type: str = "webpage",
    source_url: str | None = None,
) -> results.ImportResult:
    if prompt_type not in prompts.PROMPT_TYPES:
        raise ValueError(f"Invalid prompt_type: {prompt_type}")

    truncated = (text or "")[:MAX_TEXT_LENGTH]
    if not truncated.strip():
        return results.failed("No text content provided", "extraction_failed")

    messages = [{"role": "user", "content": prompts.prompt_for(prompt_type, truncated)}]
    return await _ask(text_model(), messages, source_url=source_url)


async def extract_from_image(image: bytes, *, content_type: str) -> results.ImportResult:
    if not image:
        return results.failed("No image provided", "extraction_failed")

    data_url = f"data:{content_type};base64,{base64.b64encode(image).decode('ascii')}"
    messages = [
        {
            "role": "user",
            "content": [
                {"type": "text", "text": prompts.image_prompt()},
                {"type": "image_url", "image_url": {"url": data_url}},
            ],
        }
    ]
    return await _ask(image_model(), messages)
