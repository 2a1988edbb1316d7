"""
Recipe import from Instagram reels.

The reel caption is fetched through Apify's reel scraper and handed to the
LLM text extractor. The reel's display image becomes the cover image.
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import urlsplit

import httpx

from hauptgang.core import settings

from . import llm_extraction, results
from .url_validator import sanitized_url

APIFY_ENDPOINT = "https://api.apify.com/v2/acts/apify~instagram-reel-scraper/run-sync-get-dataset-items"
USER_AGENT = "Mozilla/5.0 (compatible; Hauptgang Instagram Importer)"

logger = logging.getLogger(__name__)


def apify_token() -> str:
    return settings.env_str("APIFY_API_KEY")


def supports_url(url: str | None) -> bool:
    try:
        parts = urlsplit((url or "").strip())
    except ValueError:
        return False

    host = (parts.hostname or "").lower()
    if host != "instagram.com" and not host.endswith(".instagram.com"):
        return False
    return "/reel/" in parts.path or "/p/" in parts.path


async def extract(
    url: str | None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> results.ImportResult:
    url = (url or "").strip()
    if not url:
        return results.failed("Please enter a URL", "blank_url")

    token = apify_token()
    if not token:
        return results.failed("Instagram import is not configured", "apify_missing_token")

    try:
        async with httpx.AsyncClient(
            timeout=httpx.Timeout(20.0, connect=5.0),
            transport=transport,
            headers={"User-Agent": USER_AGENT},
        ) as client:
            resp = await client.post(
                APIFY_ENDPOINT,
                params={"token": token},
                json={"username": [url], "resultsLimit": 1},
            )
    except httpx.TimeoutException:
        return results.failed("Instagram import timed out", "apify_timeout")
    except httpx.ConnectError:
        return results.failed("Could not connect to Instagram importer", "apify_connection_failed")
    except httpx.HTTPError as exc:
        logger.error("instagram_import_error url=%s error=%s", sanitized_url(url), exc.__class__.__name__)
        return results.failed("Instagram import failed", "apify_failed")

    if not resp.is_success:
        logger.info("instagram_import_http_error url=%s status=%s", sanitized_url(url), resp.status_code)
        return results.failed("Could not fetch Instagram data", "apify_failed")

    try:
        items: Any = resp.json()
    except ValueError:
        return results.failed("Invalid Instagram response", "apify_invalid_response")

    if not isinstance(items, list) or not items or not isinstance(items[0], dict):
        return results.failed("No Instagram data returned", "instagram_empty_result")

    item = items[0]
    caption = str(item.get("caption") or "").strip()
    image_url = str(item.get("displayUrl") or "").strip() or None
    if not caption:
        return results.failed("Instagram caption missing", "instagram_no_caption")

    extracted = await llm_extraction.extract_from_text(caption, prompt_type="raw_text", source_url=url)
    if not extracted.success:
        return results.failed(
            extracted.error or "Instagram import failed",
            extracted.error_code or "extraction_failed",
            cover_image_url=image_url,
        )
    return results.succeeded(extracted.recipe_attributes, cover_image_url=image_url)
