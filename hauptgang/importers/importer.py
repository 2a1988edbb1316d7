"""
Recipe import from a URL.

Flow:
1) Validate the URL (SSRF guard)
2) Instagram reels go through the Apify caption importer
3) Fetch the page (size, content-type and redirect limits)
4) Extract JSON-LD recipe data
5) Fall back to LLM extraction from the visible page text
"""

from __future__ import annotations

import logging
import re

import httpx
from bs4 import BeautifulSoup

from . import instagram, json_ld, llm_extraction, results, url_validator

MAX_RESPONSE_SIZE = 5 * 1024 * 1024  # 5 MiB
MAX_REDIRECTS = 5
ALLOWED_CONTENT_TYPES = ("text/html", "application/xhtml+xml")
USER_AGENT = "Mozilla/5.0 (compatible; Hauptgang Recipe Importer)"

NON_CONTENT_TAGS = ("script", "style", "noscript", "svg", "nav", "footer", "header", "form")
WHITESPACE_RUN = re.compile(r"\n\s*\n+")

logger = logging.getLogger(__name__)


class FetchError(Exception):
    def __init__(self, message: str, error_code: str) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code


def _valid_content_type(content_type: str) -> bool:
    content_type = (content_type or "").lower()
    return any(content_type.startswith(allowed) for allowed in ALLOWED_CONTENT_TYPES)


async def _read_html(resp: httpx.Response, safe_url: str) -> str:
    if not resp.is_success:
        logger.info("fetch_http_error url=%s status=%s", safe_url, resp.status_code)
        raise FetchError("Could not fetch the page", "fetch_failed")

    content_type = resp.headers.get("content-type", "")
    if not _valid_content_type(content_type):
        logger.info("fetch_invalid_content_type url=%s content_type=%s", safe_url, content_type)
        raise FetchError("The URL does not appear to be a web page", "invalid_content_type")

    buf = bytearray()
    async for chunk in resp.aiter_bytes():
        buf.extend(chunk)
        if len(buf) > MAX_RESPONSE_SIZE:
            logger.info("fetch_response_too_large url=%s", safe_url)
            raise FetchError("The page is too large to process", "response_too_large")

    return bytes(buf).decode(resp.encoding or "utf-8", errors="replace")


async def fetch_html(
    url: str,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
    resolver: url_validator.Resolver | None = None,
) -> str:
    """
    GET `url` and return its HTML body, or raise FetchError.

    Redirects are followed by hand so every Location passes the same
    SSRF validation as the original URL before it is requested.
    """
    safe_url = url_validator.sanitized_url(url)
    try:
        async with httpx.AsyncClient(
            timeout=httpx.Timeout(10.0, connect=5.0),
            follow_redirects=False,
            transport=transport,
            headers={"User-Agent": USER_AGENT, "Accept": "text/html"},
        ) as client:
            request = client.build_request("GET", url)
            redirects = 0
            while True:
                resp = await client.send(request, stream=True)
                try:
                    if resp.next_request is None:
                        return await _read_html(resp, safe_url)
                    request = resp.next_request
                finally:
                    await resp.aclose()

                redirects += 1
                if redirects > MAX_REDIRECTS:
                    logger.info("fetch_too_many_redirects url=%s", safe_url)
                    raise FetchError("Too many redirects", "too_many_redirects")

                validation = await url_validator.validate_url(str(request.url), resolver=resolver)
                if not validation.success:
                    logger.info(
                        "fetch_redirect_blocked url=%s location=%s",
                        safe_url,
                        url_validator.sanitized_url(str(request.url)),
                    )
                    raise FetchError(validation.error or "Invalid URL", "invalid_url")
    except httpx.TimeoutException as exc:
        logger.info("fetch_timeout url=%s", safe_url)
        raise FetchError("The page took too long to load", "timeout") from exc
    except httpx.ConnectError as exc:
        logger.info("fetch_connection_failed url=%s", safe_url)
        raise FetchError("Could not connect to the server", "connection_failed") from exc
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        logger.info("fetch_error url=%s error=%s", safe_url, exc.__class__.__name__)
        raise FetchError("Could not fetch the page", "fetch_failed") from exc


def page_text(html: str) -> str:
    """
    Visible text of a page, with layout chrome and scripts removed.
    """
    soup = BeautifulSoup(html or "", "html.parser")
    for tag in soup(NON_CONTENT_TAGS):
        tag.decompose()
    text = soup.get_text("\n", strip=True)
    return WHITESPACE_RUN.sub("\n\n", text).strip()


async def import_recipe(
    url: str | None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
    resolver: url_validator.Resolver | None = None,
) -> results.ImportResult:
    url = (url or "").strip()
    if not url:
        return results.failed("Please enter a URL", "blank_url")

    validation = await url_validator.validate_url(url, resolver=resolver)
    if not validation.success:
        return results.failed(validation.error or "Invalid URL", "invalid_url")

    if instagram.supports_url(url):
        return await instagram.extract(url, transport=transport)

    try:
        html = await fetch_html(url, transport=transport, resolver=resolver)
    except FetchError as exc:
        return results.failed(exc.message, exc.error_code)

    result = json_ld.extract(html, url)
    if result.success:
        return result

    result = await llm_extraction.extract_from_text(page_text(html), prompt_type="webpage", source_url=url)
    if result.success:
        return result

    return results.failed(
        "Could not extract recipe from this page. The site may not have structured recipe data.",
        "no_recipe_found",
    )
