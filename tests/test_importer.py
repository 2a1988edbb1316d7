import json

import httpx
import pytest

from hauptgang.importers import importer, instagram, llm_extraction, results

RECIPE_JSON_LD = {
    "@context": "https://schema.org",
    "@type": "Recipe",
    "name": "Tomato Soup",
    "recipeIngredient": ["1kg tomatoes"],
    "recipeInstructions": "Simmer.",
}

HTML_WITH_RECIPE = (
    "<html><head>"
    f'<script type="application/ld+json">{json.dumps(RECIPE_JSON_LD)}</script>'
    "</head><body>Soup</body></html>"
)

HTML_WITHOUT_RECIPE = (
    "<html><head><style>body {}</style></head><body>"
    "<nav>Home | About</nav><h1>Grandma's Stew</h1><p>Beef, carrots.</p>"
    "<script>track()</script><footer>(c) blog</footer></body></html>"
)


async def public_resolver(host):
    return "93.184.216.34"


def html_transport(body, *, status=200, content_type="text/html; charset=utf-8"):
    def handler(request):
        return httpx.Response(status, headers={"content-type": content_type}, text=body)

    return httpx.MockTransport(handler)


@pytest.fixture
def fake_llm(monkeypatch):
    calls = []

    class Fake:
        result = results.succeeded({"name": "Grandma's Stew", "ingredients": [], "instructions": []})

    async def extract_from_text(text, *, prompt_type="webpage", source_url=None):
        calls.append({"text": text, "prompt_type": prompt_type, "source_url": source_url})
        return Fake.result

    monkeypatch.setattr(llm_extraction, "extract_from_text", extract_from_text)
    Fake.calls = calls
    return Fake


class TestFetchHtml:
    @pytest.mark.asyncio
    async def test_returns_body(self):
        html = await importer.fetch_html("https://example.com/", transport=html_transport("<p>hi</p>"))
        assert html == "<p>hi</p>"

    @pytest.mark.asyncio
    async def test_http_error_status(self):
        with pytest.raises(importer.FetchError) as exc_info:
            await importer.fetch_html("https://example.com/", transport=html_transport("", status=404))
        assert exc_info.value.error_code == "fetch_failed"

    @pytest.mark.asyncio
    async def test_rejects_non_html(self):
        transport = html_transport("{}", content_type="application/json")

        with pytest.raises(importer.FetchError) as exc_info:
            await importer.fetch_html("https://example.com/", transport=transport)
        assert exc_info.value.error_code == "invalid_content_type"

    @pytest.mark.asyncio
    async def test_rejects_large_pages(self):
        transport = html_transport("x" * (importer.MAX_RESPONSE_SIZE + 1))

        with pytest.raises(importer.FetchError) as exc_info:
            await importer.fetch_html("https://example.com/", transport=transport)
        assert exc_info.value.error_code == "response_too_large"

    @pytest.mark.asyncio
    async def test_follows_public_redirects(self):
        seen = []

        def handler(request):
            seen.append(str(request.url))
            if request.url.path == "/old":
                return httpx.Response(301, headers={"location": "https://www.example.com/new"})
            return httpx.Response(200, headers={"content-type": "text/html"}, text="<p>moved</p>")

        html = await importer.fetch_html(
            "https://example.com/old",
            transport=httpx.MockTransport(handler),
            resolver=public_resolver,
        )

        assert html == "<p>moved</p>"
        assert seen == ["https://example.com/old", "https://www.example.com/new"]

    @pytest.mark.asyncio
    async def test_redirect_loop(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(302, headers={"location": "https://example.com/again"})

        with pytest.raises(importer.FetchError) as exc_info:
            await importer.fetch_html(
                "https://example.com/",
                transport=httpx.MockTransport(handler),
                resolver=public_resolver,
            )
        assert exc_info.value.error_code == "too_many_redirects"
        assert len(requests) == importer.MAX_REDIRECTS + 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "location",
        ["http://127.0.0.1:8080/admin", "http://localhost/", "http://10.0.0.5/metadata"],
    )
    async def test_redirect_to_internal_address_is_not_followed(self, location):
        seen = []

        def handler(request):
            seen.append(str(request.url))
            return httpx.Response(302, headers={"location": location})

        async def resolver(host):
            return host if host[0].isdigit() else "93.184.216.34"

        with pytest.raises(importer.FetchError) as exc_info:
            await importer.fetch_html(
                "https://example.com/recipe",
                transport=httpx.MockTransport(handler),
                resolver=resolver,
            )

        assert exc_info.value.error_code == "invalid_url"
        assert seen == ["https://example.com/recipe"]

    @pytest.mark.asyncio
    async def test_timeout(self):
        def handler(request):
            raise httpx.ConnectTimeout("slow", request=request)

        with pytest.raises(importer.FetchError) as exc_info:
            await importer.fetch_html("https://example.com/", transport=httpx.MockTransport(handler))
        assert exc_info.value.error_code == "timeout"

    @pytest.mark.asyncio
    async def test_connection_failure(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(importer.FetchError) as exc_info:
            await importer.fetch_html("https://example.com/", transport=httpx.MockTransport(handler))
        assert exc_info.value.error_code == "connection_failed"


def test_page_text_drops_layout_and_scripts():
    text = importer.page_text(HTML_WITHOUT_RECIPE)

    assert "Grandma's Stew" in text
    assert "Beef, carrots." in text
    assert "track()" not in text
    assert "Home | About" not in text
    assert "(c) blog" not in text


class TestImportRecipe:
    @pytest.mark.asyncio
    async def test_blank_url(self):
        result = await importer.import_recipe("  ")
        assert result.error_code == "blank_url"

    @pytest.mark.asyncio
    async def test_invalid_url(self):
        result = await importer.import_recipe("http://localhost/", resolver=public_resolver)
        assert result.success is False
        assert result.error_code == "invalid_url"
        assert result.error == "This hostname is not allowed"

    @pytest.mark.asyncio
    async def test_uses_json_ld_first(self, fake_llm):
        result = await importer.import_recipe(
            "https://example.com/soup",
            transport=html_transport(HTML_WITH_RECIPE),
            resolver=public_resolver,
        )

        assert result.success is True
        assert result.recipe_attributes["name"] == "Tomato Soup"
        assert result.recipe_attributes["source_url"] == "https://example.com/soup"
        assert fake_llm.calls == []

    @pytest.mark.asyncio
    async def test_falls_back_to_llm_with_page_text(self, fake_llm):
        result = await importer.import_recipe(
            "https://example.com/stew",
            transport=html_transport(HTML_WITHOUT_RECIPE),
            resolver=public_resolver,
        )

        assert result.success is True
        assert fake_llm.calls[0]["prompt_type"] == "webpage"
        assert fake_llm.calls[0]["source_url"] == "https://example.com/stew"
        assert "track()" not in fake_llm.calls[0]["text"]

    @pytest.mark.asyncio
    async def test_no_recipe_found(self, fake_llm):
        fake_llm.result = results.failed("Could not identify recipe name", "extraction_failed")

        result = await importer.import_recipe(
            "https://example.com/about",
            transport=html_transport(HTML_WITHOUT_RECIPE),
            resolver=public_resolver,
        )

        assert result.success is False
        assert result.error_code == "no_recipe_found"

    @pytest.mark.asyncio
    async def test_fetch_errors_are_returned(self, fake_llm):
        result = await importer.import_recipe(
            "https://example.com/missing",
            transport=html_transport("", status=500),
            resolver=public_resolver,
        )

        assert result.success is False
        assert result.error == "Could not fetch the page"
        assert result.error_code == "fetch_failed"

    @pytest.mark.asyncio
    async def test_instagram_urls_use_instagram_importer(self, monkeypatch):
        seen = []

        async def extract(url, *, transport=None):
            seen.append(url)
            return results.succeeded({"name": "Reel Pasta"}, cover_image_url="https://cdn.example/img.jpg")

        monkeypatch.setattr(instagram, "extract", extract)

        result = await importer.import_recipe(
            "https://www.instagram.com/reel/abc123/",
            resolver=public_resolver,
        )

        assert result.success is True
        assert result.cover_image_url == "https://cdn.example/img.jpg"
        assert seen == ["https://www.instagram.com/reel/abc123/"]


class TestInstagram:
    @pytest.mark.parametrize(
        "url, supported",
        [
            ("https://www.instagram.com/reel/abc/", True),
            ("https://instagram.com/p/xyz/", True),
            ("https://www.instagram.com/chef_anna/", False),
            ("https://notinstagram.com/reel/abc/", False),
            ("", False),
        ],
    )
    def test_supports_url(self, url, supported):
        assert instagram.supports_url(url) is supported

    @pytest.mark.asyncio
    async def test_missing_token(self):
        result = await instagram.extract("https://www.instagram.com/reel/abc/")
        assert result.error_code == "apify_missing_token"

    @pytest.mark.asyncio
    async def test_caption_goes_through_llm(self, monkeypatch, fake_llm):
        monkeypatch.setenv("APIFY_API_KEY", "apify-token")
        seen = {}

        def handler(request):
            seen["token"] = request.url.params["token"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json=[{"caption": "Pasta: 200g spaghetti", "displayUrl": "https://cdn.example/reel.jpg"}],
            )

        result = await instagram.extract(
            "https://www.instagram.com/reel/abc/",
            transport=httpx.MockTransport(handler),
        )

        assert result.success is True
        assert result.cover_image_url == "https://cdn.example/reel.jpg"
        assert seen["token"] == "apify-token"
        assert seen["body"] == {"username": ["https://www.instagram.com/reel/abc/"], "resultsLimit": 1}
        assert fake_llm.calls[0]["text"] == "Pasta: 200g spaghetti"
        assert fake_llm.calls[0]["prompt_type"] == "raw_text"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "response, code",
        [
            (httpx.Response(200, json=[]), "instagram_empty_result"),
            (httpx.Response(200, json=[{"caption": ""}]), "instagram_no_caption"),
            (httpx.Response(200, text="<html>"), "apify_invalid_response"),
            (httpx.Response(502, text="bad gateway"), "apify_failed"),
        ],
    )
    async def test_apify_failures(self, monkeypatch, fake_llm, response, code):
        monkeypatch.setenv("APIFY_API_KEY", "apify-token")

        result = await instagram.extract(
            "https://www.instagram.com/reel/abc/",
            transport=httpx.MockTransport(lambda request: response),
        )

        assert result.success is False
        assert result.error_code == code
        assert fake_llm.calls == []
