# File: tests/test_escalation.py
from __future__ import annotations

import pytest
from aiohttp import web

from sitemap_scout.crawler.escalation import EscalationResolver, direct_variant, proxy_variant


def test_four_direct_variants_in_priority_order():
    resolver = EscalationResolver()
    assert resolver.resolve("https://www.example.com/a?b=1") == [
        "https://example.com/a?b=1",
        "https://www.example.com/a?b=1",
        "http://example.com/a?b=1",
        "http://www.example.com/a?b=1",
    ]


def test_bare_domain_input_gets_root_path():
    assert EscalationResolver().resolve("Example.com")[0] == "https://example.com/"


def test_proxy_variants_only_on_request():
    resolver = EscalationResolver(proxy_base="https://r.jina.ai")
    assert len(resolver.resolve("https://www.example.com/a")) == 4
    full = resolver.resolve("https://www.example.com/a", include_proxy=True)
    assert full[4:] == [
        "https://r.jina.ai/http://www.example.com/a",
        "https://r.jina.ai/https://www.example.com/a",
    ]


def test_no_proxy_when_disabled():
    assert len(EscalationResolver(proxy_base=None).resolve("e.com/x", include_proxy=True)) == 4


def test_strategies_are_pure_functions():
    build = direct_variant("http", www=True)
    assert build("https://shop.example.com/p") == "http://www.shop.example.com/p"
    assert build("https://shop.example.com/p") == build("https://shop.example.com/p")
    assert proxy_variant("https://p.example/", "https")("http://e.com/z") == "https://p.example/https://e.com/z"


def test_unparseable_target_yields_no_direct_candidates():
    resolver = EscalationResolver(proxy_base="https://r.jina.ai")
    assert resolver.resolve("http://[oops/page") == []
    assert resolver.resolve("http://[oops/page", include_proxy=True) == [
        "https://r.jina.ai/http://[oops/page",
        "https://r.jina.ai/https://[oops/page",
    ]


@pytest.mark.asyncio()
async def test_fetch_first_tries_candidates_until_success(serve, fetcher):
    app = web.Application()
    calls: list[str] = []

    async def ok(request):
        calls.append(request.path)
        return web.Response(text="fine", content_type="text/plain")

    async def blocked(request):
        calls.append(request.path)
        return web.Response(status=403)

    app.router.add_get("/blocked", blocked)
    app.router.add_get("/open", ok)

    async for base in serve(app):
        resolver = EscalationResolver(direct=[lambda url: f"{base}/blocked", lambda url: f"{base}/open"])
        outcome = await resolver.fetch_first(fetcher, "https://example.com/page")

    assert outcome.ok
    assert outcome.body == b"fine"
    # two attempts against /blocked (max_attempts=2), then /open
    assert calls == ["/blocked", "/blocked", "/open"]


@pytest.mark.asyncio()
async def test_fetch_first_prefers_given_urls(serve, fetcher):
    app = web.Application()

    async def ok(_):
        return web.Response(text="direct", content_type="text/plain")

    app.router.add_get("/x", ok)
    async for base in serve(app):
        resolver = EscalationResolver(direct=[lambda url: "http://127.0.0.1:9/unreachable"])
        outcome = await resolver.fetch_first(fetcher, f"{base}/x", prefer=[f"{base}/x"])

    assert outcome.ok and outcome.body == b"direct"


@pytest.mark.asyncio()
async def test_fetch_first_returns_last_failure(serve, fetcher):
    app = web.Application()

    async def gone(_):
        return web.Response(status=410)

    app.router.add_get("/gone", gone)
    async for base in serve(app):
        resolver = EscalationResolver(direct=[lambda url: f"{base}/gone"])
        outcome = await resolver.fetch_first(fetcher, "https://example.com/")

    assert not outcome.ok
    assert outcome.status == 410
    assert outcome.error == "Upstream 410"
