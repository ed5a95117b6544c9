# File: tests/test_server.py
from __future__ import annotations

import pytest
from aiohttp import ClientSession, web

from sitemap_scout.server import create_app

from conftest import urlset

XML = "application/xml"


def api_app(config) -> web.Application:
    """API plus a tiny upstream site on the same server."""
    app = create_app(config)

    async def robots(request):
        base = str(request.url.origin())
        return web.Response(text=f"Sitemap: {base}/s.xml\n", content_type="text/plain")

    async def sitemap(request):
        base = str(request.url.origin())
        return web.Response(text=urlset(f"{base}/a", f"{base}/b", f"{base}/c"), content_type=XML)

    async def page(_):
        return web.Response(text="<html>hello</html>", content_type="text/html")

    app.router.add_get("/robots.txt", robots)
    app.router.add_get("/s.xml", sitemap)
    app.router.add_get("/page", page)
    return app


@pytest.mark.asyncio()
async def test_sitemap_endpoint(serve, basic_config):
    async for base in serve(api_app(basic_config)):
        async with ClientSession() as client:
            async with client.get(f"{base}/api/sitemap", params={"url": base, "limit": "2", "fast": "0"}) as resp:
                status = resp.status
                cors = resp.headers.get("Access-Control-Allow-Origin")
                data = await resp.json()

    assert status == 200
    assert cors == "*"
    assert data == {"ok": True, "origin": base, "count": 2, "limit": 2, "urls": [f"{base}/a", f"{base}/b"]}


@pytest.mark.asyncio()
async def test_sitemap_endpoint_requires_target(serve, basic_config):
    async for base in serve(api_app(basic_config)):
        async with ClientSession() as client:
            async with client.get(f"{base}/api/sitemap") as resp:
                status = resp.status
                data = await resp.json()

    assert status == 400
    assert data == {"error": "Missing url|domain"}


@pytest.mark.asyncio()
async def test_fetch_endpoint_proxies_body(serve, basic_config):
    async for base in serve(api_app(basic_config)):
        async with ClientSession() as client:
            async with client.get(f"{base}/api/fetch", params={"u": f"{base}/page"}) as resp:
                status = resp.status
                ctype = resp.content_type
                body = await resp.text()

    assert status == 200
    assert ctype == "text/html"
    assert body == "<html>hello</html>"


@pytest.mark.asyncio()
async def test_fetch_endpoint_missing_url(serve, basic_config):
    async for base in serve(api_app(basic_config)):
        async with ClientSession() as client:
            async with client.get(f"{base}/api/fetch") as resp:
                status = resp.status
                body = await resp.text()

    assert status == 400
    assert body == "Missing url"


@pytest.mark.asyncio()
async def test_fetch_endpoint_malformed_url_is_502(serve, basic_config):
    async for base in serve(api_app(basic_config)):
        async with ClientSession() as client:
            async with client.get(f"{base}/api/fetch", params={"url": "http://[oops/page"}) as resp:
                status = resp.status
                body = await resp.text()

    assert status == 502
    assert body.startswith("Proxy error: Invalid URL")


@pytest.mark.asyncio()
async def test_options_preflight(serve, basic_config):
    async for base in serve(api_app(basic_config)):
        async with ClientSession() as client:
            async with client.options(f"{base}/api/sitemap") as resp:
                status = resp.status
                headers = dict(resp.headers)

    assert status == 204
    assert headers["Access-Control-Allow-Origin"] == "*"
    assert headers["Access-Control-Allow-Methods"] == "GET,OPTIONS"
