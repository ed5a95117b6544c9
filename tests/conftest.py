# File: tests/conftest.py
from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Callable, Dict

import pytest
import pytest_asyncio
from aiohttp import ClientSession, web

from sitemap_scout.config import DiscoveryConfig
from sitemap_scout.crawler.fetcher import Fetcher, open_session
from sitemap_scout.crawler.throttle import HostThrottleRegistry
from sitemap_scout.logger import configure


def pytest_configure(config):
    """Register custom markers so that `--strict-markers` does not fail."""
    config.addinivalue_line(
        "markers",
        "slow: marks tests as slow (deselect with '-m \"not slow\"')",
    )


@pytest.fixture(autouse=True)
def fresh_logging():
    """Rebind the project logger to the current (captured) stdout for every test."""
    configure(level="DEBUG")
    yield


def urlset(*locs: str) -> str:
    body = "".join(f"<url><loc>{loc}</loc></url>" for loc in locs)
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        f'<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">{body}</urlset>'
    )


def sitemapindex(*locs: str) -> str:
    body = "".join(f"<sitemap><loc>{loc}</loc></sitemap>" for loc in locs)
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        f'<sitemapindex xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">{body}</sitemapindex>'
    )


@pytest.fixture()
def basic_config() -> DiscoveryConfig:
    """Short timeouts, tiny backoff and throttle so tests run fast."""
    return DiscoveryConfig(
        user_agent="TestAgent/1.0",
        timeout=2.0,
        max_attempts=2,
        backoff_base=0.01,
        robots_timeout=2.0,
        robots_attempts=1,
        robots_variants=False,
        concurrency=4,
        min_host_interval=0.0,
        render_proxy=None,
    )


@pytest.fixture()
def throttle() -> HostThrottleRegistry:
    return HostThrottleRegistry(min_interval=0.0)


async def _serve_app(app: web.Application, port: int) -> AsyncIterator[str]:
    """Start *app* on *port*, yield base URL, ensure cleanup."""
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "localhost", port)
    await site.start()
    try:
        yield f"http://localhost:{port}"
    finally:
        await runner.cleanup()


@pytest.fixture()
def serve(unused_tcp_port: int) -> Callable[[web.Application], AsyncIterator[str]]:
    """Return ``serve(app)``: an async generator yielding the base URL of a running *app*."""

    def _serve(app: web.Application) -> AsyncIterator[str]:
        return _serve_app(app, unused_tcp_port)

    return _serve


@pytest.fixture()
def hits() -> Dict[str, int]:
    """Per-path request counter shared with the handlers built by ``static_site``."""
    return {}


@pytest.fixture()
def static_site(hits: Dict[str, int]) -> Callable[[Dict[str, tuple]], web.Application]:
    """Build an app from ``{path: (body, content_type[, status[, headers]])}``; counts hits."""

    def _build(routes: Dict[str, tuple]) -> web.Application:
        app = web.Application()

        def make_handler(path: str, spec: tuple):
            body, ctype, *rest = spec
            status = rest[0] if rest else 200
            headers = rest[1] if len(rest) > 1 else None

            async def handler(request: web.Request) -> web.Response:
                hits[path] = hits.get(path, 0) + 1
                if callable(body):
                    text = body(str(request.url.origin()))
                else:
                    text = body
                payload = text if isinstance(text, bytes) else text.encode("utf-8")
                return web.Response(body=payload, status=status, content_type=ctype, headers=headers)

            return handler

        for path, spec in routes.items():
            app.router.add_get(path, make_handler(path, spec))
        return app

    return _build


@pytest_asyncio.fixture
async def session(basic_config: DiscoveryConfig) -> AsyncIterator[ClientSession]:
    sess = open_session(basic_config)
    try:
        yield sess
    finally:
        await sess.close()


@pytest.fixture()
def fetcher(session: ClientSession, basic_config: DiscoveryConfig, throttle) -> Fetcher:
    return Fetcher(session, basic_config, throttle)
