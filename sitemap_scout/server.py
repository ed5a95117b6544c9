# File: sitemap_scout/server.py
"""sitemap_scout.server: HTTP-обёртка над движком (aiohttp.web).

Маршруты:
  GET /api/sitemap?url=|domain=|d=&limit=&fast=1   JSON {ok, origin, count, limit, urls}
  GET /api/fetch?url=|u=                           тело страницы через прокси
"""

from __future__ import annotations

from typing import AsyncIterator, Awaitable, Callable

from aiohttp import ClientSession, web

from sitemap_scout.config import DiscoveryConfig
from sitemap_scout.crawler.fetcher import open_session
from sitemap_scout.crawler.throttle import HostThrottleRegistry
from sitemap_scout.engine import fetch_content, start_scan
from sitemap_scout.logger import logger

CONFIG_KEY = web.AppKey("config", DiscoveryConfig)
SESSION_KEY = web.AppKey("session", ClientSession)
THROTTLE_KEY = web.AppKey("throttle", HostThrottleRegistry)

_Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


@web.middleware
async def cors_middleware(request: web.Request, handler: _Handler) -> web.StreamResponse:
    if request.method == "OPTIONS":
        return web.Response(
            status=204,
            headers={
                "Access-Control-Allow-Origin": "*",
                "Access-Control-Allow-Methods": "GET,OPTIONS",
                "Access-Control-Allow-Headers": "*",
            },
        )
    try:
        response = await handler(request)
    except web.HTTPException as exc:
        exc.headers["Access-Control-Allow-Origin"] = "*"
        raise
    response.headers["Access-Control-Allow-Origin"] = "*"
    return response


async def handle_sitemap(request: web.Request) -> web.Response:
    query = request.query
    target = query.get("url") or query.get("domain") or query.get("d")
    if not target:
        return web.json_response({"error": "Missing url|domain"}, status=400)
    fast = query.get("fast", "1") == "1"
    cfg = request.app[CONFIG_KEY]
    try:
        report = await start_scan(
            cfg,
            target,
            query.get("limit"),
            fast,
            session=request.app[SESSION_KEY],
            throttle=request.app[THROTTLE_KEY],
        )
    except ValueError as exc:
        return web.json_response({"error": str(exc)}, status=400)
    return web.json_response(report.to_dict())


async def handle_fetch(request: web.Request) -> web.Response:
    url = request.query.get("url") or request.query.get("u")
    if not url:
        return web.Response(status=400, text="Missing url")
    result = await fetch_content(
        request.app[CONFIG_KEY],
        url,
        session=request.app[SESSION_KEY],
        throttle=request.app[THROTTLE_KEY],
    )
    mimetype = result.content_type.split(";", 1)[0].strip() or "text/plain"
    return web.Response(status=result.status, text=result.body, content_type=mimetype, charset="utf-8")


def create_app(config: DiscoveryConfig) -> web.Application:
    """Собирает приложение; одна ClientSession и один реестр троттлинга на процесс."""
    app = web.Application(middlewares=[cors_middleware])
    app[CONFIG_KEY] = config
    app[THROTTLE_KEY] = HostThrottleRegistry(config.min_host_interval, config.throttle_max_hosts)

    async def client_session(app: web.Application) -> AsyncIterator[None]:
        app[SESSION_KEY] = open_session(config)
        logger.debug("HTTP client session opened")
        yield
        await app[SESSION_KEY].close()

    app.cleanup_ctx.append(client_session)
    app.router.add_get("/api/sitemap", handle_sitemap)
    app.router.add_get("/api/fetch", handle_fetch)
    app.router.add_route("OPTIONS", "/api/{tail:.*}", handle_options)
    return app


async def handle_options(request: web.Request) -> web.Response:
    # answered by cors_middleware; route exists so the router does not 405
    return web.Response(status=204)


def run_server(config: DiscoveryConfig, host: str = "127.0.0.1", port: int = 8080) -> None:
    logger.info("Serving on http://%s:%d", host, port)
    web.run_app(create_app(config), host=host, port=port, print=None)


__all__ = ["create_app", "run_server", "cors_middleware"]
