# sitemap_scout/crawler/fetcher.py
"""
Fetcher module: single HTTP GET with per-host throttle, retry/backoff and timeout.
"""
from __future__ import annotations

import asyncio
from typing import Optional

from aiohttp import ClientError, ClientSession, ClientTimeout

from sitemap_scout.config import DiscoveryConfig
from sitemap_scout.crawler.decoder import decode_body
from sitemap_scout.crawler.models import FetchOutcome, FetchRequest
from sitemap_scout.crawler.throttle import HostThrottleRegistry
from sitemap_scout.logger import logger


def open_session(config: DiscoveryConfig) -> ClientSession:
    """ClientSession with browser-like headers; bodies are left compressed for the decoder."""
    return ClientSession(
        timeout=ClientTimeout(total=config.timeout),
        headers={
            "User-Agent": config.user_agent,
            "Accept": config.accept,
            "Cache-Control": "no-cache",
            "Pragma": "no-cache",
        },
        raise_for_status=False,
        auto_decompress=False,
    )


class Fetcher:
    """Handles HTTP fetching with throttling, retries/backoff and timeout."""

    def __init__(
        self,
        session: ClientSession,
        config: DiscoveryConfig,
        throttle: Optional[HostThrottleRegistry] = None,
    ) -> None:
        self.session = session
        self.config = config
        self.throttle = throttle

    async def fetch(
        self,
        url: str,
        max_attempts: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> FetchOutcome:
        """
        GET *url* up to ``max_attempts`` times.

        Timeouts, network errors and non-2xx statuses all count as failed
        attempts; between attempts the fetcher sleeps ``backoff_base * n``.
        Never raises for network problems: inspect ``FetchOutcome.ok``.
        """
        request = FetchRequest(
            url=url,
            max_attempts=max_attempts or self.config.max_attempts,
            timeout=timeout or self.config.timeout,
        )
        return await self.execute(request)

    async def execute(self, request: FetchRequest) -> FetchOutcome:
        outcome = FetchOutcome(url=request.url)
        for attempt in range(1, request.max_attempts + 1):
            outcome = await self._attempt(request)
            outcome.attempts = attempt
            if outcome.ok:
                return outcome
            if attempt < request.max_attempts:
                backoff = self.config.backoff_base * attempt
                logger.debug(
                    "Retry %d/%d for %s after %.2f s: %s",
                    attempt, request.max_attempts, request.url, backoff, outcome.error,
                )
                await asyncio.sleep(backoff)
        logger.debug("Failed %s after %d attempts: %s", request.url, outcome.attempts, outcome.error)
        return outcome

    async def _attempt(self, request: FetchRequest) -> FetchOutcome:
        try:
            if self.throttle is not None:
                await self.throttle.wait_for_url(request.url)
            async with self.session.get(
                request.url,
                timeout=ClientTimeout(total=request.timeout),
                allow_redirects=True,
                max_redirects=self.config.max_redirects,
            ) as resp:
                body = await resp.read()
                outcome = FetchOutcome(
                    url=request.url,
                    status=resp.status,
                    headers={k.lower(): v for k, v in resp.headers.items()},
                    body=body,
                    final_url=str(resp.url),
                )
                if not 200 <= resp.status < 300:
                    outcome.error = f"Upstream {resp.status}"
                return outcome
        except asyncio.TimeoutError:
            return FetchOutcome(url=request.url, error=f"Timeout after {request.timeout:.1f} s")
        except ClientError as exc:
            return FetchOutcome(url=request.url, error=str(exc) or type(exc).__name__)
        except ValueError as exc:
            # malformed URL, e.g. "http://[oops/"
            return FetchOutcome(url=request.url, error=f"Invalid URL: {exc}")


def text_of(outcome: FetchOutcome) -> str:
    return decode_body(
        outcome.body,
        outcome.header("content-encoding"),
        outcome.header("content-type"),
        outcome.final_url or outcome.url,
    )


__all__ = ["Fetcher", "open_session", "text_of"]
