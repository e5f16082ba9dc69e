"""
Target liveness polling and headless Chrome launching for audit runs.
"""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Sequence, Tuple
from urllib.parse import unquote, urlsplit, urlunsplit

import httpx
from playwright.async_api import async_playwright
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_delay, wait_fixed

logger = logging.getLogger(__name__)

POLL_INTERVAL_SECONDS = 0.25
MAX_REQUEST_TIMEOUT_SECONDS = 10.0


class TargetNotReadyError(Exception):
    """The target answered, but not with a 2xx status."""


def split_credentials(url: str) -> Tuple[str, Optional[Tuple[str, str]]]:
    """Strip `user:pass@` from a URL and return it as a basic-auth pair."""
    parts = urlsplit(url)
    if not parts.username:
        return url, None
    host = parts.netloc.rsplit("@", 1)[-1]
    bare_url = urlunsplit((parts.scheme, host, parts.path, parts.query, parts.fragment))
    return bare_url, (unquote(parts.username), unquote(parts.password or ""))


async def wait_until_up(
    url: str,
    timeout_ms: int,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> None:
    """
    Poll `url` with GET requests until it answers 2xx.

    Credentials embedded in the URL are sent as HTTP basic auth. The whole
    wait, including a request still in flight, is bounded by `timeout_ms`;
    past it the last polling error is raised, or TimeoutError if no request
    has finished yet.
    """
    target, auth = split_credentials(url)
    timeout_seconds = max(timeout_ms, 0) / 1000
    request_timeout = min(max(timeout_seconds, POLL_INTERVAL_SECONDS), MAX_REQUEST_TIMEOUT_SECONDS)
    failures: List[Exception] = []

    async def _poll(client: httpx.AsyncClient) -> None:
        async for attempt in AsyncRetrying(
            stop=stop_after_delay(timeout_seconds),
            wait=wait_fixed(POLL_INTERVAL_SECONDS),
            retry=retry_if_exception_type((httpx.HTTPError, TargetNotReadyError)),
            reraise=True,
        ):
            with attempt:
                try:
                    response = await client.get(target)
                    if not response.is_success:
                        raise TargetNotReadyError(f"{target} answered {response.status_code}")
                except (httpx.HTTPError, TargetNotReadyError) as exc:
                    failures.append(exc)
                    raise

    async with httpx.AsyncClient(
        auth=auth,
        follow_redirects=True,
        timeout=request_timeout,
        transport=transport,
    ) as client:
        try:
            await asyncio.wait_for(_poll(client), timeout=timeout_seconds)
        except asyncio.TimeoutError:
            if failures:
                raise failures[-1]
            raise


def _includes_partial(args: Sequence[str], fragment: str) -> bool:
    return any(fragment in arg for arg in args)


def build_chrome_args(port: int, extra_args: Optional[Sequence[str]] = None) -> List[str]:
    """Caller args plus a debugging port and --no-sandbox, unless already given."""
    args = list(extra_args or [])
    if not _includes_partial(args, "--remote-debugging-port"):
        args.append(f"--remote-debugging-port={port}")
    if not _includes_partial(args, "--no-sandbox"):
        args.append("--no-sandbox")
    return args


class ChromeSession:
    """A launched headless Chromium reachable on a remote debugging port."""

    def __init__(self, playwright, browser, port: int):
        self._playwright = playwright
        self._browser = browser
        self.port = port

    async def close(self) -> None:
        try:
            await self._browser.close()
        finally:
            await self._playwright.stop()


async def launch_chrome(
    port: int,
    chrome_path: Optional[str] = None,
    extra_args: Optional[Sequence[str]] = None,
) -> ChromeSession:
    args = build_chrome_args(port, extra_args)
    playwright = await async_playwright().start()
    try:
        browser = await playwright.chromium.launch(
            headless=True,
            executable_path=chrome_path or None,
            args=args,
        )
    except Exception:
        await playwright.stop()
        raise
    logger.debug("Chrome listening for debuggers on port %s", port)
    return ChromeSession(playwright, browser, port)
