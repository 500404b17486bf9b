"""
http.py – Async HTTP client for calendar pages and webhook posts, built on
          *aiohttp* with one bounded timeout per request and no retries.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Mapping, Optional

import aiohttp

from core.errors import raise_if_cancelled

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "ConcertWatch/1.0 (Concert Calendar Tracker)"
DEFAULT_TIMEOUT = 30.0


class HttpClient:
    """
    Shared-session client used by scrapers and webhook notifiers:

    * User-Agent and other default headers set once per instance
    * total timeout per request (``DEFAULT_TIMEOUT`` seconds)
    * non-2xx responses raise *aiohttp.ClientResponseError*
    * cancel event checked before every request
    """

    def __init__(
        self,
        *,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: str = DEFAULT_USER_AGENT,
        default_headers: Optional[Mapping[str, str]] = None,
    ) -> None:
        # A caller-provided session is borrowed and never closed here
        self._borrowed = session
        self._session: Optional[aiohttp.ClientSession] = None
        self._timeout = timeout
        self._default_headers: Dict[str, str] = {"User-Agent": user_agent, **(default_headers or {})}

    async def __aenter__(self) -> "HttpClient":
        await self._get_session()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._borrowed is not None:
            return self._borrowed
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self._timeout))
        return self._session

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def _request(
        self,
        method: str,
        url: str,
        cancel: Optional[asyncio.Event] = None,
        headers: Optional[Mapping[str, str]] = None,
        **kwargs,
    ) -> aiohttp.ClientResponse:
        raise_if_cancelled(cancel)
        session = await self._get_session()

        resp = await session.request(method, url, headers={**self._default_headers, **(headers or {})}, **kwargs)
        if 200 <= resp.status < 300:
            return resp

        logger.error(f"{method} {url} returned HTTP {resp.status}")
        resp.release()
        raise aiohttp.ClientResponseError(
            resp.request_info,
            resp.history,
            status=resp.status,
            message=resp.reason or f"HTTP {resp.status}",
            headers=resp.headers,
        )

    async def get_text(self, url: str, cancel: Optional[asyncio.Event] = None, **kwargs) -> str:
        """GET ``url`` and return the decoded body."""
        async with await self._request("GET", url, cancel, **kwargs) as resp:
            return await resp.text()

    async def post_json(self, url: str, data: Any, cancel: Optional[asyncio.Event] = None, **kwargs) -> Any:
        """POST ``data`` as JSON; returns the parsed reply, or None for an empty body."""
        async with await self._request("POST", url, cancel, json=data, **kwargs) as resp:
            body = await resp.text()
            return await resp.json(content_type=None) if body.strip() else None
