"""
Adapter contract shared by every provider.

`fetch()` never raises for routine trouble: it returns either a
PartialFlightRecord or a ProviderFailure value. Subclasses implement
`_fetch()` and are free to raise ProviderError / MalformedResponse or
return None for "nothing found"; the base class tags the outcome.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Union

import aiohttp
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from .config import ADAPTER_TIMEOUT_S
from .errors import MalformedResponse, ProviderError, RetryableStatus
from .logging_utils import log_event
from .models import FailureKind, PartialFlightRecord, ProviderFailure
from .utils import _AsyncTokenBucket

logger = logging.getLogger("flightxp.adapters")

FetchOutcome = Union[PartialFlightRecord, ProviderFailure]


class SourceAdapter(ABC):
    """One external system mapped into PartialFlightRecord."""

    name: str = "adapter"
    # Subject to the shared daily quota
    rate_limited: bool = False
    # Position / registration enrichment only; never supplies route or schedule
    telemetry: bool = False

    @abstractmethod
    async def _fetch(self, flight_number: str, flight_date: str) -> Optional[PartialFlightRecord]:
        ...

    def failure(self, kind: FailureKind, message: str = "") -> ProviderFailure:
        return ProviderFailure(source=self.name, kind=kind, message=message)

    async def fetch(self, flight_number: str, flight_date: str) -> FetchOutcome:
        try:
            record = await self._fetch(flight_number, flight_date)
        except asyncio.TimeoutError:
            return self.failure(FailureKind.TIMEOUT, "request timed out")
        except MalformedResponse as e:
            return self.failure(FailureKind.MALFORMED, str(e))
        except ProviderError as e:
            kind = FailureKind.HTTP_ERROR if e.status else FailureKind.TRANSPORT
            return self.failure(kind, str(e))
        except aiohttp.ClientError as e:
            return self.failure(FailureKind.TRANSPORT, f"{type(e).__name__}: {e}")
        except (KeyError, TypeError, ValueError) as e:
            return self.failure(FailureKind.MALFORMED, f"{type(e).__name__}: {e}")

        if record is None:
            return self.failure(FailureKind.NO_DATA, "no matching flight")
        return record

    async def aclose(self) -> None:
        return None

    async def __aenter__(self) -> "SourceAdapter":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()


class HttpSourceAdapter(SourceAdapter):
    """
    aiohttp-backed adapter with:
      - Token-bucket limiter
      - 429 / 5xx retry with exponential backoff (tenacity)
      - Lazily created session, closed by aclose()
    """

    max_rps: float = 1.0
    burst: int = 2
    default_headers: Dict[str, str] = {"Accept": "application/json"}

    def __init__(
        self,
        *,
        session: Optional[aiohttp.ClientSession] = None,
        timeout_s: float = ADAPTER_TIMEOUT_S,
    ) -> None:
        self._session = session
        self._owns_session = session is None
        self._timeout_s = timeout_s
        self._limiter = _AsyncTokenBucket(self.max_rps, self.burst)

    def _headers(self) -> Dict[str, str]:
        return dict(self.default_headers)

    def _auth(self) -> Optional[aiohttp.BasicAuth]:
        return None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(
                limit=20,
                limit_per_host=10,
                ttl_dns_cache=300,
                enable_cleanup_closed=True,
                keepalive_timeout=30,
            )
            timeout = aiohttp.ClientTimeout(total=self._timeout_s, connect=3)
            self._session = aiohttp.ClientSession(
                headers=self._headers(),
                connector=connector,
                timeout=timeout,
                auth=self._auth(),
            )
            self._owns_session = True
        return self._session

    async def aclose(self) -> None:
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()

    async def _get(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        *,
        headers: Optional[Dict[str, str]] = None,
        as_text: bool = False,
    ) -> Any:
        """GET with rate limit and retry; None for 204/404, body otherwise."""
        await self._limiter.acquire()
        return await self._get_with_retry(url, params or {}, headers, as_text)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
        retry=retry_if_exception_type(RetryableStatus),
        reraise=True,
    )
    async def _get_with_retry(
        self,
        url: str,
        params: Dict[str, Any],
        headers: Optional[Dict[str, str]],
        as_text: bool,
    ) -> Any:
        session = self._get_session()
        t0 = time.perf_counter()
        async with session.get(url, params=params, headers=headers) as r:
            status = r.status
            log_event(
                logger,
                "adapter_http_call",
                provider=self.name,
                endpoint=url,
                status_code=status,
                duration_ms=int((time.perf_counter() - t0) * 1000),
            )
            if status == 429 or status >= 500:
                log_event(
                    logger,
                    "adapter_http_retryable",
                    level=logging.WARNING,
                    provider=self.name,
                    status_code=status,
                    retry_after=r.headers.get("Retry-After"),
                )
                raise RetryableStatus(self.name, f"HTTP {status}", status)
            if status in (204, 404):
                return None
            if status != 200:
                preview = (await r.text())[:200]
                raise ProviderError(self.name, f"HTTP {status}: {preview}", status)
            if as_text:
                return await r.text()
            try:
                return await r.json(content_type=None)
            except (json.JSONDecodeError, aiohttp.ContentTypeError) as e:
                raise MalformedResponse(self.name, f"invalid JSON: {e}") from e
