"""
Actuator Client - Fetches actuator sub-resources over HTTP.

One GET per call against <base_url><path>; no retries, no authentication.
Failures surface as TransportError (connection, timeout, non-2xx) or
DecodeError (body does not match the resource schema).
"""

import asyncio
import logging
import time
from typing import Optional

import aiohttp

from actuator_monitor.decoder import decode_app_info, decode_health
from actuator_monitor.exceptions import TransportError
from actuator_monitor.models import ApplicationInfo, HealthStatus, NormalizationResult
from actuator_monitor.normalizer import MetricsNormalizer
from actuator_monitor.resources import ActuatorResource


logger = logging.getLogger(__name__)


class ActuatorClient:
    """
    HTTP client for one monitored application.

    Owns its aiohttp session unless one is injected; use as an async
    context manager or call close() when done.
    """

    DEFAULT_TIMEOUT = 10.0
    MAX_BODY_EXCERPT = 1000

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[aiohttp.ClientSession] = None,
        user_agent: str = "ActuatorMonitor/1.0",
        normalizer: Optional[MetricsNormalizer] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._session = session
        self._owns_session = session is None
        self._user_agent = user_agent
        self._normalizer = normalizer or MetricsNormalizer()

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def name(self) -> str:
        return f"actuator:{self._base_url}"

    def url_for(self, resource: ActuatorResource) -> str:
        """Full URL of a sub-resource."""
        return self._base_url + resource.value

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout),
                headers=self._get_default_headers(),
            )
            self._owns_session = True
        return self._session

    def _get_default_headers(self) -> dict[str, str]:
        """Get default HTTP headers."""
        return {
            "Accept": "application/json",
            "User-Agent": self._user_agent,
        }

    async def fetch_raw(self, resource: ActuatorResource) -> bytes:
        """
        GET a sub-resource and return the raw body.

        Raises:
            TransportError: On connection failure, timeout or non-2xx status
        """
        url = self.url_for(resource)
        session = await self._get_session()

        start_time = time.time()
        try:
            async with session.get(url) as response:
                body = await response.read()
                latency_ms = (time.time() - start_time) * 1000

                if not 200 <= response.status < 300:
                    raise TransportError(
                        message=f"HTTP {response.status} {response.reason or ''}".strip(),
                        resource=resource,
                        status_code=response.status,
                        response_body=body[:self.MAX_BODY_EXCERPT].decode("utf-8", errors="replace"),
                        request_url=url,
                    )

                logger.debug(
                    f"[{self.name}] GET {resource.value} -> {response.status} "
                    f"({len(body)} bytes) in {latency_ms:.1f}ms"
                )
                return body

        except aiohttp.ClientError as e:
            raise TransportError(
                message=f"Connection error: {e}",
                resource=resource,
                request_url=url,
                original_error=e,
            )
        except asyncio.TimeoutError as e:
            raise TransportError(
                message=f"Timed out after {self._timeout}s",
                resource=resource,
                request_url=url,
                original_error=e,
            )

    async def get_metrics(self) -> NormalizationResult:
        """Fetch /metrics and normalize it."""
        body = await self.fetch_raw(ActuatorResource.METRICS)
        return self._normalizer.normalize(body)

    async def get_health(self) -> HealthStatus:
        """Fetch and decode /health."""
        body = await self.fetch_raw(ActuatorResource.HEALTH)
        return decode_health(body)

    async def get_app_info(self) -> ApplicationInfo:
        """Fetch and decode /info."""
        body = await self.fetch_raw(ActuatorResource.INFO)
        return decode_app_info(body)

    async def close(self) -> None:
        """Close resources."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> "ActuatorClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(base_url={self._base_url})>"
