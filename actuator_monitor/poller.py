"""
Actuator Poller - Periodic polling of one application.

Each cycle fetches /metrics, /health and /info concurrently and hands a
PollSnapshot to the publisher. A failing resource is recorded in the
snapshot and never prevents the others from being reported. Cycles share
no state.
"""

import asyncio
import inspect
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional, Union

from actuator_monitor.client import ActuatorClient
from actuator_monitor.config import ActuatorConfig
from actuator_monitor.exceptions import ActuatorError
from actuator_monitor.models import PollSnapshot
from actuator_monitor.resources import ActuatorResource


logger = logging.getLogger(__name__)


Publisher = Callable[[PollSnapshot], Union[None, Awaitable[None]]]


class ActuatorPoller:
    """Runs polling cycles against one actuator and publishes snapshots."""

    def __init__(
        self,
        config: ActuatorConfig,
        publisher: Optional[Publisher] = None,
        client: Optional[ActuatorClient] = None,
    ) -> None:
        self._config = config
        self._publisher = publisher
        self._client = client or ActuatorClient(
            base_url=config.base_url,
            timeout=config.timeout_seconds,
            user_agent=config.user_agent,
        )
        self._stop_event = asyncio.Event()
        self._cycles = 0

    @property
    def client(self) -> ActuatorClient:
        return self._client

    @property
    def cycles(self) -> int:
        return self._cycles

    async def poll_once(self) -> PollSnapshot:
        """Run one polling cycle and return its snapshot."""
        requests: dict[ActuatorResource, Awaitable[Any]] = {
            ActuatorResource.METRICS: self._client.get_metrics(),
        }
        if self._config.fetch_health:
            requests[ActuatorResource.HEALTH] = self._client.get_health()
        if self._config.fetch_info:
            requests[ActuatorResource.INFO] = self._client.get_app_info()

        results = await asyncio.gather(*requests.values(), return_exceptions=True)

        snapshot = PollSnapshot(
            base_url=self._client.base_url,
            polled_at=datetime.now(timezone.utc),
        )

        for resource, result in zip(requests, results):
            if isinstance(result, BaseException):
                snapshot.errors[resource.label] = self._to_actuator_error(resource, result)
                continue
            if resource == ActuatorResource.METRICS:
                snapshot.metrics = result
            elif resource == ActuatorResource.HEALTH:
                snapshot.health = result
            else:
                snapshot.app_info = result

        self._cycles += 1
        if snapshot.errors:
            logger.warning(
                f"[{self._client.name}] Cycle {self._cycles} incomplete: "
                f"{', '.join(f'{k}: {v}' for k, v in snapshot.errors.items())}"
            )
        else:
            logger.info(f"[{self._client.name}] Cycle {self._cycles} complete")

        return snapshot

    def _to_actuator_error(self, resource: ActuatorResource, error: BaseException) -> ActuatorError:
        if isinstance(error, ActuatorError):
            return error
        if not isinstance(error, Exception):
            raise error
        logger.error(
            f"[{self._client.name}] Unexpected error fetching {resource.value}: {error}",
            exc_info=error,
        )
        return ActuatorError(
            message=f"Unexpected error: {error}",
            resource=resource,
            original_error=error,
        )

    async def publish(self, snapshot: PollSnapshot) -> None:
        """Hand a snapshot to the publisher, awaiting it if needed."""
        if self._publisher is None:
            return
        outcome = self._publisher(snapshot)
        if inspect.isawaitable(outcome):
            await outcome

    async def run_forever(self) -> None:
        """Poll every poll_interval_seconds until stop() is called."""
        logger.info(
            f"[{self._client.name}] Starting polling | interval={self._config.poll_interval_seconds}s"
        )
        self._stop_event.clear()

        while not self._stop_event.is_set():
            snapshot = await self.poll_once()
            await self.publish(snapshot)
            await self._wait_for_next_tick()

        logger.info(f"[{self._client.name}] Polling stopped after {self._cycles} cycle(s)")

    async def _wait_for_next_tick(self) -> None:
        """Sleep for one interval, waking early on stop()."""
        try:
            await asyncio.wait_for(
                self._stop_event.wait(),
                timeout=self._config.poll_interval_seconds,
            )
        except asyncio.TimeoutError:
            pass

    def stop(self) -> None:
        """Request the polling loop to end after the current cycle."""
        self._stop_event.set()

    async def close(self) -> None:
        """Stop polling and release the HTTP session."""
        self.stop()
        await self._client.close()

    async def __aenter__(self) -> "ActuatorPoller":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
