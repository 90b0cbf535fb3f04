"""
Tests for the Actuator Poller.

============================================================
PURPOSE
============================================================
Verify polling cycles with a mocked client.

TEST PRINCIPLES:
- A failing resource never hides the others
- Disabled resources are not requested
- The loop stops on request and publishes every snapshot

============================================================
"""

from datetime import timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from actuator_monitor.client import ActuatorClient
from actuator_monitor.config import ActuatorConfig
from actuator_monitor.exceptions import ActuatorError, DecodeError, TransportError
from actuator_monitor.models import (
    AppDetails,
    ApplicationInfo,
    HealthStatus,
    PollSnapshot,
)
from actuator_monitor.normalizer import normalize_metrics
from actuator_monitor.poller import ActuatorPoller
from actuator_monitor.resources import ActuatorResource


# ============================================================
# FIXTURES
# ============================================================

@pytest.fixture
def config():
    return ActuatorConfig(base_url="http://app:8080", poll_interval_seconds=1)


@pytest.fixture
def mock_client():
    """Create mock actuator client."""
    client = MagicMock(spec=ActuatorClient)
    client.base_url = "http://app:8080"
    client.name = "actuator:http://app:8080"
    client.get_metrics = AsyncMock(
        return_value=normalize_metrics(b'{"mem": 64, "gauge.response.root": 0.1}')
    )
    client.get_health = AsyncMock(return_value=HealthStatus(status="UP"))
    client.get_app_info = AsyncMock(return_value=ApplicationInfo(app=AppDetails(name="demo")))
    client.close = AsyncMock()
    return client


# ============================================================
# SINGLE CYCLE
# ============================================================

class TestPollOnce:
    """Tests for one polling cycle."""

    @pytest.mark.asyncio
    async def test_collects_all_resources(self, config, mock_client):
        poller = ActuatorPoller(config=config, client=mock_client)
        snapshot = await poller.poll_once()

        assert isinstance(snapshot, PollSnapshot)
        assert snapshot.is_complete()
        assert snapshot.metrics.metrics.memory.total == 64
        assert snapshot.health.is_up()
        assert snapshot.app_info.app.name == "demo"
        assert snapshot.base_url == "http://app:8080"
        assert poller.cycles == 1

    @pytest.mark.asyncio
    async def test_polled_at_is_utc(self, config, mock_client):
        poller = ActuatorPoller(config=config, client=mock_client)
        snapshot = await poller.poll_once()

        assert snapshot.polled_at.tzinfo is timezone.utc
        assert snapshot.to_dict()["polled_at"].endswith("+00:00")

    @pytest.mark.asyncio
    async def test_failing_resource_recorded(self, config, mock_client):
        mock_client.get_health = AsyncMock(side_effect=TransportError(
            message="HTTP 503",
            resource="health",
            status_code=503,
        ))
        poller = ActuatorPoller(config=config, client=mock_client)
        snapshot = await poller.poll_once()

        assert not snapshot.is_complete()
        assert isinstance(snapshot.errors["health"], TransportError)
        assert snapshot.health is None
        assert snapshot.metrics is not None
        assert snapshot.app_info is not None

    @pytest.mark.asyncio
    async def test_metrics_decode_failure_recorded(self, config, mock_client):
        mock_client.get_metrics = AsyncMock(side_effect=DecodeError("Malformed JSON"))
        poller = ActuatorPoller(config=config, client=mock_client)
        snapshot = await poller.poll_once()

        assert snapshot.metrics is None
        assert isinstance(snapshot.errors["metrics"], DecodeError)
        assert snapshot.health is not None

    @pytest.mark.asyncio
    async def test_unexpected_error_wrapped(self, config, mock_client):
        mock_client.get_app_info = AsyncMock(side_effect=RuntimeError("boom"))
        poller = ActuatorPoller(config=config, client=mock_client)
        snapshot = await poller.poll_once()

        error = snapshot.errors["info"]
        assert type(error) is ActuatorError
        assert isinstance(error.original_error, RuntimeError)
        assert error.actuator_resource is ActuatorResource.INFO

    @pytest.mark.asyncio
    async def test_disabled_resources_not_requested(self, mock_client):
        config = ActuatorConfig(base_url="http://app:8080", fetch_health=False, fetch_info=False)
        poller = ActuatorPoller(config=config, client=mock_client)
        snapshot = await poller.poll_once()

        mock_client.get_health.assert_not_called()
        mock_client.get_app_info.assert_not_called()
        assert snapshot.health is None
        assert snapshot.errors == {}

    @pytest.mark.asyncio
    async def test_snapshot_serializes(self, config, mock_client):
        mock_client.get_health = AsyncMock(side_effect=TransportError("HTTP 500", status_code=500))
        poller = ActuatorPoller(config=config, client=mock_client)
        data = (await poller.poll_once()).to_dict()

        assert data["metrics"]["response_time"] == {"root": 0.1}
        assert data["health"] is None
        assert data["errors"]["health"]["status_code"] == 500
        assert data["diagnostics"] == []


# ============================================================
# LOOP
# ============================================================

class TestRunForever:
    """Tests for the polling loop."""

    @pytest.mark.asyncio
    async def test_stop_from_publisher(self, config, mock_client):
        published = []

        def publisher(snapshot):
            published.append(snapshot)
            poller.stop()

        poller = ActuatorPoller(config=config, publisher=publisher, client=mock_client)
        await poller.run_forever()

        assert len(published) == 1
        assert poller.cycles == 1

    @pytest.mark.asyncio
    async def test_async_publisher_awaited_each_cycle(self, config, mock_client):
        published = []

        async def publisher(snapshot):
            published.append(snapshot)
            if len(published) == 2:
                poller.stop()

        poller = ActuatorPoller(config=config, publisher=publisher, client=mock_client)
        await poller.run_forever()

        assert len(published) == 2
        assert mock_client.get_metrics.await_count == 2

    @pytest.mark.asyncio
    async def test_close_releases_client(self, config, mock_client):
        async with ActuatorPoller(config=config, client=mock_client):
            pass

        mock_client.close.assert_awaited_once()
