"""
Actuator Monitor - Polling and normalization of application actuator endpoints.

Converts the flat, partially-dynamic /metrics JSON object of a monitored
application into a nested, typed statistics model.

Features:
- Fixed-schema decode of well-known metric keys (memory, heap, threads, GC...)
- Discovery of dynamic key families (per-status counters, response gauges)
- Non-fatal diagnostics for malformed dynamic entries
- Health and application-info decoding
- Async polling with a pluggable publisher

Quick Start:
    from actuator_monitor import normalize_metrics

    result = normalize_metrics(b'{"mem": 1024, "counter.status.200.root": 12}')
    result.metrics.status_count      # {"200": {"root": 12.0}}
    result.diagnostics               # []

    async def poll():
        async with ActuatorClient("http://localhost:8080") as client:
            result = await client.get_metrics()
            health = await client.get_health()
"""

from actuator_monitor.classifier import KeyClassification, classify_key
from actuator_monitor.client import ActuatorClient
from actuator_monitor.config import ActuatorConfig, get_config, set_config
from actuator_monitor.decoder import decode_app_info, decode_fixed_metrics, decode_health
from actuator_monitor.exceptions import (
    ActuatorError,
    ConfigurationError,
    DecodeError,
    NormalizationIssue,
    SchemaViolationError,
    TransportError,
    TypeMismatchError,
)
from actuator_monitor.models import (
    ApplicationInfo,
    HealthStatus,
    MetricFamily,
    NormalizationResult,
    NormalizedMetrics,
    PollSnapshot,
    RawFlatMetrics,
)
from actuator_monitor.normalizer import MetricsNormalizer, normalize_metrics
from actuator_monitor.poller import ActuatorPoller
from actuator_monitor.resources import ActuatorResource
from actuator_monitor.scanner import ScanResult, scan_metrics


__version__ = "1.0.0"

__all__ = [
    # Core
    "MetricsNormalizer",
    "normalize_metrics",
    "decode_fixed_metrics",
    "scan_metrics",
    "classify_key",
    "ScanResult",
    "KeyClassification",

    # Models
    "RawFlatMetrics",
    "NormalizedMetrics",
    "NormalizationResult",
    "HealthStatus",
    "ApplicationInfo",
    "PollSnapshot",
    "MetricFamily",
    "ActuatorResource",

    # Exceptions
    "ActuatorError",
    "TransportError",
    "DecodeError",
    "NormalizationIssue",
    "TypeMismatchError",
    "SchemaViolationError",
    "ConfigurationError",

    # Collaborators
    "ActuatorClient",
    "ActuatorPoller",
    "decode_health",
    "decode_app_info",

    # Config
    "ActuatorConfig",
    "get_config",
    "set_config",
]
