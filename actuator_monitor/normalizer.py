"""
Metrics Normalizer - Raw /metrics body to NormalizedMetrics.

============================================================
PIPELINE
============================================================
raw bytes -> decode_fixed_metrics() -> RawFlatMetrics  -> fixed categories
raw bytes -> scan_metrics()         -> generic values  -> dynamic families

- Fixed-schema keys are skipped during the dynamic pass
- counter.status.<group>.<name> fills status_count[group][name]
- gauge.response.<name> fills response_time[name]
- Unknown families are dropped without diagnostics
- Colliding rewritten names: last key in sorted order wins

DecodeError is fatal. TypeMismatchError and SchemaViolationError are
collected into NormalizationResult.diagnostics.

No state survives between calls.
============================================================
"""

import logging

from actuator_monitor.classifier import classify_key
from actuator_monitor.decoder import decode_fixed_metrics
from actuator_monitor.exceptions import NormalizationIssue, SchemaViolationError
from actuator_monitor.models import (
    MetricFamily,
    NormalizationResult,
    NormalizedMetrics,
)
from actuator_monitor.scanner import scan_metrics


logger = logging.getLogger(__name__)


class MetricsNormalizer:
    """Stateless converter from a /metrics body to the normalized model."""

    def normalize(self, body: bytes) -> NormalizationResult:
        """
        Normalize one metrics payload.

        Args:
            body: Raw response body

        Returns:
            NormalizationResult with metrics and collected diagnostics

        Raises:
            DecodeError: If the body is malformed or a fixed key has the wrong type
        """
        raw = decode_fixed_metrics(body)
        scan = scan_metrics(body)

        metrics = NormalizedMetrics.from_raw(raw)
        diagnostics: list[NormalizationIssue] = list(scan.mismatches)

        for key, value in scan.values.items():
            try:
                classification = classify_key(key)
            except SchemaViolationError as e:
                diagnostics.append(e)
                continue

            if classification.family == MetricFamily.STATUS_COUNT:
                entries = metrics.status_count.setdefault(classification.group, {})
                self._assign(entries, classification.name, value, key)
            elif classification.family == MetricFamily.RESPONSE_TIME:
                self._assign(metrics.response_time, classification.name, value, key)

        if diagnostics:
            logger.warning(
                f"[normalizer] Normalized with {len(diagnostics)} issue(s): "
                f"{'; '.join(str(d) for d in diagnostics)}"
            )
        logger.debug(
            f"[normalizer] {len(metrics.response_time)} response gauges, "
            f"{sum(len(v) for v in metrics.status_count.values())} status counters "
            f"in {len(metrics.status_count)} groups"
        )

        return NormalizationResult(metrics=metrics, diagnostics=diagnostics)

    @staticmethod
    def _assign(target: dict[str, float], name: str, value: float, key: str) -> None:
        if name in target:
            logger.debug(f"[normalizer] '{key}' overwrites existing entry '{name}'")
        target[name] = value


def normalize_metrics(body: bytes) -> NormalizationResult:
    """Normalize one metrics payload with a fresh normalizer."""
    return MetricsNormalizer().normalize(body)
