"""
Dynamic-Key Scanner - Generic key/value pass over a metrics body.

Discovers keys outside the fixed schema. Values are coerced to float;
non-numeric values under a dynamic prefix are reported per key instead of
aborting the scan.
"""

import logging
from dataclasses import dataclass, field

from actuator_monitor.classifier import dynamic_family
from actuator_monitor.decoder import coerce_number, parse_json_object
from actuator_monitor.exceptions import TypeMismatchError
from actuator_monitor.resources import ActuatorResource


logger = logging.getLogger(__name__)


@dataclass
class ScanResult:
    """Generic metrics keyed by full JSON key, in sorted key order."""
    values: dict[str, float] = field(default_factory=dict)
    mismatches: list[TypeMismatchError] = field(default_factory=list)


def scan_metrics(body: bytes) -> ScanResult:
    """
    Scan every top-level key of a /metrics body.

    Raises:
        DecodeError: On malformed JSON, identical to the fixed decoder
    """
    data = parse_json_object(body, ActuatorResource.METRICS)
    result = ScanResult()

    for key in sorted(data):
        value = data[key]
        try:
            result.values[key] = coerce_number(value, "float")
        except (TypeError, ValueError) as e:
            family = dynamic_family(key)
            if family is None:
                continue
            result.mismatches.append(TypeMismatchError(
                message=f"{family.value} key '{key}' is not numeric: {e}",
                key=key,
                value=value,
                resource=ActuatorResource.METRICS,
            ))

    if result.mismatches:
        logger.warning(
            f"[scanner] {len(result.mismatches)} dynamic key(s) with non-numeric values: "
            f"{', '.join(m.key for m in result.mismatches)}"
        )

    return result
