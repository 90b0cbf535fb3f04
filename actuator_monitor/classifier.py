"""
Key Classifier - Maps a raw metrics key to its family and rewritten name.

Dynamic key grammar:
    counter.status.<group>.<remainder...>   -> status_count[group][remainder]
    gauge.response.<remainder...>           -> response_time[remainder]

Every "." left in <remainder> is rewritten to "_".
"""

from dataclasses import dataclass
from typing import Optional

from actuator_monitor.exceptions import SchemaViolationError
from actuator_monitor.models import FIXED_METRIC_KEYS, MetricFamily
from actuator_monitor.resources import ActuatorResource


SEPARATOR = "."
REPLACEMENT = "_"

STATUS_COUNT_PREFIX = "counter.status."
RESPONSE_TIME_PREFIX = "gauge.response."

DYNAMIC_PREFIXES = {
    STATUS_COUNT_PREFIX: MetricFamily.STATUS_COUNT,
    RESPONSE_TIME_PREFIX: MetricFamily.RESPONSE_TIME,
}


@dataclass(frozen=True)
class KeyClassification:
    """Where a raw key lands in the normalized model."""
    key: str
    family: MetricFamily
    group: Optional[str] = None
    name: Optional[str] = None

    def is_dynamic(self) -> bool:
        return self.family in (MetricFamily.STATUS_COUNT, MetricFamily.RESPONSE_TIME)


def rewrite_name(remainder: str) -> str:
    """Replace every separator with an underscore."""
    return remainder.replace(SEPARATOR, REPLACEMENT)


def dynamic_family(key: str) -> Optional[MetricFamily]:
    """Return the dynamic family a key's prefix belongs to, if any."""
    for prefix, family in DYNAMIC_PREFIXES.items():
        if key.startswith(prefix):
            return family
    return None


def classify_key(key: str) -> KeyClassification:
    """
    Classify a top-level metrics key.

    Raises:
        SchemaViolationError: If a key has a dynamic prefix but its suffix
            lacks the structure the family requires (missing group or name).
    """
    if key in FIXED_METRIC_KEYS:
        return KeyClassification(key=key, family=MetricFamily.FIXED)

    if key.startswith(STATUS_COUNT_PREFIX):
        suffix = key[len(STATUS_COUNT_PREFIX):]
        group, sep, remainder = suffix.partition(SEPARATOR)
        if not sep:
            raise SchemaViolationError(
                message=f"Status counter '{key}' has no endpoint after group",
                key=key,
                resource=ActuatorResource.METRICS,
            )
        if not group or not remainder:
            raise SchemaViolationError(
                message=f"Status counter '{key}' has an empty group or endpoint",
                key=key,
                resource=ActuatorResource.METRICS,
            )
        return KeyClassification(
            key=key,
            family=MetricFamily.STATUS_COUNT,
            group=group,
            name=rewrite_name(remainder),
        )

    if key.startswith(RESPONSE_TIME_PREFIX):
        suffix = key[len(RESPONSE_TIME_PREFIX):]
        if not suffix:
            raise SchemaViolationError(
                message=f"Response gauge '{key}' has no endpoint name",
                key=key,
                resource=ActuatorResource.METRICS,
            )
        return KeyClassification(
            key=key,
            family=MetricFamily.RESPONSE_TIME,
            name=rewrite_name(suffix),
        )

    return KeyClassification(key=key, family=MetricFamily.UNKNOWN)
