"""
Fixed-Schema Decoder - Decodes actuator payloads against known schemas.

parse_json_object() is the single well-formedness gate shared with the
dynamic-key scanner, so both passes over a body always agree on whether
it is valid.
"""

import json
import logging
import math
from typing import Any

from actuator_monitor.exceptions import DecodeError, ResourceRef
from actuator_monitor.models import (
    FIXED_METRIC_KEYS,
    AppDetails,
    ApplicationInfo,
    DatabaseHealth,
    DiskSpaceHealth,
    HealthStatus,
    RawFlatMetrics,
)
from actuator_monitor.resources import ActuatorResource


logger = logging.getLogger(__name__)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Non-standard JSON constant {name}")


def parse_json_object(body: bytes, resource: ResourceRef = None) -> dict[str, Any]:
    """
    Parse raw bytes as one top-level JSON object.

    Raises:
        DecodeError: If the bytes are not UTF-8, not valid JSON,
            or the top-level value is not an object.
    """
    try:
        text = body.decode("utf-8")
    except UnicodeDecodeError as e:
        raise DecodeError(
            message=f"Body is not valid UTF-8 at byte {e.start}",
            resource=resource,
            raw_data=body,
            position=e.start,
            original_error=e,
        )

    try:
        data = json.loads(text, parse_constant=_reject_constant)
    except json.JSONDecodeError as e:
        raise DecodeError(
            message=f"Malformed JSON: {e.msg} (line {e.lineno}, column {e.colno})",
            resource=resource,
            raw_data=body,
            position=e.pos,
            original_error=e,
        )
    except ValueError as e:
        raise DecodeError(
            message=f"Malformed JSON: {e}",
            resource=resource,
            raw_data=body,
            original_error=e,
        )

    if not isinstance(data, dict):
        raise DecodeError(
            message=f"Expected a JSON object, got {type(data).__name__}",
            resource=resource,
            raw_data=body,
            position=0,
        )

    return data


def coerce_number(value: Any, kind: str) -> Any:
    """
    Coerce a decoded JSON value to the numeric kind of a schema field.

    Kinds: "uint", "int", "float". Booleans are never numbers.

    Raises:
        TypeError: If the value is not a JSON number
        ValueError: If the number does not fit the kind
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"expected number, got {type(value).__name__}")

    if kind == "float":
        try:
            number = float(value)
        except OverflowError:
            raise ValueError("number too large for a float")
        # json.loads maps out-of-range literals such as 1e400 to inf
        if not math.isfinite(number):
            raise ValueError(f"number out of range: {value!r}")
        return number

    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"expected integer, got {value!r}")
        value = int(value)

    if kind == "uint" and value < 0:
        raise ValueError(f"expected non-negative integer, got {value!r}")

    return value


def _decode_value(
    value: Any,
    kind: str,
    key: str,
    body: bytes,
    resource: ResourceRef,
) -> Any:
    if kind == "str":
        if not isinstance(value, str):
            raise DecodeError(
                message=f"Key '{key}' expected string, got {type(value).__name__}",
                resource=resource,
                raw_data=body,
                key=key,
            )
        return value

    try:
        return coerce_number(value, kind)
    except (TypeError, ValueError) as e:
        raise DecodeError(
            message=f"Key '{key}' has wrong type: {e}",
            resource=resource,
            raw_data=body,
            key=key,
            original_error=e,
        )


def _decode_section(
    data: dict[str, Any],
    schema: dict[str, tuple[str, str]],
    target: Any,
    body: bytes,
    resource: ResourceRef,
    path: str = "",
) -> Any:
    """Assign every schema key present in data onto target; null keeps the default."""
    for key, (attr, kind) in schema.items():
        value = data.get(key)
        if value is None:
            continue
        setattr(target, attr, _decode_value(value, kind, path + key, body, resource))
    return target


def _nested_object(
    data: dict[str, Any],
    key: str,
    body: bytes,
    resource: ResourceRef,
) -> dict[str, Any]:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise DecodeError(
            message=f"Key '{key}' expected object, got {type(value).__name__}",
            resource=resource,
            raw_data=body,
            key=key,
        )
    return value


# =============================================================
# METRICS
# =============================================================


def decode_fixed_metrics(body: bytes) -> RawFlatMetrics:
    """
    Decode a /metrics body into the flat record of well-known keys.

    Unknown keys are ignored, missing keys keep their zero value.

    Raises:
        DecodeError: On malformed JSON or a known key with the wrong type
    """
    resource = ActuatorResource.METRICS
    data = parse_json_object(body, resource)
    raw = _decode_section(data, FIXED_METRIC_KEYS, RawFlatMetrics(), body, resource)
    logger.debug(
        f"[decoder] Decoded {sum(1 for k in data if k in FIXED_METRIC_KEYS)} "
        f"fixed keys out of {len(data)}"
    )
    return raw


# =============================================================
# HEALTH / INFO
# =============================================================


_HEALTH_SCHEMA = {"status": ("status", "str")}

_DISK_SPACE_SCHEMA = {
    "status": ("status", "str"),
    "total": ("total", "uint"),
    "free": ("free", "uint"),
    "threshold": ("threshold", "uint"),
}

_DB_SCHEMA = {
    "status": ("status", "str"),
    "database": ("database", "str"),
    "hello": ("hello", "uint"),
}

_APP_SCHEMA = {
    "id": ("id", "str"),
    "name": ("name", "str"),
    "port": ("port", "str"),
    "environment": ("environment", "str"),
}


def decode_health(body: bytes) -> HealthStatus:
    """
    Decode a /health body.

    Raises:
        DecodeError: On malformed JSON or a wrong-typed field
    """
    resource = ActuatorResource.HEALTH
    data = parse_json_object(body, resource)

    health = _decode_section(data, _HEALTH_SCHEMA, HealthStatus(), body, resource)
    health.disk_space = _decode_section(
        _nested_object(data, "diskSpace", body, resource),
        _DISK_SPACE_SCHEMA,
        DiskSpaceHealth(),
        body,
        resource,
        path="diskSpace.",
    )
    health.db = _decode_section(
        _nested_object(data, "db", body, resource),
        _DB_SCHEMA,
        DatabaseHealth(),
        body,
        resource,
        path="db.",
    )
    return health


def decode_app_info(body: bytes) -> ApplicationInfo:
    """
    Decode an /info body.

    Raises:
        DecodeError: On malformed JSON or a wrong-typed field
    """
    resource = ActuatorResource.INFO
    data = parse_json_object(body, resource)
    details = _decode_section(
        _nested_object(data, "app", body, resource),
        _APP_SCHEMA,
        AppDetails(),
        body,
        resource,
        path="app.",
    )
    return ApplicationInfo(app=details)
