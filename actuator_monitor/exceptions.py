"""
Actuator Monitor Exceptions - Error hierarchy for actuator polling and normalization.

Two propagation classes:
- Fatal errors (TransportError, DecodeError) abort the call, no result is returned.
- NormalizationIssue subclasses are collected into diagnostics and returned
  alongside a best-effort NormalizedMetrics.
"""

from datetime import datetime, timezone
from typing import Any, Optional, Union

from actuator_monitor.resources import ActuatorResource


ResourceRef = Union[ActuatorResource, str, None]


class ActuatorError(Exception):
    """Base exception for all actuator monitor errors."""

    def __init__(
        self,
        message: str,
        resource: ResourceRef = None,
        original_error: Optional[Exception] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        # Known resources are stored by label; anything else is kept verbatim
        self.actuator_resource = ActuatorResource.coerce(resource)
        self.resource = self.actuator_resource.label if self.actuator_resource else resource
        self.original_error = original_error
        self.context = context or {}
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "resource": self.resource,
            "path": self.actuator_resource.path if self.actuator_resource else None,
            "original_error": str(self.original_error) if self.original_error else None,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
        }

    def __str__(self) -> str:
        parts = [f"{self.__class__.__name__}: {self.message}"]
        if self.resource:
            parts.append(f"[resource={self.resource}]")
        if self.original_error:
            parts.append(f"(caused by: {self.original_error})")
        return " ".join(parts)


class TransportError(ActuatorError):
    """Connection failure, timeout or non-2xx response from an actuator endpoint."""

    def __init__(
        self,
        message: str,
        resource: ResourceRef = None,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
        request_url: Optional[str] = None,
        original_error: Optional[Exception] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, resource, original_error, context)
        self.status_code = status_code
        self.response_body = response_body
        self.request_url = request_url

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data.update({
            "status_code": self.status_code,
            "response_body": self.response_body,
            "request_url": self.request_url,
        })
        return data

    def is_server_error(self) -> bool:
        """Check if error is server-side."""
        return self.status_code is not None and 500 <= self.status_code < 600

    def is_client_error(self) -> bool:
        """Check if error is client-side."""
        return self.status_code is not None and 400 <= self.status_code < 500


class DecodeError(ActuatorError):
    """
    Malformed JSON, a non-object top-level value, or a known key of the wrong type.

    Always fatal: no partial result is produced.
    """

    MAX_EXCERPT = 500

    def __init__(
        self,
        message: str,
        resource: ResourceRef = None,
        raw_data: Optional[bytes] = None,
        position: Optional[int] = None,
        key: Optional[str] = None,
        original_error: Optional[Exception] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, resource, original_error, context)
        self.raw_data = raw_data[:self.MAX_EXCERPT] if raw_data is not None else None
        self.position = position
        self.key = key

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data.update({
            "raw_data": self.raw_data.decode("utf-8", errors="replace") if self.raw_data else None,
            "position": self.position,
            "key": self.key,
        })
        return data


class NormalizationIssue(ActuatorError):
    """Non-fatal anomaly for a single metric key, collected into diagnostics."""

    def __init__(
        self,
        message: str,
        key: str,
        resource: ResourceRef = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, resource, None, context)
        self.key = key

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data["key"] = self.key
        return data


class TypeMismatchError(NormalizationIssue):
    """A dynamically-classified key holds a non-numeric value."""

    def __init__(
        self,
        message: str,
        key: str,
        value: Any = None,
        resource: ResourceRef = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, key, resource, context)
        self.value = value

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data["value"] = repr(self.value)[:200]
        return data


class SchemaViolationError(NormalizationIssue):
    """A dynamic key's suffix does not have the structure its family requires."""
    pass


class ConfigurationError(ActuatorError):
    """Invalid actuator monitor configuration."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        original_error: Optional[Exception] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, None, original_error, context)
        self.config_key = config_key

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data["config_key"] = self.config_key
        return data
