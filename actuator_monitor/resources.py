"""
Actuator sub-resources.

Kept apart from the models so the error hierarchy can refer to them.
"""

from enum import Enum
from typing import Optional, Union


class ActuatorResource(Enum):
    """Actuator sub-resources and their fixed path segments."""
    METRICS = "/metrics"
    HEALTH = "/health"
    INFO = "/info"

    @property
    def label(self) -> str:
        return self.name.lower()

    @property
    def path(self) -> str:
        return self.value

    @classmethod
    def coerce(cls, value: Union["ActuatorResource", str, None]) -> Optional["ActuatorResource"]:
        """Resolve a member, a label ("health") or a path ("/health"); None if unknown."""
        if value is None or isinstance(value, cls):
            return value
        for member in cls:
            if value in (member.label, member.value):
                return member
        return None
