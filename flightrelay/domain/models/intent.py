from dataclasses import dataclass
from enum import Enum
from typing import Optional


class IntentType(str, Enum):
    """Enumeration of intents the relay understands"""
    FLIGHT_STATUS = "flight_status"
    DEPARTURES = "departures"
    ARRIVALS = "arrivals"
    GREETING = "greeting"
    UNKNOWN = "unknown"

    @classmethod
    def coerce(cls, value: object) -> "IntentType":
        """Map an arbitrary value onto a known intent, defaulting to UNKNOWN."""
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        return cls.UNKNOWN


@dataclass(frozen=True)
class Intent:
    """
    Immutable value object for a classified inbound message.

    `flight_code` is only ever set for FLIGHT_STATUS; every other kind
    carries None.
    """
    kind: IntentType
    flight_code: Optional[str] = None
    source: str = "none"

    def __post_init__(self):
        if self.kind is IntentType.FLIGHT_STATUS and not self.flight_code:
            raise ValueError("flight_status intent requires a flight code")
        if self.kind is not IntentType.FLIGHT_STATUS and self.flight_code is not None:
            raise ValueError(f"{self.kind.value} intent cannot carry a flight code")

    @classmethod
    def unknown(cls, source: str = "none") -> "Intent":
        return cls(kind=IntentType.UNKNOWN, flight_code=None, source=source)

    def __repr__(self) -> str:
        return f"Intent(kind={self.kind.value}, flight_code={self.flight_code}, source={self.source})"
