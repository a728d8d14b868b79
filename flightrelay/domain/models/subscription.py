from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from flightrelay.domain.models.flight import FlightSnapshot


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ChangeKind(str, Enum):
    GATE = "gate"
    STATUS = "status"


@dataclass(frozen=True)
class ChangeEvent:
    """One observed gate or status transition for a tracked flight."""
    kind: ChangeKind
    user_address: str
    flight_code: str
    previous: Optional[str]
    current: str


@dataclass
class Subscription:
    """
    Links one user to the single flight they are tracking.

    `last_known_gate` and `last_known_status` hold the values last reported
    to the user, so a change is only reported once per transition.
    """
    user_address: str
    flight_code: str
    last_known_gate: Optional[str] = None
    last_known_status: Optional[str] = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    def observe(self, flight: FlightSnapshot) -> List[ChangeEvent]:
        """
        Fold a fresh provider snapshot into the last-known state.

        The gate is checked before the status; both come from the same
        snapshot. Returns the transitions that need a notification.
        """
        changes: List[ChangeEvent] = []

        current_gate = flight.current_gate
        if current_gate and current_gate != self.last_known_gate:
            changes.append(ChangeEvent(
                kind=ChangeKind.GATE,
                user_address=self.user_address,
                flight_code=self.flight_code,
                previous=self.last_known_gate,
                current=current_gate,
            ))
            self.last_known_gate = current_gate

        current_status = flight.status
        if current_status and current_status != self.last_known_status:
            changes.append(ChangeEvent(
                kind=ChangeKind.STATUS,
                user_address=self.user_address,
                flight_code=self.flight_code,
                previous=self.last_known_status,
                current=current_status,
            ))
            self.last_known_status = current_status

        if changes:
            self.updated_at = _utcnow()
        return changes

    def copy(self) -> "Subscription":
        return replace(self)
