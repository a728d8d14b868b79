import asyncio
from typing import Dict, List, Optional

from flightrelay.domain.models.flight import FlightSnapshot
from flightrelay.domain.models.subscription import ChangeEvent, Subscription
from flightrelay.utils.exceptions import InvalidSubscriptionError
from flightrelay.utils.logger import get_logger

logger = get_logger(__name__)


class SubscriptionRegistry:
    """
    In-memory registry of tracked flights, keyed by user address.

    Each user tracks at most one flight; a new upsert replaces the old one.
    All access goes through a single asyncio lock shared by the inbound
    handlers and the detection cycle. Nothing is persisted.
    """

    def __init__(self):
        self._subscriptions: Dict[str, Subscription] = {}
        self._lock = asyncio.Lock()

    async def upsert(
        self,
        user_address: str,
        flight_code: str,
        last_known_gate: Optional[str] = None,
        last_known_status: Optional[str] = None
    ) -> Subscription:
        """
        Create or replace the subscription for a user.

        Raises:
            InvalidSubscriptionError: If the user address or flight code is empty
        """
        if not user_address or not str(user_address).strip():
            raise InvalidSubscriptionError("Subscription requires a user address")
        if not flight_code or not str(flight_code).strip():
            raise InvalidSubscriptionError(
                "Subscription requires a flight code",
                details={"user_address": user_address}
            )

        subscription = Subscription(
            user_address=user_address,
            flight_code=flight_code.strip().upper(),
            last_known_gate=last_known_gate or None,
            last_known_status=last_known_status or None,
        )

        async with self._lock:
            previous = self._subscriptions.get(user_address)
            self._subscriptions[user_address] = subscription

        if previous and previous.flight_code != subscription.flight_code:
            logger.info(
                f"Replaced tracking for {user_address}: {previous.flight_code} -> {subscription.flight_code}"
            )
        else:
            logger.info(f"Subscribed {user_address} to {subscription.flight_code}")
        return subscription.copy()

    async def remove(self, user_address: str) -> bool:
        """Remove a user's subscription. Returns False if there was none."""
        async with self._lock:
            removed = self._subscriptions.pop(user_address, None)

        if removed:
            logger.info(f"Cancelled tracking of {removed.flight_code} for {user_address}")
        return removed is not None

    async def get(self, user_address: str) -> Optional[Subscription]:
        async with self._lock:
            subscription = self._subscriptions.get(user_address)
            return subscription.copy() if subscription else None

    async def snapshot(self) -> List[Subscription]:
        """Return detached copies of all subscriptions for iteration."""
        async with self._lock:
            return [s.copy() for s in self._subscriptions.values()]

    async def observe(self, user_address: str, flight_code: str, flight: FlightSnapshot) -> List[ChangeEvent]:
        """
        Apply a provider observation to a user's subscription.

        The diff and the state update happen under the lock, so the same
        transition is never reported twice. Observations for a user who has
        since cancelled, or switched to another flight, are discarded.
        """
        async with self._lock:
            subscription = self._subscriptions.get(user_address)
            if subscription is None or subscription.flight_code != flight_code:
                logger.debug(f"Discarding stale observation of {flight_code} for {user_address}")
                return []
            return subscription.observe(flight)

    def __len__(self) -> int:
        return len(self._subscriptions)
