"""
Request dispatching for inbound chat messages.

Handles exact commands and route searches first, then branches on the
resolved intent, fetches data for an immediate reply, and subscribes the
sender to any flight they look up.
"""

import re
from typing import Awaitable, Callable, Dict, Optional, Tuple

from flightrelay.domain.interfaces.provider_interface import FlightDataProvider
from flightrelay.domain.models.intent import Intent, IntentType
from flightrelay.domain.models.message import DispatchReply, InboundMessage, ReplyButton
from flightrelay.domain.services.intent_service import FLIGHT_CODE_PATTERN, IntentResolver
from flightrelay.domain.services.subscription_registry import SubscriptionRegistry
from flightrelay.formatters.flight import FlightFormatter
from flightrelay.utils.exceptions import ProviderError
from flightrelay.utils.logger import get_logger

# "FCO to LHR" anywhere in the text when written in capitals,
# or as the whole message in any case. "to" needs surrounding spaces.
ROUTE_PATTERN = re.compile(r"\b([A-Z]{3})(?:\s+(?:to|TO)\s+|\s*(?:→|->)\s*)([A-Z]{3})\b")
ROUTE_MESSAGE_PATTERN = re.compile(r"^\s*([a-z]{3})(?:\s+to\s+|\s*(?:→|->)\s*)([a-z]{3})\s*$", re.IGNORECASE)

TRACKING_BUTTONS = [
    ReplyButton(label="🛡️ Security Times", value="security"),
    ReplyButton(label="📖 Passport Control", value="passport"),
    ReplyButton(label="❌ Stop Alerts", value="cancel"),
]


class RequestDispatcher:
    """
    Composes the intent resolver, the data provider and the subscription
    registry to answer one inbound message.
    """

    def __init__(
        self,
        resolver: IntentResolver,
        provider: FlightDataProvider,
        registry: SubscriptionRegistry,
        formatter: Optional[FlightFormatter] = None,
        home_airport: str = "FCO",
        list_limit: int = 10
    ):
        self.resolver = resolver
        self.provider = provider
        self.registry = registry
        self.formatter = formatter or FlightFormatter({"home_airport": home_airport})
        self.home_airport = home_airport
        self.list_limit = list_limit
        self.logger = get_logger(__name__)

        self.commands: Dict[str, Callable[[InboundMessage], Awaitable[DispatchReply]]] = {
            "cancel": self._handle_cancel,
            "security": self._handle_security,
            "passport": self._handle_passport,
            "menu": self._handle_greeting,
        }
        self.intent_handlers: Dict[IntentType, Callable[[InboundMessage, Intent], Awaitable[DispatchReply]]] = {
            IntentType.FLIGHT_STATUS: self._handle_flight_status,
            IntentType.DEPARTURES: self._handle_departures,
            IntentType.ARRIVALS: self._handle_arrivals,
            IntentType.GREETING: lambda message, intent: self._handle_greeting(message),
            IntentType.UNKNOWN: self._handle_unknown,
        }

    async def handle(self, message: InboundMessage) -> DispatchReply:
        """
        Produce the immediate reply for an inbound message.

        Provider failures are turned into a user-facing reply rather than
        raised.
        """
        self.logger.info(f"Message from {message.sender}: \"{message.text}\"")

        command = self.commands.get(message.normalized_text)
        if command is not None:
            return await command(message)

        route = self.match_route(message.text)
        if route is not None:
            return await self._guard(self._handle_route(*route))

        intent = await self.resolver.resolve(message.text)
        self.logger.info(
            f"Dispatching {intent.kind.value} intent",
            extra={"intent": intent.kind.value, "flight_code": intent.flight_code, "rule": intent.source}
        )
        handler = self.intent_handlers.get(intent.kind, self._handle_unknown)
        return await self._guard(handler(message, intent))

    async def _guard(self, pending: Awaitable[DispatchReply]) -> DispatchReply:
        try:
            return await pending
        except ProviderError as e:
            self.logger.error(f"Flight data provider unavailable: {e.message}")
            return DispatchReply(text=self.formatter.format_provider_unavailable())

    @staticmethod
    def match_route(text: str) -> Optional[Tuple[str, str]]:
        text = text or ""
        # a flight code always wins over a route
        if FLIGHT_CODE_PATTERN.search(text):
            return None
        match = ROUTE_PATTERN.search(text) or ROUTE_MESSAGE_PATTERN.match(text)
        if not match:
            return None
        return match.group(1).upper(), match.group(2).upper()

    async def _handle_flight_status(self, message: InboundMessage, intent: Intent) -> DispatchReply:
        flight_code = intent.flight_code
        self.logger.info(f"Looking up {flight_code}")

        flight = await self.provider.get_flight(flight_code)
        if flight is None:
            return DispatchReply(text=self.formatter.format_flight_not_found(flight_code))

        await self.registry.upsert(
            user_address=message.sender,
            flight_code=flight_code,
            last_known_gate=flight.current_gate,
            last_known_status=flight.status,
        )
        return DispatchReply(text=self.formatter.format_flight(flight), buttons=list(TRACKING_BUTTONS))

    async def _handle_departures(self, message: InboundMessage, intent: Intent) -> DispatchReply:
        flights = await self.provider.get_departures(self.home_airport, self.list_limit)
        if not flights:
            return DispatchReply(text=self.formatter.format_list_empty("departures"))
        return DispatchReply(text=self.formatter.format_departures(flights, self.list_limit))

    async def _handle_arrivals(self, message: InboundMessage, intent: Intent) -> DispatchReply:
        flights = await self.provider.get_arrivals(self.home_airport, self.list_limit)
        if not flights:
            return DispatchReply(text=self.formatter.format_list_empty("arrivals"))
        return DispatchReply(text=self.formatter.format_arrivals(flights, self.list_limit))

    async def _handle_route(self, departure: str, arrival: str) -> DispatchReply:
        flights = await self.provider.search_route(departure, arrival, limit=5)
        return DispatchReply(text=self.formatter.format_route(departure, arrival, flights))

    async def _handle_greeting(self, message: InboundMessage) -> DispatchReply:
        return DispatchReply(text=self.formatter.format_welcome())

    async def _handle_unknown(self, message: InboundMessage, intent: Optional[Intent] = None) -> DispatchReply:
        return DispatchReply(text=self.formatter.format_help())

    async def _handle_cancel(self, message: InboundMessage) -> DispatchReply:
        removed = await self.registry.remove(message.sender)
        return DispatchReply(text=self.formatter.format_tracking_cancelled(removed))

    async def _handle_security(self, message: InboundMessage) -> DispatchReply:
        return DispatchReply(text=self.formatter.format_security_times())

    async def _handle_passport(self, message: InboundMessage) -> DispatchReply:
        return DispatchReply(text=self.formatter.format_passport_control())
