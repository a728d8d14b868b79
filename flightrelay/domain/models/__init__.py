from flightrelay.domain.models.flight import FlightEndpoint, FlightSnapshot
from flightrelay.domain.models.intent import Intent, IntentType
from flightrelay.domain.models.message import DispatchReply, InboundMessage, ReplyButton
from flightrelay.domain.models.subscription import ChangeEvent, ChangeKind, Subscription

__all__ = [
    "ChangeEvent",
    "ChangeKind",
    "DispatchReply",
    "FlightEndpoint",
    "FlightSnapshot",
    "InboundMessage",
    "Intent",
    "IntentType",
    "ReplyButton",
    "Subscription",
]
