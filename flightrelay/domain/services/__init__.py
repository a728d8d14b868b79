from flightrelay.domain.services.change_detector import ChangeDetector, CycleReport, FlightTracker
from flightrelay.domain.services.dispatcher import RequestDispatcher
from flightrelay.domain.services.intent_service import IntentResolver, IntentRule, normalize_flight_code
from flightrelay.domain.services.subscription_registry import SubscriptionRegistry

__all__ = [
    "ChangeDetector",
    "CycleReport",
    "FlightTracker",
    "IntentResolver",
    "IntentRule",
    "RequestDispatcher",
    "SubscriptionRegistry",
    "normalize_flight_code",
]
