from fastapi import Request

from flightrelay.channels.whatsapp.channel import WhatsAppChannel
from flightrelay.config import Settings, get_settings
from flightrelay.domain.services.change_detector import FlightTracker
from flightrelay.domain.services.dispatcher import RequestDispatcher
from flightrelay.domain.services.subscription_registry import SubscriptionRegistry


# Configuration dependency
def get_settings_dependency(request: Request) -> Settings:
    """
    Dependency to provide application settings.

    Prefers the settings the application was built with.
    """
    return getattr(request.app.state, "settings", None) or get_settings()


def get_dispatcher(request: Request) -> RequestDispatcher:
    return request.app.state.dispatcher


def get_channel(request: Request) -> WhatsAppChannel:
    return request.app.state.channel


def get_registry(request: Request) -> SubscriptionRegistry:
    return request.app.state.registry


def get_tracker(request: Request) -> FlightTracker:
    return request.app.state.tracker


# Correlation ID dependency
def get_correlation_id(request: Request) -> str:
    """
    Extracts the correlation ID from request state.

    Requires the correlation id middleware to be active.
    """
    return getattr(request.state, "correlation_id", "unknown")
