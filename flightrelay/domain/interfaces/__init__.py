from flightrelay.domain.interfaces.classifier_interface import ClassifierResult, FallbackClassifier
from flightrelay.domain.interfaces.provider_interface import FlightDataProvider
from flightrelay.domain.interfaces.transport_interface import MessagingTransport

__all__ = [
    "ClassifierResult",
    "FallbackClassifier",
    "FlightDataProvider",
    "MessagingTransport",
]
