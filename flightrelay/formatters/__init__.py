from flightrelay.formatters.flight import FlightFormatter

__all__ = ["FlightFormatter"]
