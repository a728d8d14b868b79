"""Conversational flight-information relay with gate and status alerts."""

__version__ = "0.1.0"
