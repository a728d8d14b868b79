"""
Aviation data provider integrations.
"""

from flightrelay.infrastructure.aviation.aviationstack_client import AviationStackClient

__all__ = ["AviationStackClient"]
