from flightrelay.channels.whatsapp.channel import WhatsAppChannel
from flightrelay.channels.whatsapp.client import TwilioClient

__all__ = ["TwilioClient", "WhatsAppChannel"]
