from abc import ABC, abstractmethod
from typing import Any, Dict


class MessagingTransport(ABC):
    """
    Interface for pushing outbound messages to a user.

    Delivery is best effort: a failed send raises TransportError and is not
    retried by callers.
    """

    @abstractmethod
    async def send(self, recipient_address: str, text: str) -> Dict[str, Any]:
        """
        Deliver a text message.

        Args:
            recipient_address: Channel address of the recipient
            text: Message body

        Returns:
            Provider response describing the queued message

        Raises:
            TransportError: If the message could not be handed to the channel
        """
        pass

    def is_configured(self) -> bool:
        """Whether the transport has the credentials it needs to send."""
        return True

    async def close(self) -> None:
        return None
