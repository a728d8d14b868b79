"""
Message models exchanged between the webhook, the dispatcher and the channel.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional


@dataclass(frozen=True)
class InboundMessage:
    """
    A normalized inbound chat message.

    `sender` is the channel address used to reply (e.g. "whatsapp:+3906...");
    `text` may be empty.
    """
    sender: str
    text: str = ""
    received_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    channel_message_id: Optional[str] = None

    @property
    def normalized_text(self) -> str:
        return self.text.strip().lower()


@dataclass(frozen=True)
class ReplyButton:
    label: str
    value: str


@dataclass(frozen=True)
class DispatchReply:
    """Immediate reply to an inbound message, with optional quick replies."""
    text: str
    buttons: List[ReplyButton] = field(default_factory=list)
