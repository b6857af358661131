"""Platform-neutral messaging types and the gateway interface."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Protocol, Union


@dataclass(frozen=True)
class Button:
    """An interactive button; ``value`` round-trips a task id."""

    label: str
    action_id: str
    value: str
    style: str | None = None


@dataclass(frozen=True)
class Card:
    """A structured message: a text body plus action buttons."""

    text: str
    buttons: tuple[Button, ...] = ()


OutgoingMessage = Union[str, Card]


@dataclass(frozen=True)
class InboundMessage:
    """A message addressed to the bot.

    Attributes:
        text: Message text as received (may start with the bot mention).
        author_id: Sender's user id.
        channel_id: Channel or chat the message arrived in.
        thread_id: Thread or topic inside the channel, if any.
        timestamp: When the message was sent.
    """

    text: str
    author_id: str
    channel_id: str
    thread_id: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def conversation_key(self) -> str:
        """Key for the conversation history: the thread, or the channel itself."""
        if self.thread_id:
            return f"{self.channel_id}:{self.thread_id}"
        return self.channel_id


@dataclass(frozen=True)
class ActionClick:
    """A click on a card button."""

    action_id: str
    value: str
    user_id: str
    channel_id: str


class MessagingGateway(Protocol):
    """What the core needs from a chat platform."""

    async def send(self, channel_id: str, message: OutgoingMessage) -> None:
        """Deliver a message or card to a channel.

        Raises:
            DeliveryError: If the platform rejected the message.
        """
        ...


def message_text(message: OutgoingMessage) -> str:
    """Plain-text rendering of a message, for logs and text-only platforms."""
    if isinstance(message, Card):
        return message.text
    return message
