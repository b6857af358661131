"""Messaging gateway contract, cards and button actions."""

from .actions import TaskActions
from .base import (
    ActionClick,
    Button,
    Card,
    InboundMessage,
    MessagingGateway,
    OutgoingMessage,
    message_text,
)
from .cards import (
    build_confirmation_card,
    build_reminder_card,
    build_task_list,
    build_task_summary_card,
)

__all__ = [
    "ActionClick",
    "Button",
    "Card",
    "InboundMessage",
    "MessagingGateway",
    "OutgoingMessage",
    "TaskActions",
    "build_confirmation_card",
    "build_reminder_card",
    "build_task_list",
    "build_task_summary_card",
    "message_text",
]
