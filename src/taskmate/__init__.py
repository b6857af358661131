"""Taskmate - chat assistant that turns messages into tasks with deadline reminders."""

__version__ = "0.1.0"
