"""Reminder scheduling."""

from .intro import ReminderIntroWriter, fallback_intro
from .policy import reminder_lead_time
from .reminders import ReminderConfig, ReminderScheduler, SweepReport, should_fire

__all__ = [
    "ReminderConfig",
    "ReminderIntroWriter",
    "ReminderScheduler",
    "SweepReport",
    "fallback_intro",
    "reminder_lead_time",
    "should_fire",
]
