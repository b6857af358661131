"""Reminder lead-time policy."""

from datetime import timedelta

# (time until due is at most, remind this long before the deadline)
LEAD_TIME_STEPS: tuple[tuple[timedelta, timedelta], ...] = (
    (timedelta(minutes=10), timedelta(minutes=5)),
    (timedelta(minutes=30), timedelta(minutes=10)),
    (timedelta(hours=2), timedelta(minutes=30)),
    (timedelta(hours=6), timedelta(hours=1)),
    (timedelta(hours=24), timedelta(hours=2)),
    (timedelta(hours=72), timedelta(hours=4)),
)
MAX_LEAD_TIME = timedelta(hours=6)


def reminder_lead_time(time_until_due: timedelta) -> timedelta:
    """How long before the deadline to remind, given the time left.

    A non-decreasing step function: closer deadlines get shorter leads.
    """
    for limit, lead in LEAD_TIME_STEPS:
        if time_until_due <= limit:
            return lead
    return MAX_LEAD_TIME
