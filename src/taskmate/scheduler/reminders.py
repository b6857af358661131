"""Periodic sweep that sends one deadline reminder per task."""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from ..errors import DeliveryError, PersistenceError, TaskmateError
from ..gateway.base import MessagingGateway
from ..gateway.cards import build_reminder_card
from ..logging import get_logger
from ..tasks.models import Task
from ..tasks.store import TaskStore
from .intro import ReminderIntroWriter
from .policy import reminder_lead_time

logger = logging.getLogger(__name__)


@dataclass
class ReminderConfig:
    """Configuration for the reminder scheduler."""

    interval: float = 60  # seconds between sweeps
    lookahead: timedelta = timedelta(days=7)
    tolerance: timedelta = timedelta(minutes=1)
    catch_up: timedelta = timedelta(minutes=10)


@dataclass(frozen=True)
class SweepReport:
    """Outcome of one sweep."""

    checked: int = 0
    sent: int = 0
    failed: int = 0
    skipped: bool = False


def should_fire(task: Task, now: datetime, config: ReminderConfig) -> bool:
    """Whether ``now`` is the moment to remind about ``task``.

    The lead is recomputed from the time left on every tick, so the long
    leads never line up with a tick. Only the short ones fire, within
    ``tolerance`` of 30m, 10m or 5m before the deadline, whichever comes first.
    """
    until = task.due_at - now
    if until <= timedelta(0):
        return False
    target = task.due_at - reminder_lead_time(until)
    late_by = now - target
    if abs(late_by) <= config.tolerance:
        return True
    # Covers a short scheduler outage, never older misses
    return timedelta(0) < late_by <= config.catch_up


class ReminderScheduler:
    """Sends deadline reminders; the reminder-sent marker makes it at-most-once."""

    def __init__(
        self,
        store: TaskStore,
        gateway: MessagingGateway,
        config: ReminderConfig | None = None,
        intro_writer: ReminderIntroWriter | None = None,
    ) -> None:
        self.store = store
        self.gateway = gateway
        self.config = config or ReminderConfig()
        self.intro_writer = intro_writer or ReminderIntroWriter()
        self.json_logger = get_logger()
        self._sweep_lock = asyncio.Lock()
        self._task: asyncio.Task | None = None

    async def sweep(self, now: datetime | None = None) -> SweepReport:
        """Check pending tasks once and send due reminders.

        Skipped entirely if the previous sweep is still running.
        """
        if self._sweep_lock.locked():
            logger.info("Previous reminder sweep still running, skipping tick")
            return SweepReport(skipped=True)

        async with self._sweep_lock:
            now = now or datetime.now(timezone.utc)
            try:
                tasks = self.store.find_reminder_candidates(now, now + self.config.lookahead)
            except PersistenceError as e:
                logger.error(f"Failed to query tasks for reminders: {e}")
                return SweepReport()

            sent = failed = 0
            for task in tasks:
                if not should_fire(task, now, self.config):
                    continue
                if await self._remind(task, now):
                    sent += 1
                else:
                    failed += 1

            return SweepReport(checked=len(tasks), sent=sent, failed=failed)

    async def _remind(self, task: Task, now: datetime) -> bool:
        """Deliver one reminder and set its marker. Never raises."""
        try:
            intro = await self.intro_writer.write(task)
            await self.gateway.send(task.channel_id, build_reminder_card(task, intro))
        except DeliveryError as e:
            logger.warning(f"Failed to send reminder for task {task.id}: {e}")
            self.json_logger.log_reminder(task.id, False, chat_id=task.channel_id, error=str(e))
            return False
        except Exception as e:
            logger.exception(f"Unexpected error sending reminder for task {task.id}")
            self.json_logger.log_reminder(task.id, False, chat_id=task.channel_id, error=str(e))
            return False

        try:
            self.store.update(task.id, {"reminder_sent_at": now})
        except TaskmateError as e:
            # Sent but unmarked: the next tick may send it again, unless the
            # task was deleted while the reminder was in flight
            logger.error(f"Reminder sent but marker not saved for task {task.id}: {e}")
            self.json_logger.log_reminder(task.id, False, chat_id=task.channel_id, error=str(e))
            return False

        self.json_logger.log_reminder(task.id, True, chat_id=task.channel_id)
        return True

    async def _loop(self) -> None:
        """Background task for periodic sweeps."""
        while True:
            try:
                await self.sweep()
                await asyncio.sleep(self.config.interval)
            except asyncio.CancelledError:
                break
            except Exception:
                logger.exception("Reminder sweep failed")
                await asyncio.sleep(self.config.interval)

    def start(self) -> None:
        """Start the background sweep task."""
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._loop())

    def stop(self) -> None:
        """Stop the background sweep task."""
        if self._task and not self._task.done():
            self._task.cancel()
