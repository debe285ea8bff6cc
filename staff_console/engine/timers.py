"""
Cooking Timer Manager

Per-order cooking timers, created explicitly when staff start cooking and
independent of the order's status field.

    RUNNING <-> PAUSED -> COMPLETED (terminal)

All durations are seconds. Elapsed time excludes completed pause intervals
and is frozen at the pause point while PAUSED. The half-time, near-complete
and overdue thresholds each fire once per timer.

Author: Khalil Bannouri
Version: 1.0.0
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from staff_console.engine.clock import Clock, utcnow
from staff_console.engine.latches import LatchSet
from staff_console.engine.results import TimerActionResult
from staff_console.models import CookingTimer, TimerStatus
from staff_console.schemas import StaffOrder

logger = logging.getLogger(__name__)

HALF_TIME = "halfTime"
NEAR_COMPLETE = "nearComplete"
OVERDUE = "overdue"


@dataclass
class TimerEvent:
    """A timer threshold crossed for the first time."""
    timer: CookingTimer
    kind: str


def elapsed_seconds(timer: CookingTimer, now: datetime) -> float:
    """Cooking time so far, excluding pauses."""
    if timer.status == TimerStatus.COMPLETED and timer.actual_duration is not None:
        return timer.actual_duration
    reference = timer.paused_time if timer.status == TimerStatus.PAUSED else now
    return max(0.0, (reference - timer.start_time).total_seconds() - timer.total_paused_duration)


def remaining_seconds(timer: CookingTimer, now: datetime) -> float:
    return max(0.0, timer.estimated_duration - elapsed_seconds(timer, now))


def progress_percent(timer: CookingTimer, now: datetime) -> float:
    if timer.estimated_duration <= 0:
        return 100.0
    return round(min(100.0, elapsed_seconds(timer, now) / timer.estimated_duration * 100), 1)


def format_mmss(seconds: float) -> str:
    """Format seconds as MM:SS (minutes may exceed 59)."""
    total = int(max(0, seconds))
    return f"{total // 60:02d}:{total % 60:02d}"


class CookingTimerManager:
    """Owns every cooking timer created in this console session."""

    def __init__(self, clock: Clock = utcnow, near_complete_seconds: int = 300):
        self._clock = clock
        self.near_complete_seconds = near_complete_seconds
        self._timers: dict[str, CookingTimer] = {}
        self._latches = LatchSet()

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def start(
        self,
        order: StaffOrder,
        estimated_minutes: int,
        staff_id: Optional[str] = None,
    ) -> TimerActionResult:
        if not order.can_start_cooking:
            message = f"Order #{order.order_number} cannot start cooking in status {order.status.value}"
            logger.info(message)
            return TimerActionResult(False, error_message=message)
        if estimated_minutes <= 0:
            return TimerActionResult(False, error_message="Estimated minutes must be positive")

        timer = CookingTimer(
            timer_id=f"timer_{uuid.uuid4().hex[:12]}",
            order_id=order.order_id,
            staff_id=staff_id,
            start_time=self._clock(),
            estimated_duration=estimated_minutes * 60,
        )
        self._timers[timer.timer_id] = timer
        logger.info(f"⏱️ Timer {timer.timer_id} started for order #{order.order_number} ({estimated_minutes} min)")
        return TimerActionResult(True, timer=timer)

    def pause(self, timer_id: str) -> TimerActionResult:
        timer = self._timers.get(timer_id)
        if timer is None:
            return TimerActionResult(False, error_message=f"Timer {timer_id} not found")
        if timer.status != TimerStatus.RUNNING:
            return TimerActionResult(False, timer, f"Cannot pause a {timer.status.value} timer")

        timer.paused_time = self._clock()
        timer.status = TimerStatus.PAUSED
        logger.debug(f"Timer {timer_id} paused")
        return TimerActionResult(True, timer)

    def resume(self, timer_id: str) -> TimerActionResult:
        timer = self._timers.get(timer_id)
        if timer is None:
            return TimerActionResult(False, error_message=f"Timer {timer_id} not found")
        if timer.status != TimerStatus.PAUSED:
            return TimerActionResult(False, timer, f"Cannot resume a {timer.status.value} timer")

        now = self._clock()
        timer.total_paused_duration += (now - timer.paused_time).total_seconds()
        timer.paused_time = None
        timer.resume_time = now
        timer.status = TimerStatus.RUNNING
        logger.debug(f"Timer {timer_id} resumed")
        return TimerActionResult(True, timer)

    def complete(self, timer_id: str) -> TimerActionResult:
        timer = self._timers.get(timer_id)
        if timer is None:
            return TimerActionResult(False, error_message=f"Timer {timer_id} not found")
        if timer.status == TimerStatus.COMPLETED:
            return TimerActionResult(False, timer, "Timer is already completed")

        now = self._clock()
        if timer.status == TimerStatus.PAUSED:
            # Completing closes the open pause interval
            timer.total_paused_duration += (now - timer.paused_time).total_seconds()
            timer.paused_time = None

        timer.end_time = now
        timer.actual_duration = (now - timer.start_time).total_seconds() - timer.total_paused_duration
        timer.status = TimerStatus.COMPLETED
        logger.info(f"✅ Timer {timer_id} completed in {format_mmss(timer.actual_duration)}")
        return TimerActionResult(True, timer)

    # =========================================================================
    # QUERIES
    # =========================================================================

    def get(self, timer_id: str) -> Optional[CookingTimer]:
        return self._timers.get(timer_id)

    @property
    def timers(self) -> list[CookingTimer]:
        return list(self._timers.values())

    def active_timers(self) -> list[CookingTimer]:
        return [t for t in self._timers.values() if t.is_active]

    def timers_for_order(self, order_id: str) -> list[CookingTimer]:
        return [t for t in self._timers.values() if t.order_id == order_id]

    def active_timer_for(self, order_id: str) -> Optional[CookingTimer]:
        """Latest non-completed timer; the one that drives the display."""
        active = [t for t in self.timers_for_order(order_id) if t.is_active]
        if not active:
            return None
        return max(active, key=lambda t: t.start_time)

    def prune(self, order_ids: Iterable[str]) -> int:
        """Forget completed timers of orders no longer in the snapshot."""
        live = set(order_ids)
        stale = [
            timer_id for timer_id, t in self._timers.items()
            if t.status == TimerStatus.COMPLETED and t.order_id not in live
        ]
        for timer_id in stale:
            del self._timers[timer_id]
        self._latches.retain(self._timers)
        return len(stale)

    def describe(self, timer: CookingTimer) -> dict:
        now = self._clock()
        elapsed = elapsed_seconds(timer, now)
        remaining = remaining_seconds(timer, now)
        return {
            **timer.to_dict(),
            "elapsedSeconds": round(elapsed, 1),
            "remainingSeconds": round(remaining, 1),
            "progress": progress_percent(timer, now),
            "elapsedDisplay": format_mmss(elapsed),
            "remainingDisplay": format_mmss(remaining),
        }

    # =========================================================================
    # THRESHOLDS
    # =========================================================================

    def check_alerts(self) -> list[TimerEvent]:
        """Latch newly crossed thresholds on running timers."""
        now = self._clock()
        events: list[TimerEvent] = []

        for timer in self._timers.values():
            if timer.status != TimerStatus.RUNNING:
                continue
            elapsed = elapsed_seconds(timer, now)
            remaining = timer.estimated_duration - elapsed

            if elapsed >= timer.estimated_duration / 2 and self._latches.fire_once(timer.timer_id, HALF_TIME):
                timer.alerts.half_time = True
                events.append(TimerEvent(timer, HALF_TIME))

            if 0 < remaining <= self.near_complete_seconds and self._latches.fire_once(timer.timer_id, NEAR_COMPLETE):
                timer.alerts.near_complete = True
                events.append(TimerEvent(timer, NEAR_COMPLETE))

            if elapsed >= timer.estimated_duration and self._latches.fire_once(timer.timer_id, OVERDUE):
                timer.alerts.overdue = True
                events.append(TimerEvent(timer, OVERDUE))

        return events
