# orders/services/timeline.py

"""
ORDER TIMELINE RULES

The timeline is a fixed, ordered list of five steps:

    Order Placed < Confirmed < Preparing < Out for Delivery < Delivered

Each step carries a display time (or the "Pending" sentinel) and a
completed flag. Advancing to a status completes every step up to and
including it; a completed step is never un-completed.

DESIGN PRINCIPLES:
- Pure functions (no database access)
- Stored form is a plain list of dicts on Order.timeline
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from django.utils import timezone

STEP_ORDER_PLACED = "Order Placed"
STEP_CONFIRMED = "Confirmed"
STEP_PREPARING = "Preparing"
STEP_OUT_FOR_DELIVERY = "Out for Delivery"
STEP_DELIVERED = "Delivered"

STEPS = (
    STEP_ORDER_PLACED,
    STEP_CONFIRMED,
    STEP_PREPARING,
    STEP_OUT_FOR_DELIVERY,
    STEP_DELIVERED,
)

PENDING_TIME = "Pending"
ESTIMATE_SUFFIX = " (Est.)"


@dataclass(frozen=True)
class TimelineStep:
    status: str
    time: str = PENDING_TIME
    completed: bool = False

    def as_dict(self) -> dict:
        return {"status": self.status, "time": self.time, "completed": self.completed}

    @classmethod
    def from_dict(cls, raw: dict) -> "TimelineStep":
        return cls(
            status=str(raw.get("status", "")),
            time=str(raw.get("time") or PENDING_TIME),
            completed=bool(raw.get("completed", False)),
        )


def format_display_time(moment: datetime) -> str:
    """12-hour local clock time, e.g. "03:45 PM"."""
    if timezone.is_aware(moment):
        moment = timezone.localtime(moment)
    return moment.strftime("%I:%M %p")


def step_index(status: str) -> Optional[int]:
    try:
        return STEPS.index(status)
    except ValueError:
        return None


def initial_timeline(
    now: datetime,
    *,
    confirmed: bool,
    estimated_delivery: datetime,
) -> list[TimelineStep]:
    placed_at = format_display_time(now)

    return [
        TimelineStep(STEP_ORDER_PLACED, placed_at, True),
        TimelineStep(STEP_CONFIRMED, placed_at, True) if confirmed else TimelineStep(STEP_CONFIRMED),
        TimelineStep(STEP_PREPARING),
        TimelineStep(STEP_OUT_FOR_DELIVERY),
        TimelineStep(
            STEP_DELIVERED,
            format_display_time(estimated_delivery) + ESTIMATE_SUFFIX,
            False,
        ),
    ]


def advance_timeline(
    steps: Iterable[TimelineStep],
    target_status: str,
    now: datetime,
) -> list[TimelineStep]:
    """
    Monotonic catch-up.

    - the target step gets the current display time and completed=True
      (unless it was already completed, in which case it keeps its time)
    - every step before the target is completed
    - steps after the target are left exactly as they were
    - a status that is not a timeline step (e.g. Pending) changes nothing
    """
    steps = list(steps)
    target = step_index(target_status)
    if target is None:
        return steps

    stamp = format_display_time(now)
    advanced = []

    for step in steps:
        idx = step_index(step.status)

        if idx is None or idx > target:
            advanced.append(step)
        elif idx == target and not step.completed:
            advanced.append(TimelineStep(step.status, stamp, True))
        elif not step.completed:
            advanced.append(TimelineStep(step.status, step.time, True))
        else:
            advanced.append(step)

    return advanced


def load_timeline(raw: Iterable[dict]) -> list[TimelineStep]:
    return [TimelineStep.from_dict(item) for item in (raw or [])]


def dump_timeline(steps: Iterable[TimelineStep]) -> list[dict]:
    return [step.as_dict() for step in steps]
