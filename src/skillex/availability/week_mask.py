"""Weekly availability mask helpers.

A week mask is 168 booleans, one per hour, starting Monday 00:00:
``index = day * 24 + hour`` with ``day`` 0 = Monday .. 6 = Sunday.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

DAYS_PER_WEEK = 7
HOURS_PER_DAY = 24
WEEK_SLOTS = DAYS_PER_WEEK * HOURS_PER_DAY

DAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


@dataclass(frozen=True)
class TimeBlock:
    """Consecutive free hours within one day; ``end`` is exclusive."""

    start: int
    end: int

    @property
    def hours(self) -> int:
        return self.end - self.start


@dataclass
class DayAvailability:
    day: int
    day_name: str
    blocks: list[TimeBlock] = field(default_factory=list)
    total_slots: int = 0


def slot_index(day: int, hour: int) -> int:
    """Mask index of ``hour`` on ``day`` (0 = Monday)."""
    if not 0 <= day < DAYS_PER_WEEK:
        msg = f"day must be 0-6, got {day}"
        raise ValueError(msg)
    if not 0 <= hour < HOURS_PER_DAY:
        msg = f"hour must be 0-23, got {hour}"
        raise ValueError(msg)
    return day * HOURS_PER_DAY + hour


def slot_position(index: int) -> tuple[int, int]:
    """Inverse of :func:`slot_index`: ``(day, hour)`` for a mask index."""
    if not 0 <= index < WEEK_SLOTS:
        msg = f"slot index must be 0-{WEEK_SLOTS - 1}, got {index}"
        raise ValueError(msg)
    return divmod(index, HOURS_PER_DAY)


def empty_week_mask() -> list[bool]:
    """A fully busy week."""
    return [False] * WEEK_SLOTS


def validate_week_mask(mask: Sequence[object]) -> list[bool]:
    """
    Check that ``mask`` is exactly 168 booleans and return it as a list.

    Raises:
        ValueError: On any other length or a non-boolean element.
    """
    if len(mask) != WEEK_SLOTS:
        msg = f"weekMask must contain exactly {WEEK_SLOTS} values, got {len(mask)}"
        raise ValueError(msg)
    for i, value in enumerate(mask):
        if not isinstance(value, bool):
            msg = f"weekMask[{i}] must be a boolean"
            raise ValueError(msg)
    return list(mask)  # type: ignore[arg-type]


def available_slots(mask: Sequence[bool]) -> list[int]:
    """Indices of free slots."""
    return [i for i, free in enumerate(mask) if free]


def _group_consecutive(hours: list[int]) -> list[TimeBlock]:
    blocks: list[TimeBlock] = []
    for hour in sorted(hours):
        if blocks and blocks[-1].end == hour:
            blocks[-1] = TimeBlock(blocks[-1].start, hour + 1)
        else:
            blocks.append(TimeBlock(hour, hour + 1))
    return blocks


def daily_time_blocks(mask: Sequence[bool]) -> list[DayAvailability]:
    """Summarise a mask per day, grouping consecutive free hours. Busy days are omitted."""
    validate_week_mask(mask)
    days = []
    for day in range(DAYS_PER_WEEK):
        offset = day * HOURS_PER_DAY
        hours = [h for h in range(HOURS_PER_DAY) if mask[offset + h]]
        if hours:
            days.append(DayAvailability(
                day=day,
                day_name=DAY_NAMES[day],
                blocks=_group_consecutive(hours),
                total_slots=len(hours),
            ))
    return days


def overlap_hours(a: Sequence[bool], b: Sequence[bool]) -> int:
    """Number of hours free in both masks."""
    if len(a) != WEEK_SLOTS or len(b) != WEEK_SLOTS:
        msg = f"both masks must contain {WEEK_SLOTS} values"
        raise ValueError(msg)
    return sum(1 for x, y in zip(a, b) if x and y)
