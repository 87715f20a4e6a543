"""
Time Slot Arithmetic
Helpers for "HH:MM[:SS]" strings used by the day planner
"""

from typing import Tuple

from ..schemas import TimeSlot


class InvalidTimeFormatError(ValueError):
    """Raised when a time string cannot be parsed"""


def time_to_minutes(time_str: str) -> int:
    """
    Convert a time string to minutes after midnight

    Args:
        time_str: "HH:MM" or "HH:MM:SS"

    Returns:
        int: Minutes after midnight

    Raises:
        InvalidTimeFormatError: If the string is malformed

    Example:
        >>> time_to_minutes("12:30:00")
        750
    """
    parts = str(time_str).split(":")
    if len(parts) < 2 or not parts[0] or not parts[1]:
        raise InvalidTimeFormatError(f"Invalid time format: {time_str}")

    try:
        hours = int(parts[0])
        minutes = int(parts[1])
    except ValueError:
        raise InvalidTimeFormatError(f"Invalid time format: {time_str}") from None

    if not 0 <= hours <= 23 or not 0 <= minutes <= 59:
        raise InvalidTimeFormatError(f"Invalid time format: {time_str}")

    return hours * 60 + minutes


def minutes_to_time(minutes: int) -> str:
    """
    Convert minutes after midnight to "HH:MM:SS"

    Example:
        >>> minutes_to_time(750)
        '12:30:00'
    """
    hours, mins = divmod(int(minutes), 60)
    return f"{hours:02d}:{mins:02d}:00"


def slot_bounds(slot: TimeSlot) -> Tuple[int, int]:
    """Start and end of a slot in minutes"""
    return time_to_minutes(slot.start_time), time_to_minutes(slot.end_time)


def ranges_overlap(start1: int, end1: int, start2: int, end2: int) -> bool:
    """Half-open interval intersection; touching ranges do not overlap"""
    return start1 < end2 and start2 < end1


def slots_overlap(slot1: TimeSlot, slot2: TimeSlot) -> bool:
    start1, end1 = slot_bounds(slot1)
    start2, end2 = slot_bounds(slot2)
    return ranges_overlap(start1, end1, start2, end2)


def make_slot(start: int, end: int) -> TimeSlot:
    return TimeSlot(
        start_time=minutes_to_time(start),
        end_time=minutes_to_time(end),
        duration=max(0, end - start)
    )


def season_from_month(month: int) -> str:
    """Northern-hemisphere season name for a month (1-12)"""
    if 3 <= month <= 5:
        return "spring"
    elif 6 <= month <= 8:
        return "summer"
    elif 9 <= month <= 11:
        return "autumn"
    else:
        return "winter"
