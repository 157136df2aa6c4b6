"""Bookable time labels for a salon's working day."""

from datetime import date, datetime, time, timedelta

WEEKDAY_NAMES = ('monday', 'tuesday', 'wednesday', 'thursday', 'friday', 'saturday', 'sunday')


def format_slot_label(slot_time: time) -> str:
    """Format a time the way slots are labelled and stored, e.g. ``9:05 AM``."""
    hour = slot_time.hour % 12 or 12
    meridiem = 'AM' if slot_time.hour < 12 else 'PM'
    return f'{hour}:{slot_time.minute:02d} {meridiem}'


def weekday_name(slot_date: date) -> str:
    return WEEKDAY_NAMES[slot_date.weekday()]


def is_working_day(slot_date: date, working_days) -> bool:
    return weekday_name(slot_date) in {day.strip().lower() for day in working_days or []}


def enumerate_slots(slot_date: date, start_time: time, end_time: time, slot_duration: int) -> list[str]:
    """Labels from ``start_time`` every ``slot_duration`` minutes, stopping before ``end_time``.

    The last slot may run past ``end_time``. Break windows are not consulted.
    """
    if slot_duration <= 0:
        raise ValueError('Slot duration must be a positive number of minutes.')

    current = datetime.combine(slot_date, start_time)
    day_end = datetime.combine(slot_date, end_time)
    step = timedelta(minutes=slot_duration)

    labels: list[str] = []
    while current < day_end:
        labels.append(format_slot_label(current.time()))
        current += step

    return labels


def salon_slot_labels(salon, slot_date: date) -> list[str]:
    if not is_working_day(slot_date, salon.working_days):
        return []
    return enumerate_slots(slot_date, salon.start_time, salon.end_time, salon.slot_duration)
