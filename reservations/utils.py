from datetime import date, datetime

from django.utils import timezone
from django.utils.dateparse import parse_date


def day_of(value) -> date:
    """
    Truncate a date-like value to its calendar day.

    Accepts ``date``, ``datetime`` (aware values are read in the current
    timezone) or an ISO ``YYYY-MM-DD`` string.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = timezone.localtime(value)
        return value.date()
    if isinstance(value, date):
        return value
    parsed = parse_date(str(value)) if value is not None else None
    if parsed is None:
        raise ValueError(f"Invalid date: {value!r}. Use YYYY-MM-DD.")
    return parsed


def generate_time_slots(open_time: str, close_time: str) -> list[str]:
    """
    Whole-hour slots from opening (inclusive) to closing (exclusive).

    Only the hour part is used: "10:30" to "13:00" gives 10:00, 11:00, 12:00.
    """
    start_hour = int(open_time.split(":")[0])
    end_hour = int(close_time.split(":")[0])
    return [f"{hour:02d}:00" for hour in range(start_hour, end_hour)]
