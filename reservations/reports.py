"""
reports.py

Aggregate reservation figures per restaurant for the admin reports API.
"""

import calendar
from datetime import date

from django.db.models import Count, F, Q

from .models import Reservation

Status = Reservation.Status


def _reported():
    # Admin removals never show up in reports; orphaned rows have no restaurant to group by.
    return Reservation.objects.exclude(status=Status.DELETED).filter(restaurant__isnull=False)


def reservation_summary(start: date, end: date) -> list[dict]:
    """
    Per restaurant, reservation counts for dates in ``[start, end]``.

    Each row: restaurant_id, restaurant_name, total_reservations, confirmed,
    canceled, completed.
    """
    rows = (
        _reported()
        .filter(date__gte=start, date__lte=end)
        .values("restaurant_id", restaurant_name=F("restaurant__name"))
        .annotate(
            total_reservations=Count("id"),
            confirmed=Count("id", filter=Q(status=Status.CONFIRMED)),
            canceled=Count("id", filter=Q(status=Status.CANCELED)),
            completed=Count("id", filter=Q(status=Status.COMPLETED)),
        )
        .order_by("restaurant_id")
    )
    return list(rows)


def restaurant_performance(month: int | None = None, year: int | None = None) -> list[dict]:
    """
    Restaurants ranked by number of reservations, most first.

    Restricted to one calendar month when both ``month`` and ``year`` are given.
    """
    qs = _reported()
    if month and year:
        last_day = calendar.monthrange(year, month)[1]
        qs = qs.filter(date__gte=date(year, month, 1), date__lte=date(year, month, last_day))

    rows = (
        qs.values("restaurant_id", restaurant_name=F("restaurant__name"))
        .annotate(total_reservations=Count("id"))
        .order_by("-total_reservations", "restaurant_id")
    )
    return list(rows)
