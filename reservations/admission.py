"""
admission.py

Decides whether a reservation may be created, changed or cancelled.

Everything in here is a read: the functions load what they need, check the
booking rules in a fixed order and either return the object to persist or
raise an ``AdmissionError``. Writing the result (and taking the locks that make
the check-then-write safe) is the job of ``reservations.services``.
"""

from dataclasses import dataclass, field

from django.conf import settings

from .exceptions import (
    DailyQuotaExceeded,
    DuplicateHoliday,
    Forbidden,
    HolidayBlackout,
    InvalidTransition,
    ReservationNotFound,
    RestaurantNotFound,
    SlotFull,
)
from .models import Holiday, Reservation, Restaurant
from .utils import day_of, generate_time_slots

SLOT_FIELDS = ("restaurant", "date", "time")


def daily_limit() -> int:
    return getattr(settings, "RESERVATION_DAILY_LIMIT", 3)


# ==============================================================================
# AVAILABILITY CHECKER
# ==============================================================================

def active_in_slot(restaurant, date, time, exclude_reservation_id=None) -> int:
    """Number of active reservations holding a table in this slot."""
    qs = Reservation.objects.active().in_slot(restaurant, day_of(date), time)
    if exclude_reservation_id is not None:
        qs = qs.exclude(pk=exclude_reservation_id)
    return qs.count()


def is_slot_available(restaurant, date, time, exclude_reservation_id=None) -> bool:
    """
    True while the slot holds fewer active reservations than the restaurant
    has tables. ``exclude_reservation_id`` keeps a reservation that is being
    moved from counting against itself.
    """
    taken = active_in_slot(restaurant, date, time, exclude_reservation_id)
    return taken < restaurant.total_tables


def is_holiday(restaurant, date) -> bool:
    return Holiday.objects.filter(restaurant=restaurant, date=day_of(date)).exists()


def active_for_user_on(user, date) -> int:
    """Active reservations the user holds on the calendar day of ``date``."""
    return Reservation.objects.active().filter(user=user, date=day_of(date)).count()


def hourly_availability(restaurant, date) -> list[dict]:
    """
    ``[{"time": "HH:00", "available": bool}, ...]`` across opening hours.
    Empty on a holiday.
    """
    day = day_of(date)
    if is_holiday(restaurant, day):
        return []

    return [
        {"time": slot, "available": is_slot_available(restaurant, day, slot)}
        for slot in generate_time_slots(restaurant.open_time, restaurant.close_time)
    ]


# ==============================================================================
# ADMISSION GUARD
# ==============================================================================

def ensure_can_manage(reservation, user) -> None:
    """Only the owner or someone with admin capability may touch a reservation."""
    if getattr(user, "is_admin", False):
        return
    if reservation.user_id is None or reservation.user_id != user.pk:
        raise Forbidden()


def admit_create(user, restaurant_id, date, time, num_of_guests) -> Reservation:
    """
    Check a new booking and return an unsaved, ``confirmed`` draft.

    Checks run in order and stop at the first failure: restaurant exists,
    the day is not a holiday, the user is under the daily quota, the slot
    has a free table.
    """
    restaurant = Restaurant.objects.filter(pk=restaurant_id).first()
    if restaurant is None:
        raise RestaurantNotFound()

    day = day_of(date)
    if is_holiday(restaurant, day):
        raise HolidayBlackout()

    limit = daily_limit()
    if active_for_user_on(user, day) >= limit:
        raise DailyQuotaExceeded(f"You can only make up to {limit} reservations per day")

    if not is_slot_available(restaurant, day, time):
        raise SlotFull()

    return Reservation(
        user=user,
        restaurant=restaurant,
        date=day,
        time=time,
        num_of_guests=num_of_guests,
        status=Reservation.Status.CONFIRMED,
        created_by=user,
    )


@dataclass
class ReservationPatch:
    """Admitted changes for an existing reservation."""
    reservation: Reservation
    changes: dict
    changed_fields: set = field(default_factory=set)
    restaurant: Restaurant | None = None

    @property
    def slot_changed(self) -> bool:
        return bool(self.changed_fields & set(SLOT_FIELDS))


def _restaurant_pk(value):
    return getattr(value, "pk", value)


def admit_update(reservation_id, changes) -> ReservationPatch:
    """
    Check a partial update of a reservation.

    A slot field counts as changed only when its value differs from the
    stored one. When the slot changes, capacity is re-checked against the new
    (restaurant, date, time), not counting this reservation. If the effective
    restaurant cannot be found the capacity check is skipped.

    The daily quota and holiday calendar are not consulted here.
    """
    reservation = (
        Reservation.objects.select_related("restaurant")
        .filter(pk=reservation_id)
        .first()
    )
    if reservation is None:
        raise ReservationNotFound()

    changes = {key: value for key, value in changes.items() if key != "status"}
    changed = set()

    if "restaurant" in changes:
        if _restaurant_pk(changes["restaurant"]) != reservation.restaurant_id:
            changed.add("restaurant")
    if "date" in changes:
        changes["date"] = day_of(changes["date"])
        if changes["date"] != reservation.date:
            changed.add("date")
    if "time" in changes and changes["time"] != reservation.time:
        changed.add("time")
    if "num_of_guests" in changes and changes["num_of_guests"] != reservation.num_of_guests:
        changed.add("num_of_guests")

    patch = ReservationPatch(reservation=reservation, changes=changes, changed_fields=changed)

    if "restaurant" in changed:
        restaurant_id = _restaurant_pk(changes["restaurant"])
    else:
        restaurant_id = reservation.restaurant_id
    if restaurant_id is not None:
        patch.restaurant = Restaurant.objects.filter(pk=restaurant_id).first()

    if patch.slot_changed and patch.restaurant is not None:
        new_date = changes.get("date", reservation.date)
        new_time = changes.get("time", reservation.time)
        if not is_slot_available(patch.restaurant, new_date, new_time,
                                 exclude_reservation_id=reservation.pk):
            raise SlotFull()

    return patch


def admit_holiday(restaurant_id, date) -> None:
    """
    A day can be closed only once, and only while it holds no active
    reservations.
    """
    day = day_of(date)
    if Holiday.objects.filter(restaurant_id=restaurant_id, date=day).exists():
        raise DuplicateHoliday()

    if Reservation.objects.active().filter(restaurant_id=restaurant_id, date=day).exists():
        raise HolidayBlackout("Cannot set holiday on a date that has active reservations")


def admit_cancel(reservation_id, acting_user) -> Reservation:
    """
    Authorise a cancellation and return the reservation with its new status
    set but not saved.

    The owner cancels (``canceled``); an admin removes (``deleted``).
    """
    reservation = Reservation.objects.filter(pk=reservation_id).first()
    if reservation is None:
        raise ReservationNotFound()

    ensure_can_manage(reservation, acting_user)

    is_admin = getattr(acting_user, "is_admin", False)
    target = Reservation.Status.DELETED if is_admin else Reservation.Status.CANCELED
    if not reservation.can_transition_to(target):
        raise InvalidTransition(
            f"Reservation is already {reservation.status} and cannot be {target}"
        )

    reservation.status = target
    return reservation
