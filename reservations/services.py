"""
services.py

Transactional write paths for reservations, holidays and guarded deletions.

Each operation runs in one database transaction: it locks the rows the
booking rules are counted against (restaurant, booking user, reservation),
runs the admission checks, writes the change and appends the history entry.
A refusal raised anywhere inside rolls the whole operation back.
"""

import logging

from django.contrib.auth import get_user_model
from django.db import transaction

from . import history
from .admission import (
    admit_cancel, admit_create, admit_holiday, admit_update, ensure_can_manage,
)
from .exceptions import (
    ActiveReservationsExist,
    HolidayNotFound,
    InvalidTransition,
    ReservationNotFound,
    RestaurantNotFound,
    UserNotFound,
)
from .models import Holiday, Reservation, ReservationHistory, Restaurant
from .utils import day_of

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Row locks
# -----------------------------------------------------------------------------

def _lock_restaurants(*restaurant_ids):
    """Lock restaurant rows in pk order; serializes bookings per restaurant."""
    ids = sorted({pk for pk in restaurant_ids if pk is not None})
    return list(Restaurant.objects.select_for_update().filter(pk__in=ids).order_by("pk"))


def _lock_user(user_id):
    return list(get_user_model().objects.select_for_update().filter(pk=user_id))


def _lock_reservation(reservation_id):
    return list(Reservation.objects.select_for_update().filter(pk=reservation_id))


# =============================================================================
# RESERVATIONS
# =============================================================================

def create_reservation(user, restaurant_id, date, time, num_of_guests) -> Reservation:
    """Admit and persist a new booking, recording a ``created`` entry."""
    with transaction.atomic():
        _lock_restaurants(restaurant_id)
        _lock_user(user.pk)

        reservation = admit_create(user, restaurant_id, date, time, num_of_guests)
        reservation.save()
        history.record(reservation, user, ReservationHistory.Action.CREATED)

    logger.info(
        f"🆕 Reservation {reservation.pk} created: user={user.pk} "
        f"restaurant={reservation.restaurant_id} {reservation.date} {reservation.time}"
    )
    return reservation


def update_reservation(reservation_id, changes, acting_user) -> Reservation:
    """
    Apply a partial update by the owner or an admin.

    Always records an ``updated`` entry, whichever fields changed.
    """
    target_restaurant = getattr(changes.get("restaurant"), "pk", changes.get("restaurant"))

    with transaction.atomic():
        current = (
            Reservation.objects.filter(pk=reservation_id)
            .values_list("restaurant_id", flat=True)
            .first()
        )
        _lock_restaurants(current, target_restaurant)
        _lock_reservation(reservation_id)

        reservation = Reservation.objects.filter(pk=reservation_id).first()
        if reservation is None:
            raise ReservationNotFound()
        if reservation.restaurant_id not in (current, target_restaurant):
            # Moved by another transaction between the read and the row lock.
            _lock_restaurants(reservation.restaurant_id)
        ensure_can_manage(reservation, acting_user)

        patch = admit_update(reservation_id, changes)
        reservation = patch.reservation

        if "restaurant" in patch.changed_fields:
            if patch.restaurant is None:
                raise RestaurantNotFound()
            reservation.restaurant = patch.restaurant
        for name in ("date", "time", "num_of_guests"):
            if name in patch.changes:
                setattr(reservation, name, patch.changes[name])
        reservation.updated_by = acting_user
        reservation.save()
        history.record(reservation, acting_user, ReservationHistory.Action.UPDATED)

    logger.info(
        f"🔄 Reservation {reservation.pk} updated by {acting_user.pk}: "
        f"changed={sorted(patch.changed_fields) or 'nothing'}"
    )
    return reservation


def cancel_reservation(reservation_id, acting_user) -> Reservation:
    """
    Owner cancel (``canceled``) or admin removal (``deleted``); the history
    action matches the resulting status.
    """
    with transaction.atomic():
        _lock_reservation(reservation_id)

        reservation = admit_cancel(reservation_id, acting_user)
        reservation.updated_by = acting_user
        reservation.save(update_fields=["status", "updated_by", "updated_at"])
        history.record(reservation, acting_user, reservation.status)

    logger.info(f"🗑️ Reservation {reservation.pk} {reservation.status} by {acting_user.pk}")
    return reservation


def complete_reservation(reservation, acting_user=None) -> Reservation:
    """Move a confirmed reservation to ``completed``."""
    with transaction.atomic():
        _lock_reservation(reservation.pk)
        reservation.refresh_from_db()

        if not reservation.can_transition_to(Reservation.Status.COMPLETED):
            raise InvalidTransition(
                f"Reservation is already {reservation.status} and cannot be completed"
            )
        reservation.status = Reservation.Status.COMPLETED
        reservation.updated_by = acting_user
        reservation.save(update_fields=["status", "updated_by", "updated_at"])
        history.record(reservation, acting_user, ReservationHistory.Action.COMPLETED)

    return reservation


# =============================================================================
# HOLIDAYS
# =============================================================================

def create_holiday(restaurant_id, date, description, acting_user=None) -> Holiday:
    """
    Close a restaurant for a day.

    Refused when the day is already a holiday or still carries active
    reservations.
    """
    day = day_of(date)
    with transaction.atomic():
        if not _lock_restaurants(restaurant_id):
            raise RestaurantNotFound()

        admit_holiday(restaurant_id, day)

        holiday = Holiday.objects.create(
            restaurant_id=restaurant_id,
            date=day,
            description=description,
            created_by=acting_user,
        )

    logger.info(f"📅 Holiday {holiday.date} set for restaurant {restaurant_id}")
    return holiday


def _get_holiday(restaurant_id, holiday_id) -> Holiday:
    holiday = Holiday.objects.filter(pk=holiday_id, restaurant_id=restaurant_id).first()
    if holiday is None:
        raise HolidayNotFound()
    return holiday


def update_holiday(restaurant_id, holiday_id, description, acting_user=None) -> Holiday:
    """Only the description of a holiday can change."""
    holiday = _get_holiday(restaurant_id, holiday_id)
    holiday.description = description
    holiday.updated_by = acting_user
    holiday.save(update_fields=["description", "updated_by", "updated_at"])
    return holiday


def delete_holiday(restaurant_id, holiday_id) -> None:
    holiday = _get_holiday(restaurant_id, holiday_id)
    holiday.delete()
    logger.info(f"📅 Holiday {holiday.date} removed for restaurant {restaurant_id}")


# =============================================================================
# GUARDED DELETIONS
# =============================================================================

def delete_restaurant(restaurant_id) -> None:
    with transaction.atomic():
        locked = _lock_restaurants(restaurant_id)
        if not locked:
            raise RestaurantNotFound()

        if Reservation.objects.active().filter(restaurant_id=restaurant_id).exists():
            raise ActiveReservationsExist("Cannot delete restaurant with active reservations")

        locked[0].delete()

    logger.info(f"🏚️ Restaurant {restaurant_id} deleted")


def delete_user(user_id) -> None:
    with transaction.atomic():
        locked = _lock_user(user_id)
        if not locked:
            raise UserNotFound()

        if Reservation.objects.active().filter(user_id=user_id).exists():
            raise ActiveReservationsExist("Cannot delete user with active reservations")

        locked[0].delete()

    logger.info(f"👤 User {user_id} deleted")
