"""
history.py

Append-only audit trail for reservations.
"""

import logging

from .models import ReservationHistory
from .serializers import ReservationSnapshotSerializer

audit_logger = logging.getLogger("audit")


def snapshot_of(reservation) -> dict:
    """JSON-ready copy of the reservation's state at this moment."""
    return dict(ReservationSnapshotSerializer(reservation).data)


def record(reservation, user, action) -> ReservationHistory:
    """
    Append one history entry for an admitted change.

    Call after the reservation has been saved, inside the same transaction,
    so a change that fails to persist leaves no entry behind.
    """
    entry = ReservationHistory.objects.create(
        reservation=reservation,
        user=user,
        action=action,
        snapshot=snapshot_of(reservation),
    )
    audit_logger.info(
        f"reservation={reservation.pk} action={action} "
        f"by={getattr(user, 'pk', None)} status={reservation.status}"
    )
    return entry


def history_for(reservation_id):
    """Entries for one reservation, oldest first."""
    return (
        ReservationHistory.objects.filter(reservation_id=reservation_id)
        .select_related("user")
        .order_by("timestamp", "id")
    )
