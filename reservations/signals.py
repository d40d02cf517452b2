import logging

from django.db.models.signals import pre_save, post_save
from django.dispatch import receiver

from .models import Reservation

# -----------------------------------------------------------------------------
# Logger
# -----------------------------------------------------------------------------
logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Store previous Reservation status
# -----------------------------------------------------------------------------
@receiver(pre_save, sender=Reservation)
def store_previous_reservation_status(sender, instance, **kwargs):
    if instance.pk:
        instance._previous_status = (
            Reservation.objects.filter(pk=instance.pk)
            .values_list("status", flat=True)
            .first()
        )
    else:
        instance._previous_status = None


# -----------------------------------------------------------------------------
# Report status changes that bypassed the transition table
# -----------------------------------------------------------------------------
@receiver(post_save, sender=Reservation)
def log_reservation_status_change(sender, instance, created, **kwargs):
    if created:
        logger.debug(f"Reservation {instance.pk} saved as {instance.status}.")
        return

    previous_status = getattr(instance, "_previous_status", None)
    if previous_status is None or previous_status == instance.status:
        return

    if instance.status in Reservation.TRANSITIONS.get(previous_status, set()):
        logger.debug(f"Reservation {instance.pk} status changed: {previous_status} → {instance.status}")
    else:
        logger.warning(
            f"⚠️ Reservation {instance.pk} moved {previous_status} → {instance.status}, "
            f"which the transition table does not allow."
        )
