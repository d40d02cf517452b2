# reservations/apps.py

from django.apps import AppConfig
import logging


class ReservationsConfig(AppConfig):
    """App configuration for the Reservations application."""

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'reservations'
    verbose_name = "Table Reservations"

    def ready(self):
        """
        Import signal modules when Django app registry is fully loaded.
        """
        import reservations.signals  # noqa: F401  # Import solely for side effects
        logging.getLogger(__name__).debug("reservations.signals module loaded.")
