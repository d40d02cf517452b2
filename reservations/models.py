from django.contrib.auth.models import AbstractUser
from django.core.validators import MinValueValidator, RegexValidator
from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone

# =============================================================================
# === VALIDATORS & SHARED CONSTANTS ===========================================
# =============================================================================

phone_regex = RegexValidator(
    regex=r'^\+?[\d\- ]{6,20}$',
    message="Use digits, spaces or dashes, optionally prefixed with +."
)

hour_regex = RegexValidator(
    regex=r'^([01]\d|2[0-3]):[0-5]\d$',
    message="Use 24-hour HH:MM format, e.g. 18:00."
)


# =============================================================================
# === USERS ===================================================================
# =============================================================================

class CustomUser(AbstractUser):
    class Roles(models.TextChoices):
        USER = 'user', 'User'
        ADMIN = 'admin', 'Admin'

    email = models.EmailField(unique=True)
    telephone = models.CharField(validators=[phone_regex], max_length=20, blank=True)
    role = models.CharField(max_length=10, choices=Roles.choices, default=Roles.USER)
    updated_at = models.DateTimeField(auto_now=True)

    @property
    def is_admin(self) -> bool:
        """Admin capability: the admin role or a Django superuser."""
        return self.is_superuser or self.role == self.Roles.ADMIN

    def __str__(self):
        return f"{self.username} ({self.role})"


# =============================================================================
# === RESTAURANTS & HOLIDAYS ==================================================
# =============================================================================

class AuditFields(models.Model):
    """Who created/last touched a row, and when."""
    created_at = models.DateTimeField(default=timezone.now, editable=False)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, blank=True,
        on_delete=models.SET_NULL, related_name="+"
    )
    updated_at = models.DateTimeField(auto_now=True)
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, blank=True,
        on_delete=models.SET_NULL, related_name="+"
    )

    class Meta:
        abstract = True


class Restaurant(AuditFields):
    name = models.CharField(max_length=150)
    address = models.CharField(max_length=255)
    telephone = models.CharField(validators=[phone_regex], max_length=20)
    open_time = models.CharField(max_length=5, validators=[hour_regex])
    close_time = models.CharField(max_length=5, validators=[hour_regex])
    total_tables = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    latitude = models.FloatField()
    longitude = models.FloatField()

    class Meta:
        ordering = ["-created_at", "-id"]
        constraints = [
            models.CheckConstraint(
                condition=Q(total_tables__gte=1), name="restaurant_total_tables_gte_1"
            ),
        ]

    def __str__(self):
        return self.name

    @property
    def location(self):
        return {"latitude": self.latitude, "longitude": self.longitude}


class Holiday(AuditFields):
    """A date on which the restaurant takes no bookings."""
    restaurant = models.ForeignKey(Restaurant, on_delete=models.CASCADE, related_name="holidays")
    date = models.DateField()
    description = models.CharField(max_length=255)

    class Meta:
        ordering = ["date"]
        unique_together = ("restaurant", "date")

    def __str__(self):
        return f"{self.restaurant.name} closed on {self.date:%Y-%m-%d}"


# =============================================================================
# === RESERVATIONS ============================================================
# =============================================================================

class ReservationQuerySet(models.QuerySet):
    def active(self):
        """Reservations that still hold a table: not canceled, not deleted."""
        return self.exclude(status__in=Reservation.INACTIVE_STATUSES)

    def in_slot(self, restaurant, date, time):
        return self.filter(restaurant=restaurant, date=date, time=time)


class Reservation(AuditFields):
    class Status(models.TextChoices):
        CONFIRMED = 'confirmed', 'Confirmed'
        CANCELED = 'canceled', 'Canceled'
        COMPLETED = 'completed', 'Completed'
        DELETED = 'deleted', 'Deleted'

    # confirmed is the only state with outgoing edges.
    TRANSITIONS = {
        Status.CONFIRMED: {Status.CANCELED, Status.DELETED, Status.COMPLETED},
        Status.CANCELED: set(),
        Status.COMPLETED: set(),
        Status.DELETED: set(),
    }
    INACTIVE_STATUSES = (Status.CANCELED, Status.DELETED)

    # Both references survive deletion of the referenced row as NULL so the
    # reservation and its history stay on record.
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, on_delete=models.SET_NULL, related_name="reservations"
    )
    restaurant = models.ForeignKey(
        Restaurant, null=True, on_delete=models.SET_NULL, related_name="reservations"
    )
    date = models.DateField()
    time = models.CharField(max_length=5, validators=[hour_regex])
    num_of_guests = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.CONFIRMED)

    objects = ReservationQuerySet.as_manager()

    class Meta:
        ordering = ["date", "time", "id"]
        indexes = [
            models.Index(fields=["restaurant", "date", "time"], name="reservation_slot_idx"),
            models.Index(fields=["user", "date"], name="reservation_user_day_idx"),
        ]

    def __str__(self):
        restaurant = self.restaurant.name if self.restaurant else "(removed restaurant)"
        return f"{self.user} @ {restaurant} {self.date:%Y-%m-%d} {self.time} ({self.status})"

    @property
    def is_active(self) -> bool:
        return self.status not in self.INACTIVE_STATUSES

    def can_transition_to(self, status) -> bool:
        return status in self.TRANSITIONS.get(self.status, set())


class ReservationHistory(models.Model):
    """
    Append-only audit log entry for a reservation.

    One row per admitted state change, holding a JSON snapshot of the
    reservation right after the change. Rows are never updated or deleted;
    ordering by (timestamp, id) gives insertion order.
    """

    class Action(models.TextChoices):
        CREATED = 'created', 'Created'
        UPDATED = 'updated', 'Updated'
        CANCELED = 'canceled', 'Canceled'
        COMPLETED = 'completed', 'Completed'
        DELETED = 'deleted', 'Deleted'

    id = models.BigAutoField(primary_key=True)
    reservation = models.ForeignKey(
        Reservation, on_delete=models.PROTECT, related_name="history"
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="reservation_actions",
        help_text="User who performed the action (retained even if user is deleted).",
    )
    action = models.CharField(max_length=10, choices=Action.choices)
    snapshot = models.JSONField(help_text="Serialized reservation state after the action.")
    timestamp = models.DateTimeField(default=timezone.now, editable=False, db_index=True)

    class Meta:
        ordering = ["timestamp", "id"]
        verbose_name = "Reservation History"
        verbose_name_plural = "Reservation History"
        indexes = [
            models.Index(fields=["reservation", "timestamp"], name="history_reservation_ts_idx"),
        ]

    def __str__(self):
        actor = self.user.username if self.user else "System"
        return f"[{self.timestamp:%Y-%m-%d %H:%M}] {actor} {self.action} reservation #{self.reservation_id}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError("Reservation history entries are append-only.")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError("Reservation history entries are append-only.")
