# reservations/admin.py
import csv
import json
import logging

from django import forms
from django.contrib import admin, messages
from django.contrib.auth.admin import UserAdmin
from django.http import HttpResponse
from django.utils import timezone

from . import services
from .admission import admit_holiday
from .exceptions import AdmissionError
from .models import CustomUser, Holiday, Reservation, ReservationHistory, Restaurant


# =============================================================================
# === ROLE‑BASED PERMISSION SYSTEM ============================================
# =============================================================================

class RoleRestrictedAdmin(admin.ModelAdmin):
    """Base admin: only the admin role (or superusers) may see or edit."""

    def _is_admin(self, request):
        u = request.user
        return u.is_authenticated and u.is_active and u.is_admin

    def has_module_permission(self, request):
        return self._is_admin(request)

    def has_view_permission(self, request, obj=None):
        return self._is_admin(request)

    def has_add_permission(self, request):
        return self._is_admin(request)

    def has_change_permission(self, request, obj=None):
        return self._is_admin(request)

    def has_delete_permission(self, request, obj=None):
        return self._is_admin(request)


# =============================================================================
# === GUARDED DELETION ========================================================
# =============================================================================

class GuardedDeleteMixin:
    """
    Rows that still hold active reservations cannot be deleted from the admin;
    deletions run through the same service as the API.
    """

    reservation_field = None
    delete_service = None

    def has_active_reservations(self, obj):
        return Reservation.objects.active().filter(**{self.reservation_field: obj}).exists()

    def has_delete_permission(self, request, obj=None):
        if obj is not None and self.has_active_reservations(obj):
            return False
        return super().has_delete_permission(request, obj)

    def delete_model(self, request, obj):
        self.delete_service(obj.pk)

    def delete_queryset(self, request, queryset):
        for obj in queryset:
            try:
                self.delete_service(obj.pk)
            except AdmissionError as exc:
                self.message_user(request, f"{obj}: {exc.message}", level=messages.WARNING)


# =============================================================================
# === USER ADMIN ==============================================================
# =============================================================================

@admin.register(CustomUser)
class CustomUserAdmin(GuardedDeleteMixin, UserAdmin):
    list_display = ("username", "email", "role", "telephone", "is_active", "is_staff")
    list_filter = ("role", "is_active")
    search_fields = ("username", "email", "telephone")
    ordering = ("-date_joined",)
    fieldsets = UserAdmin.fieldsets + (
        ("Reservations", {"fields": ("role", "telephone")}),
    )

    reservation_field = "user"
    delete_service = staticmethod(services.delete_user)


# =============================================================================
# === RESTAURANT & HOLIDAY ADMIN =============================================
# =============================================================================

class HolidayAdminForm(forms.ModelForm):
    class Meta:
        model = Holiday
        fields = ("restaurant", "date", "description")

    def clean(self):
        cleaned_data = super().clean()
        restaurant = cleaned_data.get("restaurant")
        day = cleaned_data.get("date")
        if self.instance._state.adding and restaurant and day:
            try:
                admit_holiday(restaurant.pk, day)
            except AdmissionError as exc:
                raise forms.ValidationError(exc.message)
        return cleaned_data


class HolidayInline(admin.TabularInline):
    """Listing only; holidays are added from the holiday admin, which runs the calendar checks."""
    model = Holiday
    extra = 0
    fields = ("date", "description")
    readonly_fields = ("date", "description")
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Restaurant)
class RestaurantAdmin(GuardedDeleteMixin, RoleRestrictedAdmin):
    list_display = ("name", "address", "telephone", "open_time", "close_time", "total_tables")
    search_fields = ("name", "address")
    readonly_fields = ("created_at", "updated_at")
    inlines = [HolidayInline]
    ordering = ("name",)

    reservation_field = "restaurant"
    delete_service = staticmethod(services.delete_restaurant)


@admin.register(Holiday)
class HolidayAdmin(RoleRestrictedAdmin):
    form = HolidayAdminForm
    list_display = ("restaurant", "date", "description")
    list_filter = ("restaurant", "date")
    ordering = ("-date",)

    def get_readonly_fields(self, request, obj=None):
        # Only the description of an existing holiday can change.
        if obj is not None:
            return ("restaurant", "date")
        return ()

    def save_model(self, request, obj, form, change):
        if change:
            holiday = services.update_holiday(
                obj.restaurant_id, obj.pk, obj.description, acting_user=request.user
            )
        else:
            holiday = services.create_holiday(
                obj.restaurant_id, obj.date, obj.description, acting_user=request.user
            )
        obj.pk = holiday.pk
        obj.created_by = holiday.created_by
        obj._state.adding = False
        obj._state.db = holiday._state.db

    def delete_model(self, request, obj):
        services.delete_holiday(obj.restaurant_id, obj.pk)

    def delete_queryset(self, request, queryset):
        for holiday in queryset:
            services.delete_holiday(holiday.restaurant_id, holiday.pk)


# =============================================================================
# === RESERVATION ADMIN =======================================================
# =============================================================================

@admin.register(Reservation)
class ReservationAdmin(RoleRestrictedAdmin):
    """Bookings are changed through the API; the admin only views and completes."""

    list_display = ("id", "user", "restaurant", "date", "time", "num_of_guests", "status")
    list_filter = ("status", "restaurant", "date")
    search_fields = ("user__username", "restaurant__name")
    date_hierarchy = "date"
    ordering = ("-date", "time")
    readonly_fields = [f.name for f in Reservation._meta.fields]
    actions = ["mark_completed"]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    @admin.action(description="Mark selected as completed")
    def mark_completed(self, request, queryset):
        done = 0
        for reservation in queryset:
            try:
                services.complete_reservation(reservation, acting_user=request.user)
            except AdmissionError as exc:
                self.message_user(request, f"#{reservation.pk}: {exc.message}", level=messages.WARNING)
            else:
                done += 1
        self.message_user(request, f"Completed {done} reservation(s).")


@admin.register(ReservationHistory)
class ReservationHistoryAdmin(admin.ModelAdmin):
    """Read-only, filterable reservation audit view with CSV export."""

    list_display = ("timestamp", "reservation", "user", "action")
    list_filter = ("action",)
    search_fields = ("reservation__id", "user__username")
    date_hierarchy = "timestamp"
    ordering = ("-timestamp",)
    readonly_fields = [f.name for f in ReservationHistory._meta.fields]
    actions = ["export_selected_to_csv"]

    # --------------------------------------------------------------------------
    # Permissions (read-only)
    # --------------------------------------------------------------------------
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    # --------------------------------------------------------------------------
    # CSV Export Action
    # --------------------------------------------------------------------------
    @admin.action(description="⬇️ Export selected history entries to CSV")
    def export_selected_to_csv(self, request, queryset):
        response = HttpResponse(content_type="text/csv")
        filename = f"reservation_history_{timezone.now().strftime('%Y%m%d_%H%M%S')}.csv"
        response["Content-Disposition"] = f'attachment; filename="{filename}"'

        writer = csv.writer(response)
        writer.writerow(["Timestamp", "Reservation", "User", "Action", "Snapshot"])

        for entry in queryset.select_related("user").order_by("timestamp", "id"):
            writer.writerow([
                entry.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
                entry.reservation_id,
                entry.user.username if entry.user else "System",
                entry.action,
                json.dumps(entry.snapshot, sort_keys=True),
            ])

        logging.getLogger("audit").info(
            f"User {request.user.username} exported {queryset.count()} reservation history entries "
            f"from IP={request.META.get('REMOTE_ADDR')}"
        )
        return response
