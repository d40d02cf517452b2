"""
permissions.py

Role-based API access control for the reservation service.
"""

from rest_framework import permissions

from .models import CustomUser


def has_admin_capability(user) -> bool:
    return bool(user and user.is_authenticated and user.is_admin)


class IsAdminRole(permissions.BasePermission):
    """Admins and superusers only."""

    message = "Not authorized"

    def has_permission(self, request, view):
        return has_admin_capability(request.user)


class IsAdminOrReadOnly(permissions.BasePermission):
    """Anyone may read; only admins may write."""

    def has_permission(self, request, view):
        if request.method in permissions.SAFE_METHODS:
            return True
        return has_admin_capability(request.user)


class IsBookingUser(permissions.BasePermission):
    """Bookings are made by accounts with the plain ``user`` role."""

    message = "Only user accounts can make reservations"

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.role == CustomUser.Roles.USER)


class IsOwnerOrAdmin(permissions.BasePermission):
    """Object-level: the reservation's owner or an admin."""

    message = "Not authorized"

    def has_object_permission(self, request, view, obj):
        if has_admin_capability(request.user):
            return True
        return obj.user_id == request.user.pk
