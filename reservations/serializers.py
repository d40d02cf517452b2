# reservations/serializers.py

from django.contrib.auth import get_user_model
from django.contrib.auth import password_validation
from rest_framework import serializers

from .models import Holiday, Reservation, ReservationHistory, Restaurant

User = get_user_model()


# ==============================================================================
# User Serializers
# ==============================================================================

class UserSerializer(serializers.ModelSerializer):
    """Public profile of a user; role is read-only outside admin updates."""

    class Meta:
        model = User
        fields = [
            'id',
            'username',
            'email',
            'first_name',
            'last_name',
            'telephone',
            'role',
        ]
        read_only_fields = ['id', 'username', 'role']


class AdminUserSerializer(UserSerializer):
    """Admin view of a user: role becomes writable."""

    class Meta(UserSerializer.Meta):
        read_only_fields = ['id', 'username']


class RegisterSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, style={'input_type': 'password'})

    class Meta:
        model = User
        fields = ['id', 'username', 'email', 'password', 'telephone', 'role']
        read_only_fields = ['id', 'role']

    def validate_password(self, value):
        password_validation.validate_password(value)
        return value

    def create(self, validated_data):
        return User.objects.create_user(**validated_data)


class LoginSerializer(serializers.Serializer):
    username = serializers.CharField()
    password = serializers.CharField(write_only=True, style={'input_type': 'password'})


# ==============================================================================
# Restaurant & Holiday Serializers
# ==============================================================================

class RestaurantSerializer(serializers.ModelSerializer):
    location = serializers.SerializerMethodField(read_only=True)

    class Meta:
        model = Restaurant
        fields = [
            'id',
            'name',
            'address',
            'telephone',
            'open_time',
            'close_time',
            'total_tables',
            'latitude',
            'longitude',
            'location',
            'created_at',
            'updated_at',
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']

    def get_location(self, obj):
        return obj.location

    def validate(self, attrs):
        open_time = attrs.get('open_time', getattr(self.instance, 'open_time', None))
        close_time = attrs.get('close_time', getattr(self.instance, 'close_time', None))
        if open_time and close_time and open_time >= close_time:
            raise serializers.ValidationError("close_time must be later than open_time.")
        return attrs


class HolidaySerializer(serializers.ModelSerializer):
    restaurant = serializers.PrimaryKeyRelatedField(read_only=True)

    class Meta:
        model = Holiday
        fields = ['id', 'restaurant', 'date', 'description', 'created_at', 'updated_at']
        read_only_fields = ['id', 'restaurant', 'created_at', 'updated_at']


class HolidayUpdateSerializer(serializers.Serializer):
    description = serializers.CharField(max_length=255)


class AvailabilityQuerySerializer(serializers.Serializer):
    date = serializers.DateField(
        error_messages={'required': "Please provide a date in YYYY-MM-DD format"}
    )


# ==============================================================================
# Reservation Serializers
# ==============================================================================

class ReservationSerializer(serializers.ModelSerializer):
    """
    Read/write shape of a reservation.

    Only the slot fields and party size are writable; status moves through
    the cancel endpoint, never through an update payload.
    """

    # Existence is checked by the booking services so a missing restaurant is a 404.
    restaurant = serializers.IntegerField(source='restaurant_id', min_value=1)
    restaurant_name = serializers.CharField(
        source='restaurant.name', read_only=True, allow_null=True
    )
    user = serializers.PrimaryKeyRelatedField(read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)

    class Meta:
        model = Reservation
        fields = [
            'id',
            'user',
            'restaurant',
            'restaurant_name',
            'date',
            'time',
            'num_of_guests',
            'status',
            'status_display',
            'created_at',
            'updated_at',
        ]
        read_only_fields = ['id', 'user', 'status', 'created_at', 'updated_at']


class ReservationSnapshotSerializer(serializers.ModelSerializer):
    """Flat copy of a reservation stored in history entries."""

    class Meta:
        model = Reservation
        fields = [
            'id',
            'user',
            'restaurant',
            'date',
            'time',
            'num_of_guests',
            'status',
            'created_at',
            'created_by',
            'updated_at',
            'updated_by',
        ]


class ReservationHistorySerializer(serializers.ModelSerializer):
    user = serializers.PrimaryKeyRelatedField(read_only=True)

    class Meta:
        model = ReservationHistory
        fields = ['id', 'reservation', 'user', 'action', 'snapshot', 'timestamp']
        read_only_fields = fields


# ==============================================================================
# Report query Serializers
# ==============================================================================

class DateRangeQuerySerializer(serializers.Serializer):
    start = serializers.DateField()
    end = serializers.DateField()

    def validate(self, attrs):
        if attrs['start'] > attrs['end']:
            raise serializers.ValidationError("start must not be after end.")
        return attrs


class MonthQuerySerializer(serializers.Serializer):
    month = serializers.IntegerField(min_value=1, max_value=12, required=False)
    year = serializers.IntegerField(min_value=1970, max_value=9999, required=False)
