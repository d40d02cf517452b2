from django.contrib.auth import authenticate, get_user_model
from django.shortcuts import get_object_or_404
from django_filters.rest_framework import DjangoFilterBackend

from rest_framework import filters, generics, mixins, permissions, status, viewsets
from rest_framework.authtoken.models import Token
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.views import APIView

from . import reports, services
from .admission import hourly_availability, is_holiday
from .filters import RestaurantFilter
from .history import history_for
from .models import Holiday, Reservation, Restaurant
from .permissions import (
    IsAdminOrReadOnly, IsAdminRole, IsBookingUser, IsOwnerOrAdmin, has_admin_capability,
)
from .serializers import (
    AdminUserSerializer,
    AvailabilityQuerySerializer,
    DateRangeQuerySerializer,
    HolidaySerializer,
    HolidayUpdateSerializer,
    LoginSerializer,
    MonthQuerySerializer,
    RegisterSerializer,
    ReservationHistorySerializer,
    ReservationSerializer,
    RestaurantSerializer,
    UserSerializer,
)

User = get_user_model()


def _token_payload(user, status_code):
    token, _ = Token.objects.get_or_create(user=user)
    return Response(
        {"token": token.key, "user": UserSerializer(user).data},
        status=status_code,
    )


# ==============================================================================
# AUTHENTICATION & REGISTRATION
# ==============================================================================

class RegisterView(generics.CreateAPIView):
    serializer_class = RegisterSerializer
    permission_classes = [permissions.AllowAny]

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        return _token_payload(user, status.HTTP_201_CREATED)


class LoginView(APIView):
    permission_classes = [permissions.AllowAny]

    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = authenticate(
            request,
            username=serializer.validated_data["username"],
            password=serializer.validated_data["password"],
        )
        if user is None:
            return Response({"detail": "Invalid credentials"}, status=status.HTTP_401_UNAUTHORIZED)
        return _token_payload(user, status.HTTP_200_OK)


class LogoutView(APIView):
    def post(self, request):
        Token.objects.filter(user=request.user).delete()
        return Response({"detail": "Logged out"}, status=status.HTTP_200_OK)


# ==============================================================================
# USERS
# ==============================================================================

class UserViewSet(mixins.ListModelMixin,
                  mixins.RetrieveModelMixin,
                  mixins.UpdateModelMixin,
                  mixins.DestroyModelMixin,
                  viewsets.GenericViewSet):
    queryset = User.objects.all().order_by('id')
    serializer_class = AdminUserSerializer
    permission_classes = [IsAdminRole]

    def destroy(self, request, *args, **kwargs):
        services.delete_user(kwargs["pk"])
        return Response({"detail": "User deleted successfully"}, status=status.HTTP_200_OK)

    @action(detail=False, methods=['get', 'put', 'patch'],
            permission_classes=[permissions.IsAuthenticated])
    def me(self, request):
        if request.method == 'GET':
            return Response(UserSerializer(request.user).data)

        serializer = UserSerializer(
            request.user, data=request.data, partial=request.method == 'PATCH'
        )
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(serializer.data)


# ==============================================================================
# RESTAURANTS
# ==============================================================================

class RestaurantViewSet(viewsets.ModelViewSet):
    queryset = Restaurant.objects.all()
    serializer_class = RestaurantSerializer
    permission_classes = [IsAdminOrReadOnly]
    filter_backends = [DjangoFilterBackend, filters.OrderingFilter]
    filterset_class = RestaurantFilter
    ordering_fields = ['name', 'total_tables', 'created_at']

    def perform_create(self, serializer):
        serializer.save(created_by=self.request.user)

    def perform_update(self, serializer):
        serializer.save(updated_by=self.request.user)

    def destroy(self, request, *args, **kwargs):
        services.delete_restaurant(kwargs["pk"])
        return Response({"detail": "Restaurant deleted successfully"}, status=status.HTTP_200_OK)

    @action(detail=True, methods=['get'], permission_classes=[permissions.AllowAny])
    def location(self, request, pk=None):
        restaurant = self.get_object()
        return Response({"location": restaurant.location})

    @action(detail=True, methods=['get'], permission_classes=[permissions.IsAuthenticated])
    def availability(self, request, pk=None):
        restaurant = self.get_object()
        query = AvailabilityQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        day = query.validated_data["date"]

        slots = hourly_availability(restaurant, day)
        payload = {"date": day.isoformat(), "availability": slots}
        if not slots and is_holiday(restaurant, day):
            payload["detail"] = "Restaurant is closed on this day (holiday)"
        return Response(payload)


class HolidayViewSet(viewsets.ViewSet):
    """Holidays of one restaurant, addressed under /restaurants/<restaurant_pk>/holidays/."""

    def get_permissions(self):
        if self.action == 'list':
            return [permissions.AllowAny()]
        return [IsAdminRole()]

    def list(self, request, restaurant_pk=None):
        holidays = Holiday.objects.filter(restaurant_id=restaurant_pk)
        return Response(HolidaySerializer(holidays, many=True).data)

    def retrieve(self, request, restaurant_pk=None, pk=None):
        holiday = get_object_or_404(Holiday, pk=pk, restaurant_id=restaurant_pk)
        return Response(HolidaySerializer(holiday).data)

    def create(self, request, restaurant_pk=None):
        serializer = HolidaySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        holiday = services.create_holiday(
            restaurant_pk,
            serializer.validated_data["date"],
            serializer.validated_data["description"],
            acting_user=request.user,
        )
        return Response(HolidaySerializer(holiday).data, status=status.HTTP_201_CREATED)

    def update(self, request, restaurant_pk=None, pk=None):
        serializer = HolidayUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        holiday = services.update_holiday(
            restaurant_pk, pk, serializer.validated_data["description"], acting_user=request.user
        )
        return Response(HolidaySerializer(holiday).data)

    partial_update = update

    def destroy(self, request, restaurant_pk=None, pk=None):
        services.delete_holiday(restaurant_pk, pk)
        return Response({"detail": "Holiday deleted successfully"}, status=status.HTTP_200_OK)


# ==============================================================================
# RESERVATIONS
# ==============================================================================

class ReservationViewSet(viewsets.ModelViewSet):
    serializer_class = ReservationSerializer
    permission_classes = [permissions.IsAuthenticated, IsOwnerOrAdmin]

    def get_queryset(self):
        qs = Reservation.objects.select_related('restaurant')
        user = self.request.user
        if self.action == 'list' and not has_admin_capability(user):
            qs = qs.filter(user=user)
        return qs

    def get_permissions(self):
        if self.action == 'create':
            return [IsBookingUser()]
        return super().get_permissions()

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        reservation = services.create_reservation(
            request.user,
            data["restaurant_id"],
            data["date"],
            data["time"],
            data["num_of_guests"],
        )
        return Response(self.get_serializer(reservation).data, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop('partial', False)
        instance = self.get_object()
        serializer = self.get_serializer(instance, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        changes = dict(serializer.validated_data)
        if "restaurant_id" in changes:
            changes["restaurant"] = changes.pop("restaurant_id")
        reservation = services.update_reservation(instance.pk, changes, request.user)
        return Response(self.get_serializer(reservation).data)

    def destroy(self, request, *args, **kwargs):
        instance = self.get_object()
        reservation = services.cancel_reservation(instance.pk, request.user)
        return Response(
            {"detail": f"Reservation {reservation.status}", "status": reservation.status},
            status=status.HTTP_200_OK,
        )

    @action(detail=True, methods=['get'])
    def history(self, request, pk=None):
        reservation = self.get_object()
        entries = history_for(reservation.pk)
        return Response(ReservationHistorySerializer(entries, many=True).data)


# ==============================================================================
# REPORTS
# ==============================================================================

class ReportViewSet(viewsets.ViewSet):
    permission_classes = [IsAdminRole]

    @action(detail=False, methods=['get'], url_path='reservations')
    def reservations(self, request):
        query = DateRangeQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        data = reports.reservation_summary(query.validated_data["start"], query.validated_data["end"])
        return Response({"data": data})

    @action(detail=False, methods=['get'], url_path='restaurant-performance')
    def restaurant_performance(self, request):
        query = MonthQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        data = reports.restaurant_performance(
            query.validated_data.get("month"), query.validated_data.get("year")
        )
        return Response({"data": data})
