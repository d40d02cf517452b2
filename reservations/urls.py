from django.urls import path, include
from rest_framework.routers import DefaultRouter

from . import views

# ==============================================================================
# DRF ROUTER
# ==============================================================================
router = DefaultRouter()
router.register(r'users', views.UserViewSet, basename='user')
router.register(r'restaurants', views.RestaurantViewSet, basename='restaurant')
router.register(r'reservations', views.ReservationViewSet, basename='reservation')
router.register(r'reports', views.ReportViewSet, basename='report')

holiday_list = views.HolidayViewSet.as_view({'get': 'list', 'post': 'create'})
holiday_detail = views.HolidayViewSet.as_view({
    'get': 'retrieve',
    'put': 'update',
    'patch': 'partial_update',
    'delete': 'destroy',
})

# ==============================================================================
# URL PATTERNS
# ==============================================================================
app_name = 'reservations'

urlpatterns = [
    # --------------------------------------------------------------------------
    # AUTH & REGISTRATION
    # --------------------------------------------------------------------------
    path('auth/register/', views.RegisterView.as_view(), name='register'),
    path('auth/login/', views.LoginView.as_view(), name='login'),
    path('auth/logout/', views.LogoutView.as_view(), name='logout'),

    # --------------------------------------------------------------------------
    # HOLIDAYS (nested under a restaurant)
    # --------------------------------------------------------------------------
    path('restaurants/<int:restaurant_pk>/holidays/', holiday_list, name='holiday-list'),
    path('restaurants/<int:restaurant_pk>/holidays/<int:pk>/', holiday_detail, name='holiday-detail'),

    # --------------------------------------------------------------------------
    # API
    # --------------------------------------------------------------------------
    path('', include(router.urls)),
]
