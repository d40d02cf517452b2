import django_filters

from .models import Restaurant


class RestaurantFilter(django_filters.FilterSet):
    """
    Query-string filters for the restaurant list, e.g.
    ``?total_tables__gte=4``, ``?total_tables__in=2,6``, ``?name__icontains=grill``.
    """

    class Meta:
        model = Restaurant
        fields = {
            'name': ['exact', 'icontains'],
            'address': ['icontains'],
            'total_tables': ['exact', 'gt', 'gte', 'lt', 'lte', 'in'],
            'open_time': ['exact', 'lte', 'gte'],
            'close_time': ['exact', 'lte', 'gte'],
        }
