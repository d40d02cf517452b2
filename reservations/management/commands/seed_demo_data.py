from datetime import timedelta
import random

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.utils import timezone

from reservations import services
from reservations.exceptions import AdmissionError
from reservations.models import Restaurant

User = get_user_model()


class Command(BaseCommand):
    help = 'Seed the database with demo users, restaurants, a holiday and bookings'

    def add_arguments(self, parser):
        parser.add_argument('--reservations', type=int, default=10,
                            help='Number of bookings to attempt')

    def handle(self, *args, **options):
        # Create users
        admin, _ = User.objects.get_or_create(
            username='admin',
            defaults={'email': 'admin@example.com', 'role': User.Roles.ADMIN, 'is_staff': True},
        )
        admin.set_password('password')
        admin.save()

        guests = []
        for i in range(1, 4):
            guest, created = User.objects.get_or_create(
                username=f'guest{i}', defaults={'email': f'guest{i}@example.com'}
            )
            if created:
                guest.set_password('password')
                guest.save()
            guests.append(guest)

        # Create restaurants
        demo_restaurants = [
            {
                'name': 'Harbour Grill', 'address': '1 Pier Road', 'telephone': '+852 2345 6789',
                'open_time': '11:00', 'close_time': '22:00', 'total_tables': 5,
                'latitude': 22.3193, 'longitude': 114.1694,
            },
            {
                'name': 'Night Market Noodles', 'address': '88 Temple Street', 'telephone': '+852 2987 6543',
                'open_time': '17:00', 'close_time': '23:00', 'total_tables': 2,
                'latitude': 22.3072, 'longitude': 114.1699,
            },
        ]
        restaurants = []
        for fields in demo_restaurants:
            restaurant, created = Restaurant.objects.get_or_create(
                name=fields.pop('name'), defaults={**fields, 'created_by': admin}
            )
            restaurants.append(restaurant)
            verb = 'Created' if created else 'Found'
            self.stdout.write(f"{verb} restaurant: {restaurant.name} ({restaurant.total_tables} tables)")

        today = timezone.localdate()
        holiday_day = today + timedelta(days=7)
        try:
            services.create_holiday(restaurants[0].pk, holiday_day, 'Staff day off', acting_user=admin)
        except AdmissionError as exc:
            self.stdout.write(f"Holiday skipped: {exc.message}")
        else:
            self.stdout.write(f"Created holiday for {restaurants[0].name} on {holiday_day}")

        # Bookings go through the same admission rules as the API
        created = refused = 0
        for _ in range(options['reservations']):
            restaurant = random.choice(restaurants)
            hour = random.randint(int(restaurant.open_time[:2]), int(restaurant.close_time[:2]) - 1)
            try:
                services.create_reservation(
                    random.choice(guests),
                    restaurant.pk,
                    today + timedelta(days=random.randint(1, 10)),
                    f"{hour:02d}:00",
                    random.randint(1, 6),
                )
                created += 1
            except AdmissionError as exc:
                refused += 1
                self.stdout.write(f"Booking refused: {exc.message}")

        self.stdout.write(self.style.SUCCESS(
            f'Successfully seeded the database ({created} reservations, {refused} refused)'
        ))
