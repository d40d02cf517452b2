from datetime import date
from io import StringIO
from unittest import mock

from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.test import TestCase, override_settings
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from . import reports, services
from .admission import admit_update, hourly_availability, is_slot_available
from .exceptions import (
    ActiveReservationsExist,
    DailyQuotaExceeded,
    DuplicateHoliday,
    Forbidden,
    HolidayBlackout,
    HolidayNotFound,
    InvalidTransition,
    ReservationNotFound,
    RestaurantNotFound,
    SlotFull,
)
from .history import history_for
from .models import Holiday, Reservation, ReservationHistory, Restaurant
from .utils import day_of, generate_time_slots

User = get_user_model()

DAY = date(2030, 5, 17)
OTHER_DAY = date(2030, 5, 18)


def make_restaurant(**kwargs):
    fields = {
        'name': 'Harbour Grill',
        'address': '1 Pier Road',
        'telephone': '+852 2345 6789',
        'open_time': '10:00',
        'close_time': '22:00',
        'total_tables': 5,
        'latitude': 22.31,
        'longitude': 114.16,
    }
    fields.update(kwargs)
    return Restaurant.objects.create(**fields)


def make_user(username, role=User.Roles.USER):
    return User.objects.create_user(
        username=username,
        email=f'{username}@example.com',
        password='password123',
        role=role,
    )


class UtilsTests(TestCase):
    def test_time_slots_cover_whole_hours_until_closing(self):
        self.assertEqual(generate_time_slots('10:30', '13:00'), ['10:00', '11:00', '12:00'])

    def test_day_of_accepts_iso_strings(self):
        self.assertEqual(day_of('2030-05-17'), DAY)

    def test_day_of_rejects_garbage(self):
        with self.assertRaises(ValueError):
            day_of('17/05/2030')


class CreateReservationTests(TestCase):
    def setUp(self):
        self.user = make_user('alice')
        self.restaurant = make_restaurant()

    def test_create_records_confirmed_reservation_and_history(self):
        reservation = services.create_reservation(self.user, self.restaurant.pk, DAY, '18:00', 4)

        self.assertEqual(reservation.status, Reservation.Status.CONFIRMED)
        entries = list(reservation.history.all())
        self.assertEqual(len(entries), 1)
        self.assertEqual(entries[0].action, ReservationHistory.Action.CREATED)
        self.assertEqual(entries[0].user, self.user)
        self.assertEqual(entries[0].snapshot['status'], 'confirmed')
        self.assertEqual(entries[0].snapshot['time'], '18:00')

    def test_unknown_restaurant(self):
        with self.assertRaises(RestaurantNotFound):
            services.create_reservation(self.user, 9999, DAY, '18:00', 2)

    def test_fourth_booking_on_same_day_is_refused(self):
        for slot in ('12:00', '13:00', '14:00'):
            services.create_reservation(self.user, self.restaurant.pk, DAY, slot, 2)

        with self.assertRaises(DailyQuotaExceeded):
            services.create_reservation(self.user, self.restaurant.pk, DAY, '15:00', 2)
        self.assertEqual(Reservation.objects.filter(user=self.user).count(), 3)

    def test_quota_is_per_calendar_day(self):
        for slot in ('12:00', '13:00', '14:00'):
            services.create_reservation(self.user, self.restaurant.pk, DAY, slot, 2)

        services.create_reservation(self.user, self.restaurant.pk, OTHER_DAY, '12:00', 2)

    def test_canceled_bookings_free_quota(self):
        first = services.create_reservation(self.user, self.restaurant.pk, DAY, '12:00', 2)
        services.create_reservation(self.user, self.restaurant.pk, DAY, '13:00', 2)
        services.create_reservation(self.user, self.restaurant.pk, DAY, '14:00', 2)
        services.cancel_reservation(first.pk, self.user)

        services.create_reservation(self.user, self.restaurant.pk, DAY, '15:00', 2)

    @override_settings(RESERVATION_DAILY_LIMIT=1)
    def test_quota_follows_settings(self):
        services.create_reservation(self.user, self.restaurant.pk, DAY, '12:00', 2)
        with self.assertRaisesMessage(DailyQuotaExceeded, 'up to 1 reservations'):
            services.create_reservation(self.user, self.restaurant.pk, DAY, '13:00', 2)

    def test_full_slot_is_refused(self):
        restaurant = make_restaurant(name='Tiny', total_tables=2)
        services.create_reservation(make_user('bob'), restaurant.pk, DAY, '19:00', 2)
        services.create_reservation(make_user('carol'), restaurant.pk, DAY, '19:00', 2)

        with self.assertRaises(SlotFull):
            services.create_reservation(self.user, restaurant.pk, DAY, '19:00', 2)
        self.assertFalse(is_slot_available(restaurant, DAY, '19:00'))
        self.assertTrue(is_slot_available(restaurant, DAY, '20:00'))

    def test_holiday_blocks_booking(self):
        Holiday.objects.create(restaurant=self.restaurant, date=DAY, description='Closed')

        with self.assertRaises(HolidayBlackout):
            services.create_reservation(self.user, self.restaurant.pk, DAY, '18:00', 2)
        self.assertFalse(Reservation.objects.exists())


class UpdateReservationTests(TestCase):
    def setUp(self):
        self.alice = make_user('alice')
        self.bob = make_user('bob')
        self.admin = make_user('boss', role=User.Roles.ADMIN)
        self.restaurant = make_restaurant(total_tables=1)
        self.held = services.create_reservation(self.alice, self.restaurant.pk, DAY, '18:00', 2)
        self.moving = services.create_reservation(self.bob, self.restaurant.pk, DAY, '19:00', 2)

    def test_move_into_full_slot_leaves_reservation_unchanged(self):
        with self.assertRaises(SlotFull):
            services.update_reservation(self.moving.pk, {'time': '18:00'}, self.bob)

        self.moving.refresh_from_db()
        self.assertEqual(self.moving.time, '19:00')
        self.assertEqual(self.moving.history.count(), 1)

    def test_move_into_free_slot(self):
        updated = services.update_reservation(self.moving.pk, {'time': '20:00'}, self.bob)

        self.assertEqual(updated.time, '20:00')
        actions = list(updated.history.values_list('action', flat=True))
        self.assertEqual(actions, ['created', 'updated'])
        self.assertEqual(updated.history.last().snapshot['time'], '20:00')

    def test_unchanged_slot_values_skip_capacity_check(self):
        patch = admit_update(self.held.pk, {'date': DAY.isoformat(), 'time': '18:00'})

        self.assertFalse(patch.slot_changed)
        self.assertEqual(patch.changed_fields, set())

    def test_guest_count_change_is_not_a_slot_change(self):
        updated = services.update_reservation(self.held.pk, {'num_of_guests': 6}, self.alice)

        self.assertEqual(updated.num_of_guests, 6)
        self.assertEqual(updated.history.count(), 2)

    def test_missing_restaurant_skips_capacity_check(self):
        Reservation.objects.filter(pk=self.moving.pk).update(restaurant=None)

        patch = admit_update(self.moving.pk, {'time': '18:00'})

        self.assertTrue(patch.slot_changed)
        self.assertIsNone(patch.restaurant)

    def test_moving_to_unknown_restaurant(self):
        with self.assertRaises(RestaurantNotFound):
            services.update_reservation(self.moving.pk, {'restaurant': 9999}, self.bob)

    def test_status_is_ignored_in_changes(self):
        updated = services.update_reservation(
            self.moving.pk, {'status': 'completed', 'num_of_guests': 3}, self.bob
        )
        self.assertEqual(updated.status, Reservation.Status.CONFIRMED)

    def test_only_owner_or_admin_may_update(self):
        with self.assertRaises(Forbidden):
            services.update_reservation(self.moving.pk, {'num_of_guests': 3}, self.alice)

        services.update_reservation(self.moving.pk, {'num_of_guests': 3}, self.admin)

    def test_unknown_reservation(self):
        with self.assertRaises(ReservationNotFound):
            services.update_reservation(9999, {'time': '20:00'}, self.admin)

    def test_restaurant_moved_before_lock_is_locked_too(self):
        annex = make_restaurant(name='Annex')
        real_lock = services._lock_restaurants
        locked = []

        def lock(*restaurant_ids):
            if not locked:
                # Another writer moves the booking between the read and the lock.
                Reservation.objects.filter(pk=self.moving.pk).update(restaurant=annex)
            locked.append(restaurant_ids)
            return real_lock(*restaurant_ids)

        with mock.patch.object(services, '_lock_restaurants', side_effect=lock):
            services.update_reservation(self.moving.pk, {'num_of_guests': 4}, self.bob)

        self.assertEqual(locked, [(self.restaurant.pk, None), (annex.pk,)])


class CancelReservationTests(TestCase):
    def setUp(self):
        self.owner = make_user('alice')
        self.admin = make_user('boss', role=User.Roles.ADMIN)
        self.stranger = make_user('mallory')
        self.restaurant = make_restaurant()
        self.reservation = services.create_reservation(
            self.owner, self.restaurant.pk, DAY, '18:00', 2
        )

    def test_owner_cancel(self):
        canceled = services.cancel_reservation(self.reservation.pk, self.owner)

        self.assertEqual(canceled.status, Reservation.Status.CANCELED)
        cancel_entries = canceled.history.filter(action=ReservationHistory.Action.CANCELED)
        self.assertEqual(cancel_entries.count(), 1)
        self.assertEqual(cancel_entries.get().user, self.owner)

    def test_admin_cancel_marks_deleted(self):
        removed = services.cancel_reservation(self.reservation.pk, self.admin)

        self.assertEqual(removed.status, Reservation.Status.DELETED)
        self.assertEqual(
            removed.history.filter(action=ReservationHistory.Action.DELETED).count(), 1
        )

    def test_stranger_cannot_cancel(self):
        with self.assertRaises(Forbidden):
            services.cancel_reservation(self.reservation.pk, self.stranger)

        self.reservation.refresh_from_db()
        self.assertEqual(self.reservation.status, Reservation.Status.CONFIRMED)

    def test_terminal_reservation_cannot_be_canceled_again(self):
        services.cancel_reservation(self.reservation.pk, self.owner)

        with self.assertRaises(InvalidTransition):
            services.cancel_reservation(self.reservation.pk, self.owner)
        self.assertEqual(self.reservation.history.count(), 2)

    def test_canceled_reservation_frees_its_table(self):
        restaurant = make_restaurant(name='Tiny', total_tables=1)
        held = services.create_reservation(self.owner, restaurant.pk, DAY, '18:00', 2)
        services.cancel_reservation(held.pk, self.owner)

        services.create_reservation(self.stranger, restaurant.pk, DAY, '18:00', 2)

    def test_complete_then_cancel_is_refused(self):
        services.complete_reservation(self.reservation)

        with self.assertRaises(InvalidTransition):
            services.cancel_reservation(self.reservation.pk, self.admin)


class HistoryTests(TestCase):
    def setUp(self):
        self.user = make_user('alice')
        self.restaurant = make_restaurant()

    def test_entries_follow_operation_order(self):
        reservation = services.create_reservation(self.user, self.restaurant.pk, DAY, '18:00', 2)
        services.update_reservation(reservation.pk, {'time': '19:00'}, self.user)
        services.cancel_reservation(reservation.pk, self.user)

        actions = [entry.action for entry in history_for(reservation.pk)]
        self.assertEqual(actions, ['created', 'updated', 'canceled'])

    def test_entries_are_append_only(self):
        reservation = services.create_reservation(self.user, self.restaurant.pk, DAY, '18:00', 2)
        entry = reservation.history.get()

        entry.action = ReservationHistory.Action.DELETED
        with self.assertRaises(ValueError):
            entry.save()
        with self.assertRaises(ValueError):
            entry.delete()
        self.assertEqual(reservation.history.get().action, 'created')


class HolidayTests(TestCase):
    def setUp(self):
        self.user = make_user('alice')
        self.restaurant = make_restaurant()

    def test_create_and_duplicate(self):
        services.create_holiday(self.restaurant.pk, DAY, 'Staff party')

        with self.assertRaises(DuplicateHoliday):
            services.create_holiday(self.restaurant.pk, DAY, 'Again')

    def test_refused_while_reservations_are_active(self):
        reservation = services.create_reservation(self.user, self.restaurant.pk, DAY, '18:00', 2)

        with self.assertRaisesMessage(HolidayBlackout, 'active reservations'):
            services.create_holiday(self.restaurant.pk, DAY, 'Closed')

        services.cancel_reservation(reservation.pk, self.user)
        services.create_holiday(self.restaurant.pk, DAY, 'Closed')

    def test_unknown_restaurant(self):
        with self.assertRaises(RestaurantNotFound):
            services.create_holiday(9999, DAY, 'Closed')

    def test_update_changes_description_only(self):
        holiday = services.create_holiday(self.restaurant.pk, DAY, 'Closed')

        updated = services.update_holiday(self.restaurant.pk, holiday.pk, 'Renovation')

        self.assertEqual(updated.description, 'Renovation')
        self.assertEqual(updated.date, DAY)

    def test_delete_and_missing(self):
        holiday = services.create_holiday(self.restaurant.pk, DAY, 'Closed')
        services.delete_holiday(self.restaurant.pk, holiday.pk)

        with self.assertRaises(HolidayNotFound):
            services.delete_holiday(self.restaurant.pk, holiday.pk)


class AvailabilityTests(TestCase):
    def setUp(self):
        self.restaurant = make_restaurant(open_time='10:00', close_time='13:00', total_tables=1)

    def test_hourly_availability(self):
        services.create_reservation(make_user('alice'), self.restaurant.pk, DAY, '11:00', 2)

        self.assertEqual(hourly_availability(self.restaurant, DAY), [
            {'time': '10:00', 'available': True},
            {'time': '11:00', 'available': False},
            {'time': '12:00', 'available': True},
        ])

    def test_holiday_has_no_slots(self):
        Holiday.objects.create(restaurant=self.restaurant, date=DAY, description='Closed')

        self.assertEqual(hourly_availability(self.restaurant, DAY), [])


class GuardedDeletionTests(TestCase):
    def setUp(self):
        self.user = make_user('alice')
        self.restaurant = make_restaurant()
        self.reservation = services.create_reservation(
            self.user, self.restaurant.pk, DAY, '18:00', 2
        )

    def test_restaurant_with_active_reservations(self):
        with self.assertRaises(ActiveReservationsExist):
            services.delete_restaurant(self.restaurant.pk)

        services.cancel_reservation(self.reservation.pk, self.user)
        services.delete_restaurant(self.restaurant.pk)

        self.reservation.refresh_from_db()
        self.assertIsNone(self.reservation.restaurant_id)
        self.assertEqual(self.reservation.history.count(), 2)

    def test_user_with_active_reservations(self):
        with self.assertRaises(ActiveReservationsExist):
            services.delete_user(self.user.pk)

        services.cancel_reservation(self.reservation.pk, self.user)
        services.delete_user(self.user.pk)

        self.assertFalse(User.objects.filter(username='alice').exists())
        self.assertEqual(self.reservation.history.count(), 2)


class ReportTests(TestCase):
    def setUp(self):
        self.admin = make_user('boss', role=User.Roles.ADMIN)
        self.grill = make_restaurant(name='Grill')
        self.noodles = make_restaurant(name='Noodles')
        alice, bob = make_user('alice'), make_user('bob')

        services.create_reservation(alice, self.grill.pk, DAY, '18:00', 2)
        canceled = services.create_reservation(alice, self.grill.pk, DAY, '19:00', 2)
        services.cancel_reservation(canceled.pk, alice)
        removed = services.create_reservation(bob, self.grill.pk, DAY, '20:00', 2)
        services.cancel_reservation(removed.pk, self.admin)
        services.create_reservation(bob, self.noodles.pk, date(2030, 6, 1), '18:00', 2)

    def test_summary_excludes_admin_removals(self):
        rows = reports.reservation_summary(date(2030, 5, 1), date(2030, 5, 31))

        self.assertEqual(rows, [{
            'restaurant_id': self.grill.pk,
            'restaurant_name': 'Grill',
            'total_reservations': 2,
            'confirmed': 1,
            'canceled': 1,
            'completed': 0,
        }])

    def test_performance_ranks_restaurants(self):
        rows = reports.restaurant_performance()
        self.assertEqual([row['restaurant_name'] for row in rows], ['Grill', 'Noodles'])

        june = reports.restaurant_performance(month=6, year=2030)
        self.assertEqual(june, [
            {'restaurant_id': self.noodles.pk, 'restaurant_name': 'Noodles', 'total_reservations': 1},
        ])


class CompleteReservationsCommandTests(TestCase):
    def test_past_confirmed_reservations_are_completed(self):
        user = make_user('alice')
        restaurant = make_restaurant()
        past = services.create_reservation(user, restaurant.pk, date(2020, 1, 1), '18:00', 2)
        future = services.create_reservation(user, restaurant.pk, DAY, '18:00', 2)

        call_command('complete_reservations', stdout=StringIO())

        past.refresh_from_db()
        future.refresh_from_db()
        self.assertEqual(past.status, Reservation.Status.COMPLETED)
        self.assertEqual(future.status, Reservation.Status.CONFIRMED)
        self.assertEqual(past.history.last().action, ReservationHistory.Action.COMPLETED)


class SeedDemoDataCommandTests(TestCase):
    def test_running_twice_reuses_restaurants(self):
        call_command('seed_demo_data', reservations=0, stdout=StringIO())
        call_command('seed_demo_data', reservations=0, stdout=StringIO())

        self.assertEqual(Restaurant.objects.count(), 2)
        self.assertEqual(Holiday.objects.count(), 1)
        self.assertTrue(User.objects.get(username='admin').is_admin)


# ==============================================================================
# ADMIN
# ==============================================================================

class AdminSiteTests(TestCase):
    def setUp(self):
        self.root = User.objects.create_superuser(
            username='root', email='root@example.com', password='password123'
        )
        self.client.force_login(self.root)
        self.alice = make_user('alice')
        self.restaurant = make_restaurant()
        self.reservation = services.create_reservation(
            self.alice, self.restaurant.pk, DAY, '18:00', 2
        )

    def add_holiday(self, day):
        return self.client.post(reverse('admin:reservations_holiday_add'), {
            'restaurant': self.restaurant.pk,
            'date': day.isoformat(),
            'description': 'Closed',
        })

    def test_holiday_on_booked_day_is_refused(self):
        response = self.add_holiday(DAY)

        self.assertEqual(response.status_code, 200)
        self.assertContains(response, 'Cannot set holiday on a date that has active reservations')
        self.assertFalse(Holiday.objects.exists())

    def test_holiday_on_free_day(self):
        response = self.add_holiday(OTHER_DAY)

        self.assertEqual(response.status_code, 302)
        holiday = Holiday.objects.get()
        self.assertEqual(holiday.date, OTHER_DAY)
        self.assertEqual(holiday.created_by, self.root)

    def test_duplicate_holiday_is_refused(self):
        self.add_holiday(OTHER_DAY)
        response = self.add_holiday(OTHER_DAY)

        self.assertEqual(response.status_code, 200)
        self.assertEqual(Holiday.objects.count(), 1)

    def test_holiday_change_keeps_date(self):
        holiday = services.create_holiday(self.restaurant.pk, OTHER_DAY, 'Closed')

        response = self.client.post(
            reverse('admin:reservations_holiday_change', args=[holiday.pk]),
            {'description': 'Renovation', 'date': DAY.isoformat()},
        )

        self.assertEqual(response.status_code, 302)
        holiday.refresh_from_db()
        self.assertEqual(holiday.description, 'Renovation')
        self.assertEqual(holiday.date, OTHER_DAY)

    def test_restaurant_with_active_reservations_cannot_be_deleted(self):
        url = reverse('admin:reservations_restaurant_delete', args=[self.restaurant.pk])

        response = self.client.post(url, {'post': 'yes'})

        self.assertEqual(response.status_code, 403)
        self.assertTrue(Restaurant.objects.filter(pk=self.restaurant.pk).exists())

    def test_bulk_delete_skips_restaurants_with_active_reservations(self):
        self.client.post(reverse('admin:reservations_restaurant_changelist'), {
            'action': 'delete_selected',
            '_selected_action': [self.restaurant.pk],
            'post': 'yes',
        })

        self.assertTrue(Restaurant.objects.filter(pk=self.restaurant.pk).exists())
        self.reservation.refresh_from_db()
        self.assertEqual(self.reservation.restaurant, self.restaurant)

    def test_restaurant_without_active_reservations_is_deleted(self):
        services.cancel_reservation(self.reservation.pk, self.alice)
        url = reverse('admin:reservations_restaurant_delete', args=[self.restaurant.pk])

        response = self.client.post(url, {'post': 'yes'})

        self.assertEqual(response.status_code, 302)
        self.assertFalse(Restaurant.objects.filter(pk=self.restaurant.pk).exists())
        self.reservation.refresh_from_db()
        self.assertIsNone(self.reservation.restaurant_id)

    def test_user_with_active_reservations_cannot_be_deleted(self):
        url = reverse('admin:reservations_customuser_delete', args=[self.alice.pk])

        response = self.client.post(url, {'post': 'yes'})

        self.assertEqual(response.status_code, 403)
        self.assertTrue(User.objects.filter(pk=self.alice.pk).exists())


# ==============================================================================
# API
# ==============================================================================

class AuthApiTests(APITestCase):
    def test_register_login_and_me(self):
        response = self.client.post(reverse('reservations:register'), {
            'username': 'alice',
            'email': 'alice@example.com',
            'password': 'Sup3r-secret',
            'role': 'admin',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['user']['role'], 'user')

        response = self.client.post(reverse('reservations:login'), {
            'username': 'alice', 'password': 'Sup3r-secret',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        self.client.credentials(HTTP_AUTHORIZATION=f"Token {response.data['token']}")
        response = self.client.get(reverse('reservations:user-me'))
        self.assertEqual(response.data['username'], 'alice')

    def test_bad_credentials(self):
        make_user('alice')
        response = self.client.post(reverse('reservations:login'), {
            'username': 'alice', 'password': 'wrong',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class ReservationApiTests(APITestCase):
    def setUp(self):
        self.alice = make_user('alice')
        self.bob = make_user('bob')
        self.admin = make_user('boss', role=User.Roles.ADMIN)
        self.restaurant = make_restaurant(total_tables=1)

    def book(self, user, time='18:00'):
        self.client.force_authenticate(user=user)
        return self.client.post(reverse('reservations:reservation-list'), {
            'restaurant': self.restaurant.pk,
            'date': DAY.isoformat(),
            'time': time,
            'num_of_guests': 2,
        }, format='json')

    def test_unknown_restaurant_is_not_found(self):
        self.client.force_authenticate(user=self.alice)
        response = self.client.post(reverse('reservations:reservation-list'), {
            'restaurant': 9999,
            'date': DAY.isoformat(),
            'time': '18:00',
            'num_of_guests': 2,
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['code'], 'not_found')
        self.assertEqual(response.data['detail'], 'Restaurant not found')
        self.assertFalse(Reservation.objects.exists())

    def test_move_to_unknown_restaurant_is_not_found(self):
        reservation_id = self.book(self.alice).data['id']
        url = reverse('reservations:reservation-detail', args=[reservation_id])

        response = self.client.patch(url, {'restaurant': 9999}, format='json')

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['code'], 'not_found')
        self.assertEqual(Reservation.objects.get(pk=reservation_id).restaurant, self.restaurant)

    def test_move_to_other_restaurant(self):
        annex = make_restaurant(name='Annex')
        reservation_id = self.book(self.alice).data['id']
        url = reverse('reservations:reservation-detail', args=[reservation_id])

        response = self.client.patch(url, {'restaurant': annex.pk}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['restaurant'], annex.pk)
        self.assertEqual(response.data['restaurant_name'], 'Annex')

    def test_create_and_list_own(self):
        response = self.book(self.alice)
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'confirmed')
        self.assertEqual(response.data['restaurant_name'], 'Harbour Grill')

        self.book(self.bob, time='19:00')
        self.client.force_authenticate(user=self.alice)
        response = self.client.get(reverse('reservations:reservation-list'))
        self.assertEqual(response.data['count'], 1)

    def test_full_slot_maps_to_bad_request(self):
        self.book(self.alice)
        response = self.book(self.bob)

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'slot_full')
        self.assertEqual(response.data['detail'], 'Time slot is fully booked')

    def test_admin_cannot_book(self):
        response = self.book(self.admin)
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_other_user_cannot_touch_reservation(self):
        reservation_id = self.book(self.alice).data['id']
        url = reverse('reservations:reservation-detail', args=[reservation_id])

        self.client.force_authenticate(user=self.bob)
        self.assertEqual(self.client.get(url).status_code, status.HTTP_403_FORBIDDEN)
        response = self.client.patch(url, {'num_of_guests': 5}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_missing_reservation(self):
        self.client.force_authenticate(user=self.alice)
        url = reverse('reservations:reservation-detail', args=[9999])
        self.assertEqual(self.client.get(url).status_code, status.HTTP_404_NOT_FOUND)

    def test_update_and_cancel(self):
        reservation_id = self.book(self.alice).data['id']
        url = reverse('reservations:reservation-detail', args=[reservation_id])

        response = self.client.patch(url, {'time': '20:00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['time'], '20:00')

        response = self.client.delete(url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'canceled')

        response = self.client.delete(url)
        self.assertEqual(response.data['code'], 'invalid_transition')

        response = self.client.get(reverse('reservations:reservation-history', args=[reservation_id]))
        self.assertEqual([e['action'] for e in response.data], ['created', 'updated', 'canceled'])

    def test_admin_cancel_marks_deleted(self):
        reservation_id = self.book(self.alice).data['id']

        self.client.force_authenticate(user=self.admin)
        response = self.client.delete(reverse('reservations:reservation-detail', args=[reservation_id]))
        self.assertEqual(response.data['status'], 'deleted')


class RestaurantApiTests(APITestCase):
    def setUp(self):
        self.alice = make_user('alice')
        self.admin = make_user('boss', role=User.Roles.ADMIN)
        self.restaurant = make_restaurant(open_time='10:00', close_time='12:00')

    def test_only_admin_creates_restaurants(self):
        payload = {
            'name': 'Noodles', 'address': '88 Temple Street', 'telephone': '+852 2987 6543',
            'open_time': '17:00', 'close_time': '23:00', 'total_tables': 3,
            'latitude': 22.30, 'longitude': 114.17,
        }
        self.client.force_authenticate(user=self.alice)
        response = self.client.post(reverse('reservations:restaurant-list'), payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(user=self.admin)
        response = self.client.post(reverse('reservations:restaurant-list'), payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['location'], {'latitude': 22.30, 'longitude': 114.17})

    def test_list_filters(self):
        make_restaurant(name='Tiny Noodles', total_tables=2)
        url = reverse('reservations:restaurant-list')

        response = self.client.get(url, {'total_tables__gte': 4})
        self.assertEqual([r['name'] for r in response.data['results']], ['Harbour Grill'])

        response = self.client.get(url, {'total_tables__in': '2,3'})
        self.assertEqual([r['name'] for r in response.data['results']], ['Tiny Noodles'])

        response = self.client.get(url, {'name__icontains': 'noodle'})
        self.assertEqual(response.data['count'], 1)

    def test_availability(self):
        self.client.force_authenticate(user=self.alice)
        url = reverse('reservations:restaurant-availability', args=[self.restaurant.pk])

        response = self.client.get(url, {'date': DAY.isoformat()})
        self.assertEqual(response.data['availability'], [
            {'time': '10:00', 'available': True},
            {'time': '11:00', 'available': True},
        ])

        self.assertEqual(self.client.get(url).status_code, status.HTTP_400_BAD_REQUEST)

    def test_holiday_endpoints(self):
        url = reverse('reservations:holiday-list', args=[self.restaurant.pk])

        self.client.force_authenticate(user=self.alice)
        response = self.client.post(url, {'date': DAY.isoformat(), 'description': 'Closed'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(user=self.admin)
        response = self.client.post(url, {'date': DAY.isoformat(), 'description': 'Closed'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        response = self.client.post(url, {'date': DAY.isoformat(), 'description': 'Again'}, format='json')
        self.assertEqual(response.data['code'], 'duplicate_holiday')

        self.client.force_authenticate(user=None)
        self.assertEqual(len(self.client.get(url).data), 1)

    def test_delete_with_active_reservations(self):
        services.create_reservation(self.alice, self.restaurant.pk, DAY, '10:00', 2)

        self.client.force_authenticate(user=self.admin)
        response = self.client.delete(reverse('reservations:restaurant-detail', args=[self.restaurant.pk]))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'active_reservations_exist')

    def test_delete_unknown_restaurant(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.delete(reverse('reservations:restaurant-detail', args=[9999]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class ReportApiTests(APITestCase):
    def test_reports_are_admin_only(self):
        url = reverse('reservations:report-reservations')
        params = {'start': '2030-05-01', 'end': '2030-05-31'}

        self.client.force_authenticate(user=make_user('alice'))
        self.assertEqual(self.client.get(url, params).status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(user=make_user('boss', role=User.Roles.ADMIN))
        response = self.client.get(url, params)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {'data': []})
