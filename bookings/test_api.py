from django.test import TestCase, override_settings
from rest_framework.test import APIClient
from rest_framework import status
from unittest.mock import patch
from datetime import date, time
from decimal import Decimal
from django.contrib.auth import get_user_model

from venues.cache import AvailabilityCache
from venues.models import Venue
from .models import Booking, Customer

User = get_user_model()


class BookingAPITestCase(TestCase):

    def setUp(self):
        self.client = APIClient()

        self.owner = User.objects.create_user(username='owner', email='owner@example.com', password='testpass123')
        self.other = User.objects.create_user(username='other', email='other@example.com', password='testpass123')

        self.venue = Venue.objects.create(
            owner=self.owner,
            name="Green Turf",
            operating_hours_start=time(6, 0),
            operating_hours_end=time(0, 0),
            base_price=Decimal('500')
        )
        self.customer = Customer.objects.create(owner=self.owner, name='Ravi', phone='9876543210')
        AvailabilityCache.invalidate_venue_availability(self.venue.id)

        self.client.force_authenticate(user=self.owner)

    def payload(self, **overrides):
        data = {
            'venue': str(self.venue.id),
            'customer': self.customer.pk,
            'booking_date': '2030-06-04',
            'start_time': '18:00',
            'duration_hours': 2,
        }
        data.update(overrides)
        return data

    def create_booking(self, **overrides):
        response = self.client.post('/api/bookings/', self.payload(**overrides), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        return response.data

    def test_create_booking(self):
        """Тест создания брони с новым клиентом"""
        payload = self.payload(advance_amount='400', new_customer={'name': 'Amit', 'phone': '9988776655'})
        payload.pop('customer')

        response = self.client.post('/api/bookings/', payload, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['customer_name'], 'Amit')
        self.assertEqual(response.data['end_time'], '20:00:00')
        self.assertEqual(response.data['duration_hours'], 2)
        self.assertEqual(response.data['total_amount'], '1000.00')
        self.assertEqual(response.data['payment_status'], 'partial')
        self.assertRegex(response.data['ticket_code'], r'^TM[A-Z0-9]{6}$')

    def test_create_booking_conflict(self):
        """Пересекающаяся бронь - 409"""
        self.create_booking()

        response = self.client.post('/api/bookings/', self.payload(start_time='19:00'), format='json')

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(Booking.objects.count(), 1)

    def test_create_booking_not_on_the_hour(self):
        response = self.client.post('/api/bookings/', self.payload(start_time='18:30'), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_create_booking_past_midnight(self):
        response = self.client.post('/api/bookings/', self.payload(start_time='23:00'), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_create_booking_foreign_venue(self):
        self.client.force_authenticate(user=self.other)

        response = self.client.post('/api/bookings/', self.payload(new_customer={'name': 'X', 'phone': '1'}),
                                    format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('venue', response.data)

    def test_booking_shows_in_availability(self):
        self.create_booking()

        response = self.client.get(f'/api/venues/{self.venue.id}/availability/?date=2030-06-04')

        tuesday = {slot['hour']: slot for slot in response.data['days'][1]['slots']}
        self.assertEqual(tuesday[18]['status'], 'booked')
        self.assertEqual(tuesday[18]['action'], 'open_booking')
        self.assertEqual(tuesday[20]['status'], 'available')

    def test_list_filters(self):
        self.create_booking()
        self.create_booking(booking_date='2030-07-01')

        response = self.client.get('/api/bookings/?date_from=2030-06-01&date_to=2030-06-30')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)

        response = self.client.get('/api/bookings/?status=cancelled')
        self.assertEqual(response.data, [])

    def test_other_owner_cannot_open_booking(self):
        booking = self.create_booking()
        self.client.force_authenticate(user=self.other)

        response = self.client.get(f"/api/bookings/{booking['id']}/")

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_update_booking(self):
        booking = self.create_booking()

        response = self.client.put(
            f"/api/bookings/{booking['id']}/",
            self.payload(start_time='20:00', duration_hours=3),
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['id'], booking['id'])
        self.assertEqual(response.data['end_time'], '23:00:00')
        self.assertEqual(response.data['total_amount'], '1500.00')
        self.assertEqual(response.data['ticket_code'], booking['ticket_code'])

    def test_cancel_booking(self):
        """Тест отмены брони"""
        booking = self.create_booking()

        response = self.client.post(f"/api/bookings/{booking['id']}/cancel/", {'reason': 'Rain'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'cancelled')
        self.assertEqual(response.data['cancellation_reason'], 'Rain')
        self.create_booking()

    def test_cancel_requires_reason(self):
        booking = self.create_booking()

        response = self.client.post(f"/api/bookings/{booking['id']}/cancel/", {}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_complete_booking(self):
        booking = self.create_booking()

        response = self.client.post(f"/api/bookings/{booking['id']}/complete/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'completed')

    def test_record_payment(self):
        """Доплата закрывает остаток"""
        booking = self.create_booking(advance_amount='400')

        response = self.client.post(
            f"/api/bookings/{booking['id']}/payment/",
            {'amount': '600', 'payment_mode': 'upi'},
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['payment_status'], 'paid')
        self.assertEqual(response.data['pending_amount'], '0.00')
        self.assertEqual(response.data['payment_mode'], 'upi')

    @override_settings(WHATSAPP_BUSINESS_API_KEY='', WHATSAPP_PHONE_NUMBER_ID='')
    def test_whatsapp_fallback_link(self):
        """Без ключей Business API возвращается ссылка wa.me"""
        booking = self.create_booking()

        response = self.client.post(f"/api/bookings/{booking['id']}/whatsapp/", {}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['method'], 'wa_me_link')
        self.assertTrue(response.data['whatsappUrl'].startswith('https://wa.me/919876543210?text=Hi%20Ravi'))

    @override_settings(WHATSAPP_BUSINESS_API_KEY='', WHATSAPP_PHONE_NUMBER_ID='')
    def test_whatsapp_custom_message(self):
        booking = self.create_booking()

        response = self.client.post(
            f"/api/bookings/{booking['id']}/whatsapp/",
            {'type': 'booking_reminder', 'message': 'See you at 6'},
            format='json'
        )

        self.assertEqual(response.data['whatsappUrl'], 'https://wa.me/919876543210?text=See%20you%20at%206')


class SlotHoldAPITestCase(TestCase):

    def setUp(self):
        self.client = APIClient()

        self.owner = User.objects.create_user(username='owner', email='owner@example.com', password='testpass123')
        self.venue = Venue.objects.create(
            owner=self.owner,
            name="Green Turf",
            base_price=Decimal('500'),
            is_public=True
        )
        self.payload = {
            'venue': str(self.venue.id),
            'booking_date': '2030-06-04',
            'start_time': '18:00',
            'duration_hours': 2,
        }

    @patch('bookings.holds.acquire_lock')
    def test_hold_public_venue(self, acquire_lock):
        """Анонимный холд на публичной площадке"""
        acquire_lock.side_effect = lambda key, ttl, token=None: token

        response = self.client.post('/api/bookings/hold/', self.payload, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIn('token', response.data)
        self.assertEqual(len(response.data['keys']), 2)

    @patch('bookings.holds.acquire_lock')
    def test_hold_checks_interval(self, acquire_lock):
        """Холд проверяется так же, как бронь: час, полночь, часы работы"""
        for start_time, duration in [('23:00', 2), ('05:00', 1), ('18:30', 1)]:
            response = self.client.post(
                '/api/bookings/hold/',
                dict(self.payload, start_time=start_time, duration_hours=duration),
                format='json'
            )
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, start_time)

        acquire_lock.assert_not_called()

    @patch('bookings.holds.acquire_lock', return_value=None)
    def test_hold_taken(self, acquire_lock):
        response = self.client.post('/api/bookings/hold/', self.payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_hold_private_venue(self):
        self.venue.is_public = False
        self.venue.save()

        response = self.client.post('/api/bookings/hold/', self.payload, format='json')

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    @patch('bookings.holds.release_lock', return_value=1)
    def test_release_hold(self, release_lock):
        response = self.client.post('/api/bookings/release-hold/', dict(self.payload, token='tok'), format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['released'], 2)


class CustomerAPITestCase(TestCase):

    def setUp(self):
        self.client = APIClient()
        self.owner = User.objects.create_user(username='owner', email='owner@example.com', password='testpass123')
        self.other = User.objects.create_user(username='other', email='other@example.com', password='testpass123')
        Customer.objects.create(owner=self.owner, name='Ravi', phone='9876543210')
        Customer.objects.create(owner=self.owner, name='Amit', phone='9988776655')
        Customer.objects.create(owner=self.other, name='Rahul', phone='9000000000')
        self.client.force_authenticate(user=self.owner)

    def test_list_own_customers(self):
        response = self.client.get('/api/customers/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([c['name'] for c in response.data], ['Amit', 'Ravi'])

    def test_search_customers(self):
        response = self.client.get('/api/customers/?search=9988')
        self.assertEqual([c['name'] for c in response.data], ['Amit'])

    def test_create_customer(self):
        response = self.client.post('/api/customers/', {'name': 'Sneha', 'phone': '9123456789'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(Customer.objects.filter(owner=self.owner, name='Sneha').exists())
