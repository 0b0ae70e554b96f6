from django.test import TestCase
from rest_framework.test import APIClient
from rest_framework import status
from datetime import date, time
from decimal import Decimal
from django.contrib.auth import get_user_model

from .cache import AvailabilityCache
from .models import Venue, BlockedSlot

User = get_user_model()


class VenueAPITestCase(TestCase):

    def setUp(self):
        self.client = APIClient()

        self.owner = User.objects.create_user(username='owner', email='owner@example.com', password='testpass123')
        self.other = User.objects.create_user(username='other', email='other@example.com', password='testpass123')

        self.venue = Venue.objects.create(
            owner=self.owner,
            name="Green Turf",
            city="Pune",
            operating_hours_start=time(6, 0),
            operating_hours_end=time(0, 0),
            base_price=Decimal('500'),
            weekend_price=Decimal('700')
        )
        self.day = '2030-06-04'
        AvailabilityCache.invalidate_venue_availability(self.venue.id)

    def test_list_only_own_venues(self):
        """Тест получения списка площадок владельца"""
        Venue.objects.create(owner=self.other, name="Other Turf", base_price=Decimal('400'))
        self.client.force_authenticate(user=self.owner)

        response = self.client.get('/api/venues/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([v['name'] for v in response.data], ["Green Turf"])

    def test_list_requires_auth(self):
        response = self.client.get('/api/venues/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_create_venue(self):
        """Тест создания площадки"""
        self.client.force_authenticate(user=self.owner)

        response = self.client.post('/api/venues/', {
            'name': 'Night Arena',
            'operating_hours_start': '16:00',
            'operating_hours_end': '00:00',
            'base_price': '800',
            'price_2h': '1500',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['name'], 'Night Arena')
        self.assertTrue(Venue.objects.filter(name='Night Arena', owner=self.owner).exists())

    def test_create_venue_closing_before_opening(self):
        self.client.force_authenticate(user=self.owner)

        response = self.client.post('/api/venues/', {
            'name': 'Broken',
            'operating_hours_start': '22:00',
            'operating_hours_end': '20:00',
            'base_price': '800',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('operating_hours_end', response.data)

    def test_create_venue_partial_hour_slot(self):
        self.client.force_authenticate(user=self.owner)

        response = self.client.post('/api/venues/', {
            'name': 'Half',
            'slot_duration': 30,
            'base_price': '800',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_deactivate_venue(self):
        """DELETE деактивирует площадку, а не удаляет"""
        self.client.force_authenticate(user=self.owner)

        response = self.client.delete(f'/api/venues/{self.venue.id}/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.venue.refresh_from_db()
        self.assertFalse(self.venue.is_active)

        listed = self.client.get('/api/venues/')
        self.assertEqual(listed.data, [])
        with_inactive = self.client.get('/api/venues/?include_inactive=true')
        self.assertEqual(len(with_inactive.data), 1)

    def test_other_owner_cannot_see_venue(self):
        self.client.force_authenticate(user=self.other)

        response = self.client.get(f'/api/venues/{self.venue.id}/')

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_get_venue_availability(self):
        """Тест получения недельной сетки площадки"""
        self.client.force_authenticate(user=self.owner)

        response = self.client.get(f'/api/venues/{self.venue.id}/availability/?date={self.day}')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['week_start'], '2030-06-03')
        self.assertEqual(len(response.data['days']), 7)
        self.assertIn('available_slots', response.data)
        self.assertIn('total_slots', response.data)

    def test_get_venue_availability_no_date(self):
        """Тест получения доступности без даты"""
        self.client.force_authenticate(user=self.owner)

        response = self.client.get(f'/api/venues/{self.venue.id}/availability/')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_get_venue_availability_invalid_date(self):
        """Тест получения доступности с неверной датой"""
        self.client.force_authenticate(user=self.owner)

        response = self.client.get(f'/api/venues/{self.venue.id}/availability/?date=invalid-date')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_private_venue_availability_hidden(self):
        """Закрытая площадка не видна анонимно"""
        response = self.client.get(f'/api/venues/{self.venue.id}/availability/?date={self.day}')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

        self.client.force_authenticate(user=self.other)
        response = self.client.get(f'/api/venues/{self.venue.id}/availability/?date={self.day}')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_public_venue_availability_anonymous(self):
        self.venue.is_public = True
        self.venue.save()

        response = self.client.get(f'/api/venues/{self.venue.id}/availability/?date={self.day}')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['venue_name'], 'Green Turf')

    def test_price(self):
        """Тест расчета стоимости: будни по базовой цене, выходные по цене выходного"""
        self.client.force_authenticate(user=self.owner)

        weekday = self.client.get(f'/api/venues/{self.venue.id}/price/?date=2030-06-04&duration_hours=2')
        weekend = self.client.get(f'/api/venues/{self.venue.id}/price/?date=2030-06-08&duration_hours=2')

        self.assertEqual(weekday.status_code, status.HTTP_200_OK)
        self.assertEqual(Decimal(weekday.data['price']), Decimal('1000'))
        self.assertEqual(Decimal(weekend.data['price']), Decimal('1400'))

    def test_price_invalid_duration(self):
        self.client.force_authenticate(user=self.owner)

        response = self.client.get(f'/api/venues/{self.venue.id}/price/?date=2030-06-04&duration_hours=abc')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class BlockedSlotAPITestCase(TestCase):

    def setUp(self):
        self.client = APIClient()

        self.owner = User.objects.create_user(username='owner', email='owner@example.com', password='testpass123')
        self.other = User.objects.create_user(username='other', email='other@example.com', password='testpass123')
        self.venue = Venue.objects.create(owner=self.owner, name="Green Turf", base_price=Decimal('500'))
        AvailabilityCache.invalidate_venue_availability(self.venue.id)

    def test_create_blocked_slot(self):
        """Тест ручной блокировки, блок виден в сетке"""
        self.client.force_authenticate(user=self.owner)

        response = self.client.post('/api/blocked-slots/', {
            'venue': str(self.venue.id),
            'block_date': '2030-06-04',
            'start_time': '10:00',
            'end_time': '12:00',
            'reason': 'Pitch repair',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        grid = self.client.get(f'/api/venues/{self.venue.id}/availability/?date=2030-06-04')
        tuesday = {slot['hour']: slot for slot in grid.data['days'][1]['slots']}
        self.assertEqual(tuesday[10]['status'], 'blocked')
        self.assertEqual(tuesday[11]['reason'], 'Pitch repair')
        self.assertEqual(tuesday[12]['status'], 'available')

    def test_block_end_before_start(self):
        self.client.force_authenticate(user=self.owner)

        response = self.client.post('/api/blocked-slots/', {
            'venue': str(self.venue.id),
            'block_date': '2030-06-04',
            'start_time': '12:00',
            'end_time': '10:00',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_cannot_block_foreign_venue(self):
        self.client.force_authenticate(user=self.other)

        response = self.client.post('/api/blocked-slots/', {
            'venue': str(self.venue.id),
            'block_date': '2030-06-04',
            'start_time': '10:00',
            'end_time': '12:00',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_and_delete_blocked_slots(self):
        block = BlockedSlot.objects.create(
            venue=self.venue, block_date=date(2030, 6, 4), start_time=time(10, 0), end_time=time(12, 0)
        )
        BlockedSlot.objects.create(
            venue=self.venue, block_date=date(2030, 7, 1), start_time=time(10, 0), end_time=time(12, 0)
        )
        self.client.force_authenticate(user=self.owner)

        response = self.client.get(
            f'/api/blocked-slots/?venue={self.venue.id}&date_from=2030-06-01&date_to=2030-06-30'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)

        response = self.client.delete(f'/api/blocked-slots/{block.pk}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(BlockedSlot.objects.filter(pk=block.pk).exists())
