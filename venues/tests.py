from django.test import SimpleTestCase, TestCase
from django.contrib.auth import get_user_model
from datetime import date, datetime, time
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import patch

from bookings.models import Booking, Customer
from bookings.services import BookingService
from .availability import resolve, resolve_week, week_start_for
from .cache import AvailabilityCache
from .models import Venue, BlockedSlot
from .pricing import calculate_price
from .services import AvailabilityService

User = get_user_model()

TUESDAY = date(2025, 6, 10)
SATURDAY = date(2025, 6, 14)
NOW = datetime(2025, 6, 10, 12, 0)


def make_venue(start='06:00', end='00:00'):
    return SimpleNamespace(operating_hours_start=start, operating_hours_end=end)


def make_booking(day, start, end, status='booked', name='Ravi', pk=1):
    return SimpleNamespace(
        pk=pk, booking_date=day, start_time=start, end_time=end, status=status,
        customer=SimpleNamespace(name=name), payment_status='partial'
    )


def make_block(day, start, end, reason='Maintenance', pk=1):
    return SimpleNamespace(pk=pk, block_date=day, start_time=start, end_time=end, reason=reason)


def statuses(slots):
    return {slot['hour']: slot['status'] for slot in slots}


class AvailabilityResolverTestCase(SimpleTestCase):

    def test_midnight_close_counts_as_24(self):
        """00:00 в конце дня дает столько же слотов, сколько 24:00"""
        midnight = resolve(make_venue('06:00', '00:00'), TUESDAY, [], [], NOW)
        explicit = resolve(make_venue('06:00', '24:00'), TUESDAY, [], [], NOW)

        self.assertEqual(len(midnight), 18)
        self.assertEqual(len(midnight), len(explicit))
        self.assertEqual(midnight[-1]['time'], '23:00')

    def test_covered_hours_are_booked(self):
        """Часы под бронью - booked, граница end не входит"""
        booking = make_booking(TUESDAY, '18:00', '20:00')
        result = statuses(resolve(make_venue(), TUESDAY, [booking], [], NOW))

        self.assertEqual(result[17], 'available')
        self.assertEqual(result[18], 'booked')
        self.assertEqual(result[19], 'booked')
        self.assertEqual(result[20], 'available')

    def test_booking_status_mapping(self):
        """Отмененная и завершенная брони видны отдельными статусами"""
        bookings = [
            make_booking(TUESDAY, '14:00', '15:00', status='cancelled'),
            make_booking(TUESDAY, '15:00', '16:00', status='completed'),
        ]
        result = statuses(resolve(make_venue(), TUESDAY, bookings, [], NOW))

        self.assertEqual(result[14], 'cancelled')
        self.assertEqual(result[15], 'completed')

    def test_first_covering_booking_wins(self):
        """При пересечении берется первая бронь из списка"""
        bookings = [
            make_booking(TUESDAY, '18:00', '19:00', status='cancelled', pk=1),
            make_booking(TUESDAY, '18:00', '19:00', status='booked', pk=2),
        ]
        slot = resolve(make_venue(), TUESDAY, bookings, [], NOW)[12]

        self.assertEqual(slot['hour'], 18)
        self.assertEqual(slot['status'], 'cancelled')
        self.assertEqual(slot['booking_id'], '1')

    def test_booking_beats_block(self):
        """Бронь важнее блокировки"""
        booking = make_booking(TUESDAY, '18:00', '19:00')
        block = make_block(TUESDAY, '17:00', '20:00')
        result = statuses(resolve(make_venue(), TUESDAY, [booking], [block], NOW))

        self.assertEqual(result[17], 'blocked')
        self.assertEqual(result[18], 'booked')
        self.assertEqual(result[19], 'blocked')

    def test_block_beats_past(self):
        """Прошедший заблокированный слот остается blocked"""
        block = make_block(TUESDAY, '07:00', '08:00')
        result = statuses(resolve(make_venue(), TUESDAY, [], [block], NOW))

        self.assertEqual(result[6], 'past')
        self.assertEqual(result[7], 'blocked')

    def test_past_and_available(self):
        """Слот раньше now - past, слот, начинающийся ровно в now, еще доступен"""
        result = statuses(resolve(make_venue(), TUESDAY, [], [], NOW))

        self.assertEqual(result[11], 'past')
        self.assertEqual(result[12], 'available')
        self.assertEqual(result[13], 'available')

    def test_past_booking_is_still_booked(self):
        """Прошлая бронь не превращается в past"""
        booking = make_booking(TUESDAY, '08:00', '09:00')
        result = statuses(resolve(make_venue(), TUESDAY, [booking], [], NOW))

        self.assertEqual(result[8], 'booked')

    def test_other_days_are_ignored(self):
        booking = make_booking(SATURDAY, '18:00', '19:00')
        result = statuses(resolve(make_venue(), TUESDAY, [booking], [], NOW))

        self.assertEqual(result[18], 'available')

    def test_booking_until_midnight(self):
        """Бронь с концом 00:00 накрывает последний час"""
        booking = make_booking(TUESDAY, '22:00', '00:00')
        result = statuses(resolve(make_venue(), TUESDAY, [booking], [], NOW))

        self.assertEqual(result[22], 'booked')
        self.assertEqual(result[23], 'booked')

    def test_click_actions(self):
        """Клик по брони открывает ее, по свободному слоту - новую бронь"""
        booking = make_booking(TUESDAY, '18:00', '19:00')
        block = make_block(TUESDAY, '20:00', '21:00')
        slots = {s['hour']: s for s in resolve(make_venue(), TUESDAY, [booking], [block], NOW)}

        self.assertEqual(slots[18]['action'], 'open_booking')
        self.assertEqual(slots[18]['customer_name'], 'Ravi')
        self.assertEqual(slots[19]['action'], 'new_booking')
        self.assertIsNone(slots[20]['action'])
        self.assertEqual(slots[20]['reason'], 'Maintenance')
        self.assertIsNone(slots[9]['action'])

    def test_week_grid(self):
        """Неделя начинается с понедельника, 7 дней"""
        week_start = week_start_for(TUESDAY)
        days = resolve_week(make_venue('06:00', '10:00'), week_start, [], [], NOW)

        self.assertEqual(week_start, date(2025, 6, 9))
        self.assertEqual(len(days), 7)
        self.assertEqual(days[0]['date'], '2025-06-09')
        self.assertEqual(days[-1]['date'], '2025-06-15')
        self.assertTrue(all(len(day['slots']) == 4 for day in days))


class PricingTestCase(SimpleTestCase):

    def tariff(self, **prices):
        values = {
            'base_price': Decimal('500'), 'price_1h': None, 'price_2h': None, 'price_3h': None,
            'weekday_price': None, 'weekend_price': None,
        }
        values.update(prices)
        return SimpleNamespace(**values)

    def test_package_overrides_day_pricing(self):
        """Пакет за 2 часа важнее цены выходного и базовой"""
        venue = self.tariff(price_2h=Decimal('900'), weekend_price=Decimal('600'))

        self.assertEqual(calculate_price(venue, 2, TUESDAY), Decimal('900'))
        self.assertEqual(calculate_price(venue, 2, SATURDAY), Decimal('900'))

    def test_weekend_price(self):
        venue = self.tariff(weekend_price=Decimal('700'))

        self.assertEqual(calculate_price(venue, 1, SATURDAY), Decimal('700'))
        self.assertEqual(calculate_price(venue, 1, TUESDAY), Decimal('500'))

    def test_weekday_price_per_hour(self):
        venue = self.tariff(weekday_price=Decimal('400'), weekend_price=Decimal('700'))

        self.assertEqual(calculate_price(venue, 3, TUESDAY), Decimal('1200'))
        self.assertEqual(calculate_price(venue, 3, SATURDAY), Decimal('2100'))

    def test_no_package_for_four_hours(self):
        venue = self.tariff(price_1h=Decimal('450'), price_2h=Decimal('900'), price_3h=Decimal('1300'))

        self.assertEqual(calculate_price(venue, 4, TUESDAY), Decimal('2000'))

    def test_zero_tier_is_ignored(self):
        venue = self.tariff(price_1h=Decimal('0'), weekday_price=Decimal('0'))

        self.assertEqual(calculate_price(venue, 1, TUESDAY), Decimal('500'))


class AvailabilityCacheTestCase(TestCase):

    def setUp(self):
        self.owner = User.objects.create_user(username='owner', email='owner@example.com', password='testpass123')
        self.venue = Venue.objects.create(
            owner=self.owner,
            name="Green Turf",
            operating_hours_start=time(6, 0),
            operating_hours_end=time(0, 0),
            base_price=Decimal('500')
        )
        self.week = week_start_for(TUESDAY)
        AvailabilityCache.invalidate_venue_availability(self.venue.id)

    def test_availability_cache_set_get(self):
        """Тест сохранения и получения из кеша"""
        test_data = {"venue_id": str(self.venue.id), "days": []}

        AvailabilityCache.set_availability(self.venue.id, self.week, test_data)

        self.assertEqual(AvailabilityCache.get_availability(self.venue.id, self.week), test_data)

    def test_invalidate_single_week(self):
        """Инвалидация одной недели не трогает другие"""
        other_week = week_start_for(date(2025, 6, 20))
        AvailabilityCache.set_availability(self.venue.id, self.week, {"week": 1})
        AvailabilityCache.set_availability(self.venue.id, other_week, {"week": 2})

        AvailabilityCache.invalidate_venue_availability(self.venue.id, [self.week])

        self.assertIsNone(AvailabilityCache.get_availability(self.venue.id, self.week))
        self.assertEqual(AvailabilityCache.get_availability(self.venue.id, other_week), {"week": 2})

    def test_invalidate_all_weeks(self):
        AvailabilityCache.set_availability(self.venue.id, self.week, {"week": 1})

        AvailabilityCache.invalidate_venue_availability(self.venue.id)

        self.assertIsNone(AvailabilityCache.get_availability(self.venue.id, self.week))

    def test_blocked_slot_invalidates_week(self):
        """Новая блокировка сбрасывает кеш своей недели"""
        AvailabilityCache.set_availability(self.venue.id, self.week, {"stale": True})

        with self.captureOnCommitCallbacks(execute=True):
            BlockedSlot.objects.create(
                venue=self.venue, block_date=TUESDAY, start_time=time(10, 0), end_time=time(12, 0)
            )

        self.assertIsNone(AvailabilityCache.get_availability(self.venue.id, self.week))

    def test_invalidation_waits_for_commit(self):
        """До коммита закешированная неделя не сбрасывается"""
        AvailabilityCache.set_availability(self.venue.id, self.week, {"stale": True})

        with self.captureOnCommitCallbacks() as callbacks:
            BlockedSlot.objects.create(
                venue=self.venue, block_date=TUESDAY, start_time=time(10, 0), end_time=time(12, 0)
            )
            self.assertEqual(AvailabilityCache.get_availability(self.venue.id, self.week), {"stale": True})

        for callback in callbacks:
            callback()
        self.assertIsNone(AvailabilityCache.get_availability(self.venue.id, self.week))


class AvailabilityServiceTestCase(TestCase):

    def setUp(self):
        self.owner = User.objects.create_user(username='owner', email='owner@example.com', password='testpass123')
        self.venue = Venue.objects.create(
            owner=self.owner,
            name="Green Turf",
            operating_hours_start=time(6, 0),
            operating_hours_end=time(0, 0),
            base_price=Decimal('500')
        )
        self.customer = Customer.objects.create(owner=self.owner, name='Ravi', phone='9876543210')
        self.day = date(2030, 6, 4)
        AvailabilityCache.invalidate_venue_availability(self.venue.id)

    def test_week_availability(self):
        """Сетка недели с бронью, блокировкой и счетчиками"""
        Booking.objects.create(
            owner=self.owner, venue=self.venue, customer=self.customer, booking_date=self.day,
            start_time=time(18, 0), end_time=time(20, 0), total_amount=Decimal('1000')
        )
        BlockedSlot.objects.create(
            venue=self.venue, block_date=self.day, start_time=time(6, 0), end_time=time(8, 0), reason='Repair'
        )

        data = AvailabilityService.get_venue_availability(self.venue, self.day)

        self.assertEqual(data['venue_id'], str(self.venue.id))
        self.assertEqual(data['week_start'], '2030-06-03')
        self.assertEqual(len(data['days']), 7)
        self.assertEqual(data['total_slots'], 7 * 18)
        self.assertEqual(data['available_slots'], 7 * 18 - 4)

        tuesday = {slot['hour']: slot for slot in data['days'][1]['slots']}
        self.assertEqual(tuesday[18]['status'], 'booked')
        self.assertEqual(tuesday[18]['customer_name'], 'Ravi')
        self.assertEqual(tuesday[6]['status'], 'blocked')

    def test_result_is_cached(self):
        first = AvailabilityService.get_venue_availability(self.venue, self.day)

        self.assertEqual(AvailabilityCache.get_availability(self.venue.id, week_start_for(self.day)), first)

    def test_booking_change_invalidates_cache(self):
        """Новая бронь сбрасывает закешированную неделю"""
        AvailabilityService.get_venue_availability(self.venue, self.day)

        with self.captureOnCommitCallbacks(execute=True):
            Booking.objects.create(
                owner=self.owner, venue=self.venue, customer=self.customer, booking_date=self.day,
                start_time=time(18, 0), end_time=time(19, 0), total_amount=Decimal('500')
            )

        self.assertIsNone(AvailabilityCache.get_availability(self.venue.id, week_start_for(self.day)))
        data = AvailabilityService.get_venue_availability(self.venue, self.day)
        tuesday = {slot['hour']: slot for slot in data['days'][1]['slots']}
        self.assertEqual(tuesday[18]['status'], 'booked')

    def booking_data(self, **overrides):
        data = {
            'venue': self.venue,
            'customer': self.customer,
            'booking_date': self.day,
            'start_time': time(18, 0),
            'duration_hours': 1,
        }
        data.update(overrides)
        return data

    @patch('notifications.dispatch.booking_cancelled')
    @patch('notifications.dispatch.booking_created')
    def test_rebooked_hour_shows_live_booking(self, booking_created, booking_cancelled):
        """Отмененная бронь не заслоняет новую бронь на тот же час"""
        with self.captureOnCommitCallbacks(execute=True):
            first = BookingService.create_or_update(self.owner, self.booking_data())
            BookingService.cancel(first, 'Rain')
            second = BookingService.create_or_update(self.owner, self.booking_data())

        data = AvailabilityService.get_venue_availability(self.venue, self.day)
        slot = {s['hour']: s for s in data['days'][1]['slots']}[18]

        self.assertEqual(slot['status'], 'booked')
        self.assertEqual(slot['booking_id'], str(second.pk))
        self.assertEqual(slot['action'], 'open_booking')

    @patch('notifications.dispatch.booking_created')
    def test_moved_booking_frees_old_venue(self, booking_created):
        """Перенос брони на другую площадку сбрасывает кеш старой площадки"""
        other_venue = Venue.objects.create(
            owner=self.owner,
            name="Blue Turf",
            operating_hours_start=time(6, 0),
            operating_hours_end=time(0, 0),
            base_price=Decimal('500')
        )
        with self.captureOnCommitCallbacks(execute=True):
            booking = BookingService.create_or_update(self.owner, self.booking_data())
        AvailabilityService.get_venue_availability(self.venue, self.day)
        AvailabilityService.get_venue_availability(other_venue, self.day)

        with self.captureOnCommitCallbacks(execute=True):
            BookingService.create_or_update(self.owner, self.booking_data(venue=other_venue), booking=booking)

        old_grid = AvailabilityService.get_venue_availability(self.venue, self.day)
        new_grid = AvailabilityService.get_venue_availability(other_venue, self.day)
        self.assertEqual({s['hour']: s for s in old_grid['days'][1]['slots']}[18]['status'], 'available')
        self.assertEqual({s['hour']: s for s in new_grid['days'][1]['slots']}[18]['status'], 'booked')
