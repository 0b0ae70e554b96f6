from django.test import SimpleTestCase, TestCase
from django.contrib.auth import get_user_model
from rest_framework.exceptions import ValidationError
from unittest.mock import patch
from datetime import date, time
from decimal import Decimal
import json
import re

from core.exceptions import SlotConflictError
from venues.models import Venue
from .holds import SlotHoldService, hold_key
from .models import Booking, BookingSlot, Customer
from .services import BookingService, compute_end_time, derive_payment
from .tickets import generate_ticket_code

User = get_user_model()

DAY = date(2030, 6, 4)


class BookingHelpersTestCase(SimpleTestCase):

    def test_end_time(self):
        """Конец брони = начало + длительность"""
        self.assertEqual(compute_end_time(time(18, 0), 2), time(20, 0))

    def test_end_time_at_midnight(self):
        """Бронь до полуночи хранится как 00:00"""
        self.assertEqual(compute_end_time(time(22, 0), 2), time(0, 0))

    def test_end_time_past_midnight(self):
        with self.assertRaises(ValidationError):
            compute_end_time(time(23, 0), 2)

    def test_payment_status(self):
        self.assertEqual(derive_payment(Decimal('1000'), Decimal('0')), (Decimal('1000'), 'pending'))
        self.assertEqual(derive_payment(Decimal('1000'), Decimal('400')), (Decimal('600'), 'partial'))
        self.assertEqual(derive_payment(Decimal('1000'), Decimal('1000')), (Decimal('0'), 'paid'))
        self.assertEqual(derive_payment(Decimal('1000'), Decimal('1200')), (Decimal('0'), 'paid'))

    def test_zero_total_is_paid(self):
        self.assertEqual(derive_payment(Decimal('0'), Decimal('0')), (Decimal('0'), 'paid'))

    def test_ticket_code_format(self):
        for _ in range(20):
            self.assertRegex(generate_ticket_code(), r'^TM[A-Z0-9]{6}$')


class BookingServiceTestCase(TestCase):

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

    def booking_data(self, **overrides):
        data = {
            'venue': self.venue,
            'customer': self.customer,
            'booking_date': DAY,
            'start_time': time(18, 0),
            'duration_hours': 2,
        }
        data.update(overrides)
        return data

    def test_create_booking(self):
        """Тест создания брони: конец, сумма, занятые часы и билет"""
        booking = BookingService.create_or_update(self.owner, self.booking_data(advance_amount=Decimal('400')))

        self.assertEqual(booking.end_time, time(20, 0))
        self.assertEqual(booking.status, Booking.STATUS_BOOKED)
        self.assertEqual(booking.total_amount, Decimal('1000'))
        self.assertEqual(booking.pending_amount, Decimal('600'))
        self.assertEqual(booking.payment_status, 'partial')
        self.assertEqual(
            sorted(BookingSlot.objects.filter(booking=booking).values_list('hour', flat=True)),
            [18, 19]
        )

        ticket = booking.ticket
        self.assertRegex(ticket.ticket_code, r'^TM[A-Z0-9]{6}$')
        self.assertEqual(json.loads(ticket.qr_data), {
            'code': ticket.ticket_code,
            'bookingId': str(booking.pk),
            'date': '2030-06-04',
            'time': '18:00',
        })

    def test_discount_and_paid(self):
        booking = BookingService.create_or_update(self.owner, self.booking_data(
            discount_amount=Decimal('200'),
            advance_amount=Decimal('300'),
            paid_amount=Decimal('500'),
        ))

        self.assertEqual(booking.total_amount, Decimal('800'))
        self.assertEqual(booking.paid_amount, Decimal('800'))
        self.assertEqual(booking.payment_status, 'paid')

    def test_discount_never_negative(self):
        booking = BookingService.create_or_update(self.owner, self.booking_data(discount_amount=Decimal('5000')))

        self.assertEqual(booking.total_amount, Decimal('0'))
        self.assertEqual(booking.pending_amount, Decimal('0'))

    def test_booking_until_midnight(self):
        booking = BookingService.create_or_update(self.owner, self.booking_data(start_time=time(22, 0)))

        self.assertEqual(booking.end_time, time(0, 0))
        self.assertEqual(booking.end_hour, 24)
        self.assertEqual(booking.hours, [22, 23])

    def test_booking_past_midnight_rejected(self):
        with self.assertRaises(ValidationError):
            BookingService.create_or_update(self.owner, self.booking_data(start_time=time(23, 0)))
        self.assertEqual(Booking.objects.count(), 0)

    def test_outside_operating_hours(self):
        with self.assertRaises(ValidationError):
            BookingService.create_or_update(self.owner, self.booking_data(start_time=time(5, 0)))

    def test_duration_limits(self):
        with self.assertRaises(ValidationError):
            BookingService.create_or_update(self.owner, self.booking_data(duration_hours=5))
        with self.assertRaises(ValidationError):
            BookingService.create_or_update(self.owner, self.booking_data(duration_hours=0))

    def test_inactive_venue(self):
        self.venue.is_active = False
        self.venue.save()

        with self.assertRaises(ValidationError):
            BookingService.create_or_update(self.owner, self.booking_data())

    def test_customer_required(self):
        with self.assertRaises(ValidationError):
            BookingService.create_or_update(self.owner, self.booking_data(customer=None))

    def test_new_customer_requires_name_and_phone(self):
        with self.assertRaises(ValidationError):
            BookingService.create_or_update(
                self.owner, self.booking_data(customer=None, new_customer={'name': 'Amit', 'phone': ''})
            )
        self.assertFalse(Customer.objects.filter(name='Amit').exists())

    def test_new_customer_created(self):
        booking = BookingService.create_or_update(
            self.owner,
            self.booking_data(customer=None, new_customer={'name': 'Amit', 'phone': '+91 99887 76655'})
        )

        self.assertEqual(booking.customer.name, 'Amit')
        self.assertEqual(booking.customer.owner, self.owner)

    def test_overlapping_booking_rejected(self):
        """Вторая пересекающаяся бронь не сохраняется"""
        BookingService.create_or_update(self.owner, self.booking_data())

        with self.assertRaises(SlotConflictError):
            BookingService.create_or_update(self.owner, self.booking_data(start_time=time(19, 0)))

        self.assertEqual(Booking.objects.count(), 1)
        self.assertEqual(BookingSlot.objects.count(), 2)

    def test_adjacent_bookings_allowed(self):
        BookingService.create_or_update(self.owner, self.booking_data())
        BookingService.create_or_update(self.owner, self.booking_data(start_time=time(20, 0)))

        self.assertEqual(Booking.objects.count(), 2)

    def test_new_customer_kept_when_booking_conflicts(self):
        """Клиент из формы сохраняется до брони и остается при конфликте"""
        BookingService.create_or_update(self.owner, self.booking_data())

        with self.assertRaises(SlotConflictError):
            BookingService.create_or_update(
                self.owner,
                self.booking_data(customer=None, new_customer={'name': 'Amit', 'phone': '9988776655'})
            )

        self.assertTrue(Customer.objects.filter(name='Amit').exists())

    def test_completed_booking_still_occupies(self):
        booking = BookingService.create_or_update(self.owner, self.booking_data())
        BookingService.complete(booking)

        with self.assertRaises(SlotConflictError):
            BookingService.create_or_update(self.owner, self.booking_data())

    def test_cancel_frees_slots(self):
        """Отмена освобождает часы для новой брони"""
        booking = BookingService.create_or_update(self.owner, self.booking_data())

        BookingService.cancel(booking, 'Rain', cancelled_by=self.owner)

        booking.refresh_from_db()
        self.assertEqual(booking.status, Booking.STATUS_CANCELLED)
        self.assertEqual(booking.cancellation_reason, 'Rain')
        self.assertIsNotNone(booking.cancelled_at)
        self.assertFalse(BookingSlot.objects.filter(booking=booking).exists())

        BookingService.create_or_update(self.owner, self.booking_data())
        self.assertEqual(Booking.objects.filter(status=Booking.STATUS_BOOKED).count(), 1)

    def test_cancel_twice(self):
        booking = BookingService.create_or_update(self.owner, self.booking_data())
        BookingService.cancel(booking, 'Rain')

        with self.assertRaises(ValidationError):
            BookingService.cancel(booking, 'Again')

    def test_cancelled_cannot_complete(self):
        booking = BookingService.create_or_update(self.owner, self.booking_data())
        BookingService.cancel(booking, 'Rain')

        with self.assertRaises(ValidationError):
            BookingService.complete(booking)

    def test_update_moves_slots(self):
        """Перенос брони на пересекающийся со своими же часами интервал"""
        booking = BookingService.create_or_update(self.owner, self.booking_data())

        updated = BookingService.create_or_update(
            self.owner, self.booking_data(start_time=time(19, 0)), booking=booking
        )

        self.assertEqual(updated.pk, booking.pk)
        self.assertEqual(updated.end_time, time(21, 0))
        self.assertEqual(
            sorted(BookingSlot.objects.filter(booking=booking).values_list('hour', flat=True)),
            [19, 20]
        )

    def test_update_keeps_status(self):
        booking = BookingService.create_or_update(self.owner, self.booking_data())
        BookingService.complete(booking)

        updated = BookingService.create_or_update(self.owner, self.booking_data(duration_hours=1), booking=booking)

        self.assertEqual(updated.status, Booking.STATUS_COMPLETED)

    def test_record_payment(self):
        """1000 с оплатой 400 - partial, после доплаты 600 - paid"""
        booking = BookingService.create_or_update(self.owner, self.booking_data(advance_amount=Decimal('400')))
        self.assertEqual(booking.payment_status, 'partial')

        BookingService.record_payment(booking, Decimal('600'), 'upi')

        booking.refresh_from_db()
        self.assertEqual(booking.paid_amount, Decimal('1000'))
        self.assertEqual(booking.pending_amount, Decimal('0'))
        self.assertEqual(booking.payment_status, 'paid')
        self.assertEqual(booking.payment_mode, 'upi')

    def test_record_payment_must_be_positive(self):
        booking = BookingService.create_or_update(self.owner, self.booking_data())

        with self.assertRaises(ValidationError):
            BookingService.record_payment(booking, Decimal('0'))

    @patch('notifications.dispatch.send_whatsapp')
    @patch('notifications.dispatch.send_booking_notification')
    def test_notifications_after_commit(self, push_task, whatsapp_task):
        """Уведомления ставятся в очередь только после коммита"""
        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            booking = BookingService.create_or_update(self.owner, self.booking_data())

        self.assertEqual(len(callbacks), 1)
        push_payload = push_task.delay.call_args[0][0]
        self.assertEqual(push_payload['turf_owner_id'], self.owner.id)
        self.assertEqual(push_payload['booking_id'], str(booking.pk))
        self.assertEqual(push_payload['start_time'], '18:00')

        whatsapp_payload = whatsapp_task.delay.call_args[0][0]
        self.assertEqual(whatsapp_payload['to'], '9876543210')
        self.assertEqual(whatsapp_payload['ticketCode'], booking.ticket.ticket_code)

    @patch('notifications.dispatch.send_whatsapp')
    @patch('notifications.dispatch.send_booking_notification')
    def test_broker_failure_does_not_break_booking(self, push_task, whatsapp_task):
        push_task.delay.side_effect = ConnectionError('broker down')
        whatsapp_task.delay.side_effect = ConnectionError('broker down')

        with self.captureOnCommitCallbacks(execute=True):
            booking = BookingService.create_or_update(self.owner, self.booking_data())

        self.assertTrue(Booking.objects.filter(pk=booking.pk).exists())

    @patch('bookings.holds.release_lock', return_value=1)
    @patch('notifications.dispatch.booking_created')
    def test_hold_released_after_booking(self, booking_created, release_lock):
        with self.captureOnCommitCallbacks(execute=True):
            BookingService.create_or_update(self.owner, self.booking_data(hold_token='tok'))

        release_lock.assert_any_call(hold_key(self.venue.id, DAY, 18), 'tok')
        release_lock.assert_any_call(hold_key(self.venue.id, DAY, 19), 'tok')


class SlotHoldTestCase(SimpleTestCase):

    def setUp(self):
        self.venue = Venue(name="Green Turf", base_price=Decimal('500'))

    def test_hold_key(self):
        self.assertEqual(
            hold_key(self.venue.id, DAY, 7),
            f"hold:{self.venue.id}:2030-06-04:07"
        )

    @patch('bookings.holds.acquire_lock')
    def test_acquire_all_hours(self, acquire_lock):
        acquire_lock.side_effect = lambda key, ttl, token=None: token

        hold = SlotHoldService.acquire(self.venue, DAY, 18, 2)

        self.assertEqual(len(hold['keys']), 2)
        self.assertTrue(hold['keys'][1].endswith(':19'))
        for call in acquire_lock.call_args_list:
            self.assertEqual(call.kwargs['token'], hold['token'])
        self.assertTrue(re.match(r'^\d{4}-\d{2}-\d{2}T', hold['expires_at']))

    @patch('bookings.holds.release_lock', return_value=1)
    @patch('bookings.holds.acquire_lock')
    def test_conflict_rolls_back(self, acquire_lock, release_lock):
        """Если один час занят - уже захваченные отпускаются"""
        acquire_lock.side_effect = ['tok', None]

        with self.assertRaises(SlotConflictError):
            SlotHoldService.acquire(self.venue, DAY, 18, 2, token='tok')

        release_lock.assert_called_once_with(hold_key(self.venue.id, DAY, 18), 'tok')

    @patch('bookings.holds.release_lock', side_effect=[1, 0])
    def test_release_counts_keys(self, release_lock):
        self.assertEqual(SlotHoldService.release(self.venue, DAY, 18, 2, 'tok'), 1)
