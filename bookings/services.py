from django.db import IntegrityError, transaction
from django.utils import timezone
from rest_framework.exceptions import ValidationError
from datetime import time
from decimal import Decimal
import logging

from core.exceptions import SlotConflictError
from notifications import dispatch
from venues.models import hour_of, closing_hour
from venues.pricing import calculate_price
from .holds import SlotHoldService
from .models import Booking, BookingSlot, Customer
from .tickets import issue_ticket

logger = logging.getLogger(__name__)

ZERO = Decimal('0')


def compute_end_time(start_time, duration_hours):
    """
    Конец брони = начало + длительность, без переноса даты.
    Бронь, заканчивающаяся ровно в полночь, хранится как 00:00.
    """
    end_hour = hour_of(start_time) + int(duration_hours)
    if end_hour > 24:
        raise ValidationError({'duration_hours': 'Booking cannot extend past midnight'})
    return time(end_hour % 24, start_time.minute)


def derive_payment(total_amount, paid_amount):
    """(pending_amount, payment_status) по сумме брони и оплаченному"""
    total_amount = Decimal(total_amount)
    paid_amount = Decimal(paid_amount)
    pending = max(ZERO, total_amount - paid_amount)
    if paid_amount >= total_amount:
        return pending, Booking.PAYMENT_PAID
    if paid_amount > 0:
        return pending, Booking.PAYMENT_PARTIAL
    return pending, Booking.PAYMENT_PENDING


class BookingService:
    """
    Создание и изменение броней
    """

    MAX_DURATION_HOURS = 4

    @classmethod
    def resolve_customer(cls, owner, customer=None, new_customer=None):
        """
        Существующий клиент или новый из формы. Новый клиент сохраняется отдельной записью
        до брони: если бронь потом не сохранится, клиент останется в базе.
        """
        if new_customer is not None:
            name = (new_customer.get('name') or '').strip()
            phone = (new_customer.get('phone') or '').strip()
            if not name or not phone:
                raise ValidationError({'new_customer': 'Customer name and phone are required'})
            customer = Customer.objects.create(
                owner=owner,
                name=name,
                phone=phone,
                email=new_customer.get('email') or None,
            )
            logger.info(f"Создан клиент {customer.pk} для владельца {owner.pk}")
            return customer

        if customer is None:
            raise ValidationError({'customer': 'Please select or create a customer'})
        return customer

    @classmethod
    def validate_interval(cls, venue, start_time, duration):
        """
        Проверяет длительность и часы работы, возвращает время окончания
        """
        if not 1 <= duration <= cls.MAX_DURATION_HOURS:
            raise ValidationError({'duration_hours': f'Duration must be between 1 and {cls.MAX_DURATION_HOURS} hours'})

        end_time = compute_end_time(start_time, duration)
        if hour_of(start_time) < venue.opening_hour or closing_hour(end_time) > venue.closing_hour:
            raise ValidationError({'start_time': 'Booking is outside the venue operating hours'})
        return end_time

    @classmethod
    def create_or_update(cls, owner, data, booking=None):
        """
        Сохраняет бронь из данных формы.
        :param data: провалидированные данные BookingWriteSerializer
        :param booking: существующая бронь при редактировании
        """
        venue = data['venue']
        if not venue.is_active:
            raise ValidationError({'venue': 'Venue is not active'})

        booking_date = data['booking_date']
        start_time = data['start_time']
        duration = int(data['duration_hours'])
        end_time = cls.validate_interval(venue, start_time, duration)

        discount = Decimal(data.get('discount_amount') or 0)
        total_amount = max(ZERO, calculate_price(venue, duration, booking_date) - discount)
        paid_amount = Decimal(data.get('advance_amount') or 0) + Decimal(data.get('paid_amount') or 0)
        pending_amount, payment_status = derive_payment(total_amount, paid_amount)

        customer = cls.resolve_customer(owner, data.get('customer'), data.get('new_customer'))

        created = booking is None
        if created:
            booking = Booking(owner=owner, status=Booking.STATUS_BOOKED)

        booking.venue = venue
        booking.customer = customer
        booking.booking_date = booking_date
        booking.start_time = start_time
        booking.end_time = end_time
        booking.sport_type = venue.sport_type
        booking.total_amount = total_amount
        booking.discount_amount = discount
        booking.paid_amount = paid_amount
        booking.pending_amount = pending_amount
        booking.payment_status = payment_status
        booking.payment_mode = data.get('payment_mode') or 'cash'
        booking.notes = data.get('notes') or ''

        with transaction.atomic():
            booking.save()
            cls._occupy(booking)
            if created:
                issue_ticket(booking)

        logger.info(
            f"Бронь {booking.pk} {'создана' if created else 'обновлена'}: площадка {venue.id}, "
            f"{booking_date} {start_time:%H:%M}-{end_time:%H:%M}, сумма {total_amount}"
        )

        if created:
            transaction.on_commit(lambda: dispatch.booking_created(booking))

        hold_token = data.get('hold_token')
        if hold_token:
            transaction.on_commit(lambda: cls._release_hold(booking, duration, hold_token))

        return booking

    @classmethod
    def cancel(cls, booking, reason, cancelled_by=None):
        if booking.status == Booking.STATUS_CANCELLED:
            raise ValidationError({'status': 'Booking is already cancelled'})

        with transaction.atomic():
            booking.status = Booking.STATUS_CANCELLED
            booking.cancellation_reason = reason
            booking.cancelled_at = timezone.now()
            booking.cancelled_by = cancelled_by
            booking.save()
            cls._occupy(booking)

        logger.info(f"Бронь {booking.pk} отменена: {reason}")
        transaction.on_commit(lambda: dispatch.booking_cancelled(booking))
        return booking

    @classmethod
    def complete(cls, booking):
        if booking.status == Booking.STATUS_CANCELLED:
            raise ValidationError({'status': 'Cancelled booking cannot be completed'})

        booking.status = Booking.STATUS_COMPLETED
        booking.save(update_fields=['status', 'updated_at'])
        logger.info(f"Бронь {booking.pk} завершена")
        return booking

    @classmethod
    def record_payment(cls, booking, amount, payment_mode=None):
        """
        Ручная фиксация оплаты: прибавляет сумму к оплаченному и пересчитывает статус
        """
        amount = Decimal(amount)
        if amount <= 0:
            raise ValidationError({'amount': 'Amount must be positive'})

        booking.paid_amount = Decimal(booking.paid_amount or 0) + amount
        booking.pending_amount, booking.payment_status = derive_payment(booking.total_amount, booking.paid_amount)
        if payment_mode:
            booking.payment_mode = payment_mode
        booking.save(update_fields=['paid_amount', 'pending_amount', 'payment_status', 'payment_mode', 'updated_at'])

        logger.info(f"Оплата {amount} по брони {booking.pk}, статус {booking.payment_status}")
        return booking

    @classmethod
    def _occupy(cls, booking):
        """
        Пересобирает часы, занятые бронью. Уникальный индекс (площадка, дата, час)
        не дает двум неотмененным броням пересечься даже при одновременной записи.
        """
        BookingSlot.objects.filter(booking=booking).delete()
        if not booking.occupies_slots:
            return

        slots = [
            BookingSlot(booking=booking, venue_id=booking.venue_id, slot_date=booking.booking_date, hour=hour)
            for hour in booking.hours
        ]
        try:
            with transaction.atomic():
                BookingSlot.objects.bulk_create(slots)
        except IntegrityError:
            logger.warning(
                f"Конфликт брони: площадка {booking.venue_id}, {booking.booking_date}, часы {booking.hours}"
            )
            raise SlotConflictError('This slot overlaps an existing booking.')

    @classmethod
    def _release_hold(cls, booking, duration, token):
        try:
            SlotHoldService.release(booking.venue, booking.booking_date, booking.start_hour, duration, token)
        except Exception as e:
            logger.error(f"Не удалось снять холд брони {booking.pk}: {str(e)}")
