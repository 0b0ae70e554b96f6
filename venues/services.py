from django.db.models import Case, IntegerField, Value, When
from django.utils import timezone
from datetime import timedelta
import logging

from bookings.models import Booking
from .availability import resolve_week, week_start_for, operating_hours, AVAILABLE
from .cache import AvailabilityCache
from .models import BlockedSlot

logger = logging.getLogger(__name__)


def local_now():
    """Локальное время площадки без таймзоны: даты броней хранятся "наивными" """
    return timezone.localtime().replace(tzinfo=None)


class AvailabilityService:
    """
    Сервис для работы с доступностью площадок
    """

    @classmethod
    def get_venue_availability(cls, venue, day):
        """
        Недельная сетка площадки для недели, содержащей day (с использованием кеша)
        """
        week_start = week_start_for(day)

        cached_data = AvailabilityCache.get_availability(venue.id, week_start)
        if cached_data is not None:
            logger.debug(f"Данные получены из кеша для площадки {venue.id} на неделю {week_start}")
            return cached_data

        availability_data = cls._calculate_availability(venue, week_start)
        AvailabilityCache.set_availability(venue.id, week_start, availability_data)

        logger.debug(f"Данные вычислены и сохранены в кеш для площадки {venue.id} на неделю {week_start}")
        return availability_data

    @classmethod
    def fetch_week(cls, venue, week_start):
        """
        Брони (вместе с отмененными, с именем клиента) и блокировки площадки за неделю.
        Отмененные брони идут последними: в резолвере первая накрывающая бронь выигрывает,
        и отмена не должна заслонять новую бронь на тот же час.
        """
        week_end = week_start + timedelta(days=6)

        cancelled_last = Case(
            When(status=Booking.STATUS_CANCELLED, then=Value(1)),
            default=Value(0),
            output_field=IntegerField(),
        )
        bookings = list(
            Booking.objects.select_related('customer').filter(
                venue=venue,
                booking_date__gte=week_start,
                booking_date__lte=week_end,
            ).order_by(cancelled_last, 'created_at')
        )
        blocks = list(
            BlockedSlot.objects.filter(
                venue=venue,
                block_date__gte=week_start,
                block_date__lte=week_end,
            ).order_by('created_at')
        )
        return bookings, blocks

    @classmethod
    def _calculate_availability(cls, venue, week_start):
        bookings, blocks = cls.fetch_week(venue, week_start)
        days = resolve_week(venue, week_start, bookings, blocks, now=local_now())

        available = sum(1 for day in days for slot in day['slots'] if slot['status'] == AVAILABLE)
        total = sum(len(day['slots']) for day in days)

        return {
            'venue_id': str(venue.id),
            'venue_name': venue.name,
            'week_start': week_start.isoformat(),
            'hours': [f"{hour:02d}:00" for hour in operating_hours(venue)],
            'days': days,
            'available_slots': available,
            'total_slots': total,
            'calculated_at': timezone.now().isoformat()
        }

    @classmethod
    def handle_venue_change(cls, venue_id):
        logger.info(f"Инвалидация кеша для измененной площадки: {venue_id}")
        AvailabilityCache.invalidate_venue_availability(venue_id)

    @classmethod
    def handle_dates_change(cls, venue_id, dates):
        """
        Инвалидирует недели, в которые попадают даты брони или блокировки
        """
        weeks = {week_start_for(day) for day in dates if day}
        if not weeks:
            return
        logger.info(f"Инвалидация кеша площадки {venue_id}, недели: {sorted(weeks)}")
        AvailabilityCache.invalidate_venue_availability(venue_id, list(weeks))
