"""
Расчет статусов часовых слотов площадки.

Статус слота вычисляется заново при каждом запросе из двух списков,
уже отфильтрованных по площадке и неделе: брони и ручные блокировки.
Порядок проверок важен: бронь важнее блокировки, а "прошедший" слот
определяется только если слот не занят ни тем, ни другим.
"""
from datetime import date, datetime, time, timedelta

from .models import hour_of, closing_hour

AVAILABLE = 'available'
BOOKED = 'booked'
BLOCKED = 'blocked'
PAST = 'past'
CANCELLED = 'cancelled'
COMPLETED = 'completed'

# Действие календаря по клику на ячейку
OPEN_BOOKING = 'open_booking'
NEW_BOOKING = 'new_booking'

WEEK_DAYS = 7


def week_start_for(day):
    """Понедельник недели, в которую попадает day"""
    return day - timedelta(days=day.weekday())


def operating_hours(venue):
    return list(range(hour_of(venue.operating_hours_start), closing_hour(venue.operating_hours_end)))


def _as_date(value):
    if isinstance(value, str):
        return date.fromisoformat(value)
    return value


def _covers(day, start_time, end_time, row_date, hour):
    if _as_date(row_date) != day:
        return False
    return hour_of(start_time) <= hour < closing_hour(end_time)


def find_covering_booking(bookings, day, hour):
    for booking in bookings:
        if _covers(day, booking.start_time, booking.end_time, booking.booking_date, hour):
            return booking
    return None


def find_covering_block(blocks, day, hour):
    for block in blocks:
        if _covers(day, block.start_time, block.end_time, block.block_date, hour):
            return block
    return None


def slot_status(booking, block, slot_start, now):
    if booking is not None:
        if booking.status == CANCELLED:
            return CANCELLED
        if booking.status == COMPLETED:
            return COMPLETED
        return BOOKED
    if block is not None:
        return BLOCKED
    if slot_start < now:
        return PAST
    return AVAILABLE


def _customer_name(booking):
    customer = getattr(booking, 'customer', None)
    return getattr(customer, 'name', None)


def build_slot(day, hour, booking, block, now):
    slot_start = datetime.combine(day, time(hour))
    status = slot_status(booking, block, slot_start, now)

    slot = {
        'date': day.isoformat(),
        'hour': hour,
        'time': f"{hour:02d}:00",
        'status': status,
        'action': None,
    }

    if status == BOOKED:
        slot['action'] = OPEN_BOOKING
    elif status == AVAILABLE:
        slot['action'] = NEW_BOOKING

    if status in (BOOKED, CANCELLED, COMPLETED):
        slot['booking_id'] = str(booking.pk)
        slot['customer_name'] = _customer_name(booking)
        slot['payment_status'] = getattr(booking, 'payment_status', None)
    elif status == BLOCKED:
        slot['blocked_slot_id'] = block.pk
        slot['reason'] = block.reason

    return slot


def resolve(venue, day, bookings, blocks, now=None):
    """
    Слоты одного дня площадки.
    :param bookings: брони площадки (включая отмененные), первая накрывающая час выигрывает
    :param blocks: ручные блокировки площадки
    :param now: локальное "сейчас" без таймзоны
    """
    if now is None:
        now = datetime.now()

    slots = []
    for hour in operating_hours(venue):
        booking = find_covering_booking(bookings, day, hour)
        block = None if booking is not None else find_covering_block(blocks, day, hour)
        slots.append(build_slot(day, hour, booking, block, now))
    return slots


def resolve_week(venue, week_start, bookings, blocks, now=None):
    """Сетка 7×N: список дней с их слотами, начиная с week_start"""
    if now is None:
        now = datetime.now()

    days = []
    for offset in range(WEEK_DAYS):
        day = week_start + timedelta(days=offset)
        days.append({
            'date': day.isoformat(),
            'weekday': day.strftime('%a'),
            'slots': resolve(venue, day, bookings, blocks, now),
        })
    return days
