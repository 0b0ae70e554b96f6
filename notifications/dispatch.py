"""
Постановка уведомлений о бронях в очередь Celery.
Вызывается после коммита транзакции брони; недоступный брокер не должен ломать бронирование.
"""
import logging

from .services import BOOKING_CONFIRMATION, BOOKING_CANCELLED
from .tasks import send_booking_notification, send_whatsapp

logger = logging.getLogger(__name__)


def _display_date(day):
    return f"{day:%b} {day.day}, {day.year}"


def owner_push_payload(booking):
    return {
        'turf_owner_id': booking.venue.owner_id,
        'booking_id': str(booking.pk),
        'customer_name': booking.customer.name,
        'booking_date': _display_date(booking.booking_date),
        'start_time': booking.start_time.strftime('%H:%M'),
        'turf_name': booking.venue.name,
        'amount': str(booking.total_amount),
    }


def whatsapp_payload(booking, message_type):
    ticket = getattr(booking, 'ticket', None)
    booking_date = _display_date(booking.booking_date)
    booking_time = f"{booking.start_time:%H:%M}-{booking.end_time:%H:%M}"

    if message_type == BOOKING_CANCELLED:
        message = (
            f"Hi {booking.customer.name}, your booking at {booking.venue.name} "
            f"on {booking_date} has been cancelled."
        )
    else:
        message = (
            f"Hi {booking.customer.name}, your booking at {booking.venue.name} is confirmed "
            f"for {booking_date}, {booking_time}. Amount: ₹{booking.total_amount}."
        )
        if ticket is not None:
            message += f" Ticket: {ticket.ticket_code}"

    return {
        'to': booking.customer.phone,
        'message': message,
        'type': message_type,
        'customerName': booking.customer.name,
        'turfName': booking.venue.name,
        'bookingDate': booking_date,
        'bookingTime': booking_time,
        'amount': str(booking.total_amount),
        'ticketCode': ticket.ticket_code if ticket is not None else '',
    }


def _enqueue(task, payload):
    try:
        task.delay(payload)
    except Exception as e:
        logger.error(f"Не удалось поставить задачу {task.name} в очередь: {str(e)}")


def booking_created(booking):
    _enqueue(send_booking_notification, owner_push_payload(booking))
    if booking.customer.phone:
        _enqueue(send_whatsapp, whatsapp_payload(booking, BOOKING_CONFIRMATION))


def booking_cancelled(booking):
    if booking.customer.phone:
        _enqueue(send_whatsapp, whatsapp_payload(booking, BOOKING_CANCELLED))
