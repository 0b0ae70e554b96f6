import json
import secrets
import string

from .models import BookingTicket

TICKET_PREFIX = 'TM'
TICKET_ALPHABET = string.ascii_uppercase + string.digits
TICKET_RANDOM_LENGTH = 6


def generate_ticket_code():
    return TICKET_PREFIX + ''.join(secrets.choice(TICKET_ALPHABET) for _ in range(TICKET_RANDOM_LENGTH))


def ticket_payload(code, booking):
    # Содержимое QR-кода: только для визуальной сверки на входе, не подписано
    return {
        'code': code,
        'bookingId': str(booking.pk),
        'date': booking.booking_date.isoformat(),
        'time': booking.start_time.strftime('%H:%M'),
    }


def issue_ticket(booking):
    code = generate_ticket_code()
    while BookingTicket.objects.filter(ticket_code=code).exists():
        code = generate_ticket_code()
    return BookingTicket.objects.create(
        booking=booking,
        ticket_code=code,
        qr_data=json.dumps(ticket_payload(code, booking)),
    )
