"""
Ретрансляция уведомлений во внешние сервисы.

Push: владелец площадки получает уведомление о новой брони на все свои
подписки; доставку выполняет внешний push-relay (PUSH_RELAY_URL).
WhatsApp: шаблонное сообщение клиенту через WhatsApp Business API, если заданы
WHATSAPP_BUSINESS_API_KEY и WHATSAPP_PHONE_NUMBER_ID, иначе ссылка wa.me
для ручной отправки.
"""
from django.conf import settings
from urllib.parse import quote
import logging
import re

import httpx

from .models import PushSubscription

logger = logging.getLogger(__name__)

BOOKING_CONFIRMATION = 'booking_confirmation'
BOOKING_REMINDER = 'booking_reminder'
BOOKING_CANCELLED = 'booking_cancelled'
MESSAGE_TYPES = (BOOKING_CONFIRMATION, BOOKING_REMINDER, BOOKING_CANCELLED)

# Символы, которые encodeURIComponent оставляет как есть
URI_SAFE = "-_.!~*'()"


def build_booking_push(payload):
    return {
        'title': 'New Booking!',
        'body': (
            f"{payload['customer_name']} booked {payload['turf_name']} for "
            f"{payload['booking_date']} at {payload['start_time']}. Amount: ₹{payload['amount']}"
        ),
        'data': {
            'booking_id': payload['booking_id'],
            'type': 'new_booking',
        },
    }


def push_booking_notification(payload):
    """
    Уведомляет владельца площадки о новой брони.
    :param payload: {turf_owner_id, booking_id, customer_name, booking_date, start_time, turf_name, amount}
    """
    subscriptions = list(PushSubscription.objects.filter(user_id=payload['turf_owner_id']))
    logger.info(f"Найдено подписок: {len(subscriptions)} для пользователя {payload['turf_owner_id']}")

    if not subscriptions:
        return {'success': True, 'message': 'No push subscriptions found for this user', 'subscriptions_count': 0}

    notification = build_booking_push(payload)
    relay_url = settings.PUSH_RELAY_URL
    if not relay_url:
        logger.info(f"PUSH_RELAY_URL не задан, уведомление не отправлено: {notification['body']}")
        return {
            'success': True,
            'message': f'Notification prepared for {len(subscriptions)} device(s)',
            'subscriptions_count': len(subscriptions),
            'sent': False,
        }

    response = httpx.post(
        relay_url,
        json={
            'subscriptions': [
                {'endpoint': s.endpoint, 'keys': {'p256dh': s.p256dh, 'auth': s.auth}}
                for s in subscriptions
            ],
            'notification': notification,
        },
        timeout=settings.NOTIFICATION_TIMEOUT,
    )
    response.raise_for_status()

    return {
        'success': True,
        'message': f'Notification sent to {len(subscriptions)} device(s)',
        'subscriptions_count': len(subscriptions),
        'sent': True,
    }


def format_phone(to):
    """Только цифры, с кодом страны"""
    country_code = settings.WHATSAPP_COUNTRY_CODE
    digits = re.sub(r'[^0-9]', '', to or '')
    if not digits.startswith(country_code):
        digits = country_code + digits
    return digits


def build_template_components(payload):
    """Имя шаблона WhatsApp и его параметры по типу сообщения"""
    message_type = payload.get('type') or BOOKING_CONFIRMATION
    customer = payload.get('customerName') or 'Customer'
    turf = payload.get('turfName') or 'Turf'
    booking_date = payload.get('bookingDate') or 'Date'
    booking_time = payload.get('bookingTime') or 'Time'

    if message_type == BOOKING_REMINDER:
        values = [customer, turf, booking_date, booking_time]
    elif message_type == BOOKING_CANCELLED:
        values = [customer, turf, booking_date]
    else:
        message_type = BOOKING_CONFIRMATION
        values = [
            customer, turf, booking_date, booking_time,
            f"₹{payload.get('amount') or 0}",
            payload.get('ticketCode') or '',
        ]

    components = [{
        'type': 'body',
        'parameters': [{'type': 'text', 'text': str(value)} for value in values],
    }]
    return message_type, components


def wa_me_link(phone, message):
    return f"https://wa.me/{phone}?text={quote(message or '', safe=URI_SAFE)}"


def send_whatsapp_message(payload):
    """
    Отправляет WhatsApp-сообщение клиенту.
    :param payload: {to, message, type, customerName, turfName, bookingDate, bookingTime, amount, ticketCode}
    """
    phone = format_phone(payload['to'])
    logger.info(f"[WhatsApp] {payload.get('type')} для {phone}")

    api_key = settings.WHATSAPP_BUSINESS_API_KEY
    phone_id = settings.WHATSAPP_PHONE_NUMBER_ID

    if api_key and phone_id:
        template_name, components = build_template_components(payload)
        try:
            response = httpx.post(
                f"{settings.WHATSAPP_API_URL}/{phone_id}/messages",
                headers={'Authorization': f'Bearer {api_key}'},
                json={
                    'messaging_product': 'whatsapp',
                    'recipient_type': 'individual',
                    'to': phone,
                    'type': 'template',
                    'template': {
                        'name': template_name,
                        'language': {'code': 'en'},
                        'components': components,
                    },
                },
                timeout=settings.NOTIFICATION_TIMEOUT,
            )
            data = response.json()
            if response.is_success:
                messages = data.get('messages') or [{}]
                return {
                    'success': True,
                    'messageId': messages[0].get('id'),
                    'method': 'whatsapp_business_api',
                    'message': 'WhatsApp notification sent successfully via Business API.',
                }
            logger.error(f"[WhatsApp] Ошибка API: {data}")
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"[WhatsApp] Business API недоступен, используем wa.me: {str(e)}")

    return {
        'success': True,
        'whatsappUrl': wa_me_link(phone, payload.get('message')),
        'method': 'wa_me_link',
        'message': (
            'WhatsApp notification prepared. Configure WHATSAPP_BUSINESS_API_KEY and '
            'WHATSAPP_PHONE_NUMBER_ID for automated sending.'
        ),
    }
