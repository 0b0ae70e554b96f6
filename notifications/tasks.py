from celery import shared_task
import logging

from .services import push_booking_notification, send_whatsapp_message

logger = logging.getLogger(__name__)


# Обе задачи "выстрелил и забыл": ошибки только логируются, повторов нет.

@shared_task
def send_booking_notification(payload):
    try:
        result = push_booking_notification(payload)
        logger.info(f"Push по брони {payload.get('booking_id')}: {result['message']}")
        return result
    except Exception as e:
        logger.error(f"Ошибка push-уведомления по брони {payload.get('booking_id')}: {str(e)}")
        return {'success': False, 'error': str(e)}


@shared_task
def send_whatsapp(payload):
    try:
        return send_whatsapp_message(payload)
    except Exception as e:
        logger.error(f"Ошибка WhatsApp-уведомления для {payload.get('to')}: {str(e)}")
        return {'success': False, 'error': str(e)}
