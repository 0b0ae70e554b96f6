from django.test import TestCase, SimpleTestCase, override_settings
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework import status
from unittest.mock import patch, Mock

import httpx

from .models import PushSubscription
from .services import (
    format_phone, build_template_components, wa_me_link,
    send_whatsapp_message, push_booking_notification
)
from .tasks import send_booking_notification, send_whatsapp

User = get_user_model()

WHATSAPP_KEYS = {'WHATSAPP_BUSINESS_API_KEY': 'secret', 'WHATSAPP_PHONE_NUMBER_ID': '12345'}
NO_WHATSAPP_KEYS = {'WHATSAPP_BUSINESS_API_KEY': '', 'WHATSAPP_PHONE_NUMBER_ID': ''}


def whatsapp_payload(**overrides):
    payload = {
        'to': '+91 98765-43210',
        'message': 'Hi Ravi, your booking is confirmed',
        'type': 'booking_confirmation',
        'customerName': 'Ravi',
        'turfName': 'Green Turf',
        'bookingDate': 'Jun 4, 2030',
        'bookingTime': '18:00-20:00',
        'amount': '1000.00',
        'ticketCode': 'TMAB12CD',
    }
    payload.update(overrides)
    return payload


class WhatsAppFormattingTestCase(SimpleTestCase):

    def test_format_phone(self):
        """Только цифры и код страны"""
        self.assertEqual(format_phone('+91 98765-43210'), '919876543210')
        self.assertEqual(format_phone('98765 43210'), '919876543210')

    def test_template_confirmation(self):
        name, components = build_template_components(whatsapp_payload())

        self.assertEqual(name, 'booking_confirmation')
        texts = [p['text'] for p in components[0]['parameters']]
        self.assertEqual(texts, ['Ravi', 'Green Turf', 'Jun 4, 2030', '18:00-20:00', '₹1000.00', 'TMAB12CD'])

    def test_template_cancelled(self):
        name, components = build_template_components(whatsapp_payload(type='booking_cancelled'))

        self.assertEqual(name, 'booking_cancelled')
        self.assertEqual(len(components[0]['parameters']), 3)

    def test_template_defaults(self):
        name, components = build_template_components({'type': 'unknown'})

        self.assertEqual(name, 'booking_confirmation')
        self.assertEqual(components[0]['parameters'][0]['text'], 'Customer')

    def test_wa_me_link_encoding(self):
        self.assertEqual(
            wa_me_link('919876543210', "Ravi's slot: 6-8 (paid)"),
            "https://wa.me/919876543210?text=Ravi's%20slot%3A%206-8%20(paid)"
        )


class WhatsAppSendTestCase(SimpleTestCase):

    @override_settings(**NO_WHATSAPP_KEYS)
    @patch('notifications.services.httpx.post')
    def test_fallback_without_keys(self, post):
        """Без ключей - ссылка wa.me, запросов нет"""
        result = send_whatsapp_message(whatsapp_payload())

        post.assert_not_called()
        self.assertTrue(result['success'])
        self.assertEqual(result['method'], 'wa_me_link')
        self.assertTrue(result['whatsappUrl'].startswith('https://wa.me/919876543210?text='))

    @override_settings(**WHATSAPP_KEYS)
    @patch('notifications.services.httpx.post')
    def test_business_api(self, post):
        post.return_value = Mock(is_success=True, json=Mock(return_value={'messages': [{'id': 'wamid.1'}]}))

        result = send_whatsapp_message(whatsapp_payload())

        self.assertEqual(result['method'], 'whatsapp_business_api')
        self.assertEqual(result['messageId'], 'wamid.1')

        url = post.call_args[0][0]
        body = post.call_args.kwargs['json']
        self.assertTrue(url.endswith('/12345/messages'))
        self.assertEqual(post.call_args.kwargs['headers'], {'Authorization': 'Bearer secret'})
        self.assertEqual(body['to'], '919876543210')
        self.assertEqual(body['template']['name'], 'booking_confirmation')

    @override_settings(**WHATSAPP_KEYS)
    @patch('notifications.services.httpx.post')
    def test_business_api_error_falls_back(self, post):
        post.return_value = Mock(is_success=False, json=Mock(return_value={'error': {'message': 'bad token'}}))

        result = send_whatsapp_message(whatsapp_payload())

        self.assertEqual(result['method'], 'wa_me_link')

    @override_settings(**WHATSAPP_KEYS)
    @patch('notifications.services.httpx.post', side_effect=httpx.ConnectError('down'))
    def test_business_api_unreachable_falls_back(self, post):
        result = send_whatsapp_message(whatsapp_payload())

        self.assertTrue(result['success'])
        self.assertEqual(result['method'], 'wa_me_link')


class PushNotificationTestCase(TestCase):

    def setUp(self):
        self.owner = User.objects.create_user(username='owner', email='owner@example.com', password='testpass123')
        self.payload = {
            'turf_owner_id': self.owner.id,
            'booking_id': 'b-1',
            'customer_name': 'Ravi',
            'booking_date': 'Jun 4, 2030',
            'start_time': '18:00',
            'turf_name': 'Green Turf',
            'amount': '1000.00',
        }

    def subscribe(self):
        PushSubscription.objects.create(
            user=self.owner, endpoint='https://push.example.com/sub/1', p256dh='key', auth='auth'
        )

    def test_no_subscriptions(self):
        result = push_booking_notification(self.payload)

        self.assertTrue(result['success'])
        self.assertEqual(result['message'], 'No push subscriptions found for this user')
        self.assertEqual(result['subscriptions_count'], 0)

    @override_settings(PUSH_RELAY_URL='')
    def test_without_relay(self):
        self.subscribe()

        result = push_booking_notification(self.payload)

        self.assertEqual(result['subscriptions_count'], 1)
        self.assertFalse(result['sent'])

    @override_settings(PUSH_RELAY_URL='https://relay.example.com/push')
    @patch('notifications.services.httpx.post')
    def test_relay(self, post):
        self.subscribe()

        result = push_booking_notification(self.payload)

        self.assertTrue(result['sent'])
        body = post.call_args.kwargs['json']
        self.assertEqual(body['subscriptions'][0]['keys'], {'p256dh': 'key', 'auth': 'auth'})
        self.assertEqual(body['notification']['title'], 'New Booking!')
        self.assertIn('Ravi booked Green Turf', body['notification']['body'])

    @override_settings(PUSH_RELAY_URL='https://relay.example.com/push')
    @patch('notifications.services.httpx.post', side_effect=httpx.ConnectError('down'))
    def test_task_swallows_errors(self, post):
        """Задача не падает при ошибке доставки"""
        self.subscribe()

        result = send_booking_notification(self.payload)

        self.assertFalse(result['success'])
        self.assertIn('down', result['error'])

    @patch('notifications.tasks.send_whatsapp_message', side_effect=RuntimeError('boom'))
    def test_whatsapp_task_swallows_errors(self, send):
        result = send_whatsapp(whatsapp_payload())

        self.assertEqual(result, {'success': False, 'error': 'boom'})


class PushSubscriptionAPITestCase(TestCase):

    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user(username='owner', email='owner@example.com', password='testpass123')
        self.client.force_authenticate(user=self.user)
        self.data = {'endpoint': 'https://push.example.com/sub/1', 'p256dh': 'key', 'auth': 'auth'}

    def test_subscribe(self):
        response = self.client.post('/api/notifications/subscriptions/', self.data, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(PushSubscription.objects.filter(user=self.user).count(), 1)

    def test_resubscribe_updates_keys(self):
        self.client.post('/api/notifications/subscriptions/', self.data, format='json')

        response = self.client.post(
            '/api/notifications/subscriptions/', dict(self.data, p256dh='new-key'), format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(PushSubscription.objects.get(user=self.user).p256dh, 'new-key')

    def test_unsubscribe(self):
        subscription = PushSubscription.objects.create(user=self.user, **self.data)

        response = self.client.delete(f'/api/notifications/subscriptions/{subscription.pk}/')

        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(PushSubscription.objects.exists())
