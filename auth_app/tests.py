from django.test import TestCase
from rest_framework.test import APIClient
from rest_framework import status
from django.contrib.auth import get_user_model

User = get_user_model()


class AuthAPITestCase(TestCase):

    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user(
            username='owner',
            email='owner@example.com',
            password='testpass123',
            phone='9876543210'
        )

    def login(self, email='owner@example.com', password='testpass123'):
        return self.client.post('/api/auth/login/', {'email': email, 'password': password}, format='json')

    def test_register(self):
        """Тест регистрации владельца"""
        response = self.client.post('/api/auth/register/', {
            'username': 'newowner',
            'email': 'new@example.com',
            'password': 'secret123',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        user = User.objects.get(email='new@example.com')
        self.assertTrue(user.check_password('secret123'))
        self.assertEqual(user.role, 'owner')

    def test_register_duplicate_email(self):
        response = self.client.post('/api/auth/register/', {
            'username': 'another',
            'email': 'OWNER@example.com',
            'password': 'secret123',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('email', response.data)

    def test_login(self):
        response = self.login()

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)

    def test_login_wrong_password(self):
        response = self.login(password='wrong')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_me(self):
        """Профиль по access-токену"""
        access = self.login().data['access']
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {access}')

        response = self.client.get('/api/auth/me/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['email'], 'owner@example.com')
        self.assertEqual(response.data['role'], 'owner')
        self.assertEqual(response.data['phone'], '9876543210')

    def test_me_requires_token(self):
        response = self.client.get('/api/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_logout_blacklists_refresh(self):
        tokens = self.login().data
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {tokens['access']}")

        response = self.client.post('/api/auth/logout/', {'refresh': tokens['refresh']}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        response = self.client.post('/api/auth/logout/', {'refresh': tokens['refresh']}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
