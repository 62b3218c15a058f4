from rest_framework import status
from rest_framework.test import APITestCase
from rest_framework_simplejwt.tokens import AccessToken

from accounts import roles
from accounts.models import CustomUser


class AuthApiTests(APITestCase):
    def setUp(self):
        self.user = CustomUser.objects.create_user(
            username='asha', email='Asha@Example.com', password='s3cret-pass', role=roles.ADMIN,
        )

    def test_register_creates_donor_account(self):
        response = self.client.post('/api/accounts/register/', {
            'username': 'ravi', 'email': 'ravi@example.com', 'password': 'another-pass',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['role'], roles.DONOR)
        self.assertIn('access', response.data['tokens'])
        self.assertEqual(CustomUser.objects.get(username='ravi').role, roles.DONOR)

    def test_register_rejects_duplicates_and_missing_fields(self):
        response = self.client.post('/api/accounts/register/', {
            'username': 'other', 'email': 'asha@example.com', 'password': 'x',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.post('/api/accounts/register/', {'username': 'x'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_login_by_email_or_username(self):
        for identifier in ('asha', 'asha@example.com'):
            response = self.client.post('/api/accounts/login/', {
                'username': identifier, 'password': 's3cret-pass',
            }, format='json')
            self.assertEqual(response.status_code, status.HTTP_200_OK, identifier)
            self.assertEqual(response.data['role'], roles.ADMIN)

    def test_login_with_bad_password(self):
        response = self.client.post('/api/accounts/login/', {
            'username': 'asha', 'password': 'wrong',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_token_carries_role_claim(self):
        response = self.client.post('/api/accounts/token/', {
            'username': 'asha', 'password': 's3cret-pass',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        token = AccessToken(response.data['access'])
        self.assertEqual(token['role'], roles.ADMIN)
        self.assertEqual(token['username'], 'asha')

    def test_me_requires_login(self):
        response = self.client.get('/api/accounts/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

        self.client.force_authenticate(self.user)
        response = self.client.get('/api/accounts/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['role_display'], 'Administrator')
        self.assertIn('manage_donors', response.data['permissions'])
