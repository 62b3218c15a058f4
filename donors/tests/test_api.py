from datetime import timedelta

from django.test import override_settings
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from accounts import roles
from accounts.models import CustomUser
from donors.models import Donor
from donors.tests.factories import make_donor


def make_user(username, role):
    return CustomUser.objects.create_user(
        username=username, email=f'{username}@example.com', password='pw-12345', role=role,
    )


class DonorApiTestCase(APITestCase):
    def setUp(self):
        self.admin = make_user('admin', roles.ADMIN)
        self.owner = make_user('owner', roles.DONOR)
        self.stranger = make_user('stranger', roles.DONOR)
        self.donor = make_donor(name='Owner', user=self.owner, latitude=19.0, longitude=72.8)


class RosterApiTests(DonorApiTestCase):
    def test_public_list_hides_coordinates(self):
        response = self.client.get('/api/donors/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        row = response.data['results'][0]
        self.assertNotIn('latitude', row)
        self.assertEqual(row['status']['status'], 'first_time')

    def test_admin_list_shows_coordinates(self):
        self.client.force_authenticate(self.admin)
        response = self.client.get('/api/donors/', {'blood_group': 'o+'})
        self.assertEqual(response.data['results'][0]['latitude'], 19.0)

    def test_create_requires_admin(self):
        payload = {'name': 'Ravi Kumar', 'blood_group': 'b-', 'phone': '9123456780', 'city': 'Delhi'}

        response = self.client.post('/api/donors/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

        self.client.force_authenticate(self.stranger)
        response = self.client.post('/api/donors/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(self.admin)
        response = self.client.post('/api/donors/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['blood_group'], 'B-')
        self.assertEqual(response.data['whatsapp'], '9123456780')

    def test_create_rejects_invalid_phone(self):
        self.client.force_authenticate(self.admin)
        response = self.client.post('/api/donors/', {
            'name': 'Ravi Kumar', 'blood_group': 'B-', 'phone': '12345', 'city': 'Delhi',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('phone', response.data)

    def test_update_accepts_lowercase_blood_group(self):
        self.client.force_authenticate(self.admin)
        response = self.client.patch(f'/api/donors/{self.donor.id}/', {'blood_group': 'ab+'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['blood_group'], 'AB+')

        response = self.client.patch(f'/api/donors/{self.donor.id}/', {'blood_group': 'Z+'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('blood_group', response.data)

    def test_create_rejects_future_donation_date(self):
        self.client.force_authenticate(self.admin)
        response = self.client.post('/api/donors/', {
            'name': 'Ravi Kumar', 'blood_group': 'B-', 'phone': '9123456780', 'city': 'Delhi',
            'last_donation_date': (timezone.localdate() + timedelta(days=30)).isoformat(),
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('last_donation_date', response.data)
        self.assertFalse(Donor.objects.filter(phone='9123456780').exists())

    def test_delete_by_admin(self):
        self.client.force_authenticate(self.admin)
        response = self.client.delete(f'/api/donors/{self.donor.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Donor.objects.exists())

    def test_search(self):
        make_donor(name='Cooling', last_donation_date=timezone.localdate() - timedelta(days=5))
        make_donor(name='Other group', blood_group='AB+')

        response = self.client.get('/api/donors/search/', {'blood_group': 'O+'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([d['name'] for d in response.data['results']], ['Owner'])

        response = self.client.get('/api/donors/search/', {'blood_group': 'O+', 'eligible_only': 'false'})
        self.assertEqual(response.data['count'], 2)


class OwnerActionTests(DonorApiTestCase):
    def test_toggle_availability(self):
        url = f'/api/donors/{self.donor.id}/toggle-availability/'

        self.assertEqual(self.client.post(url).status_code, status.HTTP_401_UNAUTHORIZED)

        self.client.force_authenticate(self.stranger)
        self.assertEqual(self.client.post(url).status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(self.owner)
        response = self.client.post(url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['is_available'])

    def test_log_donation(self):
        self.client.force_authenticate(self.owner)
        response = self.client.post(
            f'/api/donors/{self.donor.id}/log-donation/', {'units_donated': 1}, format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['donation_count'], 1)
        self.assertEqual(response.data['status']['status'], 'cooling')

        history = self.client.get(f'/api/donors/{self.donor.id}/history/')
        self.assertEqual(len(history.data), 1)

    def test_log_donation_rejects_future_date(self):
        self.client.force_authenticate(self.owner)
        response = self.client.post(f'/api/donors/{self.donor.id}/log-donation/', {
            'date_donated': (timezone.localdate() + timedelta(days=120)).isoformat(),
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('date_donated', response.data)

        self.donor.refresh_from_db()
        self.assertEqual(self.donor.donation_count, 0)
        self.assertIsNone(self.donor.last_donation_date)

    def test_status_emergency_override_is_admin_only(self):
        self.donor.last_donation_date = timezone.localdate() - timedelta(days=60)
        self.donor.save()
        url = f'/api/donors/{self.donor.id}/status/'

        response = self.client.get(url)
        self.assertEqual(response.data['status'], 'cooling')
        self.assertEqual(response.data['display']['label'], 'Cooling Period')

        response = self.client.get(url, {'emergency': '1'})
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(self.admin)
        response = self.client.get(url, {'emergency': '1'})
        self.assertEqual(response.data['status'], 'emergency')
        self.assertTrue(response.data['can_donate'])

    @override_settings(DEBUG=True)
    def test_phone_verification_flow(self):
        self.client.force_authenticate(self.owner)
        base = f'/api/donors/{self.donor.id}'

        response = self.client.post(f'{base}/verify-phone/start/', {'phone': self.donor.phone}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        otp = response.data['otp']

        response = self.client.post(f'{base}/verify-phone/confirm/', {'otp': otp}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['phone_verified'])

        response = self.client.get(f'{base}/verification/')
        self.assertEqual(response.data['level'], 'phone')
        self.assertEqual(response.data['badge']['label'], 'Phone Verified')

    def test_otp_is_not_returned_outside_debug(self):
        self.client.force_authenticate(self.owner)
        response = self.client.post(
            f'/api/donors/{self.donor.id}/verify-phone/start/', {'phone': self.donor.phone}, format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertNotIn('otp', response.data)

    def test_start_rejects_another_number(self):
        self.client.force_authenticate(self.owner)
        response = self.client.post(
            f'/api/donors/{self.donor.id}/verify-phone/start/', {'phone': '9123456780'}, format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('phone', response.data)

    def test_confirm_without_start(self):
        self.client.force_authenticate(self.owner)
        response = self.client.post(
            f'/api/donors/{self.donor.id}/verify-phone/confirm/', {'otp': '123456'}, format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('otp', response.data)

    def test_document_review(self):
        self.client.force_authenticate(self.owner)
        response = self.client.post(f'/api/donors/{self.donor.id}/verification/document/', {
            'document_url': 'https://example.com/id.png', 'document_type': 'aadhaar',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        self.assertEqual(self.client.get('/api/verifications/pending/').status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(self.admin)
        pending = self.client.get('/api/verifications/pending/')
        self.assertEqual([row['donor'] for row in pending.data], [self.donor.id])

        response = self.client.post(
            f'/api/donors/{self.donor.id}/verification/decide/', {'approved': True}, format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['level'], 'full')
        self.donor.refresh_from_db()
        self.assertTrue(self.donor.is_verified)


class MatchingApiTests(DonorApiTestCase):
    def test_smart_match(self):
        make_donor(name='Universal', blood_group='O-')
        make_donor(name='Wrong group', blood_group='B+')

        response = self.client.post('/api/smart-match/', {'blood_group': 'a+'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['blood_group'], 'A+')
        self.assertEqual(response.data['count'], 2)
        self.assertEqual(
            {row['donor']['name'] for row in response.data['results']}, {'Owner', 'Universal'},
        )

    def test_smart_match_with_location(self):
        response = self.client.post('/api/smart-match/', {
            'blood_group': 'O+', 'lat': 19.0760, 'lng': 72.8777, 'sort_by': 'distance',
        }, format='json')
        self.assertIsNotNone(response.data['results'][0]['distance_km'])

        response = self.client.post('/api/smart-match/', {'blood_group': 'O+', 'lat': 19.0}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_emergency_override_is_admin_only(self):
        response = self.client.post(
            '/api/smart-match/', {'blood_group': 'O+', 'emergency_override': True}, format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_compatibility(self):
        response = self.client.get('/api/compatibility/ab-/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['blood_type'], 'AB-')
        self.assertEqual(response.data['can_donate_to'], ['AB-', 'AB+'])
        self.assertEqual(response.data['can_receive_from'], ['O-', 'A-', 'B-', 'AB-'])

        response = self.client.get('/api/compatibility/XY/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_nearest_city(self):
        response = self.client.get('/api/cities/nearest/', {'lat': '18.53', 'lng': '73.85'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['city'], 'Pune')

        response = self.client.get('/api/cities/nearest/', {'lat': '18.53'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
