from rest_framework import status
from rest_framework.test import APITestCase

from accounts import roles
from accounts.models import CustomUser
from donors.tests.factories import make_donor
from emergencies import services
from emergencies.models import Emergency
from emergencies.tests.factories import make_emergency

PAYLOAD = {
    'blood_group': 'b+',
    'units_needed': 2,
    'hospital': 'Ruby Hall',
    'city': 'Pune',
    'contact_name': 'Dr Joshi',
    'contact_phone': '9823456710',
    'urgency': 'critical',
}


class EmergencyApiTests(APITestCase):
    def setUp(self):
        self.admin = CustomUser.objects.create_user(
            username='admin', email='admin@example.com', password='pw', role=roles.ADMIN,
        )
        self.donor_user = CustomUser.objects.create_user(
            username='donor', email='donor@example.com', password='pw', role=roles.DONOR,
        )

    def test_create_requires_admin(self):
        self.assertEqual(
            self.client.post('/api/emergencies/', PAYLOAD, format='json').status_code,
            status.HTTP_401_UNAUTHORIZED,
        )

        self.client.force_authenticate(self.donor_user)
        self.assertEqual(
            self.client.post('/api/emergencies/', PAYLOAD, format='json').status_code,
            status.HTTP_403_FORBIDDEN,
        )

        self.client.force_authenticate(self.admin)
        response = self.client.post('/api/emergencies/', PAYLOAD, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['blood_group'], 'B+')
        self.assertEqual(response.data['created_by_username'], 'admin')
        self.assertIsNotNone(response.data['expires_at'])

    def test_create_rejects_bad_blood_group(self):
        self.client.force_authenticate(self.admin)
        response = self.client.post('/api/emergencies/', {**PAYLOAD, 'blood_group': 'C+'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('blood_group', response.data)

    def test_public_list_shows_active_only(self):
        active = make_emergency()
        closed = make_emergency()
        services.cancel_emergency(closed)

        response = self.client.get('/api/emergencies/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row['id'] for row in response.data['results']], [active.id])

        # ?all=1 is ignored for the public
        response = self.client.get('/api/emergencies/', {'all': '1'})
        self.assertEqual(response.data['count'], 1)

        self.client.force_authenticate(self.admin)
        response = self.client.get('/api/emergencies/', {'all': '1'})
        self.assertEqual(response.data['count'], 2)

    def test_fulfill_and_cancel(self):
        emergency = make_emergency()
        self.client.force_authenticate(self.admin)

        response = self.client.post(f'/api/emergencies/{emergency.id}/fulfill/', {'fulfilled_by': 'Ravi'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], Emergency.STATUS_FULFILLED)

        response = self.client.post(f'/api/emergencies/{emergency.id}/cancel/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('status', response.data)

    def test_view_and_respond_are_public(self):
        emergency = make_emergency()

        response = self.client.post(f'/api/emergencies/{emergency.id}/view/')
        self.assertEqual(response.data['view_count'], 1)

        response = self.client.post(f'/api/emergencies/{emergency.id}/respond/', {'response_type': 'called'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['response_count'], 1)
        self.assertIsNone(response.data['donor'])

        response = self.client.post(f'/api/emergencies/{emergency.id}/respond/', {'response_type': 'waved'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_respond_attributes_linked_donor(self):
        emergency = make_emergency()
        donor = make_donor(user=self.donor_user)
        self.client.force_authenticate(self.donor_user)

        response = self.client.post(f'/api/emergencies/{emergency.id}/respond/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['donor'], donor.id)
        self.assertEqual(response.data['response_type'], 'clicked')

    def test_matching_donors_is_admin_only(self):
        emergency = make_emergency()
        make_donor(name='Match')
        url = f'/api/emergencies/{emergency.id}/matching-donors/'

        self.client.force_authenticate(self.donor_user)
        self.assertEqual(self.client.get(url).status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(self.admin)
        response = self.client.get(url)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['donor']['name'], 'Match')

    def test_whatsapp(self):
        emergency = make_emergency()
        response = self.client.get(f'/api/emergencies/{emergency.id}/whatsapp/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['url'].startswith('https://wa.me/?text='))
        self.assertIn('O%2B', response.data['message'])
