from datetime import timedelta
from unittest import mock

from django.core.exceptions import ValidationError
from django.test import TestCase
from django.utils import timezone

from algorithms.smart_match import SORT_DISTANCE
from donors import services, signals, verification
from donors.models import Donor, DonorVerification
from donors.tests.factories import make_donor


def days_ago(days):
    return timezone.localdate() - timedelta(days=days)


class RosterServiceTests(TestCase):
    def test_create_donor_normalizes_and_defaults_whatsapp(self):
        donor = services.create_donor({
            'name': ' Asha Rao ',
            'blood_group': 'ab-',
            'phone': '9876543210',
            'city': 'Pune',
        })
        self.assertEqual(donor.name, 'Asha Rao')
        self.assertEqual(donor.blood_group, 'AB-')
        self.assertEqual(donor.whatsapp, '9876543210')
        self.assertTrue(donor.is_available)

    def test_create_donor_rejects_invalid_data(self):
        with self.assertRaises(ValidationError) as ctx:
            services.create_donor({'name': 'A', 'blood_group': 'X', 'phone': '1', 'city': ''})
        self.assertEqual(set(ctx.exception.message_dict), {'name', 'blood_group', 'phone', 'city'})
        self.assertFalse(Donor.objects.exists())

    def test_roster_writes_publish_signal(self):
        receiver = mock.Mock()
        signals.donor_roster_changed.connect(receiver, weak=False)
        self.addCleanup(signals.donor_roster_changed.disconnect, receiver)

        donor = make_donor()
        services.toggle_availability(donor)
        services.log_donation(donor)
        services.update_donor(donor, city='Delhi')
        services.delete_donor(donor)

        actions = [call.kwargs['action'] for call in receiver.call_args_list]
        self.assertEqual(actions, [signals.AVAILABILITY, signals.DONATION, signals.UPDATED, signals.DELETED])

    def test_update_donor(self):
        donor = make_donor()
        services.update_donor(donor, blood_group='b+', last_donation_date='2025-01-10')
        donor.refresh_from_db()
        self.assertEqual(donor.blood_group, 'B+')
        self.assertEqual(str(donor.last_donation_date), '2025-01-10')

    def test_update_donor_rejects_unknown_fields_and_bad_values(self):
        donor = make_donor()
        with self.assertRaises(ValidationError):
            services.update_donor(donor, donation_count=0)
        with self.assertRaises(ValidationError):
            services.update_donor(donor, blood_group='XYZ')
        with self.assertRaises(ValidationError):
            services.update_donor(donor, phone='123')

    def test_future_donation_dates_are_rejected(self):
        tomorrow = timezone.localdate() + timedelta(days=1)
        with self.assertRaises(ValidationError) as ctx:
            services.create_donor({
                'name': 'Asha Rao', 'blood_group': 'O+', 'phone': '9876543210',
                'city': 'Pune', 'last_donation_date': tomorrow,
            })
        self.assertIn('last_donation_date', ctx.exception.message_dict)

        donor = make_donor()
        with self.assertRaises(ValidationError):
            services.update_donor(donor, last_donation_date=tomorrow.isoformat())
        with self.assertRaises(ValidationError) as ctx:
            services.log_donation(donor, donated_on=timezone.localdate() + timedelta(days=120))
        self.assertIn('date_donated', ctx.exception.message_dict)

        donor.refresh_from_db()
        self.assertIsNone(donor.last_donation_date)
        self.assertEqual(donor.donation_count, 0)
        self.assertFalse(donor.donation_history.exists())

    def test_phone_change_drops_phone_verification(self):
        donor = make_donor()
        otp = verification.start_phone_verification(donor, donor.phone)
        verification.verify_phone_otp(donor, otp)
        self.assertTrue(donor.phone_verified)

        services.update_donor(donor, phone='9123456780')
        donor.refresh_from_db()
        self.assertFalse(donor.phone_verified)
        record = DonorVerification.objects.get(donor=donor)
        self.assertFalse(record.phone_verified)
        self.assertIsNone(record.phone_verified_at)

    def test_same_phone_keeps_phone_verification(self):
        donor = make_donor()
        otp = verification.start_phone_verification(donor, donor.phone)
        verification.verify_phone_otp(donor, otp)

        services.update_donor(donor, phone=f' {donor.phone} ', city='Delhi')
        donor.refresh_from_db()
        self.assertTrue(donor.phone_verified)

    def test_toggle_availability(self):
        donor = make_donor()
        services.toggle_availability(donor)
        donor.refresh_from_db()
        self.assertFalse(donor.is_available)

    def test_log_donation_links_emergency(self):
        from emergencies.services import create_emergency

        emergency = create_emergency({
            'blood_group': 'O+', 'hospital': 'KEM', 'city': 'Mumbai',
            'contact_name': 'Dr Rao', 'contact_phone': '9876543210',
        })
        donor = make_donor()
        entry = services.log_donation(donor, emergency=emergency)
        self.assertEqual(entry.emergency, emergency)
        self.assertEqual(donor.donation_count, 1)


class SearchTests(TestCase):
    def test_filters(self):
        make_donor(name='Pune O+', city='Pune', blood_group='O+')
        make_donor(name='Mumbai A+', city='Navi Mumbai', blood_group='A+')
        make_donor(name='Away', city='Mumbai', blood_group='A+', is_available=False)
        make_donor(name='Cooling', city='Mumbai', blood_group='A+', last_donation_date=days_ago(10))

        names = [d.name for d in services.search_donors(blood_group='a+', city='mumbai')]
        self.assertEqual(names, ['Mumbai A+'])

        names = {d.name for d in services.search_donors(blood_group='A+', eligible_only=False)}
        self.assertEqual(names, {'Mumbai A+', 'Cooling'})

        self.assertEqual(services.search_donors(blood_group='nope'), [])

    def test_sort_modes(self):
        verified = make_donor(name='verified', is_verified=True, donation_count=1)
        veteran = make_donor(name='veteran', donation_count=20)
        fresh = make_donor(name='fresh')
        Donor.objects.filter(pk__in=[verified.pk, veteran.pk]).update(updated_at=timezone.now() - timedelta(days=60))

        self.assertEqual([d.name for d in services.search_donors()], ['verified', 'veteran', 'fresh'])
        self.assertEqual(
            [d.name for d in services.search_donors(sort_by=services.SORT_DONATIONS)],
            ['veteran', 'verified', 'fresh'],
        )
        self.assertEqual(services.search_donors(sort_by=services.SORT_RECENT)[0], fresh)


class MatchDonorsTests(TestCase):
    def test_loads_compatible_available_donors(self):
        exact = make_donor(name='exact', blood_group='A+')
        make_donor(name='universal', blood_group='O-')
        make_donor(name='incompatible', blood_group='B+')
        make_donor(name='away', blood_group='A+', is_available=False)
        make_donor(name='elsewhere', blood_group='A+', city='Delhi')

        matches = services.match_donors('a+', city=' mumbai ')
        self.assertEqual([m.donor.name for m in matches], ['exact', 'universal'])
        self.assertEqual(matches[0].donor, exact)

    def test_distance_sort_with_location(self):
        make_donor(name='pune', latitude=18.5204, longitude=73.8567)
        make_donor(name='thane', latitude=19.2183, longitude=72.9781)
        matches = services.match_donors('O+', patient_location=(19.0760, 72.8777), sort_by=SORT_DISTANCE)
        self.assertEqual([m.donor.name for m in matches], ['thane', 'pune'])

    def test_unknown_type(self):
        make_donor()
        self.assertEqual(services.match_donors('??'), [])
