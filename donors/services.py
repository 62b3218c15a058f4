# donors/services.py
"""
Donor roster operations shared by the API, the admin and management commands
"""
import logging

from django.core.exceptions import ValidationError
from django.db import transaction

from algorithms.blood_compatibility import get_compatible_donors, normalize_blood_type
from algorithms.eligibility import is_eligible_to_donate, to_date
from algorithms.records import most_recent_activity
from algorithms.smart_match import SORT_PRIORITY, smart_match
from donors import signals
from donors.models import Donor, DonorVerification
from donors.validators import is_future_date, validate_donor_data

logger = logging.getLogger(__name__)

# Search page sort modes
SORT_MATCH = 'match'
SORT_DONATIONS = 'donations'
SORT_RECENT = 'recent'

VERIFIED_SEARCH_BONUS = 50

EDITABLE_FIELDS = (
    'name', 'blood_group', 'phone', 'whatsapp', 'city', 'latitude', 'longitude',
    'last_donation_date', 'is_available',
)


def _publish(donor, action):
    signals.donor_roster_changed.send(sender=Donor, donor=donor, action=action)


def create_donor(data, user=None):
    """
    Validate a registration payload and create the donor.

    Raises:
        ValidationError: with a field -> message dict
    """
    is_valid, errors = validate_donor_data(data)
    if not is_valid:
        raise ValidationError(errors)

    phone = data['phone'].strip()
    donor = Donor.objects.create(
        user=user,
        name=data['name'].strip(),
        blood_group=normalize_blood_type(data['blood_group']),
        phone=phone,
        whatsapp=(data.get('whatsapp') or phone).strip(),
        city=data['city'].strip(),
        latitude=data.get('latitude'),
        longitude=data.get('longitude'),
        last_donation_date=to_date(data.get('last_donation_date')),
        is_available=data.get('is_available', True),
    )
    logger.info(f"Donor #{donor.id} created ({donor.blood_group}, {donor.city})")
    _publish(donor, signals.CREATED)
    return donor


def update_donor(donor, **changes):
    """
    Apply editable field changes. A new phone number drops phone verification.

    Raises:
        ValidationError: unknown fields or invalid values
    """
    unknown = set(changes) - set(EDITABLE_FIELDS)
    if unknown:
        raise ValidationError({field: "Field cannot be edited." for field in sorted(unknown)})

    if 'blood_group' in changes:
        normalized = normalize_blood_type(changes['blood_group'])
        if normalized is None:
            raise ValidationError({'blood_group': "Invalid blood group."})
        changes['blood_group'] = normalized
    if 'last_donation_date' in changes:
        if is_future_date(changes['last_donation_date']):
            raise ValidationError({'last_donation_date': "Donation date cannot be in the future."})
        changes['last_donation_date'] = to_date(changes['last_donation_date'])

    phone_changed = False
    if 'phone' in changes:
        changes['phone'] = str(changes['phone'] or '').strip()
        phone_changed = changes['phone'] != donor.phone

    for field, value in changes.items():
        setattr(donor, field, value)
    if phone_changed:
        donor.phone_verified = False
    donor.full_clean(exclude=['user'])

    with transaction.atomic():
        donor.save()
        if phone_changed:
            DonorVerification.objects.filter(donor=donor).update(
                phone_verified=False,
                phone_verified_at=None,
                otp_hash='',
                otp_expires_at=None,
            )

    logger.info(f"Donor #{donor.id} updated: {sorted(changes)}")
    _publish(donor, signals.UPDATED)
    return donor


def delete_donor(donor):
    donor_id = donor.id
    _publish(donor, signals.DELETED)
    donor.delete()
    logger.info(f"Donor #{donor_id} deleted")


def toggle_availability(donor):
    donor.is_available = not donor.is_available
    donor.save(update_fields=['is_available', 'updated_at'])
    logger.info(f"Donor #{donor.id} availability -> {donor.is_available}")
    _publish(donor, signals.AVAILABILITY)
    return donor


def log_donation(donor, donated_on=None, units=1, notes='', emergency=None):
    if is_future_date(donated_on):
        raise ValidationError({'date_donated': "Donation date cannot be in the future."})

    with transaction.atomic():
        entry = donor.log_donation(donated_on=to_date(donated_on), units=units, notes=notes)
        if emergency is not None:
            entry.emergency = emergency
            entry.save(update_fields=['emergency'])
    logger.info(f"Donation logged for donor #{donor.id} (total {donor.donation_count})")
    _publish(donor, signals.DONATION)
    return entry


def search_donors(blood_group=None, city=None, eligible_only=True, sort_by=SORT_MATCH, now=None):
    """
    Donor browsing: exact blood group, city substring, optional 90-day filter.

    Sort modes:
        match     - verified donors first, then by donation count
        donations - lifetime donation count
        recent    - most recent activity
    """
    queryset = Donor.objects.filter(is_available=True)

    if blood_group:
        normalized = normalize_blood_type(blood_group)
        if normalized is None:
            return []
        queryset = queryset.filter(blood_group=normalized)

    if city:
        queryset = queryset.filter(city__icontains=city.strip())

    donors = list(queryset)
    if eligible_only:
        donors = [d for d in donors if is_eligible_to_donate(d.last_donation_date, now=now)]

    if sort_by == SORT_DONATIONS:
        donors.sort(key=lambda d: d.donation_count, reverse=True)
    elif sort_by == SORT_RECENT:
        donors.sort(key=_activity_ordinal, reverse=True)
    else:
        donors.sort(
            key=lambda d: (VERIFIED_SEARCH_BONUS if d.is_verified else 0) + d.donation_count,
            reverse=True,
        )
    return donors


def _activity_ordinal(donor):
    active_on = most_recent_activity(donor)
    return active_on.toordinal() if active_on else 0


def match_donors(requested_blood_type, city=None, patient_location=None, max_distance_km=None,
                 sort_by=SORT_PRIORITY, eligible_only=False, emergency_override=False, now=None):
    """
    Load available donors of compatible blood groups and rank them with smart_match.
    """
    compatible_types = get_compatible_donors(requested_blood_type)
    if not compatible_types:
        return []

    queryset = Donor.objects.filter(blood_group__in=compatible_types, is_available=True)
    if city:
        queryset = queryset.filter(city__iexact=city.strip())

    return smart_match(
        requested_blood_type,
        queryset,
        patient_location=patient_location,
        max_distance_km=max_distance_km,
        sort_by=sort_by,
        eligible_only=eligible_only,
        available_only=True,
        emergency_override=emergency_override,
        now=now,
    )
