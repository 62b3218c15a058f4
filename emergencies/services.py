# emergencies/services.py
"""
Emergency Broadcast Service
Creates emergency blood requests, tracks their lifecycle and finds donors for them
"""
import logging
from urllib.parse import quote

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from algorithms.blood_compatibility import normalize_blood_type
from algorithms.smart_match import SORT_ELIGIBILITY
from donors.services import match_donors
from emergencies.models import Emergency, EmergencyResponse

logger = logging.getLogger(__name__)

WHATSAPP_SHARE_URL = 'https://wa.me/?text='

# Characters encodeURIComponent leaves alone
_URI_SAFE = "-_.!~*'()"


class EmergencyStateError(Exception):
    """Illegal emergency status transition."""


def create_emergency(data, created_by=None, now=None):
    """
    Open a new emergency. Expiry follows urgency: critical 24h, urgent 3 days,
    standard 7 days.

    Raises:
        ValidationError: unknown blood group or urgency, missing fields
    """
    now = now or timezone.now()

    blood_group = normalize_blood_type(data.get('blood_group'))
    if blood_group is None:
        raise ValidationError({'blood_group': "Invalid blood group."})

    urgency = data.get('urgency') or Emergency.URGENCY_URGENT
    if urgency not in Emergency.EXPIRY:
        raise ValidationError({'urgency': f"Unknown urgency: {urgency}"})

    emergency = Emergency(
        blood_group=blood_group,
        units_needed=data.get('units_needed') or 1,
        hospital=(data.get('hospital') or '').strip(),
        city=(data.get('city') or '').strip(),
        contact_name=(data.get('contact_name') or '').strip(),
        contact_phone=(data.get('contact_phone') or '').strip(),
        urgency=urgency,
        notes=data.get('notes') or '',
        patient_name=data.get('patient_name') or '',
        created_by=created_by,
        expires_at=Emergency.expiry_for(urgency, now),
    )
    emergency.full_clean(exclude=['created_by'])
    emergency.save()

    logger.info(f"Emergency #{emergency.id} created: {blood_group} at {emergency.hospital} ({urgency})")
    return emergency


def get_active_emergencies(blood_group=None, city=None, limit=20):
    queryset = Emergency.objects.filter(active=True)

    if blood_group:
        normalized = normalize_blood_type(blood_group)
        if normalized is None:
            return []
        queryset = queryset.filter(blood_group=normalized)

    if city:
        queryset = queryset.filter(city__icontains=city.strip())

    return list(queryset.order_by('-created_at')[:limit])


def get_matching_donors(emergency, now=None):
    """
    Compatible, available donors for an emergency, in the emergency's city when
    it names one, longest since last donation first. Donors past the 56-day
    emergency minimum count as able to donate.
    """
    return match_donors(
        emergency.blood_group,
        city=emergency.city or None,
        sort_by=SORT_ELIGIBILITY,
        emergency_override=True,
        now=now,
    )


def update_emergency_status(emergency, status, notes=''):
    """
    Move an active emergency to another status.

    Raises:
        EmergencyStateError: unknown status, or the emergency is already closed
    """
    valid = dict(Emergency.STATUS_CHOICES)
    if status not in valid:
        raise EmergencyStateError(f"Unknown status: {status}")

    # Only a row that is still active in the database may move
    changed = Emergency.objects.filter(pk=emergency.pk, status=Emergency.STATUS_ACTIVE).update(
        status=status,
        active=status == Emergency.STATUS_ACTIVE,
        status_notes=notes,
        updated_at=timezone.now(),
    )
    emergency.refresh_from_db()
    if not changed:
        raise EmergencyStateError(
            f"Emergency #{emergency.id} is already {emergency.status}"
        )

    logger.info(f"Emergency #{emergency.id} -> {status}")
    return emergency


def fulfill_emergency(emergency, fulfilled_by=None):
    notes = f"Fulfilled by donor {fulfilled_by}" if fulfilled_by else 'Blood requirement fulfilled'
    return update_emergency_status(emergency, Emergency.STATUS_FULFILLED, notes)


def cancel_emergency(emergency, reason=''):
    return update_emergency_status(emergency, Emergency.STATUS_CANCELLED, reason)


def increment_view_count(emergency):
    Emergency.objects.filter(pk=emergency.pk).update(view_count=F('view_count') + 1)
    emergency.refresh_from_db(fields=['view_count'])
    return emergency.view_count


def record_donor_response(emergency, donor=None, response_type=EmergencyResponse.CLICKED):
    """
    Raises:
        ValidationError: unknown response type
        EmergencyStateError: the emergency is closed
    """
    if response_type not in dict(EmergencyResponse.TYPE_CHOICES):
        raise ValidationError({'response_type': f"Unknown response type: {response_type}"})

    with transaction.atomic():
        counted = Emergency.objects.filter(pk=emergency.pk, active=True).update(
            response_count=F('response_count') + 1
        )
        if not counted:
            emergency.refresh_from_db(fields=['status', 'active'])
            raise EmergencyStateError(f"Emergency #{emergency.id} is {emergency.status}")
        response = EmergencyResponse.objects.create(
            emergency=emergency,
            donor=donor,
            response_type=response_type,
        )

    if donor is not None:
        donor.touch()
    emergency.refresh_from_db(fields=['response_count'])
    logger.info(f"Emergency #{emergency.id}: {response_type} response from donor #{getattr(donor, 'id', None)}")
    return response


def build_whatsapp_text(emergency):
    lines = [
        "🚨 *URGENT BLOOD NEEDED*",
        "",
        f"🩸 Blood Group: *{emergency.blood_group}*",
        f"🏥 Hospital: {emergency.hospital}",
        f"📍 City: {emergency.city}",
    ]
    if emergency.patient_name:
        lines.append(f"👤 Patient: {emergency.patient_name}")
    lines += [
        f"⚡ Urgency: {emergency.urgency.upper()}",
        "",
        f"📞 Contact: {emergency.contact_phone}",
    ]
    if emergency.notes:
        lines.append(f"📝 Notes: {emergency.notes}")
    lines += [
        "",
        "If you can help, please contact immediately!",
        "",
        "_via LifeFlow Blood Donor Finder_",
    ]
    return "\n".join(lines)


def generate_whatsapp_message(emergency):
    """Share text for an emergency, URL-encoded for a wa.me link"""
    return quote(build_whatsapp_text(emergency), safe=_URI_SAFE)


def whatsapp_share_url(emergency):
    return WHATSAPP_SHARE_URL + generate_whatsapp_message(emergency)


def expire_stale_emergencies(now=None):
    """Close every active emergency past its expiry. Returns how many were closed."""
    now = now or timezone.now()
    expired = Emergency.objects.filter(active=True, expires_at__lte=now).update(
        status=Emergency.STATUS_EXPIRED,
        active=False,
        status_notes='Expired automatically',
        updated_at=now,
    )
    if expired:
        logger.info(f"Expired {expired} emergencies")
    return expired
