import re

from django.core.exceptions import ValidationError
from django.utils import timezone

from algorithms.blood_compatibility import normalize_blood_type
from algorithms.eligibility import to_date

# Indian mobile numbers: optional +91 or 0 prefix, 10 digits starting 6-9
INDIAN_PHONE_RE = re.compile(r'^(?:\+91|0)?[6-9]\d{9}$')


def is_valid_indian_phone(phone):
    return bool(phone) and bool(INDIAN_PHONE_RE.match(str(phone).strip()))


def validate_indian_phone(value):
    """Model/serializer field validator"""
    if not is_valid_indian_phone(value):
        raise ValidationError("Invalid Indian phone number.", code='invalid_phone')


def is_future_date(value):
    parsed = to_date(value)
    return parsed is not None and parsed > timezone.localdate()


def validate_not_future(value):
    """Donation dates cannot be in the future"""
    if is_future_date(value):
        raise ValidationError("Donation date cannot be in the future.", code='future_date')


def validate_blood_group(value):
    if normalize_blood_type(value) is None:
        raise ValidationError(f"{value!r} is not a valid blood group.", code='invalid_blood_group')


def validate_donor_data(data):
    """
    Validate a donor registration payload.

    Returns:
        Tuple (is_valid, errors) where errors maps field name -> message
    """
    errors = {}

    name = (data.get('name') or '').strip()
    if len(name) < 2:
        errors['name'] = "Name must be at least 2 characters."

    blood_group = data.get('blood_group')
    if not blood_group:
        errors['blood_group'] = "Blood group is required."
    elif normalize_blood_type(blood_group) is None:
        errors['blood_group'] = "Invalid blood group."

    if not (data.get('city') or '').strip():
        errors['city'] = "City is required."

    phone = data.get('phone')
    if not phone:
        errors['phone'] = "Phone number is required."
    elif not is_valid_indian_phone(phone):
        errors['phone'] = "Invalid Indian phone number."

    # WhatsApp defaults to phone if empty, but if provided check validity
    whatsapp = data.get('whatsapp')
    if whatsapp and not is_valid_indian_phone(whatsapp):
        errors['whatsapp'] = "Invalid WhatsApp number."

    if is_future_date(data.get('last_donation_date')):
        errors['last_donation_date'] = "Donation date cannot be in the future."

    return not errors, errors
