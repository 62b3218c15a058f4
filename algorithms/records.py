"""
Read-only access to donor records.

The algorithms accept Donor model instances, plain objects and dicts alike,
and tolerate the field aliases older donor records carry
(verified / is_verified, active / is_available, updated_at / last_active_at).
"""
from collections.abc import Mapping

from algorithms.blood_compatibility import normalize_blood_type
from algorithms.constants import ELITE_DONATION_THRESHOLD
from algorithms.eligibility import to_date


def get_field(donor, *names, default=None):
    """
    First non-None value among the given field names.

    Args:
        donor: model instance, object or mapping
        names: candidate attribute / key names, in order of preference

    Returns:
        The value found, or default
    """
    for name in names:
        if isinstance(donor, Mapping):
            value = donor.get(name)
        else:
            value = getattr(donor, name, None)
        if value is not None:
            return value
    return default


def blood_group(donor):
    return normalize_blood_type(get_field(donor, 'blood_group', 'blood_type', 'bloodGroup'))


def last_donation(donor):
    return get_field(donor, 'last_donation_date', 'lastDonationDate')


def _activity_dates(donor):
    return (
        to_date(get_field(donor, 'last_active_at', 'lastActiveAt')),
        to_date(get_field(donor, 'updated_at', 'updatedAt')),
    )


def last_activity(donor):
    """last_active_at when recorded, otherwise updated_at, as a date."""
    last_active, updated = _activity_dates(donor)
    return last_active if last_active is not None else updated


def most_recent_activity(donor):
    """Most recent of last_active_at / updated_at as a date, or None."""
    known = [d for d in _activity_dates(donor) if d is not None]
    return max(known) if known else None


def is_verified(donor):
    return bool(get_field(donor, 'is_verified', 'verified', 'isVerified', default=False))


def is_available(donor):
    return bool(get_field(donor, 'is_available', 'active', 'isAvailable', default=True))


def donation_count(donor):
    try:
        return int(get_field(donor, 'donation_count', 'donationCount', default=0))
    except (TypeError, ValueError):
        return 0


def is_elite(donor):
    flag = get_field(donor, 'is_elite_donor', 'isEliteDonor')
    if flag is not None:
        return bool(flag)
    return donation_count(donor) > ELITE_DONATION_THRESHOLD
