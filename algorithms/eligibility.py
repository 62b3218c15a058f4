"""
Donation eligibility - days since the last donation and the 90-day rule.

Dates arrive in whatever shape the caller has them: a date, a datetime,
an ISO string, an epoch number or a wrapped timestamp object. Anything that
cannot be read as a date counts as "never donated".
"""
from dataclasses import dataclass
from datetime import date, datetime, timezone as dt_timezone
from typing import Optional

from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

from algorithms.constants import COOLING_PERIOD_DAYS

# Method names of timestamp wrappers that can hand back a datetime
TIMESTAMP_CONVERTERS = ('to_datetime', 'to_pydatetime', 'toDate')


@dataclass(frozen=True)
class EligibilityResult:
    eligible: bool
    days_since_donation: Optional[int]
    message: str


def to_date(value) -> Optional[date]:
    """
    Normalize a date-like value to a plain calendar date.

    Args:
        value: None, date, datetime, ISO string, epoch seconds or a wrapped
            timestamp exposing to_datetime()/to_pydatetime()/toDate()

    Returns:
        date, or None when the value is missing or cannot be parsed
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        if timezone.is_aware(value):
            return timezone.localdate(value)
        return value.date()

    if isinstance(value, date):
        return value

    # bool is an int subclass, never a timestamp
    if isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        try:
            return to_date(datetime.fromtimestamp(value, tz=dt_timezone.utc))
        except (OverflowError, OSError, ValueError):
            return None

    if isinstance(value, str):
        raw = value.strip()
        if not raw:
            return None
        try:
            parsed = parse_datetime(raw) or parse_date(raw)
        except ValueError:
            return None
        return to_date(parsed)

    for attr in TIMESTAMP_CONVERTERS:
        converter = getattr(value, attr, None)
        if callable(converter):
            try:
                return to_date(converter())
            except (TypeError, ValueError, OverflowError):
                return None

    return None


def today(now=None) -> date:
    """The reference "today"; defaults to the local date of the wall clock."""
    reference = to_date(now) if now is not None else None
    return reference or timezone.localdate()


def days_since(value, now=None) -> Optional[int]:
    """Signed whole days from a date-like value to today; negative when it lies ahead."""
    then = to_date(value)
    if then is None:
        return None
    return (today(now) - then).days


def days_between(value, now=None) -> Optional[int]:
    """Whole days between a date-like value and today, never negative."""
    days = days_since(value, now)
    if days is None:
        return None
    return abs(days)


def calculate_days_since_donation(last_donation_date, now=None) -> Optional[int]:
    """
    Days since the last donation, or None when the donor never donated.
    """
    return days_between(last_donation_date, now)


def is_eligible_to_donate(last_donation_date, now=None) -> bool:
    """
    First-time donors are always eligible, everyone else after 90 days.
    """
    days = calculate_days_since_donation(last_donation_date, now)
    if days is None:
        return True
    return days >= COOLING_PERIOD_DAYS


def get_eligibility_status(last_donation_date, now=None) -> EligibilityResult:
    days = calculate_days_since_donation(last_donation_date, now)
    if days is None:
        return EligibilityResult(True, None, 'Eligible (First Time)')

    if days >= COOLING_PERIOD_DAYS:
        return EligibilityResult(True, days, 'Eligible')

    return EligibilityResult(False, days, f'Wait {COOLING_PERIOD_DAYS - days} more days')
