# algorithms/donor_status.py
"""
Automatic Donor Status System
Classifies a donor from their last donation and last activity dates
"""
from dataclasses import dataclass
from typing import Optional

from algorithms.constants import (
    COOLING_PERIOD_DAYS,
    EMERGENCY_MIN_DAYS,
    INACTIVE_THRESHOLD_DAYS,
)
from algorithms.eligibility import days_between, days_since
from algorithms.records import last_activity, last_donation


class Status:
    FIRST_TIME = 'first_time'   # Never donated before
    EMERGENCY = 'emergency'     # Admin override for emergencies
    INACTIVE = 'inactive'       # No activity for 6+ months
    ELIGIBLE = 'eligible'       # Can donate now
    COOLING = 'cooling'         # Recently donated, waiting

    CHOICES = [
        (FIRST_TIME, 'First-Time Donor'),
        (EMERGENCY, 'Emergency Eligible'),
        (INACTIVE, 'Inactive'),
        (ELIGIBLE, 'Eligible'),
        (COOLING, 'Cooling Period'),
    ]


@dataclass(frozen=True)
class DonorStatus:
    status: str
    can_donate: bool
    days_since_donation: Optional[int]
    days_until_eligible: int
    progress: float
    message: str


STATUS_DISPLAY = {
    Status.ELIGIBLE: {'label': 'Eligible', 'icon': 'CheckCircle', 'color': 'green'},
    Status.COOLING: {'label': 'Cooling Period', 'icon': 'Clock', 'color': 'amber'},
    Status.FIRST_TIME: {'label': 'First-Time Donor', 'icon': 'Star', 'color': 'blue'},
    Status.EMERGENCY: {'label': 'Emergency Eligible', 'icon': 'AlertTriangle', 'color': 'orange'},
    Status.INACTIVE: {'label': 'Inactive', 'icon': 'UserX', 'color': 'gray'},
}

# Lower sorts first
STATUS_PRIORITY = {
    Status.ELIGIBLE: 1,
    Status.FIRST_TIME: 2,
    Status.EMERGENCY: 3,
    Status.COOLING: 4,
    Status.INACTIVE: 5,
}


def get_donor_status(donor, emergency_override=False, now=None) -> DonorStatus:
    """
    Calculate a donor's current status.

    Precedence (first match wins): first_time, emergency, inactive,
    eligible, cooling. A missing or unreadable donation date means
    first_time.

    Args:
        donor: Donor model instance, object or mapping
        emergency_override: admin-requested emergency eligibility (56 days)
        now: reference time, defaults to the wall clock

    Returns:
        DonorStatus
    """
    days = days_between(last_donation(donor), now)

    if days is None:
        return DonorStatus(
            status=Status.FIRST_TIME,
            can_donate=True,
            days_since_donation=None,
            days_until_eligible=0,
            progress=100,
            message='Ready to make their first donation!',
        )

    days_until_eligible = max(0, COOLING_PERIOD_DAYS - days)
    progress = min(100, days / COOLING_PERIOD_DAYS * 100)

    if emergency_override and days >= EMERGENCY_MIN_DAYS:
        return DonorStatus(
            status=Status.EMERGENCY,
            can_donate=True,
            days_since_donation=days,
            days_until_eligible=0,
            progress=100,
            message='Emergency eligibility approved by admin',
        )

    active_on = last_activity(donor)
    if active_on is not None:
        days_inactive = days_since(active_on, now)
        if days_inactive > INACTIVE_THRESHOLD_DAYS:
            return DonorStatus(
                status=Status.INACTIVE,
                can_donate=days >= COOLING_PERIOD_DAYS,
                days_since_donation=days,
                days_until_eligible=days_until_eligible,
                progress=progress,
                message=f'Inactive for {days_inactive} days. Contact to verify availability.',
            )

    if days >= COOLING_PERIOD_DAYS:
        return DonorStatus(
            status=Status.ELIGIBLE,
            can_donate=True,
            days_since_donation=days,
            days_until_eligible=0,
            progress=100,
            message='Eligible to donate now',
        )

    return DonorStatus(
        status=Status.COOLING,
        can_donate=False,
        days_since_donation=days,
        days_until_eligible=days_until_eligible,
        progress=progress,
        message=f'Eligible in {days_until_eligible} days',
    )


def get_status_display_info(status):
    return STATUS_DISPLAY.get(status, STATUS_DISPLAY[Status.ELIGIBLE])


def filter_eligible_donors(donors, include_emergency=False, now=None):
    """
    Donors who can donate now; with include_emergency, also cooling donors
    already past the emergency minimum.
    """
    eligible = []
    for donor in donors:
        status = get_donor_status(donor, now=now)
        if status.can_donate:
            eligible.append(donor)
        elif (include_emergency and status.status == Status.COOLING
                and status.days_since_donation >= EMERGENCY_MIN_DAYS):
            eligible.append(donor)
    return eligible


def sort_by_eligibility(donors, now=None):
    """Eligible > First-Time > Emergency > Cooling > Inactive"""
    return sorted(
        donors,
        key=lambda donor: STATUS_PRIORITY.get(get_donor_status(donor, now=now).status, 99),
    )
