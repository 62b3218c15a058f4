# algorithms/smart_match.py
"""
Smart Match - filters donors to the blood types compatible with a request,
scores each candidate and orders them.

Score (all contributions additive):
    +30  exact blood type
    +25  verified donor
    +15  first-time donor / +20 past 90 days / +10 past 56 days
    +15  active within 30 days / +10 within 90 days
    +10  elite donor
"""
import logging
import math
from dataclasses import dataclass
from typing import Any, Optional

from algorithms import constants as c
from algorithms.blood_compatibility import get_compatible_donors, normalize_blood_type
from algorithms.donor_status import DonorStatus, get_donor_status
from algorithms.eligibility import days_between, days_since
from algorithms.haversine import as_point, donor_coordinates, haversine_distance
from algorithms.records import (
    blood_group,
    is_available,
    is_elite,
    is_verified,
    last_donation,
    most_recent_activity,
)

logger = logging.getLogger(__name__)

SORT_PRIORITY = 'priority'
SORT_DISTANCE = 'distance'
SORT_ELIGIBILITY = 'eligibility'
SORT_CHOICES = (SORT_PRIORITY, SORT_DISTANCE, SORT_ELIGIBILITY)


@dataclass
class MatchResult:
    donor: Any
    score: int
    distance_km: Optional[float] = None
    status: Optional[DonorStatus] = None


def calculate_donor_score(donor, requested_blood_type, now=None):
    """
    Priority score of one (already compatible) donor for a request.
    """
    score = 0

    # Perfect blood type match (same type) gets bonus
    if blood_group(donor) == normalize_blood_type(requested_blood_type):
        score += c.SCORE_EXACT_TYPE

    if is_verified(donor):
        score += c.SCORE_VERIFIED

    donated_ago = days_between(last_donation(donor), now)
    if donated_ago is None:
        score += c.SCORE_FIRST_TIME
    elif donated_ago >= c.COOLING_PERIOD_DAYS:
        score += c.SCORE_ELIGIBLE
    elif donated_ago >= c.EMERGENCY_MIN_DAYS:
        score += c.SCORE_EMERGENCY_ELIGIBLE

    active_on = most_recent_activity(donor)
    if active_on is not None:
        days_inactive = days_since(active_on, now)
        if days_inactive < c.RECENT_ACTIVITY_DAYS:
            score += c.SCORE_RECENTLY_ACTIVE
        elif days_inactive < c.ACTIVE_ACTIVITY_DAYS:
            score += c.SCORE_ACTIVE

    if is_elite(donor):
        score += c.SCORE_ELITE

    return score


def smart_match(requested_blood_type, donors, patient_location=None, max_distance_km=None,
                sort_by=SORT_PRIORITY, eligible_only=False, available_only=False,
                emergency_override=False, now=None):
    """
    Find and rank compatible donors for a blood request.

    Args:
        requested_blood_type: patient's blood type
        donors: iterable of donor records (models, objects or dicts)
        patient_location: (lat, lng) or {'lat', 'lng'}; enables distances
        max_distance_km: drop donors farther than this (needs patient_location);
            donors without coordinates are always kept
        sort_by: 'priority' (score desc), 'distance' (asc, unknown last) or
            'eligibility' (days since donation desc, never donated first)
        eligible_only: drop donors whose status cannot donate
        available_only: drop donors who opted out of being listed
        emergency_override: classify with the 56-day emergency minimum
        now: reference time, defaults to the wall clock

    Returns:
        List of MatchResult, empty for unknown blood types
    """
    compatible_types = set(get_compatible_donors(requested_blood_type))
    if not compatible_types:
        return []

    origin = as_point(patient_location)
    donor_list = list(donors) if donors is not None else []

    matches = []
    for donor in donor_list:
        if blood_group(donor) not in compatible_types:
            continue
        if available_only and not is_available(donor):
            continue

        status = get_donor_status(donor, emergency_override=emergency_override, now=now)
        if eligible_only and not status.can_donate:
            continue

        distance = None
        point = donor_coordinates(donor)
        if origin is not None and point is not None:
            distance = haversine_distance(origin[0], origin[1], point[0], point[1])
            if max_distance_km is not None and distance > max_distance_km:
                continue

        matches.append(MatchResult(
            donor=donor,
            score=calculate_donor_score(donor, requested_blood_type, now=now),
            distance_km=round(distance, 2) if distance is not None else None,
            status=status,
        ))

    if sort_by == SORT_DISTANCE:
        matches.sort(key=lambda m: m.distance_km if m.distance_km is not None else math.inf)
    elif sort_by == SORT_ELIGIBILITY:
        matches.sort(key=lambda m: _eligibility_key(m.status), reverse=True)
    else:
        matches.sort(key=lambda m: m.score, reverse=True)

    logger.debug(f"smart_match {requested_blood_type}: {len(matches)} of {len(donor_list)} donors matched")
    return matches


def _eligibility_key(status):
    if status.days_since_donation is None:
        return math.inf
    return status.days_since_donation
