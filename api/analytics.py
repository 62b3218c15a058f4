# api/analytics.py
"""
Aggregated statistics for the admin dashboard
"""
import math

from django.db.models import Count, Sum

from algorithms.blood_compatibility import BLOOD_TYPES
from algorithms.donor_status import Status, get_donor_status
from donors.models import Donor, DonorVerification
from emergencies.models import Emergency


def _rounded(value):
    """Round half up, the way the dashboard displays figures."""
    return int(math.floor(value + 0.5))


def _percent(part, whole):
    return _rounded(part / whole * 100) if whole else 0


def get_dashboard_stats():
    total_donors = Donor.objects.count()
    active_donors = Donor.objects.filter(is_available=True).count()
    verified_donors = Donor.objects.filter(is_verified=True).count()

    return {
        'total_donors': total_donors,
        'active_donors': active_donors,
        'verified_donors': verified_donors,
        'inactive_donors': total_donors - active_donors,
        'active_emergencies': Emergency.objects.filter(active=True).count(),
        'pending_verifications': DonorVerification.objects.filter(
            status=DonorVerification.STATUS_PENDING
        ).count(),
        'verification_rate': _percent(verified_donors, total_donors),
    }


def get_blood_group_distribution():
    """Active donors per blood group, largest group first"""
    counts = dict(
        Donor.objects.filter(is_available=True)
        .order_by()
        .values_list('blood_group')
        .annotate(count=Count('id'))
    )
    total = sum(counts.values())

    distribution = [
        {
            'blood_group': group,
            'count': counts.get(group, 0),
            'percentage': _percent(counts.get(group, 0), total),
        }
        for group in BLOOD_TYPES
    ]
    # Stable sort keeps the canonical order between equal counts
    distribution.sort(key=lambda row: row['count'], reverse=True)
    return distribution


def get_city_distribution(limit=20):
    rows = (
        Donor.objects.filter(is_available=True)
        .values('city')
        .annotate(count=Count('id'))
        .order_by('-count', 'city')[:limit]
    )
    return [{'city': row['city'] or 'Unknown', 'count': row['count']} for row in rows]


def get_eligibility_breakdown(now=None):
    breakdown = {
        Status.ELIGIBLE: 0,
        Status.COOLING: 0,
        Status.FIRST_TIME: 0,
        Status.INACTIVE: 0,
    }
    for donor in Donor.objects.filter(is_available=True):
        status = get_donor_status(donor, now=now).status
        if status in breakdown:
            breakdown[status] += 1

    total = sum(breakdown.values())
    return {
        'eligible': breakdown[Status.ELIGIBLE],
        'cooling': breakdown[Status.COOLING],
        'first_time': breakdown[Status.FIRST_TIME],
        'inactive': breakdown[Status.INACTIVE],
        'total': total,
        'eligible_percentage': _percent(breakdown[Status.ELIGIBLE], total),
    }


def get_recent_activity(limit=10):
    """Newest donor registrations and emergencies, merged by creation time"""
    donors = [
        {
            'type': 'donor',
            'id': donor.id,
            'title': donor.name,
            'blood_group': donor.blood_group,
            'city': donor.city,
            'created_at': donor.created_at,
        }
        for donor in Donor.objects.order_by('-created_at')[:limit]
    ]
    emergencies = [
        {
            'type': 'emergency',
            'id': emergency.id,
            'title': emergency.hospital,
            'blood_group': emergency.blood_group,
            'city': emergency.city,
            'created_at': emergency.created_at,
        }
        for emergency in Emergency.objects.order_by('-created_at')[:limit]
    ]

    activity = sorted(donors + emergencies, key=lambda item: item['created_at'], reverse=True)
    return activity[:limit]


def get_emergency_metrics():
    totals = Emergency.objects.aggregate(
        total=Count('id'),
        responses=Sum('response_count'),
        views=Sum('view_count'),
    )
    total = totals['total']
    fulfilled = Emergency.objects.filter(status=Emergency.STATUS_FULFILLED).count()

    return {
        'total': total,
        'fulfilled': fulfilled,
        'fulfillment_rate': _percent(fulfilled, total),
        'avg_responses_per_emergency': _rounded((totals['responses'] or 0) / total) if total else 0,
        'avg_views_per_emergency': _rounded((totals['views'] or 0) / total) if total else 0,
    }
