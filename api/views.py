# api/views.py
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response

from accounts.decorators import permission_required
from api import analytics

CanViewAnalytics = permission_required('view_analytics')


def _limit(request, default):
    try:
        limit = int(request.query_params.get('limit', default))
    except (TypeError, ValueError):
        raise ValidationError({'limit': "Must be an integer."})
    if limit < 1:
        raise ValidationError({'limit': "Must be positive."})
    return limit


@api_view(['GET'])
@permission_classes([CanViewAnalytics])
def dashboard_stats(request):
    """Get dashboard statistics"""
    return Response(analytics.get_dashboard_stats())


@api_view(['GET'])
@permission_classes([CanViewAnalytics])
def blood_group_distribution(request):
    return Response(analytics.get_blood_group_distribution())


@api_view(['GET'])
@permission_classes([CanViewAnalytics])
def city_distribution(request):
    return Response(analytics.get_city_distribution(limit=_limit(request, 20)))


@api_view(['GET'])
@permission_classes([CanViewAnalytics])
def eligibility_breakdown(request):
    return Response(analytics.get_eligibility_breakdown())


@api_view(['GET'])
@permission_classes([CanViewAnalytics])
def recent_activity(request):
    return Response(analytics.get_recent_activity(limit=_limit(request, 10)))


@api_view(['GET'])
@permission_classes([CanViewAnalytics])
def emergency_metrics(request):
    return Response(analytics.get_emergency_metrics())
