# api/urls.py - COMPLETE URL CONFIGURATION

from django.urls import path, include
from rest_framework.routers import DefaultRouter

from donors.views import DonorViewSet
from emergencies.views import EmergencyViewSet
from . import views

# Create router and register viewsets
router = DefaultRouter()
router.register(r'donors', DonorViewSet, basename='donor')
router.register(r'emergencies', EmergencyViewSet, basename='emergency')

app_name = 'api'

urlpatterns = [
    # Router URLs
    path('', include(router.urls)),

    # Matching, compatibility, geography, verification queue
    path('', include('donors.urls')),

    # Analytics (admin only)
    path('analytics/dashboard/', views.dashboard_stats, name='analytics-dashboard'),
    path('analytics/blood-groups/', views.blood_group_distribution, name='analytics-blood-groups'),
    path('analytics/cities/', views.city_distribution, name='analytics-cities'),
    path('analytics/eligibility/', views.eligibility_breakdown, name='analytics-eligibility'),
    path('analytics/recent-activity/', views.recent_activity, name='analytics-recent-activity'),
    path('analytics/emergencies/', views.emergency_metrics, name='analytics-emergencies'),
]

# Available endpoints:
# GET    /api/donors/                                 - List donors (filters: blood_group, city, available)
# POST   /api/donors/                                 - Create donor (admin)
# GET    /api/donors/search/                          - Search donors (blood_group, city, eligible_only, sort_by)
# GET    /api/donors/{id}/status/                     - Donor status (?emergency=1 admin only)
# GET    /api/donors/{id}/history/                    - Donation history
# POST   /api/donors/{id}/toggle-availability/        - Toggle availability (owner/admin)
# POST   /api/donors/{id}/log-donation/               - Log a donation (owner/admin)
# GET    /api/donors/{id}/verification/               - Verification status (owner/admin)
# POST   /api/donors/{id}/verify-phone/start/         - Send OTP
# POST   /api/donors/{id}/verify-phone/confirm/       - Confirm OTP
# POST   /api/donors/{id}/verification/document/      - Submit ID document
# POST   /api/donors/{id}/verification/decide/        - Approve / reject (admin)
#
# GET    /api/emergencies/                            - Active emergencies (filters: blood_group, city)
# POST   /api/emergencies/                            - Create emergency (admin)
# GET    /api/emergencies/{id}/matching-donors/       - Ranked donors (admin)
# POST   /api/emergencies/{id}/fulfill/               - Mark fulfilled (admin)
# POST   /api/emergencies/{id}/cancel/                - Cancel (admin)
# POST   /api/emergencies/{id}/view/                  - Count a view
# POST   /api/emergencies/{id}/respond/               - Record a donor response
# GET    /api/emergencies/{id}/whatsapp/              - WhatsApp share text
#
# POST   /api/smart-match/                            - Ranked compatible donors
# GET    /api/compatibility/{blood_type}/             - Compatibility of a blood type
# GET    /api/cities/nearest/?lat=&lng=               - Nearest major city
# GET    /api/verifications/pending/                  - Pending verification queue (admin)
#
# GET    /api/analytics/...                           - Admin analytics
