# donors/urls.py
from django.urls import path
from donors import views

urlpatterns = [
    # Matching
    path('smart-match/', views.smart_match_view, name='smart_match'),
    path('compatibility/<str:blood_type>/', views.compatibility_view, name='blood_compatibility'),
    path('cities/nearest/', views.nearest_city_view, name='nearest_city'),

    # Verification review queue
    path('verifications/pending/', views.pending_verifications, name='pending_verifications'),
]
