from django.contrib import admin
from django.urls import path, include


urlpatterns = [
    # Admin
    path('admin/', admin.site.urls),

    # REST API
    path('api/', include('api.urls')),
    path('api/accounts/', include('accounts.urls')),
]
