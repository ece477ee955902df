# URL packages: auth, public (no token), customer portal, staff.
from django.urls import path, include

urlpatterns = [
    path('auth/', include('workshop.urls.auth_urls')),
    path('public/', include('workshop.urls.public_urls')),
    path('portal/', include('workshop.urls.portal_urls')),
    path('', include('workshop.urls.staff_urls')),
]
