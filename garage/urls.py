"""
URL configuration for the garage project.

Staff and public JSON APIs live under /api/ (see workshop.urls).
"""
from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/', include('workshop.urls')),
]
