"""Auth API URL configuration."""
from django.urls import path
from workshop.views.auth_views import (
    change_password,
    login,
    logout,
    me,
    register,
    set_security_pin,
    two_factor_disable,
    two_factor_enable,
    two_factor_setup,
)

urlpatterns = [
    path('login/', login),
    path('register/', register),
    path('logout/', logout),
    path('me/', me),
    path('change-password/', change_password),
    path('security-pin/', set_security_pin),
    path('2fa/setup/', two_factor_setup),
    path('2fa/enable/', two_factor_enable),
    path('2fa/disable/', two_factor_disable),
]
