"""
URL configuration for Fix It Now Authentication API.

All authentication endpoints are under /api/v1/auth/
"""

from django.urls import path
from rest_framework_simplejwt.views import TokenRefreshView

from .views import (
    LoginView,
    RegisterView,
    LogoutView,
    CurrentUserView,
    UserListView,
    UserCreateView,
    UserRoleUpdateView,
    UserStatusUpdateView,
)

app_name = 'authentication'

urlpatterns = [
    path('login/', LoginView.as_view(), name='login'),
    path('register/', RegisterView.as_view(), name='register'),

    # Token management
    path('token/refresh/', TokenRefreshView.as_view(), name='token-refresh'),
    path('logout/', LogoutView.as_view(), name='logout'),

    # Current user
    path('me/', CurrentUserView.as_view(), name='current-user'),

    # User management (admin)
    path('users/', UserListView.as_view(), name='user-list'),
    path('users/create/', UserCreateView.as_view(), name='user-create'),
    path('users/<uuid:user_id>/role/', UserRoleUpdateView.as_view(), name='user-role'),
    path('users/<uuid:user_id>/status/', UserStatusUpdateView.as_view(), name='user-status'),
]
