"""
Authentication views for Fix It Now Backend.

Provides REST API endpoints for:
- Login (email/password) and citizen registration
- Token refresh and logout
- Current user profile
- Admin user management (list, create, role and status changes)
"""

import logging

from django_filters import rest_framework as filters
from rest_framework import status, generics, views
from rest_framework.filters import SearchFilter, OrderingFilter
from rest_framework.response import Response
from rest_framework.permissions import AllowAny
from rest_framework.throttling import AnonRateThrottle

from .models import User, UserRole, UserStatus
from .serializers import (
    LoginSerializer,
    RegisterSerializer,
    LogoutSerializer,
    UserSerializer,
    UserCreateSerializer,
    RoleUpdateSerializer,
    StatusUpdateSerializer,
    ProfileUpdateSerializer,
)
from .permissions import IsAuthenticated, IsAdmin, CanManageUser
from audit.models import AuditLog, AuditEventType

logger = logging.getLogger('fixitnow.auth')


class LoginThrottle(AnonRateThrottle):
    """Rate limiting for login endpoints."""
    scope = 'login'


class RegisterThrottle(AnonRateThrottle):
    scope = 'register'


class LoginView(views.APIView):
    """
    Login with email and password.

    POST /api/v1/auth/login/

    Request:
    {
        "email": "user@example.com",
        "password": "secure_password"
    }

    Response:
    {
        "refresh": "jwt_refresh_token",
        "access": "jwt_access_token",
        "role": "admin",
        "user": { ... }
    }
    """

    permission_classes = [AllowAny]
    throttle_classes = [LoginThrottle]
    serializer_class = LoginSerializer

    def post(self, request):
        serializer = self.serializer_class(
            data=request.data,
            context={'request': request}
        )
        serializer.is_valid(raise_exception=True)
        result = serializer.save()
        logger.info(f"Login succeeded for user {result['user']['id']} ({result['role']})")
        return Response(result, status=status.HTTP_200_OK)


class RegisterView(views.APIView):
    """
    Citizen registration.

    POST /api/v1/auth/register/

    Request:
    {
        "email": "citizen@example.com",
        "name": "Citizen Name",
        "phone": "081234567890",
        "password": "secure_password"
    }

    Creates a public account and returns a token pair.
    """

    permission_classes = [AllowAny]
    throttle_classes = [RegisterThrottle]
    serializer_class = RegisterSerializer

    def post(self, request):
        serializer = self.serializer_class(
            data=request.data,
            context={'request': request}
        )
        serializer.is_valid(raise_exception=True)
        result = serializer.save()
        return Response(result, status=status.HTTP_201_CREATED)


class LogoutView(views.APIView):
    """
    Logout endpoint.

    POST /api/v1/auth/logout/

    Request:
    {
        "refresh": "jwt_refresh_token"
    }

    Blacklists the refresh token and logs the logout event.
    """

    permission_classes = [IsAuthenticated]
    serializer_class = LogoutSerializer

    def post(self, request):
        serializer = self.serializer_class(
            data=request.data,
            context={'request': request}
        )
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(
            {'detail': 'Successfully logged out.'},
            status=status.HTTP_200_OK
        )


class CurrentUserView(views.APIView):
    """
    GET   /api/v1/auth/me/  - current user
    PATCH /api/v1/auth/me/  - update name / phone
    """

    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response(UserSerializer(request.user).data)

    def patch(self, request):
        serializer = ProfileUpdateSerializer(request.user, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()

        AuditLog.log(
            event_type=AuditEventType.USER_UPDATED,
            actor=request.user,
            target=request.user,
            request=request,
            success=True,
            description="Profile updated",
            metadata={'fields': sorted(serializer.validated_data)}
        )
        return Response(UserSerializer(request.user).data)


class UserFilter(filters.FilterSet):
    role = filters.CharFilter(field_name='role', lookup_expr='exact')
    status = filters.CharFilter(field_name='status', lookup_expr='exact')

    class Meta:
        model = User
        fields = ['role', 'status']


class UserListView(generics.ListAPIView):
    """
    List accounts (admin only).

    GET /api/v1/auth/users/?role=technician
    """

    permission_classes = [IsAdmin]
    serializer_class = UserSerializer
    filterset_class = UserFilter
    filter_backends = [filters.DjangoFilterBackend, SearchFilter, OrderingFilter]
    search_fields = ['email', 'name']
    ordering_fields = ['email', 'name', 'created_at']

    def get_queryset(self):
        return User.objects.all().order_by('email')


class UserCreateView(views.APIView):
    """
    Create an account with any role (admin only).

    POST /api/v1/auth/users/create/
    """

    permission_classes = [IsAdmin]
    serializer_class = UserCreateSerializer

    def post(self, request):
        serializer = self.serializer_class(
            data=request.data,
            context={'request': request}
        )
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        return Response(UserSerializer(user).data, status=status.HTTP_201_CREATED)


class UserRoleUpdateView(views.APIView):
    """
    Change an account's role (admin only, never their own).

    PATCH /api/v1/auth/users/{user_id}/role/
    {
        "role": "technician"
    }
    """

    permission_classes = [CanManageUser]

    def patch(self, request, user_id):
        serializer = RoleUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            target_user = User.objects.get(id=user_id)
        except User.DoesNotExist:
            return Response(
                {'detail': 'User not found.'},
                status=status.HTTP_404_NOT_FOUND
            )

        self.check_object_permissions(request, target_user)

        previous_role = target_user.role
        new_role = serializer.validated_data['role']
        target_user.role = new_role
        target_user.is_staff = new_role == UserRole.ADMIN
        target_user.save(update_fields=['role', 'is_staff', 'updated_at'])

        AuditLog.log(
            event_type=AuditEventType.USER_ROLE_CHANGED,
            actor=request.user,
            target=target_user,
            request=request,
            success=True,
            description=f"Role changed from {previous_role} to {new_role}",
            metadata={'previous_role': previous_role, 'new_role': new_role}
        )
        return Response(UserSerializer(target_user).data)


class UserStatusUpdateView(views.APIView):
    """
    Suspend or reactivate an account (admin only, never their own).

    PATCH /api/v1/auth/users/{user_id}/status/
    {
        "status": "suspended"
    }
    """

    permission_classes = [CanManageUser]

    def patch(self, request, user_id):
        serializer = StatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            target_user = User.objects.get(id=user_id)
        except User.DoesNotExist:
            return Response(
                {'detail': 'User not found.'},
                status=status.HTTP_404_NOT_FOUND
            )

        self.check_object_permissions(request, target_user)

        if serializer.validated_data['status'] == UserStatus.SUSPENDED:
            target_user.suspend()
            event_type = AuditEventType.USER_SUSPENDED
        else:
            target_user.reactivate()
            event_type = AuditEventType.USER_RESTORED

        AuditLog.log(
            event_type=event_type,
            actor=request.user,
            target=target_user,
            request=request,
            success=True,
            description=f"Account status set to {target_user.status}"
        )
        return Response(UserSerializer(target_user).data)
