"""
Serializers for Fix It Now Authentication.

Handles:
- Email/password login
- Citizen self-registration (always role=public)
- Admin-side account creation and role changes
- Profile serialization and updates
- Logout (refresh token blacklisting)
"""

import re

from django.contrib.auth import authenticate
from django.contrib.auth.password_validation import validate_password
from rest_framework import serializers
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.exceptions import TokenError

from .backends import get_tokens_for_user
from .models import User, UserRole, UserStatus
from audit.models import AuditLog, AuditEventType
from core.exceptions import AccountSuspendedError


PHONE_PATTERN = re.compile(r'^(\+62|62|0)[0-9]{9,13}$')


def normalize_phone(value):
    """Strip whitespace and check the number looks like an Indonesian phone number."""
    cleaned = re.sub(r'\s+', '', value or '')
    if cleaned and not PHONE_PATTERN.match(cleaned):
        raise serializers.ValidationError(
            "Enter a valid phone number (e.g. 081234567890 or +6281234567890)."
        )
    return cleaned


def _get_ip(request):
    if not request:
        return None
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        return x_forwarded_for.split(',')[0].strip()
    return request.META.get('REMOTE_ADDR')


class UserSerializer(serializers.ModelSerializer):
    """Public view of an account."""

    role_display = serializers.CharField(source='get_role_display', read_only=True)

    class Meta:
        model = User
        fields = [
            'id', 'email', 'name', 'phone', 'role', 'role_display',
            'status', 'is_active', 'last_login', 'created_at',
        ]
        read_only_fields = fields


class UserSummarySerializer(serializers.ModelSerializer):
    """Compact user reference embedded in other payloads."""

    class Meta:
        model = User
        fields = ['id', 'email', 'name', 'role']
        read_only_fields = fields


class LoginSerializer(serializers.Serializer):
    """
    Email/password login for every role.
    Returns a token pair, the role and the user.
    """

    email = serializers.EmailField()
    password = serializers.CharField(
        write_only=True,
        style={'input_type': 'password'}
    )

    def validate(self, attrs):
        email = attrs.get('email')
        password = attrs.get('password')
        request = self.context.get('request')

        user = authenticate(request=request, username=email, password=password)

        if not user:
            existing_user = User.objects.filter(email__iexact=email).first()
            if existing_user is not None:
                existing_user.record_failed_login(_get_ip(request))

            AuditLog.log(
                event_type=AuditEventType.AUTH_LOGIN_FAILED,
                actor=existing_user,
                request=request,
                success=False,
                description="Invalid password" if existing_user else "Unknown email",
                metadata={'email': email}
            )

            if (existing_user is not None and existing_user.is_suspended
                    and existing_user.check_password(password)):
                raise AccountSuspendedError()
            raise serializers.ValidationError({
                'detail': 'Invalid email or password.'
            })

        if user.is_suspended:
            raise AccountSuspendedError()

        attrs['user'] = user
        return attrs

    def create(self, validated_data):
        user = validated_data['user']
        request = self.context.get('request')

        user.record_successful_login(_get_ip(request))

        AuditLog.log(
            event_type=AuditEventType.AUTH_LOGIN_SUCCESS,
            actor=user,
            request=request,
            success=True,
            description="Login successful",
            metadata={'role': user.role}
        )

        tokens = get_tokens_for_user(user)
        return {
            **tokens,
            'role': user.role,
            'user': UserSerializer(user).data,
        }


class RegisterSerializer(serializers.Serializer):
    """
    Citizen self-registration.

    Always creates a public account; staff accounts come from admins.
    """

    email = serializers.EmailField()
    name = serializers.CharField(max_length=150)
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True)
    password = serializers.CharField(write_only=True, style={'input_type': 'password'})

    def validate_email(self, value):
        if User.all_objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError("An account with this email already exists.")
        return value.lower()

    def validate_phone(self, value):
        return normalize_phone(value)

    def validate(self, attrs):
        candidate = User(email=attrs['email'], name=attrs.get('name', ''))
        try:
            validate_password(attrs['password'], user=candidate)
        except Exception as exc:
            raise serializers.ValidationError({'password': list(getattr(exc, 'messages', [str(exc)]))})
        return attrs

    def create(self, validated_data):
        request = self.context.get('request')
        user = User.objects.create_user(
            email=validated_data['email'],
            password=validated_data['password'],
            name=validated_data['name'],
            phone=validated_data.get('phone', ''),
            role=UserRole.PUBLIC,
            status=UserStatus.ACTIVE,
        )

        AuditLog.log(
            event_type=AuditEventType.AUTH_REGISTERED,
            actor=user,
            target=user,
            request=request,
            success=True,
            description="Citizen account registered"
        )

        tokens = get_tokens_for_user(user)
        return {
            **tokens,
            'role': user.role,
            'user': UserSerializer(user).data,
        }


class UserCreateSerializer(serializers.Serializer):
    """Admin creates an account with any role."""

    email = serializers.EmailField()
    name = serializers.CharField(max_length=150)
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True)
    role = serializers.ChoiceField(choices=UserRole.CHOICES)
    password = serializers.CharField(write_only=True, style={'input_type': 'password'})

    def validate_email(self, value):
        if User.all_objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError("An account with this email already exists.")
        return value.lower()

    def validate_phone(self, value):
        return normalize_phone(value)

    def validate(self, attrs):
        candidate = User(email=attrs['email'], name=attrs.get('name', ''))
        try:
            validate_password(attrs['password'], user=candidate)
        except Exception as exc:
            raise serializers.ValidationError({'password': list(getattr(exc, 'messages', [str(exc)]))})
        return attrs

    def create(self, validated_data):
        request = self.context.get('request')
        role = validated_data['role']
        extra = {
            'name': validated_data['name'],
            'phone': validated_data.get('phone', ''),
        }
        if role in UserRole.STAFF_ROLES:
            user = User.objects.create_staff(
                validated_data['email'], validated_data['password'], role, **extra
            )
        else:
            user = User.objects.create_user(
                validated_data['email'], validated_data['password'], role=role, **extra
            )

        AuditLog.log(
            event_type=AuditEventType.USER_CREATED,
            actor=request.user if request else None,
            target=user,
            request=request,
            success=True,
            description=f"Account created with role {role}",
            metadata={'role': role}
        )
        return user


class RoleUpdateSerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=UserRole.CHOICES)


class StatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=UserStatus.CHOICES)


class ProfileUpdateSerializer(serializers.ModelSerializer):
    """Fields a user may change on their own account."""

    class Meta:
        model = User
        fields = ['name', 'phone']

    def validate_phone(self, value):
        return normalize_phone(value)


class LogoutSerializer(serializers.Serializer):
    """Serializer for logout."""

    refresh = serializers.CharField(
        help_text="Refresh token to blacklist"
    )

    def validate_refresh(self, value):
        try:
            RefreshToken(value)
        except TokenError:
            raise serializers.ValidationError("Invalid refresh token.")
        return value

    def save(self):
        token = RefreshToken(self.validated_data['refresh'])
        token.blacklist()

        request = self.context.get('request')
        AuditLog.log(
            event_type=AuditEventType.AUTH_LOGOUT,
            actor=request.user if request else None,
            request=request,
            success=True,
            description="User logged out"
        )
