"""
Authentication models for Fix It Now Backend.

Contains:
- Custom User model with role-based access control

Roles:
- admin: confirms, assigns and closes reports
- technician: carries out repairs on assigned reports
- government: read-only analytics
- public: citizens who submit reports and review facilities
"""

from django.db import models
from django.contrib.auth.models import AbstractBaseUser, BaseUserManager, PermissionsMixin
from django.utils import timezone

from core.models import BaseModel


class UserRole:
    """User role constants."""
    ADMIN = 'admin'
    TECHNICIAN = 'technician'
    GOVERNMENT = 'government'
    PUBLIC = 'public'

    CHOICES = [
        (ADMIN, 'Administrator'),
        (TECHNICIAN, 'Technician'),
        (GOVERNMENT, 'Government'),
        (PUBLIC, 'Public'),
    ]

    # Roles that work on reports from the back office
    STAFF_ROLES = [ADMIN, TECHNICIAN, GOVERNMENT]

    # Roles that see every report
    OVERSIGHT_ROLES = [ADMIN, GOVERNMENT]


class UserStatus:
    """User account status constants."""
    ACTIVE = 'active'
    SUSPENDED = 'suspended'

    CHOICES = [
        (ACTIVE, 'Active'),
        (SUSPENDED, 'Suspended'),
    ]


class UserManager(BaseUserManager):
    """
    Custom user manager for the Fix It Now User model.
    Users log in with their email address.
    """

    def get_queryset(self):
        """Return only non-deleted users by default."""
        return super().get_queryset().filter(is_deleted=False)

    def create_user(self, email, password=None, **extra_fields):
        if not email:
            raise ValueError('User must have an email address')

        email = self.normalize_email(email)
        extra_fields.setdefault('role', UserRole.PUBLIC)
        if extra_fields['role'] not in dict(UserRole.CHOICES):
            raise ValueError(f"Invalid role: {extra_fields['role']}")

        user = self.model(email=email, **extra_fields)

        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()

        user.save(using=self._db)
        return user

    def create_staff(self, email, password, role, **extra_fields):
        """Create an admin, technician or government account."""
        if role not in UserRole.STAFF_ROLES:
            raise ValueError(f'Invalid staff role: {role}')
        if not password:
            raise ValueError('Staff users must have a password')

        extra_fields.setdefault('is_staff', role == UserRole.ADMIN)
        extra_fields['role'] = role
        extra_fields['status'] = UserStatus.ACTIVE

        return self.create_user(email, password, **extra_fields)

    def create_superuser(self, email, password, **extra_fields):
        """Create a superuser for admin access."""
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        extra_fields.setdefault('role', UserRole.ADMIN)
        extra_fields.setdefault('status', UserStatus.ACTIVE)

        if extra_fields.get('is_staff') is not True:
            raise ValueError('Superuser must have is_staff=True.')
        if extra_fields.get('is_superuser') is not True:
            raise ValueError('Superuser must have is_superuser=True.')

        return self.create_user(email, password, **extra_fields)

    def active(self):
        return self.get_queryset().filter(status=UserStatus.ACTIVE, is_active=True)

    def technicians(self):
        return self.active().filter(role=UserRole.TECHNICIAN)

    def admins(self):
        return self.active().filter(role=UserRole.ADMIN)


class User(AbstractBaseUser, PermissionsMixin, BaseModel):
    """
    Custom User model for Fix It Now.

    - UUID primary key (inherited from BaseModel)
    - email as the login identifier
    - role drives every permission check and the report lifecycle
    - soft delete only
    """

    email = models.EmailField(
        max_length=255,
        unique=True,
        help_text="Login email address"
    )

    name = models.CharField(
        max_length=150,
        blank=True,
        help_text="Display name"
    )

    phone = models.CharField(
        max_length=20,
        blank=True,
        help_text="Contact phone number"
    )

    role = models.CharField(
        max_length=20,
        choices=UserRole.CHOICES,
        default=UserRole.PUBLIC,
        db_index=True,
        help_text="User role determining access level"
    )

    status = models.CharField(
        max_length=20,
        choices=UserStatus.CHOICES,
        default=UserStatus.ACTIVE,
        db_index=True,
        help_text="Current account status"
    )

    is_staff = models.BooleanField(
        default=False,
        help_text="Designates whether user can access admin site"
    )

    is_active = models.BooleanField(
        default=True,
        help_text="Designates whether user account is active"
    )

    # Security tracking
    last_login_ip = models.GenericIPAddressField(
        null=True,
        blank=True,
        help_text="IP address of last successful login"
    )

    failed_login_attempts = models.PositiveIntegerField(
        default=0,
        help_text="Count of consecutive failed login attempts"
    )

    last_failed_login = models.DateTimeField(
        null=True,
        blank=True,
        help_text="Timestamp of last failed login attempt"
    )

    objects = UserManager()

    USERNAME_FIELD = 'email'
    EMAIL_FIELD = 'email'
    REQUIRED_FIELDS = []

    class Meta:
        db_table = 'fixitnow_users'
        verbose_name = 'User'
        verbose_name_plural = 'Users'
        ordering = ['email']
        indexes = [
            models.Index(fields=['role', 'status'], name='users_role_status_idx'),
        ]

    def __str__(self):
        return self.email

    @property
    def display_name(self):
        return self.name or self.email

    @property
    def is_admin(self):
        return self.role == UserRole.ADMIN

    @property
    def is_technician(self):
        return self.role == UserRole.TECHNICIAN

    @property
    def is_government(self):
        return self.role == UserRole.GOVERNMENT

    @property
    def is_public(self):
        return self.role == UserRole.PUBLIC

    @property
    def is_suspended(self):
        return self.status == UserStatus.SUSPENDED

    def suspend(self):
        self.status = UserStatus.SUSPENDED
        self.is_active = False
        self.save(update_fields=['status', 'is_active', 'updated_at'])

    def reactivate(self):
        self.status = UserStatus.ACTIVE
        self.is_active = True
        self.save(update_fields=['status', 'is_active', 'updated_at'])

    def record_failed_login(self, ip_address=None):
        """Record a failed login attempt for security monitoring."""
        self.failed_login_attempts += 1
        self.last_failed_login = timezone.now()
        self.save(update_fields=['failed_login_attempts', 'last_failed_login'])

    def record_successful_login(self, ip_address=None):
        """Record a successful login and reset failed attempts."""
        self.failed_login_attempts = 0
        self.last_failed_login = None
        self.last_login_ip = ip_address
        self.last_login = timezone.now()
        self.save(update_fields=[
            'failed_login_attempts',
            'last_failed_login',
            'last_login_ip',
            'last_login'
        ])
