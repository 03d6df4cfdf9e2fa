"""
Custom permissions for Fix It Now Backend.

Implements role-based access control:
- Admin: manages reports, users and facilities
- Technician: works on reports assigned to them
- Government: reads reports and analytics
- Public: submits reports and reviews facilities

All permissions check user status and role. Which role may move a report
to which status is decided by reports.lifecycle; the classes here only
gate entry to the endpoints.
"""

from rest_framework import permissions

from authentication.models import UserRole
from reports.lifecycle import ACTING_ROLES


def _is_usable(user):
    return bool(
        user
        and user.is_authenticated
        and user.is_active
        and not user.is_suspended
    )


class IsAuthenticated(permissions.IsAuthenticated):
    """
    Extended IsAuthenticated that also checks user status.
    """

    def has_permission(self, request, view):
        if not super().has_permission(request, view):
            return False
        return _is_usable(request.user)


class HasRole(permissions.BasePermission):
    """Base class: the user must hold one of allowed_roles."""

    allowed_roles = ()
    message = "You do not have the role required for this action."

    def has_permission(self, request, view):
        if not _is_usable(request.user):
            return False
        return request.user.role in self.allowed_roles


class IsAdmin(HasRole):
    allowed_roles = (UserRole.ADMIN,)
    message = "This action requires an administrator."


class IsTechnician(HasRole):
    allowed_roles = (UserRole.TECHNICIAN,)
    message = "This action is for technicians only."


class IsGovernmentOrAdmin(HasRole):
    allowed_roles = (UserRole.GOVERNMENT, UserRole.ADMIN)
    message = "This action requires government or administrator access."


class IsReportStaff(HasRole):
    """Admins, technicians and government users."""
    allowed_roles = tuple(UserRole.STAFF_ROLES)
    message = "This action requires staff access."


class IsAdminOrTechnician(HasRole):
    allowed_roles = (UserRole.ADMIN, UserRole.TECHNICIAN)
    message = "This action requires an administrator or technician."


class CanTransitionReport(permissions.BasePermission):
    """
    Entry gate for the lifecycle endpoints: the role must appear somewhere
    in the transition table. Per-transition and assignee checks happen in
    reports.lifecycle so the caller gets the lifecycle's own error.
    """

    message = "Your role cannot change report status."

    def has_permission(self, request, view):
        if not _is_usable(request.user):
            return False
        return request.user.role in ACTING_ROLES


class CanViewReport(permissions.BasePermission):
    """
    Object-level permission for viewing a specific report.

    Rules:
    - Admin and government can view all reports
    - Technicians can view reports assigned to them
    - Everyone can view reports they submitted
    """

    message = "You do not have permission to view this report."

    def has_object_permission(self, request, view, obj):
        user = request.user

        if user.role in UserRole.OVERSIGHT_ROLES:
            return True

        if user.is_technician and obj.assigned_to_id == user.id:
            return True

        if obj.reporter_id == user.id:
            return True
        return bool(obj.reporter_email) and obj.reporter_email.lower() == user.email.lower()


class CanManageUser(permissions.BasePermission):
    """
    Admins manage accounts but cannot change their own role.
    """

    message = "You do not have permission to modify this account."

    def has_permission(self, request, view):
        return _is_usable(request.user) and request.user.is_admin

    def has_object_permission(self, request, view, obj):
        return obj != request.user


class CanViewAuditLogs(permissions.BasePermission):
    """
    Permission for viewing audit logs.

    Only administrators can view audit logs.
    """

    message = "Only administrators can view audit logs."

    def has_permission(self, request, view):
        return _is_usable(request.user) and request.user.is_admin
