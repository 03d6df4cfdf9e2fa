"""
Custom JWT authentication backend for Fix It Now.

Standard simplejwt bearer tokens, plus an account status check on every
request so suspended or deactivated users lose access immediately rather
than when their access token expires.
"""

import logging
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import InvalidToken

from audit.models import AuditLog, AuditEventType

security_logger = logging.getLogger('fixitnow.security')


class ActiveUserJWTAuthentication(JWTAuthentication):
    """
    JWT authentication that rejects suspended and inactive accounts.

    Every request must include:
    - Authorization: Bearer <token>
    """

    def authenticate(self, request):
        result = super().authenticate(request)

        if result is None:
            return None

        user, validated_token = result
        self._check_user_status(user, request)
        return (user, validated_token)

    def _check_user_status(self, user, request):
        """
        Raises:
            InvalidToken: If the account is suspended or inactive
        """
        if user.is_suspended:
            security_logger.warning(
                f"Suspended user attempted access: {user.id} from {self._get_ip(request)}"
            )
            AuditLog.log(
                event_type=AuditEventType.AUTH_TOKEN_REJECTED,
                actor=user,
                request=request,
                success=False,
                description="Suspended user attempted API access"
            )
            raise InvalidToken({
                'detail': 'Your account is suspended.',
                'code': 'account_suspended'
            })

        if not user.is_active:
            raise InvalidToken({
                'detail': 'Your account is not active.',
                'code': 'account_inactive'
            })

    def _get_ip(self, request):
        x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
        if x_forwarded_for:
            return x_forwarded_for.split(',')[0].strip()
        return request.META.get('REMOTE_ADDR', 'unknown')


def get_tokens_for_user(user):
    """Refresh/access token pair carrying the user's role."""
    from rest_framework_simplejwt.tokens import RefreshToken

    refresh = RefreshToken.for_user(user)
    refresh['role'] = user.role
    refresh['email'] = user.email

    return {
        'refresh': str(refresh),
        'access': str(refresh.access_token),
    }
