"""
Admin session gate for back-office endpoints.

Sessions are stored server-side (django.contrib.sessions), so logging out
revokes the session immediately at the cost of one session lookup per
request.
"""
import logging
import time

from django.conf import settings
from django.utils.crypto import constant_time_compare
from rest_framework import authentication
from rest_framework.permissions import IsAuthenticated

logger = logging.getLogger(__name__)

SESSION_KEY = 'admin_authenticated_at'
DEV_PASSWORD = 'admin'


class AdminPrincipal:
    """The single store administrator."""
    is_authenticated = True
    is_anonymous = False
    username = 'admin'

    def __str__(self):
        return self.username


def verify_admin_password(password: str) -> bool:
    expected = getattr(settings, 'ADMIN_PASSWORD', '')
    if not expected:
        if not settings.DEBUG:
            logger.error("ADMIN_PASSWORD is not set; admin login is disabled")
            return False
        logger.warning("Using default admin password. Set ADMIN_PASSWORD in production!")
        expected = DEV_PASSWORD
    return constant_time_compare(password, expected)


def login_admin(request) -> None:
    request.session.cycle_key()
    request.session[SESSION_KEY] = int(time.time())
    request.session.set_expiry(settings.ADMIN_SESSION_AGE)


def logout_admin(request) -> None:
    request.session.flush()


def is_authenticated(request) -> bool:
    started_at = request.session.get(SESSION_KEY)
    if started_at is None:
        return False
    return time.time() - started_at <= settings.ADMIN_SESSION_AGE


class AdminSessionAuthentication(authentication.BaseAuthentication):
    """
    DRF authentication backed by the admin session.

    Provides an authenticate header so that unauthenticated requests get a
    401 rather than a 403.
    """

    def authenticate(self, request):
        if not is_authenticated(request._request):
            return None
        return (AdminPrincipal(), None)

    def authenticate_header(self, request):
        return 'Session realm="admin"'


class AdminRequiredMixin:
    """Restrict a DRF view to an authenticated admin session."""
    authentication_classes = [AdminSessionAuthentication]
    permission_classes = [IsAuthenticated]
