"""
Test helpers shared by the app test suites.
"""
import time

from .admin_auth import SESSION_KEY
from .rate_limiting import get_rate_limiter


class AdminSessionMixin:
    """Gives a TestCase's client a valid admin session."""

    def login_admin(self):
        session = self.client.session
        session[SESSION_KEY] = int(time.time())
        session.save()


def reset_rate_limits():
    get_rate_limiter().reset()
