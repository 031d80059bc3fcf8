"""
Tests for rate limiting and the admin session gate.

Test Cases:
1. Fixed-window counting, denial and window reset
2. Opportunistic sweeping of expired entries
3. Client identifier derivation from proxy headers
4. Redis backend counting and fail-open behavior
5. Admin login, logout and 401 on admin endpoints
"""
from datetime import timedelta
from unittest.mock import MagicMock

import redis
from django.contrib.sessions.models import Session
from django.test import TestCase, RequestFactory, override_settings
from django.utils import timezone

from core.rate_limiting import (
    MemoryRateLimiter,
    RedisRateLimiter,
    get_client_identifier,
    UNKNOWN_CLIENT,
)
from core.tasks import purge_expired_sessions
from core.testing import AdminSessionMixin, reset_rate_limits


class FakeClock:
    def __init__(self, now=1_000_000):
        self.now = now

    def __call__(self):
        return self.now


class MemoryRateLimiterTestCase(TestCase):
    """Test cases for the in-process fixed-window limiter."""

    def setUp(self):
        self.clock = FakeClock()
        self.limiter = MemoryRateLimiter(clock=self.clock)

    def test_allows_up_to_limit_then_denies(self):
        """
        Given: max 5 requests per 60s
        When: 6 requests arrive within the window
        Then: 5 are allowed with decreasing remaining, the 6th is denied
              with the same reset time
        """
        results = [self.limiter.check('1.2.3.4', 5, 60000) for _ in range(5)]

        self.assertTrue(all(r.allowed for r in results))
        self.assertEqual([r.remaining for r in results], [4, 3, 2, 1, 0])
        self.assertEqual({r.reset_at_ms for r in results}, {self.clock.now + 60000})

        denied = self.limiter.check('1.2.3.4', 5, 60000)
        self.assertFalse(denied.allowed)
        self.assertEqual(denied.remaining, 0)
        self.assertEqual(denied.reset_at_ms, results[-1].reset_at_ms)

    def test_window_resets_after_expiry(self):
        for _ in range(6):
            last = self.limiter.check('1.2.3.4', 5, 60000)
        self.assertFalse(last.allowed)

        self.clock.now = last.reset_at_ms + 1
        result = self.limiter.check('1.2.3.4', 5, 60000)

        self.assertTrue(result.allowed)
        self.assertEqual(result.remaining, 4)
        self.assertEqual(result.reset_at_ms, self.clock.now + 60000)

    def test_identifiers_are_independent(self):
        for _ in range(5):
            self.limiter.check('a', 5, 60000)
        self.assertFalse(self.limiter.check('a', 5, 60000).allowed)
        self.assertTrue(self.limiter.check('b', 5, 60000).allowed)

    def test_denied_requests_do_not_extend_window(self):
        first = self.limiter.check('a', 1, 60000)
        self.clock.now += 30000
        denied = self.limiter.check('a', 1, 60000)
        self.assertFalse(denied.allowed)
        self.assertEqual(denied.reset_at_ms, first.reset_at_ms)

    def test_expired_entries_are_swept(self):
        limiter = MemoryRateLimiter(sweep_interval=3, clock=self.clock)
        limiter.check('a', 5, 1000)
        limiter.check('b', 5, 1000)
        self.assertEqual(len(limiter), 2)

        self.clock.now += 5000
        limiter.check('c', 5, 1000)

        self.assertEqual(len(limiter), 1)

    def test_retry_after_is_rounded_up(self):
        result = self.limiter.check('a', 5, 60000)
        self.assertEqual(result.retry_after_seconds(self.clock.now + 500), 60)

    def test_reset_clears_entries(self):
        self.limiter.check('a', 5, 60000)
        self.limiter.reset()
        self.assertEqual(len(self.limiter), 0)


class RedisRateLimiterTestCase(TestCase):
    """Test cases for the Redis-backed limiter, using a mocked client."""

    def setUp(self):
        self.client = MagicMock()
        self.client.pttl.return_value = 60000
        self.limiter = RedisRateLimiter(self.client)

    def test_first_request_sets_expiry(self):
        self.client.incr.return_value = 1

        result = self.limiter.check('1.2.3.4', 5, 60000)

        self.assertTrue(result.allowed)
        self.assertEqual(result.remaining, 4)
        self.client.pexpire.assert_called_once_with('rate_limit:1.2.3.4', 60000)

    def test_over_limit_is_denied(self):
        self.client.incr.return_value = 6

        result = self.limiter.check('1.2.3.4', 5, 60000)

        self.assertFalse(result.allowed)
        self.assertEqual(result.remaining, 0)
        self.client.pexpire.assert_not_called()

    def test_redis_error_fails_open(self):
        self.client.incr.side_effect = redis.ConnectionError('down')

        result = self.limiter.check('1.2.3.4', 5, 60000)

        self.assertTrue(result.allowed)


class ClientIdentifierTestCase(TestCase):
    """Test cases for identifier derivation from proxy headers."""

    def setUp(self):
        self.factory = RequestFactory()

    def test_first_forwarded_for_entry(self):
        request = self.factory.post('/', HTTP_X_FORWARDED_FOR='203.0.113.9, 10.0.0.1')
        self.assertEqual(get_client_identifier(request), '203.0.113.9')

    def test_real_ip_header(self):
        request = self.factory.post('/', HTTP_X_REAL_IP='198.51.100.4')
        self.assertEqual(get_client_identifier(request), '198.51.100.4')

    def test_forwarded_for_wins_over_real_ip(self):
        request = self.factory.post('/', HTTP_X_FORWARDED_FOR='203.0.113.9', HTTP_X_REAL_IP='198.51.100.4')
        self.assertEqual(get_client_identifier(request), '203.0.113.9')

    def test_shared_fallback_bucket(self):
        request = self.factory.post('/')
        self.assertEqual(get_client_identifier(request), UNKNOWN_CLIENT)


@override_settings(ADMIN_PASSWORD='s3cret')
class AdminSessionTestCase(AdminSessionMixin, TestCase):
    """Test cases for admin login/logout and the session gate."""

    def setUp(self):
        reset_rate_limits()

    def _login(self, password):
        return self.client.post('/api/admin/login', {'password': password}, content_type='application/json')

    def test_admin_endpoint_requires_session(self):
        response = self.client.get('/api/admin/variants')
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json(), {'error': 'Unauthorized'})

    def test_login_with_wrong_password(self):
        response = self._login('nope')
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json(), {'error': 'Invalid password'})
        self.assertEqual(self.client.get('/api/admin/variants').status_code, 401)

    def test_login_requires_password(self):
        response = self.client.post('/api/admin/login', {}, content_type='application/json')
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {'error': 'Password is required'})

    def test_login_then_logout_revokes_session(self):
        response = self._login('s3cret')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.client.get('/api/admin/variants').status_code, 200)

        self.client.post('/api/admin/logout')

        self.assertEqual(self.client.get('/api/admin/variants').status_code, 401)

    @override_settings(ADMIN_PASSWORD='', DEBUG=False)
    def test_login_disabled_without_configured_password(self):
        self.assertEqual(self._login('admin').status_code, 401)

    @override_settings(ADMIN_PASSWORD='', DEBUG=True)
    def test_dev_password_in_debug(self):
        self.assertEqual(self._login('admin').status_code, 200)

    @override_settings(ADMIN_SESSION_AGE=60)
    def test_stale_session_is_rejected(self):
        self.login_admin()
        session = self.client.session
        session['admin_authenticated_at'] -= 120
        session.save()

        self.assertEqual(self.client.get('/api/admin/variants').status_code, 401)

    def test_purge_expired_sessions(self):
        Session.objects.create(
            session_key='expired' + 'x' * 25,
            session_data='',
            expire_date=timezone.now() - timedelta(days=1)
        )

        purge_expired_sessions()

        self.assertFalse(Session.objects.filter(session_key__startswith='expired').exists())
