"""
Tests for order intake.

Test Cases:
1. Cart and legacy validation, including honeypot and shipping rules
2. Persistence round-trip with denormalized item snapshots
3. Intake endpoint: success, spam absorption, validation, rate limiting,
   persistence failure tolerance
4. Notification fallback chain
5. Admin status updates
"""
from smtplib import SMTPException
from unittest.mock import patch
from urllib.parse import urlencode

from django.core import mail
from django.db import DatabaseError
from django.test import TestCase, override_settings

from core.testing import AdminSessionMixin, reset_rate_limits
from inventory.models import Product
from orders.models import OrderRequest
from orders.notifications import (
    dispatch_order_notifications,
    send_order_notifications,
    LOGGED_ONLY,
    PRIMARY,
    SECONDARY,
)
from orders.services import (
    create_order_request,
    get_order_request,
    update_order_request_status,
    OrderRequestNotFound,
)
from orders.tasks import send_order_notifications_task
from orders.validation import (
    validate_cart_order,
    validate_order_request,
    validate_order_submission,
    CART,
    LEGACY,
    SCHEMA_ERROR,
    SHIPPING_ADDRESS_REQUIRED,
    SPAM,
)


def cart_payload(**overrides):
    payload = {
        'name': 'Jane Doe',
        'email': 'jane@example.com',
        'phone': '',
        'items': [
            {'productSlug': 'tiger-lily', 'productName': 'Tiger Lily', 'size': 'M', 'quantity': 2, 'price': 45},
            {'productSlug': 'night-heron', 'productName': 'Night Heron', 'size': 'L', 'quantity': 1, 'price': 52.5},
            {'productSlug': 'bayou-cat', 'productName': 'Bayou Cat', 'size': 'S', 'quantity': 3, 'price': 19.99},
        ],
        'fulfillmentMethod': 'pickup',
        'shippingAddress': '',
        'notes': '',
        'honeypot': '',
    }
    payload.update(overrides)
    return payload


def legacy_payload(**overrides):
    payload = {
        'name': 'Sam Green',
        'email': 'sam@example.com',
        'productSlug': 'tiger-lily',
        'productName': 'Tiger Lily',
        'size': '',
        'quantity': 1,
        'fulfillmentMethod': 'delivery',
    }
    payload.update(overrides)
    return payload


class OrderValidationTestCase(TestCase):
    """Test cases for the cart and legacy validators."""

    def test_valid_cart_order(self):
        result = validate_cart_order(cart_payload())

        self.assertTrue(result.ok)
        self.assertEqual(result.data.kind, CART)
        self.assertEqual([item.price_cents for item in result.data.items], [4500, 5250, 1999])
        self.assertEqual(result.data.item_count, 6)
        self.assertIsNone(result.data.phone)

    def test_shipping_requires_address(self):
        for address in ['', '   ', None]:
            result = validate_cart_order(cart_payload(fulfillmentMethod='shipping', shippingAddress=address))
            self.assertFalse(result.ok)
            self.assertEqual(result.error_kind, SHIPPING_ADDRESS_REQUIRED)
            self.assertEqual(result.message, 'Shipping address is required for shipping orders')

    def test_shipping_with_address(self):
        result = validate_cart_order(cart_payload(
            fulfillmentMethod='shipping',
            shippingAddress='1 Royal St\nNew Orleans, LA'
        ))
        self.assertTrue(result.ok)
        self.assertEqual(result.data.shipping_address, '1 Royal St\nNew Orleans, LA')

    def test_honeypot_is_spam(self):
        result = validate_cart_order(cart_payload(honeypot='http://spam.example'))
        self.assertFalse(result.ok)
        self.assertTrue(result.is_spam)
        self.assertEqual(result.error_kind, SPAM)

    def test_honeypot_checked_before_shipping_rule(self):
        result = validate_cart_order(cart_payload(honeypot='x', fulfillmentMethod='shipping'))
        self.assertEqual(result.error_kind, SPAM)

    def test_schema_checked_before_honeypot(self):
        result = validate_cart_order(cart_payload(honeypot='x', email='not-an-email'))
        self.assertEqual(result.error_kind, SCHEMA_ERROR)

    def test_empty_cart(self):
        result = validate_cart_order(cart_payload(items=[]))
        self.assertEqual(result.error_kind, SCHEMA_ERROR)
        self.assertIn('Cart cannot be empty', result.message)

    def test_quantity_out_of_range(self):
        items = [{'productSlug': 'a', 'productName': 'A', 'size': 'M', 'quantity': 11, 'price': 10}]
        result = validate_cart_order(cart_payload(items=items))
        self.assertEqual(result.error_kind, SCHEMA_ERROR)
        self.assertIn('Quantity must be between 1 and 10', result.message)

    def test_negative_price(self):
        items = [{'productSlug': 'a', 'productName': 'A', 'size': 'M', 'quantity': 1, 'price': -1}]
        result = validate_cart_order(cart_payload(items=items))
        self.assertEqual(result.error_kind, SCHEMA_ERROR)

    def test_price_too_large(self):
        items = [{'productSlug': 'a', 'productName': 'A', 'size': 'M', 'quantity': 1, 'price': 1e20}]
        result = validate_cart_order(cart_payload(items=items))
        self.assertEqual(result.error_kind, SCHEMA_ERROR)
        self.assertIn('Price is too large', result.message)

        items[0]['price'] = 21474836.47
        result = validate_cart_order(cart_payload(items=items))
        self.assertEqual(result.data.items[0].price_cents, 2147483647)

    def test_numeric_strings_are_coerced(self):
        """
        Numeric strings are accepted for quantity and price, and numbers for
        text fields, the way DRF fields coerce them.
        """
        items = [{'productSlug': 'a', 'productName': 1234, 'size': 'M', 'quantity': '3', 'price': '45'}]
        result = validate_cart_order(cart_payload(items=items))

        self.assertTrue(result.ok)
        item = result.data.items[0]
        self.assertEqual((item.product_name, item.quantity, item.price_cents), ('1234', 3, 4500))

        result = validate_cart_order(cart_payload(items=[dict(items[0], quantity='three')]))
        self.assertEqual(result.error_kind, SCHEMA_ERROR)

    def test_schema_messages_are_joined(self):
        result = validate_cart_order(cart_payload(name='J', email='nope'))
        self.assertEqual(result.error_kind, SCHEMA_ERROR)
        self.assertIn('Name must be at least 2 characters', result.message)
        self.assertIn('Please enter a valid email address', result.message)

    def test_notes_too_long(self):
        result = validate_cart_order(cart_payload(notes='x' * 1001))
        self.assertIn('Notes must be less than 1000 characters', result.message)

    def test_non_object_body(self):
        result = validate_order_submission(['not', 'an', 'object'])
        self.assertEqual(result.error_kind, SCHEMA_ERROR)

    def test_legacy_order(self):
        result = validate_order_request(legacy_payload())

        self.assertTrue(result.ok)
        self.assertEqual(result.data.kind, LEGACY)
        self.assertEqual(len(result.data.items), 1)
        self.assertIsNone(result.data.items[0].price_cents)
        self.assertEqual(result.data.items[0].size, '')

    def test_legacy_honeypot_and_shipping(self):
        self.assertTrue(validate_order_request(legacy_payload(honeypot='bot')).is_spam)
        result = validate_order_request(legacy_payload(fulfillmentMethod='shipping'))
        self.assertEqual(result.error_kind, SHIPPING_ADDRESS_REQUIRED)

    def test_legacy_requires_product(self):
        result = validate_order_request(legacy_payload(productSlug=''))
        self.assertIn('Please select a product', result.message)

    def test_dispatch_on_items_list(self):
        self.assertEqual(validate_order_submission(cart_payload()).data.kind, CART)
        self.assertEqual(validate_order_submission(legacy_payload()).data.kind, LEGACY)

        # Non-list items fall through to the legacy shape and fail its schema
        result = validate_order_submission(cart_payload(items='tiger-lily'))
        self.assertEqual(result.error_kind, SCHEMA_ERROR)


class OrderPersistenceTestCase(TestCase):
    """Test cases for storing and updating order requests."""

    def test_cart_order_round_trip(self):
        """
        Given: A cart with 3 lines
        When: The request is stored and read back
        Then: Quantities, sizes and prices match the submission exactly,
              even after the catalog product is renamed
        """
        order = validate_cart_order(cart_payload()).data
        product = Product.objects.create(name='Tiger Lily', slug='tiger-lily')

        request_id = create_order_request(order)

        product.name = 'Tiger Lily (Reissue)'
        product.save()

        stored = get_order_request(request_id)
        items = list(stored.items.all())
        self.assertEqual(stored.status, OrderRequest.Status.NEW)
        self.assertEqual(stored.fulfillment_method, OrderRequest.FulfillmentMethod.PICKUP)
        self.assertEqual(
            [(i.product_slug, i.product_name, i.variant_size, i.quantity, i.price) for i in items],
            [
                ('tiger-lily', 'Tiger Lily', 'M', 2, 4500),
                ('night-heron', 'Night Heron', 'L', 1, 5250),
                ('bayou-cat', 'Bayou Cat', 'S', 3, 1999),
            ]
        )
        self.assertEqual(stored.item_count, 6)

    def test_legacy_order_defaults(self):
        order = validate_order_request(legacy_payload(
            fulfillmentMethod='shipping',
            shippingAddress='1 Royal St'
        )).data

        stored = get_order_request(create_order_request(order))

        item = stored.items.get()
        self.assertEqual(item.variant_size, 'Unknown')
        self.assertIsNone(item.price)
        self.assertEqual(stored.fulfillment_method, OrderRequest.FulfillmentMethod.SHIPPING)
        self.assertEqual(stored.shipping_address, '1 Royal St')

    def test_status_update(self):
        request_id = create_order_request(validate_cart_order(cart_payload()).data)

        updated = update_order_request_status(request_id, OrderRequest.Status.CLOSED)
        self.assertEqual(updated.status, OrderRequest.Status.CLOSED)

        # Transitions are not enforced to be monotonic
        updated = update_order_request_status(request_id, OrderRequest.Status.NEW)
        self.assertEqual(updated.status, OrderRequest.Status.NEW)

    def test_status_update_unknown_request(self):
        with self.assertRaises(OrderRequestNotFound):
            update_order_request_status(99999, OrderRequest.Status.CLOSED)


class OrderIntakeViewTestCase(TestCase):
    """Test cases for POST /api/order."""

    def setUp(self):
        reset_rate_limits()
        patcher = patch('orders.views.dispatch_order_notifications')
        self.dispatch = patcher.start()
        self.addCleanup(patcher.stop)

    def post(self, payload, **extra):
        return self.client.post('/api/order', payload, content_type='application/json', **extra)

    def test_cart_order_accepted(self):
        response = self.post(cart_payload())

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {'success': True, 'message': 'Order request submitted successfully'})
        order_request = OrderRequest.objects.get()
        self.assertEqual(order_request.items.count(), 3)

        self.dispatch.assert_called_once()
        order, request_id = self.dispatch.call_args.args
        self.assertEqual(order.email, 'jane@example.com')
        self.assertEqual(request_id, order_request.id)

    def test_legacy_order_accepted(self):
        response = self.post(legacy_payload())
        self.assertEqual(response.status_code, 200)
        self.assertEqual(OrderRequest.objects.get().items.get().product_slug, 'tiger-lily')

    def test_spam_is_silently_absorbed(self):
        """
        Given: A filled honeypot field
        Then: 200 success, no stored request, no notification
        """
        response = self.post(cart_payload(honeypot='http://spam.example'))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {'success': True})
        self.assertFalse(OrderRequest.objects.exists())
        self.dispatch.assert_not_called()

    def test_validation_error(self):
        response = self.post(cart_payload(email='nope'))

        self.assertEqual(response.status_code, 400)
        self.assertIn('Please enter a valid email address', response.json()['error'])
        self.assertFalse(OrderRequest.objects.exists())
        self.dispatch.assert_not_called()

    def test_shipping_address_required(self):
        response = self.post(cart_payload(fulfillmentMethod='shipping'))
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {'error': 'Shipping address is required for shipping orders'})

    def test_malformed_json(self):
        response = self.client.post('/api/order', '{"name": ', content_type='application/json')
        self.assertEqual(response.status_code, 400)

    def test_form_encoded_legacy_order(self):
        response = self.client.post(
            '/api/order',
            urlencode(legacy_payload()),
            content_type='application/x-www-form-urlencoded'
        )

        self.assertEqual(response.status_code, 200)
        item = OrderRequest.objects.get().items.get()
        self.assertEqual((item.product_slug, item.quantity), ('tiger-lily', 1))

    def test_multipart_legacy_order(self):
        response = self.client.post('/api/order', legacy_payload())

        self.assertEqual(response.status_code, 200)
        self.assertEqual(OrderRequest.objects.count(), 1)

    def test_form_encoded_validation_error(self):
        response = self.client.post('/api/order', legacy_payload(email='nope'))

        self.assertEqual(response.status_code, 400)
        self.assertIn('Please enter a valid email address', response.json()['error'])

    def test_unsupported_content_type(self):
        response = self.client.post('/api/order', 'name=Jane', content_type='text/plain')

        self.assertEqual(response.status_code, 415)
        self.assertIn('text/plain', response.json()['error'])
        self.assertFalse(OrderRequest.objects.exists())

    def test_oversized_price_rejected(self):
        items = [{'productSlug': 'a', 'productName': 'A', 'size': 'M', 'quantity': 1, 'price': 1e20}]
        response = self.post(cart_payload(items=items))

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {'error': 'Price is too large'})

    def test_rate_limited_after_five_requests(self):
        for _ in range(5):
            response = self.post(cart_payload(), HTTP_X_FORWARDED_FOR='203.0.113.9')
            self.assertEqual(response.status_code, 200)

        response = self.post(cart_payload(), HTTP_X_FORWARDED_FOR='203.0.113.9')

        self.assertEqual(response.status_code, 429)
        body = response.json()
        self.assertEqual(body['error'], 'Too many requests. Please try again later.')
        self.assertGreater(body['retryAfter'], 0)
        self.assertEqual(response['Retry-After'], str(body['retryAfter']))
        self.assertEqual(OrderRequest.objects.count(), 5)

        # Another client has its own bucket
        response = self.post(cart_payload(), HTTP_X_FORWARDED_FOR='198.51.100.4')
        self.assertEqual(response.status_code, 200)

    @override_settings(RATE_LIMIT_ENABLED=False)
    def test_rate_limit_can_be_disabled(self):
        for _ in range(7):
            self.assertEqual(self.post(cart_payload()).status_code, 200)

    def test_persistence_failure_still_acknowledged(self):
        with patch('orders.views.create_order_request', side_effect=DatabaseError('db down')):
            with self.assertLogs('orders.views', level='ERROR'):
                response = self.post(cart_payload())

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()['success'])
        order, request_id = self.dispatch.call_args.args
        self.assertIsNone(request_id)

    def test_non_database_persistence_failure_still_acknowledged(self):
        """
        Given: Storage fails with an error Django does not wrap
        Then: The customer still gets 200 and notifications are still sent
        """
        with patch('orders.views.create_order_request', side_effect=OverflowError('int too large')):
            with self.assertLogs('orders.views', level='ERROR'):
                response = self.post(cart_payload())

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['message'], 'Order request submitted successfully')
        self.dispatch.assert_called_once()
        order, request_id = self.dispatch.call_args.args
        self.assertEqual(order.email, 'jane@example.com')
        self.assertIsNone(request_id)

    def test_unexpected_error(self):
        with patch('orders.views.validate_order_submission', side_effect=RuntimeError('boom')):
            response = self.post(cart_payload())

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {'error': 'An unexpected error occurred. Please try again.'})

    def test_get_not_allowed(self):
        response = self.client.get('/api/order')
        self.assertEqual(response.status_code, 405)
        self.assertEqual(response.json(), {'error': 'Method not allowed'})


@override_settings(
    ORDER_EMAIL_BACKEND='django.core.mail.backends.locmem.EmailBackend',
    ORDER_TO_EMAIL='owner@example.com',
    RESEND_API_KEY='',
    SMTP_HOST='',
    SMTP_USER='',
    SMTP_PASS='',
)
class NotificationTestCase(TestCase):
    """Test cases for the provider fallback chain."""

    def setUp(self):
        self.order = validate_cart_order(cart_payload()).data

    def test_no_providers_logs_order(self):
        with self.assertLogs('orders.notifications', level='WARNING') as logs:
            result = send_order_notifications(self.order, 12)

        self.assertFalse(result.delivered)
        self.assertEqual(result.channel_used, LOGGED_ONLY)
        self.assertEqual(len(mail.outbox), 0)
        self.assertIn('jane@example.com', '\n'.join(logs.output))

    @override_settings(RESEND_API_KEY='re_test')
    def test_primary_provider(self):
        result = send_order_notifications(self.order, 12)

        self.assertTrue(result.delivered)
        self.assertEqual(result.channel_used, PRIMARY)
        self.assertEqual(len(mail.outbox), 2)
        owner, customer = mail.outbox
        self.assertEqual(owner.to, ['owner@example.com'])
        self.assertEqual(owner.subject, 'New Order Request: 6 item(s)')
        self.assertIn('Request: #12', owner.body)
        self.assertEqual(customer.to, ['jane@example.com'])
        self.assertIn("We've got your request, Jane.", customer.body)

    @override_settings(RESEND_API_KEY='re_test', SMTP_HOST='smtp.example.com', SMTP_USER='u', SMTP_PASS='p')
    def test_falls_back_to_secondary(self):
        with patch('orders.notifications.deliver', side_effect=[SMTPException('rejected'), None]) as deliver:
            result = send_order_notifications(self.order)

        self.assertEqual(deliver.call_count, 2)
        self.assertTrue(result.delivered)
        self.assertEqual(result.channel_used, SECONDARY)
        self.assertIn(PRIMARY, result.errors)

    @override_settings(RESEND_API_KEY='re_test', SMTP_HOST='smtp.example.com', SMTP_USER='u', SMTP_PASS='p')
    def test_all_providers_fail(self):
        with patch('orders.notifications.deliver', side_effect=SMTPException('down')):
            result = send_order_notifications(self.order)

        self.assertFalse(result.delivered)
        self.assertEqual(result.channel_used, LOGGED_ONLY)
        self.assertEqual(set(result.errors), {PRIMARY, SECONDARY})

    @override_settings(RESEND_API_KEY='re_test')
    def test_legacy_subject(self):
        order = validate_order_request(legacy_payload()).data
        send_order_notifications(order)
        self.assertEqual(mail.outbox[0].subject, 'New Order Request: Tiger Lily')

    def test_dispatch_runs_inline_when_broker_unavailable(self):
        with patch('orders.tasks.send_order_notifications_task') as task:
            task.delay.side_effect = OSError('broker down')
            with patch('orders.notifications.send_order_notifications') as send:
                dispatch_order_notifications(self.order, 3)

        send.assert_called_once_with(self.order, 3)

    def test_task_round_trips_payload(self):
        result = send_order_notifications_task(self.order.to_payload(), 5)
        self.assertEqual(result['channelUsed'], LOGGED_ONLY)
        self.assertFalse(result['delivered'])


class OrderRequestAdminViewTestCase(AdminSessionMixin, TestCase):
    """Test cases for /api/admin/requests."""

    def setUp(self):
        self.request_id = create_order_request(validate_cart_order(cart_payload()).data)

    def test_requires_admin(self):
        response = self.client.patch(
            f'/api/admin/requests/{self.request_id}',
            {'status': 'CONFIRMED'},
            content_type='application/json'
        )
        self.assertEqual(response.status_code, 401)

    def test_update_status(self):
        self.login_admin()
        response = self.client.patch(
            f'/api/admin/requests/{self.request_id}',
            {'status': 'CONFIRMED'},
            content_type='application/json'
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(OrderRequest.objects.get().status, OrderRequest.Status.CONFIRMED)

    def test_invalid_status(self):
        self.login_admin()
        response = self.client.patch(
            f'/api/admin/requests/{self.request_id}',
            {'status': 'SHIPPED'},
            content_type='application/json'
        )
        self.assertEqual(response.status_code, 400)

    def test_unknown_request(self):
        self.login_admin()
        response = self.client.patch('/api/admin/requests/99999', {'status': 'CLOSED'}, content_type='application/json')
        self.assertEqual(response.status_code, 404)

    def test_list_filters_by_status(self):
        self.login_admin()
        update_order_request_status(self.request_id, OrderRequest.Status.CLOSED)
        create_order_request(validate_order_request(legacy_payload()).data)

        response = self.client.get('/api/admin/requests?status=new')

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(len(data), 1)
        self.assertEqual(data[0]['items'][0]['variant_size'], 'Unknown')

    def test_detail(self):
        self.login_admin()
        response = self.client.get(f'/api/admin/requests/{self.request_id}')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['item_count'], 6)
