"""
Tests for sale recording.

Test Cases:
1. Totals and inventory movement for a recorded sale
2. Oversell saturates on-hand at zero
3. All-or-nothing behavior on failure and unknown variants
4. Line item snapshots survive variant deletion
5. Admin sales and dashboard endpoints
6. Concurrent sales against the same variant (databases with row locks)
"""
import threading
from unittest.mock import patch

from django.db import connection, DatabaseError
from django.test import TestCase, TransactionTestCase, skipUnlessDBFeature

from core.testing import AdminSessionMixin
from inventory.models import Product, Variant
from inventory.services import delete_variant, VariantNotFound
from orders.models import OrderRequest
from sales.models import Sale, SaleItem
from sales.services import calculate_total, record_sale, SaleValidationError


def make_catalog():
    product = Product.objects.create(name='Tiger Lily', slug='tiger-lily')
    variant_a = Variant.objects.create(product=product, size='M', quantity_on_hand=5)
    variant_b = Variant.objects.create(product=product, size='L', quantity_on_hand=1)
    return variant_a, variant_b


class RecordSaleTestCase(TestCase):
    """Test cases for record_sale."""

    def setUp(self):
        self.variant_a, self.variant_b = make_catalog()

    def test_records_sale_and_moves_inventory(self):
        """
        Given: A with 5 on hand and B with 1 on hand
        When: A sale of 2x A at 1000 and 1x B at 500 is recorded
        Then: Total is 2500, A is 3 on hand / 2 sold, B is 0 on hand / 1 sold
        """
        sale = record_sale('POPUP', [
            {'variant_id': self.variant_a.id, 'quantity': 2, 'unit_price': 1000},
            {'variant_id': self.variant_b.id, 'quantity': 1, 'unit_price': 500},
        ])

        self.assertEqual(sale.total, 2500)
        self.assertEqual(sale.line_items.count(), 2)

        self.variant_a.refresh_from_db()
        self.variant_b.refresh_from_db()
        self.assertEqual((self.variant_a.quantity_on_hand, self.variant_a.quantity_sold), (3, 2))
        self.assertEqual((self.variant_b.quantity_on_hand, self.variant_b.quantity_sold), (0, 1))

    def test_total_is_empty_without_prices(self):
        sale = record_sale('INSTAGRAM', [{'variant_id': self.variant_a.id, 'quantity': 1}])
        self.assertIsNone(sale.total)

    def test_calculate_total_skips_unpriced_lines(self):
        self.assertEqual(calculate_total([
            {'quantity': 2, 'unit_price': 1000},
            {'quantity': 5, 'unit_price': None},
        ]), 2000)

    def test_oversell_clamps_on_hand(self):
        with self.assertLogs('inventory.services', level='WARNING'):
            record_sale('OTHER', [{'variant_id': self.variant_b.id, 'quantity': 3}])

        self.variant_b.refresh_from_db()
        self.assertEqual(self.variant_b.quantity_on_hand, 0)
        self.assertEqual(self.variant_b.quantity_sold, 3)

    def test_empty_line_items(self):
        with self.assertRaises(SaleValidationError):
            record_sale('POPUP', [])

    def test_unknown_variant_records_nothing(self):
        with self.assertRaises(VariantNotFound):
            record_sale('POPUP', [
                {'variant_id': self.variant_a.id, 'quantity': 1, 'unit_price': 1000},
                {'variant_id': 99999, 'quantity': 1},
            ])

        self.assertFalse(Sale.objects.exists())
        self.variant_a.refresh_from_db()
        self.assertEqual(self.variant_a.quantity_on_hand, 5)

    def test_failure_rolls_back_sale(self):
        """
        Given: The inventory movement fails after the sale rows are written
        Then: No sale or line item remains and counters are unchanged
        """
        with patch('sales.services._apply_sale_to_inventory', side_effect=DatabaseError('write failed')):
            with self.assertRaises(DatabaseError):
                record_sale('POPUP', [{'variant_id': self.variant_a.id, 'quantity': 2, 'unit_price': 1000}])

        self.assertFalse(Sale.objects.exists())
        self.assertFalse(SaleItem.objects.exists())
        self.variant_a.refresh_from_db()
        self.assertEqual((self.variant_a.quantity_on_hand, self.variant_a.quantity_sold), (5, 0))

    def test_snapshot_survives_variant_deletion(self):
        sale = record_sale('WEBSITE', [{'variant_id': self.variant_a.id, 'quantity': 1, 'unit_price': 4500}])

        delete_variant(self.variant_a.id)

        item = sale.line_items.get()
        self.assertIsNone(item.variant)
        self.assertEqual((item.product_name, item.variant_size, item.subtotal), ('Tiger Lily', 'M', 4500))

    def test_repeated_variant_lines(self):
        record_sale('POPUP', [
            {'variant_id': self.variant_a.id, 'quantity': 1},
            {'variant_id': self.variant_a.id, 'quantity': 2},
        ])

        self.variant_a.refresh_from_db()
        self.assertEqual((self.variant_a.quantity_on_hand, self.variant_a.quantity_sold), (2, 3))


class SalesAPITestCase(AdminSessionMixin, TestCase):
    """Test cases for /api/admin/sales and /api/admin/dashboard."""

    def setUp(self):
        self.variant_a, self.variant_b = make_catalog()
        self.login_admin()

    def post_sale(self, payload):
        return self.client.post('/api/admin/sales', payload, content_type='application/json')

    def test_requires_admin(self):
        self.client.logout()
        response = self.post_sale({'channel': 'POPUP', 'lineItems': [{'variantId': self.variant_a.id, 'quantity': 1}]})
        self.assertEqual(response.status_code, 401)
        self.assertEqual(self.client.get('/api/admin/dashboard').status_code, 401)

    def test_record_sale(self):
        response = self.post_sale({
            'channel': 'POPUP',
            'customerName': 'Jane',
            'email': '',
            'lineItems': [
                {'variantId': self.variant_a.id, 'quantity': 2, 'unitPrice': 1000},
                {'variantId': self.variant_b.id, 'quantity': 1, 'unitPrice': 500},
            ],
        })

        self.assertEqual(response.status_code, 200)
        sale = Sale.objects.get(id=response.json()['id'])
        self.assertEqual(sale.total, 2500)
        self.assertEqual(sale.customer_name, 'Jane')
        self.assertIsNone(sale.email)

    def test_empty_line_items(self):
        response = self.post_sale({'channel': 'POPUP', 'lineItems': []})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {'error': 'At least one item is required'})

    def test_invalid_channel(self):
        response = self.post_sale({'channel': 'MARKET', 'lineItems': [{'variantId': self.variant_a.id, 'quantity': 1}]})
        self.assertEqual(response.status_code, 400)

    def test_unknown_variant(self):
        response = self.post_sale({'channel': 'POPUP', 'lineItems': [{'variantId': 99999, 'quantity': 1}]})

        self.assertEqual(response.status_code, 404)
        self.assertFalse(Sale.objects.exists())

    def test_storage_failure(self):
        with patch('sales.services._apply_sale_to_inventory', side_effect=DatabaseError('write failed')):
            response = self.post_sale({'channel': 'POPUP', 'lineItems': [{'variantId': self.variant_a.id, 'quantity': 1}]})

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {'error': 'Failed to record sale'})
        self.assertFalse(Sale.objects.exists())

    def test_list_sales(self):
        record_sale('POPUP', [{'variant_id': self.variant_a.id, 'quantity': 1, 'unit_price': 1000}])

        response = self.client.get('/api/admin/sales')

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(len(data), 1)
        self.assertEqual(data[0]['line_items'][0]['product_name'], 'Tiger Lily')

    def test_dashboard(self):
        record_sale('POPUP', [
            {'variant_id': self.variant_a.id, 'quantity': 2, 'unit_price': 1000},
            {'variant_id': self.variant_b.id, 'quantity': 1, 'unit_price': 500},
        ])
        OrderRequest.objects.create(customer_name='Sam', email='sam@example.com')

        response = self.client.get('/api/admin/dashboard')

        self.assertEqual(response.status_code, 200)
        stats = response.json()
        self.assertEqual(stats['inventory'], {'quantity_on_hand': 3, 'quantity_reserved': 0, 'quantity_sold': 3})
        self.assertEqual(stats['units_sold_recent'], 3)
        self.assertEqual(stats['units_sold_all_time'], 3)
        self.assertEqual(stats['top_variants'][0]['id'], self.variant_a.id)
        self.assertEqual(stats['new_requests'], 1)


@skipUnlessDBFeature('has_select_for_update')
class ConcurrentSaleTestCase(TransactionTestCase):
    """Concurrent sales of one variant must not lose updates."""

    def test_concurrent_sales(self):
        variant, _ = make_catalog()
        errors = []

        def sell():
            try:
                record_sale('POPUP', [{'variant_id': variant.id, 'quantity': 1}])
            except Exception as e:
                errors.append(e)
            finally:
                connection.close()

        threads = [threading.Thread(target=sell) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(errors, [])
        variant.refresh_from_db()
        self.assertEqual(variant.quantity_on_hand, 1)
        self.assertEqual(variant.quantity_sold, 4)
        self.assertEqual(Sale.objects.count(), 4)
