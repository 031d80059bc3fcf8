"""
Tests for the inventory ledger.

Test Cases:
1. Counter adjustments saturate at zero and are logged
2. Restock timestamp only moves on positive on-hand deltas
3. Variant creation and deletion
4. Admin endpoints for products and variants
5. seed_catalog management command
"""
import json
import os
import tempfile
from io import StringIO

from django.core.management import call_command
from django.test import TestCase

from core.testing import AdminSessionMixin
from inventory.models import Product, Variant
from inventory.serializers import ProductSerializer
from inventory.services import (
    adjust_variant,
    clamp_counter,
    create_variant,
    delete_variant,
    ProductNotFound,
    VariantNotFound,
)


class InventoryTestMixin:
    def make_variant(self, size='M', **kwargs):
        product, _ = Product.objects.get_or_create(slug='tiger-lily', defaults={'name': 'Tiger Lily'})
        return Variant.objects.create(product=product, size=size, **kwargs)


class LedgerTestCase(InventoryTestMixin, TestCase):
    """Test cases for adjust_variant and friends."""

    def test_clamp_counter(self):
        self.assertEqual(clamp_counter(3, -100), 0)
        self.assertEqual(clamp_counter(3, -3), 0)
        self.assertEqual(clamp_counter(3, 2), 5)

    def test_adjust_clamps_at_zero(self):
        """
        Given: A variant with 3 on hand
        When: On-hand is adjusted by -100
        Then: The stored value is 0 and a clamp warning is logged
        """
        variant = self.make_variant(quantity_on_hand=3)

        with self.assertLogs('inventory.services', level='WARNING') as logs:
            value = adjust_variant(variant.id, 'quantityOnHand', -100)

        self.assertEqual(value, 0)
        variant.refresh_from_db()
        self.assertEqual(variant.quantity_on_hand, 0)
        self.assertIn('clamped', logs.output[0])

    def test_positive_on_hand_stamps_restock(self):
        variant = self.make_variant(quantity_on_hand=1)
        self.assertIsNone(variant.last_restocked_at)

        self.assertEqual(adjust_variant(variant.id, 'quantityOnHand', 4), 5)

        variant.refresh_from_db()
        self.assertIsNotNone(variant.last_restocked_at)

    def test_other_adjustments_leave_restock_alone(self):
        variant = self.make_variant(quantity_on_hand=5)

        adjust_variant(variant.id, 'quantityOnHand', -1)
        adjust_variant(variant.id, 'quantityReserved', 2)
        adjust_variant(variant.id, 'quantitySold', 1)

        variant.refresh_from_db()
        self.assertIsNone(variant.last_restocked_at)
        self.assertEqual(
            (variant.quantity_on_hand, variant.quantity_reserved, variant.quantity_sold),
            (4, 2, 1)
        )

    def test_zero_delta_is_a_no_op(self):
        variant = self.make_variant(quantity_on_hand=2)
        updated_at = variant.updated_at

        self.assertEqual(adjust_variant(variant.id, 'quantityOnHand', 0), 2)

        variant.refresh_from_db()
        self.assertEqual(variant.updated_at, updated_at)
        self.assertIsNone(variant.last_restocked_at)

    def test_unknown_variant(self):
        with self.assertRaises(VariantNotFound):
            adjust_variant(99999, 'quantityOnHand', 1)

    def test_unknown_counter(self):
        variant = self.make_variant()
        with self.assertRaises(ValueError):
            adjust_variant(variant.id, 'price', 1)

    def test_create_variant(self):
        product = Product.objects.create(name='Night Heron', slug='night-heron')

        stocked = create_variant(product.id, 'L', price=5200, quantity_on_hand=2)
        empty = create_variant(product.id, 'S', sku='')

        self.assertIsNotNone(stocked.last_restocked_at)
        self.assertIsNone(empty.last_restocked_at)
        self.assertIsNone(empty.sku)
        self.assertTrue(empty.is_out_of_stock)

    def test_create_variant_unknown_product(self):
        with self.assertRaises(ProductNotFound):
            create_variant(99999, 'M')

    def test_delete_variant(self):
        variant = self.make_variant()
        delete_variant(variant.id)
        self.assertFalse(Variant.objects.filter(id=variant.id).exists())

        with self.assertRaises(VariantNotFound):
            delete_variant(variant.id)


class InventoryAPITestCase(InventoryTestMixin, AdminSessionMixin, TestCase):
    """Test cases for /api/admin/products and /api/admin/variants."""

    def setUp(self):
        self.login_admin()

    def test_requires_admin(self):
        self.client.logout()
        variant = self.make_variant()

        response = self.client.patch(
            f'/api/admin/variants/{variant.id}',
            {'field': 'quantityOnHand', 'delta': 1},
            content_type='application/json'
        )

        self.assertEqual(response.status_code, 401)
        self.assertEqual(self.client.delete(f'/api/admin/variants/{variant.id}').status_code, 401)

    def test_adjust(self):
        variant = self.make_variant(quantity_on_hand=3)

        response = self.client.patch(
            f'/api/admin/variants/{variant.id}',
            {'field': 'quantityOnHand', 'delta': -100},
            content_type='application/json'
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {'success': True, 'value': 0})

    def test_adjust_invalid_field(self):
        variant = self.make_variant()
        response = self.client.patch(
            f'/api/admin/variants/{variant.id}',
            {'field': 'quantityLost', 'delta': 1},
            content_type='application/json'
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn('error', response.json())

    def test_adjust_delta_out_of_range(self):
        variant = self.make_variant(quantity_on_hand=3)

        for delta in [10 ** 12, -10 ** 12]:
            response = self.client.patch(
                f'/api/admin/variants/{variant.id}',
                {'field': 'quantityOnHand', 'delta': delta},
                content_type='application/json'
            )
            self.assertEqual(response.status_code, 400)
            self.assertEqual(response.json(), {'error': 'Delta must be between -1000000 and 1000000'})

        variant.refresh_from_db()
        self.assertEqual(variant.quantity_on_hand, 3)

    def test_adjust_unknown_variant(self):
        response = self.client.patch(
            '/api/admin/variants/99999',
            {'field': 'quantitySold', 'delta': 1},
            content_type='application/json'
        )
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json(), {'error': 'Variant not found'})

    def test_delete(self):
        variant = self.make_variant()

        self.assertEqual(self.client.delete(f'/api/admin/variants/{variant.id}').status_code, 200)
        self.assertEqual(self.client.delete(f'/api/admin/variants/{variant.id}').status_code, 404)

    def test_list_variants(self):
        self.make_variant(size='S', quantity_on_hand=0)
        self.make_variant(size='M', quantity_on_hand=2)

        response = self.client.get('/api/admin/variants')
        self.assertEqual([v['size'] for v in response.json()], ['M', 'S'])

        response = self.client.get('/api/admin/variants?in_stock=true')
        data = response.json()
        self.assertEqual(len(data), 1)
        self.assertEqual(data[0]['product_name'], 'Tiger Lily')
        self.assertFalse(data[0]['is_out_of_stock'])

    def test_create_variant(self):
        product = Product.objects.create(name='Night Heron', slug='night-heron')

        response = self.client.post(
            '/api/admin/variants',
            {'productId': product.id, 'size': 'XL', 'sku': 'NH-XL', 'price': 5200, 'quantityOnHand': 1},
            content_type='application/json'
        )

        self.assertEqual(response.status_code, 200)
        variant = Variant.objects.get(id=response.json()['id'])
        self.assertEqual((variant.size, variant.price, variant.quantity_on_hand), ('XL', 5200, 1))

        response = self.client.post(
            '/api/admin/variants',
            {'productId': product.id, 'size': 'L', 'sku': 'NH-XL'},
            content_type='application/json'
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {'error': 'A variant with this SKU already exists'})

    def test_create_variant_unknown_product(self):
        response = self.client.post(
            '/api/admin/variants',
            {'productId': 99999, 'size': 'M'},
            content_type='application/json'
        )
        self.assertEqual(response.status_code, 404)

    def test_create_product(self):
        response = self.client.post(
            '/api/admin/products',
            {'name': 'Bayou Cat', 'slug': 'bayou-cat'},
            content_type='application/json'
        )

        self.assertEqual(response.status_code, 200)
        product = Product.objects.get(slug='bayou-cat')
        self.assertEqual(product.type, 'button-down')

        response = self.client.post('/api/admin/products', {'slug': 'x'}, content_type='application/json')
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {'error': 'Name is required'})

    def test_variant_count_uses_prefetched_variants(self):
        for slug in ['bayou-cat', 'night-heron', 'tiger-lily']:
            product = Product.objects.create(name=slug.title(), slug=slug)
            Variant.objects.create(product=product, size='S')
            Variant.objects.create(product=product, size='M')

        # One query for products, one for their variants
        with self.assertNumQueries(2):
            data = ProductSerializer(Product.objects.prefetch_related('variants'), many=True).data

        self.assertEqual([p['variant_count'] for p in data], [2, 2, 2])


class SeedCatalogCommandTestCase(TestCase):
    """Test cases for the seed_catalog management command."""

    def write_catalog(self, catalog):
        handle, path = tempfile.mkstemp(suffix='.json')
        with os.fdopen(handle, 'w', encoding='utf-8') as f:
            json.dump(catalog, f)
        self.addCleanup(os.remove, path)
        return path

    def test_seeds_catalog_file(self):
        path = self.write_catalog([{
            'name': 'Tiger Lily',
            'slug': 'tiger-lily',
            'price': 45,
            'variants': [{'size': 'S', 'available': True}, {'size': 'M', 'available': False}],
        }])

        call_command('seed_catalog', file=path, stock=3, stdout=StringIO())

        product = Product.objects.get(slug='tiger-lily')
        small = product.variants.get(size='S')
        medium = product.variants.get(size='M')
        self.assertEqual((small.quantity_on_hand, small.price), (3, 4500))
        self.assertIsNotNone(small.last_restocked_at)
        self.assertEqual(medium.quantity_on_hand, 0)
        self.assertIsNone(medium.last_restocked_at)

    def test_reseeding_skips_existing_sizes(self):
        path = self.write_catalog([{
            'name': 'Tiger Lily',
            'slug': 'tiger-lily',
            'price': 45,
            'variants': [{'size': 'S', 'available': True}],
        }])
        call_command('seed_catalog', file=path, stdout=StringIO())
        Variant.objects.update(quantity_on_hand=7)

        call_command('seed_catalog', file=path, stdout=StringIO())

        self.assertEqual(Variant.objects.count(), 1)
        self.assertEqual(Variant.objects.get().quantity_on_hand, 7)

    def test_missing_file_uses_sample_data(self):
        out = StringIO()
        call_command('seed_catalog', file='/nonexistent/products.json', stdout=out)

        self.assertTrue(Product.objects.filter(slug='sample-shirt').exists())
        self.assertEqual(Variant.objects.count(), 4)
        self.assertIn('using sample data', out.getvalue())

    def test_clear(self):
        Product.objects.create(name='Old', slug='old')
        call_command('seed_catalog', file='/nonexistent/products.json', clear=True, stdout=StringIO())
        self.assertFalse(Product.objects.filter(slug='old').exists())
