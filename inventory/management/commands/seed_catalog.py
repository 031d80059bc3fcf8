"""
Management command to seed products and variants from the catalog JSON.

Catalog format:
    [{"name": ..., "slug": ..., "price": 45, "type": ..., "description": ...,
      "variants": [{"size": "M", "available": true}, ...]}]

Usage:
    python manage.py seed_catalog
    python manage.py seed_catalog --file data/products.json --stock 3
    python manage.py seed_catalog --clear  # Clear existing data first
"""
import json

from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from inventory.models import Product, Variant

SAMPLE_CATALOG = [
    {
        'name': 'Sample Shirt',
        'slug': 'sample-shirt',
        'price': 20,
        'type': 'button-down',
        'description': 'A sample shirt for testing',
        'variants': [
            {'size': 'S', 'available': True},
            {'size': 'M', 'available': True},
            {'size': 'L', 'available': True},
            {'size': 'XL', 'available': True},
        ],
    },
]


class Command(BaseCommand):
    help = 'Seed the database with catalog products and their size variants'

    def add_arguments(self, parser):
        parser.add_argument(
            '--file',
            default='data/products.json',
            help='Path to the catalog JSON file (default: data/products.json)',
        )
        parser.add_argument(
            '--stock',
            type=int,
            default=2,
            help='Starting stock for available sizes (default: 2)',
        )
        parser.add_argument(
            '--clear',
            action='store_true',
            help='Clear existing products and variants before seeding',
        )

    def handle(self, *args, **options):
        catalog = self._load_catalog(options['file'])

        with transaction.atomic():
            if options['clear']:
                self._clear_data()
            for entry in catalog:
                self._seed_product(entry, options['stock'])

        self.stdout.write(self.style.SUCCESS('Catalog seeding completed successfully!'))

    def _load_catalog(self, path):
        try:
            with open(path, encoding='utf-8') as f:
                catalog = json.load(f)
        except (OSError, ValueError) as e:
            self.stdout.write(self.style.WARNING(f'Could not read {path} ({e}), using sample data...'))
            return SAMPLE_CATALOG

        self.stdout.write(f'Found {len(catalog)} products in {path}')
        return catalog

    def _clear_data(self):
        """Clear products and variants. Sale lines keep their snapshots."""
        Variant.objects.all().delete()
        Product.objects.all().delete()
        self.stdout.write(self.style.WARNING('Existing products and variants cleared.'))

    def _seed_product(self, entry, stock):
        product, created = Product.objects.update_or_create(
            slug=entry['slug'],
            defaults={
                'name': entry['name'],
                'type': entry.get('type') or 'button-down',
                'description': entry.get('description') or '',
            },
        )
        self.stdout.write(f"{'Created' if created else 'Updated'} product: {product.name}")

        price = entry.get('price')
        price_cents = int(round(price * 100)) if price else None

        for variant in entry.get('variants', []):
            if product.variants.filter(size=variant['size']).exists():
                self.stdout.write(f"  - Variant {variant['size']} already exists, skipping")
                continue

            available = variant.get('available', False)
            Variant.objects.create(
                product=product,
                size=variant['size'],
                price=price_cents,
                quantity_on_hand=stock if available else 0,
                last_restocked_at=timezone.now() if available and stock > 0 else None,
            )
            self.stdout.write(f"  - Created variant: {variant['size']}")
