"""
Inventory Models - Catalog products and their sellable variants.

Models:
    - Product: A catalog item (e.g. one shirt design)
    - Variant: One sellable size/color of a product, carrying the stock
      counters (on hand, reserved, sold)

All money values are stored as integer cents.
"""
from django.db import models
from django.core.validators import MinValueValidator


class Product(models.Model):
    """
    Product entity. The public catalog is served from static JSON; this
    table backs the admin inventory view.
    """
    name = models.CharField(
        max_length=200,
        db_index=True,
        help_text="Product name for display"
    )
    slug = models.SlugField(
        max_length=200,
        unique=True,
        help_text="URL slug, matches the catalog entry"
    )
    type = models.CharField(
        max_length=50,
        default='button-down',
        help_text="Product type"
    )
    description = models.TextField(
        blank=True,
        default='',
        help_text="Optional product description"
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Product'
        verbose_name_plural = 'Products'
        ordering = ['name']

    def __str__(self):
        return self.name


class Variant(models.Model):
    """
    Variant entity holding the inventory ledger counters.

    The three counters are adjusted independently and each is clamped at
    zero; they do not add up to a fixed total.
    """

    class Counter(models.TextChoices):
        ON_HAND = 'quantityOnHand', 'On hand'
        RESERVED = 'quantityReserved', 'Reserved'
        SOLD = 'quantitySold', 'Sold'

    product = models.ForeignKey(
        Product,
        on_delete=models.CASCADE,
        related_name='variants',
        help_text="Parent product"
    )
    size = models.CharField(max_length=50)
    color = models.CharField(max_length=50, blank=True, null=True)
    sku = models.CharField(
        max_length=100,
        unique=True,
        blank=True,
        null=True,
        help_text="Optional stock keeping unit"
    )
    price = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text="Sale price in cents"
    )
    cost = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text="Unit cost in cents"
    )
    quantity_on_hand = models.PositiveIntegerField(
        default=0,
        validators=[MinValueValidator(0)]
    )
    quantity_reserved = models.PositiveIntegerField(
        default=0,
        validators=[MinValueValidator(0)]
    )
    quantity_sold = models.PositiveIntegerField(
        default=0,
        validators=[MinValueValidator(0)]
    )
    last_restocked_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="Last time on-hand stock was increased"
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    # API counter name -> model field
    COUNTER_FIELDS = {
        'quantityOnHand': 'quantity_on_hand',
        'quantityReserved': 'quantity_reserved',
        'quantitySold': 'quantity_sold',
    }

    class Meta:
        verbose_name = 'Variant'
        verbose_name_plural = 'Variants'
        ordering = ['product__name', 'size']
        indexes = [
            models.Index(fields=['quantity_on_hand'], name='variant_on_hand_idx'),
            models.Index(fields=['quantity_sold'], name='variant_sold_idx'),
        ]

    def __str__(self):
        return f"{self.product.name} ({self.size}): {self.quantity_on_hand} on hand"

    @property
    def is_out_of_stock(self) -> bool:
        return self.quantity_on_hand == 0
