"""
Sales Models - Staff-recorded sales and their line items.

A Sale is created together with its line items and the matching inventory
movements in one transaction, and is never edited afterwards.
"""
from django.db import models
from django.core.validators import MinValueValidator

from inventory.models import Variant


class Sale(models.Model):
    """
    A completed transaction recorded by staff.

    Total is the sum of priced line items in cents, or empty when no line
    carried a price.
    """

    class Channel(models.TextChoices):
        WEBSITE = 'WEBSITE', 'Website'
        INSTAGRAM = 'INSTAGRAM', 'Instagram'
        POPUP = 'POPUP', 'Pop-up'
        OTHER = 'OTHER', 'Other'

    channel = models.CharField(
        max_length=20,
        choices=Channel.choices,
        db_index=True
    )
    customer_name = models.CharField(max_length=200, blank=True, null=True)
    email = models.EmailField(blank=True, null=True)
    notes = models.TextField(blank=True, null=True)
    total = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text="Total in cents"
    )
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        verbose_name = 'Sale'
        verbose_name_plural = 'Sales'
        ordering = ['-created_at']

    def __str__(self):
        return f"Sale #{self.id} ({self.channel})"


class SaleItem(models.Model):
    """
    One variant sold in a sale.

    The product name and size are copied at sale time so the line stays
    readable if the variant is later deleted.
    """
    sale = models.ForeignKey(
        Sale,
        on_delete=models.CASCADE,
        related_name='line_items',
        help_text="Parent sale"
    )
    variant = models.ForeignKey(
        Variant,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='sale_items',
        help_text="Sold variant; cleared if the variant is deleted"
    )
    product_name = models.CharField(max_length=200)
    variant_size = models.CharField(max_length=50)
    quantity = models.PositiveIntegerField(
        validators=[MinValueValidator(1)]
    )
    unit_price = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text="Unit price in cents"
    )
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        verbose_name = 'Sale Item'
        verbose_name_plural = 'Sale Items'
        ordering = ['id']

    def __str__(self):
        return f"{self.quantity}x {self.product_name} ({self.variant_size})"

    @property
    def subtotal(self):
        if self.unit_price is None:
            return None
        return self.quantity * self.unit_price
