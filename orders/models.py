"""
Order Models - Customer order requests and their line items.

An OrderRequest records intent to buy, not a payment. Status is moved by
staff:
    NEW -> CONFIRMED -> CLOSED (not enforced server-side)
"""
from django.db import models
from django.core.validators import MinValueValidator, MaxValueValidator


class OrderRequest(models.Model):
    """
    Customer order request submitted from the storefront.

    Status:
        - NEW: Submitted, not yet reviewed
        - CONFIRMED: Availability confirmed with the customer
        - CLOSED: Fulfilled or abandoned
    """

    class Status(models.TextChoices):
        NEW = 'NEW', 'New'
        CONFIRMED = 'CONFIRMED', 'Confirmed'
        CLOSED = 'CLOSED', 'Closed'

    class FulfillmentMethod(models.TextChoices):
        PICKUP = 'PICKUP', 'Pickup'
        DELIVERY = 'DELIVERY', 'Delivery'
        SHIPPING = 'SHIPPING', 'Shipping'

    customer_name = models.CharField(max_length=100)
    email = models.EmailField()
    phone = models.CharField(max_length=20, blank=True, null=True)
    fulfillment_method = models.CharField(
        max_length=20,
        choices=FulfillmentMethod.choices,
        default=FulfillmentMethod.PICKUP
    )
    shipping_address = models.TextField(
        blank=True,
        null=True,
        help_text="Required when fulfillment method is SHIPPING"
    )
    notes = models.TextField(blank=True, null=True)
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.NEW,
        db_index=True,
        help_text="Current request status"
    )
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Order Request'
        verbose_name_plural = 'Order Requests'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', 'created_at'], name='order_req_status_created_idx'),
        ]

    def __str__(self):
        return f"Order Request #{self.id} - {self.customer_name} ({self.status})"

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items.all())


class OrderRequestItem(models.Model):
    """
    One line of an order request.

    Product fields are a snapshot taken at submission time, not a foreign
    key into the catalog, so later catalog edits never rewrite history.
    """
    order_request = models.ForeignKey(
        OrderRequest,
        on_delete=models.CASCADE,
        related_name='items',
        help_text="Parent order request"
    )
    product_slug = models.CharField(max_length=200)
    product_name = models.CharField(max_length=200)
    variant_size = models.CharField(max_length=50)
    quantity = models.PositiveIntegerField(
        validators=[MinValueValidator(1), MaxValueValidator(10)]
    )
    price = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text="Unit price in cents; empty for legacy single-item requests"
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = 'Order Request Item'
        verbose_name_plural = 'Order Request Items'
        ordering = ['id']

    def __str__(self):
        return f"{self.quantity}x {self.product_name} ({self.variant_size})"

    @property
    def subtotal(self):
        if self.price is None:
            return None
        return self.quantity * self.price
