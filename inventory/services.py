"""
Inventory Ledger - Variant counter adjustments and variant lifecycle.

Counters are never driven below zero: a delta that would do so saturates
at zero and is logged as a clamp so overselling stays visible.
"""
import logging
from typing import Optional

from django.db import transaction
from django.utils import timezone

from .models import Product, Variant

logger = logging.getLogger(__name__)


class VariantNotFound(Exception):
    """Raised when a variant id does not exist."""
    def __init__(self, variant_id):
        self.variant_id = variant_id
        super().__init__(f"Variant {variant_id} not found")


class ProductNotFound(Exception):
    """Raised when a product id does not exist."""
    def __init__(self, product_id):
        self.product_id = product_id
        super().__init__(f"Product {product_id} not found")


def clamp_counter(current: int, delta: int) -> int:
    """Apply a delta to a ledger counter, saturating at zero."""
    return max(0, current + delta)


def apply_delta(variant: Variant, field: str, delta: int) -> int:
    """
    Apply ``delta`` to one counter of an already-locked variant in memory.

    Args:
        variant: Variant row fetched with select_for_update()
        field: Model field name (quantity_on_hand, quantity_reserved, quantity_sold)
        delta: Signed change

    Returns:
        The new counter value
    """
    current = getattr(variant, field)
    new_value = clamp_counter(current, delta)
    if new_value != current + delta:
        logger.warning(
            f"Variant #{variant.pk}: {field} clamped to 0 "
            f"(current {current}, requested delta {delta})"
        )
    setattr(variant, field, new_value)
    return new_value


def adjust_variant(variant_id: int, field: str, delta: int) -> int:
    """
    Adjust one ledger counter of a variant.

    Args:
        variant_id: Variant primary key
        field: API counter name: quantityOnHand, quantityReserved or quantitySold
        delta: Signed change; the result is floored at zero

    Returns:
        The stored counter value after the adjustment

    Raises:
        VariantNotFound: If the variant does not exist
        ValueError: If the counter name is unknown
    """
    model_field = Variant.COUNTER_FIELDS.get(field)
    if model_field is None:
        raise ValueError(f"Unknown inventory counter: {field}")

    with transaction.atomic():
        try:
            variant = Variant.objects.select_for_update().get(pk=variant_id)
        except Variant.DoesNotExist:
            raise VariantNotFound(variant_id)

        if delta == 0:
            return getattr(variant, model_field)

        new_value = apply_delta(variant, model_field, delta)
        update_fields = [model_field, 'updated_at']

        if model_field == 'quantity_on_hand' and delta > 0:
            variant.last_restocked_at = timezone.now()
            update_fields.append('last_restocked_at')

        variant.save(update_fields=update_fields)

    logger.info(f"Variant #{variant_id}: {field} adjusted by {delta} -> {new_value}")
    return new_value


def delete_variant(variant_id: int) -> None:
    """
    Hard-delete a variant.

    Sale line items referencing it keep their product/size snapshot and lose
    only the foreign key.
    """
    deleted, _ = Variant.objects.filter(pk=variant_id).delete()
    if not deleted:
        raise VariantNotFound(variant_id)
    logger.info(f"Variant #{variant_id} deleted")


def create_variant(
    product_id: int,
    size: str,
    color: Optional[str] = None,
    sku: Optional[str] = None,
    price: Optional[int] = None,
    cost: Optional[int] = None,
    quantity_on_hand: int = 0,
) -> Variant:
    """Create a variant, stamping the restock time when it starts with stock."""
    try:
        product = Product.objects.get(pk=product_id)
    except Product.DoesNotExist:
        raise ProductNotFound(product_id)

    quantity_on_hand = max(0, quantity_on_hand)
    variant = Variant.objects.create(
        product=product,
        size=size,
        color=color or None,
        sku=sku or None,
        price=price,
        cost=cost,
        quantity_on_hand=quantity_on_hand,
        last_restocked_at=timezone.now() if quantity_on_hand > 0 else None,
    )
    logger.info(f"Created variant #{variant.id} ({product.name} {size})")
    return variant


def create_product(name: str, slug: str, type: Optional[str] = None, description: str = '') -> Product:
    product = Product.objects.create(
        name=name,
        slug=slug,
        type=type or 'button-down',
        description=description or '',
    )
    logger.info(f"Created product #{product.id} ({product.slug})")
    return product
