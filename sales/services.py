"""
Sale Service Layer - Atomic sale recording.

Recording a sale is all-or-nothing:
1. Lock every referenced variant with select_for_update(), in id order
2. Create the Sale and its line items
3. Move stock: quantity_sold += qty, quantity_on_hand -= qty (floored at 0)

Any failure rolls back the sale rows and the inventory movement together.
Overselling is not rejected; on-hand saturates at zero and the clamp is
logged.
"""
import logging
from typing import Dict, List, Optional

from django.db import transaction

from inventory.models import Variant
from inventory.services import apply_delta, VariantNotFound
from .models import Sale, SaleItem

logger = logging.getLogger(__name__)


class SaleValidationError(Exception):
    """Raised when sale line items are malformed."""
    pass


def validate_line_items(line_items: List[Dict]) -> None:
    """
    Validate line item structure.

    Args:
        line_items: List of dicts with 'variant_id', 'quantity' and optional 'unit_price'

    Raises:
        SaleValidationError: If validation fails
    """
    if not line_items:
        raise SaleValidationError("At least one item is required")

    for idx, item in enumerate(line_items):
        if 'variant_id' not in item:
            raise SaleValidationError(f"Item {idx}: missing 'variant_id'")
        quantity = item.get('quantity')
        if not isinstance(quantity, int) or quantity < 1:
            raise SaleValidationError(f"Item {idx}: quantity must be a positive integer")


def calculate_total(line_items: List[Dict]) -> Optional[int]:
    """
    Sum unit_price * quantity over priced lines.

    Unpriced lines contribute nothing; a zero sum is stored as no total.
    """
    total = sum(
        item['unit_price'] * item['quantity']
        for item in line_items
        if item.get('unit_price')
    )
    return total or None


def _apply_sale_to_inventory(variants: Dict[int, Variant], line_items: List[Dict]) -> None:
    """Decrement on-hand and increment sold for every line, on locked rows."""
    for item in line_items:
        variant = variants[item['variant_id']]
        apply_delta(variant, 'quantity_on_hand', -item['quantity'])
        apply_delta(variant, 'quantity_sold', item['quantity'])

    for variant in variants.values():
        variant.save(update_fields=['quantity_on_hand', 'quantity_sold', 'updated_at'])


def record_sale(
    channel: str,
    line_items: List[Dict],
    customer_name: Optional[str] = None,
    email: Optional[str] = None,
    notes: Optional[str] = None,
) -> Sale:
    """
    Record a sale and move inventory in one transaction.

    Args:
        channel: Sale.Channel value
        line_items: List of dicts with 'variant_id', 'quantity', optional 'unit_price' (cents)
        customer_name, email, notes: Optional sale details

    Returns:
        The created Sale

    Raises:
        SaleValidationError: If line items are malformed
        VariantNotFound: If any referenced variant does not exist
    """
    validate_line_items(line_items)
    variant_ids = sorted({item['variant_id'] for item in line_items})

    with transaction.atomic():
        # Lock in id order so concurrent sales cannot deadlock
        variants = {
            v.id: v for v in Variant.objects.select_for_update().filter(id__in=variant_ids).order_by('id')
        }
        missing = [variant_id for variant_id in variant_ids if variant_id not in variants]
        if missing:
            raise VariantNotFound(missing[0])

        snapshots = dict(
            Variant.objects.filter(id__in=variant_ids).values_list('id', 'product__name')
        )

        total = calculate_total(line_items)
        sale = Sale.objects.create(
            channel=channel,
            customer_name=customer_name or None,
            email=email or None,
            notes=notes or None,
            total=total,
        )

        SaleItem.objects.bulk_create([
            SaleItem(
                sale=sale,
                variant=variants[item['variant_id']],
                product_name=snapshots[item['variant_id']],
                variant_size=variants[item['variant_id']].size,
                quantity=item['quantity'],
                unit_price=item.get('unit_price'),
            )
            for item in line_items
        ])

        _apply_sale_to_inventory(variants, line_items)

    logger.info(
        f"Recorded sale #{sale.id} ({channel}): {len(line_items)} line(s), "
        f"total {total if total is not None else 'n/a'}"
    )
    return sale


def get_dashboard_stats(since) -> Dict:
    """
    Inventory and sales figures for the admin dashboard.

    Args:
        since: Start of the "recent sales" window
    """
    from django.db.models import Sum
    from orders.models import OrderRequest

    inventory = Variant.objects.aggregate(
        quantity_on_hand=Sum('quantity_on_hand'),
        quantity_reserved=Sum('quantity_reserved'),
        quantity_sold=Sum('quantity_sold'),
    )
    recent_units = SaleItem.objects.filter(created_at__gte=since).aggregate(units=Sum('quantity'))['units']
    all_time_units = SaleItem.objects.aggregate(units=Sum('quantity'))['units']

    top_variants = Variant.objects.select_related('product').filter(
        quantity_sold__gt=0
    ).order_by('-quantity_sold')[:5]

    return {
        'inventory': {key: value or 0 for key, value in inventory.items()},
        'units_sold_recent': recent_units or 0,
        'units_sold_all_time': all_time_units or 0,
        'top_variants': [
            {
                'id': variant.id,
                'product_name': variant.product.name,
                'size': variant.size,
                'quantity_sold': variant.quantity_sold,
            }
            for variant in top_variants
        ],
        'new_requests': OrderRequest.objects.filter(status=OrderRequest.Status.NEW).count(),
    }
