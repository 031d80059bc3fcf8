"""
Order Service Layer - Persistence of validated order requests.

Each request is written together with its items in one transaction. Item
rows copy the product name, slug, size and price at submission time.
"""
import logging

from django.db import transaction
from django.utils import timezone

from .models import OrderRequest, OrderRequestItem
from .validation import OrderSubmission

logger = logging.getLogger(__name__)

FULFILLMENT_MAP = {
    'pickup': OrderRequest.FulfillmentMethod.PICKUP,
    'delivery': OrderRequest.FulfillmentMethod.DELIVERY,
    'shipping': OrderRequest.FulfillmentMethod.SHIPPING,
}

UNKNOWN_SIZE = 'Unknown'


class OrderRequestNotFound(Exception):
    """Raised when an order request id does not exist."""
    def __init__(self, request_id):
        self.request_id = request_id
        super().__init__(f"Order request {request_id} not found")


def create_order_request(submission: OrderSubmission) -> int:
    """
    Store a validated submission.

    Args:
        submission: Output of the order validator

    Returns:
        The new OrderRequest id

    Raises:
        DatabaseError: If storage is unavailable. The intake view logs this
            and still acknowledges the customer.
    """
    with transaction.atomic():
        order_request = OrderRequest.objects.create(
            customer_name=submission.name,
            email=submission.email,
            phone=submission.phone or None,
            fulfillment_method=FULFILLMENT_MAP.get(
                submission.fulfillment_method,
                OrderRequest.FulfillmentMethod.PICKUP
            ),
            shipping_address=submission.shipping_address or None,
            notes=submission.notes or None,
        )

        OrderRequestItem.objects.bulk_create([
            OrderRequestItem(
                order_request=order_request,
                product_slug=item.product_slug,
                product_name=item.product_name,
                variant_size=item.size or UNKNOWN_SIZE,
                quantity=item.quantity,
                price=item.price_cents,
            )
            for item in submission.items
        ])

    logger.info(
        f"Stored order request #{order_request.id}: "
        f"{len(submission.items)} line(s) for {submission.email}"
    )
    return order_request.id


def get_order_request(request_id: int) -> OrderRequest:
    try:
        return OrderRequest.objects.prefetch_related('items').get(pk=request_id)
    except OrderRequest.DoesNotExist:
        raise OrderRequestNotFound(request_id)


def update_order_request_status(request_id: int, status: str) -> OrderRequest:
    """
    Move an order request to a new status.

    Any transition between NEW, CONFIRMED and CLOSED is accepted.
    """
    updated = OrderRequest.objects.filter(pk=request_id).update(
        status=status,
        updated_at=timezone.now()
    )
    if not updated:
        raise OrderRequestNotFound(request_id)

    logger.info(f"Order request #{request_id} status -> {status}")
    return OrderRequest.objects.get(pk=request_id)
