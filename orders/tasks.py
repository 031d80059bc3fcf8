"""
Celery tasks for order processing.

Tasks:
    - send_order_notifications_task: Owner/customer email for a new order request
"""
import logging
from celery import shared_task

from .notifications import send_order_notifications
from .validation import OrderSubmission

logger = logging.getLogger(__name__)


@shared_task
def send_order_notifications_task(payload: dict, order_request_id=None):
    """
    Deliver notifications for a submitted order request.

    Not retried: provider fallback already ends in the log, and a retry
    would resend mail that one provider may have delivered.

    Args:
        payload: OrderSubmission.to_payload() output
        order_request_id: Stored request id, or None if persistence failed

    Returns:
        Dict with delivery outcome
    """
    order = OrderSubmission.from_payload(payload)
    result = send_order_notifications(order, order_request_id)

    if not result.delivered:
        logger.warning(
            f"[CELERY] Order request #{order_request_id} was not emailed "
            f"(channel: {result.channel_used})"
        )

    return result.to_dict()
