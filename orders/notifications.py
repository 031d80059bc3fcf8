"""
Notification Dispatcher - Tells the store owner and the customer about a new
order request.

Delivery order:
    1. primary: Resend, through its SMTP relay (enabled by RESEND_API_KEY)
    2. secondary: any SMTP server (SMTP_HOST / SMTP_USER / SMTP_PASS)
    3. logged-only: the order is written to the log

The first channel that succeeds wins. Failures along the way are recorded
and logged but never raised, so order intake never depends on email.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from django.conf import settings
from django.core.mail import EmailMessage, get_connection

from .validation import CART, OrderSubmission

logger = logging.getLogger(__name__)

PRIMARY = 'primary'
SECONDARY = 'secondary'
LOGGED_ONLY = 'logged-only'


@dataclass
class NotificationResult:
    delivered: bool
    channel_used: str
    errors: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            'delivered': self.delivered,
            'channelUsed': self.channel_used,
            'errors': self.errors,
        }


@dataclass
class EmailProvider:
    channel: str
    name: str
    from_email: str
    connection_kwargs: dict


def configured_providers() -> List[EmailProvider]:
    """Email providers in delivery order, skipping unconfigured ones."""
    providers = []

    if settings.RESEND_API_KEY:
        providers.append(EmailProvider(
            channel=PRIMARY,
            name='resend',
            from_email=f'"{settings.ORDER_FROM_NAME}" <{settings.ORDER_FROM_EMAIL}>',
            connection_kwargs={
                'host': settings.RESEND_SMTP_HOST,
                'port': settings.RESEND_SMTP_PORT,
                'username': 'resend',
                'password': settings.RESEND_API_KEY,
                'use_tls': True,
            },
        ))

    if settings.SMTP_HOST and settings.SMTP_USER and settings.SMTP_PASS:
        implicit_tls = settings.SMTP_PORT == 465
        providers.append(EmailProvider(
            channel=SECONDARY,
            name='smtp',
            from_email=f'"{settings.ORDER_FROM_NAME}" <{settings.SMTP_USER}>',
            connection_kwargs={
                'host': settings.SMTP_HOST,
                'port': settings.SMTP_PORT,
                'username': settings.SMTP_USER,
                'password': settings.SMTP_PASS,
                'use_ssl': implicit_tls,
                'use_tls': not implicit_tls,
            },
        ))

    return providers


def format_order_details(order: OrderSubmission, order_request_id: Optional[int] = None) -> str:
    lines = []
    if order_request_id is not None:
        lines.append(f"Request: #{order_request_id}")
    lines += [
        f"Name: {order.name}",
        f"Email: {order.email}",
        f"Phone: {order.phone or 'Not provided'}",
        "",
    ]
    for item in order.items:
        price = f" @ ${item.price_cents / 100:.2f}" if item.price_cents is not None else ""
        lines.append(
            f"- {item.quantity}x {item.product_name} ({item.product_slug}), "
            f"size {item.size or 'Not specified'}{price}"
        )
    lines += ["", f"Fulfillment: {order.fulfillment_method}"]
    if order.fulfillment_method == 'shipping':
        lines.append(f"Shipping Address: {order.shipping_address}")
    lines.append(f"Notes: {order.notes or 'None'}")
    return "\n".join(lines)


def owner_subject(order: OrderSubmission) -> str:
    if order.kind == CART:
        return f"New Order Request: {order.item_count} item(s)"
    return f"New Order Request: {order.items[0].product_name}"


def build_messages(order: OrderSubmission, provider: EmailProvider, order_request_id=None) -> List[EmailMessage]:
    details = format_order_details(order, order_request_id)

    owner_message = EmailMessage(
        subject=owner_subject(order),
        body=f"{details}\n\nSubmitted via {settings.SITE_URL}",
        from_email=provider.from_email,
        to=[settings.ORDER_TO_EMAIL],
        reply_to=[order.email],
    )

    first_name = order.name.split(' ')[0]
    customer_message = EmailMessage(
        subject=f"Order Request Received - {settings.ORDER_FROM_NAME}",
        body=(
            f"We've got your request, {first_name}.\n\n"
            "We'll review your order and get back to you within 24-48 hours "
            "to confirm availability and next steps.\n\n"
            f"{details}\n\n"
            f"Questions? Just reply to this email.\n{settings.SITE_URL}"
        ),
        from_email=provider.from_email,
        to=[order.email],
    )
    return [owner_message, customer_message]


def deliver(provider: EmailProvider, order: OrderSubmission, order_request_id=None) -> None:
    """Send owner and customer messages through one provider; raises on failure."""
    connection = get_connection(
        settings.ORDER_EMAIL_BACKEND,
        fail_silently=False,
        timeout=settings.EMAIL_TIMEOUT,
        **provider.connection_kwargs
    )
    connection.send_messages(build_messages(order, provider, order_request_id))


def log_order(order: OrderSubmission, order_request_id=None) -> None:
    logger.warning(
        "No email provider delivered this order request; logging it instead:\n"
        f"{format_order_details(order, order_request_id)}"
    )


def send_order_notifications(order: OrderSubmission, order_request_id: Optional[int] = None) -> NotificationResult:
    """
    Notify owner and customer, falling back provider by provider.

    Returns:
        NotificationResult with the channel that handled the order
    """
    errors = {}
    for provider in configured_providers():
        try:
            deliver(provider, order, order_request_id)
        except Exception as e:
            errors[provider.channel] = str(e)
            logger.warning(f"{provider.name} delivery failed for {order.email}: {e}")
            continue
        logger.info(f"Order notifications for {order.email} sent via {provider.name}")
        return NotificationResult(delivered=True, channel_used=provider.channel, errors=errors)

    log_order(order, order_request_id)
    return NotificationResult(delivered=False, channel_used=LOGGED_ONLY, errors=errors)


def dispatch_order_notifications(order: OrderSubmission, order_request_id: Optional[int] = None) -> None:
    """
    Queue notification delivery on Celery.

    If the task cannot be queued, delivery runs inline so the order still
    reaches an email provider or the log.
    """
    try:
        from .tasks import send_order_notifications_task
        send_order_notifications_task.delay(order.to_payload(), order_request_id)
        logger.info(f"Queued notifications for {order.email}")
    except Exception as e:
        logger.error(f"Failed to queue notification task: {e}")
        send_order_notifications(order, order_request_id)
