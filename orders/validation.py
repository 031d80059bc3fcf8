"""
Order Validator - Schema and business-rule checks for storefront submissions.

Validation runs in a fixed, short-circuiting order:
1. Schema (DRF serializer)
2. Honeypot: a filled honeypot field marks the submission as spam
3. Shipping orders must carry a non-blank shipping address

Two body shapes are accepted. A body whose ``items`` is a list is a cart
submission; anything else is treated as a legacy single-product submission.
Validation is pure and never touches storage.
"""
from dataclasses import asdict, dataclass, field
from typing import List, Optional

from core.errors import error_messages
from .serializers import CartOrderSerializer, LegacyOrderSerializer

CART = 'cart'
LEGACY = 'legacy'

SCHEMA_ERROR = 'schema'
SPAM = 'spam'
SHIPPING_ADDRESS_REQUIRED = 'shipping_address_required'

SHIPPING_ADDRESS_MESSAGE = 'Shipping address is required for shipping orders'


@dataclass
class SubmittedItem:
    product_slug: str
    product_name: str
    size: str
    quantity: int
    price_cents: Optional[int] = None


@dataclass
class OrderSubmission:
    """A validated order submission, normalized across both body shapes."""
    kind: str
    name: str
    email: str
    fulfillment_method: str
    items: List[SubmittedItem] = field(default_factory=list)
    phone: Optional[str] = None
    shipping_address: Optional[str] = None
    notes: Optional[str] = None

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    def to_payload(self) -> dict:
        """JSON-serializable form, used as the notification task argument."""
        return asdict(self)

    @classmethod
    def from_payload(cls, payload: dict) -> 'OrderSubmission':
        data = dict(payload)
        data['items'] = [SubmittedItem(**item) for item in data.get('items', [])]
        return cls(**data)


@dataclass
class ValidationResult:
    ok: bool
    data: Optional[OrderSubmission] = None
    error_kind: Optional[str] = None
    message: str = ''

    @property
    def is_spam(self) -> bool:
        return self.error_kind == SPAM

    @classmethod
    def failure(cls, error_kind: str, message: str) -> 'ValidationResult':
        return cls(ok=False, error_kind=error_kind, message=message)


def to_cents(price) -> int:
    return int(round(price * 100))


def _run_schema(serializer_class, raw):
    if not isinstance(raw, dict):
        return None, ValidationResult.failure(SCHEMA_ERROR, 'Invalid request body')

    serializer = serializer_class(data=raw)
    if not serializer.is_valid():
        message = ', '.join(error_messages(serializer.errors)) or 'Invalid request body'
        return None, ValidationResult.failure(SCHEMA_ERROR, message)
    return serializer.validated_data, None


def _check_rules(data) -> Optional[ValidationResult]:
    if data.get('honeypot'):
        return ValidationResult.failure(SPAM, 'spam_detected')

    if data['fulfillment_method'] == 'shipping' and not (data.get('shipping_address') or '').strip():
        return ValidationResult.failure(SHIPPING_ADDRESS_REQUIRED, SHIPPING_ADDRESS_MESSAGE)

    return None


def _customer_fields(data) -> dict:
    return {
        'name': data['name'],
        'email': data['email'],
        'phone': data.get('phone') or None,
        'fulfillment_method': data['fulfillment_method'],
        'shipping_address': data.get('shipping_address') or None,
        'notes': data.get('notes') or None,
    }


def validate_cart_order(raw) -> ValidationResult:
    """Validate a multi-item cart submission."""
    data, failure = _run_schema(CartOrderSerializer, raw)
    if failure:
        return failure

    failure = _check_rules(data)
    if failure:
        return failure

    items = [
        SubmittedItem(
            product_slug=item['product_slug'],
            product_name=item['product_name'],
            size=item['size'],
            quantity=item['quantity'],
            price_cents=to_cents(item['price']),
        )
        for item in data['items']
    ]
    return ValidationResult(ok=True, data=OrderSubmission(kind=CART, items=items, **_customer_fields(data)))


def validate_order_request(raw) -> ValidationResult:
    """Validate a legacy single-product submission."""
    data, failure = _run_schema(LegacyOrderSerializer, raw)
    if failure:
        return failure

    failure = _check_rules(data)
    if failure:
        return failure

    item = SubmittedItem(
        product_slug=data['product_slug'],
        product_name=data['product_name'],
        size=data.get('size') or '',
        quantity=data['quantity'],
        price_cents=None,
    )
    return ValidationResult(ok=True, data=OrderSubmission(kind=LEGACY, items=[item], **_customer_fields(data)))


def submission_kind(raw) -> str:
    if isinstance(raw, dict) and isinstance(raw.get('items'), list):
        return CART
    return LEGACY


def validate_order_submission(raw) -> ValidationResult:
    """Dispatch on body shape and validate accordingly."""
    kind = submission_kind(raw)
    if kind == CART:
        return validate_cart_order(raw)
    return validate_order_request(raw)
