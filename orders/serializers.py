"""
Serializers for order requests.

Inbound serializers accept the storefront's camelCase JSON and map it onto
snake_case validated data.
"""
from rest_framework import serializers
from .models import OrderRequest, OrderRequestItem

FULFILLMENT_CHOICES = ['pickup', 'delivery', 'shipping']

# Largest major-unit price whose cents value fits a PositiveIntegerField
MAX_PRICE = 21474836.47


class CustomerFieldsSerializer(serializers.Serializer):
    """Customer and fulfillment fields shared by cart and legacy submissions."""
    name = serializers.CharField(min_length=2, max_length=100, error_messages={
        'required': 'Name must be at least 2 characters',
        'blank': 'Name must be at least 2 characters',
        'min_length': 'Name must be at least 2 characters',
        'max_length': 'Name must be less than 100 characters',
    })
    email = serializers.EmailField(error_messages={
        'required': 'Please enter a valid email address',
        'blank': 'Please enter a valid email address',
        'invalid': 'Please enter a valid email address',
    })
    phone = serializers.CharField(
        max_length=20,
        required=False,
        allow_blank=True,
        allow_null=True,
        error_messages={'max_length': 'Phone number is too long'}
    )
    fulfillmentMethod = serializers.ChoiceField(
        choices=FULFILLMENT_CHOICES,
        source='fulfillment_method',
        error_messages={
            'required': 'Please choose a fulfillment method',
            'invalid_choice': 'Fulfillment method must be pickup, delivery or shipping',
        }
    )
    shippingAddress = serializers.CharField(
        source='shipping_address',
        required=False,
        allow_blank=True,
        allow_null=True,
        trim_whitespace=False
    )
    notes = serializers.CharField(
        max_length=1000,
        required=False,
        allow_blank=True,
        allow_null=True,
        error_messages={'max_length': 'Notes must be less than 1000 characters'}
    )
    honeypot = serializers.CharField(
        required=False,
        allow_blank=True,
        allow_null=True,
        trim_whitespace=False
    )


class CartItemSerializer(serializers.Serializer):
    """One line of a cart submission. Price is in major currency units."""
    productSlug = serializers.CharField(source='product_slug', error_messages={
        'required': 'Product slug is required',
        'blank': 'Product slug is required',
    })
    productName = serializers.CharField(source='product_name', error_messages={
        'required': 'Product name is required',
        'blank': 'Product name is required',
    })
    size = serializers.CharField(error_messages={
        'required': 'Size is required',
        'blank': 'Size is required',
    })
    quantity = serializers.IntegerField(min_value=1, max_value=10, error_messages={
        'min_value': 'Quantity must be between 1 and 10',
        'max_value': 'Quantity must be between 1 and 10',
    })
    price = serializers.FloatField(min_value=0, max_value=MAX_PRICE, error_messages={
        'min_value': 'Price cannot be negative',
        'max_value': 'Price is too large',
    })


class CartOrderSerializer(CustomerFieldsSerializer):
    """
    Serializer for cart submissions to POST /api/order

    Request format:
    {
        "name": "Jane Doe",
        "email": "jane@example.com",
        "items": [
            {"productSlug": "tiger-lily", "productName": "Tiger Lily", "size": "M", "quantity": 1, "price": 45}
        ],
        "fulfillmentMethod": "pickup"
    }
    """
    items = CartItemSerializer(many=True)

    def validate_items(self, value):
        if not value:
            raise serializers.ValidationError("Cart cannot be empty")
        return value


class LegacyOrderSerializer(CustomerFieldsSerializer):
    """Serializer for single-product submissions from older clients."""
    productSlug = serializers.CharField(source='product_slug', error_messages={
        'required': 'Please select a product',
        'blank': 'Please select a product',
    })
    productName = serializers.CharField(source='product_name', error_messages={
        'required': 'Product name is required',
        'blank': 'Product name is required',
    })
    size = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    quantity = serializers.IntegerField(min_value=1, max_value=10, error_messages={
        'min_value': 'Quantity must be between 1 and 10',
        'max_value': 'Quantity must be between 1 and 10',
    })


class OrderRequestItemSerializer(serializers.ModelSerializer):
    """Serializer for an order request line (snapshot fields)."""
    subtotal = serializers.IntegerField(read_only=True)

    class Meta:
        model = OrderRequestItem
        fields = ['id', 'product_slug', 'product_name', 'variant_size', 'quantity', 'price', 'subtotal']


class OrderRequestSerializer(serializers.ModelSerializer):
    """
    Serializer for OrderRequest with nested items.
    Uses prefetch_related('items') in view.
    """
    items = OrderRequestItemSerializer(many=True, read_only=True)
    item_count = serializers.IntegerField(read_only=True)

    class Meta:
        model = OrderRequest
        fields = [
            'id', 'customer_name', 'email', 'phone',
            'fulfillment_method', 'shipping_address', 'notes',
            'status', 'items', 'item_count',
            'created_at', 'updated_at'
        ]


class OrderRequestStatusSerializer(serializers.Serializer):
    """Serializer for PATCH /api/admin/requests/{id}"""
    status = serializers.ChoiceField(choices=OrderRequest.Status.choices)
