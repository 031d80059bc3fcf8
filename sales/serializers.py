"""
Serializers for sales.
"""
from rest_framework import serializers
from .models import Sale, SaleItem


class SaleLineItemCreateSerializer(serializers.Serializer):
    """One line of a sale in the create request. Prices are in cents."""
    variantId = serializers.IntegerField(min_value=1, source='variant_id')
    quantity = serializers.IntegerField(min_value=1)
    unitPrice = serializers.IntegerField(min_value=0, required=False, allow_null=True, source='unit_price')


class SaleCreateSerializer(serializers.Serializer):
    """
    Serializer for POST /api/admin/sales

    Request format:
    {
        "channel": "POPUP",
        "customerName": "Jane",
        "email": "",
        "notes": "",
        "lineItems": [
            {"variantId": 1, "quantity": 2, "unitPrice": 1000},
            {"variantId": 3, "quantity": 1, "unitPrice": null}
        ]
    }
    """
    channel = serializers.ChoiceField(choices=Sale.Channel.choices)
    customerName = serializers.CharField(
        max_length=200, required=False, allow_blank=True, allow_null=True, source='customer_name'
    )
    email = serializers.EmailField(required=False, allow_blank=True, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    lineItems = SaleLineItemCreateSerializer(many=True, source='line_items')

    def validate_lineItems(self, value):
        if not value:
            raise serializers.ValidationError("At least one item is required")
        return value


class SaleItemSerializer(serializers.ModelSerializer):
    """Serializer for a recorded sale line."""
    subtotal = serializers.IntegerField(read_only=True)

    class Meta:
        model = SaleItem
        fields = ['id', 'variant', 'product_name', 'variant_size', 'quantity', 'unit_price', 'subtotal']


class SaleSerializer(serializers.ModelSerializer):
    """
    Serializer for Sale with nested line items.
    Uses prefetch_related('line_items') in view.
    """
    line_items = SaleItemSerializer(many=True, read_only=True)

    class Meta:
        model = Sale
        fields = ['id', 'channel', 'customer_name', 'email', 'notes', 'total', 'line_items', 'created_at']
