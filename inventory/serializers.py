"""
Serializers for inventory models.
Provides data validation and JSON conversion for admin endpoints.
"""
from rest_framework import serializers
from .models import Product, Variant

MAX_DELTA = 1_000_000


class ProductSerializer(serializers.ModelSerializer):
    """Serializer for Product model."""
    variant_count = serializers.SerializerMethodField()

    class Meta:
        model = Product
        fields = ['id', 'name', 'slug', 'type', 'description', 'variant_count', 'created_at', 'updated_at']
        read_only_fields = ['id', 'created_at', 'updated_at']
        extra_kwargs = {
            'name': {'error_messages': {'blank': 'Name is required', 'required': 'Name is required'}},
            'slug': {'error_messages': {'blank': 'Slug is required', 'required': 'Slug is required'}},
        }

    def get_variant_count(self, obj):
        """Get count of variants for this product."""
        return len(obj.variants.all())


class VariantSerializer(serializers.ModelSerializer):
    """
    Serializer for the inventory listing.
    Uses select_related('product') in view.
    """
    product_name = serializers.CharField(source='product.name', read_only=True)
    product_slug = serializers.CharField(source='product.slug', read_only=True)
    is_out_of_stock = serializers.BooleanField(read_only=True)

    class Meta:
        model = Variant
        fields = [
            'id', 'product', 'product_name', 'product_slug',
            'size', 'color', 'sku', 'price', 'cost',
            'quantity_on_hand', 'quantity_reserved', 'quantity_sold',
            'is_out_of_stock', 'last_restocked_at',
            'created_at', 'updated_at'
        ]


class VariantCreateSerializer(serializers.Serializer):
    """
    Serializer for POST /api/admin/variants

    Request format:
    {
        "productId": 1,
        "size": "M",
        "color": null,
        "sku": null,
        "price": 4500,
        "cost": 1200,
        "quantityOnHand": 2
    }
    """
    productId = serializers.IntegerField(min_value=1, source='product_id', error_messages={
        'required': 'Product ID is required',
    })
    size = serializers.CharField(max_length=50, error_messages={
        'required': 'Size is required',
        'blank': 'Size is required',
    })
    color = serializers.CharField(max_length=50, required=False, allow_null=True, allow_blank=True)
    sku = serializers.CharField(max_length=100, required=False, allow_null=True, allow_blank=True)
    price = serializers.IntegerField(min_value=0, required=False, allow_null=True)
    cost = serializers.IntegerField(min_value=0, required=False, allow_null=True)
    quantityOnHand = serializers.IntegerField(min_value=0, default=0, source='quantity_on_hand')

    def validate_sku(self, value):
        if value and Variant.objects.filter(sku=value).exists():
            raise serializers.ValidationError("A variant with this SKU already exists")
        return value


class VariantAdjustSerializer(serializers.Serializer):
    """
    Serializer for PATCH /api/admin/variants/{id}

    Request format:
    {"field": "quantityOnHand", "delta": -2}
    """
    field = serializers.ChoiceField(choices=Variant.Counter.choices)
    delta = serializers.IntegerField(min_value=-MAX_DELTA, max_value=MAX_DELTA, error_messages={
        'min_value': f'Delta must be between -{MAX_DELTA} and {MAX_DELTA}',
        'max_value': f'Delta must be between -{MAX_DELTA} and {MAX_DELTA}',
    })
