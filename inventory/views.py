"""
Inventory admin API views.

Implements:
- Product listing and creation
- Inventory (variant) listing and creation
- Ledger adjustments and hard deletion of variants
"""
import logging

from rest_framework import generics, status
from rest_framework.response import Response
from rest_framework.views import APIView

from core.admin_auth import AdminRequiredMixin
from core.errors import first_error_message
from .models import Product, Variant
from .serializers import (
    ProductSerializer,
    VariantSerializer,
    VariantCreateSerializer,
    VariantAdjustSerializer,
)
from .services import (
    adjust_variant,
    create_product,
    create_variant,
    delete_variant,
    ProductNotFound,
    VariantNotFound,
)

logger = logging.getLogger(__name__)


class ProductListCreateView(AdminRequiredMixin, generics.ListCreateAPIView):
    """
    GET: List all products
    POST: Create a new product
    """
    queryset = Product.objects.prefetch_related('variants')
    serializer_class = ProductSerializer

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        if not serializer.is_valid():
            return Response(
                {'error': first_error_message(serializer.errors)},
                status=status.HTTP_400_BAD_REQUEST
            )
        product = create_product(**serializer.validated_data)
        return Response({'success': True, 'id': product.id})


class VariantListCreateView(AdminRequiredMixin, generics.ListCreateAPIView):
    """
    GET: Inventory listing, ordered by product name then size

    Query Parameters:
        - in_stock: Only variants with stock on hand (true/false)

    POST: Create a variant for an existing product
    """
    serializer_class = VariantSerializer

    def get_queryset(self):
        queryset = Variant.objects.select_related('product')

        in_stock = self.request.query_params.get('in_stock', '').lower()
        if in_stock == 'true':
            queryset = queryset.filter(quantity_on_hand__gt=0)

        return queryset.order_by('product__name', 'size')

    def create(self, request, *args, **kwargs):
        serializer = VariantCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(
                {'error': first_error_message(serializer.errors)},
                status=status.HTTP_400_BAD_REQUEST
            )

        try:
            variant = create_variant(**serializer.validated_data)
        except ProductNotFound as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)

        return Response({'success': True, 'id': variant.id})


class VariantDetailView(AdminRequiredMixin, APIView):
    """
    PATCH: Adjust one ledger counter by a signed delta
    DELETE: Hard-delete the variant
    """

    def patch(self, request, pk):
        serializer = VariantAdjustSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(
                {'error': first_error_message(serializer.errors)},
                status=status.HTTP_400_BAD_REQUEST
            )

        try:
            value = adjust_variant(
                pk,
                serializer.validated_data['field'],
                serializer.validated_data['delta']
            )
        except VariantNotFound:
            return Response({'error': 'Variant not found'}, status=status.HTTP_404_NOT_FOUND)

        return Response({'success': True, 'value': value})

    def delete(self, request, pk):
        try:
            delete_variant(pk)
        except VariantNotFound:
            return Response({'error': 'Variant not found'}, status=status.HTTP_404_NOT_FOUND)
        return Response({'success': True})
