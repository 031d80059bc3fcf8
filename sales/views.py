"""
Sales API Views.

Implements:
- GET /api/admin/sales - 50 most recent sales
- POST /api/admin/sales - Record a sale with atomic inventory movement
- GET /api/admin/dashboard - Inventory and sales statistics
"""
import logging
from datetime import timedelta

from django.utils import timezone
from rest_framework import generics, status
from rest_framework.response import Response
from rest_framework.views import APIView

from core.admin_auth import AdminRequiredMixin
from core.errors import first_error_message
from inventory.services import VariantNotFound
from .models import Sale
from .serializers import SaleCreateSerializer, SaleSerializer
from .services import get_dashboard_stats, record_sale, SaleValidationError

logger = logging.getLogger(__name__)

RECENT_SALES_LIMIT = 50
DASHBOARD_WINDOW_DAYS = 30


class SaleListCreateView(AdminRequiredMixin, generics.ListCreateAPIView):
    """
    GET: List the most recent sales with line items
    POST: Record a sale

    Returns (POST):
        - 200: Sale recorded
        - 400: Validation error
        - 404: Unknown variant (nothing recorded)
        - 500: Storage failure (nothing recorded)
    """
    serializer_class = SaleSerializer

    def get_queryset(self):
        return Sale.objects.prefetch_related('line_items').order_by('-created_at')[:RECENT_SALES_LIMIT]

    def create(self, request, *args, **kwargs):
        serializer = SaleCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(
                {'error': first_error_message(serializer.errors)},
                status=status.HTTP_400_BAD_REQUEST
            )

        data = serializer.validated_data
        try:
            sale = record_sale(
                channel=data['channel'],
                line_items=[dict(item) for item in data['line_items']],
                customer_name=data.get('customer_name'),
                email=data.get('email'),
                notes=data.get('notes'),
            )
        except SaleValidationError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        except VariantNotFound as e:
            logger.warning(f"Sale rejected: {e}")
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except Exception as e:
            logger.exception(f"Failed to record sale: {e}")
            return Response(
                {'error': 'Failed to record sale'},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR
            )

        return Response({'success': True, 'id': sale.id})


class DashboardStatsView(AdminRequiredMixin, APIView):
    """
    GET: Inventory totals, units sold (last 30 days and all time),
    top sellers and the number of NEW order requests.
    """

    def get(self, request):
        since = timezone.now() - timedelta(days=DASHBOARD_WINDOW_DAYS)
        return Response(get_dashboard_stats(since))
