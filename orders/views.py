"""
Order API Views.

Implements:
- POST /api/order - Storefront order intake (rate limited)
- GET /api/admin/requests - List order requests
- GET/PATCH /api/admin/requests/{id} - Request detail and status updates
"""
import logging

from rest_framework import generics, status
from rest_framework.exceptions import APIException, ParseError
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.response import Response
from rest_framework.views import APIView

from core.admin_auth import AdminRequiredMixin
from core.errors import first_error_message
from core.rate_limiting import rate_limit
from .models import OrderRequest
from .notifications import dispatch_order_notifications
from .serializers import OrderRequestSerializer, OrderRequestStatusSerializer
from .services import (
    create_order_request,
    get_order_request,
    update_order_request_status,
    OrderRequestNotFound,
)
from .validation import validate_order_submission

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = 'Order request submitted successfully'


class OrderIntakeView(APIView):
    """
    POST: Submit an order request from the storefront.

    Accepts either a cart body (with an ``items`` list) or the legacy
    single-product body. Form-encoded posts always take the legacy shape.

    Returns:
        - 200: Request received (also returned, silently, for spam)
        - 400: Validation error
        - 415: Unsupported content type
        - 429: Rate limited
        - 500: Unexpected error
    """
    parser_classes = [JSONParser, FormParser, MultiPartParser]

    @rate_limit(max_requests=5, window_seconds=60)
    def post(self, request):
        try:
            try:
                body = request.data
            except ParseError:
                return Response({'error': 'Invalid request body'}, status=status.HTTP_400_BAD_REQUEST)
            except APIException as e:
                return Response({'error': str(e.detail)}, status=e.status_code)

            result = validate_order_submission(body)

            if not result.ok:
                if result.is_spam:
                    logger.debug("Honeypot triggered; discarding submission")
                    return Response({'success': True})
                return Response({'error': result.message}, status=status.HTTP_400_BAD_REQUEST)

            order = result.data
            order_request_id = None
            try:
                order_request_id = create_order_request(order)
            except Exception:
                # The customer is still acknowledged; operators backfill from the log.
                logger.exception(
                    f"Failed to save order request for {order.email}: "
                    f"{order.to_payload()}"
                )

            dispatch_order_notifications(order, order_request_id)

            logger.info(
                f"{order.kind.capitalize()} order processed: {order.item_count} item(s) - {order.email}"
            )
            return Response({'success': True, 'message': SUCCESS_MESSAGE})

        except Exception as e:
            logger.exception(f"Unexpected error in order intake: {e}")
            return Response(
                {'error': 'An unexpected error occurred. Please try again.'},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR
            )

    def get(self, request):
        return Response({'error': 'Method not allowed'}, status=status.HTTP_405_METHOD_NOT_ALLOWED)


class OrderRequestListView(AdminRequiredMixin, generics.ListAPIView):
    """
    GET: List order requests, newest first.

    Query Parameters:
        - status: Filter by status (NEW, CONFIRMED, CLOSED)
    """
    serializer_class = OrderRequestSerializer

    def get_queryset(self):
        queryset = OrderRequest.objects.prefetch_related('items')

        status_filter = self.request.query_params.get('status', '').upper()
        if status_filter in OrderRequest.Status.values:
            queryset = queryset.filter(status=status_filter)

        return queryset.order_by('-created_at')


class OrderRequestDetailView(AdminRequiredMixin, APIView):
    """
    GET: Retrieve an order request with its items
    PATCH: Update the request status
    """

    def get(self, request, pk):
        try:
            order_request = get_order_request(pk)
        except OrderRequestNotFound:
            return Response({'error': 'Order request not found'}, status=status.HTTP_404_NOT_FOUND)
        return Response(OrderRequestSerializer(order_request).data)

    def patch(self, request, pk):
        serializer = OrderRequestStatusSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(
                {'error': first_error_message(serializer.errors)},
                status=status.HTTP_400_BAD_REQUEST
            )

        try:
            update_order_request_status(pk, serializer.validated_data['status'])
        except OrderRequestNotFound:
            return Response({'error': 'Order request not found'}, status=status.HTTP_404_NOT_FOUND)

        return Response({'success': True})
