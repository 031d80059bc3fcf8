"""
Admin login/logout endpoints.
"""
import logging

from rest_framework import serializers, status
from rest_framework.response import Response
from rest_framework.views import APIView

from .admin_auth import login_admin, logout_admin, verify_admin_password
from .rate_limiting import rate_limit

logger = logging.getLogger(__name__)


class LoginSerializer(serializers.Serializer):
    password = serializers.CharField(trim_whitespace=False, error_messages={
        'required': 'Password is required',
        'blank': 'Password is required',
    })


class AdminLoginView(APIView):
    """
    POST: Exchange the admin password for a session cookie.
    """

    @rate_limit(max_requests=10, window_seconds=60)
    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(
                {'error': serializer.errors['password'][0]},
                status=status.HTTP_400_BAD_REQUEST
            )

        if not verify_admin_password(serializer.validated_data['password']):
            logger.warning("Failed admin login attempt")
            return Response({'error': 'Invalid password'}, status=status.HTTP_401_UNAUTHORIZED)

        login_admin(request)
        logger.info("Admin logged in")
        return Response({'success': True})


class AdminLogoutView(APIView):
    """
    POST: Revoke the current admin session.
    """

    def post(self, request):
        logout_admin(request)
        return Response({'success': True})
