"""
Authentication views for the Epistle Walk API.

Signing in is what switches progress storage from device-only to
device plus account.
"""
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView
from rest_framework_simplejwt.tokens import RefreshToken
from drf_spectacular.utils import extend_schema, OpenApiExample

from apps.reading.services.sync import repository_for_request

from .serializers import UserSerializer


class LoginView(TokenObtainPairView):
    """
    Login endpoint - obtain JWT access and refresh tokens.
    """
    permission_classes = [AllowAny]

    @extend_schema(
        summary="Login with username and password",
        description="Authenticate to receive JWT tokens.",
        examples=[
            OpenApiExample(
                'Login Request',
                value={
                    'username': 'reader',
                    'password': 'securepassword'
                },
                request_only=True
            )
        ],
    )
    def post(self, request, *args, **kwargs):
        return super().post(request, *args, **kwargs)


class LogoutView(APIView):
    """
    Logout - blacklist the refresh token.
    """
    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Logout and invalidate tokens",
        description="Blacklist the refresh token to log out.",
        request={
            'type': 'object',
            'properties': {
                'refresh': {'type': 'string', 'description': 'Refresh token to blacklist'}
            }
        }
    )
    def post(self, request):
        refresh_token = request.data.get('refresh')
        if refresh_token:
            try:
                RefreshToken(refresh_token).blacklist()
            except TokenError as e:
                return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        return Response({'message': 'Logged out successfully.'}, status=status.HTTP_200_OK)


class TokenRefreshAPIView(TokenRefreshView):
    """
    Refresh access token using refresh token.
    """

    @extend_schema(
        summary="Refresh access token",
        description="Use a valid refresh token to obtain a new access token."
    )
    def post(self, request, *args, **kwargs):
        return super().post(request, *args, **kwargs)


class CurrentUserView(APIView):
    """
    The signed-in user with a summary of their saved progress.
    """
    permission_classes = [IsAuthenticated]

    @extend_schema(summary="Get current user")
    def get(self, request):
        repo = repository_for_request(request)
        data = UserSerializer(request.user).data
        data['progress'] = {
            'rated_days': len(repo.read_status()),
            'archived_days': len(repo.read_archive()),
        }
        return Response(data)
