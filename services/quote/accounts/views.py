"""API views for the identity side of the quote service."""
from __future__ import annotations

from rest_framework import status, viewsets
from rest_framework.decorators import api_view, permission_classes
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response

from . import services
from .models import User
from .permissions import IsAdminRole
from .serializers import CredentialsSerializer, UserSerializer


class UserViewSet(viewsets.ReadOnlyModelViewSet):
    queryset = User.objects.all()
    serializer_class = UserSerializer
    permission_classes = [IsAdminRole]
    filter_backends = [SearchFilter, OrderingFilter]
    search_fields = ["email", "role"]
    ordering_fields = ["email", "created_at"]
    ordering = ["-created_at"]


@api_view(["POST"])
@permission_classes([AllowAny])
def sign_up(request: Request) -> Response:
    credentials = CredentialsSerializer(data=request.data)
    credentials.is_valid(raise_exception=True)
    try:
        record = services.sign_up(request, **credentials.validated_data)
    except services.AuthenticationFailed as exc:
        return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
    return Response(UserSerializer(record).data, status=status.HTTP_201_CREATED)


@api_view(["POST"])
@permission_classes([AllowAny])
def sign_in(request: Request) -> Response:
    credentials = CredentialsSerializer(data=request.data)
    credentials.is_valid(raise_exception=True)
    try:
        record = services.sign_in(request, **credentials.validated_data)
    except services.AuthenticationFailed as exc:
        return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
    return Response({"user": UserSerializer(record).data})


@api_view(["POST"])
@permission_classes([AllowAny])
def sign_out(request: Request) -> Response:
    services.sign_out(request)
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(["GET"])
@permission_classes([AllowAny])
def session(request: Request) -> Response:
    """Report the signed-in user, if any."""

    record = services.current_user(request)
    return Response({"user": UserSerializer(record).data if record else None})
