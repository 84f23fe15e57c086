"""
Core app views — **Thin Views**.

Each view delegates all logic to the corresponding service in
``core.services`` and only serialises the result.
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from .serializers import SystemConstantsSerializer
from .services import SystemConstantsService


class SystemConstantsView(APIView):
    """
    **GET /api/core/constants/**

    Return the system-wide choice enumerations (draft statuses, queue
    priorities, product statuses) and outbox event types so the frontend
    can build dropdowns and labels without hardcoding values.

    **Authentication**: Not required (``AllowAny``).
    """

    permission_classes = [AllowAny]

    @extend_schema(
        summary="System constants",
        description=(
            "Return all system-wide choice enumerations and outbox event types "
            "so the frontend can dynamically build dropdowns, filters, and labels."
        ),
        responses={200: OpenApiResponse(response=SystemConstantsSerializer, description="System constants.")},
        tags=["System"],
    )
    def get(self, request: Request) -> Response:
        data = SystemConstantsService.get_constants()
        serializer = SystemConstantsSerializer(data)
        return Response(serializer.data, status=status.HTTP_200_OK)
