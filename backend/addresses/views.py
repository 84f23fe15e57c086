"""
Addresses app ViewSet.

Thin views: parse input, call ``AddressService`` with the caller's
identity, serialize the result.  Every endpoint is scoped to the
authenticated user's own addresses.
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response

from core.domain.access import identity_of

from .serializers import AddressDeleteSerializer, AddressSerializer, AddressWriteSerializer
from .services import AddressService


class AddressViewSet(viewsets.ViewSet):
    """
    Endpoints
    ---------
    GET    /api/addresses/                  → my addresses, default first
    POST   /api/addresses/                  → create (first one becomes default)
    GET    /api/addresses/default/          → my default address
    GET    /api/addresses/{id}/
    PATCH  /api/addresses/{id}/
    DELETE /api/addresses/{id}/?replacement=<id>
    POST   /api/addresses/{id}/set-default/
    POST   /api/addresses/{id}/mark-used/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(summary="List my addresses", responses={200: AddressSerializer(many=True)}, tags=["Addresses"])
    def list(self, request: Request) -> Response:
        addresses = AddressService.list_addresses(identity_of(request.user))
        return Response(AddressSerializer(addresses, many=True).data)

    @extend_schema(
        summary="Create an address",
        description="The first address of a user always becomes the default.",
        request=AddressWriteSerializer,
        responses={201: AddressSerializer},
        tags=["Addresses"],
    )
    def create(self, request: Request) -> Response:
        serializer = AddressWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        is_default = data.pop("is_default", False)
        address = AddressService.create_address(identity_of(request.user), data, is_default=is_default)
        return Response(AddressSerializer(address).data, status=status.HTTP_201_CREATED)

    @extend_schema(summary="Retrieve my address", responses={200: AddressSerializer}, tags=["Addresses"])
    def retrieve(self, request: Request, pk: str = None) -> Response:
        address = AddressService.get_address(pk, identity_of(request.user))
        return Response(AddressSerializer(address).data)

    @extend_schema(
        summary="Update my address",
        description="is_default=true makes this the default; unsetting the current default is rejected.",
        request=AddressWriteSerializer,
        responses={200: AddressSerializer},
        tags=["Addresses"],
    )
    def partial_update(self, request: Request, pk: str = None) -> Response:
        serializer = AddressWriteSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        address = AddressService.update_address(pk, identity_of(request.user), dict(serializer.validated_data))
        return Response(AddressSerializer(address).data)

    @extend_schema(
        summary="Delete my address",
        description=(
            "Deleting the default promotes ?replacement=<id>, or else the most recently "
            "used remaining address. ?replacement is refused for a non-default address. "
            "The only address cannot be deleted."
        ),
        parameters=[
            OpenApiParameter(name="replacement", type=int, location=OpenApiParameter.QUERY),
        ],
        responses={204: None, 400: OpenApiResponse(description="Only address or invalid replacement.")},
        tags=["Addresses"],
    )
    def destroy(self, request: Request, pk: str = None) -> Response:
        params = AddressDeleteSerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        AddressService.delete_address(
            pk, identity_of(request.user), replacement_id=params.validated_data.get("replacement"),
        )
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=["get"], url_path="default")
    @extend_schema(summary="My default address", responses={200: AddressSerializer}, tags=["Addresses"])
    def default(self, request: Request) -> Response:
        return Response(AddressSerializer(AddressService.get_default(identity_of(request.user))).data)

    @action(detail=True, methods=["post"], url_path="set-default")
    @extend_schema(summary="Make this my default address", request=None, responses={200: AddressSerializer}, tags=["Addresses"])
    def set_default(self, request: Request, pk: str = None) -> Response:
        address = AddressService.set_default(pk, identity_of(request.user))
        return Response(AddressSerializer(address).data)

    @action(detail=True, methods=["post"], url_path="mark-used")
    @extend_schema(summary="Record that this address was just used", request=None, responses={200: AddressSerializer}, tags=["Addresses"])
    def mark_used(self, request: Request, pk: str = None) -> Response:
        address = AddressService.mark_used(pk, identity_of(request.user))
        return Response(AddressSerializer(address).data)
