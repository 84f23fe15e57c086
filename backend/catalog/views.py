"""
Catalog app ViewSets.

Architecture: Views are intentionally thin.
Every view follows the strict three-step pattern:

    1. Parse / validate input via a serializer.
    2. Delegate all business logic to the appropriate service class.
    3. Serialize the result and return a DRF ``Response``.

Domain exceptions raised by services are turned into HTTP responses by
``core.domain.exception_handler``; no view catches them.

ViewSets
--------
- ``DraftViewSet``           — seller CRUD + submit on their own drafts.
- ``ModerationQueueViewSet`` — moderator reads of the queue + escalation.
- ``ModerationDraftViewSet`` — moderator decisions on a single draft.
"""

from __future__ import annotations

import logging

from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response

from core.domain.access import identity_of, require_permission
from core.permissions_constants import CatalogPerms, perm

from .serializers import (
    ApprovalResultSerializer,
    AssignedQueueFilterSerializer,
    DraftFilterSerializer,
    DraftSerializer,
    DraftWriteSerializer,
    EscalateSerializer,
    PrioritySerializer,
    QueueItemSerializer,
    QueuePageSerializer,
    QueueStatsSerializer,
    RejectSerializer,
    RequestChangesSerializer,
)
from .services import DraftService, ModerationQueueService, ModerationService

logger = logging.getLogger(__name__)

MODERATE_PERM = perm(CatalogPerms.APP_LABEL, CatalogPerms.CAN_MODERATE_DRAFTS)


def _require_moderator(request: Request) -> str:
    require_permission(
        request.user, MODERATE_PERM,
        message="Only moderators can review drafts.",
    )
    return identity_of(request.user)


class DraftViewSet(viewsets.ViewSet):
    """
    Seller-facing draft endpoints.  Every action is scoped to drafts
    owned by the authenticated user.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="List my drafts",
        parameters=[
            OpenApiParameter(name="status", type=str, location=OpenApiParameter.QUERY, description="Filter by draft status."),
        ],
        responses={200: DraftSerializer(many=True)},
        tags=["Drafts"],
    )
    def list(self, request: Request) -> Response:
        filters = DraftFilterSerializer(data=request.query_params)
        filters.is_valid(raise_exception=True)
        qs = DraftService.list_drafts(identity_of(request.user), filters.validated_data.get("status"))
        return Response(DraftSerializer(qs, many=True).data)

    @extend_schema(
        summary="Create a draft",
        description=(
            "Create a product draft in status 'draft'. Requires at least 3 images and "
            "1 variant, each with a positive sell price; every violation is listed in 'errors'."
        ),
        request=DraftWriteSerializer,
        responses={
            201: DraftSerializer,
            400: OpenApiResponse(description="Validation failed."),
            404: OpenApiResponse(description="Category not found."),
        },
        tags=["Drafts"],
    )
    def create(self, request: Request) -> Response:
        serializer = DraftWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        category_id = data.pop("category")
        draft = DraftService.create_draft(identity_of(request.user), category_id, data)
        return Response(DraftSerializer(draft).data, status=status.HTTP_201_CREATED)

    @extend_schema(summary="Retrieve my draft", responses={200: DraftSerializer}, tags=["Drafts"])
    def retrieve(self, request: Request, pk: str = None) -> Response:
        draft = DraftService.get_draft(pk, identity_of(request.user))
        return Response(DraftSerializer(draft).data)

    @extend_schema(
        summary="Update my draft",
        description="Partial update. Allowed only while the draft is 'draft' or 'changes_requested'.",
        request=DraftWriteSerializer,
        responses={200: DraftSerializer, 409: OpenApiResponse(description="Draft is not editable.")},
        tags=["Drafts"],
    )
    def partial_update(self, request: Request, pk: str = None) -> Response:
        serializer = DraftWriteSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        category_id = data.pop("category", None)
        draft = DraftService.update_draft(pk, identity_of(request.user), data, category_id=category_id)
        return Response(DraftSerializer(draft).data)

    @extend_schema(
        summary="Delete my draft",
        description="Allowed from 'draft', 'rejected' and 'changes_requested'.",
        responses={204: None, 409: OpenApiResponse(description="Draft cannot be deleted in its status.")},
        tags=["Drafts"],
    )
    def destroy(self, request: Request, pk: str = None) -> Response:
        DraftService.delete_draft(pk, identity_of(request.user))
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["post"], url_path="submit")
    @extend_schema(
        summary="Submit a draft for review",
        request=None,
        responses={200: DraftSerializer, 409: OpenApiResponse(description="Illegal transition.")},
        tags=["Drafts"],
    )
    def submit(self, request: Request, pk: str = None) -> Response:
        draft = DraftService.submit_for_review(pk, identity_of(request.user))
        return Response(DraftSerializer(draft).data)


class ModerationQueueViewSet(viewsets.ViewSet):
    """Moderator reads of the queue, ordered by priority then age."""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Pending moderation queue",
        parameters=[
            OpenApiParameter(name="limit", type=int, location=OpenApiParameter.QUERY),
            OpenApiParameter(name="offset", type=int, location=OpenApiParameter.QUERY),
        ],
        responses={200: QueueItemSerializer(many=True)},
        tags=["Moderation"],
    )
    def list(self, request: Request) -> Response:
        _require_moderator(request)
        page = QueuePageSerializer(data=request.query_params)
        page.is_valid(raise_exception=True)
        items = ModerationQueueService.pending_queue(**page.validated_data)
        return Response(QueueItemSerializer(items, many=True).data)

    @action(detail=False, methods=["get"], url_path="assigned")
    @extend_schema(
        summary="Queue items assigned to me",
        parameters=[
            OpenApiParameter(name="include_completed", type=bool, location=OpenApiParameter.QUERY),
        ],
        responses={200: QueueItemSerializer(many=True)},
        tags=["Moderation"],
    )
    def assigned(self, request: Request) -> Response:
        moderator_id = _require_moderator(request)
        filters = AssignedQueueFilterSerializer(data=request.query_params)
        filters.is_valid(raise_exception=True)
        items = ModerationQueueService.assigned_to(moderator_id, **filters.validated_data)
        return Response(QueueItemSerializer(items, many=True).data)

    @action(detail=False, methods=["get"], url_path="stats")
    @extend_schema(summary="Queue statistics", responses={200: QueueStatsSerializer}, tags=["Moderation"])
    def stats(self, request: Request) -> Response:
        _require_moderator(request)
        return Response(QueueStatsSerializer(ModerationQueueService.stats()).data)

    @action(detail=False, methods=["post"], url_path="escalate")
    @extend_schema(
        summary="Escalate stale queue items",
        description="Promote open, unassigned low/normal items older than the cutoff to high. Idempotent.",
        request=EscalateSerializer,
        responses={200: OpenApiResponse(description='{"escalated": <count>}')},
        tags=["Moderation"],
    )
    def escalate(self, request: Request) -> Response:
        _require_moderator(request)
        serializer = EscalateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        count = ModerationQueueService.escalate_stale(serializer.validated_data.get("older_than_hours"))
        return Response({"escalated": count})


class ModerationDraftViewSet(viewsets.ViewSet):
    """
    Moderator decisions on a single draft.  ``pk`` is the draft id.
    """

    permission_classes = [IsAuthenticated]

    def get_moderation_service(self) -> ModerationService:
        return ModerationService()

    @action(detail=True, methods=["get"], url_path="queue-item")
    @extend_schema(summary="Queue item for a draft", responses={200: QueueItemSerializer}, tags=["Moderation"])
    def queue_item(self, request: Request, pk: str = None) -> Response:
        _require_moderator(request)
        return Response(QueueItemSerializer(ModerationQueueService.item_for_draft(pk)).data)

    @action(detail=True, methods=["post"], url_path="assign")
    @extend_schema(
        summary="Assign a draft to me",
        request=None,
        responses={200: QueueItemSerializer, 409: OpenApiResponse(description="Held by another moderator.")},
        tags=["Moderation"],
    )
    def assign(self, request: Request, pk: str = None) -> Response:
        moderator_id = _require_moderator(request)
        item = ModerationService.assign(pk, moderator_id)
        return Response(QueueItemSerializer(item).data)

    @action(detail=True, methods=["post"], url_path="approve")
    @extend_schema(
        summary="Approve a draft",
        description="Creates the live product, its variants and images in one transaction.",
        request=None,
        responses={200: ApprovalResultSerializer},
        tags=["Moderation"],
    )
    def approve(self, request: Request, pk: str = None) -> Response:
        moderator_id = _require_moderator(request)
        draft, product = self.get_moderation_service().approve(pk, moderator_id)
        return Response(ApprovalResultSerializer({"draft": draft, "product": product}).data)

    @action(detail=True, methods=["post"], url_path="reject")
    @extend_schema(summary="Reject a draft", request=RejectSerializer, responses={200: DraftSerializer}, tags=["Moderation"])
    def reject(self, request: Request, pk: str = None) -> Response:
        moderator_id = _require_moderator(request)
        serializer = RejectSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        draft = self.get_moderation_service().reject(pk, moderator_id, serializer.validated_data["reason"])
        return Response(DraftSerializer(draft).data)

    @action(detail=True, methods=["post"], url_path="request-changes")
    @extend_schema(
        summary="Request changes on a draft",
        request=RequestChangesSerializer,
        responses={200: DraftSerializer},
        tags=["Moderation"],
    )
    def request_changes(self, request: Request, pk: str = None) -> Response:
        moderator_id = _require_moderator(request)
        serializer = RequestChangesSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        draft = self.get_moderation_service().request_changes(
            pk, moderator_id, serializer.validated_data["feedback"],
        )
        return Response(DraftSerializer(draft).data)

    @action(detail=True, methods=["post"], url_path="priority")
    @extend_schema(
        summary="Override queue priority",
        request=PrioritySerializer,
        responses={200: QueueItemSerializer},
        tags=["Moderation"],
    )
    def priority(self, request: Request, pk: str = None) -> Response:
        _require_moderator(request)
        serializer = PrioritySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        item = ModerationQueueService.update_priority(pk, serializer.validated_data["priority"])
        return Response(QueueItemSerializer(item).data)
