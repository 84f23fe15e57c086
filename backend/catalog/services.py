"""
Catalog app service layer.

All draft-lifecycle and moderation logic lives here; views only parse
input and call these services with plain identity strings.

Every state change runs inside ``core.domain.transactions.unit_of_work``:
the draft row is locked with ``SELECT ... FOR UPDATE``, entity writes
and outbox appends share one transaction, and calls to other services
are registered as post-commit hooks.

State machine
-------------
``ALLOWED_TRANSITIONS`` is the single table of legal status moves::

    draft             → pending
    changes_requested → pending
    pending           → approved | rejected | changes_requested

``approved`` and ``rejected`` are terminal.  The queue invariant is kept
by construction: the only code that enters ``pending`` opens a queue
item and the only code that leaves it closes one, in the same
transaction.
"""

from __future__ import annotations

import logging
import random
import re
from datetime import timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import Case, Count, F, IntegerField, Q, QuerySet, Value, When
from django.utils import timezone
from django.utils.text import slugify

from core.constants import COST_PRICE_RATIO, ESCALATION_AGE_HOURS, PRODUCT_CODE_MAX_ATTEMPTS
from core.domain.exceptions import (
    Conflict,
    DomainError,
    DomainValidationError,
    InvalidTransition,
    NotFound,
    PermissionDenied,
)
from core.domain.outbox import AggregateType, EventType
from core.domain.transactions import lock_for_update, unit_of_work

from .clients import NotificationServiceClient, SellerServiceClient
from .models import (
    PRIORITY_RANK,
    Category,
    DraftStatus,
    ModerationPriority,
    ModerationQueueItem,
    Product,
    ProductDraft,
    ProductImage,
    ProductStatus,
    ProductVariant,
)
from .payloads import DraftPayload

logger = logging.getLogger(__name__)

# ────────────────────────────────────────────────────────────────────
# State-machine table
# ────────────────────────────────────────────────────────────────────

ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    DraftStatus.DRAFT: frozenset({DraftStatus.PENDING}),
    DraftStatus.CHANGES_REQUESTED: frozenset({DraftStatus.PENDING}),
    DraftStatus.PENDING: frozenset({
        DraftStatus.APPROVED,
        DraftStatus.REJECTED,
        DraftStatus.CHANGES_REQUESTED,
    }),
    DraftStatus.APPROVED: frozenset(),
    DraftStatus.REJECTED: frozenset(),
}

EDITABLE_STATUSES = frozenset({DraftStatus.DRAFT, DraftStatus.CHANGES_REQUESTED})
DELETABLE_STATUSES = frozenset({
    DraftStatus.DRAFT,
    DraftStatus.REJECTED,
    DraftStatus.CHANGES_REQUESTED,
})


_CENT = Decimal("0.01")


def _ensure_transition(draft: ProductDraft, target: str, reason: str = "") -> None:
    """Raise ``InvalidTransition`` unless ``draft.status → target`` is legal."""
    if target not in ALLOWED_TRANSITIONS.get(draft.status, frozenset()):
        raise InvalidTransition(current=draft.status, target=target, reason=reason or None)


def _actor(actor_id: str | None) -> dict[str, Any] | None:
    return {"actorId": actor_id} if actor_id else None


def _require_text(value: str | None, label: str) -> str:
    text = (value or "").strip()
    if not text:
        raise DomainValidationError(f"{label} is required.")
    return text


def category_exists(category_id: Any) -> bool:
    """Precondition check for drafts: the category must exist and be active."""
    try:
        return Category.objects.filter(pk=category_id, is_active=True).exists()
    except (ValueError, TypeError):
        return False


def _get_owned_draft(draft_id: Any, owner_id: str, *, for_update: bool = False) -> ProductDraft:
    if for_update:
        draft = lock_for_update(ProductDraft, draft_id, label="Draft")
    else:
        try:
            draft = ProductDraft.objects.select_related("category").get(pk=draft_id)
        except (ProductDraft.DoesNotExist, ValueError, TypeError):
            raise NotFound(f"Draft with id {draft_id} not found.")
    if draft.owner_id != str(owner_id):
        raise PermissionDenied("You can only access your own drafts.")
    return draft


def _open_queue_item(draft: ProductDraft) -> ModerationQueueItem | None:
    return (
        ModerationQueueItem.objects
        .select_for_update()
        .filter(draft=draft, completed_at__isnull=True)
        .first()
    )


# ════════════════════════════════════════════════════════════════════
#  Product Code Generator
# ════════════════════════════════════════════════════════════════════

class ProductCodeGenerator:
    """
    Generates product codes of the form ``ABC-123456``: the first three
    alphanumeric characters of the product name upper-cased (padded with
    ``X``), a hyphen, and a random six-digit number.
    """

    PATTERN = re.compile(r"^[A-Z0-9]{3}-\d{6}$")

    @staticmethod
    def prefix_for(name: str) -> str:
        letters = re.sub(r"[^A-Za-z0-9]", "", name)[:3].upper()
        return letters.ljust(3, "X")

    @staticmethod
    def generate(name: str) -> str:
        return f"{ProductCodeGenerator.prefix_for(name)}-{random.randint(100000, 999999)}"

    @staticmethod
    def is_taken(code: str) -> bool:
        return Product.objects.filter(product_code=code).exists()


# ════════════════════════════════════════════════════════════════════
#  Draft Service (owner side)
# ════════════════════════════════════════════════════════════════════

class DraftService:
    """
    Seller-facing operations on drafts.

    Every method takes the authenticated seller's ``owner_id`` and
    refuses to touch drafts owned by anyone else.
    """

    @staticmethod
    def get_draft(draft_id: Any, owner_id: str) -> ProductDraft:
        return _get_owned_draft(draft_id, owner_id)

    @staticmethod
    def list_drafts(owner_id: str, status: str | None = None) -> QuerySet:
        qs = ProductDraft.objects.filter(owner_id=str(owner_id)).select_related("category")
        if status:
            qs = qs.filter(status=status)
        return qs.order_by("-created_at", "-pk")

    @staticmethod
    def create_draft(owner_id: str, category_id: Any, data: dict[str, Any]) -> ProductDraft:
        """
        Create a draft in status ``draft``.

        The payload is validated as a whole before anything is written,
        so a rejected submission leaves no partial draft behind.

        Raises
        ------
        DomainValidationError
            Listing every violated payload constraint.
        NotFound
            If the category does not exist.
        """
        payload = DraftPayload.parse(data)
        if not category_exists(category_id):
            raise NotFound(f"Category with id {category_id} not found.")

        with unit_of_work(metadata=_actor(owner_id)):
            draft = ProductDraft.objects.create(
                owner_id=str(owner_id),
                category_id=category_id,
                status=DraftStatus.DRAFT,
                **payload.model_fields(),
            )

        logger.info("Draft %s created by owner=%s", draft.pk, owner_id)
        return draft

    @staticmethod
    def update_draft(
        draft_id: Any,
        owner_id: str,
        data: dict[str, Any],
        category_id: Any = None,
    ) -> ProductDraft:
        """
        Apply a partial update.  The merged payload is re-validated as a
        whole.  Legal only while the draft is ``draft`` or
        ``changes_requested``.
        """
        with unit_of_work(metadata=_actor(owner_id)):
            draft = _get_owned_draft(draft_id, owner_id, for_update=True)
            if draft.status not in EDITABLE_STATUSES:
                raise InvalidTransition(
                    f"Draft {draft.pk} is '{draft.status}' and can no longer be edited."
                )

            merged = DraftPayload.from_draft(draft)
            merged.update({key: data[key] for key in DraftPayload.FIELDS if key in data})
            payload = DraftPayload.parse(merged)

            if category_id is not None and str(category_id) != str(draft.category_id):
                if not category_exists(category_id):
                    raise NotFound(f"Category with id {category_id} not found.")
                draft.category_id = category_id

            for name, value in payload.model_fields().items():
                setattr(draft, name, value)
            draft.save()

        logger.info("Draft %s updated by owner=%s", draft.pk, owner_id)
        return draft

    @staticmethod
    def submit_for_review(draft_id: Any, owner_id: str) -> ProductDraft:
        """
        ``draft | changes_requested → pending``.

        Opens a ``normal``-priority queue item and appends
        ``product.draft_submitted`` in the same transaction.
        """
        with unit_of_work(metadata=_actor(owner_id)) as uow:
            draft = _get_owned_draft(draft_id, owner_id, for_update=True)
            _ensure_transition(
                draft, DraftStatus.PENDING,
                "Only draft or changes_requested drafts can be submitted.",
            )

            now = timezone.now()
            draft.status = DraftStatus.PENDING
            draft.submitted_at = now
            draft.save(update_fields=["status", "submitted_at", "updated_at"])

            ModerationQueueItem.objects.create(draft=draft, priority=ModerationPriority.NORMAL)

            uow.emit(
                aggregate_type=AggregateType.PRODUCT_DRAFT,
                aggregate_id=draft.pk,
                event_type=EventType.DRAFT_SUBMITTED,
                payload={
                    "draftId": str(draft.pk),
                    "sellerId": draft.owner_id,
                    "categoryId": str(draft.category_id),
                    "name": draft.name,
                    "baseSellPrice": str(draft.base_sell_price),
                    "submittedAt": now,
                },
            )

        logger.info("Draft %s submitted for review by owner=%s", draft.pk, owner_id)
        return draft

    @staticmethod
    def delete_draft(draft_id: Any, owner_id: str) -> None:
        """Delete a draft.  Legal from ``draft``, ``rejected`` and ``changes_requested``."""
        with unit_of_work(metadata=_actor(owner_id)):
            draft = _get_owned_draft(draft_id, owner_id, for_update=True)
            if draft.status not in DELETABLE_STATUSES:
                raise InvalidTransition(
                    f"Drafts in status '{draft.status}' cannot be deleted."
                )
            draft_pk = draft.pk
            draft.delete()

        logger.info("Draft %s deleted by owner=%s", draft_pk, owner_id)


# ════════════════════════════════════════════════════════════════════
#  Moderation Service (moderator side)
# ════════════════════════════════════════════════════════════════════

class ModerationService:
    """
    Review transitions on pending drafts.

    Parameters
    ----------
    seller_client : SellerServiceClient, optional
    notification_client : NotificationServiceClient, optional
        Outbound clients used by post-commit hooks.  Default to the
        clients configured in settings.

    Assignment is advisory: deciding on a draft does not require a prior
    ``assign`` and a moderator other than the assignee may decide.
    """

    def __init__(
        self,
        seller_client: SellerServiceClient | None = None,
        notification_client: NotificationServiceClient | None = None,
    ) -> None:
        self.seller_client = seller_client or SellerServiceClient.from_settings()
        self.notification_client = notification_client or NotificationServiceClient.from_settings()

    # ── Helpers ──────────────────────────────────────────────────────

    @staticmethod
    def _close_queue_item(draft: ProductDraft, moderator_id: str, now) -> None:
        item = _open_queue_item(draft)
        if item is None:
            logger.warning("Pending draft %s had no open queue item", draft.pk)
            return
        if item.assigned_to and item.assigned_to != moderator_id:
            logger.info(
                "Draft %s decided by moderator=%s while assigned to %s",
                draft.pk, moderator_id, item.assigned_to,
            )
        item.completed_at = now
        item.save(update_fields=["completed_at", "updated_at"])

    @staticmethod
    def _review_payload(draft: ProductDraft) -> dict[str, Any]:
        return {
            "draftId": str(draft.pk),
            "sellerId": draft.owner_id,
            "categoryId": str(draft.category_id),
            "name": draft.name,
            "reviewedBy": draft.reviewed_by,
            "reviewedAt": draft.reviewed_at,
        }

    # ── Assignment ───────────────────────────────────────────────────

    @staticmethod
    def assign(draft_id: Any, moderator_id: str) -> ModerationQueueItem:
        """
        Claim the open queue item of a pending draft.

        Re-assigning to the same moderator is a no-op.

        Raises
        ------
        InvalidTransition
            If the draft is not pending (already reviewed).
        Conflict
            If another moderator holds the item.
        """
        with unit_of_work(metadata=_actor(moderator_id)):
            draft = lock_for_update(ProductDraft, draft_id, label="Draft")
            item = _open_queue_item(draft) if draft.status == DraftStatus.PENDING else None
            if item is None:
                raise InvalidTransition(
                    f"Draft {draft.pk} is '{draft.status}'; this draft has already been reviewed "
                    "or was never submitted."
                )
            if item.assigned_to and item.assigned_to != moderator_id:
                raise Conflict(f"Draft {draft.pk} is already assigned to another moderator.")
            if not item.assigned_to:
                item.assigned_to = moderator_id
                item.assigned_at = timezone.now()
                item.save(update_fields=["assigned_to", "assigned_at", "updated_at"])

        logger.info("Draft %s assigned to moderator=%s", draft.pk, moderator_id)
        return item

    # ── Decisions ────────────────────────────────────────────────────

    def approve(self, draft_id: Any, moderator_id: str) -> tuple[ProductDraft, Product]:
        """
        ``pending → approved``, creating the live product atomically.

        Inside one transaction: generate a unique product code, create
        the product with its variants (SKU ``{code}-{color}-{size}``)
        and images (first one primary), stamp the review fields, close
        the queue item and append ``product.approved`` and
        ``product.created``.  After commit: increment the seller's
        product count and notify the seller.

        Returns
        -------
        tuple
            ``(draft, product)``.
        """
        with unit_of_work(metadata=_actor(moderator_id)) as uow:
            draft = lock_for_update(ProductDraft, draft_id, label="Draft")
            _ensure_transition(draft, DraftStatus.APPROVED, "Only pending drafts can be approved.")

            now = timezone.now()
            product = ProductPublisher.publish(draft, moderator_id, now)

            draft.status = DraftStatus.APPROVED
            draft.product = product
            draft.reviewed_by = moderator_id
            draft.reviewed_at = now
            draft.save(update_fields=["status", "product", "reviewed_by", "reviewed_at", "updated_at"])
            self._close_queue_item(draft, moderator_id, now)

            uow.emit(
                aggregate_type=AggregateType.PRODUCT_DRAFT,
                aggregate_id=draft.pk,
                event_type=EventType.PRODUCT_APPROVED,
                payload={
                    **self._review_payload(draft),
                    "productId": str(product.pk),
                    "baseSellPrice": str(draft.base_sell_price),
                },
            )
            uow.emit(
                aggregate_type=AggregateType.PRODUCT,
                aggregate_id=product.pk,
                event_type=EventType.PRODUCT_CREATED,
                payload={
                    "productId": str(product.pk),
                    "productCode": product.product_code,
                    "name": product.name,
                    "sellerId": product.owner_id,
                    "categoryId": str(product.category_id),
                    "baseSellPrice": str(product.base_sell_price),
                    "status": product.status,
                    "draftId": str(draft.pk),
                    "createdAt": product.created_at,
                },
            )
            uow.after_commit(self.seller_client.increment_product_count, draft.owner_id)
            uow.after_commit(
                self.notification_client.notify_approved,
                draft.owner_id, draft.pk, draft.name, product.pk,
            )

        logger.info(
            "Draft %s approved by moderator=%s as product %s (%s)",
            draft.pk, moderator_id, product.pk, product.product_code,
        )
        return draft, product

    def reject(self, draft_id: Any, moderator_id: str, reason: str) -> ProductDraft:
        """``pending → rejected``.  ``reason`` must be non-empty."""
        reason = _require_text(reason, "Rejection reason")

        with unit_of_work(metadata=_actor(moderator_id)) as uow:
            draft = lock_for_update(ProductDraft, draft_id, label="Draft")
            _ensure_transition(draft, DraftStatus.REJECTED, "Only pending drafts can be rejected.")

            now = timezone.now()
            draft.status = DraftStatus.REJECTED
            draft.rejection_reason = reason
            draft.reviewed_by = moderator_id
            draft.reviewed_at = now
            draft.save(update_fields=[
                "status", "rejection_reason", "reviewed_by", "reviewed_at", "updated_at",
            ])
            self._close_queue_item(draft, moderator_id, now)

            uow.emit(
                aggregate_type=AggregateType.PRODUCT_DRAFT,
                aggregate_id=draft.pk,
                event_type=EventType.PRODUCT_REJECTED,
                payload={**self._review_payload(draft), "rejectionReason": reason},
            )
            uow.after_commit(
                self.notification_client.notify_rejected,
                draft.owner_id, draft.pk, draft.name, reason,
            )

        logger.info("Draft %s rejected by moderator=%s", draft.pk, moderator_id)
        return draft

    def request_changes(self, draft_id: Any, moderator_id: str, feedback: str) -> ProductDraft:
        """``pending → changes_requested``.  ``feedback`` must be non-empty."""
        feedback = _require_text(feedback, "Feedback")

        with unit_of_work(metadata=_actor(moderator_id)) as uow:
            draft = lock_for_update(ProductDraft, draft_id, label="Draft")
            _ensure_transition(
                draft, DraftStatus.CHANGES_REQUESTED,
                "Changes can only be requested on pending drafts.",
            )

            now = timezone.now()
            draft.status = DraftStatus.CHANGES_REQUESTED
            draft.moderation_notes = feedback
            draft.reviewed_by = moderator_id
            draft.reviewed_at = now
            draft.save(update_fields=[
                "status", "moderation_notes", "reviewed_by", "reviewed_at", "updated_at",
            ])
            self._close_queue_item(draft, moderator_id, now)

            uow.emit(
                aggregate_type=AggregateType.PRODUCT_DRAFT,
                aggregate_id=draft.pk,
                event_type=EventType.CHANGES_REQUESTED,
                payload={**self._review_payload(draft), "feedback": feedback},
            )
            uow.after_commit(
                self.notification_client.notify_changes_requested,
                draft.owner_id, draft.pk, draft.name, feedback,
            )

        logger.info("Changes requested on draft %s by moderator=%s", draft.pk, moderator_id)
        return draft


# ════════════════════════════════════════════════════════════════════
#  Product Publisher
# ════════════════════════════════════════════════════════════════════

class ProductPublisher:
    """
    Builds the live product, its variants and its images from a draft.
    Must run inside the approving transaction.
    """

    @staticmethod
    def _cost_of(price: Decimal) -> Decimal:
        ratio = Decimal(str(getattr(settings, "CATALOG_COST_PRICE_RATIO", COST_PRICE_RATIO)))
        return (Decimal(price) * ratio).quantize(_CENT, rounding=ROUND_HALF_UP)

    @staticmethod
    def _create_with_unique_code(draft: ProductDraft, fields: dict[str, Any]) -> Product:
        """
        Generate → check → insert, retrying up to
        ``CATALOG_PRODUCT_CODE_MAX_ATTEMPTS`` times.  An insert that
        loses a race on the unique code is rolled back to a savepoint
        and counts as an attempt.
        """
        max_attempts = getattr(settings, "CATALOG_PRODUCT_CODE_MAX_ATTEMPTS", PRODUCT_CODE_MAX_ATTEMPTS)
        for attempt in range(1, max_attempts + 1):
            code = ProductCodeGenerator.generate(draft.name)
            if ProductCodeGenerator.is_taken(code):
                logger.info("Product code %s taken (attempt %d/%d)", code, attempt, max_attempts)
                continue
            try:
                with transaction.atomic():
                    return Product.objects.create(
                        product_code=code,
                        slug=slugify(f"{draft.name}-{code}"),
                        **fields,
                    )
            except IntegrityError:
                logger.info(
                    "Product code %s collided on insert (attempt %d/%d)",
                    code, attempt, max_attempts,
                )
        raise Conflict(
            f"Could not generate a unique product code after {max_attempts} attempts; please retry."
        )

    @staticmethod
    def publish(draft: ProductDraft, moderator_id: str, now) -> Product:
        images: list[str] = list(draft.images)
        product = ProductPublisher._create_with_unique_code(draft, {
            "draft": draft,
            "owner_id": draft.owner_id,
            "category_id": draft.category_id,
            "name": draft.name,
            "description": draft.description,
            "short_description": draft.short_description,
            "base_cost_price": ProductPublisher._cost_of(draft.base_sell_price),
            "base_sell_price": draft.base_sell_price,
            "primary_image_url": images[0] if images else "",
            "weight_grams": draft.weight_grams,
            "length_cm": draft.length_cm,
            "width_cm": draft.width_cm,
            "height_cm": draft.height_cm,
            "material": draft.material,
            "care_instructions": draft.care_instructions,
            "country_of_origin": draft.country_of_origin,
            "tags": list(draft.tags or []),
            "status": ProductStatus.APPROVED,
            "published_at": now,
            "created_by": moderator_id,
        })

        ProductVariant.objects.bulk_create([
            ProductVariant(
                product=product,
                sku=f"{product.product_code}-{variant['color']}-{variant['size']}",
                color=variant["color"],
                color_hex=variant.get("color_hex", ""),
                color_name=variant.get("color_name", ""),
                size=variant["size"],
                size_name=variant.get("size_name", ""),
                cost_price=ProductPublisher._cost_of(Decimal(str(variant["sell_price"]))),
                sell_price=Decimal(str(variant["sell_price"])),
                image_url=variant.get("image_url", ""),
                is_active=True,
            )
            for variant in draft.variants
        ])
        ProductImage.objects.bulk_create([
            ProductImage(product=product, image_url=url, display_order=index, is_primary=index == 0)
            for index, url in enumerate(images)
        ])
        return product


# ════════════════════════════════════════════════════════════════════
#  Moderation Queue Service
# ════════════════════════════════════════════════════════════════════

class ModerationQueueService:
    """
    Read side of the moderation queue plus the two queue-only writes:
    priority overrides and the escalation sweep.

    Ordering: priority descending, then oldest first within a tier.
    """

    @staticmethod
    def _ranked(qs: QuerySet) -> QuerySet:
        return qs.annotate(
            priority_rank=Case(
                *[When(priority=value, then=Value(rank)) for value, rank in PRIORITY_RANK.items()],
                default=Value(0),
                output_field=IntegerField(),
            )
        ).order_by("-priority_rank", "created_at", "pk")

    @staticmethod
    def open_items() -> QuerySet:
        return ModerationQueueService._ranked(
            ModerationQueueItem.objects
            .filter(completed_at__isnull=True)
            .select_related("draft", "draft__category")
        )

    @staticmethod
    def pending_queue(limit: int = 50, offset: int = 0) -> list[ModerationQueueItem]:
        return list(ModerationQueueService.open_items()[offset:offset + limit])

    @staticmethod
    def assigned_to(moderator_id: str, include_completed: bool = False) -> QuerySet:
        qs = ModerationQueueItem.objects.filter(assigned_to=moderator_id).select_related("draft")
        if not include_completed:
            qs = qs.filter(completed_at__isnull=True)
        return ModerationQueueService._ranked(qs)

    @staticmethod
    def item_for_draft(draft_id: Any) -> ModerationQueueItem:
        """The draft's open item, or its most recent closed one."""
        try:
            item = (
                ModerationQueueItem.objects
                .filter(draft_id=draft_id)
                .select_related("draft")
                .order_by(F("completed_at").asc(nulls_first=True), "-created_at")
                .first()
            )
        except (ValueError, TypeError):
            item = None
        if item is None:
            raise NotFound(f"No queue item for draft {draft_id}.")
        return item

    @staticmethod
    def stats() -> dict[str, Any]:
        open_q = Q(completed_at__isnull=True)
        totals = ModerationQueueItem.objects.aggregate(
            total=Count("id"),
            pending=Count("id", filter=open_q & Q(assigned_to="")),
            assigned=Count("id", filter=open_q & ~Q(assigned_to="")),
            completed=Count("id", filter=Q(completed_at__isnull=False)),
        )
        rows = (
            ModerationQueueItem.objects
            .filter(open_q)
            .values("priority")
            .annotate(count=Count("id"))
        )
        by_priority = {value: 0 for value in ModerationPriority.values}
        for row in rows:
            by_priority[row["priority"]] = row["count"]
        return {**totals, "by_priority": by_priority}

    @staticmethod
    def update_priority(draft_id: Any, priority: str) -> ModerationQueueItem:
        if priority not in ModerationPriority.values:
            raise DomainError(
                f"Unknown priority '{priority}'. Options: {', '.join(ModerationPriority.values)}."
            )
        with unit_of_work():
            draft = lock_for_update(ProductDraft, draft_id, label="Draft")
            item = _open_queue_item(draft)
            if item is None:
                raise InvalidTransition(
                    f"Draft {draft.pk} has no open queue item; only pending drafts can be re-prioritised."
                )
            item.priority = priority
            item.save(update_fields=["priority", "updated_at"])

        logger.info("Queue item %s for draft %s set to priority=%s", item.pk, draft.pk, priority)
        return item

    @staticmethod
    def escalate_stale(older_than_hours: float | None = None, now=None) -> int:
        """
        Promote open, unassigned ``low``/``normal`` items older than the
        cutoff to ``high``.  Idempotent: escalated items no longer match.

        Returns
        -------
        int
            Number of items escalated by this run.
        """
        if older_than_hours is None:
            older_than_hours = getattr(
                settings, "MODERATION_ESCALATION_AGE_HOURS", ESCALATION_AGE_HOURS,
            )
        now = now or timezone.now()
        cutoff = now - timedelta(hours=older_than_hours)

        with unit_of_work():
            count = ModerationQueueItem.objects.filter(
                completed_at__isnull=True,
                assigned_to="",
                priority__in=[ModerationPriority.LOW, ModerationPriority.NORMAL],
                created_at__lt=cutoff,
            ).update(priority=ModerationPriority.HIGH, updated_at=now)

        logger.info("Escalated %d moderation queue item(s) older than %sh", count, older_than_hours)
        return count


def queue_invariant_violations(drafts: Iterable[ProductDraft] | None = None) -> list[int]:
    """
    Return ids of drafts for which "status is pending" and "has an open
    queue item" disagree.  An empty list means the queue is consistent.
    """
    qs = ProductDraft.objects.all() if drafts is None else drafts
    open_ids = set(
        ModerationQueueItem.objects
        .filter(completed_at__isnull=True)
        .values_list("draft_id", flat=True)
    )
    return [
        draft.pk for draft in qs
        if (draft.status == DraftStatus.PENDING) != (draft.pk in open_ids)
    ]
