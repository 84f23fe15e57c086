"""
Catalog app URL configuration.

Route Hierarchy
---------------
  /api/drafts/                                 → list / create
  /api/drafts/{id}/                            → retrieve / partial_update / destroy
  POST /api/drafts/{id}/submit/                → draft | changes_requested → pending

  ── Moderation queue (moderators only) ─────────────────────────
  GET  /api/moderation/queue/                  → pending queue (limit/offset)
  GET  /api/moderation/queue/assigned/         → items assigned to me
  GET  /api/moderation/queue/stats/            → queue statistics
  POST /api/moderation/queue/escalate/         → escalation sweep

  ── Moderation decisions (moderators only) ─────────────────────
  GET  /api/moderation/drafts/{id}/queue-item/
  POST /api/moderation/drafts/{id}/assign/
  POST /api/moderation/drafts/{id}/approve/
  POST /api/moderation/drafts/{id}/reject/
  POST /api/moderation/drafts/{id}/request-changes/
  POST /api/moderation/drafts/{id}/priority/
"""

from rest_framework.routers import DefaultRouter

from .views import DraftViewSet, ModerationDraftViewSet, ModerationQueueViewSet

router = DefaultRouter()
router.register(prefix=r"drafts", viewset=DraftViewSet, basename="draft")
router.register(prefix=r"moderation/queue", viewset=ModerationQueueViewSet, basename="moderation-queue")
router.register(prefix=r"moderation/drafts", viewset=ModerationDraftViewSet, basename="moderation-draft")

urlpatterns = router.urls
