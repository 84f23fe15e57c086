"""
Outbound service clients.

Best-effort HTTP calls to the seller and notification services.  These
are only ever invoked from post-commit hooks (see
``UnitOfWork.after_commit``): they never run inside a transaction, and
every failure is logged and swallowed so the committed state transition
remains the single source of truth.

Requests are signed for service-to-service auth::

    X-Service-Name: product-service
    X-Service-Auth: product-service:<unix_ts>:<hex hmac_sha256(secret, "product-service:<unix_ts>")>
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import time
from typing import Any

import httpx
from django.conf import settings

from core.constants import SERVICE_CLIENT_TIMEOUT, SERVICE_NAME

logger = logging.getLogger(__name__)


def build_service_auth_headers(
    service_name: str | None = None,
    secret: str | None = None,
    *,
    timestamp: int | None = None,
) -> dict[str, str]:
    """
    Return the service-auth headers for an internal request.

    When no secret is configured only ``X-Service-Name`` is sent.
    """
    service_name = service_name or getattr(settings, "SERVICE_NAME", SERVICE_NAME)
    secret = secret if secret is not None else getattr(settings, "SERVICE_SECRET", "")
    headers = {"X-Service-Name": service_name}
    if not secret:
        logger.warning("SERVICE_SECRET is not set; sending unsigned request as %s", service_name)
        return headers

    ts = int(time.time()) if timestamp is None else timestamp
    message = f"{service_name}:{ts}"
    signature = hmac.new(secret.encode(), message.encode(), hashlib.sha256).hexdigest()
    headers["X-Service-Auth"] = f"{message}:{signature}"
    return headers


class ServiceClient:
    """
    Base class: one POST helper that never raises.

    Args:
        base_url:    Root URL of the remote service.  An empty URL
                     disables the client (calls are logged and skipped).
        http_client: Optional pre-built ``httpx.Client`` (tests inject
                     one backed by ``httpx.MockTransport``).
    """

    service_label = "service"

    def __init__(self, base_url: str = "", http_client: httpx.Client | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = http_client

    def _post(self, path: str, json_body: dict[str, Any]) -> bool:
        if not self.base_url:
            logger.info("%s URL not configured; skipping POST %s", self.service_label, path)
            return False

        url = f"{self.base_url}{path}"
        try:
            if self._client is not None:
                response = self._client.post(url, json=json_body, headers=build_service_auth_headers())
            else:
                timeout = getattr(settings, "SERVICE_CLIENT_TIMEOUT", SERVICE_CLIENT_TIMEOUT)
                with httpx.Client(timeout=timeout) as client:
                    response = client.post(url, json=json_body, headers=build_service_auth_headers())
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("%s call POST %s failed: %s", self.service_label, url, exc)
            return False

        logger.debug("%s call POST %s -> %s", self.service_label, url, response.status_code)
        return True


class SellerServiceClient(ServiceClient):
    """Client for the seller service's product counters."""

    service_label = "Seller service"

    @classmethod
    def from_settings(cls) -> "SellerServiceClient":
        return cls(getattr(settings, "SELLER_SERVICE_URL", ""))

    def increment_product_count(self, owner_id: str) -> bool:
        return self._post(f"/api/sellers/{owner_id}/products/increment", {})


class NotificationServiceClient(ServiceClient):
    """Client for push notifications to sellers about their drafts."""

    service_label = "Notification service"

    @classmethod
    def from_settings(cls) -> "NotificationServiceClient":
        return cls(getattr(settings, "NOTIFICATION_SERVICE_URL", ""))

    def _send(
        self,
        user_id: str,
        kind: str,
        title: str,
        message: str,
        data: dict[str, Any],
    ) -> bool:
        return self._post("/api/notifications/send", {
            "userId": user_id,
            "type": kind,
            "title": title,
            "message": message,
            "channel": "push",
            "data": data,
        })

    def notify_approved(self, owner_id: str, draft_id: Any, name: str, product_id: Any = None) -> bool:
        return self._send(
            owner_id,
            "draft_approved",
            "Product approved",
            f'Your product "{name}" has been approved and is now live.',
            {"draftId": str(draft_id), "productId": str(product_id) if product_id else None, "action": "view_product"},
        )

    def notify_rejected(self, owner_id: str, draft_id: Any, name: str, reason: str) -> bool:
        return self._send(
            owner_id,
            "draft_rejected",
            "Product rejected",
            f'Your product "{name}" was rejected: {reason}',
            {"draftId": str(draft_id), "reason": reason, "action": "view_draft"},
        )

    def notify_changes_requested(self, owner_id: str, draft_id: Any, name: str, feedback: str) -> bool:
        return self._send(
            owner_id,
            "draft_changes_requested",
            "Changes requested",
            f'A moderator requested changes to "{name}": {feedback}',
            {"draftId": str(draft_id), "feedback": feedback, "action": "edit_draft"},
        )
