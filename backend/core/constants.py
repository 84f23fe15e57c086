"""
Core constants — **Single Source of Truth** for project-wide defaults.

Every tunable read from ``django.conf.settings`` falls back to the value
defined here, so ``settings.py`` and the code that reads a setting never
drift apart.
"""

# ── Draft payload rules ─────────────────────────────────────────────
MIN_DRAFT_IMAGES: int = 3
MIN_DRAFT_VARIANTS: int = 1

# ── Approval ────────────────────────────────────────────────────────
# Bound on generate → check → insert attempts for a unique product code.
PRODUCT_CODE_MAX_ATTEMPTS: int = 10
# Cost price = sell price × ratio (30% markup), rounded to cents.
COST_PRICE_RATIO: str = "0.70"

# ── Moderation queue ────────────────────────────────────────────────
ESCALATION_AGE_HOURS: int = 24

# ── Invariant lock ──────────────────────────────────────────────────
LOCK_TIMEOUT_MS: int = 5000

# ── Outbound service clients ────────────────────────────────────────
SERVICE_CLIENT_TIMEOUT: float = 5.0
SERVICE_NAME: str = "product-service"
