"""
core.domain — Shared consistency substrate for every app's service layer.

Modules
-------
exceptions         Domain-specific exceptions that map cleanly to HTTP responses.
exception_handler  DRF exception handler for those exceptions.
locks              Transaction-scoped invariant lock keyed by a semantic key.
outbox             Transactional outbox writer and stable event identifiers.
transactions       Unit of work (transaction + lock + outbox + post-commit hooks).
defaults           "Exactly one default per owner" enforcer and replacement policies.
access             Identity and permission helpers for views.

Usage from any app::

    from core.domain.exceptions import DomainError, InvalidTransition
    from core.domain.transactions import lock_for_update, unit_of_work
    from core.domain.defaults import DefaultFlagEnforcer, MostRecentlyUsed
"""
