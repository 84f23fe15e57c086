"""
Addresses app service layer.

Every write goes through ``DefaultFlagEnforcer`` inside a unit of work,
so the "exactly one default address per owner" rule holds under
concurrent requests and each change commits together with its outbox
event.
"""

from __future__ import annotations

import logging
from typing import Any

from django.db.models import QuerySet
from django.utils import timezone

from core.domain.defaults import DefaultFlagEnforcer, ExplicitReplacement, MostRecentlyUsed
from core.domain.exceptions import DomainError, NotFound
from core.domain.outbox import AggregateType, EventType
from core.domain.transactions import UnitOfWork, unit_of_work

from .models import Address

logger = logging.getLogger(__name__)

#: Fields an owner may set on create/update.
EDITABLE_FIELDS = (
    "label", "recipient_name", "phone_number", "province", "city",
    "district", "postal_code", "address_line", "notes",
)

address_defaults = DefaultFlagEnforcer(Address, namespace="address-default", label="Address")


def _event_payload(address: Address) -> dict[str, Any]:
    return {
        "addressId": str(address.pk),
        "userId": address.owner_id,
        "label": address.label,
        "recipientName": address.recipient_name,
        "province": address.province,
        "city": address.city,
        "postalCode": address.postal_code,
        "isDefault": address.is_default,
    }


def _emit(uow: UnitOfWork, address: Address, event_type: str) -> None:
    uow.emit(
        aggregate_type=AggregateType.ADDRESS,
        aggregate_id=address.pk,
        event_type=event_type,
        payload=_event_payload(address),
    )


class AddressService:
    """Owner-scoped address operations."""

    # ── Reads (no lock) ─────────────────────────────────────────────

    @staticmethod
    def list_addresses(owner_id: str) -> QuerySet:
        """Default first, then newest."""
        return address_defaults.owned_by(str(owner_id)).order_by("-is_default", "-created_at", "-pk")

    @staticmethod
    def get_address(address_id: Any, owner_id: str) -> Address:
        return address_defaults.get_owned(str(owner_id), address_id)

    @staticmethod
    def get_default(owner_id: str) -> Address:
        address = address_defaults.owned_by(str(owner_id)).filter(is_default=True).first()
        if address is None:
            raise NotFound("No default address found.")
        return address

    # ── Writes ──────────────────────────────────────────────────────

    @staticmethod
    def create_address(owner_id: str, data: dict[str, Any], is_default: bool = False) -> Address:
        """
        Create an address.  The owner's first address always becomes
        the default.
        """
        owner_id = str(owner_id)
        fields = {key: data[key] for key in EDITABLE_FIELDS if key in data}
        with unit_of_work(
            lock_key=address_defaults.lock_key(owner_id),
            metadata={"actorId": owner_id},
        ) as uow:
            address = address_defaults.create_with_optional_default(owner_id, is_default, **fields)
            _emit(uow, address, EventType.ADDRESS_CREATED)

        logger.info("Address %s created for owner=%s (default=%s)", address.pk, owner_id, address.is_default)
        return address

    @staticmethod
    def update_address(address_id: Any, owner_id: str, data: dict[str, Any]) -> Address:
        """
        Update address fields.

        ``is_default=True`` routes through ``set_default``.
        ``is_default=False`` on the current default is rejected: the
        owner must choose another default instead.
        """
        owner_id = str(owner_id)
        with unit_of_work(
            lock_key=address_defaults.lock_key(owner_id),
            metadata={"actorId": owner_id},
        ) as uow:
            address = address_defaults.get_owned(owner_id, address_id)
            wants_default = data.get("is_default")
            if wants_default is False and address.is_default:
                raise DomainError(
                    "The default address cannot be unset; set another address as default instead."
                )

            changed = [key for key in EDITABLE_FIELDS if key in data]
            for key in changed:
                setattr(address, key, data[key])
            if changed:
                address.save(update_fields=[*changed, "updated_at"])

            if wants_default and not address.is_default:
                address = address_defaults.set_default(owner_id, address.pk)
                _emit(uow, address, EventType.ADDRESS_SET_DEFAULT)
            _emit(uow, address, EventType.ADDRESS_UPDATED)

        logger.info("Address %s updated for owner=%s", address.pk, owner_id)
        return address

    @staticmethod
    def set_default(address_id: Any, owner_id: str) -> Address:
        owner_id = str(owner_id)
        with unit_of_work(
            lock_key=address_defaults.lock_key(owner_id),
            metadata={"actorId": owner_id},
        ) as uow:
            address = address_defaults.set_default(owner_id, address_id)
            _emit(uow, address, EventType.ADDRESS_SET_DEFAULT)
        return address

    @staticmethod
    def mark_used(address_id: Any, owner_id: str) -> Address:
        """Stamp ``last_used_at`` (feeds the most-recently-used policy)."""
        owner_id = str(owner_id)
        with unit_of_work(lock_key=address_defaults.lock_key(owner_id)):
            address = address_defaults.get_owned(owner_id, address_id)
            address.last_used_at = timezone.now()
            address.save(update_fields=["last_used_at", "updated_at"])
        return address

    @staticmethod
    def delete_address(address_id: Any, owner_id: str, replacement_id: Any = None) -> Address | None:
        """
        Delete an address.  If it was the default, ``replacement_id`` (or
        else the most recently used remaining address) becomes the new
        default.  The owner's only address cannot be deleted.

        Returns
        -------
        Address or None
            The promoted address, if any.
        """
        owner_id = str(owner_id)
        policy = ExplicitReplacement(replacement_id) if replacement_id is not None else MostRecentlyUsed()
        with unit_of_work(
            lock_key=address_defaults.lock_key(owner_id),
            metadata={"actorId": owner_id},
        ) as uow:
            deleted, promoted = address_defaults.delete_with_reassignment(owner_id, address_id, policy)
            _emit(uow, deleted, EventType.ADDRESS_DELETED)
            if promoted is not None:
                _emit(uow, promoted, EventType.ADDRESS_SET_DEFAULT)
        return promoted
