"""
Customer resolution.

Maps a (name, phone) pair to one stable customer record, creating the record
only when the phone number is unknown. The existing record is authoritative:
a different name supplied on a later visit is not written back.

Check-then-create is not atomic. Two sessions registering the same new phone
number can both miss on lookup; the unique constraint on
`customers.phone_number` rejects the second insert, and that rejection is
resolved here by looking the winner's record up again.
"""

from __future__ import annotations

import logging

from domain.customer import Customer, normalize_phone
from domain.errors import PersistenceError, ValidationError
from repositories import customer_repository

logger = logging.getLogger(__name__)


def resolve_customer(name: str, phone_number: str) -> Customer:
    """
    Return the customer owning `phone_number`, creating it if needed.

    Raises:
        ValidationError: name or phone is blank
        PersistenceError: the store failed, or a unique-violation race could
            not be resolved by a second lookup
    """

    name = (name or "").strip()
    phone_number = normalize_phone(phone_number or "")
    if not name:
        raise ValidationError("Customer name is required")
    if not phone_number:
        raise ValidationError("Customer phone number is required")

    existing = customer_repository.find_by_phone(phone_number)
    if existing is not None:
        return existing

    try:
        customer = customer_repository.create_customer(name, phone_number)
    except PersistenceError as e:
        if not e.is_unique_violation:
            raise
        # Lost the race to a concurrent session; resolve to its record.
        winner = customer_repository.find_by_phone(phone_number)
        if winner is None:
            raise
        logger.warning(
            "Concurrent customer creation resolved to existing record",
            extra={"phone_number": phone_number, "customer_id": str(winner.customer_id)},
        )
        return winner

    logger.info(
        "Created customer",
        extra={"phone_number": phone_number, "customer_id": str(customer.customer_id)},
    )
    return customer


__all__ = ["resolve_customer"]
