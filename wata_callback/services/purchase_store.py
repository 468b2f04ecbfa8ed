"""
Purchase request lookups and settlement writes.

Validation only reads through ``PurchaseRequestStore``; the decision is
applied afterwards by the webhook route.
"""
from __future__ import annotations

from typing import Optional, Protocol

from sqlalchemy.orm import Session

from ..logging_config import get_logger
from ..models import PaymentProfile, PurchaseRequest

logger = get_logger(__name__)

STATE_PENDING = "pending"
STATE_RECEIVED = "received"
STATE_REINSTATED = "reinstated"


class PurchaseRequestStore(Protocol):
    def find_by_key(self, request_key: str) -> Optional[PurchaseRequest]:
        """Return the active purchase request for ``request_key`` or None."""
        ...

    def get_profile(self, profile_id: Optional[int]) -> Optional[PaymentProfile]:
        """Return the payment profile the request was issued under."""
        ...


class SqlPurchaseStore:
    """SQLAlchemy backed purchase request store."""

    def __init__(self, db: Session):
        self.db = db

    def find_by_key(self, request_key: str) -> Optional[PurchaseRequest]:
        if not request_key:
            return None
        return (
            self.db.query(PurchaseRequest)
            .filter(PurchaseRequest.request_key == request_key, PurchaseRequest.is_active == True)  # noqa: E712
            .first()
        )

    def get_profile(self, profile_id: Optional[int]) -> Optional[PaymentProfile]:
        if profile_id is None:
            return None
        return self.db.get(PaymentProfile, profile_id)

    def set_provider_metadata(self, purchase_request: PurchaseRequest, metadata: str) -> None:
        purchase_request.provider_metadata = metadata
        self.db.commit()

    def mark_payment_received(self, purchase_request: PurchaseRequest) -> bool:
        """Returns False when the request was already marked received."""
        return self._transition(purchase_request, STATE_RECEIVED)

    def mark_payment_reinstated(self, purchase_request: PurchaseRequest) -> bool:
        """Returns False when the request was already reinstated."""
        return self._transition(purchase_request, STATE_REINSTATED)

    def _transition(self, purchase_request: PurchaseRequest, new_state: str) -> bool:
        if purchase_request.payment_state == new_state:
            logger.info("purchase_state_unchanged", request_key=purchase_request.request_key,
                        payment_state=new_state)
            return False
        old_state = purchase_request.payment_state
        purchase_request.payment_state = new_state
        self.db.commit()
        logger.info("purchase_state_changed", request_key=purchase_request.request_key,
                    old_state=old_state, new_state=new_state)
        return True
