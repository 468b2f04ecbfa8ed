from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class CallbackOutcome(str, Enum):
    """Validation outcome of a single delivery."""
    UNVALIDATED = "unvalidated"
    REJECTED = "rejected"
    ACCEPTED = "accepted"


class PaymentDecision(str, Enum):
    """Settlement effect to apply to the purchase request."""
    NONE = "none"
    PAYMENT_RECEIVED = "payment_received"
    PAYMENT_REINSTATED = "payment_reinstated"


@dataclass
class CallbackState:
    """
    Everything known about one inbound callback.

    Built by the parser, annotated by the validator and result mapper,
    discarded once the response is sent. ``raw_payload`` is the exact body
    the signature was computed over and must never be rewritten.
    """
    provider_id: str
    source_ip: str
    raw_payload: bytes
    fields: Dict[str, Any] = field(default_factory=dict)

    transaction_id: Optional[str] = None
    request_key: Optional[str] = None
    status: str = "unknown"

    matched_request: Any = None

    outcome: CallbackOutcome = CallbackOutcome.UNVALIDATED
    rejection_reason: Optional[str] = None
    decision: PaymentDecision = PaymentDecision.NONE

    log_type: Optional[str] = None
    log_message: Optional[str] = None
    log_details: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_accepted(self) -> bool:
        return self.outcome == CallbackOutcome.ACCEPTED

    @property
    def is_rejected(self) -> bool:
        return self.outcome == CallbackOutcome.REJECTED

    def reject(self, reason: str) -> None:
        self.outcome = CallbackOutcome.REJECTED
        self.rejection_reason = reason
        self.decision = PaymentDecision.NONE
        self.log_type = "error"
        self.log_message = reason

    def accept(self) -> None:
        if self.outcome == CallbackOutcome.REJECTED:
            raise RuntimeError("a rejected callback cannot be accepted")
        self.outcome = CallbackOutcome.ACCEPTED

    def set_decision(self, decision: PaymentDecision) -> None:
        if self.outcome != CallbackOutcome.ACCEPTED:
            raise RuntimeError("decision can only be set on an accepted callback")
        self.decision = decision
