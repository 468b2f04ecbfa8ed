from ..logging_config import get_logger
from .callback_state import CallbackState, PaymentDecision

logger = get_logger(__name__)

STATUS_PAID = "Paid"
STATUS_DECLINED = "Declined"

# Declined reverses the reservation rather than failing it; kept as the gateway reports it
STATUS_DECISIONS = {
    STATUS_PAID: PaymentDecision.PAYMENT_RECEIVED,
    STATUS_DECLINED: PaymentDecision.PAYMENT_REINSTATED,
}


def map_result(state: CallbackState) -> PaymentDecision:
    """
    Set the settlement decision on an accepted callback.

    Unknown statuses are recorded as an anomaly but the callback stays
    accepted with no decision, so the gateway gets a plain acknowledgement.
    """
    if not state.is_accepted:
        return state.decision

    decision = STATUS_DECISIONS.get(state.status)
    if decision is not None:
        state.set_decision(decision)
        state.log_type = "payment" if decision == PaymentDecision.PAYMENT_RECEIVED else "cancel"
        state.log_message = f"Transaction {state.status.lower()}"
        return decision

    state.rejection_reason = f"invalid transaction status: {state.status}"
    state.log_type = "error"
    state.log_message = state.rejection_reason
    logger.error("callback_unknown_status", status=state.status,
                 transaction_id=state.transaction_id, request_key=state.request_key)
    return state.decision
