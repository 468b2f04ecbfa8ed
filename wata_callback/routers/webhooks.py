"""
Payment gateway callbacks: POST /v1/webhooks/{provider_id}
- Verifies source IP and the detached body signature
- Matches the callback to a pending purchase request (key, amount, currency)
- Applies the settlement decision once per transaction/status
- Writes one provider log row per delivery
"""
from __future__ import annotations

from typing import Type

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ..db import get_db
from ..deps import get_client_ip, get_dispatcher
from ..logging_config import get_logger
from ..psp.dispatcher import ProviderDispatcher
from ..schemas import CallbackAck
from ..services.callback_state import CallbackState, PaymentDecision
from ..services.purchase_store import SqlPurchaseStore
from ..services.webhook_service import DuplicateDeliveryCheck, log_callback, record_processed

logger = get_logger(__name__)

router = APIRouter(tags=["Payment Webhooks"])


def apply_decision(state: CallbackState, store: SqlPurchaseStore, db: Session) -> None:
    """Persist the decision. Safe to repeat for the same delivery."""
    purchase_request = state.matched_request
    if state.decision == PaymentDecision.PAYMENT_RECEIVED:
        store.mark_payment_received(purchase_request)
    elif state.decision == PaymentDecision.PAYMENT_REINSTATED:
        store.mark_payment_reinstated(purchase_request)
    else:
        return
    record_processed(state, db)


@router.post("/{provider_id}", response_model=CallbackAck)
async def payment_callback(
    provider_id: str,
    request: Request,
    db: Session = Depends(get_db),
    client_ip: str = Depends(get_client_ip),
    dispatcher: Type[ProviderDispatcher] = Depends(get_dispatcher),
):
    try:
        provider = dispatcher.get_provider(provider_id)
    except ValueError:
        raise HTTPException(status_code=404, detail="Unknown payment provider")

    # Signature is over these exact bytes
    body = await request.body()
    state = provider.setup_callback(provider_id, client_ip, body)

    store = SqlPurchaseStore(db)
    signature = request.headers.get(provider.signature_header) if provider.signature_header else None

    accepted = await provider.validate_callback(
        state,
        signature,
        store,
        platform_hooks=[DuplicateDeliveryCheck(db)],
    )
    if accepted:
        provider.get_payment_result(state)
        apply_decision(state, store, db)

    provider.prepare_log_data(state)
    log_callback(state, db)

    if not accepted:
        return JSONResponse(
            status_code=400,
            content=CallbackAck(status="error", message=state.rejection_reason).model_dump(),
        )

    decision = state.decision.value if state.decision != PaymentDecision.NONE else None
    logger.info("callback_processed", transaction_id=state.transaction_id,
                request_key=state.request_key, decision=decision)
    return CallbackAck(status="ok", decision=decision, message=state.rejection_reason)
