"""
Payment initiation: POST /v1/payments/{request_key}/initiate
Creates a hosted payment link for a pending purchase request and redirects to it.
"""
from __future__ import annotations

from typing import Type

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import RedirectResponse

from ..deps import get_dispatcher, get_purchase_store
from ..exceptions import ConfigurationError, NetworkError
from ..logging_config import get_logger
from ..psp.dispatcher import ProviderDispatcher
from ..services.purchase_store import STATE_PENDING, SqlPurchaseStore

logger = get_logger(__name__)

router = APIRouter(tags=["Payments"])


@router.post("/{request_key}/initiate")
async def initiate_payment(
    request_key: str,
    store: SqlPurchaseStore = Depends(get_purchase_store),
    dispatcher: Type[ProviderDispatcher] = Depends(get_dispatcher),
):
    purchase_request = store.find_by_key(request_key)
    if not purchase_request:
        raise HTTPException(status_code=404, detail="Purchase request not found")
    if purchase_request.payment_state != STATE_PENDING:
        raise HTTPException(status_code=409, detail="Purchase request already settled")

    profile = store.get_profile(purchase_request.payment_profile_id)
    if not profile or not profile.is_active:
        raise HTTPException(status_code=400, detail="Payment profile unavailable")

    try:
        provider = dispatcher.get_provider(profile.provider_id)
    except ValueError:
        raise HTTPException(status_code=400, detail="Unsupported payment provider")

    if not provider.verify_currency(purchase_request.cost_currency):
        raise HTTPException(status_code=400, detail=f"Currency {purchase_request.cost_currency} not supported")

    try:
        link = await provider.initiate_payment(purchase_request, profile)
    except ConfigurationError as e:
        logger.error("payment_profile_misconfigured", profile_id=profile.id, error=str(e))
        raise HTTPException(status_code=503, detail="Payment profile not configured")
    except NetworkError as e:
        raise HTTPException(status_code=502, detail=str(e))

    store.set_provider_metadata(purchase_request, link["id"])
    return RedirectResponse(link["url"], status_code=303)
