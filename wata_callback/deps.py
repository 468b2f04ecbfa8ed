from typing import Type

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from .config import settings
from .db import get_db
from .psp.dispatcher import ProviderDispatcher
from .services.purchase_store import SqlPurchaseStore


def get_client_ip(request: Request) -> str:
    """
    Network origin of the request.
    X-Forwarded-For is only trusted when the service sits behind a known proxy.
    """
    if settings.TRUST_PROXY_HEADERS:
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def get_dispatcher() -> Type[ProviderDispatcher]:
    return ProviderDispatcher


def get_purchase_store(db: Session = Depends(get_db)) -> SqlPurchaseStore:
    return SqlPurchaseStore(db)
