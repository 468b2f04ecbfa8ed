import re
from typing import Any, Dict, Optional

from sqlalchemy import exc as sa_exc
from sqlalchemy.orm import Session

from ..exceptions import ValidationError
from ..logging_config import get_logger
from ..models import PaymentProviderLog, ProcessedCallback
from .callback_state import CallbackState

logger = get_logger(__name__)

REDACTED = "***"
SENSITIVE_FIELDS = ("email",)
RAW_LOG_LIMIT = 4000

_SENSITIVE_RAW = re.compile(
    r'("(?:%s)"\s*:\s*)"(?:[^"\\]|\\.)*"' % "|".join(SENSITIVE_FIELDS)
)


def redact_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    """JSON-safe copy of parsed fields with personal data masked."""
    out = {}
    for k, v in fields.items():
        if k in SENSITIVE_FIELDS and v:
            out[k] = REDACTED
        else:
            out[k] = str(v) if not isinstance(v, str) else v
    return out


def redact_raw(raw_payload: bytes) -> str:
    """Masked, truncated text copy of the raw body for logs."""
    text = raw_payload.decode("utf-8", errors="replace")
    text = _SENSITIVE_RAW.sub(r'\1"%s"' % REDACTED, text)
    return text[:RAW_LOG_LIMIT]


def event_key(state: CallbackState) -> str:
    return f"{state.provider_id}:{state.status}:{state.transaction_id}"


def log_callback(state: CallbackState, db: Session) -> Optional[PaymentProviderLog]:
    """
    Write the provider log row for one delivery.
    Returns the PaymentProviderLog, or None if it could not be stored.
    """
    try:
        entry = PaymentProviderLog(
            provider_id=state.provider_id,
            transaction_id=state.transaction_id,
            request_key=state.request_key,
            log_type=state.log_type or "info",
            log_message=(state.log_message or "")[:255],
            log_details=state.log_details,
        )
        db.add(entry)
        db.commit()
        db.refresh(entry)
        return entry
    except sa_exc.SQLAlchemyError as e:
        db.rollback()
        logger.error("provider_log_write_failed", error=str(e), request_key=state.request_key)
        return None


def was_processed(state: CallbackState, db: Session) -> bool:
    key = event_key(state)
    return db.query(ProcessedCallback).filter(ProcessedCallback.event_key == key).first() is not None


def record_processed(state: CallbackState, db: Session) -> bool:
    """
    Add the delivery to the duplicate ledger.
    Returns False when a concurrent delivery already recorded it or the row
    could not be stored.
    """
    rec = ProcessedCallback(
        event_key=event_key(state),
        provider_id=state.provider_id,
        transaction_id=state.transaction_id,
        status=state.status,
    )
    db.add(rec)
    try:
        db.commit()
        return True
    except sa_exc.IntegrityError:
        db.rollback()
        logger.info("processed_callback_exists", event_key=rec.event_key)
        return False
    except sa_exc.SQLAlchemyError as e:
        db.rollback()
        logger.error("processed_callback_write_failed", event_key=rec.event_key, error=str(e))
        return False


class DuplicateDeliveryCheck:
    """Platform hook: refuse a transaction/status pair that was already settled."""

    def __init__(self, db: Session):
        self.db = db

    def __call__(self, state: CallbackState) -> None:
        if was_processed(state, self.db):
            raise ValidationError("transaction already processed")
