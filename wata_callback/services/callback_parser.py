"""
Webhook body parsing.

Turns the raw request body into a CallbackState. Field coercion mirrors what
the gateway sends: strings for identifiers, decimals for money. Anything that
does not coerce cleanly is left absent so the validator can decide.
"""
from __future__ import annotations

import json
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional

from .callback_state import CallbackState

STR = "str"
NUM = "num"

CALLBACK_FIELDS: Dict[str, str] = {
    "transactionType": STR,
    "transactionId": STR,
    "transactionStatus": STR,
    "errorCode": STR,
    "errorDescription": STR,
    "terminalName": STR,
    "amount": NUM,
    "currency": STR,
    "orderId": STR,
    "orderDescription": STR,
    "paymentTime": STR,
    "commission": NUM,
    "email": STR,
}


def _coerce_str(value: Any) -> Optional[str]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, (int, Decimal, float)):
        return str(value)
    return None


def _coerce_num(value: Any) -> Optional[Decimal]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, (int, float)):
        return _coerce_num(Decimal(str(value)))
    if isinstance(value, str):
        try:
            return _coerce_num(Decimal(value.strip()))
        except InvalidOperation:
            return None
    return None


_COERCERS = {STR: _coerce_str, NUM: _coerce_num}


def _decode_body(raw_payload: bytes) -> Dict[str, Any]:
    try:
        data = json.loads(raw_payload.decode("utf-8"), parse_float=Decimal)
    except (UnicodeDecodeError, ValueError):
        return {}
    return data if isinstance(data, dict) else {}


def parse_fields(raw_payload: bytes) -> Dict[str, Any]:
    """Coerce the known callback fields; unknown keys are dropped."""
    data = _decode_body(raw_payload)
    fields: Dict[str, Any] = {}
    for name, kind in CALLBACK_FIELDS.items():
        if name not in data:
            continue
        value = _COERCERS[kind](data[name])
        if value is not None:
            fields[name] = value
    return fields


def parse_callback(provider_id: str, source_ip: str, raw_payload: bytes) -> CallbackState:
    """Build the initial CallbackState for one delivery. No I/O."""
    fields = parse_fields(raw_payload)
    return CallbackState(
        provider_id=provider_id,
        source_ip=source_ip,
        raw_payload=raw_payload,
        fields=fields,
        transaction_id=fields.get("transactionId") or None,
        request_key=fields.get("orderId") or None,
        status=fields.get("transactionStatus") or "unknown",
    )
