"""
Callback validation state machine.

UNVALIDATED -> REJECTED(reason) | ACCEPTED

Checks run in a fixed order and stop at the first failure. Each check raises
ValidationError; ``validate`` turns that into a rejected state and logs it.
Platform hooks only run once every gateway-specific check has passed.
"""
from __future__ import annotations

import inspect
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Awaitable, Callable, Iterable, Optional, Protocol, Union

from cryptography.hazmat.primitives.asymmetric import rsa

from ..exceptions import IntegrityError, ValidationError
from ..logging_config import get_logger
from .callback_state import CallbackState
from .purchase_store import PurchaseRequestStore
from .signature import verify_signature
from .webhook_service import redact_raw

logger = get_logger(__name__)

CENTS = Decimal("0.01")

PlatformHook = Callable[[CallbackState], Union[None, Awaitable[None]]]


class KeyProvider(Protocol):
    async def get_public_key(self) -> Optional[rsa.RSAPublicKey]:
        ...


def round_amount(value) -> Optional[Decimal]:
    if value is None:
        return None
    try:
        return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError):
        return None


class CallbackValidator:
    def __init__(
        self,
        *,
        allowed_ips: Iterable[str],
        key_provider: KeyProvider,
        store: PurchaseRequestStore,
        platform_hooks: Iterable[PlatformHook] = (),
        verifier: Callable[[bytes, str, rsa.RSAPublicKey], bool] = verify_signature,
    ):
        self.allowed_ips = frozenset(allowed_ips)
        self.key_provider = key_provider
        self.store = store
        self.platform_hooks = list(platform_hooks)
        self.verifier = verifier

    async def validate(self, state: CallbackState, signature: Optional[str]) -> bool:
        """Run every check against ``state``. Returns True when accepted."""
        if state.is_rejected:
            return False
        try:
            self.check_source_ip(state)
            await self.check_signature(state, signature)
            self.check_provider(state)
            self.check_identifiers(state)
            self.check_purchase_request(state)
            self.check_cost(state)
            await self.run_platform_hooks(state)
        except IntegrityError as e:
            state.reject(e.reason)
            logger.error(
                "callback_signature_mismatch",
                reason=e.reason,
                ip=state.source_ip,
                provider_id=state.provider_id,
                security_event=True,
                payload=redact_raw(state.raw_payload),
            )
            return False
        except ValidationError as e:
            state.reject(e.reason)
            logger.error(
                "callback_rejected",
                reason=e.reason,
                ip=state.source_ip,
                provider_id=state.provider_id,
                transaction_id=state.transaction_id,
                request_key=state.request_key,
                payload=redact_raw(state.raw_payload),
            )
            return False

        state.accept()
        logger.info("callback_accepted", transaction_id=state.transaction_id,
                    request_key=state.request_key, status=state.status)
        return True

    # -- individual checks -------------------------------------------------

    def check_source_ip(self, state: CallbackState) -> None:
        if state.source_ip not in self.allowed_ips:
            raise ValidationError("invalid IP address")

    async def check_signature(self, state: CallbackState, signature: Optional[str]) -> None:
        if not signature:
            raise IntegrityError("empty signature")

        public_key = await self.key_provider.get_public_key()
        if public_key is None:
            logger.error("callback_key_unavailable", ip=state.source_ip)
            raise IntegrityError("invalid signature")

        if not self.verifier(state.raw_payload, signature, public_key):
            raise IntegrityError("invalid signature")

    def check_provider(self, state: CallbackState) -> None:
        purchase_request = self._matched_request(state)
        if purchase_request is None:
            return
        profile = self.store.get_profile(purchase_request.payment_profile_id)
        if profile is None or not profile.provider_id:
            return
        if profile.provider_id != state.provider_id:
            raise ValidationError("invalid provider")

    def check_identifiers(self, state: CallbackState) -> None:
        if not state.transaction_id or not state.request_key:
            raise ValidationError("missing transaction data")

    def check_purchase_request(self, state: CallbackState) -> None:
        if self._matched_request(state) is None:
            raise ValidationError("invalid purchase request")

    def check_cost(self, state: CallbackState) -> None:
        purchase_request = state.matched_request

        amount = round_amount(state.fields.get("amount"))
        expected = round_amount(purchase_request.cost_amount)
        if amount is None or amount != expected:
            raise ValidationError("invalid payment amount")

        if state.fields.get("currency") != purchase_request.cost_currency:
            raise ValidationError("invalid payment currency")

    async def run_platform_hooks(self, state: CallbackState) -> None:
        for hook in self.platform_hooks:
            result = hook(state)
            if inspect.isawaitable(result):
                await result

    def _matched_request(self, state: CallbackState):
        if state.matched_request is None and state.request_key:
            state.matched_request = self.store.find_by_key(state.request_key)
        return state.matched_request
