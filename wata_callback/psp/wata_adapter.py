"""Wata.pro payment provider implementation."""
import time
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, FrozenSet, Iterable, List, Optional

import httpx

from ..exceptions import NetworkError
from ..logging_config import get_logger
from ..models import PaymentProfile, PurchaseRequest
from ..services.callback_parser import parse_callback
from ..services.callback_state import CallbackState
from ..services.callback_validator import CallbackValidator, PlatformHook
from ..services.key_provider import PublicKeyCache
from ..services.purchase_store import PurchaseRequestStore
from ..services.result_mapper import map_result
from ..services.webhook_service import redact_fields, redact_raw
from .adapter import PaymentProvider

logger = get_logger(__name__)

DEFAULT_ALLOWED_IPS = frozenset({"62.84.126.140", "51.250.106.150"})
DEFAULT_CURRENCIES = frozenset({"USD", "EUR", "RUB"})


class WataProvider(PaymentProvider):
    """Wata.pro H2H gateway adapter."""

    provider_id = "Wata"
    signature_header = "X-Signature"

    def __init__(
        self,
        key_cache: PublicKeyCache,
        *,
        api_base: str = "https://api.wata.pro/api/h2h/",
        provider_id: Optional[str] = None,
        allowed_ips: Iterable[str] = DEFAULT_ALLOWED_IPS,
        supported_currencies: Iterable[str] = DEFAULT_CURRENCIES,
        signature_header: Optional[str] = None,
        link_timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.key_cache = key_cache
        self._base = api_base
        if provider_id:
            self.provider_id = provider_id
        if signature_header:
            self.signature_header = signature_header
        self.allowed_ips: FrozenSet[str] = frozenset(allowed_ips)
        self.supported_currencies: FrozenSet[str] = frozenset(supported_currencies)
        self.link_timeout = link_timeout
        self._transport = transport

    @property
    def title(self) -> str:
        return "Wata.pro"

    @property
    def api_endpoint(self) -> str:
        return self._base

    def verify_config(self, options: Dict[str, Any]) -> List[str]:
        if not options.get("token"):
            return ["You must provide a Wata API token"]
        return []

    def verify_currency(self, currency_code: str) -> bool:
        return currency_code in self.supported_currencies

    # -- payment initiation ------------------------------------------------

    def payment_params(self, purchase_request: PurchaseRequest) -> Dict[str, Any]:
        amount = Decimal(str(purchase_request.cost_amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        return {
            "amount": f"{amount:f}",
            "currency": purchase_request.cost_currency,
            "description": f"Order #{purchase_request.request_key}",
            "orderId": purchase_request.request_key,
        }

    async def initiate_payment(self, purchase_request: PurchaseRequest, profile: PaymentProfile) -> Dict[str, Any]:
        options = profile.options or {}
        self.ensure_config(options)

        headers = {
            "Authorization": f"Bearer {options['token']}",
            "Content-Type": "application/json",
        }
        try:
            async with httpx.AsyncClient(timeout=self.link_timeout, transport=self._transport) as client:
                r = await client.post(f"{self._base}links", json=self.payment_params(purchase_request),
                                      headers=headers)
        except httpx.HTTPError as e:
            logger.error("payment_link_request_failed", request_key=purchase_request.request_key, error=str(e))
            raise NetworkError(f"Payment link request failed: {e}") from e

        try:
            data = r.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        if r.status_code == 200 and data.get("id") and data.get("url"):
            logger.info("payment_link_created", request_key=purchase_request.request_key, link_id=data["id"])
            return {"id": data["id"], "url": data["url"]}

        logger.error("payment_link_rejected", request_key=purchase_request.request_key,
                     status_code=r.status_code, body=r.text[:200])
        raise NetworkError(data.get("error") or "Something went wrong. Please try again.",
                           status_code=r.status_code)

    # -- callback lifecycle --------------------------------------------------

    def setup_callback(self, provider_id: str, source_ip: str, raw_payload: bytes) -> CallbackState:
        return parse_callback(provider_id, source_ip, raw_payload)

    def build_validator(
        self,
        store: PurchaseRequestStore,
        platform_hooks: Iterable[PlatformHook] = (),
    ) -> CallbackValidator:
        return CallbackValidator(
            allowed_ips=self.allowed_ips,
            key_provider=self.key_cache,
            store=store,
            platform_hooks=platform_hooks,
        )

    async def validate_callback(
        self,
        state: CallbackState,
        signature: Optional[str],
        store: PurchaseRequestStore,
        platform_hooks: Iterable[PlatformHook] = (),
    ) -> bool:
        validator = self.build_validator(store, platform_hooks)
        return await validator.validate(state, signature)

    def get_payment_result(self, state: CallbackState) -> None:
        map_result(state)

    def prepare_log_data(self, state: CallbackState) -> None:
        state.log_details = {
            "ip": state.source_ip,
            "request_time": int(time.time()),
            "input": redact_fields(state.fields),
            "raw_input": redact_raw(state.raw_payload),
        }
        if state.rejection_reason:
            state.log_details["reason"] = state.rejection_reason
