"""
Payment provider base class and interface.
Every gateway integration exposes the same callback lifecycle:
setup -> validate -> result -> log.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional

from ..exceptions import ConfigurationError
from ..models import PaymentProfile, PurchaseRequest
from ..services.callback_state import CallbackState
from ..services.callback_validator import PlatformHook
from ..services.purchase_store import PurchaseRequestStore


class PaymentProvider(ABC):
    """
    Base adapter for payment gateways.
    All provider implementations must inherit from this class.
    """

    provider_id: str = "unknown"
    signature_header: Optional[str] = None

    @property
    @abstractmethod
    def title(self) -> str:
        """Display title of the provider."""

    @abstractmethod
    def verify_config(self, options: Dict[str, Any]) -> List[str]:
        """
        Check payment profile options.

        Returns:
            List of problems, empty when the options are usable
        """

    def ensure_config(self, options: Dict[str, Any]) -> None:
        """Raise ConfigurationError when ``options`` are not usable."""
        errors = self.verify_config(options or {})
        if errors:
            raise ConfigurationError("; ".join(errors))

    @abstractmethod
    def verify_currency(self, currency_code: str) -> bool:
        """Whether the gateway accepts ``currency_code``."""

    def supports_recurring(self, profile: Optional[PaymentProfile], unit: str, amount) -> bool:
        return False

    @abstractmethod
    async def initiate_payment(self, purchase_request: PurchaseRequest, profile: PaymentProfile) -> Dict[str, Any]:
        """
        Create a hosted payment for ``purchase_request``.

        Returns:
            Dict containing:
                - id: opaque gateway reference
                - url: page to redirect the payer to
        """

    @abstractmethod
    def setup_callback(self, provider_id: str, source_ip: str, raw_payload: bytes) -> CallbackState:
        """Parse an inbound delivery claimed for ``provider_id`` into a CallbackState."""

    @abstractmethod
    async def validate_callback(
        self,
        state: CallbackState,
        signature: Optional[str],
        store: PurchaseRequestStore,
        platform_hooks: Iterable[PlatformHook] = (),
    ) -> bool:
        """Validate ``state``; returns True when the callback is accepted."""

    @abstractmethod
    def get_payment_result(self, state: CallbackState) -> None:
        """Set the settlement decision on an accepted state."""

    @abstractmethod
    def prepare_log_data(self, state: CallbackState) -> None:
        """Fill ``state.log_details`` for the provider log."""

    def __repr__(self):
        return f"<{self.__class__.__name__}(provider={self.provider_id})>"
