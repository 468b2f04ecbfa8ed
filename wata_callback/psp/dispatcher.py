"""Provider dispatcher - routes a callback to the right gateway adapter."""
from typing import Dict

from ..config import settings
from ..services.key_provider import PublicKeyCache
from .adapter import PaymentProvider
from .wata_adapter import WataProvider


class ProviderDispatcher:
    """
    Selects and initializes the provider adapter for a provider id.
    Adapters (and their key caches) are built once per process.
    """

    _adapters: Dict[str, PaymentProvider] = {}

    @classmethod
    def get_provider(cls, provider_id: str) -> PaymentProvider:
        """
        Get the adapter for ``provider_id``.

        Raises:
            ValueError: If the provider is not supported
        """
        if provider_id in cls._adapters:
            return cls._adapters[provider_id]

        if provider_id == settings.WATA_PROVIDER_ID:
            key_cache = PublicKeyCache(
                f"{settings.WATA_API_BASE}public-key",
                ttl_seconds=settings.PUBLIC_KEY_TTL_SECONDS,
                timeout=settings.KEY_FETCH_TIMEOUT_SECONDS,
            )
            adapter = WataProvider(
                key_cache,
                api_base=settings.WATA_API_BASE,
                provider_id=settings.WATA_PROVIDER_ID,
                allowed_ips=settings.WATA_ALLOWED_IPS,
                supported_currencies=settings.WATA_SUPPORTED_CURRENCIES,
                signature_header=settings.WATA_SIGNATURE_HEADER,
                link_timeout=settings.LINK_CREATE_TIMEOUT_SECONDS,
            )
        else:
            raise ValueError(f"Unsupported payment provider: {provider_id}")

        cls._adapters[provider_id] = adapter
        return adapter

    @classmethod
    def register(cls, adapter: PaymentProvider) -> None:
        cls._adapters[adapter.provider_id] = adapter

    @classmethod
    def clear_cache(cls):
        """Clear cached adapters (useful for testing)."""
        cls._adapters = {}


def get_wata_provider() -> WataProvider:
    """Get the Wata adapter."""
    return ProviderDispatcher.get_provider(settings.WATA_PROVIDER_ID)
