"""Adapter registry and factory."""

from typing import Any, Dict, Mapping, Optional, Type

from ux_integrations.models import IntegrationType
from .base import BaseAdapter, UnsupportedProviderError


class AdapterRegistry:
    """Registry for provider adapter implementations."""

    _adapters: Dict[IntegrationType, Type[BaseAdapter]] = {}

    @classmethod
    def register(cls, integration_type: IntegrationType):
        """Decorator to register an adapter class."""
        def decorator(adapter_class: Type[BaseAdapter]):
            adapter_class.integration_type = integration_type
            cls._adapters[integration_type] = adapter_class
            return adapter_class
        return decorator

    @classmethod
    def get(cls, integration_type: IntegrationType) -> Optional[Type[BaseAdapter]]:
        """Get adapter class by type."""
        return cls._adapters.get(integration_type)

    @classmethod
    def list_types(cls) -> list[IntegrationType]:
        """List all registered integration types."""
        return list(cls._adapters.keys())


def resolve_type(provider_type: Any) -> IntegrationType:
    """Map a raw type tag onto the enumeration, failing closed."""
    if isinstance(provider_type, IntegrationType):
        return provider_type
    try:
        return IntegrationType(provider_type)
    except ValueError:
        raise UnsupportedProviderError(provider_type) from None


def create_adapter(provider_type: Any, config: Mapping[str, Any], **options) -> BaseAdapter:
    """Build the adapter for `provider_type` from a raw config.

    Raises UnsupportedProviderError for unknown tags; a malformed config surfaces
    as ConfigurationError from the adapter itself.
    """
    integration_type = resolve_type(provider_type)
    adapter_class = AdapterRegistry.get(integration_type)
    if adapter_class is None:
        raise UnsupportedProviderError(integration_type.value)
    return adapter_class(config, **options)
