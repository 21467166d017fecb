"""Provider adapter implementations."""

from .base import (
    BaseAdapter,
    IntegrationError,
    ProviderError,
    AuthenticationError,
    RateLimitError,
    ConfigurationError,
    UnsupportedProviderError,
)
from .registry import AdapterRegistry, create_adapter
from .google_analytics import GoogleAnalyticsAdapter
from .hotjar import HotjarAdapter
from .powerbi import PowerBIAdapter
from .mixpanel import MixpanelAdapter
from .amplitude import AmplitudeAdapter
from .custom import CustomAdapter
from .figma import FigmaAdapter

__all__ = [
    "BaseAdapter",
    "IntegrationError",
    "ProviderError",
    "AuthenticationError",
    "RateLimitError",
    "ConfigurationError",
    "UnsupportedProviderError",
    "AdapterRegistry",
    "create_adapter",
    "GoogleAnalyticsAdapter",
    "HotjarAdapter",
    "PowerBIAdapter",
    "MixpanelAdapter",
    "AmplitudeAdapter",
    "CustomAdapter",
    "FigmaAdapter",
]
