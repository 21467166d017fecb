"""Base provider adapter and error types."""

from abc import ABC, abstractmethod
from typing import Any, ClassVar, Dict, Mapping, Optional, Type
import logging

import httpx
from pydantic import BaseModel, ValidationError
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from ux_integrations.core.config import get_settings, PROVIDER_CONFIGS
from ux_integrations.models import IntegrationType
from ux_integrations.utils.dates import DateRange
from ux_integrations.utils.rate_limiter import RateLimiter


logger = logging.getLogger(__name__)
settings = get_settings()


class IntegrationError(Exception):
    """Base integration error."""
    pass


class ProviderError(IntegrationError):
    """Talking to the third-party API failed."""
    pass


class AuthenticationError(ProviderError):
    """Authentication failed."""
    pass


class RateLimitError(ProviderError):
    """Rate limit exceeded."""
    pass


class ConfigurationError(IntegrationError):
    """The integration config cannot be turned into a request."""
    pass


# Absorbed by best-effort sections of a fetch: provider failures, and payloads
# whose shape does not match what the provider documents (ValidationError is a ValueError)
SECTION_ERRORS = (ProviderError, LookupError, TypeError, ValueError, AttributeError)


class UnsupportedProviderError(IntegrationError):
    """No adapter exists for the requested provider type."""

    def __init__(self, provider_type: Any):
        self.provider_type = provider_type
        super().__init__(f"Unsupported integration type: {provider_type}")


class BaseAdapter(ABC):
    """Base class for all provider adapters.

    An adapter is built for a single operation from an integration's config and
    owns its HTTP client and any credentials it obtains (bearer tokens etc.).
    Nothing it caches outlives the instance.
    """

    integration_type: ClassVar[IntegrationType]
    config_model: ClassVar[Type[BaseModel]]

    def __init__(
        self,
        config: Mapping[str, Any],
        http_client: Optional[httpx.AsyncClient] = None,
        rate_limiter: Optional[RateLimiter] = None,
    ):
        self.config = self.parse_config(config)
        self.provider_settings = PROVIDER_CONFIGS[self.integration_type.value]
        self.provider_name = self.provider_settings["name"]
        self._owns_client = http_client is None
        self.http_client = http_client or httpx.AsyncClient(timeout=settings.provider_timeout_seconds)
        self.rate_limiter = rate_limiter

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self.http_client.aclose()

    @classmethod
    def parse_config(cls, config: Mapping[str, Any]) -> BaseModel:
        """Convert the stored key/value config into the provider's typed config."""
        if not isinstance(config, Mapping):
            raise ConfigurationError(f"{cls.integration_type.value} config must be an object")
        try:
            return cls.config_model.model_validate(dict(config))
        except ValidationError as e:
            fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
            raise ConfigurationError(
                f"Invalid {cls.integration_type.value} configuration: {fields}"
            ) from e

    # Capability surface

    @abstractmethod
    async def test_connection(self) -> bool:
        """Cheapest authenticated call; False on any recoverable failure."""
        pass

    @abstractmethod
    async def fetch_data(self, date_range: Optional[DateRange] = None) -> Dict[str, Any]:
        """Fetch the provider's normalized data for a window."""
        pass

    # Common utility methods

    def resolve_window(self, date_range: Optional[DateRange]) -> DateRange:
        return date_range or DateRange.last_days(settings.sync_window_days)

    async def make_api_request(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Any] = None,
        data: Optional[Dict[str, Any]] = None,
        auth: Optional[httpx.Auth] = None,
    ) -> httpx.Response:
        """Make API request with rate limiting, timeout retries and error mapping."""
        if self.rate_limiter is not None:
            limit = self.provider_settings["rate_limit"]
            if not await self.rate_limiter.check_rate_limit(
                self.integration_type.value, limit=limit["calls"], window=limit["window"]
            ):
                raise RateLimitError(f"{self.provider_name} rate limit exceeded")

        try:
            response = await self._send(method, url, headers=headers, params=params, json=json, data=data, auth=auth)
        except httpx.TimeoutException as e:
            raise ProviderError(f"{self.provider_name} request timed out: {url}") from e
        except httpx.HTTPError as e:
            raise ProviderError(f"{self.provider_name} request failed: {e}") from e

        if response.is_success:
            return response

        message = f"{self.provider_name} API error: {response.status_code} {response.reason_phrase}"
        if response.status_code in (401, 403):
            raise AuthenticationError(message)
        if response.status_code == 429:
            raise RateLimitError(message)
        raise ProviderError(message)

    @retry(
        stop=stop_after_attempt(settings.provider_max_retries),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception_type(httpx.TimeoutException),
        reraise=True,
    )
    async def _send(self, method: str, url: str, **kwargs) -> httpx.Response:
        kwargs = {k: v for k, v in kwargs.items() if v is not None}
        return await self.http_client.request(method, url, **kwargs)

    async def get_json(self, method: str, url: str, **kwargs) -> Any:
        """Make a request and decode its JSON body."""
        response = await self.make_api_request(method, url, **kwargs)
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise ProviderError(f"{self.provider_name} returned a non-JSON response") from e
