"""Adapter for user-defined REST endpoints."""

from typing import Any, Dict, Literal, Optional
import base64
import logging

import httpx

from ux_integrations.integrations.base import (
    BaseAdapter,
    AuthenticationError,
    ConfigurationError,
    ProviderError,
)
from ux_integrations.integrations.registry import AdapterRegistry
from ux_integrations.models import IntegrationType
from ux_integrations.models.common import CamelModel
from ux_integrations.utils.dates import DateRange
from ux_integrations.utils.mapping import get_nested_value

logger = logging.getLogger(__name__)

HttpMethod = Literal["GET", "POST", "PUT", "PATCH", "DELETE"]

BODY_METHODS = ("POST", "PUT", "PATCH")


class CustomAuth(CamelModel):
    type: Literal["none", "basic", "bearer", "api_key", "oauth2"] = "none"
    credentials: Dict[str, Any] = {}


class ResponseMapping(CamelModel):
    success: Optional[str] = None
    data: Optional[str] = None
    error: Optional[str] = None


class CustomConfig(CamelModel):
    endpoint: str
    method: HttpMethod = "GET"
    headers: Dict[str, str] = {}
    auth: CustomAuth = CustomAuth()
    params: Dict[str, Any] = {}
    body: Optional[Dict[str, Any]] = None
    response_mapping: Optional[ResponseMapping] = None


@AdapterRegistry.register(IntegrationType.CUSTOM)
class CustomAdapter(BaseAdapter):
    """Calls a single configured endpoint and reshapes its JSON body.

    Supported auth schemes: none, basic (`username`/`password`), bearer
    (`token`), api_key (`key`, optional `headerName`) and oauth2 (`accessToken`,
    or `clientId`/`clientSecret`/`tokenUrl` for a client-credentials exchange).
    """

    config_model = CustomConfig

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._oauth_token: Optional[str] = None

    def _credential(self, name: str) -> Any:
        value = self.config.auth.credentials.get(name)
        if value in (None, ""):
            raise ConfigurationError(f"{self.config.auth.type} auth requires credentials.{name}")
        return value

    async def build_headers(self, method: str) -> Dict[str, str]:
        headers = dict(self.config.headers)
        auth_type = self.config.auth.type

        if auth_type == "basic":
            userpass = f"{self._credential('username')}:{self._credential('password')}"
            headers["Authorization"] = "Basic " + base64.b64encode(userpass.encode()).decode()
        elif auth_type == "bearer":
            headers["Authorization"] = f"Bearer {self._credential('token')}"
        elif auth_type == "api_key":
            header_name = self.config.auth.credentials.get("headerName") or "X-API-Key"
            headers[header_name] = str(self._credential("key"))
        elif auth_type == "oauth2":
            headers["Authorization"] = f"Bearer {await self._get_oauth_token()}"

        if method in BODY_METHODS and "Content-Type" not in headers:
            headers["Content-Type"] = "application/json"

        return headers

    async def _get_oauth_token(self) -> str:
        credentials = self.config.auth.credentials
        if credentials.get("accessToken"):
            return credentials["accessToken"]
        if self._oauth_token:
            return self._oauth_token

        form = {
            "grant_type": "client_credentials",
            "client_id": self._credential("clientId"),
            "client_secret": self._credential("clientSecret"),
        }
        if credentials.get("scope"):
            form["scope"] = credentials["scope"]

        token_data = await self.get_json("POST", self._credential("tokenUrl"), data=form)
        access_token = token_data.get("access_token") if isinstance(token_data, dict) else None
        if not access_token:
            raise AuthenticationError("OAuth2 token response did not contain an access token")

        self._oauth_token = access_token
        return access_token

    async def _call(self, method: str, body: Optional[Any] = None) -> httpx.Response:
        return await self.make_api_request(
            method,
            self.config.endpoint,
            headers=await self.build_headers(method),
            params=self.config.params or None,
            json=body if method in BODY_METHODS else None,
        )

    def map_response(self, data: Any) -> Any:
        mapping = self.config.response_mapping
        if mapping is None:
            return data

        mapped = {}
        for key in ("success", "data", "error"):
            path = getattr(mapping, key)
            if path:
                mapped[key] = get_nested_value(data, path)
        return mapped

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise ProviderError("Custom endpoint returned a non-JSON response") from e

    async def test_connection(self) -> bool:
        try:
            await self._call(self.config.method, self.config.body)
            return True
        except ProviderError as e:
            logger.error(f"Custom integration connection test failed: {e}")
            return False

    async def fetch_data(self, date_range: Optional[DateRange] = None) -> Any:
        response = await self._call(self.config.method, self.config.body)
        return self.map_response(self._decode(response))

    async def send(self, method: HttpMethod, payload: Optional[Any] = None) -> Any:
        """Send `payload` to the endpoint with a method other than the configured one."""
        response = await self._call(method, payload)
        return self.map_response(self._decode(response))

    async def validate_endpoint(self) -> Dict[str, Any]:
        try:
            response = await self._call(self.config.method, self.config.body)
            return {"valid": True, "status": response.status_code}
        except ProviderError as e:
            return {"valid": False, "error": str(e)}
