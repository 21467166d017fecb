"""Figma adapter."""

import re
from typing import Any, Dict, List, Optional
import logging

from ux_integrations.integrations.base import BaseAdapter, ConfigurationError, ProviderError
from ux_integrations.integrations.registry import AdapterRegistry
from ux_integrations.models import IntegrationType
from ux_integrations.models.common import CamelModel
from ux_integrations.utils.dates import DateRange

logger = logging.getLogger(__name__)

# https://www.figma.com/file/<key>/<title> and the newer /design/<key>/ form
FILE_URL_PATTERN = re.compile(r"figma\.com/(?:file|design|proto)/([A-Za-z0-9]+)")


class FigmaConfig(CamelModel):
    access_token: Optional[str] = None
    file_url: Optional[str] = None
    file_key: Optional[str] = None


class FigmaPage(CamelModel):
    id: str
    name: str


class FigmaFile(CamelModel):
    file_key: str
    name: str
    last_modified: Optional[str] = None
    version: Optional[str] = None
    thumbnail_url: Optional[str] = None
    pages: List[FigmaPage] = []
    component_count: int = 0
    style_count: int = 0


class FigmaProfile(CamelModel):
    id: str
    handle: Optional[str] = None
    email: Optional[str] = None
    img_url: Optional[str] = None


def parse_file_key(file_url: str) -> Optional[str]:
    match = FILE_URL_PATTERN.search(file_url)
    return match.group(1) if match else None


@AdapterRegistry.register(IntegrationType.FIGMA)
class FigmaAdapter(BaseAdapter):
    """Reads design file metadata with a personal access token."""

    config_model = FigmaConfig

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.api_base_url = self.provider_settings["api_base_url"]

    @property
    def file_key(self) -> Optional[str]:
        if self.config.file_key:
            return self.config.file_key
        if self.config.file_url:
            key = parse_file_key(self.config.file_url)
            if key is None:
                raise ConfigurationError(f"Not a Figma file URL: {self.config.file_url}")
            return key
        return None

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        if not self.config.access_token:
            raise ConfigurationError("Figma requests need an accessToken")
        return await self.get_json(
            "GET",
            f"{self.api_base_url}{path}",
            headers={"X-Figma-Token": self.config.access_token},
            params=params,
        )

    async def test_connection(self) -> bool:
        try:
            await self._get("/me")
            return True
        except ProviderError as e:
            logger.error(f"Figma connection test failed: {e}")
            return False

    async def fetch_data(self, date_range: Optional[DateRange] = None) -> Dict[str, Any]:
        file_key = self.file_key
        if file_key:
            data = await self.get_file(file_key)
        else:
            data = await self.get_profile()
        return data.model_dump(by_alias=True)

    async def get_file(self, file_key: str) -> FigmaFile:
        document = await self._get(f"/files/{file_key}", params={"depth": 1})
        pages = (document.get("document") or {}).get("children") or []
        return FigmaFile(
            file_key=file_key,
            name=document.get("name", ""),
            last_modified=document.get("lastModified"),
            version=document.get("version"),
            thumbnail_url=document.get("thumbnailUrl"),
            pages=[FigmaPage(id=page.get("id", ""), name=page.get("name", "")) for page in pages],
            component_count=len(document.get("components") or {}),
            style_count=len(document.get("styles") or {}),
        )

    async def get_profile(self) -> FigmaProfile:
        profile = await self._get("/me")
        return FigmaProfile(
            id=str(profile.get("id", "")),
            handle=profile.get("handle"),
            email=profile.get("email"),
            img_url=profile.get("img_url"),
        )
