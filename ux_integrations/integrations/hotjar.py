"""Hotjar adapter."""

import asyncio
from typing import Any, Dict, List, Optional
import logging

from ux_integrations.integrations.base import BaseAdapter, ProviderError, SECTION_ERRORS
from ux_integrations.integrations.registry import AdapterRegistry
from ux_integrations.models import IntegrationType
from ux_integrations.models.common import CamelModel
from ux_integrations.utils.dates import DateRange, utcnow

logger = logging.getLogger(__name__)

MAX_LIST_ITEMS = 10

COUNTED_RESOURCES = ("recordings", "heatmaps", "funnels", "surveys", "polls")


class HotjarConfig(CamelModel):
    site_id: str
    access_token: str


class Feedback(CamelModel):
    type: str = "feedback"
    message: str = ""
    rating: Optional[float] = None
    timestamp: str


class PageActivity(CamelModel):
    page: str = ""
    recordings: int = 0
    heatmaps: int = 0


class UserBehavior(CamelModel):
    avg_session_duration: float = 0
    bounce_rate: float = 0
    conversion_rate: float = 0


class HotjarData(CamelModel):
    recordings: int = 0
    heatmaps: int = 0
    funnels: int = 0
    surveys: int = 0
    polls: int = 0
    user_feedback: List[Feedback] = []
    top_pages: List[PageActivity] = []
    user_behavior: UserBehavior = UserBehavior()


@AdapterRegistry.register(IntegrationType.HOTJAR)
class HotjarAdapter(BaseAdapter):
    """Aggregates site-level Hotjar insights.

    Every part of the aggregate is fetched independently; a failing part is
    replaced by its empty value so the rest of the snapshot survives.
    """

    config_model = HotjarConfig

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.site_url = f"{self.provider_settings['api_base_url']}/sites/{self.config.site_id}"

    async def _get(self, path: str = "") -> Any:
        return await self.get_json(
            "GET",
            f"{self.site_url}{path}",
            headers={
                "Authorization": f"Bearer {self.config.access_token}",
                "Content-Type": "application/json",
            },
        )

    async def test_connection(self) -> bool:
        try:
            await self._get()
            return True
        except ProviderError as e:
            logger.error(f"Hotjar connection test failed: {e}")
            return False

    async def fetch_data(self, date_range: Optional[DateRange] = None) -> Dict[str, Any]:
        # Site aggregates are not windowed
        data = await self.get_site_data()
        return data.model_dump(by_alias=True)

    async def get_site_data(self) -> HotjarData:
        counts = await asyncio.gather(*(self._get_count(name) for name in COUNTED_RESOURCES))
        feedback, pages, behavior = await asyncio.gather(
            self._get_feedback(),
            self._get_pages(),
            self._get_behavior(),
        )

        return HotjarData(
            **dict(zip(COUNTED_RESOURCES, counts)),
            user_feedback=feedback,
            top_pages=pages,
            user_behavior=behavior,
        )

    async def _get_count(self, resource: str) -> int:
        try:
            response = await self._get(f"/{resource}/count")
            return int(response.get("count") or 0)
        except SECTION_ERRORS as e:
            logger.warning(f"Hotjar {resource} count unavailable: {e}")
            return 0

    async def _get_feedback(self) -> List[Feedback]:
        try:
            response = await self._get("/feedback")
            return [
                Feedback(
                    type=item.get("type") or "feedback",
                    message=item.get("message") or "",
                    rating=item.get("rating"),
                    timestamp=item.get("timestamp") or utcnow().isoformat(),
                )
                for item in (response.get("data") or [])[:MAX_LIST_ITEMS]
            ]
        except SECTION_ERRORS as e:
            logger.warning(f"Hotjar feedback unavailable: {e}")
            return []

    async def _get_pages(self) -> List[PageActivity]:
        try:
            response = await self._get("/pages")
            return [
                PageActivity(
                    page=item.get("page") or "",
                    recordings=item.get("recordings") or 0,
                    heatmaps=item.get("heatmaps") or 0,
                )
                for item in (response.get("data") or [])[:MAX_LIST_ITEMS]
            ]
        except SECTION_ERRORS as e:
            logger.warning(f"Hotjar pages unavailable: {e}")
            return []

    async def _get_behavior(self) -> UserBehavior:
        try:
            response = await self._get("/behavior")
            return UserBehavior(
                avg_session_duration=response.get("avgSessionDuration") or 0,
                bounce_rate=response.get("bounceRate") or 0,
                conversion_rate=response.get("conversionRate") or 0,
            )
        except SECTION_ERRORS as e:
            logger.warning(f"Hotjar behavior metrics unavailable: {e}")
            return UserBehavior()
