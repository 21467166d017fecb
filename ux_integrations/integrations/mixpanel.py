"""Mixpanel adapter, plus the product-analytics data shapes shared with Amplitude."""

from typing import Any, Dict, List, Optional, Sequence
import logging

import httpx

from ux_integrations.integrations.base import BaseAdapter, ProviderError, SECTION_ERRORS
from ux_integrations.integrations.registry import AdapterRegistry
from ux_integrations.models import IntegrationType
from ux_integrations.models.common import CamelModel
from ux_integrations.utils.dates import DateRange

logger = logging.getLogger(__name__)

MAX_TOP_EVENTS = 10
MAX_FUNNELS = 5
RETENTION_DAYS = (1, 7, 30)


class MixpanelConfig(CamelModel):
    project_id: str
    api_secret: str
    username: Optional[str] = None


class Event(CamelModel):
    event: str
    count: int = 0
    properties: Dict[str, Any] = {}


class TopEvent(CamelModel):
    event: str
    count: int = 0
    unique_users: int = 0


class UserMetrics(CamelModel):
    total: int = 0
    active: int = 0
    new: int = 0


class FunnelStep(CamelModel):
    step: str
    count: int
    conversion_rate: float


class Funnel(CamelModel):
    name: str
    steps: List[FunnelStep]


class RetentionCohort(CamelModel):
    cohort: str
    day1: float = 0
    day7: float = 0
    day30: float = 0


class MixpanelData(CamelModel):
    events: List[Event] = []
    users: UserMetrics = UserMetrics()
    funnels: List[Funnel] = []
    retention: List[RetentionCohort] = []
    top_events: List[TopEvent] = []


def build_funnel_steps(labels: Sequence[str], counts: Sequence[int]) -> List[FunnelStep]:
    """Steps with conversion relative to the funnel entry, in percent."""
    entry = counts[0] if counts else 0
    return [
        FunnelStep(
            step=label,
            count=count,
            conversion_rate=round(count / entry * 100, 2) if entry else 0.0,
        )
        for label, count in zip(labels, counts)
    ]


def retention_cohort(cohort: str, size: int, counts: Sequence[int]) -> RetentionCohort:
    """Day 1/7/30 retention in percent of the cohort size."""
    rates = {}
    for day in RETENTION_DAYS:
        rates[f"day{day}"] = round(counts[day] / size * 100, 2) if size and day < len(counts) else 0
    return RetentionCohort(cohort=cohort, **rates)


@AdapterRegistry.register(IntegrationType.MIXPANEL)
class MixpanelAdapter(BaseAdapter):
    """Mixpanel query API adapter (Basic auth with the project API secret)."""

    config_model = MixpanelConfig

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.api_base_url = self.provider_settings["api_base_url"]
        self.auth = httpx.BasicAuth(self.config.api_secret, "")

    async def _get(self, endpoint: str, params: Dict[str, Any]) -> Any:
        return await self.get_json(
            "GET",
            f"{self.api_base_url}{endpoint}",
            params={**params, "project_id": self.config.project_id},
            auth=self.auth,
        )

    async def test_connection(self) -> bool:
        today = DateRange.for_today()
        try:
            await self._get("/events/top", {"from_date": today.start, "to_date": today.end, "limit": 1})
            return True
        except ProviderError as e:
            logger.error(f"Mixpanel connection test failed: {e}")
            return False

    async def fetch_data(self, date_range: Optional[DateRange] = None) -> Dict[str, Any]:
        data = await self.get_analytics_data(self.resolve_window(date_range))
        return data.model_dump(by_alias=True)

    async def get_analytics_data(self, date_range: DateRange) -> MixpanelData:
        """Top events are required; the other sections fall back to empty values."""
        raw_events = await self._get_raw_top_events(date_range)

        return MixpanelData(
            events=[
                Event(
                    event=item.get("event", ""),
                    count=item.get("count", item.get("amount", 0)),
                    properties={k: v for k, v in item.items() if k not in ("event", "count", "amount")},
                )
                for item in raw_events
            ],
            top_events=[
                TopEvent(
                    event=item.get("event", ""),
                    count=item.get("count", item.get("amount", 0)),
                    unique_users=item.get("unique_users", 0),
                )
                for item in raw_events
            ],
            users=await self._get_user_metrics(date_range),
            funnels=await self._get_funnels(date_range),
            retention=await self._get_retention(date_range),
        )

    async def _get_raw_top_events(self, date_range: DateRange) -> List[Dict[str, Any]]:
        response = await self._get("/events/top", {
            "type": "general",
            "from_date": date_range.start,
            "to_date": date_range.end,
            "limit": MAX_TOP_EVENTS,
        })
        items = (response.get("data") or response.get("events")) if isinstance(response, dict) else None
        if not isinstance(items, list):
            return []
        return [item for item in items if isinstance(item, dict)][:MAX_TOP_EVENTS]

    async def _get_user_metrics(self, date_range: DateRange) -> UserMetrics:
        try:
            response = await self._get("/events/properties", {
                "from_date": date_range.start,
                "to_date": date_range.end,
                "event": "User Login",
                "name": "distinct_id",
            })
            data = response.get("data") or {}
            return UserMetrics(
                total=data.get("total") or 0,
                active=data.get("active") or 0,
                new=data.get("new") or 0,
            )
        except SECTION_ERRORS as e:
            logger.warning(f"Failed to fetch Mixpanel user metrics: {e}")
            return UserMetrics()

    async def _get_funnels(self, date_range: DateRange) -> List[Funnel]:
        try:
            saved = await self._get("/funnels/list", {})
            funnels = []
            saved = [item for item in saved or [] if isinstance(item, dict) and "funnel_id" in item]
            for item in saved[:MAX_FUNNELS]:
                report = await self._get("/funnels", {
                    "funnel_id": item["funnel_id"],
                    "from_date": date_range.start,
                    "to_date": date_range.end,
                })
                funnels.append(self._parse_funnel(item.get("name", str(item["funnel_id"])), report))
            return funnels
        except SECTION_ERRORS as e:
            logger.warning(f"Failed to fetch Mixpanel funnels: {e}")
            return []

    @staticmethod
    def _parse_funnel(name: str, report: Dict[str, Any]) -> Funnel:
        # Step counts are reported per day; sum them over the window
        labels: List[str] = []
        counts: List[int] = []
        for day in (report.get("data") or {}).values():
            for index, step in enumerate(day.get("steps") or []):
                if index == len(counts):
                    labels.append(step.get("event") or step.get("step_label") or f"Step {index + 1}")
                    counts.append(0)
                counts[index] += step.get("count") or 0
        return Funnel(name=name, steps=build_funnel_steps(labels, counts))

    async def _get_retention(self, date_range: DateRange) -> List[RetentionCohort]:
        try:
            response = await self._get("/retention", {
                "from_date": date_range.start,
                "to_date": date_range.end,
                "unit": "day",
            })
            return [
                retention_cohort(cohort, row.get("first") or 0, row.get("counts") or [])
                for cohort, row in sorted(response.items())
                if isinstance(row, dict)
            ]
        except SECTION_ERRORS as e:
            logger.warning(f"Failed to fetch Mixpanel retention: {e}")
            return []
