"""Amplitude adapter."""

import json
from typing import Any, Dict, List, Optional
import logging

import httpx

from ux_integrations.integrations.base import BaseAdapter, ProviderError, SECTION_ERRORS
from ux_integrations.integrations.mixpanel import (
    Event,
    Funnel,
    RetentionCohort,
    TopEvent,
    UserMetrics,
    build_funnel_steps,
    retention_cohort,
)
from ux_integrations.integrations.registry import AdapterRegistry
from ux_integrations.models import IntegrationType
from ux_integrations.models.common import CamelModel
from ux_integrations.utils.dates import DateRange

logger = logging.getLogger(__name__)

MAX_TOP_EVENTS = 10
ALL_EVENTS = json.dumps({"event_type": "_all"})
NEW_USERS = json.dumps({"event_type": "_new"})


def _compact(date: str) -> str:
    # Amplitude takes YYYYMMDD
    return date.replace("-", "")


class AmplitudeConfig(CamelModel):
    api_key: str
    secret_key: str
    project_id: Optional[str] = None
    # Event types making up the funnel to report, in order
    funnel_events: List[str] = []


class AmplitudeUserMetrics(UserMetrics):
    returning: int = 0


class PropertyValue(CamelModel):
    value: str
    count: int = 0


class UserProperty(CamelModel):
    property: str
    values: List[PropertyValue] = []


class AmplitudeData(CamelModel):
    events: List[Event] = []
    users: AmplitudeUserMetrics = AmplitudeUserMetrics()
    funnels: List[Funnel] = []
    retention: List[RetentionCohort] = []
    top_events: List[TopEvent] = []
    user_properties: List[UserProperty] = []


@AdapterRegistry.register(IntegrationType.AMPLITUDE)
class AmplitudeAdapter(BaseAdapter):
    """Amplitude Dashboard REST API adapter (Basic auth `apiKey:secretKey`)."""

    config_model = AmplitudeConfig

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.api_base_url = self.provider_settings["api_base_url"]
        self.auth = httpx.BasicAuth(self.config.api_key, self.config.secret_key)

    async def _get(self, endpoint: str, params: Any) -> Any:
        return await self.get_json("GET", f"{self.api_base_url}{endpoint}", params=params, auth=self.auth)

    async def test_connection(self) -> bool:
        today = DateRange.for_today()
        try:
            await self._get_segmentation(today)
            return True
        except ProviderError as e:
            logger.error(f"Amplitude connection test failed: {e}")
            return False

    async def fetch_data(self, date_range: Optional[DateRange] = None) -> Dict[str, Any]:
        data = await self.get_analytics_data(self.resolve_window(date_range))
        return data.model_dump(by_alias=True)

    async def get_analytics_data(self, date_range: DateRange) -> AmplitudeData:
        """Event segmentation is required; the other sections degrade to empty values."""
        segmentation = await self._get_segmentation(date_range)
        raw_events = [item for item in segmentation if isinstance(item, dict)][:MAX_TOP_EVENTS]

        user_metrics, user_properties = await self._get_users(date_range)
        return AmplitudeData(
            events=[
                Event(
                    event=item.get("event_type", ""),
                    count=item.get("count") or 0,
                    properties=item.get("properties") or {},
                )
                for item in raw_events
            ],
            top_events=[
                TopEvent(
                    event=item.get("event_type", ""),
                    count=item.get("count") or 0,
                    unique_users=item.get("unique_users") or 0,
                )
                for item in raw_events
            ],
            users=user_metrics,
            user_properties=user_properties,
            retention=await self._get_retention(date_range),
            funnels=await self._get_funnels(date_range),
        )

    async def _get_segmentation(self, date_range: DateRange) -> List[Any]:
        response = await self._get("/events/segmentation", {
            "e": ALL_EVENTS,
            "start": _compact(date_range.start),
            "end": _compact(date_range.end),
            "m": "totals",
        })
        data = response.get("data") if isinstance(response, dict) else None
        return data if isinstance(data, list) else []

    async def _get_users(self, date_range: DateRange):
        try:
            response = await self._get("/users/segmentation", {
                "start": _compact(date_range.start),
                "end": _compact(date_range.end),
                "m": "totals",
                "s": "user_properties",
            })
            data = response.get("data") or {}
            metrics = AmplitudeUserMetrics(
                total=data.get("total") or 0,
                active=data.get("active") or 0,
                new=data.get("new") or 0,
                returning=data.get("returning") or 0,
            )
            properties = [
                UserProperty(
                    property=prop.get("property", ""),
                    values=[
                        PropertyValue(value=str(val.get("value", "")), count=val.get("count") or 0)
                        for val in prop.get("values") or []
                    ],
                )
                for prop in data.get("user_properties") or []
            ]
        except SECTION_ERRORS as e:
            logger.warning(f"Failed to fetch Amplitude user metrics: {e}")
            return AmplitudeUserMetrics(), []

        return metrics, properties

    async def _get_retention(self, date_range: DateRange) -> List[RetentionCohort]:
        try:
            response = await self._get("/retention", {
                "se": NEW_USERS,
                "re": ALL_EVENTS,
                "start": _compact(date_range.start),
                "end": _compact(date_range.end),
            })
            series = (response.get("data") or {}).get("series") or []
            if not series:
                return []

            cohorts = []
            for cohort, buckets in sorted((series[0].get("values") or {}).items()):
                size = buckets[0].get("outof", 0) if buckets else 0
                cohorts.append(retention_cohort(cohort, size, [bucket.get("count", 0) for bucket in buckets]))
            return cohorts
        except SECTION_ERRORS as e:
            logger.warning(f"Failed to fetch Amplitude retention: {e}")
            return []

    async def _get_funnels(self, date_range: DateRange) -> List[Funnel]:
        if not self.config.funnel_events:
            return []

        params = [("e", json.dumps({"event_type": event})) for event in self.config.funnel_events]
        params += [("start", _compact(date_range.start)), ("end", _compact(date_range.end))]
        try:
            response = await self._get("/funnels", params)
            funnels = []
            for item in response.get("data") or []:
                counts = item.get("cumulativeRaw") or []
                labels = item.get("events") or self.config.funnel_events
                funnels.append(Funnel(name=" > ".join(labels), steps=build_funnel_steps(labels, counts)))
            return funnels
        except SECTION_ERRORS as e:
            logger.warning(f"Failed to fetch Amplitude funnel: {e}")
            return []
