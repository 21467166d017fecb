"""Google Analytics (GA4 Data API) adapter."""

import asyncio
from typing import Any, Dict, List, Optional
import logging

import google.auth.exceptions
from google.auth.transport.requests import Request
from google.oauth2 import service_account

from ux_integrations.integrations.base import (
    BaseAdapter,
    AuthenticationError,
    ConfigurationError,
    ProviderError,
    SECTION_ERRORS,
)
from ux_integrations.integrations.registry import AdapterRegistry
from ux_integrations.models import IntegrationType
from ux_integrations.models.common import CamelModel
from ux_integrations.utils.dates import DateRange

logger = logging.getLogger(__name__)

GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"


class GoogleAnalyticsConfig(CamelModel):
    property_id: str
    # Service account key as downloaded from Google Cloud (snake_case keys)
    credentials: Dict[str, Any]


class TopPage(CamelModel):
    page_path: str
    page_views: int


class TopSource(CamelModel):
    source: str
    sessions: int


class AnalyticsData(CamelModel):
    page_views: int = 0
    unique_users: int = 0
    sessions: int = 0
    bounce_rate: float = 0.0
    avg_session_duration: float = 0.0
    top_pages: List[TopPage] = []
    top_sources: List[TopSource] = []


def _metric(row: Dict[str, Any], index: int, cast=int):
    values = row.get("metricValues") or []
    if index >= len(values):
        return cast(0)
    return cast(float(values[index].get("value") or 0))


def _dimension(row: Dict[str, Any], index: int) -> str:
    values = row.get("dimensionValues") or []
    if index >= len(values):
        return ""
    return values[index].get("value") or ""


@AdapterRegistry.register(IntegrationType.GOOGLE_ANALYTICS)
class GoogleAnalyticsAdapter(BaseAdapter):
    """Reads traffic metrics through the GA4 `runReport` endpoint."""

    config_model = GoogleAnalyticsConfig

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.api_base_url = self.provider_settings["api_base_url"]
        self._credentials: Optional[service_account.Credentials] = None

    async def _get_access_token(self) -> str:
        """Mint (once per instance) a bearer token from the service account."""
        if self._credentials is None:
            info = {"token_uri": GOOGLE_TOKEN_URI, **self.config.credentials}
            try:
                self._credentials = service_account.Credentials.from_service_account_info(
                    info, scopes=self.provider_settings["scopes"]
                )
            except (ValueError, KeyError) as e:
                raise ConfigurationError(f"Invalid Google service account credentials: {e}") from e

        if not self._credentials.valid:
            try:
                await asyncio.to_thread(self._credentials.refresh, Request())
            except google.auth.exceptions.RefreshError as e:
                raise AuthenticationError(f"Google Analytics authentication failed: {e}") from e
            except google.auth.exceptions.TransportError as e:
                raise ProviderError(f"Google token endpoint unreachable: {e}") from e

        return self._credentials.token

    async def run_report(self, body: Dict[str, Any]) -> Dict[str, Any]:
        token = await self._get_access_token()
        return await self.get_json(
            "POST",
            f"{self.api_base_url}/properties/{self.config.property_id}:runReport",
            headers={"Authorization": f"Bearer {token}"},
            json=body,
        )

    async def test_connection(self) -> bool:
        """Test the connection with a same-day report."""
        try:
            await self.get_analytics_data(DateRange.for_today())
            return True
        except ProviderError as e:
            logger.error(f"Google Analytics connection test failed: {e}")
            return False

    async def fetch_data(self, date_range: Optional[DateRange] = None) -> Dict[str, Any]:
        data = await self.get_analytics_data(self.resolve_window(date_range))
        return data.model_dump(by_alias=True)

    async def get_analytics_data(self, date_range: DateRange) -> AnalyticsData:
        report = await self.run_report({
            "dateRanges": [{"startDate": date_range.start, "endDate": date_range.end}],
            "metrics": [
                {"name": "screenPageViews"},
                {"name": "totalUsers"},
                {"name": "sessions"},
                {"name": "bounceRate"},
                {"name": "averageSessionDuration"},
            ],
        })

        rows = report.get("rows") or [{}]
        totals = rows[0]

        top_pages, top_sources = await asyncio.gather(
            self._get_top_pages(date_range),
            self._get_top_sources(date_range),
        )

        return AnalyticsData(
            page_views=_metric(totals, 0),
            unique_users=_metric(totals, 1),
            sessions=_metric(totals, 2),
            bounce_rate=_metric(totals, 3, float),
            avg_session_duration=_metric(totals, 4, float),
            top_pages=top_pages,
            top_sources=top_sources,
        )

    async def _get_top_pages(self, date_range: DateRange) -> List[TopPage]:
        try:
            report = await self.run_report(self._ranked_report(date_range, "pagePath", "screenPageViews"))
            return [
                TopPage(page_path=_dimension(row, 0), page_views=_metric(row, 0))
                for row in report.get("rows") or []
            ]
        except SECTION_ERRORS as e:
            logger.warning(f"Failed to fetch top pages: {e}")
            return []

    async def _get_top_sources(self, date_range: DateRange) -> List[TopSource]:
        try:
            report = await self.run_report(self._ranked_report(date_range, "sessionSource", "sessions"))
            return [
                TopSource(source=_dimension(row, 0), sessions=_metric(row, 0))
                for row in report.get("rows") or []
            ]
        except SECTION_ERRORS as e:
            logger.warning(f"Failed to fetch top sources: {e}")
            return []

    @staticmethod
    def _ranked_report(date_range: DateRange, dimension: str, metric: str) -> Dict[str, Any]:
        return {
            "dateRanges": [{"startDate": date_range.start, "endDate": date_range.end}],
            "dimensions": [{"name": dimension}],
            "metrics": [{"name": metric}],
            "limit": 10,
            "orderBys": [{"metric": {"metricName": metric}, "desc": True}],
        }
