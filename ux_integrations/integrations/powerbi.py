"""PowerBI adapter."""

from typing import Any, Dict, List, Optional
import logging

from ux_integrations.integrations.base import BaseAdapter, AuthenticationError, ProviderError, SECTION_ERRORS
from ux_integrations.integrations.registry import AdapterRegistry
from ux_integrations.models import IntegrationType
from ux_integrations.models.common import CamelModel
from ux_integrations.utils.dates import DateRange

logger = logging.getLogger(__name__)

MAX_TABLES = 5
MAX_ROWS = 100


class AzureCredentials(CamelModel):
    client_id: str
    client_secret: str
    tenant_id: str


class PowerBIConfig(CamelModel):
    workspace_id: str
    dataset_id: str
    credentials: AzureCredentials


class Dataset(CamelModel):
    id: str
    name: str
    tables: List[str] = []
    refresh_schedule: Optional[Any] = None


class Report(CamelModel):
    id: str
    name: str
    dataset_id: Optional[str] = None
    embed_url: Optional[str] = None


class Dashboard(CamelModel):
    id: str
    name: str
    embed_url: Optional[str] = None


class TableData(CamelModel):
    table: str
    rows: List[Dict[str, Any]]
    columns: List[str]


class PowerBIData(CamelModel):
    datasets: List[Dataset]
    reports: List[Report]
    dashboards: List[Dashboard]
    data: List[TableData]


def _items(listing: Any, key: str = "id") -> List[Dict[str, Any]]:
    """Objects of a listing (a list, or a response wrapping one in `value`) that carry `key`."""
    if isinstance(listing, dict):
        listing = listing.get("value")
    if not isinstance(listing, list):
        return []
    return [item for item in listing if isinstance(item, dict) and item.get(key)]


@AdapterRegistry.register(IntegrationType.POWERBI)
class PowerBIAdapter(BaseAdapter):
    """Reads workspace metadata and a bounded sample of dataset rows."""

    config_model = PowerBIConfig

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.workspace_url = f"{self.provider_settings['api_base_url']}/groups/{self.config.workspace_id}"
        self.dataset_url = f"{self.workspace_url}/datasets/{self.config.dataset_id}"
        self._access_token: Optional[str] = None

    async def get_access_token(self) -> str:
        """Client-credentials token, requested once per adapter instance."""
        if self._access_token:
            return self._access_token

        credentials = self.config.credentials
        token_data = await self.get_json(
            "POST",
            self.provider_settings["token_url"].format(tenant_id=credentials.tenant_id),
            data={
                "grant_type": "client_credentials",
                "client_id": credentials.client_id,
                "client_secret": credentials.client_secret,
                "resource": self.provider_settings["resource"],
            },
        )

        access_token = token_data.get("access_token") if isinstance(token_data, dict) else None
        if not access_token:
            raise AuthenticationError("PowerBI token response did not contain an access token")

        self._access_token = access_token
        return access_token

    async def _request(self, method: str, url: str) -> Any:
        token = await self.get_access_token()
        return await self.get_json(
            method,
            url,
            headers={"Authorization": f"Bearer {token}", "Content-Type": "application/json"},
        )

    async def test_connection(self) -> bool:
        try:
            await self._request("GET", self.workspace_url)
            return True
        except ProviderError as e:
            logger.error(f"PowerBI connection test failed: {e}")
            return False

    async def fetch_data(self, date_range: Optional[DateRange] = None) -> Dict[str, Any]:
        data = await self.get_workspace_data()
        return data.model_dump(by_alias=True)

    async def get_workspace_data(self) -> PowerBIData:
        """Workspace listings are required; table rows are best effort."""
        datasets = await self._request("GET", f"{self.workspace_url}/datasets")
        reports = await self._request("GET", f"{self.workspace_url}/reports")
        dashboards = await self._request("GET", f"{self.workspace_url}/dashboards")

        return PowerBIData(
            datasets=[
                Dataset(
                    id=item["id"],
                    name=item.get("name") or "",
                    tables=[table["name"] for table in _items(item.get("tables"), "name")],
                    refresh_schedule=item.get("refreshSchedule"),
                )
                for item in _items(datasets)
            ],
            reports=[
                Report(
                    id=item["id"],
                    name=item.get("name") or "",
                    dataset_id=item.get("datasetId"),
                    embed_url=item.get("embedUrl"),
                )
                for item in _items(reports)
            ],
            dashboards=[
                Dashboard(
                    id=item["id"],
                    name=item.get("displayName") or item.get("name") or "",
                    embed_url=item.get("embedUrl"),
                )
                for item in _items(dashboards)
            ],
            data=await self.get_dataset_data(),
        )

    async def get_dataset_data(self) -> List[TableData]:
        try:
            tables = _items(await self._request("GET", f"{self.dataset_url}/tables"), "name")
        except ProviderError as e:
            logger.warning(f"Failed to list PowerBI dataset tables: {e}")
            return []

        data = []
        for table in tables[:MAX_TABLES]:
            name = table["name"]
            try:
                rows = await self._request("GET", f"{self.dataset_url}/tables/{name}/rows?$top={MAX_ROWS}")
                values = (rows.get("value") or [])[:MAX_ROWS]
                data.append(TableData(
                    table=name,
                    rows=values,
                    columns=list(values[0].keys()) if values else [],
                ))
            except SECTION_ERRORS as e:
                logger.warning(f"Failed to fetch data from table {name}: {e}")

        return data

    async def get_report_embed_url(self, report_id: str) -> Optional[str]:
        report = await self._request("GET", f"{self.workspace_url}/reports/{report_id}")
        return report.get("embedUrl") if isinstance(report, dict) else None

    async def get_dashboard_embed_url(self, dashboard_id: str) -> Optional[str]:
        dashboard = await self._request("GET", f"{self.workspace_url}/dashboards/{dashboard_id}")
        return dashboard.get("embedUrl") if isinstance(dashboard, dict) else None

    async def refresh_dataset(self) -> bool:
        """Queue a dataset refresh; False when PowerBI refuses it."""
        try:
            await self._request("POST", f"{self.dataset_url}/refreshes")
            return True
        except ProviderError as e:
            logger.error(f"Failed to refresh PowerBI dataset {self.config.dataset_id}: {e}")
            return False
