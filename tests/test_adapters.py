"""Tests for provider adapters against mocked provider APIs."""

import base64
import json

import httpx
import pytest
from unittest.mock import AsyncMock, patch

from conftest import mock_client
from ux_integrations.integrations import (
    AmplitudeAdapter,
    AuthenticationError,
    ConfigurationError,
    CustomAdapter,
    FigmaAdapter,
    GoogleAnalyticsAdapter,
    HotjarAdapter,
    MixpanelAdapter,
    PowerBIAdapter,
    ProviderError,
    RateLimitError,
)
from ux_integrations.integrations.figma import parse_file_key
from ux_integrations.integrations.mixpanel import build_funnel_steps, retention_cohort
from ux_integrations.utils.dates import DateRange


WINDOW = DateRange(start="2024-03-01", end="2024-03-31")


class TestBaseAdapter:
    """Test shared request handling."""

    @pytest.mark.asyncio
    async def test_status_mapping(self):
        statuses = {"/unauthorized": 401, "/forbidden": 403, "/limited": 429, "/broken": 500}

        def handler(request):
            return httpx.Response(statuses[request.url.path])

        adapter = CustomAdapter({"endpoint": "https://x", "method": "GET"}, http_client=mock_client(handler))

        with pytest.raises(AuthenticationError):
            await adapter.make_api_request("GET", "https://api.example.com/unauthorized")
        with pytest.raises(AuthenticationError):
            await adapter.make_api_request("GET", "https://api.example.com/forbidden")
        with pytest.raises(RateLimitError):
            await adapter.make_api_request("GET", "https://api.example.com/limited")
        with pytest.raises(ProviderError) as exc_info:
            await adapter.make_api_request("GET", "https://api.example.com/broken")
        assert "500" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_transport_error_is_provider_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        adapter = CustomAdapter({"endpoint": "https://x", "method": "GET"}, http_client=mock_client(handler))
        with pytest.raises(ProviderError):
            await adapter.make_api_request("GET", "https://api.example.com/")

    @pytest.mark.asyncio
    async def test_rate_limiter_blocks_before_request(self):
        handler = AsyncMock()
        limiter = AsyncMock()
        limiter.check_rate_limit.return_value = False

        adapter = HotjarAdapter(
            {"siteId": "1", "accessToken": "tok"},
            http_client=mock_client(handler),
            rate_limiter=limiter,
        )
        with pytest.raises(RateLimitError):
            await adapter.make_api_request("GET", adapter.site_url)

        limiter.check_rate_limit.assert_awaited_once_with("HOTJAR", limit=100, window=60)
        handler.assert_not_called()

    @pytest.mark.asyncio
    async def test_non_json_body(self):
        adapter = HotjarAdapter(
            {"siteId": "1", "accessToken": "tok"},
            http_client=mock_client(lambda request: httpx.Response(200, text="<html>")),
        )
        with pytest.raises(ProviderError):
            await adapter.get_json("GET", adapter.site_url)


class TestGoogleAnalyticsAdapter:
    """Test GA4 report aggregation."""

    @pytest.mark.asyncio
    async def test_ranked_report_failure_degrades(self):
        def handler(request):
            assert request.url.path == "/v1beta/properties/1234:runReport"
            body = json.loads(request.content)
            if "dimensions" not in body:
                return httpx.Response(200, json={"rows": [{"metricValues": [
                    {"value": "1500"}, {"value": "300"}, {"value": "420"},
                    {"value": "0.45"}, {"value": "87.5"},
                ]}]})
            if body["dimensions"][0]["name"] == "pagePath":
                return httpx.Response(500)
            return httpx.Response(200, json={"rows": [
                {"dimensionValues": [{"value": "google"}], "metricValues": [{"value": "200"}]},
            ]})

        adapter = GoogleAnalyticsAdapter(
            {"propertyId": 1234, "credentials": {}},
            http_client=mock_client(handler),
        )
        with patch.object(adapter, "_get_access_token", AsyncMock(return_value="ya29.token")):
            data = await adapter.fetch_data(WINDOW)

        assert data["pageViews"] == 1500
        assert data["uniqueUsers"] == 300
        assert data["sessions"] == 420
        assert data["bounceRate"] == 0.45
        assert data["avgSessionDuration"] == 87.5
        assert data["topPages"] == []
        assert data["topSources"] == [{"source": "google", "sessions": 200}]

    @pytest.mark.asyncio
    async def test_main_report_failure_fails_fetch(self):
        adapter = GoogleAnalyticsAdapter(
            {"propertyId": "1234", "credentials": {}},
            http_client=mock_client(lambda request: httpx.Response(403)),
        )
        with patch.object(adapter, "_get_access_token", AsyncMock(return_value="ya29.token")):
            with pytest.raises(AuthenticationError):
                await adapter.fetch_data(WINDOW)
            assert await adapter.test_connection() is False

    @pytest.mark.asyncio
    async def test_bad_service_account(self):
        adapter = GoogleAnalyticsAdapter({"propertyId": "1", "credentials": {"type": "service_account"}})
        async with adapter:
            with pytest.raises(ConfigurationError):
                await adapter.fetch_data(WINDOW)


class TestHotjarAdapter:
    """Test Hotjar site aggregation."""

    @pytest.mark.asyncio
    async def test_failed_part_degrades_alone(self):
        seen_auth = set()

        def handler(request):
            seen_auth.add(request.headers["Authorization"])
            path = request.url.path
            if path.endswith("/count"):
                return httpx.Response(200, json={"count": 3})
            if path.endswith("/feedback"):
                return httpx.Response(500)
            if path.endswith("/pages"):
                return httpx.Response(200, json={"data": [
                    {"page": f"/page-{i}", "recordings": i, "heatmaps": 1} for i in range(12)
                ]})
            if path.endswith("/behavior"):
                return httpx.Response(200, json={"avgSessionDuration": 30, "bounceRate": 0.4})
            return httpx.Response(404)

        adapter = HotjarAdapter({"siteId": "42", "accessToken": "tok"}, http_client=mock_client(handler))
        data = await adapter.fetch_data()

        assert seen_auth == {"Bearer tok"}
        assert data["recordings"] == 3
        assert data["polls"] == 3
        assert data["userFeedback"] == []
        assert len(data["topPages"]) == 10
        assert data["topPages"][0] == {"page": "/page-0", "recordings": 0, "heatmaps": 1}
        assert data["userBehavior"] == {"avgSessionDuration": 30, "bounceRate": 0.4, "conversionRate": 0}

    @pytest.mark.asyncio
    async def test_everything_failing_still_returns_snapshot(self):
        adapter = HotjarAdapter(
            {"siteId": "42", "accessToken": "tok"},
            http_client=mock_client(lambda request: httpx.Response(503)),
        )
        data = await adapter.fetch_data()
        assert data["recordings"] == 0
        assert data["userFeedback"] == []
        assert data["topPages"] == []

    @pytest.mark.asyncio
    async def test_unexpected_payload_shape_degrades_alone(self):
        def handler(request):
            path = request.url.path
            if path.endswith("/recordings/count"):
                return httpx.Response(200, json={"count": "n/a"})
            if path.endswith("/count"):
                return httpx.Response(200, json={"count": 4})
            if path.endswith("/feedback"):
                return httpx.Response(200, json={"data": [{"message": "hi", "rating": "great"}]})
            if path.endswith("/pages"):
                return httpx.Response(200, json={"data": {"page": "/home"}})
            if path.endswith("/behavior"):
                return httpx.Response(200, json=["not", "an", "object"])
            return httpx.Response(404)

        adapter = HotjarAdapter({"siteId": "42", "accessToken": "tok"}, http_client=mock_client(handler))
        data = await adapter.fetch_data()

        assert data["recordings"] == 0
        assert data["heatmaps"] == 4
        assert data["userFeedback"] == []
        assert data["topPages"] == []
        assert data["userBehavior"] == {"avgSessionDuration": 0, "bounceRate": 0, "conversionRate": 0}

    @pytest.mark.asyncio
    async def test_connection(self):
        def handler(request):
            assert request.url.path == "/api/v1/sites/42"
            return httpx.Response(200, json={"id": 42})

        adapter = HotjarAdapter({"siteId": "42", "accessToken": "tok"}, http_client=mock_client(handler))
        assert await adapter.test_connection() is True


class TestPowerBIAdapter:
    """Test PowerBI workspace reads."""

    CONFIG = {
        "workspaceId": "ws",
        "datasetId": "ds",
        "credentials": {"clientId": "cid", "clientSecret": "secret", "tenantId": "tenant"},
    }

    @staticmethod
    def handler(calls):
        def handle(request):
            calls.append(request)
            path = request.url.path
            if request.url.host == "login.microsoftonline.com":
                assert path == "/tenant/oauth2/token"
                return httpx.Response(200, json={"access_token": "aad-token"})

            assert request.headers["Authorization"] == "Bearer aad-token"
            if path.endswith("/groups/ws/datasets"):
                return httpx.Response(200, json={"value": [
                    {"id": "ds", "name": "Sales", "tables": [{"name": "Orders"}]},
                ]})
            if path.endswith("/groups/ws/reports"):
                return httpx.Response(200, json={"value": [
                    {"id": "r1", "name": "Overview", "datasetId": "ds", "embedUrl": "https://embed/r1"},
                ]})
            if path.endswith("/groups/ws/dashboards"):
                return httpx.Response(200, json={"value": [{"id": "d1", "displayName": "Main"}]})
            if path.endswith("/datasets/ds/tables"):
                return httpx.Response(200, json={"value": [{"name": f"T{i}"} for i in range(7)]})
            if path.endswith("/rows"):
                table = path.split("/")[-2]
                if table == "T2":
                    return httpx.Response(500)
                return httpx.Response(200, json={"value": [{"id": i, "total": i * 2} for i in range(150)]})
            return httpx.Response(404)
        return handle

    @pytest.mark.asyncio
    async def test_workspace_data(self):
        calls = []
        adapter = PowerBIAdapter(self.CONFIG, http_client=mock_client(self.handler(calls)))
        data = await adapter.fetch_data()

        assert data["datasets"] == [{"id": "ds", "name": "Sales", "tables": ["Orders"], "refreshSchedule": None}]
        assert data["reports"][0]["embedUrl"] == "https://embed/r1"
        assert data["dashboards"][0]["name"] == "Main"

        # First five tables only, the failing one skipped
        assert [table["table"] for table in data["data"]] == ["T0", "T1", "T3", "T4"]
        for table in data["data"]:
            assert len(table["rows"]) == 100
            assert table["columns"] == ["id", "total"]

        token_calls = [call for call in calls if call.url.host == "login.microsoftonline.com"]
        assert len(token_calls) == 1
        form = dict(pair.split("=", 1) for pair in token_calls[0].content.decode().split("&"))
        assert form["grant_type"] == "client_credentials"
        assert form["client_id"] == "cid"

    @pytest.mark.asyncio
    async def test_malformed_items_are_skipped(self):
        def handler(request):
            path = request.url.path
            if request.url.host == "login.microsoftonline.com":
                return httpx.Response(200, json={"access_token": "aad-token"})
            if path.endswith("/groups/ws/datasets"):
                return httpx.Response(200, json={"value": [
                    {"name": "No id"},
                    "junk",
                    {"id": "ds", "name": "Sales", "tables": [{"rows": 3}, {"name": "Orders"}]},
                ]})
            if path.endswith("/groups/ws/reports"):
                return httpx.Response(200, json={"value": {"id": "r1"}})
            if path.endswith("/groups/ws/dashboards"):
                return httpx.Response(200, json={"value": [{"id": "d1", "name": None}]})
            if path.endswith("/datasets/ds/tables"):
                return httpx.Response(200, json={"value": [{"name": "Broken"}, {"name": "Orders"}]})
            if path.endswith("/tables/Broken/rows"):
                return httpx.Response(200, json={"value": ["not", "rows"]})
            if path.endswith("/tables/Orders/rows"):
                return httpx.Response(200, json={"value": [{"id": 1}]})
            return httpx.Response(404)

        adapter = PowerBIAdapter(self.CONFIG, http_client=mock_client(handler))
        data = await adapter.fetch_data()

        assert data["datasets"] == [{"id": "ds", "name": "Sales", "tables": ["Orders"], "refreshSchedule": None}]
        assert data["reports"] == []
        assert data["dashboards"] == [{"id": "d1", "name": "", "embedUrl": None}]
        assert data["data"] == [{"table": "Orders", "rows": [{"id": 1}], "columns": ["id"]}]

    @pytest.mark.asyncio
    async def test_token_without_access_token(self):
        adapter = PowerBIAdapter(
            self.CONFIG,
            http_client=mock_client(lambda request: httpx.Response(200, json={"token_type": "Bearer"})),
        )
        with pytest.raises(AuthenticationError):
            await adapter.get_access_token()

    @pytest.mark.asyncio
    async def test_listing_failure_fails_fetch(self):
        def handler(request):
            if request.url.host == "login.microsoftonline.com":
                return httpx.Response(200, json={"access_token": "aad-token"})
            return httpx.Response(500)

        adapter = PowerBIAdapter(self.CONFIG, http_client=mock_client(handler))
        with pytest.raises(ProviderError):
            await adapter.fetch_data()
        assert await adapter.refresh_dataset() is False


class TestMixpanelAdapter:
    """Test Mixpanel aggregation."""

    def test_funnel_steps(self):
        steps = build_funnel_steps(["Visit", "Signup", "Purchase"], [200, 50, 10])
        assert [step.conversion_rate for step in steps] == [100.0, 25.0, 5.0]
        assert [step.conversion_rate for step in build_funnel_steps(["A", "B"], [0, 0])] == [0.0, 0.0]

    def test_retention_cohort(self):
        counts = [200] + [100] * 6 + [50] + [20] * 30
        cohort = retention_cohort("2024-03-01", 200, counts)
        assert (cohort.day1, cohort.day7, cohort.day30) == (50.0, 25.0, 10.0)
        assert retention_cohort("2024-03-02", 0, []).day1 == 0

    @pytest.mark.asyncio
    async def test_fetch_data(self):
        expected_auth = "Basic " + base64.b64encode(b"secret:").decode()

        def handler(request):
            assert request.headers["Authorization"] == expected_auth
            assert request.url.params["project_id"] == "99"
            path = request.url.path
            if path == "/api/2.0/events/top":
                assert request.url.params["from_date"] == "2024-03-01"
                return httpx.Response(200, json={"events": [
                    {"event": "Signup", "amount": 40},
                    {"event": "Login", "amount": 120},
                ]})
            if path == "/api/2.0/funnels/list":
                return httpx.Response(200, json=[{"funnel_id": 7, "name": "Onboarding"}])
            if path == "/api/2.0/funnels":
                return httpx.Response(200, json={"data": {
                    "2024-03-01": {"steps": [{"event": "Visit", "count": 60}, {"event": "Signup", "count": 20}]},
                    "2024-03-02": {"steps": [{"event": "Visit", "count": 40}, {"event": "Signup", "count": 5}]},
                }})
            return httpx.Response(500)

        adapter = MixpanelAdapter({"projectId": 99, "apiSecret": "secret"}, http_client=mock_client(handler))
        data = await adapter.fetch_data(WINDOW)

        assert [event["event"] for event in data["topEvents"]] == ["Signup", "Login"]
        assert data["events"][1]["count"] == 120
        assert data["users"] == {"total": 0, "active": 0, "new": 0}
        assert data["retention"] == []
        assert data["funnels"] == [{"name": "Onboarding", "steps": [
            {"step": "Visit", "count": 100, "conversionRate": 100.0},
            {"step": "Signup", "count": 25, "conversionRate": 25.0},
        ]}]

    @pytest.mark.asyncio
    async def test_malformed_sections_degrade(self):
        def handler(request):
            path = request.url.path
            if path == "/api/2.0/events/top":
                return httpx.Response(200, json={"events": ["junk", {"event": "Login", "count": 3}]})
            if path == "/api/2.0/events/properties":
                return httpx.Response(200, json={"data": ["not", "a", "mapping"]})
            if path == "/api/2.0/funnels/list":
                return httpx.Response(200, json=[{"funnel_id": 7}])
            if path == "/api/2.0/funnels":
                return httpx.Response(200, json={"data": {"2024-03-01": {"steps": "none"}}})
            if path == "/api/2.0/retention":
                return httpx.Response(200, json=[1, 2, 3])
            return httpx.Response(404)

        adapter = MixpanelAdapter({"projectId": "99", "apiSecret": "secret"}, http_client=mock_client(handler))
        data = await adapter.fetch_data(WINDOW)

        assert [event["event"] for event in data["topEvents"]] == ["Login"]
        assert data["users"] == {"total": 0, "active": 0, "new": 0}
        assert data["funnels"] == []
        assert data["retention"] == []

    @pytest.mark.asyncio
    async def test_top_events_are_required(self):
        adapter = MixpanelAdapter(
            {"projectId": "99", "apiSecret": "secret"},
            http_client=mock_client(lambda request: httpx.Response(401)),
        )
        with pytest.raises(AuthenticationError):
            await adapter.fetch_data(WINDOW)


class TestAmplitudeAdapter:
    """Test Amplitude aggregation."""

    @pytest.mark.asyncio
    async def test_fetch_data(self):
        def handler(request):
            path = request.url.path
            if path == "/api/2/events/segmentation":
                assert request.url.params["start"] == "20240301"
                assert json.loads(request.url.params["e"]) == {"event_type": "_all"}
                return httpx.Response(200, json={"data": [
                    {"event_type": f"event-{i}", "count": i} for i in range(15)
                ]})
            if path == "/api/2/users/segmentation":
                return httpx.Response(200, json={"data": {
                    "total": 500, "active": 120, "new": 30, "returning": 90,
                    "user_properties": [{"property": "plan", "values": [{"value": "pro", "count": 12}]}],
                }})
            if path == "/api/2/retention":
                return httpx.Response(200, json={"data": {"series": [{"values": {
                    "2024-03-01": [{"count": 100, "outof": 100}] + [{"count": 40, "outof": 100}] * 30,
                }}]}})
            if path == "/api/2/funnels":
                assert request.url.params.get_list("e") == [
                    json.dumps({"event_type": "Visit"}),
                    json.dumps({"event_type": "Purchase"}),
                ]
                return httpx.Response(200, json={"data": [{"cumulativeRaw": [80, 20]}]})
            return httpx.Response(404)

        adapter = AmplitudeAdapter(
            {"apiKey": "key", "secretKey": "secret", "funnelEvents": ["Visit", "Purchase"]},
            http_client=mock_client(handler),
        )
        data = await adapter.fetch_data(WINDOW)

        assert len(data["events"]) == 10
        assert data["users"]["returning"] == 90
        assert data["userProperties"] == [{"property": "plan", "values": [{"value": "pro", "count": 12}]}]
        assert data["retention"] == [{"cohort": "2024-03-01", "day1": 40.0, "day7": 40.0, "day30": 40.0}]
        assert data["funnels"][0]["name"] == "Visit > Purchase"
        assert data["funnels"][0]["steps"][1]["conversionRate"] == 25.0

    @pytest.mark.asyncio
    async def test_secondary_sections_degrade(self):
        def handler(request):
            if request.url.path == "/api/2/events/segmentation":
                return httpx.Response(200, json={"data": []})
            return httpx.Response(500)

        adapter = AmplitudeAdapter({"apiKey": "key", "secretKey": "secret"}, http_client=mock_client(handler))
        data = await adapter.fetch_data(WINDOW)
        assert data["users"]["total"] == 0
        assert data["retention"] == []
        assert data["funnels"] == []

    @pytest.mark.asyncio
    async def test_malformed_sections_degrade(self):
        def handler(request):
            path = request.url.path
            if path == "/api/2/events/segmentation":
                return httpx.Response(200, json={"data": [7, {"event_type": "Visit", "count": 5}]})
            if path == "/api/2/users/segmentation":
                return httpx.Response(200, json={"data": {"total": 10, "user_properties": ["plan"]}})
            if path == "/api/2/retention":
                return httpx.Response(200, json={"data": {"series": [{"values": {"2024-03-01": 12}}]}})
            if path == "/api/2/funnels":
                return httpx.Response(200, json={"data": [{"cumulativeRaw": [10, "many"]}]})
            return httpx.Response(404)

        adapter = AmplitudeAdapter(
            {"apiKey": "key", "secretKey": "secret", "funnelEvents": ["Visit", "Purchase"]},
            http_client=mock_client(handler),
        )
        data = await adapter.fetch_data(WINDOW)

        assert [event["event"] for event in data["topEvents"]] == ["Visit"]
        assert data["users"]["total"] == 0
        assert data["userProperties"] == []
        assert data["retention"] == []
        assert data["funnels"] == []


class TestCustomAdapter:
    """Test user-defined endpoints."""

    @staticmethod
    def adapter(handler, **config):
        base = {"endpoint": "https://api.example.com/metrics", "method": "GET"}
        return CustomAdapter({**base, **config}, http_client=mock_client(handler))

    @pytest.mark.asyncio
    async def test_auth_headers(self):
        basic = self.adapter(None, auth={"type": "basic", "credentials": {"username": "user", "password": "pass"}})
        headers = await basic.build_headers("GET")
        assert headers["Authorization"] == "Basic " + base64.b64encode(b"user:pass").decode()

        bearer = self.adapter(None, auth={"type": "bearer", "credentials": {"token": "abc"}})
        assert (await bearer.build_headers("GET"))["Authorization"] == "Bearer abc"

        api_key = self.adapter(None, auth={"type": "api_key", "credentials": {"key": "k1"}})
        assert (await api_key.build_headers("GET"))["X-API-Key"] == "k1"

        named = self.adapter(None, auth={"type": "api_key", "credentials": {"key": "k1", "headerName": "X-Token"}})
        assert (await named.build_headers("GET"))["X-Token"] == "k1"

        oauth = self.adapter(None, auth={"type": "oauth2", "credentials": {"accessToken": "at"}})
        assert (await oauth.build_headers("GET"))["Authorization"] == "Bearer at"

    @pytest.mark.asyncio
    async def test_content_type_for_body_methods(self):
        adapter = self.adapter(None, headers={"X-Trace": "1"})
        assert "Content-Type" not in await adapter.build_headers("GET")
        headers = await adapter.build_headers("POST")
        assert headers == {"X-Trace": "1", "Content-Type": "application/json"}

    @pytest.mark.asyncio
    async def test_missing_credential(self):
        adapter = self.adapter(None, auth={"type": "bearer", "credentials": {}})
        with pytest.raises(ConfigurationError):
            await adapter.build_headers("GET")

    @pytest.mark.asyncio
    async def test_oauth_client_credentials_cached(self):
        token_requests = []

        def handler(request):
            if request.url.path == "/oauth/token":
                token_requests.append(request)
                return httpx.Response(200, json={"access_token": "exchanged"})
            assert request.headers["Authorization"] == "Bearer exchanged"
            return httpx.Response(200, json={"ok": True})

        adapter = self.adapter(handler, auth={"type": "oauth2", "credentials": {
            "clientId": "cid", "clientSecret": "cs", "tokenUrl": "https://auth.example.com/oauth/token",
        }})
        await adapter.fetch_data()
        await adapter.fetch_data()
        assert len(token_requests) == 1

    @pytest.mark.asyncio
    async def test_response_mapping(self):
        def handler(request):
            assert request.url.params["page"] == "1"
            return httpx.Response(200, json={"ok": True, "result": {"items": [{"id": 7}]}})

        adapter = self.adapter(
            handler,
            params={"page": 1},
            responseMapping={"success": "ok", "data": "result.items[0].id", "error": "error.message"},
        )
        assert await adapter.fetch_data() == {"success": True, "data": 7, "error": None}

    @pytest.mark.asyncio
    async def test_unmapped_body_and_empty_object(self):
        adapter = self.adapter(lambda request: httpx.Response(200, json={}))
        assert await adapter.test_connection() is True
        assert await adapter.fetch_data() == {}

    @pytest.mark.asyncio
    async def test_send_posts_payload(self):
        def handler(request):
            assert request.method == "POST"
            assert json.loads(request.content) == {"event": "ping"}
            return httpx.Response(201, json={"received": True})

        adapter = self.adapter(handler)
        assert await adapter.send("POST", {"event": "ping"}) == {"received": True}

    @pytest.mark.asyncio
    async def test_validate_endpoint(self):
        ok = self.adapter(lambda request: httpx.Response(204))
        assert await ok.validate_endpoint() == {"valid": True, "status": 204}

        denied = self.adapter(lambda request: httpx.Response(401))
        result = await denied.validate_endpoint()
        assert result["valid"] is False
        assert "401" in result["error"]
        assert await denied.test_connection() is False


class TestFigmaAdapter:
    """Test Figma file reads."""

    def test_parse_file_key(self):
        assert parse_file_key("https://www.figma.com/file/AbC123/Landing-page") == "AbC123"
        assert parse_file_key("https://www.figma.com/design/XyZ789/App?node-id=1") == "XyZ789"
        assert parse_file_key("https://example.com/file/AbC123") is None

    @pytest.mark.asyncio
    async def test_fetch_file(self):
        def handler(request):
            assert request.headers["X-Figma-Token"] == "figd_token"
            assert request.url.path == "/v1/files/AbC123"
            assert request.url.params["depth"] == "1"
            return httpx.Response(200, json={
                "name": "Landing page",
                "lastModified": "2024-03-01T10:00:00Z",
                "version": "42",
                "document": {"children": [{"id": "0:1", "name": "Cover"}, {"id": "0:2", "name": "Flows"}]},
                "components": {"1:1": {}, "1:2": {}},
                "styles": {},
            })

        adapter = FigmaAdapter(
            {"accessToken": "figd_token", "fileUrl": "https://www.figma.com/file/AbC123/Landing-page"},
            http_client=mock_client(handler),
        )
        data = await adapter.fetch_data()
        assert data["fileKey"] == "AbC123"
        assert [page["name"] for page in data["pages"]] == ["Cover", "Flows"]
        assert data["componentCount"] == 2
        assert data["styleCount"] == 0

    @pytest.mark.asyncio
    async def test_requires_token(self):
        adapter = FigmaAdapter({"fileUrl": "https://www.figma.com/file/AbC123/x"}, http_client=mock_client(None))
        with pytest.raises(ConfigurationError):
            await adapter.fetch_data()
