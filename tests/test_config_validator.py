"""Tests for static config validation."""

import pytest

from ux_integrations.models import IntegrationType
from ux_integrations.services import ConfigValidator


VALID_CONFIGS = {
    IntegrationType.GOOGLE_ANALYTICS: {"propertyId": "123", "credentials": {"client_email": "x"}},
    IntegrationType.HOTJAR: {"siteId": "42", "accessToken": "tok"},
    IntegrationType.POWERBI: {"workspaceId": "w", "datasetId": "d", "credentials": {}},
    IntegrationType.MIXPANEL: {"projectId": "p", "apiSecret": "s"},
    IntegrationType.AMPLITUDE: {"apiKey": "k", "secretKey": "s"},
    IntegrationType.CUSTOM: {"endpoint": "https://x", "method": "GET", "auth": {"type": "none"}},
    IntegrationType.FIGMA: {"accessToken": "figd_x"},
}


class TestConfigValidator:
    """Test per-provider required keys."""

    @pytest.mark.parametrize("integration_type", list(IntegrationType))
    def test_valid_config(self, integration_type):
        result = ConfigValidator.validate(integration_type, VALID_CONFIGS[integration_type])
        assert result.valid is True
        assert result.errors == []

    def test_missing_keys_are_listed(self):
        result = ConfigValidator.validate(IntegrationType.POWERBI, {"workspaceId": "w"})
        assert result.valid is False
        assert result.errors == ["datasetId is required", "credentials is required"]

    def test_values_are_not_inspected(self):
        """Presence is enough, even for empty values."""
        result = ConfigValidator.validate(IntegrationType.HOTJAR, {"siteId": "", "accessToken": None})
        assert result.valid is True

    def test_figma_accepts_either_key(self):
        assert ConfigValidator.validate(IntegrationType.FIGMA, {"fileUrl": "https://figma.com/file/abc"}).valid
        result = ConfigValidator.validate(IntegrationType.FIGMA, {})
        assert result.valid is False
        assert result.errors == ["One of accessToken, fileUrl is required"]

    def test_unknown_type(self):
        result = ConfigValidator.validate("SEGMENT", {"writeKey": "x"})
        assert result.valid is False
        assert result.errors == ["Unsupported integration type: SEGMENT"]

    def test_raw_type_tag(self):
        assert ConfigValidator.validate("MIXPANEL", {"projectId": "p", "apiSecret": "s"}).valid

    def test_non_object_config(self):
        result = ConfigValidator.validate(IntegrationType.HOTJAR, ["siteId", "accessToken"])
        assert result.valid is False
        assert result.errors == ["Configuration must be an object"]
