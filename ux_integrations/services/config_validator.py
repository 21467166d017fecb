"""Static validation of integration configs."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Tuple, Union

from ux_integrations.models import IntegrationType

# A plain key is required; a tuple means "at least one of"
Requirement = Union[str, Tuple[str, ...]]

REQUIRED_FIELDS: Dict[IntegrationType, List[Requirement]] = {
    IntegrationType.GOOGLE_ANALYTICS: ["propertyId", "credentials"],
    IntegrationType.HOTJAR: ["siteId", "accessToken"],
    IntegrationType.POWERBI: ["workspaceId", "datasetId", "credentials"],
    IntegrationType.MIXPANEL: ["projectId", "apiSecret"],
    IntegrationType.AMPLITUDE: ["apiKey", "secretKey"],
    IntegrationType.CUSTOM: ["endpoint", "method", "auth"],
    IntegrationType.FIGMA: [("accessToken", "fileUrl")],
}


@dataclass
class ValidationResult:
    valid: bool
    errors: List[str] = field(default_factory=list)


class ConfigValidator:
    """Checks that a config carries the keys its provider needs.

    Only key presence is checked; values are neither inspected nor coerced and
    nothing is sent over the network.
    """

    @staticmethod
    def validate(integration_type: Any, config: Any) -> ValidationResult:
        try:
            requirements = REQUIRED_FIELDS[IntegrationType(integration_type)]
        except (ValueError, KeyError):
            return ValidationResult(False, [f"Unsupported integration type: {integration_type}"])

        if not isinstance(config, Mapping):
            return ValidationResult(False, ["Configuration must be an object"])

        errors = []
        for requirement in requirements:
            if isinstance(requirement, tuple):
                if not any(key in config for key in requirement):
                    errors.append(f"One of {', '.join(requirement)} is required")
            elif requirement not in config:
                errors.append(f"{requirement} is required")

        return ValidationResult(not errors, errors)
