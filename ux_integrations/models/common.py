"""Shared model configuration."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Model whose wire form uses camelCase keys.

    Provider configs arrive camelCased from the dashboard and provider data is
    returned to it camelCased; attributes stay snake_case in Python.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        # Numeric ids (GA property, Hotjar site, Mixpanel project) are stored as strings
        coerce_numbers_to_str=True,
    )
