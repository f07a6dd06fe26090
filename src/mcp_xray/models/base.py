"""
Base models and utility classes for the MCP Xray API models.

All models serialize with camelCase keys, the shape used on the wire by both
Xray backends and by the tool results returned to MCP callers.
"""

import logging
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)

T = TypeVar("T", bound="ApiModel")


class ApiModel(BaseModel):
    """
    Base model for all API models with common conversion methods.

    Provides from_api_response for building a model out of a raw upstream
    payload and to_simplified_dict for JSON output.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )

    @classmethod
    def from_api_response(cls: type[T], data: dict[str, Any], **kwargs: Any) -> T:
        """
        Convert an API response to a model instance.

        Args:
            data: The API response data
            **kwargs: Additional context parameters

        Returns:
            An instance of the model
        """
        return cls.model_validate(data)

    def to_simplified_dict(self) -> dict[str, Any]:
        """Convert the model to a camelCase dict, leaving out unset values."""
        return self.model_dump(by_alias=True, exclude_none=True)
