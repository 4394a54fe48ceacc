from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """
    Base for documents shared with the storefront/admin frontend.
    The frontend writes camelCase keys (roomPricing, basePrice, ...);
    Python code uses snake_case attributes. Both spellings are accepted on input.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_document(self) -> dict:
        """JSON-safe dict with the frontend's camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)
