from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# 0 doubles as "unknown" for every numeric fact
Number = Annotated[int | float, Field(ge=0)]


class Listing(BaseModel):
    """Canonical property record, serialized with camelCase wire names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str = Field(min_length=1)
    title: str = ""
    price: Number = 0
    address: str = ""
    city: str = ""
    state: str = ""
    zip: str = ""
    beds: Number = 0
    baths: Number = 0
    sqft: Number = 0
    lot_sqft: Number = 0
    year_built: Number = 0
    stories: Number = 0
    garage_spaces: Number = 0
    has_rv_parking: bool = False
    has_pool: bool = False
    has_waterfront: bool = False
    has_view: bool = False
    has_basement: bool = False
    has_fireplace: bool = False
    is_new_build: bool = False
    is_fixer: bool = False
    has_adu: bool = False
    hoa_fee: Number = 0
    property_type: str = ""
    photo_url: str = ""
    tags: list[str] = Field(default_factory=list)
    vision_tags: list[str] = Field(default_factory=list)
    source: str
