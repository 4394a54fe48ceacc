# studio/schemas/selection.py
from __future__ import annotations

from typing import Dict, List, Literal, Optional, Union

from pydantic import AliasChoices, ConfigDict, Field

from studio.schemas.common import CamelModel
from studio.schemas.pricing_config import Plan

Segment = Literal["Residential", "Commercial"]

# Counts stay loosely typed on purpose: the calculator owns the
# "non-negative integer" rule and reports it as InvalidSelection.
Count = Union[int, float]


class RoomItems(CamelModel):
    """Per-room catalog selections: item id -> quantity."""

    items: Dict[str, float] = Field(default_factory=dict)


class KitchenSelection(CamelModel):
    layout: Optional[str] = None
    wood_type: Optional[str] = Field(
        None, validation_alias=AliasChoices("woodType", "wood_type", "material")
    )
    add_ons: List[str] = Field(default_factory=list)
    items: Dict[str, float] = Field(default_factory=dict)


class BedroomOptions(CamelModel):
    master_bedroom: bool = False
    wardrobe: bool = True
    study_units: float = 0


class SelectionConfiguration(CamelModel):
    rooms: List[str] = Field(default_factory=list)
    material_grade: Optional[str] = None
    finish_type: Optional[str] = None

    living_area: Dict[str, float] = Field(default_factory=dict)
    items: Dict[str, float] = Field(default_factory=dict)
    kitchen: KitchenSelection = Field(default_factory=KitchenSelection)
    bedroom_options: BedroomOptions = Field(default_factory=BedroomOptions)

    bedrooms: List[RoomItems] = Field(default_factory=list)
    bathrooms: List[RoomItems] = Field(default_factory=list)
    cabins: List[RoomItems] = Field(default_factory=list)


class CustomerSelection(CamelModel):
    """
    What the storefront submits for one estimate request.

    The nested `configuration` is the only representation of room choices;
    flat legacy keys (`bedrooms: 3` at the top level) are rejected.
    """

    model_config = ConfigDict(extra="forbid")

    carpet_area: float = 0.0
    segment: Segment = "Residential"
    plan: Plan = "Standard"
    bedrooms_count: Count = 0
    bathrooms_count: Count = 0
    configuration: SelectionConfiguration = Field(default_factory=SelectionConfiguration)


class CustomerInfo(CamelModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    city: Optional[str] = None
