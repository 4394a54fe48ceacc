# studio/schemas/pricing_config.py
from __future__ import annotations

import re
from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import Field, field_validator

from studio.schemas.common import CamelModel

Plan = Literal["Basic", "Standard", "Luxe"]
CatalogItemType = Literal["fixed", "perUnit", "perSqft"]

PLAN_PRICE_FIELD: Dict[str, str] = {
    "Basic": "basic_price",
    "Standard": "standard_price",
    "Luxe": "luxe_price",
}


def _ensure_unique_ids(items: list, what: str) -> list:
    seen = set()
    for it in items:
        key = getattr(it, "id", None)
        if key is None:
            key = getattr(it, "count", None)
        if key in seen:
            raise ValueError(f"duplicate {what} id: {key!r}")
        seen.add(key)
    return items


def humanize_key(key: str) -> str:
    """tvUnit -> 'Tv Unit', falseCeiling -> 'False Ceiling'."""
    spaced = re.sub(r"([A-Z])", r" \1", key).replace("_", " ").strip()
    return " ".join(w[:1].upper() + w[1:] for w in spaced.split())


# -----------------------------
# Rate card (room base rates + multipliers)
# -----------------------------


class RoomRate(CamelModel):
    id: str
    name: str
    rate: float = Field(0.0, ge=0)
    enabled: bool = True


class MultiplierOption(CamelModel):
    id: str
    name: str
    multiplier: float = Field(1.0, ge=0)
    # older documents have no flag at all => treat as enabled
    enabled: bool = True


# -----------------------------
# Living area / kitchen / bedrooms
# -----------------------------


class LivingAreaOption(CamelModel):
    enabled: bool = True
    price: float = Field(0.0, ge=0)
    name: Optional[str] = None


class KitchenLayout(CamelModel):
    id: str
    name: str
    base_price: float = Field(0.0, ge=0)
    enabled: bool = True


class KitchenAddOn(CamelModel):
    id: str
    name: str
    price: float = Field(0.0, ge=0)
    enabled: bool = True


class KitchenPricing(CamelModel):
    wood_types: List[MultiplierOption] = Field(default_factory=list)
    layouts: List[KitchenLayout] = Field(default_factory=list)
    add_ons: List[KitchenAddOn] = Field(default_factory=list)

    @field_validator("wood_types")
    @classmethod
    def _unique_wood_types(cls, v):
        return _ensure_unique_ids(v, "wood type")

    @field_validator("layouts")
    @classmethod
    def _unique_layouts(cls, v):
        return _ensure_unique_ids(v, "kitchen layout")

    @field_validator("add_ons")
    @classmethod
    def _unique_add_ons(cls, v):
        return _ensure_unique_ids(v, "kitchen add-on")


class BedroomCountPrice(CamelModel):
    count: int = Field(..., ge=0)
    base_price: float = Field(0.0, ge=0)
    enabled: bool = True


class MasterBedroomPricing(CamelModel):
    enabled: bool = False
    additional_price: float = Field(0.0, ge=0)


class WardrobePricing(CamelModel):
    enabled: bool = False
    price_per_bedroom: float = Field(0.0, ge=0)


class StudyUnitPricing(CamelModel):
    enabled: bool = False
    price_per_unit: float = Field(0.0, ge=0)


class BedroomPricing(CamelModel):
    counts: List[BedroomCountPrice] = Field(default_factory=list)
    master_bedroom: MasterBedroomPricing = Field(default_factory=MasterBedroomPricing)
    wardrobe: WardrobePricing = Field(default_factory=WardrobePricing)
    study_unit: StudyUnitPricing = Field(default_factory=StudyUnitPricing)

    @field_validator("counts")
    @classmethod
    def _unique_counts(cls, v):
        return _ensure_unique_ids(v, "bedroom count")


# -----------------------------
# Plan-tiered catalog
# -----------------------------


class CatalogItem(CamelModel):
    id: str
    name: str
    type: CatalogItemType = "fixed"
    basic_price: float = Field(0.0, ge=0)
    standard_price: float = Field(0.0, ge=0)
    luxe_price: float = Field(0.0, ge=0)
    enabled: bool = True

    def price_for(self, plan: str) -> float:
        return float(getattr(self, PLAN_PRICE_FIELD.get(plan, "standard_price")))


class CatalogCategory(CamelModel):
    id: str
    name: str
    type: Optional[Literal["residential", "commercial"]] = None
    order: int = 0
    items: List[CatalogItem] = Field(default_factory=list)

    @field_validator("items")
    @classmethod
    def _unique_items(cls, v):
        return _ensure_unique_ids(v, "catalog item")

    def find(self, item_id: str) -> Optional[CatalogItem]:
        for it in self.items:
            if it.id == item_id:
                return it
        return None


# -----------------------------
# Root document
# -----------------------------


class PricingConfig(CamelModel):
    """
    Per-tenant pricing document. Always handed to the calculator as a fully
    materialized value, never as a live reference into storage.
    """

    room_pricing: List[RoomRate] = Field(default_factory=list)
    material_grades: List[MultiplierOption] = Field(default_factory=list)
    finish_types: List[MultiplierOption] = Field(default_factory=list)
    living_area: Dict[str, LivingAreaOption] = Field(default_factory=dict)
    kitchen: KitchenPricing = Field(default_factory=KitchenPricing)
    bedrooms: BedroomPricing = Field(default_factory=BedroomPricing)
    categories: List[CatalogCategory] = Field(default_factory=list)

    currency: str = "INR"
    last_updated: Optional[datetime] = None

    @field_validator("room_pricing")
    @classmethod
    def _unique_rooms(cls, v):
        return _ensure_unique_ids(v, "room")

    @field_validator("material_grades")
    @classmethod
    def _unique_grades(cls, v):
        return _ensure_unique_ids(v, "material grade")

    @field_validator("finish_types")
    @classmethod
    def _unique_finishes(cls, v):
        return _ensure_unique_ids(v, "finish type")

    @field_validator("categories")
    @classmethod
    def _unique_categories(cls, v):
        return _ensure_unique_ids(v, "category")

    # --- lookups (first match wins; ids are unique anyway) ---

    def room(self, room_id: str) -> Optional[RoomRate]:
        return next((r for r in self.room_pricing if r.id == room_id), None)

    def material_grade(self, grade_id: str) -> Optional[MultiplierOption]:
        return next((g for g in self.material_grades if g.id == grade_id), None)

    def finish_type(self, finish_id: str) -> Optional[MultiplierOption]:
        return next((f for f in self.finish_types if f.id == finish_id), None)

    def category(self, *ids_or_names: str) -> Optional[CatalogCategory]:
        """Find a category by id, falling back to a case-insensitive name match."""
        for key in ids_or_names:
            for c in self.categories:
                if c.id == key:
                    return c
        for key in ids_or_names:
            for c in self.categories:
                if c.name.strip().lower() == key.replace("_", " ").lower():
                    return c
        return None
