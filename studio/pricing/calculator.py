# studio/pricing/calculator.py
from __future__ import annotations

import math
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Tuple, Union

from pydantic import ValidationError

from studio.pricing.breakdown import LineItem, whole_units
from studio.pricing.errors import ConfigurationGap, InvalidSelection
from studio.pricing.steps import PRICING_STEPS, EstimateContext
from studio.schemas.pricing_config import PricingConfig
from studio.schemas.selection import CustomerSelection

D = Decimal

SelectionLike = Union[CustomerSelection, Mapping[str, Any]]
ConfigLike = Union[PricingConfig, Mapping[str, Any]]


@dataclass(frozen=True)
class EstimateResult:
    total_amount: int
    currency: str
    breakdown: Tuple[LineItem, ...] = field(default_factory=tuple)
    diagnostics: Tuple[ConfigurationGap, ...] = field(default_factory=tuple)

    def included_lines(self) -> List[LineItem]:
        return [ln for ln in self.breakdown if ln.included]

    @property
    def subtotal(self) -> D:
        return sum((ln.amount for ln in self.breakdown if ln.included), D("0.00"))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalAmount": self.total_amount,
            "currency": self.currency,
            "breakdown": [ln.to_dict() for ln in self.breakdown],
            "diagnostics": [g.to_dict() for g in self.diagnostics],
        }


# -----------------------------
# Input validation (hard errors)
# -----------------------------


def _check_quantity(value: Any, field_name: str) -> None:
    try:
        f = float(value)
    except (TypeError, ValueError, OverflowError):
        raise InvalidSelection("INVALID_QUANTITY", f"{field_name} must be a number", field=field_name)
    if not math.isfinite(f):
        raise InvalidSelection("NON_FINITE_QUANTITY", f"{field_name} must be finite", field=field_name)
    if f < 0:
        raise InvalidSelection(
            "NEGATIVE_QUANTITY", f"{field_name} must not be negative", field=field_name,
            meta={"value": f},
        )


def _room_count(value: Any, field_name: str) -> int:
    if isinstance(value, bool):
        raise InvalidSelection("NON_INTEGER_COUNT", f"{field_name} must be an integer", field=field_name)
    try:
        f = float(value)
    except (TypeError, ValueError, OverflowError):
        raise InvalidSelection(
            "NON_INTEGER_COUNT", f"{field_name} must be an integer", field=field_name,
            meta={"value": str(value)[:32]},
        )
    if not math.isfinite(f) or not f.is_integer():
        raise InvalidSelection(
            "NON_INTEGER_COUNT", f"{field_name} must be an integer", field=field_name,
            meta={"value": value},
        )
    if f < 0:
        raise InvalidSelection(
            "NEGATIVE_COUNT", f"{field_name} must not be negative", field=field_name,
            meta={"value": value},
        )
    return int(f)


def validate_selection(selection: CustomerSelection) -> Tuple[int, int]:
    """
    Reject structurally impossible selections.
    Returns the normalized (bedrooms_count, bathrooms_count).
    """
    try:
        area = float(selection.carpet_area)
    except (TypeError, ValueError, OverflowError):
        raise InvalidSelection("NON_FINITE_AREA", "carpetArea must be finite", field="carpetArea")
    if not math.isfinite(area):
        raise InvalidSelection("NON_FINITE_AREA", "carpetArea must be finite", field="carpetArea")
    if area < 0:
        raise InvalidSelection(
            "NEGATIVE_AREA", "carpetArea must not be negative", field="carpetArea",
            meta={"value": area},
        )

    bedrooms = _room_count(selection.bedrooms_count, "bedroomsCount")
    bathrooms = _room_count(selection.bathrooms_count, "bathroomsCount")

    conf = selection.configuration
    for key, qty in conf.living_area.items():
        _check_quantity(qty, f"configuration.livingArea.{key}")
    for key, qty in conf.items.items():
        _check_quantity(qty, f"configuration.items.{key}")
    for key, qty in conf.kitchen.items.items():
        _check_quantity(qty, f"configuration.kitchen.items.{key}")
    _check_quantity(conf.bedroom_options.study_units, "configuration.bedroomOptions.studyUnits")

    for name, rooms in (("bedrooms", conf.bedrooms), ("bathrooms", conf.bathrooms), ("cabins", conf.cabins)):
        for idx, room in enumerate(rooms):
            for key, qty in room.items.items():
                _check_quantity(qty, f"configuration.{name}[{idx}].items.{key}")

    if len(conf.bedrooms) > bedrooms:
        raise InvalidSelection(
            "TOO_MANY_ROOMS",
            f"{len(conf.bedrooms)} bedroom selections for bedroomsCount={bedrooms}",
            field="configuration.bedrooms",
        )
    if len(conf.bathrooms) > bathrooms:
        raise InvalidSelection(
            "TOO_MANY_ROOMS",
            f"{len(conf.bathrooms)} bathroom selections for bathroomsCount={bathrooms}",
            field="configuration.bathrooms",
        )

    return bedrooms, bathrooms


def _as_selection(selection: SelectionLike) -> CustomerSelection:
    if isinstance(selection, CustomerSelection):
        return selection
    try:
        return CustomerSelection.model_validate(selection)
    except ValidationError as e:
        errors = [
            {"loc": ".".join(str(p) for p in err["loc"]), "msg": err["msg"], "type": err["type"]}
            for err in e.errors()
        ]
        raise InvalidSelection("INVALID_SELECTION", "Selection failed validation", meta={"errors": errors}) from e


def _snapshot(config: ConfigLike) -> PricingConfig:
    if isinstance(config, PricingConfig):
        return config.model_copy(deep=True)
    return PricingConfig.model_validate(dict(config))


# -----------------------------
# Public API
# -----------------------------


def compute_estimate(selection: SelectionLike, config: ConfigLike) -> EstimateResult:
    """
    Price a customer selection against a tenant pricing config.

    Pure and deterministic: no I/O, no clock, no shared state. Structurally
    invalid input raises InvalidSelection; configuration gaps (unknown or
    disabled ids) become excluded zero lines plus diagnostics.
    """
    sel = _as_selection(selection)
    bedrooms, bathrooms = validate_selection(sel)

    ctx = EstimateContext(
        selection=sel,
        config=_snapshot(config),
        bedrooms_count=bedrooms,
        bathrooms_count=bathrooms,
    )
    for _name, step in PRICING_STEPS:
        step(ctx)

    return EstimateResult(
        total_amount=whole_units(ctx.breakdown.included_total()),
        currency=ctx.config.currency,
        breakdown=tuple(ctx.breakdown.lines),
        diagnostics=tuple(ctx.diagnostics),
    )
