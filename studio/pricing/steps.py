# studio/pricing/steps.py
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional, Tuple

from studio.pricing.breakdown import Breakdown, ExclusionTag, Section
from studio.pricing.errors import ConfigurationGap
from studio.schemas.pricing_config import (
    CatalogCategory,
    MultiplierOption,
    PricingConfig,
    humanize_key,
)
from studio.schemas.selection import CustomerSelection, RoomItems

D = Decimal
ONE = D("1")

# Categories priced per room (or by the kitchen step); everything else is "general".
ROOM_CATEGORY_IDS = ("kitchen", "bedroom", "bathroom", "commercial_bathroom", "cabin")


def _d(x: Any) -> D:
    return x if isinstance(x, Decimal) else D(str(x))


# -----------------------------
# Per-run context
# -----------------------------


@dataclass
class EstimateContext:
    """
    Execution context for one compute_estimate call.
    Holds a private config snapshot; nothing here outlives the call.
    """

    selection: CustomerSelection
    config: PricingConfig
    bedrooms_count: int = 0
    bathrooms_count: int = 0

    breakdown: Breakdown = field(default_factory=Breakdown)
    diagnostics: List[ConfigurationGap] = field(default_factory=list)

    @property
    def plan(self) -> str:
        return self.selection.plan

    @property
    def carpet_area(self) -> D:
        return _d(self.selection.carpet_area)

    def gap(self, code: str, message: str, **meta: Any) -> None:
        self.diagnostics.append(ConfigurationGap(code=code, message=message, meta=meta))


StepFn = Callable[[EstimateContext], None]


def _multiplier(
    ctx: EstimateContext,
    kind: str,
    selected_id: Optional[str],
    option: Optional[MultiplierOption],
) -> D:
    """Resolve a multiplier; disabled or unknown ids degrade to 1.0, never 0."""
    if not selected_id:
        return ONE
    code = kind.upper().replace(" ", "_")
    if option is None:
        ctx.gap(f"{code}_UNKNOWN", f"Unknown {kind} '{selected_id}', using 1.0", id=selected_id)
        return ONE
    if not option.enabled:
        ctx.gap(f"{code}_DISABLED", f"{option.name} is disabled, using 1.0", id=selected_id)
        return ONE
    return _d(option.multiplier)


# -----------------------------
# Steps (executed in PRICING_STEPS order)
# -----------------------------


def price_rooms(ctx: EstimateContext) -> None:
    conf = ctx.selection.configuration
    if not conf.rooms:
        return

    cfg = ctx.config
    material = _multiplier(
        ctx, "material grade", conf.material_grade, cfg.material_grade(conf.material_grade or "")
    )
    finish = _multiplier(
        ctx, "finish type", conf.finish_type, cfg.finish_type(conf.finish_type or "")
    )

    for room_id in conf.rooms:
        room = cfg.room(room_id)
        if room is None:
            ctx.gap("ROOM_UNPRICED", f"No price configured for room '{room_id}'", room_id=room_id)
            ctx.breakdown.exclude(
                Section.ROOMS, "ROOM", f"Room {room_id}", ExclusionTag.UNPRICED,
                meta={"roomId": room_id},
            )
            continue
        if not room.enabled:
            ctx.gap("ROOM_DISABLED", f"{room.name} is disabled", room_id=room_id)
            ctx.breakdown.exclude(
                Section.ROOMS, "ROOM", room.name, ExclusionTag.DISABLED,
                meta={"roomId": room_id},
            )
            continue

        cost = _d(room.rate) * material * finish
        ctx.breakdown.include(
            Section.ROOMS,
            "ROOM",
            room.name,
            cost,
            quantity=1,
            unit_price=cost,
            meta={
                "roomId": room_id,
                "baseRate": float(room.rate),
                "materialMultiplier": float(material),
                "finishMultiplier": float(finish),
            },
        )


def price_living_area(ctx: EstimateContext) -> None:
    options = ctx.config.living_area
    catalog = ctx.config.category("living_area")
    for key, qty in ctx.selection.configuration.living_area.items():
        if qty <= 0:
            continue
        opt = options.get(key)
        if opt is None and catalog is not None and catalog.find(key) is not None:
            # storefront catalog ids (la_1, ...) are priced from the plan columns
            _catalog_line(
                ctx, [catalog], key, qty, section=Section.LIVING_AREA, code="LIVING_AREA_ITEM"
            )
            continue
        if opt is None:
            ctx.gap("LIVING_AREA_UNPRICED", f"Unknown living area option '{key}'", option=key)
            ctx.breakdown.exclude(
                Section.LIVING_AREA, "LIVING_AREA_OPTION", humanize_key(key),
                ExclusionTag.UNPRICED, meta={"option": key},
            )
            continue
        label = opt.name or humanize_key(key)
        if not opt.enabled:
            ctx.gap("LIVING_AREA_DISABLED", f"{label} is disabled", option=key)
            ctx.breakdown.exclude(
                Section.LIVING_AREA, "LIVING_AREA_OPTION", label,
                ExclusionTag.DISABLED, meta={"option": key},
            )
            continue
        # flat add-on: once, regardless of quantity or area
        ctx.breakdown.include(
            Section.LIVING_AREA, "LIVING_AREA_OPTION", label, _d(opt.price),
            quantity=1, unit_price=_d(opt.price), meta={"option": key},
        )


def price_kitchen(ctx: EstimateContext) -> None:
    sel = ctx.selection.configuration.kitchen
    kitchen = ctx.config.kitchen

    if sel.layout or sel.wood_type:
        layout = next((x for x in kitchen.layouts if x.id == sel.layout), None)
        wood = next((x for x in kitchen.wood_types if x.id == sel.wood_type), None)

        problem: Optional[Tuple[ExclusionTag, str]] = None
        if not sel.layout:
            problem = (ExclusionTag.INCOMPLETE, "No kitchen layout selected")
        elif layout is None:
            problem = (ExclusionTag.UNPRICED, f"Unknown kitchen layout '{sel.layout}'")
        elif not layout.enabled:
            problem = (ExclusionTag.DISABLED, f"Kitchen layout {layout.name} is disabled")
        elif not sel.wood_type:
            problem = (ExclusionTag.INCOMPLETE, "No kitchen wood type selected")
        elif wood is None:
            problem = (ExclusionTag.UNPRICED, f"Unknown kitchen wood type '{sel.wood_type}'")
        elif not wood.enabled:
            problem = (ExclusionTag.DISABLED, f"Wood type {wood.name} is disabled")

        meta = {"layout": sel.layout, "woodType": sel.wood_type}
        if problem is not None:
            tag, message = problem
            ctx.gap(f"KITCHEN_{tag.value.upper()}", message, **meta)
            ctx.breakdown.exclude(Section.KITCHEN, "KITCHEN_BASE", "Kitchen", tag, meta=meta)
        else:
            cost = _d(layout.base_price) * _d(wood.multiplier)
            meta.update(basePrice=float(layout.base_price), woodMultiplier=float(wood.multiplier))
            ctx.breakdown.include(
                Section.KITCHEN,
                "KITCHEN_BASE",
                f"Kitchen ({layout.name}, {wood.name})",
                cost,
                quantity=1,
                unit_price=cost,
                meta=meta,
            )

    seen = set()
    for add_on_id in sel.add_ons:
        if add_on_id in seen:
            continue
        seen.add(add_on_id)
        add_on = next((x for x in kitchen.add_ons if x.id == add_on_id), None)
        if add_on is None:
            ctx.gap("KITCHEN_ADD_ON_UNPRICED", f"Unknown kitchen add-on '{add_on_id}'", add_on=add_on_id)
            ctx.breakdown.exclude(
                Section.KITCHEN, "KITCHEN_ADD_ON", f"Add-on {add_on_id}",
                ExclusionTag.UNPRICED, meta={"addOn": add_on_id},
            )
        elif not add_on.enabled:
            ctx.gap("KITCHEN_ADD_ON_DISABLED", f"{add_on.name} is disabled", add_on=add_on_id)
            ctx.breakdown.exclude(
                Section.KITCHEN, "KITCHEN_ADD_ON", add_on.name,
                ExclusionTag.DISABLED, meta={"addOn": add_on_id},
            )
        else:
            ctx.breakdown.include(
                Section.KITCHEN, "KITCHEN_ADD_ON", add_on.name, _d(add_on.price),
                quantity=1, unit_price=_d(add_on.price), meta={"addOn": add_on_id},
            )


def price_bedrooms(ctx: EstimateContext) -> None:
    pricing = ctx.config.bedrooms
    options = ctx.selection.configuration.bedroom_options
    count = ctx.bedrooms_count

    if count > 0:
        entry = next((c for c in pricing.counts if c.count == count), None)
        label = f"{count} Bedroom package"
        if entry is None:
            ctx.gap("BEDROOM_COUNT_UNPRICED", f"No price configured for {count} bedrooms", count=count)
            ctx.breakdown.exclude(
                Section.BEDROOMS, "BEDROOM_PACKAGE", label, ExclusionTag.UNPRICED,
                meta={"count": count},
            )
        elif not entry.enabled:
            ctx.gap("BEDROOM_COUNT_DISABLED", f"{label} is disabled", count=count)
            ctx.breakdown.exclude(
                Section.BEDROOMS, "BEDROOM_PACKAGE", label, ExclusionTag.DISABLED,
                meta={"count": count},
            )
        else:
            ctx.breakdown.include(
                Section.BEDROOMS, "BEDROOM_PACKAGE", label, _d(entry.base_price),
                quantity=1, unit_price=_d(entry.base_price), meta={"count": count},
            )

    if options.master_bedroom:
        master = pricing.master_bedroom
        if master.enabled:
            ctx.breakdown.include(
                Section.BEDROOMS, "MASTER_BEDROOM", "Master bedroom",
                _d(master.additional_price), quantity=1, unit_price=_d(master.additional_price),
            )
        else:
            ctx.gap("MASTER_BEDROOM_DISABLED", "Master bedroom upgrade is disabled")
            ctx.breakdown.exclude(
                Section.BEDROOMS, "MASTER_BEDROOM", "Master bedroom", ExclusionTag.DISABLED
            )

    if options.wardrobe and count > 0:
        wardrobe = pricing.wardrobe
        if wardrobe.enabled:
            unit = _d(wardrobe.price_per_bedroom)
            ctx.breakdown.include(
                Section.BEDROOMS, "WARDROBE", "Wardrobe", unit * count,
                quantity=count, unit_price=unit,
            )
        else:
            ctx.gap("WARDROBE_DISABLED", "Wardrobes are disabled")
            ctx.breakdown.exclude(
                Section.BEDROOMS, "WARDROBE", "Wardrobe", ExclusionTag.DISABLED, quantity=count
            )

    if options.study_units > 0:
        study = pricing.study_unit
        qty = _d(options.study_units)
        if study.enabled:
            unit = _d(study.price_per_unit)
            ctx.breakdown.include(
                Section.BEDROOMS, "STUDY_UNIT", "Study unit", unit * qty,
                quantity=qty, unit_price=unit,
            )
        else:
            ctx.gap("STUDY_UNIT_DISABLED", "Study units are disabled")
            ctx.breakdown.exclude(
                Section.BEDROOMS, "STUDY_UNIT", "Study unit", ExclusionTag.DISABLED, quantity=qty
            )


# -----------------------------
# Plan-tiered catalog
# -----------------------------


def _catalog_line(
    ctx: EstimateContext,
    categories: List[CatalogCategory],
    item_id: str,
    qty: float,
    *,
    section: Section,
    code: str,
    prefix: str = "",
    meta: Optional[Dict[str, Any]] = None,
) -> None:
    if qty <= 0:
        return
    meta = dict(meta or {}, itemId=item_id)

    category, item = None, None
    for cat in categories:
        item = cat.find(item_id)
        if item is not None:
            category = cat
            break

    if item is None:
        ctx.gap("CATALOG_ITEM_UNPRICED", f"Unknown catalog item '{item_id}'", item_id=item_id)
        ctx.breakdown.exclude(
            section, code, f"{prefix}{item_id}", ExclusionTag.UNPRICED, quantity=qty, meta=meta
        )
        return

    meta.update(categoryId=category.id, pricing=item.type, plan=ctx.plan)
    label = f"{prefix}{item.name}"
    if not item.enabled:
        ctx.gap("CATALOG_ITEM_DISABLED", f"{item.name} is disabled", item_id=item_id)
        ctx.breakdown.exclude(section, code, label, ExclusionTag.DISABLED, quantity=qty, meta=meta)
        return

    unit = _d(item.price_for(ctx.plan))
    quantity = _d(qty)
    if item.type == "perUnit":
        amount = quantity * unit
    elif item.type == "perSqft":
        meta["carpetArea"] = float(ctx.carpet_area)
        amount = ctx.carpet_area * quantity * unit
    else:
        amount = unit

    ctx.breakdown.include(section, code, label, amount, quantity=quantity, unit_price=unit, meta=meta)


def _room_lines(
    ctx: EstimateContext,
    rooms: List[RoomItems],
    category: Optional[CatalogCategory],
    *,
    section: Section,
    code: str,
    noun: str,
) -> None:
    cats = [category] if category is not None else []
    for idx, room in enumerate(rooms, start=1):
        for item_id, qty in room.items.items():
            _catalog_line(
                ctx, cats, item_id, qty,
                section=section, code=code, prefix=f"{noun} {idx}: ",
                meta={"room": idx},
            )


def price_catalog(ctx: EstimateContext) -> None:
    cfg = ctx.config
    conf = ctx.selection.configuration

    general = [c for c in cfg.categories if c.id not in ROOM_CATEGORY_IDS]
    for item_id, qty in conf.items.items():
        _catalog_line(ctx, general, item_id, qty, section=Section.CATALOG, code="CATALOG_ITEM")

    kitchen = cfg.category("kitchen")
    for item_id, qty in conf.kitchen.items.items():
        _catalog_line(
            ctx, [kitchen] if kitchen else [], item_id, qty,
            section=Section.KITCHEN, code="KITCHEN_ITEM",
        )

    _room_lines(
        ctx, conf.bedrooms, cfg.category("bedroom"),
        section=Section.BEDROOMS, code="BEDROOM_ITEM", noun="Bedroom",
    )

    if ctx.selection.segment == "Commercial":
        bathroom = cfg.category("commercial_bathroom") or cfg.category("bathroom")
        noun = "Bathroom Unit"
    else:
        bathroom = cfg.category("bathroom")
        noun = "Bathroom"
    _room_lines(
        ctx, conf.bathrooms, bathroom,
        section=Section.BATHROOMS, code="BATHROOM_ITEM", noun=noun,
    )

    _room_lines(
        ctx, conf.cabins, cfg.category("cabin"),
        section=Section.CABINS, code="CABIN_ITEM", noun="Cabin",
    )


PRICING_STEPS: Tuple[Tuple[str, StepFn], ...] = (
    ("rooms", price_rooms),
    ("living_area", price_living_area),
    ("kitchen", price_kitchen),
    ("bedrooms", price_bedrooms),
    ("catalog", price_catalog),
)
