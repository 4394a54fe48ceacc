from __future__ import annotations

import copy
import math

import pytest

from studio.pricing import InvalidSelection, compute_estimate
from studio.pricing.breakdown import ExclusionTag
from studio.schemas.pricing_config import PricingConfig


def _included_sum(result) -> float:
    return float(sum(ln.amount for ln in result.breakdown if ln.included))


# -----------------------------
# Worked examples
# -----------------------------


def test_kitchen_room_times_material_times_finish(kitchen_config, kitchen_selection):
    result = compute_estimate(kitchen_selection, kitchen_config)

    assert result.total_amount == 675000
    assert result.currency == "INR"
    assert len(result.breakdown) == 1

    line = result.breakdown[0]
    assert line.code == "ROOM"
    assert line.label == "Kitchen"
    assert line.included
    assert float(line.amount) == 675000.0
    assert line.meta["materialMultiplier"] == 1.5
    assert line.meta["finishMultiplier"] == 1.8
    assert result.diagnostics == ()


def test_disabled_material_grade_counts_as_one():
    config = {
        "roomPricing": [{"id": "living", "name": "Living Room", "rate": 100000}],
        "materialGrades": [
            {"id": "premium", "name": "Premium Ply", "multiplier": 1.5, "enabled": False}
        ],
        "finishTypes": [{"id": "gloss", "name": "Gloss", "multiplier": 1.2}],
    }
    selection = {
        "configuration": {"rooms": ["living"], "materialGrade": "premium", "finishType": "gloss"}
    }

    result = compute_estimate(selection, config)

    assert result.total_amount == 120000
    assert [g.code for g in result.diagnostics] == ["MATERIAL_GRADE_DISABLED"]


def test_unknown_multiplier_counts_as_one_with_diagnostic(kitchen_config, kitchen_selection):
    kitchen_selection["configuration"]["finishType"] = "marble-inlay"

    result = compute_estimate(kitchen_selection, kitchen_config)

    assert result.total_amount == 375000  # 250,000 x 1.5 x 1.0
    assert [g.code for g in result.diagnostics] == ["FINISH_TYPE_UNKNOWN"]


def test_unselected_multiplier_is_silent(kitchen_config, kitchen_selection):
    kitchen_selection["configuration"].pop("finishType")

    result = compute_estimate(kitchen_selection, kitchen_config)

    assert result.total_amount == 375000
    assert result.diagnostics == ()


def test_missing_room_price_degrades_to_zero_line(kitchen_config):
    selection = {"configuration": {"rooms": ["sauna"]}}

    result = compute_estimate(selection, kitchen_config)

    assert result.total_amount == 0
    (line,) = result.breakdown
    assert line.amount == 0
    assert not line.included
    assert line.tag == ExclusionTag.UNPRICED.value
    assert result.diagnostics[0].code == "ROOM_UNPRICED"


def test_disabled_room_is_excluded(kitchen_config, kitchen_selection):
    kitchen_config["roomPricing"][0]["enabled"] = False

    result = compute_estimate(kitchen_selection, kitchen_config)

    assert result.total_amount == 0
    assert result.breakdown[0].tag == "disabled"


def test_empty_selection_prices_to_zero(kitchen_config):
    result = compute_estimate({}, kitchen_config)
    assert result.total_amount == 0
    assert result.breakdown == ()


# -----------------------------
# Properties
# -----------------------------


def test_determinism_same_input_same_output(kitchen_config, kitchen_selection):
    out1 = compute_estimate(kitchen_selection, kitchen_config).to_dict()
    out2 = compute_estimate(kitchen_selection, kitchen_config).to_dict()
    out3 = compute_estimate(kitchen_selection, kitchen_config).to_dict()

    assert out1 == out2 == out3


def test_breakdown_sums_to_total_with_odd_multipliers():
    config = {
        "roomPricing": [
            {"id": "a", "name": "Room A", "rate": 33333.33},
            {"id": "b", "name": "Room B", "rate": 12345.67},
        ],
        "materialGrades": [{"id": "m", "name": "M", "multiplier": 1.137}],
        "finishTypes": [{"id": "f", "name": "F", "multiplier": 1.0691}],
        "livingArea": {"tvUnit": {"enabled": True, "price": 999.99}},
    }
    selection = {
        "configuration": {
            "rooms": ["a", "b", "missing"],
            "materialGrade": "m",
            "finishType": "f",
            "livingArea": {"tvUnit": 1},
        }
    }

    result = compute_estimate(selection, config)

    assert abs(_included_sum(result) - result.total_amount) <= 1
    assert float(result.subtotal) == pytest.approx(_included_sum(result))


@pytest.mark.parametrize(
    "path",
    [
        ("materialGrades", 0, "multiplier"),
        ("finishTypes", 0, "multiplier"),
        ("roomPricing", 0, "rate"),
    ],
)
def test_raising_an_enabled_price_never_lowers_total(kitchen_config, kitchen_selection, path):
    base = compute_estimate(kitchen_selection, kitchen_config).total_amount

    bumped = copy.deepcopy(kitchen_config)
    section, idx, key = path
    bumped[section][idx][key] = bumped[section][idx][key] * 1.1

    assert compute_estimate(kitchen_selection, bumped).total_amount >= base


def test_raising_add_on_price_never_lowers_total():
    config = {
        "kitchen": {
            "woodTypes": [{"id": "wt1", "name": "Marine Ply", "multiplier": 1.5}],
            "layouts": [{"id": "kl1", "name": "L-Shape", "basePrice": 180000}],
            "addOns": [{"id": "ka1", "name": "Tandem Drawers", "price": 15000}],
        }
    }
    selection = {"configuration": {"kitchen": {"layout": "kl1", "woodType": "wt1", "addOns": ["ka1"]}}}

    base = compute_estimate(selection, config).total_amount
    config["kitchen"]["addOns"][0]["price"] = 16000
    assert compute_estimate(selection, config).total_amount == base + 1000


def test_config_is_snapshotted(kitchen_config, kitchen_selection):
    model = PricingConfig.model_validate(kitchen_config)

    result = compute_estimate(kitchen_selection, model)
    model.room_pricing[0].rate = 1  # admin edit after the call

    assert result.total_amount == 675000
    assert compute_estimate(kitchen_selection, model).total_amount == 3  # 1 x 1.5 x 1.8 = 2.7 -> 3


# -----------------------------
# Hard input errors
# -----------------------------


def test_negative_carpet_area_is_rejected(kitchen_config, kitchen_selection):
    kitchen_selection["carpetArea"] = -10

    with pytest.raises(InvalidSelection) as exc:
        compute_estimate(kitchen_selection, kitchen_config)

    assert exc.value.code == "NEGATIVE_AREA"
    assert exc.value.field == "carpetArea"


def test_non_finite_carpet_area_is_rejected(kitchen_config, kitchen_selection):
    kitchen_selection["carpetArea"] = math.inf
    with pytest.raises(InvalidSelection):
        compute_estimate(kitchen_selection, kitchen_config)


@pytest.mark.parametrize("count", [2.5, -1])
def test_bad_bedroom_count_is_rejected(kitchen_config, count):
    with pytest.raises(InvalidSelection) as exc:
        compute_estimate({"bedroomsCount": count}, kitchen_config)
    assert exc.value.field == "bedroomsCount"


def test_whole_float_count_is_accepted(kitchen_config):
    result = compute_estimate({"bedroomsCount": 2.0}, kitchen_config)
    assert result.total_amount == 0  # no counts configured -> excluded package line
    assert result.breakdown[0].tag == "unpriced"


def test_negative_quantity_is_rejected(kitchen_config):
    selection = {"configuration": {"items": {"la_1": -1}}}
    with pytest.raises(InvalidSelection) as exc:
        compute_estimate(selection, kitchen_config)
    assert exc.value.code == "NEGATIVE_QUANTITY"
    assert exc.value.field == "configuration.items.la_1"


def test_more_room_entries_than_count_is_rejected(kitchen_config):
    selection = {"bedroomsCount": 1, "configuration": {"bedrooms": [{"items": {}}, {"items": {}}]}}
    with pytest.raises(InvalidSelection) as exc:
        compute_estimate(selection, kitchen_config)
    assert exc.value.code == "TOO_MANY_ROOMS"


def test_flat_legacy_room_keys_are_rejected(kitchen_config):
    with pytest.raises(InvalidSelection) as exc:
        compute_estimate({"bedrooms": 3, "bathrooms": 2}, kitchen_config)
    assert exc.value.code == "INVALID_SELECTION"
    locs = {e["loc"] for e in exc.value.meta["errors"]}
    assert {"bedrooms", "bathrooms"} <= locs


def test_huge_integer_count_is_rejected(kitchen_config):
    with pytest.raises(InvalidSelection) as exc:
        compute_estimate({"carpetArea": 10, "bedroomsCount": 10**400}, kitchen_config)
    assert exc.value.code == "NON_INTEGER_COUNT"
    assert exc.value.field == "bedroomsCount"


def test_huge_integer_area_is_rejected(kitchen_config):
    with pytest.raises(InvalidSelection):
        compute_estimate({"carpetArea": 10**400}, kitchen_config)
