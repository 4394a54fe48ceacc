from __future__ import annotations

import re
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional

D = Decimal

MONEY_Q = D("0.01")
UNIT_Q = D("1")


def money(x: Any) -> D:
    """Quantize to 2 decimals (half-up). Floats go through str() to avoid binary noise."""
    d = x if isinstance(x, Decimal) else D(str(x))
    return d.quantize(MONEY_Q, rounding=ROUND_HALF_UP)


def whole_units(x: Any) -> int:
    d = x if isinstance(x, Decimal) else D(str(x))
    return int(d.quantize(UNIT_Q, rounding=ROUND_HALF_UP))


# -----------------------------
# Public contract
# -----------------------------


class Section(str, Enum):
    ROOMS = "rooms"
    LIVING_AREA = "living_area"
    KITCHEN = "kitchen"
    BEDROOMS = "bedrooms"
    BATHROOMS = "bathrooms"
    CABINS = "cabins"
    CATALOG = "catalog"


class ExclusionTag(str, Enum):
    UNPRICED = "unpriced"  # id not present in the pricing config
    DISABLED = "disabled"  # present but switched off by the tenant
    INCOMPLETE = "incomplete"  # a required companion choice is missing


_CODE_RE = re.compile(r"^[A-Z][A-Z0-9_]{2,63}$")  # e.g. ROOM, KITCHEN_LAYOUT


def _validate_code(code: str) -> str:
    if not isinstance(code, str):
        raise TypeError("breakdown code must be str")
    code = code.strip()
    if not _CODE_RE.match(code):
        raise ValueError(
            f"invalid breakdown code '{code}'. Expected UPPER_SNAKE (3-64 chars), e.g. ROOM, WARDROBE"
        )
    return code


def _validate_label(label: str) -> str:
    if not isinstance(label, str):
        raise TypeError("breakdown label must be str")
    lbl = " ".join(label.split())
    if not lbl:
        raise ValueError("breakdown label must be non-empty")
    if len(lbl) > 240:
        raise ValueError("breakdown label too long (max 240 chars)")
    return lbl


@dataclass(frozen=True)
class LineItem:
    """
    One term of the estimate. Excluded lines always carry amount 0 and a tag,
    so the document and the admin UI can show why something was not charged.
    """

    seq: int
    section: str
    code: str
    label: str
    amount: D
    included: bool = True
    quantity: Optional[D] = None
    unit_price: Optional[D] = None
    tag: Optional[str] = None
    meta: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "seq": self.seq,
            "section": self.section,
            "code": self.code,
            "label": self.label,
            "amount": float(self.amount),
            "included": self.included,
            "quantity": float(self.quantity) if self.quantity is not None else None,
            "unitPrice": float(self.unit_price) if self.unit_price is not None else None,
            "tag": self.tag,
            "meta": dict(self.meta),
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "LineItem":
        """Rebuild a stored breakdown line (records keep the breakdown as JSON)."""
        qty = d.get("quantity")
        unit = d.get("unitPrice", d.get("unit_price"))
        return cls(
            seq=int(d.get("seq", 0)),
            section=str(d.get("section") or ""),
            code=str(d.get("code") or "LINE"),
            label=str(d.get("label") or "-"),
            amount=money(d.get("amount") or 0),
            included=bool(d.get("included", True)),
            quantity=D(str(qty)) if qty is not None else None,
            unit_price=money(unit) if unit is not None else None,
            tag=d.get("tag"),
            meta=dict(d.get("meta") or {}),
        )


class Breakdown:
    """
    Ordered collector the pricing steps write into.
    Deterministic order = insertion order (seq).
    """

    def __init__(self) -> None:
        self._lines: List[LineItem] = []
        self._seq = 0

    @property
    def lines(self) -> List[LineItem]:
        # Expose a copy to avoid accidental mutation
        return list(self._lines)

    def __iter__(self) -> Iterator[LineItem]:
        return iter(self.lines)

    def __len__(self) -> int:
        return len(self._lines)

    def include(
        self,
        section: Section,
        code: str,
        label: str,
        amount: Any,
        *,
        quantity: Any = None,
        unit_price: Any = None,
        meta: Optional[Dict[str, Any]] = None,
    ) -> LineItem:
        return self._append(
            section=section,
            code=code,
            label=label,
            amount=money(amount),
            included=True,
            quantity=quantity,
            unit_price=unit_price,
            tag=None,
            meta=meta,
        )

    def exclude(
        self,
        section: Section,
        code: str,
        label: str,
        tag: ExclusionTag,
        *,
        quantity: Any = None,
        meta: Optional[Dict[str, Any]] = None,
    ) -> LineItem:
        return self._append(
            section=section,
            code=code,
            label=label,
            amount=D("0.00"),
            included=False,
            quantity=quantity,
            unit_price=None,
            tag=ExclusionTag(tag).value,
            meta=meta,
        )

    def included_total(self) -> D:
        return sum((ln.amount for ln in self._lines if ln.included), D("0.00"))

    def _append(
        self,
        *,
        section: Section,
        code: str,
        label: str,
        amount: D,
        included: bool,
        quantity: Any,
        unit_price: Any,
        tag: Optional[str],
        meta: Optional[Dict[str, Any]],
    ) -> LineItem:
        self._seq += 1
        line = LineItem(
            seq=self._seq,
            section=Section(section).value,
            code=_validate_code(code),
            label=_validate_label(label),
            amount=amount,
            included=included,
            quantity=D(str(quantity)) if quantity is not None else None,
            unit_price=money(unit_price) if unit_price is not None else None,
            tag=tag,
            meta=dict(meta or {}),
        )
        self._lines.append(line)
        return line
