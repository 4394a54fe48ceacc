# studio/services/estimate_renderer.py
from __future__ import annotations

from datetime import date, datetime
from functools import lru_cache
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup, escape

from studio.pricing.breakdown import LineItem
from studio.schemas.tenant import TenantBranding
from studio.services.money import fmt_money, fmt_qty

TEMPLATE_DIR = Path(__file__).resolve().parents[1] / "templates"

NA = "N/A"

FOOTER_NOTE = (
    "Note: This is an approximate estimate. Final quote may vary based on "
    "site conditions and material availability."
)

SECTION_TITLES = {
    "rooms": "Rooms",
    "living_area": "Living Area",
    "kitchen": "Kitchen",
    "bedrooms": "Bedrooms",
    "bathrooms": "Bathrooms",
    "cabins": "Cabins",
    "catalog": "Other items",
}

# (html, branding) -> pdf bytes
PdfWriter = Callable[[str, TenantBranding], bytes]

BrandingLike = Union[TenantBranding, Mapping[str, Any], None]

_RECORD_FIELDS = (
    "id",
    "tenant_id",
    "customer_info",
    "configuration",
    "total_amount",
    "currency",
    "breakdown",
    "status",
    "created_at",
)


def neutralize_braces(value: Any) -> Any:
    """
    Output filter for every {{ ... }} expression: text values are escaped and
    their braces written as entities, so customer text like "Raj {{ Co }}"
    prints as-is and never looks like template syntax in the output.
    """
    if isinstance(value, str):
        safe = str(escape(value)).replace("{", "&#123;").replace("}", "&#125;")
        return Markup(safe)
    return value


@lru_cache(maxsize=1)
def _jinja_env() -> Environment:
    """Create a Jinja environment for templates."""
    env = Environment(
        loader=FileSystemLoader(str(TEMPLATE_DIR)),
        autoescape=select_autoescape(["html", "xml"]),
        finalize=neutralize_braces,
    )
    env.globals["fmt_money"] = fmt_money
    env.globals["fmt_qty"] = fmt_qty
    return env


# -------------------------
# Input normalization
# -------------------------


def _record_dict(record: Any) -> Dict[str, Any]:
    """Accepts an ORM row, a pydantic model or a plain dict (snake or camel keys)."""
    if record is None:
        return {}
    if isinstance(record, Mapping):
        return dict(record)
    if hasattr(record, "model_dump"):
        return record.model_dump()
    return {name: getattr(record, name, None) for name in _RECORD_FIELDS}


def _get(data: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return default


def _text(value: Any) -> str:
    if value is None:
        return NA
    s = str(value).strip()
    return s or NA


def _fmt_date(value: Any) -> str:
    if isinstance(value, datetime):
        return value.strftime("%d %b %Y")
    if isinstance(value, date):
        return value.strftime("%d %b %Y")
    if isinstance(value, str) and value.strip():
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00")).strftime("%d %b %Y")
        except ValueError:
            return value
    return NA


def _lines(breakdown: Optional[Iterable[Any]]) -> List[LineItem]:
    out: List[LineItem] = []
    for ln in breakdown or []:
        if isinstance(ln, LineItem):
            out.append(ln)
        elif isinstance(ln, Mapping):
            out.append(LineItem.from_dict(ln))
    return sorted(out, key=lambda x: x.seq)


def _branding(branding: BrandingLike) -> TenantBranding:
    if isinstance(branding, TenantBranding):
        return branding
    if branding:
        return TenantBranding.model_validate(dict(branding))
    return TenantBranding(company_name="Interior Design Co.")


def _project_details(selection: Mapping[str, Any]) -> List[Dict[str, str]]:
    nested = _get(selection, "configuration", default={}) or {}
    kitchen = _get(nested, "kitchen", default={}) or {}
    segment = _get(selection, "segment")

    area = _get(selection, "carpetArea", "carpet_area")
    rows = [
        {"label": "Segment", "value": _text(segment)},
        {"label": "Plan Selected", "value": _text(_get(selection, "plan"))},
        {"label": "Carpet Area", "value": f"{fmt_qty(area)} sqft" if area is not None else NA},
    ]

    bedrooms = _get(selection, "bedroomsCount", "bedrooms_count")
    bathrooms = _get(selection, "bathroomsCount", "bathrooms_count")
    if segment == "Commercial":
        cabins = _get(nested, "cabins", default=[]) or []
        rows.append({"label": "No. of Cabins", "value": str(len(cabins))})
        rows.append({"label": "Bathroom Units", "value": _text(fmt_qty(bathrooms) if bathrooms is not None else None)})
    else:
        rows.append({"label": "Bedrooms", "value": _text(fmt_qty(bedrooms) if bedrooms is not None else None)})
        rows.append({"label": "Bathrooms", "value": _text(fmt_qty(bathrooms) if bathrooms is not None else None)})

    layout = _get(kitchen, "layout")
    wood = _get(kitchen, "woodType", "wood_type", "material")
    if layout:
        rows.append({"label": "Kitchen Layout", "value": str(layout)})
    if wood:
        rows.append({"label": "Kitchen Material", "value": str(wood)})
    return rows


def build_document_context(
    record: Any,
    breakdown: Optional[Iterable[Any]] = None,
    branding: BrandingLike = None,
) -> Dict[str, Any]:
    data = _record_dict(record)
    brand = _branding(branding)

    customer = _get(data, "customer_info", "customerInfo", default={}) or {}
    if hasattr(customer, "model_dump"):
        customer = customer.model_dump()
    selection = _get(data, "configuration", default={}) or {}

    if breakdown is None:
        breakdown = _get(data, "breakdown", default=[])
    currency = _get(data, "currency", default=brand.currency)

    rows = []
    for ln in _lines(breakdown):
        if not ln.included:
            continue
        rows.append(
            {
                "section": SECTION_TITLES.get(ln.section, ln.section.replace("_", " ").title()),
                "label": ln.label,
                "quantity": fmt_qty(ln.quantity),
                "amount": fmt_money(ln.amount, currency),
            }
        )

    total = _get(data, "total_amount", "totalAmount")
    estimate_id = _get(data, "id")

    return {
        "company": brand,
        "estimate_id": _text(estimate_id),
        "estimate_ref": _text(str(estimate_id)[:12] if estimate_id else None),
        "date": _fmt_date(_get(data, "created_at", "createdAt")),
        "customer": {
            "name": _text(_get(customer, "name")),
            "phone": _text(_get(customer, "phone")),
            "email": _text(_get(customer, "email")),
            "city": _text(_get(customer, "city")),
        },
        "project": _project_details(selection),
        "plan": _text(_get(selection, "plan")),
        "lines": rows,
        "total": fmt_money(total, currency) if total is not None else NA,
        "footer_note": FOOTER_NOTE,
    }


# -------------------------
# Rendering
# -------------------------


def render_estimate_html(
    record: Any,
    breakdown: Optional[Iterable[Any]] = None,
    branding: BrandingLike = None,
) -> str:
    tmpl = _jinja_env().get_template("estimate.html")
    html = tmpl.render(**build_document_context(record, breakdown, branding))

    # values cannot contribute braces (neutralize_braces), so any tag left
    # here comes from the template itself
    if "{{" in html or "{%" in html:
        raise RuntimeError(
            "Estimate HTML still contains Jinja tags. "
            "The template was not fully rendered."
        )
    return html


def weasyprint_writer(html: str, branding: TenantBranding) -> bytes:
    """HTML -> PDF via WeasyPrint (imported here so hosts without Pango can still price)."""
    from weasyprint import CSS, HTML
    from weasyprint.text.fonts import FontConfiguration

    font_config = FontConfiguration()
    css = CSS(
        string=f"""
            @page {{ size: A4; margin: 1.6cm; }}
            .brand {{ color: {branding.primary_color}; }}
            .total-box {{ background: {branding.secondary_color}; }}
        """,
        font_config=font_config,
    )
    return HTML(string=html).write_pdf(stylesheets=[css], font_config=font_config)


def render_estimate_document(
    record: Any,
    breakdown: Optional[Iterable[Any]] = None,
    branding: BrandingLike = None,
    pdf_writer: Optional[PdfWriter] = None,
) -> bytes:
    """
    Render an estimate record (and its frozen breakdown) to PDF bytes.
    Missing record fields render as N/A; only writer failures raise.
    """
    brand = _branding(branding)
    html = render_estimate_html(record, breakdown, brand)
    writer = pdf_writer or weasyprint_writer
    return writer(html, brand)
