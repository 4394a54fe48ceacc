from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Dict

import yaml

from studio.schemas.pricing_config import PricingConfig

DEFAULT_PRICING_PATH = Path(__file__).with_name("default_pricing.yaml")


@lru_cache(maxsize=1)
def _load_raw(path: str) -> Dict[str, Any]:
    with Path(path).open("r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def load_default_pricing_config(path: Path = DEFAULT_PRICING_PATH) -> PricingConfig:
    """Fresh PricingConfig built from the bundled defaults (callers may mutate it)."""
    return PricingConfig.model_validate(_load_raw(str(path)))
