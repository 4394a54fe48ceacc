# studio/pricing/__init__.py
from __future__ import annotations

from .breakdown import Breakdown, ExclusionTag, LineItem, Section
from .calculator import EstimateResult, compute_estimate, validate_selection
from .errors import ConfigurationGap, InvalidSelection

__all__ = [
    "Breakdown",
    "ConfigurationGap",
    "EstimateResult",
    "ExclusionTag",
    "InvalidSelection",
    "LineItem",
    "Section",
    "compute_estimate",
    "validate_selection",
]
