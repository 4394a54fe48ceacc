from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


class InvalidSelection(ValueError):
    """
    Raised for structurally impossible selections (negative area or quantity,
    non-integer room counts). These are caller bugs: reject before persisting.
    """

    def __init__(
        self,
        code: str,
        message: str,
        field: Optional[str] = None,
        meta: Optional[Dict[str, Any]] = None,
    ):
        self.code = str(code)
        self.message = str(message)
        self.field = field
        self.meta = meta or {}
        super().__init__(f"{self.code}: {self.message}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "field": self.field,
            "meta": self.meta,
        }


@dataclass(frozen=True)
class ConfigurationGap:
    """
    Soft failure: a referenced pricing item is missing, disabled or unselected.
    The calculator records one of these and carries on with a zero term.
    """

    code: str
    message: str
    meta: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "meta": dict(self.meta)}
