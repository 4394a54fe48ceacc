# Models package for the studio service

from .estimate import Estimate
from .pricing_config import PricingConfigRecord
from .tenant_settings import TenantSettings

__all__ = [
    "Estimate",
    "PricingConfigRecord",
    "TenantSettings",
]
