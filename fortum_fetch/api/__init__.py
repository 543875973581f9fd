"""My Fortum REST API access."""

from .client import FortumAPIClient
from .models import CustomerInfo, MeteringPoint, MeteringPointAddress, Usage, ConsumptionItem

__all__ = [
    'FortumAPIClient',
    'CustomerInfo',
    'MeteringPoint',
    'MeteringPointAddress',
    'Usage',
    'ConsumptionItem',
]
