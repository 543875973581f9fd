"""Data models for My Fortum API responses."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..exceptions import APIResponseError
from ..utils.date_parser import parse_api_time


def get_field(data: Optional[Dict[str, Any]], name: str, default: Any = None) -> Any:
    """Look up a JSON field, ignoring case.

    Exact matches win; otherwise the first key equal to name case-insensitively.
    """
    if not isinstance(data, dict):
        return default
    if name in data:
        return data[name]
    lowered = name.lower()
    for key, value in data.items():
        if isinstance(key, str) and key.lower() == lowered:
            return value
    return default


def _str(data, name) -> str:
    value = get_field(data, name)
    return "" if value is None else str(value)


def _int(data, name) -> int:
    value = get_field(data, name)
    if value in (None, ""):
        return 0
    try:
        return int(value)
    except (TypeError, ValueError):
        raise APIResponseError(f"field {name} is not an integer: {value!r}") from None


def _float(data, name) -> float:
    value = get_field(data, name)
    if value is None:
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        raise APIResponseError(f"field {name} is not a number: {value!r}") from None


@dataclass
class Owner:
    customer_id: int
    first_name: str = ""
    last_name: str = ""


@dataclass
class CustomerInfo:
    owner: Owner
    error: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CustomerInfo":
        owner = get_field(data, "owner") or {}
        return cls(
            owner=Owner(
                customer_id=_int(owner, "customerId"),
                first_name=_str(owner, "firstName"),
                last_name=_str(owner, "lastName"),
            ),
            error=bool(get_field(data, "error", False)),
        )


@dataclass
class MeteringPointAddress:
    street_name: str = ""
    house_number: str = ""
    house_letter: str = ""
    residence: str = ""
    postal_code: str = ""
    postal_city: str = ""
    country_code: str = ""

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "MeteringPointAddress":
        return cls(
            street_name=_str(data, "streetName"),
            house_number=_str(data, "houseNumber"),
            house_letter=_str(data, "houseLetter"),
            residence=_str(data, "residence"),
            postal_code=_str(data, "postalCode"),
            postal_city=_str(data, "postalCity"),
            country_code=_str(data, "countryCode"),
        )

    def format(self) -> str:
        """Short address, e.g. "Testikatu 1A5"."""
        return f"{self.street_name} {self.house_number}{self.house_letter}{self.residence}"


@dataclass
class MeteringPoint:
    metering_point_id: str
    metering_point_no: int
    address: MeteringPointAddress = field(default_factory=MeteringPointAddress)
    is_district_heat: bool = False
    resolution: str = "hour"

    @classmethod
    def from_contract(cls, contract: Dict[str, Any]) -> "MeteringPoint":
        """Build a metering point from an active contract entry.

        The address lives next to the metering point in the contract, and
        the resolution depends on whether 15 minute data is available.
        """
        point = get_field(contract, "meteringPoint") or {}
        return cls(
            metering_point_id=_str(point, "meteringPointId"),
            metering_point_no=_int(point, "meteringPointNo"),
            address=MeteringPointAddress.from_dict(get_field(contract, "meteringPointAddress")),
            is_district_heat=bool(get_field(point, "isDistrictHeat", False)),
            resolution="minute" if get_field(contract, "is15minAvailable", False) else "hour",
        )


@dataclass
class ConsumptionItem:
    from_time: Optional[datetime]
    energy: float = 0.0
    energy_cost: float = 0.0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConsumptionItem":
        raw_time = get_field(data, "fromTime")
        try:
            from_time = parse_api_time(raw_time)
        except ValueError as e:
            raise APIResponseError(f"invalid fromTime {raw_time!r}: {e}") from e
        return cls(
            from_time=from_time,
            energy=_float(data, "energy"),
            energy_cost=_float(data, "energyCost"),
        )


@dataclass
class Usage:
    metering_point: Optional[MeteringPoint] = None
    error: bool = False
    unit: str = ""
    cost_unit: str = ""
    consumption: List[ConsumptionItem] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], metering_point: Optional[MeteringPoint] = None) -> "Usage":
        items = get_field(data, "consumption") or []
        return cls(
            metering_point=metering_point,
            error=bool(get_field(data, "error", False)),
            unit=_str(data, "unit"),
            cost_unit=_str(data, "costUnit"),
            consumption=[ConsumptionItem.from_dict(item) for item in items],
        )
