"""Template-formatted output of consumption rows."""

import logging
import re
from dataclasses import dataclass, fields
from datetime import tzinfo
from typing import Iterable, Iterator, List, TextIO

from ..api.models import CustomerInfo, Usage
from ..exceptions import TemplateError
from ..utils.date_parser import format_rfc3339


logger = logging.getLogger(__name__)

# Go text/template style field reference: {{.Field}}
PLACEHOLDER_PATTERN = re.compile(r"\{\{\s*\.([A-Za-z_][A-Za-z0-9_]*)\s*\}\}")


@dataclass
class MeteringRow:
    """Fields available to metering output templates."""

    Time: str
    CustomerId: int
    MeteringPointId: str
    MeteringPointNo: int
    MeteringPointAddress: str
    Energy: float
    Cost: float


FIELD_NAMES = frozenset(f.name for f in fields(MeteringRow))


def format_value(value) -> str:
    """Format a field value the way the default output expects.

    Integral floats drop the decimal part (2.0 -> "2").
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return repr(value)
    return str(value)


class MeteringTemplate:
    """A parsed output template."""

    def __init__(self, source: str):
        """Parse a template.

        Args:
            source: Template text with {{.Field}} placeholders

        Raises:
            TemplateError: If a placeholder names an unknown field
        """
        self.source = source
        self.fields: List[str] = PLACEHOLDER_PATTERN.findall(source)
        unknown = sorted(set(self.fields) - FIELD_NAMES)
        if unknown:
            raise TemplateError(
                f"unknown template field(s) {', '.join(unknown)}; "
                f"available: {', '.join(f.name for f in fields(MeteringRow))}"
            )
        # Leftover braces mean a placeholder the pattern did not understand
        if "{{" in PLACEHOLDER_PATTERN.sub("", source):
            raise TemplateError(f"malformed template placeholder in {source!r}")

    def render(self, row: MeteringRow) -> str:
        return PLACEHOLDER_PATTERN.sub(lambda m: format_value(getattr(row, m.group(1))), self.source)

    def write(self, rows: Iterable[MeteringRow], stream: TextIO) -> int:
        """Render rows to a stream.

        Returns:
            Number of rows written
        """
        count = 0
        for row in rows:
            stream.write(self.render(row))
            count += 1
        return count


def build_rows(customer_info: CustomerInfo, usages: Iterable[Usage], tz: tzinfo) -> Iterator[MeteringRow]:
    """Flatten consumption data into output rows.

    Timestamps are converted to tz and formatted as RFC 3339.
    """
    customer_id = customer_info.owner.customer_id
    for index, usage in enumerate(usages):
        point = usage.metering_point
        if point is None:
            logger.warning(f"Consumption item {index} has no metering point, skipping")
            continue
        logger.debug(f"Processing {len(usage.consumption)} metering rows for consumption item {index}")
        address = point.address.format()
        for item in usage.consumption:
            yield MeteringRow(
                Time=format_rfc3339(item.from_time.astimezone(tz)) if item.from_time else "",
                CustomerId=customer_id,
                MeteringPointId=point.metering_point_id,
                MeteringPointNo=point.metering_point_no,
                MeteringPointAddress=address,
                Energy=item.energy,
                Cost=item.energy_cost,
            )
