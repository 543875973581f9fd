"""Tests for metering output templates."""
import io
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from fortum_fetch.api.models import (
    ConsumptionItem,
    CustomerInfo,
    MeteringPoint,
    MeteringPointAddress,
    Owner,
    Usage,
)
from fortum_fetch.exceptions import TemplateError
from fortum_fetch.output.template import MeteringRow, MeteringTemplate, build_rows, format_value
from fortum_fetch.utils.config import DEFAULT_METERING_FORMAT


@pytest.fixture
def row():
    return MeteringRow(
        Time="2024-01-15T12:00:00+02:00",
        CustomerId=1234567,
        MeteringPointId="643000000000000001",
        MeteringPointNo=1001,
        MeteringPointAddress="Testikatu 1A5",
        Energy=1.5,
        Cost=0.25,
    )


@pytest.fixture
def usage():
    point = MeteringPoint(
        metering_point_id="643000000000000001",
        metering_point_no=1001,
        address=MeteringPointAddress(street_name="Testikatu", house_number="1", house_letter="A", residence="5"),
    )
    return Usage(
        metering_point=point,
        consumption=[
            ConsumptionItem(datetime(2024, 1, 15, 10, tzinfo=timezone.utc), energy=1.5, energy_cost=0.25),
            ConsumptionItem(datetime(2024, 7, 15, 10, tzinfo=timezone.utc), energy=2.0, energy_cost=0.3),
        ],
    )


class TestFormatValue:
    """Test suite for format_value."""

    def test_integral_float(self):
        assert format_value(2.0) == "2"

    def test_fractional_float(self):
        assert format_value(0.125) == "0.125"

    def test_int_and_str(self):
        assert format_value(1001) == "1001"
        assert format_value("abc") == "abc"


class TestMeteringTemplate:
    """Test suite for MeteringTemplate."""

    def test_default_format(self, row):
        """Test the default template emits an energy and a cost line."""
        template = MeteringTemplate(DEFAULT_METERING_FORMAT)

        assert template.render(row) == (
            "2024-01-15T12:00:00+02:00,1234567_643000000000000001_energy,Testikatu 1A5,"
            "customer 1234567 energy for 643000000000000001 at Testikatu 1A5,1.5,kWh\n"
            "2024-01-15T12:00:00+02:00,1234567_643000000000000001_cost,Testikatu 1A5,"
            "customer 1234567 cost for 643000000000000001 at Testikatu 1A5,0.25,€\n"
        )

    def test_whitespace_inside_braces(self, row):
        """Test placeholders may contain spaces."""
        template = MeteringTemplate("{{ .MeteringPointNo }};{{.Energy}}\n")

        assert template.render(row) == "1001;1.5\n"

    def test_unknown_field(self):
        """Test unknown fields are rejected when parsing."""
        with pytest.raises(TemplateError) as exc_info:
            MeteringTemplate("{{.Time}} {{.Power}}")

        assert "Power" in str(exc_info.value)

    def test_malformed_placeholder(self):
        """Test placeholders without a field reference are rejected."""
        with pytest.raises(TemplateError):
            MeteringTemplate("{{Time}}")

    def test_plain_text(self, row):
        """Test a template without placeholders is copied verbatim."""
        assert MeteringTemplate("static\n").render(row) == "static\n"

    def test_write_counts_rows(self, row):
        """Test write renders every row to the stream."""
        stream = io.StringIO()

        count = MeteringTemplate("{{.Cost}}\n").write([row, row], stream)

        assert count == 2
        assert stream.getvalue() == "0.25\n0.25\n"


class TestBuildRows:
    """Test suite for build_rows."""

    def test_rows_in_time_zone(self, usage):
        """Test timestamps are converted to the requested time zone."""
        info = CustomerInfo(owner=Owner(customer_id=1234567))

        rows = list(build_rows(info, [usage], ZoneInfo("Europe/Helsinki")))

        assert [r.Time for r in rows] == ["2024-01-15T12:00:00+02:00", "2024-07-15T13:00:00+03:00"]
        assert rows[0].CustomerId == 1234567
        assert rows[0].MeteringPointAddress == "Testikatu 1A5"
        assert rows[1].Energy == 2.0
        assert rows[1].Cost == 0.3

    def test_rows_in_utc(self, usage):
        """Test UTC output uses the Z suffix."""
        info = CustomerInfo(owner=Owner(customer_id=1))

        rows = list(build_rows(info, [usage], timezone.utc))

        assert rows[0].Time == "2024-01-15T10:00:00Z"

    def test_missing_time(self, usage):
        """Test a record without a timestamp renders an empty time."""
        usage.consumption = [ConsumptionItem(None, energy=1.0)]
        info = CustomerInfo(owner=Owner(customer_id=1))

        rows = list(build_rows(info, [usage], timezone.utc))

        assert rows[0].Time == ""

    def test_usage_without_point_skipped(self):
        """Test usage entries without a metering point produce no rows."""
        info = CustomerInfo(owner=Owner(customer_id=1))
        orphan = Usage(consumption=[ConsumptionItem(None)])

        assert list(build_rows(info, [orphan], timezone.utc)) == []
