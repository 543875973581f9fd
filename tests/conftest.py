"""Pytest fixtures for fortum-fetch tests."""
import os

import pytest

from fortum_fetch.exceptions import BrowserActionError

from tests.fakes import FakeBrowserSession, FakeClock


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def login_session():
    """Fake session for a login page that accepts any credentials."""
    return FakeBrowserSession(storage=["tok-123"])


@pytest.fixture
def evaluation_error():
    return BrowserActionError("evaluate script failed: Execution context was destroyed")


@pytest.fixture
def clean_env():
    """Remove fortum-fetch variables and restore the environment afterwards."""
    saved = dict(os.environ)
    for name in list(os.environ):
        if name.startswith(("FORTUM_", "FORUTM_")) or name in (
            "LOG_LEVEL", "LOG_DIR", "REQUEST_TIMEOUT_SECONDS", "MAX_RETRIES"
        ):
            del os.environ[name]
    yield
    os.environ.clear()
    os.environ.update(saved)


@pytest.fixture
def sample_contracts():
    """Contracts response as returned by /api/contracts/customer/<id>."""
    return {
        "error": False,
        "contracts": {
            "active": [
                {
                    "meteringPoint": {
                        "meteringPointId": "643000000000000001",
                        "meteringPointNo": 1001,
                        "isDistrictHeat": False,
                    },
                    "meteringPointAddress": {
                        "streetName": "Testikatu",
                        "houseNumber": "1",
                        "houseLetter": "A",
                        "residence": "5",
                        "postalCode": "00100",
                        "postalCity": "Helsinki",
                        "countryCode": "FI",
                    },
                    "productName": "Fortum Tarkka",
                    "is15minAvailable": True,
                },
                {
                    "meteringPoint": {
                        "meteringPointId": "643000000000000002",
                        "meteringPointNo": 1002,
                        "isDistrictHeat": True,
                    },
                    "meteringPointAddress": {"streetName": "Lämpötie", "houseNumber": "2"},
                    "is15minAvailable": False,
                },
                {
                    "meteringPoint": {
                        "meteringPointId": "643000000000000003",
                        "meteringPointNo": 1003,
                    },
                    "meteringPointAddress": {"streetName": "Mökkitie", "houseNumber": "3"},
                    "is15minAvailable": False,
                },
            ]
        },
    }


@pytest.fixture
def sample_consumption():
    """Consumption response as returned by /api/v2/consumption."""
    return {
        "error": False,
        "unit": "kWh",
        "costUnit": "EUR",
        "consumption": [
            {"fromTime": "2024-01-15T10:00:00", "energy": 1.5, "energyCost": 0.25},
            {"fromTime": "2024-01-15T11:00:00", "energy": 2.0, "energyCost": 0.3},
        ],
    }
