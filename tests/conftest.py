from typing import AsyncGenerator
import pytest
from httpx import AsyncClient, ASGITransport

from neuroddx.main import app


@pytest.fixture(scope="function")
async def client() -> AsyncGenerator[AsyncClient, None]:
    """
    FastAPI test client over the ASGI transport (no network, no server).
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# --- Exam snapshots, shaped exactly like the form layer posts them ---

@pytest.fixture
def horner_snapshot():
    # Anisocoria 1.0mm in light, 2.0mm in dark: the small pupil is abnormal
    return {
        "pupils": {
            "odLight": 3.5, "osLight": 2.5,
            "odDark": 6.0, "osDark": 4.0,
            "odLightRxn": "brisk", "osLightRxn": "brisk",
            "dilationLag": True,
        },
        "eom": {"ptosis": True},
    }


@pytest.fixture
def myasthenia_snapshot():
    return {
        "eom": {"fatigable": True, "ptosis": True, "diplopia": True},
    }


@pytest.fixture
def chiasmal_poor_reliability_snapshot():
    return {
        "visualFields": {"bitemporal": True, "reliability": "poor"},
    }


@pytest.fixture
def traumatic_optic_neuropathy_snapshot():
    return {
        "triage": {"trauma": True},
        "pupils": {"rapdOD": "3+"},
        "opticNerve": {"discPallorOD": True},
    }
