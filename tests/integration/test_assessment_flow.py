import pytest
from httpx import AsyncClient


async def _assess(client: AsyncClient, snapshot, **params):
    response = await client.post("/v1/assess", json=snapshot, params=params)
    assert response.status_code == 200
    return response.json()


@pytest.mark.asyncio
async def test_exam_session_builds_up_to_a_horner_workup(client: AsyncClient):
    """
    Mirrors a clinician filling the pupil module field by field:
    the banner and differential follow the data as it arrives.
    """
    session = {"pupils": {}}

    # 1. Nothing entered yet
    data = await _assess(client, session)
    assert data["differential"] == []
    assert data["urgency"]["message"].startswith("Enter clinical findings")

    # 2. Light pair only: the module is not ready, the banner asks for dark values
    session["pupils"].update({"odLight": "3.5", "osLight": "2.5"})
    data = await _assess(client, session)
    assert data["differential"] == []
    assert data["urgency"]["message"].startswith("Pupil data incomplete")
    assert data["guidance"]["pupils"]["quality"].startswith("Dark measurements missing")

    # 3. Dark pair completes the module: small pupil is abnormal
    session["pupils"].update({"odDark": "6.0", "osDark": "4.0"})
    data = await _assess(client, session)
    assert data["readiness"]["pupils"] is True
    assert data["features"]["dominance"] == "dark"
    assert data["differential"][0]["name"] == "Horner syndrome"
    assert data["differential"][0]["score"] == 7
    assert data["urgency"]["message"].startswith("No high-risk pattern")

    # 4. Specific signs strengthen the match
    session["pupils"]["dilationLag"] = True
    session["eom"] = {"ptosis": True}
    data = await _assess(client, session)
    horner = data["differential"][0]
    assert horner["name"] == "Horner syndrome"
    assert horner["score"] == 12
    assert horner["tier"] == "strong"

    # 5. Acute painful presentation escalates to a carotid dissection alert
    session["triage"] = {"acuteOnset": True, "painful": True}
    data = await _assess(client, session)
    assert data["urgency"]["level"] == "critical"
    assert data["urgency"]["message"].startswith("CRITICAL: Acute painful Horner syndrome")
    assert data["testingRecommendations"][0]["name"] == "CTA or MRA Head/Neck"
    assert data["testingRecommendations"][0]["priority"] == "critical"
    assert any(step.startswith("URGENT") for step in data["differential"][0]["nextSteps"])


@pytest.mark.asyncio
async def test_myasthenia_flow(client: AsyncClient, myasthenia_snapshot):
    data = await _assess(client, myasthenia_snapshot)

    assert data["readiness"]["eom"] is True
    assert data["differential"][0]["name"] == "Myasthenia Gravis - Ocular"
    assert data["urgency"]["level"] == "warn"
    assert "Sustained Upgaze Test" in [t["name"] for t in data["testingRecommendations"]]
    assert data["guidance"]["eom"]["localize"].startswith("Fatigable weakness")


@pytest.mark.asyncio
async def test_unreliable_bitemporal_field_flow(client: AsyncClient, chiasmal_poor_reliability_snapshot):
    data = await _assess(client, chiasmal_poor_reliability_snapshot)

    chiasmal = next(c for c in data["differential"] if c["name"] == "Chiasmal compression")
    assert chiasmal["score"] == 5
    assert chiasmal["tier"] == "moderate"
    # The bitemporal info banner is reserved for reliable fields
    assert data["urgency"]["level"] == "none"
    assert data["testingRecommendations"][0]["name"] == "MRI Pituitary with Contrast"
    assert data["guidance"]["visualFields"]["quality"].startswith("Poor reliability")


@pytest.mark.asyncio
async def test_traumatic_optic_neuropathy_flow(client: AsyncClient, traumatic_optic_neuropathy_snapshot):
    data = await _assess(client, traumatic_optic_neuropathy_snapshot)

    assert data["readiness"]["opticNerve"] is True
    assert data["differential"][0]["name"] == "Traumatic Optic Neuropathy"
    assert data["urgency"]["level"] == "critical"
    priorities = [t["priority"] for t in data["testingRecommendations"]]
    assert priorities[:3] == ["critical", "critical", "critical"]


@pytest.mark.asyncio
async def test_catalog_choice_only_changes_the_differential(client: AsyncClient, traumatic_optic_neuropathy_snapshot):
    full = await _assess(client, traumatic_optic_neuropathy_snapshot)
    starter = await _assess(client, traumatic_optic_neuropathy_snapshot, catalog="starter")

    assert starter["catalog"] == "starter"
    assert starter["differential"][0] == full["differential"][0]
    assert len(starter["differential"]) <= len(full["differential"])
    assert starter["urgency"] == full["urgency"]
    assert starter["testingRecommendations"] == full["testingRecommendations"]
    assert starter["features"] == full["features"]
