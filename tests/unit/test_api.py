import pytest
from httpx import AsyncClient

from neuroddx.services.decision_engine import DecisionEngine


@pytest.mark.asyncio
async def test_health_check(client: AsyncClient):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert "version" in response.json()


@pytest.mark.asyncio
async def test_request_id_is_echoed(client: AsyncClient):
    response = await client.get("/health", headers={"X-Request-ID": "req_pytest"})
    assert response.headers["X-Request-ID"] == "req_pytest"


@pytest.mark.asyncio
async def test_metrics_endpoint(client: AsyncClient):
    response = await client.get("/metrics/")
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_assess(client: AsyncClient, horner_snapshot):
    response = await client.post("/v1/assess", json=horner_snapshot)

    assert response.status_code == 200
    data = response.json()
    assert data["catalog"] == "full"
    assert data["differential"][0]["name"] == "Horner syndrome"
    assert data["differential"][0]["tier"] == "strong"
    assert "nextSteps" in data["differential"][0]
    assert [t["name"] for t in data["testingRecommendations"]] == ["Apraclonidine 0.5% Test", "Cocaine 4-10% Test"]
    assert data["urgency"]["level"] == "none"
    assert data["readiness"]["pupils"] is True
    assert data["features"]["dominance"] == "dark"


@pytest.mark.asyncio
async def test_assess_without_body(client: AsyncClient):
    response = await client.post("/v1/assess")

    assert response.status_code == 200
    data = response.json()
    assert data["differential"] == []
    assert data["urgency"]["message"].startswith("Enter clinical findings")


@pytest.mark.asyncio
async def test_assess_never_rejects_messy_forms(client: AsyncClient):
    payload = {
        "pupils": {"odLight": "", "osLight": "abc", "rapdOD": "??"},
        "eom": "not-an-object",
        "visualFields": {"bitemporal": "true", "reliability": 7},
    }
    response = await client.post("/v1/assess", json=payload)

    assert response.status_code == 200
    assert response.json()["differential"][0]["name"] == "Chiasmal compression"


@pytest.mark.asyncio
async def test_assess_with_starter_catalog(client: AsyncClient, myasthenia_snapshot):
    response = await client.post("/v1/assess", params={"catalog": "starter"}, json=myasthenia_snapshot)

    assert response.status_code == 200
    data = response.json()
    assert data["catalog"] == "starter"
    assert len(data["differential"]) <= 8


@pytest.mark.asyncio
async def test_unknown_catalog(client: AsyncClient, horner_snapshot):
    response = await client.post("/v1/assess", params={"catalog": "everything"}, json=horner_snapshot)

    assert response.status_code == 400
    assert response.json()["detail"] == "Unknown catalog 'everything'."


@pytest.mark.asyncio
async def test_engine_crash_is_a_500(client: AsyncClient, monkeypatch):
    def boom(*args, **kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr(DecisionEngine, "compute", boom)

    response = await client.post("/v1/assess", json={})
    assert response.status_code == 500
    assert response.json()["detail"] == "Internal Decision Engine Error"


@pytest.mark.asyncio
async def test_features(client: AsyncClient, horner_snapshot):
    response = await client.post("/v1/features", json=horner_snapshot)

    assert response.status_code == 200
    data = response.json()
    assert data["anis_light"] == pytest.approx(1.0)
    assert data["anis_dark"] == pytest.approx(2.0)
    assert data["dominance"] == "dark"
    assert data["comitant"] is None


@pytest.mark.asyncio
async def test_list_catalogs(client: AsyncClient):
    response = await client.get("/v1/catalogs")

    assert response.status_code == 200
    catalogs = {c["name"]: c for c in response.json()}
    assert set(catalogs) == {"full", "starter"}
    assert catalogs["full"]["ruleCount"] == 54
    assert catalogs["full"]["maxResults"] == 12
    assert catalogs["starter"]["ruleCount"] == 15


@pytest.mark.asyncio
async def test_assess_with_oversized_measurement(client: AsyncClient):
    payload = {"pupils": {"odLight": 10 ** 400, "osLight": 3, "odDark": 6, "osDark": 5}}
    response = await client.post("/v1/assess", json=payload)

    assert response.status_code == 200
    data = response.json()
    assert data["features"]["od_light"] is None
    assert data["readiness"]["pupils"] is False
