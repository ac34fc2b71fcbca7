# tests/api/test_status_api.py
import pytest

pytestmark = pytest.mark.asyncio


async def test_status_reports_components(build_test_services, client_for):
    services, _, _ = build_test_services(["{}"])
    response = await client_for(services).get("/status")

    assert response.status_code == 200
    body = response.json()
    assert body["overall_status"] == "ok"
    assert body["components"]["supabase"]["status"] == "ok"
    assert body["components"]["openai"]["status"] == "unavailable"
    assert body["uptime_seconds"] >= 0


async def test_status_degraded_without_database(build_test_services, client_for):
    services, _, _ = build_test_services(["{}"], supabase=None)
    response = await client_for(services).get("/status")

    assert response.status_code == 200
    assert response.json()["overall_status"] == "degraded"
