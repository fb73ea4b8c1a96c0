import os

import pytest

from app.core.security import create_dev_identity_token

DEV_EXTERNAL_ID = os.getenv("INTEGRATION_EXTERNAL_ID", "")


def _require_integration(integration_enabled: bool) -> None:
    if not integration_enabled:
        pytest.skip("Set RUN_INTEGRATION=1 to execute integration tests")


@pytest.mark.integration
def test_live_server_serves_seeded_catalog(client, integration_enabled: bool):
    _require_integration(integration_enabled)

    assert client.get("/healthz").json() == {"status": "ok"}

    resp = client.get("/v1/courses")
    assert resp.status_code == 200, resp.text
    slugs = {course["slug"] for course in resp.json()["courses"]}
    assert "quantitative-aptitude-basics" in slugs

    detail = client.get("/v1/courses/quantitative-aptitude-basics")
    assert detail.status_code == 200, detail.text
    assert detail.json()["is_free"] is True

    featured = client.get("/v1/lessons/featured")
    assert featured.status_code == 200
    assert featured.json()["lessons"]


@pytest.mark.integration
def test_live_server_enrolls_in_free_course(client, integration_enabled: bool):
    _require_integration(integration_enabled)
    if not DEV_EXTERNAL_ID:
        pytest.skip("Set INTEGRATION_EXTERNAL_ID to an existing account and export the server's AUTH_DEV_SECRET")

    headers = {"Authorization": f"Bearer {create_dev_identity_token(DEV_EXTERNAL_ID)}"}
    course_id = client.get("/v1/courses/quantitative-aptitude-basics").json()["id"]

    enroll = client.post("/v1/enrollments", headers=headers, json={"course_id": course_id})
    assert enroll.status_code in (201, 409), enroll.text

    access = client.get("/v1/access", headers=headers, params={"course_id": course_id})
    assert access.status_code == 200
    assert access.json()["has_full_access"] is True
