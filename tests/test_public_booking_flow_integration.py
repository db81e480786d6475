"""Integration tests for the tutor onboarding and public booking sequence."""

from __future__ import annotations

import os
import secrets
from collections.abc import AsyncIterator
from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

import httpx
import pytest
import pytest_asyncio

API_BASE_URL = os.getenv("INTEGRATION_BASE_URL", "http://localhost:8000/api").rstrip("/")
HEALTHCHECK_URL = os.getenv("INTEGRATION_HEALTH_URL", "http://localhost:8000/health")
REQUEST_TIMEOUT_SECONDS = float(os.getenv("INTEGRATION_TIMEOUT_SECONDS", "15"))
OTP_CODE = os.getenv("INTEGRATION_OTP_CODE")

_INTEGRATION_STACK_HEALTHY: bool | None = None
_INTEGRATION_STACK_ERROR: str | None = None


def _assert_status(response: httpx.Response, expected_status: int) -> None:
    assert response.status_code == expected_status, (
        f"{response.request.method} {response.request.url} -> "
        f"{response.status_code}, body={response.text}"
    )


async def _sign_in_tutor(client: httpx.AsyncClient) -> str:
    phone = f"+9617{secrets.randbelow(10_000_000):07d}"

    send_response = await client.post("/auth/otp/send", json={"phone": phone, "role": "TUTOR"})
    _assert_status(send_response, 200)

    verify_response = await client.post(
        "/auth/otp/verify",
        json={"phone": phone, "role": "TUTOR", "code": OTP_CODE, "locale": "en"},
    )
    _assert_status(verify_response, 200)
    return verify_response.json()["user_id"]


@pytest_asyncio.fixture()
async def api_client() -> AsyncIterator[httpx.AsyncClient]:
    global _INTEGRATION_STACK_HEALTHY, _INTEGRATION_STACK_ERROR  # noqa: PLW0603

    if not OTP_CODE:
        pytest.skip("INTEGRATION_OTP_CODE must match OTP_DEV_CODE of the running stack")

    if _INTEGRATION_STACK_HEALTHY is None:
        probe_timeout_seconds = min(REQUEST_TIMEOUT_SECONDS, 3.0)
        async with httpx.AsyncClient(timeout=probe_timeout_seconds) as probe:
            try:
                health_response = await probe.get(HEALTHCHECK_URL)
            except httpx.HTTPError as exc:
                _INTEGRATION_STACK_HEALTHY = False
                _INTEGRATION_STACK_ERROR = f"Integration stack unavailable at {HEALTHCHECK_URL}: {exc}"
            else:
                _INTEGRATION_STACK_HEALTHY = health_response.status_code == 200
                _INTEGRATION_STACK_ERROR = (
                    None
                    if _INTEGRATION_STACK_HEALTHY
                    else f"Integration stack returned {health_response.status_code} for {HEALTHCHECK_URL}"
                )

    if not _INTEGRATION_STACK_HEALTHY:
        pytest.skip(_INTEGRATION_STACK_ERROR or "Integration stack is unavailable")
        return

    async with httpx.AsyncClient(base_url=API_BASE_URL, timeout=REQUEST_TIMEOUT_SECONDS) as client:
        yield client


@pytest.mark.asyncio
async def test_onboarded_tutor_is_discoverable_and_accepts_request_once(
    api_client: httpx.AsyncClient,
) -> None:
    tutor_id = await _sign_in_tutor(api_client)
    tutor_name = f"Integration {uuid4().hex[:10]}"

    onboarding_response = await api_client.post(
        "/tutor/onboarding",
        json={
            "name": tutor_name,
            "lesson_types": [{"category": "academic", "label": "Math"}],
            "service_areas": [{"district_id": "beirut-hamra", "district_label": "Hamra"}],
        },
    )
    _assert_status(onboarding_response, 200)
    assert onboarding_response.json()["expertise_count"] == 1

    profile_response = await api_client.get("/tutor/profile")
    _assert_status(profile_response, 200)
    lesson_type_id = profile_response.json()["expertise"][0]["id"]

    pricing_response = await api_client.post(
        "/tutor/pricing",
        json={"prices": [{"lesson_type_id": lesson_type_id, "duration_minutes": 60, "amount": "25"}]},
    )
    _assert_status(pricing_response, 200)

    availability_response = await api_client.post(
        "/tutor/availability",
        json={"slots": [{"day_of_week": 1, "start_time": "16:00", "end_time": "19:00"}]},
    )
    _assert_status(availability_response, 200)
    assert availability_response.json()["count"] == 1

    discover_response = await api_client.get("/public/discover", params={"q": tutor_name})
    _assert_status(discover_response, 200)
    results = discover_response.json()["tutors"]
    assert [item["id"] for item in results] == [tutor_id]
    assert results[0]["min_price"] in {"25.00", "25", 25, 25.0}

    start_at = (datetime.now(UTC) + timedelta(days=10)).replace(hour=16, minute=0, second=0, microsecond=0)
    request_response = await api_client.post(
        "/public/lesson-requests",
        json={
            "tutor_id": tutor_id,
            "student_name": "Maya",
            "lesson_type_id": lesson_type_id,
            "duration_minutes": 60,
            "requested_start_at": start_at.isoformat(),
        },
    )
    _assert_status(request_response, 201)
    lesson_id = request_response.json()["id"]
    assert request_response.json()["status"] == "requested"

    bad_price_response = await api_client.post(
        "/public/lesson-requests",
        json={
            "tutor_id": tutor_id,
            "student_name": "Maya",
            "lesson_type_id": lesson_type_id,
            "duration_minutes": 45,
            "requested_start_at": (start_at + timedelta(days=1)).isoformat(),
        },
    )
    _assert_status(bad_price_response, 400)

    pending_response = await api_client.get("/tutor/requests")
    _assert_status(pending_response, 200)
    assert lesson_id in {item["id"] for item in pending_response.json()}

    accept_response = await api_client.post(f"/tutor/requests/{lesson_id}", json={"action": "accept"})
    _assert_status(accept_response, 200)
    assert accept_response.json()["status"] == "confirmed"

    second_accept_response = await api_client.post(f"/tutor/requests/{lesson_id}", json={"action": "accept"})
    _assert_status(second_accept_response, 404)

    forged_cancel_response = await api_client.post(
        f"/public/lessons/{lesson_id}/cancel",
        json={"token": secrets.token_hex(32)},
    )
    _assert_status(forged_cancel_response, 401)
    assert forged_cancel_response.json()["error"]["code"] == "invalid_token"

    notifications_response = await api_client.get("/tutor/notifications")
    _assert_status(notifications_response, 200)
    assert notifications_response.json()["unread_count"] >= 1

    delete_response = await api_client.delete("/tutor/account")
    _assert_status(delete_response, 200)


@pytest.mark.asyncio
async def test_unknown_public_profile_is_not_found(api_client: httpx.AsyncClient) -> None:
    response = await api_client.get(f"/public/tutors/missing-{UUID(int=0).hex[:8]}")

    _assert_status(response, 404)
