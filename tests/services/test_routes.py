"""HTTP Routes — full request paths over SQLite through the FastAPI app.

Tests cover:
    - Health and readiness checks
    - Staff token management; non-staff callers get 403 and leave an audit row
    - Public validate / submit, including the usage cap, invalid links and long user agents
    - Review queue: list, approve, reject, 409 on a second decision, bulk approve
    - Request validation errors use the 400 VALIDATION_ERROR envelope
"""

from sqlalchemy import select

from church_intake.core.domain_types import USER_AGENT_MAX_LENGTH
from church_intake.models.audit_entry import AuditLogEntry
from church_intake.models.pending_registration import PendingRegistration
from tests.services.fakes import ADMIN, BASE_URL, staff_headers

TOKENS = "/api/v1/registration-tokens"
REGISTER = "/api/v1/register/qr"
REVIEW = "/api/v1/registrations"


async def _create_token(client, **body) -> dict:
    response = await client.post(
        TOKENS, json={"purpose": "Sunday service", **body}, headers=staff_headers(),
    )
    assert response.status_code == 201
    return response.json()


async def _submit(client, token: str, **body):
    return await client.post(
        REGISTER, params={"token": token},
        json={"first_name": "Ana", "last_name": "Silva", **body},
    )


# ─── Health ──────────────────────────────────────────────────────

async def test_health(client):
    response = await client.get("/api/v1/health/")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


async def test_readiness(client):
    response = await client.get("/api/v1/health/ready")
    assert response.status_code == 200
    assert response.json()["checks"]["database"] == "healthy"


# ─── Tokens ──────────────────────────────────────────────────────

async def test_create_and_list_tokens(client):
    created = await _create_token(client, max_uses=25, location="Main hall")

    assert created["registration_url"] == (
        f"{BASE_URL}/register/qr?token={created['token']}"
    )
    assert created["max_uses"] == 25
    assert created["remaining_uses"] == 25
    assert created["created_by"] == "pastor-1"

    listed = await client.get(TOKENS, headers=staff_headers())
    assert [t["id"] for t in listed.json()] == [created["id"]]


async def test_create_token_rejects_zero_max_uses(client):
    response = await client.post(
        TOKENS, json={"purpose": "Retreat", "max_uses": 0}, headers=staff_headers(),
    )
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_non_staff_is_refused_and_audited(client, test_session_factory):
    response = await client.post(
        TOKENS, json={"purpose": "Sneaky"}, headers=staff_headers("m-9", "member"),
    )

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "UNAUTHORIZED_ACCESS"
    async with test_session_factory() as session:
        [row] = (await session.scalars(select(AuditLogEntry))).all()
    assert row.action == "unauthorized_access"
    assert row.result == "DENIED"
    assert row.risk_level == "HIGH"
    assert row.target_id == TOKENS


async def test_missing_actor_header_is_validation_error(client):
    response = await client.get(TOKENS)
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_deactivate_twice_conflicts(client):
    created = await _create_token(client)
    url = f"{TOKENS}/{created['id']}/deactivate"

    first = await client.post(url, headers=staff_headers())
    second = await client.post(url, headers=staff_headers())

    assert first.status_code == 200
    assert first.json()["is_active"] is False
    assert second.status_code == 409
    assert second.json()["error"]["code"] == "ALREADY_PROCESSED"


# ─── Public registration ─────────────────────────────────────────

async def test_validate_token(client):
    created = await _create_token(client, location="Chapel")

    ok = await client.get(f"{REGISTER}/validate", params={"token": created["token"]})
    bad = await client.get(f"{REGISTER}/validate", params={"token": "nope"})
    unknown = await client.get(
        f"{REGISTER}/validate", params={"token": "ZZZZZZZZZZZZZZZZ"},
    )

    assert ok.json()["valid"] is True
    assert ok.json()["location"] == "Chapel"
    assert "current_uses" not in ok.json()
    assert bad.json() == {
        "valid": False, "reason": "INVALID_FORMAT",
        "purpose": None, "event_date": None, "location": None,
    }
    assert unknown.json()["reason"] == "NOT_FOUND"


async def test_submit_consumes_a_use(client):
    created = await _create_token(client, max_uses=1)

    first = await _submit(client, created["token"], email="ana@example.com")
    second = await _submit(client, created["token"], first_name="Bia")

    assert first.status_code == 201
    assert first.json()["registration_id"]
    assert second.status_code == 400
    assert second.json()["error"]["code"] == "EXHAUSTED"


async def test_submit_with_blank_name(client):
    created = await _create_token(client)
    response = await _submit(client, created["token"], first_name="  ")
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "MISSING_REQUIRED_FIELD"


async def test_submit_with_deactivated_token(client):
    created = await _create_token(client)
    await client.post(f"{TOKENS}/{created['id']}/deactivate", headers=staff_headers())

    response = await _submit(client, created["token"])

    assert response.json()["error"]["code"] == "INACTIVE"


# ─── Review ──────────────────────────────────────────────────────

async def test_review_flow(client):
    created = await _create_token(client)
    reg_id = (await _submit(client, created["token"], email="ana@example.com")).json()[
        "registration_id"
    ]

    queue = await client.get(REVIEW, headers=staff_headers())
    assert [r["id"] for r in queue.json()] == [reg_id]
    assert queue.json()[0]["approval_status"] == "pending"

    approved = await client.post(
        f"{REVIEW}/{reg_id}/approve", json={"role": "member"}, headers=staff_headers(),
    )
    assert approved.status_code == 200
    assert approved.json()["member_id"]

    again = await client.post(
        f"{REVIEW}/{reg_id}/reject", json={"reason": "Spam"},
        headers=staff_headers(ADMIN, "admin"),
    )
    assert again.status_code == 409
    assert again.json()["error"]["code"] == "ALREADY_PROCESSED"

    detail = await client.get(f"{REVIEW}/{reg_id}", headers=staff_headers())
    assert detail.json()["approval_status"] == "approved"


async def test_reject_requires_reason(client):
    created = await _create_token(client)
    reg_id = (await _submit(client, created["token"])).json()["registration_id"]

    blank = await client.post(
        f"{REVIEW}/{reg_id}/reject", json={"reason": " "}, headers=staff_headers(),
    )
    rejected = await client.post(
        f"{REVIEW}/{reg_id}/reject", json={"reason": "Test entry"},
        headers=staff_headers(),
    )

    assert blank.json()["error"]["code"] == "INVALID_REASON"
    assert rejected.status_code == 200
    assert rejected.json()["approval_status"] == "rejected"
    assert rejected.json()["rejection_reason"] == "Test entry"


async def test_unknown_registration_is_404(client):
    response = await client.get(f"{REVIEW}/missing", headers=staff_headers())
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "RESOURCE_NOT_FOUND"


async def test_duplicates_endpoints(client):
    created = await _create_token(client)
    first = (await _submit(client, created["token"], email="ana@example.com")).json()
    await _submit(client, created["token"], email="ANA@example.com", first_name="Ann")

    candidates = await client.get(
        f"{REVIEW}/{first['registration_id']}/duplicates", headers=staff_headers(),
    )
    flagged = await client.get(f"{REVIEW}/duplicates", headers=staff_headers())

    [candidate] = candidates.json()
    assert candidate["first_name"] == "Ann"
    assert candidate["matched_on"] == ["email"]
    assert len(flagged.json()) == 2


async def test_bulk_approve_reports_each_id(client):
    created = await _create_token(client)
    ids = [
        (await _submit(client, created["token"], first_name=name)).json()["registration_id"]
        for name in ("Ana", "Bia", "Caio")
    ]
    await client.post(
        f"{REVIEW}/{ids[1]}/reject", json={"reason": "Duplicate"}, headers=staff_headers(),
    )

    response = await client.post(
        f"{REVIEW}/bulk-approve", json={"ids": ids}, headers=staff_headers(),
    )

    body = response.json()
    assert response.status_code == 200
    assert sorted(a["registration_id"] for a in body["successful"]) == sorted(
        [ids[0], ids[2]],
    )
    assert body["failed"] == [{
        "id": ids[1], "code": "ALREADY_PROCESSED", "message": body["failed"][0]["message"],
    }]


async def test_bulk_approve_empty_batch(client):
    response = await client.post(
        f"{REVIEW}/bulk-approve", json={"ids": []}, headers=staff_headers(),
    )
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_BATCH"


async def test_submit_with_oversized_user_agent(client, test_session_factory):
    created = await _create_token(client)

    response = await client.post(
        REGISTER, params={"token": created["token"]},
        json={"first_name": "Ana", "last_name": "Silva"},
        headers={"User-Agent": "Mozilla/5.0 " + "x" * 600},
    )

    assert response.status_code == 201
    async with test_session_factory() as session:
        row = await session.get(PendingRegistration, response.json()["registration_id"])
    assert len(row.user_agent) == USER_AGENT_MAX_LENGTH
