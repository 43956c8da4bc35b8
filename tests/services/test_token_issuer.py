"""Token Issuer — creation, collision retry, deactivation and expiry cleanup.

Tests cover:
    - create_token stores an active, unused token with the registration URL
    - max_uses=None is stored as unlimited (-1)
    - Invalid parameters are refused before any store call
    - Collisions retry with a fresh string; exhausting attempts is GENERATION_EXHAUSTED
    - Deactivation happens once; the second attempt is ALREADY_PROCESSED and audited HIGH
    - cleanup_expired deactivates only expired active tokens
"""

from datetime import timedelta
from itertools import repeat

from church_intake.core.domain_types import (
    AuditAction, AuditResult, RiskLevel, TokenId, UNLIMITED_USES,
)
from church_intake.services.token_issuer import TokenIssuer
from tests.services.fakes import BASE_URL, PASTOR, T0, make_token


async def test_create_token(issuer, token_store, audit_sink):
    outcome = await issuer.create_token(
        PASTOR, "Easter Sunday", max_uses=50, location="Main hall",
    )

    assert outcome.ok
    token = outcome.value
    assert token_store.tokens[token.id] == token
    assert token.is_active
    assert token.current_uses == 0
    assert token.max_uses == 50
    assert token.created_at == T0
    assert len(token.token) == 16 and token.token.isalnum()
    assert token.metadata.location == "Main hall"
    assert issuer.registration_url(token.token) == (
        f"{BASE_URL}/register/qr?token={token.token}"
    )
    [entry] = audit_sink.entries
    assert entry.action is AuditAction.TOKEN_CREATED
    assert entry.result is AuditResult.SUCCESS


async def test_create_unlimited_token(issuer):
    outcome = await issuer.create_token(PASTOR, "Visitors desk")
    assert outcome.value.max_uses == UNLIMITED_USES
    assert outcome.value.remaining_uses is None


async def test_create_rejects_zero_max_uses(issuer, token_store):
    outcome = await issuer.create_token(PASTOR, "Retreat", max_uses=0)
    assert outcome.code == "INVALID_TOKEN_PARAMETERS"
    assert token_store.insert_attempts == 0


async def test_create_rejects_past_expiry(issuer, token_store):
    outcome = await issuer.create_token(
        PASTOR, "Retreat", expires_at=T0 - timedelta(minutes=1),
    )
    assert outcome.code == "INVALID_TOKEN_PARAMETERS"
    assert outcome.error.field == "expires_at"
    assert token_store.tokens == {}


async def test_create_rejects_blank_purpose(issuer):
    assert (await issuer.create_token(PASTOR, "  ")).code == "INVALID_TOKEN_PARAMETERS"


async def test_collision_retries_with_new_string(token_store, audit, clock):
    token_store.tokens["old"] = make_token("old", token="AAAAAAAAAAAAAAAA")
    strings = iter(["AAAAAAAAAAAAAAAA", "BBBBBBBBBBBBBBBB"])
    issuer = TokenIssuer(
        token_store, audit, clock, BASE_URL, generate=lambda length: next(strings),
    )

    outcome = await issuer.create_token(PASTOR, "Youth night")

    assert outcome.value.token == "BBBBBBBBBBBBBBBB"
    assert token_store.insert_attempts == 2


async def test_generation_exhausted(token_store, audit, clock):
    token_store.tokens["old"] = make_token("old", token="AAAAAAAAAAAAAAAA")
    strings = repeat("AAAAAAAAAAAAAAAA")
    issuer = TokenIssuer(
        token_store, audit, clock, BASE_URL,
        max_attempts=3, generate=lambda length: next(strings),
    )

    outcome = await issuer.create_token(PASTOR, "Youth night")

    assert outcome.code == "GENERATION_EXHAUSTED"
    assert token_store.insert_attempts == 3
    assert list(token_store.tokens) == ["old"]


async def test_create_succeeds_when_audit_sink_fails(issuer, token_store, audit_sink):
    audit_sink.failing = True
    outcome = await issuer.create_token(PASTOR, "Christmas")
    assert outcome.ok
    assert outcome.value.id in token_store.tokens


async def test_deactivate_once(issuer, token_store, audit_sink):
    token_store.tokens["tok-1"] = make_token()

    outcome = await issuer.deactivate(TokenId("tok-1"), PASTOR)

    assert outcome.ok
    assert not outcome.value.is_active
    assert not token_store.tokens["tok-1"].is_active
    assert audit_sink.entries[-1].result is AuditResult.SUCCESS


async def test_deactivate_twice_is_already_processed(issuer, token_store, audit_sink):
    token_store.tokens["tok-1"] = make_token()
    await issuer.deactivate(TokenId("tok-1"), PASTOR)

    outcome = await issuer.deactivate(TokenId("tok-1"), PASTOR)

    assert outcome.code == "ALREADY_PROCESSED"
    denied = audit_sink.entries[-1]
    assert denied.result is AuditResult.DENIED
    assert denied.risk_level is RiskLevel.HIGH


async def test_deactivate_unknown_token(issuer):
    outcome = await issuer.deactivate(TokenId("missing"), PASTOR)
    assert outcome.code == "RESOURCE_NOT_FOUND"


async def test_cleanup_expired(issuer, token_store, clock):
    token_store.tokens["past"] = make_token(
        "past", token="PASTPAST11111111", expires_at=T0 - timedelta(days=1),
    )
    token_store.tokens["future"] = make_token(
        "future", token="FUTUREFU22222222", expires_at=T0 + timedelta(days=1),
    )
    token_store.tokens["forever"] = make_token("forever", token="FOREVERF33333333")
    token_store.tokens["done"] = make_token(
        "done", token="DONEDONE44444444", expires_at=T0 - timedelta(days=2),
        is_active=False,
    )

    assert await issuer.cleanup_expired(PASTOR) == 1
    assert not token_store.tokens["past"].is_active
    assert token_store.tokens["future"].is_active
    assert token_store.tokens["forever"].is_active


async def test_list_active_and_by_creator(issuer, token_store):
    token_store.tokens["a"] = make_token("a", token="AAAAAAAA11111111")
    token_store.tokens["b"] = make_token(
        "b", token="BBBBBBBB22222222", is_active=False, created_at=T0 + timedelta(hours=1),
    )
    token_store.tokens["c"] = make_token(
        "c", token="CCCCCCCC33333333", created_by="admin-1",
    )

    assert {t.id for t in await issuer.list_active()} == {"a", "c"}
    assert [t.id for t in await issuer.list_by_creator(PASTOR)] == ["b", "a"]
