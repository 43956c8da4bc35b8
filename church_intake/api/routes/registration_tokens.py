"""Registration Token Routes — staff endpoints for QR token management.

Invariants:
    - Every route requires an admin or pastor (require_staff)
    - Responses always include the registration URL the QR code encodes
    - Tokens are deactivated, never deleted
"""

from fastapi import APIRouter, Depends, Query, status

from church_intake.api.deps import get_token_issuer, require_staff
from church_intake.api.error_handlers import raise_for_err
from church_intake.core.domain_types import ActorId, TokenId
from church_intake.core.records import ActorContext
from church_intake.schemas.token import CleanupResponse, TokenCreate, TokenResponse
from church_intake.services.token_issuer import TokenIssuer

router = APIRouter(prefix="/api/v1/registration-tokens", tags=["registration-tokens"])


@router.post(
    "", response_model=TokenResponse, status_code=status.HTTP_201_CREATED,
)
async def create_token(
    body: TokenCreate,
    actor: ActorContext = Depends(require_staff),
    issuer: TokenIssuer = Depends(get_token_issuer),
):
    token = raise_for_err(await issuer.create_token(
        created_by=actor.actor_id,
        purpose=body.purpose,
        expires_at=body.expires_at,
        max_uses=body.max_uses,
        notes=body.notes,
        event_date=body.event_date,
        location=body.location,
    ))
    return TokenResponse.from_record(token, issuer.registration_url(token.token))


@router.get("", response_model=list[TokenResponse])
async def list_tokens(
    created_by: str | None = Query(None, max_length=100),
    actor: ActorContext = Depends(require_staff),
    issuer: TokenIssuer = Depends(get_token_issuer),
):
    """Active tokens, or every token one staff member created."""
    if created_by:
        tokens = await issuer.list_by_creator(ActorId(created_by))
    else:
        tokens = await issuer.list_active()
    return [
        TokenResponse.from_record(t, issuer.registration_url(t.token)) for t in tokens
    ]


@router.post("/cleanup-expired", response_model=CleanupResponse)
async def cleanup_expired(
    actor: ActorContext = Depends(require_staff),
    issuer: TokenIssuer = Depends(get_token_issuer),
):
    return CleanupResponse(deactivated=await issuer.cleanup_expired(actor.actor_id))


@router.post("/{token_id}/deactivate", response_model=TokenResponse)
async def deactivate_token(
    token_id: str,
    actor: ActorContext = Depends(require_staff),
    issuer: TokenIssuer = Depends(get_token_issuer),
):
    token = raise_for_err(await issuer.deactivate(TokenId(token_id), actor.actor_id))
    return TokenResponse.from_record(token, issuer.registration_url(token.token))
