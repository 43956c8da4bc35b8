"""Public Registration Routes — what a visitor's phone hits after scanning the QR code.

Invariants:
    - No identity headers: these routes are public
    - validate is read-only and never reveals usage counts or who created the token
    - A successful submission schedules a duplicate scan as a background task;
      the scan only logs and never changes the response
"""

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request, status

from church_intake.api.deps import (
    get_duplicate_detector, get_registration_intake, get_token_validator,
)
from church_intake.api.error_handlers import raise_for_err
from church_intake.schemas.registration import RegistrationSubmit, SubmissionResponse
from church_intake.schemas.token import TokenValidationResponse
from church_intake.services.duplicate_detector import (
    DuplicateDetector, scan_for_duplicates,
)
from church_intake.services.registration_intake import RegistrationIntake
from church_intake.services.token_validator import TokenValidator

router = APIRouter(prefix="/api/v1/register/qr", tags=["public-registration"])


@router.get("/validate", response_model=TokenValidationResponse)
async def validate_token(
    token: str = Query("", max_length=200),
    validator: TokenValidator = Depends(get_token_validator),
):
    """Check a link before showing the form. Invalid links are 200 with a reason."""
    result = await validator.validate(token)
    if not result.valid:
        return TokenValidationResponse(valid=False, reason=result.reason)
    metadata = result.token.metadata
    return TokenValidationResponse(
        valid=True,
        purpose=metadata.purpose,
        event_date=metadata.event_date,
        location=metadata.location,
    )


@router.post(
    "", response_model=SubmissionResponse, status_code=status.HTTP_201_CREATED,
)
async def submit_registration(
    body: RegistrationSubmit,
    request: Request,
    background_tasks: BackgroundTasks,
    token: str = Query("", max_length=200),
    intake: RegistrationIntake = Depends(get_registration_intake),
    detector: DuplicateDetector = Depends(get_duplicate_detector),
):
    form = body.to_form(
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )
    registration_id = raise_for_err(await intake.submit(token, form))
    background_tasks.add_task(scan_for_duplicates, detector, registration_id)
    return SubmissionResponse(registration_id=registration_id)
