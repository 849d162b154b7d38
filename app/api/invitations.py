import httpx
from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse
from sqlalchemy.orm import Session

from app.api.deps import get_current_user
from app.core.config import Settings, get_settings
from app.core.database import get_db
from app.core.http import get_http_client
from app.models.households import User
from app.schemas.invitations import (
    InvitationAcceptIn,
    InvitationAcceptOut,
    InviteIn,
    InviteOut,
)
from app.services import invitation_service

router = APIRouter(tags=["invitations"])


@router.options("/send-invite", include_in_schema=False)
def send_invite_options() -> PlainTextResponse:
    # Browser preflights never get here; CORSMiddleware answers them.
    return PlainTextResponse("ok")


@router.post("/send-invite", response_model=InviteOut)
def send_invite(
    payload: InviteIn,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    http: httpx.Client = Depends(get_http_client),
    current_user: User = Depends(get_current_user),
) -> InviteOut:
    invitation = invitation_service.send_invite(
        db, settings, http, current_user, payload
    )
    return InviteOut(invitation_id=invitation.id)


@router.post("/invitations/accept", response_model=InvitationAcceptOut)
def accept_invitation(
    payload: InvitationAcceptIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> InvitationAcceptOut:
    invitation = invitation_service.accept_invite(db, current_user, payload)
    return InvitationAcceptOut(
        household_id=invitation.household_id,
        role=invitation.role,
    )
