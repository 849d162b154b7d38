import logging
from datetime import UTC, datetime, timedelta

import httpx
from fastapi import HTTPException, status
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import Settings
from app.core.security import generate_otp_code, hash_code
from app.models.households import Invitation, Membership, User
from app.schemas.invitations import (
    ContactKind,
    HouseholdRole,
    InvitationAcceptIn,
    InvitationStatus,
    InviteIn,
)
from app.services.email_service import send_code_via_resend
from app.services.notify_service import (
    DeliveryError,
    ProviderNotConfiguredError,
    compose_invite_message,
)
from app.services.sms_service import send_code_via_twilio

logger = logging.getLogger(__name__)


def _get_membership(db: Session, household_id: str, user_id: str) -> Membership | None:
    return db.execute(
        select(Membership).where(
            Membership.household_id == household_id,
            Membership.user_id == user_id,
        )
    ).scalar_one_or_none()


def ensure_household_boss(db: Session, household_id: str, user: User) -> Membership:
    membership = _get_membership(db, household_id, user.id)
    if membership is None or membership.role != HouseholdRole.boss:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only bosses can send invites for this household",
        )
    return membership


def _as_aware(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns.
    if value.tzinfo is None or value.tzinfo.utcoffset(value) is None:
        return value.replace(tzinfo=UTC)
    return value


def revoke_pending_invitations(db: Session, household_id: str, contact: str) -> None:
    db.execute(
        update(Invitation)
        .where(
            Invitation.household_id == household_id,
            Invitation.contact == contact,
            Invitation.status == InvitationStatus.pending,
        )
        .values(status=InvitationStatus.revoked)
    )


def store_invitation(
    db: Session,
    inviter: User,
    payload: InviteIn,
    code: str,
) -> Invitation:
    """Revoke the previous pending code for the contact and persist a new one.

    Both statements share one transaction; a concurrent request that wins the
    race trips the pending-contact unique index and this one gets a 409.
    """
    expires_at = datetime.now(UTC) + timedelta(minutes=payload.ttl_minutes)
    revoke_pending_invitations(db, payload.household_id, payload.contact)

    invitation = Invitation(
        household_id=payload.household_id,
        inviter_id=inviter.id,
        role=payload.role,
        contact=payload.contact,
        contact_kind=payload.contact_kind,
        otp_code_hash=hash_code(code),
        otp_expires_at=expires_at,
    )
    db.add(invitation)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Another invite for this contact is being sent",
        ) from exc
    db.refresh(invitation)
    return invitation


def dispatch_code(
    settings: Settings,
    http: httpx.Client,
    contact: str,
    contact_kind: ContactKind,
    message: str,
) -> None:
    if contact_kind is ContactKind.email:
        send_code_via_resend(settings, http, contact, message)
    else:
        send_code_via_twilio(settings, http, contact, message)


def send_invite(
    db: Session,
    settings: Settings,
    http: httpx.Client,
    inviter: User,
    payload: InviteIn,
) -> Invitation:
    ensure_household_boss(db, payload.household_id, inviter)

    code = generate_otp_code()
    invitation = store_invitation(db, inviter, payload, code)
    message = compose_invite_message(code, payload.ttl_minutes)

    # The row stays pending when delivery fails; nothing is rolled back.
    try:
        dispatch_code(settings, http, payload.contact, payload.contact_kind, message)
    except ProviderNotConfiguredError as exc:
        logger.error("Invitation %s not sent: %s", invitation.id, exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(exc),
        ) from exc
    except DeliveryError as exc:
        logger.warning(
            "Invitation %s delivery failed via %s (status %s)",
            invitation.id,
            exc.provider,
            exc.status_code,
        )
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=str(exc),
        ) from exc

    logger.info(
        "Invitation %s sent for household %s via %s",
        invitation.id,
        invitation.household_id,
        invitation.contact_kind.value,
    )
    return invitation


def _find_pending_invitation(
    db: Session, contact: str, code: str
) -> Invitation | None:
    return db.execute(
        select(Invitation)
        .where(
            Invitation.contact == contact,
            Invitation.otp_code_hash == hash_code(code),
            Invitation.status == InvitationStatus.pending,
        )
        .order_by(Invitation.created_at.desc())
        .limit(1)
    ).scalar_one_or_none()


def _consume(invitation: Invitation, user: User, now: datetime) -> None:
    invitation.status = InvitationStatus.consumed
    invitation.consumed_at = now
    invitation.consumed_by_id = user.id


def accept_invite(db: Session, user: User, payload: InvitationAcceptIn) -> Invitation:
    now = datetime.now(UTC)
    invitation = _find_pending_invitation(db, payload.contact, payload.code)
    if invitation is None or _as_aware(invitation.otp_expires_at) < now:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid or expired code",
        )

    if _get_membership(db, invitation.household_id, user.id) is not None:
        _consume(invitation, user, now)
        db.commit()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Already a member of this household",
        )

    db.add(
        Membership(
            user_id=user.id,
            household_id=invitation.household_id,
            role=invitation.role,
        )
    )
    _consume(invitation, user, now)
    try:
        db.commit()
    except IntegrityError as exc:
        # Lost a race with another redemption for the same user.
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Already a member of this household",
        ) from exc
    db.refresh(invitation)
    logger.info("Invitation %s consumed by user %s", invitation.id, user.id)
    return invitation
