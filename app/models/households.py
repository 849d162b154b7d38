import datetime
import uuid

from sqlalchemy import (
    DateTime,
    Enum,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
    func,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base
from app.schemas.invitations import ContactKind, HouseholdRole, InvitationStatus


def _new_id() -> str:
    return str(uuid.uuid4())


def _enum_column(enum_cls, name: str) -> Enum:
    return Enum(
        enum_cls,
        name=name,
        native_enum=False,
        length=16,
        values_callable=lambda enum_cls: [e.value for e in enum_cls],
    )


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    email: Mapped[str | None] = mapped_column(default=None, index=True)
    phone: Mapped[str | None] = mapped_column(default=None, index=True)
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        insert_default=func.now(),
        server_default=func.now(),
        init=False,
    )
    memberships: Mapped[list["Membership"]] = relationship(
        back_populates="user", init=False
    )


class Household(Base):
    __tablename__ = "households"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default_factory=_new_id
    )
    name: Mapped[str] = mapped_column(default="")
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        insert_default=func.now(),
        server_default=func.now(),
        init=False,
    )
    memberships: Mapped[list["Membership"]] = relationship(
        back_populates="household", init=False
    )


class Membership(Base):
    __tablename__ = "memberships"

    id: Mapped[int] = mapped_column(primary_key=True, init=False)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id"), index=True)
    household_id: Mapped[str] = mapped_column(ForeignKey("households.id"), index=True)
    role: Mapped[HouseholdRole] = mapped_column(
        _enum_column(HouseholdRole, "householdrole")
    )
    user: Mapped[User] = relationship(back_populates="memberships", init=False)
    household: Mapped[Household] = relationship(
        back_populates="memberships", init=False
    )

    __table_args__ = (
        UniqueConstraint("user_id", "household_id", name="uq_membership_user_household"),
    )


class Invitation(Base):
    __tablename__ = "invitations"

    household_id: Mapped[str] = mapped_column(ForeignKey("households.id"), index=True)
    inviter_id: Mapped[str] = mapped_column(ForeignKey("users.id"))
    role: Mapped[HouseholdRole] = mapped_column(
        _enum_column(HouseholdRole, "householdrole")
    )
    contact: Mapped[str] = mapped_column(index=True)
    contact_kind: Mapped[ContactKind] = mapped_column(
        _enum_column(ContactKind, "contactkind")
    )
    otp_code_hash: Mapped[str] = mapped_column(String(64), repr=False)
    otp_expires_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True))
    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default_factory=_new_id
    )
    status: Mapped[InvitationStatus] = mapped_column(
        _enum_column(InvitationStatus, "invitationstatus"),
        default=InvitationStatus.pending,
    )
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        insert_default=func.now(),
        server_default=func.now(),
        init=False,
    )
    consumed_at: Mapped[datetime.datetime | None] = mapped_column(
        DateTime(timezone=True), default=None
    )
    consumed_by_id: Mapped[str | None] = mapped_column(
        ForeignKey("users.id"), default=None
    )

    __table_args__ = (
        # One live code per contact and household.
        Index(
            "uq_invitations_pending_contact",
            "household_id",
            "contact",
            unique=True,
            sqlite_where=text("status = 'pending'"),
            postgresql_where=text("status = 'pending'"),
        ),
    )
