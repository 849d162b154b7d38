import re
from enum import StrEnum

from pydantic import (
    BaseModel,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)

DEFAULT_TTL_MINUTES = 15
MIN_TTL_MINUTES = 1
MAX_TTL_MINUTES = 60

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
# E.164-ish: optional "+", no leading zero, 7 to 16 digits in total.
PHONE_RE = re.compile(r"^\+?[1-9]\d{6,15}$")
OTP_RE = re.compile(r"^\d{6}$")


class HouseholdRole(StrEnum):
    boss = "boss"
    helper = "helper"


class ContactKind(StrEnum):
    email = "email"
    phone = "phone"


class InvitationStatus(StrEnum):
    pending = "pending"
    revoked = "revoked"
    consumed = "consumed"


def clamp_ttl_minutes(value: int | None) -> int:
    if value is None:
        return DEFAULT_TTL_MINUTES
    return max(MIN_TTL_MINUTES, min(MAX_TTL_MINUTES, value))


def is_valid_contact(contact: str, kind: ContactKind) -> bool:
    pattern = EMAIL_RE if kind is ContactKind.email else PHONE_RE
    return pattern.match(contact.strip()) is not None


class InviteIn(BaseModel):
    household_id: str = Field(min_length=1)
    role: HouseholdRole = HouseholdRole.helper
    contact: str = Field(min_length=1)
    contact_kind: ContactKind
    ttl_minutes: int | None = DEFAULT_TTL_MINUTES

    @field_validator("household_id", "contact")
    @classmethod
    def strip_required(cls, value: str, info: ValidationInfo) -> str:
        value = value.strip()
        if not value:
            raise ValueError(f"{info.field_name} is required")
        return value

    @field_validator("role", mode="before")
    @classmethod
    def default_role(cls, value):
        return HouseholdRole.helper if value is None else value

    @field_validator("ttl_minutes")
    @classmethod
    def clamp_ttl(cls, value: int | None) -> int:
        return clamp_ttl_minutes(value)

    @model_validator(mode="after")
    def check_contact_shape(self) -> "InviteIn":
        if not is_valid_contact(self.contact, self.contact_kind):
            if self.contact_kind is ContactKind.email:
                raise ValueError("Invalid email")
            raise ValueError("Invalid phone (E.164)")
        return self


class InviteOut(BaseModel):
    ok: bool = True
    invitation_id: str


class InvitationAcceptIn(BaseModel):
    contact: str = Field(min_length=1)
    code: str

    @field_validator("contact")
    @classmethod
    def strip_contact(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("contact is required")
        return value

    @field_validator("code")
    @classmethod
    def validate_code(cls, value: str) -> str:
        value = value.strip()
        if not OTP_RE.match(value):
            raise ValueError("Code must be 6 digits")
        return value


class InvitationAcceptOut(BaseModel):
    ok: bool = True
    household_id: str
    role: HouseholdRole
