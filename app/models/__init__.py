from app.core.database import Base
from app.models.households import Household, Invitation, Membership, User

__all__ = [
    "Base",
    "Household",
    "Invitation",
    "Membership",
    "User",
]
