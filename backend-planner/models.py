from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class UserStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class User(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    email: str
    password: str  # argon2 hash (legacy records may still hold plaintext)
    plan: str
    status: str = UserStatus.PENDING.value
    created_at: str = Field(alias="createdAt")
    session_token: Optional[str] = Field(default=None, alias="sessionToken")

    @field_validator("id", "name", "email", "password", "plan", "status", "created_at", "session_token", mode="before")
    @classmethod
    def coerce_scalars(cls, v):
        """Older stores kept whatever JSON type the client sent (e.g. a numeric plan)."""
        if isinstance(v, bool):
            return "true" if v else "false"
        if isinstance(v, (int, float)):
            return str(v)
        return v

    @property
    def is_approved(self) -> bool:
        return self.status == UserStatus.APPROVED.value

    def public_profile(self) -> dict:
        """Fields safe to hand to the admin panel."""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "plan": self.plan,
            "status": self.status,
            "createdAt": self.created_at,
        }


class UserCollection(BaseModel):
    users: List[User] = Field(default_factory=list)
