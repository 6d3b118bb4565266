"""Authentication data models."""

from dataclasses import dataclass
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class UserRecord(BaseModel):
    """A user entry from the YAML user store."""

    user_id: str = Field(..., description="Stable user id")
    username: str = Field(..., description="Login name")
    display_name: str = Field("", description="Name shown in the UI")
    password_hash: str = Field(..., description="bcrypt hash of the password", repr=False)
    groups: list[str] = Field(default_factory=list, description="Group ids the user belongs to")
    is_admin: bool = Field(False, description="Admins bypass document permissions")
    is_active: bool = Field(True, description="Inactive users cannot log in or use existing sessions")


class UsersConfig(BaseModel):
    """Root user store configuration loaded from YAML."""

    users: list[UserRecord] = Field(default_factory=list)


class Principal(BaseModel):
    """Authenticated identity for the lifetime of one request."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    username: str
    display_name: str = ""
    group_ids: frozenset[str] = frozenset()
    is_admin: bool = False

    @classmethod
    def from_user(cls, user: UserRecord) -> "Principal":
        return cls(
            user_id=user.user_id,
            username=user.username,
            display_name=user.display_name or user.username,
            group_ids=frozenset(user.groups),
            is_admin=user.is_admin,
        )


@dataclass(frozen=True, slots=True)
class Session:
    """A login session. Valid while `now <= expires_at`."""

    token: str
    user_id: str
    created_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at
