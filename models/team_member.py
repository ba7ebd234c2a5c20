from sqlmodel import SQLModel, Field
from typing import Optional
from enum import Enum


class TeamMemberStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class TeamMember(SQLModel, table=True):
    __tablename__ = "team_directory"

    id: Optional[int] = Field(default=None, primary_key=True)
    # Null until the directory entry is linked to a login
    user_id: Optional[str] = Field(default=None, index=True)
    full_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    role: Optional[str] = None  # e.g. "owner", "admin", "crew"
    status: TeamMemberStatus = Field(default=TeamMemberStatus.ACTIVE, index=True)


class Profile(SQLModel, table=True):
    __tablename__ = "profiles"

    # Same identifier as TeamMember.user_id
    id: str = Field(primary_key=True)
    avatar_url: Optional[str] = None
