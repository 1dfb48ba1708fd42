from datetime import datetime

from pydantic import BaseModel, Field


class UserOut(BaseModel):
    id: str
    full_name: str | None = None
    avatar_url: str | None = None
    phone: str | None = None
    is_verified: bool
    is_admin: bool
    created_at: datetime


class AdminUserOut(UserOut):
    events_count: int = 0


class AdminUserPageOut(BaseModel):
    data: list[AdminUserOut] = Field(default_factory=list)
    count: int
    page: int
    page_size: int
    total_pages: int


class AdminFlagPatchRequest(BaseModel):
    is_admin: bool


class VerifiedFlagPatchRequest(BaseModel):
    is_verified: bool


class AdminStatsOut(BaseModel):
    total_events: int
    pending_events: int
    total_users: int
    verified_users: int


class AdminStatusOut(BaseModel):
    is_admin: bool
