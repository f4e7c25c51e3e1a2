import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

Priority = Literal["low", "medium", "high"]

PRIORITY_RANK: dict[str, int] = {"low": 0, "medium": 1, "high": 2}


def _as_utc(value: datetime.datetime | None) -> datetime.datetime | None:
    """Naive datetimes (SQLite, clients without offsets) are taken as UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=datetime.timezone.utc)
    return value


class NoticeInfo(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    content: str
    priority: Priority
    active: bool
    created_at: datetime.datetime
    expires_at: datetime.datetime | None = None

    @field_validator("created_at", "expires_at")
    @classmethod
    def assume_utc(cls, value):
        return _as_utc(value)


class NoticeCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    content: str = Field(min_length=1)
    priority: Priority = "low"
    active: bool = True
    expires_at: datetime.datetime | None = None

    @field_validator("expires_at")
    @classmethod
    def assume_utc(cls, value):
        return _as_utc(value)


class NoticeUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=255)
    content: str | None = Field(None, min_length=1)
    priority: Priority | None = None
    active: bool | None = None
    expires_at: datetime.datetime | None = None

    @field_validator("expires_at")
    @classmethod
    def assume_utc(cls, value):
        return _as_utc(value)

    def changes(self) -> dict:
        """Fields the client sent; only expires_at may be cleared with null."""
        data = self.model_dump(exclude_unset=True)
        return {k: v for k, v in data.items() if v is not None or k == "expires_at"}


class NoticeList(BaseModel):
    notices: list[NoticeInfo]
    timestamp: str


class NoticeResponse(BaseModel):
    notice: NoticeInfo
