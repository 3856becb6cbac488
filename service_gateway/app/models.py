"""
Data models for the Gateway service.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Identity(BaseModel):
    """Verified user identity; `email` is the principal id."""

    model_config = ConfigDict(frozen=True)

    name: Optional[str] = None
    email: str
    picture: Optional[str] = None


class AuditAction(str, Enum):
    """Audited action types."""
    CONVERT = "CONVERT"
    ERROR = "ERROR"


class AuditStatus(str, Enum):
    """Audited action outcomes."""
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


class AuditEntry(BaseModel):
    """Immutable record of one guarded action attempt."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    timestamp: str
    user: str
    action: AuditAction
    file: str = "unknown"
    from_to: Optional[str] = Field(default=None, alias="fromTo")
    status: AuditStatus
    message: Optional[str] = None

    def to_wire(self) -> dict:
        """Render the JSON shape served to clients, omitting absent fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


@dataclass(frozen=True)
class UploadPayload:
    """A single uploaded file buffered in memory."""
    original_name: str
    content_type: Optional[str]
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


class GoogleAuthResponse(BaseModel):
    """Response model for the identity exchange."""
    token: str
    user: Identity


class ConvertResponse(BaseModel):
    """Response model for the convert operation."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    converted_name: Optional[str] = Field(default=None, alias="convertedName")

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)
