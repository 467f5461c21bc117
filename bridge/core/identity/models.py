from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class VerifyType(str, Enum):
    email = "email"
    notification_email = "notificationEmail"


class PartnerInfo(BaseModel):
    """Partner attribution pair. Serialized with the remote field names."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    partner_code: Optional[Any] = Field(default=None, alias="partnerCode")
    partner_info: Optional[Any] = Field(default=None, alias="partnerInfo")

    @property
    def complete(self) -> bool:
        return bool(self.partner_code) and bool(self.partner_info)

    def to_cookie(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class LoginCredentials(BaseModel):
    model_config = ConfigDict(extra="forbid")

    username: str
    password: str
    role: str


class HashLoginCredentials(BaseModel):
    model_config = ConfigDict(extra="forbid")

    email: str
    hash: str
    role: str
    username: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        # username is only sent when supplied
        return self.model_dump(exclude_none=True)
