"""Auth schemas for recordgate API."""
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field, StrictStr, ValidationInfo, field_validator


class AuthWithIPRequest(BaseModel):
    """IP-based auth request for an auth collection record."""

    model_config = ConfigDict(populate_by_name=True)

    identity: StrictStr = Field(..., min_length=1)
    identity_field: StrictStr = Field(default="email", alias="identityField")
    ips_field: StrictStr = Field(default="ips", alias="ipsField")

    @field_validator("identity_field", "ips_field", mode="before")
    @classmethod
    def default_when_blank(cls, v, info: ValidationInfo):
        """null or "" falls back to the field default."""
        if v is None or v == "":
            return cls.model_fields[info.field_name].default
        return v


class RecordAuthResponse(BaseModel):
    """Auth token response."""

    token: str
    record: Dict[str, Any]
    meta: Dict[str, Any] = {}
