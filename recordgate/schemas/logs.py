"""Log ingestion schemas for recordgate API."""
from typing import Any, Dict, Literal

from pydantic import BaseModel, Field, StrictStr, field_validator


class LogEventRequest(BaseModel):
    """Remote log event."""

    level: Literal["debug", "info", "warn", "error"]
    message: StrictStr = Field(..., min_length=1)
    data: Dict[str, Any]

    @field_validator("data")
    @classmethod
    def data_not_empty(cls, v):
        if not v:
            raise ValueError("Log data must not be empty")
        return v
