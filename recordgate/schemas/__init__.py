"""Pydantic schemas for recordgate API."""
from recordgate.schemas.auth import AuthWithIPRequest, RecordAuthResponse
from recordgate.schemas.logs import LogEventRequest

__all__ = ["AuthWithIPRequest", "RecordAuthResponse", "LogEventRequest"]
