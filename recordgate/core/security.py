"""Token issuance and verification."""
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt

from recordgate.core.config import Settings, get_settings
from recordgate.core.records import Record

logger = logging.getLogger(__name__)

TOKEN_TYPE_AUTH = "auth"
TOKEN_TYPE_SUPERUSER = "superuser"


def _now() -> datetime:
    return datetime.now(timezone.utc)


class TokenIssuer:
    """Issues auth tokens (sessions) for records.

    Each call produces a new, independent token: the ``jti`` claim is
    random, so two tokens issued within the same second still differ.
    """

    def __init__(self, secret_key: str, algorithm: str = "HS256", expire_minutes: int = 1440):
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._expire_minutes = expire_minutes

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "TokenIssuer":
        settings = settings or get_settings()
        return cls(
            secret_key=settings.secret_key,
            algorithm=settings.jwt_algorithm,
            expire_minutes=settings.record_token_minutes,
        )

    async def issue(self, record: Record) -> str:
        """
        Create a JWT auth token for a record.

        Args:
            record: The record the session is issued for

        Returns:
            Encoded JWT token
        """
        issued_at = _now()
        expire = issued_at + timedelta(minutes=self._expire_minutes)

        payload = {
            "id": record.id,
            "collectionId": record.collection_id,
            "type": TOKEN_TYPE_AUTH,
            "refreshable": True,
            "jti": uuid.uuid4().hex,
            "iat": int(issued_at.timestamp()),
            "exp": int(expire.timestamp()),
        }

        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)


def create_superuser_token(subject: str, settings: Optional[Settings] = None) -> str:
    """
    Create a JWT token that grants superuser access.

    Args:
        subject: Token subject (operator name or email)

    Returns:
        Encoded JWT token
    """
    settings = settings or get_settings()
    issued_at = _now()
    expire = issued_at + timedelta(minutes=settings.superuser_token_minutes)

    payload = {
        "sub": subject,
        "type": TOKEN_TYPE_SUPERUSER,
        "jti": uuid.uuid4().hex,
        "iat": int(issued_at.timestamp()),
        "exp": int(expire.timestamp()),
    }

    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str, settings: Optional[Settings] = None) -> Optional[Dict[str, Any]]:
    """
    Decode and validate JWT token.

    Args:
        token: JWT token to decode

    Returns:
        Token payload if valid, None otherwise
    """
    settings = settings or get_settings()

    try:
        return jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as e:
        logger.debug("Token decode error: %s", e)
        return None
