"""API dependencies for recordgate."""
import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from recordgate.core.client_ip import ClientIPResolver
from recordgate.core.errors import E, api_error
from recordgate.core.log_sink import LogSink
from recordgate.core.records import RecordStore
from recordgate.core.security import TOKEN_TYPE_SUPERUSER, TokenIssuer, decode_token

logger = logging.getLogger(__name__)
security = HTTPBearer(auto_error=False)


@dataclass
class Superuser:
    """Authenticated privileged caller."""

    subject: str


async def require_superuser(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Superuser:
    """Dependency that only lets superuser tokens through."""
    if credentials is None:
        raise api_error(
            status.HTTP_401_UNAUTHORIZED,
            E.TOKEN_REQUIRED,
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = decode_token(credentials.credentials)
    if not payload:
        raise api_error(
            status.HTTP_401_UNAUTHORIZED,
            E.INVALID_TOKEN,
            headers={"WWW-Authenticate": "Bearer"},
        )

    if payload.get("type") != TOKEN_TYPE_SUPERUSER:
        logger.warning("Superuser access denied for token type=%s", payload.get("type"))
        raise api_error(status.HTTP_403_FORBIDDEN, E.SUPERUSER_REQUIRED)

    return Superuser(subject=str(payload.get("sub", "")))


# ── Collaborators (set on app.state by register_routes) ─────────

def get_record_store(request: Request) -> RecordStore:
    return request.app.state.record_store


def get_log_sink(request: Request) -> LogSink:
    return request.app.state.log_sink


def get_token_issuer(request: Request) -> TokenIssuer:
    return request.app.state.token_issuer


def get_client_ip(request: Request) -> str:
    """Extract client IP through the configured trusted-proxy resolver."""
    resolver: ClientIPResolver = request.app.state.client_ip_resolver
    return resolver.resolve(request)
