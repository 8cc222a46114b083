"""API v1 routers."""

from fastapi import FastAPI

from recordgate.api.v1 import logs, record_auth
from recordgate.core.client_ip import ClientIPResolver
from recordgate.core.log_sink import LogSink
from recordgate.core.records import RecordStore
from recordgate.core.security import TokenIssuer

__all__ = ["logs", "record_auth", "register_routes"]


def register_routes(
    app: FastAPI,
    *,
    record_store: RecordStore,
    log_sink: LogSink,
    token_issuer: TokenIssuer,
    client_ip_resolver: ClientIPResolver,
    prefix: str = "/api",
) -> None:
    """Attach collaborators to the app and mount the routers.

    Called once by the composition root (``create_app``).
    """
    if getattr(app.state, "routes_registered", False):
        raise RuntimeError("recordgate routes are already registered on this app")

    app.state.record_store = record_store
    app.state.log_sink = log_sink
    app.state.token_issuer = token_issuer
    app.state.client_ip_resolver = client_ip_resolver

    app.include_router(record_auth.router, prefix=f"{prefix}/collections", tags=["record-auth"])
    app.include_router(logs.router, prefix=f"{prefix}/logs", tags=["logs"])
    app.state.routes_registered = True
