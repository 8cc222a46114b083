"""IP-based record auth endpoint.

Authenticates a record of an auth collection without credentials: the
identity (email, username, ...) must exist in the collection and the
caller's IP must be listed in the record's allow-list field (``ips`` by
default), either exactly or inside one of its CIDR blocks.

The caller IP comes from the configured trusted proxy headers. Useful
for letting applications on the same network in without handing out
credentials.
"""
import logging

from fastapi import APIRouter, Depends, Path

from recordgate.api.deps import get_client_ip, get_record_store, get_token_issuer
from recordgate.core.errors import (
    E,
    internal_error,
    not_found_error,
    unauthorized_error,
    validation_error,
)
from recordgate.core.ip_allowlist import InvalidAllowListError, decode_allow_list, is_ip_allowed
from recordgate.core.records import RecordStore
from recordgate.core.safe_call import safe_await
from recordgate.core.security import TokenIssuer
from recordgate.schemas.auth import AuthWithIPRequest, RecordAuthResponse

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/{collection}/auth-with-ip", response_model=RecordAuthResponse)
async def auth_with_ip(
    data: AuthWithIPRequest,
    collection: str = Path(..., description="ID or name of the auth collection"),
    store: RecordStore = Depends(get_record_store),
    token_issuer: TokenIssuer = Depends(get_token_issuer),
    request_ip: str = Depends(get_client_ip),
):
    """
    Authenticate an auth collection record by the caller's IP.

    - **identity**: record identity value (email or username)
    - **identityField**: field holding the identity (default `email`)
    - **ipsField**: field holding the IP allow-list (default `ips`)
    """
    # Missing and non-auth collections are reported the same way
    found = await safe_await(lambda: store.find_collection_by_name_or_id(collection))
    if not found.ok or found.value is None or not found.value.is_auth():
        logger.info("auth-with-ip: no auth collection %r (%s)", collection, found.error)
        raise not_found_error()
    auth_collection = found.value

    for field_name in (data.identity_field, data.ips_field):
        if not auth_collection.has_field(field_name):
            raise validation_error(
                E.FIELD_NOT_FOUND,
                f'The collection does not have a field named "{field_name}".',
                {"field": field_name},
            )

    lookup = await safe_await(
        lambda: store.find_first_record_by_data(auth_collection, data.identity_field, data.identity)
    )
    if not lookup.ok or lookup.value is None:
        logger.info("auth-with-ip: invalid identity for %s (%s)", auth_collection.name, lookup.error)
        raise unauthorized_error()
    record = lookup.value

    try:
        entries = decode_allow_list(record.get(data.ips_field))
        allowed = is_ip_allowed(request_ip, entries)
    except InvalidAllowListError as e:
        logger.warning("auth-with-ip: record %s has a malformed IP list: %s", record.id, e)
        raise unauthorized_error()

    if not allowed:
        logger.info("auth-with-ip: IP %s not allowed for record %s", request_ip, record.id)
        raise unauthorized_error()

    issued = await safe_await(lambda: token_issuer.issue(record))
    if not issued.ok:
        logger.error("auth-with-ip: token issue failed for record %s: %s", record.id, issued.error)
        raise internal_error(E.TOKEN_ISSUE_FAILED)

    logger.info("auth-with-ip: record %s authenticated from %s", record.id, request_ip)
    return RecordAuthResponse(
        token=issued.value,
        record=record.export(),
        meta={"identity": data.identity, "requestIp": request_ip},
    )
