"""Grant header codec.

Per-permission request headers carry a comma-separated list of grantee
tokens, each either ``id=<account id>`` for a named account or
``uri=<group uri>`` for a predefined group::

    x-amz-grant-read: id=123, uri=http://acs.amazonaws.com/groups/global/AllUsers
"""

from collections.abc import Iterable

from bucketacl.errors import MalformedACL, ValidationError
from bucketacl.models import CannedGroup, Grantee, Permission

DEFAULT_HEADER_PREFIX = "x-amz-"

# Predefined group URIs
ALL_USERS_URI = "http://acs.amazonaws.com/groups/global/AllUsers"
AUTHENTICATED_USERS_URI = "http://acs.amazonaws.com/groups/global/AuthenticatedUsers"

GROUP_URIS: dict[CannedGroup, str] = {
    CannedGroup.ALL_USERS: ALL_USERS_URI,
    CannedGroup.AUTHENTICATED_USERS: AUTHENTICATED_USERS_URI,
}
_GROUPS_BY_URI = {uri: group for group, uri in GROUP_URIS.items()}

CANNED_ACL_HEADER = "acl"

# Grant header suffixes and their permissions, in the order they are emitted
GRANT_HEADERS: dict[Permission, str] = {
    Permission.FULL_CONTROL: "grant-full-control",
    Permission.READ: "grant-read",
    Permission.READ_ACP: "grant-read-acp",
    Permission.WRITE: "grant-write",
    Permission.WRITE_ACP: "grant-write-acp",
}


def header_name(suffix: str, prefix: str = DEFAULT_HEADER_PREFIX) -> str:
    """Return the full, lower-cased header name for ``suffix``."""
    return f"{prefix}{suffix}".lower()


def _check_header_id(account_id: str) -> None:
    """Reject account ids that would not survive a header round trip.

    A comma would split the id into extra grantees on the service side;
    surrounding whitespace or quotes would be stripped on decode.
    """
    if "," in account_id or any(ord(c) < 0x20 or ord(c) == 0x7F for c in account_id):
        raise ValidationError(
            f"Account id {account_id!r} cannot be sent in a grant header", field="Grantee.ID"
        )
    if account_id != account_id.strip() or account_id.startswith('"') or account_id.endswith('"'):
        raise ValidationError(
            f"Account id {account_id!r} has surrounding whitespace or quotes", field="Grantee.ID"
        )


def encode_grantee(grantee: Grantee) -> str:
    """Encode a single grantee as a header token.

    Raises:
        ValidationError: If an account id contains a comma or control
            character, or has surrounding whitespace or quotes.
    """
    if grantee.is_group:
        return f"uri={GROUP_URIS[grantee.canned]}"
    _check_header_id(grantee.id)
    return f"id={grantee.id}"


def encode_grantees(grantees: Iterable[Grantee]) -> str:
    """Encode grantees as a grant header value.

    Order is preserved and duplicates are kept.

    Raises:
        ValidationError: If ``grantees`` is empty.
    """
    tokens = [encode_grantee(g) for g in grantees]
    if not tokens:
        raise ValidationError("A grant header needs at least one grantee")
    return ",".join(tokens)


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] == '"':
        return value[1:-1].strip()
    return value


def decode_grantee(token: str) -> Grantee:
    """Decode a single ``key=value`` header token.

    Raises:
        MalformedACL: If the key or the group URI is not recognized.
    """
    key, sep, value = token.partition("=")
    key = key.strip()
    value = _unquote(value.strip())
    if not sep or not value:
        raise MalformedACL(f"Grantee token {token.strip()!r} has no value", field=key or token)

    if key == "id":
        return Grantee.account(value)
    if key == "uri":
        group = _GROUPS_BY_URI.get(value)
        if group is None:
            raise MalformedACL(f"Unknown group URI {value!r}", field="uri")
        return Grantee.group(group)
    raise MalformedACL(f"Unknown grantee key {key!r} in token {token.strip()!r}", field=key)


def decode_grantees(value: str) -> list[Grantee]:
    """Decode a grant header value into grantees, in header order.

    Empty segments (e.g. from a trailing comma) are skipped.
    """
    grantees = []
    for token in value.split(","):
        if not token.strip():
            continue
        grantees.append(decode_grantee(token))
    return grantees
