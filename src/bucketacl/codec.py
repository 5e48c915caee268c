"""Policy document encoding and decoding.

The service exchanges access control policies as JSON documents::

    {
      "Owner": {"ID": "...", "DisplayName": "..."},
      "Grants": [
        {"Grantee": {"Type": "CanonicalUser", "ID": "...", "DisplayName": "..."},
         "Permission": "READ"},
        {"Grantee": {"Type": "Group", "Canned": "AllUsers"},
         "Permission": "WRITE"}
      ]
    }

Decoding is strict: an unknown permission, grantee type or group token
fails the whole document with ``MalformedACL`` rather than dropping the
grant.
"""

import json
from collections.abc import Iterable
from typing import Any

from bucketacl.errors import MalformedACL, ValidationError
from bucketacl.models import (
    AccessControlPolicy,
    CannedGroup,
    Grant,
    Grantee,
    GranteeType,
    Owner,
    Permission,
)


def owner_to_dict(owner: Owner) -> dict[str, str]:
    data = {"ID": owner.id}
    if owner.display_name:
        data["DisplayName"] = owner.display_name
    return data


def grant_to_dict(grant: Grant) -> dict[str, Any]:
    grantee = grant.grantee
    data: dict[str, str] = {"Type": grantee.type.value}
    if grantee.is_group:
        data["Canned"] = grantee.canned.value
    else:
        data["ID"] = grantee.id
        if grantee.display_name:
            data["DisplayName"] = grantee.display_name
    return {"Grantee": data, "Permission": grant.permission.value}


def policy_to_dict(policy: AccessControlPolicy) -> dict[str, Any]:
    """Convert a policy to its wire document."""
    return {
        "Owner": owner_to_dict(policy.owner),
        "Grants": [grant_to_dict(g) for g in policy.grants],
    }


def policy_to_json(policy: AccessControlPolicy) -> str:
    """Serialize a policy to a JSON string."""
    return json.dumps(policy_to_dict(policy))


def encode_acl_body(grants: Iterable[Grant], owner: Owner | None = None) -> bytes:
    """Encode an ACL write body.

    The ``Owner`` element is omitted when ``owner`` is None, leaving the
    service to keep the current owner.
    """
    data: dict[str, Any] = {}
    if owner is not None:
        data["Owner"] = owner_to_dict(owner)
    data["Grants"] = [grant_to_dict(g) for g in grants]
    return json.dumps(data).encode("utf-8")


def _expect_str(data: dict, key: str, path: str, required: bool) -> str | None:
    value = data.get(key)
    if value is None or value == "":
        if required:
            raise MalformedACL(f"Missing required field {key}", field=f"{path}.{key}")
        return None
    if not isinstance(value, str):
        raise MalformedACL(f"Field {key} must be a string", field=f"{path}.{key}")
    return value


def _parse_owner(data: Any) -> Owner:
    if data is None:
        raise MalformedACL("Policy document has no Owner", field="Owner")
    if not isinstance(data, dict):
        raise MalformedACL("Owner must be an object", field="Owner")
    owner_id = _expect_str(data, "ID", "Owner", required=True)
    display = _expect_str(data, "DisplayName", "Owner", required=False)
    return Owner(owner_id, display or "")


def _parse_grantee(data: Any, path: str) -> Grantee:
    if not isinstance(data, dict):
        raise MalformedACL("Grantee must be an object", field=path)
    raw_type = _expect_str(data, "Type", path, required=True)
    try:
        grantee_type = GranteeType(raw_type)
    except ValueError:
        raise MalformedACL(f"Unknown grantee type {raw_type!r}", field=f"{path}.Type") from None

    account_id = _expect_str(data, "ID", path, required=False)
    canned = _expect_str(data, "Canned", path, required=False)

    if grantee_type is GranteeType.GROUP:
        if account_id is not None:
            raise MalformedACL("Group grantee must not carry an ID", field=f"{path}.ID")
        if canned is None:
            raise MalformedACL("Group grantee has no Canned token", field=f"{path}.Canned")
        if _expect_str(data, "DisplayName", path, required=False) is not None:
            raise MalformedACL(
                "Group grantee must not carry a DisplayName", field=f"{path}.DisplayName"
            )
        try:
            return Grantee.group(CannedGroup(canned))
        except ValueError:
            raise MalformedACL(f"Unknown group {canned!r}", field=f"{path}.Canned") from None

    if canned is not None:
        raise MalformedACL("CanonicalUser grantee must not carry Canned", field=f"{path}.Canned")
    if account_id is None:
        raise MalformedACL("CanonicalUser grantee has no ID", field=f"{path}.ID")
    display = _expect_str(data, "DisplayName", path, required=False)
    return Grantee.account(account_id, display)


def _parse_grant(data: Any, path: str) -> Grant:
    if not isinstance(data, dict):
        raise MalformedACL("Grant must be an object", field=path)
    if "Grantee" not in data:
        raise MalformedACL("Grant has no Grantee", field=f"{path}.Grantee")
    grantee = _parse_grantee(data["Grantee"], f"{path}.Grantee")
    raw_permission = data.get("Permission")
    try:
        permission = Permission(raw_permission)
    except ValueError:
        raise MalformedACL(
            f"Unknown permission {raw_permission!r}", field=f"{path}.Permission"
        ) from None
    return Grant(grantee, permission)


def _load(body: bytes | str | dict[str, Any]) -> dict[str, Any]:
    if isinstance(body, (bytes, str)):
        try:
            data = json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise MalformedACL(f"Policy document is not valid JSON: {exc}") from exc
    else:
        data = body
    if not isinstance(data, dict):
        raise MalformedACL("Policy document must be a JSON object")
    return data


def _parse_document(
    body: bytes | str | dict[str, Any], owner_required: bool
) -> tuple[Owner | None, tuple[Grant, ...]]:
    data = _load(body)
    try:
        owner = None
        if owner_required or data.get("Owner") is not None:
            owner = _parse_owner(data.get("Owner"))
        raw_grants = data.get("Grants")
        if raw_grants is None:
            raw_grants = []
        if not isinstance(raw_grants, list):
            raise MalformedACL("Grants must be a list", field="Grants")
        grants = tuple(_parse_grant(g, f"Grants[{i}]") for i, g in enumerate(raw_grants))
    except ValidationError as exc:
        # model-level invariant violations in a document are decode errors
        raise MalformedACL(exc.message, field=exc.field) from exc
    return owner, grants


def parse_policy(body: bytes | str | dict[str, Any]) -> AccessControlPolicy:
    """Decode a policy document returned by the service.

    Args:
        body: Raw response body, or an already-decoded JSON object.

    Returns:
        The decoded policy; grants are in document order.

    Raises:
        MalformedACL: If the document fails schema or enum validation,
            including a missing Owner.
    """
    owner, grants = _parse_document(body, owner_required=True)
    return AccessControlPolicy(owner, grants)


def parse_acl_body(body: bytes | str | dict[str, Any]) -> tuple[Owner | None, tuple[Grant, ...]]:
    """Decode an ACL write body, where the Owner element is optional.

    Raises:
        MalformedACL: If the document fails schema or enum validation.
    """
    return _parse_document(body, owner_required=False)
