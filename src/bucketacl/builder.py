"""ACL request construction.

Turns one ``ACLInput`` plus resource coordinates into the outbound request
shape. Sending is left to a transport.

Implements:
    - PutBucketAcl (PUT /{bucket}?acl)
    - PutObjectAcl (PUT /{bucket}/{key}?acl[&versionId=...])
    - GetBucketAcl (GET /{bucket}?acl)
    - GetObjectAcl (GET /{bucket}/{key}?acl[&versionId=...])
"""

import base64
import hashlib
from dataclasses import dataclass, field

from bucketacl.codec import encode_acl_body
from bucketacl.errors import ValidationError
from bucketacl.headers import (
    CANNED_ACL_HEADER,
    DEFAULT_HEADER_PREFIX,
    GRANT_HEADERS,
    encode_grantees,
    header_name,
)
from bucketacl.inputs import ACLInput, CannedACL, ExplicitACL, GrantHeaders
from bucketacl.validation import validate_bucket_name, validate_object_key


@dataclass(frozen=True)
class ACLRequest:
    """An outbound ACL request.

    Attributes:
        method: HTTP method.
        bucket: Bucket name.
        key: Object key, or None for bucket ACLs.
        query: Query parameters; always contains ``acl``.
        headers: Request headers.
        body: Request body, or None.
    """

    method: str
    bucket: str
    key: str | None = None
    query: dict[str, str] = field(default_factory=lambda: {"acl": ""})
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes | None = None

    @property
    def operation(self) -> str:
        verb = "Get" if self.method == "GET" else "Put"
        return f"{verb}{'Object' if self.key is not None else 'Bucket'}Acl"


def _query(key: str | None, version_id: str | None) -> dict[str, str]:
    query = {"acl": ""}
    if version_id is not None:
        if key is None:
            raise ValidationError("versionId applies to object ACLs only", field="version_id")
        if not version_id:
            raise ValidationError("versionId must not be empty", field="version_id")
        query["versionId"] = version_id
    return query


def _check_coordinates(bucket: str, key: str | None) -> None:
    validate_bucket_name(bucket)
    if key is not None:
        validate_object_key(key)


def acl_headers(acl_input: ACLInput, header_prefix: str = DEFAULT_HEADER_PREFIX) -> dict[str, str]:
    """Render a canned or grant-header input as request headers.

    Used both for ACL writes and for attaching an ACL to other writes
    such as PutObject or CreateBucket.

    Raises:
        ValidationError: For explicit grant lists, which need a body.
    """
    if isinstance(acl_input, CannedACL):
        return {header_name(CANNED_ACL_HEADER, header_prefix): acl_input.acl_type.value}
    if isinstance(acl_input, GrantHeaders):
        headers = {}
        for permission, suffix in GRANT_HEADERS.items():
            grantees = acl_input.grants.get(permission)
            if grantees:
                headers[header_name(suffix, header_prefix)] = encode_grantees(grantees)
        return headers
    if isinstance(acl_input, ExplicitACL):
        raise ValidationError(
            "Explicit grant lists cannot be sent as headers; use an ACL write", field="grants"
        )
    raise ValidationError(f"Unsupported ACL input type {type(acl_input).__name__}")


def build_put_acl_request(
    bucket: str,
    acl_input: ACLInput,
    key: str | None = None,
    version_id: str | None = None,
    header_prefix: str = DEFAULT_HEADER_PREFIX,
) -> ACLRequest:
    """Build a PutBucketAcl or PutObjectAcl request.

    - Explicit grants: JSON policy body, no ACL headers.
    - Canned keyword: a single canned ACL header, no body.
    - Grant headers: one header per non-empty permission, no body.

    Args:
        bucket: Bucket name.
        acl_input: Exactly one ACL input variant.
        key: Object key for object ACLs.
        version_id: Object version to target.
        header_prefix: Vendor prefix for ACL header names.

    Raises:
        ValidationError: On invalid coordinates or input.
    """
    _check_coordinates(bucket, key)
    query = _query(key, version_id)

    if isinstance(acl_input, ExplicitACL):
        body = encode_acl_body(acl_input.grants, acl_input.owner)
        headers = {
            "Content-Type": "application/json",
            "Content-MD5": base64.b64encode(hashlib.md5(body).digest()).decode("ascii"),
        }
        return ACLRequest("PUT", bucket, key, query, headers, body)

    return ACLRequest("PUT", bucket, key, query, acl_headers(acl_input, header_prefix))


def build_get_acl_request(
    bucket: str,
    key: str | None = None,
    version_id: str | None = None,
) -> ACLRequest:
    """Build a GetBucketAcl or GetObjectAcl request."""
    _check_coordinates(bucket, key)
    return ACLRequest("GET", bucket, key, _query(key, version_id))
