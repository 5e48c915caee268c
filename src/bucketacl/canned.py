"""Canned ACL expansion.

A canned ACL keyword expands into a fixed grant list relative to the
resource owner. Buckets and objects use separate tables: the service
expands the public keywords on a bucket without an explicit owner grant,
while object expansions always start with the owner's FULL_CONTROL.

Table rows are written as ``"<who>:<PERMISSION>"`` templates where
``<who>`` is ``owner`` or a predefined group token, so individual rows
can be overridden from configuration when a service expands a keyword
differently.
"""

from collections.abc import Mapping, Sequence

from bucketacl.errors import ValidationError
from bucketacl.models import (
    AccessControlPolicy,
    CannedACLType,
    CannedGroup,
    Grant,
    Grantee,
    Owner,
    Permission,
    ResourceKind,
    coerce_enum,
)

OWNER = "owner"

GrantTemplate = tuple[CannedGroup | None, Permission]
CannedTable = Mapping[CannedACLType, tuple[GrantTemplate, ...]]


def parse_grant_template(text: str) -> GrantTemplate:
    """Parse an ``owner:FULL_CONTROL`` / ``AllUsers:READ`` template.

    The grantee half is ``None`` for the owner.

    Raises:
        ValidationError: If either half is not recognized.
    """
    who, sep, permission = text.partition(":")
    if not sep:
        raise ValidationError(f"Grant template {text!r} must look like 'who:PERMISSION'")
    who = who.strip()
    group = None if who == OWNER else coerce_enum(CannedGroup, who, "canned.grantee")
    return group, coerce_enum(Permission, permission.strip(), "canned.permission")


def _table(rows: dict[CannedACLType, list[str]]) -> dict[CannedACLType, tuple[GrantTemplate, ...]]:
    return {
        acl: tuple(parse_grant_template(t) for t in templates) for acl, templates in rows.items()
    }


BUCKET_CANNED_GRANTS = _table(
    {
        CannedACLType.PRIVATE: ["owner:FULL_CONTROL"],
        CannedACLType.PUBLIC_READ: ["AllUsers:READ"],
        CannedACLType.PUBLIC_READ_WRITE: ["AllUsers:READ", "AllUsers:WRITE"],
        CannedACLType.AUTHENTICATED_READ: ["AuthenticatedUsers:READ"],
        CannedACLType.BUCKET_OWNER_READ: ["owner:FULL_CONTROL"],
        CannedACLType.BUCKET_OWNER_FULL_CONTROL: ["owner:FULL_CONTROL"],
    }
)

OBJECT_CANNED_GRANTS = _table(
    {
        CannedACLType.PRIVATE: ["owner:FULL_CONTROL"],
        CannedACLType.PUBLIC_READ: ["owner:FULL_CONTROL", "AllUsers:READ"],
        CannedACLType.PUBLIC_READ_WRITE: ["owner:FULL_CONTROL", "AllUsers:READ", "AllUsers:WRITE"],
        CannedACLType.AUTHENTICATED_READ: ["owner:FULL_CONTROL", "AuthenticatedUsers:READ"],
        CannedACLType.BUCKET_OWNER_READ: ["owner:FULL_CONTROL"],
        CannedACLType.BUCKET_OWNER_FULL_CONTROL: ["owner:FULL_CONTROL"],
    }
)

_DEFAULT_TABLES = {
    ResourceKind.BUCKET: BUCKET_CANNED_GRANTS,
    ResourceKind.OBJECT: OBJECT_CANNED_GRANTS,
}


def load_canned_table(
    overrides: Mapping[str, Sequence[str]],
    base: CannedTable,
) -> dict[CannedACLType, tuple[GrantTemplate, ...]]:
    """Return a copy of ``base`` with rows replaced by ``overrides``.

    Args:
        overrides: Canned keyword to list of grant templates.
        base: The table to start from.

    Raises:
        ValidationError: If a keyword or template is not recognized.
    """
    table = dict(base)
    for keyword, templates in overrides.items():
        acl_type = coerce_enum(CannedACLType, keyword, "canned")
        table[acl_type] = tuple(parse_grant_template(t) for t in templates)
    return table


def expand_canned_acl(
    acl_type: CannedACLType | str,
    owner: Owner,
    resource: ResourceKind = ResourceKind.OBJECT,
    table: CannedTable | None = None,
) -> tuple[Grant, ...]:
    """Expand a canned ACL keyword into its grants.

    Args:
        acl_type: The canned keyword.
        owner: The resource owner, who receives the ``owner`` rows.
        resource: Which per-resource table to use.
        table: Optional replacement table (e.g. loaded from configuration).

    Returns:
        The grants in table order.

    Raises:
        ValidationError: If the keyword is unknown or has no row in the table.
    """
    acl_type = coerce_enum(CannedACLType, acl_type, "acl")
    rows = (table if table is not None else _DEFAULT_TABLES[ResourceKind(resource)]).get(acl_type)
    if rows is None:
        raise ValidationError(
            f"Canned ACL {acl_type.value!r} is not defined for {ResourceKind(resource).value}s",
            field="acl",
        )
    grants = []
    for group, permission in rows:
        grantee = owner.as_grantee() if group is None else Grantee.group(group)
        grants.append(Grant(grantee, permission))
    return tuple(grants)


def canned_policy(
    acl_type: CannedACLType | str,
    owner: Owner,
    resource: ResourceKind = ResourceKind.OBJECT,
    table: CannedTable | None = None,
) -> AccessControlPolicy:
    """Build the full policy a canned keyword produces for ``owner``."""
    return AccessControlPolicy(owner, expand_canned_acl(acl_type, owner, resource, table))


def default_policy(owner: Owner) -> AccessControlPolicy:
    """Build the default private policy: owner FULL_CONTROL only."""
    return AccessControlPolicy(owner, (Grant(owner.as_grantee(), Permission.FULL_CONTROL),))
