"""Caller-supplied ACL inputs for a single write.

An ACL write is expressed in exactly one of three styles, each its own
type:

    - ``ExplicitACL``: a full grant list, sent as a policy document body.
    - ``CannedACL``: a keyword sent in the canned ACL header.
    - ``GrantHeaders``: per-permission grantee lists sent as grant headers.

``acl_input_from_fields`` accepts the loose keyword-argument form (one
optional field per style) and resolves it to one of the above.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from types import MappingProxyType
from typing import Union

from bucketacl.errors import MalformedACL, ValidationError
from bucketacl.headers import (
    DEFAULT_HEADER_PREFIX,
    GRANT_HEADERS,
    decode_grantees,
    encode_grantee,
    header_name,
)
from bucketacl.models import CannedACLType, Grant, Grantee, Owner, Permission, coerce_enum


@dataclass(frozen=True)
class ExplicitACL:
    """A fully specified grant list.

    When ``owner`` is None the service keeps the resource's current owner.
    """

    grants: tuple[Grant, ...]
    owner: Owner | None = None

    def __post_init__(self) -> None:
        grants = tuple(self.grants)
        for i, grant in enumerate(grants):
            if not isinstance(grant, Grant):
                raise ValidationError("Grants must be Grant instances", field=f"grants[{i}]")
        if self.owner is not None and not isinstance(self.owner, Owner):
            raise ValidationError("Owner must be an Owner", field="owner")
        object.__setattr__(self, "grants", grants)


@dataclass(frozen=True)
class CannedACL:
    """A canned ACL keyword, forwarded to the service as-is."""

    acl_type: CannedACLType

    def __post_init__(self) -> None:
        object.__setattr__(self, "acl_type", coerce_enum(CannedACLType, self.acl_type, "acl"))


def _to_grantees(
    permission: Permission, entries: Sequence[Grantee | str] | Grantee | str
) -> list[Grantee]:
    suffix = GRANT_HEADERS[permission]
    if isinstance(entries, (str, Grantee)):
        entries = [entries]
    elif not isinstance(entries, Iterable):
        raise ValidationError(
            f"Expected grantees or header tokens, got {type(entries).__name__}", field=suffix
        )
    grantees: list[Grantee] = []
    for entry in entries:
        if isinstance(entry, Grantee):
            encode_grantee(entry)
            grantees.append(entry)
        elif isinstance(entry, str):
            try:
                grantees.extend(decode_grantees(entry))
            except MalformedACL as exc:
                raise ValidationError(exc.message, field=suffix) from exc
        else:
            raise ValidationError(
                f"Expected a Grantee or header token, got {type(entry).__name__}", field=suffix
            )
    return grantees


@dataclass(frozen=True)
class GrantHeaders:
    """Per-permission grantee lists.

    Values may be ``Grantee`` objects or header tokens such as ``id=123``
    (a single string may hold several comma-separated tokens). Empty
    lists are dropped; at least one grantee must remain.
    """

    grants: Mapping[Permission, tuple[Grantee, ...]]

    def __post_init__(self) -> None:
        normalized: dict[Permission, tuple[Grantee, ...]] = {}
        for raw_permission, entries in self.grants.items():
            permission = coerce_enum(Permission, raw_permission, "permission")
            grantees = _to_grantees(permission, entries)
            if grantees:
                normalized[permission] = normalized.get(permission, ()) + tuple(grantees)
        if not normalized:
            raise ValidationError("Grant headers need at least one grantee")
        object.__setattr__(self, "grants", MappingProxyType(normalized))

    def __hash__(self) -> int:
        return hash(frozenset(self.grants.items()))

    @classmethod
    def from_pairs(
        cls, pairs: Iterable[tuple[Permission | str, Sequence[Grantee | str] | str]]
    ) -> GrantHeaders:
        """Build from (permission, grantees) pairs.

        A permission given more than once has its lists concatenated in order.
        """
        merged: dict[Permission, list[Grantee]] = {}
        for raw_permission, entries in pairs:
            permission = coerce_enum(Permission, raw_permission, "permission")
            merged.setdefault(permission, []).extend(_to_grantees(permission, entries))
        return cls({p: tuple(g) for p, g in merged.items()})

    @classmethod
    def from_headers(
        cls, headers: Mapping[str, str], prefix: str = DEFAULT_HEADER_PREFIX
    ) -> GrantHeaders | None:
        """Collect grant headers from a raw header mapping.

        Header names are matched case-insensitively. Returns None when no
        grant header is present.

        Raises:
            MalformedACL: If a header value holds an unrecognized token.
        """
        wanted = {header_name(suffix, prefix): p for p, suffix in GRANT_HEADERS.items()}
        pairs = []
        for name, value in headers.items():
            permission = wanted.get(name.lower())
            if permission is not None:
                pairs.append((permission, decode_grantees(value)))
        if not pairs:
            return None
        return cls.from_pairs(pairs)

    def as_grants(self) -> tuple[Grant, ...]:
        """Flatten to grants, in header emission order."""
        return tuple(
            Grant(grantee, permission)
            for permission in GRANT_HEADERS
            for grantee in self.grants.get(permission, ())
        )


ACLInput = Union[ExplicitACL, CannedACL, GrantHeaders]


def acl_input_from_fields(
    *,
    grants: Iterable[Grant] | None = None,
    owner: Owner | None = None,
    acl: CannedACLType | str | None = None,
    grant_read: Sequence[Grantee | str] | str | None = None,
    grant_write: Sequence[Grantee | str] | str | None = None,
    grant_read_acp: Sequence[Grantee | str] | str | None = None,
    grant_write_acp: Sequence[Grantee | str] | str | None = None,
    grant_full_control: Sequence[Grantee | str] | str | None = None,
) -> ACLInput:
    """Resolve optional per-style fields into exactly one ACL input.

    Raises:
        ValidationError: If no style, or more than one style, is populated.
    """
    header_fields = {
        Permission.READ: grant_read,
        Permission.WRITE: grant_write,
        Permission.READ_ACP: grant_read_acp,
        Permission.WRITE_ACP: grant_write_acp,
        Permission.FULL_CONTROL: grant_full_control,
    }
    header_fields = {p: v for p, v in header_fields.items() if v}

    styles = []
    if grants is not None:
        styles.append("grants")
    if acl:
        styles.append("acl")
    if header_fields:
        styles.append("grant headers")

    if len(styles) > 1:
        raise ValidationError(
            f"Only one ACL style may be used per request, got: {', '.join(styles)}",
            field=styles[1],
        )
    if owner is not None and grants is None:
        raise ValidationError(
            "An owner can only be set together with explicit grants", field="owner"
        )
    if not styles:
        raise ValidationError("No ACL specified: set grants, acl or a grant header")

    if grants is not None:
        return ExplicitACL(tuple(grants), owner)
    if acl:
        return CannedACL(acl)
    return GrantHeaders(header_fields)
