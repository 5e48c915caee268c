"""Value types for access control policies.

These frozen dataclasses and enumerations describe who may do what on a
bucket or object: grantees (named accounts or predefined groups), grants,
owners and the full policy document.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum

from bucketacl.errors import ValidationError


class Permission(str, Enum):
    READ = "READ"
    WRITE = "WRITE"
    READ_ACP = "READ_ACP"
    WRITE_ACP = "WRITE_ACP"
    FULL_CONTROL = "FULL_CONTROL"


class GranteeType(str, Enum):
    CANONICAL_USER = "CanonicalUser"
    GROUP = "Group"


class CannedGroup(str, Enum):
    """Service-defined collective identities."""

    ALL_USERS = "AllUsers"
    AUTHENTICATED_USERS = "AuthenticatedUsers"


class CannedACLType(str, Enum):
    PRIVATE = "private"
    PUBLIC_READ = "public-read"
    PUBLIC_READ_WRITE = "public-read-write"
    AUTHENTICATED_READ = "authenticated-read"
    BUCKET_OWNER_READ = "bucket-owner-read"
    BUCKET_OWNER_FULL_CONTROL = "bucket-owner-full-control"


class ResourceKind(str, Enum):
    BUCKET = "bucket"
    OBJECT = "object"


def coerce_enum(enum_cls, value, field_name: str):
    """Convert a raw value to ``enum_cls``, raising ValidationError if unknown."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(
            f"Unknown {enum_cls.__name__} {value!r}; expected one of: {allowed}",
            field=field_name,
        ) from None


@dataclass(frozen=True)
class Grantee:
    """An identity that can receive a permission.

    Exactly one of ``id`` (for ``CanonicalUser``) or ``canned`` (for
    ``Group``) is populated. ``display_name`` is informational only and
    does not take part in equality.

    Attributes:
        type: The grantee kind.
        id: Account identifier, for named accounts.
        display_name: Server-assigned label, for named accounts.
        canned: Predefined group token, for groups.
    """

    type: GranteeType
    id: str | None = None
    display_name: str | None = field(default=None, compare=False)
    canned: CannedGroup | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", coerce_enum(GranteeType, self.type, "Grantee.Type"))
        if self.type is GranteeType.CANONICAL_USER:
            if self.canned is not None:
                raise ValidationError(
                    "CanonicalUser grantee must not carry a group token",
                    field="Grantee.Canned",
                )
            if not self.id:
                raise ValidationError("CanonicalUser grantee must have an id", field="Grantee.ID")
        else:
            if self.id is not None:
                raise ValidationError(
                    "Group grantee must not carry an account id", field="Grantee.ID"
                )
            if self.canned is None:
                raise ValidationError(
                    "Group grantee must have a group token", field="Grantee.Canned"
                )
            object.__setattr__(
                self, "canned", coerce_enum(CannedGroup, self.canned, "Grantee.Canned")
            )

    @classmethod
    def account(cls, account_id: str, display_name: str | None = None) -> Grantee:
        """Build a named-account grantee."""
        return cls(GranteeType.CANONICAL_USER, id=account_id, display_name=display_name)

    @classmethod
    def group(cls, token: CannedGroup | str) -> Grantee:
        """Build a predefined-group grantee."""
        return cls(GranteeType.GROUP, canned=token)

    @property
    def is_group(self) -> bool:
        return self.type is GranteeType.GROUP


@dataclass(frozen=True)
class Grant:
    """One (grantee, permission) pairing."""

    grantee: Grantee
    permission: Permission

    def __post_init__(self) -> None:
        if not isinstance(self.grantee, Grantee):
            raise ValidationError("Grant grantee must be a Grantee", field="Grant.Grantee")
        object.__setattr__(
            self, "permission", coerce_enum(Permission, self.permission, "Grant.Permission")
        )


@dataclass(frozen=True)
class Owner:
    """The account that owns a bucket or object."""

    id: str
    display_name: str = ""

    def __post_init__(self) -> None:
        if not self.id:
            raise ValidationError("Owner must have an id", field="Owner.ID")

    def as_grantee(self) -> Grantee:
        return Grantee.account(self.id, self.display_name or None)


@dataclass(frozen=True, eq=False)
class AccessControlPolicy:
    """The full (owner, grants) document governing a bucket or object.

    Grant order is kept as given (document order on decode) but is not
    significant for equality. Duplicate grants are kept.
    """

    owner: Owner
    grants: tuple[Grant, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.owner, Owner):
            raise ValidationError("Policy owner must be an Owner", field="Owner")
        object.__setattr__(self, "grants", tuple(self.grants))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AccessControlPolicy):
            return NotImplemented
        return self.owner == other.owner and Counter(self.grants) == Counter(other.grants)

    def __hash__(self) -> int:
        return hash((self.owner, frozenset(Counter(self.grants).items())))

    def permissions_for(self, grantee: Grantee) -> list[Permission]:
        """Return the permissions granted to ``grantee``, in document order."""
        return [g.permission for g in self.grants if g.grantee == grantee]
