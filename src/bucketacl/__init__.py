"""bucketacl - client-side access control for bucket/object storage services."""

from bucketacl.client import ACLAck, ACLClient, ACLResponse, HTTPTransport, Transport
from bucketacl.errors import ACLError, MalformedACL, ServiceError, TransportError, ValidationError
from bucketacl.inputs import ACLInput, CannedACL, ExplicitACL, GrantHeaders, acl_input_from_fields
from bucketacl.models import (
    AccessControlPolicy,
    CannedACLType,
    CannedGroup,
    Grant,
    Grantee,
    GranteeType,
    Owner,
    Permission,
    ResourceKind,
)

__version__ = "0.1.0"

__all__ = [
    "ACLAck",
    "ACLClient",
    "ACLError",
    "ACLInput",
    "ACLResponse",
    "AccessControlPolicy",
    "CannedACL",
    "CannedACLType",
    "CannedGroup",
    "ExplicitACL",
    "Grant",
    "GrantHeaders",
    "Grantee",
    "GranteeType",
    "HTTPTransport",
    "MalformedACL",
    "Owner",
    "Permission",
    "ResourceKind",
    "ServiceError",
    "Transport",
    "TransportError",
    "ValidationError",
    "acl_input_from_fields",
]
