"""Resource coordinate validation.

These checks run before a request is built so that an obviously invalid
bucket name or object key never reaches the transport.

Each function raises ``ValidationError`` on invalid input.
"""

import re

from bucketacl.errors import ValidationError

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Bucket naming rules:
#   - 3-63 characters
#   - lowercase letters, digits, hyphens, and periods
#   - must start and end with a letter or digit
#   - must not be formatted as an IP address
#   - no consecutive periods ("..") allowed

_BUCKET_RE = re.compile(r"[a-z0-9][a-z0-9.\-]{1,61}[a-z0-9]")
_IP_RE = re.compile(r"\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}")

_MAX_KEY_BYTES = 1024


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def validate_bucket_name(name: str) -> None:
    """Validate a bucket name.

    Args:
        name: The candidate bucket name.

    Raises:
        ValidationError: If the name violates any bucket naming rule.
    """
    if not isinstance(name, str) or not 3 <= len(name) <= 63:
        raise ValidationError("Bucket name must be 3-63 characters long", field="bucket")

    if not _BUCKET_RE.fullmatch(name) or ".." in name:
        raise ValidationError(f"Invalid bucket name {name!r}", field="bucket")

    if _IP_RE.fullmatch(name):
        raise ValidationError("Bucket name must not be an IP address", field="bucket")


def validate_object_key(key: str) -> None:
    """Validate an object key.

    Args:
        key: The object key string.

    Raises:
        ValidationError: If the key is empty or exceeds 1024 bytes when UTF-8 encoded.
    """
    if not key:
        raise ValidationError("Object key must not be empty", field="key")
    if len(key.encode("utf-8")) > _MAX_KEY_BYTES:
        raise ValidationError("Object key is too long", field="key")
