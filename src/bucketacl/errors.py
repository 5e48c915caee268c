"""Error definitions for the bucketacl client."""


class ACLError(Exception):
    """Base class for every error raised by bucketacl.

    Attributes:
        code: A short machine-readable error code.
        message: Human-readable error description.
        field: The offending input or document field, if known.
        extra_fields: Additional diagnostic key-value pairs.
    """

    code = "ACLError"

    def __init__(
        self,
        message: str,
        field: str | None = None,
        extra_fields: dict[str, str] | None = None,
    ) -> None:
        """Initialize the error.

        Args:
            message: Error description.
            field: Optional name or path of the offending field.
            extra_fields: Optional extra diagnostic fields.
        """
        super().__init__(message)
        self.message = message
        self.field = field
        self.extra_fields = extra_fields or {}

    def __str__(self) -> str:
        if self.field:
            return f"{self.message} (field: {self.field})"
        return self.message


class ValidationError(ACLError):
    """Caller-supplied ACL input is invalid. Raised before any network call."""

    code = "ValidationError"


class MalformedACL(ACLError):
    """A policy document or grant header value failed schema or enum validation."""

    code = "MalformedACL"


class TransportError(ACLError):
    """The transport failed to complete the exchange.

    The underlying exception is chained as ``__cause__``.

    Attributes:
        timeout: True when the failure was a timeout.
    """

    code = "TransportError"

    def __init__(self, message: str, timeout: bool = False) -> None:
        super().__init__(message)
        self.timeout = timeout


class ServiceError(ACLError):
    """The service answered with a non-2xx status.

    Attributes:
        http_status: The HTTP status code of the response.
        code: The service error code (e.g. "NoSuchBucket", "AccessDenied").
        request_id: The service request identifier, if returned.
        host_id: The service host identifier, if returned.
    """

    def __init__(
        self,
        http_status: int,
        code: str,
        message: str,
        request_id: str = "",
        host_id: str = "",
        extra_fields: dict[str, str] | None = None,
    ) -> None:
        """Initialize the service error.

        Args:
            http_status: HTTP status code.
            code: Service error code.
            message: Error description returned by the service.
            request_id: Service request identifier.
            host_id: Service host identifier.
            extra_fields: Any other fields found in the error body.
        """
        super().__init__(message, extra_fields=extra_fields)
        self.http_status = http_status
        self.code = code
        self.request_id = request_id
        self.host_id = host_id

    def __str__(self) -> str:
        text = f"{self.http_status} {self.code}: {self.message}"
        if self.request_id:
            text += f" (request id: {self.request_id})"
        return text
