"""ACL client for a bucket/object storage service.

Builds ACL requests, hands them to a transport and decodes the replies.
Request signing and retries are the transport's business; every error it
raises reaches the caller unchanged or wrapped as ``TransportError``.
"""

import json
import logging
import time
import urllib.parse
from dataclasses import dataclass, field
from typing import Protocol
from xml.etree import ElementTree

import httpx

from bucketacl import metrics
from bucketacl.builder import ACLRequest, build_get_acl_request, build_put_acl_request
from bucketacl.canned import canned_policy
from bucketacl.codec import parse_policy
from bucketacl.config import ACLClientConfig
from bucketacl.errors import ACLError, ServiceError, TransportError
from bucketacl.inputs import ACLInput
from bucketacl.models import AccessControlPolicy, CannedACLType, Owner, ResourceKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ACLResponse:
    """A raw response as returned by a transport."""

    status_code: int
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""


@dataclass(frozen=True)
class ACLAck:
    """Acknowledgment of a successful ACL write."""

    status_code: int
    request_id: str = ""


class Transport(Protocol):
    """Sends one ACL request and returns the raw response."""

    async def send(self, request: ACLRequest) -> ACLResponse: ...


class HTTPTransport:
    """httpx-based transport.

    Attributes:
        endpoint: Service base URL (scheme and host, optionally a port).
        addressing_style: ``path`` for ``/{bucket}/{key}`` or ``virtual``
            for ``{bucket}.{host}/{key}``.
    """

    def __init__(
        self,
        endpoint: str,
        timeout: float = 30.0,
        addressing_style: str = "path",
        client: httpx.AsyncClient | None = None,
        auth: httpx.Auth | None = None,
    ) -> None:
        if addressing_style not in ("path", "virtual"):
            raise ValueError(
                f"addressing_style must be 'path' or 'virtual', got {addressing_style!r}"
            )
        self.endpoint = endpoint.rstrip("/")
        self.addressing_style = addressing_style
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._auth = auth

    def url_for(self, request: ACLRequest) -> str:
        """Return the request URL without the query string."""
        path = ""
        if request.key is not None:
            path = "/" + urllib.parse.quote(request.key, safe="/~")
        if self.addressing_style == "virtual":
            parts = urllib.parse.urlsplit(self.endpoint)
            return f"{parts.scheme}://{request.bucket}.{parts.netloc}{path or '/'}"
        return f"{self.endpoint}/{request.bucket}{path}"

    async def send(self, request: ACLRequest) -> ACLResponse:
        """Send ``request`` and return the raw response.

        Raises:
            TransportError: On any httpx failure (connect, read, timeout).
        """
        query = "&".join(
            k if not v else f"{k}={urllib.parse.quote(v, safe='')}"
            for k, v in request.query.items()
        )
        url = f"{self.url_for(request)}?{query}"
        kwargs = {"headers": request.headers, "content": request.body}
        if self._auth is not None:
            kwargs["auth"] = self._auth
        try:
            resp = await self._client.request(request.method, url, **kwargs)
        except httpx.TimeoutException as exc:
            raise TransportError(f"{request.operation} timed out: {exc}", timeout=True) from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"{request.operation} failed: {exc}") from exc
        return ACLResponse(resp.status_code, dict(resp.headers), resp.content)

    async def aclose(self) -> None:
        """Close the underlying httpx client if this transport created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "HTTPTransport":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()


def _parse_error_body(body: bytes) -> dict[str, str]:
    """Extract error fields from a JSON or XML error body.

    Returns an empty dict when neither format applies.
    """
    text = body.decode("utf-8", errors="replace").strip()
    if not text:
        return {}
    if text.startswith("{"):
        try:
            data = json.loads(text)
        except json.JSONDecodeError:
            return {}
        if isinstance(data, dict):
            return {str(k): str(v) for k, v in data.items() if isinstance(v, (str, int))}
        return {}
    if text.startswith("<"):
        try:
            root = ElementTree.fromstring(text)
        except ElementTree.ParseError:
            return {}
        return {child.tag.split("}")[-1]: (child.text or "") for child in root}
    return {}


class ACLClient:
    """Reads and writes bucket and object access control policies.

    Attributes:
        transport: The collaborator that sends requests.
        config: Client configuration.
    """

    def __init__(self, transport: Transport, config: ACLClientConfig | None = None) -> None:
        self.transport = transport
        self.config = config or ACLClientConfig()

    @classmethod
    def from_config(
        cls, config: ACLClientConfig, auth: httpx.Auth | None = None
    ) -> "ACLClient":
        """Build a client with an ``HTTPTransport`` configured from ``config``."""
        transport = HTTPTransport(
            config.client.endpoint,
            timeout=config.client.timeout,
            addressing_style=config.client.addressing_style,
            auth=auth,
        )
        if config.metrics.enabled:
            metrics.init_metrics()
        return cls(transport, config)

    async def aclose(self) -> None:
        close = getattr(self.transport, "aclose", None)
        if close is not None:
            await close()

    async def __aenter__(self) -> "ACLClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    # -- Operations -----------------------------------------------------------

    async def get_bucket_acl(self, bucket: str) -> AccessControlPolicy:
        """Return the access control policy of ``bucket``."""
        resp = await self._exchange(build_get_acl_request(bucket))
        return parse_policy(resp.body)

    async def put_bucket_acl(self, bucket: str, acl_input: ACLInput) -> ACLAck:
        """Replace the access control policy of ``bucket``."""
        request = build_put_acl_request(
            bucket, acl_input, header_prefix=self.config.client.header_prefix
        )
        return self._ack(await self._exchange(request))

    async def get_object_acl(
        self, bucket: str, key: str, version_id: str | None = None
    ) -> AccessControlPolicy:
        """Return the access control policy of an object (or object version)."""
        resp = await self._exchange(build_get_acl_request(bucket, key, version_id))
        return parse_policy(resp.body)

    async def put_object_acl(
        self, bucket: str, key: str, acl_input: ACLInput, version_id: str | None = None
    ) -> ACLAck:
        """Replace the access control policy of an object (or object version)."""
        request = build_put_acl_request(
            bucket, acl_input, key, version_id, header_prefix=self.config.client.header_prefix
        )
        return self._ack(await self._exchange(request))

    def expected_canned_policy(
        self,
        acl_type: CannedACLType | str,
        owner: Owner,
        resource: ResourceKind = ResourceKind.OBJECT,
    ) -> AccessControlPolicy:
        """Return the policy the service is expected to store for a canned keyword.

        Uses the configured per-resource tables.
        """
        if ResourceKind(resource) is ResourceKind.BUCKET:
            table = self.config.canned.bucket_table()
        else:
            table = self.config.canned.object_table()
        return canned_policy(acl_type, owner, resource, table)

    # -- Internals ------------------------------------------------------------

    def _request_id(self, resp: ACLResponse) -> str:
        wanted = f"{self.config.client.header_prefix}request-id".lower()
        for name, value in resp.headers.items():
            if name.lower() == wanted:
                return value
        return ""

    def _ack(self, resp: ACLResponse) -> ACLAck:
        return ACLAck(resp.status_code, self._request_id(resp))

    async def _exchange(self, request: ACLRequest) -> ACLResponse:
        """Send ``request``; raise ServiceError on a non-2xx reply."""
        log_extra = {
            "operation": request.operation,
            "bucket": request.bucket,
            "key": request.key,
        }
        start = time.monotonic()
        try:
            resp = await self.transport.send(request)
        except ACLError as exc:
            metrics.record_operation(request.operation, exc.code)
            raise
        duration_ms = round((time.monotonic() - start) * 1000, 2)
        request_id = self._request_id(resp)
        metrics.record_operation(request.operation, str(resp.status_code))

        if 200 <= resp.status_code < 300:
            logger.debug(
                "%s %s/%s -> %d",
                request.operation,
                request.bucket,
                request.key or "",
                resp.status_code,
                extra={
                    **log_extra,
                    "status": resp.status_code,
                    "request_id": request_id,
                    "duration_ms": duration_ms,
                },
            )
            return resp

        fields = _parse_error_body(resp.body)
        error = ServiceError(
            http_status=resp.status_code,
            code=fields.pop("Code", "") or f"HTTP{resp.status_code}",
            message=fields.pop("Message", "")
            or resp.body.decode("utf-8", errors="replace").strip(),
            request_id=fields.pop("RequestId", "") or request_id,
            host_id=fields.pop("HostId", ""),
            extra_fields=fields,
        )
        logger.warning(
            "%s failed: %s",
            request.operation,
            error,
            extra={**log_extra, "status": resp.status_code, "request_id": error.request_id},
        )
        raise error
