"""Shared pytest fixtures for bucketacl tests.

Client tests talk to an in-memory ACL service (a FastAPI app) through
``httpx.ASGITransport``, so every request goes through the real
``HTTPTransport`` without opening a socket.
"""

import pytest
from httpx import ASGITransport, AsyncClient

from acl_service import ServiceState, create_acl_service
from bucketacl.client import ACLClient, HTTPTransport
from bucketacl.config import ACLClientConfig, ClientConfig
from bucketacl.models import Grantee, Owner

SERVICE_ENDPOINT = "http://acl.test"


@pytest.fixture
def config() -> ACLClientConfig:
    """Create a test ACLClientConfig pointing at the in-memory service."""
    return ACLClientConfig(client=ClientConfig(endpoint=SERVICE_ENDPOINT, timeout=5.0))


@pytest.fixture
def owner() -> Owner:
    return Owner("owner-id", "owner")


@pytest.fixture
def account() -> Grantee:
    return Grantee.account("test-owner-id")


@pytest.fixture
def service(owner: Owner) -> ServiceState:
    """Fresh service state per test."""
    return ServiceState(owner=owner)


@pytest.fixture
async def client(service: ServiceState, config: ACLClientConfig) -> ACLClient:
    """Create an ACLClient wired to the in-memory service."""
    app = create_acl_service(service)
    async with AsyncClient(transport=ASGITransport(app=app)) as http:
        transport = HTTPTransport(config.client.endpoint, client=http)
        yield ACLClient(transport, config)


@pytest.fixture
def bucket(service: ServiceState):
    """Create a bucket on the service and remove it after the test."""
    name = service.create_bucket("acl-test-bucket")
    yield name
    service.delete_bucket(name)


@pytest.fixture
def object_key(service: ServiceState, bucket: str) -> str:
    """Create an object in ``bucket``."""
    key = "key123"
    service.put_object(bucket, key)
    return key
