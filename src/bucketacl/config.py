"""Configuration loading and Pydantic models for bucketacl."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

from bucketacl.canned import (
    BUCKET_CANNED_GRANTS,
    OBJECT_CANNED_GRANTS,
    CannedTable,
    load_canned_table,
)
from bucketacl.headers import DEFAULT_HEADER_PREFIX


class ClientConfig(BaseModel):
    """Service endpoint and transport configuration."""

    endpoint: str = "http://127.0.0.1:9000"
    region: str = "us-east-1"
    timeout: float = 30.0
    addressing_style: str = "path"
    header_prefix: str = DEFAULT_HEADER_PREFIX

    @field_validator("addressing_style")
    @classmethod
    def _check_addressing_style(cls, value: str) -> str:
        if value not in ("path", "virtual"):
            raise ValueError("addressing_style must be 'path' or 'virtual'")
        return value


class LoggingConfig(BaseModel):
    """Log output configuration."""

    level: str = "INFO"
    format: str = "text"


class MetricsConfig(BaseModel):
    """Prometheus metrics configuration."""

    enabled: bool = False


class CannedConfig(BaseModel):
    """Per-resource overrides of the canned ACL expansion tables.

    Each entry maps a canned keyword to grant templates such as
    ``["owner:FULL_CONTROL", "AllUsers:READ"]``.
    """

    bucket: dict[str, list[str]] = Field(default_factory=dict)
    object: dict[str, list[str]] = Field(default_factory=dict)

    def bucket_table(self) -> CannedTable:
        return load_canned_table(self.bucket, BUCKET_CANNED_GRANTS)

    def object_table(self) -> CannedTable:
        return load_canned_table(self.object, OBJECT_CANNED_GRANTS)


class ACLClientConfig(BaseModel):
    """Top-level bucketacl configuration."""

    client: ClientConfig = Field(default_factory=ClientConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)
    canned: CannedConfig = Field(default_factory=CannedConfig)


def _parse_client(data: dict[str, Any] | None) -> dict[str, Any]:
    """Parse the client section from YAML data into a dict for Pydantic."""
    if data is None:
        return {}
    result: dict[str, Any] = {}
    for key in ("endpoint", "region", "timeout", "addressing_style", "header_prefix"):
        if key in data:
            result[key] = data[key]
    return result


def _parse_logging(data: dict[str, Any] | None) -> dict[str, Any]:
    """Parse the logging section from YAML data."""
    if data is None:
        return {}
    return {
        "level": data.get("level", "INFO"),
        "format": data.get("format", "text"),
    }


def _parse_canned(data: dict[str, Any] | None) -> dict[str, Any]:
    """Parse the canned section from YAML data.

    Handles both list and comma-separated string rows:
    ``public-read: "owner:FULL_CONTROL, AllUsers:READ"``.
    """
    if data is None:
        return {}
    result: dict[str, Any] = {}
    for resource in ("bucket", "object"):
        section = data.get(resource)
        if not isinstance(section, dict):
            continue
        rows = {}
        for keyword, templates in section.items():
            if isinstance(templates, str):
                templates = [t.strip() for t in templates.split(",") if t.strip()]
            rows[keyword] = list(templates or [])
        result[resource] = rows
    return result


def load_config(path: Path) -> ACLClientConfig:
    """Load an ACLClientConfig from a YAML file.

    Args:
        path: Path to the YAML configuration file.

    Returns:
        A fully populated ACLClientConfig validated by Pydantic.

    Raises:
        FileNotFoundError: If the config file does not exist.
        yaml.YAMLError: If the file is not valid YAML.
        bucketacl.errors.ValidationError: If a canned table override is invalid.
    """
    with open(path, "r") as fh:
        raw: dict[str, Any] = yaml.safe_load(fh) or {}

    config = ACLClientConfig(
        client=ClientConfig(**_parse_client(raw.get("client"))),
        logging=LoggingConfig(**_parse_logging(raw.get("logging"))),
        metrics=MetricsConfig(**(raw.get("metrics") or {})),
        canned=CannedConfig(**_parse_canned(raw.get("canned"))),
    )
    # Fail at load time rather than on first use
    config.canned.bucket_table()
    config.canned.object_table()
    return config
