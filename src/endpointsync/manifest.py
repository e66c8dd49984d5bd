"""Load VPCEndpoint resources from JSON manifests.

Manifests follow the crossplane shape: ``metadata`` plus
``spec.forProvider``. They are validated with pydantic and converted to
the frozen dataclasses in :mod:`endpointsync.models`.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator

from endpointsync.constants import EXTERNAL_NAME_ANNOTATION
from endpointsync.errors import ManifestError
from endpointsync.models import DesiredState, VPCEndpoint


class Metadata(BaseModel):
    """Object metadata of a manifest"""
    name: str = Field(..., min_length=1)
    annotations: dict[str, str] = Field(default_factory=dict)
    deletion_timestamp: datetime | None = Field(None, alias="deletionTimestamp")

    @field_validator("annotations", mode="before")
    @classmethod
    def _null_annotations(cls, v):
        return {} if v is None else v

    @field_validator("deletion_timestamp", mode="before")
    @classmethod
    def _blank_timestamp(cls, v):
        return v or None


class ForProvider(BaseModel):
    """Declared parameters of the VPC endpoint"""
    vpc_id: str | None = Field(None, alias="vpcID")
    service_name: str | None = Field(None, alias="serviceName")
    region: str | None = None
    vpc_endpoint_type: str | None = Field(None, alias="vpcEndpointType")
    subnet_ids: list[str] = Field(default_factory=list, alias="subnetIDs")
    route_table_ids: list[str] = Field(default_factory=list, alias="routeTableIDs")
    security_group_ids: list[str] = Field(default_factory=list, alias="securityGroupIDs")
    # Inline JSON objects are accepted and stored as text.
    policy_document: str | dict[str, Any] | None = Field(None, alias="policyDocument")
    private_dns_enabled: bool | None = Field(None, alias="privateDNSEnabled")
    tags: dict[str, str] = Field(default_factory=dict)
    client_token: str | None = Field(None, alias="clientToken")

    @field_validator("subnet_ids", "route_table_ids", "security_group_ids", mode="before")
    @classmethod
    def _null_list(cls, v):
        return [] if v is None else v

    @field_validator("tags", mode="before")
    @classmethod
    def _null_tags(cls, v):
        return {} if v is None else v

    def policy_text(self) -> str | None:
        if self.policy_document is None or isinstance(self.policy_document, str):
            return self.policy_document
        return json.dumps(self.policy_document)


class EndpointSpec(BaseModel):
    for_provider: ForProvider = Field(default_factory=ForProvider, alias="forProvider")

    @field_validator("for_provider", mode="before")
    @classmethod
    def _null_params(cls, v):
        return {} if v is None else v


class EndpointManifest(BaseModel):
    """A VPCEndpoint manifest; ``apiVersion`` and ``kind`` are not checked"""
    metadata: Metadata
    spec: EndpointSpec = Field(default_factory=EndpointSpec)

    @field_validator("spec", mode="before")
    @classmethod
    def _null_spec(cls, v):
        return {} if v is None else v

    def to_endpoint(self) -> VPCEndpoint:
        params = self.spec.for_provider
        spec = DesiredState(
            vpc_id=params.vpc_id,
            service_name=params.service_name,
            region=params.region,
            vpc_endpoint_type=params.vpc_endpoint_type,
            subnet_ids=list(params.subnet_ids),
            route_table_ids=list(params.route_table_ids),
            security_group_ids=list(params.security_group_ids),
            policy_document=params.policy_text(),
            private_dns_enabled=params.private_dns_enabled,
            tags=dict(params.tags),
            client_token=params.client_token,
        )
        return VPCEndpoint(
            name=self.metadata.name,
            spec=spec,
            external_name=self.metadata.annotations.get(EXTERNAL_NAME_ANNOTATION) or None,
            deletion_timestamp=self.metadata.deletion_timestamp,
        )


def _describe(exc: ValidationError) -> str:
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"])
        problems.append(f"{location}: {error['msg']}" if location else error["msg"])
    return "; ".join(problems)


def parse_endpoint(data: dict[str, Any]) -> VPCEndpoint:
    """Build a VPCEndpoint from a decoded manifest."""
    try:
        manifest = EndpointManifest.model_validate(data)
    except ValidationError as exc:
        raise ManifestError(f"invalid manifest: {_describe(exc)}") from exc
    return manifest.to_endpoint()


def load_manifest(path: str | Path) -> VPCEndpoint:
    """Read a single VPCEndpoint manifest from a JSON file."""
    try:
        raw = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ManifestError(f"{path}: cannot read manifest: {exc}") from exc
    try:
        manifest = EndpointManifest.model_validate_json(raw)
    except ValidationError as exc:
        raise ManifestError(f"{path}: {_describe(exc)}") from exc
    return manifest.to_endpoint()
