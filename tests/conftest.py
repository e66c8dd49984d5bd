"""Shared test fixtures."""

import pytest

from endpointsync.constants import DEFAULT_POLICY_DOCUMENT
from endpointsync.models import (
    DesiredState,
    DNSEntry,
    ObservedState,
    SecurityGroupIdentifier,
    VPCEndpoint,
)


@pytest.fixture
def aws_credentials(monkeypatch):
    """Set dummy AWS credentials for moto."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")


def make_observed(endpoint_id="vpce-1", **kwargs) -> ObservedState:
    kwargs.setdefault("state", "available")
    kwargs.setdefault("policy_document", DEFAULT_POLICY_DOCUMENT)
    return ObservedState(vpc_endpoint_id=endpoint_id, **kwargs)


def make_endpoint(name="my-endpoint", external_name=None, **spec) -> VPCEndpoint:
    spec.setdefault("vpc_id", "vpc-1")
    spec.setdefault("service_name", "com.amazonaws.us-east-1.s3")
    return VPCEndpoint(name=name, spec=DesiredState(**spec), external_name=external_name)


def groups(*ids) -> list[SecurityGroupIdentifier]:
    return [SecurityGroupIdentifier(group_id=i, group_name=f"name-{i}") for i in ids]


def dns(*names) -> list[DNSEntry]:
    return [DNSEntry(dns_name=n, hosted_zone_id="Z1") for n in names]
