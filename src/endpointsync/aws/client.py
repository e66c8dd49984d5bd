"""Thin boto3 wrapper for the EC2 VPC endpoint API calls."""

import logging
from typing import Any

import boto3
from botocore.exceptions import ClientError

from endpointsync.constants import NOT_FOUND_ERROR_CODES
from endpointsync.errors import ExternalOperationError
from endpointsync.models import (
    DNSEntry,
    ObservedState,
    SecurityGroupIdentifier,
    normalize_state,
)

logger = logging.getLogger(__name__)


def _to_observed(endpoint: dict[str, Any]) -> ObservedState:
    last_error = endpoint.get("LastError")
    return ObservedState(
        vpc_endpoint_id=endpoint["VpcEndpointId"],
        state=normalize_state(endpoint.get("State")),
        service_name=endpoint.get("ServiceName"),
        vpc_id=endpoint.get("VpcId"),
        vpc_endpoint_type=endpoint.get("VpcEndpointType"),
        subnet_ids=list(endpoint.get("SubnetIds", [])),
        route_table_ids=list(endpoint.get("RouteTableIds", [])),
        groups=[
            SecurityGroupIdentifier(group_id=g["GroupId"], group_name=g.get("GroupName"))
            for g in endpoint.get("Groups", [])
        ],
        dns_entries=[
            DNSEntry(dns_name=d.get("DnsName"), hosted_zone_id=d.get("HostedZoneId"))
            for d in endpoint.get("DnsEntries", [])
        ],
        network_interface_ids=list(endpoint.get("NetworkInterfaceIds", [])),
        policy_document=endpoint.get("PolicyDocument"),
        private_dns_enabled=endpoint.get("PrivateDnsEnabled"),
        requester_managed=endpoint.get("RequesterManaged"),
        owner_id=endpoint.get("OwnerId"),
        creation_timestamp=endpoint.get("CreationTimestamp"),
        last_error=last_error.get("Message") if last_error else None,
        tags={t["Key"]: t["Value"] for t in endpoint.get("Tags", [])},
    )


class EC2Client:
    """Wraps boto3 EC2 VPC endpoint calls and returns endpointsync dataclasses.

    boto3 clients are thread-safe, so one instance may be shared by workers
    reconciling different endpoints.
    """

    def __init__(self, region: str | None = None):
        self._client = boto3.client("ec2", **({"region_name": region} if region else {}))

    def describe_vpc_endpoints(self, endpoint_ids: list[str]) -> list[ObservedState]:
        """Describe the given endpoints. Unknown ids yield an empty list."""
        paginator = self._client.get_paginator("describe_vpc_endpoints")
        results = []
        try:
            for page in paginator.paginate(VpcEndpointIds=endpoint_ids):
                for endpoint in page["VpcEndpoints"]:
                    results.append(_to_observed(endpoint))
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") in NOT_FOUND_ERROR_CODES:
                logger.debug("VPC endpoints %s not found", endpoint_ids)
                return []
            raise
        return results

    def create_vpc_endpoint(self, request: dict[str, Any]) -> ObservedState | None:
        """Create an endpoint. Returns None if the reply carries no endpoint."""
        resp = self._client.create_vpc_endpoint(**request)
        endpoint = resp.get("VpcEndpoint")
        if not endpoint:
            return None
        logger.info("Created VPC endpoint %s", endpoint["VpcEndpointId"])
        return _to_observed(endpoint)

    def modify_vpc_endpoint(self, request: dict[str, Any]) -> None:
        self._client.modify_vpc_endpoint(**request)
        logger.info("Modified VPC endpoint %s", request["VpcEndpointId"])

    def delete_vpc_endpoints(self, endpoint_ids: list[str]) -> None:
        """Delete endpoints, raising on any item EC2 reports as unsuccessful."""
        resp = self._client.delete_vpc_endpoints(VpcEndpointIds=endpoint_ids)
        for item in resp.get("Unsuccessful", []):
            error = item.get("Error", {})
            raise ExternalOperationError(
                item.get("ResourceId", ",".join(endpoint_ids)),
                error.get("Code"),
                error.get("Message"),
            )
        logger.info("Requested deletion of VPC endpoints %s", endpoint_ids)
