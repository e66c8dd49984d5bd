"""Lifecycle hooks invoked around each reconcile verb.

A reconciler calls these in a fixed order:

- observe: ``filter_list`` then ``post_observe``
- create: ``pre_create``, the create call, then ``post_create``
- update: ``is_up_to_date``, then ``pre_update`` shapes the modify call
- delete: ``delete``

Hooks operate on one resource at a time and keep no state of their own, so a
single instance can serve concurrent passes over different resources. Every
local mutation happens after all checks have passed, leaving the resource
untouched when a hook raises.
"""

import logging
from typing import Any, Protocol

from endpointsync.aws.client import EC2Client
from endpointsync.constants import NAME_TAG_KEY, TAG_RESOURCE_TYPE
from endpointsync.differ import build_modify_request, is_up_to_date
from endpointsync.errors import EmptyCreateResponseError, UnexpectedResourceTypeError
from endpointsync.mapper import map_observation
from endpointsync.models import (
    ExternalCreation,
    ExternalObservation,
    ObservedState,
    VPCEndpoint,
)
from endpointsync.policy import declared_policy

logger = logging.getLogger(__name__)

# Fields EC2 defaults differently when absent than when sent empty.
_OMIT_WHEN_EMPTY = ("SubnetIds", "RouteTableIds", "SecurityGroupIds")


class ResourceHooks(Protocol):
    """Extension points a resource kind plugs into the reconciler."""

    def filter_list(self, resource: Any, observed: list[ObservedState]) -> list[ObservedState]: ...

    def post_observe(
        self,
        resource: Any,
        observed: ObservedState | None,
        observation: ExternalObservation,
        err: BaseException | None = None,
    ) -> ExternalObservation: ...

    def pre_create(self, resource: Any, request: dict[str, Any]) -> dict[str, Any]: ...

    def post_create(
        self,
        resource: Any,
        created: ObservedState | None,
        creation: ExternalCreation,
        err: BaseException | None = None,
    ) -> ExternalCreation: ...

    def delete(self, resource: Any) -> None: ...

    def is_up_to_date(self, resource: Any, observed: ObservedState) -> bool: ...

    def pre_update(self, resource: Any, observed: ObservedState) -> dict[str, Any]: ...


def as_endpoint(obj: object) -> VPCEndpoint:
    """Return ``obj`` if it is a VPCEndpoint, else raise UnexpectedResourceTypeError."""
    if not isinstance(obj, VPCEndpoint):
        raise UnexpectedResourceTypeError(obj)
    return obj


def generate_create_request(resource: VPCEndpoint) -> dict[str, Any]:
    """Build the raw CreateVpcEndpoint request from the declared spec."""
    spec = resource.spec
    request: dict[str, Any] = {
        "VpcId": spec.vpc_id,
        "ServiceName": spec.service_name,
        "SubnetIds": list(spec.subnet_ids),
        "RouteTableIds": list(spec.route_table_ids),
        "SecurityGroupIds": list(spec.security_group_ids),
    }
    optional = {
        "VpcEndpointType": spec.vpc_endpoint_type,
        "PolicyDocument": spec.policy_document,
        "PrivateDnsEnabled": spec.private_dns_enabled,
        "ClientToken": spec.client_token,
    }
    request.update({k: v for k, v in optional.items() if v is not None})
    if spec.tags:
        request["TagSpecifications"] = [
            {
                "ResourceType": TAG_RESOURCE_TYPE,
                "Tags": [{"Key": k, "Value": v} for k, v in spec.tags.items()],
            }
        ]
    return request


class VPCEndpointHooks:
    """Hooks for ``VPCEndpoint`` resources."""

    def __init__(self, client: EC2Client):
        self._client = client

    def filter_list(self, resource: Any, observed: list[ObservedState]) -> list[ObservedState]:
        """Keep only the endpoint this resource is bound to."""
        cr = as_endpoint(resource)
        for endpoint in observed:
            if endpoint.vpc_endpoint_id == cr.external_name:
                return [endpoint]
        return []

    def post_observe(
        self,
        resource: Any,
        observed: ObservedState | None,
        observation: ExternalObservation,
        err: BaseException | None = None,
    ) -> ExternalObservation:
        cr = as_endpoint(resource)
        if err is not None:
            raise err
        if observed is None:
            return observation
        details = map_observation(cr.status, observed)
        return observation.with_connection_details(details)

    def pre_create(self, resource: Any, request: dict[str, Any]) -> dict[str, Any]:
        """Label the endpoint with its name and drop empty fields."""
        cr = as_endpoint(resource)
        shaped = {k: v for k, v in request.items() if not (k in _OMIT_WHEN_EMPTY and not v)}
        if "PolicyDocument" in shaped and declared_policy(shaped["PolicyDocument"]) is None:
            del shaped["PolicyDocument"]

        name_tag = {"Key": NAME_TAG_KEY, "Value": cr.name}
        specs = [dict(s) for s in shaped.get("TagSpecifications", [])]
        for spec in specs:
            if spec.get("ResourceType") == TAG_RESOURCE_TYPE:
                spec["Tags"] = [t for t in spec.get("Tags", []) if t["Key"] != NAME_TAG_KEY]
                spec["Tags"].append(name_tag)
                break
        else:
            specs.append({"ResourceType": TAG_RESOURCE_TYPE, "Tags": [name_tag]})
        shaped["TagSpecifications"] = specs
        return shaped

    def post_create(
        self,
        resource: Any,
        created: ObservedState | None,
        creation: ExternalCreation,
        err: BaseException | None = None,
    ) -> ExternalCreation:
        """Bind the resource to the id EC2 generated for it."""
        cr = as_endpoint(resource)
        if err is not None:
            raise err
        if created is None:
            raise EmptyCreateResponseError(f"create of {cr.name} returned no VPC endpoint")
        cr.set_external_name(created.vpc_endpoint_id)
        logger.info("Bound %s to VPC endpoint %s", cr.name, created.vpc_endpoint_id)
        return ExternalCreation(
            external_name_assigned=True,
            connection_details=creation.connection_details,
        )

    def delete(self, resource: Any) -> None:
        cr = as_endpoint(resource)
        if not cr.external_name:
            logger.debug("%s was never created, nothing to delete", cr.name)
            return
        self._client.delete_vpc_endpoints([cr.external_name])

    def is_up_to_date(self, resource: Any, observed: ObservedState) -> bool:
        cr = as_endpoint(resource)
        return is_up_to_date(cr.spec, observed)

    def pre_update(self, resource: Any, observed: ObservedState) -> dict[str, Any]:
        cr = as_endpoint(resource)
        return build_modify_request(cr.external_name, cr.spec, observed)
