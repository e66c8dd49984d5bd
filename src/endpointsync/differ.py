"""Drift detection between a declared VPC endpoint and the one EC2 reports."""

import logging
from collections.abc import Iterable
from typing import Any

from endpointsync.models import DesiredState, ObservedState
from endpointsync.policy import declared_policy, matches_default, policy_up_to_date

logger = logging.getLogger(__name__)


def ids_equal(declared: Iterable[str], observed: Iterable[str]) -> bool:
    """Order-insensitive comparison of two identifier lists.

    Both sides are assumed to hold unique ids, so equal length plus every
    declared id being present on the observed side means equal sets.
    """
    declared = list(declared)
    observed = list(observed)
    if len(declared) != len(observed):
        return False
    seen = set(observed)
    return all(i in seen for i in declared)


def is_up_to_date(desired: DesiredState, observed: ObservedState) -> bool:
    """Return True when no modification of the endpoint is needed.

    Checks run in a fixed order and stop at the first mismatch: subnets,
    route tables, security groups, then the policy document.
    """
    if not ids_equal(desired.subnet_ids, observed.subnet_ids):
        logger.debug("%s: subnet ids differ", observed.vpc_endpoint_id)
        return False

    if not ids_equal(desired.route_table_ids, observed.route_table_ids):
        logger.debug("%s: route table ids differ", observed.vpc_endpoint_id)
        return False

    if not ids_equal(desired.security_group_ids, (g.group_id for g in observed.groups)):
        logger.debug("%s: security group ids differ", observed.vpc_endpoint_id)
        return False

    if not policy_up_to_date(desired.policy_document, observed.policy_document):
        logger.debug("%s: policy document differs", observed.vpc_endpoint_id)
        return False

    return True


def _delta(declared: Iterable[str], observed: Iterable[str]) -> tuple[list[str], list[str]]:
    declared = set(declared)
    observed = set(observed)
    return sorted(declared - observed), sorted(observed - declared)


def build_modify_request(
    endpoint_id: str,
    desired: DesiredState,
    observed: ObservedState,
) -> dict[str, Any]:
    """Shape a ModifyVpcEndpoint request that moves ``observed`` to ``desired``.

    Empty add/remove deltas and blank policy documents are left out of the
    request entirely rather than sent as empty values.
    """
    request: dict[str, Any] = {"VpcEndpointId": endpoint_id}

    deltas = [
        ("SubnetIds", desired.subnet_ids, observed.subnet_ids),
        ("RouteTableIds", desired.route_table_ids, observed.route_table_ids),
        (
            "SecurityGroupIds",
            desired.security_group_ids,
            [g.group_id for g in observed.groups],
        ),
    ]
    for key, want, have in deltas:
        add, remove = _delta(want, have)
        if add:
            request[f"Add{key}"] = add
        if remove:
            request[f"Remove{key}"] = remove

    policy = declared_policy(desired.policy_document)
    if policy is not None:
        if not policy_up_to_date(policy, observed.policy_document):
            request["PolicyDocument"] = policy
    elif not matches_default(observed.policy_document):
        request["ResetPolicy"] = True

    return request
