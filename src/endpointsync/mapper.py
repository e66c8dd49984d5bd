"""Translate an observed VPC endpoint into status and readiness."""

from collections.abc import Callable

from endpointsync.constants import CONNECTION_ENDPOINT_KEY
from endpointsync.models import (
    Condition,
    LifecycleState,
    ObservedState,
    StatusRecord,
    available,
    creating,
    deleting,
    unavailable,
)

STATE_CONDITIONS: dict[str, Callable[[], Condition]] = {
    LifecycleState.AVAILABLE: available,
    LifecycleState.PENDING: creating,
    LifecycleState.PENDING_ACCEPTANCE: creating,
    LifecycleState.DELETING: deleting,
    LifecycleState.DELETED: unavailable,
}


def condition_for_state(state: str | None) -> Condition | None:
    """Readiness condition for a lifecycle state, or None if unrecognized."""
    factory = STATE_CONDITIONS.get(state or "")
    return factory() if factory else None


def connection_details(observed: ObservedState) -> dict[str, str]:
    """Expose the primary DNS name of the endpoint, if it has one."""
    if observed.dns_entries and observed.dns_entries[0].dns_name:
        return {CONNECTION_ENDPOINT_KEY: observed.dns_entries[0].dns_name}
    return {}


def map_observation(status: StatusRecord, observed: ObservedState) -> dict[str, str]:
    """Mirror ``observed`` into ``status`` and return its connection details.

    States this module does not know leave the Ready condition as it was.
    """
    details = connection_details(observed)
    condition = condition_for_state(observed.state)

    status.at_provider = observed
    status.connection_details = details
    if condition is not None:
        status.set_conditions(condition)
    return details
