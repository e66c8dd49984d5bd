"""Run single reconcile passes over VPC endpoint resources."""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any

from endpointsync.errors import UnexpectedResourceTypeError
from endpointsync.external import External
from endpointsync.hooks import as_endpoint
from endpointsync.models import (
    ConditionType,
    ExternalObservation,
    LifecycleState,
    ReconcileAction,
    ReconcileReport,
    ReconcileResult,
    VPCEndpoint,
    reconcile_error,
    reconcile_success,
)

logger = logging.getLogger(__name__)

_GONE_STATES = {LifecycleState.DELETING, LifecycleState.DELETED}


def _ready_reason(resource: VPCEndpoint) -> str | None:
    condition = resource.status.get_condition(ConditionType.READY)
    return condition.reason.value if condition else None


def plan_action(resource: VPCEndpoint, observation: ExternalObservation) -> ReconcileAction:
    """Choose the verb for a resource from its observation."""
    if resource.deleted:
        if not observation.resource_exists:
            return ReconcileAction.NONE
        if observation.observed is not None and observation.observed.state in _GONE_STATES:
            return ReconcileAction.NONE
        return ReconcileAction.DELETE
    if not observation.resource_exists:
        return ReconcileAction.CREATE
    if not observation.resource_up_to_date:
        return ReconcileAction.UPDATE
    return ReconcileAction.NONE


class Reconciler:
    """Reconciles VPC endpoints, several at a time.

    Polling, backoff and persistence of the resources are left to the caller;
    each call performs exactly one pass per resource.
    """

    def __init__(self, external: External, max_concurrent: int = 5):
        self._external = external
        self._max_concurrent = max_concurrent

    def reconcile(self, resource: Any, apply: bool = True) -> ReconcileResult:
        """Observe the resource and, if ``apply``, act on what was observed.

        Raises ``UnexpectedResourceTypeError`` for anything other than a
        ``VPCEndpoint``; every other failure is recorded on the result.
        """
        resource = as_endpoint(resource)
        observation = None
        action = ReconcileAction.NONE
        try:
            observation = self._external.observe(resource)
            action = plan_action(resource, observation)

            if apply:
                if action == ReconcileAction.DELETE:
                    self._external.delete(resource)
                elif action == ReconcileAction.CREATE:
                    self._external.create(resource)
                elif action == ReconcileAction.UPDATE:
                    self._external.update(resource, observation)
        except UnexpectedResourceTypeError:
            raise
        except Exception as exc:
            logger.warning("Reconcile of %s failed: %s", resource.name, exc)
            resource.status.set_conditions(reconcile_error(exc))
            return ReconcileResult(
                name=resource.name,
                action=action,
                applied=False,
                external_name=resource.external_name,
                observation=observation,
                error=str(exc),
                ready=_ready_reason(resource),
            )

        resource.status.set_conditions(reconcile_success())
        logger.debug("Reconciled %s: %s", resource.name, action)
        return ReconcileResult(
            name=resource.name,
            action=action,
            applied=apply and action != ReconcileAction.NONE,
            external_name=resource.external_name,
            observation=observation,
            ready=_ready_reason(resource),
        )

    def reconcile_all(self, resources: list[VPCEndpoint], apply: bool = True) -> ReconcileReport:
        """Reconcile each resource once, concurrently."""
        if not resources:
            return ReconcileReport(results=[], failed=[])

        results: list[ReconcileResult] = []
        failed: list[str] = []

        with ThreadPoolExecutor(max_workers=self._max_concurrent) as executor:
            futures = {executor.submit(self.reconcile, r, apply): r for r in resources}
            for future in as_completed(futures):
                resource = futures[future]
                try:
                    result = future.result()
                except UnexpectedResourceTypeError:
                    raise
                except Exception:
                    logger.exception("Failed to reconcile %s", resource.name)
                    failed.append(resource.name)
                    continue
                results.append(result)
                if result.error is not None:
                    failed.append(resource.name)

        return ReconcileReport(results=results, failed=failed)
