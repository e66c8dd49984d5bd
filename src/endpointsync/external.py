"""Compose the EC2 client and resource hooks into reconcile verbs."""

import logging
from typing import Any

from endpointsync.aws.client import EC2Client
from endpointsync.errors import EXTERNAL_ERRORS
from endpointsync.hooks import ResourceHooks, as_endpoint, generate_create_request
from endpointsync.models import ExternalCreation, ExternalObservation

logger = logging.getLogger(__name__)


class External:
    """Observe, create, update and delete one VPC endpoint per call.

    Each verb makes at most one EC2 call. Provider errors are passed to the
    matching hook, which re-raises them unchanged. Anything that is not a
    ``VPCEndpoint`` is rejected with ``UnexpectedResourceTypeError`` before
    the client is touched.
    """

    def __init__(self, client: EC2Client, hooks: ResourceHooks):
        self._client = client
        self._hooks = hooks

    def observe(self, resource: Any) -> ExternalObservation:
        cr = as_endpoint(resource)
        if not cr.external_name:
            return ExternalObservation(resource_exists=False)

        try:
            described = self._client.describe_vpc_endpoints([cr.external_name])
        except EXTERNAL_ERRORS as exc:
            return self._hooks.post_observe(
                cr, None, ExternalObservation(resource_exists=False), exc
            )

        matched = self._hooks.filter_list(cr, described)
        if not matched:
            logger.debug("%s: VPC endpoint %s not found", cr.name, cr.external_name)
            return ExternalObservation(resource_exists=False)

        observed = matched[0]
        observation = ExternalObservation(
            resource_exists=True,
            resource_up_to_date=self._hooks.is_up_to_date(cr, observed),
            observed=observed,
        )
        return self._hooks.post_observe(cr, observed, observation)

    def create(self, resource: Any) -> ExternalCreation:
        cr = as_endpoint(resource)
        request = self._hooks.pre_create(cr, generate_create_request(cr))
        try:
            created = self._client.create_vpc_endpoint(request)
        except EXTERNAL_ERRORS as exc:
            return self._hooks.post_create(cr, None, ExternalCreation(), exc)
        return self._hooks.post_create(cr, created, ExternalCreation())

    def update(self, resource: Any, observation: ExternalObservation) -> None:
        """Modify the endpoint to match the declared spec.

        ``observation`` must come from :meth:`observe` in the same pass.
        """
        cr = as_endpoint(resource)
        if observation.observed is None:
            raise ValueError(f"{cr.name}: cannot update an endpoint that was not observed")
        request = self._hooks.pre_update(cr, observation.observed)
        if request.keys() == {"VpcEndpointId"}:
            logger.debug("%s: nothing to modify", cr.name)
            return
        self._client.modify_vpc_endpoint(request)

    def delete(self, resource: Any) -> None:
        self._hooks.delete(as_endpoint(resource))
