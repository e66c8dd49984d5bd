"""Exception types raised by the reconciler."""

from botocore.exceptions import BotoCoreError, ClientError

# Provider and transport failures. These are never wrapped or interpreted by
# the hooks; retry policy belongs to whoever drives the reconciler.
EXTERNAL_ERRORS = (BotoCoreError, ClientError)


class EndpointSyncError(Exception):
    """Base class for endpointsync errors."""


class UnexpectedResourceTypeError(EndpointSyncError, TypeError):
    """A hook was handed an object that is not a VPCEndpoint."""

    def __init__(self, obj: object):
        super().__init__(f"managed resource is not a VPCEndpoint: {type(obj).__name__}")
        self.obj = obj


class EmptyCreateResponseError(EndpointSyncError):
    """CreateVpcEndpoint succeeded but returned no endpoint."""


class ExternalOperationError(EndpointSyncError):
    """The provider reported an item-level failure without raising."""

    def __init__(self, resource_id: str, code: str | None, message: str | None):
        super().__init__(f"{resource_id}: {code or 'Unknown'}: {message or 'no message'}")
        self.resource_id = resource_id
        self.code = code
        self.message = message


class ManifestError(EndpointSyncError, ValueError):
    """A desired-state manifest could not be parsed."""
