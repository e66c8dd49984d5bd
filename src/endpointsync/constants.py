"""Named constants shared across the VPC endpoint reconciler."""

# Policy AWS attaches to an endpoint when none is supplied. An endpoint that
# carries at least these permissions is treated as running the default.
DEFAULT_POLICY_DOCUMENT = (
    '{"Statement":[{"Action":"*","Effect":"Allow","Principal":"*","Resource":"*"}]}'
)

NAME_TAG_KEY = "Name"
TAG_RESOURCE_TYPE = "vpc-endpoint"

CONNECTION_ENDPOINT_KEY = "endpoint"

EXTERNAL_NAME_ANNOTATION = "crossplane.io/external-name"

NOT_FOUND_ERROR_CODES = frozenset(
    {
        "InvalidVpcEndpointId.NotFound",
        "InvalidVpcEndpoint.NotFound",
    }
)
