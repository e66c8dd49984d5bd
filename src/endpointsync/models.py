"""Core data models for VPC endpoint reconciliation."""

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import StrEnum


class LifecycleState(StrEnum):
    """Lifecycle state reported by EC2 for a VPC endpoint."""

    PENDING_ACCEPTANCE = "pending-acceptance"
    PENDING = "pending"
    AVAILABLE = "available"
    DELETING = "deleting"
    DELETED = "deleted"
    REJECTED = "rejected"
    FAILED = "failed"
    EXPIRED = "expired"


_STATES_BY_KEY = {s.value.replace("-", ""): s for s in LifecycleState}


def normalize_state(raw: str | None) -> str | None:
    """Map EC2 spellings (``PendingAcceptance``, ``pendingAcceptance``) onto
    LifecycleState values. Unknown states are returned unchanged."""
    if raw is None:
        return None
    return _STATES_BY_KEY.get(raw.replace("-", "").lower(), raw)


class ConditionType(StrEnum):
    READY = "Ready"
    SYNCED = "Synced"


class ConditionReason(StrEnum):
    AVAILABLE = "Available"
    CREATING = "Creating"
    DELETING = "Deleting"
    UNAVAILABLE = "Unavailable"
    RECONCILE_SUCCESS = "ReconcileSuccess"
    RECONCILE_ERROR = "ReconcileError"


class ReconcileAction(StrEnum):
    """What a reconcile pass did (or would do) to the external resource."""

    NONE = "NONE"
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


@dataclass(frozen=True)
class Condition:
    """A readiness or sync condition on the status record."""

    type: ConditionType
    status: bool
    reason: ConditionReason
    message: str = ""
    last_transition_time: datetime = field(default_factory=lambda: datetime.now(UTC))

    def equivalent(self, other: "Condition") -> bool:
        """True when both conditions describe the same state, ignoring time."""
        return (
            self.type == other.type
            and self.status == other.status
            and self.reason == other.reason
            and self.message == other.message
        )


def available() -> Condition:
    return Condition(ConditionType.READY, True, ConditionReason.AVAILABLE)


def creating() -> Condition:
    return Condition(ConditionType.READY, False, ConditionReason.CREATING)


def deleting() -> Condition:
    return Condition(ConditionType.READY, False, ConditionReason.DELETING)


def unavailable() -> Condition:
    return Condition(ConditionType.READY, False, ConditionReason.UNAVAILABLE)


def reconcile_success() -> Condition:
    return Condition(ConditionType.SYNCED, True, ConditionReason.RECONCILE_SUCCESS)


def reconcile_error(exc: BaseException) -> Condition:
    return Condition(ConditionType.SYNCED, False, ConditionReason.RECONCILE_ERROR, str(exc))


@dataclass(frozen=True)
class DesiredState:
    """User-declared configuration of a VPC endpoint.

    Identifier lists are treated as sets: order is irrelevant and entries are
    assumed unique.
    """

    vpc_id: str | None = None
    service_name: str | None = None
    region: str | None = None
    vpc_endpoint_type: str | None = None
    subnet_ids: list[str] = field(default_factory=list)
    route_table_ids: list[str] = field(default_factory=list)
    security_group_ids: list[str] = field(default_factory=list)
    policy_document: str | None = None
    private_dns_enabled: bool | None = None
    tags: dict[str, str] = field(default_factory=dict)
    client_token: str | None = None


@dataclass(frozen=True)
class DNSEntry:
    dns_name: str | None
    hosted_zone_id: str | None


@dataclass(frozen=True)
class SecurityGroupIdentifier:
    group_id: str
    group_name: str | None = None


@dataclass(frozen=True)
class ObservedState:
    """A VPC endpoint as last described by EC2."""

    vpc_endpoint_id: str
    state: str | None = None
    service_name: str | None = None
    vpc_id: str | None = None
    vpc_endpoint_type: str | None = None
    subnet_ids: list[str] = field(default_factory=list)
    route_table_ids: list[str] = field(default_factory=list)
    groups: list[SecurityGroupIdentifier] = field(default_factory=list)
    dns_entries: list[DNSEntry] = field(default_factory=list)
    network_interface_ids: list[str] = field(default_factory=list)
    policy_document: str | None = None
    private_dns_enabled: bool | None = None
    requester_managed: bool | None = None
    owner_id: str | None = None
    creation_timestamp: datetime | None = None
    last_error: str | None = None
    tags: dict[str, str] = field(default_factory=dict)


@dataclass
class StatusRecord:
    """Locally persisted mirror of the observed endpoint."""

    at_provider: ObservedState | None = None
    conditions: list[Condition] = field(default_factory=list)
    connection_details: dict[str, str] = field(default_factory=dict)

    def get_condition(self, ctype: ConditionType) -> Condition | None:
        for c in self.conditions:
            if c.type == ctype:
                return c
        return None

    def set_conditions(self, *conditions: Condition) -> None:
        """Set conditions, replacing any existing condition of the same type.

        The transition time of an existing condition is preserved when the
        new one is equivalent.
        """
        for new in conditions:
            existing = self.get_condition(new.type)
            if existing is not None and existing.equivalent(new):
                continue
            self.conditions = [c for c in self.conditions if c.type != new.type]
            self.conditions.append(new)


@dataclass
class VPCEndpoint:
    """The managed resource: desired state, status and external identifier."""

    name: str
    spec: DesiredState = field(default_factory=DesiredState)
    status: StatusRecord = field(default_factory=StatusRecord)
    external_name: str | None = None
    deletion_timestamp: datetime | None = None

    def set_external_name(self, value: str) -> None:
        """Bind this resource to its EC2 endpoint id. Allowed once."""
        if not value:
            raise ValueError("external name must not be empty")
        if self.external_name and self.external_name != value:
            raise ValueError(
                f"external name of {self.name} is already {self.external_name!r}, "
                f"refusing to reassign to {value!r}"
            )
        self.external_name = value

    @property
    def deleted(self) -> bool:
        return self.deletion_timestamp is not None


@dataclass(frozen=True)
class ExternalObservation:
    resource_exists: bool
    resource_up_to_date: bool = False
    observed: ObservedState | None = None
    connection_details: dict[str, str] = field(default_factory=dict)

    def with_connection_details(self, details: dict[str, str]) -> "ExternalObservation":
        return replace(self, connection_details=dict(details))


@dataclass(frozen=True)
class ExternalCreation:
    external_name_assigned: bool = False
    connection_details: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ReconcileResult:
    """Outcome of a single reconcile pass for one resource."""

    name: str
    action: ReconcileAction
    applied: bool
    external_name: str | None
    observation: ExternalObservation | None
    error: str | None = None
    ready: str | None = None

    @property
    def in_sync(self) -> bool:
        return self.error is None and self.action == ReconcileAction.NONE


@dataclass(frozen=True)
class ReconcileReport:
    """Results of a reconcile run across several resources."""

    results: list[ReconcileResult]
    failed: list[str]
