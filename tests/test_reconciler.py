"""Tests for the reconcile pass."""

from datetime import UTC, datetime
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from endpointsync.errors import UnexpectedResourceTypeError
from endpointsync.external import External
from endpointsync.hooks import VPCEndpointHooks
from endpointsync.models import (
    ConditionReason,
    ConditionType,
    ExternalObservation,
    ReconcileAction,
)
from endpointsync.reconciler import Reconciler, plan_action
from tests.conftest import make_endpoint, make_observed


@pytest.fixture
def mock_ec2():
    return MagicMock()


@pytest.fixture
def reconciler(mock_ec2):
    return Reconciler(External(mock_ec2, VPCEndpointHooks(mock_ec2)), max_concurrent=2)


def _deleted(**kwargs):
    cr = make_endpoint(**kwargs)
    cr.deletion_timestamp = datetime(2026, 3, 1, tzinfo=UTC)
    return cr


def test_plan_create_when_absent():
    assert plan_action(make_endpoint(), ExternalObservation(False)) == ReconcileAction.CREATE


def test_plan_update_when_drifted():
    obs = ExternalObservation(True, False, make_observed())
    assert plan_action(make_endpoint(external_name="vpce-1"), obs) == ReconcileAction.UPDATE


def test_plan_none_when_up_to_date():
    obs = ExternalObservation(True, True, make_observed())
    assert plan_action(make_endpoint(external_name="vpce-1"), obs) == ReconcileAction.NONE


def test_plan_delete_when_marked():
    obs = ExternalObservation(True, True, make_observed())
    assert plan_action(_deleted(external_name="vpce-1"), obs) == ReconcileAction.DELETE


@pytest.mark.parametrize("state", ["deleting", "deleted"])
def test_plan_no_delete_when_already_going(state):
    obs = ExternalObservation(True, True, make_observed(state=state))
    assert plan_action(_deleted(external_name="vpce-1"), obs) == ReconcileAction.NONE


def test_plan_no_delete_when_absent():
    assert plan_action(_deleted(), ExternalObservation(False)) == ReconcileAction.NONE


def test_reconcile_creates_missing(reconciler, mock_ec2):
    cr = make_endpoint()
    mock_ec2.create_vpc_endpoint.return_value = make_observed("vpce-new", state="pending")

    result = reconciler.reconcile(cr)

    assert result.action == ReconcileAction.CREATE
    assert result.applied is True
    assert result.external_name == "vpce-new"
    assert cr.status.get_condition(ConditionType.SYNCED).status is True


def test_reconcile_plan_only_does_not_create(reconciler, mock_ec2):
    cr = make_endpoint()

    result = reconciler.reconcile(cr, apply=False)

    assert result.action == ReconcileAction.CREATE
    assert result.applied is False
    mock_ec2.create_vpc_endpoint.assert_not_called()


def test_reconcile_updates_drift(reconciler, mock_ec2):
    cr = make_endpoint(external_name="vpce-1", subnet_ids=["subnet-2"])
    mock_ec2.describe_vpc_endpoints.return_value = [
        make_observed("vpce-1", subnet_ids=["subnet-1"])
    ]

    result = reconciler.reconcile(cr)

    assert result.action == ReconcileAction.UPDATE
    mock_ec2.modify_vpc_endpoint.assert_called_once_with(
        {"VpcEndpointId": "vpce-1", "AddSubnetIds": ["subnet-2"], "RemoveSubnetIds": ["subnet-1"]}
    )


def test_reconcile_in_sync(reconciler, mock_ec2):
    cr = make_endpoint(external_name="vpce-1")
    mock_ec2.describe_vpc_endpoints.return_value = [make_observed("vpce-1")]

    result = reconciler.reconcile(cr)

    assert result.in_sync
    assert result.ready == ConditionReason.AVAILABLE
    mock_ec2.modify_vpc_endpoint.assert_not_called()
    mock_ec2.create_vpc_endpoint.assert_not_called()


def test_reconcile_deletes_marked(reconciler, mock_ec2):
    cr = _deleted(external_name="vpce-1")
    mock_ec2.describe_vpc_endpoints.return_value = [make_observed("vpce-1")]

    result = reconciler.reconcile(cr)

    assert result.action == ReconcileAction.DELETE
    mock_ec2.delete_vpc_endpoints.assert_called_once_with(["vpce-1"])


def test_reconcile_error_sets_synced_false(reconciler, mock_ec2):
    cr = make_endpoint(external_name="vpce-1")
    mock_ec2.describe_vpc_endpoints.side_effect = ClientError(
        {"Error": {"Code": "Throttling", "Message": "slow down"}}, "DescribeVpcEndpoints"
    )

    result = reconciler.reconcile(cr)

    assert result.error is not None
    assert "slow down" in result.error
    synced = cr.status.get_condition(ConditionType.SYNCED)
    assert synced.status is False
    assert synced.reason == ConditionReason.RECONCILE_ERROR


def test_reconcile_wrong_type_is_fatal(reconciler, mock_ec2):
    class NotAnEndpoint:
        name = "subnet"
        external_name = "subnet-1"

    mock_ec2.describe_vpc_endpoints.return_value = []

    with pytest.raises(UnexpectedResourceTypeError):
        reconciler.reconcile(NotAnEndpoint())


def test_reconcile_plain_dict_is_rejected(reconciler, mock_ec2):
    with pytest.raises(UnexpectedResourceTypeError):
        reconciler.reconcile({"kind": "Subnet"})

    assert mock_ec2.method_calls == []


def test_reconcile_all_wrong_type_is_fatal(reconciler):
    with pytest.raises(UnexpectedResourceTypeError):
        reconciler.reconcile_all([make_endpoint(), {"kind": "Subnet"}], apply=False)


def test_reconcile_all_concurrent(reconciler, mock_ec2):
    resources = [make_endpoint(name=f"ep-{i}", external_name=f"vpce-{i}") for i in range(3)]
    mock_ec2.describe_vpc_endpoints.side_effect = lambda ids: [make_observed(ids[0])]

    report = reconciler.reconcile_all(resources)

    assert sorted(r.name for r in report.results) == ["ep-0", "ep-1", "ep-2"]
    assert report.failed == []
    assert mock_ec2.describe_vpc_endpoints.call_count == 3


def test_reconcile_all_tracks_failures(reconciler, mock_ec2):
    resources = [
        make_endpoint(name="good", external_name="vpce-1"),
        make_endpoint(name="bad", external_name="vpce-2"),
    ]

    def describe(ids):
        if ids == ["vpce-2"]:
            raise ClientError({"Error": {"Code": "Boom", "Message": "x"}}, "DescribeVpcEndpoints")
        return [make_observed(ids[0])]

    mock_ec2.describe_vpc_endpoints.side_effect = describe

    report = reconciler.reconcile_all(resources)

    assert report.failed == ["bad"]
    assert len(report.results) == 2


def test_reconcile_all_empty(reconciler):
    report = reconciler.reconcile_all([])

    assert report.results == []
    assert report.failed == []
