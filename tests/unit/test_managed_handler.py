"""Tests for managed resource handlers."""

from __future__ import annotations

import threading
from unittest.mock import Mock, patch

import kopf
import pytest

from otc_network_operator.constants import (
    ANNOTATION_EXTERNAL_NAME,
    EVENT_REASON_CANNOT_CONNECT,
    EVENT_REASON_CANNOT_CREATE,
    EVENT_REASON_CANNOT_RESOLVE_REFERENCES,
    EVENT_REASON_CANNOT_UPDATE,
    EVENT_REASON_CREATED,
    EVENT_REASON_DELETED,
    EVENT_REASON_RECONCILE_FAILED,
    FINALIZER,
)
from otc_network_operator.errors import (
    AuthenticationError,
    CreateError,
    ImmutableFieldError,
    ProviderAPIError,
    ReferenceResolutionError,
    ValidationError,
)
from otc_network_operator.handlers.managed import (
    ManagedResourceHandler,
    build_managed_resource,
    failure_reason,
)
from otc_network_operator.managed.reconciler import (
    ACTION_CREATED,
    ACTION_NONE,
    ACTION_UPDATED,
    ReconcileResult,
)
from otc_network_operator.managed.resource import Condition, ExternalObservation
from otc_network_operator.resources.subnet import Subnet
from otc_network_operator.resources.vpc import VPC, VPCObservation, VPCParameters

SPEC = {
    "forProvider": {"name": "main", "cidr": "10.0.0.0/16"},
    "providerConfigRef": {"kind": "ProviderConfig", "name": "team"},
}


def meta(external_name: str | None = None, **extra):
    data = {
        "name": "main",
        "namespace": "default",
        "uid": "uid-1",
        "generation": 2,
        "finalizers": [FINALIZER],
    }
    if external_name:
        data["annotations"] = {ANNOTATION_EXTERNAL_NAME: external_name}
    data.update(extra)
    return data


def reconciled(action: str, condition: Condition, external_name: str = "vpc-123", **observation):
    """Reconciler side effect that mimics one cycle on the passed resource."""

    def run(resource_type, mr):
        mr.external_name = external_name
        mr.set_condition(condition)
        if action != ACTION_CREATED:
            mr.at_provider = VPCObservation(
                id=external_name, status="OK", name="main", cidr="10.0.0.0/16"
            )
        observation.setdefault("resource_exists", action != ACTION_CREATED)
        return ReconcileResult(ExternalObservation(**observation), action)

    return run


class TestBuildManagedResource:
    """Test cases for build_managed_resource function."""

    def test_builds_from_custom_object(self):
        status = {"atProvider": {"id": "vpc-123", "status": "OK", "cidr": "10.0.0.0/16"}}

        mr = build_managed_resource(VPC, SPEC, meta("vpc-123"), status)

        assert mr.kind == "VPC"
        assert mr.namespace == "default"
        assert mr.parameters == VPCParameters(name="main", cidr="10.0.0.0/16")
        assert mr.external_name == "vpc-123"
        assert mr.provider_config_ref.identity(mr.namespace) == "ProviderConfig/default/team"
        assert mr.at_provider == VPCObservation(id="vpc-123", status="OK", cidr="10.0.0.0/16")
        assert mr.generation == 2

    def test_defaults(self):
        mr = build_managed_resource(VPC, {"forProvider": SPEC["forProvider"]}, meta(), {})

        assert mr.external_name is None
        assert mr.at_provider is None
        assert mr.provider_config_ref.identity("default") == "ClusterProviderConfig/default"

    def test_invalid_parameters(self):
        with pytest.raises(ValidationError):
            build_managed_resource(VPC, {"forProvider": {"name": "main"}}, meta(), None)


class TestFailureReason:
    """Test cases for failure_reason function."""

    @pytest.mark.parametrize(
        "error,reason",
        [
            (ReferenceResolutionError("missing"), EVENT_REASON_CANNOT_RESOLVE_REFERENCES),
            (AuthenticationError("rejected"), EVENT_REASON_CANNOT_CONNECT),
            (CreateError("VPC", ProviderAPIError("boom")), EVENT_REASON_CANNOT_CREATE),
            (ImmutableFieldError("cidr"), EVENT_REASON_CANNOT_UPDATE),
            (ValidationError("bad"), EVENT_REASON_RECONCILE_FAILED),
            (RuntimeError("boom"), EVENT_REASON_RECONCILE_FAILED),
        ],
    )
    def test_reasons(self, error, reason):
        assert failure_reason(error) == reason


@patch("otc_network_operator.utils.events.kopf.event")
class TestManagedResourceHandler:
    """Test cases for ManagedResourceHandler."""

    def test_create_records_external_name(self, mock_event):
        """Test a created resource gets its annotation and a Creating status."""
        reconciler = Mock()
        reconciler.reconcile.side_effect = reconciled(ACTION_CREATED, Condition.CREATING, "vpc-new")
        handler = ManagedResourceHandler(VPC, reconciler)
        patch = kopf.Patch()
        body = {"metadata": meta()}

        result = handler.reconcile(SPEC, meta(), {}, body, patch)

        assert result.action == ACTION_CREATED
        assert patch.metadata["annotations"] == {ANNOTATION_EXTERNAL_NAME: "vpc-new"}
        conditions = {c["type"]: c for c in patch.status["conditions"]}
        assert conditions["Ready"]["status"] == "False"
        assert conditions["Ready"]["reason"] == "Creating"
        assert conditions["Synced"]["status"] == "True"
        assert conditions["Ready"]["observedGeneration"] == 2
        assert "atProvider" not in patch.status
        assert mock_event.call_args.kwargs["reason"] == EVENT_REASON_CREATED

    def test_up_to_date_is_ready(self, mock_event):
        reconciler = Mock()
        reconciler.reconcile.side_effect = reconciled(
            ACTION_NONE, Condition.AVAILABLE, resource_exists=True, resource_up_to_date=True
        )
        handler = ManagedResourceHandler(VPC, reconciler)
        patch = kopf.Patch()

        handler.reconcile(SPEC, meta("vpc-123"), {}, {}, patch)

        conditions = {c["type"]: c for c in patch.status["conditions"]}
        assert conditions["Ready"]["status"] == "True"
        assert conditions["Ready"]["reason"] == "Available"
        assert patch.status["atProvider"] == {
            "id": "vpc-123",
            "status": "OK",
            "name": "main",
            "cidr": "10.0.0.0/16",
            "description": "",
        }
        assert "annotations" not in patch.metadata
        assert "forProvider" not in patch.spec
        mock_event.assert_not_called()

    def test_update_emits_event(self, mock_event):
        reconciler = Mock()
        reconciler.reconcile.side_effect = reconciled(
            ACTION_UPDATED, Condition.AVAILABLE, resource_exists=True, drifted_fields=("name",)
        )
        handler = ManagedResourceHandler(VPC, reconciler)

        handler.reconcile(SPEC, meta("vpc-123"), {}, {}, kopf.Patch())

        message = mock_event.call_args.kwargs["message"]
        assert "Updated VPC vpc-123 (name)" == message

    def test_late_initialized_spec_is_written_back(self, mock_event):
        def run(resource_type, mr):
            mr.set_condition(Condition.AVAILABLE)
            mr.parameters.description = "from provider"
            observation = ExternalObservation(
                resource_exists=True,
                resource_up_to_date=True,
                resource_late_initialized=True,
                late_initialized_fields=("description",),
            )
            return ReconcileResult(observation, ACTION_NONE)

        reconciler = Mock()
        reconciler.reconcile.side_effect = run
        handler = ManagedResourceHandler(VPC, reconciler)
        patch = kopf.Patch()

        handler.reconcile(SPEC, meta("vpc-123"), {}, {}, patch)

        assert patch.spec["forProvider"] == {
            "name": "main",
            "cidr": "10.0.0.0/16",
            "description": "from provider",
        }

    def test_failure_marks_not_synced(self, mock_event):
        """Test a failed cycle keeps the last known Ready state and reports Synced False."""

        def run(resource_type, mr):
            mr.set_condition(Condition.AVAILABLE)
            raise ImmutableFieldError("cannot update immutable field cidr", field="cidr")

        reconciler = Mock()
        reconciler.reconcile.side_effect = run
        handler = ManagedResourceHandler(VPC, reconciler)
        patch = kopf.Patch()
        status = {"conditions": [{"type": "Synced", "status": "True", "lastTransitionTime": "t0"}]}

        with pytest.raises(ImmutableFieldError):
            handler.reconcile(SPEC, meta("vpc-123"), status, {}, patch)

        conditions = {c["type"]: c for c in patch.status["conditions"]}
        assert conditions["Synced"]["status"] == "False"
        assert conditions["Synced"]["reason"] == "ReconcileError"
        assert "immutable field cidr" in conditions["Synced"]["message"]
        assert conditions["Synced"]["lastTransitionTime"] != "t0"
        assert conditions["Ready"]["status"] == "True"
        assert status["conditions"][0]["status"] == "True"
        assert mock_event.call_args.kwargs["type"] == "Warning"
        assert mock_event.call_args.kwargs["reason"] == EVENT_REASON_CANNOT_UPDATE

    def test_invalid_spec_fails_before_reconcile(self, mock_event):
        reconciler = Mock()
        handler = ManagedResourceHandler(Subnet, reconciler)
        patch = kopf.Patch()

        with pytest.raises(ValidationError):
            handler.reconcile({"forProvider": {"name": "x"}}, meta(), {}, {}, patch)

        reconciler.reconcile.assert_not_called()
        conditions = {c["type"]: c for c in patch.status["conditions"]}
        assert set(conditions) == {"Synced"}

    def test_delete_removes_finalizer(self, mock_event):
        reconciler = Mock()
        handler = ManagedResourceHandler(VPC, reconciler)
        patch = kopf.Patch()

        handler.delete(SPEC, meta("vpc-123"), {}, {}, patch)

        resource_type, mr = reconciler.finalize.call_args.args
        assert resource_type is VPC
        assert mr.external_name == "vpc-123"
        assert patch.metadata["finalizers"] is None
        assert mock_event.call_args.kwargs["reason"] == EVENT_REASON_DELETED

    def test_delete_failure_keeps_finalizer(self, mock_event):
        reconciler = Mock()
        reconciler.finalize.side_effect = AuthenticationError("rejected")
        handler = ManagedResourceHandler(VPC, reconciler)
        patch = kopf.Patch()

        with pytest.raises(AuthenticationError):
            handler.delete(SPEC, meta("vpc-123"), {}, {}, patch)

        assert "finalizers" not in patch.metadata
        assert mock_event.call_args.kwargs["reason"] == EVENT_REASON_CANNOT_CONNECT

    def test_later_cycle_with_stale_body_observes_created_resource(self, mock_event):
        """Test a cycle started from an older body does not create a second resource."""
        seen = []

        def observe_only(resource_type, mr):
            seen.append(mr.external_name)
            mr.set_condition(Condition.AVAILABLE)
            return ReconcileResult(
                ExternalObservation(resource_exists=True, resource_up_to_date=True), ACTION_NONE
            )

        cycles = iter([reconciled(ACTION_CREATED, Condition.CREATING, "vpc-new"), observe_only])
        reconciler = Mock()
        reconciler.reconcile.side_effect = lambda resource_type, mr: next(cycles)(resource_type, mr)
        handler = ManagedResourceHandler(VPC, reconciler)

        handler.reconcile(SPEC, meta("vpc-gone"), {}, {}, kopf.Patch())
        patch = kopf.Patch()
        result = handler.reconcile(SPEC, meta("vpc-gone"), {}, {}, patch)

        assert seen == ["vpc-new"]
        assert result.action == ACTION_NONE
        assert "annotations" not in patch.metadata

    def test_pending_name_dropped_once_body_carries_it(self, mock_event):
        seen = []

        def observe_only(resource_type, mr):
            seen.append(mr.external_name)
            mr.set_condition(Condition.AVAILABLE)
            return ReconcileResult(
                ExternalObservation(resource_exists=True, resource_up_to_date=True), ACTION_NONE
            )

        cycles = iter([
            reconciled(ACTION_CREATED, Condition.CREATING, "vpc-new"),
            observe_only,
            observe_only,
        ])
        reconciler = Mock()
        reconciler.reconcile.side_effect = lambda resource_type, mr: next(cycles)(resource_type, mr)
        handler = ManagedResourceHandler(VPC, reconciler)

        handler.reconcile(SPEC, meta(), {}, {}, kopf.Patch())
        handler.reconcile(SPEC, meta("vpc-new"), {}, {}, kopf.Patch())
        handler.reconcile(SPEC, meta("vpc-adopted"), {}, {}, kopf.Patch())

        assert seen == ["vpc-new", "vpc-adopted"]

    def test_cycles_for_one_object_do_not_overlap(self, mock_event):
        """Test a timer cycle waits for a running event cycle on the same object."""
        entered = threading.Event()
        release = threading.Event()
        seen = []

        def slow_create(resource_type, mr):
            entered.set()
            release.wait(timeout=5)
            return reconciled(ACTION_CREATED, Condition.CREATING, "vpc-new")(resource_type, mr)

        def observe_only(resource_type, mr):
            seen.append(mr.external_name)
            mr.set_condition(Condition.AVAILABLE)
            return ReconcileResult(
                ExternalObservation(resource_exists=True, resource_up_to_date=True), ACTION_NONE
            )

        cycles = iter([slow_create, observe_only])
        reconciler = Mock()
        reconciler.reconcile.side_effect = lambda resource_type, mr: next(cycles)(resource_type, mr)
        handler = ManagedResourceHandler(VPC, reconciler)

        first = threading.Thread(
            target=handler.reconcile, args=(SPEC, meta("vpc-gone"), {}, {}, kopf.Patch())
        )
        second = threading.Thread(
            target=handler.reconcile, args=(SPEC, meta("vpc-gone"), {}, {}, kopf.Patch())
        )
        first.start()
        assert entered.wait(timeout=5)
        second.start()
        second.join(timeout=0.2)

        assert second.is_alive()
        assert reconciler.reconcile.call_count == 1

        release.set()
        first.join(timeout=5)
        second.join(timeout=5)

        assert reconciler.reconcile.call_count == 2
        assert seen == ["vpc-new"]

    def test_other_objects_are_not_blocked(self, mock_event):
        entered = threading.Event()
        release = threading.Event()

        def slow(resource_type, mr):
            entered.set()
            release.wait(timeout=5)
            return reconciled(ACTION_NONE, Condition.AVAILABLE, resource_exists=True)(resource_type, mr)

        reconciler = Mock()
        handler = ManagedResourceHandler(VPC, reconciler)
        reconciler.reconcile.side_effect = slow
        blocked = threading.Thread(
            target=handler.reconcile, args=(SPEC, meta("vpc-123"), {}, {}, kopf.Patch())
        )
        blocked.start()
        assert entered.wait(timeout=5)

        reconciler.reconcile.side_effect = reconciled(
            ACTION_NONE, Condition.AVAILABLE, "vpc-456", resource_exists=True
        )
        result = handler.reconcile(SPEC, meta("vpc-456", uid="uid-2"), {}, {}, kopf.Patch())

        release.set()
        blocked.join(timeout=5)
        assert result.action == ACTION_NONE

    def test_delete_with_stale_body_removes_created_resource(self, mock_event):
        reconciler = Mock()
        reconciler.reconcile.side_effect = reconciled(ACTION_CREATED, Condition.CREATING, "vpc-new")
        handler = ManagedResourceHandler(VPC, reconciler)

        handler.reconcile(SPEC, meta(), {}, {}, kopf.Patch())
        handler.delete(SPEC, meta(), {}, {}, kopf.Patch())

        _, mr = reconciler.finalize.call_args.args
        assert mr.external_name == "vpc-new"

    def test_recreate_clears_previous_observation(self, mock_event):
        """Test recreating a vanished resource does not keep the old atProvider."""

        def recreate(resource_type, mr):
            assert mr.at_provider is not None
            mr.at_provider = None
            return reconciled(ACTION_CREATED, Condition.CREATING, "vpc-new")(resource_type, mr)

        reconciler = Mock()
        reconciler.reconcile.side_effect = recreate
        handler = ManagedResourceHandler(VPC, reconciler)
        patch = kopf.Patch()
        status = {"atProvider": {"id": "vpc-gone", "status": "OK", "cidr": "10.0.0.0/16"}}

        handler.reconcile(SPEC, meta("vpc-gone"), status, {}, patch)

        assert patch.status["atProvider"] is None
        assert patch.metadata["annotations"] == {ANNOTATION_EXTERNAL_NAME: "vpc-new"}
