"""Tests for field tables and CR (de)serialization."""

from __future__ import annotations

from dataclasses import dataclass, field

import pytest

from otc_network_operator.errors import ImmutableFieldError, ValidationError
from otc_network_operator.managed.fields import (
    FieldDef,
    check_immutable,
    detect_drift,
    is_empty,
    late_initialize,
)
from otc_network_operator.managed.serialization import camel_case, from_dict, to_dict


@dataclass
class Limits:
    size: int
    mode: str | None = None


@dataclass
class Params:
    name: str
    cidr: str
    description: str | None = None
    zone: str | None = None
    limits: Limits | None = field(default=None, metadata={"nested": Limits})


@dataclass
class Observation:
    name: str = ""
    cidr: str = ""
    description: str = ""
    zone: str = ""
    limits_size: int = 0
    limits_mode: str = ""


FIELDS = (
    FieldDef("name"),
    FieldDef("cidr", immutable=True),
    FieldDef("description", optional=True),
    FieldDef("zone", optional=True, immutable=True),
)


class TestIsEmpty:
    """Test cases for is_empty function."""

    @pytest.mark.parametrize("value", [None, ""])
    def test_empty_values(self, value):
        assert is_empty(value)

    @pytest.mark.parametrize("value", [0, False, "x", []])
    def test_non_empty_values(self, value):
        assert not is_empty(value)


class TestLateInitialize:
    """Test cases for late_initialize function."""

    def test_fills_unset_optional_field(self):
        """Test observed value is copied into an unset optional field."""
        params = Params(name="net", cidr="10.0.0.0/16")
        observation = Observation(name="net", cidr="10.0.0.0/16", description="observed")

        assert late_initialize(FIELDS, params, observation) == ["description"]
        assert params.description == "observed"

    def test_never_overwrites_set_value(self):
        """Test a value set by the user is left alone."""
        params = Params(name="net", cidr="10.0.0.0/16", description="mine")
        observation = Observation(description="theirs")

        assert late_initialize(FIELDS, params, observation) == []
        assert params.description == "mine"

    def test_empty_string_set_by_user_is_kept(self):
        """Test an explicit empty string counts as set."""
        params = Params(name="net", cidr="10.0.0.0/16", description="")
        observation = Observation(description="theirs")

        assert late_initialize(FIELDS, params, observation) == []
        assert params.description == ""

    def test_skips_empty_observed_value(self):
        """Test nothing is filled from an empty observed value."""
        params = Params(name="net", cidr="10.0.0.0/16")

        assert late_initialize(FIELDS, params, Observation()) == []
        assert params.description is None

    def test_skips_immutable_fields(self):
        """Test immutable optional fields are not backfilled."""
        params = Params(name="net", cidr="10.0.0.0/16")
        observation = Observation(zone="eu-de-01")

        late_initialize(FIELDS, params, observation)

        assert params.zone is None

    def test_is_idempotent(self):
        """Test a second run changes nothing."""
        params = Params(name="net", cidr="10.0.0.0/16")
        observation = Observation(description="observed")

        late_initialize(FIELDS, params, observation)

        assert late_initialize(FIELDS, params, observation) == []
        assert params.description == "observed"

    def test_nested_path(self):
        """Test dotted paths write into nested parameters."""
        fields = (FieldDef("limits.mode", optional=True),)
        params = Params(name="n", cidr="c", limits=Limits(size=5))

        assert late_initialize(fields, params, Observation(limits_mode="fast")) == ["limits.mode"]
        assert params.limits.mode == "fast"


class TestDetectDrift:
    """Test cases for detect_drift function."""

    def test_no_drift_when_equal(self):
        params = Params(name="net", cidr="10.0.0.0/16", description="d")
        observation = Observation(name="net", cidr="10.0.0.0/16", description="d")

        assert detect_drift(FIELDS, params, observation) == []

    def test_reports_changed_fields(self):
        """Test every differing field is named."""
        params = Params(name="renamed", cidr="10.1.0.0/16", description="d")
        observation = Observation(name="net", cidr="10.0.0.0/16", description="d")

        assert detect_drift(FIELDS, params, observation) == ["name", "cidr"]

    def test_unset_optional_field_never_drifts(self):
        """Test an unset optional field takes whatever is observed."""
        params = Params(name="net", cidr="10.0.0.0/16")
        observation = Observation(name="net", cidr="10.0.0.0/16", description="anything", zone="z")

        assert detect_drift(FIELDS, params, observation) == []

    def test_drift_is_symmetric(self):
        """Test drift is reported in both directions of a difference."""
        a = Params(name="a", cidr="10.0.0.0/16")
        b = Params(name="b", cidr="10.0.0.0/16")

        assert detect_drift(FIELDS, a, Observation(name="b", cidr="10.0.0.0/16")) == ["name"]
        assert detect_drift(FIELDS, b, Observation(name="a", cidr="10.0.0.0/16")) == ["name"]

    def test_translates_before_comparing(self):
        """Test to_provider maps the desired value into provider vocabulary."""
        fields = (FieldDef("limits.mode", to_provider={"Fast": "F"}.get),)
        params = Params(name="n", cidr="c", limits=Limits(size=1, mode="Fast"))

        assert detect_drift(fields, params, Observation(limits_mode="F")) == []
        assert detect_drift(fields, params, Observation(limits_mode="S")) == ["limits.mode"]

    def test_observed_name_override(self):
        """Test a field may read a differently named observation attribute."""
        fields = (FieldDef("limits.size", observed="limits_size"),)
        params = Params(name="n", cidr="c", limits=Limits(size=10))

        assert detect_drift(fields, params, Observation(limits_size=20)) == ["limits.size"]


class TestCheckImmutable:
    """Test cases for check_immutable function."""

    def test_passes_when_immutable_fields_match(self):
        params = Params(name="renamed", cidr="10.0.0.0/16")
        observation = Observation(name="net", cidr="10.0.0.0/16")

        check_immutable(FIELDS, params, observation)

    def test_raises_on_changed_immutable_field(self):
        """Test the first changed immutable field is reported."""
        params = Params(name="net", cidr="10.1.0.0/16")
        observation = Observation(name="net", cidr="10.0.0.0/16")

        with pytest.raises(ImmutableFieldError, match="cidr") as exc_info:
            check_immutable(FIELDS, params, observation)

        assert exc_info.value.field == "cidr"
        assert not exc_info.value.retryable

    def test_unset_optional_immutable_field_is_ignored(self):
        params = Params(name="net", cidr="10.0.0.0/16")
        observation = Observation(name="net", cidr="10.0.0.0/16", zone="eu-de-02")

        check_immutable(FIELDS, params, observation)

    def test_set_optional_immutable_field_is_checked(self):
        params = Params(name="net", cidr="10.0.0.0/16", zone="eu-de-01")
        observation = Observation(name="net", cidr="10.0.0.0/16", zone="eu-de-02")

        with pytest.raises(ImmutableFieldError, match="zone"):
            check_immutable(FIELDS, params, observation)


class TestSerialization:
    """Test cases for camelCase (de)serialization."""

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("name", "name"),
            ("gateway_ip", "gatewayIp"),
            ("vpc_id_ref", "vpcIdRef"),
            ("remote_ip_prefix", "remoteIpPrefix"),
        ],
    )
    def test_camel_case(self, name, expected):
        assert camel_case(name) == expected

    def test_from_dict_ignores_unknown_keys(self):
        params = from_dict(Params, {"name": "net", "cidr": "10.0.0.0/16", "unknown": True})

        assert params == Params(name="net", cidr="10.0.0.0/16")

    def test_from_dict_treats_null_as_unset(self):
        params = from_dict(Params, {"name": "net", "cidr": "10.0.0.0/16", "description": None})

        assert params.description is None

    def test_from_dict_builds_nested(self):
        params = from_dict(Params, {"name": "n", "cidr": "c", "limits": {"size": 3}})

        assert params.limits == Limits(size=3)

    def test_from_dict_rejects_non_object_nested(self):
        with pytest.raises(ValidationError, match="limits"):
            from_dict(Params, {"name": "n", "cidr": "c", "limits": 3})

    def test_from_dict_missing_required_field(self):
        """Test a missing required field is a validation error."""
        with pytest.raises(ValidationError, match="invalid Params"):
            from_dict(Params, {"name": "net"})

    def test_from_dict_accepts_none(self):
        with pytest.raises(ValidationError):
            from_dict(Params, None)

    def test_to_dict_skips_unset_and_camel_cases(self):
        params = Params(name="n", cidr="c", limits=Limits(size=3, mode="fast"))

        assert to_dict(params) == {
            "name": "n",
            "cidr": "c",
            "limits": {"size": 3, "mode": "fast"},
        }
