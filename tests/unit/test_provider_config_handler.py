"""Tests for provider config handlers."""

from __future__ import annotations

from unittest.mock import Mock, patch

import kopf
import pytest

from otc_network_operator.constants import EVENT_REASON_CANNOT_CONNECT
from otc_network_operator.errors import AuthenticationError, CredentialError
from otc_network_operator.handlers.provider_config import ProviderConfigHandler
from otc_network_operator.utils.errors import sanitize_exception

SPEC = {
    "domainName": "OTC-EU-DE-0000000001",
    "projectId": "proj-1",
    "region": "eu-de",
    "credentials": {"source": "Secret", "secretRef": {"name": "otc-creds", "key": "credentials"}},
}


@patch("otc_network_operator.utils.events.kopf.event")
@patch("otc_network_operator.handlers.provider_config.get_core_client")
@patch("otc_network_operator.handlers.provider_config.create_provider_config_from_spec")
class TestProviderConfigHandler:
    """Test cases for ProviderConfigHandler."""

    def test_namespaced_config_authenticates(
        self, mock_create, mock_core, mock_event, provider_config
    ):
        """Test a valid config warms the cache under its namespaced identity."""
        mock_create.return_value = provider_config
        session_cache = Mock()
        handler = ProviderConfigHandler("ProviderConfig", session_cache)
        patch = kopf.Patch()
        meta = {"name": "main", "namespace": "team-a", "generation": 1}

        handler.reconcile(SPEC, meta, {}, {}, patch)

        mock_create.assert_called_once_with(mock_core.return_value, SPEC, "team-a")
        session_cache.get_session.assert_called_once_with(
            "ProviderConfig/team-a/main", provider_config
        )
        ready = patch.status["conditions"][0]
        assert ready["type"] == "Ready"
        assert ready["status"] == "True"
        assert ready["reason"] == "Available"
        assert "proj-1" in ready["message"]

    def test_cluster_config_has_no_namespace(
        self, mock_create, mock_core, mock_event, provider_config
    ):
        mock_create.return_value = provider_config
        session_cache = Mock()
        handler = ProviderConfigHandler("ClusterProviderConfig", session_cache)

        handler.reconcile(SPEC, {"name": "default"}, {}, {}, kopf.Patch())

        assert mock_create.call_args.args[2] is None
        assert session_cache.get_session.call_args.args[0] == "ClusterProviderConfig/default"

    @pytest.mark.parametrize(
        "failure",
        [
            {"create": CredentialError("Secret 'otc-creds' not found")},
            {"authenticate": AuthenticationError("identity service rejected the credentials")},
        ],
    )
    def test_failure_reports_unavailable(
        self, mock_create, mock_core, mock_event, provider_config, failure
    ):
        mock_create.return_value = provider_config
        mock_create.side_effect = failure.get("create")
        session_cache = Mock()
        session_cache.get_session.side_effect = failure.get("authenticate")
        handler = ProviderConfigHandler("ProviderConfig", session_cache)
        patch = kopf.Patch()
        error = next(iter(failure.values()))

        with pytest.raises(type(error)):
            handler.reconcile(SPEC, {"name": "main", "namespace": "team-a"}, {}, {}, patch)

        ready = patch.status["conditions"][0]
        assert ready["status"] == "False"
        assert ready["reason"] == "Unavailable"
        assert ready["message"] == sanitize_exception(error)
        assert mock_event.call_args.kwargs["reason"] == EVENT_REASON_CANNOT_CONNECT
        assert mock_event.call_args.kwargs["type"] == "Warning"

    def test_forget_invalidates_cached_session(self, mock_create, mock_core, mock_event):
        session_cache = Mock()
        handler = ProviderConfigHandler("ProviderConfig", session_cache)

        handler.forget({"name": "main", "namespace": "team-a"})

        session_cache.invalidate.assert_called_once_with("ProviderConfig/team-a/main")
