"""Tests for deployment models."""

import pytest
from pydantic import ValidationError

from nbdeploy.models import (
    Action,
    ClusterTopology,
    DeploymentRequest,
    ExternalEndpoint,
    Provider,
    ProviderCredentials,
)


class TestExternalEndpoint:
    """Test endpoint URL rendering."""

    def test_http_with_token(self):
        endpoint = ExternalEndpoint(host="203.0.113.7", token="abc123")
        assert endpoint.url == "http://203.0.113.7/?token=abc123"

    def test_port_and_token(self):
        endpoint = ExternalEndpoint(host="54.1.2.3", token="t", port=8888)
        assert endpoint.url == "http://54.1.2.3:8888/?token=t"

    def test_token_is_quoted(self):
        endpoint = ExternalEndpoint(host="h", token="a&b #c/d")
        assert endpoint.url == "http://h/?token=a%26b%20%23c%2Fd"

    def test_https_proxy(self):
        endpoint = ExternalEndpoint(host="x.notebooks.googleusercontent.com", scheme="https")
        assert endpoint.url == "https://x.notebooks.googleusercontent.com"


class TestProvider:
    """Test provider metadata."""

    def test_cache_keys(self):
        assert Provider.DIGITALOCEAN.cache_key == "DO"
        assert Provider.AMAZON.cache_key == "AWS"
        assert Provider.GOOGLE_CLOUD.cache_key is None

    def test_values_are_menu_labels(self):
        assert Provider("Amazon Web Services") is Provider.AMAZON
        assert Action("Create") is Action.CREATE


class TestFrozenModels:
    """Test request and credential models."""

    def test_request_is_immutable(self):
        request = DeploymentRequest(action=Action.DESTROY, provider=Provider.AMAZON)
        with pytest.raises(ValidationError):
            request.action = Action.CREATE

    def test_credentials_get(self):
        creds = ProviderCredentials(provider=Provider.DIGITALOCEAN, fields={"token": "x"})
        assert creds.get("token") == "x"
        assert creds.get("missing") == ""

    def test_topology_needs_two_subnets(self):
        with pytest.raises(ValidationError):
            ClusterTopology(subnet_ids=("subnet-a",), security_group_id="sg-1")
