"""Tests for configuration validation and persistence."""

import json

import pytest

from rdf_dataset.config import (
    ConfigValidationError,
    DatasetConfigurationError,
    EndpointConfig,
    FederationConfig,
)


class TestFederationConfig:
    """Tests for Dataset execution settings."""

    def test_defaults(self):
        """Test optimization and COUNT fallback are on by default."""
        config = FederationConfig()
        assert config.optimize is True
        assert config.count_fallback is True

    def test_save_and_load(self, tmp_path):
        """Test settings survive a save/load cycle."""
        path = tmp_path / "federation.json"
        FederationConfig(optimize=False, count_fallback=False).save(path)

        assert json.loads(path.read_text()) == {"optimize": False, "count_fallback": False}
        assert FederationConfig.load(path) == FederationConfig(False, False)

    def test_load_missing_file(self, tmp_path):
        """Test a missing file yields defaults."""
        assert FederationConfig.load(tmp_path / "nope.json") == FederationConfig()

    def test_from_dict_partial(self):
        """Test absent keys keep their defaults."""
        assert FederationConfig.from_dict({"optimize": False}) == FederationConfig(optimize=False)


class TestEndpointConfig:
    """Tests for endpoint settings."""

    def test_valid(self):
        """Test a minimal configuration."""
        config = EndpointConfig(url="https://example.org/sparql")
        assert config.validate() == []
        assert config.effective_update_url == "https://example.org/sparql"

    def test_update_url(self):
        """Test a separate update endpoint."""
        config = EndpointConfig(url="http://x.org/q", update_url="http://x.org/u")
        assert config.effective_update_url == "http://x.org/u"

    @pytest.mark.parametrize("kwargs, message", [
        ({"url": "ftp://example.org/sparql"}, "Invalid endpoint URL"),
        ({"url": "not a url"}, "Invalid endpoint URL"),
        ({"url": "http://x.org/q", "update_url": "x"}, "Invalid update URL"),
        ({"url": "http://x.org/q", "timeout_seconds": 0}, "timeout_seconds"),
        ({"url": "http://x.org/q", "max_retries": -1}, "max_retries"),
        ({"url": "http://x.org/q", "retry_backoff_seconds": -0.1}, "retry_backoff_seconds"),
    ])
    def test_invalid(self, kwargs, message):
        """Test invalid settings are rejected at construction."""
        with pytest.raises(ConfigValidationError, match=message):
            EndpointConfig(**kwargs)

    def test_errors_joined(self):
        """Test every problem is reported at once."""
        with pytest.raises(ConfigValidationError) as raised:
            EndpointConfig(url="bad", timeout_seconds=-1)
        assert "; " in str(raised.value)

    def test_token_not_serialized(self, tmp_path):
        """Test the auth token never reaches the saved file."""
        path = tmp_path / "endpoint.json"
        EndpointConfig(url="http://x.org/q", auth_token="secret", max_retries=1).save(path)

        assert "secret" not in path.read_text()
        loaded = EndpointConfig.load(path)
        assert loaded.auth_token is None
        assert loaded.max_retries == 1

    def test_from_dict_requires_url(self):
        """Test a configuration without url is rejected."""
        with pytest.raises(ConfigValidationError, match="url"):
            EndpointConfig.from_dict({"timeout_seconds": 5})

    def test_from_dict_accepts_token(self):
        """Test a token can still be supplied programmatically."""
        config = EndpointConfig.from_dict({"url": "http://x.org/q", "auth_token": "t"})
        assert config.auth_token == "t"


def test_dataset_error_hierarchy():
    """Test dataset configuration errors are configuration errors."""
    assert issubclass(DatasetConfigurationError, ConfigValidationError)
    assert issubclass(ConfigValidationError, ValueError)
