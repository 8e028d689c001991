"""Tests for settings loading."""

import pytest

from surface_pruner.config import Settings, load_settings
from surface_pruner.exceptions import ConfigurationError, ErrorCode
from surface_pruner.pruning.pruner import SurfacePruner


class TestSettings:

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("SURFACE_PRUNER_EXCLUDE_PREFIXES", raising=False)
        settings = Settings()

        assert settings.exclude_prefixes == ["/api/content"]
        assert settings.path_parameters == ["app"]
        assert settings.case_sensitive_paths is False
        assert settings.output_format == "json"
        assert settings.log_level == "INFO"

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("SURFACE_PRUNER_EXCLUDE_PREFIXES", '["/internal", "/admin"]')
        monkeypatch.setenv("SURFACE_PRUNER_LOG_LEVEL", "debug")

        settings = load_settings()

        assert settings.exclude_prefixes == ["/internal", "/admin"]
        assert settings.log_level == "DEBUG"

    def test_none_overrides_ignored(self):
        settings = load_settings(output_format=None, path_parameters=["tenant"])
        assert settings.output_format == "json"
        assert settings.path_parameters == ["tenant"]

    def test_invalid_prefix(self):
        with pytest.raises(ConfigurationError) as exc_info:
            load_settings(exclude_prefixes=["api/content"])

        error = exc_info.value
        assert error.code == ErrorCode.CONFIGURATION_ERROR
        assert error.context.additional["setting"] == "exclude_prefixes"

    def test_invalid_output_format(self):
        with pytest.raises(ConfigurationError):
            load_settings(output_format="xml")

    def test_pruner_from_settings(self):
        pruner = SurfacePruner.from_settings(
            load_settings(exclude_prefixes=["/Admin"], case_sensitive_paths=True)
        )
        assert pruner.should_exclude("/Admin/users")
        assert not pruner.should_exclude("/admin/users")
