"""Test configuration reading from multiple sources."""

import os
from datetime import timedelta
from unittest.mock import patch

import pytest
from pydantic import ValidationError

import realip.configs.config as config_module
from realip.configs.config import AppConfig, get_app_config
from realip.configs.system import ResolverSettings


class TestConfigSources:
    """Test configuration loading from multiple sources."""

    def test_static_yaml_defaults(self):
        config = AppConfig()

        assert config.resolver.require_trusted_proxy is True
        assert config.resolver.include_cdn_ranges is False
        assert config.cloudflare.timeout == timedelta(seconds=8)
        assert config.cloudflare.cache_ttl == timedelta(hours=24)
        assert config.scheduler.initial_delay_min == timedelta(minutes=5)
        assert config.scheduler.initial_delay_max == timedelta(minutes=30)
        assert len(config.cloudflare.urls) == 2

    def test_config_env_vars_work(self):
        """Environment variables override the static YAML."""
        env_vars = {
            "REALIP_RESOLVER__REQUIRE_TRUSTED_PROXY": "false",
            "REALIP_RESOLVER__CUSTOM_TRUSTED_RANGES": "10.0.0.0/8\n192.0.2.1",
            "REALIP_API__ADMIN_TOKEN": "s3cret",
        }

        with patch.dict(os.environ, env_vars, clear=False):
            config = AppConfig()

            assert config.resolver.require_trusted_proxy is False
            assert config.resolver.custom_trusted_ranges == "10.0.0.0/8\n192.0.2.1"
            assert config.api.admin_token == "s3cret"

    def test_configmap_overrides_env(self, tmp_path, monkeypatch):
        configmap = tmp_path / "override.yaml"
        configmap.write_text("resolver:\n  include_cdn_ranges: true\n")
        monkeypatch.setattr(config_module, "CONFIGMAP_CONFIG_FILE", configmap)

        with patch.dict(
            os.environ, {"REALIP_RESOLVER__INCLUDE_CDN_RANGES": "false"}, clear=False
        ):
            assert AppConfig().resolver.include_cdn_ranges is True

    def test_missing_configmap_is_ignored(self, tmp_path, monkeypatch):
        monkeypatch.setattr(
            config_module, "CONFIGMAP_CONFIG_FILE", tmp_path / "absent.yaml"
        )
        assert AppConfig().resolver.include_cdn_ranges is False


class TestHotReload:
    def test_get_app_config_is_not_a_singleton(self, tmp_path, monkeypatch):
        configmap = tmp_path / "override.yaml"
        configmap.write_text("resolver:\n  show_debug: false\n")
        monkeypatch.setattr(config_module, "CONFIGMAP_CONFIG_FILE", configmap)

        first = get_app_config()
        configmap.write_text("resolver:\n  show_debug: true\n")
        second = get_app_config()

        assert first is not second
        assert first.resolver.show_debug is False
        assert second.resolver.show_debug is True


class TestResolverSettings:
    def test_defaults(self):
        settings = ResolverSettings()
        assert settings.require_trusted_proxy is True
        assert settings.include_cdn_ranges is False
        assert settings.custom_trusted_ranges == ""
        assert settings.show_debug is False

    def test_snapshot_is_immutable(self):
        settings = ResolverSettings()
        with pytest.raises(ValidationError):
            settings.show_debug = True  # type: ignore[misc]
