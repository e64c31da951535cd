"""Tests for configuration loading."""

import pytest

from urlscout.config import (
    DiscoveryConfig,
    get_default_config,
    get_discovery_config,
    load_config,
    merge_configs,
)


class TestDiscoveryConfig:
    """Tests for DiscoveryConfig."""

    def test_defaults(self):
        config = DiscoveryConfig()

        assert config.max_urls == 500
        assert config.max_depth == 4
        assert config.timeout == 60.0
        assert config.agent_token == "URLScout"
        assert "URLScout" in config.user_agent

    @pytest.mark.parametrize(
        "values",
        [
            {"max_urls": 0},
            {"max_depth": -1},
            {"timeout": 0},
            {"page_timeout": -5},
            {"renderer": "lynx"},
        ],
    )
    def test_validation(self, values):
        with pytest.raises(ValueError):
            DiscoveryConfig(**values)

    def test_from_mapping_ignores_unknown_and_null(self):
        config = DiscoveryConfig.from_mapping({"max_urls": 50, "timeout": None, "colour": "blue"})

        assert config.max_urls == 50
        assert config.timeout == 60.0

    def test_with_overrides(self):
        base = DiscoveryConfig(max_urls=50)
        changed = base.with_overrides(max_urls=10, max_depth=None)

        assert changed.max_urls == 10
        assert changed.max_depth == base.max_depth
        assert base.max_urls == 50
        assert base.with_overrides(timeout=None) is base

    def test_with_overrides_validates(self):
        with pytest.raises(ValueError):
            DiscoveryConfig().with_overrides(max_urls=-1)

    def test_unknown_override(self):
        with pytest.raises(TypeError, match="max_pages"):
            DiscoveryConfig().with_overrides(max_pages=3)


class TestLoadConfig:
    """Tests for YAML configuration files."""

    def test_merges_file_over_defaults(self, tmp_path):
        path = tmp_path / "urlscout.yaml"
        path.write_text("discovery:\n  max_urls: 25\nweb:\n  port: 9000\n", encoding="utf-8")

        config = load_config(path)

        assert config["discovery"]["max_urls"] == 25
        assert config["discovery"]["max_depth"] == 4
        assert config["web"]["port"] == 9000
        assert config["web"]["initial_batch"] == 20

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")

        assert load_config(path) == get_default_config()

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml")

    def test_defaults_when_nothing_found(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr("urlscout.config.DEFAULT_CONFIG_PATHS", [tmp_path / "missing.yaml"])

        assert load_config() == get_default_config()

    def test_get_discovery_config(self):
        config = get_discovery_config(get_default_config(), max_urls=7, renderer="static")

        assert config.max_urls == 7
        assert config.renderer == "static"
        assert config.sitemap_timeout == 10.0


class TestMergeConfigs:
    """Tests for recursive merging."""

    def test_nested_merge(self):
        merged = merge_configs({"a": {"x": 1, "y": 2}, "b": 1}, {"a": {"y": 3}, "c": 4})
        assert merged == {"a": {"x": 1, "y": 3}, "b": 1, "c": 4}

    def test_base_is_not_mutated(self):
        base = {"a": {"x": 1}}
        merge_configs(base, {"a": {"x": 2}})
        assert base == {"a": {"x": 1}}
