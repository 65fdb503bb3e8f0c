"""
Unit tests for render configuration loading.
"""
import pytest

from mockup_render.utils.config import CFG_RENDER, DEFAULT_RENDER_CFG, load_render_config


@pytest.mark.unit
class TestLoadRenderConfig:
    """Tests for YAML config merging."""

    def test_missing_file_gives_defaults(self, tmp_path):
        """Test that an absent config file is not an error."""
        cfg = load_render_config(str(tmp_path / "nope.yaml"))

        assert cfg == DEFAULT_RENDER_CFG

    def test_file_values_override_defaults(self, tmp_path):
        """Test that top-level keys replace and nested keys merge."""
        path = tmp_path / "render.yaml"
        path.write_text("min_resolution: 1200\nexport:\n  extra: 1\n", encoding="utf-8")

        cfg = load_render_config(str(path))

        assert cfg["min_resolution"] == 1200
        assert cfg["fold_strength"] == 1.8
        assert cfg["export"] == {"jpeg_quality": 85, "extra": 1}

    def test_defaults_are_not_mutated(self, tmp_path):
        """Test that merging works on a copy."""
        path = tmp_path / "render.yaml"
        path.write_text("export:\n  jpeg_quality: 50\n", encoding="utf-8")

        load_render_config(str(path))

        assert DEFAULT_RENDER_CFG["export"]["jpeg_quality"] == 85

    def test_empty_file(self, tmp_path):
        """Test that an empty YAML file yields the defaults."""
        path = tmp_path / "render.yaml"
        path.write_text("", encoding="utf-8")

        assert load_render_config(str(path)) == DEFAULT_RENDER_CFG

    def test_env_var_selects_file(self, tmp_path, monkeypatch):
        """Test the $MOCKUP_RENDER_CONFIG override."""
        path = tmp_path / "alt.yaml"
        path.write_text("debounce_ms: 5\n", encoding="utf-8")
        monkeypatch.setenv("MOCKUP_RENDER_CONFIG", str(path))

        assert load_render_config()["debounce_ms"] == 5

    def test_shipped_config_matches_defaults(self, monkeypatch):
        """Test that config/render.yaml carries the stock tunables."""
        monkeypatch.delenv("MOCKUP_RENDER_CONFIG", raising=False)

        cfg = load_render_config(CFG_RENDER)

        assert cfg["min_resolution"] == 2400
        assert cfg["export"]["jpeg_quality"] == 85
