"""
Tests for option validation and loading.
"""

import math
import os

import pytest

from twriter.core.config import (
    ConfigurationError,
    TypewriterOptions,
    apply_env_overrides,
    load_yaml_config,
    merge_configs,
)


@pytest.fixture
def config_dir(tmp_path, monkeypatch):
    """Point the loader at an empty config directory with no env overrides."""
    monkeypatch.setenv("TWRITER_CONFIG_DIR", str(tmp_path))
    for key in list(os.environ):
        if key.startswith("TYPEWRITER_"):
            monkeypatch.delenv(key)
    return tmp_path


class TestDefaults:

    def test_defaults(self):
        options = TypewriterOptions()
        assert options.loop is False
        assert options.animate_cursor is True
        assert options.blink_speed == 400
        assert options.type_speed == 90
        assert options.delete_speed == 40
        assert (options.type_speed_min, options.type_speed_max) == (65, 115)
        assert (options.delete_speed_min, options.delete_speed_max) == (40, 90)
        assert options.cursor_char == "|"
        assert options.type_class == "type-span"
        assert options.cursor_class == "cursor-span"

    def test_to_dict_skips_hooks(self):
        data = TypewriterOptions(on_last_char=print).to_dict()
        assert "on_last_char" not in data
        assert data["type_speed"] == 90


class TestMerge:

    def test_aliases_map_to_fields(self):
        options = TypewriterOptions.merge({"typeSpeed": 20, "animateCursor": False})
        assert options.type_speed == 20
        assert options.animate_cursor is False

    def test_merge_keeps_base(self):
        base = TypewriterOptions.merge({"loop": True})
        options = TypewriterOptions.merge({"cursor_char": "_"}, base)
        assert options.loop is True
        assert options.cursor_char == "_"

    def test_unknown_key(self):
        with pytest.raises(ConfigurationError, match="fontSize"):
            TypewriterOptions.merge({"fontSize": 12})

    def test_variable_speed(self):
        options = TypewriterOptions.merge({"type_speed": "natural"})
        assert options.is_variable("type")
        assert not options.is_variable("delete")

    def test_options_are_immutable(self):
        options = TypewriterOptions()
        with pytest.raises(AttributeError):
            options.loop = True


class TestValidation:

    @pytest.mark.parametrize("overrides", [
        {"type_speed": -1},
        {"delete_speed": -0.5},
        {"type_speed": "natural", "type_speed_min": 100, "type_speed_max": 50},
        {"delete_speed": None, "delete_speed_min": "fast"},
        {"blink_speed": -10},
        {"word_wrap_line_length_limit": 2.5},
        {"on_add_char": "not callable"},
    ])
    def test_rejects(self, overrides):
        with pytest.raises(ConfigurationError):
            TypewriterOptions.merge(overrides)

    @pytest.mark.parametrize("overrides", [
        {"type_speed": math.nan},
        {"delete_speed": math.inf},
        {"type_speed": "natural", "type_speed_min": math.nan},
        {"type_speed": "natural", "type_speed_max": math.nan},
        {"delete_speed": None, "delete_speed_max": math.inf},
        {"blink_speed": math.nan},
        {"blink_speed": math.inf},
    ])
    def test_rejects_non_finite_timing(self, overrides):
        """NaN or infinite delays would stall the animation."""
        with pytest.raises(ConfigurationError):
            TypewriterOptions.merge(overrides)

    def test_non_finite_change_fails_replace(self):
        with pytest.raises(ConfigurationError):
            TypewriterOptions().replace(typeSpeed=float("nan"))

    def test_equal_range_is_valid(self):
        options = TypewriterOptions.merge({"type_speed": None, "type_speed_min": 50,
                                           "type_speed_max": 50})
        assert options.is_variable("type")

    def test_configuration_error_is_value_error(self):
        assert issubclass(ConfigurationError, ValueError)


class TestLoading:

    def test_missing_file_gives_empty_config(self, config_dir):
        assert load_yaml_config("typewriter") == {}

    def test_yaml_then_env_then_overrides(self, config_dir, monkeypatch):
        (config_dir / "typewriter.yaml").write_text(
            "typeSpeed: 50\nloop: true\ncursor_char: '_'\n")
        monkeypatch.setenv("TYPEWRITER_TYPE_SPEED", "70")
        monkeypatch.setenv("TYPEWRITER_ANIMATE_CURSOR", "false")

        options = TypewriterOptions.load("typewriter", {"cursor_char": "#"})

        assert options.loop is True
        assert options.animate_cursor is False
        assert options.cursor_char == "#"
        # env wins over the aliased YAML key once both are normalized
        assert options.type_speed == 70

    def test_invalid_yaml(self, config_dir):
        (config_dir / "broken.yaml").write_text("loop: [unclosed\n")
        with pytest.raises(ConfigurationError):
            load_yaml_config("broken")

    def test_non_mapping_yaml(self, config_dir):
        (config_dir / "list.yaml").write_text("- a\n- b\n")
        with pytest.raises(ConfigurationError):
            load_yaml_config("list")

    def test_env_value_parsing(self, monkeypatch):
        monkeypatch.setenv("TYPEWRITER_LOOP", "true")
        monkeypatch.setenv("TYPEWRITER_BLINK_SPEED", "250.5")
        monkeypatch.setenv("TYPEWRITER_TYPE_SPEED", "natural")

        result = apply_env_overrides({}, "TYPEWRITER")

        assert result["loop"] is True
        assert result["blink_speed"] == 250.5
        assert result["type_speed"] == "natural"

    def test_merge_configs_overrides_keys(self):
        defaults = {"loop": False, "type_speed": 90}
        merged = merge_configs(defaults, {"type_speed": 50, "cursor_char": "_"})

        assert merged == {"loop": False, "type_speed": 50, "cursor_char": "_"}
        assert defaults == {"loop": False, "type_speed": 90}
