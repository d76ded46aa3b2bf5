"""
Tests for the command line entry point (headless mode only).
"""

import pytest

from twriter.main import build_overrides, main, parse_speed


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    monkeypatch.setenv("TWRITER_CONFIG_DIR", str(tmp_path))
    monkeypatch.chdir(tmp_path)
    return tmp_path


class TestParsing:

    def test_parse_speed(self):
        assert parse_speed("120") == 120
        assert parse_speed("7.5") == 7.5
        assert parse_speed("natural") == "natural"

    def test_overrides(self):
        import argparse
        args = argparse.Namespace(loop=True, no_cursor_blink=True, type_speed="natural",
                                  delete_speed=None, wrap=20)
        assert build_overrides(args) == {
            "loop": True,
            "animate_cursor": False,
            "type_speed": "natural",
            "prevent_word_wrap": True,
            "word_wrap_line_length_limit": 20,
        }


class TestHeadless:

    def test_prints_final_text(self, capsys):
        main(["Hello,", "world.", "--headless", "--type-speed", "5"])
        assert capsys.readouterr().out.strip() == "Hello, world."

    def test_pages_leave_last_page(self, capsys):
        main(["First page.\\Second page.", "--headless", "--type-speed", "natural"])
        assert capsys.readouterr().out.strip() == "Second page."

    def test_strings_leave_last_string(self, capsys):
        main(["--strings", "one", "two", "--interval", "100", "--headless", "--loop"])
        assert capsys.readouterr().out.strip() == "two"

    def test_yaml_config_is_used(self, isolated_config, capsys):
        (isolated_config / "typewriter.yaml").write_text("typeSpeed: natural\n")
        main(["Configured", "--headless", "--wrap", "4"])
        assert capsys.readouterr().out.strip() == "Configured"

    def test_invalid_option_exits(self):
        with pytest.raises(SystemExit):
            main(["text", "--headless", "--type-speed", "-5"])
