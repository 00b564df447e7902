"""Unit tests for core.config module."""

import pytest

from tar2zip.core.config import ConfigResolver
from tar2zip.core.errors import ConfigError


@pytest.fixture
def paths(tmp_path):
    return {
        "user_config_path": tmp_path / "user.yaml",
        "system_config_path": tmp_path / "system.yaml",
    }


class TestConfigResolver:
    """Tests for ConfigResolver."""

    def test_cli_priority(self, tmp_path, paths):
        """CLI args have highest priority."""
        paths["user_config_path"].write_text("convert:\n  output_extension: jar\n")

        resolver = ConfigResolver(cli_args={"convert": {"output_extension": "cbz"}}, **paths)

        assert resolver.resolve("convert.output_extension") == ("cbz", "cli")

    def test_env_priority(self, paths, monkeypatch):
        """ENV overrides config files."""
        paths["user_config_path"].write_text("convert:\n  output_extension: jar\n")
        monkeypatch.setenv("TAR2ZIP_CONVERT_OUTPUT_EXTENSION", "war")

        resolver = ConfigResolver(cli_args={}, **paths)

        assert resolver.resolve("convert.output_extension") == ("war", "env")

    def test_user_config_priority(self, paths):
        """User config overrides system config."""
        paths["user_config_path"].write_text("convert:\n  output_extension: jar\n")
        paths["system_config_path"].write_text("convert:\n  output_extension: ear\n")

        resolver = ConfigResolver(**paths)

        assert resolver.resolve("convert.output_extension") == ("jar", "user_config")

    def test_system_config(self, paths):
        paths["system_config_path"].write_text("logging:\n  level: quiet\n")

        resolver = ConfigResolver(**paths)

        assert resolver.resolve("logging.level") == ("quiet", "system_config")

    def test_defaults(self, paths):
        resolver = ConfigResolver(**paths)

        assert resolver.resolve("convert.output_extension") == ("zip", "default")
        assert resolver.resolve_bool("convert.verbose") is False
        assert resolver.resolve_optional_int("convert.compresslevel") is None

    def test_missing_key(self, paths):
        resolver = ConfigResolver(**paths)

        with pytest.raises(ConfigError):
            resolver.resolve("nope")

    def test_invalid_yaml(self, paths):
        paths["user_config_path"].write_text("convert: [unclosed\n")

        resolver = ConfigResolver(**paths)

        with pytest.raises(ConfigError):
            resolver.resolve("convert.verbose")

    @pytest.mark.parametrize(("raw", "expected"), [("true", True), ("0", False), ("Yes", True)])
    def test_bool_from_env_strings(self, paths, monkeypatch, raw, expected):
        monkeypatch.setenv("TAR2ZIP_CONVERT_VERBOSE", raw)

        assert ConfigResolver(**paths).resolve_bool("convert.verbose") is expected

    def test_bool_rejects_garbage(self, paths, monkeypatch):
        monkeypatch.setenv("TAR2ZIP_CONVERT_VERBOSE", "maybe")

        with pytest.raises(ConfigError):
            ConfigResolver(**paths).resolve_bool("convert.verbose")

    def test_int_from_env_and_range(self, paths, monkeypatch):
        monkeypatch.setenv("TAR2ZIP_CONVERT_COMPRESSLEVEL", "7")
        resolver = ConfigResolver(**paths)
        assert resolver.resolve_optional_int("convert.compresslevel", minimum=0, maximum=9) == 7

        monkeypatch.setenv("TAR2ZIP_CONVERT_COMPRESSLEVEL", "12")
        with pytest.raises(ConfigError):
            ConfigResolver(**paths).resolve_optional_int(
                "convert.compresslevel", minimum=0, maximum=9
            )

    def test_empty_string_rejected(self, paths):
        resolver = ConfigResolver(cli_args={"convert": {"output_extension": " "}}, **paths)

        with pytest.raises(ConfigError):
            resolver.resolve_str("convert.output_extension", "zip")


class TestLoggingLevel:
    def test_default_level(self, paths):
        assert ConfigResolver(**paths).resolve_logging_level() == "normal"

    def test_level_is_normalized(self, paths):
        resolver = ConfigResolver(cli_args={"logging": {"level": " DEBUG "}}, **paths)
        assert resolver.resolve_logging_level() == "debug"

    def test_verbosity_alias(self, paths):
        resolver = ConfigResolver(cli_args={"verbosity": "quiet"}, defaults={}, **paths)
        assert resolver.resolve_logging_level() == "quiet"

    def test_invalid_level(self, paths):
        resolver = ConfigResolver(cli_args={"logging": {"level": "loud"}}, **paths)
        with pytest.raises(ConfigError):
            resolver.resolve_logging_level()


def test_resolve_all_reports_sources(paths):
    paths["user_config_path"].write_text("convert:\n  verbose: true\n")
    resolver = ConfigResolver(cli_args={"logging": {"level": "debug"}}, **paths)

    resolved = resolver.resolve_all()

    assert resolved["logging.level"].source == "cli"
    assert resolved["convert.verbose"].source == "user_config"
    assert resolved["convert.output_extension"].source == "default"
    assert "convert.compresslevel" not in resolved
