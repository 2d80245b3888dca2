"""Unit tests for configuration system."""

from pathlib import Path
from typing import Any

import pytest
import yaml

from springlens.config import (
    DEFAULT_EXCLUDE_DIRS,
    AnalyzerConfig,
    LoggingConfig,
    OutputConfig,
    create_default_config,
    find_config_file,
    load_config,
    load_config_from_dict,
    substitute_env_vars,
)


class TestSubstituteEnvVars:
    """Tests for environment variable substitution."""

    def test_substitute_string(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test substituting env var in string."""
        monkeypatch.setenv("TEST_VAR", "test_value")

        result = substitute_env_vars("prefix_${TEST_VAR}_suffix")

        assert result == "prefix_test_value_suffix"

    def test_substitute_nested(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test substituting env vars in dictionaries and lists."""
        monkeypatch.setenv("REPORT_DIR", "docs")
        monkeypatch.setenv("SKIP", "generated")

        data = {"output": {"path": "${REPORT_DIR}/report.md"}, "dirs": ["target", "${SKIP}"]}
        result = substitute_env_vars(data)

        assert result == {"output": {"path": "docs/report.md"}, "dirs": ["target", "generated"]}

    def test_missing_env_var_raises(self) -> None:
        """Test that missing env var raises ValueError."""
        with pytest.raises(ValueError, match="Environment variable not set"):
            substitute_env_vars("${SPRINGLENS_NONEXISTENT_VAR}")

    def test_passthrough_non_string(self) -> None:
        """Test that non-string values pass through unchanged."""
        assert substitute_env_vars(123) == 123
        assert substitute_env_vars(True) is True
        assert substitute_env_vars(None) is None


class TestFindConfigFile:
    """Tests for config file discovery."""

    def test_find_springlens_dir_config(self, tmp_path: Path) -> None:
        """Test finding .springlens/config.yaml."""
        config_dir = tmp_path / ".springlens"
        config_dir.mkdir()
        config_file = config_dir / "config.yaml"
        config_file.write_text("output:\n  path: test.md")

        result = find_config_file(tmp_path)

        assert result == config_file

    def test_find_root_config(self, tmp_path: Path) -> None:
        """Test finding springlens.yaml at root."""
        config_file = tmp_path / "springlens.yaml"
        config_file.write_text("output:\n  path: test.md")

        result = find_config_file(tmp_path)

        assert result == config_file

    def test_prefer_springlens_dir_over_root(self, tmp_path: Path) -> None:
        """Test .springlens/config.yaml is preferred over springlens.yaml."""
        config_dir = tmp_path / ".springlens"
        config_dir.mkdir()
        preferred = config_dir / "config.yaml"
        preferred.write_text("# preferred")
        (tmp_path / "springlens.yaml").write_text("# fallback")

        result = find_config_file(tmp_path)

        assert result == preferred

    def test_no_config_returns_none(self, tmp_path: Path) -> None:
        """Test returns None when no config found."""
        assert find_config_file(tmp_path) is None


class TestLoadConfigFromDict:
    """Tests for loading config from dictionary."""

    def test_default_values(self) -> None:
        """Test default configuration values."""
        config = load_config_from_dict({})

        assert config.output.path == "springlens-report.md"
        assert config.output.format == "markdown"
        assert config.analyzer.max_walk_depth == 3
        assert config.analyzer.max_endpoint_path_length == 200
        assert config.analyzer.lookahead_lines == 4
        assert config.analyzer.workers == 1
        assert config.analyzer.exclude_dirs == list(DEFAULT_EXCLUDE_DIRS)
        assert config.logging.mode == "human"
        assert config.config_path is None

    def test_minimal_config(self, minimal_config: dict[str, Any]) -> None:
        """Test that missing sections keep their defaults."""
        config = load_config_from_dict(minimal_config)

        assert config.output.path == "docs/ARCHITECTURE.md"
        assert config.analyzer == AnalyzerConfig()

    def test_full_config(self, full_config: dict[str, Any]) -> None:
        """Test every documented option."""
        config = load_config_from_dict(full_config)

        assert config.analyzer.max_walk_depth == 4
        assert config.analyzer.max_endpoint_path_length == 120
        assert config.analyzer.lookahead_lines == 6
        assert config.analyzer.max_flow_paths == 5
        assert config.analyzer.top_findings == 3
        assert config.analyzer.workers == 4
        assert config.analyzer.exclude_dirs == [".git", "target"]
        assert config.output.format == "json"
        assert config.logging.mode == "verbose"
        assert config.logging.level == "DEBUG"

    def test_unknown_keys_ignored(self) -> None:
        """Test that unknown sections and keys are ignored."""
        config = load_config_from_dict({"llm": {"model": "x"}, "analyzer": {"colour": "red"}})

        assert config.analyzer == AnalyzerConfig()

    def test_empty_section(self) -> None:
        """Test that an empty YAML section keeps defaults."""
        config = load_config_from_dict({"analyzer": None, "output": None})

        assert config.analyzer.max_flow_paths == 10
        assert config.output.format == "markdown"


class TestConfigValidation:
    """Tests for configuration validation."""

    @pytest.mark.parametrize("value", [0, -1, "3", True])
    def test_limits_must_be_positive_integers(self, value: Any) -> None:
        """Test that analyzer limits reject non-positive and non-integer values."""
        with pytest.raises(ValueError, match="max_walk_depth must be a positive integer"):
            AnalyzerConfig(max_walk_depth=value)

    def test_invalid_output_format(self) -> None:
        """Test that unknown output formats are rejected."""
        with pytest.raises(ValueError, match="Invalid output format"):
            OutputConfig(format="html")

    def test_invalid_logging_mode(self) -> None:
        """Test that unknown logging modes are rejected."""
        with pytest.raises(ValueError, match="Invalid logging mode"):
            LoggingConfig(mode="loud")

    def test_corpus_extensions(self) -> None:
        """Test that source and config extensions are combined in lower case."""
        analyzer = AnalyzerConfig(source_extensions=[".JAVA"], config_extensions=[".yml"])

        assert analyzer.corpus_extensions == {".java", ".yml"}


class TestLoadConfig:
    """Tests for loading configuration from disk."""

    def test_explicit_path(self, tmp_path: Path) -> None:
        """Test loading an explicit config file."""
        config_file = tmp_path / "custom.yaml"
        config_file.write_text("analyzer:\n  workers: 2\n")

        config = load_config(config_path=config_file)

        assert config.analyzer.workers == 2
        assert config.config_path == config_file

    def test_missing_explicit_path(self, tmp_path: Path) -> None:
        """Test that a missing explicit file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_config(config_path=tmp_path / "missing.yaml")

    def test_auto_discovery(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test discovery from the working directory."""
        (tmp_path / "springlens.yaml").write_text("output:\n  format: json\n")
        monkeypatch.chdir(tmp_path)

        config = load_config()

        assert config.output.format == "json"

    def test_no_discovery(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that discovery can be disabled."""
        (tmp_path / "springlens.yaml").write_text("output:\n  format: json\n")
        monkeypatch.chdir(tmp_path)

        config = load_config(auto_discover=False)

        assert config.output.format == "markdown"

    def test_empty_file(self, tmp_path: Path) -> None:
        """Test that an empty config file gives the defaults."""
        config_file = tmp_path / "empty.yaml"
        config_file.write_text("")

        config = load_config(config_path=config_file)

        assert config.output.path == "springlens-report.md"


class TestCreateDefaultConfig:
    """Tests for the generated default configuration."""

    def test_round_trips_to_defaults(self) -> None:
        """Test that the generated file loads to the default settings."""
        data = yaml.safe_load(create_default_config())

        config = load_config_from_dict(data)

        assert config.analyzer == AnalyzerConfig()
        assert config.output == OutputConfig()
        assert config.logging == LoggingConfig()
