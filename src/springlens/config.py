"""SpringLens configuration system.

Configuration is YAML-based with minimal CLI overrides (--output, --format, --ci).
Supports environment variable substitution (${VAR}) in config files.

Configuration file discovery (in priority order):
1. CLI --config argument
2. ./.springlens/config.yaml
3. ./springlens.yaml
"""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

DEFAULT_EXCLUDE_DIRS = (
    ".git",
    ".svn",
    ".hg",
    ".idea",
    ".vscode",
    ".gradle",
    ".mvn",
    "target",
    "build",
    "out",
    "bin",
    "node_modules",
)

# =============================================================================
# Configuration Dataclasses
# =============================================================================


@dataclass
class AnalyzerConfig:
    """Limits and file selection for the analysis core.

    Attributes:
        max_walk_depth: Deepest build descriptor considered for module discovery
        max_endpoint_path_length: Endpoint paths longer than this are dropped
        lookahead_lines: Lines scanned after a mapping annotation for its method
        max_flow_paths: Flow paths generated per run
        top_findings: Findings kept in the top-N summary view
        workers: Threads used for per-file loops (1 runs sequentially)
        source_extensions: Extensions of source files
        config_extensions: Extensions of Spring configuration files
        exclude_dirs: Directory names skipped when loading a corpus
    """

    max_walk_depth: int = 3
    max_endpoint_path_length: int = 200
    lookahead_lines: int = 4
    max_flow_paths: int = 10
    top_findings: int = 10
    workers: int = 1
    source_extensions: list[str] = field(default_factory=lambda: [".java"])
    config_extensions: list[str] = field(
        default_factory=lambda: [".properties", ".yml", ".yaml"]
    )
    exclude_dirs: list[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDE_DIRS))

    def __post_init__(self) -> None:
        """Validate analyzer limits."""
        for name in (
            "max_walk_depth",
            "max_endpoint_path_length",
            "lookahead_lines",
            "max_flow_paths",
            "top_findings",
            "workers",
        ):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise ValueError(f"{name} must be a positive integer (got {value!r})")

    @property
    def corpus_extensions(self) -> set[str]:
        """Every extension loaded into a corpus."""
        return {ext.lower() for ext in (*self.source_extensions, *self.config_extensions)}


@dataclass
class OutputConfig:
    """Output configuration.

    Attributes:
        path: Output file path
        format: Output format (markdown, json)
    """

    path: str = "springlens-report.md"
    format: str = "markdown"

    def __post_init__(self) -> None:
        """Validate output format."""
        valid_formats = {"markdown", "json"}
        if self.format not in valid_formats:
            raise ValueError(f"Invalid output format: {self.format}. Valid: {valid_formats}")


@dataclass
class LoggingConfig:
    """Logging configuration.

    Attributes:
        mode: Log output mode (human, verbose, json)
        level: Log level name
    """

    mode: str = "human"
    level: str = "INFO"

    def __post_init__(self) -> None:
        """Validate logging settings."""
        valid_modes = {"human", "verbose", "json"}
        if self.mode not in valid_modes:
            raise ValueError(f"Invalid logging mode: {self.mode}. Valid: {valid_modes}")
        self.level = self.level.upper()


@dataclass
class SpringLensConfig:
    """Top-level SpringLens configuration.

    Attributes:
        analyzer: Analysis limits and file selection
        output: Output path and format
        logging: Log output settings
    """

    analyzer: AnalyzerConfig = field(default_factory=AnalyzerConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # Runtime overrides (set by CLI)
    _config_path: Path | None = field(default=None, repr=False)

    @property
    def config_path(self) -> Path | None:
        """Get the path to the config file that was loaded."""
        return self._config_path


# =============================================================================
# Environment Variable Substitution
# =============================================================================

_ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")


def substitute_env_vars(value: Any) -> Any:
    """Substitute environment variables in config values.

    Supports ${VAR} syntax for environment variable substitution.

    Args:
        value: Config value (string, dict, list, or other)

    Returns:
        Value with environment variables substituted

    Raises:
        ValueError: If a referenced variable is not set
    """
    if isinstance(value, str):

        def replace_var(match: re.Match[str]) -> str:
            var_name = match.group(1)
            env_value = os.environ.get(var_name)
            if env_value is None:
                raise ValueError(f"Environment variable not set: {var_name}")
            return env_value

        return _ENV_VAR_PATTERN.sub(replace_var, value)

    elif isinstance(value, dict):
        return {k: substitute_env_vars(v) for k, v in value.items()}

    elif isinstance(value, list):
        return [substitute_env_vars(v) for v in value]

    return value


# =============================================================================
# Config File Discovery
# =============================================================================


def find_config_file(start_path: Path | None = None) -> Path | None:
    """Find configuration file in standard locations.

    Search order:
    1. ./.springlens/config.yaml
    2. ./springlens.yaml

    Args:
        start_path: Starting directory for search (defaults to cwd)

    Returns:
        Path to config file if found, None otherwise
    """
    if start_path is None:
        start_path = Path.cwd()

    start_path = start_path.resolve()

    candidates = [
        start_path / ".springlens" / "config.yaml",
        start_path / "springlens.yaml",
    ]

    for candidate in candidates:
        if candidate.exists():
            return candidate

    return None


# =============================================================================
# Config Loading
# =============================================================================


def load_config_from_dict(data: dict[str, Any]) -> SpringLensConfig:
    """Load configuration from a dictionary.

    Unknown keys are ignored; missing keys keep their defaults.

    Args:
        data: Configuration dictionary

    Returns:
        SpringLensConfig instance

    Raises:
        ValueError: If a value is invalid
    """
    data = substitute_env_vars(data)

    config = SpringLensConfig()

    if "analyzer" in data:
        analyzer_data = data["analyzer"] or {}
        defaults = config.analyzer
        config.analyzer = AnalyzerConfig(
            max_walk_depth=analyzer_data.get("max_walk_depth", defaults.max_walk_depth),
            max_endpoint_path_length=analyzer_data.get(
                "max_endpoint_path_length", defaults.max_endpoint_path_length
            ),
            lookahead_lines=analyzer_data.get("lookahead_lines", defaults.lookahead_lines),
            max_flow_paths=analyzer_data.get("max_flow_paths", defaults.max_flow_paths),
            top_findings=analyzer_data.get("top_findings", defaults.top_findings),
            workers=analyzer_data.get("workers", defaults.workers),
            source_extensions=list(
                analyzer_data.get("source_extensions", defaults.source_extensions)
            ),
            config_extensions=list(
                analyzer_data.get("config_extensions", defaults.config_extensions)
            ),
            exclude_dirs=list(analyzer_data.get("exclude_dirs", defaults.exclude_dirs)),
        )

    if "output" in data:
        output_data = data["output"] or {}
        config.output = OutputConfig(
            path=output_data.get("path", config.output.path),
            format=output_data.get("format", config.output.format),
        )

    if "logging" in data:
        logging_data = data["logging"] or {}
        config.logging = LoggingConfig(
            mode=logging_data.get("mode", config.logging.mode),
            level=logging_data.get("level", config.logging.level),
        )

    return config


def load_config(
    config_path: Path | None = None,
    auto_discover: bool = True,
) -> SpringLensConfig:
    """Load configuration from file.

    Args:
        config_path: Explicit path to config file
        auto_discover: Whether to search for config file if not specified

    Returns:
        SpringLensConfig instance

    Raises:
        FileNotFoundError: If config_path specified but doesn't exist
    """
    if config_path is not None:
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        found_path = config_path
    elif auto_discover:
        found_path = find_config_file()
    else:
        found_path = None

    if found_path is not None:
        with open(found_path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        config = load_config_from_dict(data)
        config._config_path = found_path
    else:
        config = SpringLensConfig()

    return config


def create_default_config() -> str:
    """Create default configuration YAML content.

    Returns:
        YAML string with default configuration and comments
    """
    return """# SpringLens Configuration

# Analysis limits
analyzer:
  max_walk_depth: 3              # Deepest pom.xml / build.gradle used as a module
  max_endpoint_path_length: 200  # Longer endpoint paths are ignored
  lookahead_lines: 4             # Lines searched for the method after a mapping annotation
  max_flow_paths: 10             # Data-flow paths generated per run
  top_findings: 10               # Findings shown in the summary
  workers: 1                     # >1 parses files on a thread pool
  # exclude_dirs: [".git", "target", "build", "node_modules"]

# Output settings
output:
  path: "springlens-report.md"
  format: "markdown"  # markdown, json

# Logging
logging:
  mode: "human"  # human, verbose, json
  level: "INFO"
"""
