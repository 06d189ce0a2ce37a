"""Read and write the circmetrics YAML configuration file."""

from pathlib import Path
from typing import Optional, Union

import yaml
from pydantic import ValidationError

from circmetrics.config.schema import CircMetricsConfig
from circmetrics.errors import CircMetricsError

DEFAULT_CONFIG_PATH = Path.home() / ".circmetrics" / "circmetrics.yaml"


class ConfigError(CircMetricsError):
    """The configuration file could not be read or is invalid."""


def load_config(path: Optional[Path] = None) -> CircMetricsConfig:
    """Load configuration, falling back to defaults when no file exists.

    Args:
        path: Config file (default: ~/.circmetrics/circmetrics.yaml)

    Raises:
        ConfigError: If the file exists but is not valid YAML or fails validation
    """
    config_file = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    if not config_file.exists():
        return CircMetricsConfig()

    try:
        raw = yaml.safe_load(config_file.read_text())
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_file}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Unable to read {config_file}: {e}") from e

    # Empty file
    if raw is None:
        return CircMetricsConfig()
    if not isinstance(raw, dict):
        raise ConfigError(f"Configuration validation failed: {config_file} is not a mapping")

    try:
        return CircMetricsConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigError(f"Configuration validation failed: {e}") from e


def save_config(config: CircMetricsConfig, path: Optional[Union[str, Path]] = None) -> None:
    """Write ``config`` as YAML, creating the parent directory if needed."""
    config_file = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    config_file.parent.mkdir(parents=True, exist_ok=True)
    config_file.write_text(
        yaml.safe_dump(config.model_dump(), default_flow_style=False, sort_keys=False)
    )
