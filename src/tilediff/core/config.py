"""Configuration loading for tilediff.

The config file is optional. Without one, the defaults reproduce the original
benchmark harness (eight bing tiles, fixtures under ../test).

Example tilediff.yaml:

    tiles:
      - bing/4-8-5
      - bing/5-16-9
    fixtures_dir: ${TILE_ROOT}/fixtures
    expected_dir: ${TILE_ROOT}/expected
    codecs:
      mlt: mlt_decoder.tile:decode
    encoder:
      project_dir: ../java
    benchmark:
      min_time: 5
      max_time: 10
"""

from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from .env_vars import check_required_vars, load_env_file, substitute_env_vars
from .errors import ConfigError
from .logging import get_logger
from .models import ProjectConfig

logger = get_logger(__name__)

DEFAULT_CONFIG_NAME = "tilediff.yaml"


def load_yaml(path: Path) -> dict[str, Any]:
    """Load and parse a YAML file.

    Args:
        path: Path to YAML file

    Returns:
        Parsed YAML as dictionary (an empty file yields {})

    Raises:
        ConfigError: If file cannot be read or YAML is invalid
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        raise ConfigError(f"Configuration file not found: {path}") from None
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML syntax in {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(
            f"Invalid YAML in {path}: expected dictionary, got {type(data).__name__}"
        )
    return data


def load_config(
    path: Optional[Path] = None, env_file: Optional[Path] = None
) -> ProjectConfig:
    """Load the project configuration.

    Relative directories in the file are resolved against the file's own
    directory, so a config can be used from anywhere.

    Args:
        path: Config file. If None, ./tilediff.yaml is used when present,
              otherwise the built-in defaults.
        env_file: Optional .env file consulted for ${VAR} placeholders

    Returns:
        Validated ProjectConfig

    Raises:
        ConfigError: If the file is missing (when given explicitly), invalid,
                     or references unset environment variables
    """
    load_env_file(env_file)

    if path is None:
        candidate = Path.cwd() / DEFAULT_CONFIG_NAME
        if not candidate.exists():
            logger.debug("No config file found, using defaults")
            return ProjectConfig()
        path = candidate

    logger.debug(f"Loading config from {path}")
    raw_data = load_yaml(path)

    check_required_vars(raw_data)
    resolved = substitute_env_vars(raw_data)

    try:
        config = ProjectConfig(**resolved)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {path}: {e}") from e

    return _resolve_relative_dirs(config, path.parent)


def _resolve_relative_dirs(config: ProjectConfig, base: Path) -> ProjectConfig:
    update = {}
    for field in ("fixtures_dir", "expected_dir"):
        value = getattr(config, field)
        if not value.is_absolute():
            update[field] = base / value

    if config.encoder is not None and not config.encoder.project_dir.is_absolute():
        update["encoder"] = config.encoder.model_copy(
            update={"project_dir": base / config.encoder.project_dir}
        )

    return config.model_copy(update=update)
