"""Configuration loader for deployease.yaml.

Values may reference the environment as ``${VAR}`` or ``${VAR:-fallback}``,
which keeps tokens and per-machine settings out of the committed file.
"""

import os
import re
from pathlib import Path

import structlog
import yaml

from .schema import DeployEaseConfig

log = structlog.get_logger()

ENV_REFERENCE = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)(?::-([^}]*))?\}")


def substitute_env_vars(text: str) -> str:
    """
    Replace ${VAR} and ${VAR:-fallback} references with environment values.

    Args:
        text: Raw configuration text

    Returns:
        Text with every reference resolved

    Raises:
        ValueError: If a variable without a fallback is not set
    """

    def resolve(match: re.Match[str]) -> str:
        name, fallback = match.group(1), match.group(2)
        value = os.environ.get(name, fallback)
        if value is None:
            raise ValueError(f"Environment variable {name} not found")
        return value

    return ENV_REFERENCE.sub(resolve, text)


def load_config(path: Path) -> DeployEaseConfig:
    """
    Load and validate a YAML configuration file.

    An empty file yields the default configuration.

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If a variable is missing or the document is not a mapping
        ValidationError: If config doesn't match schema
        yaml.YAMLError: If the file is not valid YAML
    """
    if not path.is_file():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    document = yaml.safe_load(substitute_env_vars(path.read_text(encoding="utf-8")))
    if document is None:
        document = {}
    if not isinstance(document, dict):
        raise ValueError(f"Configuration file must contain a mapping: {path}")

    config = DeployEaseConfig.model_validate(document)
    log.debug("configuration_loaded", path=str(path), sections=sorted(document))
    return config


def load_config_or_default(path: Path) -> DeployEaseConfig:
    """Load configuration, falling back to defaults when the file is absent.

    Environment overrides (DEPLOYEASE_*) still apply to the defaults.
    """
    if not path.exists():
        log.debug("config_file_absent", path=str(path))
        return DeployEaseConfig()
    return load_config(path)
