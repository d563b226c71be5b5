"""Loading of the YAML configuration file.

Placeholders in the file are filled from the environment before parsing:

- ``${NAME}``: required, loading fails when unset
- ``${NAME:-fallback}``: optional, ``fallback`` when unset
- ``${NAME:?hint}``: required, ``hint`` is included in the failure
"""

import os
import re
from pathlib import Path
from typing import Any

import yaml
from loguru import logger
from pydantic import ValidationError

from src.lessonhub.runtime.config.config_data import ConfigData

_PLACEHOLDER = re.compile(r"\$\{([^}]+)\}")


def _resolve_placeholder(match: re.Match) -> str:
    expression = match.group(1)

    name, sep, fallback = expression.partition(":-")
    if sep:
        return os.getenv(name, fallback)

    name, sep, hint = expression.partition(":?")
    value = os.getenv(name)
    if value is not None:
        return value
    if sep:
        raise ValueError(f"Required environment variable {name}: {hint}")
    raise ValueError(f"Required environment variable {name} not set")


def substitute_env_vars(text: str) -> str:
    """Replace every ``${...}`` placeholder in `text` from the environment."""
    return _PLACEHOLDER.sub(_resolve_placeholder, text)


def _promote_environment_overrides(environment: str) -> None:
    # PRODUCTION_SESSION_SIGNING_SECRET wins over SESSION_SIGNING_SECRET in production
    prefix = f"{environment.upper()}_"
    for name, value in list(os.environ.items()):
        if name.startswith(prefix) and len(name) > len(prefix):
            os.environ[name[len(prefix):]] = value
            logger.debug(f"Using {name} for {name[len(prefix):]}")


def _parse(text: str) -> dict[str, Any]:
    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ValueError(f"Error parsing YAML: {e}") from e
    if not isinstance(document, dict):
        raise ValueError("Configuration file must contain a mapping")
    return document.get("config") or {}


def load_templated_yaml(file_path: Path) -> ConfigData:
    """Read `file_path`, substitute placeholders and validate the ``config`` section.

    Providers marked ``enabled: false`` are dropped so that credential
    verification never considers them.

    Raises:
        ValueError: If a required variable is missing, the YAML is malformed
            or the values do not validate
        FileNotFoundError: If the file does not exist
    """
    environment = os.getenv("APP_ENVIRONMENT", "development")
    logger.info(f"Loading configuration from {file_path} ({environment})")
    _promote_environment_overrides(environment)

    raw = substitute_env_vars(Path(file_path).read_text())

    try:
        config = ConfigData.model_validate(_parse(raw))
    except ValidationError as e:
        raise ValueError(f"Invalid configuration: {e}") from e

    disabled = [name for name, p in config.oidc.providers.items() if not p.enabled]
    for name in disabled:
        logger.info(f"Skipping disabled identity provider '{name}'")
        del config.oidc.providers[name]

    return config


def load_config(file_path: Path) -> ConfigData:
    """Load configuration from `file_path`, falling back to defaults when absent."""
    if not file_path.exists():
        logger.info(f"No configuration file at {file_path}; using defaults")
        return ConfigData()
    return load_templated_yaml(file_path)
