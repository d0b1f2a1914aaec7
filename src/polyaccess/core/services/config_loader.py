"""Import plan loader with environment variable substitution."""

import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from polyaccess.core.models.schemas import ImportPlan


class ConfigLoadError(Exception):
    """Raised when configuration loading fails."""

    pass


_ENV_PATTERN = re.compile(r"\$\{([^}:-]+)(?::-([^}]*))?\}")


def substitute_env_vars(value: Any) -> Any:
    """Recursively substitute ${VAR} patterns with environment variables.

    Supports:
    - ${VAR} - Required variable (raises if not set)
    - ${VAR:-default} - Variable with default value

    Raises:
        ConfigLoadError: If required variable is not set.
    """
    if isinstance(value, str):

        def replace(match: re.Match) -> str:
            var_name = match.group(1)
            default = match.group(2)

            env_value = os.environ.get(var_name)
            if env_value is not None:
                return env_value
            elif default is not None:
                return default
            else:
                raise ConfigLoadError(
                    f"Environment variable '{var_name}' is not set and no default provided"
                )

        return _ENV_PATTERN.sub(replace, value)

    elif isinstance(value, dict):
        return {k: substitute_env_vars(v) for k, v in value.items()}

    elif isinstance(value, list):
        return [substitute_env_vars(item) for item in value]

    else:
        return value


def load_yaml_config(path: Path) -> dict[str, Any]:
    """Load a YAML file with environment variable substitution.

    Raises:
        ConfigLoadError: If file cannot be loaded or parsed.
    """
    if not path.exists():
        raise ConfigLoadError(f"Configuration file not found: {path}")

    try:
        with open(path, encoding="utf-8") as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigLoadError(f"Invalid YAML in {path}: {e}") from e

    if config is None:
        raise ConfigLoadError(f"Empty configuration file: {path}")
    if not isinstance(config, dict):
        raise ConfigLoadError(f"Expected a mapping at the top of {path}")

    return substitute_env_vars(config)


def load_import_plan(path: Path) -> ImportPlan:
    """Load and validate an import plan.

    Example plan file:
        source_path: ${LEGACY_DIR:-C:/data}/northwind.accdb
        database_id: northwind
        force: false
        tables:
          - Customers
          - name: Orders
            force: true
        queries:
          - qryActiveCustomers

    Raises:
        ConfigLoadError: If the file cannot be loaded or is not a valid plan.
    """
    raw = load_yaml_config(path)
    try:
        return ImportPlan.model_validate(raw)
    except ValidationError as e:
        raise ConfigLoadError(f"Invalid import plan {path}: {e}") from e
