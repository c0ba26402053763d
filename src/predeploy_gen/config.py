"""Configuration loader for predeploy generation.

The generator config lives in a YAML file (config/predeploy.yaml by default);
the mirrored token list lives in a JSON file next to the contracts
(resources/tokens.json). Both are read once and validated into one immutable
GeneratorConfig that is passed into the pipeline. Nothing is cached at module
level.

Usage:
    from predeploy_gen.config import load_config

    config = load_config("config/predeploy.yaml")
    for token in config.tokens:
        print(token.symbol, token.currency_id)
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

import yaml

from .config_schema import GeneratorConfig, validate_config_dict
from .errors import InputValidationError

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "PREDEPLOY_CONFIG"
DEFAULT_CONFIG_PATH = Path("config/predeploy.yaml")


def default_config_path() -> Path:
    """Config path from $PREDEPLOY_CONFIG, else config/predeploy.yaml."""
    env = os.getenv(CONFIG_ENV_VAR)
    if env:
        return Path(env)
    return DEFAULT_CONFIG_PATH


def load_config(config_path: str | Path | None = None) -> GeneratorConfig:
    """Load and validate the generator config and its token list.

    `project_dir` in the YAML resolves against the config file's directory.
    When the YAML has no inline `tokens`, they are read from `tokens_file`
    (relative to the project directory).

    Raises:
        InputValidationError: If a file is missing, unparsable, or invalid.
    """
    path = Path(config_path) if config_path is not None else default_config_path()
    raw = _read_yaml(path)

    project_dir = Path(raw.get("project_dir", "."))
    if not project_dir.is_absolute():
        project_dir = (path.parent / project_dir).resolve()
    raw["project_dir"] = project_dir

    if "tokens" not in raw:
        tokens_path = Path(raw.get("tokens_file", "resources/tokens.json"))
        if not tokens_path.is_absolute():
            tokens_path = project_dir / tokens_path
        raw["tokens"] = load_token_list(tokens_path)

    config = validate_config_dict(raw)
    logger.info(
        f"Loaded config {path}: {len(config.tokens)} tokens, "
        f"{len(config.lp_pairs)} LP pairs"
    )
    return config


def load_token_list(path: Path) -> list[dict[str, Any]]:
    """Read the raw token descriptor list from JSON."""
    if not path.exists():
        raise InputValidationError(f"Token list not found: {path}", path=str(path))
    try:
        with open(path) as f:
            tokens = json.load(f)
    except json.JSONDecodeError as e:
        raise InputValidationError(f"Token list {path} is not valid JSON: {e}") from e
    if not isinstance(tokens, list):
        raise InputValidationError(
            f"Token list {path} must be a JSON array, got {type(tokens).__name__}"
        )
    return tokens


def _read_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise InputValidationError(f"Config file not found: {path}", path=str(path))
    try:
        with open(path) as f:
            loaded: Any = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise InputValidationError(f"Config file {path} is not valid YAML: {e}") from e
    if not isinstance(loaded, dict):
        raise InputValidationError(f"Config file {path} must contain a mapping")
    return loaded
