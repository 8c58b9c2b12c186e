"""
config_loader.py
- Loads the optional YAML file holding default run settings.
- Merges CLI arguments, file values and environment defaults into a RunConfig.
"""

import os

import yaml
from loguru import logger

from inplace_rebalance.core.config import DEBUG, LEDGER_PATH, RunConfig
from inplace_rebalance.core.constants import DEFAULT_CHECKSUM, DEFAULT_PASSES, TRUTHY_VALUES

CONFIG_KEYS = {"checksum", "passes", "ledger", "cleanup_temp", "debug"}


def load_yaml(path):
    """
    Load a YAML mapping from disk.

    Args:
        path (str): File to read. An empty path or a missing file yields {}.

    Returns:
        dict: Parsed settings.

    Raises:
        ValueError: The file exists but is unreadable or not a mapping.
    """
    if not path or not os.path.exists(path):
        if path:
            logger.warning(f"[config] File not found: {path}")
        return {}

    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ValueError(f"Failed to load {path}: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a mapping, got {type(data).__name__}")

    unknown = set(data) - CONFIG_KEYS
    if unknown:
        logger.warning(f"[config] Ignoring unknown keys in {path}: {', '.join(sorted(unknown))}")

    logger.debug(f"[config] Loaded {path}: {data}")
    return data


def parse_checksum_flag(value):
    """Anything other than 1/on/true/yes (any case) disables checksumming."""
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in TRUTHY_VALUES


def parse_passes(value):
    """Accept an integer (or integral string) >= 0; anything else is a usage error."""
    if isinstance(value, bool) or isinstance(value, float) and not value.is_integer():
        raise ValueError(f"passes must be a whole number, got {value!r}")
    try:
        passes = int(value)
    except (TypeError, ValueError):
        raise ValueError(f"passes must be a whole number, got {value!r}") from None
    if passes < 0:
        raise ValueError(f"passes must be >= 0, got {passes}")
    return passes


def _pick(cli_value, file_config, key, default):
    if cli_value is not None:
        return cli_value
    if key in file_config:
        return file_config[key]
    return default


def parse_ledger_path(value):
    if not isinstance(value, (str, os.PathLike)) or not str(value).strip():
        raise ValueError(f"ledger must be a file path, got {value!r}")
    return str(value)


def resolve_run_config(args, file_config=None):
    """
    Build the immutable RunConfig for this run.

    Precedence is CLI flag, then YAML file, then environment/built-in default.

    Args:
        args: argparse namespace; options left unset are None.
        file_config (dict): Values from load_yaml().

    Returns:
        RunConfig
    """
    file_config = file_config or {}

    checksum = parse_checksum_flag(_pick(args.checksum, file_config, "checksum", DEFAULT_CHECKSUM))
    passes = parse_passes(_pick(args.passes, file_config, "passes", DEFAULT_PASSES))
    ledger = parse_ledger_path(_pick(args.ledger, file_config, "ledger", LEDGER_PATH))
    cleanup_temp = bool(args.cleanup_temp or file_config.get("cleanup_temp", False))

    return RunConfig(
        root_path=args.root_path,
        checksum_enabled=checksum,
        max_passes=passes,
        ledger_path=ledger,
        cleanup_temp=cleanup_temp,
        debug=bool(args.debug or file_config.get("debug", False) or DEBUG),
    )
