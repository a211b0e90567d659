#!/usr/bin/env python3
"""
Bounty Dice Configuration
Mission rules, file locations and HackerOne credentials
"""

import os
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from pathlib import Path

import yaml

from ..errors import ConfigError

logger = logging.getLogger(__name__)

# Mission rules
MAX_REROLLS = 5
MIN_MISSION_DAYS = 15
MAX_MISSION_DAYS = 30

# Environment variables holding the Hacker API identity
API_USER_ENV = "HACKERONE_API_USER"
API_TOKEN_ENV = "HACKERONE_API_TOKEN"

MISSION_FILE_NAME = ".bounty_mission.json"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def _home_dir() -> Optional[Path]:
    try:
        return Path.home()
    except RuntimeError:
        return None


def default_mission_file() -> Path:
    """Mission file in the user's home, or the current directory when there is none"""
    home = _home_dir()
    if home is None:
        logger.debug("Home directory not found, using current directory for mission file")
        return Path(MISSION_FILE_NAME)
    return home / MISSION_FILE_NAME


def default_cache_file() -> Path:
    home = _home_dir() or Path(".")
    return home / ".cache" / "bounty-dice" / "program_data.json"


def default_config_file() -> Path:
    home = _home_dir() or Path(".")
    return home / ".config" / "bounty-dice" / "config.yaml"


@dataclass
class DiceConfig:
    """Settings for one run of the dice"""

    # Roll options
    duration: int = MIN_MISSION_DAYS
    bounty_only: bool = False
    scope: str = "all"

    # High-quality mode
    hq: bool = False
    force: bool = False
    min_req: int = 1
    session_cookie: str = ""
    csrf_token: str = ""

    verbose: bool = False

    # Files
    mission_file: Path = field(default_factory=default_mission_file)
    cache_file: Path = field(default_factory=default_cache_file)

    # Network
    request_timeout: int = 30
    user_agent: str = "bounty-dice/1.0"

    # Hacker API identity (read from the environment)
    api_user: str = field(default_factory=lambda: os.environ.get(API_USER_ENV, ""))
    api_token: str = field(default_factory=lambda: os.environ.get(API_TOKEN_ENV, ""))

    @property
    def has_api_credentials(self) -> bool:
        return bool(self.api_user and self.api_token)

    def summary(self) -> str:
        """One-line description of the run options, without secrets"""
        return (f"Bounty: {self.bounty_only}, Scope: {self.scope}, Duration: {self.duration}, "
                f"HQ: {self.hq}, Force: {self.force}, Min-Req: {self.min_req}")


# Keys a config file may set, with the type each must hold
CONFIG_TYPES = {
    "duration": int,
    "bounty_only": bool,
    "scope": str,
    "hq": bool,
    "force": bool,
    "min_req": int,
    "session_cookie": str,
    "csrf_token": str,
    "verbose": bool,
    "mission_file": Path,
    "cache_file": Path,
    "request_timeout": int,
    "user_agent": str,
}
CONFIG_KEYS = set(CONFIG_TYPES)


def _coerce(key: str, value: Any) -> Any:
    """Check a config value against its type, raising ConfigError on mismatch"""
    expected = CONFIG_TYPES[key]
    if expected is Path:
        if not isinstance(value, (str, Path)) or not str(value):
            raise ConfigError(f"Config option '{key}' must be a file path, got {value!r}")
        return Path(value).expanduser()
    # bool is an int subclass; a YAML 'true' is not a duration
    if expected is int and isinstance(value, bool):
        raise ConfigError(f"Config option '{key}' must be an integer, got {value!r}")
    if not isinstance(value, expected):
        raise ConfigError(f"Config option '{key}' must be {expected.__name__}, got {value!r}")
    return value


def load_config(config_path: Path) -> Dict[str, Any]:
    """Load a YAML config file. A missing file yields an empty config."""
    config_path = Path(config_path).expanduser()
    if not config_path.exists():
        logger.debug(f"No config file at {config_path}")
        return {}

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Could not read config file {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {config_path} must contain a mapping")

    unknown = set(data) - CONFIG_KEYS
    if unknown:
        logger.warning(f"Ignoring unknown config keys: {', '.join(sorted(unknown))}")

    logger.debug(f"Loaded config from {config_path}")
    return {k: v for k, v in data.items() if k in CONFIG_KEYS}


def get_dice_config(file_config: Optional[Dict[str, Any]] = None, **overrides) -> DiceConfig:
    """Build a config from file values, then apply non-None overrides (CLI flags)"""
    config = DiceConfig()
    values = dict(file_config or {})
    values.update({k: v for k, v in overrides.items() if v is not None})

    for key, value in values.items():
        if key not in CONFIG_KEYS:
            raise ConfigError(f"Unknown config option: {key}")
        setattr(config, key, _coerce(key, value))
    return config


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=LOG_FORMAT
    )
