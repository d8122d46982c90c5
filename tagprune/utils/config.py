"""
Configuration management for tagprune.

Configuration sources (in order of precedence):
1. Environment variables (TAGPRUNE_* prefix)
2. YAML configuration file (~/.tagprune/config.yaml)
3. Default values defined in dataclasses

Configuration sections:
- logging: Log level, file output, verbosity
- git: Binary, remote name and working directory
- prune: Concurrency and the tag classification rules
"""

import os
import yaml
from pathlib import Path
from typing import Optional, Dict, List
from dataclasses import dataclass, field, asdict

from tagprune.utils.logging import get_logger

log = get_logger("config")

CONFIG_DIR = Path.home() / ".tagprune"
CONFIG_FILE = CONFIG_DIR / "config.yaml"

@dataclass
class LoggingConfig:
    """
    Logging configuration section.
    """
    # Log level: DEBUG, INFO, WARNING, ERROR, CRITICAL
    level: str = "WARNING"
    # Optional path to log file (None = console only)
    file: Optional[str] = None
    verbose: bool = False

@dataclass
class GitConfig:
    """
    Git invocation section.
    """
    binary: str = "git"
    # Remote that tags are deleted from
    remote: str = "origin"
    # Repository to operate on (None = current directory)
    cwd: Optional[str] = None

@dataclass
class PruneConfig:
    """
    Tag pruning section.
    """
    # Maximum number of concurrent remote deletions
    concurrency: int = 50
    # Release lines whose plain version tags are kept
    protected_prefixes: List[str] = field(default_factory=lambda: ["v35", "v36", "v37", "v38"])
    # Any other tag starting with this prefix is deleted
    delete_prefix: str = "v"
    # Ask before deleting
    confirm: bool = True


@dataclass
class Config:
    """
    Root configuration container for tagprune.
    """

    logging: LoggingConfig = field(default_factory=LoggingConfig)
    git: GitConfig = field(default_factory=GitConfig)
    prune: PruneConfig = field(default_factory=PruneConfig)

    def to_dict(self) -> dict:
        """
        Convert configuration to dictionary.

        :return: Nested dictionary representation of all sections.
        """
        return asdict(self)

    def save(self, path: Path = None) -> None:
        """
        Save configuration to YAML file.

        :param path: Path to save config file (default: ~/.tagprune/config.yaml).
        """
        path = path or CONFIG_FILE
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w") as f:
            yaml.dump(
                self.to_dict(),
                f,
                default_flow_style=False,
                sort_keys=False
            )

        log.info(f"Config saved to {path}")

# Global configuration instance
config = Config()

def _apply_env_vars(cfg: Config) -> None:
    """
    Apply TAGPRUNE_* environment variable overrides to configuration.

    The target field's current value decides the conversion: booleans accept
    true/1/yes, integers are parsed, lists are split on commas.

    :param cfg: Configuration instance to update.
    """
    env_mappings = {
        "TAGPRUNE_LOG_LEVEL": ("logging", "level"),
        "TAGPRUNE_LOG_FILE": ("logging", "file"),
        "TAGPRUNE_GIT": ("git", "binary"),
        "TAGPRUNE_REMOTE": ("git", "remote"),
        "TAGPRUNE_REPO": ("git", "cwd"),
        "TAGPRUNE_CONCURRENCY": ("prune", "concurrency"),
        "TAGPRUNE_PROTECTED_PREFIXES": ("prune", "protected_prefixes"),
        "TAGPRUNE_DELETE_PREFIX": ("prune", "delete_prefix"),
        "TAGPRUNE_CONFIRM": ("prune", "confirm"),
    }

    for env_var, (section, key) in env_mappings.items():
        value = os.environ.get(env_var)
        if value is not None:
            section_obj = getattr(cfg, section)
            current = getattr(section_obj, key)

            if isinstance(current, bool):
                value = value.lower() in ("true", "1", "yes")
            elif isinstance(current, int):
                value = int(value)
            elif isinstance(current, list):
                value = [item.strip() for item in value.split(",") if item.strip()]

            setattr(section_obj, key, value)
            log.debug(f"Config override from {env_var}: {section}.{key} = {value}")


def _load_from_dict(cfg: Config, data: Dict) -> None:
    """
    Load configuration values from a nested dictionary.

    Unknown sections and keys are ignored.

    :param cfg: Configuration instance to update.
    :param data: Nested dictionary, typically parsed from YAML.
    """
    for section in ("logging", "git", "prune"):
        values = data.get(section) or {}
        section_obj = getattr(cfg, section)
        for k, v in values.items():
            if hasattr(section_obj, k):
                setattr(section_obj, k, v)

def load_config(config_path: Path = None) -> Config:
    """
    Load configuration from file and environment variables.

    Resets to defaults, applies the YAML file if present, then applies
    environment overrides. Updates and returns the global instance.

    :param config_path: Optional path to config file (default: ~/.tagprune/config.yaml).
    :return: Updated global configuration instance.
    """
    global config

    config = Config()

    path = config_path or CONFIG_FILE
    if path.exists():
        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
            _load_from_dict(config, data)
            log.debug(f"Loaded config from {path}")
        except Exception as e:
            # Continue with defaults + env vars
            log.warning(f"Failed to load config from {path}: {e}")

    _apply_env_vars(config)
    return config

def init_config_file(path: Path = None, force: bool = False) -> bool:
    """
    Write the current configuration to file unless one already exists.

    :param path: Target path (default: ~/.tagprune/config.yaml).
    :param force: Overwrite an existing file.
    :return: True if a file was written.
    """
    path = path or CONFIG_FILE
    if path.exists() and not force:
        return False
    config.save(path)
    log.info(f"Created default config at {path}")
    return True

def get_config() -> Config:
    """
    Get the global configuration instance.

    :return: Global configuration instance.
    """
    return config
