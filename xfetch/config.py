"""
Entry Configuration

This module provides the options applied when building a cache entry, and a
loader that assembles those options from defaults, a config file, and
environment variables.

Durations accept anything pydantic coerces to a timedelta: a timedelta, a
number of seconds, or an ISO-8601 duration string.
"""

import os
import json
import logging
from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_BETA = 1.0
DEFAULT_ENV_PREFIX = "XFETCH_"


class EntryOptions(BaseModel):
    """
    Options for a single cache entry.

    Attributes:
        delta: Recomputation cost override; None means use the measured
            duration of the value function
        beta: Aggressiveness of early expiration; 0 disables it
        ttl: Time-to-live; None or zero means the entry never expires,
            a negative value yields an entry that is already expired
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    delta: Optional[timedelta] = None
    beta: float = Field(default=DEFAULT_BETA, ge=0.0)
    ttl: Optional[timedelta] = None

    @field_validator('delta')
    @classmethod
    def validate_delta(cls, v):
        """Reject negative recomputation costs"""
        if v is not None and v < timedelta(0):
            raise ValueError(f"delta must be non-negative, got {v}")
        return v

    @property
    def expires(self) -> bool:
        """Whether entries built with these options have a nominal expiry"""
        return self.ttl is not None and self.ttl != timedelta(0)

    def merged(self, **overrides: Any) -> "EntryOptions":
        """
        Return new options with the non-None overrides applied.

        The result is validated like a freshly constructed instance.
        """
        values = self.model_dump()
        values.update({k: v for k, v in overrides.items() if v is not None})
        return EntryOptions(**values)


class OptionsLoader:
    """
    Options loader for cache entries.

    Loads options from:
    1. Default values
    2. Config file (YAML or JSON mapping of option fields)
    3. Environment variables (highest priority)
    """

    FIELDS = ("delta", "beta", "ttl")

    def __init__(
        self,
        config_path: Optional[str] = None,
        env_prefix: str = DEFAULT_ENV_PREFIX,
        dotenv_path: Optional[str] = None
    ):
        """
        Initialize the options loader.

        Args:
            config_path: Path to config file (YAML or JSON)
            env_prefix: Prefix of the environment variables to read
            dotenv_path: Optional .env file loaded before reading the environment
        """
        self.env_prefix = env_prefix
        self.config_path = config_path or os.environ.get(f"{env_prefix}CONFIG_PATH")
        self.dotenv_path = dotenv_path
        self._options: Optional[EntryOptions] = None

    def load(self) -> EntryOptions:
        """
        Load options from all sources.

        Returns:
            Loaded options

        Raises:
            ConfigurationError: If a source cannot be parsed or a value is invalid
        """
        if self._options is not None:
            return self._options

        values: Dict[str, Any] = {}
        if self.config_path:
            values.update(self._load_from_file(self.config_path))
        values.update(self._load_from_env())

        try:
            self._options = EntryOptions(**values)
        except ValidationError as e:
            errors = e.errors()
            key = None
            if errors and errors[0].get("loc"):
                key = str(errors[0]["loc"][0])
            raise ConfigurationError(str(e), config_key=key, original_exception=e) from e

        logger.debug(f"Loaded entry options: {self._options!r}")
        return self._options

    def _load_from_file(self, path: str) -> Dict[str, Any]:
        """
        Load options from a file.

        Args:
            path: Path to config file

        Returns:
            Loaded options dictionary
        """
        path = Path(path)
        if not path.exists():
            logger.warning(f"Config file not found: {path}")
            return {}

        suffix = path.suffix.lower()
        try:
            if suffix in ['.yaml', '.yml']:
                with open(path, 'r', encoding='utf-8') as f:
                    data = yaml.safe_load(f)
            elif suffix == '.json':
                with open(path, 'r', encoding='utf-8') as f:
                    data = json.load(f)
            else:
                raise ConfigurationError(f"Unsupported config file format: {path.suffix}")
        except (yaml.YAMLError, json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ConfigurationError(
                f"Could not parse config file {path}: {e}", original_exception=e
            ) from e
        except OSError as e:
            raise ConfigurationError(
                f"Could not read config file {path}: {e}", original_exception=e
            ) from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file {path} must contain a mapping")
        return data

    def _load_from_env(self) -> Dict[str, Any]:
        """
        Load options from environment variables.

        Returns:
            Dictionary of the options present in the environment
        """
        if self.dotenv_path:
            load_dotenv(self.dotenv_path, override=False)

        values = {}
        for field in self.FIELDS:
            raw = os.environ.get(f"{self.env_prefix}{field.upper()}")
            if raw is None or raw == "":
                continue
            if field == "beta":
                values[field] = raw
            else:
                try:
                    values[field] = timedelta(seconds=float(raw))
                except ValueError:
                    # Let pydantic try ISO-8601 durations
                    values[field] = raw
        return values


_loader: Optional[OptionsLoader] = None


def get_options() -> EntryOptions:
    """
    Get the options loaded from the default sources.

    Returns:
        Loaded options
    """
    global _loader
    if _loader is None:
        _loader = OptionsLoader()
    return _loader.load()


def reload_options(config_path: Optional[str] = None) -> EntryOptions:
    """
    Reload the options.

    Args:
        config_path: Path to config file

    Returns:
        Reloaded options
    """
    global _loader
    _loader = OptionsLoader(config_path)
    return _loader.load()
