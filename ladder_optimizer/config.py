"""Configuration management for the ladder optimizer.

This module provides configuration loading, validation, and environment
overrides for the optimizer, candidate admission filters, and the
periodic refresh job.

Example config.yaml:

    optimizer:
      num_legs: 0            # 0 = Auto (sweep 1..max_legs)
      allow_repetition: false
      fallback_volatility_index: 57
      weights:
        expected_value: 0.30
        vol_edge: 0.20
        risk_return: 0.20
        theta: 0.15
        kelly: 0.10
        diversification: 0.05
    admission:
      min_dte: 15
      max_exercise_probability: 0.40
    refresh:
      interval_seconds: 15
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from .constants import (
    DEFAULT_MAX_APY,
    DEFAULT_MAX_EXERCISE_PROBABILITY,
    DEFAULT_MAX_MONEYNESS,
    DEFAULT_MIN_APY,
    DEFAULT_MIN_DTE,
    DEFAULT_MIN_MONEYNESS,
    DEFAULT_MIN_POOL_SIZE,
    DEFAULT_REFRESH_INTERVAL_SECONDS,
    DEFAULT_STRIKE_MULTIPLE,
    FALLBACK_VOLATILITY_INDEX,
    MAX_LADDER_LEGS,
    RECOMMENDED_SCORE_THRESHOLD,
)
from .exceptions import ConfigurationError
from .models import FACTOR_WEIGHTS, LadderFactor, validate_weights

logger = logging.getLogger(__name__)

ENV_PREFIX = "LADDER_"

_TRUE_VALUES = ("1", "true", "yes", "on")


@dataclass
class OptimizerConfig:
    """
    Optimizer settings.

    Attributes:
        num_legs: Legs per ladder; 0 selects Auto (best over 1..max_legs)
        allow_repetition: Whether a leg may appear more than once in a ladder
        max_legs: Largest leg count considered
        fallback_volatility_index: Used when no volatility index is available
        recommend_score_threshold: Minimum score for highlighting ladder legs
        weights: Factor weighting table
    """

    num_legs: int = 0
    allow_repetition: bool = False
    max_legs: int = MAX_LADDER_LEGS
    fallback_volatility_index: float = FALLBACK_VOLATILITY_INDEX
    recommend_score_threshold: float = RECOMMENDED_SCORE_THRESHOLD
    weights: dict[LadderFactor, float] = field(default_factory=lambda: dict(FACTOR_WEIGHTS))

    def __post_init__(self) -> None:
        """Validate configuration."""
        if not 1 <= self.max_legs <= MAX_LADDER_LEGS:
            raise ConfigurationError(
                f"max_legs must be between 1 and {MAX_LADDER_LEGS}, got {self.max_legs}"
            )
        if not 0 <= self.num_legs <= self.max_legs:
            raise ConfigurationError(
                f"num_legs must be between 0 (Auto) and {self.max_legs}, got {self.num_legs}"
            )
        if self.fallback_volatility_index <= 0:
            raise ConfigurationError(
                f"fallback_volatility_index must be > 0, got {self.fallback_volatility_index}"
            )
        if not 0 <= self.recommend_score_threshold <= 10:
            raise ConfigurationError("recommend_score_threshold must be between 0 and 10")
        try:
            validate_weights(self.weights)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e

    @property
    def is_auto(self) -> bool:
        return self.num_legs == 0


@dataclass
class AdmissionConfig:
    """
    Caller-side filters deciding which quotes become candidate legs.

    Attributes:
        min_dte: Minimum days to expiry
        max_exercise_probability: Cap on probability of exercise (0-1)
        min_moneyness: Minimum reference price / strike
        max_moneyness: Maximum reference price / strike
        min_apy: Yields must exceed this (percent)
        max_apy: Yields must not exceed this (percent)
        strike_multiple: Ignore strikes that are not multiples of this (None = keep all)
        min_pool_size: Candidate list length floor before truncation
    """

    min_dte: int = DEFAULT_MIN_DTE
    max_exercise_probability: float = DEFAULT_MAX_EXERCISE_PROBABILITY
    min_moneyness: float = DEFAULT_MIN_MONEYNESS
    max_moneyness: float = DEFAULT_MAX_MONEYNESS
    min_apy: float = DEFAULT_MIN_APY
    max_apy: float = DEFAULT_MAX_APY
    strike_multiple: Optional[float] = DEFAULT_STRIKE_MULTIPLE
    min_pool_size: int = DEFAULT_MIN_POOL_SIZE

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.min_dte < 0:
            raise ConfigurationError(f"min_dte must be >= 0, got {self.min_dte}")
        if not 0 <= self.max_exercise_probability <= 1:
            raise ConfigurationError(
                f"max_exercise_probability must be between 0 and 1, "
                f"got {self.max_exercise_probability}"
            )
        if self.min_moneyness <= 0 or self.max_moneyness < self.min_moneyness:
            raise ConfigurationError("Moneyness bounds must satisfy 0 < min <= max")
        if self.max_apy < self.min_apy:
            raise ConfigurationError("max_apy must be >= min_apy")
        if self.strike_multiple is not None and self.strike_multiple <= 0:
            raise ConfigurationError("strike_multiple must be positive")
        if self.min_pool_size < 1:
            raise ConfigurationError("min_pool_size must be at least 1")


@dataclass
class RefreshConfig:
    """
    Periodic recomputation settings.

    Attributes:
        interval_seconds: Seconds between refreshes
    """

    interval_seconds: int = DEFAULT_REFRESH_INTERVAL_SECONDS

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.interval_seconds < 1:
            raise ConfigurationError(
                f"interval_seconds must be >= 1, got {self.interval_seconds}"
            )


@dataclass
class AppConfig:
    """Complete configuration: optimizer, admission and refresh sections."""

    optimizer: OptimizerConfig = field(default_factory=OptimizerConfig)
    admission: AdmissionConfig = field(default_factory=AdmissionConfig)
    refresh: RefreshConfig = field(default_factory=RefreshConfig)

    @classmethod
    def get_default_config_path(cls) -> Path:
        """Get default configuration file path (~/.ladder_optimizer/config.yaml)."""
        return Path.home() / ".ladder_optimizer" / "config.yaml"

    @classmethod
    def load_from_file(cls, path: Optional[Path] = None) -> "AppConfig":
        """
        Load configuration from a YAML file.

        A missing file yields the defaults. Environment variables override
        file values.

        Args:
            path: Config file (default: ~/.ladder_optimizer/config.yaml)

        Returns:
            AppConfig instance

        Raises:
            ConfigurationError: If the file is unreadable or invalid
        """
        config_path = Path(path) if path else cls.get_default_config_path()
        config_dict: dict[str, Any] = {}

        if config_path.exists():
            try:
                with open(config_path) as f:
                    file_config = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Invalid YAML in configuration file: {e}") from e
            except OSError as e:
                raise ConfigurationError(f"Failed to read configuration file: {e}") from e

            if file_config:
                if not isinstance(file_config, dict):
                    raise ConfigurationError("Configuration file must contain a mapping")
                config_dict = file_config
            logger.debug(f"Loaded configuration from {config_path}")
        else:
            logger.debug(f"Configuration file not found at {config_path}, using defaults")

        return cls.merge_with_defaults(config_dict)

    @classmethod
    def merge_with_defaults(cls, config_dict: dict[str, Any]) -> "AppConfig":
        """
        Merge a configuration dictionary with defaults and environment variables.

        Precedence order (highest to lowest):
        1. Environment variables (LADDER_*)
        2. Config file values
        3. Default values

        Raises:
            ConfigurationError: If the merged configuration is invalid
        """
        optimizer_dict = dict(config_dict.get("optimizer") or {})
        admission_dict = dict(config_dict.get("admission") or {})
        refresh_dict = dict(config_dict.get("refresh") or {})

        try:
            if "weights" in optimizer_dict:
                optimizer_dict["weights"] = _parse_weights(optimizer_dict["weights"])

            env_num_legs = os.getenv(f"{ENV_PREFIX}NUM_LEGS")
            if env_num_legs is not None:
                optimizer_dict["num_legs"] = int(env_num_legs)

            env_repetition = os.getenv(f"{ENV_PREFIX}ALLOW_REPETITION")
            if env_repetition is not None:
                optimizer_dict["allow_repetition"] = env_repetition.lower() in _TRUE_VALUES

            env_fallback = os.getenv(f"{ENV_PREFIX}FALLBACK_VOLATILITY_INDEX")
            if env_fallback is not None:
                optimizer_dict["fallback_volatility_index"] = float(env_fallback)

            env_pex_cap = os.getenv(f"{ENV_PREFIX}MAX_EXERCISE_PROBABILITY")
            if env_pex_cap is not None:
                admission_dict["max_exercise_probability"] = float(env_pex_cap)

            env_interval = os.getenv(f"{ENV_PREFIX}REFRESH_INTERVAL")
            if env_interval is not None:
                refresh_dict["interval_seconds"] = int(env_interval)

            return cls(
                optimizer=OptimizerConfig(**optimizer_dict),
                admission=AdmissionConfig(**admission_dict),
                refresh=RefreshConfig(**refresh_dict),
            )
        except ConfigurationError:
            raise
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e


def _parse_weights(raw: Any) -> dict[LadderFactor, float]:
    """Convert a {factor name: weight} mapping into a weighting table."""
    if not isinstance(raw, dict):
        raise ConfigurationError("optimizer.weights must be a mapping of factor to weight")
    return {LadderFactor.from_name(str(name)): float(value) for name, value in raw.items()}


def load_config(path: Optional[Path] = None) -> AppConfig:
    """Load configuration from file and environment (see AppConfig.load_from_file)."""
    return AppConfig.load_from_file(path)
