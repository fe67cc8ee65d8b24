"""Rollout configuration objects.

A RolloutConfig is built explicitly and handed to whatever evaluates it;
nothing here keeps process-wide state.
"""

import logging
import os
import re

from dotenv import load_dotenv

from core.feature_flags import (
    InvalidInputError,
    clamp_percentage,
    get_bucket_index,
    is_feature_enabled,
    parse_rollout_percentage,
    percentage_to_threshold,
)

load_dotenv()

logger = logging.getLogger(__name__)

TRUE_VALUES = ("1", "true", "yes", "on")


def env_key_for_flag(flag_key):
    """'new-checkout.flow' -> 'NEW_CHECKOUT_FLOW'"""
    return re.sub(r"[^A-Z0-9]", "_", flag_key.upper())


class RolloutConfig:
    """Immutable rollout settings for a single flag."""

    __slots__ = ("flag_key", "percentage", "seed", "enabled")

    def __init__(self, flag_key, percentage, seed="", enabled=True):
        if not isinstance(flag_key, str) or not flag_key:
            raise InvalidInputError("flag_key must be a non-empty string")
        if not isinstance(seed, str):
            raise InvalidInputError("seed must be a string")
        object.__setattr__(self, "flag_key", flag_key)
        object.__setattr__(self, "percentage", clamp_percentage(percentage))
        object.__setattr__(self, "seed", seed)
        object.__setattr__(self, "enabled", bool(enabled))

    def __setattr__(self, name, value):
        raise AttributeError(f"RolloutConfig is immutable, cannot set {name}")

    def __eq__(self, other):
        if not isinstance(other, RolloutConfig):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self):
        return hash(self._key())

    def _key(self):
        return (self.flag_key, self.threshold, self.seed, self.enabled)

    def __repr__(self):
        return (
            f"RolloutConfig(flag_key={self.flag_key!r}, percentage={self.percentage!r}, "
            f"seed={self.seed!r}, enabled={self.enabled!r})"
        )

    @property
    def threshold(self):
        return percentage_to_threshold(self.percentage)

    def bucket_for(self, subject_id):
        return get_bucket_index(subject_id, self.flag_key, self.seed)

    def is_enabled_for(self, subject_id):
        return is_feature_enabled(
            self.flag_key,
            subject_id,
            percentage=self.percentage,
            enabled=self.enabled,
            seed=self.seed,
        )

    def with_percentage(self, percentage):
        return RolloutConfig(self.flag_key, percentage, seed=self.seed, enabled=self.enabled)

    def with_seed(self, seed):
        return RolloutConfig(self.flag_key, self.percentage, seed=seed, enabled=self.enabled)

    def as_dict(self):
        return {
            "flag_key": self.flag_key,
            "percentage": self.percentage,
            "seed": self.seed,
            "enabled": self.enabled,
        }


def load_rollout_config(flag_key, environ=None):
    """Build a RolloutConfig for ``flag_key`` from environment variables.

    Looks up ROLLOUT_<KEY>_PERCENT, ROLLOUT_<KEY>_SEED and ROLLOUT_<KEY>_ENABLED,
    falling back to ROLLOUT_DEFAULT_PERCENT / ROLLOUT_DEFAULT_SEED.
    """
    if not isinstance(flag_key, str) or not flag_key:
        raise InvalidInputError("flag_key must be a non-empty string")

    env = os.environ if environ is None else environ
    prefix = f"ROLLOUT_{env_key_for_flag(flag_key)}"

    default_percent = parse_rollout_percentage(env.get("ROLLOUT_DEFAULT_PERCENT", "100"))
    percentage = parse_rollout_percentage(env.get(f"{prefix}_PERCENT"), default=default_percent)
    seed = env.get(f"{prefix}_SEED", env.get("ROLLOUT_DEFAULT_SEED", ""))
    enabled = env.get(f"{prefix}_ENABLED", "true").strip().lower() in TRUE_VALUES

    config = RolloutConfig(flag_key, percentage, seed=seed, enabled=enabled)
    logger.info(
        "Rollout config loaded for %s (rollout=%s%%, seed=%r, enabled=%s)",
        flag_key,
        config.percentage,
        config.seed,
        config.enabled,
    )
    return config


def get_int_setting(name, default, environ=None):
    """Read a positive integer setting, falling back to ``default``."""
    env = os.environ if environ is None else environ
    raw = env.get(name)
    if raw is None:
        return default
    try:
        value = int(str(raw).strip())
    except ValueError:
        logger.warning(f"⚠️ {name}={raw!r} is not an integer, using {default}")
        return default
    if value <= 0:
        logger.warning(f"⚠️ {name}={value} must be positive, using {default}")
        return default
    return value
