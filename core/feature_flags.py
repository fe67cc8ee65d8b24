"""Feature flags with deterministic rollout buckets.

Bucket assignment is reproducible across processes and runtimes:

    fields  = subject_id, flag_key, rollout_seed   (UTF-8)
    payload = for each field: 4-byte big-endian length + bytes
    bucket  = int(sha256(payload)[:8], big-endian) % RESOLUTION

A subject is in the rollout when ``bucket < round(percentage * 100)``.
"""

import hashlib
import math
import struct
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

RESOLUTION = 10_000
HASH_PREFIX_BYTES = 8


class InvalidInputError(ValueError):
    """Raised when rollout inputs cannot be evaluated."""


def _require_identifier(name, value):
    if not isinstance(value, str):
        raise InvalidInputError(f"{name} must be a string, got {type(value).__name__}")
    if not value:
        raise InvalidInputError(f"{name} must not be empty")
    return value


def _to_decimal(percentage):
    if isinstance(percentage, bool):
        raise InvalidInputError("rollout percentage must be a number, got bool")
    try:
        value = Decimal(str(percentage).strip())
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidInputError(f"rollout percentage is not numeric: {percentage!r}") from None
    if value.is_nan():
        raise InvalidInputError("rollout percentage must not be NaN")
    return value


def encode_rollout_key(subject_id, flag_key, rollout_seed):
    """Length-prefix each field so ("ab", "c") and ("a", "bc") never collide."""
    parts = []
    for field in (subject_id, flag_key, rollout_seed):
        raw = field.encode("utf-8")
        parts.append(struct.pack(">I", len(raw)))
        parts.append(raw)
    return b"".join(parts)


def get_bucket_index(subject_id, flag_key, rollout_seed=""):
    """Return a deterministic bucket in [0, RESOLUTION) for a subject and flag."""
    _require_identifier("subject_id", subject_id)
    _require_identifier("flag_key", flag_key)
    if not isinstance(rollout_seed, str):
        raise InvalidInputError(f"rollout_seed must be a string, got {type(rollout_seed).__name__}")

    digest = hashlib.sha256(encode_rollout_key(subject_id, flag_key, rollout_seed)).digest()
    return int.from_bytes(digest[:HASH_PREFIX_BYTES], "big") % RESOLUTION


def clamp_percentage(percentage):
    """Clamp a rollout percentage to [0, 100] as an int or float."""
    value = _to_decimal(percentage)
    if value <= 0:
        return 0
    if value >= 100:
        return 100
    if value == value.to_integral_value():
        return int(value)
    return float(value)


def percentage_to_threshold(percentage):
    """Map a percentage (0.01 precision) onto the bucket space.

    Decimal arithmetic keeps values such as 33.33 exact (3333, not 3332).
    """
    value = _to_decimal(percentage)
    if value <= 0:
        return 0
    if value >= 100:
        return RESOLUTION
    hundredths = (value * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return int(hundredths)


def is_in_rollout(subject_id, flag_key, rollout_seed, rollout_percentage):
    """Decide whether ``subject_id`` falls inside the enabled bucket range.

    Percentages outside [0, 100] are clamped so the function stays total.
    Raises InvalidInputError for empty identifiers or non-numeric percentages.
    """
    threshold = percentage_to_threshold(rollout_percentage)
    bucket = get_bucket_index(subject_id, flag_key, rollout_seed)
    return bucket < threshold


def rollout_threshold_percentage(subject_id, flag_key, rollout_seed=""):
    """Smallest percentage at which the subject becomes enabled."""
    return (get_bucket_index(subject_id, flag_key, rollout_seed) + 1) / 100


def parse_rollout_percentage(value, default=100):
    """Parse rollout percentage from env/config with safe bounds."""
    try:
        percent = float(str(value).strip())
    except (TypeError, ValueError):
        return default
    if math.isnan(percent):
        return default

    if percent < 0:
        return 0
    if percent > 100:
        return 100
    percent = round(percent, 2)
    if percent.is_integer():
        return int(percent)
    return percent


def is_feature_enabled(flag_key, subject_id, percentage, enabled=True, seed=""):
    """Decide whether a feature is enabled for a subject at a rollout percentage.

    Inputs are validated even when the master switch is off.
    """
    in_rollout = is_in_rollout(subject_id, flag_key, seed, percentage)
    return bool(enabled) and in_rollout
