"""Population-level rollout helpers: bulk evaluation, distribution, load test."""

import logging
import math
import time
from concurrent.futures import ThreadPoolExecutor

from core.feature_flags import InvalidInputError

logger = logging.getLogger(__name__)

DEFAULT_POPULATION = 10_000
DEFAULT_BATCH_SIZE = 25
DEFAULT_MAX_WORKERS = 4


def generate_subject_ids(count=DEFAULT_POPULATION, prefix="user-", width=5):
    """Consistent synthetic subjects: user-00000, user-00001, ..."""
    if count < 0:
        raise InvalidInputError("population size must not be negative")
    return [f"{prefix}{i:0{width}d}" for i in range(count)]


def _chunks(items, size):
    for start in range(0, len(items), size):
        yield items[start:start + size]


def _evaluate_batch(batch, config):
    return [(subject_id, config.is_enabled_for(subject_id)) for subject_id in batch]


def evaluate_population(subject_ids, config, max_workers=DEFAULT_MAX_WORKERS, batch_size=DEFAULT_BATCH_SIZE):
    """Evaluate ``config`` for every subject, batched across a thread pool.

    Returns a dict in input order. Invalid or duplicate subjects raise
    InvalidInputError.
    """
    subject_ids = list(subject_ids)
    if batch_size <= 0:
        raise InvalidInputError("batch_size must be positive")
    if max_workers <= 0:
        raise InvalidInputError("max_workers must be positive")

    batches = list(_chunks(subject_ids, batch_size))
    results = {}
    if not batches:
        return results

    with ThreadPoolExecutor(max_workers=min(max_workers, len(batches))) as executor:
        for batch_result in executor.map(_evaluate_batch, batches, [config] * len(batches)):
            results.update(batch_result)

    if len(results) != len(subject_ids):
        raise InvalidInputError("subject_ids must be unique")

    logger.debug(
        "Evaluated %s subjects for %s in %s batches",
        len(subject_ids),
        config.flag_key,
        len(batches),
    )
    return results


def rollout_distribution(config, population=DEFAULT_POPULATION, max_workers=DEFAULT_MAX_WORKERS,
                         batch_size=DEFAULT_BATCH_SIZE):
    """Enabled count/percentage for a synthetic population."""
    subject_ids = generate_subject_ids(population)
    decisions = evaluate_population(subject_ids, config, max_workers=max_workers, batch_size=batch_size)
    enabled_count = sum(1 for enabled in decisions.values() if enabled)
    enabled_percentage = round(enabled_count / population * 100, 2) if population else 0.0
    target = float(config.percentage) if config.enabled else 0.0

    return {
        "flag_key": config.flag_key,
        "seed": config.seed,
        "enabled": config.enabled,
        "target_percentage": target,
        "population": population,
        "enabled_count": enabled_count,
        "enabled_percentage": enabled_percentage,
        "deviation": round(enabled_percentage - target, 2),
    }


def pearson_correlation(xs, ys):
    """Pearson coefficient for two equal-length 0/1 sequences.

    Returns 0.0 when either side has no variance.
    """
    n = len(xs)
    if n != len(ys):
        raise InvalidInputError("sequences must have the same length")
    if n == 0:
        return 0.0

    mean_x = sum(xs) / n
    mean_y = sum(ys) / n
    cov = sum((x - mean_x) * (y - mean_y) for x, y in zip(xs, ys))
    var_x = sum((x - mean_x) ** 2 for x in xs)
    var_y = sum((y - mean_y) ** 2 for y in ys)
    if var_x == 0 or var_y == 0:
        return 0.0
    return cov / math.sqrt(var_x * var_y)


def membership_correlation(config_a, config_b, population=DEFAULT_POPULATION,
                           max_workers=DEFAULT_MAX_WORKERS, batch_size=DEFAULT_BATCH_SIZE):
    """How strongly membership in one rollout predicts membership in another."""
    subject_ids = generate_subject_ids(population)
    decisions_a = evaluate_population(subject_ids, config_a, max_workers=max_workers, batch_size=batch_size)
    decisions_b = evaluate_population(subject_ids, config_b, max_workers=max_workers, batch_size=batch_size)

    xs = [1 if decisions_a[s] else 0 for s in subject_ids]
    ys = [1 if decisions_b[s] else 0 for s in subject_ids]

    return {
        "flag_a": config_a.flag_key,
        "flag_b": config_b.flag_key,
        "population": population,
        "enabled_a": sum(xs),
        "enabled_b": sum(ys),
        "enabled_both": sum(x * y for x, y in zip(xs, ys)),
        "correlation": round(pearson_correlation(xs, ys), 4),
    }


def _timed_call(evaluate, subject_id):
    try:
        evaluate(subject_id)
        return True
    except Exception as e:
        logger.debug(f"Load test evaluation failed for {subject_id}: {e}")
        return False


def run_load_test(evaluate, concurrency, max_workers=None):
    """Fire ``concurrency`` evaluations for user-0..user-N concurrently.

    ``evaluate`` is any callable taking a subject id; raising counts as a failure.
    """
    if concurrency <= 0:
        raise InvalidInputError("concurrency must be positive")

    subject_ids = [f"user-{i}" for i in range(concurrency)]
    start = time.perf_counter()
    with ThreadPoolExecutor(max_workers=max_workers or min(concurrency, 32)) as executor:
        outcomes = list(executor.map(lambda s: _timed_call(evaluate, s), subject_ids))
    elapsed_ms = (time.perf_counter() - start) * 1000

    successful = sum(1 for ok in outcomes if ok)
    failed = len(outcomes) - successful
    result = {
        "successful": successful,
        "failed": failed,
        "response_time_ms": round(elapsed_ms, 2),
        "success_rate": round(successful / len(outcomes) * 100, 1),
    }
    logger.info(
        "Load test: %s ok, %s failed, %.2fms",
        successful,
        failed,
        elapsed_ms,
    )
    return result
