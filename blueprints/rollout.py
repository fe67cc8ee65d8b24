"""
Blueprint para rutas de rollout (decisiones, distribución, correlación)
"""

from flask import Blueprint, request, jsonify
import logging
import time

from core.feature_flags import InvalidInputError, rollout_threshold_percentage
from core.rollout_config import RolloutConfig, load_rollout_config, get_int_setting
from core.rollout_simulator import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_MAX_WORKERS,
    DEFAULT_POPULATION,
    evaluate_population,
    membership_correlation,
    rollout_distribution,
)

logger = logging.getLogger(__name__)

rollout_bp = Blueprint('rollout', __name__, url_prefix='/api/rollout')

MAX_BULK_SUBJECTS = 10_000
MAX_POPULATION = 100_000


def _config_from(values, flag_key):
    """Env config for the flag, overridden by explicit seed/percentage/enabled"""
    base = load_rollout_config(flag_key)
    seed = values.get('seed')
    percentage = values.get('percentage')
    enabled = values.get('enabled')
    if enabled is not None and not isinstance(enabled, bool):
        enabled = str(enabled).strip().lower() in ('1', 'true', 'yes', 'on')
    return RolloutConfig(
        flag_key,
        base.percentage if percentage in (None, '') else percentage,
        seed=base.seed if seed is None else seed,
        enabled=base.enabled if enabled is None else enabled
    )


def _population_from(values):
    raw = values.get('population', DEFAULT_POPULATION)
    try:
        population = int(raw)
    except (TypeError, ValueError):
        raise InvalidInputError(f"population must be an integer, got {raw!r}") from None
    if population <= 0 or population > MAX_POPULATION:
        raise InvalidInputError(f"population must be between 1 and {MAX_POPULATION}")
    return population


def init_rollout_blueprint(limiter, metrics=None, cache=None):
    """Inicializa el blueprint con dependencias

    ``cache`` is the cache module (or anything exposing get_cached_rollout_report,
    cache_rollout_report and rollout_cache); ``metrics`` an AppMetrics instance.
    """
    max_workers = get_int_setting('ROLLOUT_MAX_WORKERS', DEFAULT_MAX_WORKERS)
    batch_size = get_int_setting('ROLLOUT_BATCH_SIZE', DEFAULT_BATCH_SIZE)
    report_ttl = get_int_setting('ROLLOUT_REPORT_CACHE_TTL', 10)

    def _reject(error):
        logger.warning(f"⚠️ Rollout request rejected: {error}")
        if metrics:
            metrics.track_evaluation_error('invalid_input')
        return jsonify({'error': str(error)}), 400

    def _cached_report(kind, configs, population, build):
        if cache:
            report = cache.get_cached_rollout_report(kind, configs, population)
            if report is not None:
                if metrics:
                    metrics.track_cache_hit(kind)
                return report, True
            if metrics:
                metrics.track_cache_miss(kind)

        start = time.perf_counter()
        report = build()
        if metrics:
            metrics.track_population_time(kind, time.perf_counter() - start)
        if cache:
            cache.cache_rollout_report(kind, configs, population, report, ttl=report_ttl)
        return report, False

    @rollout_bp.route('/check', methods=['GET'])
    @limiter.limit("120 per minute")
    def check():
        """Decisión de rollout para un sujeto"""
        subject_id = request.args.get('subject_id', '')
        flag_key = request.args.get('flag_key', '')
        try:
            config = _config_from(request.args, flag_key)
            bucket = config.bucket_for(subject_id)
            in_rollout = config.is_enabled_for(subject_id)
        except InvalidInputError as e:
            return _reject(e)

        logger.info(
            "Rollout %s for %s (bucket=%s, rollout=%s%%): %s",
            flag_key, subject_id, bucket, config.percentage, in_rollout
        )
        if metrics:
            metrics.track_evaluation(flag_key, in_rollout)
            metrics.update_target_percentage(flag_key, config.percentage)

        return jsonify({
            'subject_id': subject_id,
            'flag_key': flag_key,
            'seed': config.seed,
            'enabled': config.enabled,
            'rollout_percent': config.percentage,
            'bucket': bucket,
            'threshold': config.threshold,
            'enabled_from_percent': rollout_threshold_percentage(subject_id, flag_key, config.seed),
            'in_rollout': in_rollout
        }), 200

    @rollout_bp.route('/bulk', methods=['POST'])
    @limiter.limit("30 per minute")
    def bulk():
        """Decisiones de rollout para una lista de sujetos"""
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            data = {}
        flag_key = data.get('flag_key', '')
        subject_ids = data.get('subject_ids')
        try:
            if not isinstance(subject_ids, list) or not subject_ids:
                raise InvalidInputError("subject_ids must be a non-empty list")
            if len(subject_ids) > MAX_BULK_SUBJECTS:
                raise InvalidInputError(f"at most {MAX_BULK_SUBJECTS} subject_ids per request")
            config = _config_from(data, flag_key)
            decisions = evaluate_population(
                subject_ids, config, max_workers=max_workers, batch_size=batch_size
            )
        except InvalidInputError as e:
            return _reject(e)

        enabled_count = sum(1 for enabled in decisions.values() if enabled)
        if metrics:
            metrics.track_evaluation(flag_key, True, enabled_count)
            metrics.track_evaluation(flag_key, False, len(decisions) - enabled_count)

        return jsonify({
            'flag_key': flag_key,
            'rollout_percent': config.percentage,
            'results': decisions,
            'enabled_count': enabled_count,
            'total': len(decisions)
        }), 200

    @rollout_bp.route('/distribution', methods=['GET'])
    @limiter.limit("30 per minute")
    def distribution():
        """Distribución del rollout sobre una población simulada"""
        flag_key = request.args.get('flag_key', '')
        try:
            config = _config_from(request.args, flag_key)
            population = _population_from(request.args)
        except InvalidInputError as e:
            return _reject(e)

        report, from_cache = _cached_report(
            'distribution', [config], population,
            lambda: rollout_distribution(
                config, population=population, max_workers=max_workers, batch_size=batch_size
            )
        )
        return jsonify(dict(report, cached=from_cache)), 200

    @rollout_bp.route('/correlation', methods=['GET'])
    @limiter.limit("30 per minute")
    def correlation():
        """Correlación de pertenencia entre dos flags"""
        flag_a = request.args.get('flag_a', '')
        flag_b = request.args.get('flag_b', '')
        try:
            config_a = _config_from(request.args, flag_a)
            config_b = _config_from(request.args, flag_b)
            population = _population_from(request.args)
        except InvalidInputError as e:
            return _reject(e)

        report, from_cache = _cached_report(
            'correlation', [config_a, config_b], population,
            lambda: membership_correlation(
                config_a, config_b, population=population,
                max_workers=max_workers, batch_size=batch_size
            )
        )
        return jsonify(dict(report, cached=from_cache)), 200

    @rollout_bp.route('/cache-stats', methods=['GET'])
    def cache_stats():
        """Estadísticas de la caché de informes"""
        if not cache:
            return jsonify({'available': False}), 200
        return jsonify(cache.rollout_cache.get_stats()), 200

    return rollout_bp
