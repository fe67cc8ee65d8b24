"""
Prometheus metrics for rollout evaluation
"""

from prometheus_flask_exporter import PrometheusMetrics
from prometheus_client import Counter, Histogram, Gauge
import logging

logger = logging.getLogger(__name__)


class AppMetrics:
    """Clase para gestionar métricas de la aplicación"""

    def __init__(self, app=None):
        self.metrics = None
        self.app = app

        self.evaluaciones = Counter(
            'rollout_evaluations_total',
            'Total de decisiones de rollout calculadas',
            ['flag_key', 'result']
        )

        self.errores_evaluacion = Counter(
            'rollout_evaluation_errors_total',
            'Total de evaluaciones rechazadas',
            ['reason']
        )

        self.tiempo_poblacion = Histogram(
            'rollout_population_seconds',
            'Tiempo de evaluación de poblaciones completas',
            ['operation'],
            buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0]
        )

        self.cache_hits = Counter(
            'rollout_cache_hits_total',
            'Total de cache hits',
            ['tipo']
        )

        self.cache_misses = Counter(
            'rollout_cache_misses_total',
            'Total de cache misses',
            ['tipo']
        )

        self.porcentaje_objetivo = Gauge(
            'rollout_target_percentage',
            'Último porcentaje de rollout evaluado por flag',
            ['flag_key']
        )

        if app:
            self.init_app(app)

    def init_app(self, app):
        """Inicializa las métricas con la aplicación Flask"""
        self.app = app

        self.metrics = PrometheusMetrics(
            app,
            group_by='endpoint',
            buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0],
            path='/metrics',
            export_defaults=True,
            defaults_prefix='flask'
        )
        self.metrics.info('app_info', 'Application info', version='1.0.0')

        logger.info("✅ Prometheus metrics initialized")

    def track_evaluation(self, flag_key, in_rollout, count=1):
        """Registra decisiones de rollout"""
        result = 'enabled' if in_rollout else 'disabled'
        self.evaluaciones.labels(flag_key=flag_key, result=result).inc(count)

    def track_evaluation_error(self, reason='invalid_input'):
        """Registra una evaluación rechazada"""
        self.errores_evaluacion.labels(reason=reason).inc()

    def track_population_time(self, operation, duration):
        """Registra tiempo de evaluación de población"""
        self.tiempo_poblacion.labels(operation=operation).observe(duration)

    def track_cache_hit(self, tipo='distribution'):
        """Registra un cache hit"""
        self.cache_hits.labels(tipo=tipo).inc()

    def track_cache_miss(self, tipo='distribution'):
        """Registra un cache miss"""
        self.cache_misses.labels(tipo=tipo).inc()

    def update_target_percentage(self, flag_key, percentage):
        """Actualiza el porcentaje objetivo de un flag"""
        self.porcentaje_objetivo.labels(flag_key=flag_key).set(float(percentage))


# Instancia global
app_metrics = AppMetrics()


def init_metrics(app):
    """Initialize Prometheus metrics with the Flask app."""
    app_metrics.init_app(app)
    return app_metrics
