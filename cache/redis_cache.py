"""
Redis cache for rollout population reports
"""

import redis
import json
import logging
import os
import hashlib
import threading

logger = logging.getLogger(__name__)


class RedisCache:
    """ Redis-backed cache that degrades to no-op when Redis is down"""

    def __init__(self, host='localhost', port=6379, db=0, password=None):
        self.hits = 0
        self.misses = 0
        self._stats_lock = threading.Lock()
        try:
            self.redis_client = redis.Redis(
                host=host,
                port=port,
                db=db,
                password=password,
                decode_responses=True,
                socket_timeout=5,
                socket_connect_timeout=5,
                retry_on_timeout=True,
                health_check_interval=30
            )

            # Test connection
            self.redis_client.ping()
            logger.info(f"✅ Redis conectado: {host}:{port}")
            self.available = True

        except redis.RedisError as e:
            logger.warning(f"⚠️ Redis no disponible: {e}. Usando fallback.")
            self.redis_client = None
            self.available = False

    def get(self, key):
        """Obtiene valor de caché"""
        if not self.available:
            return None

        try:
            value = self.redis_client.get(key)
        except redis.RedisError as e:
            logger.error(f"Error obteniendo de cache: {e}")
            return None

        if value is None:
            with self._stats_lock:
                self.misses += 1
            logger.debug(f"❌ Cache MISS: {key}")
            return None

        with self._stats_lock:
            self.hits += 1
        logger.debug(f"🎯 Cache HIT: {key}")
        return json.loads(value)

    def set(self, key, value, ttl=300):
        """Guarda valor en caché

        Args:
            key: Clave del cache
            value: Valor JSON-serializable
            ttl: Tiempo de vida en segundos (default 5 minutos)
        """
        if not self.available:
            return False

        try:
            self.redis_client.setex(key, ttl, json.dumps(value))
            logger.debug(f"💾 Cache SET: {key} (TTL: {ttl}s)")
            return True
        except redis.RedisError as e:
            logger.error(f"Error guardando en cache: {e}")
            return False

    def delete_pattern(self, pattern):
        """Elimina todas las claves que coinciden con un patrón"""
        if not self.available:
            return 0

        try:
            keys = list(self.redis_client.scan_iter(match=pattern))
            if keys:
                count = self.redis_client.delete(*keys)
                logger.info(f"🗑️ Cache DEL pattern '{pattern}': {count} keys")
                return count
            return 0
        except redis.RedisError as e:
            logger.error(f"Error eliminando pattern de cache: {e}")
            return 0

    def get_stats(self):
        """Hit rate of this process plus server-side counters"""
        with self._stats_lock:
            hits, misses = self.hits, self.misses
        stats = {
            'available': self.available,
            'hits': hits,
            'misses': misses,
            'hit_rate': self._calculate_hit_rate(hits, misses)
        }
        if not self.available:
            return stats

        try:
            info = self.redis_client.info()
        except redis.RedisError as e:
            logger.error(f"Error obteniendo stats: {e}")
            stats['error'] = str(e)
            return stats

        stats.update({
            'used_memory_human': info.get('used_memory_human'),
            'connected_clients': info.get('connected_clients'),
            'keyspace_hits': info.get('keyspace_hits', 0),
            'keyspace_misses': info.get('keyspace_misses', 0),
        })
        return stats

    @staticmethod
    def _calculate_hit_rate(hits, misses):
        total = hits + misses
        if total == 0:
            return 0.0
        return round(hits / total, 4)


def cache_key_generator(*args, **kwargs):
    """Genera una clave única para caché basada en argumentos"""
    key_parts = [str(arg) for arg in args]
    key_parts.extend([f"{k}={v}" for k, v in sorted(kwargs.items())])
    key_string = ":".join(key_parts)

    # Hash para claves largas
    if len(key_string) > 200:
        key_string = hashlib.sha256(key_string.encode()).hexdigest()

    return key_string


# ==========================================
# FUNCIONES ESPECÍFICAS PARA ROLLOUTS
# ==========================================

def _report_key(kind, configs, population):
    parts = [
        cache_key_generator(c.flag_key, c.seed, c.threshold, c.enabled)
        for c in configs
    ]
    return f"rollout:{kind}:{'|'.join(parts)}:{population}"


def cache_rollout_report(kind, configs, population, report, ttl=10):
    """Cachea un informe de población (distribución, correlación)"""
    return rollout_cache.set(_report_key(kind, configs, population), report, ttl)


def get_cached_rollout_report(kind, configs, population):
    """Obtiene un informe de población cacheado"""
    return rollout_cache.get(_report_key(kind, configs, population))


def clear_rollout_cache():
    """Limpia toda la caché de rollouts"""
    return rollout_cache.delete_pattern("rollout:*")


# ==========================================
# INICIALIZACIÓN
# ==========================================

REDIS_HOST = os.getenv('REDIS_HOST', 'localhost')
REDIS_PORT = int(os.getenv('REDIS_PORT', '6379'))
REDIS_DB = int(os.getenv('REDIS_DB', '0'))
REDIS_PASSWORD = os.getenv('REDIS_PASSWORD', None)

rollout_cache = RedisCache(
    host=REDIS_HOST,
    port=REDIS_PORT,
    db=REDIS_DB,
    password=REDIS_PASSWORD
)
