"""
Cache package
"""

from .redis_cache import (
    rollout_cache,
    RedisCache,
    cache_rollout_report,
    get_cached_rollout_report,
    clear_rollout_cache
)

__all__ = [
    'rollout_cache',
    'RedisCache',
    'cache_rollout_report',
    'get_cached_rollout_report',
    'clear_rollout_cache'
]
