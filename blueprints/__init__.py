"""
Blueprints package
"""

from .rollout import init_rollout_blueprint

__all__ = ['init_rollout_blueprint']
