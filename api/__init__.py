"""
API Documentation Package
Provides OpenAPI/Swagger documentation for the rollout API
"""

from .swagger_config import swagger_config, swagger_template
from .decorators import documentar_endpoints

__all__ = ['swagger_config', 'swagger_template', 'documentar_endpoints']
