"""
OpenAPI/Swagger Configuration
Configuración para documentación de la API con flasgger
"""

# Configuración principal de Swagger
swagger_config = {
    "headers": [],
    "specs": [
        {
            "endpoint": 'apispec',
            "route": '/apispec.json',
            "rule_filter": lambda rule: True,
            "model_filter": lambda tag: True,
        }
    ],
    "static_url_path": "/flasgger_static",
    "swagger_ui": True,
    "specs_route": "/api/docs"
}

_error_body = {
    "application/json": {
        "schema": {
            "type": "object",
            "properties": {
                "error": {"type": "string"}
            }
        }
    }
}

# Plantilla base OpenAPI 3.0
swagger_template = {
    "openapi": "3.0.0",
    "info": {
        "title": "Rollout Bucketing API",
        "description": """
        Decisiones deterministas de rollout por porcentaje.

        ## Algoritmo
        - Campos (subject_id, flag_key, seed) codificados con prefijo de longitud
        - SHA-256, primeros 8 bytes big-endian, módulo 10.000 (precisión 0.01%)
        - Habilitado si bucket < round(porcentaje * 100)

        ## Rate Limiting
        - Decisión individual: 120 solicitudes/minuto
        - Bulk, distribución y correlación: 30 solicitudes/minuto

        ## Caché
        Los informes de población se cachean 10 segundos en Redis.
        """,
        "version": "1.0.0"
    },
    "servers": [
        {
            "url": "http://localhost:8000",
            "description": "Servidor de desarrollo"
        }
    ],
    "tags": [
        {
            "name": "Rollout",
            "description": "Decisiones y simulaciones de rollout"
        },
        {
            "name": "Cache",
            "description": "Estado de la caché de informes"
        }
    ],
    "components": {
        "responses": {
            "BadRequest": {
                "description": "Solicitud inválida",
                "content": _error_body
            },
            "RateLimitExceeded": {
                "description": "Límite de solicitudes excedido",
                "content": _error_body
            }
        }
    }
}
