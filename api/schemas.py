"""
OpenAPI Schemas
Definiciones de esquemas para request/response de la API de rollout
"""

_flag_query_parameters = [
    {
        "name": "seed",
        "in": "query",
        "description": "Seed del rollout (por defecto ROLLOUT_<FLAG>_SEED)",
        "required": False,
        "schema": {"type": "string", "example": "seed-1"}
    },
    {
        "name": "percentage",
        "in": "query",
        "description": "Porcentaje 0-100 con precisión 0.01 (por defecto ROLLOUT_<FLAG>_PERCENT)",
        "required": False,
        "schema": {"type": "number", "minimum": 0, "maximum": 100, "example": 25}
    },
    {
        "name": "enabled",
        "in": "query",
        "description": "Interruptor maestro del flag",
        "required": False,
        "schema": {"type": "boolean", "example": True}
    }
]

_population_parameter = {
    "name": "population",
    "in": "query",
    "description": "Número de usuarios simulados (user-00000, user-00001, ...)",
    "required": False,
    "schema": {"type": "integer", "minimum": 1, "maximum": 100000, "example": 10000}
}

_error_responses = {
    "400": {"$ref": "#/components/responses/BadRequest"},
    "429": {"$ref": "#/components/responses/RateLimitExceeded"}
}

# ==================== ROLLOUT ====================

check_schema = {
    "tags": ["Rollout"],
    "summary": "Decisión de rollout para un sujeto",
    "description": "Calcula el bucket SHA-256 del sujeto y lo compara con el umbral del porcentaje.",
    "parameters": [
        {
            "name": "subject_id",
            "in": "query",
            "required": True,
            "schema": {"type": "string", "example": "user-00042"}
        },
        {
            "name": "flag_key",
            "in": "query",
            "required": True,
            "schema": {"type": "string", "example": "rollout-demo"}
        }
    ] + _flag_query_parameters,
    "responses": dict({
        "200": {
            "description": "Decisión calculada",
            "content": {
                "application/json": {
                    "schema": {
                        "type": "object",
                        "properties": {
                            "subject_id": {"type": "string", "example": "user-00042"},
                            "flag_key": {"type": "string", "example": "rollout-demo"},
                            "seed": {"type": "string", "example": "seed-1"},
                            "enabled": {"type": "boolean"},
                            "rollout_percent": {"type": "number", "example": 10},
                            "bucket": {"type": "integer", "example": 5921},
                            "threshold": {"type": "integer", "example": 1000},
                            "enabled_from_percent": {"type": "number", "example": 59.22},
                            "in_rollout": {"type": "boolean", "example": False}
                        }
                    }
                }
            }
        }
    }, **_error_responses)
}

bulk_schema = {
    "tags": ["Rollout"],
    "summary": "Decisiones de rollout en bloque",
    "description": "Evalúa hasta 10.000 sujetos en lotes sobre un pool de hilos.",
    "requestBody": {
        "required": True,
        "content": {
            "application/json": {
                "schema": {
                    "type": "object",
                    "required": ["flag_key", "subject_ids"],
                    "properties": {
                        "flag_key": {"type": "string", "example": "rollout-demo"},
                        "seed": {"type": "string", "example": "seed-1"},
                        "percentage": {"type": "number", "example": 50},
                        "enabled": {"type": "boolean", "example": True},
                        "subject_ids": {
                            "type": "array",
                            "maxItems": 10000,
                            "uniqueItems": True,
                            "items": {"type": "string"},
                            "example": ["user-1", "user-2"]
                        }
                    }
                }
            }
        }
    },
    "responses": dict({
        "200": {
            "description": "Decisiones por sujeto",
            "content": {
                "application/json": {
                    "schema": {
                        "type": "object",
                        "properties": {
                            "flag_key": {"type": "string"},
                            "rollout_percent": {"type": "number"},
                            "results": {
                                "type": "object",
                                "additionalProperties": {"type": "boolean"}
                            },
                            "enabled_count": {"type": "integer"},
                            "total": {"type": "integer"}
                        }
                    }
                }
            }
        }
    }, **_error_responses)
}

distribution_schema = {
    "tags": ["Rollout"],
    "summary": "Distribución del rollout",
    "description": "Porcentaje real de usuarios habilitados en una población simulada. Cache: 10 segundos.",
    "parameters": [
        {
            "name": "flag_key",
            "in": "query",
            "required": True,
            "schema": {"type": "string", "example": "rollout-demo"}
        },
        _population_parameter
    ] + _flag_query_parameters,
    "responses": dict({
        "200": {
            "description": "Informe de distribución",
            "content": {
                "application/json": {
                    "schema": {
                        "type": "object",
                        "properties": {
                            "flag_key": {"type": "string"},
                            "seed": {"type": "string"},
                            "enabled": {"type": "boolean"},
                            "target_percentage": {"type": "number", "example": 25.0},
                            "population": {"type": "integer", "example": 10000},
                            "enabled_count": {"type": "integer"},
                            "enabled_percentage": {"type": "number"},
                            "deviation": {"type": "number"},
                            "cached": {"type": "boolean"}
                        }
                    }
                }
            }
        }
    }, **_error_responses)
}

correlation_schema = {
    "tags": ["Rollout"],
    "summary": "Correlación entre dos flags",
    "description": "Coeficiente de Pearson de la pertenencia a dos rollouts con el mismo seed y porcentaje.",
    "parameters": [
        {"name": "flag_a", "in": "query", "required": True, "schema": {"type": "string", "example": "a"}},
        {"name": "flag_b", "in": "query", "required": True, "schema": {"type": "string", "example": "b"}},
        _population_parameter
    ] + _flag_query_parameters,
    "responses": dict({
        "200": {
            "description": "Informe de correlación",
            "content": {
                "application/json": {
                    "schema": {
                        "type": "object",
                        "properties": {
                            "flag_a": {"type": "string"},
                            "flag_b": {"type": "string"},
                            "population": {"type": "integer"},
                            "enabled_a": {"type": "integer"},
                            "enabled_b": {"type": "integer"},
                            "enabled_both": {"type": "integer"},
                            "correlation": {"type": "number", "example": -0.0041},
                            "cached": {"type": "boolean"}
                        }
                    }
                }
            }
        }
    }, **_error_responses)
}

cache_stats_schema = {
    "tags": ["Cache"],
    "summary": "Estadísticas de la caché de informes",
    "responses": {
        "200": {
            "description": "Hit rate y contadores de Redis",
            "content": {
                "application/json": {
                    "schema": {
                        "type": "object",
                        "properties": {
                            "available": {"type": "boolean"},
                            "hits": {"type": "integer"},
                            "misses": {"type": "integer"},
                            "hit_rate": {"type": "number", "example": 0.75}
                        }
                    }
                }
            }
        }
    }
}
