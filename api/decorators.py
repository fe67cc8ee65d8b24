"""
Adjunta la documentación Swagger a los endpoints de los blueprints
"""

from flasgger import swag_from
from api.schemas import (
    check_schema,
    bulk_schema,
    distribution_schema,
    correlation_schema,
    cache_stats_schema
)

ENDPOINT_SCHEMAS = {
    'rollout.check': check_schema,
    'rollout.bulk': bulk_schema,
    'rollout.distribution': distribution_schema,
    'rollout.correlation': correlation_schema,
    'rollout.cache_stats': cache_stats_schema,
}


def documentar_endpoints(app):
    """
    Agrega documentación Swagger a los endpoints existentes
    Esta función debe llamarse después de registrar todos los blueprints
    """
    documented = []
    for endpoint, schema in ENDPOINT_SCHEMAS.items():
        if endpoint in app.view_functions:
            swag_from(schema)(app.view_functions[endpoint])
            documented.append(endpoint)
    return documented
