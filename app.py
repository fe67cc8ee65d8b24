import os
import logging
from logging.handlers import RotatingFileHandler
from flask import Flask, jsonify
from dotenv import load_dotenv
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flasgger import Swagger
from flask_cors import CORS

import cache as report_cache
from api import swagger_config, swagger_template, documentar_endpoints
from blueprints import init_rollout_blueprint
from monitoring.prometheus_metrics import init_metrics

# ==========================================
# 1. CONFIGURACIÓN INICIAL Y LOGS
# ==========================================

load_dotenv()

# Logging con rotación (max 10MB, 5 backups)
log_handler = RotatingFileHandler(
    os.getenv('LOG_FILE', 'app.log'),
    maxBytes=10*1024*1024,
    backupCount=5,
    encoding='utf-8'
)
log_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))

logging.basicConfig(
    level=logging.INFO,
    handlers=[log_handler, logging.StreamHandler()]
)
logger = logging.getLogger(__name__)

app = Flask(__name__)

# 🔒 Rate Limiting
limiter = Limiter(
    app=app,
    key_func=get_remote_address,
    default_limits=["2000 per day", "500 per hour"],
    storage_uri=os.getenv("REDIS_URL", "memory://"),
    strategy="fixed-window",
    enabled=os.getenv("RATELIMIT_ENABLED", "true").lower() == "true"
)

# ==========================================
# 2. SWAGGER
# ==========================================
try:
    swagger = Swagger(app, config=dict(Swagger.DEFAULT_CONFIG, **swagger_config), template=swagger_template)
    logger.info("✅ Swagger UI habilitado en /api/docs")
except Exception as e:
    logger.warning(f"⚠️ No se pudo inicializar Swagger: {e}")

# ==========================================
# 3. MÉTRICAS PROMETHEUS
# ==========================================
try:
    metrics = init_metrics(app)
    logger.info("✅ Métricas Prometheus habilitadas en /metrics")
except Exception as e:
    metrics = None
    logger.warning(f"⚠️ No se pudieron inicializar métricas: {e}")

# ==========================================
# 4. CACHE REDIS
# ==========================================
if report_cache.rollout_cache.available:
    logger.info("✅ Cache Redis habilitada para informes de rollout")
else:
    logger.warning("⚠️ Redis no disponible, informes sin caché")

# ==========================================
# 5. BLUEPRINTS
# ==========================================
app.register_blueprint(init_rollout_blueprint(limiter, metrics=metrics, cache=report_cache))
documentar_endpoints(app)

# ==========================================
# 6. CORS
# ==========================================
try:
    CORS(app, resources={
        r"/api/*": {
            "origins": os.getenv("CORS_ORIGINS", "*").split(","),
            "methods": ["GET", "POST", "OPTIONS"],
            "allow_headers": ["Content-Type", "Authorization"]
        }
    })
    logger.info("✅ CORS habilitado para /api/*")
except Exception as e:
    logger.warning(f"⚠️ No se pudo configurar CORS: {e}")


@app.errorhandler(429)
def ratelimit_handler(e):
    return jsonify({'error': f'Rate limit exceeded: {e.description}'}), 429


@app.route('/health')
def health():
    """Health check endpoint"""
    return {'status': 'ok', 'version': '1.0.0', 'cache': report_cache.rollout_cache.available}, 200


# ==========================================
# 7. ARRANQUE
# ==========================================

if __name__ == '__main__':
    FLASK_ENV = os.getenv("FLASK_ENV", "production")
    DEBUG = FLASK_ENV == "development"

    logger.info(f"🚀 Rollout service online | Entorno: {FLASK_ENV} | Debug: {DEBUG}")
    app.run(host='0.0.0.0', port=8000, debug=DEBUG)
