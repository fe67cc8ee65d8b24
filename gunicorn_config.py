import os

# Gunicorn config variables
# Evaluation is CPU-bound hashing; threads share one interpreter per worker
workers = int(os.getenv("GUNICORN_WORKERS", "2"))
bind = os.getenv("GUNICORN_BIND", "0.0.0.0:8000")
keepalive = 120
errorlog = "-"
accesslog = "-"
loglevel = "info"
worker_class = "gthread"
threads = 4
timeout = 60
wsgi_app = "app:app"

# Environment variables
raw_env = [
    "FLASK_ENV=production",
    "PYTHONUNBUFFERED=true",
]
