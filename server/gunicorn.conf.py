"""Gunicorn configuration for production deployment.

Reads settings from environment variables (same as config.py).

Usage:
    gunicorn main:app -c gunicorn.conf.py
"""
import os

host = os.getenv("HOST", "0.0.0.0")
port = os.getenv("PORT", "3010")
log_level = os.getenv("LOG_LEVEL", "INFO").lower()
debug = os.getenv("DEBUG", "false").lower() == "true"

bind = f"{host}:{port}"

# Concurrent benchmark misses are only deduplicated inside one worker, and
# parallel runs skew each other's numbers, so default to a single worker.
workers = int(os.getenv("WORKERS", "1"))
worker_class = "uvicorn.workers.UvicornWorker"

# A cache miss blocks the request for four phases plus cleanup
phase_duration = float(os.getenv("BENCHMARK_PHASE_DURATION", "3"))
timeout = int(os.getenv("GUNICORN_TIMEOUT", str(max(120, int(phase_duration * 4 * 3)))))
graceful_timeout = int(os.getenv("GUNICORN_GRACEFUL_TIMEOUT", "30"))
keepalive = int(os.getenv("GUNICORN_KEEPALIVE", "5"))

# Restart workers periodically to prevent memory leaks
max_requests = int(os.getenv("GUNICORN_MAX_REQUESTS", "10000"))
max_requests_jitter = int(os.getenv("GUNICORN_MAX_REQUESTS_JITTER", "1000"))

accesslog = "-" if not debug else None
errorlog = "-"
loglevel = log_level

proc_name = "sqlite-benchmark"

# Preload app for faster worker startup (disable in debug for reload)
preload_app = not debug
