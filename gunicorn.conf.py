"""
Gunicorn configuration for the Ruya API.

    gunicorn -c gunicorn.conf.py ruya.main:app

Env vars that override defaults:
  PORT     - TCP port to bind (default: 8000)
  WORKERS  - number of worker processes (default: 2)

Each worker keeps its own submission rate-limit counters, so the effective
per-address cap is RATE_LIMIT_MAX_SUBMISSIONS × WORKERS.

The rate-limit key is the first X-Forwarded-For hop, which any client can
set. Run behind a reverse proxy that overwrites the header, or set
TRUST_PROXY_HEADERS=false to key on the socket peer instead.
"""
import os

bind = f"0.0.0.0:{os.environ.get('PORT', '8000')}"

workers = int(os.environ.get("WORKERS", "2"))

# Uvicorn's ASGI event loop inside Gunicorn's process manager.
worker_class = "uvicorn.workers.UvicornWorker"

keepalive = 5

# Store calls are bounded by STORE_TIMEOUT_SECONDS; this is the backstop.
timeout = 60

# Application logs are structlog JSON on stdout; keep gunicorn's there too.
loglevel = os.environ.get("LOG_LEVEL", "info").lower()
accesslog = "-"
errorlog = "-"
access_log_format = '%(h)s "%(r)s" %(s)s %(b)sB %(D)sµs'

graceful_timeout = 30
