"""
Production Server Configuration

Uvicorn workers under Gunicorn. Each worker builds its own services in the
application lifespan; with more than one worker set BROADCAST_BACKEND=redis
so catalog events reach live subscribers on every worker.
"""

import multiprocessing
import os

# Server socket
bind = os.getenv("BIND", "0.0.0.0:8000")
backlog = 2048

# Worker processes
workers = int(os.getenv("WORKERS", multiprocessing.cpu_count() * 2 + 1))
worker_class = "uvicorn.workers.UvicornWorker"
worker_connections = 1000
max_requests = 10000
max_requests_jitter = 1000
timeout = 120
keepalive = 5
graceful_timeout = 30

proc_name = "commerce-hub-api"

# Logging
errorlog = "-"
loglevel = os.getenv("LOG_LEVEL", "info").lower()
accesslog = None


def when_ready(server):
    """Warn when several workers share the in-process broadcast hub."""
    if workers > 1 and os.getenv("BROADCAST_BACKEND", "memory") != "redis":
        server.log.warning(
            "%d workers with the memory broadcast backend: live clients only see "
            "changes made through the worker they are connected to",
            workers,
        )
