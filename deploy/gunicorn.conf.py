"""Gunicorn configuration for Classroom Insight.

Usage:
    gunicorn main:app -c deploy/gunicorn.conf.py

The service is I/O-bound: each dashboard request waits on two rounds of
spreadsheet reads (Apps Script latency is typically 1-10s, cold starts up to
30s) and does very little CPU work.
"""

import multiprocessing
import os

# ─── Server socket ──────────────────────────────────────────────

bind = os.getenv("BIND", "0.0.0.0:5000")
backlog = 2048

# ─── Worker processes ───────────────────────────────────────────
#
# Async workers: one per core is enough; each event loop holds many
# in-flight spreadsheet reads.

workers = int(os.getenv("WORKERS", min(multiprocessing.cpu_count(), 4)))
worker_class = "uvicorn.workers.UvicornWorker"

# ─── Timeouts ───────────────────────────────────────────────────
#
# Worst case per request: two fetch phases × (SHEET_TIMEOUT 30s + retries).

timeout = 120
graceful_timeout = 30
keepalive = 60

# ─── Worker recycling ──────────────────────────────────────────

max_requests = 5000
max_requests_jitter = 500

# ─── Logging ────────────────────────────────────────────────────

accesslog = "-"
errorlog = "-"
loglevel = os.getenv("LOG_LEVEL", "info")
access_log_format = (
    '%(h)s %(l)s %(u)s %(t)s "%(r)s" %(s)s %(b)s "%(f)s" %(D)sμs'
)

# ─── Process naming ─────────────────────────────────────────────

proc_name = "classroom-insight"

# ─── Server hooks ───────────────────────────────────────────────


def on_starting(server):
    """Called just before the master process is initialized."""
    server.log.info(
        "Starting Classroom Insight — workers=%d, timeout=%ds, bind=%s",
        workers,
        timeout,
        bind,
    )


def post_fork(server, worker):
    server.log.info("Worker spawned (pid: %s)", worker.pid)


def worker_exit(server, worker):
    server.log.info("Worker exit (pid: %s)", worker.pid)
