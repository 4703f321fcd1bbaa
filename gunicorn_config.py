import os

bind = f"0.0.0.0:{os.environ.get('PORT', '5050')}"
worker_class = 'uvicorn.workers.UvicornWorker'

# WebSocket subscribers only receive broadcasts made in their own worker.
# With more than one worker, dashboards should poll /api/realtime/{channel}/events
# or listen on REALTIME_WEBHOOK_URL.
workers = int(os.environ.get('WEB_CONCURRENCY', '2'))

# Withdrawals wait on the distributor row lock; keep the request timeout generous
timeout = int(os.environ.get('GUNICORN_TIMEOUT', '60'))
graceful_timeout = 30
keepalive = 5

max_requests = int(os.environ.get('GUNICORN_MAX_REQUESTS', '2000'))
max_requests_jitter = 100

accesslog = '-'
errorlog = '-'
loglevel = os.environ.get('LOG_LEVEL', 'info').lower()

# Migrations run once in the master before workers fork
preload_app = os.environ.get('RUN_MIGRATIONS', 'False').lower() == 'true'


def when_ready(server):
    server.log.info(f"MaxPulse backend listening on {bind} with {workers} worker(s)")


def post_fork(server, worker):
    server.log.info(f"Worker {worker.age} started (pid: {worker.pid})")


def worker_abort(worker):
    """Called when a worker is killed for exceeding the timeout."""
    worker.log.warning(f"Worker timed out (pid: {worker.pid}); a request may have been rolled back")
