# bitfrac/monitoring.py
import time
import psutil
import socket
from prometheus_client import Counter, Gauge, Histogram, CollectorRegistry
from prometheus_client.exposition import make_wsgi_app
from wsgiref.simple_server import make_server, WSGIServer
from socketserver import ThreadingMixIn
import threading
import logging

logger = logging.getLogger(__name__)


# Threaded WSGI server so metric scrapes never block ledger calls
class ThreadingWSGIServer(ThreadingMixIn, WSGIServer):
    allow_reuse_address = True


class Monitor:
    def __init__(self, ledger, host="127.0.0.1", port=9090):
        self.ledger = ledger
        self.host = host
        self.port = port
        self.server = None
        self.thread = None

        # Isolated registry so several ledgers can live in one process
        self.registry = CollectorRegistry()

        self.op_counter = Counter('bitfrac_operations_total', 'Ledger operations by outcome',
                                  ['operation', 'status'], registry=self.registry)
        self.op_latency = Histogram('bitfrac_operation_latency_seconds', 'Time to execute one ledger operation',
                                    ['operation'], registry=self.registry)
        self.rejections = Counter('bitfrac_rejections_total', 'Rejected operations by error code',
                                  ['code'], registry=self.registry)
        self.asset_count = Gauge('bitfrac_assets', 'Registered assets', registry=self.registry)
        self.proposal_count = Gauge('bitfrac_proposals', 'Created proposals', registry=self.registry)
        self.event_count = Gauge('bitfrac_events', 'Events in the log', registry=self.registry)
        self.cpu_usage = Gauge('system_cpu_percent', 'Current CPU usage percent', registry=self.registry)
        self.memory_usage = Gauge('system_memory_percent', 'Current memory usage percent', registry=self.registry)

    def start_server(self):
        """Creates and starts the Prometheus HTTP server with retry logic."""
        app = make_wsgi_app(self.registry)

        max_retries = 5
        retry_delay = 2

        for attempt in range(max_retries):
            try:
                self.server = make_server(self.host, self.port, app, ThreadingWSGIServer)
                self.server.socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

                self.thread = threading.Thread(target=self.server.serve_forever)
                self.thread.daemon = True
                self.thread.start()
                logger.info(f"Prometheus server started on http://{self.host}:{self.port}")
                return
            except OSError as e:
                if e.errno == 98 and attempt < max_retries - 1:  # Address already in use
                    logger.warning(f"Port {self.port} in use, retrying in {retry_delay}s (attempt {attempt+1}/{max_retries})...")
                    time.sleep(retry_delay)
                else:
                    logger.error(f"Failed to bind metrics server to port {self.port}: {e}")
                    raise

    def stop_server(self):
        """Stops the HTTP server."""
        if self.server:
            self.server.shutdown()
            self.server.server_close()
            self.server = None
            logger.info("Prometheus server stopped.")

    def update(self):
        self.asset_count.set(self.ledger.last_asset_id())
        self.proposal_count.set(self.ledger.last_proposal_id())
        self.event_count.set(len(self.ledger.events))

        self.cpu_usage.set(psutil.cpu_percent())
        self.memory_usage.set(psutil.virtual_memory().percent)

    def record_tx(self, operation: str, status: str, latency: float):
        self.op_counter.labels(operation=operation, status=status).inc()
        self.op_latency.labels(operation=operation).observe(latency)

    def record_rejection(self, code: int):
        self.rejections.labels(code=str(code)).inc()
