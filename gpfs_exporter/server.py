"""
HTTP surface of the exporter.

``GET <telemetry path>`` runs one scrape through a Dispatcher and returns
the text exposition format. Query parameters:

- ``target=<name>`` selects a Target from the configuration file; the
  default Target is used when absent. An unknown name is a 404.
- ``collect[]=<name>`` (repeatable) limits the scrape to those collectors.

``GET /`` returns a small landing page. Every other path is a 404.
"""

import platform
import socket
from http.server import ThreadingHTTPServer
from typing import Dict, Iterable, List, Optional, Tuple
from urllib.parse import parse_qs, urlparse

from prometheus_client import CollectorRegistry, MetricsHandler, generate_latest
from prometheus_client import REGISTRY as DEFAULT_REGISTRY
from prometheus_client.core import GaugeMetricFamily
from prometheus_client.exposition import choose_encoder

from gpfs_exporter.config import DEFAULT_TELEMETRY_PATH, EXPORTER_SUBSYSTEM, VERSION
from gpfs_exporter.dispatcher import Dispatcher
from gpfs_exporter.errors import ConfigurationError, ErrorCode
from gpfs_exporter.gpfs_logging import get_logger
from gpfs_exporter.metrics import build_name
from gpfs_exporter.targets import Targets

LANDING_PAGE = """<html>
<head><title>GPFS Exporter</title></head>
<body>
<h1>GPFS Exporter</h1>
<p><a href="{path}">Metrics</a></p>
</body>
</html>
"""


def parse_listen_address(address: str) -> Tuple[str, int]:
    """
    Split ``[host]:port`` into a bind tuple.

    ``:9303`` binds every interface. IPv6 hosts are written in brackets,
    ``[::1]:9303``.

    Raises:
        ConfigurationError: The address has no valid port.
    """
    host, sep, port = address.rpartition(":")
    if not sep or not port.isdigit():
        raise ConfigurationError(f"Invalid listen address {address}", parameter="--web.listen-address",
                                 expected="[host]:port", actual=address, code=ErrorCode.CONFIG_INVALID_VALUE)
    return host.strip("[]"), int(port)


class ExporterMetricsCollector:
    """Exporter self metrics: the default prometheus_client registry plus build info."""

    def __init__(self, registry=DEFAULT_REGISTRY):
        self.registry = registry

    def describe(self):
        return []

    def collect(self):
        yield from self.registry.collect()
        build_info = GaugeMetricFamily(
            build_name(EXPORTER_SUBSYSTEM, "build_info"),
            "A metric with a constant '1' value labeled by version and pythonversion from which "
            "gpfs_exporter was built.",
            labels=["version", "pythonversion"],
        )
        build_info.add_metric([VERSION, platform.python_version()], 1)
        yield build_info


class Exporter:
    """
    Everything a request needs to run a scrape.

    Args:
        collectors: Collector instances by name, built once at startup.
        default_enabled: Collectors run for Targets that list none.
        targets: Targets from the configuration file.
        telemetry_path: Path serving metrics.
        exporter_metrics: Include process/platform/python metrics.
    """

    def __init__(self, collectors: Dict[str, object], default_enabled: Iterable[str],
                 targets: Optional[Targets] = None, telemetry_path: str = DEFAULT_TELEMETRY_PATH,
                 exporter_metrics: bool = True, logger=None):
        self.collectors = collectors
        self.default_enabled = list(default_enabled)
        self.targets = targets if targets is not None else Targets()
        self.telemetry_path = telemetry_path
        self.exporter_metrics = ExporterMetricsCollector() if exporter_metrics else None
        self.logger = logger or get_logger("server")

    def registry_for(self, target_name: Optional[str] = None, only: Optional[List[str]] = None) -> CollectorRegistry:
        """
        Build a one-off registry for a request.

        Raises:
            ConfigurationError: ``target_name`` is not configured.
        """
        target = self.targets.get_target(target_name)
        registry = CollectorRegistry(auto_describe=False)
        registry.register(Dispatcher(self.collectors, target, default_enabled=self.default_enabled, only=only,
                                     logger=self.logger))
        if self.exporter_metrics is not None:
            registry.register(self.exporter_metrics)
        return registry


class ExporterHandler(MetricsHandler):
    """Request handler bound to an Exporter through ``factory``."""

    exporter: Exporter = None

    @classmethod
    def factory(cls, exporter: Exporter) -> type:
        return type("GPFSExporterHandler", (cls,), {"exporter": exporter})

    def do_GET(self):
        url = urlparse(self.path)
        params = parse_qs(url.query)
        if url.path == "/":
            self._send(200, "text/html; charset=utf-8",
                       LANDING_PAGE.format(path=self.exporter.telemetry_path).encode("utf-8"))
            return
        if url.path != self.exporter.telemetry_path:
            self._send(404, "text/plain; charset=utf-8", b"Not Found\n")
            return

        target = (params.get("target") or [None])[0]
        try:
            registry = self.exporter.registry_for(target, params.get("collect[]"))
        except ConfigurationError as e:
            self._send(404, "text/plain; charset=utf-8", f"{e.message}\n".encode("utf-8"))
            return

        encoder, content_type = choose_encoder(self.headers.get("Accept"))
        try:
            output = encoder(registry)
        except Exception:
            self.exporter.logger.exception("Error generating metric output")
            self.send_error(500, "error generating metric output")
            return
        self._send(200, content_type, output)

    def _send(self, status: int, content_type: str, body: bytes):
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):
        self.exporter.logger.debug(f"{self.address_string()} {format % args}")


class ExporterServer(ThreadingHTTPServer):
    daemon_threads = True


def make_server(exporter: Exporter, listen_address: str) -> ExporterServer:
    """
    Bind the HTTP server.

    Raises:
        ConfigurationError: The listen address is malformed.
        OSError: The address cannot be bound.
    """
    host, port = parse_listen_address(listen_address)
    server_class = ExporterServer
    if ":" in host:
        server_class = type("ExporterServer6", (ExporterServer,), {"address_family": socket.AF_INET6})
    return server_class((host, port), ExporterHandler.factory(exporter))


def render(exporter: Exporter, target: Optional[str] = None) -> bytes:
    """Render one scrape without HTTP, used by tests and debugging."""
    return generate_latest(exporter.registry_for(target))


__all__ = [
    "Exporter",
    "ExporterHandler",
    "ExporterMetricsCollector",
    "ExporterServer",
    "make_server",
    "parse_listen_address",
    "render",
]
