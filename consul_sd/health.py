"""
Health check endpoints polled by the Consul agent
"""
import logging
from typing import Tuple

import psutil
from flask import Blueprint, Flask, Response

# Set up logging
logger = logging.getLogger(__name__)

# Consul HTTP check semantics: 2xx passing, 429 warning, anything else critical
STATUS_OK = 200
STATUS_WARNING = 429
STATUS_CRITICAL = 500

LEVELS = {
    STATUS_OK: "OK",
    STATUS_WARNING: "WARNING",
    STATUS_CRITICAL: "CRITICAL",
}

GB = 1024 ** 3
MB = 1024 ** 2


class SystemHealth:
    """
    System health endpoints for Flask services

    Serves /health, /disk, /cpu and /ram under the given prefix. Thresholds
    match the notes attached to the registered checks.
    """
    def __init__(self, app=None, url_prefix: str = '/sd',
                 disk_path: str = '/',
                 free_critical: float = 5.0, free_warning: float = 10.0,
                 load_critical: float = 2.0, load_warning: float = 1.0):
        """
        Initialize the health endpoints

        Args:
            app: Flask application (optional)
            url_prefix: Prefix for the endpoints (default: /sd)
            disk_path: Mount point checked by the disk endpoint
            free_critical: Free disk/RAM percent at or below which the check is critical
            free_warning: Free disk/RAM percent at or below which the check warns
            load_critical: 1 minute load per core at or above which the check is critical
            load_warning: 1 minute load per core at or above which the check warns
        """
        self.disk_path = disk_path
        self.free_critical = free_critical
        self.free_warning = free_warning
        self.load_critical = load_critical
        self.load_warning = load_warning
        self.blueprint = Blueprint('sd', __name__, url_prefix=url_prefix)

        self.blueprint.route('/health')(self.health_check)
        self.blueprint.route('/disk')(self.disk_check)
        self.blueprint.route('/cpu')(self.cpu_check)
        self.blueprint.route('/ram')(self.ram_check)

        if app:
            self.init_app(app)

    def init_app(self, app) -> None:
        """
        Register the health blueprint with a Flask app

        Args:
            app: Flask application
        """
        app.register_blueprint(self.blueprint)
        app.extensions['system_health'] = self

    def _free_status(self, free_percent: float) -> int:
        if free_percent <= self.free_critical:
            return STATUS_CRITICAL
        if free_percent <= self.free_warning:
            return STATUS_WARNING
        return STATUS_OK

    def _load_status(self, load_per_core: float) -> int:
        if load_per_core >= self.load_critical:
            return STATUS_CRITICAL
        if load_per_core >= self.load_warning:
            return STATUS_WARNING
        return STATUS_OK

    @staticmethod
    def _respond(status: int, message: str) -> Tuple[Response, int]:
        text = f"{LEVELS[status]} - {message}"
        if status != STATUS_OK:
            logger.warning(text)
        return Response(text + "\n", mimetype='text/plain'), status

    def health_check(self):
        """The service router is able to answer"""
        return self._respond(STATUS_OK, "Service is up")

    def disk_check(self):
        """Free space on the checked mount point"""
        usage = psutil.disk_usage(self.disk_path)
        free_percent = 100.0 - usage.percent
        status = self._free_status(free_percent)
        return self._respond(
            status,
            f"Free space: {usage.free / GB:.2f}GB ({free_percent:.2f}%)",
        )

    def cpu_check(self):
        """1, 5 and 15 minute load average"""
        cores = psutil.cpu_count() or 1
        load1, load5, load15 = psutil.getloadavg()
        status = self._load_status(load1 / cores)
        return self._respond(
            status,
            f"Load average: {load1:.2f}, {load5:.2f}, {load15:.2f} | Cores: {cores}",
        )

    def ram_check(self):
        """Available memory"""
        memory = psutil.virtual_memory()
        free_percent = memory.available * 100.0 / memory.total
        status = self._free_status(free_percent)
        return self._respond(
            status,
            f"Free space: {memory.available / MB:.0f}MB ({free_percent:.2f}%)",
        )


def create_app() -> Flask:
    """Create a Flask app serving only the health endpoints"""
    app = Flask(__name__)
    SystemHealth(app)
    return app
