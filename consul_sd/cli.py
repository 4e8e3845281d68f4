#!/usr/bin/env python3
"""
Serve the health endpoints and keep this service registered to Consul
"""

import logging
import signal
import sys
import threading
from typing import List, Optional

from werkzeug.serving import make_server

from .config import RegistrarConfig, build_parser, describe
from .errors import DeregistrationError, RegistrarError
from .health import create_app
from .registrar import Registrar

logger = logging.getLogger("consul_sd")

EXIT_FAILURE = 1
# Status after an interrupt-triggered deregistration
EXIT_INTERRUPTED = 1

DEREGISTER_TIMEOUT = 10


def setup_logging(level: str = "INFO") -> None:
    """Configure root logging for the command line entry point"""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler()]
    )


def install_signal_handlers(shutdown: threading.Event) -> None:
    """Set the shutdown event on SIGINT and SIGTERM"""
    def signal_handler(sig, frame):
        logger.info(f"Received termination signal {signal.Signals(sig).name}")
        shutdown.set()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)


def start_health_server(host: str, port: int):
    """
    Serve the health endpoints in a daemon thread

    Returns:
        The running werkzeug server, stop it with shutdown()
    """
    server = make_server(host, port, create_app(), threaded=True)
    thread = threading.Thread(target=server.serve_forever, name="consul-sd-health", daemon=True)
    thread.start()
    logger.info(f"Health endpoints listening on {host}:{port}/sd")
    return server


def log_error(error: RegistrarError) -> None:
    """Log a registrar error with its code and details"""
    logger.error(error.message)
    logger.debug(f"Error details: {error.to_dict()}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main function, returns the process exit status"""
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    try:
        config = RegistrarConfig.from_args(args).validate()
    except RegistrarError as e:
        log_error(e)
        return EXIT_FAILURE

    logger.info(f"Starting service registrar: {describe(config)}")

    ready = threading.Event()
    shutdown = threading.Event()
    install_signal_handlers(shutdown)

    try:
        server = start_health_server(args.host, config.port)
    except OSError as e:
        logger.error(f"Cannot serve the health endpoints on {args.host}:{config.port}: {str(e)}")
        return EXIT_FAILURE

    # Nothing to replay when running standalone
    ready.set()

    registrar = Registrar(config)
    try:
        registrar.activate(ready, shutdown)
    except RegistrarError as e:
        log_error(e)
        server.shutdown()
        return EXIT_FAILURE

    while not shutdown.wait(1):
        pass

    try:
        deregistered = registrar.wait_deregistered(DEREGISTER_TIMEOUT)
    except DeregistrationError as e:
        log_error(e)
        return EXIT_FAILURE
    finally:
        server.shutdown()

    if not deregistered:
        logger.error(
            f"Deregistration of service {registrar.service_id} did not complete "
            f"within {DEREGISTER_TIMEOUT} seconds"
        )
        return EXIT_FAILURE

    return EXIT_INTERRUPTED


if __name__ == "__main__":
    sys.exit(main())
