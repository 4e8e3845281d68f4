"""
Registrar configuration from command line arguments and environment variables
"""

import argparse
import os
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Tuple
from urllib.parse import urlsplit

from .errors import ConfigurationError

DEFAULT_PORT = 8080
DEFAULT_CHECK_INTERVAL = "10s"
DEFAULT_CHECK_TIMEOUT = "1s"
DEFAULT_CONSUL_ADDR = "127.0.0.1:8500"


def parse_consul_addr(addr: str) -> Tuple[str, str, int]:
    """
    Split a Consul agent address into scheme, host and port

    Accepts the same forms as CONSUL_HTTP_ADDR: "host", "host:port" or
    "scheme://host:port".

    Returns:
        (scheme, host, port)
    """
    if "://" not in addr:
        addr = f"http://{addr}"

    parts = urlsplit(addr)
    if parts.scheme not in ("http", "https") or not parts.hostname:
        raise ConfigurationError(f"invalid Consul address {addr!r}")

    try:
        port = parts.port
    except ValueError:
        raise ConfigurationError(f"invalid Consul address {addr!r}") from None

    if port is None:
        port = 8501 if parts.scheme == "https" else 8500
    return parts.scheme, parts.hostname, port


def split_tags(values: Optional[Sequence[str]]) -> List[str]:
    """Flatten repeated and comma separated tag values, keeping order"""
    tags = []
    for value in values or []:
        for tag in value.split(","):
            tag = tag.strip()
            if tag:
                tags.append(tag)
    return tags


@dataclass
class RegistrarConfig:
    """Everything the registrar needs to announce this service"""

    name: str
    port: int = DEFAULT_PORT
    tags: List[str] = field(default_factory=list)
    url: str = ""
    check_interval: str = DEFAULT_CHECK_INTERVAL
    check_timeout: str = DEFAULT_CHECK_TIMEOUT
    consul_scheme: str = "http"
    consul_host: str = "127.0.0.1"
    consul_port: int = 8500
    consul_token: Optional[str] = None

    def __post_init__(self):
        if not self.url:
            self.url = f"http://127.0.0.1:{self.port}"
        self.url = self.url.rstrip("/")

    @property
    def consul_address(self) -> str:
        return f"{self.consul_scheme}://{self.consul_host}:{self.consul_port}"

    def validate(self) -> "RegistrarConfig":
        """
        Check the configuration

        Raises:
            ConfigurationError: If a required value is missing or out of range
        """
        if not self.name:
            raise ConfigurationError("service name is required")
        if not 0 < self.port < 65536:
            raise ConfigurationError(f"port {self.port} is out of range")
        if not self.url.startswith(("http://", "https://")):
            raise ConfigurationError(f"url {self.url!r} must be an http(s) URL")
        if not self.check_interval or not self.check_timeout:
            raise ConfigurationError("check interval and timeout are required")
        return self

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "RegistrarConfig":
        """
        Build the configuration from environment variables

        Args:
            environ: Mapping to read instead of os.environ

        Returns:
            RegistrarConfig
        """
        env = os.environ if environ is None else environ
        scheme, host, consul_port = parse_consul_addr(
            env.get("CONSUL_HTTP_ADDR", DEFAULT_CONSUL_ADDR)
        )

        port_value = env.get("SERVICE_PORT", str(DEFAULT_PORT))
        try:
            port = int(port_value)
        except ValueError:
            raise ConfigurationError(f"invalid SERVICE_PORT {port_value!r}") from None

        return cls(
            name=env.get("SERVICE_NAME", ""),
            port=port,
            tags=split_tags([env.get("CONSUL_TAGS", "")]),
            url=env.get("SERVICE_URL", ""),
            check_interval=env.get("CONSUL_CHECK_INTERVAL", DEFAULT_CHECK_INTERVAL),
            check_timeout=env.get("CONSUL_CHECK_TIMEOUT", DEFAULT_CHECK_TIMEOUT),
            consul_scheme=scheme,
            consul_host=host,
            consul_port=consul_port,
            consul_token=env.get("CONSUL_HTTP_TOKEN") or None,
        )

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "RegistrarConfig":
        """Build the configuration from parsed command line arguments"""
        scheme, host, consul_port = parse_consul_addr(args.consul_addr)
        return cls(
            name=args.name,
            port=args.port,
            tags=split_tags(args.consul_tags),
            url=args.url or "",
            check_interval=args.consul_check_interval,
            check_timeout=args.consul_check_timeout,
            consul_scheme=scheme,
            consul_host=host,
            consul_port=consul_port,
            consul_token=args.consul_token,
        )


def build_parser(environ: Optional[Mapping[str, str]] = None) -> argparse.ArgumentParser:
    """
    Create the argument parser, using environment variables as defaults

    Args:
        environ: Mapping to read instead of os.environ
    """
    env = os.environ if environ is None else environ

    parser = argparse.ArgumentParser(
        prog="consul-sd",
        description="Register this service to Consul once its events are replayed",
    )
    parser.add_argument(
        "--name",
        default=env.get("SERVICE_NAME"),
        required="SERVICE_NAME" not in env,
        help="Service name advertised to the registry",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=env.get("SERVICE_PORT", str(DEFAULT_PORT)),
        help=f"Service port advertised to the registry (default: {DEFAULT_PORT})",
    )
    parser.add_argument(
        "--host",
        default=env.get("SERVICE_HOST", "0.0.0.0"),
        help="Address the health endpoints listen on",
    )
    parser.add_argument(
        "--consul-tags",
        action="append",
        dest="consul_tags",
        default=[env["CONSUL_TAGS"]] if env.get("CONSUL_TAGS") else None,
        help="Tag attached to the registration, repeatable or comma separated",
    )
    parser.add_argument(
        "--url",
        default=env.get("SERVICE_URL"),
        help="Base URL the registry uses to reach the health endpoints",
    )
    parser.add_argument(
        "--consul-check_interval",
        dest="consul_check_interval",
        default=env.get("CONSUL_CHECK_INTERVAL", DEFAULT_CHECK_INTERVAL),
        help=f"Health check interval (default: {DEFAULT_CHECK_INTERVAL})",
    )
    parser.add_argument(
        "--consul-check_timeout",
        dest="consul_check_timeout",
        default=env.get("CONSUL_CHECK_TIMEOUT", DEFAULT_CHECK_TIMEOUT),
        help=f"Health check timeout (default: {DEFAULT_CHECK_TIMEOUT})",
    )
    parser.add_argument(
        "--consul-addr",
        dest="consul_addr",
        default=env.get("CONSUL_HTTP_ADDR", DEFAULT_CONSUL_ADDR),
        help=f"Consul agent address (default: {DEFAULT_CONSUL_ADDR})",
    )
    parser.add_argument(
        "--consul-token",
        dest="consul_token",
        default=env.get("CONSUL_HTTP_TOKEN"),
        help="ACL token sent to the Consul agent",
    )
    parser.add_argument(
        "--log-level",
        dest="log_level",
        default=env.get("LOG_LEVEL", "INFO"),
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )
    return parser


def describe(config: RegistrarConfig) -> Dict[str, object]:
    """Configuration summary safe to log (no token)"""
    return {
        "name": config.name,
        "port": config.port,
        "tags": list(config.tags),
        "url": config.url,
        "check_interval": config.check_interval,
        "check_timeout": config.check_timeout,
        "consul": config.consul_address,
    }
