"""
Service and health check descriptors submitted to the registry
"""

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence, Tuple


class RegistrationState(Enum):
    """Lifecycle of a service identity in the registry"""

    UNREGISTERED = "unregistered"
    REGISTERING = "registering"
    REGISTERED = "registered"
    DEREGISTERING = "deregistering"
    DEREGISTERED = "deregistered"
    FAILED = "failed"


def new_service_id() -> str:
    """Generate a fresh random identity for this process"""
    return str(uuid.uuid4())


@dataclass(frozen=True)
class ServiceDescriptor:
    """Information about the registered service"""

    service_id: str
    name: str
    port: int
    tags: Tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class HealthCheckDescriptor:
    """An HTTP health check bound to one service"""

    name: str
    service_id: str
    http: str
    interval: str
    timeout: str
    notes: Optional[str] = None


# (name, notes, path) of the checks every service registers
CHECK_DEFINITIONS: List[Tuple[str, Optional[str], str]] = [
    ("Service Router", None, "/sd/health"),
    ("Disk Usage", "Critical 5%, warning 10% free", "/sd/disk"),
    ("Load Average", "Critical load average 2, warning load average 1", "/sd/cpu"),
    ("RAM Usage", "Critical 5%, warning 10% free", "/sd/ram"),
]


def build_service(
    name: str, port: int, tags: Sequence[str], service_id: Optional[str] = None
) -> ServiceDescriptor:
    """
    Build the service descriptor

    Args:
        name: Service name advertised to the registry
        port: Port advertised to the registry
        tags: Tags attached to the registration, order preserved
        service_id: Identity to use, a new one is generated when omitted

    Returns:
        ServiceDescriptor
    """
    return ServiceDescriptor(
        service_id=service_id or new_service_id(),
        name=name,
        port=port,
        tags=tuple(tags),
    )


def build_checks(
    service_id: str, base_url: str, interval: str, timeout: str
) -> List[HealthCheckDescriptor]:
    """
    Build the health checks pointing at this process's /sd endpoints

    Args:
        service_id: Identity of the owning service
        base_url: URL the registry uses to reach this process
        interval: Polling interval in Consul duration format (e.g. 10s)
        timeout: Probe timeout in Consul duration format

    Returns:
        List of HealthCheckDescriptor objects in registration order
    """
    return [
        HealthCheckDescriptor(
            name=name,
            notes=notes,
            service_id=service_id,
            http=base_url + path,
            interval=interval,
            timeout=timeout,
        )
        for name, notes, path in CHECK_DEFINITIONS
    ]
