"""
Consul service registration for services that replay events on startup
"""
from .config import RegistrarConfig
from .errors import (
    CheckRegistrationError,
    ClientCreationError,
    ConfigurationError,
    DeregistrationError,
    ReadinessTimeoutError,
    RegistrarError,
    RegistrarStateError,
    ServiceRegistrationError,
)
from .health import SystemHealth
from .models import HealthCheckDescriptor, RegistrationState, ServiceDescriptor
from .registrar import Registrar

__version__ = '0.1.0'
__all__ = [
    'Registrar',
    'RegistrarConfig',
    'SystemHealth',
    'ServiceDescriptor',
    'HealthCheckDescriptor',
    'RegistrationState',
    'RegistrarError',
    'ConfigurationError',
    'ClientCreationError',
    'ServiceRegistrationError',
    'CheckRegistrationError',
    'DeregistrationError',
    'ReadinessTimeoutError',
    'RegistrarStateError',
]
