"""
Exceptions raised by the service registrar
"""

from typing import Any, Dict, List, Optional


class RegistrarError(Exception):
    """Base exception for all registrar errors"""

    def __init__(
        self,
        message: str,
        error_code: str = "UNKNOWN_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging"""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(RegistrarError):
    """Invalid or incomplete registrar configuration"""

    def __init__(self, reason: str):
        super().__init__(
            message=f"Invalid configuration: {reason}",
            error_code="INVALID_CONFIGURATION",
            details={"reason": reason},
        )


class ClientCreationError(RegistrarError):
    """The Consul client could not be created or the agent is unreachable"""

    def __init__(self, address: str, reason: str):
        super().__init__(
            message=f"Error occurred while creating the Consul api client for {address}: {reason}",
            error_code="CLIENT_CREATION_FAILED",
            details={"address": address, "reason": reason},
        )


class ServiceRegistrationError(RegistrarError):
    """The service could not be registered"""

    def __init__(self, service_id: str, reason: str):
        super().__init__(
            message=(
                f"Error occurred while registering service {service_id} "
                f"to the service registry (Is consul running?): {reason}"
            ),
            error_code="SERVICE_REGISTRATION_FAILED",
            details={"service_id": service_id, "reason": reason},
        )


class CheckRegistrationError(RegistrarError):
    """One or more health checks could not be registered"""

    def __init__(self, service_id: str, failures: Dict[str, str]):
        self.failures = failures
        names = ", ".join(failures)
        super().__init__(
            message=f"Failed to register health checks for service {service_id}: {names}",
            error_code="CHECK_REGISTRATION_FAILED",
            details={"service_id": service_id, "failures": dict(failures)},
        )

    @property
    def failed_checks(self) -> List[str]:
        return list(self.failures)


class DeregistrationError(RegistrarError):
    """The service could not be removed from the registry"""

    def __init__(self, service_id: str, reason: str):
        super().__init__(
            message=f"Cannot deregister service {service_id} from the service registry: {reason}",
            error_code="DEREGISTRATION_FAILED",
            details={"service_id": service_id, "reason": reason},
        )


class ReadinessTimeoutError(RegistrarError):
    """The readiness signal did not fire in time"""

    def __init__(self, timeout: float):
        super().__init__(
            message=f"Events were not replayed within {timeout} seconds",
            error_code="READINESS_TIMEOUT",
            details={"timeout": timeout},
        )


class RegistrarStateError(RegistrarError):
    """An operation was attempted in the wrong lifecycle state"""

    def __init__(self, operation: str, state: str):
        super().__init__(
            message=f"Cannot {operation} while registrar is {state}",
            error_code="INVALID_STATE",
            details={"operation": operation, "state": state},
        )
