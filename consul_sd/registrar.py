"""
Registrar announcing this service to Consul once its events are replayed
"""

import logging
import threading
from typing import Callable, List, Optional

import consul

from .client import REGISTRY_ERRORS, create_client
from .config import RegistrarConfig
from .errors import (
    CheckRegistrationError,
    DeregistrationError,
    ReadinessTimeoutError,
    RegistrarError,
    RegistrarStateError,
    ServiceRegistrationError,
)
from .models import (
    HealthCheckDescriptor,
    RegistrationState,
    ServiceDescriptor,
    build_checks,
    build_service,
)

logger = logging.getLogger(__name__)


class Registrar:
    """
    Registers one service instance and its health checks with Consul

    A registrar is single use: each activation generates a new service id,
    and after deregistration the instance cannot be registered again.
    """

    def __init__(
        self,
        config: RegistrarConfig,
        client_factory: Callable[[RegistrarConfig], consul.Consul] = create_client,
    ):
        """
        Initialize the registrar

        Args:
            config: Service and registry configuration
            client_factory: Callable creating the Consul client from the config
        """
        self.config = config
        self.client_factory = client_factory
        self.client: Optional[consul.Consul] = None
        self.service: Optional[ServiceDescriptor] = None
        self.checks: List[HealthCheckDescriptor] = []
        self.deregistration_error: Optional[DeregistrationError] = None
        self.lock = threading.RLock()
        self._state = RegistrationState.UNREGISTERED
        self._activated = False
        self._hook_thread: Optional[threading.Thread] = None

    @property
    def state(self) -> RegistrationState:
        return self._state

    @property
    def service_id(self) -> Optional[str]:
        return self.service.service_id if self.service else None

    def _set_state(self, state: RegistrationState) -> None:
        with self.lock:
            logger.debug(f"Registrar state {self._state.value} -> {state.value}")
            self._state = state

    def activate(
        self,
        ready: threading.Event,
        shutdown: Optional[threading.Event] = None,
        timeout: Optional[float] = None,
    ) -> ServiceDescriptor:
        """
        Wait until the events were all replayed, then register the service

        Creates the client, registers the service and its health checks, and
        watches the shutdown event to deregister the service afterwards.

        Args:
            ready: Set once the startup event replay has completed
            shutdown: Set by the host process when it is going down
            timeout: Seconds to wait for readiness, forever when None

        Returns:
            The registered ServiceDescriptor

        Raises:
            ReadinessTimeoutError: If readiness is not signalled in time
            RegistrarError: If any registration step fails
        """
        with self.lock:
            if self._activated:
                raise RegistrarStateError("activate", self._state.value)
            self._activated = True

        # Block until the events were all replayed
        if not ready.wait(timeout):
            raise ReadinessTimeoutError(timeout)

        logger.info("The events were all replayed, trying to register to the server registry.")
        self._set_state(RegistrationState.REGISTERING)

        try:
            client = self.client_factory(self.config)
        except RegistrarError:
            self._set_state(RegistrationState.FAILED)
            raise
        self.client = client

        service = self.register(client)

        try:
            self.register_checks(client, service.service_id)
        except CheckRegistrationError:
            self._rollback(client, service.service_id)
            raise

        if shutdown is not None:
            self.install_deregistration_hook(client, service.service_id, shutdown)

        logger.info(
            "The service has been registered to the server registry successfully, "
            "the service is now ready to work."
        )
        return service

    def register(self, client: consul.Consul) -> ServiceDescriptor:
        """
        Register the service under a freshly generated id

        Args:
            client: Consul api client

        Returns:
            ServiceDescriptor that was registered

        Raises:
            ServiceRegistrationError: If the agent rejects or fails the call
        """
        service = build_service(self.config.name, self.config.port, self.config.tags)

        try:
            accepted = client.agent.service.register(
                service.name,
                service_id=service.service_id,
                port=service.port,
                tags=list(service.tags),
            )
        except REGISTRY_ERRORS as e:
            self._set_state(RegistrationState.FAILED)
            logger.error(f"Service registration failed: {str(e)}")
            raise ServiceRegistrationError(service.service_id, str(e)) from e

        if not accepted:
            self._set_state(RegistrationState.FAILED)
            raise ServiceRegistrationError(service.service_id, "agent rejected the registration")

        self.service = service
        self._set_state(RegistrationState.REGISTERED)
        logger.info(f"The service id is `{service.service_id}`.")
        return service

    def register_checks(
        self, client: consul.Consul, service_id: str
    ) -> List[HealthCheckDescriptor]:
        """
        Register the health checks of a service

        Every check is attempted; failures are collected and reported together.

        Args:
            client: Consul api client
            service_id: Id of the service owning the checks

        Returns:
            List of registered HealthCheckDescriptor objects

        Raises:
            CheckRegistrationError: If at least one check was not registered
        """
        checks = build_checks(
            service_id,
            self.config.url,
            self.config.check_interval,
            self.config.check_timeout,
        )
        failures = {}

        for check in checks:
            try:
                accepted = client.agent.check.register(
                    check.name,
                    check=consul.Check.http(check.http, check.interval, timeout=check.timeout),
                    notes=check.notes,
                    service_id=check.service_id,
                )
            except REGISTRY_ERRORS as e:
                logger.error(f"Failed to register health check {check.name}: {str(e)}")
                failures[check.name] = str(e)
                continue

            if not accepted:
                logger.error(f"Consul agent rejected health check {check.name}")
                failures[check.name] = "agent rejected the check"
            else:
                logger.debug(f"Registered health check {check.name} -> {check.http}")

        if failures:
            raise CheckRegistrationError(service_id, failures)

        self.checks = checks
        return checks

    def install_deregistration_hook(
        self, client: consul.Consul, service_id: str, shutdown: threading.Event
    ) -> threading.Thread:
        """
        Deregister the service once the shutdown event is set

        Args:
            client: Consul api client
            service_id: Id of the service to remove
            shutdown: Event set by the host process on interrupt

        Returns:
            The watcher thread
        """
        with self.lock:
            if self._hook_thread is not None:
                raise RegistrarStateError("install a second deregistration hook", self._state.value)

            def watch_shutdown():
                shutdown.wait()
                logger.info("Received shutdown signal, deregistering the service.")
                try:
                    self.deregister(client, service_id)
                except DeregistrationError as e:
                    self.deregistration_error = e

            self._hook_thread = threading.Thread(
                target=watch_shutdown, name="consul-sd-deregister", daemon=True
            )
            self._hook_thread.start()
            return self._hook_thread

    def deregister(self, client: consul.Consul, service_id: str) -> bool:
        """
        Remove the service from the registry

        Args:
            client: Consul api client
            service_id: Id of the service to remove

        Returns:
            True if this call deregistered the service, False if it already was

        Raises:
            DeregistrationError: If the agent call fails
        """
        with self.lock:
            if self._state in (RegistrationState.DEREGISTERING, RegistrationState.DEREGISTERED):
                return False
            if self._state != RegistrationState.REGISTERED:
                raise RegistrarStateError("deregister", self._state.value)
            self._state = RegistrationState.DEREGISTERING

        try:
            client.agent.service.deregister(service_id)
        except REGISTRY_ERRORS as e:
            self._set_state(RegistrationState.FAILED)
            logger.error(f"Cannot deregister the service from the service registry: {str(e)}")
            raise DeregistrationError(service_id, str(e)) from e

        self._set_state(RegistrationState.DEREGISTERED)
        logger.info("The service has been deregistered from the service registry successfully.")
        return True

    def wait_deregistered(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for the deregistration hook to finish

        Returns:
            True if the service is no longer registered

        Raises:
            DeregistrationError: If the hook failed to deregister the service
        """
        if self._hook_thread is not None:
            self._hook_thread.join(timeout)
        if self.deregistration_error is not None:
            raise self.deregistration_error
        return self._state == RegistrationState.DEREGISTERED

    def _rollback(self, client: consul.Consul, service_id: str) -> None:
        """Remove a service whose checks could not be registered"""
        logger.warning(f"Rolling back registration of service {service_id}")
        try:
            self.deregister(client, service_id)
        except DeregistrationError as e:
            self.deregistration_error = e
        self._set_state(RegistrationState.FAILED)
