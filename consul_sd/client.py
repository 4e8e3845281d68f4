"""
Consul api client creation
"""

import logging

import consul
import requests

from .config import RegistrarConfig
from .errors import ClientCreationError

logger = logging.getLogger(__name__)

# Errors the Consul client surfaces for agent and transport failures
REGISTRY_ERRORS = (consul.ConsulException, requests.RequestException)


def create_client(config: RegistrarConfig) -> consul.Consul:
    """
    Create a Consul api client and make sure the agent answers

    Args:
        config: Registrar configuration holding the agent address and token

    Returns:
        Connected consul.Consul client

    Raises:
        ClientCreationError: If the agent address is invalid or unreachable
    """
    address = config.consul_address
    logger.debug(f"Creating Consul api client for {address}")

    try:
        client = consul.Consul(
            host=config.consul_host,
            port=config.consul_port,
            token=config.consul_token,
            scheme=config.consul_scheme,
        )
        client.agent.self()
    except REGISTRY_ERRORS as e:
        logger.error(f"Consul agent at {address} is not available: {str(e)}")
        raise ClientCreationError(address, str(e)) from e

    logger.info(f"Connected to Consul agent at {address}")
    return client
