"""
OpenStack driver invoked by the orchestration host.

The host calls ``create`` and ``destroy`` with a mutable state map which it
persists between calls. ``create`` records ``server_id``, ``hostname`` and
``ssh_key``; ``destroy`` removes ``server_id`` and ``hostname``.
"""

from abc import ABC, abstractmethod
from collections.abc import MutableMapping
from typing import Any, Callable, Optional

from keystoneauth1.exceptions import ClientException
from openstack.exceptions import SDKException

from osprov.config.driver_config import DriverConfig
from osprov.exceptions import ActionFailed, ConfigurationError, ResourceNotFoundError
from osprov.helpers.logger import get_logger
from osprov.naming import generate_name
from osprov.openstack.addresses import AddressManager
from osprov.openstack.client import OpenStackClient
from osprov.openstack.matching import find_matching
from osprov.ssh import SSHBootstrapper, wait_for_sshd

logger = get_logger(__name__)

State = MutableMapping[str, Any]

# Errors raised by the SDK or its HTTP/auth layer
CLOUD_ERRORS = (SDKException, ClientException)


class DriverBase(ABC):
    """Driver interface expected by the orchestration host."""

    @abstractmethod
    def create(self, state: State) -> None:
        """
        Create the instance and record how to reach it in ``state``.

        Args:
            state: Host-persisted state map, updated in place

        Raises:
            ActionFailed: If the instance cannot be created
        """

    @abstractmethod
    def destroy(self, state: State) -> None:
        """
        Destroy the instance recorded in ``state``, if any.

        Args:
            state: Host-persisted state map, updated in place

        Raises:
            ActionFailed: If the instance cannot be destroyed
        """


class OpenStackDriver(DriverBase):
    """Creates and destroys OpenStack servers for the orchestration host."""

    def __init__(
        self,
        config: DriverConfig,
        instance_name: str,
        client: Optional[OpenStackClient] = None,
        address_manager: Optional[AddressManager] = None,
        ssh_bootstrapper: Optional[SSHBootstrapper] = None,
        sshd_waiter: Callable[..., None] = wait_for_sshd,
    ) -> None:
        """
        Initialize the driver.

        Args:
            config: Driver configuration
            instance_name: Host-side instance name, base of generated server names
            client: OpenStack client (built from config when omitted)
            address_manager: Floating IP / address helper (built when omitted)
            ssh_bootstrapper: SSH key installer (built when omitted)
            sshd_waiter: Callable blocking until sshd answers
        """
        self.config = config
        self.instance_name = instance_name
        self._client = client or OpenStackClient(config)
        self._addresses = address_manager or AddressManager(self._client, config)
        self._ssh = ssh_bootstrapper or SSHBootstrapper(port=config.port)
        self._wait_for_sshd = sshd_waiter

    def create(self, state: State) -> None:
        try:
            self._create(state)
        except CLOUD_ERRORS as ex:
            raise ActionFailed(str(ex)) from ex

    def _create(self, state: State) -> None:
        if not self.config.name:
            self.config.name = generate_name(self.instance_name)

        server = self.create_server()
        state["server_id"] = server.id
        logger.info("OpenStack instance <%s> created.", server.id)

        # adminPass is only returned by the create call
        password = getattr(server, "admin_password", None)
        server = self._client.compute.wait_for_server(
            server, status="ACTIVE", wait=self.config.server_wait_timeout
        )
        logger.info("(server ready)")

        if self.config.floating_ip_pool:
            self._addresses.attach_ip_from_pool(server, self.config.floating_ip_pool)
        elif self.config.floating_ip:
            self._addresses.attach_ip(server, self.config.floating_ip)

        state["hostname"] = self._addresses.get_ip(server)
        state["ssh_key"] = self.config.private_key_path
        self._wait_for_sshd(
            state["hostname"],
            port=self.config.port,
            timeout=self.config.ssh_wait_timeout,
            interval=self.config.ssh_wait_interval,
        )
        logger.info("(ssh ready)")

        if self.config.key_name:
            logger.info("Using OpenStack keypair <%s>", self.config.key_name)
        logger.info("Using public SSH key <%s>", self.config.public_key_path)
        logger.info("Using private SSH key <%s>", self.config.private_key_path)
        if not self.config.key_name:
            self.do_ssh_setup(state, password)

    def create_server(self) -> Any:
        """
        Resolve image and flavor, then boot the server.

        Raises:
            ResourceNotFoundError: If image or flavor cannot be found
        """
        image = find_matching(self._client.conn.image.images(), self.config.image_ref)
        if image is None:
            raise ResourceNotFoundError("Image not found")
        logger.debug("Selected image: %s %s", image.id, image.name)

        flavor = find_matching(self._client.compute.flavors(), self.config.flavor_ref)
        if flavor is None:
            raise ResourceNotFoundError("Flavor not found")
        logger.debug("Selected flavor: %s %s", flavor.id, flavor.name)

        server_def: dict[str, Any] = {
            "name": self.config.name,
            "image_id": image.id,
            "flavor_id": flavor.id,
        }
        if self.config.key_name:
            server_def["key_name"] = self.config.key_name
        if self.config.metadata:
            server_def["metadata"] = self.config.metadata
        # Bootstrap through the cloud is not used: a public IP is not
        # guaranteed to exist on every deployment.
        return self._client.compute.create_server(**server_def)

    def do_ssh_setup(self, state: State, password: Optional[str]) -> None:
        """Install the configured public key on the server using its admin password."""
        if not self.config.public_key_path:
            raise ConfigurationError("public_key_path is required when key_name is not set")
        self._ssh.setup(
            state["hostname"],
            self.config.username,
            password,
            self.config.public_key_path,
        )

    def destroy(self, state: State) -> None:
        server_id = state.get("server_id")
        if server_id is None:
            return

        try:
            server = self._client.compute.find_server(server_id)
            if server is not None:
                self._client.compute.delete_server(server)
        except CLOUD_ERRORS as ex:
            raise ActionFailed(str(ex)) from ex

        logger.info("OpenStack instance <%s> destroyed.", server_id)
        state.pop("server_id", None)
        state.pop("hostname", None)
