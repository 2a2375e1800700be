"""OpenStack SDK connection wrapper."""

from typing import Any, Optional

import openstack
from openstack.connection import Connection

from osprov.config.driver_config import DriverConfig
from osprov.helpers.logger import get_logger

logger = get_logger(__name__)


class OpenStackClient:
    """Wrapper around an OpenStack SDK connection built from driver configuration."""

    def __init__(self, config: DriverConfig) -> None:
        """
        Initialize the client wrapper. The connection is opened on first use.

        Args:
            config: Driver configuration holding credentials and endpoint options
        """
        self._config = config
        self._conn: Optional[Connection] = None

    def connection_args(self) -> dict[str, Any]:
        """Build keyword arguments for ``openstack.connect``."""
        args: dict[str, Any] = {
            "auth_url": self._config.openstack_auth_url,
            "username": self._config.openstack_username,
            "password": self._config.openstack_api_key,
            "verify": not self._config.disable_ssl_validation,
        }
        optional = {
            "project_name": self._config.openstack_tenant,
            "region_name": self._config.openstack_region,
            "compute_service_name": self._config.openstack_service_name,
        }
        for key, value in optional.items():
            if value:
                args[key] = value
        return args

    @property
    def conn(self) -> Connection:
        """Get or create the OpenStack connection."""
        if self._conn is None:
            args = self.connection_args()
            if not args["verify"]:
                logger.warning("SSL certificate validation disabled for %s", args["auth_url"])
            logger.debug(
                "Connecting to OpenStack at %s (region: %s)",
                args["auth_url"],
                args.get("region_name", "default"),
            )
            self._conn = openstack.connect(**args)
        return self._conn

    @property
    def compute(self):
        """Compute (nova) service proxy."""
        return self.conn.compute

    @property
    def network(self):
        """Network (neutron) service proxy."""
        return self.conn.network

    def close(self) -> None:
        """Close the OpenStack connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None
