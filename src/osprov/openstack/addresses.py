"""Floating IP attachment and server address selection."""

import ipaddress
import threading
from typing import Any, Optional

from osprov.config.driver_config import DriverConfig
from osprov.exceptions import AddressNotFoundError, NoFloatingIPError
from osprov.helpers.logger import get_logger
from osprov.openstack.client import OpenStackClient

logger = get_logger(__name__)

PUBLIC_NETWORK = "public"
FLOATING_TYPE = "floating"
ADDRESS_TYPE_KEY = "OS-EXT-IPS:type"


class AddressManager:
    """
    Attaches floating IPs to servers and picks the address the host connects to.

    Free-address selection from a pool is serialized process-wide: two drivers
    running in parallel threads must not pick the same free address.
    """

    _ip_pool_lock = threading.Lock()

    def __init__(self, client: OpenStackClient, config: DriverConfig) -> None:
        self._client = client
        self._config = config

    def attach_ip_from_pool(self, server: Any, pool: str) -> str:
        """
        Attach the first free floating IP from ``pool`` to ``server``.

        Args:
            server: Server resource to attach the address to
            pool: Name (or id) of the external network backing the pool

        Returns:
            The attached address

        Raises:
            NoFloatingIPError: If the pool has no unassigned address
        """
        with self._ip_pool_lock:
            logger.info("Attaching floating IP from <%s> pool", pool)
            free_addrs = self._free_addresses(pool)
            if not free_addrs:
                raise NoFloatingIPError(f"No available IPs in pool <{pool}>")
            return self.attach_ip(server, free_addrs[0])

    def _free_addresses(self, pool: str) -> list[str]:
        network = self._client.network.find_network(pool)
        if network is None:
            logger.debug("Floating IP pool network %s not found", pool)
            return []
        return [
            ip.floating_ip_address
            for ip in self._client.network.ips(floating_network_id=network.id)
            if ip.fixed_ip_address is None and ip.port_id is None
        ]

    def attach_ip(self, server: Any, ip: str) -> str:
        """
        Associate floating IP ``ip`` with ``server``.

        The address is also recorded under the server's ``public`` addresses so
        that address selection sees it without refetching the server.
        """
        logger.info("Attaching floating IP <%s>", ip)
        self._client.conn.add_ip_list(server, [ip])

        addresses = dict(server.addresses or {})
        public = list(addresses.get(PUBLIC_NETWORK) or [])
        public.append({"version": 4, "addr": ip, ADDRESS_TYPE_KEY: FLOATING_TYPE})
        addresses[PUBLIC_NETWORK] = public
        server.addresses = addresses
        return ip

    def get_ip(self, server: Any) -> str:
        """
        Pick the address the host should use to reach ``server``.

        With a configured network name, the first address on that network is
        returned. Otherwise public addresses are preferred over private ones,
        restricted to the configured IP version.

        Raises:
            AddressNotFoundError: If no suitable address exists
        """
        addresses = server.addresses or {}
        network_name = self._config.openstack_network_name
        if network_name:
            logger.debug("Using configured network: %s", network_name)
            entries = addresses.get(network_name) or []
            if not entries:
                raise AddressNotFoundError(f"No addresses on network <{network_name}>")
            return entries[0]["addr"]

        pub, priv = self.split_addresses(addresses)
        pub, priv = self.parse_ips(pub, priv)
        if pub:
            return pub[0]
        if priv:
            return priv[0]
        raise AddressNotFoundError("Could not find an IP")

    @staticmethod
    def split_addresses(addresses: dict[str, Any]) -> tuple[list[str], list[str]]:
        """Split a server's address map into public and private address lists."""
        pub: list[str] = []
        priv: list[str] = []
        for network, entries in addresses.items():
            for entry in entries or []:
                addr = entry.get("addr")
                if not addr:
                    continue
                if network == PUBLIC_NETWORK or entry.get(ADDRESS_TYPE_KEY) == FLOATING_TYPE:
                    pub.append(addr)
                else:
                    priv.append(addr)
        return pub, priv

    def parse_ips(self, pub: Any, priv: Any) -> tuple[list[str], list[str]]:
        """Keep only addresses of the configured IP version (IPv6 when use_ipv6)."""
        version = 6 if self._config.use_ipv6 else 4
        return (
            [ip for ip in _as_list(pub) if _ip_version(ip) == version],
            [ip for ip in _as_list(priv) if _ip_version(ip) == version],
        )


def _as_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return list(value)


def _ip_version(address: str) -> Optional[int]:
    try:
        return ipaddress.ip_address(address).version
    except ValueError:
        logger.warning("Ignoring malformed IP address %s", address)
        return None
