"""Driver configuration schema."""

import os
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from osprov.openstack.matching import compile_reference

DEFAULT_PRIVATE_KEYS = ("id_rsa", "id_dsa")


def default_private_key_path() -> Optional[str]:
    """Return the first existing default SSH private key under ~/.ssh."""
    for key in DEFAULT_PRIVATE_KEYS:
        path = os.path.expanduser(os.path.join("~", ".ssh", key))
        if os.path.exists(path):
            return path
    return None


class DriverConfig(BaseModel):
    """OpenStack driver configuration.

    Keys not declared here are accepted and kept, the host framework passes its
    whole configuration bag through. Numbers given for string options (for
    example from TOML-parsed environment variables) are kept as strings.
    """

    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    name: Optional[str] = Field(None, description="Server name, generated when unset")
    key_name: Optional[str] = Field(None, description="Existing OpenStack keypair name")
    private_key_path: Optional[str] = Field(None, description="SSH private key path")
    public_key_path: Optional[str] = Field(None, description="SSH public key path")
    username: str = Field("root", description="SSH login user")
    port: int = Field(22, description="SSH port")
    use_ipv6: bool = Field(False, description="Select IPv6 addresses instead of IPv4")

    openstack_username: str = Field(..., description="OpenStack user name")
    openstack_api_key: str = Field(..., description="OpenStack password or API key")
    openstack_auth_url: str = Field(..., description="Keystone authentication URL")
    openstack_tenant: Optional[str] = Field(None, description="Project (tenant) name")
    openstack_region: Optional[str] = Field(None, description="Region name")
    openstack_service_name: Optional[str] = Field(None, description="Compute service name")
    openstack_network_name: Optional[str] = Field(
        None, description="Network whose first address is used as hostname"
    )

    floating_ip_pool: Optional[str] = Field(None, description="Pool to take a floating IP from")
    floating_ip: Optional[str] = Field(None, description="Specific floating IP to attach")

    image_ref: str = Field(..., description="Image id, name or /regex/flags")
    flavor_ref: str = Field(..., description="Flavor id, name or /regex/flags")
    metadata: Optional[dict[str, str]] = Field(None, description="Server metadata")

    disable_ssl_validation: bool = Field(False, description="Skip TLS peer verification")
    server_wait_timeout: int = Field(600, description="Seconds to wait for ACTIVE status")
    ssh_wait_timeout: int = Field(600, description="Seconds to wait for sshd")
    ssh_wait_interval: float = Field(3, description="Seconds between sshd probes")

    @field_validator("image_ref", "flavor_ref")
    @classmethod
    def _check_reference(cls, value: str) -> str:
        if value.startswith("/"):
            compile_reference(value)
        return value

    @field_validator("private_key_path", "public_key_path", mode="before")
    @classmethod
    def _expand_path(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        return os.path.expanduser(str(value))

    @model_validator(mode="after")
    def _default_key_paths(self) -> "DriverConfig":
        if self.private_key_path is None:
            default_key = default_private_key_path()
            if default_key is not None:
                self.private_key_path = default_key
        if self.public_key_path is None and self.private_key_path is not None:
            self.public_key_path = self.private_key_path + ".pub"
        return self
