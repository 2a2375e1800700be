"""Global test configuration and fixtures."""

import logging
from types import SimpleNamespace
from unittest.mock import Mock

import pytest
import structlog

from osprov.config.driver_config import DriverConfig
from tests.fixtures.openstack_resources import make_resource


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Keep tests away from the user's environment and working directory."""
    for var in ("OSPROV_CONFIG_PATH", "OSPROV_CONFDIR", "OSPROV_STATEDIR", "OSPROV_LOGDIR"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("OSPROV_CONSOLE_ENABLED", "false")
    monkeypatch.chdir(tmp_path)


@pytest.fixture(autouse=True)
def restore_logging():
    """Undo logging configuration done by setup_logging during a test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers
    root.setLevel(level)
    structlog.reset_defaults()


@pytest.fixture
def key_pair(tmp_path):
    """A fake SSH key pair on disk."""
    private_key = tmp_path / "id_test"
    private_key.write_text("PRIVATE KEY")
    public_key = tmp_path / "id_test.pub"
    public_key.write_text("ssh-rsa AAAAB3Nza test@example\n")
    return str(private_key), str(public_key)


@pytest.fixture
def config_data(key_pair):
    """Minimal valid driver configuration."""
    private_key, public_key = key_pair
    return {
        "openstack_username": "tester",
        "openstack_api_key": "secret",
        "openstack_auth_url": "https://keystone.example.com:5000/v3",
        "openstack_tenant": "test-project",
        "image_ref": "ubuntu-22.04",
        "flavor_ref": "m1.small",
        "private_key_path": private_key,
        "public_key_path": public_key,
        "ssh_wait_timeout": 5,
        "ssh_wait_interval": 0,
    }


@pytest.fixture
def driver_config(config_data):
    return DriverConfig(**config_data)


@pytest.fixture
def server():
    """A created server as returned by the compute API."""
    return SimpleNamespace(
        id="srv-1234",
        name="default-ubuntu",
        admin_password="adminpass",
        addresses={
            "private": [
                {"version": 4, "addr": "10.0.0.5", "OS-EXT-IPS:type": "fixed"},
            ]
        },
    )


@pytest.fixture
def mock_client(server):
    """OpenStackClient double with a populated image and flavor catalog."""
    client = Mock()
    client.conn.image.images.return_value = iter(
        [
            make_resource("img-1", "centos-9"),
            make_resource("img-2", "ubuntu-22.04"),
        ]
    )
    client.compute.flavors.return_value = iter(
        [
            make_resource("1", "m1.tiny"),
            make_resource("2", "m1.small"),
        ]
    )
    client.compute.create_server.return_value = server
    client.compute.wait_for_server.side_effect = lambda srv, **kwargs: srv
    return client
