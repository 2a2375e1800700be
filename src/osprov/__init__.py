"""osprov - OpenStack provisioning driver for test-orchestration hosts.

The driver creates and destroys OpenStack servers on behalf of an external
orchestration host, attaches floating IP addresses and bootstraps SSH access
so the host can reach the machine afterwards.

Key Components:
    - driver: create/destroy entry points operating on a host state map
    - openstack: SDK connection, image/flavor matching, address handling
    - ssh: sshd polling and key bootstrap
    - config: driver configuration model and loader
    - app: command-line interface used by the host

Usage:
    >>> osprov create --instance default-ubuntu -c osprov_config.json
    >>> osprov destroy --instance default-ubuntu -c osprov_config.json
"""

__version__ = "0.1.0"
