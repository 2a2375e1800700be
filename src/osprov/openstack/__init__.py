"""OpenStack SDK integration: connection, lookups and addresses."""
