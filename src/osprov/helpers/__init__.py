"""Shared helpers: logging setup and small utilities."""
