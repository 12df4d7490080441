"""Expose factory helpers for building connections."""

from .connections import HealthVaultConnectionFactory, get_connection_factory

__all__ = ["HealthVaultConnectionFactory", "get_connection_factory"]
