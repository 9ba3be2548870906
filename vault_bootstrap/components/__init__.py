"""
Components Package for Vault Bootstrap

Contains the Vault administration client and the bootstrap component that
drives it through the discovery-processing-housekeeping pattern.
"""

from .vault_client import RequestResult, VaultClient
from .bootstrap_component import VaultBootstrapComponent

__all__ = ['RequestResult', 'VaultClient', 'VaultBootstrapComponent']
