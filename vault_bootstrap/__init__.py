"""
Vault Bootstrap Package

Initializes, unseals and configures a Vault secret store using the
discovery-processing-housekeeping component pattern.
"""

from .base_component import BaseComponent
from .config import SecretConfig

__all__ = ['BaseComponent', 'SecretConfig']
