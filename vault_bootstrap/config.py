#!/usr/bin/env python3
"""
Configuration for the Vault Bootstrap Client

Provides SecretConfig (where the secret store lives and how to reach it) and
BootstrapConfig (what the bootstrap should do once connected). Values are
resolved in order: built-in defaults, an optional YAML file, a .env file and
the process environment. Command line flags are applied on top by the caller.
"""

import copy
import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

import yaml
from dotenv import load_dotenv

from vault_bootstrap.base_component import ComponentConfig
from vault_bootstrap.errors import VaultConfigError

TRUTHY = ('1', 'true', 'yes', 'on')
SETTINGS = ('host', 'port', 'protocol', 'path', 'namespace',
            'root_ca_cert_path', 'verify_ssl', 'timeout')


class SecretConfig:
    """Connection settings for the secret store."""

    def __init__(self, host: str = '127.0.0.1', port: int = 8200, protocol: str = 'http',
                 path: str = '', namespace: Optional[str] = None,
                 root_ca_cert_path: Optional[str] = None, verify_ssl: bool = True,
                 timeout: float = 30.0) -> None:
        self.host = host
        self.port = port
        self.protocol = protocol
        self.path = path
        self.namespace = namespace
        self.root_ca_cert_path = root_ca_cert_path
        self.verify_ssl = verify_ssl
        self.timeout = timeout

    def build_url(self, path: str = '') -> str:
        """
        Build a URL from protocol, host and port.

        A single trailing slash is removed from ``path``, so an empty path
        and ``/`` both yield ``protocol://host:port``.
        """
        path = path.removesuffix('/')
        if path and not path.startswith('/'):
            path = f"/{path}"
        return f"{self.protocol}://{self.host}:{self.port}{path}"

    @property
    def base_url(self) -> str:
        return self.build_url(self.path)

    @property
    def tls_verify(self) -> Any:
        """Value for the ``verify`` argument of requests."""
        if self.root_ca_cert_path:
            return self.root_ca_cert_path
        return self.verify_ssl

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> 'SecretConfig':
        config = cls()
        for key, value in data.items():
            if key not in SETTINGS:
                raise VaultConfigError(f"Unknown secret store setting: {key}")
            setattr(config, key, value)
        config.port = _as_int('port', config.port)
        config.verify_ssl = _as_bool(config.verify_ssl)
        config.timeout = _as_float('timeout', config.timeout)
        return config

    @classmethod
    def from_env(cls, base: Optional[Mapping[str, Any]] = None) -> 'SecretConfig':
        """
        Create a SecretConfig from ``base`` overridden by VAULT_* environment variables.

        Args:
            base: Optional settings, typically the ``vault`` section of a YAML file

        Returns:
            The resolved configuration
        """
        settings: Dict[str, Any] = dict(base or {})
        env_map = {
            'VAULT_HOST': 'host',
            'VAULT_PORT': 'port',
            'VAULT_PROTOCOL': 'protocol',
            'VAULT_PATH': 'path',
            'VAULT_NAMESPACE': 'namespace',
            'VAULT_CACERT': 'root_ca_cert_path',
            'VAULT_TIMEOUT': 'timeout',
        }
        for env_name, key in env_map.items():
            if (value := os.getenv(env_name)) is not None:
                settings[key] = value

        if (skip_verify := os.getenv('VAULT_SKIP_VERIFY')) is not None:
            settings['verify_ssl'] = skip_verify.strip().lower() not in TRUTHY

        return cls.from_mapping(settings)

    def __repr__(self) -> str:
        return f"SecretConfig(base_url={self.base_url!r}, namespace={self.namespace!r})"


class BootstrapConfig(ComponentConfig, total=False):
    """TypedDict for the bootstrap component configuration."""
    secret_shares: int
    secret_threshold: int
    root_token: Optional[str]
    unseal_keys: List[str]
    policies: Dict[str, str]
    kv_mount_point: str
    kv_version: str
    enable_consul: bool
    consul_mount_point: str
    consul_default_lease_ttl: str


DEFAULT_BOOTSTRAP_CONFIG: BootstrapConfig = {
    'component_id': 'vault-bootstrap',
    'secret_shares': 5,
    'secret_threshold': 3,
    'root_token': None,
    'unseal_keys': [],
    'policies': {},
    'kv_mount_point': 'secret',
    'kv_version': '1',
    'enable_consul': True,
    'consul_mount_point': 'consul',
    'consul_default_lease_ttl': '1h'
}


def read_yaml_config(config_path: str) -> Dict[str, Any]:
    """Read a YAML configuration file; the top level must be a mapping."""
    try:
        with open(config_path, 'r') as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise VaultConfigError(f"Cannot read configuration file {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise VaultConfigError(f"Configuration file {config_path} must contain a mapping")
    return data


def load_policies(policy_dir: str) -> Dict[str, str]:
    """
    Load ACL policy documents from ``*.hcl`` files.

    The policy name is the file name without its extension.
    """
    directory = Path(policy_dir)
    if not directory.is_dir():
        raise VaultConfigError(f"Policy directory does not exist: {policy_dir}")

    policies: Dict[str, str] = {}
    for policy_file in sorted(directory.glob('*.hcl')):
        try:
            policies[policy_file.stem] = policy_file.read_text(encoding='utf-8')
        except OSError as e:
            raise VaultConfigError(f"Cannot read policy file {policy_file}: {e}") from e
    return policies


def bootstrap_config_from_env(base: Optional[Mapping[str, Any]] = None) -> BootstrapConfig:
    """Merge defaults, ``base`` and the VAULT_TOKEN / VAULT_UNSEAL_KEYS environment."""
    config: BootstrapConfig = copy.deepcopy(DEFAULT_BOOTSTRAP_CONFIG) | dict(base or {})

    if token := os.getenv('VAULT_TOKEN'):
        config['root_token'] = token

    if keys := os.getenv('VAULT_UNSEAL_KEYS'):
        config['unseal_keys'] = [key.strip() for key in keys.split(',') if key.strip()]

    validate_key_shares(config)
    return config


def validate_key_shares(config: BootstrapConfig) -> None:
    """Coerce shares and threshold to integers and check 1 <= threshold <= shares."""
    config['secret_shares'] = _as_int('secret_shares', config['secret_shares'])
    config['secret_threshold'] = _as_int('secret_threshold', config['secret_threshold'])
    if config['secret_threshold'] < 1 or config['secret_threshold'] > config['secret_shares']:
        raise VaultConfigError(
            f"secret_threshold must be between 1 and secret_shares ({config['secret_shares']}), "
            f"got {config['secret_threshold']}"
        )


def load_config(config_path: Optional[str] = None,
                env_file: Optional[str] = None) -> Tuple[SecretConfig, BootstrapConfig]:
    """
    Resolve the complete configuration.

    Args:
        config_path: Optional YAML file with ``vault`` and ``bootstrap`` sections
        env_file: Optional .env file (defaults to a .env in the working directory)

    Returns:
        Tuple of (SecretConfig, BootstrapConfig)
    """
    load_dotenv(dotenv_path=env_file or Path.cwd() / '.env')

    file_data = read_yaml_config(config_path) if config_path else {}
    secret_config = SecretConfig.from_env(file_data.get('vault') or {})
    bootstrap_config = bootstrap_config_from_env(file_data.get('bootstrap') or {})
    return secret_config, bootstrap_config


def _as_int(name: str, value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise VaultConfigError(f"{name} must be an integer, got {value!r}") from e


def _as_float(name: str, value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise VaultConfigError(f"{name} must be a number, got {value!r}") from e


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in TRUTHY
    return bool(value)
