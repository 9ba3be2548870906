#!/usr/bin/env python3
"""
Unit tests for SecretConfig and the bootstrap configuration loaders.
"""

import os
import sys

import pytest

# Add the project root to the Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../../../')))

from vault_bootstrap.config import (
    SecretConfig,
    bootstrap_config_from_env,
    load_config,
    load_policies,
    read_yaml_config,
)
from vault_bootstrap.errors import VaultConfigError


@pytest.mark.parametrize("path, expected", [
    ("", "http://localhost:8080"),
    ("/", "http://localhost:8080"),
    ("/ping", "http://localhost:8080/ping"),
    ("/api/v1/ping/", "http://localhost:8080/api/v1/ping"),
    ("/api/v1/ping//", "http://localhost:8080/api/v1/ping/"),
])
def test_build_url(path, expected):
    config = SecretConfig(host='localhost', port=8080, protocol='http', path=path)
    assert config.build_url(config.path) == expected


def test_base_url_uses_configured_path():
    config = SecretConfig(host='vault.local', port=443, protocol='https', path='/vault/')
    assert config.base_url == 'https://vault.local:443/vault'


def test_tls_verify_prefers_ca_cert():
    assert SecretConfig().tls_verify is True
    assert SecretConfig(verify_ssl=False).tls_verify is False
    assert SecretConfig(root_ca_cert_path='/ca.pem', verify_ssl=False).tls_verify == '/ca.pem'


def test_from_env_overrides_base(clean_vault_env):
    clean_vault_env.setenv('VAULT_HOST', 'vault.internal')
    clean_vault_env.setenv('VAULT_PORT', '8201')
    clean_vault_env.setenv('VAULT_NAMESPACE', 'ops')
    clean_vault_env.setenv('VAULT_SKIP_VERIFY', 'true')

    config = SecretConfig.from_env({'host': 'ignored', 'protocol': 'https', 'timeout': 5})

    assert config.host == 'vault.internal'
    assert config.port == 8201
    assert config.protocol == 'https'
    assert config.namespace == 'ops'
    assert config.timeout == 5.0
    assert config.verify_ssl is False


@pytest.mark.parametrize("value, expected", [
    ("false", False),
    ("False", False),
    ("no", False),
    ("true", True),
    (False, False),
    (True, True),
])
def test_from_mapping_coerces_verify_ssl(value, expected):
    config = SecretConfig.from_mapping({'verify_ssl': value})
    assert config.verify_ssl is expected
    assert config.tls_verify is expected


def test_quoted_verify_ssl_in_yaml(clean_vault_env, tmp_path):
    config_file = tmp_path / 'bootstrap.yaml'
    config_file.write_text("vault:\n  verify_ssl: \"false\"\n")

    secret_config, _ = load_config(str(config_file), str(tmp_path / 'missing.env'))

    assert secret_config.verify_ssl is False


def test_health_url_for_local_store(secret_config):
    assert secret_config.base_url == 'http://localhost:8200'
    assert secret_config.build_url('/v1/sys/health') == 'http://localhost:8200/v1/sys/health'


def test_from_mapping_rejects_unknown_and_invalid_settings():
    with pytest.raises(VaultConfigError):
        SecretConfig.from_mapping({'hostname': 'x'})
    with pytest.raises(VaultConfigError):
        SecretConfig.from_mapping({'port': 'eighty'})


def test_bootstrap_config_defaults(clean_vault_env):
    config = bootstrap_config_from_env()

    assert config['secret_shares'] == 5
    assert config['secret_threshold'] == 3
    assert config['kv_mount_point'] == 'secret'
    assert config['root_token'] is None
    assert config['unseal_keys'] == []


def test_bootstrap_config_from_environment(clean_vault_env):
    clean_vault_env.setenv('VAULT_TOKEN', 's.token')
    clean_vault_env.setenv('VAULT_UNSEAL_KEYS', 'a, b,,c')

    config = bootstrap_config_from_env({'secret_shares': '3', 'secret_threshold': 2})

    assert config['root_token'] == 's.token'
    assert config['unseal_keys'] == ['a', 'b', 'c']
    assert config['secret_shares'] == 3


def test_bootstrap_config_defaults_are_not_shared(clean_vault_env):
    first = bootstrap_config_from_env()
    first['policies']['extra'] = 'doc'

    assert bootstrap_config_from_env()['policies'] == {}


@pytest.mark.parametrize("shares, threshold", [(5, 0), (3, 4)])
def test_bootstrap_config_threshold_validation(clean_vault_env, shares, threshold):
    with pytest.raises(VaultConfigError):
        bootstrap_config_from_env({'secret_shares': shares, 'secret_threshold': threshold})


def test_load_config_from_yaml(clean_vault_env, tmp_path):
    config_file = tmp_path / 'bootstrap.yaml'
    config_file.write_text(
        "vault:\n"
        "  host: vault.example\n"
        "  port: 8200\n"
        "  protocol: https\n"
        "bootstrap:\n"
        "  secret_shares: 3\n"
        "  secret_threshold: 2\n"
        "  kv_mount_point: kv\n"
        "  policies:\n"
        "    reader: 'path \"kv/*\" { capabilities = [\"read\"] }'\n"
    )
    env_file = tmp_path / '.env'
    env_file.write_text("VAULT_PORT=9200\n")

    secret_config, bootstrap_config = load_config(str(config_file), str(env_file))

    assert secret_config.base_url == 'https://vault.example:9200'
    assert bootstrap_config['kv_mount_point'] == 'kv'
    assert bootstrap_config['secret_threshold'] == 2
    assert 'reader' in bootstrap_config['policies']


def test_read_yaml_config_errors(tmp_path):
    with pytest.raises(VaultConfigError):
        read_yaml_config(str(tmp_path / 'missing.yaml'))

    not_a_mapping = tmp_path / 'list.yaml'
    not_a_mapping.write_text("- one\n- two\n")
    with pytest.raises(VaultConfigError):
        read_yaml_config(str(not_a_mapping))


def test_load_policies(tmp_path):
    (tmp_path / 'app-read.hcl').write_text('path "secret/app/*" { capabilities = ["read"] }')
    (tmp_path / 'admin.hcl').write_text('path "*" { capabilities = ["sudo"] }')
    (tmp_path / 'notes.txt').write_text('ignored')

    policies = load_policies(str(tmp_path))

    assert list(policies) == ['admin', 'app-read']
    assert policies['app-read'].startswith('path "secret/app/*"')


def test_load_policies_missing_directory(tmp_path):
    with pytest.raises(VaultConfigError):
        load_policies(str(tmp_path / 'nope'))
