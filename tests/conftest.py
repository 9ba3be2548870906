#!/usr/bin/env python3
"""
Pytest configuration for vault-bootstrap tests.

This file contains shared fixtures and helpers for unit tests.
"""

import os
import sys
import json
import logging
import pytest
from unittest.mock import MagicMock

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../')))

from vault_bootstrap.config import SecretConfig


@pytest.fixture
def mock_logger():
    """Fixture providing a mock logger that won't output during tests."""
    logger = MagicMock(spec=logging.Logger)
    return logger


@pytest.fixture
def secret_config():
    """Fixture providing connection settings for a local secret store."""
    return SecretConfig(host='localhost', port=8200, protocol='http')


@pytest.fixture
def bootstrap_test_config():
    """Fixture providing a test configuration for VaultBootstrapComponent."""
    return {
        'component_id': 'vault-bootstrap-test',
        'secret_shares': 5,
        'secret_threshold': 3,
        'policies': {'app-read': 'path "secret/app/*" { capabilities = ["read"] }'},
        'kv_mount_point': 'secret',
        'kv_version': '1',
        'consul_mount_point': 'consul',
        'consul_default_lease_ttl': '1h'
    }


@pytest.fixture
def clean_vault_env(monkeypatch):
    """Remove VAULT_* variables so tests do not pick up the caller's environment."""
    for name in list(os.environ):
        if name.startswith('VAULT_'):
            monkeypatch.delenv(name, raising=False)
    yield monkeypatch
    # load_dotenv writes to os.environ directly
    for name in list(os.environ):
        if name.startswith('VAULT_'):
            os.environ.pop(name, None)


def make_response(status_code, body=None, text=None):
    """
    Build a fake requests.Response.

    Args:
        status_code: HTTP status to report
        body: Object returned by .json(); when None, .json() raises ValueError
        text: Raw body text (defaults to the JSON encoding of body)

    Returns:
        MagicMock standing in for requests.Response
    """
    response = MagicMock()
    response.status_code = status_code
    if body is None:
        response.json.side_effect = ValueError("Expecting value: line 1 column 1 (char 0)")
        response.text = text or ''
    else:
        response.json.return_value = body
        response.text = text if text is not None else json.dumps(body)
    return response
