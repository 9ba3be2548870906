#!/usr/bin/env python3
"""
Vault API Payload Types

TypedDict definitions for the request and response bodies exchanged with
the secret store, plus the API paths and engine identifiers used by the
bootstrap client.
"""

from typing import Any, Dict, List, Literal, NotRequired, Optional, TypedDict

# API paths
HEALTH_API = "/v1/sys/health"
INIT_API = "/v1/sys/init"
UNSEAL_API = "/v1/sys/unseal"
MOUNTS_API = "/v1/sys/mounts"
CREATE_POLICY_PATH = "/v1/sys/policies/acl/{name}"

# Secrets engine type tags
KEY_VALUE = "kv"
CONSUL = "consul"
KNOWN_SECRET_ENGINES = (KEY_VALUE, CONSUL)

# Health endpoint status codes
HEALTH_ACTIVE = 200
HEALTH_STANDBY = 429
HEALTH_DR_SECONDARY = 472
HEALTH_PERFORMANCE_STANDBY = 473
HEALTH_NOT_INITIALIZED = 501
HEALTH_SEALED = 503
HEALTH_UNSEALED_CODES = (HEALTH_ACTIVE, HEALTH_STANDBY, HEALTH_DR_SECONDARY, HEALTH_PERFORMANCE_STANDBY)


class RequestArgs(TypedDict):
    """Parameters of a single call through VaultClient.do_request."""
    auth_token: str
    method: Literal['GET', 'POST', 'PUT', 'DELETE']
    path: str
    operation_description: str
    expected_status_code: int
    json_object: NotRequired[Optional[Any]]
    body: NotRequired[Optional[bytes]]
    decode_response: NotRequired[bool]


class InitRequest(TypedDict):
    secret_shares: int
    secret_threshold: int


class InitResponse(TypedDict, total=False):
    """Response of the init endpoint, passed through unmodified."""
    root_token: str
    keys: List[str]
    keys_base64: List[str]


class UnsealRequest(TypedDict):
    key: str


class UnsealResponse(TypedDict, total=False):
    """Seal status reported after a key share is applied."""
    type: str
    sealed: bool
    t: int
    n: int
    progress: int
    nonce: str
    version: str


class SecretsEngineOptions(TypedDict, total=False):
    version: str


class SecretsEngineConfig(TypedDict, total=False):
    default_lease_ttl: str


class EnableSecretsEngineRequest(TypedDict):
    """Body of a mount request for a secrets engine."""
    type: str
    description: str
    options: NotRequired[SecretsEngineOptions]
    config: NotRequired[SecretsEngineConfig]


class UpdateACLPolicyRequest(TypedDict):
    policy: str


class MountMetadata(TypedDict, total=False):
    type: str
    description: str
    accessor: str
    options: Optional[Dict[str, Any]]
    config: Dict[str, Any]


class ListSecretEnginesResponse(TypedDict, total=False):
    """Snapshot of the mounted secrets engines keyed by mount path."""
    data: Dict[str, MountMetadata]
