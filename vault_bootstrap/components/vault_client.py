#!/usr/bin/env python3
"""
Vault Administration Client

Every administrative call goes through VaultClient.do_request, which performs
exactly one HTTP exchange and reports the outcome as a RequestResult: the
status code obtained (0 when no response arrived) plus an error when the
status did not match what the operation expects.

The public operations (health_check, init, unseal, install_policy,
enable_*_secret_engine, check_secret_engine_installed) are thin declarative
calls into do_request and raise the carried error. health_check is the one
exception: any status obtained from the server is returned, since a 5xx from
the health endpoint describes the server state rather than a client failure.
"""

import logging
from typing import Any, Optional, Sequence
from urllib.parse import quote

import requests
import urllib3

from vault_bootstrap.config import SecretConfig
from vault_bootstrap.errors import (
    UnsealThresholdNotReachedError,
    UnsupportedSecretEngineError,
    VaultDecodeError,
    VaultError,
    VaultTransportError,
    VaultUnexpectedStatusError,
)
from vault_bootstrap.models import (
    CONSUL,
    CREATE_POLICY_PATH,
    HEALTH_API,
    INIT_API,
    KEY_VALUE,
    KNOWN_SECRET_ENGINES,
    MOUNTS_API,
    UNSEAL_API,
    EnableSecretsEngineRequest,
    InitRequest,
    InitResponse,
    ListSecretEnginesResponse,
    RequestArgs,
    UnsealRequest,
    UnsealResponse,
    UpdateACLPolicyRequest,
)

TOKEN_HEADER = 'X-Vault-Token'
NAMESPACE_HEADER = 'X-Vault-Namespace'


class RequestResult:
    """
    Outcome of one call through VaultClient.do_request.

    ``status_code`` is 0 when no response was obtained, in which case
    ``error`` is a VaultTransportError. ``data`` holds the decoded body and is
    only set when the status matched the expected one and decoding was asked for.
    """

    def __init__(self, status_code: int, data: Optional[Any] = None,
                 error: Optional[VaultError] = None) -> None:
        self.status_code = status_code
        self.data = data
        self.error = error

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def responded(self) -> bool:
        """False only when the request never got a response."""
        return self.status_code != 0

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise self.error

    def __repr__(self) -> str:
        return f"RequestResult(status_code={self.status_code}, error={self.error!r})"


class VaultClient:
    """
    Client for the bootstrap and administration endpoints of the secret store.

    The transport is a requests.Session; TLS verification, timeout and
    namespace come from the SecretConfig.
    """

    def __init__(self, config: SecretConfig, session: Optional[requests.Session] = None,
                 logger: Optional[logging.Logger] = None) -> None:
        self.config = config
        self.session = session or requests.Session()
        self.logger = logger or logging.getLogger(self.__class__.__name__)

        if not self.config.verify_ssl and not self.config.root_ca_cert_path:
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    def close(self) -> None:
        self.session.close()

    def do_request(self, args: RequestArgs) -> RequestResult:
        """
        Perform one HTTP exchange with the secret store.

        Args:
            args: Request parameters; at most one of ``json_object`` and ``body``

        Returns:
            RequestResult with the status code obtained and any error
        """
        json_object = args.get('json_object')
        body = args.get('body')
        if json_object is not None and body is not None:
            raise ValueError("Pass either json_object or body, not both")

        operation = args['operation_description']
        expected = args['expected_status_code']
        url = f"{self.config.base_url}{args['path']}"

        headers = {}
        if args['auth_token']:
            headers[TOKEN_HEADER] = args['auth_token']
        if self.config.namespace:
            headers[NAMESPACE_HEADER] = self.config.namespace

        try:
            response = self.session.request(
                args['method'],
                url,
                headers=headers,
                json=json_object,
                data=body,
                verify=self.config.tls_verify,
                timeout=self.config.timeout
            )
        except requests.exceptions.RequestException as e:
            self.logger.error(f"Unable to {operation}: {str(e)}")
            return RequestResult(0, error=VaultTransportError(operation, e))

        status_code = response.status_code
        if status_code != expected:
            self.logger.warning(f"{operation}: expected HTTP {expected}, got HTTP {status_code}")
            if response.text:
                self.logger.debug(f"Response: {response.text}")
            return RequestResult(
                status_code,
                error=VaultUnexpectedStatusError(operation, expected, status_code)
            )

        data = None
        if args.get('decode_response', False):
            try:
                data = response.json()
            except ValueError as e:
                self.logger.error(f"Unable to decode {operation} response: {str(e)}")
                return RequestResult(status_code, error=VaultDecodeError(operation, status_code, e))
            if not isinstance(data, dict):
                self.logger.error(f"Unable to decode {operation} response: expected a JSON object")
                return RequestResult(status_code, error=VaultDecodeError(
                    operation, status_code, TypeError(f"expected a JSON object, got {type(data).__name__}")))

        return RequestResult(status_code, data=data)

    def health_check(self) -> int:
        """
        Query the health endpoint.

        Returns:
            The HTTP status reported by the server, whatever its value

        Raises:
            VaultTransportError: the server could not be reached
        """
        result = self.do_request({
            'auth_token': '',
            'method': 'GET',
            'path': HEALTH_API,
            'operation_description': 'health check',
            'expected_status_code': 200
        })

        if not result.responded:
            result.raise_for_error()

        self.logger.info(f"vault health check HTTP status: StatusCode: {result.status_code}")
        return result.status_code

    def init(self, secret_threshold: int, secret_shares: int) -> InitResponse:
        """
        Initialize the secret store.

        Returns:
            The root token and key shares, exactly as returned by the server
        """
        self.logger.info(f"vault init strategy (SSS parameters): shares={secret_shares} threshold={secret_threshold}")

        request: InitRequest = {
            'secret_shares': secret_shares,
            'secret_threshold': secret_threshold
        }
        result = self.do_request({
            'auth_token': '',
            'method': 'POST',
            'path': INIT_API,
            'json_object': request,
            'operation_description': 'initialize secret store',
            'expected_status_code': 200,
            'decode_response': True
        })
        result.raise_for_error()
        return result.data or {}

    def unseal(self, keys_base64: Sequence[str]) -> UnsealResponse:
        """
        Apply key shares one at a time until the server reports it is unsealed.

        Shares after the one that completes the unseal are never submitted.
        A failed submission aborts immediately; shares already applied stay
        applied on the server.

        Args:
            keys_base64: Base64 encoded key shares in submission order

        Returns:
            The seal status reported by the share that completed the unseal

        Raises:
            UnsealThresholdNotReachedError: all shares applied, still sealed
        """
        self.logger.info("Vault unsealing process. Applying key shares.")

        secret_shares = len(keys_base64)
        response: UnsealResponse = {}

        for key_counter, key in enumerate(keys_base64, start=1):
            request: UnsealRequest = {'key': key}
            result = self.do_request({
                'auth_token': '',
                'method': 'POST',
                'path': UNSEAL_API,
                'json_object': request,
                'operation_description': 'unseal secret store',
                'expected_status_code': 200,
                'decode_response': True
            })

            if result.error is not None:
                self.logger.error(f"Error applying key share {key_counter}/{secret_shares}: {str(result.error)}")
                raise result.error

            response = result.data or {}
            self.logger.info(f"Vault key share {key_counter}/{secret_shares} successfully applied.")

            if not response.get('sealed', True):
                self.logger.info("Vault key share threshold reached. Unsealing complete.")
                return response

        raise UnsealThresholdNotReachedError(secret_shares, response.get('progress'), response.get('t'))

    def install_policy(self, token: str, policy_name: str, policy_document: str) -> None:
        request: UpdateACLPolicyRequest = {'policy': policy_document}
        result = self.do_request({
            'auth_token': token,
            'method': 'PUT',
            'path': CREATE_POLICY_PATH.format(name=quote(policy_name, safe='')),
            'json_object': request,
            'operation_description': 'install policy',
            'expected_status_code': 204
        })
        result.raise_for_error()
        self.logger.info(f"Installed policy '{policy_name}'")

    def enable_secrets_engine(self, token: str, mount_point: str,
                              parameters: EnableSecretsEngineRequest,
                              operation_description: str = 'update mounts') -> None:
        """
        Mount a secrets engine at ``mount_point``.

        Raises:
            UnsupportedSecretEngineError: the engine type is not one this client knows
        """
        if parameters['type'] not in KNOWN_SECRET_ENGINES:
            raise UnsupportedSecretEngineError(parameters['type'])

        mount_point = mount_point.strip('/')
        if not mount_point:
            raise ValueError("mount_point must not be empty")

        result = self.do_request({
            'auth_token': token,
            'method': 'POST',
            'path': f"{MOUNTS_API}/{mount_point}",
            'json_object': parameters,
            'operation_description': operation_description,
            'expected_status_code': 204
        })
        result.raise_for_error()
        self.logger.info(f"Enabled {parameters['type']} secrets engine at '{mount_point}'")

    def enable_kv_secret_engine(self, token: str, mount_point: str, kv_version: str) -> None:
        self.enable_secrets_engine(token, mount_point, {
            'type': KEY_VALUE,
            'description': 'key/value secret storage',
            'options': {'version': kv_version}
        })

    def enable_consul_secret_engine(self, token: str, mount_point: str, default_lease_ttl: str) -> None:
        self.enable_secrets_engine(token, mount_point, {
            'type': CONSUL,
            'description': 'consul secret storage',
            'config': {'default_lease_ttl': default_lease_ttl}
        }, operation_description='update mounts for Consul')

    def list_secret_engines(self, token: str) -> ListSecretEnginesResponse:
        result = self.do_request({
            'auth_token': token,
            'method': 'GET',
            'path': MOUNTS_API,
            'operation_description': 'query mounts',
            'expected_status_code': 200,
            'decode_response': True
        })
        result.raise_for_error()

        response = result.data or {}
        # Older servers only return the mounts at the top level
        if 'data' not in response:
            response = {'data': {path: info for path, info in response.items() if isinstance(info, dict)}}
        return response

    def check_secret_engine_installed(self, token: str, mount_point: str, engine: str) -> bool:
        """
        Tell whether ``engine`` is mounted at exactly ``mount_point``.

        Mount paths are reported by the server with a trailing slash, e.g. ``secret/``.
        A failed query raises instead of returning a boolean.
        """
        mounts = self.list_secret_engines(token).get('data') or {}
        mount_data = mounts.get(mount_point)
        return mount_data is not None and mount_data.get('type') == engine

