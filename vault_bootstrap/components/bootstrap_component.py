#!/usr/bin/env python3
"""
Vault Bootstrap Component for Discovery-Processing-Housekeeping Pattern

Brings a secret store from any starting state to a usable one:

- discover: probe the health endpoint to learn whether the store is
  initialized and sealed
- process: initialize it if needed, unseal it if sealed, install the
  configured ACL policies and mount the key/value and Consul secrets engines
  that are not mounted yet
- housekeep: re-check health and confirm every configured engine is mounted

The response of an initialization made during the run is the only copy of
the root token and key shares, so it is always part of the processing
results, also when a later step fails.
"""

import copy
import logging
from typing import Any, Callable, Dict, List, Literal, Optional, Tuple, TypedDict

from vault_bootstrap.base_component import BaseComponent, Phase, PhaseResults
from vault_bootstrap.config import DEFAULT_BOOTSTRAP_CONFIG, BootstrapConfig, SecretConfig
from vault_bootstrap.components.vault_client import VaultClient
from vault_bootstrap.errors import VaultConfigError, VaultError
from vault_bootstrap.models import (
    CONSUL,
    HEALTH_ACTIVE,
    HEALTH_NOT_INITIALIZED,
    HEALTH_SEALED,
    HEALTH_UNSEALED_CODES,
    KEY_VALUE,
    InitResponse,
)

VaultState = Literal['active', 'standby', 'uninitialized', 'sealed', 'unknown']


class DiscoveryResults(TypedDict, total=False):
    """TypedDict for bootstrap discovery results."""
    health_status: int
    state: VaultState
    initialized: Optional[bool]
    sealed: Optional[bool]


class ProcessingResults(TypedDict, total=False):
    """TypedDict for bootstrap processing results."""
    initialized: bool
    unsealed: bool
    configured: bool
    policies_installed: List[str]
    engines_enabled: List[str]
    engines_already_mounted: List[str]
    key_shares_issued: int
    init_response: InitResponse


class HousekeepingResults(TypedDict, total=False):
    """TypedDict for bootstrap housekeeping results."""
    health_status: int
    engines: Dict[str, bool]
    verified: bool


def classify_health(status_code: int) -> VaultState:
    """Map a health endpoint status code to the state of the secret store."""
    if status_code == HEALTH_ACTIVE:
        return 'active'
    if status_code in HEALTH_UNSEALED_CODES:
        return 'standby'
    if status_code == HEALTH_NOT_INITIALIZED:
        return 'uninitialized'
    if status_code == HEALTH_SEALED:
        return 'sealed'
    return 'unknown'


def mount_key(mount_point: str) -> str:
    """Mount paths are listed by the server with a single trailing slash."""
    return f"{mount_point.strip('/')}/"


class VaultBootstrapComponent(BaseComponent):
    """
    Component that initializes, unseals and configures a secret store.
    """

    def __init__(self, config: BootstrapConfig, secret_config: Optional[SecretConfig] = None,
                 client: Optional[VaultClient] = None,
                 logger: Optional[logging.Logger] = None) -> None:
        merged_config: BootstrapConfig = copy.deepcopy(DEFAULT_BOOTSTRAP_CONFIG) | config
        super().__init__(merged_config, logger)

        self.secret_config = secret_config or SecretConfig()
        self.client = client or VaultClient(self.secret_config, logger=self.logger)

        self.root_token: Optional[str] = self.config.get('root_token')
        self.unseal_keys: List[str] = list(self.config.get('unseal_keys') or [])
        self.init_response: Optional[InitResponse] = None

        self.discovery_results: DiscoveryResults = {}
        self.processing_results: ProcessingResults = {}
        self.housekeeping_results: HousekeepingResults = {}

        self.logger.info(f"VaultBootstrapComponent initialized with addr: {self.secret_config.base_url}")

    def execute(self, phases: Optional[List[Phase]] = None) -> PhaseResults:
        results = super().execute(phases)
        # A failure after init must not drop the only copy of the key material
        if self.init_response is not None and 'processing' not in results:
            results['processing'] = self.processing_results
        return results

    def _discover(self) -> Dict[str, Any]:
        status_code = self.client.health_check()
        state = classify_health(status_code)

        self.discovery_results = {
            'health_status': status_code,
            'state': state,
            'initialized': None if state == 'unknown' else state != 'uninitialized',
            'sealed': None if state == 'unknown' else state in ('uninitialized', 'sealed')
        }
        self.logger.info(f"Secret store state: {state} (HTTP {status_code})")
        return self.discovery_results

    def _process(self) -> Dict[str, Any]:
        if not self.phases_executed['discover']:
            self.discover()

        self.processing_results = {
            'initialized': False,
            'unsealed': False,
            'configured': False,
            'policies_installed': [],
            'engines_enabled': [],
            'engines_already_mounted': []
        }

        state = self.discovery_results.get('state', 'unknown')
        if state == 'unknown':
            status_code = self.discovery_results.get('health_status', 0)
            raise VaultError(f"Secret store reported unexpected health status {status_code}", status_code)

        if not self.discovery_results.get('initialized'):
            self._initialize()

        if self.discovery_results.get('sealed'):
            self._unseal()

        if not self.root_token:
            self.logger.warning("No root token available, skipping policy and secrets engine setup")
            return self.processing_results

        self._install_policies()
        self._enable_secret_engines()
        self.processing_results['configured'] = True
        return self.processing_results

    def _initialize(self) -> None:
        self.init_response = self.client.init(
            self.config['secret_threshold'],
            self.config['secret_shares']
        )
        self.root_token = self.init_response.get('root_token')
        self.unseal_keys = list(self.init_response.get('keys_base64') or [])

        self.processing_results['initialized'] = True
        self.processing_results['key_shares_issued'] = len(self.unseal_keys)
        self.processing_results['init_response'] = self.init_response
        self.logger.warning("Secret store initialized; the root token and key shares are not stored anywhere but the results")

    def _unseal(self) -> None:
        if not self.unseal_keys:
            raise VaultConfigError("Secret store is sealed and no unseal keys are available")

        self.client.unseal(self.unseal_keys)
        self.processing_results['unsealed'] = True

    def _install_policies(self) -> None:
        for policy_name, policy_document in self.config.get('policies', {}).items():
            self.client.install_policy(self.root_token, policy_name, policy_document)
            self.processing_results['policies_installed'].append(policy_name)

    def _secret_engines(self) -> List[Tuple[str, str, Callable[[], None]]]:
        """(mount point, engine type, enable callback) for every engine to mount."""
        kv_mount = self.config['kv_mount_point']
        engines = [(
            kv_mount,
            KEY_VALUE,
            lambda: self.client.enable_kv_secret_engine(self.root_token, kv_mount, self.config['kv_version'])
        )]

        if self.config.get('enable_consul', True):
            consul_mount = self.config['consul_mount_point']
            engines.append((
                consul_mount,
                CONSUL,
                lambda: self.client.enable_consul_secret_engine(
                    self.root_token, consul_mount, self.config['consul_default_lease_ttl'])
            ))
        return engines

    def _enable_secret_engines(self) -> None:
        for mount_point, engine, enable in self._secret_engines():
            if self.client.check_secret_engine_installed(self.root_token, mount_key(mount_point), engine):
                self.logger.info(f"{engine} secrets engine already mounted at '{mount_point}'")
                self.processing_results['engines_already_mounted'].append(mount_point)
                continue

            enable()
            self.processing_results['engines_enabled'].append(mount_point)

    def _housekeep(self) -> Dict[str, Any]:
        status_code = self.client.health_check()
        self.housekeeping_results = {
            'health_status': status_code,
            'engines': {},
            'verified': False
        }

        if self.root_token:
            for mount_point, engine, _ in self._secret_engines():
                self.housekeeping_results['engines'][mount_point] = self.client.check_secret_engine_installed(
                    self.root_token, mount_key(mount_point), engine)
        else:
            self.logger.warning("No root token available, secrets engines not verified")

        missing = [mount for mount, present in self.housekeeping_results['engines'].items() if not present]
        if status_code not in HEALTH_UNSEALED_CODES:
            raise VaultError(f"Secret store not ready after bootstrap: HTTP {status_code}", status_code)
        if missing:
            raise VaultError(f"Secrets engines missing after bootstrap: {', '.join(missing)}")

        self.housekeeping_results['verified'] = True
        self.logger.info("Secret store bootstrap verified")
        return self.housekeeping_results
