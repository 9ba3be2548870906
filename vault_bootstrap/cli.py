#!/usr/bin/env python3
"""
Command Line Entry Point for Vault Bootstrap

Initializes, unseals and configures a secret store, then prints the
component results as JSON.

Usage:
  vault-bootstrap --config bootstrap.yaml
  vault-bootstrap --host vault.local --port 8200 --policy-dir ./policies
  vault-bootstrap --phases discover
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

from vault_bootstrap.base_component import ALL_PHASES
from vault_bootstrap.components.bootstrap_component import VaultBootstrapComponent
from vault_bootstrap.config import load_config, load_policies, validate_key_shares
from vault_bootstrap.errors import VaultError


def setup_logging(level: str = 'INFO') -> logging.Logger:
    """Set up logging configuration"""
    logger = logging.getLogger('vault_bootstrap')
    logger.setLevel(level.upper())

    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description='Initialize, unseal and configure a Vault secret store'
    )

    parser.add_argument('--config', help='YAML file with "vault" and "bootstrap" sections')
    parser.add_argument('--env-file', help='.env file to load (default: ./.env)')

    parser.add_argument('--host', help='Secret store host')
    parser.add_argument('--port', type=int, help='Secret store port')
    parser.add_argument('--protocol', choices=['http', 'https'], help='Secret store protocol')
    parser.add_argument('--namespace', help='Namespace sent with every request')
    parser.add_argument('--ca-cert', help='CA certificate used to verify the server')
    parser.add_argument('--insecure', action='store_true', help='Do not verify the server certificate')

    parser.add_argument('--phases', nargs='+', choices=ALL_PHASES, default=ALL_PHASES,
                        help='Phases to run (default: all)')
    parser.add_argument('--policy-dir', help='Directory of *.hcl policies to install')
    parser.add_argument('--shares', type=int, help='Number of key shares to create on init')
    parser.add_argument('--threshold', type=int, help='Key shares required to unseal')
    parser.add_argument('--no-consul', action='store_true', help='Do not mount the Consul secrets engine')
    parser.add_argument('--log-level', default='INFO',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'], help='Logging level')

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main execution function"""
    args = parse_arguments(argv)
    logger = setup_logging(args.log_level)

    try:
        secret_config, bootstrap_config = load_config(args.config, args.env_file)
    except VaultError as e:
        logger.error(f"Configuration error: {str(e)}")
        return 1

    overrides = {
        'host': args.host,
        'port': args.port,
        'protocol': args.protocol,
        'namespace': args.namespace,
        'root_ca_cert_path': args.ca_cert,
    }
    for key, value in overrides.items():
        if value is not None:
            setattr(secret_config, key, value)
    if args.insecure:
        secret_config.verify_ssl = False

    if args.shares is not None:
        bootstrap_config['secret_shares'] = args.shares
    if args.threshold is not None:
        bootstrap_config['secret_threshold'] = args.threshold
    if args.no_consul:
        bootstrap_config['enable_consul'] = False

    try:
        validate_key_shares(bootstrap_config)
        if args.policy_dir:
            bootstrap_config['policies'] = bootstrap_config.get('policies', {}) | load_policies(args.policy_dir)
    except VaultError as e:
        logger.error(f"Configuration error: {str(e)}")
        return 1

    component = VaultBootstrapComponent(bootstrap_config, secret_config, logger=logger)
    try:
        results = component.execute(phases=args.phases)
    finally:
        component.client.close()

    results.pop('traceback', None)
    print(json.dumps(results, indent=2))

    if component.init_response is not None:
        logger.warning("The output above holds the root token and unseal key shares; store them safely")

    if not component.status['success']:
        logger.error(f"Bootstrap failed: {component.status['error']}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
