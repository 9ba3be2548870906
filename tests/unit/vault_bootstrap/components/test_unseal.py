#!/usr/bin/env python3
"""
Unit tests for the unseal sequence of VaultClient.

The request executor is replaced by a fake so each test controls the seal
status reported after every key share and can count submissions.
"""

import unittest
import logging
import os
import sys
from unittest.mock import MagicMock

# Add the project root to the Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../../../../')))

from vault_bootstrap.components.vault_client import RequestResult, VaultClient
from vault_bootstrap.config import SecretConfig
from vault_bootstrap.errors import (
    UnsealThresholdNotReachedError,
    VaultTransportError,
    VaultUnexpectedStatusError,
)

SHARES = ['share-1', 'share-2', 'share-3', 'share-4', 'share-5']


def sealed(progress, threshold=3):
    return RequestResult(200, data={'sealed': True, 't': threshold, 'n': 5, 'progress': progress})


def unsealed(threshold=3):
    return RequestResult(200, data={'sealed': False, 't': threshold, 'n': 5, 'progress': 0})


class TestUnseal(unittest.TestCase):
    """Test cases for VaultClient.unseal."""

    def setUp(self):
        """Set up test fixtures."""
        logging.basicConfig(level=logging.CRITICAL)

        self.client = VaultClient(SecretConfig(), session=MagicMock())
        self.client.do_request = MagicMock()

    def submitted_keys(self):
        return [call.args[0]['json_object']['key'] for call in self.client.do_request.call_args_list]

    def test_stops_at_threshold(self):
        """Test shares after the one that unseals are never submitted."""
        self.client.do_request.side_effect = [sealed(1), sealed(2), unsealed()]

        response = self.client.unseal(SHARES)

        self.assertFalse(response['sealed'])
        self.assertEqual(self.client.do_request.call_count, 3)
        self.assertEqual(self.submitted_keys(), SHARES[:3])

    def test_first_share_unseals(self):
        self.client.do_request.side_effect = [unsealed(threshold=1)]

        self.client.unseal(SHARES)

        self.assertEqual(self.client.do_request.call_count, 1)

    def test_every_share_stops_early_at_its_position(self):
        """Test for each position k the call count equals k."""
        for k in range(1, len(SHARES) + 1):
            with self.subTest(k=k):
                self.client.do_request = MagicMock(
                    side_effect=[sealed(i) for i in range(1, k)] + [unsealed(threshold=k)]
                )

                self.client.unseal(SHARES)

                self.assertEqual(self.client.do_request.call_count, k)

    def test_exhausted_while_sealed(self):
        """Test running out of shares raises the threshold error after all submissions."""
        self.client.do_request.side_effect = [sealed(1, threshold=7), sealed(2, threshold=7),
                                              sealed(3, threshold=7)]

        with self.assertRaises(UnsealThresholdNotReachedError) as context:
            self.client.unseal(SHARES[:3])

        self.assertEqual(self.client.do_request.call_count, 3)
        self.assertEqual(context.exception.shares_applied, 3)
        self.assertEqual(context.exception.progress, 3)
        self.assertEqual(context.exception.threshold, 7)

    def test_empty_share_list(self):
        with self.assertRaises(UnsealThresholdNotReachedError) as context:
            self.client.unseal([])

        self.client.do_request.assert_not_called()
        self.assertEqual(context.exception.shares_applied, 0)

    def test_transport_error_aborts(self):
        """Test a transport failure at share k is raised after exactly k calls."""
        transport_error = VaultTransportError('unseal secret store')
        self.client.do_request.side_effect = [sealed(1), RequestResult(0, error=transport_error), unsealed()]

        with self.assertRaises(VaultTransportError) as context:
            self.client.unseal(SHARES)

        self.assertIs(context.exception, transport_error)
        self.assertEqual(self.client.do_request.call_count, 2)

    def test_unexpected_status_aborts(self):
        status_error = VaultUnexpectedStatusError('unseal secret store', 200, 400)
        self.client.do_request.side_effect = [RequestResult(400, error=status_error)]

        with self.assertRaises(VaultUnexpectedStatusError):
            self.client.unseal(SHARES)

        self.assertEqual(self.client.do_request.call_count, 1)

    def test_requests_are_unauthenticated_posts(self):
        self.client.do_request.side_effect = [unsealed()]

        self.client.unseal(SHARES)

        args = self.client.do_request.call_args.args[0]
        self.assertEqual(args['auth_token'], '')
        self.assertEqual(args['method'], 'POST')
        self.assertEqual(args['path'], '/v1/sys/unseal')
        self.assertEqual(args['expected_status_code'], 200)
        self.assertTrue(args['decode_response'])


if __name__ == '__main__':
    unittest.main()
