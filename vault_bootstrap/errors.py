#!/usr/bin/env python3
"""
Vault Bootstrap Errors

Exception types raised by the Vault client and the bootstrap component.
Every error carries the HTTP status code obtained for the failing call,
with 0 meaning no response was received at all.
"""

from typing import Optional


class VaultError(Exception):
    """Base class for all Vault bootstrap errors."""

    def __init__(self, message: str, status_code: int = 0) -> None:
        super().__init__(message)
        self.status_code = status_code


class VaultTransportError(VaultError):
    """Raised when no HTTP response was obtained (connection refused, timeout, TLS)."""

    def __init__(self, operation: str, cause: Optional[BaseException] = None) -> None:
        message = f"{operation}: no response from secret store"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message, status_code=0)
        self.operation = operation
        self.cause = cause


class VaultUnexpectedStatusError(VaultError):
    """Raised when a response was obtained but its status was not the expected one."""

    def __init__(self, operation: str, expected: int, actual: int) -> None:
        super().__init__(
            f"{operation} failed: expected HTTP status {expected}, got {actual}",
            status_code=actual
        )
        self.operation = operation
        self.expected = expected
        self.actual = actual


class VaultDecodeError(VaultError):
    """Raised when a response body could not be decoded as JSON."""

    def __init__(self, operation: str, status_code: int, cause: Optional[BaseException] = None) -> None:
        super().__init__(f"{operation}: could not decode response body: {cause}", status_code=status_code)
        self.operation = operation
        self.cause = cause


class UnsealThresholdNotReachedError(VaultError):
    """
    Raised when every key share was applied and the secret store is still sealed.
    """

    def __init__(self, shares_applied: int, progress: Optional[int] = None,
                 threshold: Optional[int] = None) -> None:
        message = f"secret store still sealed after applying {shares_applied} key share(s)"
        if progress is not None and threshold is not None:
            message = f"{message} (progress {progress}/{threshold})"
        super().__init__(message, status_code=200 if shares_applied else 0)
        self.shares_applied = shares_applied
        self.progress = progress
        self.threshold = threshold


class UnsupportedSecretEngineError(VaultError):
    """Raised for a secrets engine type this client does not know how to mount."""

    def __init__(self, engine_type: str) -> None:
        super().__init__(f"unsupported secrets engine type: {engine_type!r}")
        self.engine_type = engine_type


class VaultConfigError(VaultError):
    """Raised for invalid bootstrap configuration."""
