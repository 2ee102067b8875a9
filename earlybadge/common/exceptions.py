"""
Custom exceptions for the badge client and the development replica.
"""

from __future__ import annotations


class BadgeClientError(Exception):
    """Base class for every failure raised by the badge client."""


class ConfigurationError(BadgeClientError):
    """Required client configuration is missing or malformed."""


class NotAuthenticated(BadgeClientError):
    """An identity-scoped operation was attempted without a session."""

    def __init__(self, message: str = "User is not authenticated") -> None:
        super().__init__(message)


class AuthenticationPending(NotAuthenticated):
    """A login round trip is still in flight."""

    def __init__(self, message: str = "Login is still in progress") -> None:
        super().__init__(message)


class AuthenticationDenied(BadgeClientError):
    """The identity provider rejected or aborted the login."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Authentication denied: {reason}")
        self.reason = reason


class RegistryUnavailable(BadgeClientError):
    """Transport failure while talking to the registry."""


class TrustRootUnavailable(RegistryUnavailable):
    """No root key is known, so certified replies cannot be verified."""


class RegistryRejected(BadgeClientError):
    """Business-rule rejection returned by the registry."""

    def __init__(self, reason: str, code: int | None = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.code = code


class MintRejected(RegistryRejected):
    """The registry refused to mint a badge for the caller."""


class TransferRejected(RegistryRejected):
    """The registry refused to transfer the badge."""


class InvalidPrincipal(ValueError):
    """Text is not a well-formed principal."""


class InvalidRecipient(BadgeClientError, ValueError):
    """Transfer target failed local validation."""


class ValidationError(Exception):
    """Exception for request validation failures in the development replica."""

    def __init__(self, message: str, status_code: int = 403) -> None:
        super().__init__(message)
        self.status_code = status_code


class RegistryTrap(Exception):
    """A registry method aborted; surfaced to callers as a reject."""

    def __init__(self, message: str, reject_code: int = 5) -> None:
        super().__init__(message)
        self.reject_code = reject_code
