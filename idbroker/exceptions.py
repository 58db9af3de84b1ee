# Copyright © The idbroker Developers
# See the AUTHORS file at the top-level directory of this distribution
#
# This file is part of idbroker. It is subject to the license terms
# in the LICENSE file found in the top-level directory of this
# distribution. No part of idbroker, including this file, may be copied,
# modified, propagated, or distributed except according to the terms
# contained in the LICENSE file.

"""Exceptions raised by the identity broker."""


class BrokerError(Exception):
    """Base class for errors that abort an authentication attempt."""


class NoCredentialError(BrokerError):
    """Raised if the request carries no access_token, code or oauth_token."""


class UnknownProviderError(BrokerError):
    """Raised if a provider name matches no registered provider."""

    def __init__(self, provider: str) -> None:
        """Initialize the exception."""
        self.provider = provider
        super().__init__(f"unknown provider {provider!r}")


class ProviderCallError(BrokerError):
    """
    Raised when talking to a provider fails.

    This covers transport errors, timeouts, non-2xx responses and responses
    that cannot be understood. ``cause`` is the underlying exception, or a
    string describing the problem.
    """

    def __init__(self, provider: str, cause: BaseException | str) -> None:
        """Initialize the exception."""
        self.provider = provider
        self.cause = cause
        super().__init__(f"{provider}: {cause}")


class InvalidTokenError(BrokerError):
    """Raised when a signed identity token fails verification."""

    def __init__(self, provider: str, message: str) -> None:
        """Initialize the exception."""
        self.provider = provider
        super().__init__(f"{provider}: {message}")


class InvalidProfileError(BrokerError):
    """Raised if a canonical profile is not usable to resolve an account."""


class MissingEmailError(InvalidProfileError):
    """Raised if a canonical profile has no email."""


class StoreError(BrokerError):
    """Raised by user stores when an operation fails."""


class DuplicateError(StoreError):
    """
    Raised by user stores when creating a user violates a unique constraint.

    Stores that enforce uniqueness of ``(email, provider)`` raise this when
    two concurrent first logins race to create the same account.
    """
