# Copyright © The idbroker Developers
# See the AUTHORS file at the top-level directory of this distribution
#
# This file is part of idbroker. It is subject to the license terms
# in the LICENSE file found in the top-level directory of this
# distribution. No part of idbroker, including this file, may be copied,
# modified, propagated, or distributed except according to the terms
# contained in the LICENSE file.

"""Authenticate requests using third-party identity providers."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Self

from idbroker.config import (
    PluginConfig,
    load_advanced_settings,
    load_provider_config,
)
from idbroker.exceptions import (
    InvalidProfileError,
    InvalidTokenError,
    NoCredentialError,
    ProviderCallError,
    StoreError,
    UnknownProviderError,
)
from idbroker.models import Credential, UserRecord
from idbroker.providers.registry import ProviderRegistry
from idbroker.resolver import (
    AccountResolver,
    Rejection,
    RejectionReason,
    ResolutionState,
)
from idbroker.store import UserStore
from idbroker.validation import ProfileValidator

log = logging.getLogger("idbroker.broker")


class OutcomeStatus(StrEnum):
    """Kind of outcome of an authentication attempt."""

    SUCCESS = "success"
    REJECTED = "rejected"
    ERROR = "error"


class OutcomeCode(StrEnum):
    """Reason for an unsuccessful authentication attempt."""

    NO_CREDENTIAL = "no_credential"
    UNKNOWN_PROVIDER = "unknown_provider"
    PROVIDER_CALL_FAILED = "provider_call_failed"
    INVALID_TOKEN = "invalid_token"
    INVALID_PROFILE = "invalid_profile"
    REGISTRATION_CLOSED = "registration_closed"
    EMAIL_TAKEN = "email_taken"
    STORE_FAILURE = "store_failure"


_REJECTION_CODES = {
    RejectionReason.REGISTRATION_CLOSED: OutcomeCode.REGISTRATION_CLOSED,
    RejectionReason.EMAIL_TAKEN: OutcomeCode.EMAIL_TAKEN,
}


@dataclass(frozen=True)
class Outcome:
    """
    Result of an authentication attempt.

    ``status`` tells which of the other fields are set:

    * ``success``: ``user``, and ``created`` if the user is new
    * ``rejected``: ``code``, ``message_id`` and ``message``, to be shown to
      the user
    * ``error``: ``code``, ``message`` and the ``exception`` that caused it
    """

    status: OutcomeStatus
    user: UserRecord | None = None
    created: bool = False
    code: OutcomeCode | None = None
    message_id: str | None = None
    message: str | None = None
    exception: BaseException | None = None

    @property
    def ok(self) -> bool:
        """Return True if a user was authenticated."""
        return self.status == OutcomeStatus.SUCCESS

    @classmethod
    def success(cls, user: UserRecord, *, created: bool = False) -> Self:
        """Build a successful outcome."""
        return cls(OutcomeStatus.SUCCESS, user=user, created=created)

    @classmethod
    def rejected(cls, rejection: Rejection) -> Self:
        """Build an outcome for a policy rejection."""
        return cls(
            OutcomeStatus.REJECTED,
            code=_REJECTION_CODES[rejection.reason],
            message_id=rejection.message_id,
            message=rejection.message,
        )

    @classmethod
    def error(cls, code: OutcomeCode, exception: BaseException) -> Self:
        """Build an outcome for a failure."""
        return cls(
            OutcomeStatus.ERROR,
            code=code,
            message=str(exception),
            exception=exception,
        )


class IdentityBroker:
    """
    Authenticate users with third-party identity providers.

    The pipeline is: provider lookup, profile fetch, profile validation,
    account resolution. The first failing step ends it, before anything is
    written to the store.
    """

    def __init__(
        self,
        store: UserStore,
        registry: ProviderRegistry | None = None,
        validator: ProfileValidator | None = None,
        resolver: AccountResolver | None = None,
    ) -> None:
        """
        Set up the broker.

        :param store: user store
        :param registry: providers to use. Defaults to all built-in providers
        :param validator: profile validator
        :param resolver: account resolver. Defaults to an AccountResolver
          using ``store``
        """
        self.store = store
        self.registry = registry or ProviderRegistry.default()
        self.validator = validator or ProfileValidator()
        self.resolver = resolver or AccountResolver(store)

    def authenticate(
        self,
        provider: str,
        params: Mapping[str, Any],
        config: PluginConfig,
        context: Mapping[str, Any] | None = None,
    ) -> Outcome:
        """
        Authenticate a request with a third-party provider.

        :param provider: name of the provider
        :param params: request parameters, with the access credential in
          ``access_token``, ``code`` or ``oauth_token``, and any
          provider-specific extras
        :param config: source of plugin settings, read on each call
        :param context: extra information about the request, used in logs
        :return: the outcome. Unexpected exceptions are not caught
        :raises ImproperlyConfigured: the plugin settings are malformed
        """
        prefix = _log_prefix(provider, context)
        try:
            return self._authenticate(provider, params, config)
        except NoCredentialError as exc:
            log.info("%s: %s", prefix, exc)
            return Outcome.error(OutcomeCode.NO_CREDENTIAL, exc)
        except UnknownProviderError as exc:
            log.info("%s: %s", prefix, exc)
            return Outcome.error(OutcomeCode.UNKNOWN_PROVIDER, exc)
        except ProviderCallError as exc:
            log.warning("%s: provider call failed: %s", prefix, exc)
            return Outcome.error(OutcomeCode.PROVIDER_CALL_FAILED, exc)
        except InvalidTokenError as exc:
            log.warning("%s: invalid token: %s", prefix, exc)
            return Outcome.error(OutcomeCode.INVALID_TOKEN, exc)
        except InvalidProfileError as exc:
            log.warning("%s: invalid profile: %s", prefix, exc)
            return Outcome.error(OutcomeCode.INVALID_PROFILE, exc)
        except StoreError as exc:
            log.error("%s: user store failed: %s", prefix, exc)
            return Outcome.error(OutcomeCode.STORE_FAILURE, exc)

    def _authenticate(
        self, provider: str, params: Mapping[str, Any], config: PluginConfig
    ) -> Outcome:
        credential = Credential.from_params(params)
        adapter = self.registry.resolve(provider)

        provider_config = load_provider_config(config, provider)
        if not provider_config.enabled:
            raise UnknownProviderError(provider)

        profile = adapter.fetch_profile(credential, provider_config)
        profile = self.validator.validate(profile)

        advanced = load_advanced_settings(config)
        resolution = self.resolver.run(provider, profile, advanced)

        if resolution.state == ResolutionState.REJECTED:
            assert resolution.rejection is not None
            return Outcome.rejected(resolution.rejection)

        assert resolution.user is not None
        return Outcome.success(resolution.user, created=resolution.created)


def _log_prefix(provider: str, context: Mapping[str, Any] | None) -> str:
    if not context:
        return provider
    details = " ".join(f"{k}={v}" for k, v in sorted(context.items()))
    return f"{provider} [{details}]"
