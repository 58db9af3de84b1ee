# Copyright © The idbroker Developers
# See the AUTHORS file at the top-level directory of this distribution
#
# This file is part of idbroker. It is subject to the license terms
# in the LICENSE file found in the top-level directory of this
# distribution. No part of idbroker, including this file, may be copied,
# modified, propagated, or distributed except according to the terms
# contained in the LICENSE file.

"""Map a canonical profile to a local user account."""

import logging
from dataclasses import dataclass
from enum import StrEnum

from idbroker.exceptions import BrokerError, DuplicateError, StoreError
from idbroker.models import AdvancedSettings, CanonicalProfile, UserRecord
from idbroker.store import UserStore

log = logging.getLogger("idbroker.broker")


class RejectionReason(StrEnum):
    """Policy reasons to refuse an account."""

    REGISTRATION_CLOSED = "registration_closed"
    EMAIL_TAKEN = "email_taken"


@dataclass(frozen=True)
class Rejection:
    """Account refused by registration policy."""

    reason: RejectionReason
    #: Stable identifier for translating the message
    message_id: str
    message: str


REGISTRATION_CLOSED = Rejection(
    reason=RejectionReason.REGISTRATION_CLOSED,
    message_id="Auth.advanced.allow_register",
    message="Register action is currently not available.",
)

EMAIL_TAKEN = Rejection(
    reason=RejectionReason.EMAIL_TAKEN,
    message_id="Auth.form.error.email.taken",
    message="Email is already taken.",
)


class ResolutionState(StrEnum):
    """Terminal states of account resolution."""

    EXISTING_USER = "existing_user"
    NEW_USER = "new_user"
    REJECTED = "rejected"


@dataclass(frozen=True)
class Resolution:
    """Result of account resolution."""

    state: ResolutionState
    user: UserRecord | None = None
    rejection: Rejection | None = None

    @property
    def created(self) -> bool:
        """Return True if a new user was created."""
        return self.state == ResolutionState.NEW_USER


class AccountResolver:
    """
    Decide whether to reuse, reject or create an account for a profile.

    Steps run in this order:

    1. look up all users with the profile email
    2. if none of them comes from this provider and registration is closed,
       reject, even if users exist for other providers
    3. if one comes from this provider, use it as is
    4. if users from other providers exist and emails must be unique, reject
    5. otherwise create a confirmed user from this provider, with the
       default role

    Only the last step writes to the store, and only once.

    There is no transaction between lookup and creation: two concurrent
    first logins can both get to step 5. Stores with a unique constraint on
    ``(email, provider)`` raise DuplicateError for the second one, which is
    reported as the email being taken. Other stores may end up with
    duplicate users.
    """

    def __init__(self, store: UserStore) -> None:
        """Use ``store`` to look up and create users."""
        self.store = store

    def run(
        self,
        provider: str,
        profile: CanonicalProfile,
        advanced: AdvancedSettings,
    ) -> Resolution:
        """
        Resolve the account for ``profile``, authenticated by ``provider``.

        ``profile`` must have passed validation, and so have an email.

        :raises StoreError: the store failed to look up or create users
        """
        assert profile.email
        users = self.store.find_users(email=profile.email)

        matched = next((u for u in users if u.provider == provider), None)

        if matched is None and not advanced.allow_register:
            log.info(
                "%s: %s: registration is closed", provider, profile.email
            )
            return self._reject(REGISTRATION_CLOSED)

        if matched is not None:
            log.info(
                "%s: user %s matched to %s",
                provider,
                matched.id,
                profile.email,
            )
            return Resolution(ResolutionState.EXISTING_USER, user=matched)

        if advanced.unique_email and any(
            u.provider != provider for u in users
        ):
            log.info(
                "%s: %s is already used with another provider",
                provider,
                profile.email,
            )
            return self._reject(EMAIL_TAKEN)

        return self.create_user(provider, profile, advanced)

    def create_user(
        self,
        provider: str,
        profile: CanonicalProfile,
        advanced: AdvancedSettings,
    ) -> Resolution:
        """Create a user for the profile, with the default role."""
        role = self.store.find_default_role(advanced.default_role)
        if role is None:
            raise StoreError(f"Role {advanced.default_role!r} not found")

        fields = profile.user_fields()
        fields.update(provider=provider, role=role.id, confirmed=True)

        try:
            user = self.store.create_user(fields)
        except DuplicateError as exc:
            log.warning(
                "%s: %s: user created concurrently: %s",
                provider,
                profile.email,
                exc,
            )
            return self._reject(EMAIL_TAKEN)

        log.info(
            "%s: user %s auto created for %s", provider, user.id, profile.email
        )
        try:
            self.setup_new_user(user, profile, provider)
        except BrokerError as exc:
            # The user exists already: report it, and keep the login
            log.warning(
                "%s: user %s: setup failed: %s",
                provider,
                user.id,
                exc,
                exc_info=exc,
            )
        return Resolution(ResolutionState.NEW_USER, user=user)

    def setup_new_user(
        self, user: UserRecord, profile: CanonicalProfile, provider: str
    ) -> None:
        """
        Set up a newly created user.

        This is called once, right after the user is created. It does
        nothing by default, and can be overridden to add per-site behaviour,
        like provisioning resources owned by the new user. It must not create
        other users.

        Failures are reported by raising BrokerError: they are logged, and
        do not undo the creation of the user.
        """

    def _reject(self, rejection: Rejection) -> Resolution:
        return Resolution(ResolutionState.REJECTED, rejection=rejection)
