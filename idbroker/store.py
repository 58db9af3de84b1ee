# Copyright © The idbroker Developers
# See the AUTHORS file at the top-level directory of this distribution
#
# This file is part of idbroker. It is subject to the license terms
# in the LICENSE file found in the top-level directory of this
# distribution. No part of idbroker, including this file, may be copied,
# modified, propagated, or distributed except according to the terms
# contained in the LICENSE file.

"""User store interface, and an in-memory implementation."""

import itertools
import threading
from collections.abc import Iterable, Mapping, Sequence
from typing import Any, Protocol, runtime_checkable

from idbroker.exceptions import DuplicateError, StoreError
from idbroker.models import Role, UserRecord


@runtime_checkable
class UserStore(Protocol):
    """
    Storage of user records.

    Implementations report failures by raising
    :py:class:`idbroker.exceptions.StoreError`, or
    :py:class:`idbroker.exceptions.DuplicateError` when ``create_user``
    violates a unique constraint. ``create_user`` is expected to be atomic.

    Profiles have lowercased emails: stores holding records with mixed case
    emails must match the ``email`` filter case-insensitively.
    """

    def find_users(self, **filters: Any) -> Sequence[UserRecord]:
        """Return all users whose fields match all of ``filters``."""

    def create_user(self, fields: Mapping[str, Any]) -> UserRecord:
        """Create a user with the given fields and return it."""

    def find_default_role(self, role_type: str) -> Role | None:
        """Return the role with the given type, or None if there is none."""


class InMemoryUserStore:
    """
    User store keeping records in process memory.

    It enforces uniqueness of ``(email, provider)``, and is safe to use from
    multiple threads. Emails are compared case-insensitively.
    """

    def __init__(
        self,
        users: Iterable[UserRecord] = (),
        roles: Iterable[Role] = (
            Role(id=1, type="authenticated", name="Authenticated"),
            Role(id=2, type="public", name="Public"),
        ),
    ) -> None:
        """Populate the store with existing users and roles."""
        self.users: list[UserRecord] = list(users)
        self.roles: list[Role] = list(roles)
        self._lock = threading.Lock()
        next_id = max(
            (u.id for u in self.users if isinstance(u.id, int)), default=0
        )
        self._ids = itertools.count(next_id + 1)

    def find_users(self, **filters: Any) -> list[UserRecord]:
        """Return all users whose fields match all of ``filters``."""
        with self._lock:
            return [
                user
                for user in self.users
                if all(
                    _field_matches(user, name, value)
                    for name, value in filters.items()
                )
            ]

    def create_user(self, fields: Mapping[str, Any]) -> UserRecord:
        """Create a user with the given fields and return it."""
        with self._lock:
            for user in self.users:
                if user.provider == fields.get("provider") and _field_matches(
                    user, "email", fields.get("email")
                ):
                    raise DuplicateError(
                        f"a user with email {user.email!r} already exists"
                        f" for provider {user.provider!r}"
                    )
            try:
                user = UserRecord(**{**fields, "id": next(self._ids)})
            except (TypeError, ValueError) as exc:
                raise StoreError(f"cannot create user: {exc}") from exc
            self.users.append(user)
            return user

    def find_default_role(self, role_type: str) -> Role | None:
        """Return the role with the given type, or None if there is none."""
        for role in self.roles:
            if role.type == role_type:
                return role
        return None


def _field_matches(user: UserRecord, name: str, value: Any) -> bool:
    current = getattr(user, name, None)
    if name == "email" and isinstance(current, str) and isinstance(value, str):
        return current.lower() == value.lower()
    return current == value
