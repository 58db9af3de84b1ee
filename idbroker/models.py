# Copyright © The idbroker Developers
# See the AUTHORS file at the top-level directory of this distribution
#
# This file is part of idbroker. It is subject to the license terms
# in the LICENSE file found in the top-level directory of this
# distribution. No part of idbroker, including this file, may be copied,
# modified, propagated, or distributed except according to the terms
# contained in the LICENSE file.

"""Data models used by the identity broker."""

from collections.abc import Mapping
from typing import Any, Self

try:
    import pydantic.v1 as pydantic
except ImportError:
    import pydantic as pydantic  # type: ignore

from idbroker.exceptions import NoCredentialError

#: Request parameters that can carry the access credential, in order of
#: preference
CREDENTIAL_PARAMS = ("access_token", "code", "oauth_token")

#: Request parameter carrying the OAuth 1.0a token secret
SECONDARY_TOKEN_PARAM = "access_secret"


class StrictBaseModel(pydantic.BaseModel):
    """Stricter pydantic configuration."""

    class Config:
        """Set up stricter pydantic Config."""

        validate_assignment = True
        extra = pydantic.Extra.forbid


class FrozenModel(StrictBaseModel):
    """Model whose fields cannot be changed after creation."""

    class Config:
        """Forbid changes after creation."""

        allow_mutation = False


class Credential(FrozenModel):
    """Access credential supplied by the caller for one request."""

    access_token: str
    #: OAuth 1.0a token secret, for providers that need one
    secondary_token: str | None = None
    #: Provider-specific extra request parameters
    params: dict[str, str] = pydantic.Field(default_factory=dict)

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> Self:
        """
        Build a Credential from inbound request parameters.

        :param params: request parameters, as sent by the client
        :raises NoCredentialError: none of ``access_token``, ``code`` or
          ``oauth_token`` is present
        """
        for name in CREDENTIAL_PARAMS:
            if access_token := params.get(name):
                break
        else:
            raise NoCredentialError("No access_token.")

        reserved = {*CREDENTIAL_PARAMS, SECONDARY_TOKEN_PARAM}
        return cls(
            access_token=access_token,
            secondary_token=params.get(SECONDARY_TOKEN_PARAM) or None,
            params={
                key: value
                for key, value in params.items()
                if key not in reserved and isinstance(value, str)
            },
        )


class CanonicalProfile(StrictBaseModel):
    """Provider-agnostic identity fields extracted from a provider."""

    username: str | None = None
    email: str | None = None
    display_name: str | None = None
    avatar_url: str | None = None
    provider_user_id: str | None = None
    #: Provider-specific fields to store with a new user
    extra: dict[str, str] = pydantic.Field(default_factory=dict)

    @pydantic.validator("email")
    @classmethod
    def _normalize_email(cls, value: str | None) -> str | None:
        """Lowercase emails, and turn empty ones into None."""
        if value is None:
            return None
        return value.strip().lower() or None

    def user_fields(self) -> dict[str, Any]:
        """Return the fields used to create a user from this profile."""
        fields: dict[str, Any] = dict(self.extra)
        fields.update(self.dict(exclude={"extra"}, exclude_none=True))
        return fields


class ProviderConfig(FrozenModel):
    """Client configuration of a provider, from the ``grant`` setting."""

    provider_id: str
    client_key: str | None = None
    client_secret: str | None = None
    enabled: bool = True
    extra: dict[str, str] = pydantic.Field(default_factory=dict)


class AdvancedSettings(FrozenModel):
    """Registration policy, from the ``advanced`` setting."""

    allow_register: bool = True
    unique_email: bool = True
    default_role: str = "authenticated"

    class Config:
        """Ignore settings that do not concern the broker."""

        extra = pydantic.Extra.ignore


class Role(FrozenModel):
    """Role that can be assigned to users."""

    id: int | str
    type: str
    name: str | None = None


class UserRecord(FrozenModel):
    """User as stored in the user store."""

    id: int | str
    email: str
    provider: str
    role: int | str | None = None
    confirmed: bool = False

    class Config:
        """Keep any other field set by the store."""

        extra = pydantic.Extra.allow
