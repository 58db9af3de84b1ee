# Copyright © The idbroker Developers
# See the AUTHORS file at the top-level directory of this distribution
#
# This file is part of idbroker. It is subject to the license terms
# in the LICENSE file found in the top-level directory of this
# distribution. No part of idbroker, including this file, may be copied,
# modified, propagated, or distributed except according to the terms
# contained in the LICENSE file.

"""Base classes for identity provider adapters."""

import logging
from typing import Any, TypeVar

try:
    import pydantic.v1 as pydantic
except ImportError:
    import pydantic as pydantic  # type: ignore

import requests
from oauthlib.oauth2 import OAuth2Error
from requests_oauthlib import OAuth2Session

from idbroker.broker_utils import placeholder_email
from idbroker.exceptions import ProviderCallError
from idbroker.models import CanonicalProfile, Credential, ProviderConfig

log = logging.getLogger("idbroker.providers")

#: Default timeout in seconds for calls to providers
REQUEST_TIMEOUT = 10

ResponseType = TypeVar("ResponseType")


class ProviderResponse(pydantic.BaseModel):
    """
    Base for models of provider responses.

    Only the fields used by the broker are declared: anything else sent by
    the provider is ignored.
    """

    class Config:
        """Ignore fields that are not declared."""

        extra = pydantic.Extra.ignore


class Provider:
    """
    Adapter for a third-party identity provider.

    Subclasses implement :py:meth:`fetch_profile` to turn a credential into a
    :py:class:`CanonicalProfile`.
    """

    #: Identifier to reference the provider in requests and configuration
    name: str
    #: User-visible description
    label: str
    #: Prepended to provider user IDs to build usernames that do not collide
    #: across providers
    username_prefix: str = ""
    #: Domain of made-up emails, for providers that do not share one
    placeholder_domain: str | None = None

    def __init__(
        self,
        name: str | None = None,
        label: str | None = None,
        *,
        timeout: float = REQUEST_TIMEOUT,
        options: dict[str, Any] | None = None,
    ) -> None:
        """
        Define an identity provider.

        :param name: override the default provider name
        :param label: override the default user-visible description
        :param timeout: timeout in seconds for each call to the provider
        :param options: freeform options for subclasses
        """
        if name is not None:
            self.name = name
        if label is not None:
            self.label = label
        self.timeout = timeout
        self.options: dict[str, Any] = options or {}

    def __repr__(self) -> str:
        """Return a representation of the provider."""
        return f"<{self.__class__.__name__} {self.name!r}>"

    def fetch_profile(
        self, credential: Credential, config: ProviderConfig
    ) -> CanonicalProfile:
        """
        Fetch the profile of the user owning ``credential``.

        :raises ProviderCallError: the provider could not be called, or
          returned an unexpected response
        """
        raise NotImplementedError(
            f"{self.__class__.__name__} does not implement fetch_profile"
        )

    def namespaced_username(self, user_id: Any) -> str:
        """Build a username that cannot collide with other providers."""
        return f"{self.username_prefix}{user_id}"

    def placeholder_email(self, username: str, config: ProviderConfig) -> str:
        """Make up an email for ``username``."""
        domain = config.extra.get(
            "placeholder_domain", self.placeholder_domain
        )
        if not domain:
            raise ProviderCallError(
                self.name, "no domain configured for placeholder emails"
            )
        return placeholder_email(username, domain)

    def require_client_key(self, config: ProviderConfig) -> str:
        """Return the client key, failing if it is not configured."""
        if not config.client_key:
            raise ProviderCallError(self.name, "client key is not configured")
        return config.client_key

    def session(self, credential: Credential) -> requests.Session:
        """Create the HTTP session used to call the provider."""
        return requests.Session()

    def get_json(
        self, session: requests.Session, url: str, **kwargs: Any
    ) -> Any:
        """
        Make an HTTP GET request to url, and return the decoded JSON body.

        :raises ProviderCallError: the request failed, the provider returned
          a non-2xx status, or the body is not JSON
        """
        log.debug("%s: GET %s", self.name, url)
        try:
            response = session.get(url, timeout=self.timeout, **kwargs)
        except (requests.exceptions.RequestException, OAuth2Error) as exc:
            raise ProviderCallError(self.name, exc) from exc

        if not response.ok:
            raise ProviderCallError(
                self.name,
                f"{url} returned unexpected status code:"
                f" {response.status_code} ({response.reason})",
            )

        try:
            return response.json()
        except ValueError as exc:
            raise ProviderCallError(
                self.name, f"{url} did not return valid JSON"
            ) from exc

    def parse(
        self, body: Any, expected_class: type[ResponseType], url: str
    ) -> ResponseType:
        """
        Validate a response body against expected_class.

        :raises ProviderCallError: the body does not match expected_class
        """
        try:
            return pydantic.parse_obj_as(expected_class, body)
        except pydantic.ValidationError as exc:
            raise ProviderCallError(
                self.name,
                f"{url} did not return a valid object. Error: {exc}",
            ) from exc

    def get(
        self,
        session: requests.Session,
        url: str,
        expected_class: type[ResponseType],
        **kwargs: Any,
    ) -> ResponseType:
        """Make an HTTP GET request to url, return object of expected_class."""
        return self.parse(
            self.get_json(session, url, **kwargs), expected_class, url
        )


class BearerProvider(Provider):
    """Provider called with the access token as an OAuth 2.0 bearer token."""

    def session(self, credential: Credential) -> requests.Session:
        """Create a session sending the access token as bearer token."""
        return OAuth2Session(
            token={
                "access_token": credential.access_token,
                "token_type": "Bearer",
            }
        )
