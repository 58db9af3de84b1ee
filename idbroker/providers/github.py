# Copyright © The idbroker Developers
# See the AUTHORS file at the top-level directory of this distribution
#
# This file is part of idbroker. It is subject to the license terms
# in the LICENSE file found in the top-level directory of this
# distribution. No part of idbroker, including this file, may be copied,
# modified, propagated, or distributed except according to the terms
# contained in the LICENSE file.

"""GitHub identity provider."""

import logging

import requests

from idbroker.models import CanonicalProfile, Credential, ProviderConfig
from idbroker.providers.base import BearerProvider, ProviderResponse

log = logging.getLogger("idbroker.providers")


class GithubUser(ProviderResponse):
    """Response of the GitHub ``user`` endpoint."""

    login: str
    #: Public email of the profile, if the user chose to publish one
    email: str | None = None


class GithubEmail(ProviderResponse):
    """Entry of the GitHub ``user/emails`` endpoint."""

    email: str
    primary: bool = False
    verified: bool = False


class GithubProvider(BearerProvider):
    """
    GitHub identity provider.

    The public profile email is used if present. Otherwise the primary email
    is looked up with a second call to ``user/emails``, which needs the
    ``user:email`` scope.
    """

    name = "github"
    label = "GitHub"
    url_api = "https://api.github.com"
    user_agent = "idbroker"

    def session(self, credential: Credential) -> requests.Session:
        """Create a bearer session with the User-Agent GitHub requires."""
        session = super().session(credential)
        session.headers["User-Agent"] = self.user_agent
        return session

    def fetch_profile(
        self, credential: Credential, config: ProviderConfig
    ) -> CanonicalProfile:
        """Fetch the GitHub user, and its primary email if not public."""
        with self.session(credential) as session:
            user = self.get(session, f"{self.url_api}/user", GithubUser)
            if user.email:
                return CanonicalProfile(username=user.login, email=user.email)
            email = self.fetch_primary_email(session)
        return CanonicalProfile(username=user.login, email=email)

    def fetch_primary_email(self, session: requests.Session) -> str | None:
        """
        Look up the primary email of the user.

        :return: the email flagged as primary, or None if there is none
        """
        url = f"{self.url_api}/user/emails"
        body = self.get_json(session, url)
        if not isinstance(body, list):
            log.warning("%s: %s did not return a list", self.name, url)
            return None
        for entry in self.parse(body, list[GithubEmail], url):
            if entry.primary:
                return entry.email
        log.info("%s: no primary email found", self.name)
        return None
