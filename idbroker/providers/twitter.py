# Copyright © The idbroker Developers
# See the AUTHORS file at the top-level directory of this distribution
#
# This file is part of idbroker. It is subject to the license terms
# in the LICENSE file found in the top-level directory of this
# distribution. No part of idbroker, including this file, may be copied,
# modified, propagated, or distributed except according to the terms
# contained in the LICENSE file.

"""Twitter identity provider, using OAuth 1.0a."""

from requests_oauthlib import OAuth1Session

from idbroker.exceptions import ProviderCallError
from idbroker.models import CanonicalProfile, Credential, ProviderConfig
from idbroker.providers.base import Provider, ProviderResponse


class TwitterUser(ProviderResponse):
    """Response of the Twitter ``account/verify_credentials`` endpoint."""

    screen_name: str
    email: str | None = None


class TwitterProvider(Provider):
    """
    Twitter identity provider.

    Requests are signed with the client key and secret from the configuration
    and with the user access token and secret from the request, which come as
    ``oauth_token`` (or ``access_token``) and ``access_secret``.
    """

    name = "twitter"
    label = "Twitter"
    url_profile = "https://api.twitter.com/1.1/account/verify_credentials.json"

    def oauth1_session(
        self, credential: Credential, config: ProviderConfig
    ) -> OAuth1Session:
        """Create a session signing requests with OAuth 1.0a."""
        client_key = self.require_client_key(config)
        if not config.client_secret:
            raise ProviderCallError(
                self.name, "client secret is not configured"
            )
        if not credential.secondary_token:
            raise ProviderCallError(self.name, "access_secret is missing")
        return OAuth1Session(
            client_key,
            client_secret=config.client_secret,
            resource_owner_key=credential.access_token,
            resource_owner_secret=credential.secondary_token,
        )

    def fetch_profile(
        self, credential: Credential, config: ProviderConfig
    ) -> CanonicalProfile:
        """Fetch the Twitter account, including its email."""
        params = {"include_email": "true"}
        if screen_name := credential.params.get("raw[screen_name]"):
            params["screen_name"] = screen_name
        with self.oauth1_session(credential, config) as session:
            user = self.get(
                session, self.url_profile, TwitterUser, params=params
            )
        return CanonicalProfile(username=user.screen_name, email=user.email)
