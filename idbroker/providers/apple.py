# Copyright © The idbroker Developers
# See the AUTHORS file at the top-level directory of this distribution
#
# This file is part of idbroker. It is subject to the license terms
# in the LICENSE file found in the top-level directory of this
# distribution. No part of idbroker, including this file, may be copied,
# modified, propagated, or distributed except according to the terms
# contained in the LICENSE file.

"""Sign in with Apple identity provider."""

import functools
import json
import logging
from typing import Any

import jwcrypto.jwk
import jwcrypto.jwt
import requests
from django.utils.crypto import constant_time_compare
from jwcrypto.common import JWException

from idbroker.broker_utils import join_full_name
from idbroker.exceptions import InvalidTokenError, ProviderCallError
from idbroker.models import CanonicalProfile, Credential, ProviderConfig
from idbroker.providers.base import Provider

log = logging.getLogger("idbroker.providers")


class AppleProvider(Provider):
    """
    Sign in with Apple identity provider.

    Apple has no profile endpoint: the credential is the identity token
    issued by Apple, which is verified locally against Apple's public keys.

    The audience of the token is the client key with a ``.app`` suffix for
    native apps (the client sends ``useBundleId=true``), or a ``.service``
    suffix for web flows. Apple only tells the user name to the client, which
    can forward it as ``firstName`` and ``lastName`` request parameters.
    """

    name = "apple"
    label = "Apple"
    username_prefix = "ap"
    url_issuer = "https://appleid.apple.com"
    url_jwks = "https://appleid.apple.com/auth/keys"

    @functools.cached_property
    def keyset(self) -> jwcrypto.jwk.JWKSet:
        """Load Apple's signing keys."""
        # TODO: keys are cached for the lifetime of the provider object, and
        # rotated keys are only picked up after a restart. Reload the keyset
        # when a token has an unknown kid.
        with requests.Session() as session:
            body = self.get_json(session, self.url_jwks)
        try:
            keyset = jwcrypto.jwk.JWKSet.from_json(json.dumps(body))
        except (JWException, ValueError) as exc:
            raise ProviderCallError(
                self.name, f"{self.url_jwks} did not return a valid keyset"
            ) from exc
        # Keys that cannot be parsed are skipped: do not cache an empty set
        if not keyset["keys"]:
            raise ProviderCallError(
                self.name, f"{self.url_jwks} did not return a valid keyset"
            )
        return keyset

    def audience(self, credential: Credential, config: ProviderConfig) -> str:
        """Return the audience expected in identity tokens."""
        client_key = self.require_client_key(config)
        if credential.params.get("useBundleId") == "true":
            return f"{client_key}.app"
        return f"{client_key}.service"

    def verify_token(self, token: str, audience: str) -> dict[str, Any]:
        """
        Verify an identity token and return its claims.

        The signature and the ``exp`` and ``nbf`` claims are checked by
        jwcrypto; the issuer and audience are checked here.

        :raises InvalidTokenError: the token did not pass verification
        """
        try:
            tok = jwcrypto.jwt.JWT(key=self.keyset, jwt=token)
            claims = json.loads(tok.claims)
        except (JWException, ValueError) as exc:
            raise InvalidTokenError(
                self.name, f"token verification failed: {exc}"
            ) from exc

        if not isinstance(claims, dict):
            raise InvalidTokenError(
                self.name, "token claims are not a mapping"
            )

        issuer = claims.get("iss")
        if not isinstance(issuer, str) or not constant_time_compare(
            issuer, self.url_issuer
        ):
            raise InvalidTokenError(
                self.name,
                f"Issuer mismatch: remote: {issuer!r},"
                f" expected: {self.url_issuer!r}",
            )

        remote_audience = claims.get("aud")
        if not isinstance(remote_audience, str) or not constant_time_compare(
            remote_audience, audience
        ):
            raise InvalidTokenError(
                self.name,
                f"Audience mismatch: remote: {remote_audience!r},"
                f" expected: {audience!r}",
            )

        if not claims.get("sub"):
            raise InvalidTokenError(self.name, "token has no subject")

        return claims

    def fetch_profile(
        self, credential: Credential, config: ProviderConfig
    ) -> CanonicalProfile:
        """Verify the identity token and build the profile from its claims."""
        claims = self.verify_token(
            credential.access_token, self.audience(credential, config)
        )
        subject = str(claims["sub"])
        log.debug("%s: verified identity token for %s", self.name, subject)
        return CanonicalProfile(
            username=self.namespaced_username(subject),
            email=claims.get("email"),
            display_name=join_full_name(
                credential.params.get("firstName"),
                credential.params.get("lastName"),
            ),
            provider_user_id=subject,
        )
