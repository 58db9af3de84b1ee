# Copyright © The idbroker Developers
# See the AUTHORS file at the top-level directory of this distribution
#
# This file is part of idbroker. It is subject to the license terms
# in the LICENSE file found in the top-level directory of this
# distribution. No part of idbroker, including this file, may be copied,
# modified, propagated, or distributed except according to the terms
# contained in the LICENSE file.

"""Tests for the GitHub provider."""

from http import HTTPStatus

import responses
from responses import matchers

from idbroker.exceptions import ProviderCallError
from idbroker.models import CanonicalProfile
from idbroker.providers.github import GithubProvider
from idbroker.test import TestCase


class GithubProviderTests(TestCase):
    """Tests for :py:class:`GithubProvider`."""

    url_user = "https://api.github.com/user"
    url_emails = "https://api.github.com/user/emails"

    def setUp(self) -> None:
        """Set up common objects."""
        super().setUp()
        self.provider = GithubProvider()
        self.credential = self.make_credential()
        self.config = self.make_provider_config("github")

    @responses.activate
    def test_fetch_profile_public_email(self) -> None:
        responses.add(
            responses.GET,
            self.url_user,
            json={"login": "octocat", "email": "octocat@github.com"},
            match=[
                matchers.header_matcher(
                    {
                        "Authorization": "Bearer accesstoken",
                        "User-Agent": "idbroker",
                    }
                )
            ],
        )
        profile = self.provider.fetch_profile(self.credential, self.config)
        self.assertEqual(
            profile,
            CanonicalProfile(username="octocat", email="octocat@github.com"),
        )
        # The emails endpoint is not called
        self.assertEqual(len(responses.calls), 1)

    @responses.activate
    def test_fetch_profile_primary_email(self) -> None:
        responses.add(
            responses.GET,
            self.url_user,
            json={"login": "octocat", "email": None},
        )
        responses.add(
            responses.GET,
            self.url_emails,
            json=[
                {"email": "old@example.org", "primary": False},
                {
                    "email": "octocat@example.org",
                    "primary": True,
                    "verified": True,
                },
            ],
            match=[
                matchers.header_matcher(
                    {"Authorization": "Bearer accesstoken"}
                )
            ],
        )
        profile = self.provider.fetch_profile(self.credential, self.config)
        self.assertEqual(
            profile,
            CanonicalProfile(username="octocat", email="octocat@example.org"),
        )

    @responses.activate
    def test_fetch_profile_no_primary_email(self) -> None:
        responses.add(responses.GET, self.url_user, json={"login": "octocat"})
        responses.add(
            responses.GET,
            self.url_emails,
            json=[{"email": "old@example.org", "primary": False}],
        )
        with self.assertLogsContains(
            "github: no primary email found", logger="idbroker.providers"
        ):
            profile = self.provider.fetch_profile(
                self.credential, self.config
            )
        self.assertEqual(profile.username, "octocat")
        self.assertIsNone(profile.email)

    @responses.activate
    def test_fetch_profile_emails_not_a_list(self) -> None:
        responses.add(responses.GET, self.url_user, json={"login": "octocat"})
        responses.add(
            responses.GET,
            self.url_emails,
            json={"message": "Not Found"},
        )
        with self.assertLogsContains(
            f"github: {self.url_emails} did not return a list",
            logger="idbroker.providers",
            level="WARNING",
        ):
            profile = self.provider.fetch_profile(
                self.credential, self.config
            )
        self.assertIsNone(profile.email)

    @responses.activate
    def test_fetch_profile_emails_forbidden(self) -> None:
        """A token without the user:email scope fails the profile fetch."""
        responses.add(responses.GET, self.url_user, json={"login": "octocat"})
        responses.add(
            responses.GET, self.url_emails, status=HTTPStatus.FORBIDDEN
        )
        with self.assertRaisesRegex(
            ProviderCallError,
            f"github: {self.url_emails} returned unexpected status code: 403",
        ):
            self.provider.fetch_profile(self.credential, self.config)

    @responses.activate
    def test_fetch_profile_unauthorized(self) -> None:
        responses.add(
            responses.GET, self.url_user, status=HTTPStatus.UNAUTHORIZED
        )
        with self.assertRaisesRegex(
            ProviderCallError,
            f"github: {self.url_user} returned unexpected status code: 401",
        ):
            self.provider.fetch_profile(self.credential, self.config)

    def test_custom_user_agent(self) -> None:
        provider = GithubProvider()
        provider.user_agent = "example-site"
        with provider.session(self.credential) as session:
            self.assertEqual(session.headers["User-Agent"], "example-site")
