# Copyright © The idbroker Developers
# See the AUTHORS file at the top-level directory of this distribution
#
# This file is part of idbroker. It is subject to the license terms
# in the LICENSE file found in the top-level directory of this
# distribution. No part of idbroker, including this file, may be copied,
# modified, propagated, or distributed except according to the terms
# contained in the LICENSE file.

"""Tests for the broker data models."""

try:
    import pydantic.v1 as pydantic
except ImportError:
    import pydantic as pydantic  # type: ignore

from idbroker.exceptions import NoCredentialError
from idbroker.models import (
    AdvancedSettings,
    CanonicalProfile,
    Credential,
    UserRecord,
)
from idbroker.test import TestCase


class CredentialTests(TestCase):
    """Tests for :py:class:`Credential`."""

    def test_from_params_access_token(self) -> None:
        credential = Credential.from_params({"access_token": "tok"})
        self.assertEqual(credential.access_token, "tok")
        self.assertIsNone(credential.secondary_token)
        self.assertEqual(credential.params, {})

    def test_from_params_code(self) -> None:
        credential = Credential.from_params({"code": "abc"})
        self.assertEqual(credential.access_token, "abc")

    def test_from_params_oauth_token(self) -> None:
        credential = Credential.from_params(
            {"oauth_token": "tok", "access_secret": "secret"}
        )
        self.assertEqual(credential.access_token, "tok")
        self.assertEqual(credential.secondary_token, "secret")

    def test_from_params_preference(self) -> None:
        """access_token wins over code, which wins over oauth_token."""
        credential = Credential.from_params(
            {"oauth_token": "oauth", "code": "code", "access_token": "access"}
        )
        self.assertEqual(credential.access_token, "access")
        credential = Credential.from_params(
            {"oauth_token": "oauth", "code": "code"}
        )
        self.assertEqual(credential.access_token, "code")

    def test_from_params_extras(self) -> None:
        """Provider-specific string parameters are kept."""
        credential = Credential.from_params(
            {
                "access_token": "tok",
                "raw[screen_name]": "jdoe",
                "useBundleId": "true",
                "nested": {"ignored": True},
            }
        )
        self.assertEqual(
            credential.params,
            {"raw[screen_name]": "jdoe", "useBundleId": "true"},
        )

    def test_from_params_missing(self) -> None:
        for params in ({}, {"access_token": ""}, {"other": "value"}):
            with self.subTest(params=params):
                with self.assertRaisesRegex(
                    NoCredentialError, r"No access_token\."
                ):
                    Credential.from_params(params)

    def test_immutable(self) -> None:
        credential = Credential(access_token="tok")
        with self.assertRaises(TypeError):
            credential.access_token = "other"  # type: ignore[misc]


class CanonicalProfileTests(TestCase):
    """Tests for :py:class:`CanonicalProfile`."""

    def test_email_normalized(self) -> None:
        profile = CanonicalProfile(email="  JDoe@Example.ORG ")
        self.assertEqual(profile.email, "jdoe@example.org")

    def test_empty_email_is_none(self) -> None:
        self.assertIsNone(CanonicalProfile(email="").email)
        self.assertIsNone(CanonicalProfile(email="  ").email)
        self.assertIsNone(CanonicalProfile().email)

    def test_user_fields(self) -> None:
        profile = CanonicalProfile(
            username="wx123",
            email="wx123@yoo.cash",
            display_name="J. Doe",
            extra={"gender": "Secret"},
        )
        self.assertEqual(
            profile.user_fields(),
            {
                "username": "wx123",
                "email": "wx123@yoo.cash",
                "display_name": "J. Doe",
                "gender": "Secret",
            },
        )

    def test_user_fields_extra_cannot_override(self) -> None:
        profile = CanonicalProfile(
            email="jdoe@example.org", extra={"email": "other@example.org"}
        )
        self.assertEqual(profile.user_fields()["email"], "jdoe@example.org")


class AdvancedSettingsTests(TestCase):
    """Tests for :py:class:`AdvancedSettings`."""

    def test_defaults(self) -> None:
        advanced = AdvancedSettings()
        self.assertTrue(advanced.allow_register)
        self.assertTrue(advanced.unique_email)
        self.assertEqual(advanced.default_role, "authenticated")

    def test_unrelated_settings_ignored(self) -> None:
        advanced = AdvancedSettings(
            allow_register=False, email_confirmation=True
        )
        self.assertFalse(advanced.allow_register)


class UserRecordTests(TestCase):
    """Tests for :py:class:`UserRecord`."""

    def test_extra_fields(self) -> None:
        user = UserRecord(
            id=1, email="jdoe@example.org", provider="github", username="jd"
        )
        self.assertEqual(user.username, "jd")  # type: ignore[attr-defined]

    def test_required_fields(self) -> None:
        with self.assertRaises(pydantic.ValidationError):
            UserRecord(id=1, provider="github")  # type: ignore[call-arg]
