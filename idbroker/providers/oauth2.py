# Copyright © The idbroker Developers
# See the AUTHORS file at the top-level directory of this distribution
#
# This file is part of idbroker. It is subject to the license terms
# in the LICENSE file found in the top-level directory of this
# distribution. No part of idbroker, including this file, may be copied,
# modified, propagated, or distributed except according to the terms
# contained in the LICENSE file.

"""OAuth 2.0 providers exposing the user profile on a single endpoint."""

try:
    import pydantic.v1 as pydantic
except ImportError:
    import pydantic as pydantic  # type: ignore

from idbroker.broker_utils import join_full_name
from idbroker.models import CanonicalProfile, Credential, ProviderConfig
from idbroker.providers.base import BearerProvider, Provider, ProviderResponse


class DiscordUser(ProviderResponse):
    """Response of the Discord ``users/@me`` endpoint."""

    username: str
    discriminator: str
    email: str | None = None


class DiscordProvider(BearerProvider):
    """Discord identity provider."""

    name = "discord"
    label = "Discord"
    url_profile = "https://discordapp.com/api/users/@me"

    def fetch_profile(
        self, credential: Credential, config: ProviderConfig
    ) -> CanonicalProfile:
        """Fetch the Discord user."""
        with self.session(credential) as session:
            user = self.get(session, self.url_profile, DiscordUser)
        # Discord usernames are only unique together with the discriminator
        return CanonicalProfile(
            username=f"{user.username}#{user.discriminator}",
            email=user.email,
        )


class FacebookUser(ProviderResponse):
    """Response of the Facebook Graph ``me`` endpoint."""

    name: str | None = None
    email: str | None = None


class FacebookProvider(BearerProvider):
    """Facebook identity provider."""

    name = "facebook"
    label = "Facebook"
    url_profile = "https://graph.facebook.com/me"

    def fetch_profile(
        self, credential: Credential, config: ProviderConfig
    ) -> CanonicalProfile:
        """Fetch name and email from the Graph API."""
        with self.session(credential) as session:
            user = self.get(
                session,
                self.url_profile,
                FacebookUser,
                params={"fields": "name,email"},
            )
        return CanonicalProfile(username=user.name, email=user.email)


class GoogleUserInfo(ProviderResponse):
    """Response of the Google OAuth2 v2 ``userinfo`` endpoint."""

    id: str
    email: str | None = None
    given_name: str | None = None
    family_name: str | None = None
    picture: str | None = None


class GoogleProvider(BearerProvider):
    """Google identity provider."""

    name = "google"
    label = "Google"
    username_prefix = "gg"
    url_profile = "https://www.googleapis.com/oauth2/v2/userinfo"

    def fetch_profile(
        self, credential: Credential, config: ProviderConfig
    ) -> CanonicalProfile:
        """Fetch the Google user info."""
        with self.session(credential) as session:
            info = self.get(session, self.url_profile, GoogleUserInfo)
        return CanonicalProfile(
            username=self.namespaced_username(info.id),
            email=info.email,
            display_name=join_full_name(info.given_name, info.family_name),
            avatar_url=info.picture,
            provider_user_id=info.id,
        )


class MicrosoftUser(ProviderResponse):
    """Response of the Microsoft Graph ``me`` endpoint."""

    userPrincipalName: str


class MicrosoftProvider(BearerProvider):
    """Microsoft identity provider."""

    name = "microsoft"
    label = "Microsoft"
    url_profile = "https://graph.microsoft.com/v1.0/me"

    def fetch_profile(
        self, credential: Credential, config: ProviderConfig
    ) -> CanonicalProfile:
        """Fetch the Microsoft user: the principal name is also the email."""
        with self.session(credential) as session:
            user = self.get(session, self.url_profile, MicrosoftUser)
        return CanonicalProfile(
            username=user.userPrincipalName, email=user.userPrincipalName
        )


class TwitchUser(ProviderResponse):
    """User entry returned by the Twitch Helix ``users`` endpoint."""

    login: str
    email: str | None = None


class TwitchUsers(ProviderResponse):
    """Response of the Twitch Helix ``users`` endpoint."""

    data: pydantic.conlist(TwitchUser, min_items=1)  # type: ignore


class TwitchProvider(BearerProvider):
    """Twitch identity provider."""

    name = "twitch"
    label = "Twitch"
    url_profile = "https://api.twitch.tv/helix/users"

    def fetch_profile(
        self, credential: Credential, config: ProviderConfig
    ) -> CanonicalProfile:
        """Fetch the Twitch user, identifying the client with its key."""
        client_id = self.require_client_key(config)
        with self.session(credential) as session:
            users = self.get(
                session,
                self.url_profile,
                TwitchUsers,
                headers={"Client-ID": client_id},
            )
        user = users.data[0]
        return CanonicalProfile(username=user.login, email=user.email)


class InstagramUser(ProviderResponse):
    """User returned by the Instagram ``users/self`` endpoint."""

    username: str


class InstagramSelf(ProviderResponse):
    """Response of the Instagram ``users/self`` endpoint."""

    data: InstagramUser


class InstagramProvider(Provider):
    """
    Instagram identity provider.

    Instagram does not share the user email: a placeholder one is made up
    from the username.
    """

    name = "instagram"
    label = "Instagram"
    placeholder_domain = "strapi.io"
    url_profile = "https://api.instagram.com/v1/users/self"

    def fetch_profile(
        self, credential: Credential, config: ProviderConfig
    ) -> CanonicalProfile:
        """Fetch the Instagram user."""
        with self.session(credential) as session:
            response = self.get(
                session,
                self.url_profile,
                InstagramSelf,
                params={"access_token": credential.access_token},
            )
        username = response.data.username
        return CanonicalProfile(
            username=username, email=self.placeholder_email(username, config)
        )


class VkUser(ProviderResponse):
    """User entry returned by the VK ``users.get`` method."""

    first_name: str
    last_name: str


class VkUsers(ProviderResponse):
    """Response of the VK ``users.get`` method."""

    response: pydantic.conlist(VkUser, min_items=1)  # type: ignore


class VkProvider(Provider):
    """
    VK identity provider.

    VK only shares the email when issuing the access token: the client
    forwards it as the ``raw[email]`` request parameter, together with
    ``raw[user_id]``.
    """

    name = "vk"
    label = "VK"
    url_profile = "https://api.vk.com/method/users.get"
    api_version = "5.122"

    def fetch_profile(
        self, credential: Credential, config: ProviderConfig
    ) -> CanonicalProfile:
        """Fetch the VK user."""
        params = {
            "access_token": credential.access_token,
            "v": self.api_version,
        }
        if user_id := credential.params.get("raw[user_id]"):
            params["id"] = user_id
        with self.session(credential) as session:
            users = self.get(session, self.url_profile, VkUsers, params=params)
        user = users.response[0]
        return CanonicalProfile(
            username=f"{user.last_name} {user.first_name}",
            email=credential.params.get("raw[email]"),
        )
