# Copyright © The idbroker Developers
# See the AUTHORS file at the top-level directory of this distribution
#
# This file is part of idbroker. It is subject to the license terms
# in the LICENSE file found in the top-level directory of this
# distribution. No part of idbroker, including this file, may be copied,
# modified, propagated, or distributed except according to the terms
# contained in the LICENSE file.

"""
Lookup of identity providers by name.

The set of providers is fixed when the registry is created. It can be
configured with the ``IDBROKER_PROVIDERS`` Django setting, a sequence of
:py:class:`Provider` instances, one for each supported provider.

Example::

    IDBROKER_PROVIDERS = [
        GithubProvider(),
        GoogleProvider(timeout=5),
        # GitHub Enterprise, available as "ghe"
        GithubProvider(name="ghe", label="GitHub Enterprise"),
    ]
"""

from collections.abc import Iterable

from django.core.exceptions import ImproperlyConfigured

from idbroker.exceptions import UnknownProviderError
from idbroker.providers.apple import AppleProvider
from idbroker.providers.base import Provider
from idbroker.providers.github import GithubProvider
from idbroker.providers.oauth2 import (
    DiscordProvider,
    FacebookProvider,
    GoogleProvider,
    InstagramProvider,
    MicrosoftProvider,
    TwitchProvider,
    VkProvider,
)
from idbroker.providers.twitter import TwitterProvider
from idbroker.providers.weixin import WeixinProvider


def default_providers() -> list[Provider]:
    """Return an instance of each built-in provider."""
    return [
        AppleProvider(),
        DiscordProvider(),
        FacebookProvider(),
        GithubProvider(),
        GoogleProvider(),
        InstagramProvider(),
        MicrosoftProvider(),
        TwitchProvider(),
        TwitterProvider(),
        VkProvider(),
        WeixinProvider(),
    ]


class ProviderRegistry:
    """Fixed set of providers, looked up by name."""

    def __init__(self, providers: Iterable[Provider]) -> None:
        """
        Register providers.

        :raises ImproperlyConfigured: an entry is not a Provider, or two
          providers have the same name
        """
        self.providers: dict[str, Provider] = {}
        for provider in providers:
            if not isinstance(provider, Provider):
                raise ImproperlyConfigured(
                    f"identity provider {provider!r} is not a Provider"
                )
            if provider.name in self.providers:
                raise ImproperlyConfigured(
                    f"identity provider {provider.name!r} is defined twice"
                )
            self.providers[provider.name] = provider

    @classmethod
    def default(cls) -> "ProviderRegistry":
        """Create a registry with all built-in providers."""
        return cls(default_providers())

    @classmethod
    def from_settings(cls) -> "ProviderRegistry":
        """
        Create a registry from the ``IDBROKER_PROVIDERS`` Django setting.

        All built-in providers are used if the setting is not defined.
        """
        from django.conf import settings

        providers = getattr(settings, "IDBROKER_PROVIDERS", None)
        if providers is None:
            return cls.default()
        return cls(providers)

    def names(self) -> list[str]:
        """Return the names of the registered providers."""
        return sorted(self.providers)

    def resolve(self, name: str) -> Provider:
        """
        Look up a provider by name.

        :raises UnknownProviderError: no provider has that name
        """
        try:
            return self.providers[name]
        except KeyError:
            raise UnknownProviderError(name) from None
