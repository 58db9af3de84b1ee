# Copyright © The idbroker Developers
# See the AUTHORS file at the top-level directory of this distribution
#
# This file is part of idbroker. It is subject to the license terms
# in the LICENSE file found in the top-level directory of this
# distribution. No part of idbroker, including this file, may be copied,
# modified, propagated, or distributed except according to the terms
# contained in the LICENSE file.

"""
Access to the plugin configuration.

The broker reads two plugin settings, on every request:

* ``grant``: per-provider client configuration, as a mapping of provider
  names to mappings with ``enabled``, ``key``, ``secret`` and any extra
  provider-specific option
* ``advanced``: registration policy, with ``allow_register``,
  ``unique_email`` and ``default_role``

Example::

    IDBROKER_PLUGIN_SETTINGS = {
        "grant": {
            "twitter": {"enabled": True, "key": "...", "secret": "..."},
            "weixin": {"key": "...", "placeholder_domain": "example.org"},
        },
        "advanced": {
            "allow_register": True,
            "unique_email": True,
            "default_role": "authenticated",
        },
    }
"""

from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

try:
    import pydantic.v1 as pydantic
except ImportError:
    import pydantic as pydantic  # type: ignore

from django.core.exceptions import ImproperlyConfigured

from idbroker.models import AdvancedSettings, ProviderConfig

GRANT_SETTING = "grant"
ADVANCED_SETTING = "advanced"


@runtime_checkable
class PluginConfig(Protocol):
    """Read-only source of plugin settings."""

    def get_plugin_setting(self, key: str) -> Any:
        """Return the value of a plugin setting, or None if it is not set."""


class StaticPluginConfig:
    """Plugin settings held in a mapping."""

    def __init__(self, settings: Mapping[str, Any] | None = None) -> None:
        """Store the mapping with the plugin settings."""
        self.settings: Mapping[str, Any] = settings or {}

    def get_plugin_setting(self, key: str) -> Any:
        """Look up ``key`` in the mapping."""
        return self.settings.get(key)


class DjangoPluginConfig:
    """
    Plugin settings read from the ``IDBROKER_PLUGIN_SETTINGS`` Django setting.

    The setting is looked up again on each access, so that changes to the
    settings are picked up without restarting.
    """

    setting_name = "IDBROKER_PLUGIN_SETTINGS"

    def get_plugin_setting(self, key: str) -> Any:
        """Look up ``key`` in the Django setting."""
        from django.conf import settings

        plugin_settings = getattr(settings, self.setting_name, None)
        if plugin_settings is None:
            raise ImproperlyConfigured(
                f"plugin setting {key} requested,"
                f" but {self.setting_name} is not defined in settings"
            )
        return plugin_settings.get(key)


def _mapping_setting(config: PluginConfig, key: str) -> Mapping[str, Any]:
    value = config.get_plugin_setting(key)
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ImproperlyConfigured(
            f"plugin setting {key!r} is not a mapping: {value!r}"
        )
    return value


def load_provider_config(
    config: PluginConfig, provider: str
) -> ProviderConfig:
    """
    Load the client configuration for a provider.

    Providers missing from the ``grant`` setting get an empty configuration:
    whether that is enough to call the provider is up to the provider.
    """
    entry = dict(_mapping_setting(config, GRANT_SETTING).get(provider) or {})
    try:
        return ProviderConfig(
            provider_id=provider,
            client_key=entry.pop("key", None),
            client_secret=entry.pop("secret", None),
            enabled=entry.pop("enabled", True),
            extra={key: str(value) for key, value in entry.items()},
        )
    except pydantic.ValidationError as exc:
        raise ImproperlyConfigured(
            f"plugin setting {GRANT_SETTING!r} for {provider!r} is invalid:"
            f" {exc}"
        ) from exc


def load_advanced_settings(config: PluginConfig) -> AdvancedSettings:
    """
    Load the registration policy.

    :raises ImproperlyConfigured: the setting has values of the wrong type
    """
    try:
        return AdvancedSettings(**_mapping_setting(config, ADVANCED_SETTING))
    except pydantic.ValidationError as exc:
        raise ImproperlyConfigured(
            f"plugin setting {ADVANCED_SETTING!r} is invalid: {exc}"
        ) from exc
