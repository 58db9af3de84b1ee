# Copyright © The idbroker Developers
# See the AUTHORS file at the top-level directory of this distribution
#
# This file is part of idbroker. It is subject to the license terms
# in the LICENSE file found in the top-level directory of this
# distribution. No part of idbroker, including this file, may be copied,
# modified, propagated, or distributed except according to the terms
# contained in the LICENSE file.

"""Identity broker for third-party sign-on providers."""

# Code in this package does not depend on a configured Django project, except
# for idbroker.config.DjangoPluginConfig and
# idbroker.providers.registry.ProviderRegistry.from_settings, which read
# Django settings when called.

__version__ = "0.1.0"
