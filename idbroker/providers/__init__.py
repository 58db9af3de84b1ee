# Copyright © The idbroker Developers
# See the AUTHORS file at the top-level directory of this distribution
#
# This file is part of idbroker. It is subject to the license terms
# in the LICENSE file found in the top-level directory of this
# distribution. No part of idbroker, including this file, may be copied,
# modified, propagated, or distributed except according to the terms
# contained in the LICENSE file.

"""
Adapters for third-party identity providers.

Each provider turns an access credential into a
:py:class:`idbroker.models.CanonicalProfile`, hiding the quirks of the
provider API: namespaced usernames, made-up emails, extra calls and local
token verification.
"""
