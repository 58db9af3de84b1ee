# Copyright © The idbroker Developers
# See the AUTHORS file at the top-level directory of this distribution
#
# This file is part of idbroker. It is subject to the license terms
# in the LICENSE file found in the top-level directory of this
# distribution. No part of idbroker, including this file, may be copied,
# modified, propagated, or distributed except according to the terms
# contained in the LICENSE file.

"""Helper functions for the identity broker."""


def join_full_name(*parts: str | None) -> str | None:
    """
    Join name parts into a full name, skipping missing ones.

    Returns None if no part is available.
    """
    name = " ".join(p.strip() for p in parts if p and p.strip())
    return name or None


def placeholder_email(username: str, domain: str) -> str:
    """
    Make up an email for providers that do not share one.

    The result is deterministic, so that the same remote user always maps to
    the same address.
    """
    return f"{username}@{domain}"
