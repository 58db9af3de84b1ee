# Copyright © The idbroker Developers
# See the AUTHORS file at the top-level directory of this distribution
#
# This file is part of idbroker. It is subject to the license terms
# in the LICENSE file found in the top-level directory of this
# distribution. No part of idbroker, including this file, may be copied,
# modified, propagated, or distributed except according to the terms
# contained in the LICENSE file.

"""Validation of canonical profiles before account resolution."""

from idbroker.exceptions import MissingEmailError
from idbroker.models import CanonicalProfile


class ProfileValidator:
    """
    Check that a profile can be used to resolve an account.

    Accounts are matched by email, so the only requirement is an email:
    resolution works without username or display name.
    """

    def validate(self, profile: CanonicalProfile) -> CanonicalProfile:
        """
        Validate a profile, returning it unchanged.

        :raises MissingEmailError: the profile has no email
        """
        if not profile.email:
            raise MissingEmailError("Email was not available.")
        return profile
