# Copyright © The idbroker Developers
# See the AUTHORS file at the top-level directory of this distribution
#
# This file is part of idbroker. It is subject to the license terms
# in the LICENSE file found in the top-level directory of this
# distribution. No part of idbroker, including this file, may be copied,
# modified, propagated, or distributed except according to the terms
# contained in the LICENSE file.

"""Tests for the broker helper functions."""

from idbroker.broker_utils import join_full_name, placeholder_email
from idbroker.test import TestCase


class JoinFullNameTests(TestCase):
    """Tests for :py:func:`join_full_name`."""

    def test_join(self) -> None:
        for parts, expected in (
            (("John", "Doe"), "John Doe"),
            (("Doe", "John"), "Doe John"),
            ((" John ", None), "John"),
            ((None, "Doe"), "Doe"),
            (("", "  ", None), None),
            ((), None),
        ):
            with self.subTest(parts=parts):
                self.assertEqual(join_full_name(*parts), expected)


class PlaceholderEmailTests(TestCase):
    """Tests for :py:func:`placeholder_email`."""

    def test_placeholder(self) -> None:
        self.assertEqual(
            placeholder_email("wx123", "yoo.cash"), "wx123@yoo.cash"
        )
