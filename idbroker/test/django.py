# Copyright © The idbroker Developers
# See the AUTHORS file at the top-level directory of this distribution
#
# This file is part of idbroker. It is subject to the license terms
# in the LICENSE file found in the top-level directory of this
# distribution. No part of idbroker, including this file, may be copied,
# modified, propagated, or distributed except according to the terms
# contained in the LICENSE file.

"""idbroker extensions to Django's SimpleTestCase."""

import django
import django.test
from django.conf import settings

from idbroker.test.base import TestCase as BaseTestCase

# idbroker does not need a Django project: tests run with minimal settings
# unless the test runner configured some already
if not settings.configured:
    settings.configure(INSTALLED_APPS=[], USE_TZ=True)
    django.setup()


class TestCase(django.test.SimpleTestCase, BaseTestCase):
    """
    Base TestCase for tests that read Django settings.

    Use ``override_settings`` to set ``IDBROKER_PROVIDERS`` and
    ``IDBROKER_PLUGIN_SETTINGS``. No database access is allowed.
    """
