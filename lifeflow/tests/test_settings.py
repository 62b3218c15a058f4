import importlib
import os
from unittest import mock

from django.test import SimpleTestCase

from lifeflow import settings as lifeflow_settings


class EnvironmentSettingsTests(SimpleTestCase):
    def reload_with(self, **env):
        with mock.patch.dict(os.environ, env):
            if 'DJANGO_DEBUG' not in env:
                os.environ.pop('DJANGO_DEBUG', None)
            module = importlib.reload(lifeflow_settings)
        self.addCleanup(importlib.reload, lifeflow_settings)
        return module

    def test_debug_is_off_unless_enabled(self):
        self.assertFalse(self.reload_with().DEBUG)

    def test_debug_from_environment(self):
        self.assertTrue(self.reload_with(DJANGO_DEBUG='true').DEBUG)
        self.assertFalse(self.reload_with(DJANGO_DEBUG='0').DEBUG)

    def test_env_bool(self):
        with mock.patch.dict(os.environ, {'LIFEFLOW_FLAG': ' Yes '}):
            self.assertTrue(lifeflow_settings.env_bool('LIFEFLOW_FLAG'))
        with mock.patch.dict(os.environ):
            os.environ.pop('LIFEFLOW_FLAG', None)
            self.assertFalse(lifeflow_settings.env_bool('LIFEFLOW_FLAG'))
            self.assertTrue(lifeflow_settings.env_bool('LIFEFLOW_FLAG', True))
