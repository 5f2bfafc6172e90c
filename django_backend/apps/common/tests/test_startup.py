"""
Test cases for application start-up.

Import order matters for DRF: the configured authentication and exception
handler classes are loaded while ``rest_framework.views`` initializes, so each
scenario runs in a fresh interpreter where nothing else has been imported yet.
"""
import os
import subprocess
import sys

from django.conf import settings
from django.core.management import call_command
from django.test import SimpleTestCase, TestCase


def run_fresh(code: str) -> subprocess.CompletedProcess:
    env = {**os.environ, "DJANGO_SETTINGS_MODULE": "config.test_settings"}
    return subprocess.run(
        [sys.executable, "-c", f"import django; django.setup(); {code}"],
        cwd=str(settings.BASE_DIR),
        env=env,
        capture_output=True,
        text=True,
        timeout=120,
    )


class FreshImportTest(SimpleTestCase):
    """Each entry point must import cleanly as the first thing a process loads"""

    def assertImports(self, code):
        result = run_fresh(code)
        self.assertEqual(result.returncode, 0, result.stderr)

    def test_errors_first(self):
        self.assertImports("import apps.common.errors")

    def test_rest_framework_views_first(self):
        self.assertImports("import rest_framework.views")

    def test_authentication_first(self):
        self.assertImports("import apps.common.authentication")

    def test_url_configuration(self):
        self.assertImports("import config.urls")

    def test_system_check(self):
        result = run_fresh("from django.core.management import call_command; call_command('check')")

        self.assertEqual(result.returncode, 0, result.stderr)


class HealthCheckTest(TestCase):

    def test_healthz(self):
        response = self.client.get("/healthz/")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.content, b"ok")

    def test_system_check_in_process(self):
        call_command("check")
