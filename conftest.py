import pytest


@pytest.fixture(autouse=True)
def _test_safe_settings(settings):
    # SecurityMiddleware must not bounce the test client to https://testserver/
    settings.SECURE_SSL_REDIRECT = False
    settings.SECURE_HSTS_SECONDS = 0

    # Session auth over plain http in tests
    settings.SESSION_COOKIE_SECURE = False
    settings.CSRF_COOKIE_SECURE = False

    # Workflow e-mails are opt-in per test
    settings.WORKFLOW_EMAIL_NOTIFICATIONS = False
