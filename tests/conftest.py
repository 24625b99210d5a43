import pytest

from app.dashboard import auth as auth_module


@pytest.fixture(autouse=True)
def _reset_login_attempts():
    # The login rate limiter is process-wide; keep tests independent of each other.
    auth_module._login_attempts.clear()
    yield
    auth_module._login_attempts.clear()
