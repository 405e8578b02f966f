import os

import pytest

# Config is initialized at import time, so set the environment at the top level.
# Point the logging config at a missing file so create_app falls back to
# basicConfig and caplog keeps working.
os.environ.setdefault("LOG_CONFIG_PATH", "/nonexistent/rapidroute-logging.yml")

from rapidroute.core import error_logger  # noqa: E402


@pytest.fixture(autouse=True)
def restore_error_logger():
    """Every test starts and ends with the default error logger."""
    error_logger.set_error_logger(None)
    yield
    error_logger.set_error_logger(None)


@pytest.fixture
def captured_errors():
    """Install an error logger that records (message, err) pairs."""
    calls = []
    error_logger.set_error_logger(lambda message, err=None: calls.append((message, err)))
    return calls
