"""Global pytest configuration.

We explicitly disable auto-loading of external pytest plugins to prevent
environment-provided plugins from interfering with test discovery and capture
in this repository's harness.
"""

import os
import signal
import warnings

import pytest

os.environ.setdefault("PYTEST_DISABLE_PLUGIN_AUTOLOAD", "1")
# pyopencl prints compiler output on every non-empty build log otherwise.
os.environ.setdefault("PYOPENCL_COMPILER_OUTPUT", "0")
# Keep the on-disk kernel cache out of the developer's home directory.
os.environ.setdefault("PYOPENCL_NO_CACHE", "1")

warnings.filterwarnings(
    "ignore",
    message=".*Non-empty compiler output.*",
    category=UserWarning,
)


# -----------------------------------------------------------------------------
# Simple built-in timeout support (pytest-timeout is disabled by plugin block)
# -----------------------------------------------------------------------------
def _parse_timeout(config) -> float:
    try:
        return float(config.getini("mcpi_timeout"))
    except (TypeError, ValueError):
        return 0.0


def pytest_addoption(parser):
    parser.addini("mcpi_timeout", "Global per-test timeout (seconds)", default="0")


def pytest_configure(config):
    config._global_timeout = _parse_timeout(config)


@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_call(item):
    timeout = getattr(item.config, "_global_timeout", 0)
    if not timeout or timeout <= 0 or not hasattr(signal, "SIGALRM"):
        yield
        return

    def _handler(signum, frame):
        raise TimeoutError(f"Test exceeded global timeout of {timeout} seconds")

    previous = signal.signal(signal.SIGALRM, _handler)
    signal.alarm(int(timeout))
    try:
        yield
    finally:
        signal.alarm(0)
        signal.signal(signal.SIGALRM, previous)
