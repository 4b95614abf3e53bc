# Test configuration for pytest
#
# Note: Tests require the package to be installed.
# Run `pip install -e .[test]` from the project root before running tests.

import pytest

from gameobservers.config import set_callback_error_policy, setup_logging
from gameobservers.host import init_host
from gameobservers.memory import Instance, MemoryHost


@pytest.fixture(autouse=True)
def reset_globals():
    """Restore process-wide settings between tests."""
    set_callback_error_policy("raise")
    init_host(None)
    yield
    set_callback_error_policy("raise")
    init_host(None)
    setup_logging(verbose=False)


@pytest.fixture
def host():
    """Empty in-memory host."""
    return MemoryHost()


@pytest.fixture
def workspace(host):
    """A Workspace instance parented to the host root."""
    return Instance("Workspace", parent=host.root)


class Recorder:
    """Collects callback and cleanup invocations in order."""

    def __init__(self):
        self.log = []

    def callback(self, value):
        self.log.append(("callback", value))

        def cleanup(*args):
            self.log.append(("cleanup", value) + args)
        return cleanup

    def calls(self, kind):
        return [entry for entry in self.log if entry[0] == kind]


@pytest.fixture
def recorder():
    return Recorder()
