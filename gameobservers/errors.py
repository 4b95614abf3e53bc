"""Exception classes for observer errors.

This module defines the exception hierarchy used throughout the library.
The base ObserverError class provides a foundation for all library-specific
errors. Failures raised by the host runtime itself (invalid instances, bad
tag names) are not wrapped and reach the caller unchanged.
"""


class ObserverError(Exception):
    """Base exception for observer errors.

    All library-specific exceptions inherit from this class,
    allowing callers to catch them with a single handler.
    """
    pass


class HostNotInitializedError(ObserverError):
    """Raised when an observer needs the global host and none was installed.

    Either pass host= explicitly or call init_host() once at startup.
    """
    pass


class ClientContextError(ObserverError):
    """Raised when a client-only observer is started outside a client.

    A client context is one where the host knows its local player.
    """
    pass


class ConfigError(ObserverError):
    """Raised when configuration file operations fail."""
    pass


class SceneError(ObserverError):
    """Raised when a YAML scene document cannot be turned into a host."""
    pass


__all__ = [
    'ObserverError',
    'HostNotInitializedError',
    'ClientContextError',
    'ConfigError',
    'SceneError',
]
