"""Errors raised to the host by the federation layer."""


class FederationError(Exception):
    """Base exception for the federation layer."""
    pass


class ReadOnlyError(FederationError):
    """Attempt to modify a federated user or group (Crowd is read-only here)."""

    def __init__(self, message: str = "Crowd federated entities are read-only"):
        super().__init__(message)


class DirectoryAccessError(FederationError):
    """Crowd could not serve a data operation (transport, permission, auth).

    The originating exception is kept as ``__cause__``.
    """
    pass


class ConfigurationError(FederationError):
    """Provider configuration is missing a required field."""
    pass


def read_only(*args, **kwargs):
    """Shared body for every mutator on federated entities."""
    raise ReadOnlyError()
