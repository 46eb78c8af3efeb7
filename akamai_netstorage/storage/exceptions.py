# akamai_netstorage/storage/exceptions.py
"""Storage adapter exceptions."""


class StorageError(Exception):
    """Base storage error."""
    pass


class StorageUnavailableError(StorageError):
    """Storage location is unreachable."""
    pass


class StorageConnectionError(StorageError):
    """The remote service answered with an unexpected response."""
    pass


class StorageAuthError(StorageError):
    """Authentication was rejected."""
    pass


class StorageNotFoundError(StorageError):
    """File or directory not found."""
    pass


class StoragePermissionError(StorageError):
    """Permission denied."""
    pass


class ConnectorConfigurationError(StorageError, ValueError):
    """A connector was configured with an option it does not know."""
    pass


class CollectionNotFoundError(StorageError):
    """No resource collection is registered under the requested name."""
    pass
