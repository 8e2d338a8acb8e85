class StorageError(Exception):
    """Base class for errors raised by the storage layer."""


class AuthenticationRequiredError(StorageError):
    """A remote write was attempted without a signed-in user."""

    def __init__(self, message: str = "user not authenticated") -> None:
        super().__init__(message)


class NotFoundError(StorageError):
    """Referenced record does not exist."""


class DuplicateNameError(StorageError):
    """Profile name collides with an existing profile."""

    def __init__(self, message: str = "profile with this name already exists") -> None:
        super().__init__(message)


class LastProfileError(StorageError):
    """The only remaining local profile cannot be deleted."""

    def __init__(self, message: str = "cannot delete the last profile") -> None:
        super().__init__(message)


class DuplicateIdError(StorageError):
    """Custom exercise id already exists for this profile."""

    def __init__(self, message: str = "exercise with this id already exists") -> None:
        super().__init__(message)


class UnsupportedOperationError(StorageError):
    """Operation is not available on the active backend."""
