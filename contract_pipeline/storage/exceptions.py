class StorageError(Exception):
    """Base exception for object store errors."""

    code = "STORAGE_ERROR"


class ObjectNotFoundError(StorageError):
    code = "OBJECT_NOT_FOUND"

    def __init__(self, path: str) -> None:
        super().__init__(f"Object not found: {path}")
        self.path = path


class InvalidObjectPathError(StorageError):
    """Raised when an object path resolves outside the store root."""

    code = "INVALID_OBJECT_PATH"

    def __init__(self, path: str) -> None:
        super().__init__(f"Object path escapes the store root: {path}")
        self.path = path
