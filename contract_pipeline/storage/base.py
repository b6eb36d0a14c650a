from abc import ABC, abstractmethod


class BaseObjectStore(ABC):
    @abstractmethod
    def get(self, path: str) -> bytes:
        """Return the object's bytes.

        Raises:
            ObjectNotFoundError: if nothing is stored at ``path``.
        """

    @abstractmethod
    def put(self, path: str, data: bytes) -> None:
        raise NotImplementedError

    @abstractmethod
    def delete(self, path: str) -> None:
        """Remove the object. Deleting a missing object is not an error."""
