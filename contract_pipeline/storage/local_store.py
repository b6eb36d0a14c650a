from pathlib import Path

from contract_pipeline.config.settings import Settings
from contract_pipeline.storage.base import BaseObjectStore
from contract_pipeline.storage.exceptions import InvalidObjectPathError, ObjectNotFoundError


class LocalObjectStore(BaseObjectStore):
    """Keeps objects as files below a root directory."""

    DEFAULT_ROOT = Path("/app/files")

    def __init__(self, root: Path | None = None) -> None:
        self._root = (root if root is not None else self.DEFAULT_ROOT).resolve()

    @property
    def root(self) -> Path:
        return self._root

    def get(self, path: str) -> bytes:
        resolved = self._resolve(path)
        if not resolved.is_file():
            raise ObjectNotFoundError(path)
        return resolved.read_bytes()

    def put(self, path: str, data: bytes) -> None:
        resolved = self._resolve(path)
        resolved.parent.mkdir(parents=True, exist_ok=True)
        resolved.write_bytes(data)

    def delete(self, path: str) -> None:
        self._resolve(path).unlink(missing_ok=True)

    def _resolve(self, path: str) -> Path:
        resolved = (self._root / path.lstrip("/")).resolve()
        if resolved == self._root or not resolved.is_relative_to(self._root):
            raise InvalidObjectPathError(path)
        return resolved


def build_object_store(settings: Settings) -> LocalObjectStore:
    return LocalObjectStore(Path(settings.storage_root))
