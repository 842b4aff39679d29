import os
import tempfile
from pathlib import Path

from flatfile_api.services.filesystem.interface import STAGING_DIR, FileSystemInterface
from flatfile_api.services.secrets.interface import SecretsInterface

DEFAULT_ROOT = "./storage"


class LocalFileSystem(FileSystemInterface):
    """Storage root backed by a local directory (``FS_LOCAL_ROOT``)."""

    def __init__(self, secrets: SecretsInterface) -> None:
        root = secrets.get_or_default("FS_LOCAL_ROOT", DEFAULT_ROOT)
        self._root = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    def _resolve(self, path: str) -> Path:
        """Resolve a relative name against root, rejecting traversal attempts."""
        if not path or path.startswith("/") or ".." in path.split("/"):
            raise ValueError(f"Path traversal not allowed: {path!r}")
        if path.split("/", 1)[0] == STAGING_DIR:
            raise ValueError(f"Reserved name not allowed: {path!r}")
        return self._root / path

    def read(self, path: str) -> bytes:
        full = self._resolve(path)
        if not full.is_file():
            raise FileNotFoundError(f"File not found: {path}")
        return full.read_bytes()

    def write(self, path: str, data: bytes) -> None:
        full = self._resolve(path)
        tmp = self._write_temp(full, data)
        try:
            os.replace(tmp, full)
        except BaseException:
            os.unlink(tmp)
            raise

    def write_new(self, path: str, data: bytes) -> None:
        full = self._resolve(path)
        tmp = self._write_temp(full, data)
        try:
            # link() refuses to overwrite, which gives create-if-absent with
            # the full contents already in place.
            os.link(tmp, full)
        finally:
            os.unlink(tmp)

    def _write_temp(self, full: Path, data: bytes) -> str:
        """Write *data* to a synced file under the staging directory and return its path."""
        full.parent.mkdir(parents=True, exist_ok=True)
        staging = self._root / STAGING_DIR
        staging.mkdir(exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=staging)
        closed = False
        try:
            os.write(fd, data)
            os.fsync(fd)
            os.close(fd)
            closed = True
        except BaseException:
            if not closed:
                os.close(fd)
            os.unlink(tmp)
            raise
        return tmp

    def list(self, prefix: str = "") -> list[str]:
        target = self._resolve(prefix) if prefix else self._root
        if not target.exists():
            return []
        results: list[str] = []
        for p in sorted(target.rglob("*")):
            rel = p.relative_to(self._root)
            if p.is_file() and rel.parts[0] != STAGING_DIR:
                results.append(rel.as_posix())
        return results

    def delete(self, path: str) -> bool:
        full = self._resolve(path)
        if full.is_file():
            full.unlink()
            return True
        return False

    def exists(self, path: str) -> bool:
        return self._resolve(path).is_file()

    def health_check(self) -> bool:
        try:
            self._root.mkdir(parents=True, exist_ok=True)
            return self._root.is_dir() and os.access(self._root, os.W_OK)
        except OSError:
            return False
