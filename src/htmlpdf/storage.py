"""Storage collaborators for uploading generated documents.

A storage backend is passed explicitly to
:meth:`htmlpdf.converter.Converter.convert_and_upload`; nothing in the
package creates one on import.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Optional, Protocol

from htmlpdf.errors import StorageError
from htmlpdf.logger import get_logger

LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class StoredObject:
    path: str
    url: str


class Storage(Protocol):
    def upload(self, path: str, data: bytes, content_type: str) -> StoredObject:
        """Store *data* under *path* and return where it can be fetched.

        Raises:
            StorageError: if the object could not be stored.
        """
        ...


class LocalStorage:
    """Store objects as files below a root directory.

    Usage::

        storage = LocalStorage("/srv/documents", base_url="https://cdn.example.com/docs")
        stored = storage.upload("settlements/42.pdf", pdf_bytes, "application/pdf")
    """

    def __init__(self, root: str | Path, base_url: Optional[str] = None) -> None:
        self.root = Path(root).resolve()
        self.base_url = base_url.rstrip("/") if base_url else None

    def upload(self, path: str, data: bytes, content_type: str) -> StoredObject:
        relative = PurePosixPath(path.lstrip("/"))
        if not relative.parts or ".." in relative.parts:
            raise StorageError(f"Invalid storage path: {path!r}")

        target = (self.root / relative).resolve()
        if self.root not in target.parents:
            raise StorageError(f"Storage path escapes the root directory: {path!r}")

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as exc:
            raise StorageError(f"Could not write {target}: {exc}") from exc

        LOGGER.debug("Stored %d bytes of %s at %s", len(data), content_type, target)
        if self.base_url:
            url = f"{self.base_url}/{relative.as_posix()}"
        else:
            url = target.as_uri()
        return StoredObject(path=relative.as_posix(), url=url)
