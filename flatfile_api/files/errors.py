"""Error kinds raised by the file handlers.

Each carries the HTTP status it maps to and the ``mensaje`` shown to the
client. The error middleware in :mod:`flatfile_api.files.routes` renders them.
"""

from __future__ import annotations

from typing import Any


class FileApiError(Exception):
    status = 500

    def __init__(self, mensaje: str, **extra: Any) -> None:
        super().__init__(mensaje)
        self.mensaje = mensaje
        self.extra = extra

    def to_body(self) -> dict[str, Any]:
        return {"mensaje": self.mensaje, **self.extra}


class InvalidInputError(FileApiError):
    """A required field is missing or the name is rejected."""

    status = 422


class ConflictError(FileApiError):
    status = 409


class NotFoundError(FileApiError):
    status = 404


class UnsupportedContentError(FileApiError):
    """Content failed the family's format check."""

    status = 415


class InternalError(FileApiError):
    """The storage backend failed for a reason other than a missing file."""

    status = 500
