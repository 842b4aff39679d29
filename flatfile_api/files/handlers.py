"""Handlers for the three resource families: generic, CSV and JSON.

Each handler runs one operation against the injected storage backend and
returns the response body (``mensaje`` plus ``contenido`` where there is a
payload). Failures are raised as :class:`~flatfile_api.files.errors.FileApiError`
subclasses and rendered by the route middleware.

The handlers are synchronous and keep no state between calls.
"""

from __future__ import annotations

import posixpath
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator, Mapping

from flatfile_api.files.errors import (
    ConflictError,
    InternalError,
    InvalidInputError,
    NotFoundError,
    UnsupportedContentError,
)
from flatfile_api.files.parsing import Err, parse_csv, parse_json
from flatfile_api.services.filesystem.interface import FileSystemInterface
from flatfile_api.services.logger.interface import LoggingInterface

Body = dict[str, Any]

INVALID_PARAMS = "Parametros inválidos"
INVALID_NAME = "Nombre de fichero no válido"
STORAGE_FAILURE = "Error interno de almacenamiento"


@dataclass(frozen=True)
class Messages:
    listed: str
    created: str
    exists: str
    read: str
    read_missing: str
    missing: str
    updated: str
    deleted: str
    invalid: str = "Contenido no válido"
    empty: str = ""


GENERIC_MESSAGES = Messages(
    listed="Listado de ficheros",
    created="Guardado con éxito",
    exists="El archivo ya existe",
    read="Archivo leído con éxito",
    read_missing="Archivo no encontrado",
    missing="El archivo no existe",
    updated="Actualizado con éxito",
    deleted="Eliminado con éxito",
)

CSV_MESSAGES = Messages(
    listed="Listado de ficheros",
    created="Guardado con éxito",
    exists="El fichero ya existe",
    read="Fichero leído con éxito",
    read_missing="Fichero no encontrado",
    missing="Fichero no encontrado",
    updated="Fichero actualizado exitosamente",
    deleted="Fichero eliminado exitosamente",
    empty="El fichero está vacío",
)

JSON_MESSAGES = Messages(
    listed="Operación exitosa",
    created="Fichero guardado exitosamente",
    exists="El fichero ya existe",
    read="Operación exitosa",
    read_missing="El fichero no existe",
    missing="El fichero no existe",
    updated="Fichero actualizado exitosamente",
    deleted="Fichero eliminado exitosamente",
    invalid="Contenido no es un JSON válido",
)


def _encode(content: str) -> bytes:
    return content.encode("utf-8", errors="replace")


def require_fields(fields: Mapping[str, Any], names: tuple[str, ...]) -> list[str]:
    """Return the values of *names*, each a non-empty string.

    Raises InvalidInputError listing every offending field.
    """
    errores: dict[str, list[str]] = {}
    values: list[str] = []
    for name in names:
        value = fields.get(name)
        if value is None or value == "":
            errores[name] = [f"El campo {name} es obligatorio."]
        elif not isinstance(value, str):
            errores[name] = [f"El campo {name} debe ser una cadena."]
        values.append(value)
    if errores:
        raise InvalidInputError(INVALID_PARAMS, errores=errores)
    return values


class FileHandler:
    """Generic family: arbitrary names, content stored and returned as text."""

    family = "generic"
    messages = GENERIC_MESSAGES

    def __init__(self, fs: FileSystemInterface, log: LoggingInterface) -> None:
        self.fs = fs
        self.log = log

    # ── Operations ─────────────────────────────────────────────────────────

    def list(self) -> Body:
        with self._storage("list"):
            names = self.fs.list()
        return {"mensaje": self.messages.listed, "contenido": self._visible(names)}

    def create(self, fields: Mapping[str, Any]) -> Body:
        filename, content = require_fields(fields, ("filename", "content"))
        with self._storage("create", filename):
            if self.fs.exists(filename):
                raise ConflictError(self.messages.exists)
            self._check_content(content)
            try:
                self.fs.write_new(filename, _encode(content))
            except FileExistsError:
                raise ConflictError(self.messages.exists) from None
        self.log.info("File created", family=self.family, action="create", filename=filename)
        return {"mensaje": self.messages.created}

    def read(self, name: str) -> Body:
        with self._storage("read", name):
            if not self.fs.exists(name):
                raise NotFoundError(self.messages.read_missing)
            raw = self.fs.read(name)
        return self._present(raw)

    def update(self, name: str, fields: Mapping[str, Any]) -> Body:
        content = self._update_content(fields)
        with self._storage("update", name):
            if not self.fs.exists(name):
                raise NotFoundError(self.messages.missing)
            self._check_update_content(content)
            self.fs.write(name, _encode(content))
        self.log.info("File updated", family=self.family, action="update", filename=name)
        return {"mensaje": self.messages.updated}

    def delete(self, name: str) -> Body:
        with self._storage("delete", name):
            if not self.fs.delete(name):
                raise NotFoundError(self.messages.missing)
        self.log.info("File deleted", family=self.family, action="delete", filename=name)
        return {"mensaje": self.messages.deleted}

    # ── Family hooks ───────────────────────────────────────────────────────

    def _visible(self, names: list[str]) -> list[str]:
        return names

    def _check_content(self, content: str) -> None:
        """Validate content on create. Any text is accepted."""

    def _update_content(self, fields: Mapping[str, Any]) -> str:
        (content,) = require_fields(fields, ("content",))
        return content

    def _check_update_content(self, content: str) -> None:
        self._check_content(content)

    def _present(self, raw: bytes) -> Body:
        return {"mensaje": self.messages.read, "contenido": raw.decode("utf-8", errors="replace")}

    # ── Storage error mapping ──────────────────────────────────────────────

    @contextmanager
    def _storage(self, action: str, filename: str = "") -> Iterator[None]:
        """Translate backend exceptions into API errors."""
        try:
            yield
        except ValueError as exc:
            raise InvalidInputError(INVALID_NAME, detalle=str(exc)) from exc
        except FileNotFoundError as exc:
            # Removed between the existence check and the call.
            raise NotFoundError(self.messages.missing) from exc
        except OSError as exc:
            self.log.error(
                "Storage failure",
                family=self.family,
                action=action,
                filename=filename,
                error=str(exc),
            )
            raise InternalError(STORAGE_FAILURE) from exc


class CsvFileHandler(FileHandler):
    """CSV family: ``.csv`` listing, reads parsed into header-keyed records.

    Update validates the body as JSON, not CSV. This matches the behavior
    existing clients rely on; it is kept as-is and is probably a defect.
    """

    family = "csv"
    messages = CSV_MESSAGES

    def _visible(self, names: list[str]) -> list[str]:
        return [n for n in names if n.endswith(".csv")]

    def _check_update_content(self, content: str) -> None:
        if isinstance(parse_json(content), Err):
            raise UnsupportedContentError(self.messages.invalid)

    def _present(self, raw: bytes) -> Body:
        text = raw.decode("utf-8", errors="replace")
        if not text.strip():
            return {"mensaje": self.messages.empty, "contenido": []}
        result = parse_csv(text)
        if isinstance(result, Err):
            raise UnsupportedContentError(self.messages.invalid, detalle=result.detail)
        return {"mensaje": self.messages.read, "contenido": result.value}


class JsonFileHandler(FileHandler):
    """JSON family: content must parse as JSON on every write and read."""

    family = "json"
    messages = JSON_MESSAGES

    def list(self) -> Body:
        valid: list[str] = []
        with self._storage("list"):
            for name in self.fs.list():
                if ".json" not in name:
                    continue
                try:
                    raw = self.fs.read(name)
                except FileNotFoundError:
                    continue
                if isinstance(parse_json(raw), Err):
                    self.log.debug("Skipping invalid JSON file", family=self.family, filename=name)
                    continue
                valid.append(posixpath.basename(name))
        return {"mensaje": self.messages.listed, "contenido": valid}

    def _check_content(self, content: str | None) -> None:
        if isinstance(parse_json(content), Err):
            raise UnsupportedContentError(self.messages.invalid)

    def _update_content(self, fields: Mapping[str, Any]) -> Any:
        # Missing content is reported as invalid JSON after the existence check.
        return fields.get("content")

    def _present(self, raw: bytes) -> Body:
        result = parse_json(raw)
        if isinstance(result, Err):
            raise UnsupportedContentError(self.messages.invalid)
        return {"mensaje": self.messages.read, "contenido": result.value}
