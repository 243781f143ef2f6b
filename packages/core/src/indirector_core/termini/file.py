"""FileTerminus - one JSON document per key on the local file system."""

from __future__ import annotations

import asyncio
import json
import os
import tempfile
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING, Any

from ..primitives.exceptions import ConfigurationError, TerminusError
from ..serialization import instance_from_wire, instance_to_wire
from ..terminus import Terminus

if TYPE_CHECKING:
    from ..indirection import Indirection
    from ..request import Request


class FileTerminus(Terminus):
    """Persists instances as ``<directory>/<indirection>/<key>.json``.

    The directory comes from ``settings.file_directory`` unless given
    explicitly. Writes go through a temporary file and an atomic rename.
    Blocking I/O runs in a worker thread.
    """

    suffix = ".json"

    def __init__(
        self,
        indirection: Indirection,
        name: str | None = None,
        *,
        directory: str | Path | None = None,
    ) -> None:
        super().__init__(indirection, name)
        base = directory or self.settings.file_directory
        if not base:
            raise ConfigurationError(
                f"No file directory configured for {self.indirection_name}"
            )
        self.directory = Path(base) / self.indirection_name

    def path(self, key: str | None) -> Path:
        """Return the document path for *key*, rejecting traversal."""
        if not key:
            raise TerminusError(f"Invalid key {key!r} for {self.indirection_name}")
        relative = PurePosixPath(key)
        if relative.is_absolute() or ".." in relative.parts:
            raise TerminusError(f"Invalid key {key!r} for {self.indirection_name}")
        return self.directory / Path(*relative.parts).with_name(
            relative.name + self.suffix
        )

    async def find(self, request: Request) -> Any | None:
        path = self.path(request.key)
        raw = await asyncio.to_thread(self._read, path)
        if raw is None:
            return None
        return self._load(path, raw)

    async def save(self, request: Request) -> Any:
        if request.instance is None:
            raise TerminusError(f"Cannot save {request}: no instance given")
        path = self.path(request.key)
        body = json.dumps(instance_to_wire(request.instance), default=str)
        await asyncio.to_thread(self._write, path, body)
        return request.instance

    async def search(self, request: Request) -> list[Any]:
        pattern = (request.key or "*") + self.suffix
        paths = await asyncio.to_thread(lambda: sorted(self.directory.glob(pattern)))
        results: list[Any] = []
        for path in paths:
            raw = await asyncio.to_thread(self._read, path)
            if raw is not None:
                results.append(self._load(path, raw))
        return results

    async def destroy(self, request: Request) -> bool:
        path = self.path(request.key)
        return await asyncio.to_thread(self._unlink, path)

    # ── Internals ────────────────────────────────────────────────

    def _load(self, path: Path, raw: str) -> Any:
        try:
            return instance_from_wire(self.model, json.loads(raw))
        except ValueError as e:
            raise TerminusError(f"Could not parse {path}: {e}") from e

    @staticmethod
    def _read(path: Path) -> str | None:
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    @staticmethod
    def _write(path: Path, body: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(body)
            os.replace(tmp, path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    @staticmethod
    def _unlink(path: Path) -> bool:
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        return True
