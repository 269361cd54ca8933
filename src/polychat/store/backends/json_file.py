"""JSON file persistence backend.

Each document is one ``<name>.json`` file in a directory. Writes go to a
temporary file first and are moved into place, so a crash mid-write leaves
the previous document intact.
"""

import asyncio
import json
import os
from pathlib import Path
from typing import Any

from .base import PersistenceBackend


class JSONFileBackend(PersistenceBackend):
    """File-backed persistence storing one JSON document per storage name."""

    def __init__(self, path: str | Path = "~/.polychat"):
        self._dir = Path(path).expanduser()

    async def connect(self) -> None:
        """Create the storage directory."""
        self._dir.mkdir(parents=True, exist_ok=True)

    async def disconnect(self) -> None:
        """Nothing to close; files are opened per operation."""
        pass

    def _file(self, name: str) -> Path:
        return self._dir / f"{name}.json"

    def _read(self, name: str) -> dict[str, Any] | None:
        file = self._file(name)
        if not file.exists():
            return None
        return json.loads(file.read_text(encoding="utf-8"))

    def _write(self, name: str, document: dict[str, Any]) -> None:
        file = self._file(name)
        tmp = file.with_suffix(".json.tmp")
        tmp.write_text(json.dumps(document, ensure_ascii=False, indent=2), encoding="utf-8")
        os.replace(tmp, file)

    async def load(self, name: str) -> dict[str, Any] | None:
        return await asyncio.to_thread(self._read, name)

    async def save(self, name: str, document: dict[str, Any]) -> None:
        await asyncio.to_thread(self._write, name, document)

    async def delete(self, name: str) -> None:
        self._file(name).unlink(missing_ok=True)

    @property
    def backend_type(self) -> str:
        return "json"

    @property
    def directory(self) -> Path:
        return self._dir
