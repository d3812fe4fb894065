from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any


class KeyValueStore:
    """A JSON object on disk, rewritten in full on every ``set``."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _read_all(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}

        with self._path.open("r", encoding="utf-8") as file_obj:
            data = json.load(file_obj)

        if not isinstance(data, dict):
            raise ValueError(f"Expected a JSON object in {self._path}")
        return data

    def get(self, key: str) -> Any | None:
        return self._read_all().get(key)

    def set(self, key: str, value: Any) -> None:
        try:
            payload = self._read_all()
        except ValueError:
            payload = {}
        payload[key] = value
        self._write_atomic(payload)

    def _write_atomic(self, payload: dict[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)

        with tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=self._path.parent,
            prefix=f".{self._path.name}.",
            delete=False,
        ) as temp_file:
            temp_name = temp_file.name
            try:
                json.dump(payload, temp_file, indent=2, ensure_ascii=False)
                temp_file.write("\n")
            except BaseException:
                temp_file.close()
                os.unlink(temp_name)
                raise

        try:
            os.replace(temp_name, self._path)
        except BaseException:
            os.unlink(temp_name)
            raise
