"""Persisted configuration document (JSON) with revision-checked writes."""

from __future__ import annotations

import asyncio
import hashlib
import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from agentdock.errors import ConfigConflictError, ConfigError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ConfigSnapshot:
    document: dict[str, Any] = field(default_factory=dict)
    # sha256 of the file bytes; empty when the file does not exist yet.
    revision: str = ""


def _revision(raw: bytes) -> str:
    return hashlib.sha256(raw).hexdigest()


class ConfigStore:
    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def _read_raw(self) -> bytes | None:
        try:
            return self._path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise ConfigError(f"cannot read config {self._path}: {exc}") from exc

    def current_revision(self) -> str:
        raw = self._read_raw()
        return "" if raw is None else _revision(raw)

    def load(self) -> ConfigSnapshot:
        raw = self._read_raw()
        if raw is None:
            return ConfigSnapshot()
        try:
            document = json.loads(raw.decode("utf-8")) if raw.strip() else {}
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise ConfigError(f"invalid config {self._path}: {exc}") from exc
        if not isinstance(document, dict):
            raise ConfigError(f"invalid config {self._path}: top level must be an object")
        return ConfigSnapshot(document=document, revision=_revision(raw))

    def write(self, document: dict[str, Any], *, expected_revision: str | None = None) -> str:
        """Replace the document on disk and return its new revision.

        When ``expected_revision`` is given the write is refused if the file
        changed since it was loaded.
        """
        if expected_revision is not None:
            current = self.current_revision()
            if current != expected_revision:
                raise ConfigConflictError(
                    "configuration changed while the request was in flight; retry"
                )
        payload = (json.dumps(document, indent=2, ensure_ascii=False) + "\n").encode("utf-8")
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self._path.name}.", suffix=".tmp", dir=self._path.parent
        )
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(payload)
            os.replace(tmp_name, self._path)
        except OSError as exc:
            Path(tmp_name).unlink(missing_ok=True)
            raise ConfigError(f"cannot write config {self._path}: {exc}") from exc
        logger.info("Config written to %s", self._path)
        return _revision(payload)

    async def aload(self) -> ConfigSnapshot:
        return await asyncio.to_thread(self.load)

    async def awrite(
        self, document: dict[str, Any], *, expected_revision: str | None = None
    ) -> str:
        return await asyncio.to_thread(
            self.write, document, expected_revision=expected_revision
        )
