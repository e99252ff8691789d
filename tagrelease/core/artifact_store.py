"""Write-once, key-addressed artifact store.

Storage layout: {base_path}/{key}
Each key is written exactly once. Writes land in a hidden temporary file
and are hard-linked into place, so a second writer of the same key fails
with DuplicateKeyError even when both race.
"""

from __future__ import annotations

import logging
import os
import uuid
from pathlib import Path

from tagrelease.core.hasher import sha256_hex
from tagrelease.errors import ArtifactNotFoundError, DuplicateKeyError
from tagrelease.models.release import StoredArtifact

logger = logging.getLogger(__name__)


class ArtifactStore:
    """Staging area shared by the build and publish stages.

    Parameters
    ----------
    base_path:
        Root directory for this run's artifacts. Created if missing.
    """

    def __init__(self, base_path: Path) -> None:
        self._base = Path(base_path)
        self._base.mkdir(parents=True, exist_ok=True)

    @property
    def base_path(self) -> Path:
        return self._base

    @staticmethod
    def _check_key(key: str) -> None:
        if not key or key.startswith(".") or "/" in key or "\\" in key:
            raise ValueError(f"Invalid artifact key: {key!r}")

    def _path(self, key: str) -> Path:
        self._check_key(key)
        return self._base / key

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def put(self, key: str, data: bytes) -> StoredArtifact:
        """Store ``data`` under ``key``.

        Raises
        ------
        DuplicateKeyError
            If ``key`` already holds a value.
        """
        path = self._path(key)
        tmp = self._base / f".{key}.{uuid.uuid4().hex}.partial"
        try:
            tmp.write_bytes(data)
            os.link(tmp, path)
        except FileExistsError as exc:
            raise DuplicateKeyError(key) from exc
        finally:
            tmp.unlink(missing_ok=True)

        stored = StoredArtifact(
            key=key,
            size_bytes=len(data),
            sha256=sha256_hex(data),
            path=path,
        )
        logger.info("Stored artifact %s (%d bytes, sha256=%s)", key, len(data), stored.sha256[:12])
        return stored

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get(self, key: str) -> bytes:
        """Return the bytes stored under ``key``.

        Raises
        ------
        ArtifactNotFoundError
            If nothing was stored under ``key``.
        """
        path = self._path(key)
        if not path.is_file():
            raise ArtifactNotFoundError(key)
        return path.read_bytes()

    def exists(self, key: str) -> bool:
        return self._path(key).is_file()

    def keys(self) -> list[str]:
        """All stored keys, sorted."""
        return sorted(
            p.name
            for p in self._base.iterdir()
            if p.is_file() and not p.name.startswith(".")
        )

    def list(self) -> list[tuple[str, bytes]]:
        """All stored (key, bytes) pairs, sorted by key."""
        return [(key, self.get(key)) for key in self.keys()]

    def describe(self, key: str) -> StoredArtifact:
        """Metadata for a stored key, recomputing its digest."""
        data = self.get(key)
        return StoredArtifact(
            key=key,
            size_bytes=len(data),
            sha256=sha256_hex(data),
            path=self._path(key),
        )

    def __len__(self) -> int:
        return len(self.keys())
