"""Artifact storage for ArtGate.

Objects are addressed by key (``art/<timestamp>.jpg``, ``art/latest.jpg``)
and carry their HTTP metadata. The filesystem store keeps each object next
to a JSON sidecar; file I/O runs in the default executor so the event loop
never blocks on disk.
"""

import asyncio
import hashlib
import json
import os
import tempfile
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from functools import partial
from pathlib import Path
from typing import List, Optional

from ..config import ApplicationConfig
from ..models import ObjectInfo, StoredObject
from ..utils import create_contextual_logger, history_timestamp

META_SUFFIX = ".meta.json"
TMP_PREFIX = ".tmp-"


def history_key(now: Optional[datetime] = None, prefix: str = "art/") -> str:
    """Immutable key for one generation, sortable by creation time."""
    return f"{prefix}{history_timestamp(now)}.jpg"


class ObjectStore(ABC):
    """Key/value blob store with per-object HTTP metadata."""

    @abstractmethod
    async def put(self, key: str, data: bytes, content_type: str, cache_control: str) -> ObjectInfo:
        """Store ``data`` under ``key``, replacing any existing object."""

    @abstractmethod
    async def get(self, key: str) -> Optional[StoredObject]:
        """Return the object, or None when absent."""

    @abstractmethod
    async def list(self, prefix: str = "") -> List[ObjectInfo]:
        """All objects whose key starts with ``prefix``."""

    async def recent(self, limit: int, prefix: str = "art/", exclude: Optional[str] = "art/latest.jpg") -> List[ObjectInfo]:
        """The ``limit`` most recently uploaded objects, newest first."""
        objects = [o for o in await self.list(prefix) if o.key != exclude]
        objects.sort(key=lambda o: (o.uploaded_at, o.key), reverse=True)
        return objects[:limit]


class FileSystemObjectStore(ObjectStore):
    """Object store rooted at a local directory."""

    def __init__(self, root: os.PathLike) -> None:
        self.root = Path(root).resolve()
        self.logger = create_contextual_logger(__name__, service="object_store")

    @classmethod
    def from_config(cls, config: ApplicationConfig) -> "FileSystemObjectStore":
        return cls(Path(config.art_storage_dir))

    def _path_for(self, key: str) -> Optional[Path]:
        """Resolve a key inside the root; keys that escape it have no path."""
        if not key or key.endswith(META_SUFFIX):
            return None
        if any(part.startswith(TMP_PREFIX) for part in key.split("/")):
            return None
        path = (self.root / key).resolve()
        if self.root not in path.parents:
            return None
        return path

    async def _run(self, func, *args):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(func, *args))

    def _write(self, path: Path, key: str, data: bytes, content_type: str, cache_control: str) -> ObjectInfo:
        path.parent.mkdir(parents=True, exist_ok=True)
        uploaded_at = datetime.now(timezone.utc)
        meta = {
            "key": key,
            "size": len(data),
            "uploaded_at": uploaded_at.isoformat(),
            "content_type": content_type,
            "cache_control": cache_control,
        }

        # Metadata first, body last; both via rename so readers never see a
        # half-written file. ETag and size always come from the body itself.
        self._atomic_write(path.with_name(path.name + META_SUFFIX), json.dumps(meta).encode("utf-8"))
        self._atomic_write(path, data)
        return ObjectInfo(key=key, size=len(data), uploaded_at=uploaded_at)

    @staticmethod
    def _atomic_write(path: Path, data: bytes) -> None:
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=TMP_PREFIX)
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    @staticmethod
    def _read_meta(path: Path) -> Optional[dict]:
        meta_path = path.with_name(path.name + META_SUFFIX)
        try:
            with open(meta_path, encoding="utf-8") as handle:
                meta = json.load(handle)
        except (OSError, ValueError):
            return None
        return meta if isinstance(meta, dict) else None

    def _read(self, path: Path, key: str) -> Optional[StoredObject]:
        try:
            content = path.read_bytes()
        except (FileNotFoundError, IsADirectoryError):
            return None

        meta = self._read_meta(path) or {}
        if "uploaded_at" in meta:
            uploaded_at = datetime.fromisoformat(meta["uploaded_at"])
        else:
            uploaded_at = datetime.fromtimestamp(path.stat().st_mtime, timezone.utc)
        return StoredObject(
            key=key,
            size=len(content),
            uploaded_at=uploaded_at,
            content=content,
            content_type=meta.get("content_type", "application/octet-stream"),
            cache_control=meta.get("cache_control", "no-store, max-age=0"),
            etag=f'"{hashlib.md5(content).hexdigest()}"',
        )

    def _scan(self, prefix: str) -> List[ObjectInfo]:
        if not self.root.exists():
            return []
        objects: List[ObjectInfo] = []
        for path in self.root.rglob("*"):
            if not path.is_file() or path.name.endswith(META_SUFFIX) or path.name.startswith(TMP_PREFIX):
                continue
            key = path.relative_to(self.root).as_posix()
            if not key.startswith(prefix):
                continue
            stat = path.stat()
            meta = self._read_meta(path)
            if meta and "uploaded_at" in meta:
                uploaded_at = datetime.fromisoformat(meta["uploaded_at"])
            else:
                uploaded_at = datetime.fromtimestamp(stat.st_mtime, timezone.utc)
            objects.append(ObjectInfo(key=key, size=stat.st_size, uploaded_at=uploaded_at))
        return objects

    async def put(self, key: str, data: bytes, content_type: str, cache_control: str) -> ObjectInfo:
        path = self._path_for(key)
        if path is None:
            raise ValueError(f"Invalid object key: {key!r}")
        info = await self._run(self._write, path, key, data, content_type, cache_control)
        self.logger.debug("Stored object", key=key, size=len(data))
        return info

    async def get(self, key: str) -> Optional[StoredObject]:
        path = self._path_for(key)
        if path is None:
            return None
        return await self._run(self._read, path, key)

    async def list(self, prefix: str = "") -> List[ObjectInfo]:
        return await self._run(self._scan, prefix)
