"""Persisted key-value store with Redis, file and in-memory backends."""
from __future__ import annotations

import asyncio
import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Protocol

import redis

from storefront.core.config import Settings

logger = logging.getLogger(__name__)


class StorageBackend(Protocol):
    """Raw string storage; values are already serialized."""

    def read(self, key: str) -> str | None:
        ...

    def write(self, key: str, raw: str) -> None:
        ...

    def delete(self, key: str) -> None:
        ...


class MemoryBackend:
    """Process-local storage, also the fallback when Redis goes away."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    def read(self, key: str) -> str | None:
        return self._data.get(key)

    def write(self, key: str, raw: str) -> None:
        self._data[key] = raw

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class FileBackend:
    """One JSON file per key under ``state_dir``."""

    _SAFE_KEY = re.compile(r"[^A-Za-z0-9_.-]")

    def __init__(self, state_dir: str | os.PathLike[str]) -> None:
        self._dir = Path(state_dir)
        self._dir.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self._dir / f"{self._SAFE_KEY.sub('_', key)}.json"

    def read(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except UnicodeDecodeError:
            logger.warning("Discarding undecodable persisted state in %s", path.name)
            return None

    def write(self, key: str, raw: str) -> None:
        path = self._path(key)
        tmp = path.with_suffix(".tmp")
        tmp.write_text(raw, encoding="utf-8")
        tmp.replace(path)

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


class RedisBackend:
    """Redis-backed storage shared between processes."""

    KEY_PREFIX = "storefront:"

    def __init__(self, redis_url: str, client: Any | None = None) -> None:
        self._client = client or redis.from_url(
            redis_url,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
        )
        self._client.ping()

    def _key(self, key: str) -> str:
        return f"{self.KEY_PREFIX}{key}"

    def read(self, key: str) -> str | None:
        return self._client.get(self._key(key))

    def write(self, key: str, raw: str) -> None:
        self._client.set(self._key(key), raw)

    def delete(self, key: str) -> None:
        self._client.delete(self._key(key))


def build_backend(settings: Settings) -> StorageBackend:
    """Redis if configured, else files if a state dir is set, else memory."""
    if settings.redis_url:
        try:
            backend = RedisBackend(settings.redis_url)
            logger.info("Redis state storage enabled")
            return backend
        except redis.RedisError as exc:
            logger.warning("Redis state storage init failed, fallback to memory: %s", exc)
            return MemoryBackend()
    if settings.state_dir:
        logger.info("File state storage enabled at %s", settings.state_dir)
        return FileBackend(settings.state_dir)
    logger.warning("No REDIS_URL or STOREFRONT_STATE_DIR; state is kept in memory only")
    return MemoryBackend()


class PersistedStore:
    """JSON key-value store that never lets a bad snapshot break the caller.

    Absent keys and corrupt content both read as ``None``. Backend failures
    switch the store to memory for the rest of the process, so persistence
    is best-effort while in-memory state stays consistent.
    """

    def __init__(self, backend: StorageBackend | None = None) -> None:
        self._backend: StorageBackend = backend or MemoryBackend()

    @property
    def backend(self) -> StorageBackend:
        return self._backend

    def _switch_to_memory_fallback(self, reason: Exception | str) -> None:
        if isinstance(self._backend, MemoryBackend):
            return
        logger.warning("State storage fallback to memory mode: %s", reason)
        self._backend = MemoryBackend()

    def _read_raw(self, key: str) -> str | None:
        try:
            return self._backend.read(key)
        except (redis.RedisError, OSError) as exc:
            self._switch_to_memory_fallback(exc)
            return self._backend.read(key)

    @staticmethod
    def _decode(key: str, raw: str | None) -> Any | None:
        if raw is None or not raw.strip():
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("Discarding unparseable persisted state for key %s", key)
            return None

    def get(self, key: str) -> Any | None:
        return self._decode(key, self._read_raw(key))

    def set(self, key: str, value: Any) -> None:
        serialized = json.dumps(value, ensure_ascii=False, default=str)
        try:
            self._backend.write(key, serialized)
        except (redis.RedisError, OSError) as exc:
            self._switch_to_memory_fallback(exc)
            self._backend.write(key, serialized)

    def remove(self, key: str) -> None:
        try:
            self._backend.delete(key)
        except (redis.RedisError, OSError) as exc:
            self._switch_to_memory_fallback(exc)
            self._backend.delete(key)

    async def load(self, key: str) -> Any | None:
        """Read a snapshot off the event loop; the hydration entry point."""
        raw = await asyncio.to_thread(self._read_raw, key)
        return self._decode(key, raw)
