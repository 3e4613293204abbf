from __future__ import annotations

import pytest

from storefront.core.cart_store import CartStore
from storefront.core.config import Settings
from storefront.core.persisted_store import (
    FileBackend,
    MemoryBackend,
    PersistedStore,
    RedisBackend,
    build_backend,
)

from factories import FakeRedisClient


def test_missing_key_reads_none() -> None:
    store = PersistedStore()
    assert store.get("absent") is None


def test_round_trip_and_remove() -> None:
    store = PersistedStore(MemoryBackend())
    store.set("cart-storage", {"items": []})
    assert store.get("cart-storage") == {"items": []}

    store.remove("cart-storage")
    assert store.get("cart-storage") is None


def test_file_backend_persists_between_instances(tmp_path) -> None:
    PersistedStore(FileBackend(tmp_path)).set("auth-storage", {"token": "t"})
    assert PersistedStore(FileBackend(tmp_path)).get("auth-storage") == {"token": "t"}


def test_corrupt_file_reads_none(tmp_path) -> None:
    backend = FileBackend(tmp_path)
    backend.write("cart-storage", "{oops")
    assert PersistedStore(backend).get("cart-storage") is None


@pytest.mark.asyncio
async def test_undecodable_file_hydrates_empty_cart(tmp_path) -> None:
    (tmp_path / "cart-storage.json").write_bytes(b"\xff\xfe{garbage")
    cart = CartStore(PersistedStore(FileBackend(tmp_path)))

    await cart.hydrate()

    assert cart.has_hydrated
    assert cart.is_empty


@pytest.mark.asyncio
async def test_load_reads_off_loop(tmp_path) -> None:
    store = PersistedStore(FileBackend(tmp_path))
    store.set("cart-storage", {"items": [1]})
    assert await store.load("cart-storage") == {"items": [1]}


def test_redis_backend_prefixes_keys() -> None:
    client = FakeRedisClient()
    store = PersistedStore(RedisBackend("redis://fake", client=client))
    store.set("cart-storage", {"items": []})

    assert "storefront:cart-storage" in client.data
    assert store.get("cart-storage") == {"items": []}


def test_redis_failure_switches_to_memory() -> None:
    client = FakeRedisClient()
    store = PersistedStore(RedisBackend("redis://fake", client=client))
    client.broken = True

    store.set("cart-storage", {"items": ["kept"]})

    assert isinstance(store.backend, MemoryBackend)
    assert store.get("cart-storage") == {"items": ["kept"]}


def test_build_backend_prefers_redis(fake_redis) -> None:
    backend = build_backend(Settings(redis_url="redis://fake"))
    assert isinstance(backend, RedisBackend)


def test_build_backend_falls_back_when_redis_is_down(fake_redis) -> None:
    fake_redis.broken = True
    backend = build_backend(Settings(redis_url="redis://fake"))
    assert isinstance(backend, MemoryBackend)


def test_build_backend_uses_state_dir(tmp_path) -> None:
    backend = build_backend(Settings(state_dir=str(tmp_path / "state")))
    assert isinstance(backend, FileBackend)
    assert (tmp_path / "state").is_dir()
