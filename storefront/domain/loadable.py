"""Hydration-aware state wrapper.

Persisted containers start as :data:`LOADING` and become :class:`Ready`
once storage has been read, so "not loaded yet" and "loaded and empty"
can never be confused.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

T = TypeVar("T")


class Loading:
    """Persisted state has not been restored yet."""

    __slots__ = ()
    _instance: Loading | None = None

    def __new__(cls) -> Loading:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "Loading"

    def __bool__(self) -> bool:
        return False


LOADING = Loading()


@dataclass(frozen=True)
class Ready(Generic[T]):
    value: T


Loadable = Union[Loading, Ready[T]]


def is_ready(state: Loadable) -> bool:
    return isinstance(state, Ready)


def value_or(state: Loadable, default: T) -> T:
    if isinstance(state, Ready):
        return state.value
    return default
