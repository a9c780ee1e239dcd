from __future__ import annotations

import logging
import math
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any, TypeVar

from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from jobboard.cache.base import Cache
from jobboard.cache.keys import versioned_key
from jobboard.errors import CacheError, DependencyError, ValidationError


M = TypeVar("M", bound=BaseModel)


def total_pages(total: int, page_size: int) -> int:
    """Number of pages for `total` rows; an empty result still has one page."""
    if page_size <= 0:
        raise ValueError("page_size must be positive")
    return max(1, math.ceil(total / page_size))


def page_offset(page: int, page_size: int) -> int:
    return (page - 1) * page_size


def validate_paging(page: int, page_size: int, *, max_page_size: int) -> None:
    if page < 1:
        raise ValidationError("page must be >= 1")
    if page_size < 1 or page_size > max_page_size:
        raise ValidationError(f"page_size must be between 1 and {max_page_size}")


class BaseService:
    """Shared plumbing for services that own transactions and cache invalidation.

    Store failures roll back and surface as `DependencyError`. Cache failures never
    fail the operation: they are logged as warnings and the call falls back to the
    store (reads) or leaves a TTL-bounded stale entry (invalidation).
    """

    def __init__(self, session_factory: sessionmaker, cache: Cache, *, cache_ttl_seconds: int = 300) -> None:
        self._session_factory = session_factory
        self._cache = cache
        self._cache_ttl_seconds = cache_ttl_seconds
        self._logger = logging.getLogger(type(self).__module__)

    @contextmanager
    def _transaction(self, action: str) -> Iterator[Session]:
        try:
            with self._session_factory.begin() as session:
                yield session
        except SQLAlchemyError as exc:
            self._logger.error("%s failed: %s", action, exc)
            raise DependencyError(f"Store failure during {action}") from exc

    def _read_through(
        self,
        namespace: str,
        model_type: type[M],
        load: Callable[[], M],
        **params: Any,
    ) -> M:
        """Cache-aside read of `load()` under `namespace`.

        The generation is read before `load` runs, so a write that commits and bumps
        the namespace while `load` is in flight leaves this result under a key no later
        reader asks for.
        """
        generation = self._cache_generation(namespace)
        if generation is None:
            return load()

        key = versioned_key(namespace, generation, **params)
        cached = self._cache_get(key, model_type)
        if cached is not None:
            return cached

        result = load()
        self._cache_set(key, result)
        return result

    def _cache_generation(self, namespace: str) -> int | None:
        try:
            return self._cache.generation(namespace)
        except CacheError as exc:
            self._logger.warning("cache.generation failed namespace=%s: %s", namespace, exc)
            return None

    def _cache_get(self, key: str, model_type: type[M]) -> M | None:
        try:
            return self._cache.get(key, model_type)
        except CacheError as exc:
            self._logger.warning("cache.get failed key=%s: %s", key, exc)
            return None

    def _cache_set(self, key: str, value: BaseModel) -> None:
        try:
            self._cache.set(key, value, self._cache_ttl_seconds)
        except CacheError as exc:
            self._logger.warning("cache.set failed key=%s: %s", key, exc)

    def _invalidate(self, *namespaces: str) -> None:
        # Each namespace is bumped on its own so one failure does not skip the rest.
        for namespace in namespaces:
            try:
                self._cache.bump_generation(namespace)
            except CacheError as exc:
                self._logger.warning("cache.invalidate failed namespace=%s: %s", namespace, exc)
