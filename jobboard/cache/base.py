from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from jobboard.errors import CacheError


M = TypeVar("M", bound=BaseModel)


class Cache(ABC):
    """Key-value store with per-key TTL.

    Backends store opaque bytes. `get`/`set` encode pydantic models as JSON so callers
    read entries back into the model type they expect. A missing or expired key is a
    miss (`None`); backend failures raise `CacheError`.

    Namespaces are invalidated by generation: every key in a namespace embeds the
    namespace's current generation, read before the store query that fills it, and
    `bump_generation` moves the namespace to a fresh set of keys. Entries written under
    an older generation are never read again and age out with their TTL.
    """

    name: str = "cache"

    @abstractmethod
    def get_bytes(self, key: str) -> bytes | None: ...

    @abstractmethod
    def set_bytes(self, key: str, value: bytes, ttl_seconds: int) -> None: ...

    @abstractmethod
    def delete(self, *keys: str) -> None: ...

    @abstractmethod
    def generation(self, namespace: str) -> int:
        """Current generation of `namespace`; 0 if it was never bumped."""

    @abstractmethod
    def bump_generation(self, namespace: str) -> int:
        """Atomically advance the generation of `namespace` and return the new value."""

    @abstractmethod
    def ping(self) -> bool: ...

    def get(self, key: str, model_type: type[M]) -> M | None:
        raw = self.get_bytes(key)
        if raw is None:
            return None
        try:
            return model_type.model_validate_json(raw)
        except PydanticValidationError as exc:
            raise CacheError(f"undecodable cache entry for key {key!r}") from exc

    def set(self, key: str, value: BaseModel, ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.set_bytes(key, value.model_dump_json().encode("utf-8"), ttl_seconds)
