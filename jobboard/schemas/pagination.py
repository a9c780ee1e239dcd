from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel, Field


T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    data: list[T] = Field(default_factory=list)
    total: int
    page: int
    page_size: int
    total_pages: int
