"""
Pydantic models shared across the feed mirror core.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class Item(BaseModel):
    """One fetched feed entry. Its position is its index in the snapshot."""

    model_config = ConfigDict(frozen=True)

    text: str
    author_name: str = ""

    def render(self) -> str:
        """Text and author separated by a blank line."""
        return f"{self.text}\n\n{self.author_name}"


class CacheSnapshot(BaseModel):
    """An immutable view of the cached feed, newest item first.

    ``refreshed_at`` is ``None`` until the first successful refresh.
    """

    model_config = ConfigDict(frozen=True)

    items: tuple[Item, ...] = ()
    refreshed_at: datetime | None = None

    def __len__(self) -> int:
        return len(self.items)

    @property
    def is_empty(self) -> bool:
        return not self.items


EMPTY_SNAPSHOT = CacheSnapshot()
