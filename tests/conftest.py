"""Shared fixtures: a controllable clock and a scripted upstream fetcher."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from core.errors import FetchError
from core.models import Item


class FakeClock:
    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class ScriptedFetcher:
    """Returns (or raises) the queued results in order; repeats the last one."""

    def __init__(self, *results) -> None:
        self.results = list(results)
        self.calls: list[tuple[int, bool]] = []

    def fetch_recent(self, count: int = 100, exclude_replies: bool = True) -> list[Item]:
        self.calls.append((count, exclude_replies))
        result = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        if isinstance(result, Exception):
            raise result
        return result


def make_items(n: int) -> list[Item]:
    return [Item(text=f"Post {i}", author_name="Ada") for i in range(n)]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fetch_error() -> FetchError:
    return FetchError("upstream down")
