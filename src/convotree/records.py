"""In-memory record repository with ranked fuzzy search."""

from __future__ import annotations

import itertools
from collections.abc import Callable, Hashable

from loguru import logger
from rapidfuzz import fuzz, process, utils

MIN_SEARCH_SCORE = 70


class InMemoryRepository[T]:
    """Keeps records in insertion order, keyed by `id_of(record)`."""

    def __init__(
        self,
        *,
        id_of: Callable[[T], Hashable],
        text_of: Callable[[T], str],
        score_cutoff: float = MIN_SEARCH_SCORE,
    ) -> None:
        self._id_of = id_of
        self._text_of = text_of
        self._score_cutoff = score_cutoff
        self._records: dict[Hashable, T] = {}
        self._ids = itertools.count(1)

    def next_id(self) -> int:
        while True:
            candidate = next(self._ids)
            if candidate not in self._records:
                return candidate

    def add(self, record: T) -> T:
        key = self._id_of(record)
        if key in self._records:
            raise KeyError(f"record {key!r} already exists")
        self._records[key] = record
        return record

    def get(self, key: Hashable) -> T | None:
        return self._records.get(key)

    def update(self, record: T) -> T:
        key = self._id_of(record)
        if key not in self._records:
            raise KeyError(f"record {key!r} does not exist")
        self._records[key] = record
        return record

    def delete(self, key: Hashable) -> bool:
        return self._records.pop(key, None) is not None

    def list(self) -> list[T]:
        return list(self._records.values())

    def __len__(self) -> int:
        return len(self._records)

    def search(self, query: str, limit: int | None = None) -> list[T]:
        """Return records ranked by fuzzy similarity to `query`, best first."""
        choices = {key: self._text_of(record) for key, record in self._records.items()}
        if not query.strip() or not choices:
            return []
        matches = process.extract(
            query,
            choices,
            scorer=fuzz.WRatio,
            processor=utils.default_process,
            score_cutoff=self._score_cutoff,
            limit=limit,
        )
        logger.debug("records.search query_length={} matches={}", len(query), len(matches))
        return [self._records[key] for _choice, _score, key in matches]
