from __future__ import annotations

from dataclasses import dataclass

import pytest

from convotree.records import InMemoryRepository


@dataclass(frozen=True)
class Book:
    id: int
    title: str


def _repository() -> InMemoryRepository[Book]:
    repository: InMemoryRepository[Book] = InMemoryRepository(id_of=lambda b: b.id, text_of=lambda b: b.title)
    for book in (Book(1, "Dune"), Book(2, "Dune Messiah"), Book(3, "Neuromancer")):
        repository.add(book)
    return repository


def test_crud_operations() -> None:
    repository = _repository()

    assert repository.next_id() == 4
    assert repository.get(2) == Book(2, "Dune Messiah")
    repository.update(Book(2, "Children of Dune"))
    assert repository.get(2) == Book(2, "Children of Dune")
    assert repository.delete(3)
    assert not repository.delete(3)
    assert [book.id for book in repository.list()] == [1, 2]
    assert len(repository) == 2


def test_add_and_update_guard_ids() -> None:
    repository = _repository()

    with pytest.raises(KeyError):
        repository.add(Book(1, "Again"))
    with pytest.raises(KeyError):
        repository.update(Book(9, "Missing"))


def test_search_ranks_and_filters() -> None:
    repository = _repository()

    matches = repository.search("dune")

    assert [book.id for book in matches] == [1, 2]
    assert Book(3, "Neuromancer") not in matches
    assert repository.search("neuromancer", limit=1) == [Book(3, "Neuromancer")]


def test_blank_query_matches_nothing() -> None:
    assert _repository().search("   ") == []
