"""Search-driven selection steps."""

from __future__ import annotations

import math
from collections.abc import Awaitable, Callable, Sequence
from functools import partial
from typing import Protocol

from convotree.context import maybe_await
from convotree.steps import CANCEL, ButtonOption, ButtonStep, Deferred, StepResult

SELECTION_PAGE_SIZE = 4
SELECTION_COLUMNS = 2


class SearchableRepository[T](Protocol):
    def search(self, query: str) -> Sequence[T] | Awaitable[Sequence[T]]: ...


type SelectionNode = Callable[[str, int], Awaitable[ButtonStep]]


def make_selection_node[T](
    repository: SearchableRepository[T],
    on_picked: Callable[[T], StepResult],
    *,
    prompt: str,
    label: Callable[[T], str] = str,
    key: str = "selection",
    page_size: int = SELECTION_PAGE_SIZE,
    columns: int = SELECTION_COLUMNS,
) -> SelectionNode:
    """Build a generator of paged button steps over ranked search results.

    The returned coroutine function takes the query and a page number. Each
    candidate button leads to `on_picked(candidate)`; the previous/next
    buttons lead back into the generator for the neighbouring page, built
    only when pressed. Candidates keep the repository's ranking order and
    their labels are shown as is. `prompt` receives the query as `{query}`.
    """

    async def node(query: str, page: int = 0) -> ButtonStep:
        candidates = list(await maybe_await(repository.search(query)))
        total_pages = max(1, math.ceil(len(candidates) / page_size))
        page = max(0, min(page, total_pages - 1))
        start = page * page_size

        options: list[ButtonOption] = []
        for offset, candidate in enumerate(candidates[start : start + page_size]):
            if offset and offset % columns == 0:
                options.append(ButtonOption.row_break())
            options.append(
                ButtonOption(
                    text=label(candidate),
                    data=f"pick_{start + offset}",
                    next=Deferred(partial(on_picked, candidate)),
                    literal=True,
                )
            )

        options.append(ButtonOption.row_break())
        if page > 0:
            previous_page = Deferred(partial(node, query, page - 1))
            options.append(ButtonOption(text="previous", data=f"page_{page - 1}", next=previous_page))
        if page < total_pages - 1:
            next_page = Deferred(partial(node, query, page + 1))
            options.append(ButtonOption(text="next", data=f"page_{page + 1}", next=next_page))

        options.append(ButtonOption.row_break())
        options.append(ButtonOption(text="cancel", data=CANCEL))

        return ButtonStep(
            key=key,
            prompt=prompt,
            options=options,
            prompt_params={"query": query},
            in_place=True,
        )

    return node
